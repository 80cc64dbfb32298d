"""Executive summary stage: one narrative over every domain analysis."""

import asyncio
from typing import Any

from growth_diagnostic.core.interfaces import IInferenceClient
from growth_diagnostic.core.results import CompanyContext
from growth_diagnostic.observability import get_logger

logger = get_logger(__name__)

FALLBACK_SUMMARY: str = (
    "Executive summary is being prepared by our analysis team "
    "and will be available within 24 hours."
)


def analysis_payloads(analyses: list[Any]) -> list[dict[str, Any]]:
    return [
        {
            "domain_name": a.domain_name,
            "score": a.score,
            "health": a.health,
            "summary": a.summary,
            "key_insights": list(a.key_insights or []),
            "quick_wins": list(a.quick_wins or []),
            "risk_factors": list(a.risk_factors or []),
            "is_fallback": a.is_fallback,
        }
        for a in analyses
    ]


class ExecutiveSummaryStage:
    """Synthesises the cross-domain narrative, falling back to a placeholder."""

    def __init__(self, inference_client: IInferenceClient, timeout_seconds: float = 60.0) -> None:
        self._inference = inference_client
        self._timeout_seconds = timeout_seconds

    async def run(self, analyses: list[Any], context: CompanyContext) -> tuple[str, bool]:
        """Return ``(summary, used_fallback)``."""
        try:
            summary = await asyncio.wait_for(
                self._inference.summarize(analysis_payloads(analyses), context),
                timeout=self._timeout_seconds,
            )
        except Exception as exc:
            logger.warning("Executive summary failed, using placeholder", error=str(exc))
            return FALLBACK_SUMMARY, True

        if not isinstance(summary, str) or not summary.strip():
            logger.warning("Executive summary was empty, using placeholder")
            return FALLBACK_SUMMARY, True

        return summary.strip(), False
