"""Triage stage: choose the bounded, ordered set of domains to analyse.

Domains are ranked ascending by average score, ties broken by catalog
declaration order. The inference service selects which domains are critical
and names the critical issues; the order of the selection is always the
score ranking. Any inference failure or unusable output falls back to the
configured default priority list, so triage never fails the pipeline.
"""

import asyncio
from typing import Any

from growth_diagnostic.core.catalog import QuestionCatalog
from growth_diagnostic.core.interfaces import IInferenceClient
from growth_diagnostic.core.results import CompanyContext, TriageResult, response_payloads
from growth_diagnostic.core.scoring import ScoredResponse, domain_average_scores
from growth_diagnostic.observability import get_logger

logger = get_logger(__name__)

FALLBACK_CRITICAL_ISSUES: list[str] = ["Analysis in progress"]


def rank_domains(responses: list[ScoredResponse], catalog: QuestionCatalog) -> list[str]:
    """Answered domains, lowest average score first, ties in catalog order."""
    averages = domain_average_scores(responses)
    return sorted(averages, key=lambda domain: (averages[domain], catalog.domain_rank(domain)))


class TriageStage:
    """Selects priority domains from all collected responses."""

    def __init__(
        self,
        inference_client: IInferenceClient,
        catalog: QuestionCatalog,
        max_domains: int = 5,
        default_domains: list[str] | None = None,
        timeout_seconds: float = 60.0,
    ) -> None:
        self._inference = inference_client
        self._catalog = catalog
        self._max_domains = max_domains
        self._default_domains = list(default_domains or [])
        self._timeout_seconds = timeout_seconds

    def fallback(self) -> TriageResult:
        return TriageResult(
            priority_domains=self._default_domains[: self._max_domains],
            critical_issues=list(FALLBACK_CRITICAL_ISSUES),
            used_fallback=True,
        )

    async def run(self, responses: list[Any], context: CompanyContext) -> TriageResult:
        """Produce the triage result for an assessment.

        Args:
            responses: All stored responses for the assessment.
            context: Company context for the inference brief.

        Returns:
            TriageResult with at most ``max_domains`` priority domains.
        """
        ranking = rank_domains(responses, self._catalog)

        try:
            payload = await asyncio.wait_for(
                self._inference.triage(response_payloads(responses), context, ranking),
                timeout=self._timeout_seconds,
            )
        except Exception as exc:
            logger.warning("Triage inference failed, using default priorities", error=str(exc))
            return self.fallback()

        result = self._interpret(payload, ranking)
        if result is None:
            logger.warning("Triage inference returned unusable output, using default priorities")
            return self.fallback()

        logger.info(
            "Triage complete",
            priority_domains=result.priority_domains,
            critical_issue_count=len(result.critical_issues),
        )
        return result

    def _interpret(self, payload: Any, ranking: list[str]) -> TriageResult | None:
        """Validate inference output and order it by the score ranking."""
        if not isinstance(payload, dict):
            return None
        proposed = payload.get("priorityDomains")
        if not isinstance(proposed, list):
            return None

        known = set(self._catalog.domains)
        selected: list[str] = []
        for domain in proposed:
            if isinstance(domain, str) and domain in known and domain not in selected:
                selected.append(domain)
        if not selected:
            return None

        position = {domain: index for index, domain in enumerate(ranking)}
        selected.sort(key=lambda d: (position.get(d, len(position)), self._catalog.domain_rank(d)))

        issues = payload.get("criticalIssues")
        critical_issues = (
            [issue.strip() for issue in issues if isinstance(issue, str) and issue.strip()]
            if isinstance(issues, list)
            else []
        )

        return TriageResult(
            priority_domains=selected[: self._max_domains],
            critical_issues=critical_issues,
        )
