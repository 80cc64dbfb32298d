"""Domain analysis stage: one inference call per prioritised domain.

Calls run with bounded concurrency and an independent timeout each. A
failure of any kind for one domain becomes that domain's fallback result
without touching its siblings. Results are returned, not stored: the caller
persists them on its own session after the fan-out has finished.
"""

import asyncio
from typing import Any

from growth_diagnostic.core.catalog import SpecialistDirectory
from growth_diagnostic.core.interfaces import IInferenceClient
from growth_diagnostic.core.results import (
    CompanyContext,
    DomainAnalysisResult,
    document_payloads,
    response_payloads,
)
from growth_diagnostic.observability import get_logger

logger = get_logger(__name__)


class DomainAnalysisStage:
    """Fans analysis out across the prioritised domains."""

    def __init__(
        self,
        inference_client: IInferenceClient,
        specialists: SpecialistDirectory,
        concurrency: int = 3,
        timeout_seconds: float = 60.0,
    ) -> None:
        self._inference = inference_client
        self._specialists = specialists
        self._concurrency = max(concurrency, 1)
        self._timeout_seconds = timeout_seconds

    async def run(
        self,
        domains: list[str],
        responses: list[Any],
        documents: list[Any],
        context: CompanyContext,
    ) -> list[DomainAnalysisResult]:
        """Analyse every domain, in the order given.

        Args:
            domains: Prioritised domain names.
            responses: All stored responses; each call receives its domain's subset.
            documents: Uploaded document metadata for the assessment.
            context: Company context.

        Returns:
            One result per domain, real or fallback.
        """
        semaphore = asyncio.Semaphore(self._concurrency)
        document_data = document_payloads(documents)

        async def _bounded(domain_name: str) -> DomainAnalysisResult:
            async with semaphore:
                domain_responses = [r for r in responses if r.domain_name == domain_name]
                return await self.analyze(domain_name, domain_responses, document_data, context)

        results = await asyncio.gather(*(_bounded(domain) for domain in domains))

        fallbacks = [r.domain_name for r in results if r.is_fallback]
        logger.info(
            "Domain analysis stage finished",
            domains=len(results),
            fallback_domains=fallbacks,
        )
        return list(results)

    async def analyze(
        self,
        domain_name: str,
        responses: list[Any],
        documents: list[dict[str, Any]],
        context: CompanyContext,
    ) -> DomainAnalysisResult:
        """Analyse a single domain, substituting the fallback on any failure."""
        specialist = self._specialists.for_domain(domain_name)
        try:
            payload = await asyncio.wait_for(
                self._inference.analyze_domain(
                    domain_name,
                    specialist,
                    response_payloads(responses),
                    documents,
                    context,
                ),
                timeout=self._timeout_seconds,
            )
            result = DomainAnalysisResult.from_inference(domain_name, payload, specialist.name)
        except Exception as exc:
            logger.warning(
                "Domain analysis failed, recording fallback",
                domain_name=domain_name,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            return DomainAnalysisResult.fallback(domain_name, specialist.name)

        logger.debug(
            "Domain analysed",
            domain_name=domain_name,
            score=result.score,
            health=result.health.value,
        )
        return result
