"""Analysis pipeline: triage, domain analysis, summary, kits, completion.

Runs once per assessment, picked up from the outbox after the readiness gate
moved the assessment into ``analysis``. Inference failures are absorbed by
each stage's fallback; anything else (persistence errors, missing data)
propagates to the caller, which records the ``pipeline failed`` event.

Inference calls run outside any transaction. Inputs are read in one short
unit of work and each stage's output is written in its own, so the
assessment row is never locked while a model call is in flight.
"""

import uuid
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from typing import Any

from growth_diagnostic.core.interfaces import (
    IAssessmentRepository,
    IDocumentRepository,
    IDomainAnalysisRepository,
    IResponseRepository,
)
from growth_diagnostic.core.lifecycle import TERMINAL_STATUSES, AssessmentStatus
from growth_diagnostic.core.results import CompanyContext
from growth_diagnostic.core.services.deliverables import Deliverable, DeliverableTracker
from growth_diagnostic.core.services.domain_analysis import DomainAnalysisStage
from growth_diagnostic.core.services.executive_summary import ExecutiveSummaryStage
from growth_diagnostic.core.services.implementation_kits import build_implementation_kits
from growth_diagnostic.core.services.triage import TriageStage
from growth_diagnostic.errors import ConflictError, IllegalTransitionError, NotFoundError
from growth_diagnostic.observability import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class PipelineRepositories:
    """Repositories sharing one transaction."""

    assessments: IAssessmentRepository
    responses: IResponseRepository
    documents: IDocumentRepository
    analyses: IDomainAnalysisRepository
    tracker: DeliverableTracker


# Opens a transaction and yields repositories bound to it; commits on exit.
UnitOfWork = Callable[[], AbstractAsyncContextManager[PipelineRepositories]]


class AnalysisPipeline:
    """Runs every analysis stage for one assessment, in order."""

    def __init__(
        self,
        unit_of_work: UnitOfWork,
        triage: TriageStage,
        domain_analysis: DomainAnalysisStage,
        executive_summary: ExecutiveSummaryStage,
    ) -> None:
        self._unit_of_work = unit_of_work
        self._triage = triage
        self._domain_analysis = domain_analysis
        self._executive_summary = executive_summary

    async def run(self, assessment_id: uuid.UUID) -> Any:
        """Run the pipeline for an assessment in ``analysis``.

        Args:
            assessment_id: The assessment to analyse.

        Returns:
            The assessment after the run.

        Raises:
            NotFoundError: If the assessment does not exist.
            IllegalTransitionError: If the assessment never entered analysis.
            ConflictError: If the run ended without all three deliverables.
        """
        async with self._unit_of_work() as repos:
            assessment = await repos.assessments.get_assessment(assessment_id)
            if assessment is None:
                raise NotFoundError(f"Assessment {assessment_id} not found.")

            status = AssessmentStatus(assessment.status)
            if status in TERMINAL_STATUSES:
                logger.info(
                    "Pipeline skipped, assessment already finished",
                    assessment_id=str(assessment_id),
                    status=status.value,
                )
                return assessment
            if status is not AssessmentStatus.ANALYSIS:
                raise IllegalTransitionError(
                    f"Pipeline cannot run for assessment {assessment_id} in status {status.value}."
                )

            context = CompanyContext.of(assessment)
            responses = await repos.responses.get_responses(assessment_id)
            documents = await repos.documents.list_documents(assessment_id)

        log = logger.bind(assessment_id=str(assessment_id))
        log.info("Analysis pipeline started")

        triage = await self._triage.run(responses, context)
        async with self._unit_of_work() as repos:
            await repos.assessments.record_triage(
                assessment_id, triage.priority_domains, triage.critical_issues
            )

        results = await self._domain_analysis.run(
            triage.priority_domains, responses, documents, context
        )
        async with self._unit_of_work() as repos:
            # Sequential: the repositories share one session.
            for result in results:
                await repos.analyses.upsert_domain_analysis(assessment_id, result)
            analyses = await repos.analyses.list_domain_analyses(assessment_id)
            await repos.tracker.mark_detailed_analysis(assessment_id, analyses)

        summary, summary_fallback = await self._executive_summary.run(analyses, context)
        async with self._unit_of_work() as repos:
            await repos.assessments.record_executive_summary(assessment_id, summary)
            await repos.tracker.mark(assessment_id, Deliverable.EXECUTIVE_SUMMARY)

            kits = build_implementation_kits(analyses)
            await repos.assessments.record_implementation_kits(assessment_id, kits)
            if kits:
                await repos.tracker.mark(assessment_id, Deliverable.IMPLEMENTATION_KITS)

            transition = await repos.tracker.complete_if_ready(assessment_id)
            if transition is None:
                raise ConflictError(
                    f"Analysis for assessment {assessment_id} finished without all deliverables."
                )
            finished = await repos.assessments.get_assessment(assessment_id)

        log.info(
            "Analysis pipeline finished",
            priority_domains=triage.priority_domains,
            triage_fallback=triage.used_fallback,
            fallback_domains=[r.domain_name for r in results if r.is_fallback],
            summary_fallback=summary_fallback,
        )
        return finished
