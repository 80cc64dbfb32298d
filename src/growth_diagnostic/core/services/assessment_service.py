"""Service layer for the questionnaire side of an assessment.

Implements the client-facing flow:
    1. create_assessment()      - snapshot the question count, store company context
    2. submit_responses()       - validate a batch, upsert the ledger, recompute
                                  progress, apply the lifecycle, check the gate
    3. get_progress()           - status plus per-domain progress
    4. get_analysis_status()    - pipeline output and deliverable flags

All database access goes through repository interfaces. No SQLAlchemy or
FastAPI imports belong here; those live in the adapters and routes layers.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from growth_diagnostic.core.catalog import QuestionCatalog
from growth_diagnostic.core.interfaces import (
    IAssessmentRepository,
    IDocumentRepository,
    IDomainAnalysisRepository,
    IResponseRepository,
)
from growth_diagnostic.core.lifecycle import (
    STARTED_STATUSES,
    STATUS_DESCRIPTIONS,
    AssessmentStatus,
    LifecycleEvent,
    Transition,
)
from growth_diagnostic.core.results import CompanyContext, ResponseSubmission
from growth_diagnostic.core.scoring import (
    SCORE_MAX,
    SCORE_MIN,
    ProgressSnapshot,
    calculate_progress,
    progress_percentage,
)
from growth_diagnostic.core.services.lifecycle_service import LifecycleService
from growth_diagnostic.core.services.readiness_gate import ReadinessGate
from growth_diagnostic.errors import (
    ConflictError,
    NotFoundError,
    OwnershipError,
    ValidationError,
)
from growth_diagnostic.observability import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class SubmissionResult:
    """Outcome of one response batch.

    Attributes:
        assessment: The assessment after all writes.
        progress: Progress computed from the ledger after the batch.
        transition: Lifecycle transition caused by the batch, None for a no-op batch.
        analysis_started: True if this batch started the analysis pipeline.
    """

    assessment: Any
    progress: ProgressSnapshot
    transition: Transition | None
    analysis_started: bool


@dataclass(frozen=True)
class AnalysisStatusView:
    """Client-visible view of the analysis run. Carries no internal identifiers."""

    assessment_id: uuid.UUID
    status: str
    stage_description: str
    progress: int
    payment_state: str
    priority_domains: list[str]
    critical_issues: list[str]
    domain_analyses: list[Any]
    analysis_progress: int
    executive_summary_ready: bool
    detailed_analysis_ready: bool
    implementation_kits_ready: bool
    executive_summary_ready_at: datetime | None = None
    detailed_analysis_ready_at: datetime | None = None
    implementation_kits_ready_at: datetime | None = None
    executive_summary: str | None = None
    implementation_kits: list[dict[str, Any]] = field(default_factory=list)


class AssessmentService:
    """Orchestrates questionnaire submission and read-side views.

    Depends on repository instances injected at construction time.
    Contains no framework-specific code.
    """

    def __init__(
        self,
        assessment_repository: IAssessmentRepository,
        response_repository: IResponseRepository,
        document_repository: IDocumentRepository,
        analysis_repository: IDomainAnalysisRepository,
        lifecycle: LifecycleService,
        gate: ReadinessGate,
        catalog: QuestionCatalog,
        response_text_max_length: int = 4000,
    ) -> None:
        """Initialise the service with its collaborators.

        Args:
            assessment_repository: Assessment persistence.
            response_repository: Response ledger.
            document_repository: Uploaded document metadata.
            analysis_repository: Domain analysis records.
            lifecycle: Status write path.
            gate: Readiness gate checked after every response batch.
            catalog: Question catalog used for validation and progress.
            response_text_max_length: Upper bound on free-text answers.
        """
        self._assessments = assessment_repository
        self._responses = response_repository
        self._documents = document_repository
        self._analyses = analysis_repository
        self._lifecycle = lifecycle
        self._gate = gate
        self._catalog = catalog
        self._response_text_max_length = response_text_max_length

    # ------------------------------------------------------------------
    # Assessments
    # ------------------------------------------------------------------

    async def create_assessment(
        self,
        owner_id: str,
        company: CompanyContext | None = None,
    ) -> Any:
        """Create a pending assessment for ``owner_id``.

        The question count is snapshotted from the catalog, the same catalog
        that submissions are validated against, so 100% progress always means
        every catalog question was answered.
        """
        total = self._catalog.total_questions
        assessment = await self._assessments.create_assessment(
            owner_id=owner_id,
            total_questions=total,
            company=company or CompanyContext(),
        )
        logger.info(
            "Assessment created",
            assessment_id=str(assessment.id),
            total_questions=total,
        )
        return assessment

    async def get_owned_assessment(
        self,
        assessment_id: uuid.UUID,
        owner_id: str,
        for_update: bool = False,
    ) -> Any:
        """Return the assessment if ``owner_id`` owns it.

        Raises:
            NotFoundError: If the assessment does not exist.
            OwnershipError: If it belongs to someone else.
        """
        assessment = await self._assessments.get_assessment(assessment_id, for_update=for_update)
        if assessment is None:
            raise NotFoundError(f"Assessment {assessment_id} not found.")
        if assessment.owner_id != owner_id:
            logger.warning("Cross-owner access rejected", assessment_id=str(assessment_id))
            raise OwnershipError(f"Assessment {assessment_id} not found.")
        return assessment

    async def list_assessments(self, owner_id: str) -> list[Any]:
        return await self._assessments.list_by_owner(owner_id)

    # ------------------------------------------------------------------
    # Responses
    # ------------------------------------------------------------------

    def validate_submissions(self, submissions: list[ResponseSubmission]) -> None:
        """Validate an entire batch before anything is written.

        Raises:
            ValidationError: Describing the first invalid item.
        """
        if not submissions:
            raise ValidationError("At least one response is required.")

        for index, item in enumerate(submissions):
            if not self._catalog.contains(item.question_id):
                raise ValidationError(
                    f"responses[{index}]: unknown question_id {item.question_id!r}."
                )
            expected_domain = self._catalog.domain_of(item.question_id)
            if item.domain_name != expected_domain:
                raise ValidationError(
                    f"responses[{index}]: question {item.question_id} belongs to "
                    f"{expected_domain!r}, not {item.domain_name!r}."
                )
            if isinstance(item.score, bool) or not isinstance(item.score, int):
                raise ValidationError(f"responses[{index}]: score must be an integer.")
            if not SCORE_MIN <= item.score <= SCORE_MAX:
                raise ValidationError(
                    f"responses[{index}]: score must be between {SCORE_MIN} and {SCORE_MAX}."
                )
            if item.response is not None and len(item.response) > self._response_text_max_length:
                raise ValidationError(
                    f"responses[{index}]: response exceeds "
                    f"{self._response_text_max_length} characters."
                )

    async def submit_responses(
        self,
        assessment_id: uuid.UUID,
        owner_id: str,
        submissions: list[ResponseSubmission],
    ) -> SubmissionResult:
        """Upsert a batch of answers and advance the lifecycle.

        The assessment row is locked for the rest of the transaction so the
        ledger read used for progress includes every committed batch.

        Args:
            assessment_id: Target assessment.
            owner_id: Caller identity; must own the assessment.
            submissions: Answers to store. Later items win for repeated question ids.

        Returns:
            SubmissionResult with the recomputed progress and any status change.

        Raises:
            ValidationError: If any item is invalid. Nothing is persisted.
            NotFoundError / OwnershipError: If the caller cannot act on the assessment.
            ConflictError: If the questionnaire is locked and the batch changes it.
        """
        self.validate_submissions(submissions)
        assessment = await self.get_owned_assessment(assessment_id, owner_id, for_update=True)

        if AssessmentStatus(assessment.status) in STARTED_STATUSES:
            return await self._accept_locked_batch(assessment, submissions)

        submitted_at = datetime.now(tz=timezone.utc)
        for item in submissions:
            await self._responses.upsert_response(
                assessment_id=assessment_id,
                question_id=item.question_id,
                domain_name=item.domain_name,
                response=item.response,
                score=item.score,
                submitted_at=submitted_at,
            )

        responses = await self._responses.get_responses(assessment_id)
        snapshot = calculate_progress(responses, assessment.total_questions, self._catalog)
        await self._assessments.record_progress(
            assessment_id, snapshot.questions_answered, snapshot.progress
        )

        logger.debug(
            "Responses stored",
            assessment_id=str(assessment_id),
            batch_size=len(submissions),
            questions_answered=snapshot.questions_answered,
            progress=snapshot.progress,
        )

        transition = await self._lifecycle.apply(assessment_id, LifecycleEvent.RESPONSE_SAVED)
        started = await self._gate.try_start_analysis(assessment_id)

        return SubmissionResult(
            assessment=await self._assessments.get_assessment(assessment_id),
            progress=snapshot,
            transition=transition,
            analysis_started=started,
        )

    async def _accept_locked_batch(
        self, assessment: Any, submissions: list[ResponseSubmission]
    ) -> SubmissionResult:
        """Absorb a re-sent batch once analysis has started; reject any change."""
        responses = await self._responses.get_responses(assessment.id)
        stored = {r.question_id: r for r in responses}

        for item in submissions:
            existing = stored.get(item.question_id)
            if existing is None or existing.score != item.score or existing.response != item.response:
                raise ConflictError(
                    f"Assessment is in status {assessment.status}; responses can no longer change."
                )

        logger.info(
            "Duplicate submission absorbed",
            assessment_id=str(assessment.id),
            status=assessment.status,
            batch_size=len(submissions),
        )
        return SubmissionResult(
            assessment=assessment,
            progress=calculate_progress(responses, assessment.total_questions, self._catalog),
            transition=None,
            analysis_started=False,
        )

    async def get_progress(
        self, assessment_id: uuid.UUID, owner_id: str
    ) -> tuple[Any, ProgressSnapshot]:
        """Return the assessment and progress freshly computed from the ledger."""
        assessment = await self.get_owned_assessment(assessment_id, owner_id)
        responses = await self._responses.get_responses(assessment_id)
        return assessment, calculate_progress(responses, assessment.total_questions, self._catalog)

    async def get_responses(self, assessment_id: uuid.UUID, owner_id: str) -> list[Any]:
        await self.get_owned_assessment(assessment_id, owner_id)
        return await self._responses.get_responses(assessment_id)

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    async def record_document(
        self,
        assessment_id: uuid.UUID,
        owner_id: str,
        file_name: str,
        file_size: int,
        file_type: str,
        storage_locator: str,
    ) -> Any:
        """Record metadata for a document already placed in object storage.

        Raises:
            ValidationError: If the name or locator is empty or the size is negative.
        """
        if not file_name.strip() or not storage_locator.strip():
            raise ValidationError("file_name and storage_locator are required.")
        if file_size < 0:
            raise ValidationError("file_size must not be negative.")

        await self.get_owned_assessment(assessment_id, owner_id)
        document = await self._documents.add_document(
            assessment_id=assessment_id,
            file_name=file_name,
            file_size=file_size,
            file_type=file_type,
            storage_locator=storage_locator,
        )
        await self._assessments.increment_documents(assessment_id)

        logger.info(
            "Document recorded",
            assessment_id=str(assessment_id),
            file_type=file_type,
            file_size=file_size,
        )
        return document

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    async def get_analysis_status(
        self, assessment_id: uuid.UUID, owner_id: str
    ) -> AnalysisStatusView:
        """Build the client-visible analysis view for an assessment."""
        assessment = await self.get_owned_assessment(assessment_id, owner_id)
        analyses = await self._analyses.list_domain_analyses(assessment_id)

        priority_domains = list(assessment.priority_domains or [])
        rank = {domain: index for index, domain in enumerate(priority_domains)}
        analyses = sorted(analyses, key=lambda a: rank.get(a.domain_name, len(rank)))
        analysed = sum(
            1 for a in analyses if a.analysis_complete and a.domain_name in rank
        )

        return AnalysisStatusView(
            assessment_id=assessment.id,
            status=assessment.status,
            stage_description=STATUS_DESCRIPTIONS[AssessmentStatus(assessment.status)],
            progress=assessment.progress,
            payment_state=assessment.payment_state,
            priority_domains=priority_domains,
            critical_issues=list(assessment.critical_issues or []),
            domain_analyses=analyses,
            analysis_progress=(
                progress_percentage(analysed, len(priority_domains)) if priority_domains else 0
            ),
            executive_summary_ready=assessment.executive_summary_ready,
            detailed_analysis_ready=assessment.detailed_analysis_ready,
            implementation_kits_ready=assessment.implementation_kits_ready,
            executive_summary_ready_at=assessment.executive_summary_ready_at,
            detailed_analysis_ready_at=assessment.detailed_analysis_ready_at,
            implementation_kits_ready_at=assessment.implementation_kits_ready_at,
            executive_summary=(
                assessment.executive_summary if assessment.executive_summary_ready else None
            ),
            implementation_kits=(
                list(assessment.implementation_kits or [])
                if assessment.implementation_kits_ready
                else []
            ),
        )
