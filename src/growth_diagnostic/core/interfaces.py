"""Abstract interfaces (Protocol classes) for the growth diagnostic service.

All services depend on these interfaces, not concrete implementations.
This enables dependency injection and makes services independently testable.

SQL implementations live in ``adapters/repositories/assessment_repository.py``;
in-memory fakes with the same conditional-update semantics live in
``tests/fakes.py``.
"""

import uuid
from collections.abc import Collection
from datetime import datetime
from typing import Any, Protocol, runtime_checkable

from growth_diagnostic.core.catalog import DomainSpecialist
from growth_diagnostic.core.results import CompanyContext, DomainAnalysisResult, PaymentEvent


@runtime_checkable
class IAssessmentRepository(Protocol):
    """Repository interface for Assessment persistence.

    Every mutation that depends on the current status is a single conditional
    update, so concurrent handlers in separate processes cannot both win.
    """

    async def create_assessment(
        self,
        owner_id: str,
        total_questions: int,
        company: CompanyContext,
    ) -> Any:
        """Create a new assessment in ``pending``."""
        ...

    async def get_assessment(
        self, assessment_id: uuid.UUID, for_update: bool = False
    ) -> Any | None:
        """Read the current persisted assessment, or None.

        With ``for_update`` the row stays locked until the transaction ends,
        serialising handlers that act on the same assessment.
        """
        ...

    async def list_by_owner(self, owner_id: str) -> list[Any]:
        """List assessments owned by one user, newest first."""
        ...

    async def transition_status(
        self,
        assessment_id: uuid.UUID,
        from_statuses: Collection[str],
        to_status: str,
        **values: Any,
    ) -> bool:
        """Set status to ``to_status`` only if it is currently one of ``from_statuses``.

        Returns:
            True if exactly this call changed the row.
        """
        ...

    async def record_progress(
        self,
        assessment_id: uuid.UUID,
        questions_answered: int,
        progress: int,
    ) -> None:
        """Persist recomputed progress; stored values never decrease."""
        ...

    async def record_payment_state(
        self,
        assessment_id: uuid.UUID,
        payment_state: str,
        payment_reference: str | None,
        recorded_at: datetime,
    ) -> bool:
        """Record a payment outcome unless payment is already confirmed.

        Returns:
            True if the row changed.
        """
        ...

    async def record_payment_reference(
        self, assessment_id: uuid.UUID, payment_reference: str
    ) -> None:
        """Store the gateway reference of a newly created payment."""
        ...

    async def record_triage(
        self,
        assessment_id: uuid.UUID,
        priority_domains: list[str],
        critical_issues: list[str],
    ) -> None:
        """Store triage output."""
        ...

    async def record_executive_summary(self, assessment_id: uuid.UUID, summary: str) -> None:
        """Store the executive summary narrative."""
        ...

    async def record_implementation_kits(
        self, assessment_id: uuid.UUID, kits: list[dict[str, Any]]
    ) -> None:
        """Store generated implementation kits."""
        ...

    async def mark_deliverable(
        self, assessment_id: uuid.UUID, deliverable: str, ready_at: datetime
    ) -> bool:
        """Set ``<deliverable>_ready_at`` if it is still NULL.

        Returns:
            True if this call marked the deliverable.
        """
        ...

    async def increment_documents(self, assessment_id: uuid.UUID) -> None:
        """Bump the uploaded document counter."""
        ...


@runtime_checkable
class IResponseRepository(Protocol):
    """Repository interface for the response ledger."""

    async def upsert_response(
        self,
        assessment_id: uuid.UUID,
        question_id: str,
        domain_name: str,
        response: str | None,
        score: int,
        submitted_at: datetime,
    ) -> Any:
        """Insert or update the single record for (assessment, question)."""
        ...

    async def get_responses(self, assessment_id: uuid.UUID) -> list[Any]:
        """Return every stored response for the assessment."""
        ...


@runtime_checkable
class IDomainAnalysisRepository(Protocol):
    """Repository interface for per-domain analyses."""

    async def upsert_domain_analysis(
        self, assessment_id: uuid.UUID, result: DomainAnalysisResult
    ) -> Any:
        """Create or update the analysis for (assessment, domain)."""
        ...

    async def list_domain_analyses(self, assessment_id: uuid.UUID) -> list[Any]:
        """Return all analyses for the assessment."""
        ...


@runtime_checkable
class IDocumentRepository(Protocol):
    """Repository interface for uploaded document metadata."""

    async def add_document(
        self,
        assessment_id: uuid.UUID,
        file_name: str,
        file_size: int,
        file_type: str,
        storage_locator: str,
    ) -> Any:
        """Record metadata for an uploaded document."""
        ...

    async def list_documents(self, assessment_id: uuid.UUID) -> list[Any]:
        """Return document metadata for the assessment."""
        ...


@runtime_checkable
class IOutboxRepository(Protocol):
    """Repository interface for the durable analysis outbox."""

    async def enqueue(self, assessment_id: uuid.UUID) -> bool:
        """Insert the pipeline start marker; False if one already exists."""
        ...

    async def claim_pending(self, limit: int) -> list[uuid.UUID]:
        """Atomically move up to ``limit`` pending entries to running."""
        ...

    async def requeue_stale(self, older_than: datetime) -> int:
        """Move entries still running since before ``older_than`` back to pending."""
        ...

    async def mark_done(self, assessment_id: uuid.UUID) -> None:
        """Mark the entry for an assessment as done."""
        ...

    async def mark_failed(self, assessment_id: uuid.UUID, error: str) -> None:
        """Mark the entry for an assessment as failed with a short error."""
        ...


@runtime_checkable
class IInferenceClient(Protocol):
    """Interface for the external inference service.

    Implementations may raise any exception or return malformed data; the
    pipeline stages own the fallback policy.
    """

    async def triage(
        self,
        responses: list[dict[str, Any]],
        context: CompanyContext,
        domains: list[str],
    ) -> Any:
        """Return ``{"priorityDomains": [...], "criticalIssues": [...]}``."""
        ...

    async def analyze_domain(
        self,
        domain_name: str,
        specialist: DomainSpecialist,
        responses: list[dict[str, Any]],
        documents: list[dict[str, Any]],
        context: CompanyContext,
    ) -> Any:
        """Return the analysis object for one domain."""
        ...

    async def summarize(
        self,
        analyses: list[dict[str, Any]],
        context: CompanyContext,
    ) -> Any:
        """Return the executive summary narrative."""
        ...


@runtime_checkable
class IPaymentGateway(Protocol):
    """Payment gateway: verifies callbacks and creates payment intents."""

    def parse(self, payload: bytes, signature_header: str) -> PaymentEvent | None:
        """Return the verified event, or None for event types that need no action.

        Raises:
            InvalidSignatureError: If the signature does not verify.
        """
        ...

    async def create_payment_intent(
        self,
        assessment_id: str,
        user_id: str,
        amount: str,
        currency: str,
    ) -> tuple[str, str]:
        """Create a payment tagged with the assessment; returns (reference, client secret)."""
        ...
