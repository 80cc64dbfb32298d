"""SQLAlchemy repositories for the growth diagnostic data layer.

Implements the repository Protocols from ``core/interfaces.py`` using the
SQLAlchemy 2.0 async ORM against PostgreSQL. Every status-dependent write is
a single conditional UPDATE whose rowcount tells the caller whether it won;
ledger writes are INSERT .. ON CONFLICT upserts on the natural keys.
"""

import uuid
from collections.abc import Collection
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from growth_diagnostic.core.models.assessment import (
    AnalysisOutboxEntry,
    Assessment,
    AssessmentResponse,
    DomainAnalysis,
    UploadedDocument,
)
from growth_diagnostic.core.results import CompanyContext, DomainAnalysisResult
from growth_diagnostic.observability import get_logger

logger = get_logger(__name__)

_DELIVERABLE_COLUMNS = {
    "executive_summary": Assessment.executive_summary_ready_at,
    "detailed_analysis": Assessment.detailed_analysis_ready_at,
    "implementation_kits": Assessment.implementation_kits_ready_at,
}


class AssessmentRepository:
    """Repository for Assessment persistence."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialise with an async database session.

        Args:
            session: SQLAlchemy async session.
        """
        self._session = session

    async def create_assessment(
        self,
        owner_id: str,
        total_questions: int,
        company: CompanyContext,
    ) -> Assessment:
        record = Assessment(
            owner_id=owner_id,
            status="pending",
            total_questions=total_questions,
            questions_answered=0,
            progress=0,
            payment_state="none",
            company_name=company.company_name,
            industry=company.industry,
            revenue_band=company.revenue_band,
            team_size=company.team_size,
            documents_uploaded=0,
            priority_domains=[],
            critical_issues=[],
            implementation_kits=[],
        )
        self._session.add(record)
        await self._session.flush()
        await self._session.refresh(record)
        return record

    async def get_assessment(
        self, assessment_id: uuid.UUID, for_update: bool = False
    ) -> Assessment | None:
        """Read the row, always refreshing any instance already in the session.

        Args:
            assessment_id: Assessment UUID.
            for_update: Take a row lock held until the transaction ends.

        Returns:
            The Assessment or None.
        """
        stmt = (
            select(Assessment)
            .where(Assessment.id == assessment_id)
            .execution_options(populate_existing=True)
        )
        if for_update:
            stmt = stmt.with_for_update()
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_by_owner(self, owner_id: str) -> list[Assessment]:
        result = await self._session.execute(
            select(Assessment)
            .where(Assessment.owner_id == owner_id)
            .order_by(Assessment.created_at.desc())
        )
        return list(result.scalars().all())

    async def transition_status(
        self,
        assessment_id: uuid.UUID,
        from_statuses: Collection[str],
        to_status: str,
        **values: Any,
    ) -> bool:
        """Conditional status update; True only if this statement changed the row.

        Args:
            assessment_id: Assessment UUID.
            from_statuses: Statuses the row must currently have.
            to_status: New status.
            **values: Extra columns to set in the same statement.

        Returns:
            True if exactly one row was updated.
        """
        result = await self._session.execute(
            update(Assessment)
            .where(
                Assessment.id == assessment_id,
                Assessment.status.in_(list(from_statuses)),
            )
            .values(status=to_status, **values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def record_progress(
        self,
        assessment_id: uuid.UUID,
        questions_answered: int,
        progress: int,
    ) -> None:
        await self._session.execute(
            update(Assessment)
            .where(Assessment.id == assessment_id)
            .values(
                questions_answered=func.greatest(Assessment.questions_answered, questions_answered),
                progress=func.greatest(Assessment.progress, progress),
            )
            .execution_options(synchronize_session=False)
        )

    async def record_payment_state(
        self,
        assessment_id: uuid.UUID,
        payment_state: str,
        payment_reference: str | None,
        recorded_at: datetime,
    ) -> bool:
        """Write the payment outcome unless a confirmation is already stored."""
        values: dict[str, Any] = {
            "payment_state": payment_state,
            "payment_reference": payment_reference,
        }
        if payment_state == "confirmed":
            values["paid_at"] = recorded_at

        result = await self._session.execute(
            update(Assessment)
            .where(
                Assessment.id == assessment_id,
                Assessment.payment_state != "confirmed",
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def record_payment_reference(
        self, assessment_id: uuid.UUID, payment_reference: str
    ) -> None:
        await self._session.execute(
            update(Assessment)
            .where(Assessment.id == assessment_id)
            .values(payment_reference=payment_reference)
            .execution_options(synchronize_session=False)
        )

    async def record_triage(
        self,
        assessment_id: uuid.UUID,
        priority_domains: list[str],
        critical_issues: list[str],
    ) -> None:
        await self._session.execute(
            update(Assessment)
            .where(Assessment.id == assessment_id)
            .values(priority_domains=priority_domains, critical_issues=critical_issues)
            .execution_options(synchronize_session=False)
        )

    async def record_executive_summary(self, assessment_id: uuid.UUID, summary: str) -> None:
        await self._session.execute(
            update(Assessment)
            .where(Assessment.id == assessment_id)
            .values(executive_summary=summary)
            .execution_options(synchronize_session=False)
        )

    async def record_implementation_kits(
        self, assessment_id: uuid.UUID, kits: list[dict[str, Any]]
    ) -> None:
        await self._session.execute(
            update(Assessment)
            .where(Assessment.id == assessment_id)
            .values(implementation_kits=kits)
            .execution_options(synchronize_session=False)
        )

    async def mark_deliverable(
        self, assessment_id: uuid.UUID, deliverable: str, ready_at: datetime
    ) -> bool:
        """Set the deliverable timestamp only while it is NULL.

        Raises:
            ValueError: If ``deliverable`` is not a known deliverable name.
        """
        column = _DELIVERABLE_COLUMNS.get(deliverable)
        if column is None:
            raise ValueError(f"Unknown deliverable {deliverable!r}.")

        result = await self._session.execute(
            update(Assessment)
            .where(Assessment.id == assessment_id, column.is_(None))
            .values({column: ready_at})
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def increment_documents(self, assessment_id: uuid.UUID) -> None:
        await self._session.execute(
            update(Assessment)
            .where(Assessment.id == assessment_id)
            .values(documents_uploaded=Assessment.documents_uploaded + 1)
            .execution_options(synchronize_session=False)
        )


class ResponseRepository:
    """Repository for the response ledger.

    One row per (assessment_id, question_id); resubmission updates in place.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialise with an async database session.

        Args:
            session: SQLAlchemy async session.
        """
        self._session = session

    async def upsert_response(
        self,
        assessment_id: uuid.UUID,
        question_id: str,
        domain_name: str,
        response: str | None,
        score: int,
        submitted_at: datetime,
    ) -> AssessmentResponse:
        """Insert the answer or overwrite the stored one for the same question.

        Args:
            assessment_id: Owning assessment.
            question_id: Catalog question id.
            domain_name: Domain of the question.
            response: Free-text answer.
            score: Score 1-10.
            submitted_at: Submission timestamp.

        Returns:
            The stored AssessmentResponse.
        """
        stmt = insert(AssessmentResponse).values(
            id=uuid.uuid4(),
            assessment_id=assessment_id,
            question_id=question_id,
            domain_name=domain_name,
            response=response,
            score=score,
            submitted_at=submitted_at,
        )
        stmt = stmt.on_conflict_do_update(
            constraint="uq_gd_responses_assessment_question",
            set_={
                "domain_name": stmt.excluded.domain_name,
                "response": stmt.excluded.response,
                "score": stmt.excluded.score,
                "submitted_at": stmt.excluded.submitted_at,
            },
        ).returning(AssessmentResponse)

        result = await self._session.scalars(
            stmt, execution_options={"populate_existing": True}
        )
        record = result.one()

        logger.debug(
            "Response upserted",
            assessment_id=str(assessment_id),
            question_id=question_id,
            score=score,
        )
        return record

    async def get_responses(self, assessment_id: uuid.UUID) -> list[AssessmentResponse]:
        result = await self._session.execute(
            select(AssessmentResponse)
            .where(AssessmentResponse.assessment_id == assessment_id)
            .order_by(AssessmentResponse.submitted_at, AssessmentResponse.question_id)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())


class DomainAnalysisRepository:
    """Repository for DomainAnalysis persistence, keyed by (assessment, domain)."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def upsert_domain_analysis(
        self, assessment_id: uuid.UUID, result: DomainAnalysisResult
    ) -> DomainAnalysis:
        """Create the analysis for the domain or overwrite the previous one.

        Args:
            assessment_id: Owning assessment.
            result: Normalised analysis result (health already derived from score).

        Returns:
            The stored DomainAnalysis.
        """
        fields = {
            "specialist_name": result.specialist_name,
            "score": result.score,
            "health": result.health.value,
            "summary": result.summary,
            "recommendations": result.recommendations,
            "key_insights": result.key_insights,
            "quick_wins": result.quick_wins,
            "risk_factors": result.risk_factors,
            "analysis_complete": True,
            "is_fallback": result.is_fallback,
        }
        stmt = insert(DomainAnalysis).values(
            id=uuid.uuid4(),
            assessment_id=assessment_id,
            domain_name=result.domain_name,
            **fields,
        )
        stmt = stmt.on_conflict_do_update(
            constraint="uq_gd_domain_analyses_assessment_domain",
            set_={**fields, "updated_at": func.now()},
        ).returning(DomainAnalysis)

        stored = await self._session.scalars(stmt, execution_options={"populate_existing": True})
        return stored.one()

    async def list_domain_analyses(self, assessment_id: uuid.UUID) -> list[DomainAnalysis]:
        result = await self._session.execute(
            select(DomainAnalysis)
            .where(DomainAnalysis.assessment_id == assessment_id)
            .order_by(DomainAnalysis.created_at, DomainAnalysis.domain_name)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())


class DocumentRepository:
    """Repository for uploaded document metadata."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add_document(
        self,
        assessment_id: uuid.UUID,
        file_name: str,
        file_size: int,
        file_type: str,
        storage_locator: str,
    ) -> UploadedDocument:
        record = UploadedDocument(
            assessment_id=assessment_id,
            file_name=file_name,
            file_size=file_size,
            file_type=file_type,
            storage_locator=storage_locator,
        )
        self._session.add(record)
        await self._session.flush()
        await self._session.refresh(record)
        return record

    async def list_documents(self, assessment_id: uuid.UUID) -> list[UploadedDocument]:
        result = await self._session.execute(
            select(UploadedDocument)
            .where(UploadedDocument.assessment_id == assessment_id)
            .order_by(UploadedDocument.uploaded_at)
        )
        return list(result.scalars().all())


class OutboxRepository:
    """Repository for the durable analysis outbox.

    Claiming uses ``FOR UPDATE SKIP LOCKED`` plus a conditional
    ``pending -> running`` update, so concurrent workers never take the
    same entry.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def enqueue(self, assessment_id: uuid.UUID) -> bool:
        stmt = (
            insert(AnalysisOutboxEntry)
            .values(id=uuid.uuid4(), assessment_id=assessment_id, status="pending", attempts=0)
            .on_conflict_do_nothing(index_elements=[AnalysisOutboxEntry.assessment_id])
        )
        result = await self._session.execute(stmt)
        return result.rowcount == 1

    async def claim_pending(self, limit: int) -> list[uuid.UUID]:
        """Move up to ``limit`` of the oldest pending entries to running.

        Returns:
            Assessment ids of the claimed entries.
        """
        candidates = await self._session.execute(
            select(AnalysisOutboxEntry.id)
            .where(AnalysisOutboxEntry.status == "pending")
            .order_by(AnalysisOutboxEntry.created_at)
            .limit(limit)
            .with_for_update(skip_locked=True)
        )
        entry_ids = list(candidates.scalars().all())
        if not entry_ids:
            return []

        claimed = await self._session.execute(
            update(AnalysisOutboxEntry)
            .where(
                AnalysisOutboxEntry.id.in_(entry_ids),
                AnalysisOutboxEntry.status == "pending",
            )
            .values(
                status="running",
                attempts=AnalysisOutboxEntry.attempts + 1,
                claimed_at=datetime.now(tz=timezone.utc),
            )
            .returning(AnalysisOutboxEntry.assessment_id)
            .execution_options(synchronize_session=False)
        )
        return list(claimed.scalars().all())

    async def requeue_stale(self, older_than: datetime) -> int:
        """Return entries left running by a crashed worker to pending."""
        result = await self._session.execute(
            update(AnalysisOutboxEntry)
            .where(
                AnalysisOutboxEntry.status == "running",
                AnalysisOutboxEntry.claimed_at < older_than,
            )
            .values(status="pending")
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def mark_done(self, assessment_id: uuid.UUID) -> None:
        await self._finish(assessment_id, "done", None)

    async def mark_failed(self, assessment_id: uuid.UUID, error: str) -> None:
        await self._finish(assessment_id, "failed", error[:500])

    async def _finish(self, assessment_id: uuid.UUID, status: str, error: str | None) -> None:
        await self._session.execute(
            update(AnalysisOutboxEntry)
            .where(AnalysisOutboxEntry.assessment_id == assessment_id)
            .values(status=status, last_error=error, finished_at=datetime.now(tz=timezone.utc))
            .execution_options(synchronize_session=False)
        )
