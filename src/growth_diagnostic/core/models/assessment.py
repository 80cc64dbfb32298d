"""SQLAlchemy ORM models for the growth diagnostic service.

All tables use the ``gd_`` prefix. Every child table references its
assessment with ON DELETE CASCADE; assessments are never removed while in
use, only together with their children in teardown paths.

Tables:
    gd_assessments       - one questionnaire, payment, and analysis run per row
    gd_responses         - one answer per (assessment, question)
    gd_domain_analyses   - one analysis per (assessment, domain)
    gd_documents         - uploaded document metadata (content lives in object storage)
    gd_analysis_outbox   - durable pipeline start marker, one per assessment
"""

import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Declarative base for all growth diagnostic tables."""


class Assessment(Base):
    """A diagnostic assessment owned by a single user.

    ``progress`` and ``questions_answered`` are cached results of the progress
    calculator. ``status`` only changes through the lifecycle transition table
    and always via a conditional update on the prior status.

    Table: gd_assessments
    """

    __tablename__ = "gd_assessments"
    __table_args__ = (
        CheckConstraint("progress >= 0 AND progress <= 100", name="ck_gd_assessments_progress"),
        CheckConstraint("total_questions > 0", name="ck_gd_assessments_total_questions"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    owner_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
        comment="Identity of the single owning user",
    )
    status: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default="pending",
        index=True,
        comment="pending | in_progress | awaiting_payment | paid | analysis | completed | failed",
    )
    total_questions: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Question count snapshot taken at creation; immutable",
    )
    questions_answered: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Distinct questions answered (cached)",
    )
    progress: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Completion percentage 0-100 (cached)",
    )
    payment_state: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default="none",
        comment="none | confirmed | failed",
    )
    payment_reference: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        comment="Payment gateway reference of the confirming payment",
    )
    # Company context
    company_name: Mapped[str] = mapped_column(String(255), nullable=False, default="Company")
    industry: Mapped[str] = mapped_column(String(100), nullable=False, default="Technology")
    revenue_band: Mapped[str] = mapped_column(String(50), nullable=False, default="1M-10M")
    team_size: Mapped[int] = mapped_column(Integer, nullable=False, default=50)

    documents_uploaded: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Pipeline outputs
    priority_domains: Mapped[list] = mapped_column(
        JSONB,
        nullable=False,
        default=list,
        server_default="[]",
        comment="Ordered triage output",
    )
    critical_issues: Mapped[list] = mapped_column(
        JSONB,
        nullable=False,
        default=list,
        server_default="[]",
    )
    executive_summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    implementation_kits: Mapped[list] = mapped_column(
        JSONB,
        nullable=False,
        default=list,
        server_default="[]",
    )

    # Deliverables: a non-null timestamp means produced. Never reset to null.
    executive_summary_ready_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    detailed_analysis_ready_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    implementation_kits_ready_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    analysis_started_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    @property
    def executive_summary_ready(self) -> bool:
        return self.executive_summary_ready_at is not None

    @property
    def detailed_analysis_ready(self) -> bool:
        return self.detailed_analysis_ready_at is not None

    @property
    def implementation_kits_ready(self) -> bool:
        return self.implementation_kits_ready_at is not None


class AssessmentResponse(Base):
    """One answer in the response ledger.

    At most one row per (assessment_id, question_id); resubmission updates the
    row in place.

    Table: gd_responses
    """

    __tablename__ = "gd_responses"
    __table_args__ = (
        UniqueConstraint("assessment_id", "question_id", name="uq_gd_responses_assessment_question"),
        CheckConstraint("score >= 1 AND score <= 10", name="ck_gd_responses_score"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    assessment_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("gd_assessments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    question_id: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="Catalog question identifier (e.g. 4.7)",
    )
    domain_name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    response: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="Free-text answer",
    )
    score: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Answer score 1-10",
    )
    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )


class DomainAnalysis(Base):
    """Analysis of one prioritised domain.

    Created on first analysis and updated in place on re-analysis. ``health``
    is always derived from ``score``. ``is_fallback`` marks the safe default
    recorded when the inference call for the domain failed.

    Table: gd_domain_analyses
    """

    __tablename__ = "gd_domain_analyses"
    __table_args__ = (
        UniqueConstraint("assessment_id", "domain_name", name="uq_gd_domain_analyses_assessment_domain"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    assessment_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("gd_assessments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    domain_name: Mapped[str] = mapped_column(String(100), nullable=False)
    specialist_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    score: Mapped[float] = mapped_column(Float, nullable=False, comment="Domain score 1-10")
    health: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        comment="critical | warning | good | excellent",
    )
    summary: Mapped[str] = mapped_column(Text, nullable=False)
    recommendations: Mapped[list] = mapped_column(JSONB, nullable=False, default=list, server_default="[]")
    key_insights: Mapped[list] = mapped_column(JSONB, nullable=False, default=list, server_default="[]")
    quick_wins: Mapped[list] = mapped_column(JSONB, nullable=False, default=list, server_default="[]")
    risk_factors: Mapped[list] = mapped_column(JSONB, nullable=False, default=list, server_default="[]")
    analysis_complete: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_fallback: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )


class UploadedDocument(Base):
    """Metadata for a document uploaded to object storage.

    Table: gd_documents
    """

    __tablename__ = "gd_documents"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    assessment_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("gd_assessments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_size: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    file_type: Mapped[str] = mapped_column(String(100), nullable=False)
    storage_locator: Mapped[str] = mapped_column(
        String(1024),
        nullable=False,
        comment="Object storage path; content is never read by this service",
    )
    uploaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )


class AnalysisOutboxEntry(Base):
    """Durable record that the analysis pipeline must run for an assessment.

    Written in the same transaction as the status transition into
    ``analysis``; the unique assessment_id makes a second start impossible.

    Table: gd_analysis_outbox
    """

    __tablename__ = "gd_analysis_outbox"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    assessment_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("gd_assessments.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    status: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default="pending",
        index=True,
        comment="pending | running | done | failed",
    )
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_error: Mapped[str | None] = mapped_column(String(500), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    claimed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    finished_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
