"""gd: initial schema for the growth diagnostic service.

Creates assessments, the response ledger, domain analyses, document metadata
and the analysis outbox. The unique constraints on (assessment_id,
question_id), (assessment_id, domain_name) and outbox assessment_id back the
upsert and start-once semantics of the service layer.

Revision ID: gd_001_initial
Revises:
Create Date: 2026-10-17 00:00:00.000000
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "gd_001_initial"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    ]


def upgrade() -> None:
    """Create the gd_ tables."""
    # gd_assessments
    op.create_table(
        "gd_assessments",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "owner_id",
            sa.String(255),
            nullable=False,
            comment="Identity of the single owning user",
        ),
        sa.Column(
            "status",
            sa.String(32),
            nullable=False,
            server_default="pending",
            comment="pending | in_progress | awaiting_payment | paid | analysis | completed | failed",
        ),
        sa.Column(
            "total_questions",
            sa.Integer,
            nullable=False,
            comment="Question count snapshot taken at creation; immutable",
        ),
        sa.Column("questions_answered", sa.Integer, nullable=False, server_default="0"),
        sa.Column("progress", sa.Integer, nullable=False, server_default="0"),
        sa.Column(
            "payment_state",
            sa.String(16),
            nullable=False,
            server_default="none",
            comment="none | confirmed | failed",
        ),
        sa.Column("payment_reference", sa.String(255), nullable=True),
        sa.Column("company_name", sa.String(255), nullable=False, server_default="Company"),
        sa.Column("industry", sa.String(100), nullable=False, server_default="Technology"),
        sa.Column("revenue_band", sa.String(50), nullable=False, server_default="1M-10M"),
        sa.Column("team_size", sa.Integer, nullable=False, server_default="50"),
        sa.Column("documents_uploaded", sa.Integer, nullable=False, server_default="0"),
        sa.Column("priority_domains", postgresql.JSONB, nullable=False, server_default="[]"),
        sa.Column("critical_issues", postgresql.JSONB, nullable=False, server_default="[]"),
        sa.Column("executive_summary", sa.Text, nullable=True),
        sa.Column("implementation_kits", postgresql.JSONB, nullable=False, server_default="[]"),
        sa.Column("executive_summary_ready_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("detailed_analysis_ready_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("implementation_kits_ready_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("analysis_started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("progress >= 0 AND progress <= 100", name="ck_gd_assessments_progress"),
        sa.CheckConstraint("total_questions > 0", name="ck_gd_assessments_total_questions"),
    )
    op.create_index("ix_gd_assessments_owner_id", "gd_assessments", ["owner_id"])
    op.create_index("ix_gd_assessments_status", "gd_assessments", ["status"])

    # gd_responses
    op.create_table(
        "gd_responses",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "assessment_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("gd_assessments.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "question_id",
            sa.String(20),
            nullable=False,
            comment="Catalog question identifier (e.g. 4.7)",
        ),
        sa.Column("domain_name", sa.String(100), nullable=False),
        sa.Column("response", sa.Text, nullable=True),
        sa.Column("score", sa.Integer, nullable=False, comment="Answer score 1-10"),
        sa.Column(
            "submitted_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.UniqueConstraint(
            "assessment_id", "question_id", name="uq_gd_responses_assessment_question"
        ),
        sa.CheckConstraint("score >= 1 AND score <= 10", name="ck_gd_responses_score"),
    )
    op.create_index("ix_gd_responses_assessment_id", "gd_responses", ["assessment_id"])
    op.create_index("ix_gd_responses_domain_name", "gd_responses", ["domain_name"])

    # gd_domain_analyses
    op.create_table(
        "gd_domain_analyses",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "assessment_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("gd_assessments.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("domain_name", sa.String(100), nullable=False),
        sa.Column("specialist_name", sa.String(255), nullable=True),
        sa.Column("score", sa.Float, nullable=False, comment="Domain score 1-10"),
        sa.Column(
            "health",
            sa.String(16),
            nullable=False,
            comment="critical | warning | good | excellent",
        ),
        sa.Column("summary", sa.Text, nullable=False),
        sa.Column("recommendations", postgresql.JSONB, nullable=False, server_default="[]"),
        sa.Column("key_insights", postgresql.JSONB, nullable=False, server_default="[]"),
        sa.Column("quick_wins", postgresql.JSONB, nullable=False, server_default="[]"),
        sa.Column("risk_factors", postgresql.JSONB, nullable=False, server_default="[]"),
        sa.Column("analysis_complete", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("is_fallback", sa.Boolean, nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.UniqueConstraint(
            "assessment_id", "domain_name", name="uq_gd_domain_analyses_assessment_domain"
        ),
    )
    op.create_index(
        "ix_gd_domain_analyses_assessment_id", "gd_domain_analyses", ["assessment_id"]
    )

    # gd_documents
    op.create_table(
        "gd_documents",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "assessment_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("gd_assessments.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("file_name", sa.String(255), nullable=False),
        sa.Column("file_size", sa.Integer, nullable=False, server_default="0"),
        sa.Column("file_type", sa.String(100), nullable=False),
        sa.Column(
            "storage_locator",
            sa.String(1024),
            nullable=False,
            comment="Object storage path; content is never read by this service",
        ),
        sa.Column(
            "uploaded_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    )
    op.create_index("ix_gd_documents_assessment_id", "gd_documents", ["assessment_id"])

    # gd_analysis_outbox
    op.create_table(
        "gd_analysis_outbox",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "assessment_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("gd_assessments.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column(
            "status",
            sa.String(16),
            nullable=False,
            server_default="pending",
            comment="pending | running | done | failed",
        ),
        sa.Column("attempts", sa.Integer, nullable=False, server_default="0"),
        sa.Column("last_error", sa.String(500), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column("claimed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("finished_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_gd_analysis_outbox_status", "gd_analysis_outbox", ["status"])


def downgrade() -> None:
    """Drop all gd_ tables."""
    for table in [
        "gd_analysis_outbox",
        "gd_documents",
        "gd_domain_analyses",
        "gd_responses",
        "gd_assessments",
    ]:
        op.execute(f"DROP TABLE IF EXISTS {table} CASCADE")
