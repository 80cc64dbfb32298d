"""Pydantic request/response schemas for the growth diagnostic API.

All API inputs and outputs are strictly typed Pydantic v2 models.
No raw dicts are returned from any endpoint, and no response carries stack
traces or internal identifiers beyond the assessment id.
"""

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from growth_diagnostic.core.lifecycle import STATUS_DESCRIPTIONS, AssessmentStatus
from growth_diagnostic.core.scoring import SCORE_MAX, SCORE_MIN


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class ErrorResponse(BaseModel):
    """Body of every error response."""

    detail: str
    error_code: str


# ---------------------------------------------------------------------------
# Assessments
# ---------------------------------------------------------------------------


class CreateAssessmentRequest(BaseModel):
    """Request body to create an assessment.

    Attributes:
        company_name: Company being assessed.
        industry: Industry the company operates in.
        revenue_band: Annual revenue band, e.g. ``1M-10M``.
        team_size: Number of employees.
    """

    company_name: str = Field(default="Company", min_length=1, max_length=255)
    industry: str = Field(default="Technology", min_length=1, max_length=100)
    revenue_band: str = Field(default="1M-10M", min_length=1, max_length=50)
    team_size: int = Field(default=50, ge=1)


class AssessmentSchema(BaseModel):
    """Client view of an assessment."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    status: str
    stage_description: str = ""
    total_questions: int
    questions_answered: int
    progress: int
    payment_state: str
    company_name: str
    industry: str
    revenue_band: str
    team_size: int
    documents_uploaded: int
    created_at: datetime | None = None
    paid_at: datetime | None = None
    completed_at: datetime | None = None

    @classmethod
    def from_model(cls, assessment: Any) -> "AssessmentSchema":
        schema = cls.model_validate(assessment, from_attributes=True)
        schema.stage_description = STATUS_DESCRIPTIONS[AssessmentStatus(assessment.status)]
        return schema


class AssessmentListResponse(BaseModel):
    items: list[AssessmentSchema]
    total: int


class DomainProgressSchema(BaseModel):
    """Completion and average score of one domain."""

    model_config = ConfigDict(from_attributes=True)

    domain_name: str
    answered: int
    total: int
    average_score: float | None


class AssessmentProgressResponse(BaseModel):
    """Assessment with progress freshly computed from the response ledger."""

    assessment: AssessmentSchema
    questions_answered: int
    progress: int
    is_complete: bool
    domains: list[DomainProgressSchema]


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class ResponseItem(BaseModel):
    """A single answer in a submitted batch.

    Attributes:
        question_id: Catalog question identifier, e.g. ``"4.7"``.
        domain_name: Domain the question belongs to.
        score: Integer score within the closed scoring range.
        response: Optional free-text answer.
    """

    question_id: str = Field(..., min_length=1, max_length=20)
    domain_name: str = Field(..., min_length=1, max_length=100)
    score: int = Field(..., ge=SCORE_MIN, le=SCORE_MAX)
    response: str | None = None


class SubmitResponsesRequest(BaseModel):
    responses: list[ResponseItem] = Field(..., min_length=1)


class SubmitResponsesResponse(BaseModel):
    """Result of a response batch."""

    assessment_id: uuid.UUID
    status: str
    stage_description: str
    questions_answered: int
    total_questions: int
    progress: int
    domains: list[DomainProgressSchema]
    analysis_started: bool


class StoredResponseSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    question_id: str
    domain_name: str
    score: int
    response: str | None
    submitted_at: datetime | None = None


class ResponseListResponse(BaseModel):
    items: list[StoredResponseSchema]
    total: int


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


class RecordDocumentRequest(BaseModel):
    """Metadata of a document already uploaded to object storage."""

    file_name: str = Field(..., min_length=1, max_length=255)
    file_size: int = Field(..., ge=0)
    file_type: str = Field(..., min_length=1, max_length=100)
    storage_locator: str = Field(..., min_length=1, max_length=1024)


class DocumentSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    file_name: str
    file_size: int
    file_type: str
    uploaded_at: datetime | None = None


# ---------------------------------------------------------------------------
# Analysis
# ---------------------------------------------------------------------------


class DomainAnalysisSchema(BaseModel):
    """Analysis of one prioritised domain."""

    model_config = ConfigDict(from_attributes=True)

    domain_name: str
    specialist_name: str | None
    score: float
    health: str
    summary: str
    recommendations: list[str]
    key_insights: list[str]
    quick_wins: list[str]
    risk_factors: list[str]
    analysis_complete: bool
    is_fallback: bool


class DeliverableSchema(BaseModel):
    ready: bool
    ready_at: datetime | None = None


class DeliverablesSchema(BaseModel):
    executive_summary: DeliverableSchema
    detailed_analysis: DeliverableSchema
    implementation_kits: DeliverableSchema


class AnalysisStatusResponse(BaseModel):
    """Client view of the analysis run and its deliverables."""

    assessment_id: uuid.UUID
    status: str
    stage_description: str
    progress: int
    payment_state: str
    priority_domains: list[str]
    critical_issues: list[str]
    analysis_progress: int = Field(..., ge=0, le=100)
    domain_analyses: list[DomainAnalysisSchema]
    deliverables: DeliverablesSchema
    executive_summary: str | None = None
    implementation_kits: list[dict[str, Any]] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------


class PaymentIntentResponse(BaseModel):
    client_secret: str
    amount: str
    currency: str


class WebhookAck(BaseModel):
    received: bool = True


# ---------------------------------------------------------------------------
# Reference data
# ---------------------------------------------------------------------------


class QuestionSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    question_id: str
    domain_name: str
    topic: str
    order_index: int


class QuestionListResponse(BaseModel):
    items: list[QuestionSchema]
    total: int
    domains: list[str]


class SpecialistSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    specialty: str
    background: str
    expertise: str
