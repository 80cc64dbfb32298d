"""API schemas package for the growth diagnostic service."""

from growth_diagnostic.api.schemas.assessment import (
    AnalysisStatusResponse,
    AssessmentListResponse,
    AssessmentProgressResponse,
    AssessmentSchema,
    CreateAssessmentRequest,
    DeliverableSchema,
    DeliverablesSchema,
    DocumentSchema,
    DomainAnalysisSchema,
    DomainProgressSchema,
    ErrorResponse,
    PaymentIntentResponse,
    QuestionListResponse,
    QuestionSchema,
    RecordDocumentRequest,
    ResponseItem,
    ResponseListResponse,
    SpecialistSchema,
    StoredResponseSchema,
    SubmitResponsesRequest,
    SubmitResponsesResponse,
    WebhookAck,
)

__all__ = [
    "AnalysisStatusResponse",
    "AssessmentListResponse",
    "AssessmentProgressResponse",
    "AssessmentSchema",
    "CreateAssessmentRequest",
    "DeliverableSchema",
    "DeliverablesSchema",
    "DocumentSchema",
    "DomainAnalysisSchema",
    "DomainProgressSchema",
    "ErrorResponse",
    "PaymentIntentResponse",
    "QuestionListResponse",
    "QuestionSchema",
    "RecordDocumentRequest",
    "ResponseItem",
    "ResponseListResponse",
    "SpecialistSchema",
    "StoredResponseSchema",
    "SubmitResponsesRequest",
    "SubmitResponsesResponse",
    "WebhookAck",
]
