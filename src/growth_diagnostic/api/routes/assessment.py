"""FastAPI router for assessments, responses, documents and analysis status.

All routes are thin: they parse inputs, resolve the caller, delegate to
AssessmentService, and serialise responses. No business logic lives here.

API prefix: /api/v1/assessments
Auth: caller identity from the ``X-User-Id`` header; every assessment route
is scoped to its owner.
"""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, status

from growth_diagnostic.api.dependencies import (
    get_assessment_service,
    get_current_user,
    get_payment_service,
)
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
    PaymentIntentResponse,
    RecordDocumentRequest,
    ResponseListResponse,
    StoredResponseSchema,
    SubmitResponsesRequest,
    SubmitResponsesResponse,
)
from growth_diagnostic.core.lifecycle import STATUS_DESCRIPTIONS, AssessmentStatus
from growth_diagnostic.core.results import CompanyContext, ResponseSubmission
from growth_diagnostic.core.services import AssessmentService, PaymentService

router = APIRouter(prefix="/assessments", tags=["Assessments"])

CurrentUser = Annotated[str, Depends(get_current_user)]


@router.post("", response_model=AssessmentSchema, status_code=status.HTTP_201_CREATED)
async def create_assessment(
    body: CreateAssessmentRequest,
    user_id: CurrentUser,
    service: AssessmentService = Depends(get_assessment_service),
) -> AssessmentSchema:
    """Create an assessment in ``pending`` for the caller."""
    assessment = await service.create_assessment(
        owner_id=user_id,
        company=CompanyContext(
            company_name=body.company_name,
            industry=body.industry,
            revenue_band=body.revenue_band,
            team_size=body.team_size,
        ),
    )
    return AssessmentSchema.from_model(assessment)


@router.get("", response_model=AssessmentListResponse)
async def list_assessments(
    user_id: CurrentUser,
    service: AssessmentService = Depends(get_assessment_service),
) -> AssessmentListResponse:
    """List the caller's assessments, newest first."""
    assessments = await service.list_assessments(user_id)
    return AssessmentListResponse(
        items=[AssessmentSchema.from_model(a) for a in assessments],
        total=len(assessments),
    )


@router.get("/{assessment_id}", response_model=AssessmentProgressResponse)
async def get_assessment(
    assessment_id: uuid.UUID,
    user_id: CurrentUser,
    service: AssessmentService = Depends(get_assessment_service),
) -> AssessmentProgressResponse:
    """Return status and questionnaire progress."""
    assessment, progress = await service.get_progress(assessment_id, user_id)
    return AssessmentProgressResponse(
        assessment=AssessmentSchema.from_model(assessment),
        questions_answered=progress.questions_answered,
        progress=progress.progress,
        is_complete=progress.is_complete,
        domains=[DomainProgressSchema.model_validate(d) for d in progress.domains],
    )


@router.post("/{assessment_id}/responses", response_model=SubmitResponsesResponse)
async def submit_responses(
    assessment_id: uuid.UUID,
    body: SubmitResponsesRequest,
    user_id: CurrentUser,
    service: AssessmentService = Depends(get_assessment_service),
) -> SubmitResponsesResponse:
    """Upsert a batch of answers and return the updated progress."""
    result = await service.submit_responses(
        assessment_id,
        user_id,
        [
            ResponseSubmission(
                question_id=item.question_id,
                domain_name=item.domain_name,
                score=item.score,
                response=item.response,
            )
            for item in body.responses
        ],
    )
    assessment = result.assessment
    return SubmitResponsesResponse(
        assessment_id=assessment.id,
        status=assessment.status,
        stage_description=STATUS_DESCRIPTIONS[AssessmentStatus(assessment.status)],
        questions_answered=result.progress.questions_answered,
        total_questions=result.progress.total_questions,
        progress=result.progress.progress,
        domains=[DomainProgressSchema.model_validate(d) for d in result.progress.domains],
        analysis_started=result.analysis_started,
    )


@router.get("/{assessment_id}/responses", response_model=ResponseListResponse)
async def list_responses(
    assessment_id: uuid.UUID,
    user_id: CurrentUser,
    service: AssessmentService = Depends(get_assessment_service),
) -> ResponseListResponse:
    """Return every stored answer for the assessment."""
    responses = await service.get_responses(assessment_id, user_id)
    return ResponseListResponse(
        items=[StoredResponseSchema.model_validate(r) for r in responses],
        total=len(responses),
    )


@router.post(
    "/{assessment_id}/documents",
    response_model=DocumentSchema,
    status_code=status.HTTP_201_CREATED,
)
async def record_document(
    assessment_id: uuid.UUID,
    body: RecordDocumentRequest,
    user_id: CurrentUser,
    service: AssessmentService = Depends(get_assessment_service),
) -> DocumentSchema:
    """Record metadata of a document the client uploaded to object storage."""
    document = await service.record_document(
        assessment_id,
        user_id,
        file_name=body.file_name,
        file_size=body.file_size,
        file_type=body.file_type,
        storage_locator=body.storage_locator,
    )
    return DocumentSchema.model_validate(document)


@router.get("/{assessment_id}/analysis", response_model=AnalysisStatusResponse)
async def get_analysis_status(
    assessment_id: uuid.UUID,
    user_id: CurrentUser,
    service: AssessmentService = Depends(get_assessment_service),
) -> AnalysisStatusResponse:
    """Return triage output, domain analyses and deliverable readiness."""
    view = await service.get_analysis_status(assessment_id, user_id)
    return AnalysisStatusResponse(
        assessment_id=view.assessment_id,
        status=view.status,
        stage_description=view.stage_description,
        progress=view.progress,
        payment_state=view.payment_state,
        priority_domains=view.priority_domains,
        critical_issues=view.critical_issues,
        analysis_progress=view.analysis_progress,
        domain_analyses=[DomainAnalysisSchema.model_validate(a) for a in view.domain_analyses],
        deliverables=DeliverablesSchema(
            executive_summary=DeliverableSchema(
                ready=view.executive_summary_ready, ready_at=view.executive_summary_ready_at
            ),
            detailed_analysis=DeliverableSchema(
                ready=view.detailed_analysis_ready, ready_at=view.detailed_analysis_ready_at
            ),
            implementation_kits=DeliverableSchema(
                ready=view.implementation_kits_ready, ready_at=view.implementation_kits_ready_at
            ),
        ),
        executive_summary=view.executive_summary,
        implementation_kits=view.implementation_kits,
    )


@router.post("/{assessment_id}/payment-intent", response_model=PaymentIntentResponse)
async def create_payment_intent(
    assessment_id: uuid.UUID,
    user_id: CurrentUser,
    service: PaymentService = Depends(get_payment_service),
) -> PaymentIntentResponse:
    """Create the payment the client completes with the gateway's client SDK."""
    client_secret = await service.create_payment_intent(assessment_id, user_id)
    return PaymentIntentResponse(
        client_secret=client_secret,
        amount=service.fee_amount,
        currency=service.fee_currency,
    )
