"""Read-only reference data: the question catalog and domain specialists.

API prefix: /api/v1
"""

from fastapi import APIRouter, Depends

from growth_diagnostic.api.dependencies import get_catalog, get_specialists
from growth_diagnostic.api.schemas.assessment import (
    QuestionListResponse,
    QuestionSchema,
    SpecialistSchema,
)
from growth_diagnostic.core.catalog import QuestionCatalog, SpecialistDirectory
from growth_diagnostic.errors import NotFoundError

router = APIRouter(tags=["Catalog"])


@router.get("/questions", response_model=QuestionListResponse)
async def list_questions(catalog: QuestionCatalog = Depends(get_catalog)) -> QuestionListResponse:
    """Return every catalog question in declaration order."""
    return QuestionListResponse(
        items=[QuestionSchema.model_validate(q) for q in catalog.questions],
        total=catalog.total_questions,
        domains=list(catalog.domains),
    )


@router.get("/questions/{domain_name}", response_model=QuestionListResponse)
async def list_domain_questions(
    domain_name: str,
    catalog: QuestionCatalog = Depends(get_catalog),
) -> QuestionListResponse:
    """Return the questions of one domain."""
    questions = catalog.questions_for(domain_name)
    if not questions:
        raise NotFoundError(f"Domain {domain_name!r} not found.")
    return QuestionListResponse(
        items=[QuestionSchema.model_validate(q) for q in questions],
        total=len(questions),
        domains=[domain_name],
    )


@router.get("/specialists", response_model=list[SpecialistSchema])
async def list_specialists(
    specialists: SpecialistDirectory = Depends(get_specialists),
) -> list[SpecialistSchema]:
    return [SpecialistSchema.model_validate(s) for s in specialists.specialists]
