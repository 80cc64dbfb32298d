"""FastAPI dependency factories shared by all routers."""

from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from growth_diagnostic.container import ServiceContainer
from growth_diagnostic.core.catalog import QuestionCatalog, SpecialistDirectory
from growth_diagnostic.core.interfaces import IPaymentGateway
from growth_diagnostic.core.services import AssessmentService, PaymentService
from growth_diagnostic.database import get_db_session


def get_container(request: Request) -> ServiceContainer:
    """Return the container built during application startup."""
    return request.app.state.container


def get_current_user(
    x_user_id: Annotated[str | None, Header()] = None,
) -> str:
    """Caller identity as asserted by the upstream identity layer.

    Raises:
        HTTPException: 401 if the identity header is missing or blank.
    """
    if x_user_id is None or not x_user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required.",
        )
    return x_user_id.strip()


def get_assessment_service(
    session: AsyncSession = Depends(get_db_session),
    container: ServiceContainer = Depends(get_container),
) -> AssessmentService:
    """Build AssessmentService bound to the request session."""
    return container.assessment_service(session)


def get_payment_service(
    session: AsyncSession = Depends(get_db_session),
    container: ServiceContainer = Depends(get_container),
) -> PaymentService:
    """Build PaymentService bound to the request session."""
    return container.payment_service(session)


def get_payment_gateway(container: ServiceContainer = Depends(get_container)) -> IPaymentGateway:
    return container.payment_gateway


def get_catalog(container: ServiceContainer = Depends(get_container)) -> QuestionCatalog:
    return container.catalog


def get_specialists(container: ServiceContainer = Depends(get_container)) -> SpecialistDirectory:
    return container.specialists
