"""Top-level API router and error mapping for the growth diagnostic service.

API prefix: /api/v1
"""

from fastapi import APIRouter, FastAPI, Request, status
from fastapi.responses import JSONResponse

from growth_diagnostic.api.routes import assessment, catalog, payments
from growth_diagnostic.errors import (
    ConflictError,
    DiagnosticError,
    ErrorCode,
    InvalidSignatureError,
    NotFoundError,
    OwnershipError,
    ValidationError,
)
from growth_diagnostic.observability import get_logger

logger = get_logger(__name__)

router = APIRouter()
router.include_router(assessment.router)
router.include_router(payments.router)
router.include_router(catalog.router)

# Foreign assessments answer 404 so their existence is not disclosed.
_STATUS_BY_ERROR: list[tuple[type[DiagnosticError], int]] = [
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (OwnershipError, status.HTTP_404_NOT_FOUND),
    # Literal 422: Starlette renamed the constant across releases.
    (ValidationError, 422),
    (ConflictError, status.HTTP_409_CONFLICT),
    (InvalidSignatureError, status.HTTP_400_BAD_REQUEST),
]


def status_for(exc: DiagnosticError) -> int:
    """HTTP status for a service error; unknown subclasses map to 400."""
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_400_BAD_REQUEST


async def diagnostic_error_handler(request: Request, exc: DiagnosticError) -> JSONResponse:
    status_code = status_for(exc)
    # Same body as a missing assessment.
    error_code = ErrorCode.NOT_FOUND if isinstance(exc, OwnershipError) else exc.error_code
    logger.info(
        "Request rejected",
        path=request.url.path,
        status_code=status_code,
        error_code=exc.error_code.value,
    )
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "error_code": error_code.value},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DiagnosticError, diagnostic_error_handler)
