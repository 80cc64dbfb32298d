"""Unit tests for the service-error to HTTP status mapping."""

import pytest

from growth_diagnostic.api.router import status_for
from growth_diagnostic.errors import (
    ConflictError,
    DiagnosticError,
    IllegalTransitionError,
    InvalidSignatureError,
    NotFoundError,
    OwnershipError,
    ValidationError,
)


@pytest.mark.parametrize(
    ("error", "expected"),
    [
        (NotFoundError("missing"), 404),
        (OwnershipError("not yours"), 404),
        (ValidationError("bad score"), 422),
        (ConflictError("already paid"), 409),
        (IllegalTransitionError("pending -> completed"), 409),
        (InvalidSignatureError("forged"), 400),
        (DiagnosticError("other"), 400),
    ],
)
def test_status_for(error: DiagnosticError, expected: int) -> None:
    assert status_for(error) == expected
