"""Error types raised by the growth diagnostic core.

The core raises these; the API layer maps each to an HTTP status in a single
exception handler. Messages are human-readable and never carry stack traces.
"""

from enum import Enum


class ErrorCode(str, Enum):
    """Machine-readable error classification returned alongside ``detail``."""

    NOT_FOUND = "not_found"
    VALIDATION_FAILED = "validation_failed"
    INVALID_OPERATION = "invalid_operation"
    FORBIDDEN = "forbidden"
    INVALID_SIGNATURE = "invalid_signature"


class DiagnosticError(Exception):
    """Base class for all service errors.

    Args:
        message: Human-readable description safe to show to the caller.
        error_code: Machine-readable classification.
    """

    default_code: ErrorCode = ErrorCode.INVALID_OPERATION

    def __init__(self, message: str, error_code: ErrorCode | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_code


class NotFoundError(DiagnosticError):
    """Raised when a requested resource does not exist."""

    default_code = ErrorCode.NOT_FOUND


class ValidationError(DiagnosticError):
    """Raised when submitted data is malformed. Nothing is persisted."""

    default_code = ErrorCode.VALIDATION_FAILED


class ConflictError(DiagnosticError):
    """Raised when an operation is not allowed in the current state."""

    default_code = ErrorCode.INVALID_OPERATION


class IllegalTransitionError(ConflictError):
    """Raised for a (status, event) pair absent from the lifecycle table."""


class OwnershipError(DiagnosticError):
    """Raised when the caller does not own the assessment they act on."""

    default_code = ErrorCode.FORBIDDEN


class InvalidSignatureError(DiagnosticError):
    """Raised when a payment callback fails signature verification."""

    default_code = ErrorCode.INVALID_SIGNATURE


class InferenceError(Exception):
    """Raised by the inference client on transport or malformed-output errors.

    Never surfaced to end users: every stage converts it to fallback content.
    """
