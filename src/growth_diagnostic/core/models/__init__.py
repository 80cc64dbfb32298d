"""ORM models package for the growth diagnostic service."""

from growth_diagnostic.core.models.assessment import (
    AnalysisOutboxEntry,
    Assessment,
    AssessmentResponse,
    Base,
    DomainAnalysis,
    UploadedDocument,
)

__all__ = [
    "Base",
    "Assessment",
    "AssessmentResponse",
    "DomainAnalysis",
    "UploadedDocument",
    "AnalysisOutboxEntry",
]
