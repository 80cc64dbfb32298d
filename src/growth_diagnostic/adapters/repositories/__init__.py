"""SQLAlchemy repository implementations."""

from growth_diagnostic.adapters.repositories.assessment_repository import (
    AssessmentRepository,
    DocumentRepository,
    DomainAnalysisRepository,
    OutboxRepository,
    ResponseRepository,
)

__all__ = [
    "AssessmentRepository",
    "DocumentRepository",
    "DomainAnalysisRepository",
    "OutboxRepository",
    "ResponseRepository",
]
