"""Services package for the growth diagnostic service."""

from growth_diagnostic.core.services.assessment_service import (
    AnalysisStatusView,
    AssessmentService,
    SubmissionResult,
)
from growth_diagnostic.core.services.deliverables import Deliverable, DeliverableTracker
from growth_diagnostic.core.services.domain_analysis import DomainAnalysisStage
from growth_diagnostic.core.services.executive_summary import ExecutiveSummaryStage
from growth_diagnostic.core.services.lifecycle_service import LifecycleService
from growth_diagnostic.core.services.payment_service import PaymentService
from growth_diagnostic.core.services.pipeline import AnalysisPipeline
from growth_diagnostic.core.services.readiness_gate import ReadinessGate
from growth_diagnostic.core.services.triage import TriageStage

__all__ = [
    "AnalysisPipeline",
    "AnalysisStatusView",
    "AssessmentService",
    "Deliverable",
    "DeliverableTracker",
    "DomainAnalysisStage",
    "ExecutiveSummaryStage",
    "LifecycleService",
    "PaymentService",
    "ReadinessGate",
    "SubmissionResult",
    "TriageStage",
]
