"""Value objects exchanged between pipeline stages and collaborators.

Inference output is untrusted: ``DomainAnalysisResult.from_inference`` and
``TriageResult`` construction validate and normalise whatever the inference
service returned, and health is always recomputed from the score.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from growth_diagnostic.core.scoring import SCORE_MAX, SCORE_MIN, DomainHealth, classify_health
from growth_diagnostic.errors import InferenceError

FALLBACK_SCORE: float = 5.0


@dataclass(frozen=True)
class CompanyContext:
    """Company facts used to brief every inference call."""

    company_name: str = "Company"
    industry: str = "Technology"
    revenue_band: str = "1M-10M"
    team_size: int = 50

    @classmethod
    def of(cls, assessment: Any) -> "CompanyContext":
        return cls(
            company_name=assessment.company_name,
            industry=assessment.industry,
            revenue_band=assessment.revenue_band,
            team_size=assessment.team_size,
        )

    def as_dict(self) -> dict[str, object]:
        return {
            "company_name": self.company_name,
            "industry": self.industry,
            "revenue_band": self.revenue_band,
            "team_size": self.team_size,
        }


@dataclass(frozen=True)
class TriageResult:
    """Ordered priority domains and the critical issues behind them.

    Attributes:
        priority_domains: Domain names, most problematic first, bounded in size.
        critical_issues: Short issue descriptions.
        used_fallback: True when the default priority list was substituted.
    """

    priority_domains: list[str]
    critical_issues: list[str] = field(default_factory=list)
    used_fallback: bool = False


@dataclass(frozen=True)
class DomainAnalysisResult:
    """Outcome of analysing one domain, real or fallback."""

    domain_name: str
    score: float
    health: DomainHealth
    summary: str
    recommendations: list[str] = field(default_factory=list)
    key_insights: list[str] = field(default_factory=list)
    quick_wins: list[str] = field(default_factory=list)
    risk_factors: list[str] = field(default_factory=list)
    specialist_name: str | None = None
    is_fallback: bool = False

    @classmethod
    def from_inference(
        cls,
        domain_name: str,
        payload: Any,
        specialist_name: str | None = None,
    ) -> "DomainAnalysisResult":
        """Validate an inference payload and derive health from its score.

        Any ``health`` value in the payload is ignored.

        Args:
            domain_name: Domain the payload describes.
            payload: Parsed inference output.
            specialist_name: Specialist persona that briefed the call.

        Returns:
            A normalised DomainAnalysisResult.

        Raises:
            InferenceError: If the payload is not an object or has no numeric score.
        """
        if not isinstance(payload, dict):
            raise InferenceError(f"Domain analysis for {domain_name!r} is not a JSON object.")

        raw_score = payload.get("score")
        if isinstance(raw_score, bool) or not isinstance(raw_score, (int, float)):
            raise InferenceError(f"Domain analysis for {domain_name!r} has no numeric score.")

        score = round(min(max(float(raw_score), SCORE_MIN), SCORE_MAX), 1)
        summary = payload.get("summary")

        return cls(
            domain_name=domain_name,
            score=score,
            health=classify_health(score),
            summary=summary if isinstance(summary, str) and summary.strip() else "Analysis in progress",
            recommendations=_string_list(payload.get("recommendations")),
            key_insights=_string_list(payload.get("keyInsights")),
            quick_wins=_string_list(payload.get("quickWins")),
            risk_factors=_string_list(payload.get("riskFactors")),
            specialist_name=specialist_name,
        )

    @classmethod
    def fallback(cls, domain_name: str, specialist_name: str | None = None) -> "DomainAnalysisResult":
        """Safe default recorded when the inference call for a domain fails."""
        return cls(
            domain_name=domain_name,
            score=FALLBACK_SCORE,
            health=classify_health(FALLBACK_SCORE),
            summary=f"{domain_name} analysis is currently being processed by our specialists.",
            recommendations=[
                "Complete detailed assessment",
                "Provide additional documentation",
                "Schedule follow-up analysis",
            ],
            key_insights=["Analysis in progress"],
            quick_wins=["Review current processes"],
            risk_factors=["Incomplete data for full analysis"],
            specialist_name=specialist_name,
            is_fallback=True,
        )


class PaymentEventType(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class PaymentEvent:
    """A verified payment gateway callback.

    Attributes:
        event_type: Whether the payment succeeded or failed.
        assessment_id: Assessment the payment was for (from gateway metadata).
        user_id: Paying user (from gateway metadata).
        reference: Gateway object id, e.g. the payment intent id.
    """

    event_type: PaymentEventType
    assessment_id: str
    user_id: str
    reference: str | None = None


@dataclass(frozen=True)
class ResponseSubmission:
    """One item of a submitted response batch, before validation."""

    question_id: str
    domain_name: str
    score: int
    response: str | None = None


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def response_payloads(responses: list[Any]) -> list[dict[str, Any]]:
    """Flatten stored responses into the shape sent to the inference service."""
    return [
        {
            "question_id": r.question_id,
            "domain_name": r.domain_name,
            "score": r.score,
            "response": r.response or "",
        }
        for r in responses
    ]


def document_payloads(documents: list[Any]) -> list[dict[str, Any]]:
    """Document metadata only; content is never read."""
    return [
        {"file_name": d.file_name, "file_type": d.file_type, "file_size": d.file_size}
        for d in documents
    ]
