"""Unit tests for inference result normalisation."""

from types import SimpleNamespace

import pytest

from growth_diagnostic.core.results import (
    FALLBACK_SCORE,
    CompanyContext,
    DomainAnalysisResult,
    document_payloads,
    response_payloads,
)
from growth_diagnostic.core.scoring import DomainHealth
from growth_diagnostic.errors import InferenceError


class TestFromInference:
    def test_health_derived_from_score_not_payload(self) -> None:
        result = DomainAnalysisResult.from_inference(
            "Revenue Engine", {"score": 3.2, "health": "excellent", "summary": "Weak"}
        )

        assert result.score == 3.2
        assert result.health is DomainHealth.CRITICAL
        assert not result.is_fallback

    @pytest.mark.parametrize(
        ("raw", "score", "health"),
        [
            (14, 10.0, DomainHealth.EXCELLENT),
            (0.2, 1.0, DomainHealth.CRITICAL),
            (-3, 1.0, DomainHealth.CRITICAL),
            (6.449, 6.4, DomainHealth.GOOD),
            (7, 7.0, DomainHealth.GOOD),
        ],
    )
    def test_score_clamped_and_rounded(self, raw: float, score: float, health: DomainHealth) -> None:
        result = DomainAnalysisResult.from_inference("Risk Management", {"score": raw})

        assert result.score == score
        assert result.health is health

    @pytest.mark.parametrize(
        "payload",
        [
            None,
            ["score", 5],
            "score: 5",
            {},
            {"score": "7"},
            {"score": True},
            {"score": None},
        ],
    )
    def test_unusable_payload_raises(self, payload: object) -> None:
        with pytest.raises(InferenceError):
            DomainAnalysisResult.from_inference("Risk Management", payload)

    def test_lists_read_from_camel_case_keys_and_filtered(self) -> None:
        result = DomainAnalysisResult.from_inference(
            "Customer Success",
            {
                "score": 5,
                "recommendations": ["Add a CS lead", "", 3, "  "],
                "keyInsights": ["Churn is untracked"],
                "quickWins": "not a list",
                "riskFactors": [" Renewal concentration "],
            },
            specialist_name="Maria Santos",
        )

        assert result.recommendations == ["Add a CS lead"]
        assert result.key_insights == ["Churn is untracked"]
        assert result.quick_wins == []
        assert result.risk_factors == ["Renewal concentration"]
        assert result.specialist_name == "Maria Santos"

    def test_missing_summary_gets_placeholder(self) -> None:
        result = DomainAnalysisResult.from_inference("Product Strategy", {"score": 5, "summary": " "})

        assert result.summary == "Analysis in progress"


def test_fallback_result() -> None:
    result = DomainAnalysisResult.fallback("Market Position", "Lisa Chen")

    assert result.is_fallback
    assert result.score == FALLBACK_SCORE
    assert result.health is DomainHealth.WARNING
    assert result.summary == "Market Position analysis is currently being processed by our specialists."
    assert result.recommendations == [
        "Complete detailed assessment",
        "Provide additional documentation",
        "Schedule follow-up analysis",
    ]
    assert result.specialist_name == "Lisa Chen"


def test_company_context_from_record() -> None:
    record = SimpleNamespace(
        company_name="Acme", industry="Retail", revenue_band="10M-50M", team_size=120
    )

    context = CompanyContext.of(record)

    assert context.as_dict() == {
        "company_name": "Acme",
        "industry": "Retail",
        "revenue_band": "10M-50M",
        "team_size": 120,
    }


def test_payload_helpers() -> None:
    responses = [SimpleNamespace(question_id="1.1", domain_name="Strategic Alignment", score=4, response=None)]
    documents = [
        SimpleNamespace(file_name="plan.pdf", file_type="application/pdf", file_size=10, storage_locator="s3://x")
    ]

    assert response_payloads(responses) == [
        {"question_id": "1.1", "domain_name": "Strategic Alignment", "score": 4, "response": ""}
    ]
    assert document_payloads(documents) == [
        {"file_name": "plan.pdf", "file_type": "application/pdf", "file_size": 10}
    ]
