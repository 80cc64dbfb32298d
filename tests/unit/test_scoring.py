"""Unit tests for progress calculation and domain health classification.

Tests cover:
- Half-up rounding and clamping of the completion percentage
- Health band boundaries
- Progress depends only on the set of answered questions
- Per-domain averages and catalog ordering
"""

from dataclasses import dataclass

import pytest

from growth_diagnostic.core.catalog import CatalogQuestion, QuestionCatalog
from growth_diagnostic.core.scoring import (
    DomainHealth,
    calculate_progress,
    classify_health,
    domain_average_scores,
    progress_percentage,
)


@dataclass
class _Answer:
    question_id: str
    domain_name: str
    score: int


@pytest.fixture()
def small_catalog() -> QuestionCatalog:
    """Two domains: Alpha with 3 questions, Beta with 1."""
    return QuestionCatalog(
        [
            CatalogQuestion("1.1", "Alpha", "a1", 1),
            CatalogQuestion("1.2", "Alpha", "a2", 2),
            CatalogQuestion("1.3", "Alpha", "a3", 3),
            CatalogQuestion("2.1", "Beta", "b1", 1),
        ]
    )


# ---------------------------------------------------------------------------
# progress_percentage
# ---------------------------------------------------------------------------


class TestProgressPercentage:
    @pytest.mark.parametrize(
        ("answered", "total", "expected"),
        [
            (0, 120, 0),
            (1, 120, 1),
            (60, 120, 50),
            (119, 120, 99),
            (120, 120, 100),
            (3, 8, 38),
            (1, 8, 13),
            (1, 200, 1),
        ],
    )
    def test_rounds_half_up(self, answered: int, total: int, expected: int) -> None:
        assert progress_percentage(answered, total) == expected

    def test_clamps_above_total(self) -> None:
        assert progress_percentage(130, 120) == 100

    def test_non_positive_total_treated_as_one(self) -> None:
        assert progress_percentage(0, 0) == 0
        assert progress_percentage(1, 0) == 100


# ---------------------------------------------------------------------------
# classify_health
# ---------------------------------------------------------------------------


class TestClassifyHealth:
    @pytest.mark.parametrize(
        ("score", "expected"),
        [
            (1.0, DomainHealth.CRITICAL),
            (3.9, DomainHealth.CRITICAL),
            (4.0, DomainHealth.WARNING),
            (5.9, DomainHealth.WARNING),
            (6.0, DomainHealth.GOOD),
            (7.9, DomainHealth.GOOD),
            (8.0, DomainHealth.EXCELLENT),
            (10.0, DomainHealth.EXCELLENT),
        ],
    )
    def test_band_boundaries(self, score: float, expected: DomainHealth) -> None:
        assert classify_health(score) is expected


# ---------------------------------------------------------------------------
# calculate_progress
# ---------------------------------------------------------------------------


class TestCalculateProgress:
    def test_empty_ledger(self, small_catalog: QuestionCatalog) -> None:
        snapshot = calculate_progress([], 4, small_catalog)

        assert snapshot.questions_answered == 0
        assert snapshot.progress == 0
        assert not snapshot.is_complete
        assert [d.domain_name for d in snapshot.domains] == ["Alpha", "Beta"]
        assert all(d.average_score is None for d in snapshot.domains)

    def test_repeated_question_counts_once_and_last_wins(self, small_catalog: QuestionCatalog) -> None:
        answers = [
            _Answer("1.1", "Alpha", 2),
            _Answer("1.1", "Alpha", 8),
            _Answer("1.2", "Alpha", 4),
        ]

        snapshot = calculate_progress(answers, 4, small_catalog)

        assert snapshot.questions_answered == 2
        assert snapshot.progress == 50
        alpha = snapshot.domain("Alpha")
        assert alpha is not None
        assert alpha.answered == 2
        assert alpha.total == 3
        assert alpha.average_score == 6.0

    def test_order_independent(self, small_catalog: QuestionCatalog) -> None:
        answers = [
            _Answer("1.1", "Alpha", 3),
            _Answer("2.1", "Beta", 9),
            _Answer("1.3", "Alpha", 5),
        ]

        forward = calculate_progress(answers, 4, small_catalog)
        backward = calculate_progress(list(reversed(answers)), 4, small_catalog)

        assert forward == backward

    def test_complete_when_every_question_answered(self, small_catalog: QuestionCatalog) -> None:
        answers = [_Answer(q.question_id, q.domain_name, 5) for q in small_catalog.questions]

        snapshot = calculate_progress(answers, 4, small_catalog)

        assert snapshot.progress == 100
        assert snapshot.is_complete

    def test_uses_assessment_total_not_catalog_size(self, small_catalog: QuestionCatalog) -> None:
        answers = [_Answer("1.1", "Alpha", 5), _Answer("1.2", "Alpha", 5)]

        snapshot = calculate_progress(answers, 2, small_catalog)

        assert snapshot.progress == 100
        assert snapshot.total_questions == 2

    def test_unknown_domain_sorted_after_catalog_domains(self, small_catalog: QuestionCatalog) -> None:
        snapshot = calculate_progress([_Answer("9.1", "Legacy", 4)], 4, small_catalog)

        assert [d.domain_name for d in snapshot.domains] == ["Alpha", "Beta", "Legacy"]
        legacy = snapshot.domain("Legacy")
        assert legacy is not None
        assert legacy.total == 0


def test_domain_average_scores_omits_unanswered() -> None:
    averages = domain_average_scores(
        [_Answer("1.1", "Alpha", 2), _Answer("1.2", "Alpha", 5), _Answer("2.1", "Beta", 7)]
    )

    assert averages == {"Alpha": 3.5, "Beta": 7.0}
