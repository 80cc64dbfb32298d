"""Questionnaire progress and domain health scoring.

Pure functions over the response ledger. Nothing here touches the database
so the calculations can be unit-tested without any infrastructure; callers
persist the results.

Progress uses half-up rounding of ``100 * answered / total`` clamped to
[0, 100]. Domain health is always derived from the 1-10 score:

    Score   Health
    -----   ---------
    < 4     critical
    4-5     warning
    6-7     good
    >= 8    excellent
"""

import math
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

from growth_diagnostic.core.catalog import QuestionCatalog


class ScoredResponse(Protocol):
    """Anything carrying the three fields the calculator reads."""

    question_id: str
    domain_name: str
    score: int


class DomainHealth(str, Enum):
    """Health classification of an analysed domain."""

    CRITICAL = "critical"
    WARNING = "warning"
    GOOD = "good"
    EXCELLENT = "excellent"


# Closed range of a single answer score.
SCORE_MIN: int = 1
SCORE_MAX: int = 10

# Inclusive lower bound of each health band, checked top-down.
_HEALTH_BANDS: list[tuple[float, DomainHealth]] = [
    (8.0, DomainHealth.EXCELLENT),
    (6.0, DomainHealth.GOOD),
    (4.0, DomainHealth.WARNING),
]


def classify_health(score: float) -> DomainHealth:
    """Map a 1-10 domain score to its health band.

    Args:
        score: Domain score. Values outside 1-10 still map to the nearest band.

    Returns:
        The DomainHealth for the score.
    """
    for lower_bound, health in _HEALTH_BANDS:
        if score >= lower_bound:
            return health
    return DomainHealth.CRITICAL


def progress_percentage(questions_answered: int, total_questions: int) -> int:
    """Return ``round(100 * answered / total)`` rounded half-up, clamped to [0, 100].

    A non-positive total is treated as 1 so the ratio is always defined.
    """
    total = max(total_questions, 1)
    raw = 100 * questions_answered / total
    return max(0, min(100, math.floor(raw + 0.5)))


@dataclass(frozen=True)
class DomainProgress:
    """Completion and average score for one domain.

    Attributes:
        domain_name: Domain this entry describes.
        answered: Distinct questions answered in the domain.
        total: Questions the catalog holds for the domain.
        average_score: Mean score of the answered questions, None if unanswered.
    """

    domain_name: str
    answered: int
    total: int
    average_score: float | None


@dataclass(frozen=True)
class ProgressSnapshot:
    """Output of the progress calculator for one assessment.

    Attributes:
        questions_answered: Count of distinct question ids in the ledger.
        total_questions: Snapshot of the assessment's question count.
        progress: Completion percentage 0-100.
        domains: Per-domain progress, catalog declaration order first.
    """

    questions_answered: int
    total_questions: int
    progress: int
    domains: list[DomainProgress] = field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        return self.progress >= 100

    def domain(self, domain_name: str) -> DomainProgress | None:
        for entry in self.domains:
            if entry.domain_name == domain_name:
                return entry
        return None


def _latest_by_question(responses: Iterable[ScoredResponse]) -> dict[str, ScoredResponse]:
    """Collapse the input to one response per question id (last one wins)."""
    latest: dict[str, ScoredResponse] = {}
    for response in responses:
        latest[response.question_id] = response
    return latest


def calculate_progress(
    responses: Iterable[ScoredResponse],
    total_questions: int,
    catalog: QuestionCatalog,
) -> ProgressSnapshot:
    """Compute completion and per-domain averages from the response ledger.

    The result depends only on the set of (question_id -> response) pairs,
    never on submission order, so concurrent batches over disjoint questions
    converge on the same value.

    Args:
        responses: All stored responses for the assessment.
        total_questions: The assessment's immutable question count.
        catalog: Catalog supplying domain membership and per-domain totals.

    Returns:
        ProgressSnapshot with the answered count, percentage, and domain entries.
    """
    latest = _latest_by_question(responses)
    questions_answered = len(latest)

    scores_by_domain: dict[str, list[int]] = {}
    for response in latest.values():
        scores_by_domain.setdefault(response.domain_name, []).append(response.score)

    totals = catalog.domain_question_counts()
    domain_names = list(totals) + sorted(d for d in scores_by_domain if d not in totals)

    domains: list[DomainProgress] = []
    for domain_name in domain_names:
        scores = scores_by_domain.get(domain_name, [])
        domains.append(
            DomainProgress(
                domain_name=domain_name,
                answered=len(scores),
                total=totals.get(domain_name, 0),
                average_score=round(sum(scores) / len(scores), 2) if scores else None,
            )
        )

    return ProgressSnapshot(
        questions_answered=questions_answered,
        total_questions=total_questions,
        progress=progress_percentage(questions_answered, total_questions),
        domains=domains,
    )


def domain_average_scores(responses: Iterable[ScoredResponse]) -> dict[str, float]:
    """Average score per domain over distinct questions, unanswered domains omitted."""
    scores_by_domain: dict[str, list[int]] = {}
    for response in _latest_by_question(responses).values():
        scores_by_domain.setdefault(response.domain_name, []).append(response.score)
    return {
        domain: sum(scores) / len(scores)
        for domain, scores in scores_by_domain.items()
    }
