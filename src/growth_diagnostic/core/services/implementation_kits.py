"""Implementation kits: per-domain action packs derived from the analyses.

Deterministic; no inference call. Kits are ordered by ascending score so the
weakest domain comes first.
"""

from typing import Any


def build_implementation_kits(analyses: list[Any]) -> list[dict[str, Any]]:
    """Build one kit per completed domain analysis.

    Args:
        analyses: DomainAnalysis records for the assessment.

    Returns:
        List of kit dicts, weakest domain first.
    """
    completed = [a for a in analyses if a.analysis_complete]
    completed.sort(key=lambda a: a.score)
    return [
        {
            "domain_name": a.domain_name,
            "score": a.score,
            "health": a.health,
            "quick_wins": list(a.quick_wins or []),
            "recommendations": list(a.recommendations or []),
            "risk_factors": list(a.risk_factors or []),
            "provisional": a.is_fallback,
        }
        for a in completed
    ]
