"""Deliverable tracker.

Each deliverable is a nullable ``<name>_ready_at`` timestamp on the
assessment. Marking is a conditional write on NULL, so a flag never reverts
and a re-run keeps the first timestamp. When all three are set the
assessment moves to ``completed``.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from growth_diagnostic.core.interfaces import IAssessmentRepository
from growth_diagnostic.core.lifecycle import LifecycleEvent, Transition
from growth_diagnostic.core.services.lifecycle_service import LifecycleService
from growth_diagnostic.errors import NotFoundError
from growth_diagnostic.observability import get_logger

logger = get_logger(__name__)


class Deliverable(str, Enum):
    EXECUTIVE_SUMMARY = "executive_summary"
    DETAILED_ANALYSIS = "detailed_analysis"
    IMPLEMENTATION_KITS = "implementation_kits"


class DeliverableTracker:
    """Records deliverable readiness and signals completion."""

    def __init__(
        self,
        assessment_repository: IAssessmentRepository,
        lifecycle: LifecycleService,
    ) -> None:
        self._assessments = assessment_repository
        self._lifecycle = lifecycle

    async def mark(self, assessment_id: uuid.UUID, deliverable: Deliverable) -> bool:
        """Mark a deliverable produced. Returns False if it already was."""
        marked = await self._assessments.mark_deliverable(
            assessment_id, deliverable.value, datetime.now(tz=timezone.utc)
        )
        if marked:
            logger.info(
                "Deliverable ready",
                assessment_id=str(assessment_id),
                deliverable=deliverable.value,
            )
        return marked

    async def mark_detailed_analysis(self, assessment_id: uuid.UUID, analyses: list[Any]) -> bool:
        """Detailed analysis is ready once any domain analysis is complete."""
        if not any(a.analysis_complete for a in analyses):
            return False
        return await self.mark(assessment_id, Deliverable.DETAILED_ANALYSIS)

    async def complete_if_ready(self, assessment_id: uuid.UUID) -> Transition | None:
        """Move the assessment to ``completed`` when all three deliverables exist.

        Returns:
            The applied transition, or None if a deliverable is still missing.

        Raises:
            NotFoundError: If the assessment does not exist.
        """
        assessment = await self._assessments.get_assessment(assessment_id)
        if assessment is None:
            raise NotFoundError(f"Assessment {assessment_id} not found.")

        if not (
            assessment.executive_summary_ready
            and assessment.detailed_analysis_ready
            and assessment.implementation_kits_ready
        ):
            return None

        return await self._lifecycle.apply(
            assessment_id,
            LifecycleEvent.DELIVERABLES_COMPLETED,
            completed_at=datetime.now(tz=timezone.utc),
        )
