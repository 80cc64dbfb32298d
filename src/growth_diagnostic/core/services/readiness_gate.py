"""Readiness gate: starts the analysis pipeline at most once per assessment.

The persisted status is the only record of "already started". The move into
``analysis`` is a conditional update on the status the gate observed, and
the outbox entry is written in the same transaction, so a duplicate or
concurrent trigger either sees ``analysis`` and stops, or loses the update
and stops.
"""

import uuid
from datetime import datetime, timezone

from growth_diagnostic.core.interfaces import IAssessmentRepository, IOutboxRepository
from growth_diagnostic.core.lifecycle import (
    AssessmentStatus,
    LifecycleEvent,
    LifecycleSnapshot,
    is_ready_for_analysis,
    next_status,
)
from growth_diagnostic.errors import NotFoundError
from growth_diagnostic.observability import get_logger

logger = get_logger(__name__)


class ReadinessGate:
    """Checks both start conditions and enqueues the pipeline."""

    def __init__(
        self,
        assessment_repository: IAssessmentRepository,
        outbox_repository: IOutboxRepository,
    ) -> None:
        self._assessments = assessment_repository
        self._outbox = outbox_repository

    async def try_start_analysis(self, assessment_id: uuid.UUID) -> bool:
        """Start the pipeline if the questionnaire is complete and payment confirmed.

        Safe to call after any event; a call that finds the assessment not
        ready, or already past the trigger point, does nothing.

        Args:
            assessment_id: Assessment to check.

        Returns:
            True only for the single call that moved the assessment into analysis.

        Raises:
            NotFoundError: If the assessment does not exist.
        """
        assessment = await self._assessments.get_assessment(assessment_id)
        if assessment is None:
            raise NotFoundError(f"Assessment {assessment_id} not found.")

        snapshot = LifecycleSnapshot.of(assessment)
        if not is_ready_for_analysis(snapshot):
            logger.debug(
                "Analysis not started",
                assessment_id=str(assessment_id),
                status=snapshot.status.value,
                questionnaire_complete=snapshot.questionnaire_complete,
                payment_confirmed=snapshot.payment_confirmed,
            )
            return False

        transition = next_status(snapshot, LifecycleEvent.ANALYSIS_STARTED)
        won = await self._assessments.transition_status(
            assessment_id,
            from_statuses=(transition.source.value,),
            to_status=AssessmentStatus.ANALYSIS.value,
            analysis_started_at=datetime.now(tz=timezone.utc),
        )
        if not won:
            logger.info(
                "Analysis already started by a concurrent trigger",
                assessment_id=str(assessment_id),
            )
            return False

        await self._outbox.enqueue(assessment_id)
        logger.info(
            "Analysis pipeline enqueued",
            assessment_id=str(assessment_id),
            from_status=transition.source.value,
        )
        return True
