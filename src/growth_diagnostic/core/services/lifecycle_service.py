"""Applies lifecycle events to persisted assessments.

The decision comes from ``core.lifecycle.next_status``; this service only
persists it, using a compare-and-set on the status it observed. If another
handler moved the assessment in between, the event is re-evaluated against
the fresh row.
"""

import uuid
from typing import Any

from growth_diagnostic.core.interfaces import IAssessmentRepository
from growth_diagnostic.core.lifecycle import (
    LifecycleEvent,
    LifecycleSnapshot,
    Transition,
    next_status,
)
from growth_diagnostic.errors import ConflictError, NotFoundError
from growth_diagnostic.observability import get_logger

logger = get_logger(__name__)

_MAX_ATTEMPTS: int = 5


class LifecycleService:
    """Single write path for assessment status changes."""

    def __init__(
        self,
        assessment_repository: IAssessmentRepository,
        max_attempts: int = _MAX_ATTEMPTS,
    ) -> None:
        self._assessments = assessment_repository
        self._max_attempts = max_attempts

    async def apply(
        self,
        assessment_id: uuid.UUID,
        event: LifecycleEvent,
        **values: Any,
    ) -> Transition:
        """Apply an event and persist the resulting status.

        Args:
            assessment_id: Assessment to move.
            event: The lifecycle event.
            **values: Extra columns written together with a status change
                (e.g. ``completed_at``). Ignored for absorbed events.

        Returns:
            The Transition that was persisted (``changed`` is False for no-ops).

        Raises:
            NotFoundError: If the assessment does not exist.
            IllegalTransitionError: If the event is not allowed in the current status.
            ConflictError: If the status kept changing underneath for every attempt.
        """
        for attempt in range(1, self._max_attempts + 1):
            assessment = await self._assessments.get_assessment(assessment_id)
            if assessment is None:
                raise NotFoundError(f"Assessment {assessment_id} not found.")

            transition = next_status(LifecycleSnapshot.of(assessment), event)
            if not transition.changed:
                logger.debug(
                    "Lifecycle event absorbed",
                    assessment_id=str(assessment_id),
                    lifecycle_event=event.value,
                    status=transition.source.value,
                )
                return transition

            won = await self._assessments.transition_status(
                assessment_id,
                from_statuses=(transition.source.value,),
                to_status=transition.target.value,
                **values,
            )
            if won:
                logger.info(
                    "Assessment status changed",
                    assessment_id=str(assessment_id),
                    lifecycle_event=event.value,
                    from_status=transition.source.value,
                    to_status=transition.target.value,
                )
                return transition

            logger.debug(
                "Status moved concurrently, re-evaluating",
                assessment_id=str(assessment_id),
                lifecycle_event=event.value,
                attempt=attempt,
            )

        raise ConflictError(
            f"Assessment {assessment_id} changed concurrently; event {event.value} was not applied."
        )
