"""Handles verified payment gateway events.

Gateway delivery is at-least-once. Every path here is a no-op on repeat:
the payment state write is conditional, the lifecycle absorbs the event once
the assessment has moved on, and the gate only fires from a waiting status.
"""

import uuid
from datetime import datetime, timezone

from growth_diagnostic.core.interfaces import IAssessmentRepository, IPaymentGateway
from growth_diagnostic.core.lifecycle import (
    STARTED_STATUSES,
    AssessmentStatus,
    LifecycleEvent,
    PaymentState,
)
from growth_diagnostic.core.results import PaymentEvent, PaymentEventType
from growth_diagnostic.core.services.lifecycle_service import LifecycleService
from growth_diagnostic.core.services.readiness_gate import ReadinessGate
from growth_diagnostic.errors import ConflictError, NotFoundError, OwnershipError
from growth_diagnostic.observability import get_logger

logger = get_logger(__name__)


class PaymentService:
    """Applies payment outcomes to the assessment they pay for."""

    def __init__(
        self,
        assessment_repository: IAssessmentRepository,
        lifecycle: LifecycleService,
        gate: ReadinessGate,
        gateway: IPaymentGateway | None = None,
        fee_amount: str = "497.00",
        fee_currency: str = "GBP",
    ) -> None:
        self._assessments = assessment_repository
        self._lifecycle = lifecycle
        self._gate = gate
        self._gateway = gateway
        self._fee_amount = fee_amount
        self._fee_currency = fee_currency

    @property
    def fee_amount(self) -> str:
        return self._fee_amount

    @property
    def fee_currency(self) -> str:
        return self._fee_currency

    async def create_payment_intent(self, assessment_id: uuid.UUID, owner_id: str) -> str:
        """Create the gateway payment for an assessment and return its client secret.

        Raises:
            NotFoundError / OwnershipError: If the caller cannot act on the assessment.
            ConflictError: If the assessment is already paid or past the trigger point.
            RuntimeError: If no payment gateway is configured.
        """
        if self._gateway is None:
            raise RuntimeError("Payment gateway is not configured.")

        assessment = await self._assessments.get_assessment(assessment_id)
        if assessment is None:
            raise NotFoundError(f"Assessment {assessment_id} not found.")
        if assessment.owner_id != owner_id:
            raise OwnershipError(f"Assessment {assessment_id} not found.")
        if (
            assessment.payment_state == PaymentState.CONFIRMED.value
            or AssessmentStatus(assessment.status) in STARTED_STATUSES
        ):
            raise ConflictError("Assessment has already been paid for.")

        reference, client_secret = await self._gateway.create_payment_intent(
            str(assessment_id), owner_id, self._fee_amount, self._fee_currency
        )
        await self._assessments.record_payment_reference(assessment_id, reference)
        return client_secret

    async def handle(self, event: PaymentEvent) -> bool:
        """Record a payment outcome and re-check readiness.

        Events naming an unknown assessment, or a user that does not own it,
        are logged and ignored so the gateway stops retrying them.

        Args:
            event: A signature-verified payment event.

        Returns:
            True if the event was applied to an assessment, False if ignored.
        """
        try:
            assessment_id = uuid.UUID(event.assessment_id)
        except ValueError:
            logger.warning("Payment event with malformed assessment id", reference=event.reference)
            return False

        assessment = await self._assessments.get_assessment(assessment_id, for_update=True)
        if assessment is None:
            logger.warning(
                "Payment event for unknown assessment",
                assessment_id=str(assessment_id),
                reference=event.reference,
            )
            return False
        if assessment.owner_id != event.user_id:
            logger.warning(
                "Payment event user does not own assessment",
                assessment_id=str(assessment_id),
                reference=event.reference,
            )
            return False

        now = datetime.now(tz=timezone.utc)

        if event.event_type is PaymentEventType.FAILED:
            recorded = await self._assessments.record_payment_state(
                assessment_id, PaymentState.FAILED.value, event.reference, now
            )
            await self._lifecycle.apply(assessment_id, LifecycleEvent.PAYMENT_FAILED)
            logger.info(
                "Payment failure recorded" if recorded else "Payment failure ignored, already confirmed",
                assessment_id=str(assessment_id),
                reference=event.reference,
            )
            return True

        recorded = await self._assessments.record_payment_state(
            assessment_id, PaymentState.CONFIRMED.value, event.reference, now
        )
        if not recorded:
            logger.info(
                "Duplicate payment confirmation",
                assessment_id=str(assessment_id),
                reference=event.reference,
            )

        await self._lifecycle.apply(assessment_id, LifecycleEvent.PAYMENT_CONFIRMED)
        await self._gate.try_start_analysis(assessment_id)
        return True
