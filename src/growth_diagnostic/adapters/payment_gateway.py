"""Stripe payment gateway adapter.

Verifies webhook signatures and turns payment-intent events into
PaymentEvent values, and creates the payment intent a client pays against.
The assessment and user ids travel in the payment-intent metadata.
"""

import asyncio
import json
from decimal import Decimal
from typing import Any

import stripe

from growth_diagnostic.core.results import PaymentEvent, PaymentEventType
from growth_diagnostic.errors import InvalidSignatureError
from growth_diagnostic.observability import get_logger

logger = get_logger(__name__)

_EVENT_TYPES: dict[str, PaymentEventType] = {
    "payment_intent.succeeded": PaymentEventType.SUCCEEDED,
    "payment_intent.payment_failed": PaymentEventType.FAILED,
}


def to_minor_units(amount: str) -> int:
    """Convert a decimal amount string such as ``"497.00"`` to pence/cents."""
    return int((Decimal(amount) * 100).to_integral_value())


class StripePaymentGateway:
    """Stripe-backed payment gateway."""

    def __init__(
        self,
        webhook_secret: str,
        api_key: str = "",
        tolerance_seconds: int = stripe.Webhook.DEFAULT_TOLERANCE,
        client: stripe.StripeClient | None = None,
    ) -> None:
        """Initialise the gateway.

        Args:
            webhook_secret: Endpoint signing secret (``whsec_...``).
            api_key: Stripe secret key, needed only to create payment intents.
            tolerance_seconds: Maximum accepted age of a signed webhook.
            client: Pre-built StripeClient, mainly for tests.
        """
        self._webhook_secret = webhook_secret
        self._tolerance_seconds = tolerance_seconds
        self._client = client or (stripe.StripeClient(api_key) if api_key else None)

    def parse(self, payload: bytes, signature_header: str) -> PaymentEvent | None:
        """Verify a webhook delivery and extract the payment event.

        Args:
            payload: Raw request body, exactly as received.
            signature_header: Value of the ``Stripe-Signature`` header.

        Returns:
            The PaymentEvent, or None for event types that need no action or
            that carry no assessment metadata.

        Raises:
            InvalidSignatureError: If the signature is missing or does not verify,
                or the body is not a JSON event.
        """
        if not self._webhook_secret:
            raise InvalidSignatureError("Webhook signing secret is not configured.")
        if not signature_header:
            raise InvalidSignatureError("Missing webhook signature.")

        try:
            body = payload.decode("utf-8")
            stripe.WebhookSignature.verify_header(
                body, signature_header, self._webhook_secret, self._tolerance_seconds
            )
            event = json.loads(body)
        except stripe.SignatureVerificationError as exc:
            logger.warning("Webhook signature verification failed")
            raise InvalidSignatureError("Webhook signature verification failed.") from exc
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise InvalidSignatureError("Webhook payload is not a valid event.") from exc

        event_type = _EVENT_TYPES.get(event.get("type", ""))
        if event_type is None:
            logger.info("Unhandled webhook event type", event_type=event.get("type"))
            return None

        intent: dict[str, Any] = (event.get("data") or {}).get("object") or {}
        metadata: dict[str, Any] = intent.get("metadata") or {}
        assessment_id = metadata.get("assessmentId")
        user_id = metadata.get("userId")
        if not assessment_id or not user_id:
            logger.warning("Payment event without assessment metadata", reference=intent.get("id"))
            return None

        return PaymentEvent(
            event_type=event_type,
            assessment_id=str(assessment_id),
            user_id=str(user_id),
            reference=intent.get("id"),
        )

    async def create_payment_intent(
        self,
        assessment_id: str,
        user_id: str,
        amount: str,
        currency: str,
    ) -> tuple[str, str]:
        """Create a payment intent tagged with the assessment and user.

        Args:
            assessment_id: Assessment being paid for.
            user_id: Paying user.
            amount: Decimal amount string, e.g. ``"497.00"``.
            currency: ISO currency code.

        Returns:
            Tuple of (payment intent id, client secret).

        Raises:
            RuntimeError: If no Stripe secret key is configured.
        """
        if self._client is None:
            raise RuntimeError("Stripe secret key is not configured.")

        intent = await asyncio.to_thread(
            self._client.payment_intents.create,
            params={
                "amount": to_minor_units(amount),
                "currency": currency.lower(),
                "metadata": {"assessmentId": assessment_id, "userId": user_id},
            },
        )
        logger.info("Payment intent created", assessment_id=assessment_id, reference=intent.id)
        return intent.id, intent.client_secret
