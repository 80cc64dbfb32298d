"""Payment gateway callback endpoint.

API prefix: /api/v1/payments

The gateway signs every delivery; the raw body is verified before anything is
parsed. Verified deliveries are always acknowledged, including duplicates and
events that need no action, so the gateway stops retrying them.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Header, Request

from growth_diagnostic.api.dependencies import get_payment_gateway, get_payment_service
from growth_diagnostic.api.schemas.assessment import WebhookAck
from growth_diagnostic.core.interfaces import IPaymentGateway
from growth_diagnostic.core.services import PaymentService
from growth_diagnostic.observability import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.post("/webhook", response_model=WebhookAck)
async def payment_webhook(
    request: Request,
    stripe_signature: Annotated[str | None, Header()] = None,
    gateway: IPaymentGateway = Depends(get_payment_gateway),
    service: PaymentService = Depends(get_payment_service),
) -> WebhookAck:
    """Verify a payment callback and apply it to its assessment.

    Raises:
        InvalidSignatureError: Mapped to 400 when verification fails.
    """
    payload = await request.body()
    event = gateway.parse(payload, stripe_signature or "")
    if event is None:
        logger.debug("Payment callback ignored")
        return WebhookAck()

    applied = await service.handle(event)
    logger.info(
        "Payment callback processed",
        event_type=event.event_type.value,
        applied=applied,
    )
    return WebhookAck()
