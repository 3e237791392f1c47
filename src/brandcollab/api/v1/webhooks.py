"""Inbound provider callbacks."""

from fastapi import APIRouter, HTTPException, Request, status

from brandcollab.logging_config import get_logger
from brandcollab.payments import stripe_service
from brandcollab.settings import settings

logger = get_logger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.post("/stripe")
async def stripe_webhook(request: Request):
    """Receive Stripe events for Pro purchases.

    Answers 503 until a webhook secret is configured and 400 for a bad
    signature. A failure while applying the purchase answers 500 so that
    Stripe delivers the event again.
    """
    if not settings.stripe_webhook_secret:
        raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, "Webhooks not configured")

    payload = await request.body()
    try:
        event = stripe_service.parse_event(payload, request.headers.get("stripe-signature", ""))
    except ValueError as e:
        logger.warning("stripe_signature_rejected", error=str(e))
        raise HTTPException(status.HTTP_400_BAD_REQUEST, str(e))

    try:
        return stripe_service.process_event(event)
    except ValueError as e:
        logger.error("stripe_event_failed", event_id=event["id"], error=str(e))
        raise HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, "Error processing payment")
