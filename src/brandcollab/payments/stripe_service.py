"""Stripe Checkout for the influencer Pro tier."""

from datetime import datetime, timedelta

import stripe

from brandcollab.auth.models import Influencer, ProcessedWebhookEvent
from brandcollab.errors import NotFoundError
from brandcollab.influencer.models import ProSubscription, SubscriptionStatus
from brandcollab.logging_config import get_logger
from brandcollab.settings import settings
from brandcollab.storage.db import db

logger = get_logger(__name__)

stripe.api_key = settings.stripe_secret_key

PRO_PRODUCT = "pro"
PRO_PRODUCT_NAME = "BrandCollab Pro"
CHECKOUT_COMPLETED = "checkout.session.completed"
WEBHOOK_SOURCE = "stripe"


def pro_status(influencer: Influencer, now: datetime | None = None) -> dict:
    """Pro flags of an influencer row; an elapsed expiry counts as not Pro."""
    now = now or datetime.utcnow()
    active = bool(influencer.is_pro) and (influencer.pro_expires_at is None or influencer.pro_expires_at > now)
    return {
        "isPro": active,
        "proActivatedAt": influencer.pro_activated_at.isoformat() if influencer.pro_activated_at else None,
        "proExpiresAt": influencer.pro_expires_at.isoformat() if influencer.pro_expires_at else None,
    }


def get_pro_status(influencer_id: int) -> dict:
    with db.session() as session:
        influencer = session.get(Influencer, influencer_id)
        if not influencer:
            raise NotFoundError("Influencer not found")

        latest = session.query(ProSubscription).filter(
            ProSubscription.influencer_id == influencer_id,
        ).order_by(ProSubscription.created_at.desc(), ProSubscription.id.desc()).first()

        return {
            **pro_status(influencer),
            "subscription": latest.to_dict() if latest else None,
            "price": settings.pro_price_paise,
            "periodDays": settings.pro_period_days,
        }


def create_pro_checkout(influencer_id: int, success_url: str, cancel_url: str) -> str:
    """Create a Stripe Checkout session for Pro.

    Args:
        influencer_id: Buyer
        success_url: URL to redirect after successful payment
        cancel_url: URL to redirect after cancelled payment

    Returns:
        Checkout session URL

    Raises:
        ValueError: If Stripe is not configured
    """
    if not settings.stripe_secret_key:
        raise ValueError("Stripe is not configured")

    session = stripe.checkout.Session.create(
        payment_method_types=["card"],
        line_items=[
            {
                "price_data": {
                    "currency": "inr",
                    "product_data": {
                        "name": PRO_PRODUCT_NAME,
                        "description": f"Early access to new campaigns for {settings.pro_period_days} days",
                    },
                    "unit_amount": settings.pro_price_paise,
                },
                "quantity": 1,
            }
        ],
        mode="payment",
        success_url=success_url,
        cancel_url=cancel_url,
        metadata={
            "influencer_id": str(influencer_id),
            "product": PRO_PRODUCT,
        },
    )

    with db.session() as db_session:
        db_session.add(ProSubscription(
            influencer_id=influencer_id,
            status=SubscriptionStatus.INACTIVE,
            amount=settings.pro_price_paise,
            checkout_session_id=session.id,
        ))

    logger.info("pro_checkout_created", influencer_id=influencer_id, session_id=session.id)
    return session.url


def handle_checkout_completed(checkout_session) -> bool:
    """Activate Pro after a paid checkout.

    A purchase while Pro is still running extends the current period.

    Args:
        checkout_session: Completed Stripe checkout session

    Returns:
        True if the session was a Pro purchase and was applied
    """
    metadata = checkout_session["metadata"] or {}
    if "product" not in metadata or metadata["product"] != PRO_PRODUCT:
        logger.info("stripe_checkout_ignored", session_id=checkout_session["id"])
        return False

    influencer_id = int(metadata["influencer_id"])
    now = datetime.utcnow()

    with db.session() as session:
        influencer = session.get(Influencer, influencer_id)
        if not influencer:
            raise ValueError(f"Influencer {influencer_id} not found")

        starts = influencer.pro_expires_at if influencer.is_pro and influencer.pro_expires_at and influencer.pro_expires_at > now else now
        ends = starts + timedelta(days=settings.pro_period_days)

        subscription = session.query(ProSubscription).filter(
            ProSubscription.checkout_session_id == checkout_session["id"],
        ).first()
        if not subscription:
            subscription = ProSubscription(
                influencer_id=influencer_id,
                amount=settings.pro_price_paise,
                checkout_session_id=checkout_session["id"],
            )
            session.add(subscription)

        subscription.status = SubscriptionStatus.ACTIVE
        subscription.start_date = starts
        subscription.end_date = ends
        subscription.payment_reference = checkout_session["payment_intent"] or checkout_session["id"]

        if not influencer.is_pro or not influencer.pro_activated_at:
            influencer.pro_activated_at = now
        influencer.is_pro = True
        influencer.pro_expires_at = ends

    logger.info("pro_activated", influencer_id=influencer_id, expires_at=ends.isoformat())
    return True


def check_and_expire_subscriptions(now: datetime | None = None) -> int:
    """Clear Pro for influencers whose period elapsed.

    Returns:
        Number of influencers downgraded
    """
    now = now or datetime.utcnow()

    with db.session() as session:
        expired = session.query(Influencer).filter(
            Influencer.is_pro == True,  # noqa: E712
            Influencer.pro_expires_at.isnot(None),
            Influencer.pro_expires_at <= now,
        ).all()

        for influencer in expired:
            influencer.is_pro = False

        session.query(ProSubscription).filter(
            ProSubscription.status == SubscriptionStatus.ACTIVE,
            ProSubscription.end_date <= now,
        ).update({ProSubscription.status: SubscriptionStatus.EXPIRED}, synchronize_session=False)

        count = len(expired)

    logger.info("pro_subscriptions_expired", count=count)
    return count


def parse_event(payload: bytes, signature: str) -> stripe.Event:
    """Check the ``Stripe-Signature`` header and decode the event.

    Raises:
        ValueError: Missing secret or a signature that does not verify
    """
    if not settings.stripe_webhook_secret:
        raise ValueError("Stripe webhook secret is not configured")
    try:
        return stripe.Webhook.construct_event(payload, signature, settings.stripe_webhook_secret)
    except stripe.SignatureVerificationError as e:
        raise ValueError("Invalid webhook signature") from e


def _already_processed(session, event_id: str) -> bool:
    return session.query(ProcessedWebhookEvent.id).filter(
        ProcessedWebhookEvent.event_id == event_id,
        ProcessedWebhookEvent.source == WEBHOOK_SOURCE,
    ).first() is not None


def process_event(event) -> dict:
    """Apply a verified Stripe event once.

    Only ``checkout.session.completed`` changes state. The event id is
    recorded after the purchase is applied, so a failure lets Stripe retry.
    """
    event_id, event_type = event["id"], event["type"]
    if event_type != CHECKOUT_COMPLETED:
        logger.info("stripe_event_skipped", event_type=event_type)
        return {"received": True}

    with db.session() as session:
        if _already_processed(session, event_id):
            logger.info("stripe_event_duplicate", event_id=event_id)
            return {"received": True, "duplicate": True}

    applied = handle_checkout_completed(event["data"]["object"])

    with db.session() as session:
        session.add(ProcessedWebhookEvent(
            event_id=event_id,
            event_type=event_type,
            source=WEBHOOK_SOURCE,
            processed_at=datetime.utcnow(),
        ))
    return {"received": True, "applied": applied}


def cleanup_processed_events(days: int = 30) -> int:
    """Forget processed event ids older than ``days``; Stripe stops retrying after 3."""
    cutoff = datetime.utcnow() - timedelta(days=days)
    with db.session() as session:
        return session.query(ProcessedWebhookEvent).filter(
            ProcessedWebhookEvent.processed_at < cutoff,
        ).delete(synchronize_session=False)
