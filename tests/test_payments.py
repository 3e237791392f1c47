from datetime import datetime, timedelta

from brandcollab.auth.models import Influencer, ProcessedWebhookEvent
from brandcollab.influencer.models import ProSubscription, SubscriptionStatus
from brandcollab.payments.stripe_service import (
    cleanup_processed_events,
    get_pro_status,
    process_event,
)
from brandcollab.settings import settings
from brandcollab.storage.db import db


def checkout_event(influencer_id: int, event_id: str = "evt_1", session_id: str = "cs_1", product: str = "pro") -> dict:
    return {
        "id": event_id,
        "type": "checkout.session.completed",
        "data": {
            "object": {
                "id": session_id,
                "payment_intent": "pi_1",
                "metadata": {"influencer_id": str(influencer_id), "product": product},
            }
        },
    }


def test_checkout_activates_pro(make_influencer):
    influencer_id = make_influencer()

    result = process_event(checkout_event(influencer_id))

    assert result == {"received": True, "applied": True}
    status = get_pro_status(influencer_id)
    assert status["isPro"] is True
    assert status["subscription"]["status"] == "active"
    assert status["periodDays"] == settings.pro_period_days


def test_duplicate_event_applied_once(make_influencer):
    influencer_id = make_influencer()
    process_event(checkout_event(influencer_id))

    again = process_event(checkout_event(influencer_id))

    assert again["duplicate"] is True
    with db.session() as session:
        assert session.query(ProSubscription).count() == 1


def test_purchase_while_pro_extends_period(make_influencer):
    expires = datetime.utcnow() + timedelta(days=10)
    influencer_id = make_influencer(is_pro=True, pro_activated_at=datetime.utcnow(), pro_expires_at=expires)

    process_event(checkout_event(influencer_id))

    with db.session() as session:
        influencer = session.get(Influencer, influencer_id)
        assert influencer.pro_expires_at == expires + timedelta(days=settings.pro_period_days)


def test_other_products_and_event_types_ignored(make_influencer):
    influencer_id = make_influencer()

    assert process_event(checkout_event(influencer_id, product="other"))["applied"] is False
    assert process_event({"id": "evt_2", "type": "invoice.paid", "data": {"object": {}}}) == {"received": True}
    assert get_pro_status(influencer_id)["isPro"] is False


def test_expired_pro_reported_inactive(make_influencer):
    influencer_id = make_influencer(is_pro=True, pro_expires_at=datetime.utcnow() - timedelta(minutes=1))

    assert get_pro_status(influencer_id)["isPro"] is False


def test_cleanup_processed_events(make_influencer):
    process_event(checkout_event(make_influencer()))
    with db.session() as session:
        session.query(ProcessedWebhookEvent).update(
            {ProcessedWebhookEvent.processed_at: datetime.utcnow() - timedelta(days=45)}
        )

    assert cleanup_processed_events(30) == 1

    with db.session() as session:
        assert session.query(ProSubscription).one().status == SubscriptionStatus.ACTIVE
