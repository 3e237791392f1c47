import asyncio

import pytest

from brandcollab.admin.models import ProfileType
from brandcollab.admin.review_service import profile_review_service
from brandcollab.errors import BadRequestError, NotFoundError
from brandcollab.influencer.models import InfluencerUpi
from brandcollab.referral.models import (
    CreditTransaction,
    InfluencerReferralUsage,
    PaymentStatus,
    TransactionType,
)
from brandcollab.referral.service import referral_service
from brandcollab.referral.upi import upi_service, validate_upi_id
from brandcollab.settings import settings
from brandcollab.storage.db import db


@pytest.fixture
def referral(make_influencer):
    """A referrer and a referred influencer whose usage is recorded."""
    referrer = make_influencer(referral_code="REFR2345")
    referred = make_influencer()
    with db.session() as session:
        session.add(InfluencerReferralUsage(influencer_id=referred, referral_code="REFR2345"))
    return referrer, referred


def approve(profile_id: int, admin_id: int):
    with db.session() as session:
        review_id = profile_review_service.submit(session, profile_id, ProfileType.INFLUENCER)
    return asyncio.run(profile_review_service.approve_profile(review_id, admin_id))


def pending_reward(influencer_id: int, amount: int = 100) -> None:
    with db.session() as session:
        session.add(CreditTransaction(
            influencer_id=influencer_id,
            transaction_type=TransactionType.REFERRAL_BONUS,
            amount=amount,
            payment_status=PaymentStatus.PENDING,
        ))


# ==================== CODES ====================

def test_validate_referral_code(make_influencer):
    make_influencer(name="Asha", referral_code="ABCD2345")

    assert referral_service.validate_referral_code("abcd2345")["referrer"]["name"] == "Asha"
    assert referral_service.validate_referral_code("ZZZZ2345") == {"valid": False, "message": "Referral code not found"}
    assert referral_service.validate_referral_code("bad!")["message"] == "Invalid referral code format"


def test_invite_clicks_are_counted(make_influencer):
    influencer_id = make_influencer()

    referral_service.track_referral_invite_click(influencer_id)
    result = referral_service.track_referral_invite_click(influencer_id)

    assert result["totalClicks"] == 2


# ==================== REWARDS ====================

def test_approval_awards_referrer_once(referral, make_admin):
    referrer, referred = referral
    admin_id = make_admin()

    approve(referred, admin_id)

    with db.session() as session:
        rewards = session.query(CreditTransaction).all()
        assert len(rewards) == 1
        assert rewards[0].influencer_id == referrer
        assert rewards[0].amount == settings.referral_bonus_amount
        assert rewards[0].payment_status == PaymentStatus.PENDING

        # A second award attempt for the same usage does nothing
        assert referral_service.award_referral_credit(session, referred) is None


def test_rewards_summary(referral, make_admin):
    referrer, referred = referral
    approve(referred, make_admin())
    pending_reward(referrer, 50)

    result = referral_service.get_referral_rewards(referrer)

    assert result["summary"] == {"lifetimeReward": 150, "redeemed": 0, "redeemable": 150}
    assert result["referralCode"] == "REFR2345"
    assert result["referralHistory"][0]["id"] == referred
    assert result["referralHistory"][0]["rewardStatus"] == "pending"


# ==================== REDEMPTION ====================

def test_redeem_requires_selected_upi(make_influencer):
    influencer_id = make_influencer()
    pending_reward(influencer_id)

    with pytest.raises(BadRequestError, match="No UPI ID selected"):
        asyncio.run(referral_service.redeem_rewards(influencer_id))


def test_redeem_requires_pending_rewards(make_influencer):
    influencer_id = make_influencer()
    upi_service.add_upi_id(influencer_id, "asha@okaxis")

    with pytest.raises(BadRequestError, match="No pending rewards"):
        asyncio.run(referral_service.redeem_rewards(influencer_id))


def test_redeem_and_process(make_influencer, make_admin, notifications):
    influencer_id = make_influencer()
    upi_service.add_upi_id(influencer_id, "asha@okaxis")
    pending_reward(influencer_id, 100)
    pending_reward(influencer_id, 100)

    redeemed = asyncio.run(referral_service.redeem_rewards(influencer_id))

    assert redeemed["amount"] == 200
    assert redeemed["transactionsCount"] == 2
    assert notifications["whatsapp"].await_count == 1
    summary = referral_service.get_referral_rewards(influencer_id)["summary"]
    assert summary == {"lifetimeReward": 200, "redeemed": 200, "redeemable": 0}

    requests = referral_service.get_redemption_requests(PaymentStatus.PROCESSING)
    assert requests["processingAmount"] == 200
    assert requests["requests"][0]["influencerId"] == influencer_id

    asyncio.run(referral_service.process_redemption(redeemed["redemptionId"], make_admin(), "UTR123"))

    with db.session() as session:
        statuses = {tx.payment_status for tx in session.query(CreditTransaction).all()}
        assert statuses == {PaymentStatus.PAID}
    assert notifications["push"].await_count == 1

    with pytest.raises(BadRequestError, match="already processed"):
        asyncio.run(referral_service.process_redemption(redeemed["redemptionId"], 1))


def test_process_unknown_redemption():
    with pytest.raises(NotFoundError):
        asyncio.run(referral_service.process_redemption(999, 1))


# ==================== UPI ====================

@pytest.mark.parametrize("value", ["asha@okaxis", "asha.rao-1@ybl", " 9876543210@paytm "])
def test_valid_upi_ids(value):
    assert validate_upi_id(value) == value.strip()


@pytest.mark.parametrize("value", ["asha", "@okaxis", "asha@ok axis", "asha@123"])
def test_invalid_upi_ids(value):
    with pytest.raises(BadRequestError):
        validate_upi_id(value)


def test_first_upi_selected_and_duplicates_rejected(make_influencer):
    influencer_id = make_influencer()

    first = upi_service.add_upi_id(influencer_id, "asha@okaxis")
    second = upi_service.add_upi_id(influencer_id, "asha@ybl")

    assert first["isSelectedForNextTransaction"] is True
    assert second["isSelectedForNextTransaction"] is False
    with pytest.raises(BadRequestError, match="already added"):
        upi_service.add_upi_id(influencer_id, "asha@okaxis")


def test_select_upi_lists_it_first(make_influencer):
    influencer_id = make_influencer()
    upi_service.add_upi_id(influencer_id, "asha@okaxis")
    second = upi_service.add_upi_id(influencer_id, "asha@ybl")

    upi_service.select_upi_id(influencer_id, second["id"])

    listing = upi_service.list_upi_ids(influencer_id)
    assert listing["upiIds"][0]["upiId"] == "asha@ybl"
    assert [u["isSelectedForNextTransaction"] for u in listing["upiIds"]] == [True, False]


def test_select_someone_elses_upi(make_influencer):
    owner = make_influencer()
    record = upi_service.add_upi_id(owner, "asha@okaxis")

    with pytest.raises(NotFoundError):
        upi_service.select_upi_id(make_influencer(), record["id"])


def test_select_and_redeem(make_influencer):
    influencer_id = make_influencer()
    upi_service.add_upi_id(influencer_id, "asha@okaxis")
    second = upi_service.add_upi_id(influencer_id, "asha@ybl")
    pending_reward(influencer_id)

    result = asyncio.run(upi_service.select_and_redeem(influencer_id, second["id"]))

    assert result["upiId"] == "asha@ybl"
    with db.session() as session:
        assert session.get(InfluencerUpi, second["id"]).last_used_at is not None


def test_only_upi_kept_while_rewards_pending(make_influencer):
    influencer_id = make_influencer()
    record = upi_service.add_upi_id(influencer_id, "asha@okaxis")
    pending_reward(influencer_id)

    with pytest.raises(BadRequestError, match="Cannot delete the only UPI ID"):
        upi_service.delete_upi_id(influencer_id, record["id"])


def test_deleting_selected_upi_promotes_newest(make_influencer):
    influencer_id = make_influencer()
    first = upi_service.add_upi_id(influencer_id, "asha@okaxis")
    upi_service.add_upi_id(influencer_id, "asha@ybl")
    newest = upi_service.add_upi_id(influencer_id, "asha@paytm")

    upi_service.delete_upi_id(influencer_id, first["id"])

    with db.session() as session:
        remaining = {u.id: u.is_selected_for_next_transaction for u in session.query(InfluencerUpi).all()}
    assert len(remaining) == 2
    assert remaining[newest["id"]] is True
