import asyncio
from datetime import datetime

import pytest

from brandcollab.admin.models import AdminRole, ProfileReview, ProfileType, ReviewStatus
from brandcollab.admin.review_service import get_verification_status, profile_review_service
from brandcollab.auth.models import Brand, Influencer
from brandcollab.errors import BadRequestError, NotFoundError
from brandcollab.storage.db import db


def submit(profile_id: int, profile_type: ProfileType = ProfileType.INFLUENCER, data: dict | None = None) -> int:
    with db.session() as session:
        return profile_review_service.submit(session, profile_id, profile_type, data)


def status_of(profile_id: int, profile_type: ProfileType = ProfileType.INFLUENCER) -> dict | None:
    with db.session() as session:
        return get_verification_status(session, profile_id, profile_type)


def test_resubmission_reuses_review(make_influencer, make_admin):
    influencer_id = make_influencer()
    first = submit(influencer_id, data={"bio": "v1"})
    asyncio.run(profile_review_service.reject_profile(first, make_admin(), "Blurry photo"))

    second = submit(influencer_id, data={"bio": "v2"})

    assert second == first
    with db.session() as session:
        review = session.query(ProfileReview).one()
        assert review.status == ReviewStatus.PENDING
        assert review.rejection_reason is None
        assert review.submitted_data == {"bio": "v2"}


def test_create_review_notifies_reviewers(make_brand, make_admin, notifications):
    make_admin(AdminRole.SUPER_ADMIN, "lead@example.com")
    make_admin(AdminRole.PROFILE_REVIEWER, "reviewer@example.com")
    make_admin(AdminRole.CONTENT_MODERATOR, "moderator@example.com")
    brand_id = make_brand()

    review = asyncio.run(profile_review_service.create_review(brand_id, ProfileType.BRAND))

    assert review["status"] == "pending"
    recipients = {call.args[0] for call in notifications["email"].await_args_list}
    assert recipients == {"lead@example.com", "reviewer@example.com"}


def test_approve_influencer(make_influencer, make_admin, notifications):
    influencer_id = make_influencer()
    review_id = submit(influencer_id)

    result = asyncio.run(profile_review_service.approve_profile(review_id, make_admin(), "Looks great"))

    assert result["review"]["status"] == "approved"
    with db.session() as session:
        influencer = session.get(Influencer, influencer_id)
        assert influencer.is_verified is True
        assert influencer.verified_at is not None
    assert notifications["whatsapp"].await_count == 1
    assert notifications["push"].await_count == 1


def test_approve_brand_sends_email(make_brand, make_admin, notifications):
    brand_id = make_brand()
    review_id = submit(brand_id, ProfileType.BRAND)

    asyncio.run(profile_review_service.approve_profile(review_id, make_admin()))

    with db.session() as session:
        assert session.get(Brand, brand_id).is_verified is True
    assert notifications["email"].await_count == 1


def test_reject_brand_keeps_it_unverified(make_brand, make_admin, notifications):
    brand_id = make_brand()
    review_id = submit(brand_id, ProfileType.BRAND)

    asyncio.run(profile_review_service.reject_profile(review_id, make_admin(), "GST document unreadable"))

    with db.session() as session:
        assert session.get(Brand, brand_id).is_verified is False
    assert notifications["email"].await_count == 1
    assert status_of(brand_id, ProfileType.BRAND)["description"] == "GST document unreadable"


def test_decided_review_cannot_be_decided_again(make_influencer, make_admin):
    admin_id = make_admin()
    review_id = submit(make_influencer())
    asyncio.run(profile_review_service.approve_profile(review_id, admin_id))

    with pytest.raises(BadRequestError, match="not pending review"):
        asyncio.run(profile_review_service.reject_profile(review_id, admin_id, "Changed my mind"))


def test_unknown_review():
    with pytest.raises(NotFoundError):
        asyncio.run(profile_review_service.approve_profile(404, 1))


def test_verification_status_is_new_once(make_influencer, make_admin):
    influencer_id = make_influencer()
    assert status_of(influencer_id) is None

    review_id = submit(influencer_id)
    assert status_of(influencer_id)["status"] == "pending"

    asyncio.run(profile_review_service.approve_profile(review_id, make_admin()))

    first = status_of(influencer_id)
    second = status_of(influencer_id)
    assert first["status"] == "approved"
    assert first["isNew"] is True
    assert second["isNew"] is False


def test_pending_queue_and_stats(make_influencer, make_brand, make_admin):
    admin_id = make_admin()
    submit(make_influencer(name="Asha"))
    submit(make_brand(brand_name="Chai Point"), ProfileType.BRAND)
    approved = submit(make_influencer())
    asyncio.run(profile_review_service.approve_profile(approved, admin_id))

    queue = profile_review_service.get_pending_profiles()
    brands_only = profile_review_service.get_pending_profiles(profile_type=ProfileType.BRAND)

    assert queue["total"] == 2
    assert queue["reviews"][0]["profile"]["name"] == "Asha"
    assert brands_only["reviews"][0]["profile"]["brandName"] == "Chai Point"

    stats = profile_review_service.get_dashboard_stats()["stats"]
    assert stats["pendingReviews"] == 2
    assert stats["approvedToday"] == 1
    assert stats["totalInfluencers"] == 2
    assert profile_review_service.get_statistics() == {"pending": 2, "approved": 1, "rejected": 0}


def test_delete_review(make_influencer):
    review_id = submit(make_influencer())

    profile_review_service.delete_review(review_id)

    with pytest.raises(NotFoundError):
        profile_review_service.get_profile_details(review_id)


def test_reject_clears_earlier_verification(make_influencer, make_brand, make_admin):
    admin_id = make_admin()
    influencer_id = make_influencer(is_verified=True, verified_at=datetime.utcnow())
    brand_id = make_brand(is_verified=True)

    asyncio.run(profile_review_service.reject_profile(submit(influencer_id), admin_id, "Photo mismatch"))
    asyncio.run(profile_review_service.reject_profile(submit(brand_id, ProfileType.BRAND), admin_id, "Expired GST"))

    with db.session() as session:
        influencer = session.get(Influencer, influencer_id)
        assert influencer.is_verified is False
        assert influencer.verified_at is None
        assert session.get(Brand, brand_id).is_verified is False
