import asyncio

import pytest

from brandcollab.admin.models import ProfileReview, ProfileType, ReviewStatus
from brandcollab.admin.review_service import profile_review_service
from brandcollab.auth.models import Brand, Influencer
from brandcollab.auth.otp import hash_identifier
from brandcollab.brand.service import brand_service
from brandcollab.errors import BadRequestError
from brandcollab.influencer.service import influencer_service
from brandcollab.storage.db import db
from brandcollab.storage.models import CompanyType

SHARED_WHATSAPP = "+919812300000"


def update(influencer_id: int, data: dict) -> dict:
    return asyncio.run(influencer_service.update_profile(influencer_id, data))


def push_titles(notifications) -> list[str]:
    return [call.args[2] for call in notifications["push"].await_args_list]


def reviews_for(profile_id: int, profile_type: ProfileType = ProfileType.INFLUENCER) -> list[ProfileReview]:
    with db.session() as session:
        return session.query(ProfileReview).filter(
            ProfileReview.profile_id == profile_id,
            ProfileReview.profile_type == profile_type,
        ).all()


# ==================== INFLUENCER PROFILE ====================

def test_complete_profile_is_submitted_for_review(make_influencer, make_admin, notifications):
    make_admin()
    influencer_id = make_influencer(is_profile_completed=False)

    result = update(influencer_id, {"bio": "Street food across Mumbai"})

    assert result["status"] == "pending_verification"
    assert [r.status for r in reviews_for(influencer_id)] == [ReviewStatus.PENDING]
    assert push_titles(notifications) == ["Profile Under Review"]
    # Verification pending template on WhatsApp, pending notice to the admin
    assert notifications["whatsapp"].await_count == 1
    assert notifications["email"].await_count == 1


def test_update_while_under_review_does_not_resubmit(make_influencer, notifications):
    influencer_id = make_influencer()
    update(influencer_id, {"bio": "First"})
    notifications["push"].reset_mock()

    result = update(influencer_id, {"bio": "Second"})

    assert result["message"] == "Profile updated successfully"
    assert len(reviews_for(influencer_id)) == 1
    assert notifications["push"].await_count == 0


def test_incomplete_profile_gets_reminder(make_influencer, notifications):
    influencer_id = make_influencer(complete=False)

    result = update(influencer_id, {"bio": "Just getting started"})

    assert result["status"] == "incomplete"
    assert result["missingFieldsCount"] > 0
    assert push_titles(notifications) == ["Complete Your Profile"]
    assert notifications["push"].await_args.args[4]["missingFieldsCount"] == result["missingFieldsCount"]
    assert reviews_for(influencer_id) == []


def test_empty_social_link_clears_it(make_influencer):
    influencer_id = make_influencer()

    result = update(influencer_id, {"instagram_url": "", "youtube_url": None})

    assert result["influencer"]["socialLinks"]["instagram"] is None
    # Only social link gone, so the profile is incomplete again
    assert result["status"] == "incomplete"
    with db.session() as session:
        assert session.get(Influencer, influencer_id).is_profile_completed is False


def test_clear_profile_banner(make_influencer):
    influencer_id = make_influencer(profile_banner="https://cdn.example.com/banner.jpg")

    result = update(influencer_id, {"clear_profile_banner": True})

    assert result["influencer"]["profileBanner"] is None


def test_rejected_profile_cannot_resubmit_with_taken_whatsapp(make_influencer, make_admin):
    holder = make_influencer(whatsapp_number=SHARED_WHATSAPP, whatsapp_hash=hash_identifier(SHARED_WHATSAPP))
    update(holder, {"bio": "Holder"})

    influencer_id = make_influencer()
    update(influencer_id, {"bio": "Rejected once"})
    review_id = reviews_for(influencer_id)[0].id
    asyncio.run(profile_review_service.reject_profile(review_id, make_admin(), "Duplicate account"))
    with db.session() as session:
        influencer = session.get(Influencer, influencer_id)
        influencer.whatsapp_number = SHARED_WHATSAPP
        influencer.whatsapp_hash = hash_identifier(SHARED_WHATSAPP)

    with pytest.raises(BadRequestError, match="already linked"):
        update(influencer_id, {"bio": "Trying again"})
    assert reviews_for(influencer_id)[0].status == ReviewStatus.REJECTED


# ==================== WHATSAPP ====================

def test_whatsapp_otp_send_and_verify(make_influencer, notifications):
    influencer_id = make_influencer(complete=False)

    sent = asyncio.run(influencer_service.send_whatsapp_otp(influencer_id, "98123 00000"))
    assert sent["whatsappNumber"] == SHARED_WHATSAPP
    assert notifications["whatsapp"].await_count == 1

    with pytest.raises(BadRequestError):
        influencer_service.verify_whatsapp_otp(influencer_id, SHARED_WHATSAPP, "000000")

    result = influencer_service.verify_whatsapp_otp(influencer_id, SHARED_WHATSAPP, "123456")

    assert result["verified"] is True
    with db.session() as session:
        influencer = session.get(Influencer, influencer_id)
        assert influencer.whatsapp_number == SHARED_WHATSAPP
        assert influencer.whatsapp_hash == hash_identifier(SHARED_WHATSAPP)
        assert influencer.is_whatsapp_verified is True


def test_whatsapp_already_verified(make_influencer):
    influencer_id = make_influencer()

    with pytest.raises(BadRequestError, match="already verified"):
        influencer_service.verify_whatsapp_otp(influencer_id, SHARED_WHATSAPP, "123456")


def test_whatsapp_verified_by_someone_else(make_influencer, notifications):
    make_influencer(whatsapp_number=SHARED_WHATSAPP, whatsapp_hash=hash_identifier(SHARED_WHATSAPP))
    influencer_id = make_influencer(complete=False)

    with pytest.raises(BadRequestError, match="another user"):
        asyncio.run(influencer_service.send_whatsapp_otp(influencer_id, SHARED_WHATSAPP))
    assert notifications["whatsapp"].await_count == 0


# ==================== BRAND PROFILE ====================

@pytest.fixture
def nearly_complete_brand(make_brand, city):
    with db.session() as session:
        company_type = CompanyType(name="Private Limited")
        session.add(company_type)
        session.flush()
        company_type_id = company_type.id

    return make_brand(
        legal_entity_name="Chai Point Pvt Ltd",
        company_type_id=company_type_id,
        brand_bio="Tea for every office",
        website_url="https://chaipoint.example.com",
        founded_year=2010,
        headquarter_country_id=city["country_id"],
        headquarter_city_id=city["id"],
        poc_name="Ravi",
        poc_designation="Marketing Lead",
        poc_email_id="ravi@chaipoint.example.com",
        poc_contact_number="+919800000001",
        profile_image="https://cdn.example.com/logo.png",
        profile_banner="https://cdn.example.com/banner.png",
        incorporation_document="https://cdn.example.com/inc.pdf",
        gst_document="https://cdn.example.com/gst.pdf",
        pan_document="https://cdn.example.com/pan.pdf",
        instagram_url="https://instagram.com/chaipoint",
    )


def test_brand_update_reports_missing_fields(make_brand, notifications):
    brand_id = make_brand()

    result = asyncio.run(brand_service.update_brand_profile(brand_id, {"brand_bio": "Tea for every office"}))

    assert result["status"] == "incomplete"
    assert result["missingFieldsCount"] > 0
    assert result["brand"]["brandBio"] == "Tea for every office"
    assert reviews_for(brand_id, ProfileType.BRAND) == []


def test_brand_update_completing_profile_submits_review(nearly_complete_brand, make_admin, notifications):
    make_admin()

    result = asyncio.run(brand_service.update_brand_profile(
        nearly_complete_brand, {"profile_headline": "India's office tea"}
    ))

    assert result["status"] == "pending_verification"
    assert [r.status for r in reviews_for(nearly_complete_brand, ProfileType.BRAND)] == [ReviewStatus.PENDING]
    assert notifications["email"].await_count == 1
    with db.session() as session:
        assert session.get(Brand, nearly_complete_brand).is_profile_completed is True


def test_brand_update_clears_social_link(nearly_complete_brand):
    asyncio.run(brand_service.update_brand_profile(nearly_complete_brand, {"profile_headline": "Office tea"}))

    result = asyncio.run(brand_service.update_brand_profile(nearly_complete_brand, {"instagram_url": ""}))

    assert result["status"] == "incomplete"
    with db.session() as session:
        brand = session.get(Brand, nearly_complete_brand)
        assert brand.instagram_url is None
        assert brand.is_profile_completed is False


def test_brand_update_rejects_unknown_city(make_brand):
    with pytest.raises(BadRequestError, match="Invalid city"):
        asyncio.run(brand_service.update_brand_profile(make_brand(), {"headquarter_city_id": 999}))
