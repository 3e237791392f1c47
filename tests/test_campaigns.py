import asyncio
from datetime import datetime, timedelta

import pytest

from brandcollab.campaign.models import (
    ApplicationStatus,
    Campaign,
    CampaignApplication,
    CampaignInvitation,
    CampaignStatus,
    InvitationStatus,
)
from brandcollab.campaign.service import campaign_service
from brandcollab.errors import BadRequestError, ForbiddenError, NotFoundError
from brandcollab.influencer.campaigns import influencer_campaign_service
from brandcollab.influencer.eligibility import CampaignFilters
from brandcollab.settings import settings
from brandcollab.storage.db import db


def apply(influencer_id: int, campaign_id: int) -> dict:
    return asyncio.run(influencer_campaign_service.apply_campaign(influencer_id, campaign_id, "Keen to join"))


def open_names(influencer_id: int, filters: CampaignFilters | None = None) -> set[str]:
    result = influencer_campaign_service.get_open_campaigns(influencer_id, filters)
    return {c["name"] for c in result["campaigns"]}


# ==================== BRAND SIDE ====================

def test_create_requires_cities_unless_pan_india(make_brand):
    brand_id = make_brand()

    with pytest.raises(BadRequestError, match="At least one city"):
        campaign_service.create_campaign(brand_id, {"name": "Launch", "is_pan_india": False})


def test_create_rejects_unknown_city(make_brand, city):
    brand_id = make_brand()

    with pytest.raises(BadRequestError, match="cities are invalid"):
        campaign_service.create_campaign(brand_id, {"name": "Launch", "city_ids": [city["id"], 999]})


def test_create_with_cities_and_deliverables(make_brand, city):
    brand_id = make_brand()

    result = campaign_service.create_campaign(brand_id, {
        "name": "Monsoon Drop",
        "type": "barter",
        "city_ids": [city["id"], city["other_id"], city["id"]],
        "deliverables": [
            {"platform": "instagram", "type": "instagram_reel", "budget": 3000},
            {"platform": "instagram", "type": "instagram_post"},
            {"platform": "youtube", "type": "youtube_short", "quantity": 2},
        ],
    })

    assert result["status"] == "active"
    assert result["type"] == "barter"
    assert {c["name"] for c in result["cities"]} == {"Mumbai", "Pune"}
    assert result["deliverableFormat"] == ["Insta Reel / Post", "YT Shorts"]


def test_get_campaigns_search_and_counts(make_brand, make_campaign, make_influencer):
    brand_id = make_brand()
    target = make_campaign(brand_id, name="Diwali Gifting")
    make_campaign(brand_id, name="Summer Sale")
    apply(make_influencer(), target)

    result = campaign_service.get_campaigns(brand_id, search="diwali")

    assert result["total"] == 1
    assert result["campaigns"][0]["totalApplications"] == 1


def test_update_replaces_cities(make_brand, make_campaign, city):
    brand_id = make_brand()
    campaign_id = make_campaign(brand_id, city_ids=[city["id"]])

    result = campaign_service.update_campaign(campaign_id, brand_id, {"city_ids": [city["other_id"]], "name": "Renamed"})

    assert result["name"] == "Renamed"
    assert [c["name"] for c in result["cities"]] == ["Pune"]


def test_update_cannot_leave_local_campaign_without_cities(make_brand, make_campaign, city):
    brand_id = make_brand()
    pan_india = make_campaign(brand_id)
    local = make_campaign(brand_id, city_ids=[city["id"]])

    with pytest.raises(BadRequestError, match="At least one city"):
        campaign_service.update_campaign(pan_india, brand_id, {"is_pan_india": False})
    with pytest.raises(BadRequestError, match="At least one city"):
        campaign_service.update_campaign(local, brand_id, {"city_ids": []})

    with db.session() as session:
        assert session.get(Campaign, pan_india).is_pan_india is True
        assert len(session.get(Campaign, local).cities) == 1

    moved = campaign_service.update_campaign(pan_india, brand_id, {"is_pan_india": False, "city_ids": [city["id"]]})
    assert [c["name"] for c in moved["cities"]] == ["Mumbai"]


def test_campaign_not_visible_to_other_brand(make_brand, make_campaign):
    campaign_id = make_campaign()

    with pytest.raises(NotFoundError):
        campaign_service.get_campaign(campaign_id, make_brand())


def test_delete_only_inactive_campaigns(make_brand, make_campaign):
    brand_id = make_brand()
    campaign_id = make_campaign(brand_id)

    with pytest.raises(BadRequestError, match="Cannot delete an active campaign"):
        campaign_service.delete_campaign(campaign_id, brand_id)

    asyncio.run(campaign_service.update_campaign_status(campaign_id, brand_id, CampaignStatus.PAUSED))
    campaign_service.delete_campaign(campaign_id, brand_id)

    with db.session() as session:
        assert session.get(Campaign, campaign_id).is_active is False
    with pytest.raises(NotFoundError):
        campaign_service.get_campaign(campaign_id, brand_id)


def test_close_campaign_hides_it(make_brand, make_campaign, make_influencer):
    brand_id = make_brand()
    campaign_id = make_campaign(brand_id, name="Closing")
    influencer_id = make_influencer()

    campaign_service.close_campaign(campaign_id, brand_id)

    assert "Closing" not in open_names(influencer_id)


def test_completing_campaign_notifies_selected(make_brand, make_campaign, make_influencer, notifications):
    brand_id = make_brand()
    campaign_id = make_campaign(brand_id)
    selected, rejected = make_influencer(), make_influencer()
    with db.session() as session:
        session.add(CampaignApplication(campaign_id=campaign_id, influencer_id=selected, status=ApplicationStatus.SELECTED))
        session.add(CampaignApplication(campaign_id=campaign_id, influencer_id=rejected, status=ApplicationStatus.REJECTED))

    result = asyncio.run(campaign_service.update_campaign_status(campaign_id, brand_id, CampaignStatus.COMPLETED))

    assert result["status"] == "completed"
    assert notifications["push"].await_count == 1
    assert notifications["push"].await_args.args[0] == selected


# ==================== INVITATIONS ====================

def test_invite_influencers(make_brand, make_campaign, make_influencer, notifications):
    brand_id = make_brand()
    campaign_id = make_campaign(brand_id)
    first, second = make_influencer(), make_influencer()

    result = asyncio.run(campaign_service.invite_influencers(brand_id, campaign_id, [first, second], "Loved your reels"))

    assert result["invitationsSent"] == 2
    assert notifications["whatsapp"].await_count == 2
    assert notifications["push"].await_count == 2
    with db.session() as session:
        invitation = session.query(CampaignInvitation).first()
        assert invitation.status == InvitationStatus.PENDING
        assert invitation.expires_at > datetime.utcnow() + timedelta(days=6)

    # Re-inviting only the same people is refused
    with pytest.raises(BadRequestError, match="already been invited"):
        asyncio.run(campaign_service.invite_influencers(brand_id, campaign_id, [first]))


def test_invite_requires_complete_profiles(make_brand, make_campaign, make_influencer):
    brand_id = make_brand()
    campaign_id = make_campaign(brand_id)
    incomplete = make_influencer(complete=False)

    with pytest.raises(BadRequestError, match="not eligible"):
        asyncio.run(campaign_service.invite_influencers(brand_id, campaign_id, [incomplete]))


def test_invite_rejected_for_completed_campaign(make_brand, make_campaign, make_influencer):
    brand_id = make_brand()
    campaign_id = make_campaign(brand_id, status=CampaignStatus.COMPLETED)

    with pytest.raises(BadRequestError, match="this status"):
        asyncio.run(campaign_service.invite_influencers(brand_id, campaign_id, [make_influencer()]))


# ==================== DISCOVERY ====================

def test_open_campaigns_respect_access_rules(make_campaign, make_influencer, city):
    influencer_id = make_influencer()
    make_campaign(name="Open")
    make_campaign(name="Fresh", age_hours=2)
    make_campaign(name="Fresh Max", age_hours=2, is_max_campaign=True)
    make_campaign(name="Private", is_invite_only=True)
    make_campaign(name="Pune Only", city_ids=[city["other_id"]])
    make_campaign(name="Mumbai Only", city_ids=[city["id"]])
    make_campaign(name="Paused", status=CampaignStatus.PAUSED)

    assert open_names(influencer_id) == {"Open", "Fresh Max", "Mumbai Only"}


def test_pro_influencer_sees_early_access(make_campaign, make_influencer):
    influencer_id = make_influencer(is_pro=True, pro_expires_at=datetime.utcnow() + timedelta(days=30))
    make_campaign(name="Fresh", age_hours=2)

    assert open_names(influencer_id) == {"Fresh"}


def test_invited_campaign_is_visible(make_brand, make_campaign, make_influencer):
    brand_id = make_brand()
    influencer_id = make_influencer()
    campaign_id = make_campaign(brand_id, name="Private", is_invite_only=True, age_hours=1)
    asyncio.run(campaign_service.invite_influencers(brand_id, campaign_id, [influencer_id]))

    result = influencer_campaign_service.get_open_campaigns(influencer_id)

    assert result["campaigns"][0]["name"] == "Private"
    assert result["campaigns"][0]["isInvited"] is True


def test_discovery_filters(make_campaign, make_influencer, niches):
    influencer_id = make_influencer()
    make_campaign(name="Food Fest", niche_ids=[niches[1]], campaign_budget=5000)
    make_campaign(name="Travel Vlog", niche_ids=[niches[2]], campaign_budget=50000)

    assert open_names(influencer_id, CampaignFilters(niche_ids=[niches[1]])) == {"Food Fest"}
    assert open_names(influencer_id, CampaignFilters(min_budget=10000)) == {"Travel Vlog"}
    assert open_names(influencer_id, CampaignFilters(search="vlog")) == {"Travel Vlog"}


def test_discovery_paginates(make_campaign, make_influencer):
    influencer_id = make_influencer()
    for n in range(3):
        make_campaign(name=f"Campaign {n}", age_hours=48 + n)

    result = influencer_campaign_service.get_open_campaigns(influencer_id, CampaignFilters(page=2, limit=2))

    assert [c["name"] for c in result["campaigns"]] == ["Campaign 2"]
    assert result["total"] == 3


def test_discovery_without_home_city(make_campaign, make_influencer, city):
    influencer_id = make_influencer(city_id=None)
    make_campaign(name="Pune Only", city_ids=[city["other_id"]])
    make_campaign(name="Open")

    result = influencer_campaign_service.get_open_campaigns(influencer_id)

    assert {c["name"] for c in result["campaigns"]} == {"Pune Only", "Open"}
    assert result["total"] == 2


# ==================== APPLICATIONS ====================

def test_apply_spends_credit_and_notifies(make_campaign, make_influencer, notifications):
    influencer_id = make_influencer()
    campaign_id = make_campaign()

    result = apply(influencer_id, campaign_id)

    assert result["weeklyCreditsRemaining"] == settings.weekly_credits_limit - 1
    assert notifications["whatsapp"].await_count == 1
    # Influencer confirmation and brand alert
    assert notifications["push"].await_count == 2

    details = influencer_campaign_service.get_campaign_details(influencer_id, campaign_id)
    assert details["hasApplied"] is True
    assert details["applicationStatus"] == "applied"


def test_apply_twice_rejected(make_campaign, make_influencer):
    influencer_id = make_influencer()
    campaign_id = make_campaign()
    apply(influencer_id, campaign_id)

    with pytest.raises(BadRequestError, match="already applied"):
        apply(influencer_id, campaign_id)


def test_early_access_requires_pro(make_campaign, make_influencer):
    campaign_id = make_campaign(age_hours=3)
    regular = make_influencer()
    pro = make_influencer(is_pro=True, pro_expires_at=datetime.utcnow() + timedelta(days=30))

    with pytest.raises(ForbiddenError, match="early access period"):
        apply(regular, campaign_id)
    assert apply(pro, campaign_id)["success"] is True


def test_max_campaign_early_access_message(make_campaign, make_influencer):
    campaign_id = make_campaign(age_hours=3, is_max_campaign=True)

    with pytest.raises(ForbiddenError, match="This is a Max Campaign"):
        apply(make_influencer(), campaign_id)


def test_invite_only_requires_invitation(make_brand, make_campaign, make_influencer):
    brand_id = make_brand()
    campaign_id = make_campaign(brand_id, is_invite_only=True)
    influencer_id = make_influencer()

    with pytest.raises(ForbiddenError, match="invite-only"):
        apply(influencer_id, campaign_id)

    asyncio.run(campaign_service.invite_influencers(brand_id, campaign_id, [influencer_id]))
    apply(influencer_id, campaign_id)

    with db.session() as session:
        invitation = session.query(CampaignInvitation).one()
        assert invitation.status == InvitationStatus.ACCEPTED
        assert invitation.responded_at is not None


def test_apply_requires_complete_profile(make_campaign, make_influencer):
    influencer_id = make_influencer(complete=False)

    with pytest.raises(BadRequestError, match="profile must be completed"):
        apply(influencer_id, make_campaign())


def test_apply_without_credits(make_campaign, make_influencer):
    influencer_id = make_influencer(weekly_credits=0, weekly_credits_reset_date=datetime.utcnow() + timedelta(days=3))

    with pytest.raises(BadRequestError, match="used all your weekly credits"):
        apply(influencer_id, make_campaign())

    with db.session() as session:
        assert session.query(CampaignApplication).count() == 0


def test_apply_to_closed_campaign(make_campaign, make_influencer):
    campaign_id = make_campaign(status=CampaignStatus.PAUSED)

    with pytest.raises(NotFoundError):
        apply(make_influencer(), campaign_id)


def test_application_review_transitions(make_brand, make_campaign, make_influencer, notifications):
    brand_id = make_brand()
    campaign_id = make_campaign(brand_id)
    influencer_id = make_influencer()
    application_id = apply(influencer_id, campaign_id)["applicationId"]

    def move(status):
        return asyncio.run(campaign_service.update_application_status(
            campaign_id, application_id, brand_id, status, "Looks good"
        ))

    assert move(ApplicationStatus.UNDER_REVIEW)["status"] == "under_review"
    with pytest.raises(BadRequestError, match="only be moved to selected or rejected"):
        move(ApplicationStatus.APPLIED)
    selected = move(ApplicationStatus.SELECTED)

    assert selected["reviewNotes"] == "Looks good"
    assert selected["influencer"]["id"] == influencer_id
    assert notifications["push"].await_args.args[0] == influencer_id

    listing = campaign_service.get_campaign_applications(campaign_id, brand_id, ApplicationStatus.SELECTED)
    assert listing["total"] == 1


def test_withdraw_application(make_campaign, make_influencer):
    influencer_id = make_influencer()
    application_id = apply(influencer_id, make_campaign())["applicationId"]

    result = influencer_campaign_service.withdraw_application(influencer_id, application_id)
    assert result["application"]["status"] == "withdrawn"

    with pytest.raises(BadRequestError, match="Cannot withdraw an application that is withdrawn"):
        influencer_campaign_service.withdraw_application(influencer_id, application_id)


def test_withdraw_someone_elses_application(make_campaign, make_influencer):
    owner = make_influencer()
    application_id = apply(owner, make_campaign())["applicationId"]

    with pytest.raises(NotFoundError):
        influencer_campaign_service.withdraw_application(make_influencer(), application_id)


def test_my_applications(make_campaign, make_influencer):
    influencer_id = make_influencer()
    apply(influencer_id, make_campaign(name="First"))
    apply(influencer_id, make_campaign(name="Second"))

    result = influencer_campaign_service.get_my_applications(influencer_id)

    assert {a["campaign"]["name"] for a in result["applications"]} == {"First", "Second"}
    assert result["applications"][0]["campaign"]["brand"]["brandName"].startswith("Brand")
