from datetime import datetime, timedelta

from brandcollab.auth.models import Gender, Influencer
from brandcollab.campaign.models import Campaign, CampaignType
from brandcollab.influencer.eligibility import CampaignFilters, eligibility_clause, in_early_access
from brandcollab.storage.db import db

NOW = datetime(2026, 10, 18, 12, 0)


def eligible_names(influencer_id: int, filters: CampaignFilters | None = None, invited_ids=()) -> set[str]:
    with db.session() as session:
        influencer = session.get(Influencer, influencer_id)
        clause = eligibility_clause(
            session.get_bind().dialect.name, influencer, filters or CampaignFilters(), set(invited_ids)
        )
        return {c.name for c in session.query(Campaign).filter(clause)}


def test_early_access_window():
    assert in_early_access(Campaign(created_at=NOW - timedelta(hours=23)), NOW)
    assert in_early_access(Campaign(created_at=NOW - timedelta(hours=24)), NOW)
    assert not in_early_access(Campaign(created_at=NOW - timedelta(hours=25)), NOW)


def test_early_access_and_invite_only(make_campaign, make_influencer):
    make_campaign(name="Fresh", age_hours=2)
    make_campaign(name="Fresh Max", age_hours=2, is_max_campaign=True)
    make_campaign(name="Settled", age_hours=48)
    make_campaign(name="Private", is_invite_only=True)
    regular = make_influencer()
    pro = make_influencer(is_pro=True, pro_expires_at=datetime.utcnow() + timedelta(days=10))
    lapsed = make_influencer(is_pro=True, pro_expires_at=datetime.utcnow() - timedelta(days=1))

    assert eligible_names(regular) == {"Fresh Max", "Settled"}
    assert eligible_names(pro) == {"Fresh", "Fresh Max", "Settled"}
    assert eligible_names(lapsed) == {"Fresh Max", "Settled"}


def test_niche_overlap(make_campaign, make_influencer, niches):
    fashion, food, travel = niches
    make_campaign(name="Fashion Food", niche_ids=[fashion, food])
    make_campaign(name="Travel", niche_ids=[travel])
    make_campaign(name="Untargeted", niche_ids=None)
    make_campaign(name="Empty", niche_ids=[])
    influencer_id = make_influencer()

    assert eligible_names(influencer_id, CampaignFilters(niche_ids=[food, 99])) == {
        "Fashion Food", "Untargeted", "Empty",
    }
    assert eligible_names(influencer_id) == {"Fashion Food", "Travel", "Untargeted", "Empty"}


def test_age_bounds(make_campaign, make_influencer):
    make_campaign(name="Twenties", is_open_to_all_ages=False, min_age=21, max_age=30)
    make_campaign(name="Thirties", is_open_to_all_ages=False, min_age=30, max_age=39)
    make_campaign(name="Teens", is_open_to_all_ages=False, max_age=19)

    assert eligible_names(make_influencer()) == {"Twenties"}
    # Unknown age is not narrowed
    assert eligible_names(make_influencer(date_of_birth=None)) == {"Twenties", "Thirties", "Teens"}


def test_gender_preferences(make_campaign, make_influencer):
    make_campaign(name="Women", is_open_to_all_genders=False, gender_preferences=["female"])
    make_campaign(name="Men", is_open_to_all_genders=False, gender_preferences=["male"])
    make_campaign(name="Unset", is_open_to_all_genders=False, gender_preferences=[])

    assert eligible_names(make_influencer()) == {"Women", "Unset"}
    assert eligible_names(make_influencer(gender=Gender.MALE)) == {"Men", "Unset"}
    assert eligible_names(make_influencer(gender=None)) == {"Women", "Men", "Unset"}


def test_location(make_campaign, make_influencer, city):
    make_campaign(name="Mumbai", city_ids=[city["id"]])
    make_campaign(name="Pune", city_ids=[city["other_id"]])
    make_campaign(name="Everywhere")

    assert eligible_names(make_influencer()) == {"Mumbai", "Everywhere"}
    assert eligible_names(make_influencer(city_id=city["other_id"])) == {"Pune", "Everywhere"}


def test_influencer_without_city_sees_local_campaigns(make_campaign, make_influencer, city):
    make_campaign(name="Mumbai", city_ids=[city["id"]])
    make_campaign(name="Everywhere")

    assert eligible_names(make_influencer(city_id=None)) == {"Mumbai", "Everywhere"}


def test_requested_cities(make_campaign, make_influencer, city):
    make_campaign(name="Mumbai", city_ids=[city["id"]])
    make_campaign(name="Everywhere")
    influencer_id = make_influencer(city_id=None)

    assert eligible_names(influencer_id, CampaignFilters(city_ids=[city["other_id"]])) == {"Everywhere"}
    assert eligible_names(influencer_id, CampaignFilters(city_ids=[city["id"], 999])) == {"Mumbai", "Everywhere"}


def test_budget_range(make_campaign, make_influencer):
    make_campaign(name="Small", campaign_budget=5000)
    make_campaign(name="Large", campaign_budget=50000)
    make_campaign(name="Barter", campaign_budget=None)
    influencer_id = make_influencer()

    assert eligible_names(influencer_id, CampaignFilters(min_budget=10000)) == {"Large"}
    assert eligible_names(influencer_id, CampaignFilters(max_budget=10000)) == {"Small"}
    assert eligible_names(influencer_id) == {"Small", "Large", "Barter"}


def test_campaign_type(make_campaign, make_influencer):
    make_campaign(name="Paid")
    make_campaign(name="Barter", type=CampaignType.BARTER)

    assert eligible_names(make_influencer(), CampaignFilters(campaign_type=CampaignType.BARTER)) == {"Barter"}


def test_invitation_overrides_every_rule(make_campaign, make_influencer, city, niches):
    blocked_id = make_campaign(
        name="Blocked",
        is_invite_only=True,
        age_hours=1,
        city_ids=[city["other_id"]],
        niche_ids=[niches[2]],
        type=CampaignType.BARTER,
    )
    influencer_id = make_influencer()
    filters = CampaignFilters(niche_ids=[niches[0]], campaign_type=CampaignType.PAID)

    assert eligible_names(influencer_id, filters, invited_ids={blocked_id}) == {"Blocked"}
    assert eligible_names(influencer_id, filters) == set()
