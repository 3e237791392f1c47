"""Which campaigns an influencer may see and apply to.

Every rule is a SQL expression over ``Campaign`` so discovery filters and
paginates in the database. Niche and gender targeting live in JSON array
columns; SQLite reads them with ``json_each`` and PostgreSQL with jsonb
containment.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta

from sqlalchemy import and_, case, cast, func, or_, select, true
from sqlalchemy.dialects.postgresql import JSONB

from brandcollab.auth.models import Influencer
from brandcollab.campaign.models import Campaign, CampaignCity, CampaignType
from brandcollab.payments.stripe_service import pro_status

EARLY_ACCESS_HOURS = 24


@dataclass
class CampaignFilters:
    """Query filters for campaign discovery."""

    search: str | None = None
    niche_ids: list[int] = field(default_factory=list)
    city_ids: list[int] = field(default_factory=list)
    campaign_type: CampaignType | None = None
    min_budget: float | None = None
    max_budget: float | None = None
    page: int = 1
    limit: int = 10


def in_early_access(campaign: Campaign, now: datetime | None = None) -> bool:
    """Whether the campaign is still inside its Pro-only window."""
    now = now or datetime.utcnow()
    return campaign.created_at is not None and now - campaign.created_at <= timedelta(hours=EARLY_ACCESS_HOURS)


# ==================== JSON ARRAYS ====================

def json_array_empty(dialect: str, column):
    """NULL, JSON null and [] all count as no restriction."""
    if dialect == "postgresql":
        doc = cast(column, JSONB)
        return func.coalesce(func.jsonb_array_length(case((func.jsonb_typeof(doc) == "array", doc))), 0) == 0
    return func.coalesce(func.json_array_length(column), 0) == 0


def json_array_overlaps(dialect: str, column, values: list):
    if dialect == "postgresql":
        return or_(*(cast(column, JSONB).contains([v]) for v in values))
    elements = func.json_each(column).table_valued("value")
    return select(elements.c.value).where(elements.c.value.in_(values)).exists()


# ==================== RULES ====================

def accessible(is_pro: bool, now: datetime):
    """Invite-only campaigns are hidden. Non-Pro influencers see max
    campaigns at once and the rest after the early access window."""
    rule = Campaign.is_invite_only == False  # noqa: E712
    if is_pro:
        return rule
    cutoff = now - timedelta(hours=EARLY_ACCESS_HOURS)
    return and_(
        rule,
        or_(Campaign.is_max_campaign == True, Campaign.created_at.is_(None), Campaign.created_at < cutoff),  # noqa: E712
    )


def matches_niches(dialect: str, niche_ids: list[int]):
    if not niche_ids:
        return true()
    return or_(json_array_empty(dialect, Campaign.niche_ids), json_array_overlaps(dialect, Campaign.niche_ids, niche_ids))


def matches_age(age: int | None):
    if age is None:
        return true()
    return or_(
        Campaign.is_open_to_all_ages == True,  # noqa: E712
        and_(
            or_(Campaign.min_age.is_(None), Campaign.min_age <= age),
            or_(Campaign.max_age.is_(None), Campaign.max_age >= age),
        ),
    )


def matches_gender(dialect: str, gender: str | None):
    if not gender:
        return true()
    return or_(
        Campaign.is_open_to_all_genders == True,  # noqa: E712
        json_array_empty(dialect, Campaign.gender_preferences),
        json_array_overlaps(dialect, Campaign.gender_preferences, [gender]),
    )


def matches_cities(city_ids: list[int]):
    """Pan-India campaigns match any city."""
    if not city_ids:
        return true()
    return or_(Campaign.is_pan_india == True, Campaign.cities.any(CampaignCity.city_id.in_(city_ids)))  # noqa: E712


def matches_location(city_id: int | None):
    # No home city yet: location does not narrow the list
    return matches_cities([city_id] if city_id is not None else [])


def matches_budget(min_budget: float | None, max_budget: float | None):
    rules = []
    if min_budget is not None:
        rules.append(Campaign.campaign_budget >= min_budget)
    if max_budget is not None:
        rules.append(Campaign.campaign_budget <= max_budget)
    return and_(true(), *rules)


def eligibility_clause(
    dialect: str,
    influencer: Influencer,
    filters: CampaignFilters,
    invited_ids: set[int],
    now: datetime | None = None,
):
    """Full discovery rule. Invitations override targeting and early access."""
    now = now or datetime.utcnow()
    niche_ids = filters.niche_ids or [n.id for n in influencer.niches]
    gender = influencer.gender.value if influencer.gender else None

    rules = [
        accessible(pro_status(influencer, now)["isPro"], now),
        matches_niches(dialect, niche_ids),
        matches_age(influencer.age),
        matches_gender(dialect, gender),
        matches_cities(filters.city_ids),
        matches_location(influencer.city_id),
        matches_budget(filters.min_budget, filters.max_budget),
    ]
    if filters.campaign_type is not None:
        rules.append(Campaign.type == filters.campaign_type)

    if not invited_ids:
        return and_(*rules)
    return or_(Campaign.id.in_(invited_ids), and_(*rules))
