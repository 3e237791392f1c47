"""Reference data (countries, cities, company types, niches) and niche selection rules."""

from brandcollab.auth.models import CustomNiche
from brandcollab.errors import BadRequestError, NotFoundError
from brandcollab.logging_config import get_logger
from brandcollab.storage.db import db
from brandcollab.storage.models import City, CompanyType, Country, Niche, UserType

logger = get_logger(__name__)

MAX_NICHES = 5
CITY_SEARCH_LIMIT = 20


# ==================== NICHE RULES ====================

def _custom_name(item) -> str:
    name = item.get("name") if isinstance(item, dict) else item
    return (name or "").strip()


def check_niche_selection(niche_ids: list[int] | None, custom_niches: list | None) -> None:
    """Validate the combined niche selection.

    Raises:
        BadRequestError: More than five niches or repeated custom names
    """
    niche_ids = niche_ids or []
    custom_niches = custom_niches or []

    if len(niche_ids) + len(custom_niches) > MAX_NICHES:
        raise BadRequestError(f"You can select a maximum of {MAX_NICHES} niches in total")

    names = [_custom_name(c).lower() for c in custom_niches]
    if any(not n for n in names):
        raise BadRequestError("Custom niche name is required")
    if len(set(names)) != len(names):
        raise BadRequestError("Custom niche names must be unique")


def resolve_niches(session, niche_ids: list[int] | None) -> list[Niche]:
    """Load active niches by id.

    Raises:
        BadRequestError: If any id is unknown or inactive
    """
    ids = list(dict.fromkeys(niche_ids or []))
    if not ids:
        return []

    niches = session.query(Niche).filter(
        Niche.id.in_(ids),
        Niche.is_active == True,  # noqa: E712
    ).all()

    found = {n.id for n in niches}
    missing = [i for i in ids if i not in found]
    if missing:
        raise BadRequestError(f"Invalid niche IDs: {', '.join(str(i) for i in missing)}")
    return niches


def replace_custom_niches(session, user_type: UserType, user_id: int, custom_niches: list | None) -> list[CustomNiche]:
    """Bulk replace a user's custom niches."""
    session.query(CustomNiche).filter(
        CustomNiche.user_type == user_type,
        CustomNiche.user_id == user_id,
    ).delete(synchronize_session=False)

    created = []
    for item in custom_niches or []:
        niche = CustomNiche(
            user_type=user_type,
            user_id=user_id,
            name=_custom_name(item),
            description=item.get("description") if isinstance(item, dict) else None,
        )
        session.add(niche)
        created.append(niche)
    session.flush()
    return created


def get_custom_niches(session, user_type: UserType, user_id: int) -> list[dict]:
    rows = session.query(CustomNiche).filter(
        CustomNiche.user_type == user_type,
        CustomNiche.user_id == user_id,
        CustomNiche.is_active == True,  # noqa: E712
    ).order_by(CustomNiche.id).all()
    return [r.to_dict() for r in rows]


def count_custom_niches(session, user_type: UserType, user_id: int) -> int:
    return session.query(CustomNiche).filter(
        CustomNiche.user_type == user_type,
        CustomNiche.user_id == user_id,
        CustomNiche.is_active == True,  # noqa: E712
    ).count()


# ==================== LOOKUPS ====================

class MasterDataService:
    """Read-only lookups for onboarding forms and campaign targeting."""

    def __init__(self):
        self.logger = get_logger(__name__)

    def get_countries(self) -> list[dict]:
        with db.session() as session:
            rows = session.query(Country).filter(
                Country.is_active == True,  # noqa: E712
            ).order_by(Country.name).all()
            return [{"id": c.id, "name": c.name, "code": c.code} for c in rows]

    def get_cities(self, country_id: int) -> list[dict]:
        with db.session() as session:
            if not session.get(Country, country_id):
                raise NotFoundError("Country not found")
            rows = session.query(City).filter(City.country_id == country_id).order_by(City.name).all()
            return [c.to_dict() for c in rows]

    def get_company_types(self) -> list[dict]:
        with db.session() as session:
            rows = session.query(CompanyType).filter(
                CompanyType.is_active == True,  # noqa: E712
            ).order_by(CompanyType.sort_order, CompanyType.name).all()
            return [{"id": t.id, "name": t.name, "description": t.description} for t in rows]

    def get_niches(self) -> list[dict]:
        with db.session() as session:
            rows = session.query(Niche).filter(
                Niche.is_active == True,  # noqa: E712
            ).order_by(Niche.name).all()
            return [n.to_dict() for n in rows]

    def search_cities(self, query: str, limit: int = CITY_SEARCH_LIMIT) -> list[dict]:
        """Cities whose name contains the query, metros first."""
        query = (query or "").strip()
        if len(query) < 2:
            return []

        with db.session() as session:
            rows = session.query(City).filter(
                City.name.ilike(f"%{query}%"),
            ).order_by(City.tier.asc(), City.name.asc()).limit(limit).all()
            return [c.to_dict() for c in rows]

    def get_popular_cities(self) -> list[dict]:
        """Tier 1 cities."""
        with db.session() as session:
            rows = session.query(City).filter(City.tier == 1).order_by(City.name).all()
            return [c.to_dict() for c in rows]


master_data_service = MasterDataService()
