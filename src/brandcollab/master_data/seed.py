"""Initial reference data: India, its main cities, company types and niches."""

from brandcollab.logging_config import get_logger
from brandcollab.storage.models import City, CompanyType, Country, Niche

logger = get_logger(__name__)

INDIA = {"name": "India", "code": "IN"}

# (name, state, tier)
INDIAN_CITIES = [
    ("Mumbai", "Maharashtra", 1),
    ("Delhi", "Delhi", 1),
    ("Bengaluru", "Karnataka", 1),
    ("Hyderabad", "Telangana", 1),
    ("Chennai", "Tamil Nadu", 1),
    ("Kolkata", "West Bengal", 1),
    ("Pune", "Maharashtra", 1),
    ("Ahmedabad", "Gujarat", 1),
    ("Jaipur", "Rajasthan", 2),
    ("Lucknow", "Uttar Pradesh", 2),
    ("Chandigarh", "Chandigarh", 2),
    ("Kochi", "Kerala", 2),
    ("Indore", "Madhya Pradesh", 2),
    ("Surat", "Gujarat", 2),
    ("Nagpur", "Maharashtra", 2),
    ("Coimbatore", "Tamil Nadu", 2),
    ("Bhopal", "Madhya Pradesh", 2),
    ("Visakhapatnam", "Andhra Pradesh", 2),
    ("Guwahati", "Assam", 3),
    ("Dehradun", "Uttarakhand", 3),
    ("Mysuru", "Karnataka", 3),
    ("Udaipur", "Rajasthan", 3),
]

COMPANY_TYPES = [
    ("Private Limited Company", "Pvt. Ltd. registered under the Companies Act"),
    ("Public Limited Company", "Ltd. company with publicly traded shares"),
    ("Limited Liability Partnership", "LLP"),
    ("Partnership Firm", None),
    ("Sole Proprietorship", None),
    ("One Person Company", "OPC"),
    ("Other", None),
]

# (name, icon)
NICHES = [
    ("Fashion", "fashion.svg"),
    ("Beauty", "beauty.svg"),
    ("Lifestyle", "lifestyle.svg"),
    ("Food", "food.svg"),
    ("Travel", "travel.svg"),
    ("Fitness", "fitness.svg"),
    ("Technology", "technology.svg"),
    ("Gaming", "gaming.svg"),
    ("Finance", "finance.svg"),
    ("Education", "education.svg"),
    ("Parenting", "parenting.svg"),
    ("Entertainment", "entertainment.svg"),
    ("Comedy", "comedy.svg"),
    ("Music", "music.svg"),
    ("Sports", "sports.svg"),
    ("Automobile", "automobile.svg"),
]


def seed_master_data(session) -> dict:
    """Insert missing reference rows; existing rows are left untouched.

    Returns:
        Number of rows inserted per table
    """
    counts = {"countries": 0, "cities": 0, "companyTypes": 0, "niches": 0}

    india = session.query(Country).filter(Country.code == INDIA["code"]).first()
    if not india:
        india = Country(**INDIA)
        session.add(india)
        session.flush()
        counts["countries"] += 1

    existing_cities = {
        name for (name,) in session.query(City.name).filter(City.country_id == india.id).all()
    }
    for name, state, tier in INDIAN_CITIES:
        if name not in existing_cities:
            session.add(City(name=name, state=state, tier=tier, country_id=india.id))
            counts["cities"] += 1

    existing_types = {name for (name,) in session.query(CompanyType.name).all()}
    for order, (name, description) in enumerate(COMPANY_TYPES, start=1):
        if name not in existing_types:
            session.add(CompanyType(name=name, description=description, sort_order=order))
            counts["companyTypes"] += 1

    existing_niches = {name for (name,) in session.query(Niche.name).all()}
    for name, icon in NICHES:
        if name not in existing_niches:
            session.add(Niche(name=name, icon=icon))
            counts["niches"] += 1

    logger.info("master_data_seeded", **counts)
    return counts
