import os

# Must be set before brandcollab.settings is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("USE_FIXED_OTP", "true")
os.environ.setdefault("FIXED_OTP", "123456")
os.environ.setdefault("ENV", "test")

from datetime import date, datetime, timedelta
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from brandcollab.admin.models import Admin, AdminRole, AdminStatus
from brandcollab.auth.models import Brand, Gender, Influencer
from brandcollab.auth.otp import hash_identifier
from brandcollab.auth.tokens import token_service
from brandcollab.campaign.models import (
    Campaign,
    CampaignCity,
    CampaignStatus,
    CampaignType,
)
from brandcollab.email.service import email_service
from brandcollab.notifications.push import push_service
from brandcollab.notifications.whatsapp import whatsapp_service
from brandcollab.storage.db import db
from brandcollab.storage.models import City, Country, Niche, UserType

ADMIN_PASSWORD = "Admin@12345"


@pytest.fixture(autouse=True)
def database():
    """Fresh in-memory database for every test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    db.bind(engine)
    db.create_tables()
    yield db
    engine.dispose()


@pytest.fixture(autouse=True)
def notifications(monkeypatch):
    """Record outgoing notifications instead of calling providers."""
    sent = {
        "whatsapp": AsyncMock(return_value=True),
        "push": AsyncMock(return_value=True),
        "email": AsyncMock(return_value=True),
    }
    monkeypatch.setattr(whatsapp_service, "_send", sent["whatsapp"])
    monkeypatch.setattr(push_service, "send_to_user", sent["push"])
    monkeypatch.setattr(email_service, "_send_email", sent["email"])
    return sent


@pytest.fixture
def client():
    from brandcollab.api.main import create_app

    with TestClient(create_app()) as test_client:
        yield test_client


@pytest.fixture
def city():
    with db.session() as session:
        india = Country(name="India", code="IN")
        session.add(india)
        session.flush()
        mumbai = City(name="Mumbai", state="Maharashtra", tier=1, country_id=india.id)
        pune = City(name="Pune", state="Maharashtra", tier=1, country_id=india.id)
        session.add_all([mumbai, pune])
        session.flush()
        return {"country_id": india.id, "id": mumbai.id, "other_id": pune.id}


@pytest.fixture
def niches():
    with db.session() as session:
        rows = [Niche(name="Fashion"), Niche(name="Food"), Niche(name="Travel")]
        session.add_all(rows)
        session.flush()
        return [n.id for n in rows]


@pytest.fixture
def make_influencer(city):
    """Create an influencer; ``complete=True`` gives an application-ready profile."""
    counter = {"n": 0}

    def factory(complete: bool = True, **overrides) -> int:
        counter["n"] += 1
        n = counter["n"]
        phone = f"+9198765{n:05d}"
        values = dict(
            phone=phone,
            phone_hash=hash_identifier(phone),
            is_phone_verified=True,
            name=f"Creator {n}",
            username=f"creator{n}",
            is_active=True,
        )
        if complete:
            whatsapp = f"+9197654{n:05d}"
            values.update(
                bio="Food and travel stories",
                profile_image="https://cdn.example.com/p.jpg",
                profile_headline="Storyteller",
                country_id=city["country_id"],
                city_id=city["id"],
                whatsapp_number=whatsapp,
                whatsapp_hash=hash_identifier(whatsapp),
                is_whatsapp_verified=True,
                instagram_url="https://instagram.com/creator",
                collaboration_costs={"instagram": {"reel": 5000}},
                is_profile_completed=True,
                gender=Gender.FEMALE,
                date_of_birth=date(1998, 5, 17),
            )
        values.update(overrides)
        with db.session() as session:
            influencer = Influencer(**values)
            session.add(influencer)
            session.flush()
            return influencer.id

    return factory


@pytest.fixture
def make_brand():
    counter = {"n": 0}

    def factory(**overrides) -> int:
        counter["n"] += 1
        values = dict(
            email=f"brand{counter['n']}@example.com",
            password_hash=token_service.hash_password("Brand@12345"),
            is_email_verified=True,
            brand_name=f"Brand {counter['n']}",
            username=f"brand{counter['n']}",
            is_active=True,
        )
        values.update(overrides)
        with db.session() as session:
            brand = Brand(**values)
            session.add(brand)
            session.flush()
            return brand.id

    return factory


@pytest.fixture
def make_campaign(make_brand, city):
    """Create an active campaign; by default out of early access and pan-India."""

    def factory(brand_id: int | None = None, age_hours: int = 48, city_ids=None, **overrides) -> int:
        values = dict(
            brand_id=brand_id or make_brand(),
            name="Summer Lookbook",
            description="Show our summer collection",
            status=CampaignStatus.ACTIVE,
            type=CampaignType.PAID,
            is_pan_india=city_ids is None,
            is_open_to_all_ages=True,
            is_open_to_all_genders=True,
            campaign_budget=20000,
            number_of_influencers=3,
            is_active=True,
            created_at=datetime.utcnow() - timedelta(hours=age_hours),
        )
        values.update(overrides)
        with db.session() as session:
            campaign = Campaign(**values)
            campaign.cities = [CampaignCity(city_id=c) for c in (city_ids or [])]
            session.add(campaign)
            session.flush()
            return campaign.id

    return factory


@pytest.fixture
def make_admin():
    def factory(role: AdminRole = AdminRole.SUPER_ADMIN, email: str = "admin@example.com") -> int:
        with db.session() as session:
            admin = Admin(
                name="Admin",
                email=email,
                password_hash=token_service.hash_password(ADMIN_PASSWORD),
                role=role,
                status=AdminStatus.ACTIVE,
            )
            session.add(admin)
            session.flush()
            return admin.id

    return factory


@pytest.fixture
def auth_header():
    """Bearer header for an account."""

    def build(user_id: int, user_type: UserType, profile_completed: bool = True) -> dict:
        token = token_service.create_access_token(user_id, user_type, profile_completed)
        return {"Authorization": f"Bearer {token}"}

    return build
