from datetime import datetime, timedelta

from typer.testing import CliRunner

from brandcollab.admin.models import Admin, AdminRole
from brandcollab.auth.models import Influencer
from brandcollab.cli import app
from brandcollab.master_data.seed import COMPANY_TYPES, INDIAN_CITIES, NICHES
from brandcollab.storage.db import db
from brandcollab.storage.models import City, CompanyType, Niche

runner = CliRunner()


def test_seed_is_idempotent():
    first = runner.invoke(app, ["seed"])
    second = runner.invoke(app, ["seed"])

    assert first.exit_code == 0
    assert second.exit_code == 0
    with db.session() as session:
        assert session.query(City).count() == len(INDIAN_CITIES)
        assert session.query(CompanyType).count() == len(COMPANY_TYPES)
        assert session.query(Niche).count() == len(NICHES)


def test_create_admin():
    result = runner.invoke(
        app,
        ["create-admin", "-e", "ops@example.com", "-n", "Ops", "-r", AdminRole.PROFILE_REVIEWER.value],
        input="Ops@123456\nOps@123456\n",
    )

    assert result.exit_code == 0, result.output
    with db.session() as session:
        admin = session.query(Admin).one()
        assert admin.role == AdminRole.PROFILE_REVIEWER


def test_create_admin_rejects_weak_password():
    result = runner.invoke(app, ["create-admin", "-e", "ops@example.com", "-n", "Ops"], input="weak\nweak\n")

    assert result.exit_code == 1
    with db.session() as session:
        assert session.query(Admin).count() == 0


def test_expire_subscriptions(make_influencer):
    lapsed = make_influencer(is_pro=True, pro_expires_at=datetime.utcnow() - timedelta(hours=1))
    active = make_influencer(is_pro=True, pro_expires_at=datetime.utcnow() + timedelta(days=5))

    result = runner.invoke(app, ["expire-subscriptions"])

    assert result.exit_code == 0
    assert "1 Pro subscription(s) expired" in result.output
    with db.session() as session:
        assert session.get(Influencer, lapsed).is_pro is False
        assert session.get(Influencer, active).is_pro is True


def test_init_with_drop_recreates_tables(make_influencer):
    make_influencer()

    result = runner.invoke(app, ["init", "--drop"])

    assert result.exit_code == 0
    with db.session() as session:
        assert session.query(Influencer).count() == 0
