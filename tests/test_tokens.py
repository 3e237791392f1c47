from datetime import datetime, timedelta

import pytest

from brandcollab.auth.models import AuthSession
from brandcollab.auth.tokens import token_service
from brandcollab.errors import ForbiddenError, UnauthorizedError
from brandcollab.storage.db import db
from brandcollab.storage.models import UserType


def test_password_hash_roundtrip():
    hashed = token_service.hash_password("Secret@123")
    assert hashed != "Secret@123"
    assert token_service.verify_password("Secret@123", hashed)
    assert not token_service.verify_password("Secret@124", hashed)


def test_access_token_payload(make_influencer):
    influencer_id = make_influencer()
    tokens = token_service.issue_tokens(influencer_id, UserType.INFLUENCER, True)

    payload = token_service.decode(tokens["accessToken"])
    assert payload["id"] == influencer_id
    assert payload["userType"] == "influencer"
    assert payload["profileCompleted"] is True
    assert "type" not in payload


def test_refresh_rotates_session(make_influencer):
    influencer_id = make_influencer()
    first = token_service.issue_tokens(influencer_id, UserType.INFLUENCER, True)

    second = token_service.refresh(first["refreshToken"])

    assert second["refreshToken"] != first["refreshToken"]
    with db.session() as session:
        sessions = session.query(AuthSession).order_by(AuthSession.id).all()
        assert len(sessions) == 2
        assert sessions[0].revoked_at is not None
        assert sessions[1].revoked_at is None


def test_reusing_rotated_refresh_token_is_forbidden(make_influencer):
    influencer_id = make_influencer()
    tokens = token_service.issue_tokens(influencer_id, UserType.INFLUENCER, True)
    token_service.refresh(tokens["refreshToken"])

    with pytest.raises(ForbiddenError):
        token_service.refresh(tokens["refreshToken"])


def test_access_token_cannot_refresh(make_influencer):
    influencer_id = make_influencer()
    tokens = token_service.issue_tokens(influencer_id, UserType.INFLUENCER, True)

    with pytest.raises(UnauthorizedError):
        token_service.refresh(tokens["accessToken"])


def test_expired_session_cannot_refresh(make_influencer):
    influencer_id = make_influencer()
    tokens = token_service.issue_tokens(influencer_id, UserType.INFLUENCER, True)
    with db.session() as session:
        session.query(AuthSession).update({AuthSession.expires_at: datetime.utcnow() - timedelta(minutes=1)})

    with pytest.raises(UnauthorizedError, match="expired"):
        token_service.refresh(tokens["refreshToken"])


def test_logout_revokes_single_session(make_influencer):
    influencer_id = make_influencer()
    kept = token_service.issue_tokens(influencer_id, UserType.INFLUENCER, True)
    dropped = token_service.issue_tokens(influencer_id, UserType.INFLUENCER, True)

    token_service.logout(dropped["refreshToken"])

    with pytest.raises(ForbiddenError):
        token_service.refresh(dropped["refreshToken"])
    assert token_service.refresh(kept["refreshToken"])["accessToken"]


def test_logout_all_revokes_only_that_account(make_influencer, make_brand):
    influencer_id = make_influencer()
    brand_id = make_brand()
    token_service.issue_tokens(influencer_id, UserType.INFLUENCER, True)
    token_service.issue_tokens(influencer_id, UserType.INFLUENCER, True)
    brand_tokens = token_service.issue_tokens(brand_id, UserType.BRAND, False)

    assert token_service.logout_all(influencer_id, UserType.INFLUENCER) == 2
    assert token_service.refresh(brand_tokens["refreshToken"])["accessToken"]


def test_verification_key_bound_to_phone():
    key = token_service.create_verification_key("+919876543210")

    assert token_service.verify_verification_key(key, "+919876543210")
    assert not token_service.verify_verification_key(key, "+919876543211")
    assert not token_service.verify_verification_key("garbage", "+919876543210")
