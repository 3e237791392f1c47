from datetime import datetime, timedelta

from brandcollab.notifications.device_tokens import MAX_DEVICES_PER_USER, device_token_service
from brandcollab.notifications.models import DeviceOs, DeviceToken
from brandcollab.storage.db import db
from brandcollab.storage.models import UserType


def register(user_id: int, token: str, user_type: UserType = UserType.INFLUENCER, **extra) -> dict:
    return device_token_service.add_or_update(user_id, user_type, token, **extra)


def test_register_and_list():
    register(1, "tok-a", device_name="Pixel 8", device_os=DeviceOs.ANDROID)

    devices = device_token_service.get_user_devices(1, UserType.INFLUENCER)

    assert devices[0]["deviceName"] == "Pixel 8"
    assert devices[0]["deviceOs"] == "android"
    assert device_token_service.get_user_tokens(1, UserType.INFLUENCER) == ["tok-a"]


def test_known_token_moves_to_new_owner():
    register(1, "tok-a", device_name="Pixel 8")
    register(7, "tok-a", UserType.BRAND)

    assert device_token_service.count(1, UserType.INFLUENCER) == 0
    assert device_token_service.count(7, UserType.BRAND) == 1
    # Unchanged fields are kept
    assert device_token_service.get_user_devices(7, UserType.BRAND)[0]["deviceName"] == "Pixel 8"


def test_oldest_device_evicted_at_limit():
    for n in range(MAX_DEVICES_PER_USER):
        register(1, f"tok-{n}")
    with db.session() as session:
        session.query(DeviceToken).filter(DeviceToken.fcm_token == "tok-0").update(
            {DeviceToken.last_used_at: datetime.utcnow() - timedelta(days=3)}
        )

    register(1, "tok-new")

    tokens = device_token_service.get_user_tokens(1, UserType.INFLUENCER)
    assert len(tokens) == MAX_DEVICES_PER_USER
    assert "tok-0" not in tokens
    assert "tok-new" in tokens


def test_same_id_different_account_types_are_separate():
    register(1, "tok-influencer")
    register(1, "tok-brand", UserType.BRAND)

    assert device_token_service.remove_all(1, UserType.INFLUENCER) == 1
    assert device_token_service.get_user_tokens(1, UserType.BRAND) == ["tok-brand"]


def test_remove_token_checks_owner():
    register(1, "tok-a")

    assert device_token_service.remove_token("tok-a", user_id=2) is False
    assert device_token_service.remove_token("tok-a", user_id=1) is True


def test_remove_reported_tokens():
    register(1, "tok-a")
    register(1, "tok-b")

    assert device_token_service.remove_tokens(["tok-a", "tok-unknown"]) == 1
    assert device_token_service.remove_tokens([]) == 0


def test_cleanup_old_tokens():
    register(1, "tok-stale")
    register(1, "tok-fresh")
    with db.session() as session:
        session.query(DeviceToken).filter(DeviceToken.fcm_token == "tok-stale").update(
            {DeviceToken.last_used_at: datetime.utcnow() - timedelta(days=120)}
        )

    assert device_token_service.cleanup_old_tokens() == 1
    assert device_token_service.get_user_tokens(1, UserType.INFLUENCER) == ["tok-fresh"]
