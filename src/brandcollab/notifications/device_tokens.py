"""FCM device token registry."""

from datetime import datetime, timedelta

from brandcollab.logging_config import get_logger
from brandcollab.notifications.models import DeviceOs, DeviceToken
from brandcollab.storage.db import db
from brandcollab.storage.models import UserType

MAX_DEVICES_PER_USER = 5
INACTIVE_TOKEN_DAYS = 90


class DeviceTokenService:
    """Keeps at most five push tokens per user, most recently used first."""

    def __init__(self):
        self.logger = get_logger(__name__)

    def add_or_update(
        self,
        user_id: int,
        user_type: UserType,
        fcm_token: str,
        device_id: str | None = None,
        device_name: str | None = None,
        device_os: DeviceOs | None = None,
        app_version: str | None = None,
    ) -> dict:
        """Register a device token, evicting the oldest device at the limit.

        A token already known is re-assigned to this user and touched.

        Args:
            user_id: Account id
            user_type: Account kind
            fcm_token: Firebase registration token
            device_id: Client device id
            device_name: Human readable device name
            device_os: ios or android
            app_version: Client app version

        Returns:
            Device info dict
        """
        with db.session() as session:
            existing = session.query(DeviceToken).filter(DeviceToken.fcm_token == fcm_token).first()

            if existing:
                existing.user_id = user_id
                existing.user_type = user_type
                existing.device_id = device_id or existing.device_id
                existing.device_name = device_name or existing.device_name
                existing.device_os = device_os or existing.device_os
                existing.app_version = app_version or existing.app_version
                existing.last_used_at = datetime.utcnow()
                session.flush()
                self.logger.debug("device_token_refreshed", user_id=user_id, user_type=user_type.value)
                return existing.to_dict()

            count = session.query(DeviceToken).filter(
                DeviceToken.user_id == user_id,
                DeviceToken.user_type == user_type,
            ).count()

            if count >= MAX_DEVICES_PER_USER:
                oldest = session.query(DeviceToken).filter(
                    DeviceToken.user_id == user_id,
                    DeviceToken.user_type == user_type,
                ).order_by(DeviceToken.last_used_at.asc()).first()
                if oldest:
                    session.delete(oldest)
                    self.logger.info("device_token_evicted", user_id=user_id, device_id=oldest.device_id)

            token = DeviceToken(
                user_id=user_id,
                user_type=user_type,
                fcm_token=fcm_token,
                device_id=device_id,
                device_name=device_name,
                device_os=device_os,
                app_version=app_version,
                last_used_at=datetime.utcnow(),
            )
            session.add(token)
            session.flush()

            self.logger.info("device_token_registered", user_id=user_id, user_type=user_type.value)
            return token.to_dict()

    def get_user_tokens(self, user_id: int, user_type: UserType) -> list[str]:
        """All FCM tokens of a user, most recently used first."""
        with db.session() as session:
            rows = session.query(DeviceToken.fcm_token).filter(
                DeviceToken.user_id == user_id,
                DeviceToken.user_type == user_type,
            ).order_by(DeviceToken.last_used_at.desc()).all()
            return [row[0] for row in rows]

    def get_user_devices(self, user_id: int, user_type: UserType) -> list[dict]:
        with db.session() as session:
            devices = session.query(DeviceToken).filter(
                DeviceToken.user_id == user_id,
                DeviceToken.user_type == user_type,
            ).order_by(DeviceToken.last_used_at.desc()).all()
            return [d.to_dict() for d in devices]

    def remove_token(self, fcm_token: str, user_id: int | None = None) -> bool:
        """Remove one token (logout from a device).

        Args:
            fcm_token: Token to remove
            user_id: When given, only remove it if owned by this user

        Returns:
            True if a token was removed
        """
        with db.session() as session:
            query = session.query(DeviceToken).filter(DeviceToken.fcm_token == fcm_token)
            if user_id is not None:
                query = query.filter(DeviceToken.user_id == user_id)
            removed = query.delete(synchronize_session=False)
        return removed > 0

    def remove_tokens(self, fcm_tokens: list[str]) -> int:
        """Remove tokens Firebase reported as no longer registered."""
        if not fcm_tokens:
            return 0
        with db.session() as session:
            removed = session.query(DeviceToken).filter(
                DeviceToken.fcm_token.in_(fcm_tokens),
            ).delete(synchronize_session=False)
        self.logger.info("invalid_device_tokens_pruned", count=removed)
        return removed

    def remove_all(self, user_id: int, user_type: UserType) -> int:
        with db.session() as session:
            return session.query(DeviceToken).filter(
                DeviceToken.user_id == user_id,
                DeviceToken.user_type == user_type,
            ).delete(synchronize_session=False)

    def count(self, user_id: int, user_type: UserType) -> int:
        with db.session() as session:
            return session.query(DeviceToken).filter(
                DeviceToken.user_id == user_id,
                DeviceToken.user_type == user_type,
            ).count()

    def cleanup_old_tokens(self, days_inactive: int = INACTIVE_TOKEN_DAYS) -> int:
        """Delete tokens not used within the given number of days."""
        cutoff = datetime.utcnow() - timedelta(days=days_inactive)
        with db.session() as session:
            removed = session.query(DeviceToken).filter(
                DeviceToken.last_used_at < cutoff,
            ).delete(synchronize_session=False)

        self.logger.info("device_tokens_cleaned", removed=removed, days_inactive=days_inactive)
        return removed


device_token_service = DeviceTokenService()
