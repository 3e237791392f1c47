"""Push notification device registry."""

from datetime import datetime
from enum import Enum

from sqlalchemy import Column, DateTime, Integer, String

from brandcollab.storage.models import Base, UserType, enum_type


class DeviceOs(str, Enum):
    IOS = "ios"
    ANDROID = "android"


class DeviceToken(Base):
    """FCM token for one device of one user."""
    __tablename__ = "device_tokens"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, nullable=False, index=True)
    user_type = Column(enum_type(UserType), nullable=False)
    fcm_token = Column(String(500), unique=True, nullable=False)
    device_id = Column(String(255), nullable=True)
    device_name = Column(String(255), nullable=True)
    device_os = Column(enum_type(DeviceOs), nullable=True)
    app_version = Column(String(50), nullable=True)
    last_used_at = Column(DateTime, default=datetime.utcnow, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "deviceId": self.device_id,
            "deviceName": self.device_name,
            "deviceOs": self.device_os.value if self.device_os else None,
            "appVersion": self.app_version,
            "lastUsedAt": self.last_used_at.isoformat() if self.last_used_at else None,
        }
