"""Push notification device registration endpoints."""

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from brandcollab.auth.middleware import require_auth, user_type_of
from brandcollab.errors import NotFoundError
from brandcollab.notifications.device_tokens import device_token_service
from brandcollab.notifications.models import DeviceOs

router = APIRouter(prefix="/devices", tags=["devices"])


class DeviceRegister(BaseModel):
    fcm_token: str = Field(..., min_length=1, max_length=500)
    device_id: str | None = Field(default=None, max_length=255)
    device_name: str | None = Field(default=None, max_length=255)
    device_os: DeviceOs | None = None
    app_version: str | None = Field(default=None, max_length=50)


class DeviceRemove(BaseModel):
    fcm_token: str = Field(..., min_length=1, max_length=500)


@router.post("", status_code=status.HTTP_201_CREATED)
async def register_device(body: DeviceRegister, user=Depends(require_auth)):
    """Register or refresh this device's FCM token."""
    return device_token_service.add_or_update(user.id, user_type_of(user), **body.model_dump())


@router.get("")
async def list_devices(user=Depends(require_auth)):
    user_type = user_type_of(user)
    return {
        "devices": device_token_service.get_user_devices(user.id, user_type),
        "count": device_token_service.count(user.id, user_type),
    }


@router.post("/remove")
async def remove_device(body: DeviceRemove, user=Depends(require_auth)):
    if not device_token_service.remove_token(body.fcm_token, user_id=user.id):
        raise NotFoundError("Device token not found")
    return {"message": "Device removed successfully"}


@router.delete("")
async def remove_all_devices(user=Depends(require_auth)):
    removed = device_token_service.remove_all(user.id, user_type_of(user))
    return {"message": "All devices removed", "removed": removed}
