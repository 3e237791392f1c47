"""Firebase Cloud Messaging push notifications."""

import asyncio
import time
from typing import Any

import firebase_admin
from firebase_admin import credentials, exceptions, messaging

from brandcollab.logging_config import get_logger
from brandcollab.notifications.device_tokens import device_token_service
from brandcollab.settings import settings
from brandcollab.storage.models import UserType

logger = get_logger(__name__)

# Send errors after which a token will never work again
_DEAD_TOKEN_ERRORS = (messaging.UnregisteredError, messaging.SenderIdMismatchError)

CAMPAIGN_STATUS_MESSAGES = {
    "selected": "Congratulations! {brand} selected your application for \"{campaign}\".",
    "rejected": "Your application for \"{campaign}\" was not selected this time. Don't give up!",
    "under_review": "Your application is under review by {brand}.",
    "completed": "Campaign \"{campaign}\" has been completed successfully!",
    "cancelled": "Campaign \"{campaign}\" has been cancelled.",
}


class PushService:
    """Multicast push notifications through firebase-admin.

    Sends are best effort: failures are logged and reported as False.
    """

    def __init__(self):
        """Initialize push service."""
        self._app: firebase_admin.App | None = None
        self.enabled = bool(settings.firebase_credentials_path)

        if not self.enabled:
            logger.warning("push_service_disabled", reason="FIREBASE_CREDENTIALS_PATH not set")

    def _get_app(self) -> firebase_admin.App:
        if self._app is None:
            try:
                self._app = firebase_admin.get_app()
            except ValueError:
                cred = credentials.Certificate(settings.firebase_credentials_path)
                self._app = firebase_admin.initialize_app(cred)
        return self._app

    async def send(
        self,
        tokens: list[str],
        title: str,
        body: str,
        data: dict[str, Any] | None = None,
    ) -> bool:
        """Send one notification to several device tokens.

        Args:
            tokens: FCM registration tokens
            title: Notification title
            body: Notification body
            data: Extra payload, values are stringified

        Returns:
            True if at least one device accepted it
        """
        if not tokens:
            return False
        if not self.enabled:
            logger.warning("push_not_sent", reason="service_disabled", title=title)
            return False

        payload = {k: str(v) for k, v in (data or {}).items() if v is not None}
        payload["timestamp"] = str(int(time.time() * 1000))

        message = messaging.MulticastMessage(
            notification=messaging.Notification(title=title, body=body),
            data=payload,
            tokens=tokens,
        )

        try:
            response = await asyncio.to_thread(
                messaging.send_each_for_multicast, message, app=self._get_app()
            )
        except (exceptions.FirebaseError, ValueError, OSError) as e:
            logger.error("push_send_failed", title=title, error=str(e))
            return False

        dead = [
            token
            for token, result in zip(tokens, response.responses)
            if not result.success and isinstance(result.exception, _DEAD_TOKEN_ERRORS)
        ]
        if dead:
            device_token_service.remove_tokens(dead)

        logger.info(
            "push_sent",
            title=title,
            success=response.success_count,
            failure=response.failure_count,
        )
        return response.success_count > 0

    async def send_to_user(
        self,
        user_id: int,
        user_type: UserType,
        title: str,
        body: str,
        data: dict[str, Any] | None = None,
    ) -> bool:
        """Send to every registered device of one user."""
        tokens = device_token_service.get_user_tokens(user_id, user_type)
        if not tokens:
            logger.debug("push_no_devices", user_id=user_id, user_type=user_type.value)
            return False
        return await self.send(tokens, title, body, data)

    # ==================== HELPERS ====================

    async def send_custom(self, user_id: int, user_type: UserType, title: str, body: str, **data) -> bool:
        return await self.send_to_user(user_id, user_type, title, body, data)

    async def send_campaign_invite(self, influencer_id: int, campaign_id: int, campaign_name: str, brand_name: str) -> bool:
        return await self.send_to_user(
            influencer_id,
            UserType.INFLUENCER,
            "New Campaign Invitation",
            f"{brand_name} has invited you to participate in \"{campaign_name}\"",
            {"type": "campaign_invite", "campaignId": campaign_id, "campaignName": campaign_name, "brandName": brand_name},
        )

    async def send_campaign_status(
        self,
        influencer_id: int,
        campaign_id: int,
        campaign_name: str,
        status: str,
        brand_name: str | None = None,
    ) -> bool:
        """Campaign or application status change for an influencer."""
        template = CAMPAIGN_STATUS_MESSAGES.get(status)
        body = (
            template.format(brand=brand_name or "the brand", campaign=campaign_name)
            if template else f"Campaign status updated to: {status}"
        )
        return await self.send_to_user(
            influencer_id,
            UserType.INFLUENCER,
            f"Campaign Update: {campaign_name}",
            body,
            {"type": "campaign_status", "campaignId": campaign_id, "status": status, "action": "view_campaign"},
        )

    async def send_new_application(
        self,
        brand_id: int,
        campaign_id: int,
        campaign_name: str,
        influencer_id: int,
        influencer_name: str,
    ) -> bool:
        return await self.send_to_user(
            brand_id,
            UserType.BRAND,
            "New Campaign Application!",
            f"{influencer_name} applied for your campaign \"{campaign_name}\". Review their profile.",
            {
                "type": "new_application",
                "campaignId": campaign_id,
                "influencerId": influencer_id,
                "action": "view_application",
            },
        )

    async def send_application_submitted(self, influencer_id: int, campaign_id: int, campaign_name: str) -> bool:
        return await self.send_to_user(
            influencer_id,
            UserType.INFLUENCER,
            "Application Submitted",
            f"Your application for \"{campaign_name}\" has been submitted.",
            {"type": "application_submitted", "campaignId": campaign_id},
        )

    async def send_redemption_paid(self, influencer_id: int, amount: int) -> bool:
        return await self.send_to_user(
            influencer_id,
            UserType.INFLUENCER,
            "Payment Sent",
            f"Rs {amount} has been transferred to your UPI ID.",
            {"type": "redemption_paid", "amount": amount},
        )


push_service = PushService()
