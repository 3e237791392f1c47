"""WhatsApp Cloud API template messages."""

import re

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from brandcollab.logging_config import get_logger
from brandcollab.settings import settings

logger = get_logger(__name__)

LANGUAGE_CODE = "en"
MESSAGING_PRODUCT = "whatsapp"
VERIFY_BUTTON_TEXT = "verify"


class Template:
    """Approved template names."""
    OTP = "otp"
    PROFILE_VERIFICATION_PENDING = "profile_verification_inprogress"
    PROFILE_INCOMPLETE = "profile_incomplete"
    PROFILE_VERIFIED = "profile_verified"
    PROFILE_REJECTED = "profile_rejected"
    CAMPAIGN_INVITATION = "campaign_invite"
    CAMPAIGN_APPLICATION_CONFIRMATION = "campaign_application_confirmation"
    REFERRAL_REDEMPTION = "referral_redemption"


def format_whatsapp_number(phone: str) -> str:
    """Normalize to the 91XXXXXXXXXX form the Cloud API expects."""
    cleaned = re.sub(r"[^\d+]", "", phone)

    if cleaned.startswith("+91"):
        return cleaned[1:]
    if cleaned.startswith("91") and len(cleaned) == 12:
        return cleaned
    if len(cleaned) == 10 and cleaned[0] in "6789":
        return f"91{cleaned}"
    return cleaned.lstrip("+")


def build_template_payload(to: str, template: str, parameters: list[str]) -> dict:
    """Template message with positional body parameters."""
    return {
        "messaging_product": MESSAGING_PRODUCT,
        "to": to,
        "type": "template",
        "template": {
            "name": template,
            "language": {"code": LANGUAGE_CODE},
            "components": [
                {
                    "type": "body",
                    "parameters": [{"type": "text", "text": str(p)} for p in parameters],
                },
            ],
        },
    }


def build_otp_payload(to: str, otp: str) -> dict:
    """OTP template: code in the body plus the copy-code URL button."""
    return {
        "messaging_product": MESSAGING_PRODUCT,
        "to": to,
        "type": "template",
        "template": {
            "name": Template.OTP,
            "language": {"code": LANGUAGE_CODE},
            "components": [
                {
                    "type": "body",
                    "parameters": [{"type": "text", "text": otp}],
                },
                {
                    "type": "button",
                    "sub_type": "url",
                    "index": "0",
                    "parameters": [{"type": "text", "text": VERIFY_BUTTON_TEXT}],
                },
            ],
        },
    }


class WhatsAppService:
    """WhatsApp Cloud API client.

    Every send is best effort: failures are logged and reported as False,
    never raised into the calling business flow.
    """

    def __init__(self):
        """Initialize WhatsApp service."""
        self.api_url = settings.whatsapp_api_url.rstrip("/")
        self.token = settings.whatsapp_token
        self.phone_number_id = settings.whatsapp_phone_number_id
        self.enabled = bool(self.token and self.phone_number_id)

        if not self.enabled:
            logger.warning("whatsapp_service_disabled", reason="WHATSAPP_TOKEN not set")

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=5),
        reraise=True,
    )
    async def _post(self, payload: dict) -> httpx.Response:
        async with httpx.AsyncClient() as client:
            return await client.post(
                f"{self.api_url}/{self.phone_number_id}/messages",
                json=payload,
                headers={
                    "Authorization": f"Bearer {self.token}",
                    "Content-Type": "application/json",
                },
                timeout=15.0,
            )

    async def _send(self, payload: dict, template: str) -> bool:
        if not self.enabled:
            logger.warning("whatsapp_not_sent", reason="service_disabled", template=template)
            return False

        try:
            response = await self._post(payload)
        except httpx.HTTPError as e:
            logger.error("whatsapp_send_error", template=template, error=str(e))
            return False

        if response.status_code in (200, 201):
            logger.info("whatsapp_sent", template=template)
            return True

        logger.error(
            "whatsapp_send_failed",
            template=template,
            status=response.status_code,
            body=response.text[:200],
        )
        return False

    async def send_template_message(self, to: str, template: str, parameters: list[str]) -> bool:
        """Send an approved template message.

        Args:
            to: Recipient number in any Indian format
            template: Template name
            parameters: Positional body parameters

        Returns:
            True if accepted by the API
        """
        payload = build_template_payload(format_whatsapp_number(to), template, parameters)
        return await self._send(payload, template)

    async def send_otp(self, to: str, otp: str) -> bool:
        return await self._send(build_otp_payload(format_whatsapp_number(to), otp), Template.OTP)

    async def send_profile_verification_pending(self, to: str, name: str) -> bool:
        return await self.send_template_message(to, Template.PROFILE_VERIFICATION_PENDING, [name])

    async def send_profile_incomplete(self, to: str, name: str, missing_fields_count: int) -> bool:
        return await self.send_template_message(
            to, Template.PROFILE_INCOMPLETE, [name, str(missing_fields_count)]
        )

    async def send_profile_verified(self, to: str, name: str) -> bool:
        return await self.send_template_message(to, Template.PROFILE_VERIFIED, [name])

    async def send_profile_rejected(self, to: str, name: str, reason: str) -> bool:
        return await self.send_template_message(to, Template.PROFILE_REJECTED, [name, reason])

    async def send_campaign_invitation(
        self,
        to: str,
        influencer_name: str,
        campaign_name: str,
        brand_name: str,
        personal_message: str | None = None,
    ) -> bool:
        """Invite an influencer to a campaign."""
        parameters = [
            influencer_name,
            brand_name,
            campaign_name,
            personal_message or "We would love to collaborate with you on this exciting campaign!",
        ]
        return await self.send_template_message(to, Template.CAMPAIGN_INVITATION, parameters)

    async def send_campaign_application_confirmation(
        self,
        to: str,
        influencer_name: str,
        campaign_name: str,
        brand_name: str,
    ) -> bool:
        return await self.send_template_message(
            to,
            Template.CAMPAIGN_APPLICATION_CONFIRMATION,
            [influencer_name, campaign_name, brand_name],
        )

    async def send_referral_redemption(self, to: str, amount: int, upi_id: str) -> bool:
        message = (
            f"Your redemption request for Rs {amount} has been received. The amount will be "
            f"transferred to your UPI ID ({upi_id}) within 24-48 working hours."
        )
        return await self.send_template_message(to, Template.REFERRAL_REDEMPTION, [message])


whatsapp_service = WhatsAppService()
