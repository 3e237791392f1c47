"""Transactional email for brands and admins using SendGrid."""

from typing import Optional

import httpx

from brandcollab.logging_config import get_logger
from brandcollab.settings import settings

logger = get_logger(__name__)

_STYLE = """
    body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; line-height: 1.6; color: #333; }
    .container { max-width: 600px; margin: 0 auto; padding: 20px; }
    .header { text-align: center; margin-bottom: 30px; }
    .logo { font-size: 24px; font-weight: bold; color: #7c3aed; }
    .otp { font-size: 32px; letter-spacing: 8px; font-weight: bold; text-align: center; margin: 24px 0; }
    .button { display: inline-block; background-color: #7c3aed; color: white; padding: 12px 30px; text-decoration: none; border-radius: 6px; margin: 20px 0; }
    .warning { background-color: #fef3c7; border: 1px solid #f59e0b; padding: 12px; border-radius: 6px; margin: 20px 0; }
    .footer { margin-top: 40px; padding-top: 20px; border-top: 1px solid #eee; font-size: 12px; color: #666; }
"""


def _layout(body_html: str) -> str:
    return f"""
    <!DOCTYPE html>
    <html>
    <head>
        <meta charset="utf-8">
        <style>{_STYLE}</style>
    </head>
    <body>
        <div class="container">
            <div class="header"><div class="logo">{settings.sendgrid_from_name}</div></div>
            {body_html}
            <div class="footer"><p>&copy; {settings.sendgrid_from_name} - Brand &amp; Creator Collaborations</p></div>
        </div>
    </body>
    </html>
    """


def _base_url() -> str:
    return settings.frontend_url or settings.allowed_origins.split(",")[0]


class EmailService:
    """Email service using SendGrid API.

    Handles transactional emails:
    - Brand login OTP
    - Brand welcome and password reset
    - Admin alerts for profiles awaiting review
    - Brand verification outcome
    """

    SENDGRID_API_URL = "https://api.sendgrid.com/v3/mail/send"

    def __init__(self):
        """Initialize email service."""
        self.api_key = settings.sendgrid_api_key
        self.from_email = settings.sendgrid_from_email
        self.from_name = settings.sendgrid_from_name
        self.enabled = bool(self.api_key)

        if not self.enabled:
            logger.warning("email_service_disabled", reason="SENDGRID_API_KEY not set")

    async def _send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None,
    ) -> bool:
        """Send an email via SendGrid API.

        Args:
            to_email: Recipient email address
            subject: Email subject
            html_content: HTML body
            text_content: Plain text body (optional)

        Returns:
            True if sent successfully, False otherwise
        """
        if not self.enabled:
            logger.warning("email_not_sent", reason="service_disabled", to=to_email)
            return False

        content = [{"type": "text/html", "value": html_content}]
        if text_content:
            content.insert(0, {"type": "text/plain", "value": text_content})

        payload = {
            "personalizations": [{"to": [{"email": to_email}], "subject": subject}],
            "from": {"email": self.from_email, "name": self.from_name},
            "content": content,
        }

        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    self.SENDGRID_API_URL,
                    json=payload,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                    timeout=30.0,
                )
        except httpx.RequestError as e:
            logger.error("email_send_error", to=to_email, error=str(e))
            return False

        if response.status_code in (200, 201, 202):
            logger.info("email_sent", to=to_email, subject=subject)
            return True

        logger.error(
            "email_send_failed",
            to=to_email,
            status=response.status_code,
            body=response.text[:200],
        )
        return False

    async def send_brand_otp(self, to_email: str, otp: str) -> bool:
        """Send the brand login / verification OTP."""
        subject = f"Your Brand Login OTP - {self.from_name}"
        html_content = _layout(f"""
            <p>Hello,</p>
            <p>Use the following one-time password to continue signing in to your brand account:</p>
            <div class="otp">{otp}</div>
            <div class="warning">This code expires in 10 minutes. Never share it with anyone.</div>
            <p>If you did not request this code you can ignore this email.</p>
        """)
        text_content = f"Your {self.from_name} login OTP is {otp}. It expires in 10 minutes."
        return await self._send_email(to_email, subject, html_content, text_content)

    async def send_welcome_email(self, to_email: str, brand_name: str) -> bool:
        subject = f"Welcome to {self.from_name} - Brand Partnership"
        html_content = _layout(f"""
            <p>Hi {brand_name},</p>
            <p>Thanks for completing your brand profile. Our team is reviewing your details and
            you will hear from us as soon as your account is verified.</p>
            <p style="text-align: center;"><a href="{_base_url()}/brand/dashboard" class="button">Open dashboard</a></p>
        """)
        return await self._send_email(to_email, subject, html_content)

    async def send_password_reset_email(self, to_email: str, brand_name: Optional[str], reset_token: str) -> bool:
        """Send password reset link.

        Args:
            to_email: Brand login email
            brand_name: Brand name (optional)
            reset_token: JWT reset token

        Returns:
            True if sent successfully
        """
        reset_url = f"{_base_url()}/reset-password?token={reset_token}"
        subject = f"Reset your password - {self.from_name}"
        html_content = _layout(f"""
            <p>Hello{' ' + brand_name if brand_name else ''},</p>
            <p>We received a request to reset your password. Click the button below to choose a new one:</p>
            <p style="text-align: center;"><a href="{reset_url}" class="button">Reset password</a></p>
            <p>Or copy this link into your browser:</p>
            <p style="word-break: break-all; color: #666;">{reset_url}</p>
            <div class="warning"><strong>Important:</strong> This link is valid for 1 hour.</div>
            <p>If you did not request a reset, ignore this email. Your password stays unchanged.</p>
        """)
        text_content = f"Reset your password: {reset_url}\nThis link is valid for 1 hour."
        return await self._send_email(to_email, subject, html_content, text_content)

    async def send_admin_pending_profile(
        self,
        to_email: str,
        profile_type: str,
        profile_name: str,
        review_id: int,
    ) -> bool:
        """Tell an admin a profile is waiting for review."""
        review_url = f"{_base_url()}/admin/reviews/{review_id}"
        subject = f"New {profile_type} profile pending review: {profile_name}"
        html_content = _layout(f"""
            <p>A {profile_type} profile was submitted for verification.</p>
            <p><strong>{profile_name}</strong></p>
            <p style="text-align: center;"><a href="{review_url}" class="button">Review profile</a></p>
        """)
        return await self._send_email(to_email, subject, html_content)

    async def send_brand_approved(self, to_email: str, brand_name: str) -> bool:
        subject = f"Your brand profile is verified - {self.from_name}"
        html_content = _layout(f"""
            <p>Hi {brand_name},</p>
            <p>Great news! Your brand profile has been verified. You can now create campaigns and
            invite creators.</p>
            <p style="text-align: center;"><a href="{_base_url()}/brand/campaigns/new" class="button">Create a campaign</a></p>
        """)
        return await self._send_email(to_email, subject, html_content)

    async def send_brand_rejected(self, to_email: str, brand_name: str, reason: str) -> bool:
        subject = f"Action needed on your brand profile - {self.from_name}"
        html_content = _layout(f"""
            <p>Hi {brand_name},</p>
            <p>We could not verify your brand profile yet.</p>
            <div class="warning"><strong>Reason:</strong> {reason}</div>
            <p>Please update your profile and resubmit it for review.</p>
        """)
        return await self._send_email(to_email, subject, html_content)


# Global email service instance
email_service = EmailService()
