"""OTP generation, storage and verification."""

import hashlib
import re
import secrets
from datetime import datetime, timedelta

import phonenumbers

from brandcollab.auth.models import Otp, OtpFailure, OtpRequestLog, OtpType
from brandcollab.errors import BadRequestError, TooManyRequestsError
from brandcollab.logging_config import get_logger
from brandcollab.settings import settings
from brandcollab.storage.db import db

OTP_LENGTH = 6
PHONE_OTP_EXPIRY_MINUTES = 5
EMAIL_OTP_EXPIRY_MINUTES = 10

# Phone OTP request limits
OTP_COOLDOWN_SECONDS = 60
OTP_MAX_REQUESTS = 5
OTP_REQUEST_WINDOW_MINUTES = 15
OTP_MAX_FAILED_ATTEMPTS = 5

# Email OTP is invalidated after this many wrong guesses
EMAIL_OTP_MAX_ATTEMPTS = 5

_OTP_FORMAT = re.compile(rf"^\d{{{OTP_LENGTH}}}$")


def hash_identifier(identifier: str) -> str:
    """sha256 hex digest of a phone number or email."""
    return hashlib.sha256(identifier.encode("utf-8")).hexdigest()


def format_indian_phone(phone: str) -> str:
    """Normalize an Indian mobile number to E.164 (+91XXXXXXXXXX).

    Raises:
        BadRequestError: If the number cannot be an Indian mobile number
    """
    try:
        parsed = phonenumbers.parse(phone, "IN")
    except phonenumbers.NumberParseException:
        raise BadRequestError("Invalid phone number")

    if parsed.country_code != 91 or not phonenumbers.is_possible_number(parsed):
        raise BadRequestError("Invalid phone number")

    return phonenumbers.format_number(parsed, phonenumbers.PhoneNumberFormat.E164)


class OtpService:
    """Issues and verifies OTPs for phone and email identifiers."""

    def __init__(self):
        self.logger = get_logger(__name__)

    def _generate_code(self) -> str:
        if settings.use_fixed_otp:
            return settings.fixed_otp
        return str(secrets.randbelow(900000) + 100000)

    # ==================== RATE LIMITING ====================

    def check_request_limits(self, identifier: str) -> None:
        """Enforce cooldown, request quota and failed-attempt lockout.

        Args:
            identifier: Raw phone number or email

        Raises:
            TooManyRequestsError: If any limit is exceeded
        """
        key = hash_identifier(identifier)
        now = datetime.utcnow()
        window_start = now - timedelta(minutes=OTP_REQUEST_WINDOW_MINUTES)

        with db.session() as session:
            last = session.query(OtpRequestLog).filter(
                OtpRequestLog.identifier == key,
            ).order_by(OtpRequestLog.created_at.desc()).first()

            if last and last.created_at:
                elapsed = (now - last.created_at).total_seconds()
                if elapsed < OTP_COOLDOWN_SECONDS:
                    wait = int(OTP_COOLDOWN_SECONDS - elapsed) + 1
                    raise TooManyRequestsError(
                        f"Please wait {wait} seconds before requesting another OTP"
                    )

            failures = session.query(OtpFailure).filter(
                OtpFailure.identifier == key,
                OtpFailure.created_at >= window_start,
            ).count()
            if failures >= OTP_MAX_FAILED_ATTEMPTS:
                self.logger.warning("otp_blocked_failed_attempts", failures=failures)
                raise TooManyRequestsError(
                    "Too many failed verification attempts. Please try again after 15 minutes"
                )

            requests = session.query(OtpRequestLog).filter(
                OtpRequestLog.identifier == key,
                OtpRequestLog.created_at >= window_start,
            ).count()
            if requests >= OTP_MAX_REQUESTS:
                self.logger.warning("otp_blocked_request_quota", requests=requests)
                raise TooManyRequestsError(
                    "Too many OTP requests. Please try again after 15 minutes"
                )

    # ==================== ISSUE / VERIFY ====================

    def generate_and_store(self, identifier: str, otp_type: OtpType) -> str:
        """Create a fresh OTP, replacing any earlier ones for the identifier.

        Args:
            identifier: Raw phone number or email
            otp_type: Phone or email

        Returns:
            The plain OTP code
        """
        key = hash_identifier(identifier)
        code = self._generate_code()
        minutes = PHONE_OTP_EXPIRY_MINUTES if otp_type == OtpType.PHONE else EMAIL_OTP_EXPIRY_MINUTES

        with db.session() as session:
            session.query(Otp).filter(
                Otp.identifier == key,
                Otp.type == otp_type,
            ).delete(synchronize_session=False)

            session.add(Otp(
                identifier=key,
                type=otp_type,
                otp=code,
                expires_at=datetime.utcnow() + timedelta(minutes=minutes),
            ))
            session.add(OtpRequestLog(identifier=key))

        self.logger.info("otp_generated", type=otp_type.value, expires_in_minutes=minutes)
        return code

    def verify(self, identifier: str, otp_type: OtpType, code: str) -> None:
        """Verify and consume an OTP.

        Args:
            identifier: Raw phone number or email
            otp_type: Phone or email
            code: Code entered by the user

        Raises:
            BadRequestError: If the code is malformed, wrong or expired
        """
        if not code or not _OTP_FORMAT.match(code):
            raise BadRequestError("Invalid OTP format")

        key = hash_identifier(identifier)

        with db.session() as session:
            record = session.query(Otp).filter(
                Otp.identifier == key,
                Otp.type == otp_type,
                Otp.is_used == False,  # noqa: E712
            ).order_by(Otp.created_at.desc()).first()

            if not record or record.otp != code:
                session.add(OtpFailure(identifier=key))
                if record and otp_type == OtpType.EMAIL:
                    record.attempts = (record.attempts or 0) + 1
                    if record.attempts >= EMAIL_OTP_MAX_ATTEMPTS:
                        record.is_used = True
                        self.logger.warning("email_otp_invalidated", attempts=record.attempts)
                session.commit()
                self.logger.info("otp_verification_failed", type=otp_type.value)
                raise BadRequestError("Invalid OTP")

            if datetime.utcnow() > record.expires_at:
                raise BadRequestError("OTP has expired")

            record.is_used = True

        self.logger.info("otp_verified", type=otp_type.value)


otp_service = OtpService()
