"""Signup and login flows for influencers (phone OTP) and brands (email + password)."""

import hashlib
import uuid
from datetime import datetime, timedelta
from typing import Any

from fastapi import BackgroundTasks, UploadFile

from brandcollab.admin.models import ProfileType
from brandcollab.admin.review_service import profile_review_service
from brandcollab.auth.models import Brand, Influencer, OtpType, PasswordResetToken
from brandcollab.auth.otp import PHONE_OTP_EXPIRY_MINUTES, format_indian_phone, hash_identifier, otp_service
from brandcollab.auth.rules import (
    check_password,
    ensure_username_available,
    is_username_taken,
    map_gender,
    suggest_usernames,
    validate_username_format,
)
from brandcollab.auth.tokens import PASSWORD_RESET_TYPE, token_service
from brandcollab.email.service import email_service
from brandcollab.errors import BadRequestError, ConflictError, NotFoundError, UnauthorizedError
from brandcollab.logging_config import get_logger
from brandcollab.master_data.service import (
    check_niche_selection,
    get_custom_niches,
    replace_custom_niches,
    resolve_niches,
)
from brandcollab.notifications.device_tokens import device_token_service
from brandcollab.notifications.dispatch import dispatch
from brandcollab.notifications.whatsapp import whatsapp_service
from brandcollab.referral.service import referral_service
from brandcollab.settings import settings
from brandcollab.storage.db import db
from brandcollab.storage.models import CompanyType, UserType
from brandcollab.uploads.s3 import FileKind, s3_service

GENERIC_RESET_MESSAGE = "If the email exists, a password reset link has been sent"

BRAND_DOCUMENT_FIELDS = ("incorporation_document", "gst_document", "pan_document")

# How long a password check keeps the email OTP step open (covers resends)
BRAND_LOGIN_WINDOW_MINUTES = 30


def _within_restore_window(deleted_at: datetime) -> bool:
    return deleted_at > datetime.utcnow() - timedelta(days=settings.account_restore_days)


def _open_login_window(brand: Brand) -> None:
    brand.pending_login_expires_at = datetime.utcnow() + timedelta(minutes=BRAND_LOGIN_WINDOW_MINUTES)


def _login_window_open(brand: Brand) -> bool:
    return brand.pending_login_expires_at is not None and brand.pending_login_expires_at > datetime.utcnow()


def _influencer_summary(session, influencer: Influencer) -> dict:
    return {
        "id": influencer.id,
        "name": influencer.name,
        "username": influencer.username,
        "phone": influencer.phone,
        "profileImage": influencer.profile_image,
        "gender": influencer.gender.value if influencer.gender else None,
        "othersGender": influencer.others_gender,
        "dateOfBirth": influencer.date_of_birth.isoformat() if influencer.date_of_birth else None,
        "referralCode": influencer.referral_code,
        "niches": [n.to_dict() for n in influencer.niches],
        "customNiches": get_custom_niches(session, UserType.INFLUENCER, influencer.id),
    }


def _brand_summary(brand: Brand) -> dict:
    return {
        "id": brand.id,
        "email": brand.email,
        "brandName": brand.brand_name,
        "username": brand.username,
        "isEmailVerified": bool(brand.is_email_verified),
        "isProfileCompleted": bool(brand.is_profile_completed),
        "profileImage": brand.profile_image,
        "niches": [n.to_dict() for n in brand.niches],
    }


class AuthService:
    """Influencer and brand authentication flows."""

    def __init__(self):
        """Initialize auth service."""
        self.logger = get_logger(__name__)

    def _register_device(self, user_id: int, user_type: UserType, device: dict | None) -> None:
        if device and device.get("fcm_token"):
            device_token_service.add_or_update(
                user_id,
                user_type,
                device["fcm_token"],
                device_id=device.get("device_id"),
                device_name=device.get("device_name"),
                device_os=device.get("device_os"),
                app_version=device.get("app_version"),
            )

    # ==================== INFLUENCER ====================

    async def request_influencer_otp(self, phone: str) -> dict:
        """Send a login OTP to an influencer's phone over WhatsApp.

        Raises:
            BadRequestError: Invalid phone number
            TooManyRequestsError: Cooldown, quota or lockout hit
        """
        formatted = format_indian_phone(phone)
        otp_service.check_request_limits(formatted)
        code = otp_service.generate_and_store(formatted, OtpType.PHONE)

        if not await whatsapp_service.send_otp(formatted, code):
            self.logger.warning("influencer_otp_delivery_failed")

        return {
            "message": "OTP sent successfully",
            "phone": formatted,
            "expiresIn": PHONE_OTP_EXPIRY_MINUTES * 60,
        }

    def _find_influencer_by_phone(self, session, phone: str) -> Influencer | None:
        """Active influencer for a phone, restoring a recently deleted one."""
        influencer = session.query(Influencer).filter(
            Influencer.phone_hash == hash_identifier(phone),
        ).first()

        if influencer and influencer.deleted_at:
            if not _within_restore_window(influencer.deleted_at):
                return None
            influencer.deleted_at = None
            influencer.is_active = True
            self.logger.info("influencer_account_restored", influencer_id=influencer.id)
        elif influencer and not influencer.is_active:
            influencer.is_active = True
            self.logger.info("influencer_account_reactivated", influencer_id=influencer.id)

        return influencer

    def _release_stale_phone(self, session, phone: str) -> None:
        """Free the phone of an account deleted beyond the restore window."""
        stale = session.query(Influencer).filter(
            Influencer.phone_hash == hash_identifier(phone),
            Influencer.deleted_at.isnot(None),
        ).first()
        if stale and not _within_restore_window(stale.deleted_at):
            stale.phone_hash = hashlib.sha256(f"released:{stale.id}:{phone}".encode("utf-8")).hexdigest()
            session.flush()
            self.logger.info("stale_influencer_phone_released", influencer_id=stale.id)

    async def verify_influencer_otp(self, phone: str, otp: str, device: dict | None = None) -> dict[str, Any]:
        """Verify a login OTP.

        Returns:
            Tokens for a returning user, otherwise a verification key for signup
        """
        formatted = format_indian_phone(phone)
        otp_service.verify(formatted, OtpType.PHONE, otp)

        with db.session() as session:
            influencer = self._find_influencer_by_phone(session, formatted)

            if influencer is None:
                return {
                    "message": "OTP verified successfully",
                    "verified": True,
                    "requiresSignup": True,
                    "verificationKey": token_service.create_verification_key(formatted),
                }

            if not (influencer.name and influencer.username):
                return {
                    "message": "OTP verified successfully",
                    "verified": True,
                    "phone": formatted,
                    "requiresProfileCompletion": True,
                    "verificationKey": token_service.create_verification_key(formatted),
                }

            influencer.last_login_at = datetime.utcnow()
            influencer_id = influencer.id

        self._register_device(influencer_id, UserType.INFLUENCER, device)
        tokens = token_service.issue_tokens(influencer_id, UserType.INFLUENCER, True)
        self.logger.info("influencer_logged_in", influencer_id=influencer_id)

        return {
            "message": "OTP verified successfully",
            **tokens,
            "phone": formatted,
            "profileCompleted": True,
            "requiresProfileCompletion": False,
        }

    async def influencer_signup(
        self,
        verification_key: str,
        phone: str,
        data: dict[str, Any],
        profile_image: UploadFile | None = None,
    ) -> dict[str, Any]:
        """Create an influencer after phone verification and log them in.

        Args:
            verification_key: Key returned by verify_influencer_otp
            phone: Verified phone number
            data: name, username, date_of_birth, gender, bio, niche_ids,
                custom_niches, referral_code
            profile_image: Optional image upload

        Raises:
            UnauthorizedError: Verification key missing, expired or for another phone
            ConflictError: Username taken or phone already registered
            BadRequestError: Invalid niches
        """
        formatted = format_indian_phone(phone)
        if not token_service.verify_verification_key(verification_key, formatted):
            raise UnauthorizedError("Invalid or expired verification key")

        username = validate_username_format(data["username"])
        niche_ids = data.get("niche_ids") or []
        custom_niches = data.get("custom_niches") or []
        check_niche_selection(niche_ids, custom_niches)

        with db.session() as session:
            if is_username_taken(session, username):
                raise ConflictError("Username already exists")
            resolve_niches(session, niche_ids)

        image_url = None
        if profile_image is not None:
            image_url = await s3_service.upload_file(profile_image, "profiles/influencers", FileKind.IMAGE)

        with db.session() as session:
            self._release_stale_phone(session, formatted)
            influencer = self._find_influencer_by_phone(session, formatted)

            if influencer and influencer.username:
                raise ConflictError("An account already exists for this phone number")

            if influencer is None:
                influencer = Influencer(phone=formatted, phone_hash=hash_identifier(formatted))
                session.add(influencer)

            ensure_username_available(session, username, exclude=influencer if influencer.id else None)

            gender, others_gender = map_gender(data.get("gender"))
            influencer.name = data.get("name")
            influencer.username = username
            influencer.date_of_birth = data.get("date_of_birth")
            influencer.gender = gender
            influencer.others_gender = others_gender
            influencer.bio = data.get("bio") or influencer.bio
            influencer.profile_image = image_url or influencer.profile_image
            influencer.is_phone_verified = True
            influencer.is_active = True
            influencer.last_login_at = datetime.utcnow()
            influencer.niches = resolve_niches(session, niche_ids)
            if not influencer.referral_code:
                influencer.referral_code = referral_service.generate_unique_code(session)
            session.flush()

            replace_custom_niches(session, UserType.INFLUENCER, influencer.id, custom_niches)
            referral_service.record_usage(session, influencer, data.get("referral_code"))

            influencer_id = influencer.id
            summary = _influencer_summary(session, influencer)

        tokens = token_service.issue_tokens(influencer_id, UserType.INFLUENCER, True)
        self.logger.info("influencer_signed_up", influencer_id=influencer_id)

        return {
            "message": "Influencer registered and logged in successfully",
            **tokens,
            "influencer": summary,
            "profileCompleted": True,
        }

    def check_username(self, username: str) -> dict:
        """Availability across influencers and brands, with suggestions when taken."""
        value = validate_username_format((username or "").lower())

        with db.session() as session:
            if not is_username_taken(session, value):
                return {
                    "available": True,
                    "username": value,
                    "message": "Username is unique and available to use",
                }
            suggestions = suggest_usernames(session, value)

        return {
            "available": False,
            "username": value,
            "message": "Username is already taken",
            "suggestions": suggestions,
        }

    # ==================== BRAND ====================

    async def _send_brand_otp(self, email: str) -> None:
        code = otp_service.generate_and_store(email, OtpType.EMAIL)
        if not await email_service.send_brand_otp(email, code):
            self.logger.warning("brand_otp_delivery_failed")

    async def brand_initial_signup(self, email: str, password: str) -> dict:
        """Create a brand account and email a verification OTP.

        Raises:
            BadRequestError: Weak password
            ConflictError: Verified account already exists
        """
        email = email.strip().lower()
        check_password(password)

        with db.session() as session:
            existing = session.query(Brand).filter(Brand.email == email).first()

            if existing and existing.is_email_verified:
                raise ConflictError("Brand already exists with this email")

            if existing:
                _open_login_window(existing)
                brand_id = existing.id
                message = "OTP sent to your email for verification."
            else:
                brand = Brand(
                    email=email,
                    password_hash=token_service.hash_password(password),
                    is_email_verified=False,
                    is_profile_completed=False,
                )
                _open_login_window(brand)
                session.add(brand)
                session.flush()
                brand_id = brand.id
                message = "Account created successfully. OTP sent to your email for verification."
                self.logger.info("brand_created", brand_id=brand_id)

        await self._send_brand_otp(email)
        return {"message": message, "email": email, "requiresOtp": True, "brandId": brand_id}

    async def brand_login(self, email: str, password: str) -> dict:
        """Check credentials and email a login OTP.

        Raises:
            UnauthorizedError: Bad credentials or account deleted beyond restore window
        """
        email = email.strip().lower()

        with db.session() as session:
            brand = session.query(Brand).filter(Brand.email == email).first()

            if not brand or not brand.password_hash or not token_service.verify_password(password, brand.password_hash):
                self.logger.info("brand_login_failed")
                raise UnauthorizedError("Invalid email or password")

            if brand.deleted_at and not _within_restore_window(brand.deleted_at):
                raise UnauthorizedError("Invalid email or password")

            _open_login_window(brand)

            email_verified = bool(brand.is_email_verified)

        await self._send_brand_otp(email)

        if not email_verified:
            return {
                "message": "Email not verified. OTP sent to your email address. Please verify to complete login.",
                "requiresEmailVerification": True,
                "requiresOtp": True,
                "email": email,
            }
        return {
            "message": "OTP sent to your email address. Please verify to complete login.",
            "requiresOtp": True,
            "email": email,
        }

    async def verify_brand_otp(self, email: str, otp: str, device: dict | None = None) -> dict:
        """Verify the email OTP and log the brand in."""
        email = email.strip().lower()

        with db.session() as session:
            brand = session.query(Brand).filter(Brand.email == email).first()
            if not brand or not _login_window_open(brand):
                raise UnauthorizedError("Invalid email or OTP")
            if brand.deleted_at and not _within_restore_window(brand.deleted_at):
                raise UnauthorizedError("Invalid email or OTP")

        otp_service.verify(email, OtpType.EMAIL, otp)

        with db.session() as session:
            brand = session.query(Brand).filter(Brand.email == email).first()
            if brand.deleted_at:
                brand.deleted_at = None
                self.logger.info("brand_account_restored", brand_id=brand.id)
            brand.is_email_verified = True
            brand.is_active = True
            brand.pending_login_expires_at = None
            brand.last_login_at = datetime.utcnow()
            brand_id = brand.id
            profile_completed = bool(brand.is_profile_completed)
            summary = _brand_summary(brand)

        self._register_device(brand_id, UserType.BRAND, device)
        tokens = token_service.issue_tokens(brand_id, UserType.BRAND, profile_completed)
        self.logger.info("brand_logged_in", brand_id=brand_id)

        if not profile_completed:
            return {
                "message": "Email verified successfully. Please complete your profile.",
                **tokens,
                "isNewUser": True,
                "requiresProfileCompletion": True,
                "brand": summary,
            }
        return {
            "message": "Email verified successfully. Login successful",
            **tokens,
            "isNewUser": False,
            "requiresProfileCompletion": False,
            "brand": summary,
        }

    async def resend_brand_otp(self, email: str) -> dict:
        """Send a fresh OTP for a login or signup started within the last few minutes."""
        email = email.strip().lower()
        with db.session() as session:
            brand = session.query(Brand).filter(Brand.email == email).first()
            if not brand:
                raise NotFoundError("Brand not found")
            if not _login_window_open(brand):
                raise UnauthorizedError("Login session expired. Please sign in again")

        await self._send_brand_otp(email)
        return {"message": "OTP resent to your email address", "email": email}

    async def brand_complete_profile(
        self,
        brand_id: int,
        data: dict[str, Any],
        files: dict[str, UploadFile | None] | None = None,
        background: BackgroundTasks | None = None,
    ) -> dict:
        """Fill in the brand profile and queue it for verification.

        Args:
            brand_id: Authenticated brand
            data: Company, point of contact and niche fields
            files: profile_image, incorporation_document, gst_document, pan_document

        Raises:
            UnauthorizedError: Unknown brand or email not verified
            ConflictError: Username taken
            BadRequestError: Invalid niches or company type
        """
        files = files or {}
        niche_ids = data.get("niche_ids") or []
        custom_niches = data.get("custom_niches") or []
        check_niche_selection(niche_ids, custom_niches)

        with db.session() as session:
            brand = session.get(Brand, brand_id)
            if not brand:
                raise UnauthorizedError("Brand not found")
            if not brand.is_email_verified:
                raise UnauthorizedError("Email must be verified first")
            if data.get("username"):
                ensure_username_available(session, data["username"], exclude=brand)
            resolve_niches(session, niche_ids)
            if data.get("company_type_id") and not session.get(CompanyType, data["company_type_id"]):
                raise BadRequestError("Invalid company type provided")

        uploads = {}
        if files.get("profile_image") is not None:
            uploads["profile_image"] = await s3_service.upload_file(
                files["profile_image"], "profiles/brands", FileKind.IMAGE
            )
        for field in BRAND_DOCUMENT_FIELDS:
            if files.get(field) is not None:
                uploads[field] = await s3_service.upload_file(files[field], "documents/brands", FileKind.DOCUMENT)

        with db.session() as session:
            brand = session.get(Brand, brand_id)
            first_completion = not brand.is_profile_completed
            for field in (
                "brand_name",
                "username",
                "legal_entity_name",
                "company_type_id",
                "brand_email_id",
                "poc_name",
                "poc_designation",
                "poc_email_id",
                "poc_contact_number",
                "brand_bio",
                "website_url",
            ):
                if field in data and data[field] is not None:
                    setattr(brand, field, data[field])
            for field, url in uploads.items():
                setattr(brand, field, url)

            brand.niches = resolve_niches(session, niche_ids)
            replace_custom_niches(session, UserType.BRAND, brand.id, custom_niches)
            brand.is_profile_completed = True

            review_id = None
            # An approved or queued profile is not sent back to the queue
            if not profile_review_service.has_open_or_approved_review(session, brand.id, ProfileType.BRAND):
                review_id = profile_review_service.submit(session, brand.id, ProfileType.BRAND, {
                    "brandName": brand.brand_name,
                    "username": brand.username,
                    "legalEntityName": brand.legal_entity_name,
                })
            email = brand.email
            brand_name = brand.brand_name or "there"
            summary = _brand_summary(brand)

        self.logger.info("brand_profile_completed", brand_id=brand_id, review_id=review_id)

        if review_id is not None:
            await dispatch(
                background, profile_review_service.notify_admins_of_pending, brand_id, ProfileType.BRAND, review_id
            )
        if first_completion:
            await dispatch(background, email_service.send_welcome_email, email, brand_name)

        return {"message": "Profile completed successfully", "brand": summary}

    # ==================== PASSWORD RESET ====================

    async def forgot_password(self, email: str, background: BackgroundTasks | None = None) -> dict:
        """Email a reset link; the response never reveals whether the email exists."""
        email = email.strip().lower()

        with db.session() as session:
            brand = session.query(Brand).filter(
                Brand.email == email,
                Brand.deleted_at.is_(None),
            ).first()
            if not brand:
                return {"message": GENERIC_RESET_MESSAGE, "success": True}

            jti = uuid.uuid4().hex
            expires_at = datetime.utcnow() + timedelta(minutes=settings.password_reset_expire_minutes)
            session.add(PasswordResetToken(jti=jti, brand_id=brand.id, expires_at=expires_at))
            brand_id = brand.id
            brand_name = brand.brand_name

        token = token_service.create_password_reset_token(brand_id, jti, expires_at)
        await dispatch(background, email_service.send_password_reset_email, email, brand_name, token)
        self.logger.info("password_reset_requested", brand_id=brand_id)

        return {"message": GENERIC_RESET_MESSAGE, "success": True}

    def reset_password(self, token: str, new_password: str) -> dict:
        """Set a new password from a reset token and sign out everywhere.

        Raises:
            BadRequestError: Token invalid, used or expired, or weak password
        """
        check_password(new_password)

        payload = token_service.decode(token)
        if not payload or payload.get("type") != PASSWORD_RESET_TYPE or not payload.get("jti"):
            raise BadRequestError("Invalid or expired reset token")

        with db.session() as session:
            record = session.query(PasswordResetToken).filter(
                PasswordResetToken.jti == payload["jti"],
                PasswordResetToken.brand_id == payload.get("id"),
            ).first()
            if not record or record.used_at or record.expires_at < datetime.utcnow():
                raise BadRequestError("Reset token has expired or already been used")

            brand = session.get(Brand, record.brand_id)
            if not brand:
                raise BadRequestError("Invalid or expired reset token")

            brand.password_hash = token_service.hash_password(new_password)
            record.used_at = datetime.utcnow()
            token_service.logout_all(brand.id, UserType.BRAND, session=session)
            brand_id = brand.id

        self.logger.info("password_reset_completed", brand_id=brand_id)
        return {
            "message": "Password has been reset successfully. Please log in with your new password.",
            "success": True,
        }

    # ==================== ACCOUNT ====================

    def delete_account(self, user_id: int, user_type: UserType) -> dict:
        """Soft delete an account; it can be restored by logging in within the restore window."""
        model = Influencer if user_type == UserType.INFLUENCER else Brand

        with db.session() as session:
            account = session.get(model, user_id)
            if not account or account.deleted_at:
                raise NotFoundError(f"{user_type.value.capitalize()} not found")
            account.is_active = False
            account.deleted_at = datetime.utcnow()
            token_service.logout_all(user_id, user_type, session=session)

        device_token_service.remove_all(user_id, user_type)
        self.logger.info("account_deleted", user_id=user_id, user_type=user_type.value)
        return {"message": "Account deleted successfully"}


auth_service = AuthService()
