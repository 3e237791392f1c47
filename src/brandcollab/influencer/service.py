"""Influencer profile: read, update, WhatsApp verification."""

from typing import Any

from fastapi import BackgroundTasks, UploadFile

from brandcollab.admin.models import ProfileReview, ProfileType, ReviewStatus
from brandcollab.admin.review_service import get_verification_status, influencer_snapshot, profile_review_service
from brandcollab.auth.models import Influencer, OtpType
from brandcollab.auth.otp import PHONE_OTP_EXPIRY_MINUTES, format_indian_phone, hash_identifier, otp_service
from brandcollab.auth.rules import ensure_username_available, map_gender
from brandcollab.campaign.models import CampaignApplication
from brandcollab.errors import BadRequestError, NotFoundError
from brandcollab.influencer.completion import SOCIAL_FIELDS, calculate_profile_completion, is_profile_complete
from brandcollab.influencer.credits import weekly_credit_service
from brandcollab.influencer.models import Experience
from brandcollab.logging_config import get_logger
from brandcollab.master_data.service import (
    check_niche_selection,
    get_custom_niches,
    replace_custom_niches,
    resolve_niches,
)
from brandcollab.notifications.dispatch import dispatch
from brandcollab.notifications.push import push_service
from brandcollab.notifications.whatsapp import whatsapp_service
from brandcollab.payments.stripe_service import pro_status
from brandcollab.storage.db import db
from brandcollab.storage.models import City, Country, UserType
from brandcollab.uploads.s3 import FileKind, s3_service

SUBMITTED_MESSAGE = (
    "Profile submitted for verification. You will receive a notification once "
    "verification is complete within 48 hours."
)
INCOMPLETE_MESSAGE = "Profile updated successfully. Please complete the missing fields to submit for verification."
UPDATED_MESSAGE = "Profile updated successfully"

# Plain columns copied from the update payload when present
PROFILE_FIELDS = ("name", "bio", "profile_headline", "date_of_birth", "country_id", "city_id")


def serialize_influencer(session, influencer: Influencer, public: bool = False) -> dict:
    """Profile dict; the public view leaves out contact and account data."""
    data = {
        "id": influencer.id,
        "name": influencer.name,
        "username": influencer.username,
        "bio": influencer.bio,
        "profileImage": influencer.profile_image,
        "profileBanner": influencer.profile_banner,
        "profileHeadline": influencer.profile_headline,
        "userType": UserType.INFLUENCER.value,
        "gender": influencer.gender.value if influencer.gender else None,
        "othersGender": influencer.others_gender,
        "age": influencer.age,
        "location": {
            "country": {
                "id": influencer.country.id,
                "name": influencer.country.name,
                "code": influencer.country.code,
            } if influencer.country else None,
            "city": influencer.city.to_dict() if influencer.city else None,
        },
        "socialLinks": {
            "instagram": influencer.instagram_url,
            "youtube": influencer.youtube_url,
            "facebook": influencer.facebook_url,
            "linkedin": influencer.linkedin_url,
            "twitter": influencer.twitter_url,
        },
        "collaborationCosts": influencer.collaboration_costs or {},
        "niches": [n.to_dict() for n in influencer.niches],
        "customNiches": get_custom_niches(session, UserType.INFLUENCER, influencer.id),
        "isVerified": bool(influencer.is_verified),
        "isPro": pro_status(influencer)["isPro"],
        "experiencesCount": session.query(Experience).filter(Experience.influencer_id == influencer.id).count(),
        "createdAt": influencer.created_at.isoformat() if influencer.created_at else None,
    }

    if public:
        return data

    data.update({
        "phone": influencer.phone,
        "whatsappNumber": influencer.whatsapp_number,
        "isWhatsappVerified": bool(influencer.is_whatsapp_verified),
        "dateOfBirth": influencer.date_of_birth.isoformat() if influencer.date_of_birth else None,
        "referralCode": influencer.referral_code,
        "isProfileCompleted": bool(influencer.is_profile_completed),
        "profileCompletion": calculate_profile_completion(influencer),
        "verificationStatus": get_verification_status(session, influencer.id, ProfileType.INFLUENCER),
        "applicationsCount": session.query(CampaignApplication).filter(
            CampaignApplication.influencer_id == influencer.id,
        ).count(),
        "weeklyCredits": weekly_credit_service.info(weekly_credit_service.refresh(influencer)),
        "pro": pro_status(influencer),
    })
    return data


def _latest_review(session, influencer_id: int) -> ProfileReview | None:
    return session.query(ProfileReview).filter(
        ProfileReview.profile_id == influencer_id,
        ProfileReview.profile_type == ProfileType.INFLUENCER,
    ).order_by(ProfileReview.created_at.desc(), ProfileReview.id.desc()).first()


class InfluencerService:
    """Influencer profile management."""

    def __init__(self):
        """Initialize influencer service."""
        self.logger = get_logger(__name__)

    def _get(self, session, influencer_id: int) -> Influencer:
        influencer = session.query(Influencer).filter(
            Influencer.id == influencer_id,
            Influencer.deleted_at.is_(None),
        ).first()
        if not influencer:
            raise NotFoundError("Influencer not found")
        return influencer

    def get_profile(self, influencer_id: int, public: bool = False) -> dict:
        """Profile for the owner, or the public view for everyone else."""
        with db.session() as session:
            influencer = self._get(session, influencer_id)
            if public and not influencer.is_active:
                raise NotFoundError("Influencer not found")
            return serialize_influencer(session, influencer, public=public)

    # ==================== UPDATE ====================

    def _check_update(self, session, influencer: Influencer, data: dict) -> None:
        if data.get("username") and data["username"] != influencer.username:
            ensure_username_available(session, data["username"], exclude=influencer)

        if "niche_ids" in data or "custom_niches" in data:
            niche_ids = data["niche_ids"] if "niche_ids" in data else [n.id for n in influencer.niches]
            custom = (
                data["custom_niches"] if "custom_niches" in data
                else get_custom_niches(session, UserType.INFLUENCER, influencer.id)
            )
            check_niche_selection(niche_ids, custom)
            if "niche_ids" in data:
                resolve_niches(session, data["niche_ids"])

        if data.get("country_id") and not session.get(Country, data["country_id"]):
            raise BadRequestError("Invalid country")
        if data.get("city_id") and not session.get(City, data["city_id"]):
            raise BadRequestError("Invalid city")

    def _check_duplicate_whatsapp(self, session, influencer: Influencer) -> None:
        """A rejected profile may not resubmit with a number another live profile verified."""
        if not influencer.whatsapp_hash:
            return

        others = session.query(Influencer).filter(
            Influencer.whatsapp_hash == influencer.whatsapp_hash,
            Influencer.is_whatsapp_verified == True,  # noqa: E712
            Influencer.id != influencer.id,
            Influencer.deleted_at.is_(None),
        ).all()

        for other in others:
            review = _latest_review(session, other.id)
            if review and review.status in (ReviewStatus.APPROVED, ReviewStatus.PENDING):
                self.logger.warning(
                    "duplicate_whatsapp_resubmission_blocked",
                    influencer_id=influencer.id,
                    other_influencer_id=other.id,
                )
                raise BadRequestError(
                    "This WhatsApp number is already linked to another verified or pending profile"
                )

    def _apply(self, session, influencer: Influencer, data: dict, uploads: dict) -> None:
        for field in PROFILE_FIELDS:
            if field in data:
                setattr(influencer, field, data[field])

        if data.get("username"):
            influencer.username = data["username"]

        if "gender" in data:
            influencer.gender, influencer.others_gender = map_gender(data["gender"])

        # "" clears a link, an absent key keeps it
        for field in SOCIAL_FIELDS:
            if field in data and data[field] is not None:
                setattr(influencer, field, data[field].strip() or None)

        if "collaboration_costs" in data and data["collaboration_costs"] is not None:
            influencer.collaboration_costs = data["collaboration_costs"]

        if "profile_image" in uploads:
            influencer.profile_image = uploads["profile_image"]
        if "profile_banner" in uploads:
            influencer.profile_banner = uploads["profile_banner"]
        elif data.get("clear_profile_banner"):
            influencer.profile_banner = None

        if "niche_ids" in data:
            influencer.niches = resolve_niches(session, data["niche_ids"])
        if "custom_niches" in data:
            replace_custom_niches(session, UserType.INFLUENCER, influencer.id, data["custom_niches"])

    async def update_profile(
        self,
        influencer_id: int,
        data: dict[str, Any],
        files: dict[str, UploadFile | None] | None = None,
        background: BackgroundTasks | None = None,
    ) -> dict:
        """Update the profile and submit it for verification once complete.

        Args:
            influencer_id: Owner
            data: Only the keys the client sent
            files: profile_image and profile_banner uploads

        Raises:
            NotFoundError: Unknown influencer
            ConflictError: Username taken
            BadRequestError: Invalid niches, location or duplicate WhatsApp on resubmission
        """
        files = files or {}

        with db.session() as session:
            self._check_update(session, self._get(session, influencer_id), data)

        uploads = {}
        for field in ("profile_image", "profile_banner"):
            if files.get(field) is not None:
                uploads[field] = await s3_service.upload_file(files[field], "profiles/influencers", FileKind.IMAGE)

        with db.session() as session:
            influencer = self._get(session, influencer_id)
            self._apply(session, influencer, data, uploads)
            session.flush()

            complete = is_profile_complete(influencer)
            latest = _latest_review(session, influencer.id)

            if complete and latest and latest.status == ReviewStatus.REJECTED:
                self._check_duplicate_whatsapp(session, influencer)

            influencer.is_profile_completed = complete

            submitted = False
            if complete and not profile_review_service.has_open_or_approved_review(
                session, influencer.id, ProfileType.INFLUENCER
            ):
                review_id = profile_review_service.submit(
                    session, influencer.id, ProfileType.INFLUENCER, influencer_snapshot(influencer)
                )
                submitted = True

            completion = calculate_profile_completion(influencer)
            never_submitted = latest is None and not submitted
            name = influencer.name or "there"
            whatsapp = influencer.whatsapp_number if influencer.is_whatsapp_verified else None
            profile = serialize_influencer(session, influencer)

        self.logger.info("influencer_profile_updated", influencer_id=influencer_id, complete=complete, submitted=submitted)

        if submitted:
            await dispatch(
                background, profile_review_service.notify_admins_of_pending, influencer_id, ProfileType.INFLUENCER, review_id
            )
            await dispatch(
                background,
                push_service.send_custom,
                influencer_id,
                UserType.INFLUENCER,
                "Profile Under Review",
                f"Hi {name}, your profile has been submitted for verification. "
                "You will be notified once the review is complete within 48 hours.",
                type="profile_verification_pending",
            )
            if whatsapp:
                await dispatch(background, whatsapp_service.send_profile_verification_pending, whatsapp, name)
            return {
                "message": SUBMITTED_MESSAGE,
                "status": "pending_verification",
                "influencer": profile,
            }

        if not complete:
            missing = len(completion["missingFields"])
            if never_submitted:
                await dispatch(
                    background,
                    push_service.send_custom,
                    influencer_id,
                    UserType.INFLUENCER,
                    "Complete Your Profile",
                    f"Hi {name}, complete {missing} more field(s) to submit your profile for verification.",
                    type="profile_incomplete",
                    missingFieldsCount=missing,
                )
            return {
                "message": INCOMPLETE_MESSAGE,
                "status": "incomplete",
                "missingFieldsCount": missing,
                "influencer": profile,
            }

        return {"message": UPDATED_MESSAGE, "influencer": profile}

    # ==================== WHATSAPP ====================

    async def send_whatsapp_otp(self, influencer_id: int, whatsapp_number: str) -> dict:
        """Send an OTP to the WhatsApp number the influencer wants to verify.

        Raises:
            BadRequestError: Invalid number or verified by another influencer
            TooManyRequestsError: OTP limits hit
        """
        formatted = format_indian_phone(whatsapp_number)

        with db.session() as session:
            self._get(session, influencer_id)
            taken = session.query(Influencer.id).filter(
                Influencer.whatsapp_hash == hash_identifier(formatted),
                Influencer.is_whatsapp_verified == True,  # noqa: E712
                Influencer.id != influencer_id,
                Influencer.deleted_at.is_(None),
            ).first()
            if taken:
                raise BadRequestError("This WhatsApp number is already verified by another user")

        otp_service.check_request_limits(formatted)
        code = otp_service.generate_and_store(formatted, OtpType.PHONE)
        if not await whatsapp_service.send_otp(formatted, code):
            self.logger.warning("whatsapp_otp_delivery_failed", influencer_id=influencer_id)

        return {
            "message": "OTP sent to your WhatsApp number",
            "whatsappNumber": formatted,
            "expiresIn": PHONE_OTP_EXPIRY_MINUTES * 60,
        }

    def verify_whatsapp_otp(self, influencer_id: int, whatsapp_number: str, otp: str) -> dict:
        """Verify the WhatsApp OTP and store the number.

        Raises:
            BadRequestError: Already verified, or OTP invalid/expired
        """
        formatted = format_indian_phone(whatsapp_number)

        with db.session() as session:
            if self._get(session, influencer_id).is_whatsapp_verified:
                raise BadRequestError("WhatsApp number is already verified")

        otp_service.verify(formatted, OtpType.PHONE, otp)

        with db.session() as session:
            influencer = self._get(session, influencer_id)
            influencer.whatsapp_number = formatted
            influencer.whatsapp_hash = hash_identifier(formatted)
            influencer.is_whatsapp_verified = True

        self.logger.info("whatsapp_verified", influencer_id=influencer_id)
        return {"message": "WhatsApp number verified successfully", "verified": True}


influencer_service = InfluencerService()
