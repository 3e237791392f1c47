"""Brand profile: read and update."""

from typing import Any

from fastapi import BackgroundTasks, UploadFile

from brandcollab.admin.models import ProfileType
from brandcollab.admin.review_service import brand_snapshot, get_verification_status, profile_review_service
from brandcollab.auth.models import Brand
from brandcollab.auth.rules import ensure_username_available
from brandcollab.brand.completion import calculate_profile_completion, is_profile_complete
from brandcollab.campaign.models import Campaign, CampaignStatus
from brandcollab.errors import BadRequestError, NotFoundError
from brandcollab.influencer.completion import SOCIAL_FIELDS
from brandcollab.logging_config import get_logger
from brandcollab.master_data.service import (
    check_niche_selection,
    get_custom_niches,
    replace_custom_niches,
    resolve_niches,
)
from brandcollab.notifications.dispatch import dispatch
from brandcollab.storage.db import db
from brandcollab.storage.models import City, CompanyType, Country, UserType
from brandcollab.uploads.s3 import FileKind, s3_service

SUBMITTED_MESSAGE = (
    "Profile submitted for verification. You will receive an email confirmation once "
    "verification is complete within 48 hours."
)
INCOMPLETE_MESSAGE = "Profile updated successfully. Please complete the missing fields to submit for verification."
UPDATED_MESSAGE = "Profile updated successfully"

PROFILE_FIELDS = (
    "brand_name",
    "legal_entity_name",
    "company_type_id",
    "brand_email_id",
    "poc_name",
    "poc_designation",
    "poc_email_id",
    "poc_contact_number",
    "brand_bio",
    "profile_headline",
    "website_url",
    "founded_year",
    "headquarter_country_id",
    "headquarter_city_id",
)
DOCUMENT_FIELDS = ("incorporation_document", "gst_document", "pan_document")


def serialize_brand(session, brand: Brand, public: bool = False) -> dict:
    """Brand profile; the public view drops contact details and documents."""
    active_campaigns = session.query(Campaign.id).filter(
        Campaign.brand_id == brand.id,
        Campaign.status == CampaignStatus.ACTIVE,
        Campaign.is_active == True,  # noqa: E712
    ).count()

    data = {
        "id": brand.id,
        "brandName": brand.brand_name,
        "username": brand.username,
        "brandBio": brand.brand_bio,
        "profileImage": brand.profile_image,
        "profileBanner": brand.profile_banner,
        "profileHeadline": brand.profile_headline,
        "websiteUrl": brand.website_url,
        "foundedYear": brand.founded_year,
        "userType": UserType.BRAND.value,
        "companyType": (
            {"id": brand.company_type.id, "name": brand.company_type.name} if brand.company_type else None
        ),
        "headquarterCountry": (
            {
                "id": brand.headquarter_country.id,
                "name": brand.headquarter_country.name,
                "code": brand.headquarter_country.code,
            }
            if brand.headquarter_country else None
        ),
        "headquarterCity": brand.headquarter_city.to_dict() if brand.headquarter_city else None,
        "socialLinks": {
            "instagram": brand.instagram_url,
            "youtube": brand.youtube_url,
            "facebook": brand.facebook_url,
            "linkedin": brand.linkedin_url,
            "twitter": brand.twitter_url,
        },
        "niches": [n.to_dict() for n in brand.niches],
        "customNiches": get_custom_niches(session, UserType.BRAND, brand.id),
        "isVerified": bool(brand.is_verified),
        "activeCampaignsCount": active_campaigns,
        "createdAt": brand.created_at.isoformat() if brand.created_at else None,
    }
    if public:
        return data

    data.update({
        "email": brand.email,
        "isEmailVerified": bool(brand.is_email_verified),
        "legalEntityName": brand.legal_entity_name,
        "brandEmailId": brand.brand_email_id,
        "pocName": brand.poc_name,
        "pocDesignation": brand.poc_designation,
        "pocEmailId": brand.poc_email_id,
        "pocContactNumber": brand.poc_contact_number,
        "documents": {
            "incorporationDocument": brand.incorporation_document,
            "gstDocument": brand.gst_document,
            "panDocument": brand.pan_document,
        },
        "isProfileCompleted": bool(brand.is_profile_completed),
        "profileCompletion": calculate_profile_completion(brand),
        "verificationStatus": get_verification_status(session, brand.id, ProfileType.BRAND),
    })
    return data


class BrandService:
    """Brand profile management."""

    def __init__(self):
        """Initialize brand service."""
        self.logger = get_logger(__name__)

    def _get(self, session, brand_id: int) -> Brand:
        brand = session.query(Brand).filter(Brand.id == brand_id, Brand.deleted_at.is_(None)).first()
        if not brand:
            raise NotFoundError("Brand not found")
        return brand

    def get_brand_profile(self, brand_id: int, public: bool = False) -> dict:
        with db.session() as session:
            brand = self._get(session, brand_id)
            if public and not brand.is_active:
                raise NotFoundError("Brand not found")
            return serialize_brand(session, brand, public=public)

    def _check_update(self, session, brand: Brand, data: dict) -> None:
        if data.get("username") and data["username"] != brand.username:
            ensure_username_available(session, data["username"], exclude=brand)

        if "niche_ids" in data or "custom_niches" in data:
            niche_ids = data["niche_ids"] if "niche_ids" in data else [n.id for n in brand.niches]
            custom = (
                data["custom_niches"] if "custom_niches" in data
                else get_custom_niches(session, UserType.BRAND, brand.id)
            )
            check_niche_selection(niche_ids, custom)
            if "niche_ids" in data:
                resolve_niches(session, data["niche_ids"])

        if data.get("company_type_id") and not session.get(CompanyType, data["company_type_id"]):
            raise BadRequestError("Invalid company type provided")
        if data.get("headquarter_country_id") and not session.get(Country, data["headquarter_country_id"]):
            raise BadRequestError("Invalid country")
        if data.get("headquarter_city_id") and not session.get(City, data["headquarter_city_id"]):
            raise BadRequestError("Invalid city")

    async def update_brand_profile(
        self,
        brand_id: int,
        data: dict[str, Any],
        files: dict[str, UploadFile | None] | None = None,
        background: BackgroundTasks | None = None,
    ) -> dict:
        """Update the brand profile; a newly complete profile goes to review.

        Args:
            brand_id: Owner
            data: Only the keys the client sent
            files: profile_image, profile_banner and document uploads

        Raises:
            NotFoundError: Unknown brand
            ConflictError: Username taken
            BadRequestError: Invalid niches, company type or location
        """
        files = files or {}

        with db.session() as session:
            self._check_update(session, self._get(session, brand_id), data)

        uploads = {}
        for field in ("profile_image", "profile_banner"):
            if files.get(field) is not None:
                uploads[field] = await s3_service.upload_file(files[field], "profiles/brands", FileKind.IMAGE)
        for field in DOCUMENT_FIELDS:
            if files.get(field) is not None:
                uploads[field] = await s3_service.upload_file(files[field], "documents/brands", FileKind.DOCUMENT)

        with db.session() as session:
            brand = self._get(session, brand_id)
            for field in PROFILE_FIELDS:
                if field in data:
                    setattr(brand, field, data[field])
            if data.get("username"):
                brand.username = data["username"]
            for field in SOCIAL_FIELDS:
                if field in data and data[field] is not None:
                    setattr(brand, field, data[field].strip() or None)
            for field, url in uploads.items():
                setattr(brand, field, url)
            if "niche_ids" in data:
                brand.niches = resolve_niches(session, data["niche_ids"])
            if "custom_niches" in data:
                replace_custom_niches(session, UserType.BRAND, brand.id, data["custom_niches"])
            session.flush()

            complete = is_profile_complete(brand)
            brand.is_profile_completed = complete

            review_id = None
            if complete and not profile_review_service.has_open_or_approved_review(
                session, brand.id, ProfileType.BRAND
            ):
                review_id = profile_review_service.submit(session, brand.id, ProfileType.BRAND, brand_snapshot(brand))

            missing = len(calculate_profile_completion(brand)["missingFields"])
            profile = serialize_brand(session, brand)

        self.logger.info("brand_profile_updated", brand_id=brand_id, complete=complete, submitted=review_id is not None)

        if review_id is not None:
            await dispatch(
                background, profile_review_service.notify_admins_of_pending, brand_id, ProfileType.BRAND, review_id
            )
            return {"message": SUBMITTED_MESSAGE, "status": "pending_verification", "brand": profile}
        if not complete:
            return {
                "message": INCOMPLETE_MESSAGE,
                "status": "incomplete",
                "missingFieldsCount": missing,
                "brand": profile,
            }
        return {"message": UPDATED_MESSAGE, "brand": profile}


brand_service = BrandService()
