"""Admin verification queue for influencer and brand profiles."""

import math
from datetime import datetime, timedelta

from fastapi import BackgroundTasks

from brandcollab.admin.models import Admin, AdminRole, AdminStatus, ProfileReview, ProfileType, ReviewStatus
from brandcollab.auth.models import Brand, Influencer
from brandcollab.email.service import email_service
from brandcollab.errors import BadRequestError, NotFoundError
from brandcollab.logging_config import get_logger
from brandcollab.notifications.dispatch import dispatch
from brandcollab.notifications.push import push_service
from brandcollab.notifications.whatsapp import whatsapp_service
from brandcollab.referral.service import referral_service
from brandcollab.storage.db import db
from brandcollab.storage.models import UserType

logger = get_logger(__name__)

OPEN_STATUSES = (ReviewStatus.PENDING, ReviewStatus.UNDER_REVIEW)


def influencer_snapshot(influencer: Influencer) -> dict:
    """Fields an admin needs to verify an influencer."""
    return {
        "id": influencer.id,
        "name": influencer.name,
        "username": influencer.username,
        "phone": influencer.phone,
        "bio": influencer.bio,
        "profileImage": influencer.profile_image,
        "profileHeadline": influencer.profile_headline,
        "gender": influencer.gender.value if influencer.gender else None,
        "dateOfBirth": influencer.date_of_birth.isoformat() if influencer.date_of_birth else None,
        "city": influencer.city.name if influencer.city else None,
        "whatsappNumber": influencer.whatsapp_number,
        "isWhatsappVerified": bool(influencer.is_whatsapp_verified),
        "socialLinks": {
            "instagram": influencer.instagram_url,
            "youtube": influencer.youtube_url,
            "facebook": influencer.facebook_url,
            "linkedin": influencer.linkedin_url,
            "twitter": influencer.twitter_url,
        },
        "collaborationCosts": influencer.collaboration_costs or {},
        "niches": [n.to_dict() for n in influencer.niches],
    }


def brand_snapshot(brand: Brand) -> dict:
    """Fields an admin needs to verify a brand."""
    return {
        "id": brand.id,
        "email": brand.email,
        "brandName": brand.brand_name,
        "username": brand.username,
        "legalEntityName": brand.legal_entity_name,
        "companyType": brand.company_type.name if brand.company_type else None,
        "brandEmailId": brand.brand_email_id,
        "pocName": brand.poc_name,
        "pocDesignation": brand.poc_designation,
        "pocEmailId": brand.poc_email_id,
        "pocContactNumber": brand.poc_contact_number,
        "websiteUrl": brand.website_url,
        "documents": {
            "incorporation": brand.incorporation_document,
            "gst": brand.gst_document,
            "pan": brand.pan_document,
        },
        "niches": [n.to_dict() for n in brand.niches],
    }


def get_verification_status(session, profile_id: int, profile_type: ProfileType) -> dict | None:
    """Verification badge for the profile owner, from the latest review.

    Approved and rejected outcomes are reported as new exactly once.
    """
    review = session.query(ProfileReview).filter(
        ProfileReview.profile_id == profile_id,
        ProfileReview.profile_type == profile_type,
    ).order_by(ProfileReview.created_at.desc(), ProfileReview.id.desc()).first()

    if not review:
        return None

    if review.status in OPEN_STATUSES:
        return {
            "status": "pending",
            "message": "Profile Under Verification",
            "description": "Usually takes 1-2 business days to complete verification",
            "isNew": False,
        }

    is_new = not review.status_viewed
    review.status_viewed = True

    if review.status == ReviewStatus.APPROVED:
        return {
            "status": "approved",
            "message": "Profile Verification Successful",
            "description": "Your profile has been approved and is now visible to brands",
            "isNew": is_new,
        }
    return {
        "status": "rejected",
        "message": "Profile Verification Rejected",
        "description": review.rejection_reason or "Please update your profile and resubmit for verification",
        "isNew": is_new,
    }


class ProfileReviewService:
    """Submission, approval and rejection of profile reviews."""

    def __init__(self):
        """Initialize review service."""
        self.logger = get_logger(__name__)

    # ==================== SUBMISSION ====================

    def submit(
        self,
        session,
        profile_id: int,
        profile_type: ProfileType,
        submitted_data: dict | None = None,
    ) -> int:
        """Queue a profile for review inside the caller's session.

        An existing review of the profile is reset to pending rather than
        adding a second one.

        Returns:
            Review id
        """
        review = session.query(ProfileReview).filter(
            ProfileReview.profile_id == profile_id,
            ProfileReview.profile_type == profile_type,
        ).order_by(ProfileReview.created_at.desc(), ProfileReview.id.desc()).first()

        if review:
            review.status = ReviewStatus.PENDING
            review.submitted_at = datetime.utcnow()
            review.submitted_data = submitted_data
            review.reviewed_by = None
            review.reviewed_at = None
            review.rejection_reason = None
            review.admin_comments = None
            review.status_viewed = False
        else:
            review = ProfileReview(
                profile_id=profile_id,
                profile_type=profile_type,
                status=ReviewStatus.PENDING,
                submitted_data=submitted_data,
                submitted_at=datetime.utcnow(),
            )
            session.add(review)

        session.flush()
        self.logger.info("profile_review_submitted", review_id=review.id, profile_id=profile_id, profile_type=profile_type.value)
        return review.id

    def has_open_or_approved_review(self, session, profile_id: int, profile_type: ProfileType) -> bool:
        """Whether the profile was submitted and not rejected since."""
        return session.query(ProfileReview.id).filter(
            ProfileReview.profile_id == profile_id,
            ProfileReview.profile_type == profile_type,
            ProfileReview.status != ReviewStatus.REJECTED,
        ).first() is not None

    async def notify_admins_of_pending(self, profile_id: int, profile_type: ProfileType, review_id: int) -> int:
        """Email every active reviewer about a new submission.

        Returns:
            Number of emails accepted by the provider
        """
        with db.session() as session:
            admins = session.query(Admin.email).filter(
                Admin.status == AdminStatus.ACTIVE,
                Admin.role.in_([AdminRole.SUPER_ADMIN, AdminRole.PROFILE_REVIEWER]),
            ).all()

            if profile_type == ProfileType.BRAND:
                brand = session.get(Brand, profile_id)
                name = (brand.brand_name if brand else None) or "Unknown Brand"
            else:
                influencer = session.get(Influencer, profile_id)
                name = (influencer.name if influencer else None) or "Unknown Influencer"

        sent = 0
        for (admin_email,) in admins:
            if await email_service.send_admin_pending_profile(admin_email, profile_type.value, name, review_id):
                sent += 1
        return sent

    async def create_review(
        self,
        profile_id: int,
        profile_type: ProfileType,
        submitted_data: dict | None = None,
        background: BackgroundTasks | None = None,
    ) -> dict:
        with db.session() as session:
            review_id = self.submit(session, profile_id, profile_type, submitted_data)
            review = session.get(ProfileReview, review_id).to_dict()

        await dispatch(background, self.notify_admins_of_pending, profile_id, profile_type, review_id)
        return review

    # ==================== QUEUE ====================

    def get_pending_profiles(
        self,
        page: int = 1,
        limit: int = 20,
        profile_type: ProfileType | None = None,
    ) -> dict:
        """Pending reviews, oldest submission first, with profile summaries."""
        with db.session() as session:
            query = session.query(ProfileReview).filter(ProfileReview.status == ReviewStatus.PENDING)
            if profile_type:
                query = query.filter(ProfileReview.profile_type == profile_type)

            total = query.count()
            reviews = query.order_by(ProfileReview.submitted_at.asc()).offset((page - 1) * limit).limit(limit).all()

            items = []
            for review in reviews:
                item = review.to_dict()
                item["profile"] = self._snapshot(session, review)
                items.append(item)

            return {
                "reviews": items,
                "total": total,
                "page": page,
                "limit": limit,
                "totalPages": math.ceil(total / limit) if limit else 0,
            }

    def _snapshot(self, session, review: ProfileReview) -> dict | None:
        if review.profile_type == ProfileType.BRAND:
            brand = session.get(Brand, review.profile_id)
            return brand_snapshot(brand) if brand else None
        influencer = session.get(Influencer, review.profile_id)
        return influencer_snapshot(influencer) if influencer else None

    def get_profile_details(self, review_id: int) -> dict:
        with db.session() as session:
            review = session.get(ProfileReview, review_id)
            if not review:
                raise NotFoundError("Review not found")
            profile = self._snapshot(session, review)
            if profile is None:
                raise NotFoundError("Profile not found")
            return {"review": review.to_dict(), "profile": profile}

    def _get_open_review(self, session, review_id: int) -> ProfileReview:
        review = session.get(ProfileReview, review_id)
        if not review:
            raise NotFoundError("Review not found")
        if review.status not in OPEN_STATUSES:
            raise BadRequestError("Profile is not pending review")
        return review

    # ==================== DECISIONS ====================

    async def approve_profile(
        self,
        review_id: int,
        admin_id: int,
        comments: str | None = None,
        background: BackgroundTasks | None = None,
    ) -> dict:
        """Approve a pending review and verify the profile.

        Approving an influencer also credits whoever referred them.

        Raises:
            NotFoundError: Unknown review
            BadRequestError: Review is not pending or under review
        """
        with db.session() as session:
            review = self._get_open_review(session, review_id)
            review.status = ReviewStatus.APPROVED
            review.reviewed_by = admin_id
            review.reviewed_at = datetime.utcnow()
            review.admin_comments = comments

            profile_type = review.profile_type
            contact = None
            if profile_type == ProfileType.BRAND:
                brand = session.get(Brand, review.profile_id)
                if brand:
                    brand.is_verified = True
                    contact = (brand.email, brand.brand_name or "Brand")
            else:
                influencer = session.get(Influencer, review.profile_id)
                if influencer:
                    influencer.is_verified = True
                    influencer.verified_at = datetime.utcnow()
                    referral_service.award_referral_credit(session, influencer.id)
                    whatsapp = influencer.whatsapp_number if influencer.is_whatsapp_verified else None
                    contact = (influencer.id, influencer.name or "there", whatsapp)

            result = review.to_dict()

        self.logger.info("profile_approved", review_id=review_id, admin_id=admin_id, profile_type=profile_type.value)

        if contact and profile_type == ProfileType.BRAND:
            await dispatch(background, email_service.send_brand_approved, *contact)
        elif contact:
            influencer_id, name, whatsapp = contact
            if whatsapp:
                await dispatch(background, whatsapp_service.send_profile_verified, whatsapp, name)
            await dispatch(
                background,
                push_service.send_custom,
                influencer_id,
                UserType.INFLUENCER,
                "Profile Verified",
                f"Hi {name}, your profile has been verified. You can now apply to campaigns!",
                type="profile_verified",
            )

        return {"message": "Profile approved successfully", "review": result}

    async def reject_profile(
        self,
        review_id: int,
        admin_id: int,
        reason: str,
        comments: str | None = None,
        background: BackgroundTasks | None = None,
    ) -> dict:
        """Reject a pending review with a reason shown to the owner."""
        with db.session() as session:
            review = self._get_open_review(session, review_id)
            review.status = ReviewStatus.REJECTED
            review.reviewed_by = admin_id
            review.reviewed_at = datetime.utcnow()
            review.rejection_reason = reason
            review.admin_comments = comments

            profile_type = review.profile_type
            contact = None
            if profile_type == ProfileType.BRAND:
                brand = session.get(Brand, review.profile_id)
                if brand:
                    brand.is_verified = False
                    contact = (brand.email, brand.brand_name or "Brand")
            else:
                influencer = session.get(Influencer, review.profile_id)
                if influencer:
                    influencer.is_verified = False
                    influencer.verified_at = None
                    whatsapp = influencer.whatsapp_number if influencer.is_whatsapp_verified else None
                    contact = (influencer.id, influencer.name or "there", whatsapp)

            result = review.to_dict()

        self.logger.info("profile_rejected", review_id=review_id, admin_id=admin_id, profile_type=profile_type.value)

        if contact and profile_type == ProfileType.BRAND:
            email, name = contact
            await dispatch(background, email_service.send_brand_rejected, email, name, reason)
        elif contact:
            influencer_id, name, whatsapp = contact
            if whatsapp:
                await dispatch(background, whatsapp_service.send_profile_rejected, whatsapp, name, reason)
            await dispatch(
                background,
                push_service.send_custom,
                influencer_id,
                UserType.INFLUENCER,
                "Profile Verification Update",
                f"Hi {name}, your profile could not be verified: {reason}",
                type="profile_rejected",
            )

        return {"message": "Profile rejected successfully", "review": result}

    # ==================== REPORTING ====================

    def get_dashboard_stats(self) -> dict:
        today = datetime.utcnow().replace(hour=0, minute=0, second=0, microsecond=0)
        tomorrow = today + timedelta(days=1)

        with db.session() as session:
            def reviewed_today(status: ReviewStatus) -> int:
                return session.query(ProfileReview).filter(
                    ProfileReview.status == status,
                    ProfileReview.reviewed_at >= today,
                    ProfileReview.reviewed_at < tomorrow,
                ).count()

            return {
                "stats": {
                    "pendingReviews": session.query(ProfileReview).filter(
                        ProfileReview.status == ReviewStatus.PENDING
                    ).count(),
                    "approvedToday": reviewed_today(ReviewStatus.APPROVED),
                    "rejectedToday": reviewed_today(ReviewStatus.REJECTED),
                    "totalBrands": session.query(Brand).count(),
                    "totalInfluencers": session.query(Influencer).count(),
                }
            }

    def get_reviews_by_profile(self, profile_id: int, profile_type: ProfileType) -> list[dict]:
        with db.session() as session:
            reviews = session.query(ProfileReview).filter(
                ProfileReview.profile_id == profile_id,
                ProfileReview.profile_type == profile_type,
            ).order_by(ProfileReview.submitted_at.desc()).all()
            return [r.to_dict() for r in reviews]

    def get_statistics(self) -> dict:
        with db.session() as session:
            return {
                status.value: session.query(ProfileReview).filter(ProfileReview.status == status).count()
                for status in (ReviewStatus.PENDING, ReviewStatus.APPROVED, ReviewStatus.REJECTED)
            }

    def delete_review(self, review_id: int) -> dict:
        with db.session() as session:
            review = session.get(ProfileReview, review_id)
            if not review:
                raise NotFoundError("Profile review not found")
            session.delete(review)

        self.logger.info("profile_review_deleted", review_id=review_id)
        return {"message": "Profile review deleted successfully"}


profile_review_service = ProfileReviewService()
