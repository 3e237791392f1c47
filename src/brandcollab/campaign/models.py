"""Campaign, targeting and application models."""

from datetime import datetime
from enum import Enum

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from brandcollab.storage.models import Base, enum_type


class CampaignStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class CampaignType(str, Enum):
    UGC = "ugc"
    PAID = "paid"
    BARTER = "barter"
    ENGAGEMENT = "engagement"


class ApplicationStatus(str, Enum):
    APPLIED = "applied"
    UNDER_REVIEW = "under_review"
    SELECTED = "selected"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"


class InvitationStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    EXPIRED = "expired"


class Platform(str, Enum):
    INSTAGRAM = "instagram"
    YOUTUBE = "youtube"
    FACEBOOK = "facebook"
    LINKEDIN = "linkedin"
    TWITTER = "twitter"
    ENGAGEMENT = "engagement"


class DeliverableType(str, Enum):
    INSTAGRAM_POST = "instagram_post"
    INSTAGRAM_STORY = "instagram_story"
    INSTAGRAM_REEL = "instagram_reel"
    YOUTUBE_SHORT = "youtube_short"
    YOUTUBE_LONG_VIDEO = "youtube_long_video"
    FACEBOOK_POST = "facebook_post"
    FACEBOOK_STORY = "facebook_story"
    LINKEDIN_POST = "linkedin_post"
    TWITTER_POST = "twitter_post"
    LIKE_COMMENT = "like_comment"
    PLAYSTORE_REVIEW = "playstore_review"
    APPSTORE_REVIEW = "appstore_review"
    GOOGLE_REVIEW = "google_review"
    APP_DOWNLOAD = "app_download"


DELIVERABLE_LABELS = {
    "instagram_post": "Insta Reel / Post",
    "instagram_reel": "Insta Reel / Post",
    "instagram_story": "Insta Story",
    "youtube_short": "YT Shorts",
    "youtube_long_video": "YT Video",
    "facebook_story": "FB Story",
    "facebook_post": "FB Post",
    "twitter_post": "X Post",
    "linkedin_post": "LinkedIn Post",
    "like_comment": "Like/Comment",
    "playstore_review": "Playstore Review",
    "appstore_review": "App Store Review",
    "google_review": "Google Review",
    "app_download": "App Download",
}


def deliverable_label(value: str) -> str:
    """Human-readable label for a deliverable type."""
    return DELIVERABLE_LABELS.get(value, value)


class Campaign(Base):
    """Brand campaign with audience targeting rules."""
    __tablename__ = "campaigns"

    id = Column(Integer, primary_key=True)
    brand_id = Column(Integer, ForeignKey("brands.id"), nullable=False, index=True)

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(100), nullable=True)
    status = Column(enum_type(CampaignStatus), default=CampaignStatus.ACTIVE, nullable=False, index=True)
    type = Column(enum_type(CampaignType), default=CampaignType.PAID, nullable=False)

    # Visibility
    is_invite_only = Column(Boolean, default=False, nullable=False)
    is_organic = Column(Boolean, default=False, nullable=False)
    is_max_campaign = Column(Boolean, default=False, nullable=False)

    # Targeting
    is_pan_india = Column(Boolean, default=False, nullable=False)
    min_age = Column(Integer, nullable=True)
    max_age = Column(Integer, nullable=True)
    is_open_to_all_ages = Column(Boolean, default=False, nullable=False)
    gender_preferences = Column(JSON, nullable=True)  # ["male", "female", "others"]
    is_open_to_all_genders = Column(Boolean, default=False, nullable=False)
    niche_ids = Column(JSON, nullable=True)  # [1, 4, 9]

    # Brief
    custom_influencer_requirements = Column(Text, nullable=True)
    performance_expectations = Column(Text, nullable=True)
    brand_support = Column(Text, nullable=True)

    # Budget
    campaign_budget = Column(Numeric(12, 2), nullable=True)
    barter_product_worth = Column(Numeric(12, 2), nullable=True)
    additional_monetary_payout = Column(Numeric(12, 2), nullable=True)
    number_of_influencers = Column(Integer, default=1, nullable=False)

    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    brand = relationship("Brand", lazy="joined")
    cities = relationship("CampaignCity", back_populates="campaign", cascade="all, delete-orphan", lazy="selectin")
    deliverables = relationship(
        "CampaignDeliverable", back_populates="campaign", cascade="all, delete-orphan", lazy="selectin"
    )
    invitations = relationship("CampaignInvitation", back_populates="campaign", cascade="all, delete-orphan")
    applications = relationship("CampaignApplication", back_populates="campaign", cascade="all, delete-orphan")

    @property
    def city_ids(self) -> list[int]:
        return [c.city_id for c in self.cities]

    def deliverable_formats(self) -> list[str]:
        return list(dict.fromkeys(deliverable_label(d.type.value) for d in self.deliverables))

    def to_dict(self) -> dict:
        def money(value):
            return float(value) if value is not None else None

        return {
            "id": self.id,
            "brandId": self.brand_id,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "status": self.status.value,
            "type": self.type.value,
            "isInviteOnly": self.is_invite_only,
            "isOrganic": self.is_organic,
            "isMaxCampaign": self.is_max_campaign,
            "isPanIndia": self.is_pan_india,
            "minAge": self.min_age,
            "maxAge": self.max_age,
            "isOpenToAllAges": self.is_open_to_all_ages,
            "genderPreferences": self.gender_preferences or [],
            "isOpenToAllGenders": self.is_open_to_all_genders,
            "nicheIds": self.niche_ids or [],
            "customInfluencerRequirements": self.custom_influencer_requirements,
            "performanceExpectations": self.performance_expectations,
            "brandSupport": self.brand_support,
            "campaignBudget": money(self.campaign_budget),
            "barterProductWorth": money(self.barter_product_worth),
            "additionalMonetaryPayout": money(self.additional_monetary_payout),
            "numberOfInfluencers": self.number_of_influencers,
            "isActive": self.is_active,
            "cities": [
                {"id": c.city.id, "name": c.city.name, "tier": c.city.tier}
                for c in self.cities if c.city is not None
            ],
            "deliverables": [d.to_dict() for d in self.deliverables],
            "deliverableFormat": self.deliverable_formats(),
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<Campaign(id={self.id}, name={self.name}, status={self.status})>"


class CampaignCity(Base):
    """City a non pan-India campaign targets."""
    __tablename__ = "campaign_cities"

    id = Column(Integer, primary_key=True)
    campaign_id = Column(Integer, ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False, index=True)
    city_id = Column(Integer, ForeignKey("cities.id"), nullable=False, index=True)

    campaign = relationship("Campaign", back_populates="cities")
    city = relationship("City", lazy="joined")


class CampaignDeliverable(Base):
    """Content item the influencer must deliver."""
    __tablename__ = "campaign_deliverables"

    id = Column(Integer, primary_key=True)
    campaign_id = Column(Integer, ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False, index=True)
    platform = Column(enum_type(Platform), nullable=False)
    type = Column(enum_type(DeliverableType), nullable=False)
    budget = Column(Numeric(10, 2), nullable=True)
    quantity = Column(Integer, default=1, nullable=False)
    specifications = Column(Text, nullable=True)

    campaign = relationship("Campaign", back_populates="deliverables")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "platform": self.platform.value,
            "type": self.type.value,
            "budget": float(self.budget) if self.budget is not None else None,
            "quantity": self.quantity,
            "specifications": self.specifications,
        }


class CampaignInvitation(Base):
    """Invitation of an influencer to a campaign."""
    __tablename__ = "campaign_invitations"
    __table_args__ = (
        UniqueConstraint("campaign_id", "influencer_id", name="unique_campaign_influencer_invitation"),
    )

    id = Column(Integer, primary_key=True)
    campaign_id = Column(Integer, ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False, index=True)
    influencer_id = Column(Integer, ForeignKey("influencers.id"), nullable=False, index=True)
    status = Column(enum_type(InvitationStatus), default=InvitationStatus.PENDING, nullable=False)
    message = Column(Text, nullable=True)
    expires_at = Column(DateTime, nullable=True)
    responded_at = Column(DateTime, nullable=True)
    response_message = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    campaign = relationship("Campaign", back_populates="invitations")
    influencer = relationship("Influencer")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "campaignId": self.campaign_id,
            "influencerId": self.influencer_id,
            "status": self.status.value,
            "message": self.message,
            "expiresAt": self.expires_at.isoformat() if self.expires_at else None,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


class CampaignApplication(Base):
    """Influencer application to a campaign."""
    __tablename__ = "campaign_applications"

    id = Column(Integer, primary_key=True)
    campaign_id = Column(Integer, ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False, index=True)
    influencer_id = Column(Integer, ForeignKey("influencers.id"), nullable=False, index=True)
    status = Column(enum_type(ApplicationStatus), default=ApplicationStatus.APPLIED, nullable=False)
    cover_letter = Column(Text, nullable=True)
    proposal_message = Column(Text, nullable=True)
    reviewed_at = Column(DateTime, nullable=True)
    review_notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    campaign = relationship("Campaign", back_populates="applications")
    influencer = relationship("Influencer")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "campaignId": self.campaign_id,
            "influencerId": self.influencer_id,
            "status": self.status.value,
            "coverLetter": self.cover_letter,
            "proposalMessage": self.proposal_message,
            "reviewedAt": self.reviewed_at.isoformat() if self.reviewed_at else None,
            "reviewNotes": self.review_notes,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<CampaignApplication(id={self.id}, campaign={self.campaign_id}, status={self.status})>"
