"""Influencer-owned records: experiences, UPI ids and Pro subscriptions."""

from datetime import datetime
from enum import Enum

from sqlalchemy import JSON, Boolean, Column, Date, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from brandcollab.storage.models import Base, enum_type


class SubscriptionStatus(str, Enum):
    INACTIVE = "inactive"
    ACTIVE = "active"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


class Experience(Base):
    """Past brand collaboration shown on the influencer profile."""
    __tablename__ = "experiences"

    id = Column(Integer, primary_key=True)
    influencer_id = Column(Integer, ForeignKey("influencers.id", ondelete="CASCADE"), nullable=False, index=True)
    campaign_id = Column(Integer, ForeignKey("campaigns.id"), nullable=True)

    campaign_name = Column(String(255), nullable=False)
    brand_name = Column(String(255), nullable=False)
    campaign_category = Column(String(100), nullable=True)
    deliverable_format = Column(String(255), nullable=True)
    success_message = Column(Text, nullable=True)
    role_description = Column(Text, nullable=True)
    keyword_tags = Column(JSON, nullable=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    social_links = relationship(
        "ExperienceSocialLink",
        back_populates="experience",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "campaignId": self.campaign_id,
            "campaignName": self.campaign_name,
            "brandName": self.brand_name,
            "campaignCategory": self.campaign_category,
            "deliverableFormat": self.deliverable_format,
            "successMessage": self.success_message,
            "roleDescription": self.role_description,
            "keywordTags": self.keyword_tags or [],
            "startDate": self.start_date.isoformat() if self.start_date else None,
            "endDate": self.end_date.isoformat() if self.end_date else None,
            "socialLinks": [link.to_dict() for link in self.social_links],
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


class ExperienceSocialLink(Base):
    """Link to a piece of content produced for an experience."""
    __tablename__ = "experience_social_links"

    id = Column(Integer, primary_key=True)
    experience_id = Column(Integer, ForeignKey("experiences.id", ondelete="CASCADE"), nullable=False, index=True)
    platform = Column(String(50), nullable=False)
    content_type = Column(String(50), default="post", nullable=False)
    url = Column(String(500), nullable=False)

    experience = relationship("Experience", back_populates="social_links")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "platform": self.platform,
            "contentType": self.content_type,
            "url": self.url,
        }


class InfluencerUpi(Base):
    """UPI id used for referral reward payouts."""
    __tablename__ = "influencer_upi_ids"

    id = Column(Integer, primary_key=True)
    influencer_id = Column(Integer, ForeignKey("influencers.id", ondelete="CASCADE"), nullable=False, index=True)
    upi_id = Column(String(255), nullable=False)
    is_selected_for_next_transaction = Column(Boolean, default=False, nullable=False)
    last_used_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "upiId": self.upi_id,
            "isSelectedForNextTransaction": self.is_selected_for_next_transaction,
            "lastUsedAt": self.last_used_at.isoformat() if self.last_used_at else None,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


class ProSubscription(Base):
    """Pro tier purchase (Stripe Checkout)."""
    __tablename__ = "pro_subscriptions"

    id = Column(Integer, primary_key=True)
    influencer_id = Column(Integer, ForeignKey("influencers.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(enum_type(SubscriptionStatus), default=SubscriptionStatus.INACTIVE, nullable=False)
    start_date = Column(DateTime, nullable=True)
    end_date = Column(DateTime, nullable=True)
    amount = Column(Integer, nullable=False)  # paise
    checkout_session_id = Column(String(255), nullable=True, unique=True)
    payment_reference = Column(String(255), nullable=True)
    cancelled_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "status": self.status.value,
            "startDate": self.start_date.isoformat() if self.start_date else None,
            "endDate": self.end_date.isoformat() if self.end_date else None,
            "amount": self.amount,
        }
