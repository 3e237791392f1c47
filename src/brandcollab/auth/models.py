"""Account models for influencers and brands, plus auth bookkeeping tables."""

from datetime import datetime
from enum import Enum

from sqlalchemy import JSON, Boolean, Column, Date, DateTime, ForeignKey, Integer, String, Table, Text
from sqlalchemy.orm import relationship

from brandcollab.storage.models import Base, UserType, enum_type


class Gender(str, Enum):
    """Gender as stored on the influencer row."""
    MALE = "male"
    FEMALE = "female"
    OTHERS = "others"


class OtpType(str, Enum):
    """Channel an OTP was issued for."""
    PHONE = "phone"
    EMAIL = "email"


influencer_niches = Table(
    "influencer_niches",
    Base.metadata,
    Column("influencer_id", Integer, ForeignKey("influencers.id", ondelete="CASCADE"), primary_key=True),
    Column("niche_id", Integer, ForeignKey("niches.id", ondelete="CASCADE"), primary_key=True),
)

brand_niches = Table(
    "brand_niches",
    Base.metadata,
    Column("brand_id", Integer, ForeignKey("brands.id", ondelete="CASCADE"), primary_key=True),
    Column("niche_id", Integer, ForeignKey("niches.id", ondelete="CASCADE"), primary_key=True),
)


class Influencer(Base):
    """Influencer account (phone OTP login)."""
    __tablename__ = "influencers"

    id = Column(Integer, primary_key=True)

    # Identity
    name = Column(String(255), nullable=True)
    username = Column(String(30), unique=True, nullable=True, index=True)
    phone = Column(String(20), nullable=False)  # +91XXXXXXXXXX
    phone_hash = Column(String(64), unique=True, nullable=False, index=True)
    is_phone_verified = Column(Boolean, default=False)
    date_of_birth = Column(Date, nullable=True)
    gender = Column(enum_type(Gender), nullable=True)
    others_gender = Column(String(50), nullable=True)

    # Profile
    bio = Column(Text, nullable=True)
    profile_image = Column(String(500), nullable=True)
    profile_banner = Column(String(500), nullable=True)
    profile_headline = Column(String(255), nullable=True)
    country_id = Column(Integer, ForeignKey("countries.id"), nullable=True)
    city_id = Column(Integer, ForeignKey("cities.id"), nullable=True)

    # WhatsApp
    whatsapp_number = Column(String(20), nullable=True)
    whatsapp_hash = Column(String(64), nullable=True, index=True)
    is_whatsapp_verified = Column(Boolean, default=False)

    # Social links
    instagram_url = Column(String(500), nullable=True)
    youtube_url = Column(String(500), nullable=True)
    facebook_url = Column(String(500), nullable=True)
    linkedin_url = Column(String(500), nullable=True)
    twitter_url = Column(String(500), nullable=True)

    # {"instagram": {"reel": 5000, "story": 1500}, ...}
    collaboration_costs = Column(JSON, nullable=True)

    # Verification
    is_profile_completed = Column(Boolean, default=False)
    is_verified = Column(Boolean, default=False)
    verified_at = Column(DateTime, nullable=True)

    # Referral
    referral_code = Column(String(8), unique=True, nullable=True, index=True)
    referral_invite_click_count = Column(Integer, default=0)

    # Weekly application credits
    weekly_credits = Column(Integer, default=5)
    weekly_credits_reset_date = Column(DateTime, nullable=True)

    # Pro
    is_pro = Column(Boolean, default=False)
    pro_activated_at = Column(DateTime, nullable=True)
    pro_expires_at = Column(DateTime, nullable=True)

    # Status
    is_active = Column(Boolean, default=True)
    deleted_at = Column(DateTime, nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    last_login_at = Column(DateTime, nullable=True)

    # Relationships
    niches = relationship("Niche", secondary=influencer_niches, lazy="selectin")
    country = relationship("Country", lazy="joined")
    city = relationship("City", lazy="joined")

    def __repr__(self):
        return f"<Influencer(id={self.id}, username={self.username})>"

    @property
    def age(self) -> int | None:
        """Age in whole years, or None when date of birth is unknown."""
        if not self.date_of_birth:
            return None
        today = datetime.utcnow().date()
        born = self.date_of_birth
        return today.year - born.year - ((today.month, today.day) < (born.month, born.day))

    @property
    def has_social_link(self) -> bool:
        return any([
            self.instagram_url,
            self.youtube_url,
            self.facebook_url,
            self.linkedin_url,
            self.twitter_url,
        ])


class Brand(Base):
    """Brand account (email + password, email OTP)."""
    __tablename__ = "brands"

    id = Column(Integer, primary_key=True)

    # Auth
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=True)
    is_email_verified = Column(Boolean, default=False)

    # Company
    brand_name = Column(String(255), nullable=True)
    username = Column(String(30), unique=True, nullable=True, index=True)
    legal_entity_name = Column(String(255), nullable=True)
    company_type_id = Column(Integer, ForeignKey("company_types.id"), nullable=True)
    brand_email_id = Column(String(255), nullable=True)

    # Point of contact
    poc_name = Column(String(255), nullable=True)
    poc_designation = Column(String(255), nullable=True)
    poc_email_id = Column(String(255), nullable=True)
    poc_contact_number = Column(String(20), nullable=True)

    # Profile
    brand_bio = Column(Text, nullable=True)
    profile_image = Column(String(500), nullable=True)
    profile_banner = Column(String(500), nullable=True)
    profile_headline = Column(String(255), nullable=True)
    website_url = Column(String(500), nullable=True)
    founded_year = Column(Integer, nullable=True)
    headquarter_country_id = Column(Integer, ForeignKey("countries.id"), nullable=True)
    headquarter_city_id = Column(Integer, ForeignKey("cities.id"), nullable=True)

    # Social links
    instagram_url = Column(String(500), nullable=True)
    youtube_url = Column(String(500), nullable=True)
    facebook_url = Column(String(500), nullable=True)
    linkedin_url = Column(String(500), nullable=True)
    twitter_url = Column(String(500), nullable=True)

    # Documents (S3 URLs)
    incorporation_document = Column(String(500), nullable=True)
    gst_document = Column(String(500), nullable=True)
    pan_document = Column(String(500), nullable=True)

    # Status
    is_profile_completed = Column(Boolean, default=False)
    is_verified = Column(Boolean, default=False)
    is_active = Column(Boolean, default=True)
    deleted_at = Column(DateTime, nullable=True)
    # Set by a password check; the email OTP only completes a login before this
    pending_login_expires_at = Column(DateTime, nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    last_login_at = Column(DateTime, nullable=True)

    # Relationships
    niches = relationship("Niche", secondary=brand_niches, lazy="selectin")
    company_type = relationship("CompanyType", lazy="joined")
    headquarter_country = relationship("Country", lazy="joined")
    headquarter_city = relationship("City", lazy="joined")

    def __repr__(self):
        return f"<Brand(id={self.id}, email={self.email})>"


class CustomNiche(Base):
    """Free-text niche added by an influencer or brand."""
    __tablename__ = "custom_niches"

    id = Column(Integer, primary_key=True)
    user_type = Column(enum_type(UserType), nullable=False)
    user_id = Column(Integer, nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "description": self.description}


class Otp(Base):
    """One-time password. The identifier is stored as a sha256 hash."""
    __tablename__ = "otps"

    id = Column(Integer, primary_key=True)
    identifier = Column(String(64), nullable=False, index=True)
    type = Column(enum_type(OtpType), nullable=False)
    otp = Column(String(6), nullable=False)
    expires_at = Column(DateTime, nullable=False)
    is_used = Column(Boolean, default=False)
    attempts = Column(Integer, default=0)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)


class OtpFailure(Base):
    """Failed OTP verification, counted for lockouts."""
    __tablename__ = "otp_failures"

    id = Column(Integer, primary_key=True)
    identifier = Column(String(64), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)


class OtpRequestLog(Base):
    """One row per OTP request, counted for the request quota."""
    __tablename__ = "otp_request_logs"

    id = Column(Integer, primary_key=True)
    identifier = Column(String(64), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)


class AuthSession(Base):
    """Refresh-token session, one row per issued refresh token."""
    __tablename__ = "auth_sessions"

    id = Column(Integer, primary_key=True)
    jti = Column(String(64), unique=True, nullable=False, index=True)
    user_id = Column(Integer, nullable=False)
    user_type = Column(enum_type(UserType), nullable=False)
    expires_at = Column(DateTime, nullable=False)
    revoked_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f"<AuthSession(user={self.user_type}:{self.user_id}, revoked={self.revoked_at is not None})>"


class PasswordResetToken(Base):
    """Single-use password reset token."""
    __tablename__ = "password_reset_tokens"

    id = Column(Integer, primary_key=True)
    jti = Column(String(64), unique=True, nullable=False, index=True)
    brand_id = Column(Integer, ForeignKey("brands.id"), nullable=False)
    expires_at = Column(DateTime, nullable=False)
    used_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class ProcessedWebhookEvent(Base):
    """Tracks processed webhook events for idempotency.

    Prevents duplicate processing of webhook events (e.g., Stripe payments).
    Stored in database to survive server restarts and work across multiple processes.
    """
    __tablename__ = "processed_webhook_events"

    id = Column(Integer, primary_key=True)
    event_id = Column(String(255), unique=True, nullable=False, index=True)
    event_type = Column(String(100), nullable=False)
    source = Column(String(50), nullable=False)
    processed_at = Column(DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f"<ProcessedWebhookEvent(id={self.event_id}, type={self.event_type})>"
