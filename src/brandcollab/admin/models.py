"""Admin accounts and the profile review queue."""

from datetime import datetime
from enum import Enum

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, String, Text

from brandcollab.storage.models import Base, enum_type


class AdminRole(str, Enum):
    """Admin permission roles."""
    SUPER_ADMIN = "super_admin"
    PROFILE_REVIEWER = "profile_reviewer"
    CONTENT_MODERATOR = "content_moderator"


class AdminStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class ProfileType(str, Enum):
    INFLUENCER = "influencer"
    BRAND = "brand"


class ReviewStatus(str, Enum):
    """Profile review lifecycle."""
    PENDING = "pending"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    REJECTED = "rejected"


class Admin(Base):
    """Back-office user."""
    __tablename__ = "admins"

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(enum_type(AdminRole), default=AdminRole.PROFILE_REVIEWER, nullable=False)
    status = Column(enum_type(AdminStatus), default=AdminStatus.ACTIVE, nullable=False)
    last_login_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def is_active(self) -> bool:
        return self.status == AdminStatus.ACTIVE

    def __repr__(self):
        return f"<Admin(id={self.id}, email={self.email}, role={self.role})>"


class ProfileReview(Base):
    """Verification request for an influencer or brand profile.

    At most one review per profile is pending at any time; resubmissions
    reset the existing pending row instead of adding another.
    """
    __tablename__ = "profile_reviews"

    id = Column(Integer, primary_key=True)
    profile_id = Column(Integer, nullable=False, index=True)
    profile_type = Column(enum_type(ProfileType), nullable=False)
    status = Column(enum_type(ReviewStatus), default=ReviewStatus.PENDING, nullable=False, index=True)

    submitted_data = Column(JSON, nullable=True)
    submitted_at = Column(DateTime, default=datetime.utcnow)

    reviewed_by = Column(Integer, ForeignKey("admins.id"), nullable=True)
    reviewed_at = Column(DateTime, nullable=True)
    rejection_reason = Column(Text, nullable=True)
    admin_comments = Column(Text, nullable=True)

    # Set once the profile owner has seen an approved/rejected outcome
    status_viewed = Column(Boolean, default=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "profileId": self.profile_id,
            "profileType": self.profile_type.value,
            "status": self.status.value,
            "submittedAt": self.submitted_at.isoformat() if self.submitted_at else None,
            "reviewedBy": self.reviewed_by,
            "reviewedAt": self.reviewed_at.isoformat() if self.reviewed_at else None,
            "rejectionReason": self.rejection_reason,
            "adminComments": self.admin_comments,
        }

    def __repr__(self):
        return f"<ProfileReview(id={self.id}, {self.profile_type}:{self.profile_id}, status={self.status})>"
