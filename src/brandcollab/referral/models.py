"""Referral reward ledger models."""

from datetime import datetime
from enum import Enum

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from brandcollab.storage.models import Base, enum_type


class TransactionType(str, Enum):
    REFERRAL_BONUS = "referral_bonus"
    EARLY_SELECTION_BONUS = "early_selection_bonus"
    CAMPAIGN_PAYMENT = "campaign_payment"
    ADMIN_ADJUSTMENT = "admin_adjustment"
    REFUND = "refund"
    REDEMPTION = "redemption"  # Consolidated payout request


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    PAID = "paid"
    FAILED = "failed"
    CANCELLED = "cancelled"


class CreditTransaction(Base):
    """Reward ledger row in whole rupees.

    Earning rows (referral_bonus, ...) start as pending. Redeeming moves them
    to processing and links them to one consolidated redemption row via
    redemption_id; paying the redemption marks all of them paid.
    """
    __tablename__ = "credit_transactions"

    id = Column(Integer, primary_key=True)
    influencer_id = Column(Integer, ForeignKey("influencers.id"), nullable=False, index=True)

    transaction_type = Column(enum_type(TransactionType), nullable=False)
    amount = Column(Integer, nullable=False)
    payment_status = Column(enum_type(PaymentStatus), default=PaymentStatus.PENDING, nullable=False, index=True)
    description = Column(Text, nullable=True)

    # References
    campaign_id = Column(Integer, ForeignKey("campaigns.id"), nullable=True)
    referred_user_id = Column(Integer, ForeignKey("influencers.id"), nullable=True)
    redemption_id = Column(Integer, ForeignKey("credit_transactions.id"), nullable=True, index=True)

    # Payout
    upi_id = Column(String(255), nullable=True)
    payment_reference_id = Column(String(255), nullable=True)
    paid_at = Column(DateTime, nullable=True)
    processed_by = Column(Integer, ForeignKey("admins.id"), nullable=True)
    admin_notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "transactionType": self.transaction_type.value,
            "amount": self.amount,
            "paymentStatus": self.payment_status.value,
            "description": self.description,
            "upiId": self.upi_id,
            "paymentReferenceId": self.payment_reference_id,
            "paidAt": self.paid_at.isoformat() if self.paid_at else None,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<CreditTransaction(id={self.id}, type={self.transaction_type}, amount={self.amount})>"


class InfluencerReferralUsage(Base):
    """Records that a new influencer signed up with someone's referral code."""
    __tablename__ = "influencer_referral_usages"

    id = Column(Integer, primary_key=True)
    influencer_id = Column(Integer, ForeignKey("influencers.id"), nullable=False, unique=True)
    referral_code = Column(String(8), nullable=False, index=True)
    credit_awarded = Column(Boolean, default=False, nullable=False)
    credit_awarded_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    influencer = relationship("Influencer", lazy="joined")
