"""Referral system module.

Influencers earn rupee rewards when someone signs up with their code and
redeem them to a UPI id; admins mark the consolidated payouts as paid.
"""

from brandcollab.referral.models import CreditTransaction, PaymentStatus, TransactionType

__all__ = ["CreditTransaction", "PaymentStatus", "TransactionType"]
