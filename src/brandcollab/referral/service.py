"""Referral codes, reward ledger and payout redemption."""

import math
import re
import secrets
from datetime import datetime

from fastapi import BackgroundTasks
from sqlalchemy import func

from brandcollab.auth.models import Influencer
from brandcollab.errors import BadRequestError, NotFoundError
from brandcollab.influencer.models import InfluencerUpi
from brandcollab.logging_config import get_logger
from brandcollab.notifications.dispatch import dispatch
from brandcollab.notifications.push import push_service
from brandcollab.notifications.whatsapp import whatsapp_service
from brandcollab.referral.models import (
    CreditTransaction,
    InfluencerReferralUsage,
    PaymentStatus,
    TransactionType,
)
from brandcollab.settings import settings
from brandcollab.storage.db import db

logger = get_logger(__name__)

# Uppercase letters and digits without 0, O, I, L, 1
REFERRAL_ALPHABET = "ABCDEFGHJKMNPQRSTUVWXYZ23456789"
REFERRAL_CODE_LENGTH = 8
_REFERRAL_CODE_FORMAT = re.compile(r"^[A-Z0-9]{8}$")


def generate_code(length: int = REFERRAL_CODE_LENGTH) -> str:
    """Readable random code, e.g. ABC23XYZ."""
    return "".join(secrets.choice(REFERRAL_ALPHABET) for _ in range(length))


def pagination(page: int, limit: int, total: int) -> dict:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": math.ceil(total / limit) if limit else 0,
    }


class ReferralService:
    """Referral codes and the influencer reward ledger."""

    def __init__(self):
        """Initialize referral service."""
        self.logger = get_logger(__name__)

    # ==================== CODES ====================

    def generate_unique_code(self, session) -> str:
        """Pick a code no influencer holds yet.

        Raises:
            RuntimeError: If no free code was found after several attempts
        """
        for _ in range(10):
            code = generate_code()
            taken = session.query(Influencer.id).filter(Influencer.referral_code == code).first()
            if not taken:
                return code
        raise RuntimeError("Could not generate a unique referral code")

    def validate_referral_code(self, code: str) -> dict:
        """Check format and existence of a referral code.

        Args:
            code: Code as typed by the user

        Returns:
            Dict with valid flag and, when valid, the referrer's public info
        """
        code = (code or "").strip().upper()
        if not _REFERRAL_CODE_FORMAT.match(code):
            return {"valid": False, "message": "Invalid referral code format"}

        with db.session() as session:
            owner = session.query(Influencer).filter(
                Influencer.referral_code == code,
                Influencer.is_active == True,  # noqa: E712
            ).first()
            if not owner:
                return {"valid": False, "message": "Referral code not found"}
            return {
                "valid": True,
                "referrer": {"name": owner.name, "username": owner.username},
            }

    def record_usage(self, session, new_influencer: Influencer, code: str | None) -> bool:
        """Remember that a new influencer signed up with a code.

        Codes that do not exist or belong to the new user are ignored.
        """
        if not code:
            return False
        code = code.strip().upper()

        owner = session.query(Influencer).filter(Influencer.referral_code == code).first()
        if not owner or owner.id == new_influencer.id:
            self.logger.info("referral_code_ignored", code=code)
            return False

        session.add(InfluencerReferralUsage(influencer_id=new_influencer.id, referral_code=code))
        self.logger.info("referral_usage_recorded", referrer_id=owner.id, influencer_id=new_influencer.id)
        return True

    def track_referral_invite_click(self, influencer_id: int) -> dict:
        with db.session() as session:
            influencer = session.get(Influencer, influencer_id)
            if not influencer:
                raise NotFoundError("Influencer not found")
            influencer.referral_invite_click_count = (influencer.referral_invite_click_count or 0) + 1
            total = influencer.referral_invite_click_count

        return {"success": True, "message": "Invite click tracked successfully", "totalClicks": total}

    # ==================== REWARDS ====================

    def award_referral_credit(self, session, referred_influencer_id: int) -> CreditTransaction | None:
        """Credit the referrer once the referred profile is approved.

        Runs inside the caller's session. Idempotent: a usage row is only
        credited once.

        Returns:
            The created transaction, or None if nothing was awarded
        """
        usage = session.query(InfluencerReferralUsage).filter(
            InfluencerReferralUsage.influencer_id == referred_influencer_id,
        ).first()
        if not usage or usage.credit_awarded:
            return None

        referrer = session.query(Influencer).filter(Influencer.referral_code == usage.referral_code).first()
        if not referrer:
            self.logger.warning("referrer_not_found", code=usage.referral_code)
            return None

        transaction = CreditTransaction(
            influencer_id=referrer.id,
            transaction_type=TransactionType.REFERRAL_BONUS,
            amount=settings.referral_bonus_amount,
            payment_status=PaymentStatus.PENDING,
            referred_user_id=referred_influencer_id,
            description=f"Referral bonus for inviting influencer #{referred_influencer_id}",
        )
        session.add(transaction)

        usage.credit_awarded = True
        usage.credit_awarded_at = datetime.utcnow()

        self.logger.info(
            "referral_credit_awarded",
            referrer_id=referrer.id,
            referred_id=referred_influencer_id,
            amount=settings.referral_bonus_amount,
        )
        return transaction

    def get_referral_rewards(self, influencer_id: int, page: int = 1, limit: int = 10) -> dict:
        """Reward summary plus paginated history of referred influencers.

        Consolidated redemption rows are excluded from the summary.
        """
        with db.session() as session:
            influencer = session.get(Influencer, influencer_id)
            if not influencer:
                raise NotFoundError("Influencer not found")

            rows = session.query(CreditTransaction.amount, CreditTransaction.payment_status).filter(
                CreditTransaction.influencer_id == influencer_id,
                CreditTransaction.transaction_type != TransactionType.REDEMPTION,
            ).all()

            def total(*statuses):
                return sum(amount for amount, status in rows if status in statuses)

            lifetime = sum(amount for amount, _ in rows)
            redeemed = total(PaymentStatus.PAID, PaymentStatus.PROCESSING)
            redeemable = total(PaymentStatus.PENDING)

            history = []
            count = 0
            if influencer.referral_code:
                query = session.query(InfluencerReferralUsage).filter(
                    InfluencerReferralUsage.referral_code == influencer.referral_code,
                )
                count = query.count()
                usages = query.order_by(InfluencerReferralUsage.created_at.desc()).offset(
                    (page - 1) * limit
                ).limit(limit).all()

                referred_ids = [u.influencer_id for u in usages]
                transactions = {
                    tx.referred_user_id: tx
                    for tx in session.query(CreditTransaction).filter(
                        CreditTransaction.influencer_id == influencer_id,
                        CreditTransaction.referred_user_id.in_(referred_ids),
                    ).all()
                } if referred_ids else {}

                for usage in usages:
                    referred = usage.influencer
                    tx = transactions.get(usage.influencer_id)
                    history.append({
                        "id": usage.influencer_id,
                        "name": referred.name if referred else "Unknown",
                        "username": referred.username if referred else "unknown",
                        "profileImage": referred.profile_image if referred else None,
                        "isVerified": bool(referred and referred.is_verified),
                        "joinedAt": usage.created_at.isoformat() if usage.created_at else None,
                        "rewardEarned": tx.amount if tx else 0,
                        "rewardStatus": tx.payment_status.value if tx else PaymentStatus.PENDING.value,
                        "creditTransactionId": tx.id if tx else None,
                    })

            return {
                "summary": {
                    "lifetimeReward": lifetime,
                    "redeemed": redeemed,
                    "redeemable": redeemable,
                },
                "referralCode": influencer.referral_code,
                "inviteClickCount": influencer.referral_invite_click_count or 0,
                "referralHistory": history,
                "pagination": pagination(page, limit, count),
            }

    # ==================== REDEMPTION ====================

    async def redeem_rewards(
        self,
        influencer_id: int,
        upi_record_id: int | None = None,
        background: BackgroundTasks | None = None,
    ) -> dict:
        """Consolidate every pending reward into one payout request.

        Args:
            influencer_id: Influencer redeeming
            upi_record_id: UPI record to pay to, defaults to the selected one

        Returns:
            Redemption summary

        Raises:
            NotFoundError: UPI record not owned by the influencer
            BadRequestError: No UPI selected or nothing to redeem
        """
        with db.session() as session:
            influencer = session.get(Influencer, influencer_id)
            if not influencer:
                raise NotFoundError("Influencer not found")

            if upi_record_id is not None:
                upi = session.query(InfluencerUpi).filter(
                    InfluencerUpi.id == upi_record_id,
                    InfluencerUpi.influencer_id == influencer_id,
                ).first()
                if not upi:
                    raise NotFoundError("Selected UPI ID not found.")
            else:
                upi = session.query(InfluencerUpi).filter(
                    InfluencerUpi.influencer_id == influencer_id,
                    InfluencerUpi.is_selected_for_next_transaction == True,  # noqa: E712
                ).first()
                if not upi:
                    raise BadRequestError("No UPI ID selected for redemption. Please select a UPI ID first.")

            pending = session.query(CreditTransaction).filter(
                CreditTransaction.influencer_id == influencer_id,
                CreditTransaction.payment_status == PaymentStatus.PENDING,
                CreditTransaction.transaction_type != TransactionType.REDEMPTION,
            ).all()
            if not pending:
                raise BadRequestError("No pending rewards to redeem.")

            total_amount = sum(tx.amount for tx in pending)
            if total_amount <= 0:
                raise BadRequestError("No redeemable amount available.")

            redemption = CreditTransaction(
                influencer_id=influencer_id,
                transaction_type=TransactionType.REDEMPTION,
                amount=total_amount,
                payment_status=PaymentStatus.PROCESSING,
                upi_id=upi.upi_id,
                description=f"Redemption request for {len(pending)} rewards",
            )
            session.add(redemption)
            session.flush()

            for tx in pending:
                tx.payment_status = PaymentStatus.PROCESSING
                tx.redemption_id = redemption.id

            upi.last_used_at = datetime.utcnow()

            redemption_id = redemption.id
            upi_id = upi.upi_id
            whatsapp_to = influencer.whatsapp_number if influencer.is_whatsapp_verified else None

        self.logger.info(
            "rewards_redeemed",
            influencer_id=influencer_id,
            redemption_id=redemption_id,
            amount=total_amount,
            transactions=len(pending),
        )

        if whatsapp_to:
            await dispatch(background, whatsapp_service.send_referral_redemption, whatsapp_to, total_amount, upi_id)

        return {
            "success": True,
            "message": f"Redemption request for Rs {total_amount} submitted successfully",
            "redemptionId": redemption_id,
            "amount": total_amount,
            "upiId": upi_id,
            "transactionsCount": len(pending),
        }

    def get_redemption_requests(
        self,
        status: PaymentStatus | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> dict:
        """Admin list of consolidated redemption requests, newest first."""
        with db.session() as session:
            query = session.query(CreditTransaction).filter(
                CreditTransaction.transaction_type == TransactionType.REDEMPTION,
            )
            if status:
                query = query.filter(CreditTransaction.payment_status == status)

            total = query.count()
            rows = query.order_by(CreditTransaction.created_at.desc()).offset((page - 1) * limit).limit(limit).all()

            names = dict(
                session.query(Influencer.id, Influencer.name).filter(
                    Influencer.id.in_([r.influencer_id for r in rows])
                ).all()
            ) if rows else {}

            items = []
            for row in rows:
                item = row.to_dict()
                item["influencerId"] = row.influencer_id
                item["influencerName"] = names.get(row.influencer_id)
                items.append(item)

            pending_total = session.query(func.coalesce(func.sum(CreditTransaction.amount), 0)).filter(
                CreditTransaction.transaction_type == TransactionType.REDEMPTION,
                CreditTransaction.payment_status == PaymentStatus.PROCESSING,
            ).scalar()

            return {
                "requests": items,
                "processingAmount": int(pending_total or 0),
                "pagination": pagination(page, limit, total),
            }

    async def process_redemption(
        self,
        transaction_id: int,
        admin_id: int,
        payment_reference_id: str | None = None,
        admin_notes: str | None = None,
        background: BackgroundTasks | None = None,
    ) -> dict:
        """Mark a redemption request and its linked rewards as paid.

        Raises:
            NotFoundError: Unknown redemption request
            BadRequestError: Already paid or cancelled
        """
        now = datetime.utcnow()

        with db.session() as session:
            redemption = session.query(CreditTransaction).filter(
                CreditTransaction.id == transaction_id,
                CreditTransaction.transaction_type == TransactionType.REDEMPTION,
            ).first()
            if not redemption:
                raise NotFoundError("Redemption request not found")
            if redemption.payment_status == PaymentStatus.PAID:
                raise BadRequestError("Redemption request already processed")
            if redemption.payment_status == PaymentStatus.CANCELLED:
                raise BadRequestError("Cannot process a cancelled redemption request")

            redemption.payment_status = PaymentStatus.PAID
            redemption.processed_by = admin_id
            redemption.paid_at = now
            redemption.payment_reference_id = payment_reference_id or redemption.payment_reference_id
            redemption.admin_notes = admin_notes or redemption.admin_notes

            linked = session.query(CreditTransaction).filter(
                CreditTransaction.redemption_id == redemption.id,
                CreditTransaction.influencer_id == redemption.influencer_id,
            ).update(
                {CreditTransaction.payment_status: PaymentStatus.PAID, CreditTransaction.paid_at: now},
                synchronize_session=False,
            )

            influencer_id = redemption.influencer_id
            amount = redemption.amount

        self.logger.info(
            "redemption_processed",
            transaction_id=transaction_id,
            admin_id=admin_id,
            linked_transactions=linked,
        )

        await dispatch(background, push_service.send_redemption_paid, influencer_id, amount)

        return {
            "success": True,
            "message": "Redemption processed successfully",
            "transactionId": transaction_id,
            "status": PaymentStatus.PAID.value,
            "processedAt": now.isoformat(),
        }


referral_service = ReferralService()
