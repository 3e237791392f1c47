"""UPI ids used for referral reward payouts."""

import re
from datetime import datetime

from fastapi import BackgroundTasks

from brandcollab.auth.models import Influencer
from brandcollab.errors import BadRequestError, NotFoundError
from brandcollab.influencer.models import InfluencerUpi
from brandcollab.logging_config import get_logger
from brandcollab.referral.models import CreditTransaction, PaymentStatus
from brandcollab.referral.service import referral_service
from brandcollab.storage.db import db

UPI_FORMAT = re.compile(r"^[\w.\-]{2,256}@[a-zA-Z]{2,64}$")


def validate_upi_id(upi_id: str) -> str:
    """Return the stripped UPI id or raise BadRequestError."""
    value = (upi_id or "").strip()
    if not UPI_FORMAT.match(value):
        raise BadRequestError("Invalid UPI ID format")
    return value


def _sort_key(upi: InfluencerUpi):
    # Selected first, then most recently used (never used last), then newest
    last_used = upi.last_used_at.timestamp() if upi.last_used_at else float("-inf")
    created = upi.created_at.timestamp() if upi.created_at else 0
    return (not upi.is_selected_for_next_transaction, -last_used, -created)


class UpiService:
    """Add, select and remove payout UPI ids."""

    def __init__(self):
        self.logger = get_logger(__name__)

    def _get_owned(self, session, influencer_id: int, upi_record_id: int) -> InfluencerUpi:
        upi = session.query(InfluencerUpi).filter(
            InfluencerUpi.id == upi_record_id,
            InfluencerUpi.influencer_id == influencer_id,
        ).first()
        if not upi:
            raise NotFoundError("UPI ID not found or does not belong to you.")
        return upi

    def list_upi_ids(self, influencer_id: int) -> dict:
        with db.session() as session:
            rows = session.query(InfluencerUpi).filter(InfluencerUpi.influencer_id == influencer_id).all()
            ordered = sorted(rows, key=_sort_key)
            return {"upiIds": [u.to_dict() for u in ordered], "total": len(ordered)}

    def add_upi_id(self, influencer_id: int, upi_id: str, set_as_selected: bool = False) -> dict:
        """Add a UPI id; the first one added is selected automatically.

        Raises:
            BadRequestError: Bad format or already added
        """
        value = validate_upi_id(upi_id)

        with db.session() as session:
            if not session.get(Influencer, influencer_id):
                raise NotFoundError("Influencer not found")

            existing = session.query(InfluencerUpi).filter(
                InfluencerUpi.influencer_id == influencer_id,
                InfluencerUpi.upi_id == value,
            ).first()
            if existing:
                raise BadRequestError("This UPI ID is already added to your account.")

            has_any = session.query(InfluencerUpi.id).filter(
                InfluencerUpi.influencer_id == influencer_id,
            ).first() is not None
            selected = set_as_selected or not has_any

            if selected:
                session.query(InfluencerUpi).filter(
                    InfluencerUpi.influencer_id == influencer_id,
                ).update({InfluencerUpi.is_selected_for_next_transaction: False}, synchronize_session=False)

            record = InfluencerUpi(
                influencer_id=influencer_id,
                upi_id=value,
                is_selected_for_next_transaction=selected,
            )
            session.add(record)
            session.flush()

            self.logger.info("upi_id_added", influencer_id=influencer_id, upi_record_id=record.id, selected=selected)
            return record.to_dict()

    def select_upi_id(self, influencer_id: int, upi_record_id: int) -> dict:
        with db.session() as session:
            upi = self._get_owned(session, influencer_id, upi_record_id)

            session.query(InfluencerUpi).filter(
                InfluencerUpi.influencer_id == influencer_id,
            ).update({InfluencerUpi.is_selected_for_next_transaction: False}, synchronize_session=False)
            upi.is_selected_for_next_transaction = True
            upi.updated_at = datetime.utcnow()

            return {"success": True, "message": "UPI ID selected successfully", "upiId": upi.upi_id}

    async def select_and_redeem(
        self, influencer_id: int, upi_record_id: int, background: BackgroundTasks | None = None
    ) -> dict:
        self.select_upi_id(influencer_id, upi_record_id)
        return await referral_service.redeem_rewards(influencer_id, upi_record_id, background)

    def delete_upi_id(self, influencer_id: int, upi_record_id: int) -> dict:
        """Delete a UPI id, promoting the most recent remaining one if needed.

        Raises:
            NotFoundError: Not owned by the influencer
            BadRequestError: Only UPI id while rewards are pending
        """
        with db.session() as session:
            upi = self._get_owned(session, influencer_id, upi_record_id)

            count = session.query(InfluencerUpi).filter(InfluencerUpi.influencer_id == influencer_id).count()
            if count == 1:
                pending = session.query(CreditTransaction).filter(
                    CreditTransaction.influencer_id == influencer_id,
                    CreditTransaction.payment_status == PaymentStatus.PENDING,
                ).count()
                if pending > 0:
                    raise BadRequestError(
                        "Cannot delete the only UPI ID when there are pending redemptions. "
                        "Please add another UPI ID first."
                    )

            was_selected = upi.is_selected_for_next_transaction
            session.delete(upi)
            session.flush()

            if was_selected:
                remaining = session.query(InfluencerUpi).filter(
                    InfluencerUpi.influencer_id == influencer_id,
                ).order_by(InfluencerUpi.created_at.desc(), InfluencerUpi.id.desc()).first()
                if remaining:
                    remaining.is_selected_for_next_transaction = True

        self.logger.info("upi_id_deleted", influencer_id=influencer_id, upi_record_id=upi_record_id)
        return {"success": True, "message": "UPI ID deleted successfully"}


upi_service = UpiService()
