"""Weekly campaign application credits."""

from datetime import datetime, timedelta

from brandcollab.auth.models import Influencer
from brandcollab.errors import BadRequestError, NotFoundError
from brandcollab.logging_config import get_logger
from brandcollab.settings import settings
from brandcollab.storage.db import db

logger = get_logger(__name__)


def next_monday_reset(now: datetime | None = None) -> datetime:
    """Next Monday 00:00 strictly after today."""
    now = now or datetime.utcnow()
    weekday = now.isoweekday()  # Monday = 1 ... Sunday = 7
    days = 1 if weekday == 7 else 8 - weekday
    return (now + timedelta(days=days)).replace(hour=0, minute=0, second=0, microsecond=0)


def format_reset_date(value: datetime) -> str:
    """e.g. "Monday, October 19, 2026"."""
    return f"{value:%A, %B} {value.day}, {value.year}"


class WeeklyCreditService:
    """Lazy weekly reset and deduction of application credits."""

    def __init__(self):
        self.logger = get_logger(__name__)

    def refresh(self, influencer: Influencer, now: datetime | None = None) -> Influencer:
        """Initialise or reset credits when the reset date is unset or passed.

        Mutates the attached influencer; the caller's session commits it.
        """
        now = now or datetime.utcnow()
        reset_date = influencer.weekly_credits_reset_date

        if reset_date is None or now >= reset_date:
            influencer.weekly_credits = settings.weekly_credits_limit
            influencer.weekly_credits_reset_date = next_monday_reset(now)
            if reset_date is not None:
                self.logger.info(
                    "weekly_credits_reset",
                    influencer_id=influencer.id,
                    next_reset=influencer.weekly_credits_reset_date.isoformat(),
                )
        return influencer

    def deduct(self, influencer: Influencer, now: datetime | None = None) -> int:
        """Take one credit.

        Args:
            influencer: Influencer attached to the caller's session
            now: Clock override

        Returns:
            Credits left

        Raises:
            BadRequestError: No credits left this week
        """
        self.refresh(influencer, now)

        if not influencer.weekly_credits or influencer.weekly_credits <= 0:
            reset = influencer.weekly_credits_reset_date
            when = format_reset_date(reset) if reset else "next Monday"
            raise BadRequestError(
                f"You have used all your weekly credits. Credits will reset on {when}."
            )

        influencer.weekly_credits -= 1
        self.logger.info("weekly_credit_deducted", influencer_id=influencer.id, remaining=influencer.weekly_credits)
        return influencer.weekly_credits

    def info(self, influencer: Influencer) -> dict:
        reset = influencer.weekly_credits_reset_date
        return {
            "weeklyCredits": influencer.weekly_credits,
            "weeklyCreditsResetDate": reset.isoformat() if reset else None,
            "maxWeeklyCredits": settings.weekly_credits_limit,
        }

    def get_weekly_credits_info(self, influencer_id: int) -> dict:
        """Current credits after applying any pending reset."""
        with db.session() as session:
            influencer = session.get(Influencer, influencer_id)
            if not influencer:
                raise NotFoundError("Influencer not found")
            self.refresh(influencer)
            return self.info(influencer)


weekly_credit_service = WeeklyCreditService()
