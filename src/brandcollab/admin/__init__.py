"""Back-office admins and the profile review queue."""

from brandcollab.admin.models import Admin, AdminRole, ProfileReview, ReviewStatus

__all__ = ["Admin", "AdminRole", "ProfileReview", "ReviewStatus"]
