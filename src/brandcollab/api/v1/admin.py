"""Admin API v1 endpoints: login, profile review queue and payouts."""

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request, status
from pydantic import BaseModel, EmailStr, Field, field_validator

from brandcollab.admin.auth import admin_auth_service
from brandcollab.admin.models import Admin, AdminRole, ProfileType
from brandcollab.admin.review_service import profile_review_service
from brandcollab.api.rate_limit import LOGIN_LIMIT, limiter
from brandcollab.auth.middleware import require_any_admin, require_profile_reviewer, require_super_admin
from brandcollab.auth.rules import validate_password_complexity
from brandcollab.referral.models import PaymentStatus
from brandcollab.referral.service import referral_service

router = APIRouter(prefix="/admin", tags=["admin"])


class AdminLoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=100)


class AdminCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=100)
    role: AdminRole = AdminRole.PROFILE_REVIEWER

    @field_validator("password")
    @classmethod
    def check_password_complexity(cls, v):
        return validate_password_complexity(v)


class ApproveRequest(BaseModel):
    comments: str | None = Field(default=None, max_length=2000)


class RejectRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=2000)
    comments: str | None = Field(default=None, max_length=2000)


class ProcessRedemptionRequest(BaseModel):
    payment_reference_id: str | None = Field(default=None, max_length=255)
    admin_notes: str | None = Field(default=None, max_length=2000)


# ==================== ACCOUNT ====================


@router.post("/login")
@limiter.limit(LOGIN_LIMIT)
async def admin_login(request: Request, body: AdminLoginRequest):
    return admin_auth_service.login(body.email, body.password)


@router.get("/profile")
async def get_admin_profile(admin: Admin = Depends(require_any_admin)):
    return admin_auth_service.get_profile(admin.id)


@router.post("/admins", status_code=status.HTTP_201_CREATED)
async def create_admin(body: AdminCreateRequest, admin: Admin = Depends(require_super_admin)):
    return admin_auth_service.create_admin(body.name, body.email, body.password, body.role)


# ==================== PROFILE REVIEWS ====================


@router.get("/dashboard")
async def get_dashboard_stats(admin: Admin = Depends(require_profile_reviewer)):
    return profile_review_service.get_dashboard_stats()


@router.get("/reviews/pending")
async def get_pending_profiles(
    profile_type: ProfileType | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    admin: Admin = Depends(require_profile_reviewer),
):
    """Verification queue, oldest submission first."""
    return profile_review_service.get_pending_profiles(page, limit, profile_type)


@router.get("/reviews/statistics")
async def get_review_statistics(admin: Admin = Depends(require_profile_reviewer)):
    return profile_review_service.get_statistics()


@router.get("/reviews/profile/{profile_type}/{profile_id}")
async def get_reviews_by_profile(
    profile_type: ProfileType,
    profile_id: int,
    admin: Admin = Depends(require_profile_reviewer),
):
    return {"reviews": profile_review_service.get_reviews_by_profile(profile_id, profile_type)}


@router.get("/reviews/{review_id}")
async def get_profile_details(review_id: int, admin: Admin = Depends(require_profile_reviewer)):
    return profile_review_service.get_profile_details(review_id)


@router.post("/reviews/{review_id}/approve")
async def approve_profile(
    review_id: int,
    body: ApproveRequest,
    background_tasks: BackgroundTasks,
    admin: Admin = Depends(require_profile_reviewer),
):
    return await profile_review_service.approve_profile(review_id, admin.id, body.comments, background=background_tasks)


@router.post("/reviews/{review_id}/reject")
async def reject_profile(
    review_id: int,
    body: RejectRequest,
    background_tasks: BackgroundTasks,
    admin: Admin = Depends(require_profile_reviewer),
):
    return await profile_review_service.reject_profile(
        review_id, admin.id, body.reason, body.comments, background=background_tasks
    )


@router.delete("/reviews/{review_id}")
async def delete_review(review_id: int, admin: Admin = Depends(require_super_admin)):
    return profile_review_service.delete_review(review_id)


# ==================== REFERRAL PAYOUTS ====================


@router.get("/redemptions")
async def get_redemption_requests(
    payment_status: PaymentStatus | None = Query(default=None, alias="status"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    admin: Admin = Depends(require_super_admin),
):
    return referral_service.get_redemption_requests(payment_status, page, limit)


@router.post("/redemptions/{transaction_id}/process")
async def process_redemption(
    transaction_id: int,
    body: ProcessRedemptionRequest,
    background_tasks: BackgroundTasks,
    admin: Admin = Depends(require_super_admin),
):
    """Mark a UPI payout as paid."""
    return await referral_service.process_redemption(
        transaction_id, admin.id, body.payment_reference_id, body.admin_notes, background=background_tasks
    )
