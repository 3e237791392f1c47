"""Authentication API v1 endpoints."""

from fastapi import APIRouter, BackgroundTasks, Depends, Request, status
from pydantic import BaseModel, EmailStr, Field, field_validator

from brandcollab.api.forms import form_files, parse_form
from brandcollab.api.rate_limit import LOGIN_LIMIT, OTP_LIMIT, limiter
from brandcollab.auth.middleware import require_auth, require_brand, user_type_of
from brandcollab.auth.models import Brand
from brandcollab.auth.rules import validate_password_complexity
from brandcollab.auth.service import auth_service
from brandcollab.auth.tokens import token_service
from brandcollab.errors import BadRequestError
from brandcollab.logging_config import get_logger
from brandcollab.notifications.models import DeviceOs
from brandcollab.referral.service import referral_service
from brandcollab.storage.models import UserType

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


# ==================== MODELS ====================


class DeviceInfo(BaseModel):
    """Push registration sent with a login."""
    fcm_token: str | None = Field(default=None, max_length=500)
    device_id: str | None = Field(default=None, max_length=255)
    device_name: str | None = Field(default=None, max_length=255)
    device_os: DeviceOs | None = None
    app_version: str | None = Field(default=None, max_length=50)


class PhoneOtpRequest(BaseModel):
    phone: str = Field(..., min_length=10, max_length=15)


class PhoneOtpVerify(DeviceInfo):
    phone: str = Field(..., min_length=10, max_length=15)
    otp: str = Field(..., min_length=6, max_length=6)


class BrandCredentials(BaseModel):
    """Brand signup or login."""
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=100)


class BrandSignupRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=100)

    @field_validator("password")
    @classmethod
    def check_password_complexity(cls, v):
        return validate_password_complexity(v)


class EmailOtpVerify(DeviceInfo):
    email: EmailStr
    otp: str = Field(..., min_length=6, max_length=6)


class EmailRequest(BaseModel):
    email: EmailStr


class ResetPasswordConfirm(BaseModel):
    """Password reset confirmation."""
    token: str
    new_password: str = Field(..., min_length=8, max_length=100)

    @field_validator("new_password")
    @classmethod
    def check_password_complexity(cls, v):
        return validate_password_complexity(v)


class RefreshRequest(BaseModel):
    refresh_token: str


# ==================== INFLUENCER ====================


@router.post("/influencer/request-otp")
@limiter.limit(OTP_LIMIT)
async def request_influencer_otp(request: Request, body: PhoneOtpRequest):
    """Send a login OTP to the phone over WhatsApp."""
    return await auth_service.request_influencer_otp(body.phone)


@router.post("/influencer/verify-otp")
@limiter.limit(LOGIN_LIMIT)
async def verify_influencer_otp(request: Request, body: PhoneOtpVerify):
    """Verify the phone OTP.

    Existing accounts get tokens; new ones get a verification key for signup.
    """
    device = body.model_dump(exclude={"phone", "otp"})
    return await auth_service.verify_influencer_otp(body.phone, body.otp, device)


@router.post("/influencer/signup", status_code=status.HTTP_201_CREATED)
@limiter.limit(OTP_LIMIT)
async def influencer_signup(request: Request):
    """Create the influencer profile after phone verification (multipart)."""
    form = await request.form()
    data = parse_form(
        form,
        text_fields=("verification_key", "phone", "name", "username", "gender", "bio", "referral_code"),
        int_list_fields=("niche_ids",),
        json_fields=("custom_niches",),
        date_fields=("date_of_birth",),
    )
    for field in ("verification_key", "phone", "name", "username"):
        if not data.get(field):
            raise BadRequestError(f"{field} is required")

    files = form_files(form, ("profile_image",))
    return await auth_service.influencer_signup(
        data.pop("verification_key"),
        data.pop("phone"),
        data,
        profile_image=files["profile_image"],
    )


@router.get("/check-username")
async def check_username(username: str):
    """Username availability with suggestions."""
    return auth_service.check_username(username)


@router.get("/referral/validate/{code}")
async def validate_referral_code(code: str):
    """Check a referral code before signup."""
    return referral_service.validate_referral_code(code)


# ==================== BRAND ====================


@router.post("/brand/signup", status_code=status.HTTP_201_CREATED)
@limiter.limit(OTP_LIMIT)
async def brand_signup(request: Request, body: BrandSignupRequest):
    """Register a brand and email a verification OTP."""
    return await auth_service.brand_initial_signup(body.email, body.password)


@router.post("/brand/login")
@limiter.limit(LOGIN_LIMIT)
async def brand_login(request: Request, body: BrandCredentials):
    """Check credentials and email a login OTP."""
    return await auth_service.brand_login(body.email, body.password)


@router.post("/brand/verify-otp")
@limiter.limit(LOGIN_LIMIT)
async def verify_brand_otp(request: Request, body: EmailOtpVerify):
    device = body.model_dump(exclude={"email", "otp"})
    return await auth_service.verify_brand_otp(body.email, body.otp, device)


@router.post("/brand/resend-otp")
@limiter.limit("3/minute")
async def resend_brand_otp(request: Request, body: EmailRequest):
    return await auth_service.resend_brand_otp(body.email)


@router.post("/brand/complete-profile")
async def brand_complete_profile(
    request: Request,
    background_tasks: BackgroundTasks,
    brand: Brand = Depends(require_brand),
):
    """Complete the brand profile and submit it for verification (multipart)."""
    form = await request.form()
    data = parse_form(
        form,
        text_fields=(
            "brand_name",
            "username",
            "legal_entity_name",
            "brand_email_id",
            "poc_name",
            "poc_designation",
            "poc_email_id",
            "poc_contact_number",
            "brand_bio",
            "website_url",
        ),
        int_fields=("company_type_id",),
        int_list_fields=("niche_ids",),
        json_fields=("custom_niches",),
    )
    files = form_files(form, ("profile_image", "incorporation_document", "gst_document", "pan_document"))
    return await auth_service.brand_complete_profile(brand.id, data, files, background=background_tasks)


@router.post("/brand/forgot-password")
@limiter.limit("3/minute")
async def forgot_password(request: Request, body: EmailRequest, background_tasks: BackgroundTasks):
    return await auth_service.forgot_password(body.email, background=background_tasks)


@router.post("/brand/reset-password")
@limiter.limit(OTP_LIMIT)
async def reset_password(request: Request, body: ResetPasswordConfirm):
    return auth_service.reset_password(body.token, body.new_password)


# ==================== SESSIONS ====================


@router.post("/refresh")
@limiter.limit("30/minute")
async def refresh_token(request: Request, body: RefreshRequest):
    """Rotate the refresh token and issue a new access token."""
    return token_service.refresh(body.refresh_token)


@router.post("/logout")
async def logout(body: RefreshRequest):
    token_service.logout(body.refresh_token)
    return {"message": "Logged out successfully"}


@router.post("/logout-all")
async def logout_all(user=Depends(require_auth)):
    revoked = token_service.logout_all(user.id, user_type_of(user))
    return {"message": "Logged out from all devices", "sessionsRevoked": revoked}


@router.delete("/account")
async def delete_account(user=Depends(require_auth)):
    """Soft delete the caller's influencer or brand account."""
    user_type = user_type_of(user)
    if user_type == UserType.ADMIN:
        raise BadRequestError("Admin accounts cannot be deleted here")
    return auth_service.delete_account(user.id, user_type)
