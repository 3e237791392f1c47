"""Influencer API v1 endpoints."""

from datetime import date

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Request, status
from pydantic import BaseModel, Field

from brandcollab.api.forms import form_files, parse_form
from brandcollab.api.rate_limit import LOGIN_LIMIT, OTP_LIMIT, limiter
from brandcollab.auth.middleware import require_auth, require_influencer
from brandcollab.auth.models import Influencer
from brandcollab.campaign.models import ApplicationStatus, CampaignType
from brandcollab.influencer.campaigns import influencer_campaign_service
from brandcollab.influencer.completion import SOCIAL_FIELDS
from brandcollab.influencer.credits import weekly_credit_service
from brandcollab.influencer.eligibility import CampaignFilters
from brandcollab.influencer.experiences import experience_service
from brandcollab.influencer.service import influencer_service
from brandcollab.logging_config import get_logger
from brandcollab.payments import stripe_service
from brandcollab.referral.service import referral_service
from brandcollab.referral.upi import upi_service
from brandcollab.settings import settings

logger = get_logger(__name__)

router = APIRouter(prefix="/influencer", tags=["influencer"])


# ==================== MODELS ====================


class WhatsappOtpRequest(BaseModel):
    whatsapp_number: str = Field(..., min_length=10, max_length=15)


class WhatsappOtpVerify(BaseModel):
    whatsapp_number: str = Field(..., min_length=10, max_length=15)
    otp: str = Field(..., min_length=6, max_length=6)


class ApplyRequest(BaseModel):
    cover_letter: str | None = Field(default=None, max_length=5000)
    proposal_message: str | None = Field(default=None, max_length=5000)


class SocialLinkInput(BaseModel):
    platform: str = Field(..., max_length=50)
    content_type: str = Field(default="post", max_length=50)
    url: str = Field(..., max_length=500)


class ExperienceCreate(BaseModel):
    campaign_id: int | None = None
    campaign_name: str = Field(..., min_length=1, max_length=255)
    brand_name: str = Field(..., min_length=1, max_length=255)
    campaign_category: str | None = Field(default=None, max_length=100)
    deliverable_format: str | None = Field(default=None, max_length=255)
    success_message: str | None = None
    role_description: str | None = None
    keyword_tags: list[str] | None = None
    start_date: date | None = None
    end_date: date | None = None
    social_links: list[SocialLinkInput] = Field(default_factory=list)


class ExperienceUpdate(BaseModel):
    campaign_id: int | None = None
    campaign_name: str | None = Field(default=None, min_length=1, max_length=255)
    brand_name: str | None = Field(default=None, min_length=1, max_length=255)
    campaign_category: str | None = Field(default=None, max_length=100)
    deliverable_format: str | None = Field(default=None, max_length=255)
    success_message: str | None = None
    role_description: str | None = None
    keyword_tags: list[str] | None = None
    start_date: date | None = None
    end_date: date | None = None
    social_links: list[SocialLinkInput] | None = None


class RedeemRequest(BaseModel):
    upi_record_id: int | None = None


class UpiCreate(BaseModel):
    upi_id: str = Field(..., min_length=3, max_length=255)
    set_as_selected: bool = False


class CheckoutRequest(BaseModel):
    success_url: str | None = None
    cancel_url: str | None = None


# ==================== PROFILE ====================


@router.get("/profile")
async def get_my_profile(influencer: Influencer = Depends(require_influencer)):
    return influencer_service.get_profile(influencer.id)


@router.get("/profile/{influencer_id}")
async def get_public_profile(influencer_id: int, user=Depends(require_auth)):
    """Public profile of any influencer."""
    return influencer_service.get_profile(influencer_id, public=True)


@router.put("/profile")
async def update_profile(
    request: Request,
    background_tasks: BackgroundTasks,
    influencer: Influencer = Depends(require_influencer),
):
    """Partial profile update (multipart); a complete profile is queued for review."""
    form = await request.form()
    data = parse_form(
        form,
        text_fields=("name", "username", "bio", "profile_headline", "gender") + SOCIAL_FIELDS,
        int_fields=("country_id", "city_id"),
        int_list_fields=("niche_ids",),
        json_fields=("custom_niches", "collaboration_costs"),
        date_fields=("date_of_birth",),
        bool_fields=("clear_profile_banner",),
    )
    files = form_files(form, ("profile_image", "profile_banner"))
    return await influencer_service.update_profile(influencer.id, data, files, background=background_tasks)


@router.post("/whatsapp/send-otp")
@limiter.limit(OTP_LIMIT)
async def send_whatsapp_otp(
    request: Request,
    body: WhatsappOtpRequest,
    influencer: Influencer = Depends(require_influencer),
):
    return await influencer_service.send_whatsapp_otp(influencer.id, body.whatsapp_number)


@router.post("/whatsapp/verify-otp")
@limiter.limit(LOGIN_LIMIT)
async def verify_whatsapp_otp(
    request: Request,
    body: WhatsappOtpVerify,
    influencer: Influencer = Depends(require_influencer),
):
    return influencer_service.verify_whatsapp_otp(influencer.id, body.whatsapp_number, body.otp)


# ==================== CAMPAIGNS ====================


@router.get("/campaigns")
async def get_open_campaigns(
    search: str | None = None,
    niche_ids: list[int] = Query(default=[]),
    city_ids: list[int] = Query(default=[]),
    campaign_type: CampaignType | None = None,
    min_budget: float | None = Query(default=None, ge=0),
    max_budget: float | None = Query(default=None, ge=0),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    influencer: Influencer = Depends(require_influencer),
):
    """Campaigns the influencer can see, invited ones included."""
    filters = CampaignFilters(
        search=search,
        niche_ids=niche_ids,
        city_ids=city_ids,
        campaign_type=campaign_type,
        min_budget=min_budget,
        max_budget=max_budget,
        page=page,
        limit=limit,
    )
    return influencer_campaign_service.get_open_campaigns(influencer.id, filters)


@router.get("/campaigns/{campaign_id}")
async def get_campaign_details(campaign_id: int, influencer: Influencer = Depends(require_influencer)):
    return influencer_campaign_service.get_campaign_details(influencer.id, campaign_id)


@router.post("/campaigns/{campaign_id}/apply", status_code=status.HTTP_201_CREATED)
async def apply_campaign(
    campaign_id: int,
    body: ApplyRequest,
    background_tasks: BackgroundTasks,
    influencer: Influencer = Depends(require_influencer),
):
    """Apply to a campaign using one weekly credit."""
    return await influencer_campaign_service.apply_campaign(
        influencer.id, campaign_id, body.cover_letter, body.proposal_message, background=background_tasks
    )


@router.get("/applications")
async def get_my_applications(
    application_status: ApplicationStatus | None = Query(default=None, alias="status"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    influencer: Influencer = Depends(require_influencer),
):
    return influencer_campaign_service.get_my_applications(influencer.id, application_status, page, limit)


@router.post("/applications/{application_id}/withdraw")
async def withdraw_application(application_id: int, influencer: Influencer = Depends(require_influencer)):
    return influencer_campaign_service.withdraw_application(influencer.id, application_id)


@router.get("/weekly-credits")
async def get_weekly_credits(influencer: Influencer = Depends(require_influencer)):
    return weekly_credit_service.get_weekly_credits_info(influencer.id)


# ==================== EXPERIENCES ====================


@router.get("/experiences")
async def get_experiences(
    experience_id: int | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    influencer: Influencer = Depends(require_influencer),
):
    return experience_service.get_experiences(influencer.id, experience_id, page, limit)


@router.post("/experiences", status_code=status.HTTP_201_CREATED)
async def create_experience(body: ExperienceCreate, influencer: Influencer = Depends(require_influencer)):
    return experience_service.create_experience(influencer.id, body.model_dump())


@router.put("/experiences/{experience_id}")
async def update_experience(
    experience_id: int,
    body: ExperienceUpdate,
    influencer: Influencer = Depends(require_influencer),
):
    return experience_service.update_experience(influencer.id, experience_id, body.model_dump(exclude_unset=True))


@router.delete("/experiences/{experience_id}")
async def delete_experience(experience_id: int, influencer: Influencer = Depends(require_influencer)):
    return experience_service.delete_experience(influencer.id, experience_id)


# ==================== REFERRALS ====================


@router.get("/referral/rewards")
async def get_referral_rewards(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    influencer: Influencer = Depends(require_influencer),
):
    return referral_service.get_referral_rewards(influencer.id, page, limit)


@router.post("/referral/track-click")
async def track_referral_click(influencer: Influencer = Depends(require_influencer)):
    return referral_service.track_referral_invite_click(influencer.id)


@router.post("/referral/redeem")
async def redeem_rewards(
    body: RedeemRequest,
    background_tasks: BackgroundTasks,
    influencer: Influencer = Depends(require_influencer),
):
    """Request payout of all pending rewards to a UPI id."""
    return await referral_service.redeem_rewards(influencer.id, body.upi_record_id, background=background_tasks)


@router.get("/upi")
async def list_upi_ids(influencer: Influencer = Depends(require_influencer)):
    return upi_service.list_upi_ids(influencer.id)


@router.post("/upi", status_code=status.HTTP_201_CREATED)
async def add_upi_id(body: UpiCreate, influencer: Influencer = Depends(require_influencer)):
    return upi_service.add_upi_id(influencer.id, body.upi_id, body.set_as_selected)


@router.put("/upi/{upi_record_id}/select")
async def select_upi_id(upi_record_id: int, influencer: Influencer = Depends(require_influencer)):
    return upi_service.select_upi_id(influencer.id, upi_record_id)


@router.post("/upi/{upi_record_id}/select-and-redeem")
async def select_and_redeem(
    upi_record_id: int,
    background_tasks: BackgroundTasks,
    influencer: Influencer = Depends(require_influencer),
):
    return await upi_service.select_and_redeem(influencer.id, upi_record_id, background=background_tasks)


@router.delete("/upi/{upi_record_id}")
async def delete_upi_id(upi_record_id: int, influencer: Influencer = Depends(require_influencer)):
    return upi_service.delete_upi_id(influencer.id, upi_record_id)


# ==================== PRO ====================


@router.get("/pro")
async def get_pro_status(influencer: Influencer = Depends(require_influencer)):
    return stripe_service.get_pro_status(influencer.id)


@router.post("/pro/checkout")
async def create_pro_checkout(body: CheckoutRequest, influencer: Influencer = Depends(require_influencer)):
    """Start a Stripe Checkout for Pro and return its URL."""
    try:
        url = stripe_service.create_pro_checkout(
            influencer.id,
            success_url=body.success_url or f"{settings.frontend_url}/pro/success",
            cancel_url=body.cancel_url or f"{settings.frontend_url}/pro/cancel",
        )
    except ValueError as e:
        logger.warning("pro_checkout_unavailable", influencer_id=influencer.id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(e),
        )
    return {"checkoutUrl": url}
