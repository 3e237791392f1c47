"""Brand campaign API v1 endpoints."""

from decimal import Decimal

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from pydantic import BaseModel, Field, model_validator

from brandcollab.auth.middleware import require_auth, require_brand
from brandcollab.auth.models import Brand
from brandcollab.campaign.models import (
    ApplicationStatus,
    CampaignStatus,
    CampaignType,
    DeliverableType,
    Platform,
)
from brandcollab.campaign.service import campaign_service
from brandcollab.master_data.service import master_data_service

router = APIRouter(prefix="/campaigns", tags=["campaigns"])


# ==================== MODELS ====================


class DeliverableInput(BaseModel):
    platform: Platform
    type: DeliverableType
    budget: Decimal | None = Field(default=None, ge=0)
    quantity: int = Field(default=1, ge=1)
    specifications: str | None = None


class CampaignFields(BaseModel):
    """Fields shared by create and update."""
    description: str | None = None
    category: str | None = Field(default=None, max_length=100)
    type: CampaignType | None = None
    is_invite_only: bool | None = None
    is_organic: bool | None = None
    is_max_campaign: bool | None = None
    is_pan_india: bool | None = None
    city_ids: list[int] | None = None
    min_age: int | None = Field(default=None, ge=13, le=100)
    max_age: int | None = Field(default=None, ge=13, le=100)
    is_open_to_all_ages: bool | None = None
    gender_preferences: list[str] | None = None
    is_open_to_all_genders: bool | None = None
    niche_ids: list[int] | None = None
    custom_influencer_requirements: str | None = None
    performance_expectations: str | None = None
    brand_support: str | None = None
    campaign_budget: Decimal | None = Field(default=None, ge=0)
    barter_product_worth: Decimal | None = Field(default=None, ge=0)
    additional_monetary_payout: Decimal | None = Field(default=None, ge=0)
    number_of_influencers: int | None = Field(default=None, ge=1)
    deliverables: list[DeliverableInput] | None = None

    @model_validator(mode="after")
    def check_age_range(self):
        if self.min_age is not None and self.max_age is not None and self.min_age > self.max_age:
            raise ValueError("min_age cannot be greater than max_age")
        return self


class CampaignCreate(CampaignFields):
    name: str = Field(..., min_length=1, max_length=255)
    status: CampaignStatus = CampaignStatus.ACTIVE
    deliverables: list[DeliverableInput] = Field(default_factory=list)


class CampaignUpdate(CampaignFields):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    status: CampaignStatus | None = None


class StatusUpdate(BaseModel):
    status: CampaignStatus


class InviteRequest(BaseModel):
    campaign_id: int
    influencer_ids: list[int] = Field(..., min_length=1, max_length=100)
    personal_message: str | None = Field(default=None, max_length=1000)


class ApplicationStatusUpdate(BaseModel):
    status: ApplicationStatus
    review_notes: str | None = Field(default=None, max_length=2000)


def _campaign_data(body: CampaignFields, exclude_unset: bool) -> dict:
    data = body.model_dump(exclude_unset=exclude_unset, exclude_none=not exclude_unset)
    if data.get("deliverables") is not None:
        data["deliverables"] = [
            {**d, "platform": d["platform"].value, "type": d["type"].value} for d in data["deliverables"]
        ]
    return data


# ==================== CITIES ====================


@router.get("/cities/search")
async def search_cities(q: str = Query(..., min_length=2), user=Depends(require_auth)):
    return {"cities": master_data_service.search_cities(q)}


@router.get("/cities/popular")
async def get_popular_cities(user=Depends(require_auth)):
    return {"cities": master_data_service.get_popular_cities()}


# ==================== CAMPAIGNS ====================


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_campaign(body: CampaignCreate, brand: Brand = Depends(require_brand)):
    return campaign_service.create_campaign(brand.id, _campaign_data(body, exclude_unset=False))


@router.get("")
async def get_campaigns(
    campaign_status: CampaignStatus | None = Query(default=None, alias="status"),
    campaign_type: CampaignType | None = Query(default=None, alias="type"),
    search: str | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    brand: Brand = Depends(require_brand),
):
    return campaign_service.get_campaigns(brand.id, campaign_status, campaign_type, search, page, limit)


@router.post("/invite")
async def invite_influencers(
    body: InviteRequest,
    background_tasks: BackgroundTasks,
    brand: Brand = Depends(require_brand),
):
    """Invite influencers to a draft or active campaign."""
    return await campaign_service.invite_influencers(
        brand.id, body.campaign_id, body.influencer_ids, body.personal_message, background=background_tasks
    )


@router.get("/{campaign_id}")
async def get_campaign(campaign_id: int, brand: Brand = Depends(require_brand)):
    return campaign_service.get_campaign(campaign_id, brand.id)


@router.put("/{campaign_id}")
async def update_campaign(campaign_id: int, body: CampaignUpdate, brand: Brand = Depends(require_brand)):
    return campaign_service.update_campaign(campaign_id, brand.id, _campaign_data(body, exclude_unset=True))


@router.post("/{campaign_id}/close")
async def close_campaign(campaign_id: int, brand: Brand = Depends(require_brand)):
    return campaign_service.close_campaign(campaign_id, brand.id)


@router.patch("/{campaign_id}/status")
async def update_campaign_status(
    campaign_id: int,
    body: StatusUpdate,
    background_tasks: BackgroundTasks,
    brand: Brand = Depends(require_brand),
):
    return await campaign_service.update_campaign_status(campaign_id, brand.id, body.status, background=background_tasks)


@router.delete("/{campaign_id}")
async def delete_campaign(campaign_id: int, brand: Brand = Depends(require_brand)):
    return campaign_service.delete_campaign(campaign_id, brand.id)


@router.get("/{campaign_id}/applications")
async def get_campaign_applications(
    campaign_id: int,
    application_status: ApplicationStatus | None = Query(default=None, alias="status"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    brand: Brand = Depends(require_brand),
):
    return campaign_service.get_campaign_applications(campaign_id, brand.id, application_status, page, limit)


@router.patch("/{campaign_id}/applications/{application_id}/status")
async def update_application_status(
    campaign_id: int,
    application_id: int,
    body: ApplicationStatusUpdate,
    background_tasks: BackgroundTasks,
    brand: Brand = Depends(require_brand),
):
    return await campaign_service.update_application_status(
        campaign_id, application_id, brand.id, body.status, body.review_notes, background=background_tasks
    )
