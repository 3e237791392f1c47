"""Brand profile API v1 endpoints."""

from fastapi import APIRouter, BackgroundTasks, Depends, Request

from brandcollab.api.forms import form_files, parse_form
from brandcollab.auth.middleware import require_auth, require_brand
from brandcollab.auth.models import Brand
from brandcollab.brand.service import PROFILE_FIELDS, brand_service
from brandcollab.influencer.completion import SOCIAL_FIELDS

router = APIRouter(prefix="/brand", tags=["brand"])

ID_FIELDS = ("company_type_id", "founded_year", "headquarter_country_id", "headquarter_city_id")


@router.get("/profile")
async def get_my_profile(brand: Brand = Depends(require_brand)):
    return brand_service.get_brand_profile(brand.id)


@router.get("/profile/{brand_id}")
async def get_public_profile(brand_id: int, user=Depends(require_auth)):
    return brand_service.get_brand_profile(brand_id, public=True)


@router.put("/profile")
async def update_profile(
    request: Request,
    background_tasks: BackgroundTasks,
    brand: Brand = Depends(require_brand),
):
    """Partial profile update (multipart)."""
    form = await request.form()
    data = parse_form(
        form,
        text_fields=tuple(f for f in PROFILE_FIELDS if f not in ID_FIELDS) + ("username",) + SOCIAL_FIELDS,
        int_fields=ID_FIELDS,
        int_list_fields=("niche_ids",),
        json_fields=("custom_niches",),
    )
    files = form_files(
        form,
        ("profile_image", "profile_banner", "incorporation_document", "gst_document", "pan_document"),
    )
    return await brand_service.update_brand_profile(brand.id, data, files, background=background_tasks)
