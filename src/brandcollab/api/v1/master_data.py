"""Reference data endpoints (public)."""

from fastapi import APIRouter, Query

from brandcollab.master_data.service import CITY_SEARCH_LIMIT, master_data_service

router = APIRouter(prefix="/master-data", tags=["master-data"])


@router.get("/countries")
async def get_countries():
    return {"countries": master_data_service.get_countries()}


@router.get("/countries/{country_id}/cities")
async def get_cities(country_id: int):
    return {"cities": master_data_service.get_cities(country_id)}


@router.get("/company-types")
async def get_company_types():
    return {"companyTypes": master_data_service.get_company_types()}


@router.get("/niches")
async def get_niches():
    return {"niches": master_data_service.get_niches()}


@router.get("/cities/search")
async def search_cities(
    q: str = Query(..., min_length=2),
    limit: int = Query(default=CITY_SEARCH_LIMIT, ge=1, le=50),
):
    return {"cities": master_data_service.search_cities(q, limit)}


@router.get("/cities/popular")
async def get_popular_cities():
    return {"cities": master_data_service.get_popular_cities()}
