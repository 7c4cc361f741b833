"""
Location suggestion and geocoding endpoints
"""
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Query, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.api.deps import LocationServiceDep
from app.core.config import settings
from app.schemas.location import (
    GeocodeRequest,
    GeocodeResult,
    PopularLocationsResult,
    RegionResult,
    SuggestionResult,
)

router = APIRouter()
limiter = Limiter(key_func=get_remote_address)


@router.get("/suggestions", response_model=SuggestionResult, summary="Suggest locations")
@limiter.limit(settings.suggestions_rate_limit)
async def get_suggestions(
    request: Request,
    location_service: LocationServiceDep,
    q: str = Query(..., max_length=255, description="Partial place name"),
    limit: int = Query(10, ge=1, le=50),
) -> SuggestionResult:
    """
    Ranked suggestions merged from the gazetteer, local cities and the
    external provider. Queries below the minimum length return an empty result.
    """
    return await location_service.get_suggestions(q, limit)


@router.post("/geocode", response_model=Optional[GeocodeResult], summary="Geocode an address")
async def geocode(payload: GeocodeRequest, location_service: LocationServiceDep) -> Optional[GeocodeResult]:
    """Returns null when no tier can resolve the address"""
    return await location_service.geocode_address(payload.address)


@router.get("/popular", response_model=PopularLocationsResult, summary="Popular locations")
async def get_popular(
    location_service: LocationServiceDep, limit: int = Query(20, ge=1, le=100)
) -> PopularLocationsResult:
    return await location_service.get_popular_locations(limit)


@router.post("/validate", response_model=Dict[str, Any], summary="Validate and enrich a location")
async def validate_location(
    location_service: LocationServiceDep, location: Dict[str, Any] = Body(...)
) -> Dict[str, Any]:
    return await location_service.validate_and_enrich_location(location)


@router.get("/region", response_model=RegionResult, summary="Detect the region of a query")
async def detect_region(
    location_service: LocationServiceDep, q: str = Query(..., min_length=1, max_length=255)
) -> RegionResult:
    return location_service.describe_region(q)
