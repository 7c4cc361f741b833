"""
API Dependencies for dependency injection
"""
import uuid
from typing import Annotated, Optional

from fastapi import Depends, Header, Query
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.cache import CacheBackend, get_cache
from app.core.database import get_async_session
from app.core.locations_config import LocationsConfig, get_locations_config
from app.repositories import CategoryRepository, CityRepository, LocationCacheRepository
from app.schemas.common import PaginationParams
from app.services import CategoryService, HybridLocationService
from app.services.places_service import PlacesProvider, get_places_service

# Database session
AsyncSessionDep = Annotated[AsyncSession, Depends(get_async_session)]

# Shared resources
CacheDep = Annotated[CacheBackend, Depends(get_cache)]
PlacesDep = Annotated[PlacesProvider, Depends(get_places_service)]
LocationsConfigDep = Annotated[LocationsConfig, Depends(get_locations_config)]


# Repositories
async def get_category_repository(session: AsyncSessionDep) -> CategoryRepository:
    """Get category repository instance"""
    return CategoryRepository(session)


async def get_city_repository(session: AsyncSessionDep) -> CityRepository:
    return CityRepository(session)


async def get_location_cache_repository(session: AsyncSessionDep) -> LocationCacheRepository:
    return LocationCacheRepository(session)


CategoryRepoDep = Annotated[CategoryRepository, Depends(get_category_repository)]
CityRepoDep = Annotated[CityRepository, Depends(get_city_repository)]
LocationCacheRepoDep = Annotated[LocationCacheRepository, Depends(get_location_cache_repository)]


# Services
async def get_category_service(category_repo: CategoryRepoDep, cache: CacheDep) -> CategoryService:
    """Get category service instance"""
    return CategoryService(category_repo, cache)


async def get_location_service(
    city_repo: CityRepoDep,
    cache_repo: LocationCacheRepoDep,
    places: PlacesDep,
    config: LocationsConfigDep,
) -> HybridLocationService:
    """Get location service instance"""
    return HybridLocationService(city_repo, cache_repo, places, config)


CategoryServiceDep = Annotated[CategoryService, Depends(get_category_service)]
LocationServiceDep = Annotated[HybridLocationService, Depends(get_location_service)]


# Common parameters
async def get_pagination(
    skip: int = Query(0, ge=0, description="Number of items to skip"),
    limit: int = Query(20, ge=1, le=100, description="Number of items to return")
) -> PaginationParams:
    """Get pagination parameters"""
    return PaginationParams(skip=skip, limit=limit)


PaginationDep = Annotated[PaginationParams, Depends(get_pagination)]


# Request ID and correlation
async def get_request_id(
    x_request_id: Optional[str] = Header(None, alias="X-Request-ID")
) -> str:
    """Get or generate request ID"""
    return x_request_id or str(uuid.uuid4())


RequestIdDep = Annotated[str, Depends(get_request_id)]
