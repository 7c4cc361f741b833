"""
Test configuration and fixtures
"""

import os

os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

from typing import Any, Dict, List, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

import app.models  # noqa: F401
from app.core.cache import InMemoryCache, get_cache
from app.core.database import create_session_factory, get_async_session
from app.core.locations_config import get_locations_config, load_locations_config
from app.main import app
from app.repositories import CategoryRepository, CityRepository, LocationCacheRepository
from app.services import CategoryService, HybridLocationService
from app.services.places_service import PlacesProvider, get_places_service


class FakePlacesProvider(PlacesProvider):
    """Places provider with canned answers and call counters"""

    def __init__(self, predictions: Optional[Dict[str, List[Dict[str, Any]]]] = None, available: bool = True):
        self.predictions = predictions or {}
        self.available = available
        self.geocode_results: Dict[str, Dict[str, Any]] = {}
        self.details: Dict[str, Dict[str, Any]] = {}
        self.autocomplete_calls = 0
        self.geocode_calls = 0
        self.details_calls = 0

    async def autocomplete(self, input, *, types=None, language=None, location_bias=None, session_token=None):
        self.autocomplete_calls += 1
        return list(self.predictions.get(input.lower(), []))

    async def place_details(self, place_id):
        self.details_calls += 1
        return self.details.get(place_id)

    async def geocode(self, address):
        self.geocode_calls += 1
        return self.geocode_results.get(address.lower())

    def is_available(self) -> bool:
        return self.available


def prediction(place_id: str, main_text: str, secondary_text: str = "", types=None) -> Dict[str, Any]:
    return {
        "place_id": place_id,
        "description": f"{main_text}, {secondary_text}" if secondary_text else main_text,
        "main_text": main_text,
        "secondary_text": secondary_text,
        "types": types or ["locality", "political"],
    }


@pytest_asyncio.fixture
async def engine():
    """In-memory SQLite engine shared across connections"""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(engine):
    """Create a test database session"""
    session_factory = create_session_factory(engine)
    async with session_factory() as session:
        yield session


@pytest.fixture
def cache():
    return InMemoryCache()


@pytest.fixture
def locations_config():
    return load_locations_config()


@pytest.fixture
def places():
    return FakePlacesProvider(
        predictions={
            "riga": [
                prediction("gp_riga", "Riga", "Latvia"),
                prediction("gp_rigas_iela", "Rigas iela", "Jelgava, Latvia", types=["route"]),
            ],
            "kaunas": [prediction("gp_kaunas", "Kaunas", "Lithuania")],
        }
    )


@pytest.fixture
def category_service(db_session, cache):
    return CategoryService(CategoryRepository(db_session), cache)


@pytest.fixture
def location_service(db_session, places, locations_config):
    return HybridLocationService(
        CityRepository(db_session),
        LocationCacheRepository(db_session),
        places,
        locations_config,
    )


@pytest_asyncio.fixture
async def client(db_session, cache, places, locations_config):
    """Create test client with database, cache and provider overrides"""

    async def get_test_session():
        yield db_session

    app.dependency_overrides[get_async_session] = get_test_session
    app.dependency_overrides[get_cache] = lambda: cache
    app.dependency_overrides[get_places_service] = lambda: places
    app.dependency_overrides[get_locations_config] = lambda: locations_config

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def sample_category_data():
    """Sample category payload with a dynamic attribute schema"""
    return {
        "name": "Smartphones",
        "description": "Mobile phones",
        "icon": "smartphone",
        "sort_order": 1,
        "attributes": {
            "brand": {"type": "select", "label": "Brand", "required": True, "options": ["Apple", "Samsung"]},
            "storage": {"type": "number", "label": "Storage (GB)", "min": 1, "max": 4},
            "condition_notes": {"type": "textarea", "max": 50},
        },
    }
