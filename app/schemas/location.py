"""
Location suggestion, geocoding and enrichment schemas
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class LocationType(str, Enum):
    CITY = "city"
    COUNTRY = "country"
    REGION = "region"
    LOCALITY = "locality"
    NEIGHBORHOOD = "neighborhood"


class SuggestionSource(str, Enum):
    CONFIG = "config"
    LOCAL = "local"
    EXTERNAL = "external"


# Merge preference between tiers
SOURCE_PRIORITY: Dict[SuggestionSource, int] = {
    SuggestionSource.CONFIG: 3,
    SuggestionSource.LOCAL: 2,
    SuggestionSource.EXTERNAL: 1,
}


class LocationSuggestion(BaseModel):
    """One ranked suggestion; ``data`` carries the source-specific payload"""

    id: str
    description: str
    main_text: str
    secondary_text: str = ""
    type: LocationType = LocationType.CITY
    source: SuggestionSource
    data: Dict[str, Any] = Field(default_factory=dict)
    score: Optional[float] = None


class SuggestionResult(BaseModel):
    data: List[LocationSuggestion] = []
    source: str = "none"
    config_count: int = 0
    local_count: int = 0
    external_count: int = 0
    total_results: int = 0
    region: Optional[str] = None
    query_length: int = 0


class GeocodeResult(BaseModel):
    """Coordinates for a free-text address plus whatever the tier knows"""

    model_config = ConfigDict(extra="allow")

    latitude: float
    longitude: float
    formatted_address: str
    source: str
    place_id: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    region: Optional[str] = None


class PopularLocationsResult(BaseModel):
    data: List[Dict[str, Any]] = []
    source: str = "hybrid"
    cached_at: datetime


class RegionResult(BaseModel):
    query: str
    region: str
    name: Optional[str] = None
    countries: List[str] = []
    google_bias: Optional[str] = None


class GeocodeRequest(BaseModel):
    address: str = Field(..., min_length=1, max_length=500)
