"""
Gazetteer and region configuration loader
Reads the popular-locations list and region definitions from YAML once at startup
"""

from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml
from pydantic import BaseModel, ConfigDict, Field

from app.core.config import settings
from app.core.logging import log

PROJECT_ROOT = Path(__file__).parent.parent.parent


class FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True)


class GeoPoint(FrozenModel):
    latitude: float
    longitude: float


class PopularLocation(FrozenModel):
    """A gazetteer entry"""

    name: str
    country: str
    state: Optional[str] = None
    latitude: float
    longitude: float
    population: int = 0
    priority: int = 0
    type: str = "city"
    aliases: Tuple[str, ...] = ()


class Region(FrozenModel):
    """Named region with the countries it covers and a provider location bias"""

    name: str
    countries: Tuple[str, ...] = ()
    center: Optional[GeoPoint] = None
    radius: Optional[int] = None
    google_bias: Optional[str] = None


class UserLocation(FrozenModel):
    latitude: float
    longitude: float
    city: Optional[str] = None
    country: Optional[str] = None


class SearchConfig(FrozenModel):
    """One autocomplete configuration sent to the places provider"""

    types: str = "geocode"
    location_bias: Optional[str] = None


class PlacesSearchOptions(FrozenModel):
    default_types: str = "geocode"
    language: str = "en"
    search_configs: Dict[str, SearchConfig] = Field(default_factory=dict)


class PriorityWeights(FrozenModel):
    exact_match: int = 1000
    starts_with: int = 500
    contains: int = 200
    population_factor: int = 30
    name_length_bonus: int = 50


class SearchOptions(FrozenModel):
    min_query_length: int = 2
    max_results: int = 10
    cache_ttl: int = 3600
    boost_local_results: bool = True
    local_boost_factor: int = 200
    priority_weights: PriorityWeights = PriorityWeights()


class LocationsConfig(FrozenModel):
    """Process-wide, read-only location configuration"""

    default_region: str = "baltic"
    user_location: Optional[UserLocation] = None
    popular_locations: Tuple[PopularLocation, ...] = ()
    regions: Dict[str, Region] = Field(default_factory=dict)
    places: PlacesSearchOptions = PlacesSearchOptions()
    search_options: SearchOptions = SearchOptions()


def load_locations_config(path: Optional[Path] = None) -> LocationsConfig:
    """Load configuration from a YAML file, falling back to empty defaults"""
    config_file = Path(path or settings.locations_config_path)
    if not config_file.is_absolute():
        config_file = PROJECT_ROOT / config_file

    if not config_file.exists():
        log.warning("Locations config not found, using defaults", path=str(config_file))
        return LocationsConfig()

    with open(config_file, "r", encoding="utf-8") as f:
        raw: Dict[str, Any] = yaml.safe_load(f) or {}

    config = LocationsConfig.model_validate(raw)
    log.info(
        "Loaded locations config",
        path=str(config_file),
        popular_locations=len(config.popular_locations),
        regions=len(config.regions),
    )
    return config


@lru_cache(maxsize=1)
def get_locations_config() -> LocationsConfig:
    """Get the configuration loaded once per process"""
    return load_locations_config()
