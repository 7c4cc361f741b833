"""
Suggestion tiers for the hybrid location engine

Each tier answers ``search(query, budget)`` with at most ``budget``
suggestions. Tiers are consulted in priority order: the configured
gazetteer, the local city table, then the external places provider.
"""

import asyncio
import math
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence, Tuple

from app.core.locations_config import LocationsConfig, PopularLocation, SearchConfig
from app.core.logging import log
from app.repositories.location import CityRepository, CityWithGeography
from app.schemas.location import LocationSuggestion, LocationType, SuggestionSource
from app.services.places_service import PlacesProvider
from app.utils.normalization import normalize_query, slugify

EXACT = "exact"
STARTS_WITH = "starts_with"
CONTAINS = "contains"
COUNTRY = "country"
ALIAS = "alias"


def detect_query_region(query: str, config: LocationsConfig) -> str:
    """
    Region key for a query.

    A query naming a configured country picks that country's region; a query
    naming a gazetteer place picks the region of the place's country.
    Anything else falls back to the default region.
    """
    q = normalize_query(query)
    if q:
        for key, region in config.regions.items():
            if any(country.lower() in q for country in region.countries):
                return key

        for entry in config.popular_locations:
            names = [entry.name.lower(), *(alias.lower() for alias in entry.aliases)]
            if any(name in q for name in names):
                region_key = region_for_country(entry.country, config)
                if region_key:
                    return region_key

    return config.default_region


def region_for_country(country: str, config: LocationsConfig) -> Optional[str]:
    country = country.lower()
    for key, region in config.regions.items():
        if country in (c.lower() for c in region.countries):
            return key
    return None


def location_type_from_provider(types: Sequence[str]) -> LocationType:
    if "country" in types:
        return LocationType.COUNTRY
    if "administrative_area_level_1" in types:
        return LocationType.REGION
    if "locality" in types or "administrative_area_level_2" in types:
        return LocationType.CITY
    if "sublocality" in types or "neighborhood" in types:
        return LocationType.NEIGHBORHOOD
    return LocationType.LOCALITY


def _join(*parts: Optional[str]) -> str:
    return ", ".join(part for part in parts if part)


class SuggestionProvider(ABC):
    """One suggestion tier"""

    source: SuggestionSource

    @abstractmethod
    async def search(self, query: str, budget: int) -> List[LocationSuggestion]:
        pass


class ConfigSuggestionProvider(SuggestionProvider):
    """Tier 1: the configured gazetteer of popular locations"""

    source = SuggestionSource.CONFIG

    def __init__(self, config: LocationsConfig):
        self.config = config

    @staticmethod
    def match_type(entry: PopularLocation, query: str) -> Optional[str]:
        """How the lowercased query matches an entry, tested in priority order"""
        name = entry.name.lower()
        if name == query:
            return EXACT
        if name.startswith(query):
            return STARTS_WITH
        if query in name:
            return CONTAINS
        if query in entry.country.lower():
            return COUNTRY
        for alias in entry.aliases:
            alias = alias.lower()
            if alias == query or alias.startswith(query) or query in alias:
                return ALIAS
        return None

    def score(self, entry: PopularLocation, match_type: str) -> float:
        options = self.config.search_options
        weights = options.priority_weights
        match_weight = {
            EXACT: weights.exact_match,
            STARTS_WITH: weights.starts_with,
            CONTAINS: weights.contains,
            ALIAS: weights.contains,
            COUNTRY: weights.contains / 2,
        }[match_type]

        score = float(match_weight)
        if entry.population > 0:
            score += math.log10(entry.population) * weights.population_factor
        score += entry.priority * 2
        if options.boost_local_results:
            score += options.local_boost_factor
        score += max(0, weights.name_length_bonus - len(entry.name))
        return score

    def matches(self, query: str, limit: Optional[int] = None) -> List[Tuple[PopularLocation, str, float]]:
        """Matching entries with their match type and score, best first"""
        q = normalize_query(query)
        if not q:
            return []

        found = []
        for entry in self.config.popular_locations:
            match_type = self.match_type(entry, q)
            if match_type is None:
                continue
            found.append((entry, match_type, self.score(entry, match_type)))
            if limit is not None and len(found) >= limit:
                break

        found.sort(key=lambda item: item[2], reverse=True)
        return found

    def best_match(self, query: str) -> Optional[Tuple[PopularLocation, str, float]]:
        found = self.matches(query)
        return found[0] if found else None

    def to_suggestion(self, entry: PopularLocation, match_type: str, score: float) -> LocationSuggestion:
        is_country = entry.type == LocationType.COUNTRY.value
        secondary = "" if is_country else _join(entry.state, entry.country)
        try:
            location_type = LocationType(entry.type)
        except ValueError:
            location_type = LocationType.CITY

        return LocationSuggestion(
            id=f"config_{slugify(entry.name, separator='_')}",
            description=_join(entry.name, secondary),
            main_text=entry.name,
            secondary_text=secondary,
            type=location_type,
            source=self.source,
            score=round(score, 2),
            data={
                "latitude": entry.latitude,
                "longitude": entry.longitude,
                "population": entry.population,
                "country": entry.country,
                "state": entry.state,
                "priority": entry.priority,
                "match_type": match_type,
            },
        )

    async def search(self, query: str, budget: int) -> List[LocationSuggestion]:
        if budget <= 0:
            return []
        return [self.to_suggestion(*match) for match in self.matches(query, limit=budget)]


class LocalSuggestionProvider(SuggestionProvider):
    """Tier 2: active cities from the reference tables"""

    source = SuggestionSource.LOCAL

    def __init__(self, city_repo: CityRepository):
        self.city_repo = city_repo

    @staticmethod
    def to_suggestion(row: CityWithGeography) -> LocationSuggestion:
        city = row.city
        secondary = _join(row.state_name, row.country_name)
        return LocationSuggestion(
            id=f"city_{city.id}",
            description=_join(city.name, secondary),
            main_text=city.name,
            secondary_text=secondary,
            type=LocationType.CITY,
            source=SuggestionSource.LOCAL,
            data={
                "city_id": city.id,
                "state_id": city.state_id,
                "country_id": city.country_id,
                "latitude": city.latitude,
                "longitude": city.longitude,
                "population": city.population,
                "place_id": city.place_id,
            },
        )

    async def search(self, query: str, budget: int) -> List[LocationSuggestion]:
        if budget <= 0:
            return []
        rows = await self.city_repo.search_active(query.strip(), budget)
        return [self.to_suggestion(row) for row in rows]


class ExternalSuggestionProvider(SuggestionProvider):
    """
    Tier 3: the external places provider.

    Every search configuration is tried in turn with its own timeout; a
    failing configuration is logged and skipped.
    """

    source = SuggestionSource.EXTERNAL

    def __init__(self, places: PlacesProvider, config: LocationsConfig, timeout: float = 5.0):
        self.places = places
        self.config = config
        self.timeout = timeout

    def _search_configs(self) -> Dict[str, SearchConfig]:
        configs = self.config.places.search_configs
        if configs:
            return configs
        return {"default": SearchConfig(types=self.config.places.default_types)}

    @staticmethod
    def to_suggestion(prediction: Dict[str, Any]) -> LocationSuggestion:
        place_id = prediction.get("place_id") or ""
        types = prediction.get("types") or []
        return LocationSuggestion(
            id=place_id,
            description=prediction.get("description", ""),
            main_text=prediction.get("main_text", ""),
            secondary_text=prediction.get("secondary_text", ""),
            type=location_type_from_provider(types),
            source=SuggestionSource.EXTERNAL,
            data={"place_id": place_id, "google_types": types},
        )

    async def search(self, query: str, budget: int) -> List[LocationSuggestion]:
        if budget <= 0 or not self.places.is_available():
            return []

        region = self.config.regions.get(detect_query_region(query, self.config))
        session_token = self.places.generate_session_token()

        results: List[LocationSuggestion] = []
        seen = set()
        for name, search_config in self._search_configs().items():
            location_bias = region.google_bias if region and region.google_bias else search_config.location_bias
            try:
                predictions = await asyncio.wait_for(
                    self.places.autocomplete(
                        query,
                        types=search_config.types,
                        language=self.config.places.language,
                        location_bias=location_bias,
                        session_token=session_token,
                    ),
                    timeout=self.timeout,
                )
            except Exception as e:
                log.warning("External suggestions failed", search_config=name, query=query, error=repr(e))
                continue

            for prediction in predictions:
                key = (prediction.get("main_text") or "").strip().lower()
                if not key or key in seen:
                    continue
                seen.add(key)
                results.append(self.to_suggestion(prediction))
                if len(results) >= budget:
                    return results

        return results
