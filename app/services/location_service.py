"""
Hybrid location suggestion engine

Resolves partial place names by consulting the configured gazetteer, the
local city table and the external places provider in that order, so the
metered provider is only called when the free tiers leave slots unfilled.
Resolved payloads are kept in the ``location_cache`` table.
"""

import asyncio
import hashlib
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from app.core.config import settings
from app.core.locations_config import LocationsConfig
from app.core.logging import log
from app.models.location import LocationCacheType
from app.repositories.location import CityRepository, LocationCacheRepository
from app.schemas.location import (
    SOURCE_PRIORITY,
    GeocodeResult,
    LocationSuggestion,
    PopularLocationsResult,
    RegionResult,
    SuggestionResult,
    SuggestionSource,
)
from app.services.location_providers import (
    ConfigSuggestionProvider,
    ExternalSuggestionProvider,
    LocalSuggestionProvider,
    SuggestionProvider,
    detect_query_region,
    region_for_country,
)
from app.services.places_service import PlacesProvider
from app.utils.normalization import slugify

# TTL multipliers over search_options.cache_ttl
EXTERNAL_GEOCODE_TTL_FACTOR = 24
POPULAR_TTL_FACTOR = 6


def _md5(value: str) -> str:
    return hashlib.md5(value.encode("utf-8")).hexdigest()


def _join(*parts: Optional[str]) -> str:
    return ", ".join(part for part in parts if part)


def summarize_sources(suggestions: List[LocationSuggestion]) -> str:
    """Name of the single contributing tier, "hybrid" for several, "none" for no results"""
    sources = {s.source.value for s in suggestions}
    if not sources:
        return "none"
    if len(sources) == 1:
        return sources.pop()
    return "hybrid"


def merge_suggestions(suggestions: List[LocationSuggestion], limit: int) -> List[LocationSuggestion]:
    """
    Order by tier preference then shorter names, keep the first suggestion
    per lowercased main text and truncate to ``limit``.
    """
    ordered = sorted(suggestions, key=lambda s: (-SOURCE_PRIORITY[s.source], len(s.main_text)))
    merged = []
    seen = set()
    for suggestion in ordered:
        key = suggestion.main_text.strip().lower()
        if key in seen:
            continue
        seen.add(key)
        merged.append(suggestion)
        if len(merged) >= limit:
            break
    return merged


class HybridLocationService:
    """Location suggestions, geocoding and enrichment across three tiers"""

    def __init__(
        self,
        city_repo: CityRepository,
        cache_repo: LocationCacheRepository,
        places: PlacesProvider,
        config: LocationsConfig,
    ):
        self.city_repo = city_repo
        self.cache_repo = cache_repo
        self.places = places
        self.config = config
        self.timeout = settings.places_timeout_seconds

        self.config_provider = ConfigSuggestionProvider(config)
        self.providers: List[SuggestionProvider] = [
            self.config_provider,
            LocalSuggestionProvider(city_repo),
            ExternalSuggestionProvider(places, config, timeout=self.timeout),
        ]

    @property
    def base_ttl(self) -> int:
        return self.config.search_options.cache_ttl

    # Cache

    async def _cache_get(self, cache_key: str) -> Optional[Any]:
        try:
            row = await self.cache_repo.get_valid(cache_key)
        except SQLAlchemyError as e:
            log.warning("Location cache read failed", cache_key=cache_key, error=str(e))
            await self.cache_repo.session.rollback()
            return None
        if row is None:
            return None
        log.debug("Location cache hit", cache_key=cache_key, type=row.type)
        return row.data

    async def _cache_put(self, cache_key: str, query: str, type: str, data: Any, source: str, ttl: int) -> None:
        try:
            await self.cache_repo.put(cache_key=cache_key, query=query, type=type, data=data, source=source, ttl=ttl)
        except SQLAlchemyError as e:
            log.warning("Location cache write failed", cache_key=cache_key, error=str(e))
            await self.cache_repo.session.rollback()

    # Regions

    def detect_query_region(self, query: str) -> str:
        return detect_query_region(query, self.config)

    def describe_region(self, query: str) -> RegionResult:
        key = self.detect_query_region(query)
        region = self.config.regions.get(key)
        return RegionResult(
            query=query,
            region=key,
            name=region.name if region else None,
            countries=list(region.countries) if region else [],
            google_bias=region.google_bias if region else None,
        )

    # Suggestions

    async def get_suggestions(self, input: str, limit: int = 10) -> SuggestionResult:
        """Ranked suggestions for a partial place name"""
        query = input.strip()
        if len(query) < self.config.search_options.min_query_length:
            return SuggestionResult(query_length=len(query))

        cache_key = "suggestions:" + _md5(f"{query}{limit}")
        cached = await self._cache_get(cache_key)
        if cached is not None:
            return SuggestionResult.model_validate(cached)

        counts: Dict[SuggestionSource, int] = {}
        collected: List[LocationSuggestion] = []
        budget = limit
        for provider in self.providers:
            if budget <= 0:
                break
            try:
                found = await provider.search(query, budget)
            except Exception as e:
                log.warning("Suggestion tier failed", source=provider.source.value, query=query, error=repr(e))
                found = []
            counts[provider.source] = len(found)
            collected.extend(found)
            budget -= len(found)

        merged = merge_suggestions(collected, limit)
        result = SuggestionResult(
            data=merged,
            source=summarize_sources(merged),
            config_count=counts.get(SuggestionSource.CONFIG, 0),
            local_count=counts.get(SuggestionSource.LOCAL, 0),
            external_count=counts.get(SuggestionSource.EXTERNAL, 0),
            total_results=len(merged),
            region=self.detect_query_region(query),
            query_length=len(query),
        )

        await self._cache_put(
            cache_key,
            query,
            LocationCacheType.AUTOCOMPLETE,
            result.model_dump(mode="json"),
            source=result.source,
            ttl=self.base_ttl,
        )
        log.info("Location suggestions resolved", query=query, source=result.source, total=result.total_results)
        return result

    # Geocoding

    async def geocode_address(self, address: str) -> Optional[GeocodeResult]:
        """Coordinates for an address from the first tier that knows it; None if none does"""
        address = address.strip()
        if not address:
            return None

        cache_key = "geocode:" + _md5(address)
        cached = await self._cache_get(cache_key)
        if cached is not None:
            return GeocodeResult.model_validate(cached)

        result = self._geocode_from_config(address)
        if result:
            await self._store_geocode(cache_key, address, result, SuggestionSource.CONFIG, self.base_ttl)
            return result

        result = await self._geocode_from_provider(address)
        if result:
            ttl = self.base_ttl * EXTERNAL_GEOCODE_TTL_FACTOR
            await self._store_geocode(cache_key, address, result, SuggestionSource.EXTERNAL, ttl)
            return result

        result = await self._geocode_from_local(address)
        if result:
            await self._store_geocode(cache_key, address, result, SuggestionSource.LOCAL, self.base_ttl)
            return result

        log.info("Address could not be geocoded", address=address)
        return None

    async def _store_geocode(
        self, cache_key: str, address: str, result: GeocodeResult, source: SuggestionSource, ttl: int
    ) -> None:
        await self._cache_put(
            cache_key, address, LocationCacheType.GEOCODE, result.model_dump(mode="json"), source.value, ttl
        )

    def _geocode_from_config(self, address: str) -> Optional[GeocodeResult]:
        match = self.config_provider.best_match(address)
        if not match:
            return None

        entry, match_type, _ = match
        return GeocodeResult(
            latitude=entry.latitude,
            longitude=entry.longitude,
            formatted_address=_join(entry.name, entry.state, entry.country),
            source="config_geocoding",
            city=entry.name if entry.type == "city" else None,
            state=entry.state,
            country=entry.country,
            region=region_for_country(entry.country, self.config),
            match_type=match_type,
        )

    async def _geocode_from_provider(self, address: str) -> Optional[GeocodeResult]:
        if not self.places.is_available():
            return None
        try:
            found = await asyncio.wait_for(self.places.geocode(address), timeout=self.timeout)
        except Exception as e:
            log.warning("External geocoding failed", address=address, error=repr(e))
            return None

        if not found or found.get("latitude") is None or found.get("longitude") is None:
            return None
        return GeocodeResult.model_validate(
            {**found, "source": "external_geocoding", "region": self.detect_query_region(address)}
        )

    async def _geocode_from_local(self, address: str) -> Optional[GeocodeResult]:
        row = await self.city_repo.find_geocodable(address)
        if not row:
            return None

        city = row.city
        return GeocodeResult(
            latitude=city.latitude,
            longitude=city.longitude,
            formatted_address=_join(city.name, row.state_name, row.country_name),
            source="local_geocoding",
            city=city.name,
            state=row.state_name,
            country=row.country_name,
            city_id=city.id,
            state_id=city.state_id,
            country_id=city.country_id,
        )

    # Popular locations

    async def get_popular_locations(self, limit: int = 20) -> PopularLocationsResult:
        """Gazetteer entries by priority, topped up with the cities most users live in"""
        cache_key = f"popular_locations:{limit}"
        cached = await self._cache_get(cache_key)
        if cached is not None:
            return PopularLocationsResult.model_validate(cached)

        data: List[Dict[str, Any]] = []
        seen = set()
        for entry in sorted(self.config.popular_locations, key=lambda e: e.priority, reverse=True)[:limit]:
            seen.add(entry.name.lower())
            data.append(
                {
                    "id": f"config_{slugify(entry.name, separator='_')}",
                    "name": entry.name,
                    "full_name": _join(entry.name, entry.state, entry.country),
                    "type": entry.type,
                    "source": SuggestionSource.CONFIG.value,
                    "priority": entry.priority,
                    "population": entry.population,
                    "country": entry.country,
                    "state": entry.state,
                    "data": {"latitude": entry.latitude, "longitude": entry.longitude},
                }
            )

        config_count = len(data)
        if len(data) < limit:
            # Over-fetch so names already taken by the gazetteer do not leave gaps
            rows = await self.city_repo.get_popular(limit - len(data) + len(seen))
            for row, users_count in rows:
                city = row.city
                if city.name.lower() in seen:
                    continue
                seen.add(city.name.lower())
                data.append(
                    {
                        "id": f"city_{city.id}",
                        "name": city.name,
                        "full_name": _join(city.name, row.state_name, row.country_name),
                        "type": "city",
                        "source": SuggestionSource.LOCAL.value,
                        "users_count": users_count,
                        "population": city.population,
                        "country": row.country_name,
                        "state": row.state_name,
                        "data": {
                            "city_id": city.id,
                            "state_id": city.state_id,
                            "country_id": city.country_id,
                            "latitude": city.latitude,
                            "longitude": city.longitude,
                        },
                    }
                )
                if len(data) >= limit:
                    break

        local_count = len(data) - config_count
        if config_count and local_count:
            source = "hybrid"
        elif config_count:
            source = SuggestionSource.CONFIG.value
        elif local_count:
            source = SuggestionSource.LOCAL.value
        else:
            source = "none"

        result = PopularLocationsResult(data=data, source=source, cached_at=datetime.utcnow())
        await self._cache_put(
            cache_key,
            "popular",
            LocationCacheType.POPULAR,
            result.model_dump(mode="json"),
            source=source,
            ttl=self.base_ttl * POPULAR_TTL_FACTOR,
        )
        return result

    # Enrichment

    async def validate_and_enrich_location(self, location_data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Fill in display fields and coordinates for a location the client picked.

        Dispatches on what identifies the location: an external place id,
        a local city id, a gazetteer entry (returned as is) or free text
        to geocode. Anything else is returned unchanged.
        """
        data = dict(location_data)
        source = data.get("source")

        if source == SuggestionSource.EXTERNAL.value and data.get("place_id"):
            return await self._enrich_from_place(data)

        city_id = self._local_city_id(data)
        if city_id is not None:
            return await self._enrich_from_local(data, city_id)

        if source == SuggestionSource.CONFIG.value:
            return data

        address = data.get("address") or data.get("location_string") or data.get("description")
        if isinstance(address, str) and address.strip():
            return await self._enrich_from_address(data, address)

        return data

    @staticmethod
    def _local_city_id(data: Dict[str, Any]) -> Optional[int]:
        value = data.get("city_id") or data.get("local_id")
        if isinstance(value, str):
            value = value.removeprefix("city_")
        try:
            return int(value) if value is not None else None
        except (TypeError, ValueError):
            return None

    async def _enrich_from_place(self, data: Dict[str, Any]) -> Dict[str, Any]:
        place_id = data["place_id"]
        try:
            details = await asyncio.wait_for(self.places.place_details(place_id), timeout=self.timeout)
        except Exception as e:
            log.warning("Place enrichment failed", place_id=place_id, error=repr(e))
            return data

        if not details:
            return data

        return {
            **data,
            "formatted_address": details.get("formatted_address"),
            "latitude": details.get("latitude"),
            "longitude": details.get("longitude"),
            "address_components": details.get("address_components"),
            "google_types": details.get("types", []),
            "enriched_at": datetime.utcnow().isoformat(),
            "source": "external_enriched",
        }

    async def _enrich_from_local(self, data: Dict[str, Any], city_id: int) -> Dict[str, Any]:
        row = await self.city_repo.get_with_geography(city_id)
        if not row:
            return data

        city = row.city
        return {
            **data,
            "city_name": city.name,
            "state_name": row.state_name,
            "country_name": row.country_name,
            "formatted_address": _join(city.name, row.state_name, row.country_name),
            "latitude": city.latitude,
            "longitude": city.longitude,
            "place_id": city.place_id,
            "source": "local_enriched",
        }

    async def _enrich_from_address(self, data: Dict[str, Any], address: str) -> Dict[str, Any]:
        geocoded = await self.geocode_address(address)
        if not geocoded:
            return data

        return {
            **data,
            **geocoded.model_dump(mode="json", exclude_none=True),
            "original_input": address,
            "source": "geocoded",
        }
