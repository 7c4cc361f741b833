"""
Places provider client: autocomplete, place details and geocoding

Transport errors and non-OK provider statuses raise ExternalProviderError;
callers in the location engine decide whether to absorb them.
"""

import secrets
from abc import ABC, abstractmethod
from functools import lru_cache
from typing import Any, Dict, List, Optional

import httpx

from app.core.config import settings
from app.core.exceptions import ExternalProviderError
from app.core.logging import log

# Address component types kept when parsing provider results
ADDRESS_COMPONENT_TYPES = (
    "street_number",
    "route",
    "neighborhood",
    "locality",
    "sublocality",
    "administrative_area_level_1",
    "administrative_area_level_2",
    "country",
    "postal_code",
)

DETAIL_FIELDS = ("place_id", "name", "formatted_address", "geometry", "address_components", "types", "plus_code")


def parse_address_components(components: List[Dict[str, Any]]) -> Dict[str, Optional[Dict[str, str]]]:
    """Map each known component type to its first {long_name, short_name}"""
    parsed: Dict[str, Optional[Dict[str, str]]] = dict.fromkeys(ADDRESS_COMPONENT_TYPES)
    for component in components:
        for component_type in component.get("types", []):
            if component_type in parsed:
                if parsed[component_type] is None:
                    parsed[component_type] = {
                        "long_name": component.get("long_name", ""),
                        "short_name": component.get("short_name", ""),
                    }
                break
    return parsed


class PlacesProvider(ABC):
    """Interface of the external geocoding/places provider"""

    @abstractmethod
    async def autocomplete(
        self,
        input: str,
        *,
        types: Optional[str] = None,
        language: Optional[str] = None,
        location_bias: Optional[str] = None,
        session_token: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    async def place_details(self, place_id: str) -> Optional[Dict[str, Any]]:
        pass

    @abstractmethod
    async def geocode(self, address: str) -> Optional[Dict[str, Any]]:
        pass

    @abstractmethod
    def is_available(self) -> bool:
        pass

    def generate_session_token(self) -> str:
        """Token grouping autocomplete calls into one billing session"""
        return secrets.token_hex(16)

    async def aclose(self) -> None:
        pass


class GooglePlacesService(PlacesProvider):
    """Google Places / Geocoding web service client"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key or settings.google_places_api_key
        if not self.api_key:
            raise ValueError("google_places_api_key not configured")

        self.base_url = (base_url or settings.google_places_base_url).rstrip("/")
        self.client = client or httpx.AsyncClient(timeout=timeout or settings.places_timeout_seconds)

    async def _get(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """GET a provider endpoint; returns the payload for OK and ZERO_RESULTS"""
        params = {**params, "key": self.api_key}
        try:
            response = await self.client.get(f"{self.base_url}/{path}", params=params)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            log.warning("Places request failed", path=path, error=str(e))
            raise ExternalProviderError("Places provider request failed", path=path) from e
        except ValueError as e:
            raise ExternalProviderError("Places provider returned invalid JSON", path=path) from e

        status = data.get("status")
        if status not in ("OK", "ZERO_RESULTS"):
            log.warning("Places provider returned non-OK status", path=path, status=status)
            raise ExternalProviderError("Places provider error", path=path, status=status)
        return data

    async def autocomplete(
        self,
        input: str,
        *,
        types: Optional[str] = None,
        language: Optional[str] = None,
        location_bias: Optional[str] = None,
        session_token: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        if len(input) < 2:
            return []

        params: Dict[str, Any] = {"input": input, "types": types or "(cities)", "language": language or "en"}
        if session_token:
            params["sessiontoken"] = session_token
        if location_bias:
            params["locationbias"] = location_bias

        data = await self._get("place/autocomplete/json", params)
        return [
            {
                "place_id": prediction.get("place_id"),
                "description": prediction.get("description", ""),
                "main_text": prediction.get("structured_formatting", {}).get("main_text", ""),
                "secondary_text": prediction.get("structured_formatting", {}).get("secondary_text", ""),
                "types": prediction.get("types", []),
                "terms": prediction.get("terms", []),
                "distance_meters": prediction.get("distance_meters"),
            }
            for prediction in data.get("predictions", [])
        ]

    async def place_details(self, place_id: str) -> Optional[Dict[str, Any]]:
        data = await self._get("place/details/json", {"place_id": place_id, "fields": ",".join(DETAIL_FIELDS)})
        place = data.get("result")
        if not place:
            return None

        location = place.get("geometry", {}).get("location", {})
        return {
            "place_id": place.get("place_id", place_id),
            "name": place.get("name", ""),
            "formatted_address": place.get("formatted_address", ""),
            "latitude": location.get("lat"),
            "longitude": location.get("lng"),
            "types": place.get("types", []),
            "address_components": parse_address_components(place.get("address_components", [])),
            "plus_code": place.get("plus_code"),
            "viewport": place.get("geometry", {}).get("viewport"),
        }

    async def geocode(self, address: str) -> Optional[Dict[str, Any]]:
        data = await self._get("geocode/json", {"address": address})
        results = data.get("results") or []
        if not results:
            log.info("Geocoding found no results", address=address)
            return None

        result = results[0]
        geometry = result.get("geometry", {})
        return {
            "formatted_address": result.get("formatted_address", ""),
            "latitude": geometry.get("location", {}).get("lat"),
            "longitude": geometry.get("location", {}).get("lng"),
            "place_id": result.get("place_id"),
            "types": result.get("types", []),
            "address_components": parse_address_components(result.get("address_components", [])),
            "location_type": geometry.get("location_type"),
            "viewport": geometry.get("viewport"),
        }

    def is_available(self) -> bool:
        return bool(self.api_key)

    async def aclose(self) -> None:
        await self.client.aclose()


_MOCK_PLACES: Dict[str, Dict[str, Any]] = {
    "mock_place_1": {
        "place_id": "mock_place_1",
        "name": "New York",
        "description": "New York, NY, USA",
        "secondary_text": "NY, USA",
        "formatted_address": "New York, NY, USA",
        "latitude": 40.7128,
        "longitude": -74.0060,
        "types": ["locality", "political"],
        "address_components": {
            "locality": {"long_name": "New York", "short_name": "New York"},
            "administrative_area_level_1": {"long_name": "New York", "short_name": "NY"},
            "country": {"long_name": "United States", "short_name": "US"},
        },
    },
    "mock_place_2": {
        "place_id": "mock_place_2",
        "name": "Los Angeles",
        "description": "Los Angeles, CA, USA",
        "secondary_text": "CA, USA",
        "formatted_address": "Los Angeles, CA, USA",
        "latitude": 34.0522,
        "longitude": -118.2437,
        "types": ["locality", "political"],
        "address_components": {
            "locality": {"long_name": "Los Angeles", "short_name": "LA"},
            "administrative_area_level_1": {"long_name": "California", "short_name": "CA"},
            "country": {"long_name": "United States", "short_name": "US"},
        },
    },
}


class MockPlacesService(PlacesProvider):
    """Deterministic offline provider for development and tests"""

    async def autocomplete(
        self,
        input: str,
        *,
        types: Optional[str] = None,
        language: Optional[str] = None,
        location_bias: Optional[str] = None,
        session_token: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        needle = input.lower()
        return [
            {
                "place_id": place["place_id"],
                "description": place["description"],
                "main_text": place["name"],
                "secondary_text": place["secondary_text"],
                "types": place["types"],
                "terms": [],
                "distance_meters": None,
            }
            for place in _MOCK_PLACES.values()
            if needle in place["description"].lower()
        ]

    async def place_details(self, place_id: str) -> Optional[Dict[str, Any]]:
        place = _MOCK_PLACES.get(place_id)
        if not place:
            return None
        return {
            key: place[key]
            for key in ("place_id", "name", "formatted_address", "latitude", "longitude", "types", "address_components")
        }

    async def geocode(self, address: str) -> Optional[Dict[str, Any]]:
        needle = address.lower()
        for place in _MOCK_PLACES.values():
            if place["name"].lower() in needle:
                return {
                    "formatted_address": place["formatted_address"],
                    "latitude": place["latitude"],
                    "longitude": place["longitude"],
                    "place_id": place["place_id"],
                }
        return None

    def is_available(self) -> bool:
        return True


@lru_cache(maxsize=1)
def get_places_service() -> PlacesProvider:
    """Real client when an API key is configured, otherwise the offline mock"""
    if settings.google_places_api_key and settings.ENVIRONMENT != "testing":
        log.info("Using Google Places provider")
        return GooglePlacesService()

    log.info("Using mock places provider", environment=settings.ENVIRONMENT)
    return MockPlacesService()
