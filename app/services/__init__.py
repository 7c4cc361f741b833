"""
Service layer for business logic
"""

from .category_service import CategoryService
from .location_service import HybridLocationService
from .places_service import GooglePlacesService, MockPlacesService, PlacesProvider, get_places_service

__all__ = [
    "CategoryService",
    "HybridLocationService",
    "PlacesProvider",
    "GooglePlacesService",
    "MockPlacesService",
    "get_places_service",
]
