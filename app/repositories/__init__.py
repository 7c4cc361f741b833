"""
Repository implementations
"""

from .base import BaseRepository
from .category import CategoryRepository
from .location import CityRepository, CityWithGeography, LocationCacheRepository

__all__ = [
    "BaseRepository",
    "CategoryRepository",
    "CityRepository",
    "CityWithGeography",
    "LocationCacheRepository",
]
