"""
SQLModel database models
"""

from .category import Category
from .listing import Listing, ListingStatus
from .location import City, Country, LocationCache, LocationCacheType, State
from .user import User

__all__ = [
    "Category",
    "Listing",
    "ListingStatus",
    "Country",
    "State",
    "City",
    "LocationCache",
    "LocationCacheType",
    "User",
]
