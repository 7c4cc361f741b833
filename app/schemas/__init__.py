"""
API Schemas (Pydantic models for request/response)
"""

from .attributes import (
    AttributeSpec,
    EmailAttribute,
    NumberAttribute,
    SelectAttribute,
    TextAttribute,
    UrlAttribute,
    parse_attribute_schema,
    parse_attribute_spec,
)
from .category import (
    AttributeValidationResult,
    CategoryCreate,
    CategoryDetail,
    CategoryRead,
    CategoryReorder,
    CategoryReorderItem,
    CategoryStats,
    CategorySuggestionRequest,
    CategoryTree,
    CategoryUpdate,
)
from .common import HealthCheckResponse, MessageResponse, PaginationParams
from .location import (
    GeocodeRequest,
    GeocodeResult,
    LocationSuggestion,
    LocationType,
    PopularLocationsResult,
    RegionResult,
    SuggestionResult,
    SuggestionSource,
)

__all__ = [
    # Attributes
    "AttributeSpec",
    "TextAttribute",
    "NumberAttribute",
    "SelectAttribute",
    "EmailAttribute",
    "UrlAttribute",
    "parse_attribute_spec",
    "parse_attribute_schema",
    # Category
    "CategoryCreate",
    "CategoryUpdate",
    "CategoryRead",
    "CategoryTree",
    "CategoryDetail",
    "CategoryReorder",
    "CategoryReorderItem",
    "CategoryStats",
    "CategorySuggestionRequest",
    "AttributeValidationResult",
    # Location
    "LocationType",
    "SuggestionSource",
    "LocationSuggestion",
    "SuggestionResult",
    "GeocodeResult",
    "GeocodeRequest",
    "PopularLocationsResult",
    "RegionResult",
    # Common
    "PaginationParams",
    "MessageResponse",
    "HealthCheckResponse",
]
