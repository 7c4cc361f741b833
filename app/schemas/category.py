"""
Category API schemas
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from app.schemas.attributes import parse_attribute_schema


def _check_attributes(value: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    # Parse to reject malformed entries but store the mapping as submitted
    if value is not None:
        try:
            parse_attribute_schema(value)
        except PydanticValidationError as e:
            raise ValueError(f"Invalid attribute schema: {e.errors()[0]['msg']}") from e
    return value


class CategoryBase(BaseModel):
    """Base category schema"""

    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    parent_id: Optional[int] = None
    icon: Optional[str] = Field(None, max_length=100)
    color: Optional[str] = Field(None, max_length=20)
    sort_order: int = Field(default=0)
    is_active: bool = Field(default=True)
    is_featured: bool = Field(default=False)
    meta_title: Optional[str] = Field(None, max_length=255)
    meta_description: Optional[str] = None
    attributes: Optional[Dict[str, Any]] = None
    validation_rules: Optional[Dict[str, Any]] = None


class CategoryCreate(CategoryBase):
    """Schema for creating a category; slug is derived from name when omitted"""

    slug: Optional[str] = Field(None, max_length=255)

    @field_validator("attributes")
    @classmethod
    def check_attributes(cls, v):
        return _check_attributes(v)


class CategoryUpdate(BaseModel):
    """Schema for updating a category; only non-null fields are applied"""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    slug: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    parent_id: Optional[int] = Field(None, description="0 moves the category to the root")
    icon: Optional[str] = Field(None, max_length=100)
    color: Optional[str] = Field(None, max_length=20)
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None
    is_featured: Optional[bool] = None
    meta_title: Optional[str] = Field(None, max_length=255)
    meta_description: Optional[str] = None
    attributes: Optional[Dict[str, Any]] = None
    validation_rules: Optional[Dict[str, Any]] = None

    @field_validator("attributes")
    @classmethod
    def check_attributes(cls, v):
        return _check_attributes(v)


class CategoryRead(CategoryBase):
    """Schema for reading a category"""

    id: int
    slug: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CategoryTree(CategoryRead):
    """Schema for category tree structure"""

    children: List["CategoryTree"] = []


class CategoryDetail(CategoryRead):
    """Category with its immediate neighbourhood and tree position"""

    parent: Optional[CategoryRead] = None
    children: List[CategoryRead] = []
    depth: int = 0
    breadcrumb: str = ""


class CategoryReorderItem(BaseModel):
    id: int
    sort_order: int


class CategoryReorder(BaseModel):
    """Batch of sort order changes applied atomically"""

    categories: List[CategoryReorderItem] = Field(..., min_length=1)


class CategorySuggestionRequest(BaseModel):
    title: str = Field(..., min_length=1)
    description: str = ""


class AttributeValidationResult(BaseModel):
    valid: bool
    errors: Dict[str, str] = {}


class PriceRange(BaseModel):
    min: Optional[float] = None
    max: Optional[float] = None


class CategoryStats(BaseModel):
    """Listing and child counts for one category"""

    total_listings: int = 0
    active_listings: int = 0
    draft_listings: int = 0
    sold_listings: int = 0
    total_children: int = 0
    active_children: int = 0
    avg_price: Optional[float] = None
    price_range: PriceRange = PriceRange()
    recent_listings: int = 0
