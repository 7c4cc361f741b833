"""
Listing model

Only the columns the category engine needs (ownership checks and stats).
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlmodel import Field, SQLModel


class ListingStatus:
    DRAFT = "draft"
    ACTIVE = "active"
    SOLD = "sold"
    EXPIRED = "expired"


class Listing(SQLModel, table=True):
    __tablename__ = "listings"

    id: Optional[int] = Field(default=None, primary_key=True)
    category_id: int = Field(foreign_key="categories.id", index=True)
    title: str = Field(max_length=255)
    status: str = Field(default=ListingStatus.DRAFT, max_length=20, index=True)
    price: Optional[Decimal] = Field(default=None, max_digits=12, decimal_places=2)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
