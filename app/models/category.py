"""
Category hierarchy model
"""
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel


class CategoryBase(SQLModel):
    """Base category attributes"""
    name: str = Field(max_length=255)
    slug: str = Field(max_length=255, unique=True, index=True)
    description: Optional[str] = None
    parent_id: Optional[int] = Field(default=None, foreign_key="categories.id", index=True)
    icon: Optional[str] = Field(default=None, max_length=100)
    color: Optional[str] = Field(default=None, max_length=20)
    sort_order: int = Field(default=0)
    is_active: bool = Field(default=True, index=True)
    is_featured: bool = Field(default=False)
    meta_title: Optional[str] = Field(default=None, max_length=255)
    meta_description: Optional[str] = None


class Category(CategoryBase, table=True):
    """Category database model

    ``attributes`` maps an attribute key to its schema entry
    (``{"type", "label", "required", "options", "min", "max"}``).
    ``validation_rules`` is stored but not interpreted.
    """
    __tablename__ = "categories"

    id: Optional[int] = Field(default=None, primary_key=True)
    attributes: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    validation_rules: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
