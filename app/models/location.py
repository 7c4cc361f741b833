"""
Reference geography and location cache models
"""
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel


class Country(SQLModel, table=True):
    """Country reference data"""
    __tablename__ = "countries"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=255, index=True)
    code: str = Field(max_length=2, unique=True)
    code_alpha3: Optional[str] = Field(default=None, max_length=3)
    phone_code: Optional[str] = Field(default=None, max_length=10)
    currency_code: Optional[str] = Field(default=None, max_length=3)
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class State(SQLModel, table=True):
    """State / region / county within a country"""
    __tablename__ = "states"

    id: Optional[int] = Field(default=None, primary_key=True)
    country_id: int = Field(foreign_key="countries.id", index=True)
    name: str = Field(max_length=255)
    code: Optional[str] = Field(default=None, max_length=10)
    type: str = Field(default="state", max_length=20)
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class City(SQLModel, table=True):
    """City reference data, the local suggestion tier"""
    __tablename__ = "cities"

    id: Optional[int] = Field(default=None, primary_key=True)
    state_id: int = Field(foreign_key="states.id", index=True)
    country_id: int = Field(foreign_key="countries.id", index=True)
    name: str = Field(max_length=255, index=True)
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    population: Optional[int] = None
    timezone: Optional[str] = Field(default=None, max_length=64)
    place_id: Optional[str] = Field(default=None, max_length=255)
    is_active: bool = Field(default=True, index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class LocationCacheType:
    AUTOCOMPLETE = "autocomplete"
    GEOCODE = "geocode"
    POPULAR = "popular"


class LocationCache(SQLModel, table=True):
    """Resolved location payloads; valid while now < expires_at"""
    __tablename__ = "location_cache"

    id: Optional[int] = Field(default=None, primary_key=True)
    cache_key: str = Field(max_length=255, unique=True, index=True)
    query: str = Field(max_length=500)
    type: str = Field(max_length=20)
    data: Any = Field(default=None, sa_column=Column(JSON))
    source: str = Field(max_length=50)
    expires_at: datetime = Field(index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
