"""
City lookups and the location result cache
"""
from datetime import datetime, timedelta
from typing import Any, List, NamedTuple, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlmodel import func, select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.logging import log
from app.models.location import City, Country, LocationCache, State
from app.models.user import User
from app.repositories.base import BaseRepository


class CityWithGeography(NamedTuple):
    city: City
    state_name: Optional[str]
    country_name: Optional[str]
    country_code: Optional[str]


class CityRepository(BaseRepository[City, Any, Any]):
    """Read access to cities joined with their state and country"""

    def __init__(self, session: AsyncSession):
        super().__init__(City, session)

    @staticmethod
    def _with_geography():
        return (
            select(City, State.name.label("state_name"), Country.name.label("country_name"), Country.code)
            .join(State, State.id == City.state_id)
            .join(Country, Country.id == City.country_id)
        )

    async def search_active(self, query: str, limit: int) -> List[CityWithGeography]:
        """Active cities whose name contains the query, most populous first"""
        if limit <= 0:
            return []
        statement = (
            self._with_geography()
            .where(City.is_active == True, City.name.ilike(f"%{query}%"))  # noqa: E712
            .order_by(City.population.desc().nulls_last(), City.name)
            .limit(limit)
        )
        result = await self.session.exec(statement)
        return [CityWithGeography(*row) for row in result.all()]

    async def find_geocodable(self, query: str) -> Optional[CityWithGeography]:
        """Most populous city matching the query that has coordinates"""
        statement = (
            self._with_geography()
            .where(
                City.name.ilike(f"%{query}%"),
                City.latitude.is_not(None),
                City.longitude.is_not(None),
            )
            .order_by(City.population.desc().nulls_last())
            .limit(1)
        )
        result = await self.session.exec(statement)
        row = result.first()
        return CityWithGeography(*row) if row else None

    async def get_with_geography(self, city_id: int) -> Optional[CityWithGeography]:
        result = await self.session.exec(self._with_geography().where(City.id == city_id))
        row = result.first()
        return CityWithGeography(*row) if row else None

    async def get_popular(self, limit: int) -> List[Tuple[CityWithGeography, int]]:
        """Active cities ranked by attached user count, then population"""
        if limit <= 0:
            return []
        user_count = func.count(User.id).label("user_count")
        statement = (
            select(
                City,
                State.name.label("state_name"),
                Country.name.label("country_name"),
                Country.code,
                user_count,
            )
            .join(State, State.id == City.state_id)
            .join(Country, Country.id == City.country_id)
            .outerjoin(User, User.city_id == City.id)
            .where(City.is_active == True)  # noqa: E712
            .group_by(City.id, State.name, Country.name, Country.code)
            .order_by(user_count.desc(), City.population.desc().nulls_last())
            .limit(limit)
        )
        result = await self.session.exec(statement)
        return [(CityWithGeography(*row[:4]), row[4]) for row in result.all()]


class LocationCacheRepository(BaseRepository[LocationCache, Any, Any]):
    """Time-boxed cache rows keyed by cache_key; expiry is checked on read"""

    def __init__(self, session: AsyncSession):
        super().__init__(LocationCache, session)

    async def get_by_key(self, cache_key: str) -> Optional[LocationCache]:
        result = await self.session.exec(select(LocationCache).where(LocationCache.cache_key == cache_key))
        return result.first()

    async def get_valid(self, cache_key: str) -> Optional[LocationCache]:
        """Row for the key if it has not expired"""
        statement = select(LocationCache).where(
            LocationCache.cache_key == cache_key,
            LocationCache.expires_at > datetime.utcnow(),
        )
        result = await self.session.exec(statement)
        return result.first()

    async def put(
        self,
        *,
        cache_key: str,
        query: str,
        type: str,
        data: Any,
        source: str,
        ttl: int,
    ) -> LocationCache:
        """Insert or overwrite the row for cache_key"""
        now = datetime.utcnow()
        values = {
            "query": query[:500],
            "type": type,
            "data": data,
            "source": source,
            "expires_at": now + timedelta(seconds=ttl),
            "updated_at": now,
        }

        row = await self.get_by_key(cache_key)
        if row is None:
            row = LocationCache(cache_key=cache_key, **values)
            self.session.add(row)
            try:
                await self.session.commit()
            except IntegrityError:
                # Concurrent writer inserted the key first
                await self.session.rollback()
                row = await self.get_by_key(cache_key)
                if row is None:
                    raise
                return await self._overwrite(row, values)
            await self.session.refresh(row)
            log.debug("Location cache stored", cache_key=cache_key, type=type)
            return row

        return await self._overwrite(row, values)

    async def _overwrite(self, row: LocationCache, values: dict) -> LocationCache:
        for field, value in values.items():
            setattr(row, field, value)
        self.session.add(row)
        await self.session.commit()
        await self.session.refresh(row)
        log.debug("Location cache refreshed", cache_key=row.cache_key, type=row.type)
        return row
