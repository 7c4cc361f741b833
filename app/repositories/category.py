"""
Category repository implementation
"""
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Set

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import func, or_, select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.exceptions import DatabaseError
from app.core.logging import log
from app.models.category import Category
from app.models.listing import Listing, ListingStatus
from app.repositories.base import BaseRepository
from app.schemas.category import CategoryCreate, CategoryUpdate


class CategoryRepository(BaseRepository[Category, CategoryCreate, CategoryUpdate]):
    """Repository for category operations"""

    def __init__(self, session: AsyncSession):
        super().__init__(Category, session)

    @staticmethod
    def _ordered(statement):
        return statement.order_by(Category.sort_order, Category.name)

    async def get_by_slug(self, slug: str, active_only: bool = True) -> Optional[Category]:
        """Get category by slug"""
        statement = select(Category).where(Category.slug == slug)
        if active_only:
            statement = statement.where(Category.is_active == True)  # noqa: E712
        result = await self.session.exec(statement)
        return result.first()

    async def get_all_ordered(self, active_only: bool = False) -> List[Category]:
        """Every category ordered by (sort_order, name), for building trees"""
        statement = select(Category)
        if active_only:
            statement = statement.where(Category.is_active == True)  # noqa: E712
        result = await self.session.exec(self._ordered(statement))
        return result.all()

    async def get_children(self, parent_id: int, active_only: bool = True) -> List[Category]:
        """Get child categories"""
        statement = select(Category).where(Category.parent_id == parent_id)
        if active_only:
            statement = statement.where(Category.is_active == True)  # noqa: E712
        result = await self.session.exec(self._ordered(statement))
        return result.all()

    async def get_parent_id(self, category_id: int) -> Optional[int]:
        """Parent id of a category; None for roots and unknown ids"""
        statement = select(Category.parent_id).where(Category.id == category_id)
        result = await self.session.exec(statement)
        return result.first()

    async def get_featured(self) -> List[Category]:
        statement = select(Category).where(
            Category.is_active == True,  # noqa: E712
            Category.is_featured == True,  # noqa: E712
        )
        result = await self.session.exec(self._ordered(statement))
        return result.all()

    async def search(self, query: str, limit: int = 20) -> List[Category]:
        """Active categories whose name or description contains the query"""
        search_term = f"%{query}%"
        statement = select(Category).where(
            Category.is_active == True,  # noqa: E712
            or_(Category.name.ilike(search_term), Category.description.ilike(search_term)),
        )
        result = await self.session.exec(self._ordered(statement).limit(limit))
        return result.all()

    async def search_any_word(self, words: Iterable[str], limit: int = 5) -> List[Category]:
        """Active categories whose name or description contains any of the words"""
        conditions = []
        for word in words:
            conditions.append(Category.name.ilike(f"%{word}%"))
            conditions.append(Category.description.ilike(f"%{word}%"))
        if not conditions:
            return []

        statement = select(Category).where(Category.is_active == True, or_(*conditions))  # noqa: E712
        result = await self.session.exec(self._ordered(statement).limit(limit))
        return result.all()

    async def existing_ids(self, ids: Iterable[int]) -> Set[int]:
        statement = select(Category.id).where(Category.id.in_(list(ids)))
        result = await self.session.exec(statement)
        return set(result.all())

    async def count_children(self, category_id: int, active_only: bool = False) -> int:
        statement = select(func.count()).select_from(Category).where(Category.parent_id == category_id)
        if active_only:
            statement = statement.where(Category.is_active == True)  # noqa: E712
        result = await self.session.exec(statement)
        return result.one()

    async def count_listings(self, category_id: int, status: Optional[str] = None) -> int:
        statement = select(func.count()).select_from(Listing).where(Listing.category_id == category_id)
        if status:
            statement = statement.where(Listing.status == status)
        result = await self.session.exec(statement)
        return result.one()

    async def get_listing_stats(self, category_id: int, recent_days: int = 30) -> Dict[str, Any]:
        """Listing counts and active price figures for one category"""
        stats: Dict[str, Any] = {
            "total_listings": await self.count_listings(category_id),
            "active_listings": await self.count_listings(category_id, ListingStatus.ACTIVE),
            "draft_listings": await self.count_listings(category_id, ListingStatus.DRAFT),
            "sold_listings": await self.count_listings(category_id, ListingStatus.SOLD),
        }

        price_stmt = select(func.avg(Listing.price), func.min(Listing.price), func.max(Listing.price)).where(
            Listing.category_id == category_id,
            Listing.status == ListingStatus.ACTIVE,
        )
        result = await self.session.exec(price_stmt)
        avg_price, min_price, max_price = result.one()
        stats["avg_price"] = float(avg_price) if avg_price is not None else None
        stats["price_range"] = {
            "min": float(min_price) if min_price is not None else None,
            "max": float(max_price) if max_price is not None else None,
        }

        recent_stmt = (
            select(func.count())
            .select_from(Listing)
            .where(
                Listing.category_id == category_id,
                Listing.created_at >= datetime.utcnow() - timedelta(days=recent_days),
            )
        )
        result = await self.session.exec(recent_stmt)
        stats["recent_listings"] = result.one()
        return stats

    async def bulk_update_sort_order(self, items: Iterable[Dict[str, int]]) -> None:
        """Apply every sort_order change in one transaction; all or nothing"""
        now = datetime.utcnow()
        try:
            for item in items:
                await self.session.execute(
                    update(Category)
                    .where(Category.id == item["id"])
                    .values(sort_order=item["sort_order"], updated_at=now)
                )
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            log.error("Database error reordering categories", error=str(e))
            raise DatabaseError("Error reordering categories")
