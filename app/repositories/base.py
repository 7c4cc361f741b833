"""
Base repository pattern implementation with async support
"""
from datetime import datetime
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar, Union

from pydantic import BaseModel
from sqlalchemy import asc, desc
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import SQLModel, and_, func, select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.exceptions import ConflictError, DatabaseError, NotFoundError
from app.core.logging import log

ModelType = TypeVar("ModelType", bound=SQLModel)
CreateSchemaType = TypeVar("CreateSchemaType", bound=BaseModel)
UpdateSchemaType = TypeVar("UpdateSchemaType", bound=BaseModel)


class BaseRepository(Generic[ModelType, CreateSchemaType, UpdateSchemaType]):
    """
    Generic repository for data access with async support.
    Implements common CRUD operations over integer primary keys.
    """

    def __init__(self, model: Type[ModelType], session: AsyncSession):
        self.model = model
        self.session = session

    @property
    def model_name(self) -> str:
        return self.model.__name__

    def _conditions(self, filters: Optional[Dict[str, Any]]) -> list:
        conditions = []
        for field, value in (filters or {}).items():
            if hasattr(self.model, field):
                column = getattr(self.model, field)
                if isinstance(value, list):
                    conditions.append(column.in_(value))
                else:
                    conditions.append(column == value)
        return conditions

    async def create(self, *, obj_in: Union[CreateSchemaType, Dict[str, Any]], **kwargs) -> ModelType:
        """Create a new record"""
        try:
            if isinstance(obj_in, BaseModel):
                obj_in_data = obj_in.model_dump(exclude_unset=True)
            else:
                obj_in_data = dict(obj_in)
            obj_in_data.update(kwargs)

            db_obj = self.model(**obj_in_data)

            self.session.add(db_obj)
            await self.session.commit()
            await self.session.refresh(db_obj)

            log.info("Created record", model=self.model_name, id=db_obj.id)
            return db_obj

        except IntegrityError as e:
            await self.session.rollback()
            log.error("Integrity error creating record", model=self.model_name, error=str(e))
            raise ConflictError(f"Conflict creating {self.model_name}")
        except SQLAlchemyError as e:
            await self.session.rollback()
            log.error("Database error creating record", model=self.model_name, error=str(e))
            raise DatabaseError(f"Error creating {self.model_name}")

    async def get(self, *, id: int) -> Optional[ModelType]:
        """Get a record by ID"""
        statement = select(self.model).where(self.model.id == id)
        result = await self.session.exec(statement)
        return result.first()

    async def get_or_404(self, *, id: int) -> ModelType:
        """Get a record by ID or raise NotFoundError"""
        obj = await self.get(id=id)
        if not obj:
            raise NotFoundError(f"{self.model_name} not found", id=id)
        return obj

    async def get_multi(
        self,
        *,
        skip: int = 0,
        limit: int = 20,
        order_by: Optional[str] = None,
        order_desc: bool = False,
        filters: Optional[Dict[str, Any]] = None
    ) -> List[ModelType]:
        """Get multiple records with pagination and filtering"""
        statement = select(self.model)

        conditions = self._conditions(filters)
        if conditions:
            statement = statement.where(and_(*conditions))

        if order_by and hasattr(self.model, order_by):
            order_column = getattr(self.model, order_by)
            statement = statement.order_by(desc(order_column) if order_desc else asc(order_column))

        statement = statement.offset(skip).limit(limit)

        result = await self.session.exec(statement)
        return result.all()

    async def count(self, *, filters: Optional[Dict[str, Any]] = None) -> int:
        """Count records with optional filtering"""
        statement = select(func.count()).select_from(self.model)

        conditions = self._conditions(filters)
        if conditions:
            statement = statement.where(and_(*conditions))

        result = await self.session.exec(statement)
        return result.one()

    async def update(
        self,
        *,
        id: int,
        obj_in: Union[UpdateSchemaType, Dict[str, Any]]
    ) -> ModelType:
        """Update a record"""
        db_obj = await self.get_or_404(id=id)
        try:
            if isinstance(obj_in, BaseModel):
                update_data = obj_in.model_dump(exclude_unset=True)
            else:
                update_data = obj_in

            for field, value in update_data.items():
                if hasattr(db_obj, field):
                    setattr(db_obj, field, value)

            if hasattr(db_obj, "updated_at"):
                db_obj.updated_at = datetime.utcnow()

            self.session.add(db_obj)
            await self.session.commit()
            await self.session.refresh(db_obj)

            log.info("Updated record", model=self.model_name, id=id)
            return db_obj

        except IntegrityError as e:
            await self.session.rollback()
            log.error("Integrity error updating record", model=self.model_name, error=str(e))
            raise ConflictError(f"Conflict updating {self.model_name}")
        except SQLAlchemyError as e:
            await self.session.rollback()
            log.error("Database error updating record", model=self.model_name, error=str(e))
            raise DatabaseError(f"Error updating {self.model_name}")

    async def delete(self, *, id: int) -> bool:
        """Hard delete a record"""
        db_obj = await self.get_or_404(id=id)
        try:
            await self.session.delete(db_obj)
            await self.session.commit()

            log.info("Deleted record", model=self.model_name, id=id)
            return True

        except SQLAlchemyError as e:
            await self.session.rollback()
            log.error("Database error deleting record", model=self.model_name, error=str(e))
            raise DatabaseError(f"Error deleting {self.model_name}")

    async def exists(self, *, id: int) -> bool:
        """Check if a record exists"""
        statement = select(func.count()).select_from(self.model).where(self.model.id == id)
        result = await self.session.exec(statement)
        return result.one() > 0
