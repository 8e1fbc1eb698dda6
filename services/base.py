"""Krishi Drishti — Base Service Interface.

Repository-style base class that keeps persistence calls out of the API
routes. Services add and flush; the request dependency (or the flow's
session context) owns commit and rollback.

Usage:
    class ScoringService(BaseService[Panchayat]):
        def __init__(self, db: AsyncSession):
            super().__init__(Panchayat, db)
"""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import ResourceNotFound
from logger import get_logger

ModelType = TypeVar("ModelType")

logger = get_logger(__name__)


class BaseService(Generic[ModelType]):
    """Base class for all business logic services."""

    def __init__(self, model: type[ModelType], db: AsyncSession):
        self.model = model
        self.db = db
        self.logger = logger.bind(service=self.__class__.__name__)

    async def get(self, id: Any) -> ModelType | None:
        """Get a single record by primary key."""
        result = await self.db.execute(
            select(self.model).where(self.model.id == id)
        )
        return result.scalar_one_or_none()

    async def get_or_404(self, id: Any) -> ModelType:
        """Get a record or raise ResourceNotFound."""
        obj = await self.get(id)
        if obj is None:
            raise ResourceNotFound(self.model.__name__, id)
        return obj

    async def list_where(self, *criteria: Any, order_by: Any = None) -> list[ModelType]:
        """Query records matching every criterion."""
        stmt = select(self.model).where(*criteria)
        if order_by is not None:
            stmt = stmt.order_by(order_by)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def add(self, db_obj: Any) -> Any:
        """Stage a new record and flush so server defaults and ids exist."""
        self.db.add(db_obj)
        await self.db.flush()
        return db_obj

    async def flush(self) -> None:
        await self.db.flush()
