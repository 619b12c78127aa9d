# app/db/repositories/base.py
from typing import Generic, TypeVar, Type, Optional, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete

ModelType = TypeVar("ModelType")


class BaseRepository(Generic[ModelType]):
    """
    Base repository with common CRUD operations.

    Repositories only stage changes and flush; committing belongs to the
    caller's unit of work so that multi-row cascades stay atomic.
    """

    def __init__(self, model: Type[ModelType], session: AsyncSession):
        self.model = model
        self.session = session

    async def get(self, id: Any) -> Optional[ModelType]:
        """Get by ID"""
        result = await self.session.execute(
            select(self.model).where(self.model.id == id)
        )
        return result.unique().scalar_one_or_none()

    async def save(self, obj: ModelType) -> ModelType:
        """Stage a new or modified record and flush it"""
        self.session.add(obj)
        await self.session.flush()
        return obj

    async def create(self, obj_in: dict) -> ModelType:
        """Create new record"""
        return await self.save(self.model(**obj_in))

    async def delete(self, id: Any) -> bool:
        """Hard delete record"""
        result = await self.session.execute(
            delete(self.model).where(self.model.id == id)
        )
        return result.rowcount > 0
