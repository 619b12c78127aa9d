# app/db/repositories/equipment_type_repository.py
from typing import List, Optional
from uuid import UUID
from sqlalchemy import select, and_, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.equipment_type import EquipmentType
from app.db.repositories.base import BaseRepository


class EquipmentTypeRepository(BaseRepository[EquipmentType]):
    """Repository for EquipmentType operations"""

    def __init__(self, session: AsyncSession):
        super().__init__(EquipmentType, session)

    async def get_in_organization(self, type_id: UUID, organization_id: UUID) -> Optional[EquipmentType]:
        result = await self.session.execute(
            select(EquipmentType).where(
                and_(
                    EquipmentType.id == type_id,
                    EquipmentType.organization_id == organization_id,
                )
            )
        )
        return result.scalar_one_or_none()

    async def find_by_organization(
        self,
        organization_id: UUID,
        active_only: bool = False,
    ) -> List[EquipmentType]:
        query = (
            select(EquipmentType)
            .where(EquipmentType.organization_id == organization_id)
            .order_by(EquipmentType.display_order, EquipmentType.name)
        )
        if active_only:
            query = query.where(EquipmentType.active.is_(True))
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def exists_by_name(
        self,
        name: str,
        organization_id: UUID,
        exclude_id: Optional[UUID] = None,
    ) -> bool:
        query = select(EquipmentType.id).where(
            and_(
                EquipmentType.name == name,
                EquipmentType.organization_id == organization_id,
            )
        )
        if exclude_id is not None:
            query = query.where(EquipmentType.id != exclude_id)
        result = await self.session.execute(query.limit(1))
        return result.first() is not None

    async def max_display_order(self, organization_id: UUID) -> int:
        result = await self.session.execute(
            select(func.max(EquipmentType.display_order))
            .where(EquipmentType.organization_id == organization_id)
        )
        value = result.scalar()
        return -1 if value is None else value
