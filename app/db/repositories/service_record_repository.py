# app/db/repositories/service_record_repository.py
from typing import List
from uuid import UUID
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.service_record import ServiceRecord
from app.db.repositories.base import BaseRepository


class ServiceRecordRepository(BaseRepository[ServiceRecord]):
    """Insert-only access to service records, plus the bulk purge for cleanup"""

    def __init__(self, session: AsyncSession):
        super().__init__(ServiceRecord, session)

    async def find_by_equipment_id(self, equipment_id: UUID) -> List[ServiceRecord]:
        """Service history, newest first"""
        result = await self.session.execute(
            select(ServiceRecord)
            .where(ServiceRecord.equipment_id == equipment_id)
            .order_by(ServiceRecord.serviced_at.desc())
        )
        return list(result.unique().scalars().all())

    async def delete_by_equipment_id(self, equipment_id: UUID) -> int:
        result = await self.session.execute(
            delete(ServiceRecord).where(ServiceRecord.equipment_id == equipment_id)
        )
        return result.rowcount or 0
