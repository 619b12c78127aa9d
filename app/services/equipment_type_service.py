# app/services/equipment_type_service.py
from typing import Any, Dict, List, Optional, Sequence
from uuid import UUID
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.audit_log import AuditAction, AuditLogger, audit_logger
from app.core.constants import ResourceType
from app.core.exceptions import BusinessRuleError, NotFoundError
from app.db.database import unit_of_work
from app.db.models.equipment_type import EquipmentType
from app.db.repositories.equipment_repository import EquipmentRepository
from app.db.repositories.equipment_type_repository import EquipmentTypeRepository

logger = logging.getLogger(__name__)


class EquipmentTypeService:
    """Per-organization equipment catalog"""

    def __init__(self, session: AsyncSession, audit: Optional[AuditLogger] = None):
        self.session = session
        self.audit = audit or audit_logger
        self.types = EquipmentTypeRepository(session)
        self.equipment = EquipmentRepository(session)

    async def get(self, type_id: UUID, organization_id: UUID) -> EquipmentType:
        equipment_type = await self.types.get_in_organization(type_id, organization_id)
        if equipment_type is None:
            raise NotFoundError("Equipment type")
        return equipment_type

    async def list(self, organization_id: UUID, active_only: bool = False) -> List[EquipmentType]:
        return await self.types.find_by_organization(organization_id, active_only=active_only)

    async def create(
        self,
        organization_id: UUID,
        name: str,
        description: Optional[str] = None,
        display_order: Optional[int] = None,
        user_id: Optional[UUID] = None,
    ) -> EquipmentType:
        """Create a catalog entry; without a display order it goes last"""
        async with unit_of_work(self.session):
            if await self.types.exists_by_name(name, organization_id):
                raise BusinessRuleError(f"Equipment type with name '{name}' already exists")
            if display_order is None:
                display_order = await self.types.max_display_order(organization_id) + 1
            equipment_type = await self.types.save(EquipmentType(
                organization_id=organization_id,
                name=name,
                description=description,
                display_order=display_order,
                active=True,
            ))

        self._notify(AuditAction.EQUIPMENT_TYPE_CREATED, organization_id, user_id,
                     equipment_type.id, f"Created equipment type '{name}'")
        return equipment_type

    async def update(
        self,
        type_id: UUID,
        organization_id: UUID,
        changes: Dict[str, Any],
        user_id: Optional[UUID] = None,
    ) -> EquipmentType:
        async with unit_of_work(self.session):
            equipment_type = await self.get(type_id, organization_id)

            name = changes.get("name")
            if name is not None and name != equipment_type.name:
                if await self.types.exists_by_name(name, organization_id, exclude_id=equipment_type.id):
                    raise BusinessRuleError(f"Equipment type with name '{name}' already exists")
                equipment_type.name = name
            for attr in ("description", "display_order", "active"):
                if changes.get(attr) is not None:
                    setattr(equipment_type, attr, changes[attr])
            await self.types.save(equipment_type)

        self._notify(AuditAction.EQUIPMENT_TYPE_UPDATED, organization_id, user_id,
                     equipment_type.id, f"Updated equipment type '{equipment_type.name}'")
        return equipment_type

    async def reorder(
        self,
        ordered_ids: Sequence[UUID],
        organization_id: UUID,
        user_id: Optional[UUID] = None,
    ) -> List[EquipmentType]:
        """Assign display orders 0..n-1 following ``ordered_ids``; all or nothing"""
        async with unit_of_work(self.session):
            reordered = []
            for position, type_id in enumerate(ordered_ids):
                equipment_type = await self.get(type_id, organization_id)
                equipment_type.display_order = position
                reordered.append(equipment_type)
            await self.session.flush()

        self._notify(AuditAction.EQUIPMENT_TYPES_REORDERED, organization_id, user_id,
                     None, f"Reordered {len(reordered)} equipment types")
        return reordered

    async def delete(self, type_id: UUID, organization_id: UUID, user_id: Optional[UUID] = None) -> int:
        """
        Remove a catalog entry for good.

        Returns:
            Number of equipment rows that lost their type
        """
        async with unit_of_work(self.session):
            equipment_type = await self.get(type_id, organization_id)
            detached = await self.equipment.clear_equipment_type(equipment_type.id)
            await self.types.delete(equipment_type.id)

        self._notify(AuditAction.EQUIPMENT_TYPE_DELETED, organization_id, user_id,
                     type_id, f"Deleted equipment type '{equipment_type.name}'")
        return len(detached)

    def _notify(self, action, organization_id, user_id, resource_id, details):
        self.audit.notify(
            action=action,
            organization_id=organization_id,
            user_id=user_id,
            resource_type=ResourceType.EQUIPMENT_TYPE.value,
            resource_id=resource_id,
            details=details,
        )
