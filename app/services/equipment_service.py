# app/services/equipment_service.py
"""
Equipment service

CRUD, lookup, service history and bulk operations for equipment. Deletion,
restore and asset-id replacement are delegated to the cascade coordinator so
their rules live in one place.
"""
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence
from uuid import UUID
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.audit_log import AuditAction, AuditLogger, audit_logger
from app.core.config import settings
from app.core.constants import (
    HISTORY_DETAIL_DAYS,
    AgreementStatus,
    LifecycleStatus,
    ResourceType,
    ServiceCycle,
)
from app.core.exceptions import BusinessRuleError, NotFoundError
from app.db.database import unit_of_work
from app.db.models.equipment import Equipment
from app.db.models.service_record import ServiceRecord
from app.db.repositories.equipment_repository import EquipmentRepository
from app.db.repositories.equipment_type_repository import EquipmentTypeRepository
from app.db.repositories.service_record_repository import ServiceRecordRepository
from app.db.repositories.site_repository import SiteRepository
from app.services.cascade_service import CascadeCoordinator

logger = logging.getLogger(__name__)


@dataclass
class MonthlySummary:
    month: str
    count: int


@dataclass
class EquipmentHistory:
    """Recent records listed one by one, older ones counted per calendar month"""
    recent: List[ServiceRecord] = field(default_factory=list)
    monthly: List[MonthlySummary] = field(default_factory=list)


@dataclass
class BulkOperationResult:
    success_count: int
    failure_count: int
    message: str


def parse_enum(enum_cls, value, label: str):
    """Convert a raw value to ``enum_cls``; unknown values are business-rule violations"""
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise BusinessRuleError(f"Invalid {label} '{value}'. Allowed values: {allowed}")


class EquipmentService:

    def __init__(self, session: AsyncSession, audit: Optional[AuditLogger] = None):
        self.session = session
        self.audit = audit or audit_logger
        self.equipment = EquipmentRepository(session)
        self.sites = SiteRepository(session)
        self.types = EquipmentTypeRepository(session)
        self.records = ServiceRecordRepository(session)
        self.cascade = CascadeCoordinator(session, self.audit)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get(self, equipment_id: UUID, organization_id: UUID) -> Equipment:
        equipment = await self.equipment.get_in_organization(equipment_id, organization_id)
        if equipment is None:
            raise NotFoundError("Equipment")
        return equipment

    async def list(self, organization_id: UUID, **filters: Any) -> List[Equipment]:
        """Filters are passed through to EquipmentRepository.find_by_organization"""
        return await self.equipment.find_by_organization(organization_id, **filters)

    async def list_orphaned(
        self,
        organization_id: UUID,
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> List[Equipment]:
        return await self.equipment.find_orphaned(organization_id, skip=skip, limit=limit)

    async def count_orphaned(self, organization_id: UUID) -> int:
        return await self.equipment.count_orphaned(organization_id)

    async def lookup(self, value: str, organization_id: UUID) -> Equipment:
        """Find by serial number, asset id or QR code value"""
        equipment = await self.equipment.lookup(value, organization_id)
        if equipment is None:
            raise NotFoundError("Equipment", f"Equipment not found: {value}")
        return equipment

    async def history(
        self,
        equipment_id: UUID,
        organization_id: UUID,
        now: Optional[datetime] = None,
    ) -> EquipmentHistory:
        equipment = await self.get(equipment_id, organization_id)
        records = await self.records.find_by_equipment_id(equipment.id)

        cutoff = (now or datetime.utcnow()) - timedelta(days=HISTORY_DETAIL_DAYS)
        recent = [r for r in records if r.serviced_at > cutoff]
        older = Counter(r.serviced_at.strftime("%Y-%m") for r in records if r.serviced_at <= cutoff)

        monthly = [
            MonthlySummary(month=month, count=count)
            for month, count in sorted(older.items(), reverse=True)
        ]
        return EquipmentHistory(recent=recent, monthly=monthly)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create(
        self,
        organization_id: UUID,
        serial_number: str,
        service_cycle: ServiceCycle,
        agreement_status: AgreementStatus = AgreementStatus.COVERED,
        lifecycle_status: LifecycleStatus = LifecycleStatus.ACTIVE,
        cust_asset_id: Optional[str] = None,
        qr_code_value: Optional[str] = None,
        site_id: Optional[UUID] = None,
        equipment_type_id: Optional[UUID] = None,
        next_service: Optional[date] = None,
        provisional: bool = False,
        provisional_expires_at: Optional[datetime] = None,
        user_id: Optional[UUID] = None,
        now: Optional[datetime] = None,
    ) -> Equipment:
        """
        Create equipment owned by the organization.

        An explicit ``next_service`` pins the date (override flag set).
        Provisional equipment expires after PROVISIONAL_TTL_DAYS unless an
        expiry is given.
        """
        now = now or datetime.utcnow()

        async with unit_of_work(self.session):
            if await self.equipment.exists_by_serial_number(serial_number, organization_id):
                raise BusinessRuleError(
                    f"Equipment with serial number '{serial_number}' already exists"
                )
            if cust_asset_id and await self.equipment.find_active_by_asset_id(cust_asset_id, organization_id):
                raise BusinessRuleError(
                    f"Equipment with asset id '{cust_asset_id}' already exists"
                )

            equipment = Equipment(
                organization_id=organization_id,
                serial_number=serial_number,
                cust_asset_id=cust_asset_id,
                qr_code_value=qr_code_value or serial_number,
                agreement_status=agreement_status,
                lifecycle_status=lifecycle_status,
                service_cycle=service_cycle,
                next_service=next_service,
                next_service_override=next_service is not None,
                provisional=provisional,
                provisional_expires_at=None,
            )
            if provisional:
                equipment.provisional_expires_at = provisional_expires_at or (
                    now + timedelta(days=settings.PROVISIONAL_TTL_DAYS)
                )
            if site_id is not None:
                equipment.site = await self._site(site_id, organization_id)
            if equipment_type_id is not None:
                equipment.equipment_type = await self._equipment_type(equipment_type_id, organization_id)

            await self.equipment.save(equipment)

        self.audit.notify(
            action=AuditAction.EQUIPMENT_CREATED,
            organization_id=organization_id,
            user_id=user_id,
            resource_type=ResourceType.EQUIPMENT.value,
            resource_id=equipment.id,
            details=f"Created equipment '{serial_number}'",
        )
        return equipment

    async def update(
        self,
        equipment_id: UUID,
        organization_id: UUID,
        changes: Dict[str, Any],
        user_id: Optional[UUID] = None,
        now: Optional[datetime] = None,
    ) -> Equipment:
        """
        Apply a partial update.

        Only keys present in ``changes`` are touched. Setting ``next_service``
        pins it unless ``next_service_override`` is explicitly False; passing
        ``next_service_override=False`` alone releases the pin. Moving an asset
        id that another live item holds replaces that item.
        """
        now = now or datetime.utcnow()
        replaced = None

        async with unit_of_work(self.session):
            equipment = await self.get(equipment_id, organization_id)

            serial_number = changes.get("serial_number")
            if serial_number is not None and serial_number != equipment.serial_number:
                if await self.equipment.exists_by_serial_number(
                    serial_number, organization_id, exclude_id=equipment.id
                ):
                    raise BusinessRuleError(
                        f"Equipment with serial number '{serial_number}' already exists"
                    )
                equipment.serial_number = serial_number

            if "cust_asset_id" in changes:
                replaced = await self.cascade.apply_asset_id(
                    equipment, changes["cust_asset_id"], organization_id, now
                )

            if changes.get("qr_code_value") is not None:
                equipment.qr_code_value = changes["qr_code_value"]
            if changes.get("agreement_status") is not None:
                equipment.agreement_status = changes["agreement_status"]
            if changes.get("service_cycle") is not None:
                equipment.service_cycle = changes["service_cycle"]
            if changes.get("lifecycle_status") is not None:
                equipment.lifecycle_status = changes["lifecycle_status"]

            if changes.get("next_service") is not None:
                equipment.next_service = changes["next_service"]
                override = changes.get("next_service_override")
                equipment.next_service_override = True if override is None else override
            elif changes.get("next_service_override") is not None:
                equipment.next_service_override = changes["next_service_override"]

            if "site_id" in changes:
                if changes["site_id"] is None:
                    CascadeCoordinator.orphan(equipment, organization_id)
                else:
                    equipment.site = await self._site(changes["site_id"], organization_id)
                    equipment.site_id = equipment.site.id

            if "equipment_type_id" in changes:
                if changes["equipment_type_id"] is None:
                    equipment.equipment_type = None
                    equipment.equipment_type_id = None
                else:
                    equipment.equipment_type = await self._equipment_type(
                        changes["equipment_type_id"], organization_id
                    )
                    equipment.equipment_type_id = equipment.equipment_type.id

            if changes.get("provisional") is False:
                equipment.provisional = False
                equipment.provisional_expires_at = None
            elif changes.get("provisional") is True and not equipment.provisional:
                equipment.provisional = True
                equipment.provisional_expires_at = changes.get("provisional_expires_at") or (
                    now + timedelta(days=settings.PROVISIONAL_TTL_DAYS)
                )

            await self.equipment.save(equipment)

        if replaced is not None:
            self.cascade.notify_replaced(equipment, replaced, organization_id, user_id)
        self.audit.notify(
            action=AuditAction.EQUIPMENT_UPDATED,
            organization_id=organization_id,
            user_id=user_id,
            resource_type=ResourceType.EQUIPMENT.value,
            resource_id=equipment.id,
            details=f"Updated equipment '{equipment.serial_number}'",
        )
        return equipment

    async def delete(self, equipment_id: UUID, organization_id: UUID, user_id: Optional[UUID] = None) -> Equipment:
        return await self.cascade.delete_equipment(equipment_id, organization_id, user_id)

    async def restore(self, equipment_id: UUID, organization_id: UUID, user_id: Optional[UUID] = None) -> Equipment:
        return await self.cascade.restore_equipment(equipment_id, organization_id, user_id)

    # ------------------------------------------------------------------
    # Bulk operations
    # ------------------------------------------------------------------

    async def bulk_delete(
        self,
        ids: Sequence[UUID],
        organization_id: UUID,
        user_id: Optional[UUID] = None,
        now: Optional[datetime] = None,
    ) -> BulkOperationResult:
        ids = list(dict.fromkeys(ids))
        async with unit_of_work(self.session):
            found = await self.equipment.find_by_ids_in_organization(ids, organization_id)
            for equipment in found:
                equipment.soft_delete(now)
            await self.session.flush()

        result = BulkOperationResult(
            success_count=len(found),
            failure_count=len(ids) - len(found),
            message=f"Successfully deleted {len(found)} equipment",
        )
        self._notify_bulk(AuditAction.EQUIPMENT_BULK_DELETE, organization_id, user_id,
                          f"Deleted {len(found)} items")
        return result

    async def bulk_update_status(
        self,
        ids: Sequence[UUID],
        organization_id: UUID,
        agreement_status,
        user_id: Optional[UUID] = None,
    ) -> BulkOperationResult:
        ids = list(dict.fromkeys(ids))
        status = parse_enum(AgreementStatus, agreement_status, "agreement status")

        async with unit_of_work(self.session):
            found = await self.equipment.find_by_ids_in_organization(ids, organization_id)
            for equipment in found:
                equipment.agreement_status = status
            await self.session.flush()

        self._notify_bulk(AuditAction.EQUIPMENT_BULK_UPDATE_STATUS, organization_id, user_id,
                          f"Updated {len(found)} items to {status.value}")
        return BulkOperationResult(
            success_count=len(found),
            failure_count=len(ids) - len(found),
            message=f"Successfully updated {len(found)} equipment",
        )

    async def bulk_update_cycle(
        self,
        ids: Sequence[UUID],
        organization_id: UUID,
        service_cycle,
        user_id: Optional[UUID] = None,
    ) -> BulkOperationResult:
        ids = list(dict.fromkeys(ids))
        cycle = parse_enum(ServiceCycle, service_cycle, "service cycle")

        async with unit_of_work(self.session):
            found = await self.equipment.find_by_ids_in_organization(ids, organization_id)
            for equipment in found:
                equipment.service_cycle = cycle
            await self.session.flush()

        self._notify_bulk(AuditAction.EQUIPMENT_BULK_UPDATE_CYCLE, organization_id, user_id,
                          f"Updated {len(found)} items to {cycle.value}")
        return BulkOperationResult(
            success_count=len(found),
            failure_count=len(ids) - len(found),
            message=f"Successfully updated {len(found)} equipment",
        )

    def _notify_bulk(self, action: AuditAction, organization_id: UUID, user_id: Optional[UUID], details: str):
        self.audit.notify(
            action=action,
            organization_id=organization_id,
            user_id=user_id,
            resource_type=ResourceType.EQUIPMENT.value,
            resource_id=None,
            details=details,
        )

    # ------------------------------------------------------------------
    # Tenant-scoped references
    # ------------------------------------------------------------------

    async def _site(self, site_id: UUID, organization_id: UUID):
        site = await self.sites.get_in_organization(site_id, organization_id)
        if site is None:
            raise NotFoundError("Site")
        return site

    async def _equipment_type(self, type_id: UUID, organization_id: UUID):
        equipment_type = await self.types.get_in_organization(type_id, organization_id)
        if equipment_type is None:
            raise NotFoundError("Equipment type")
        return equipment_type
