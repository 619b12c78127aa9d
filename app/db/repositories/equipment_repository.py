# app/db/repositories/equipment_repository.py
from datetime import date, datetime
from typing import List, Optional, Sequence
from uuid import UUID
from sqlalchemy import select, and_, or_, func, delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.constants import AgreementStatus, LifecycleStatus, ServiceCycle
from app.db.models.customer import Customer
from app.db.models.equipment import Equipment
from app.db.models.site import Site
from app.db.repositories.base import BaseRepository


def in_organization(organization_id: UUID):
    """
    Tenant predicate for equipment.

    Matches rows owned directly and rows that only inherit the organization
    through their site's customer.
    """
    sited = (
        select(Site.id)
        .join(Customer, Site.customer_id == Customer.id)
        .where(Customer.organization_id == organization_id)
    )
    return or_(
        Equipment.organization_id == organization_id,
        and_(Equipment.organization_id.is_(None), Equipment.site_id.in_(sited)),
    )


class EquipmentRepository(BaseRepository[Equipment]):
    """Repository for Equipment operations"""

    def __init__(self, session: AsyncSession):
        super().__init__(Equipment, session)

    async def get_in_organization(
        self,
        equipment_id: UUID,
        organization_id: UUID,
        include_deleted: bool = False,
    ) -> Optional[Equipment]:
        """Get equipment with tenant verification"""
        query = select(Equipment).where(
            and_(Equipment.id == equipment_id, in_organization(organization_id))
        )
        if not include_deleted:
            query = query.where(Equipment.deleted_at.is_(None))
        result = await self.session.execute(query)
        return result.unique().scalar_one_or_none()

    async def find_by_ids_in_organization(
        self,
        ids: Sequence[UUID],
        organization_id: UUID,
    ) -> List[Equipment]:
        if not ids:
            return []
        result = await self.session.execute(
            select(Equipment)
            .where(Equipment.id.in_(list(ids)))
            .where(in_organization(organization_id))
            .where(Equipment.deleted_at.is_(None))
        )
        return list(result.unique().scalars().all())

    async def find_by_site_id(self, site_id: UUID) -> List[Equipment]:
        """Every row attached to a site, deleted or not"""
        result = await self.session.execute(
            select(Equipment).where(Equipment.site_id == site_id).order_by(Equipment.serial_number)
        )
        return list(result.unique().scalars().all())

    async def find_by_organization(
        self,
        organization_id: UUID,
        agreement_status: Optional[AgreementStatus] = None,
        service_cycle: Optional[ServiceCycle] = None,
        lifecycle_status: Optional[LifecycleStatus] = None,
        next_service_from: Optional[date] = None,
        next_service_to: Optional[date] = None,
        search: Optional[str] = None,
        customer_id: Optional[UUID] = None,
        site_id: Optional[UUID] = None,
        equipment_type_id: Optional[UUID] = None,
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> List[Equipment]:
        """Non-deleted equipment of a tenant with optional filters"""
        query = (
            select(Equipment)
            .where(in_organization(organization_id))
            .where(Equipment.deleted_at.is_(None))
        )

        if agreement_status is not None:
            query = query.where(Equipment.agreement_status == agreement_status)
        if service_cycle is not None:
            query = query.where(Equipment.service_cycle == service_cycle)
        if lifecycle_status is not None:
            query = query.where(Equipment.lifecycle_status == lifecycle_status)
        if next_service_from is not None:
            query = query.where(Equipment.next_service >= next_service_from)
        if next_service_to is not None:
            query = query.where(Equipment.next_service <= next_service_to)
        if site_id is not None:
            query = query.where(Equipment.site_id == site_id)
        if customer_id is not None:
            query = query.where(
                Equipment.site_id.in_(select(Site.id).where(Site.customer_id == customer_id))
            )
        if equipment_type_id is not None:
            query = query.where(Equipment.equipment_type_id == equipment_type_id)
        if search:
            pattern = f"%{search.lower()}%"
            query = query.where(
                or_(
                    func.lower(Equipment.serial_number).like(pattern),
                    func.lower(Equipment.cust_asset_id).like(pattern),
                )
            )

        query = query.order_by(Equipment.serial_number).offset(skip)
        if limit is not None:
            query = query.limit(limit)
        result = await self.session.execute(query)
        return list(result.unique().scalars().all())

    async def find_orphaned(
        self,
        organization_id: UUID,
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> List[Equipment]:
        query = (
            select(Equipment)
            .where(Equipment.organization_id == organization_id)
            .where(Equipment.site_id.is_(None))
            .where(Equipment.deleted_at.is_(None))
            .order_by(Equipment.serial_number)
            .offset(skip)
        )
        if limit is not None:
            query = query.limit(limit)
        result = await self.session.execute(query)
        return list(result.unique().scalars().all())

    async def count_orphaned(self, organization_id: UUID) -> int:
        result = await self.session.execute(
            select(func.count(Equipment.id))
            .where(Equipment.organization_id == organization_id)
            .where(Equipment.site_id.is_(None))
            .where(Equipment.deleted_at.is_(None))
        )
        return result.scalar() or 0

    async def exists_by_serial_number(
        self,
        serial_number: str,
        organization_id: UUID,
        exclude_id: Optional[UUID] = None,
    ) -> bool:
        query = select(Equipment.id).where(
            and_(
                Equipment.serial_number == serial_number,
                in_organization(organization_id),
                Equipment.deleted_at.is_(None),
            )
        )
        if exclude_id is not None:
            query = query.where(Equipment.id != exclude_id)
        result = await self.session.execute(query.limit(1))
        return result.first() is not None

    async def find_active_by_asset_id(
        self,
        cust_asset_id: str,
        organization_id: UUID,
    ) -> Optional[Equipment]:
        """The non-deleted holder of a customer asset id, if any"""
        result = await self.session.execute(
            select(Equipment).where(
                and_(
                    Equipment.cust_asset_id == cust_asset_id,
                    in_organization(organization_id),
                    Equipment.deleted_at.is_(None),
                )
            )
        )
        return result.unique().scalars().first()

    async def lookup(self, value: str, organization_id: UUID) -> Optional[Equipment]:
        """Resolve a scanned value: serial number or asset id first, then QR code"""
        base = (
            select(Equipment)
            .where(in_organization(organization_id))
            .where(Equipment.deleted_at.is_(None))
        )
        result = await self.session.execute(
            base.where(
                or_(Equipment.serial_number == value, Equipment.cust_asset_id == value)
            )
        )
        equipment = result.unique().scalars().first()
        if equipment is not None:
            return equipment

        result = await self.session.execute(base.where(Equipment.qr_code_value == value))
        return result.unique().scalars().first()

    async def find_provisional_expired_before(self, timestamp: datetime) -> List[Equipment]:
        """Cross-tenant sweep used by the provisional cleanup job"""
        result = await self.session.execute(
            select(Equipment)
            .where(Equipment.provisional.is_(True))
            .where(Equipment.provisional_expires_at < timestamp)
            .order_by(Equipment.provisional_expires_at)
        )
        return list(result.unique().scalars().all())

    async def clear_equipment_type(self, equipment_type_id: UUID) -> List[Equipment]:
        result = await self.session.execute(
            select(Equipment).where(Equipment.equipment_type_id == equipment_type_id)
        )
        detached = list(result.unique().scalars().all())
        for equipment in detached:
            equipment.equipment_type = None
            equipment.equipment_type_id = None
        await self.session.flush()
        return detached

    async def hard_delete(self, equipment_id: UUID) -> bool:
        """Irreversible removal; only the provisional cleanup path uses it"""
        result = await self.session.execute(
            delete(Equipment).where(Equipment.id == equipment_id)
        )
        return result.rowcount > 0
