# app/services/cascade_service.py
"""
Cascade Coordinator

Soft delete and restore across Customer -> Site -> Equipment, plus predecessor
linking when a customer asset id moves to another equipment.

Every public operation is one unit of work: either the whole cascade commits
or nothing does. Equipment is never deleted by a parent's deletion; it loses
its site reference (orphaned) and keeps its organization.
"""
from datetime import datetime
from typing import Optional
from uuid import UUID
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.audit_log import AuditAction, AuditLogger, audit_logger
from app.core.constants import ResourceType
from app.core.exceptions import BusinessRuleError, NotFoundError
from app.db.database import unit_of_work
from app.db.models.customer import Customer
from app.db.models.equipment import Equipment
from app.db.models.site import Site
from app.db.repositories.customer_repository import CustomerRepository
from app.db.repositories.equipment_repository import EquipmentRepository
from app.db.repositories.site_repository import SiteRepository

logger = logging.getLogger(__name__)


class CascadeCoordinator:
    """Deletion, restore and asset-id replacement rules for the customer hierarchy"""

    def __init__(self, session: AsyncSession, audit: Optional[AuditLogger] = None):
        self.session = session
        self.audit = audit or audit_logger
        self.customers = CustomerRepository(session)
        self.sites = SiteRepository(session)
        self.equipment = EquipmentRepository(session)

    # ------------------------------------------------------------------
    # Deletes
    # ------------------------------------------------------------------

    async def delete_customer(
        self,
        customer_id: UUID,
        organization_id: UUID,
        user_id: Optional[UUID] = None,
        now: Optional[datetime] = None,
    ) -> int:
        """
        Soft-delete a customer and each of its live sites.

        Equipment at those sites is orphaned, not deleted.

        Returns:
            Number of sites soft-deleted
        """
        now = now or datetime.utcnow()

        async with unit_of_work(self.session):
            customer = await self.customers.get_in_organization(customer_id, organization_id)
            if customer is None:
                raise NotFoundError("Customer")

            sites = await self.sites.find_by_customer_id(customer.id)
            orphaned = 0
            for site in sites:
                orphaned += await self._delete_site(site, organization_id, now)

            customer.soft_delete(now)
            await self.customers.save(customer)

        logger.info(
            f"Customer {customer_id} deleted: {len(sites)} sites, {orphaned} equipment orphaned",
            extra={"organization_id": str(organization_id)},
        )
        self.audit.notify(
            action=AuditAction.CUSTOMER_DELETED,
            organization_id=organization_id,
            user_id=user_id,
            resource_type=ResourceType.CUSTOMER.value,
            resource_id=customer_id,
            details=f"Deleted customer '{customer.name}' with {len(sites)} site(s)",
        )
        return len(sites)

    async def delete_site(
        self,
        site_id: UUID,
        organization_id: UUID,
        user_id: Optional[UUID] = None,
        now: Optional[datetime] = None,
    ) -> int:
        """
        Soft-delete a site and orphan its equipment.

        Returns:
            Number of equipment rows orphaned
        """
        now = now or datetime.utcnow()

        async with unit_of_work(self.session):
            site = await self.sites.get_in_organization(site_id, organization_id)
            if site is None:
                raise NotFoundError("Site")
            orphaned = await self._delete_site(site, organization_id, now)

        self.audit.notify(
            action=AuditAction.SITE_DELETED,
            organization_id=organization_id,
            user_id=user_id,
            resource_type=ResourceType.SITE.value,
            resource_id=site_id,
            details=f"Deleted site '{site.name}', {orphaned} equipment orphaned",
        )
        return orphaned

    async def delete_equipment(
        self,
        equipment_id: UUID,
        organization_id: UUID,
        user_id: Optional[UUID] = None,
        now: Optional[datetime] = None,
    ) -> Equipment:
        """Soft-delete one equipment; nothing cascades"""
        async with unit_of_work(self.session):
            equipment = await self.equipment.get_in_organization(equipment_id, organization_id)
            if equipment is None:
                raise NotFoundError("Equipment")
            equipment.soft_delete(now)
            await self.equipment.save(equipment)

        self.audit.notify(
            action=AuditAction.EQUIPMENT_DELETED,
            organization_id=organization_id,
            user_id=user_id,
            resource_type=ResourceType.EQUIPMENT.value,
            resource_id=equipment_id,
            details=f"Deleted equipment '{equipment.serial_number}'",
        )
        return equipment

    async def _delete_site(self, site: Site, organization_id: UUID, now: datetime) -> int:
        site.soft_delete(now)
        await self.sites.save(site)

        attached = await self.equipment.find_by_site_id(site.id)
        for equipment in attached:
            self.orphan(equipment, organization_id)
        await self.session.flush()
        return len(attached)

    @staticmethod
    def orphan(equipment: Equipment, organization_id: UUID) -> None:
        """Detach from the site while keeping the organization link"""
        if equipment.organization_id is None:
            equipment.organization_id = organization_id
        equipment.site = None
        equipment.site_id = None

    # ------------------------------------------------------------------
    # Restores
    # ------------------------------------------------------------------

    async def restore_customer(
        self,
        customer_id: UUID,
        organization_id: UUID,
        user_id: Optional[UUID] = None,
    ) -> Customer:
        """Undo a customer soft delete; its sites stay deleted"""
        async with unit_of_work(self.session):
            customer = await self.customers.get_in_organization(
                customer_id, organization_id, include_deleted=True
            )
            if customer is None or not customer.is_deleted:
                raise NotFoundError("Customer", "Deleted customer not found")
            if await self.customers.exists_by_name(customer.name, organization_id, exclude_id=customer.id):
                raise BusinessRuleError(
                    f"Cannot restore: customer name '{customer.name}' is already in use"
                )
            customer.restore()
            await self.customers.save(customer)

        self.audit.notify(
            action=AuditAction.CUSTOMER_RESTORED,
            organization_id=organization_id,
            user_id=user_id,
            resource_type=ResourceType.CUSTOMER.value,
            resource_id=customer_id,
            details=f"Restored customer '{customer.name}'",
        )
        return customer

    async def restore_site(
        self,
        site_id: UUID,
        organization_id: UUID,
        user_id: Optional[UUID] = None,
    ) -> Site:
        """Undo a site soft delete; equipment orphaned earlier is not re-attached"""
        async with unit_of_work(self.session):
            site = await self.sites.get_in_organization(site_id, organization_id, include_deleted=True)
            if site is None or not site.is_deleted:
                raise NotFoundError("Site", "Deleted site not found")
            if site.customer.is_deleted:
                raise BusinessRuleError("Cannot restore a site whose customer is deleted")
            if await self.sites.exists_by_name(site.name, site.customer_id, exclude_id=site.id):
                raise BusinessRuleError(
                    f"Cannot restore: site name '{site.name}' is already in use for this customer"
                )
            site.restore()
            await self.sites.save(site)

        self.audit.notify(
            action=AuditAction.SITE_RESTORED,
            organization_id=organization_id,
            user_id=user_id,
            resource_type=ResourceType.SITE.value,
            resource_id=site_id,
            details=f"Restored site '{site.name}'",
        )
        return site

    async def restore_equipment(
        self,
        equipment_id: UUID,
        organization_id: UUID,
        user_id: Optional[UUID] = None,
    ) -> Equipment:
        async with unit_of_work(self.session):
            equipment = await self.equipment.get_in_organization(
                equipment_id, organization_id, include_deleted=True
            )
            if equipment is None or not equipment.is_deleted:
                raise NotFoundError("Equipment", "Deleted equipment not found")
            if await self.equipment.exists_by_serial_number(
                equipment.serial_number, organization_id, exclude_id=equipment.id
            ):
                raise BusinessRuleError(
                    f"Cannot restore: serial number '{equipment.serial_number}' is already in use"
                )
            if equipment.cust_asset_id:
                holder = await self.equipment.find_active_by_asset_id(
                    equipment.cust_asset_id, organization_id
                )
                if holder is not None and holder.id != equipment.id:
                    raise BusinessRuleError(
                        f"Cannot restore: asset id '{equipment.cust_asset_id}' is already in use"
                    )
            equipment.restore()
            await self.equipment.save(equipment)

        self.audit.notify(
            action=AuditAction.EQUIPMENT_RESTORED,
            organization_id=organization_id,
            user_id=user_id,
            resource_type=ResourceType.EQUIPMENT.value,
            resource_id=equipment_id,
            details=f"Restored equipment '{equipment.serial_number}'",
        )
        return equipment

    # ------------------------------------------------------------------
    # Predecessor linking
    # ------------------------------------------------------------------

    async def apply_asset_id(
        self,
        equipment: Equipment,
        new_asset_id: Optional[str],
        organization_id: UUID,
        now: Optional[datetime] = None,
    ) -> Optional[Equipment]:
        """
        Move a customer asset id onto ``equipment`` inside the caller's transaction.

        When another live equipment of the organization holds the id, that
        holder is soft-deleted and recorded as this equipment's predecessor.

        Returns:
            The replaced equipment, or None when nothing was replaced
        """
        if new_asset_id == equipment.cust_asset_id:
            return None

        replaced = None
        if new_asset_id:
            holder = await self.equipment.find_active_by_asset_id(new_asset_id, organization_id)
            if holder is not None and holder.id != equipment.id:
                holder.soft_delete(now)
                await self.equipment.save(holder)
                equipment.predecessor_id = holder.id
                replaced = holder
                logger.info(
                    f"Equipment {equipment.id} replaces {holder.id} for asset id {new_asset_id}",
                    extra={"organization_id": str(organization_id)},
                )

        equipment.cust_asset_id = new_asset_id
        return replaced

    async def update_equipment_asset_id(
        self,
        equipment_id: UUID,
        organization_id: UUID,
        new_asset_id: Optional[str],
        user_id: Optional[UUID] = None,
        now: Optional[datetime] = None,
    ) -> Equipment:
        async with unit_of_work(self.session):
            equipment = await self.equipment.get_in_organization(equipment_id, organization_id)
            if equipment is None:
                raise NotFoundError("Equipment")
            replaced = await self.apply_asset_id(equipment, new_asset_id, organization_id, now)
            await self.equipment.save(equipment)

        if replaced is not None:
            self.notify_replaced(equipment, replaced, organization_id, user_id)
        return equipment

    def notify_replaced(
        self,
        equipment: Equipment,
        replaced: Equipment,
        organization_id: UUID,
        user_id: Optional[UUID],
    ) -> None:
        self.audit.notify(
            action=AuditAction.EQUIPMENT_REPLACED,
            organization_id=organization_id,
            user_id=user_id,
            resource_type=ResourceType.EQUIPMENT.value,
            resource_id=equipment.id,
            details=(
                f"Equipment '{equipment.serial_number}' replaced '{replaced.serial_number}' "
                f"for asset id '{equipment.cust_asset_id}'"
            ),
        )
