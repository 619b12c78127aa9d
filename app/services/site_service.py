# app/services/site_service.py
from typing import Any, Dict, List, Optional
from uuid import UUID
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.audit_log import AuditAction, AuditLogger, audit_logger
from app.core.constants import ResourceType
from app.core.exceptions import BusinessRuleError, NotFoundError
from app.db.database import unit_of_work
from app.db.models.site import Site
from app.db.repositories.customer_repository import CustomerRepository
from app.db.repositories.site_repository import SiteRepository
from app.services.cascade_service import CascadeCoordinator

logger = logging.getLogger(__name__)

# Plain columns a caller may change through update()
SITE_FIELDS = ("address", "contact_name", "contact_phone", "meta")


class SiteService:

    def __init__(self, session: AsyncSession, audit: Optional[AuditLogger] = None):
        self.session = session
        self.audit = audit or audit_logger
        self.customers = CustomerRepository(session)
        self.sites = SiteRepository(session)
        self.cascade = CascadeCoordinator(session, self.audit)

    async def create(
        self,
        organization_id: UUID,
        customer_id: UUID,
        name: str,
        address: Optional[str] = None,
        contact_name: Optional[str] = None,
        contact_phone: Optional[str] = None,
        meta: Optional[Dict[str, Any]] = None,
        user_id: Optional[UUID] = None,
    ) -> Site:
        async with unit_of_work(self.session):
            customer = await self.customers.get_in_organization(customer_id, organization_id)
            if customer is None:
                raise NotFoundError("Customer")
            if await self.sites.exists_by_name(name, customer.id):
                raise BusinessRuleError(
                    f"Site with name '{name}' already exists for this customer"
                )
            site = Site(
                customer_id=customer.id,
                name=name,
                address=address,
                contact_name=contact_name,
                contact_phone=contact_phone,
                meta=meta or {},
            )
            site.customer = customer
            await self.sites.save(site)

        self.audit.notify(
            action=AuditAction.SITE_CREATED,
            organization_id=organization_id,
            user_id=user_id,
            resource_type=ResourceType.SITE.value,
            resource_id=site.id,
            details=f"Created site '{name}' for customer '{customer.name}'",
        )
        return site

    async def update(
        self,
        site_id: UUID,
        organization_id: UUID,
        changes: Dict[str, Any],
        user_id: Optional[UUID] = None,
    ) -> Site:
        """
        Apply a partial update.

        ``changes`` may carry ``name``, ``customer_id`` (move to another
        customer of the same tenant) and any of SITE_FIELDS.
        """
        async with unit_of_work(self.session):
            site = await self.get(site_id, organization_id)

            customer = site.customer
            new_customer_id = changes.get("customer_id")
            moved = new_customer_id is not None and new_customer_id != site.customer_id
            if moved:
                customer = await self.customers.get_in_organization(new_customer_id, organization_id)
                if customer is None:
                    raise NotFoundError("Customer")

            name = changes.get("name") or site.name
            if moved or name != site.name:
                if await self.sites.exists_by_name(name, customer.id, exclude_id=site.id):
                    raise BusinessRuleError(
                        f"Site with name '{name}' already exists for this customer"
                    )
            site.name = name
            site.customer = customer
            site.customer_id = customer.id

            for field in SITE_FIELDS:
                if field in changes:
                    setattr(site, field, changes[field])
            await self.sites.save(site)

        self.audit.notify(
            action=AuditAction.SITE_UPDATED,
            organization_id=organization_id,
            user_id=user_id,
            resource_type=ResourceType.SITE.value,
            resource_id=site.id,
            details=f"Updated site '{site.name}'",
        )
        return site

    async def get(self, site_id: UUID, organization_id: UUID) -> Site:
        site = await self.sites.get_in_organization(site_id, organization_id)
        if site is None:
            raise NotFoundError("Site")
        return site

    async def list(
        self,
        organization_id: UUID,
        customer_id: Optional[UUID] = None,
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> List[Site]:
        if customer_id is None:
            return await self.sites.find_by_organization(organization_id, skip=skip, limit=limit)

        customer = await self.customers.get_in_organization(customer_id, organization_id)
        if customer is None:
            raise NotFoundError("Customer")
        return await self.sites.find_by_customer_id(customer.id)

    async def delete(self, site_id: UUID, organization_id: UUID, user_id: Optional[UUID] = None) -> int:
        return await self.cascade.delete_site(site_id, organization_id, user_id)

    async def restore(self, site_id: UUID, organization_id: UUID, user_id: Optional[UUID] = None) -> Site:
        return await self.cascade.restore_site(site_id, organization_id, user_id)
