# app/db/repositories/site_repository.py
from typing import List, Optional
from uuid import UUID
from sqlalchemy import select, and_
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.customer import Customer
from app.db.models.site import Site
from app.db.repositories.base import BaseRepository


class SiteRepository(BaseRepository[Site]):
    """Repository for Site operations; tenancy is inherited from the customer"""

    def __init__(self, session: AsyncSession):
        super().__init__(Site, session)

    async def get_in_organization(
        self,
        site_id: UUID,
        organization_id: UUID,
        include_deleted: bool = False,
    ) -> Optional[Site]:
        """Get site with tenant verification"""
        query = (
            select(Site)
            .join(Customer, Site.customer_id == Customer.id)
            .where(
                and_(
                    Site.id == site_id,
                    Customer.organization_id == organization_id,
                )
            )
        )
        if not include_deleted:
            query = query.where(Site.deleted_at.is_(None))
        result = await self.session.execute(query)
        return result.unique().scalar_one_or_none()

    async def find_by_customer_id(
        self,
        customer_id: UUID,
        include_deleted: bool = False,
    ) -> List[Site]:
        query = select(Site).where(Site.customer_id == customer_id).order_by(Site.name)
        if not include_deleted:
            query = query.where(Site.deleted_at.is_(None))
        result = await self.session.execute(query)
        return list(result.unique().scalars().all())

    async def find_by_organization(
        self,
        organization_id: UUID,
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> List[Site]:
        """Non-deleted sites across all customers of a tenant"""
        query = (
            select(Site)
            .join(Customer, Site.customer_id == Customer.id)
            .where(Customer.organization_id == organization_id)
            .where(Site.deleted_at.is_(None))
            .order_by(Site.name)
            .offset(skip)
        )
        if limit is not None:
            query = query.limit(limit)
        result = await self.session.execute(query)
        return list(result.unique().scalars().all())

    async def exists_by_name(
        self,
        name: str,
        customer_id: UUID,
        exclude_id: Optional[UUID] = None,
    ) -> bool:
        query = select(Site.id).where(
            and_(
                Site.name == name,
                Site.customer_id == customer_id,
                Site.deleted_at.is_(None),
            )
        )
        if exclude_id is not None:
            query = query.where(Site.id != exclude_id)
        result = await self.session.execute(query.limit(1))
        return result.first() is not None
