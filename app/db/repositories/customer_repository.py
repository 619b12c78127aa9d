# app/db/repositories/customer_repository.py
from datetime import date
from typing import List, Optional
from uuid import UUID
from sqlalchemy import select, and_
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.constants import AgreementStatus
from app.db.models.customer import Customer
from app.db.repositories.base import BaseRepository


class CustomerRepository(BaseRepository[Customer]):
    """Repository for Customer operations"""

    def __init__(self, session: AsyncSession):
        super().__init__(Customer, session)

    async def get_in_organization(
        self,
        customer_id: UUID,
        organization_id: UUID,
        include_deleted: bool = False,
    ) -> Optional[Customer]:
        """Get customer with tenant verification"""
        query = select(Customer).where(
            and_(
                Customer.id == customer_id,
                Customer.organization_id == organization_id,
            )
        )
        if not include_deleted:
            query = query.where(Customer.deleted_at.is_(None))
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def find_by_organization(
        self,
        organization_id: UUID,
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> List[Customer]:
        """Non-deleted customers of a tenant, by name"""
        query = (
            select(Customer)
            .where(Customer.organization_id == organization_id)
            .where(Customer.deleted_at.is_(None))
            .order_by(Customer.name)
            .offset(skip)
        )
        if limit is not None:
            query = query.limit(limit)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def exists_by_name(
        self,
        name: str,
        organization_id: UUID,
        exclude_id: Optional[UUID] = None,
    ) -> bool:
        query = select(Customer.id).where(
            and_(
                Customer.name == name,
                Customer.organization_id == organization_id,
                Customer.deleted_at.is_(None),
            )
        )
        if exclude_id is not None:
            query = query.where(Customer.id != exclude_id)
        result = await self.session.execute(query.limit(1))
        return result.first() is not None

    async def find_by_agreement_status_and_contract_end_before(
        self,
        status: AgreementStatus,
        before: date,
    ) -> List[Customer]:
        """Cross-tenant sweep used by the agreement expiration job"""
        result = await self.session.execute(
            select(Customer)
            .where(Customer.agreement_status == status)
            .where(Customer.contract_end_date.is_not(None))
            .where(Customer.contract_end_date < before)
            .order_by(Customer.contract_end_date)
        )
        return list(result.scalars().all())
