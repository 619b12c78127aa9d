# app/services/customer_service.py
from datetime import date
from typing import List, Optional
from uuid import UUID
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.audit_log import AuditAction, AuditLogger, audit_logger
from app.core.constants import AgreementStatus, ResourceType
from app.core.exceptions import BusinessRuleError, NotFoundError
from app.db.database import unit_of_work
from app.db.models.customer import Customer
from app.db.repositories.customer_repository import CustomerRepository
from app.services.cascade_service import CascadeCoordinator

logger = logging.getLogger(__name__)

_UNSET = object()


class CustomerService:
    """Customer CRUD; deletion and restore go through the cascade coordinator"""

    def __init__(self, session: AsyncSession, audit: Optional[AuditLogger] = None):
        self.session = session
        self.audit = audit or audit_logger
        self.customers = CustomerRepository(session)
        self.cascade = CascadeCoordinator(session, self.audit)

    async def create(
        self,
        organization_id: UUID,
        name: str,
        agreement_status: AgreementStatus = AgreementStatus.COVERED,
        contract_end_date: Optional[date] = None,
        user_id: Optional[UUID] = None,
    ) -> Customer:
        async with unit_of_work(self.session):
            if await self.customers.exists_by_name(name, organization_id):
                raise BusinessRuleError(f"Customer with name '{name}' already exists")
            customer = await self.customers.save(Customer(
                organization_id=organization_id,
                name=name,
                agreement_status=agreement_status,
                contract_end_date=contract_end_date,
            ))

        self.audit.notify(
            action=AuditAction.CUSTOMER_CREATED,
            organization_id=organization_id,
            user_id=user_id,
            resource_type=ResourceType.CUSTOMER.value,
            resource_id=customer.id,
            details=f"Created customer '{name}'",
        )
        return customer

    async def update(
        self,
        customer_id: UUID,
        organization_id: UUID,
        name: Optional[str] = None,
        agreement_status: Optional[AgreementStatus] = None,
        contract_end_date=_UNSET,
        user_id: Optional[UUID] = None,
    ) -> Customer:
        """Partial update; pass ``contract_end_date=None`` to clear the date"""
        async with unit_of_work(self.session):
            customer = await self.get(customer_id, organization_id)

            if name is not None and name != customer.name:
                if await self.customers.exists_by_name(name, organization_id, exclude_id=customer.id):
                    raise BusinessRuleError(f"Customer with name '{name}' already exists")
                customer.name = name
            if agreement_status is not None:
                customer.agreement_status = agreement_status
            if contract_end_date is not _UNSET:
                customer.contract_end_date = contract_end_date
            await self.customers.save(customer)

        self.audit.notify(
            action=AuditAction.CUSTOMER_UPDATED,
            organization_id=organization_id,
            user_id=user_id,
            resource_type=ResourceType.CUSTOMER.value,
            resource_id=customer.id,
            details=f"Updated customer '{customer.name}'",
        )
        return customer

    async def get(self, customer_id: UUID, organization_id: UUID) -> Customer:
        customer = await self.customers.get_in_organization(customer_id, organization_id)
        if customer is None:
            raise NotFoundError("Customer")
        return customer

    async def list(self, organization_id: UUID, skip: int = 0, limit: Optional[int] = None) -> List[Customer]:
        return await self.customers.find_by_organization(organization_id, skip=skip, limit=limit)

    async def delete(self, customer_id: UUID, organization_id: UUID, user_id: Optional[UUID] = None) -> int:
        return await self.cascade.delete_customer(customer_id, organization_id, user_id)

    async def restore(self, customer_id: UUID, organization_id: UUID, user_id: Optional[UUID] = None) -> Customer:
        return await self.cascade.restore_customer(customer_id, organization_id, user_id)
