# app/api/v1/customers.py
from fastapi import APIRouter, Depends, status
from typing import List, Optional
from uuid import UUID

from app.api.dependencies import get_customer_service
from app.core.tenant import require_tenant, require_user
from app.schemas.customer import Customer, CustomerCreate, CustomerUpdate, CustomerDeleted
from app.services.customer_service import CustomerService

router = APIRouter()


@router.post("/", response_model=Customer, status_code=status.HTTP_201_CREATED)
async def create_customer(
    customer_in: CustomerCreate,
    organization_id: UUID = Depends(require_tenant),
    user_id: UUID = Depends(require_user),
    service: CustomerService = Depends(get_customer_service),
):
    """Create a customer"""
    return await service.create(
        organization_id,
        name=customer_in.name,
        agreement_status=customer_in.agreement_status,
        contract_end_date=customer_in.contract_end_date,
        user_id=user_id,
    )


@router.get("/", response_model=List[Customer])
async def list_customers(
    skip: int = 0,
    limit: Optional[int] = 100,
    organization_id: UUID = Depends(require_tenant),
    service: CustomerService = Depends(get_customer_service),
):
    """List customers of the current tenant"""
    return await service.list(organization_id, skip=skip, limit=limit)


@router.get("/{customer_id}", response_model=Customer)
async def get_customer(
    customer_id: UUID,
    organization_id: UUID = Depends(require_tenant),
    service: CustomerService = Depends(get_customer_service),
):
    return await service.get(customer_id, organization_id)


@router.put("/{customer_id}", response_model=Customer)
async def update_customer(
    customer_id: UUID,
    customer_in: CustomerUpdate,
    organization_id: UUID = Depends(require_tenant),
    user_id: UUID = Depends(require_user),
    service: CustomerService = Depends(get_customer_service),
):
    """Partially update a customer; an explicit null clears the contract end date"""
    return await service.update(
        customer_id,
        organization_id,
        user_id=user_id,
        **customer_in.model_dump(exclude_unset=True),
    )


@router.delete("/{customer_id}", response_model=CustomerDeleted)
async def delete_customer(
    customer_id: UUID,
    organization_id: UUID = Depends(require_tenant),
    user_id: UUID = Depends(require_user),
    service: CustomerService = Depends(get_customer_service),
):
    """Soft-delete a customer and its sites; their equipment is orphaned"""
    affected = await service.delete(customer_id, organization_id, user_id)
    return CustomerDeleted(id=customer_id, affected_sites=affected)


@router.post("/{customer_id}/restore", response_model=Customer)
async def restore_customer(
    customer_id: UUID,
    organization_id: UUID = Depends(require_tenant),
    user_id: UUID = Depends(require_user),
    service: CustomerService = Depends(get_customer_service),
):
    return await service.restore(customer_id, organization_id, user_id)
