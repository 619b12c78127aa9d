# app/api/v1/equipment.py
from fastapi import APIRouter, Depends, Query, status
from typing import List, Optional
from datetime import date
from uuid import UUID

from app.api.dependencies import get_equipment_service, get_service_recorder
from app.core.constants import AgreementStatus, LifecycleStatus, ServiceCycle
from app.core.tenant import require_tenant, require_user
from app.schemas.equipment import (
    BulkDeleteRequest,
    BulkOperationResult,
    BulkUpdateCycleRequest,
    BulkUpdateStatusRequest,
    Equipment,
    EquipmentCreate,
    EquipmentUpdate,
    MarkServicedRequest,
    OrphanedCount,
)
from app.schemas.service_record import EquipmentHistory, ServiceRecord
from app.services.equipment_service import EquipmentService
from app.services.service_recorder import ServiceRecorder

router = APIRouter()


@router.post("/", response_model=Equipment, status_code=status.HTTP_201_CREATED)
async def create_equipment(
    equipment_in: EquipmentCreate,
    organization_id: UUID = Depends(require_tenant),
    user_id: UUID = Depends(require_user),
    service: EquipmentService = Depends(get_equipment_service),
):
    """Register equipment; an explicit next service date is pinned"""
    return await service.create(organization_id, user_id=user_id, **equipment_in.model_dump())


@router.get("/", response_model=List[Equipment])
async def list_equipment(
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
    limit: Optional[int] = 100,
    organization_id: UUID = Depends(require_tenant),
    service: EquipmentService = Depends(get_equipment_service),
):
    """List live equipment of the current tenant with optional filters"""
    return await service.list(
        organization_id,
        agreement_status=agreement_status,
        service_cycle=service_cycle,
        lifecycle_status=lifecycle_status,
        next_service_from=next_service_from,
        next_service_to=next_service_to,
        search=search,
        customer_id=customer_id,
        site_id=site_id,
        equipment_type_id=equipment_type_id,
        skip=skip,
        limit=limit,
    )


@router.get("/orphaned", response_model=List[Equipment])
async def list_orphaned_equipment(
    skip: int = 0,
    limit: Optional[int] = 100,
    organization_id: UUID = Depends(require_tenant),
    service: EquipmentService = Depends(get_equipment_service),
):
    """Equipment left without a site after a site or customer deletion"""
    return await service.list_orphaned(organization_id, skip=skip, limit=limit)


@router.get("/orphaned/count", response_model=OrphanedCount)
async def count_orphaned_equipment(
    organization_id: UUID = Depends(require_tenant),
    service: EquipmentService = Depends(get_equipment_service),
):
    return OrphanedCount(count=await service.count_orphaned(organization_id))


@router.get("/lookup", response_model=Equipment)
async def lookup_equipment(
    q: str = Query(..., min_length=1),
    organization_id: UUID = Depends(require_tenant),
    service: EquipmentService = Depends(get_equipment_service),
):
    """Resolve a scanned serial number, asset id or QR code"""
    return await service.lookup(q, organization_id)


@router.post("/bulk/delete", response_model=BulkOperationResult)
async def bulk_delete_equipment(
    request: BulkDeleteRequest,
    organization_id: UUID = Depends(require_tenant),
    user_id: UUID = Depends(require_user),
    service: EquipmentService = Depends(get_equipment_service),
):
    return await service.bulk_delete(request.ids, organization_id, user_id)


@router.post("/bulk/status", response_model=BulkOperationResult)
async def bulk_update_equipment_status(
    request: BulkUpdateStatusRequest,
    organization_id: UUID = Depends(require_tenant),
    user_id: UUID = Depends(require_user),
    service: EquipmentService = Depends(get_equipment_service),
):
    return await service.bulk_update_status(
        request.ids, organization_id, request.agreement_status, user_id
    )


@router.post("/bulk/cycle", response_model=BulkOperationResult)
async def bulk_update_equipment_cycle(
    request: BulkUpdateCycleRequest,
    organization_id: UUID = Depends(require_tenant),
    user_id: UUID = Depends(require_user),
    service: EquipmentService = Depends(get_equipment_service),
):
    return await service.bulk_update_cycle(
        request.ids, organization_id, request.service_cycle, user_id
    )


@router.get("/{equipment_id}", response_model=Equipment)
async def get_equipment(
    equipment_id: UUID,
    organization_id: UUID = Depends(require_tenant),
    service: EquipmentService = Depends(get_equipment_service),
):
    """Get equipment with its current stoplight status"""
    return await service.get(equipment_id, organization_id)


@router.put("/{equipment_id}", response_model=Equipment)
async def update_equipment(
    equipment_id: UUID,
    equipment_in: EquipmentUpdate,
    organization_id: UUID = Depends(require_tenant),
    user_id: UUID = Depends(require_user),
    service: EquipmentService = Depends(get_equipment_service),
):
    """Partially update equipment; only fields present in the body change"""
    return await service.update(
        equipment_id,
        organization_id,
        equipment_in.model_dump(exclude_unset=True),
        user_id,
    )


@router.delete("/{equipment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_equipment(
    equipment_id: UUID,
    organization_id: UUID = Depends(require_tenant),
    user_id: UUID = Depends(require_user),
    service: EquipmentService = Depends(get_equipment_service),
):
    await service.delete(equipment_id, organization_id, user_id)


@router.post("/{equipment_id}/restore", response_model=Equipment)
async def restore_equipment(
    equipment_id: UUID,
    organization_id: UUID = Depends(require_tenant),
    user_id: UUID = Depends(require_user),
    service: EquipmentService = Depends(get_equipment_service),
):
    return await service.restore(equipment_id, organization_id, user_id)


@router.post("/{equipment_id}/service", response_model=ServiceRecord, status_code=status.HTTP_201_CREATED)
async def mark_equipment_serviced(
    equipment_id: UUID,
    request: Optional[MarkServicedRequest] = None,
    organization_id: UUID = Depends(require_tenant),
    user_id: UUID = Depends(require_user),
    recorder: ServiceRecorder = Depends(get_service_recorder),
):
    """Record a service; RED equipment requires a reason code"""
    reason_code = request.reason_code if request else None
    return await recorder.mark_serviced(equipment_id, organization_id, user_id, reason_code)


@router.get("/{equipment_id}/history", response_model=EquipmentHistory)
async def get_equipment_history(
    equipment_id: UUID,
    organization_id: UUID = Depends(require_tenant),
    service: EquipmentService = Depends(get_equipment_service),
):
    """Last year of services in detail, older ones counted per month"""
    history = await service.history(equipment_id, organization_id)
    return EquipmentHistory.model_validate(history)
