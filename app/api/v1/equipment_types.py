# app/api/v1/equipment_types.py
from fastapi import APIRouter, Depends, status
from typing import List
from uuid import UUID

from app.api.dependencies import get_equipment_type_service
from app.core.tenant import require_tenant, require_user
from app.schemas.equipment_type import (
    EquipmentType,
    EquipmentTypeCreate,
    EquipmentTypeReorder,
    EquipmentTypeUpdate,
)
from app.services.equipment_type_service import EquipmentTypeService

router = APIRouter()


@router.post("/", response_model=EquipmentType, status_code=status.HTTP_201_CREATED)
async def create_equipment_type(
    type_in: EquipmentTypeCreate,
    organization_id: UUID = Depends(require_tenant),
    user_id: UUID = Depends(require_user),
    service: EquipmentTypeService = Depends(get_equipment_type_service),
):
    return await service.create(
        organization_id,
        name=type_in.name,
        description=type_in.description,
        display_order=type_in.display_order,
        user_id=user_id,
    )


@router.get("/", response_model=List[EquipmentType])
async def list_equipment_types(
    active_only: bool = False,
    organization_id: UUID = Depends(require_tenant),
    service: EquipmentTypeService = Depends(get_equipment_type_service),
):
    """Catalog in display order"""
    return await service.list(organization_id, active_only=active_only)


@router.put("/reorder", response_model=List[EquipmentType])
async def reorder_equipment_types(
    request: EquipmentTypeReorder,
    organization_id: UUID = Depends(require_tenant),
    user_id: UUID = Depends(require_user),
    service: EquipmentTypeService = Depends(get_equipment_type_service),
):
    return await service.reorder(request.ordered_ids, organization_id, user_id)


@router.get("/{type_id}", response_model=EquipmentType)
async def get_equipment_type(
    type_id: UUID,
    organization_id: UUID = Depends(require_tenant),
    service: EquipmentTypeService = Depends(get_equipment_type_service),
):
    return await service.get(type_id, organization_id)


@router.put("/{type_id}", response_model=EquipmentType)
async def update_equipment_type(
    type_id: UUID,
    type_in: EquipmentTypeUpdate,
    organization_id: UUID = Depends(require_tenant),
    user_id: UUID = Depends(require_user),
    service: EquipmentTypeService = Depends(get_equipment_type_service),
):
    return await service.update(
        type_id, organization_id, type_in.model_dump(exclude_unset=True), user_id
    )


@router.delete("/{type_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_equipment_type(
    type_id: UUID,
    organization_id: UUID = Depends(require_tenant),
    user_id: UUID = Depends(require_user),
    service: EquipmentTypeService = Depends(get_equipment_type_service),
):
    """Delete for good; equipment of this type keeps existing without a type"""
    await service.delete(type_id, organization_id, user_id)
