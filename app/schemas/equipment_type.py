# app/schemas/equipment_type.py
from pydantic import BaseModel, UUID4, Field
from typing import Optional, List
from datetime import datetime


class EquipmentTypeBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None


class EquipmentTypeCreate(EquipmentTypeBase):
    display_order: Optional[int] = Field(None, ge=0)


class EquipmentTypeUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    display_order: Optional[int] = Field(None, ge=0)
    active: Optional[bool] = None


class EquipmentTypeReorder(BaseModel):
    ordered_ids: List[UUID4]


class EquipmentType(EquipmentTypeBase):
    id: UUID4
    organization_id: UUID4
    display_order: int
    active: bool
    created_at: datetime

    class Config:
        from_attributes = True
