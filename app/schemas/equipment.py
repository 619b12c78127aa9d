# app/schemas/equipment.py
from pydantic import BaseModel, UUID4, Field, field_validator
from typing import Optional, List
from datetime import date, datetime, timezone
from app.core.constants import (
    AgreementStatus,
    LifecycleStatus,
    ReasonCode,
    ServiceCycle,
    StoplightStatus,
)


def _to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    # Timestamps are stored without a zone and compared against utcnow()
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class EquipmentBase(BaseModel):
    serial_number: str = Field(..., min_length=1, max_length=255)
    service_cycle: ServiceCycle
    agreement_status: AgreementStatus = AgreementStatus.COVERED
    lifecycle_status: LifecycleStatus = LifecycleStatus.ACTIVE
    cust_asset_id: Optional[str] = Field(None, max_length=255)
    site_id: Optional[UUID4] = None
    equipment_type_id: Optional[UUID4] = None
    next_service: Optional[date] = None


class EquipmentCreate(EquipmentBase):
    qr_code_value: Optional[str] = Field(None, max_length=255)
    provisional: bool = False
    provisional_expires_at: Optional[datetime] = None

    @field_validator("provisional_expires_at")
    @classmethod
    def normalize_expiry(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _to_naive_utc(value)


class EquipmentUpdate(BaseModel):
    serial_number: Optional[str] = Field(None, min_length=1, max_length=255)
    cust_asset_id: Optional[str] = Field(None, max_length=255)
    qr_code_value: Optional[str] = Field(None, max_length=255)
    agreement_status: Optional[AgreementStatus] = None
    lifecycle_status: Optional[LifecycleStatus] = None
    service_cycle: Optional[ServiceCycle] = None
    next_service: Optional[date] = None
    next_service_override: Optional[bool] = None
    site_id: Optional[UUID4] = None
    equipment_type_id: Optional[UUID4] = None
    provisional: Optional[bool] = None
    provisional_expires_at: Optional[datetime] = None

    @field_validator("provisional_expires_at")
    @classmethod
    def normalize_expiry(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _to_naive_utc(value)


class EquipmentInDB(EquipmentBase):
    id: UUID4
    organization_id: Optional[UUID4]
    qr_code_value: Optional[str]
    last_service: Optional[datetime]
    next_service_override: bool
    provisional: bool
    provisional_expires_at: Optional[datetime]
    predecessor_id: Optional[UUID4]
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class Equipment(EquipmentInDB):
    stoplight_status: StoplightStatus
    effective_agreement_status: AgreementStatus
    is_orphaned: bool


class MarkServicedRequest(BaseModel):
    reason_code: Optional[ReasonCode] = None


class BulkDeleteRequest(BaseModel):
    ids: List[UUID4] = Field(..., min_length=1)


class BulkUpdateStatusRequest(BaseModel):
    ids: List[UUID4] = Field(..., min_length=1)
    agreement_status: str


class BulkUpdateCycleRequest(BaseModel):
    ids: List[UUID4] = Field(..., min_length=1)
    service_cycle: str


class BulkOperationResult(BaseModel):
    success_count: int
    failure_count: int
    message: str

    class Config:
        from_attributes = True


class OrphanedCount(BaseModel):
    count: int
