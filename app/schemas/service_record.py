# app/schemas/service_record.py
from pydantic import BaseModel, UUID4
from typing import Optional, List
from datetime import datetime
from app.core.constants import ReasonCode


class ServiceRecord(BaseModel):
    id: UUID4
    equipment_id: UUID4
    serviced_by_user_id: UUID4
    serviced_at: datetime
    reason_code: Optional[ReasonCode] = None
    created_at: datetime

    class Config:
        from_attributes = True


class MonthlySummary(BaseModel):
    month: str
    count: int

    class Config:
        from_attributes = True


class EquipmentHistory(BaseModel):
    recent: List[ServiceRecord]
    monthly: List[MonthlySummary]

    class Config:
        from_attributes = True
