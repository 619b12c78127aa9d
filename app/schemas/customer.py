# app/schemas/customer.py
from pydantic import BaseModel, UUID4, Field
from typing import Optional
from datetime import date, datetime
from app.core.constants import AgreementStatus


class CustomerBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    agreement_status: AgreementStatus = AgreementStatus.COVERED
    contract_end_date: Optional[date] = None


class CustomerCreate(CustomerBase):
    pass


class CustomerUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    agreement_status: Optional[AgreementStatus] = None
    contract_end_date: Optional[date] = None


class CustomerInDB(CustomerBase):
    id: UUID4
    organization_id: UUID4
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class Customer(CustomerInDB):
    pass


class CustomerDeleted(BaseModel):
    id: UUID4
    affected_sites: int
