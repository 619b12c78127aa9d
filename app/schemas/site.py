# app/schemas/site.py
from pydantic import BaseModel, UUID4, Field, AliasChoices
from typing import Optional, Dict, Any
from datetime import datetime


class SiteBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    address: Optional[str] = None
    contact_name: Optional[str] = None
    contact_phone: Optional[str] = None


class SiteCreate(SiteBase):
    customer_id: UUID4
    metadata: Dict[str, Any] = {}


class SiteUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    customer_id: Optional[UUID4] = None
    address: Optional[str] = None
    contact_name: Optional[str] = None
    contact_phone: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class SiteInDB(SiteBase):
    id: UUID4
    customer_id: UUID4
    # Stored in the `meta` attribute; `metadata` is taken by SQLAlchemy
    metadata: Dict[str, Any] = Field(
        default_factory=dict, validation_alias=AliasChoices("meta", "metadata")
    )
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class Site(SiteInDB):
    pass


class SiteDeleted(BaseModel):
    id: UUID4
    orphaned_equipment: int
