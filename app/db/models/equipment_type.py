# app/db/models/equipment_type.py
from sqlalchemy import Column, String, Boolean, ForeignKey, Integer, Text, UniqueConstraint, Uuid
from app.db.base import BaseModel


class EquipmentType(BaseModel):
    """Per-organization catalog entry, ordered for display"""
    __tablename__ = "equipment_types"
    __table_args__ = (
        UniqueConstraint("organization_id", "name", name="uq_equipment_types_org_name"),
    )

    organization_id = Column(Uuid, ForeignKey("organizations.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    display_order = Column(Integer, default=0, nullable=False)
    active = Column(Boolean, default=True, nullable=False)
