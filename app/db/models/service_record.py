# app/db/models/service_record.py
from datetime import datetime
import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from app.core.constants import ReasonCode
from app.db.base import Base, enum_column_type


class ServiceRecord(Base):
    """
    One service event on one equipment.

    Immutable: rows are only ever inserted, and removed only together with
    their equipment when the provisional cleanup hard-deletes it.
    """
    __tablename__ = "service_records"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    equipment_id = Column(Uuid, ForeignKey("equipment.id"), nullable=False, index=True)
    serviced_by_user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    serviced_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    reason_code = Column(enum_column_type(ReasonCode, "service_reason_code"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    serviced_by = relationship("User", lazy="joined")
