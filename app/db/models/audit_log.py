# app/db/models/audit_log.py
from sqlalchemy import Column, String, Text, Uuid
from app.db.base import BaseModel


class AuditLog(BaseModel):
    """Append-only trail of mutating actions"""
    __tablename__ = "audit_logs"

    organization_id = Column(Uuid, nullable=True, index=True)
    user_id = Column(Uuid, nullable=True, index=True)

    # Action details
    action = Column(String(100), nullable=False, index=True)
    resource_type = Column(String(50), nullable=True)
    resource_id = Column(String(100), nullable=True)
    details = Column(Text, nullable=True)
