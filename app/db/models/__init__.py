# app/db/models/__init__.py
from app.db.models.organization import Organization
from app.db.models.user import User
from app.db.models.customer import Customer
from app.db.models.site import Site
from app.db.models.equipment_type import EquipmentType
from app.db.models.equipment import Equipment
from app.db.models.service_record import ServiceRecord
from app.db.models.audit_log import AuditLog

__all__ = [
    "Organization",
    "User",
    "Customer",
    "Site",
    "EquipmentType",
    "Equipment",
    "ServiceRecord",
    "AuditLog",
]
