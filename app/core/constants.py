# app/core/constants.py
from enum import Enum


class AgreementStatus(str, Enum):
    COVERED = "covered"
    PENDING = "pending"
    OUT_OF_SCOPE = "out_of_scope"


class StoplightStatus(str, Enum):
    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"


class ServiceCycle(str, Enum):
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    SEMESTERLY = "semesterly"
    ANNUALLY = "annually"

    @property
    def months(self) -> int:
        return SERVICE_CYCLE_MONTHS[self]


# Calendar period of each cycle
SERVICE_CYCLE_MONTHS = {
    ServiceCycle.MONTHLY: 1,
    ServiceCycle.QUARTERLY: 3,
    ServiceCycle.SEMESTERLY: 6,
    ServiceCycle.ANNUALLY: 12,
}


class LifecycleStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    RETIRED = "retired"


class ReasonCode(str, Enum):
    EMERGENCY = "emergency"
    CUSTOMER_REQUEST = "customer_request"
    TECHNICIAN_DISCRETION = "technician_discretion"
    OTHER = "other"


class UserRole(str, Enum):
    TECHNICIAN = "technician"
    MANAGER = "manager"
    ADMIN = "admin"


class ResourceType(str, Enum):
    CUSTOMER = "Customer"
    SITE = "Site"
    EQUIPMENT = "Equipment"
    EQUIPMENT_TYPE = "EquipmentType"


# Headers carrying the caller's tenant and acting user
TENANT_HEADER = "X-Tenant-ID"
USER_HEADER = "X-User-ID"

# Service history: records newer than this are listed individually
HISTORY_DETAIL_DAYS = 365
