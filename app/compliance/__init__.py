from app.compliance.status import (
    PENDING_AGREEMENT_STATUS,
    WARNING_DAYS_THRESHOLD,
    calculate_status,
    effective_agreement_status,
    is_overdue,
    is_red,
    is_warning,
    today_utc,
)
from app.compliance.lifecycle import (
    Active,
    Deleted,
    Owned,
    SitedOwned,
    deletion_state,
    effective_organization_id,
    ownership_of,
)
from app.compliance.cycles import add_months, next_service_date

__all__ = [
    "PENDING_AGREEMENT_STATUS",
    "WARNING_DAYS_THRESHOLD",
    "calculate_status",
    "effective_agreement_status",
    "is_overdue",
    "is_red",
    "is_warning",
    "today_utc",
    "Active",
    "Deleted",
    "Owned",
    "SitedOwned",
    "deletion_state",
    "effective_organization_id",
    "ownership_of",
    "add_months",
    "next_service_date",
]
