# app/compliance/status.py
"""
Stoplight status calculation.

Rules, evaluated in order:
    1. soft-deleted                         -> RED
    2. effective agreement out of scope     -> RED
    3. effective agreement pending          -> PENDING_AGREEMENT_STATUS
    4. next service before today (overdue)  -> RED
    5. next service within warning window   -> YELLOW (boundary inclusive)
    6. otherwise                            -> GREEN

The effective agreement is the linked customer's when the equipment sits at a
site, else the equipment's own field. Nothing here touches the database; the
equipment's site and customer must already be loaded.
"""
from datetime import date, datetime, timedelta
from typing import Optional

from app.core.config import settings
from app.core.constants import AgreementStatus, StoplightStatus

WARNING_DAYS_THRESHOLD = settings.STATUS_WARNING_DAYS

# Single switch for how a pending agreement shows up on the stoplight.
PENDING_AGREEMENT_STATUS = StoplightStatus.RED


def today_utc() -> date:
    return datetime.utcnow().date()


def effective_agreement_status(equipment) -> AgreementStatus:
    site = equipment.site
    if site is not None and site.customer is not None:
        return site.customer.agreement_status
    return equipment.agreement_status


def _agreement_override(agreement_status: AgreementStatus) -> Optional[StoplightStatus]:
    if agreement_status == AgreementStatus.OUT_OF_SCOPE:
        return StoplightStatus.RED
    if agreement_status == AgreementStatus.PENDING:
        return PENDING_AGREEMENT_STATUS
    if agreement_status == AgreementStatus.COVERED:
        return None
    raise ValueError(f"Unhandled agreement status: {agreement_status!r}")


def calculate_status(
    equipment,
    today: Optional[date] = None,
    warning_days: int = WARNING_DAYS_THRESHOLD,
) -> StoplightStatus:
    """Compute the stoplight status of one equipment snapshot"""
    if today is None:
        today = today_utc()

    if equipment.is_deleted:
        return StoplightStatus.RED

    override = _agreement_override(effective_agreement_status(equipment))
    if override is not None:
        return override

    next_service = equipment.next_service
    if next_service is None:
        return StoplightStatus.GREEN

    if next_service < today:
        return StoplightStatus.RED

    if next_service <= today + timedelta(days=warning_days):
        return StoplightStatus.YELLOW

    return StoplightStatus.GREEN


def is_overdue(equipment, today: Optional[date] = None) -> bool:
    today = today or today_utc()
    return equipment.next_service is not None and equipment.next_service < today


def is_warning(equipment, today: Optional[date] = None) -> bool:
    return calculate_status(equipment, today) is StoplightStatus.YELLOW


def is_red(equipment, today: Optional[date] = None) -> bool:
    return calculate_status(equipment, today) is StoplightStatus.RED
