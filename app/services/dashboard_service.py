# app/services/dashboard_service.py
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.compliance import WARNING_DAYS_THRESHOLD, calculate_status, today_utc
from app.core.constants import StoplightStatus
from app.db.repositories.equipment_repository import EquipmentRepository


@dataclass
class DashboardSummary:
    total_equipment: int
    green_count: int
    yellow_count: int
    red_count: int
    overdue_count: int
    warning_count: int
    compliance_percentage: float


class DashboardService:
    """Compliance summary of one organization's live equipment"""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.equipment = EquipmentRepository(session)

    async def summary(self, organization_id: UUID, today: Optional[date] = None) -> DashboardSummary:
        today = today or today_utc()
        warning_until = today + timedelta(days=WARNING_DAYS_THRESHOLD)

        items = await self.equipment.find_by_organization(organization_id)

        counts = {status: 0 for status in StoplightStatus}
        overdue = 0
        warning = 0
        for equipment in items:
            counts[calculate_status(equipment, today)] += 1
            if equipment.next_service is None:
                continue
            if equipment.next_service < today:
                overdue += 1
            elif equipment.next_service <= warning_until:
                warning += 1

        total = len(items)
        compliance = round(counts[StoplightStatus.GREEN] * 100.0 / total, 2) if total else 100.0

        return DashboardSummary(
            total_equipment=total,
            green_count=counts[StoplightStatus.GREEN],
            yellow_count=counts[StoplightStatus.YELLOW],
            red_count=counts[StoplightStatus.RED],
            overdue_count=overdue,
            warning_count=warning,
            compliance_percentage=compliance,
        )
