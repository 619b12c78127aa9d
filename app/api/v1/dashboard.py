# app/api/v1/dashboard.py
from fastapi import APIRouter, Depends
from uuid import UUID

from app.api.dependencies import get_dashboard_service
from app.core.tenant import require_tenant
from app.schemas.dashboard import DashboardSummary
from app.services.dashboard_service import DashboardService

router = APIRouter()


@router.get("/summary", response_model=DashboardSummary)
async def get_dashboard_summary(
    organization_id: UUID = Depends(require_tenant),
    service: DashboardService = Depends(get_dashboard_service),
):
    """Stoplight counts and compliance percentage of the current tenant"""
    return await service.summary(organization_id)
