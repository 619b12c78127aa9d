# app/api/dependencies.py
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.audit_log import AuditLogger, audit_logger
from app.db.database import get_db
from app.services.customer_service import CustomerService
from app.services.dashboard_service import DashboardService
from app.services.equipment_service import EquipmentService
from app.services.equipment_type_service import EquipmentTypeService
from app.services.service_recorder import ServiceRecorder
from app.services.site_service import SiteService


async def get_audit_logger() -> AuditLogger:
    """Audit sink shared by request handlers"""
    return audit_logger


async def get_customer_service(
    db: AsyncSession = Depends(get_db),
    audit: AuditLogger = Depends(get_audit_logger),
) -> CustomerService:
    return CustomerService(db, audit)


async def get_site_service(
    db: AsyncSession = Depends(get_db),
    audit: AuditLogger = Depends(get_audit_logger),
) -> SiteService:
    return SiteService(db, audit)


async def get_equipment_service(
    db: AsyncSession = Depends(get_db),
    audit: AuditLogger = Depends(get_audit_logger),
) -> EquipmentService:
    return EquipmentService(db, audit)


async def get_service_recorder(
    db: AsyncSession = Depends(get_db),
    audit: AuditLogger = Depends(get_audit_logger),
) -> ServiceRecorder:
    return ServiceRecorder(db, audit)


async def get_equipment_type_service(
    db: AsyncSession = Depends(get_db),
    audit: AuditLogger = Depends(get_audit_logger),
) -> EquipmentTypeService:
    return EquipmentTypeService(db, audit)


async def get_dashboard_service(db: AsyncSession = Depends(get_db)) -> DashboardService:
    return DashboardService(db)
