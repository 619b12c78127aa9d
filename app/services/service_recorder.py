# app/services/service_recorder.py
"""
Service Recorder

Records a service event on one equipment. The stoplight status is computed
before anything changes: a RED item may only be serviced with a reason code.
On success the item's last service moves to now and, unless the next service
date is pinned by the override flag, the next service is rescheduled one
service cycle after today.
"""
from datetime import datetime
from typing import Optional
from uuid import UUID
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.compliance import calculate_status, next_service_date
from app.core.audit_log import AuditAction, AuditLogger, audit_logger
from app.core.constants import ReasonCode, ResourceType, StoplightStatus
from app.core.exceptions import BusinessRuleError, NotFoundError
from app.db.database import unit_of_work
from app.db.models.service_record import ServiceRecord
from app.db.repositories.equipment_repository import EquipmentRepository
from app.db.repositories.service_record_repository import ServiceRecordRepository
from app.db.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)


class ServiceRecorder:

    def __init__(self, session: AsyncSession, audit: Optional[AuditLogger] = None):
        self.session = session
        self.audit = audit or audit_logger
        self.equipment = EquipmentRepository(session)
        self.records = ServiceRecordRepository(session)
        self.users = UserRepository(session)

    async def mark_serviced(
        self,
        equipment_id: UUID,
        organization_id: UUID,
        user_id: UUID,
        reason_code: Optional[ReasonCode] = None,
        now: Optional[datetime] = None,
    ) -> ServiceRecord:
        """
        Record a service on live equipment of the tenant.

        Raises:
            NotFoundError: equipment or user absent, deleted, or in another tenant
            BusinessRuleError: the equipment is RED and no reason code was given
        """
        now = now or datetime.utcnow()
        today = now.date()

        async with unit_of_work(self.session):
            equipment = await self.equipment.get_in_organization(equipment_id, organization_id)
            if equipment is None:
                raise NotFoundError("Equipment")

            user = await self.users.get_in_organization(user_id, organization_id)
            if user is None:
                raise NotFoundError("User")

            status = calculate_status(equipment, today)
            if status == StoplightStatus.RED and reason_code is None:
                raise BusinessRuleError(
                    "A reason code is required to service equipment in RED status"
                )

            record = ServiceRecord(
                equipment_id=equipment.id,
                serviced_by_user_id=user.id,
                serviced_at=now,
                reason_code=reason_code,
                created_at=now,
            )
            await self.records.save(record)

            equipment.last_service = now
            if not equipment.next_service_override:
                equipment.next_service = next_service_date(equipment.service_cycle, today)
            await self.equipment.save(equipment)

        logger.info(
            f"Equipment {equipment_id} serviced (status before: {status.value})",
            extra={"organization_id": str(organization_id), "user_id": str(user_id)},
        )
        self.audit.notify(
            action=AuditAction.EQUIPMENT_SERVICED,
            organization_id=organization_id,
            user_id=user_id,
            resource_type=ResourceType.EQUIPMENT.value,
            resource_id=equipment_id,
            details=(
                f"Serviced equipment '{equipment.serial_number}'"
                + (f" with reason {reason_code.value}" if reason_code else "")
            ),
        )
        return record
