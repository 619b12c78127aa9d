# app/workers/jobs.py
"""
Periodic reconciliation jobs.

Both jobs select candidates in a read-only session, then handle each row in
its own session and transaction. The selection predicate is checked again
inside that transaction, so a row changed in between is skipped, and a
failure on one row is logged and counted without touching the others.
Re-running a job with nothing newly eligible is a no-op.
"""
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable, List, Optional
from uuid import UUID

from app.compliance import effective_organization_id, today_utc
from app.core.audit_log import AuditAction, AuditLogger, audit_logger
from app.core.constants import AgreementStatus, ResourceType
from app.core.logging import logger
from app.db.database import unit_of_work
from app.db.repositories.customer_repository import CustomerRepository
from app.db.repositories.equipment_repository import EquipmentRepository
from app.db.repositories.service_record_repository import ServiceRecordRepository


@dataclass
class JobResult:
    selected: int = 0
    processed: int = 0
    skipped: int = 0
    failed: int = 0

    def as_dict(self) -> dict:
        return {
            "selected": self.selected,
            "processed": self.processed,
            "skipped": self.skipped,
            "failed": self.failed,
        }


class _Job:
    name = "job"

    def __init__(self, session_factory: Optional[Callable[[], Any]] = None, audit: Optional[AuditLogger] = None):
        if session_factory is None:
            from app.db.database import async_session_local
            session_factory = async_session_local
        self.session_factory = session_factory
        self.audit = audit or audit_logger

    def _log_extra(self, **extra) -> dict:
        return {"job": self.name, **extra}


class ProvisionalCleanupJob(_Job):
    """
    Hard-deletes provisional equipment whose expiry has passed, with its
    service records.

    This is the only hard-delete path. It cannot be undone: abandoned
    provisional entries carry no history worth keeping.
    """

    name = "provisional_cleanup"

    async def run(self, now: Optional[datetime] = None) -> JobResult:
        now = now or datetime.utcnow()
        result = JobResult()

        async with self.session_factory() as session:
            expired = await EquipmentRepository(session).find_provisional_expired_before(now)
            candidate_ids: List[UUID] = [equipment.id for equipment in expired]

        result.selected = len(candidate_ids)
        logger.info(
            f"Provisional cleanup started: {result.selected} candidates",
            extra=self._log_extra(),
        )

        for equipment_id in candidate_ids:
            try:
                purged = await self._purge(equipment_id, now)
            except Exception:
                result.failed += 1
                logger.exception(
                    f"Failed to purge provisional equipment {equipment_id}",
                    extra=self._log_extra(),
                )
                continue
            if purged:
                result.processed += 1
            else:
                result.skipped += 1

        await self.audit.drain()
        logger.info(f"Provisional cleanup finished: {result.as_dict()}", extra=self._log_extra())
        return result

    async def _purge(self, equipment_id: UUID, now: datetime) -> bool:
        async with self.session_factory() as session:
            equipment_repo = EquipmentRepository(session)
            async with unit_of_work(session):
                equipment = await equipment_repo.get(equipment_id)
                if equipment is None or not equipment.is_provisional_expired(now):
                    return False

                serial_number = equipment.serial_number
                organization_id = effective_organization_id(equipment)
                records = await ServiceRecordRepository(session).delete_by_equipment_id(equipment_id)
                await equipment_repo.hard_delete(equipment_id)

        logger.info(
            f"Purged provisional equipment {equipment_id} ({serial_number}) and {records} service records",
            extra=self._log_extra(organization_id=organization_id),
        )
        self.audit.notify(
            action=AuditAction.EQUIPMENT_PROVISIONAL_PURGED,
            organization_id=organization_id,
            resource_type=ResourceType.EQUIPMENT.value,
            resource_id=equipment_id,
            details=f"Expired provisional equipment '{serial_number}' removed",
        )
        return True


class AgreementExpirationJob(_Job):
    """
    Moves customers from covered to pending once their contract end date has
    passed. The contract end date is left as is and nothing cascades; linked
    equipment turns RED through the status calculation on its next read.
    """

    name = "agreement_expiration"

    async def run(self, today: Optional[date] = None) -> JobResult:
        today = today or today_utc()
        result = JobResult()

        async with self.session_factory() as session:
            lapsed = await CustomerRepository(session).find_by_agreement_status_and_contract_end_before(
                AgreementStatus.COVERED, today
            )
            candidate_ids: List[UUID] = [customer.id for customer in lapsed]

        result.selected = len(candidate_ids)
        logger.info(
            f"Agreement expiration started: {result.selected} candidates",
            extra=self._log_extra(),
        )

        for customer_id in candidate_ids:
            try:
                expired = await self._expire(customer_id, today)
            except Exception:
                result.failed += 1
                logger.exception(
                    f"Failed to expire agreement of customer {customer_id}",
                    extra=self._log_extra(),
                )
                continue
            if expired:
                result.processed += 1
            else:
                result.skipped += 1

        await self.audit.drain()
        logger.info(f"Agreement expiration finished: {result.as_dict()}", extra=self._log_extra())
        return result

    async def _expire(self, customer_id: UUID, today: date) -> bool:
        async with self.session_factory() as session:
            customers = CustomerRepository(session)
            async with unit_of_work(session):
                customer = await customers.get(customer_id)
                if (
                    customer is None
                    or customer.agreement_status != AgreementStatus.COVERED
                    or not customer.is_contract_expired(today)
                ):
                    return False
                customer.agreement_status = AgreementStatus.PENDING
                await customers.save(customer)

        logger.info(
            f"Customer {customer_id} ({customer.name}) moved to pending, contract ended {customer.contract_end_date}",
            extra=self._log_extra(organization_id=customer.organization_id),
        )
        self.audit.notify(
            action=AuditAction.CUSTOMER_AGREEMENT_EXPIRED,
            organization_id=customer.organization_id,
            resource_type=ResourceType.CUSTOMER.value,
            resource_id=customer_id,
            details=f"Contract ended {customer.contract_end_date}, agreement set to pending",
        )
        return True
