# app/core/audit_log.py
"""
Audit trail for mutating actions.

Services call ``notify`` once their transaction has committed. The write
happens in a separate session on a background task, so a failing audit insert
never affects the business operation that triggered it.
"""
from enum import Enum
from typing import Any, Callable, Optional, Set
from uuid import UUID
import asyncio
import logging

from app.db.repositories.audit_log_repository import AuditLogRepository

logger = logging.getLogger(__name__)


class AuditAction(str, Enum):
    CUSTOMER_CREATED = "CUSTOMER_CREATED"
    CUSTOMER_UPDATED = "CUSTOMER_UPDATED"
    CUSTOMER_DELETED = "CUSTOMER_DELETED"
    CUSTOMER_RESTORED = "CUSTOMER_RESTORED"
    CUSTOMER_AGREEMENT_EXPIRED = "CUSTOMER_AGREEMENT_EXPIRED"

    SITE_CREATED = "SITE_CREATED"
    SITE_UPDATED = "SITE_UPDATED"
    SITE_DELETED = "SITE_DELETED"
    SITE_RESTORED = "SITE_RESTORED"

    EQUIPMENT_CREATED = "EQUIPMENT_CREATED"
    EQUIPMENT_UPDATED = "EQUIPMENT_UPDATED"
    EQUIPMENT_DELETED = "EQUIPMENT_DELETED"
    EQUIPMENT_RESTORED = "EQUIPMENT_RESTORED"
    EQUIPMENT_SERVICED = "EQUIPMENT_SERVICED"
    EQUIPMENT_REPLACED = "EQUIPMENT_REPLACED"
    EQUIPMENT_BULK_DELETE = "EQUIPMENT_BULK_DELETE"
    EQUIPMENT_BULK_UPDATE_STATUS = "EQUIPMENT_BULK_UPDATE_STATUS"
    EQUIPMENT_BULK_UPDATE_CYCLE = "EQUIPMENT_BULK_UPDATE_CYCLE"
    EQUIPMENT_PROVISIONAL_PURGED = "EQUIPMENT_PROVISIONAL_PURGED"

    EQUIPMENT_TYPE_CREATED = "EQUIPMENT_TYPE_CREATED"
    EQUIPMENT_TYPE_UPDATED = "EQUIPMENT_TYPE_UPDATED"
    EQUIPMENT_TYPE_DELETED = "EQUIPMENT_TYPE_DELETED"
    EQUIPMENT_TYPES_REORDERED = "EQUIPMENT_TYPES_REORDERED"


class AuditLogger:
    """Append-only audit sink backed by the audit_logs table"""

    def __init__(self, session_factory: Optional[Callable[[], Any]] = None):
        if session_factory is None:
            from app.db.database import async_session_local
            session_factory = async_session_local
        self.session_factory = session_factory
        self._pending: Set[asyncio.Task] = set()

    async def log_event(
        self,
        *,
        action: AuditAction,
        organization_id: Optional[UUID] = None,
        user_id: Optional[UUID] = None,
        resource_type: Optional[str] = None,
        resource_id: Optional[Any] = None,
        details: Optional[str] = None,
    ) -> None:
        """Persist one audit row in its own transaction"""
        async with self.session_factory() as session:
            await AuditLogRepository(session).create({
                "organization_id": organization_id,
                "user_id": user_id,
                "action": AuditAction(action).value,
                "resource_type": resource_type,
                "resource_id": str(resource_id) if resource_id is not None else None,
                "details": details,
            })
            await session.commit()

    def notify(self, **event: Any) -> None:
        """Schedule ``log_event`` without waiting for it"""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(f"No running loop, audit event dropped: {event.get('action')}")
            return

        task = loop.create_task(self._safe_log(event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def drain(self) -> None:
        """Wait for scheduled writes; used on shutdown and by job runners"""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def _safe_log(self, event: dict) -> None:
        try:
            await self.log_event(**event)
        except Exception:
            logger.exception(f"Failed to write audit event {event.get('action')}")


audit_logger = AuditLogger()
