"""
Tests for the audit trail writer
"""
import pytest
from uuid import uuid4

from app.core.audit_log import AuditAction, AuditLogger
from app.db.repositories.audit_log_repository import AuditLogRepository


@pytest.mark.asyncio
class TestAuditLogger:

    async def test_notify_writes_row_after_drain(self, session_factory):
        audit = AuditLogger(session_factory)
        organization_id = uuid4()
        resource_id = uuid4()

        audit.notify(
            action=AuditAction.CUSTOMER_CREATED,
            organization_id=organization_id,
            resource_type="Customer",
            resource_id=resource_id,
            details="Created customer 'Globex'",
        )
        await audit.drain()

        async with session_factory() as session:
            rows = await AuditLogRepository(session).find_by_organization(organization_id)
        assert len(rows) == 1
        assert rows[0].action == "CUSTOMER_CREATED"
        assert rows[0].resource_id == str(resource_id)

    async def test_rows_are_scoped_to_organization(self, session_factory):
        audit = AuditLogger(session_factory)
        ours, theirs = uuid4(), uuid4()

        await audit.log_event(action=AuditAction.SITE_CREATED, organization_id=ours)
        await audit.log_event(action=AuditAction.SITE_CREATED, organization_id=theirs)

        async with session_factory() as session:
            rows = await AuditLogRepository(session).find_by_organization(ours)
        assert [row.organization_id for row in rows] == [ours]

    async def test_failed_write_does_not_raise(self):
        def broken_session_factory():
            raise RuntimeError("database unavailable")

        audit = AuditLogger(broken_session_factory)

        audit.notify(action=AuditAction.EQUIPMENT_SERVICED, organization_id=uuid4())
        await audit.drain()

    async def test_unknown_action_is_not_written(self, session_factory):
        audit = AuditLogger(session_factory)

        with pytest.raises(ValueError):
            await audit.log_event(action="NOT_AN_ACTION", organization_id=uuid4())


class TestAuditLoggerWithoutLoop:

    def test_notify_outside_event_loop_is_dropped(self):
        audit = AuditLogger(lambda: None)

        audit.notify(action=AuditAction.CUSTOMER_CREATED)

        assert not audit._pending
