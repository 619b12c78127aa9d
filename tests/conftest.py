"""
Pytest configuration and fixtures
Shared test setup for all test modules
"""
import os

# Settings are read at import time; the module-level engine is never used by tests.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./parctrack-test.db")

import pytest
from typing import AsyncGenerator
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_audit_logger
from app.core.audit_log import AuditLogger
from app.core.constants import AgreementStatus, ServiceCycle, UserRole
from app.db.database import build_engine, build_session_factory, get_db, init_db
from app.db.models import Customer, Equipment, Organization, Site, User
from app.main import app


class RecordingAuditLogger(AuditLogger):
    """Keeps notifications in memory instead of writing audit rows"""

    def __init__(self):
        super().__init__(session_factory=lambda: None)
        self.events = []

    def notify(self, **event):
        self.events.append(event)

    async def drain(self) -> None:
        return None

    @property
    def actions(self):
        return [event["action"] for event in self.events]


class Seeder:
    """Inserts and commits fixture rows for one organization"""

    def __init__(self, session: AsyncSession, organization: Organization):
        self.session = session
        self.organization = organization

    async def _commit(self, obj):
        self.session.add(obj)
        await self.session.commit()
        return obj

    async def customer(self, name="Globex", **kwargs) -> Customer:
        kwargs.setdefault("agreement_status", AgreementStatus.COVERED)
        return await self._commit(Customer(
            organization_id=self.organization.id, name=name, **kwargs
        ))

    async def site(self, customer: Customer, name="Main plant", **kwargs) -> Site:
        site = Site(customer_id=customer.id, name=name, meta={}, **kwargs)
        site.customer = customer
        return await self._commit(site)

    async def equipment(self, serial_number="SN-1", site: Site = None, **kwargs) -> Equipment:
        kwargs.setdefault("service_cycle", ServiceCycle.QUARTERLY)
        kwargs.setdefault("agreement_status", AgreementStatus.COVERED)
        kwargs.setdefault("qr_code_value", serial_number)
        equipment = Equipment(
            organization_id=self.organization.id,
            serial_number=serial_number,
            **kwargs,
        )
        if site is not None:
            equipment.site = site
        return await self._commit(equipment)


@pytest.fixture
async def engine(tmp_path):
    """File-backed SQLite database per test"""
    test_engine = build_engine(f"sqlite+aiosqlite:///{tmp_path}/parctrack.db")
    await init_db(test_engine)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def fetch(session_factory):
    """Load a row in a fresh session, bypassing the test session's identity map"""
    async def _fetch(model, id):
        async with session_factory() as session:
            return await session.get(model, id)
    return _fetch


@pytest.fixture
def audit() -> RecordingAuditLogger:
    return RecordingAuditLogger()


@pytest.fixture
async def organization(db_session: AsyncSession) -> Organization:
    org = Organization(name="Acme Field Services")
    db_session.add(org)
    await db_session.commit()
    return org


@pytest.fixture
async def other_organization(db_session: AsyncSession) -> Organization:
    org = Organization(name="Rival Maintenance")
    db_session.add(org)
    await db_session.commit()
    return org


@pytest.fixture
async def technician(db_session: AsyncSession, organization: Organization) -> User:
    user = User(
        organization_id=organization.id,
        email="tech@acme.example",
        username="tech",
        role=UserRole.TECHNICIAN,
        is_active=True,
    )
    db_session.add(user)
    await db_session.commit()
    return user


@pytest.fixture
def seed(db_session: AsyncSession, organization: Organization) -> Seeder:
    return Seeder(db_session, organization)


@pytest.fixture
def other_seed(db_session: AsyncSession, other_organization: Organization) -> Seeder:
    return Seeder(db_session, other_organization)


@pytest.fixture
async def client(session_factory, audit) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to the test database and recording audit sink"""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    async def override_get_audit_logger():
        return audit

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_audit_logger] = override_get_audit_logger

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def headers(organization: Organization, technician: User) -> dict:
    return {"X-Tenant-ID": str(organization.id), "X-User-ID": str(technician.id)}
