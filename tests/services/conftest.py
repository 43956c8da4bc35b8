"""Service test fixtures — in-memory fakes, async SQLite DB, FastAPI test client.

Invariants:
    - Every test gets fresh fakes and a fresh in-memory SQLite database
    - Services under test are wired exactly as api/deps.py wires them, with fakes
      (or SQL stores) in place of the production collaborators
    - The client shares the test engine through get_db_manager / get_clock overrides

Design Decisions:
    - StaticPool: an in-memory SQLite database lives only as long as its connection,
      so every session must reuse the same one
"""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import church_intake.models  # noqa: F401
from church_intake.api.deps import get_clock
from church_intake.db.base import Base
from church_intake.infrastructure.database import DatabaseSessionManager, get_db_manager
from church_intake.main import app
from church_intake.services.approval_coordinator import ApprovalCoordinator
from church_intake.services.audit_recorder import AuditRecorder
from church_intake.services.bulk_approval import BulkApprovalOrchestrator
from church_intake.services.duplicate_detector import DuplicateDetector
from church_intake.services.registration_intake import RegistrationIntake
from church_intake.services.registration_queries import RegistrationQueries
from church_intake.services.token_issuer import TokenIssuer
from church_intake.services.token_validator import TokenValidator
from tests.services.fakes import (
    BASE_URL, FakeAuditSink, FakeMemberDirectory, FakeRegistrationStore,
    FakeTokenStore, FixedClock, T0,
)


# ─── In-memory fakes ─────────────────────────────────────────────

@pytest.fixture
def clock():
    return FixedClock(T0)


@pytest.fixture
def token_store():
    return FakeTokenStore()


@pytest.fixture
def registration_store(token_store):
    return FakeRegistrationStore(token_store)


@pytest.fixture
def directory():
    return FakeMemberDirectory()


@pytest.fixture
def audit_sink():
    return FakeAuditSink()


@pytest.fixture
def audit(audit_sink, clock):
    return AuditRecorder(audit_sink, clock)


@pytest.fixture
def issuer(token_store, audit, clock):
    return TokenIssuer(token_store, audit, clock, base_url=BASE_URL)


@pytest.fixture
def validator(token_store, clock):
    return TokenValidator(token_store, clock)


@pytest.fixture
def intake(validator, registration_store, clock):
    return RegistrationIntake(validator, registration_store, clock)


@pytest.fixture
def detector(registration_store, directory):
    return DuplicateDetector(registration_store, directory)


@pytest.fixture
def queries(registration_store):
    return RegistrationQueries(registration_store)


@pytest.fixture
def coordinator(registration_store, directory, audit, clock):
    return ApprovalCoordinator(registration_store, directory, audit, clock)


@pytest.fixture
def bulk(coordinator):
    return BulkApprovalOrchestrator(coordinator, max_in_flight=2)


# ─── SQLite database ─────────────────────────────────────────────

@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
def db_manager(test_engine, test_session_factory):
    return DatabaseSessionManager.from_session_factory(test_engine, test_session_factory)


@pytest.fixture
async def client(db_manager, clock):
    """FastAPI test client over the test database and a fixed clock."""
    app.dependency_overrides[get_db_manager] = lambda: db_manager
    app.dependency_overrides[get_clock] = lambda: clock

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
