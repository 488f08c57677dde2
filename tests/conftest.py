"""
Shared test fixtures for the Timekeeper test suite.

Each test gets its own in-memory aiosqlite database; the app's DB session,
acting user and reference data are swapped in through dependency overrides.
"""

import os
import sys
from datetime import date
from typing import AsyncGenerator

import pytest

# Ensure project root is importable
ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

# Override environment BEFORE importing application modules
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["CORS_ORIGINS"] = '["*"]'
os.environ["SHIFT_UTC_OFFSET"] = "+00:00"

from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (AsyncSession, async_sessionmaker,
                                    create_async_engine)
from sqlalchemy.pool import StaticPool

from timekeeper.api.v1.deps import get_current_active_user, get_db
from timekeeper.api.v1.endpoints.auth import limiter
from timekeeper.db.base import Base
from timekeeper.main import app
from timekeeper.models.shift import Shift, ShiftAssignment
from timekeeper.models.user import User
from timekeeper.services.reference_data import (ReferenceDataRepository,
                                                get_reference_data)

EMPLOYEE_ID = "EMP-001"


# ── Database ────────────────────────────────────────────────────────
@pytest.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Fresh in-memory database with all tables created."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Return a raw database session for direct setup and queries in tests."""
    async with session_factory() as session:
        yield session


# ── Collaborators ───────────────────────────────────────────────────
@pytest.fixture
def reference(tmp_path) -> ReferenceDataRepository:
    """Empty leave / offboarding data; tests append entries as needed."""
    repo = ReferenceDataRepository(tmp_path)
    repo.load()
    return repo


class Actor:
    """The user every request in a test is made as."""

    def __init__(self) -> None:
        self.user = self.make("admin", EMPLOYEE_ID)

    @staticmethod
    def make(role: str, employee_id: str | None) -> User:
        return User(
            id=1,
            email=f"{role}@example.com",
            full_name=f"Test {role}",
            role=role,
            employee_id=employee_id,
            is_active=True,
        )

    def become(self, role: str, employee_id: str | None = EMPLOYEE_ID) -> User:
        self.user = self.make(role, employee_id)
        return self.user


@pytest.fixture
def actor() -> Actor:
    return Actor()


# ── HTTP clients ────────────────────────────────────────────────────
@pytest.fixture
async def anon_client(session_factory, reference) -> AsyncGenerator[AsyncClient, None]:
    """Client with real authentication (no acting-user override)."""

    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_reference_data] = lambda: reference
    limiter.reset()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
async def async_client(anon_client, actor) -> AsyncGenerator[AsyncClient, None]:
    """Client whose requests all run as ``actor.user``."""

    async def _override_get_current_active_user() -> User:
        return actor.user

    app.dependency_overrides[get_current_active_user] = _override_get_current_active_user
    yield anon_client


# ── Seed helpers ────────────────────────────────────────────────────
@pytest.fixture
def make_assignment(db_session):
    """Factory: create a shift plus an assignment for an employee."""

    async def _make(
        employee_id: str = EMPLOYEE_ID,
        start_date: date = date(2024, 1, 1),
        end_date: date | None = None,
        status: str = "APPROVED",
        rest_days: list[str] | None = None,
        start_time: str = "09:00",
        end_time: str = "17:00",
        grace: int = 15,
        requires_approval_for_overtime: bool = False,
        shift: Shift | None = None,
    ) -> ShiftAssignment:
        if shift is None:
            shift = Shift(
                name=f"Day {start_time}-{end_time}",
                shift_type="normal",
                start_time=start_time,
                end_time=end_time,
                grace_period_minutes=grace,
                requires_approval_for_overtime=requires_approval_for_overtime,
                active=True,
            )
            db_session.add(shift)
            await db_session.flush()
        assignment = ShiftAssignment(
            employee_id=employee_id,
            shift_id=shift.id,
            start_date=start_date,
            end_date=end_date,
            rest_days=rest_days or [],
            status=status,
        )
        db_session.add(assignment)
        await db_session.commit()
        return assignment

    return _make
