"""
Shared test fixtures for the WorkTrack test suite.

Every test gets its own in-memory SQLite database (aiosqlite + StaticPool)
and a fixed clock so day boundaries and the check-in cutoff are deterministic.
"""

import os
import sys
from datetime import date, datetime, timezone
from typing import AsyncGenerator

import pytest

# Ensure project root is importable
ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

# Override environment BEFORE importing application modules
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["CORS_ORIGINS"] = '["*"]'
os.environ["TIMEZONE"] = "UTC"
os.environ["CHECK_IN_CUTOFF"] = "09:00"
os.environ["ALLOW_MULTI_SITE_CHECK_IN"] = "true"
os.environ["TRACKED_ROLE"] = "employee"
os.environ["SECRET_KEY"] = "test-secret-key-for-the-worktrack-suite"

from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from worktrack.api.v1.deps import get_clock, get_db
from worktrack.core.security import create_access_token
from worktrack.db.base import Base
from worktrack.main import app
from worktrack.models.attendance import AttendanceRecord
from worktrack.models.user import User
from worktrack.models.work_site import WorkSite
from worktrack.services.clock import Clock

MONDAY = date(2024, 3, 4)


def at(hour: int, minute: int = 0, second: int = 0, day: date = MONDAY) -> datetime:
    """A UTC instant on *day* (the test server runs in UTC)."""
    return datetime(day.year, day.month, day.day, hour, minute, second, tzinfo=timezone.utc)


class FixedClock(Clock):
    """Clock frozen at ``current``; tests move it by assigning a new instant."""

    def __init__(self, current: datetime, tz=None) -> None:
        super().__init__(tz)
        self.current = current

    def now(self) -> datetime:
        return self.current.astimezone(self.tz)


# ── Database ────────────────────────────────────────────────────────
@pytest.fixture
async def engine():
    test_engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Return a raw database session for direct queries in tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(at(8, 55))


# ── HTTP client ─────────────────────────────────────────────────────
@pytest.fixture
async def async_client(session_factory, clock) -> AsyncGenerator[AsyncClient, None]:
    """Return a httpx AsyncClient wired to the app, the test DB and the fixed clock."""

    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


# ── Seed data ───────────────────────────────────────────────────────
async def create_user(
    session_factory,
    first_name: str,
    last_name: str,
    role: str = "employee",
    is_active: bool = True,
) -> User:
    async with session_factory() as session:
        user = User(
            email=f"{first_name.lower()}.{last_name.lower()}@example.com",
            first_name=first_name,
            last_name=last_name,
            role=role,
            is_active=is_active,
        )
        session.add(user)
        await session.commit()
        await session.refresh(user)
        return user


async def create_site(session_factory, name: str = "Head Office", is_active: bool = True) -> WorkSite:
    async with session_factory() as session:
        site = WorkSite(name=name, address=f"1 {name} Street", is_active=is_active)
        session.add(site)
        await session.commit()
        await session.refresh(site)
        return site


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture
async def employee_x(session_factory) -> User:
    return await create_user(session_factory, "Xavier", "Alpha")


@pytest.fixture
async def employee_y(session_factory) -> User:
    return await create_user(session_factory, "Yara", "Bravo")


@pytest.fixture
async def manager(session_factory) -> User:
    return await create_user(session_factory, "Mona", "Chief", role="manager")


@pytest.fixture
async def site(session_factory) -> WorkSite:
    return await create_site(session_factory)


# ── Concurrency helpers ─────────────────────────────────────────────
def _miss_first(lookup):
    calls = []

    async def wrapper(*args, **kwargs):
        calls.append(args)
        if len(calls) == 1:
            return None
        return await lookup(*args, **kwargs)

    return wrapper


def hide_existing_placeholder_once(service) -> None:
    """First day and placeholder lookups miss, as if another request inserted in between."""
    service.ledger.find_for_day = _miss_first(service.ledger.find_for_day)
    service.ledger.find_placeholder = _miss_first(service.ledger.find_placeholder)


async def seed_placeholder(
    session_factory, employee_id: int, day: date, status: str = "sick", deleted: bool = False
) -> int:
    async with session_factory() as session:
        record = AttendanceRecord(
            employee_id=employee_id,
            work_site_id=None,
            work_date=day,
            check_in_time=datetime(day.year, day.month, day.day, tzinfo=timezone.utc),
            status=status,
            deleted_at=at(12, 0, day=day) if deleted else None,
        )
        session.add(record)
        await session.commit()
        return record.id
