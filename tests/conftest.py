"""
PlanGuard - Test Configuration

Pytest fixtures and configuration. Tests run against an in-memory
SQLite database through aiosqlite; settings come from the environment
set below, before any planguard module is imported.
"""

import os

os.environ.setdefault("DATABASE_URL_ASYNC", "sqlite+aiosqlite:///:memory:")
os.environ["APP_ENV"] = "test"
os.environ["JOB_TOKEN"] = ""
os.environ["BILLING_ALERT_EMAILS_ENABLED"] = "false"
os.environ["SENDGRID_API_KEY"] = ""
os.environ["MAIL_SERVER"] = ""

from datetime import timedelta
from typing import AsyncGenerator, Callable, Awaitable

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from planguard.database import Base, get_async_session
from planguard.dependencies import get_alert_service, get_sweep_time
from planguard.models import BillingCycle, Profile
from fixtures.billing_fakes import NOW, RecordingAlertService
from main import app


# Single shared connection so every session sees the same in-memory database
test_engine = create_async_engine(
    "sqlite+aiosqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestSessionLocal = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database for each test."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session
        await session.rollback()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
def recording_alerts() -> RecordingAlertService:
    return RecordingAlertService()


@pytest_asyncio.fixture(scope="function")
async def client(
    db_session: AsyncSession,
    recording_alerts: RecordingAlertService,
) -> AsyncGenerator[AsyncClient, None]:
    """Test client bound to the test session, a fixed clock and recorded alerts."""

    async def override_get_session():
        yield db_session

    app.dependency_overrides[get_async_session] = override_get_session
    app.dependency_overrides[get_sweep_time] = lambda: NOW
    app.dependency_overrides[get_alert_service] = lambda: recording_alerts

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ===========================================
# DATA FIXTURES
# ===========================================

@pytest_asyncio.fixture
async def create_profile(db_session: AsyncSession) -> Callable[..., Awaitable[Profile]]:
    """Factory inserting a profile; defaults to a monthly plan due at NOW."""

    async def _create(**overrides) -> Profile:
        values = {
            "email": "owner@example.com",
            "full_name": "Test Owner",
            "billing_cycle": BillingCycle.MONTHLY,
            "next_billing_date": NOW,
            "monthly_plan_active": True,
            "scheduling_active": True,
        }
        values.update(overrides)
        profile = Profile(**values)
        db_session.add(profile)
        await db_session.commit()
        await db_session.refresh(profile)
        return profile

    return _create


@pytest_asyncio.fixture
async def overdue_monthly_profile(create_profile) -> Profile:
    """Monthly plan 31 days past its billing date (grace period over)."""
    return await create_profile(next_billing_date=NOW - timedelta(days=31))


@pytest_asyncio.fixture
async def expired_call_trial_profile(create_profile) -> Profile:
    """Calls trial that ended two hours before NOW."""
    return await create_profile(
        monthly_plan_active=False,
        next_billing_date=None,
        call_trial_active=True,
        call_trial_ends_at=NOW - timedelta(hours=2),
        calls_active=True,
    )
