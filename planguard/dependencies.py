"""
PlanGuard - FastAPI Dependencies

Shared dependencies for the job entry points:
1. Job token check (the scheduler's shared secret)
2. Elevated account store
3. Billing alert service
4. Sweep time
"""

import hmac
from datetime import datetime
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from planguard.config import settings
from planguard.database import get_async_session
from planguard.services.account_store import AccountStore, ProfileAccountStore
from planguard.services.alert_service import BillingAlertService
from planguard.utils.error_handling import ConfigurationException, JobAuthenticationException
from planguard.utils.timeutils import utcnow


async def require_job_token(
    x_job_token: Optional[str] = Header(default=None, alias="X-Job-Token"),
) -> None:
    """
    Only the scheduler may trigger the billing jobs.

    Raises:
        JobAuthenticationException: token missing or wrong
        ConfigurationException: no token configured in production
    """
    expected = settings.job_token
    if not expected:
        if settings.is_production:
            raise ConfigurationException("JOB_TOKEN must be configured in production")
        return

    # Compared as bytes; compare_digest rejects non-ASCII str
    if not x_job_token or not hmac.compare_digest(x_job_token.encode(), expected.encode()):
        raise JobAuthenticationException()


async def get_account_store(
    db: AsyncSession = Depends(get_async_session),
) -> AccountStore:
    """Elevated store; only wired into job routes."""
    return ProfileAccountStore(db)


def get_alert_service() -> BillingAlertService:
    return BillingAlertService()


def get_sweep_time() -> datetime:
    """The instant a job runs for; overridden in tests."""
    return utcnow()
