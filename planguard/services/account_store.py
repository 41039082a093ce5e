"""
PlanGuard - Account Store

Elevated-privilege access to the profiles table for the billing jobs.
Only the trusted job entry points (job router, Celery tasks, CLI script)
construct a store; user-facing code never goes through it.

Records come back as frozen snapshots so a sweep can never write by
mutating an ORM row; every write is an explicit update() call with its
own commit.
"""

import uuid
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import select, update, or_
from sqlalchemy.ext.asyncio import AsyncSession

from planguard.models.enums import BillingCycle
from planguard.models.profile import Profile
from planguard.utils.timeutils import as_utc

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccountSnapshot:
    """Billing-relevant view of one account at query time."""
    id: uuid.UUID
    email: Optional[str]
    billing_cycle: BillingCycle
    next_billing_date: Optional[datetime]
    monthly_plan_active: bool = False
    annual_plan_active: bool = False
    scheduling_active: bool = False
    payment_overdue_days: int = 0
    grace_period_end: Optional[datetime] = None
    last_overdue_check: Optional[datetime] = None
    access_blocked: bool = False
    access_blocked_reason: Optional[str] = None
    call_trial_active: bool = False
    call_trial_ends_at: Optional[datetime] = None
    call_trial_completed: bool = False
    calls_active: bool = False
    calls_access_blocked: bool = False
    calls_block_reason: Optional[str] = None


@dataclass(frozen=True)
class AccountFilter:
    """
    Selection for a sweep.

    billable: a monthly or annual plan is active and the next billing
        date is known.
    call_trial_expired_before: calls trial active and ending before
        this instant.
    """
    billable: bool = False
    call_trial_expired_before: Optional[datetime] = None


# Columns the billing jobs may write
UPDATABLE_FIELDS = frozenset({
    "payment_overdue_days",
    "grace_period_end",
    "last_overdue_check",
    "access_blocked",
    "access_blocked_reason",
    "monthly_plan_active",
    "annual_plan_active",
    "scheduling_active",
    "call_trial_active",
    "call_trial_completed",
    "calls_active",
    "calls_access_blocked",
    "calls_block_reason",
})


class AccountStore:
    """Collaborator interface the sweepers depend on."""

    async def query(self, account_filter: AccountFilter) -> List[AccountSnapshot]:
        raise NotImplementedError

    async def update(self, account_id: uuid.UUID, fields: Dict[str, Any]) -> None:
        raise NotImplementedError


def check_update_fields(fields: Dict[str, Any]) -> None:
    """Reject writes to columns the billing jobs do not own."""
    unknown = set(fields) - UPDATABLE_FIELDS
    if unknown:
        raise ValueError(f"Fields not writable by billing jobs: {', '.join(sorted(unknown))}")


def snapshot_from_profile(profile: Profile) -> AccountSnapshot:
    """Build a snapshot from an ORM row, normalising timestamps to UTC."""
    return AccountSnapshot(
        id=profile.id,
        email=profile.email,
        billing_cycle=BillingCycle(profile.billing_cycle),
        next_billing_date=as_utc(profile.next_billing_date),
        monthly_plan_active=profile.monthly_plan_active,
        annual_plan_active=profile.annual_plan_active,
        scheduling_active=profile.scheduling_active,
        payment_overdue_days=profile.payment_overdue_days,
        grace_period_end=as_utc(profile.grace_period_end),
        last_overdue_check=as_utc(profile.last_overdue_check),
        access_blocked=profile.access_blocked,
        access_blocked_reason=profile.access_blocked_reason,
        call_trial_active=profile.call_trial_active,
        call_trial_ends_at=as_utc(profile.call_trial_ends_at),
        call_trial_completed=profile.call_trial_completed,
        calls_active=profile.calls_active,
        calls_access_blocked=profile.calls_access_blocked,
        calls_block_reason=profile.calls_block_reason,
    )


class ProfileAccountStore(AccountStore):
    """Account store backed by the profiles table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def query(self, account_filter: AccountFilter) -> List[AccountSnapshot]:
        """Fetch snapshots of every profile matching the filter."""
        stmt = select(Profile)

        if account_filter.billable:
            stmt = stmt.where(
                or_(
                    Profile.monthly_plan_active == True,
                    Profile.annual_plan_active == True,
                )
            ).where(Profile.next_billing_date != None)

        if account_filter.call_trial_expired_before is not None:
            stmt = (
                stmt.where(Profile.call_trial_active == True)
                .where(Profile.call_trial_ends_at != None)
                .where(Profile.call_trial_ends_at < as_utc(account_filter.call_trial_expired_before))
            )

        result = await self.db.execute(stmt.order_by(Profile.created_at, Profile.id))
        profiles = result.scalars().all()

        logger.debug(f"Account query {account_filter} matched {len(profiles)} profiles")
        return [snapshot_from_profile(profile) for profile in profiles]

    async def update(self, account_id: uuid.UUID, fields: Dict[str, Any]) -> None:
        """
        Write billing-status fields for one account and commit.

        Raises:
            ValueError: a field outside the billing-status columns was given
            LookupError: the account no longer exists
        """
        check_update_fields(fields)

        try:
            result = await self.db.execute(
                update(Profile)
                .where(Profile.id == account_id)
                .values(**fields)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise LookupError(f"Account {account_id} not found")
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
