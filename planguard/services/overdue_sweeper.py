"""
PlanGuard - Overdue Payment Sweeper

One pass over every account with an active paid plan and a known next
billing date. Each account moves between three states:

    current            not yet due; overdue counters reset
    overdue-alerting   past due but inside the grace period; reminders
                       at fixed milestones before the block
    blocked            grace period expired; plan flags switched off

Grace period by billing cycle:
- monthly: 30 days
- annual: 365 days

Alert milestones (days remaining before block): 7, 3, 1, 0. Matching is
exact, so a sweep that skips a day skips that day's reminder.

The sweep takes `now` from the caller and never reads the clock itself.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, Optional

from planguard.config import settings
from planguard.models.enums import AlertKind, BillingCycle
from planguard.services.account_store import AccountFilter, AccountSnapshot, AccountStore
from planguard.services.alert_service import (
    BillingAlertService,
    blocked_message,
    blocked_warning_message,
    reminder_message,
)
from planguard.utils.error_handling import PerAccountFailure, QueryFailure
from planguard.utils.timeutils import as_utc

logger = logging.getLogger(__name__)

ONE_DAY = timedelta(days=1)


@dataclass
class SweepResult:
    """Counters returned by one overdue sweep."""
    processed: int = 0
    blocked: int = 0
    alerted: int = 0
    failed: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "processed": self.processed,
            "blocked": self.blocked,
            "alerted": self.alerted,
            "failed": self.failed,
        }


@dataclass(frozen=True)
class PaymentAssessment:
    """What the sweep decided for one account."""
    days_overdue: int
    fields: Dict[str, Any] = field(default_factory=dict)
    grace_period_days: Optional[int] = None
    grace_period_end: Optional[datetime] = None
    blocked: bool = False
    alert_kind: Optional[AlertKind] = None
    alert_message: Optional[str] = None


def count_days_overdue(next_billing_date: datetime, now: datetime) -> int:
    """Whole days elapsed since the billing date, floored (negative if not due)."""
    return (as_utc(now) - as_utc(next_billing_date)) // ONE_DAY


def block_reason(days_overdue: int, grace_period_days: int) -> str:
    return (
        f"Payment overdue for {days_overdue} days. "
        f"Grace period ({grace_period_days} days) expired."
    )


class OverduePaymentSweeper:
    """Applies grace-period rules to every billable account."""

    def __init__(
        self,
        store: AccountStore,
        alert_service: BillingAlertService,
        monthly_grace_period_days: Optional[int] = None,
        annual_grace_period_days: Optional[int] = None,
        alert_milestones: Optional[Iterable[int]] = None,
    ):
        self.store = store
        self.alert_service = alert_service
        self.grace_periods = {
            BillingCycle.MONTHLY: (
                settings.monthly_grace_period_days
                if monthly_grace_period_days is None else monthly_grace_period_days
            ),
            BillingCycle.ANNUAL: (
                settings.annual_grace_period_days
                if annual_grace_period_days is None else annual_grace_period_days
            ),
        }
        self.alert_milestones = frozenset(
            settings.alert_milestones if alert_milestones is None else alert_milestones
        )

    def grace_period_days(self, billing_cycle: BillingCycle) -> int:
        # Anything that is not annual is billed as monthly
        if billing_cycle == BillingCycle.ANNUAL:
            return self.grace_periods[BillingCycle.ANNUAL]
        return self.grace_periods[BillingCycle.MONTHLY]

    def assess(self, account: AccountSnapshot, now: datetime) -> PaymentAssessment:
        """Decide the new billing status of one account without writing anything."""
        if account.next_billing_date is None:
            raise ValueError(f"Account {account.id} has no next billing date")

        now = as_utc(now)
        billing_date = as_utc(account.next_billing_date)
        days_overdue = count_days_overdue(billing_date, now)

        if days_overdue <= 0:
            return PaymentAssessment(
                days_overdue=days_overdue,
                fields={
                    "last_overdue_check": now,
                    "payment_overdue_days": 0,
                    "access_blocked": False,
                    "access_blocked_reason": None,
                },
            )

        grace_days = self.grace_period_days(account.billing_cycle)
        # Start of the last grace day; the block comes one whole day after it
        grace_end = billing_date + timedelta(days=grace_days)
        fields: Dict[str, Any] = {
            "payment_overdue_days": days_overdue,
            "grace_period_end": grace_end,
            "last_overdue_check": now,
        }

        # Compared in whole days: the grace period covers its last day in full
        if days_overdue <= grace_days:
            days_remaining = grace_days - days_overdue
            alert_kind = None
            alert_message = None
            if days_remaining in self.alert_milestones:
                if days_remaining == 0:
                    alert_kind = AlertKind.BLOCKED_WARNING
                    alert_message = blocked_warning_message()
                else:
                    alert_kind = AlertKind.REMINDER
                    alert_message = reminder_message(days_remaining)
            return PaymentAssessment(
                days_overdue=days_overdue,
                fields=fields,
                grace_period_days=grace_days,
                grace_period_end=grace_end,
                alert_kind=alert_kind,
                alert_message=alert_message,
            )

        fields.update({
            "access_blocked": True,
            "access_blocked_reason": block_reason(days_overdue, grace_days),
            "monthly_plan_active": False,
            "annual_plan_active": False,
            "scheduling_active": False,
        })
        return PaymentAssessment(
            days_overdue=days_overdue,
            fields=fields,
            grace_period_days=grace_days,
            grace_period_end=grace_end,
            blocked=True,
            alert_kind=AlertKind.BLOCKED,
            alert_message=blocked_message(),
        )

    async def check_account(self, account: AccountSnapshot, now: datetime) -> PaymentAssessment:
        """Assess one account, write its billing status, then send any alert."""
        assessment = self.assess(account, now)

        await self.store.update(account.id, assessment.fields)

        if assessment.blocked:
            logger.warning(
                f"Blocked access for account {account.id} - "
                f"{assessment.days_overdue} days overdue"
            )

        if assessment.alert_kind is not None:
            await self.alert_service.send_alert(
                account.id,
                assessment.alert_kind,
                assessment.alert_message,
                email=account.email,
            )

        return assessment

    async def run_sweep(self, now: datetime) -> SweepResult:
        """
        Check every billable account once.

        Raises:
            QueryFailure: the account list could not be fetched
        """
        now = as_utc(now)
        logger.info(f"Starting payment status check at {now.isoformat()}")

        try:
            accounts = await self.store.query(AccountFilter(billable=True))
        except Exception as e:
            logger.error(f"Failed to fetch billable accounts: {e}")
            raise QueryFailure(original_error=e) from e

        logger.info(f"Checking {len(accounts)} accounts with active plans")

        result = SweepResult()
        for account in accounts:
            try:
                assessment = await self.check_account(account, now)
            except Exception as e:
                failure = PerAccountFailure(account.id, e)
                logger.error(failure.message, exc_info=True)
                result.failed += 1
                continue

            result.processed += 1
            if assessment.blocked:
                result.blocked += 1
            if assessment.alert_kind is not None:
                result.alerted += 1

        logger.info(
            f"Payment status check complete: {result.processed} processed, "
            f"{result.blocked} blocked, {result.alerted} alerted, {result.failed} failed"
        )
        return result
