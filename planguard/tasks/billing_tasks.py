"""
PlanGuard - Billing Celery Tasks

Scheduled wrappers around the billing sweeps. Each task opens its own
database session; the sweep time is taken when the task starts.
"""

import asyncio
import logging
from typing import Any, Dict

from celery import shared_task

from planguard.database import async_session_factory, engine
from planguard.services.account_store import ProfileAccountStore
from planguard.services.alert_service import BillingAlertService
from planguard.services.overdue_sweeper import OverduePaymentSweeper
from planguard.services.trial_expiry_sweeper import CallTrialExpirySweeper
from planguard.utils.timeutils import utcnow

logger = logging.getLogger(__name__)


def run_async(coro):
    """Helper to run async functions in Celery tasks."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        # Pooled connections are bound to this loop
        loop.run_until_complete(engine.dispose())
        loop.close()


# ===========================================
# PAYMENT STATUS
# ===========================================

@shared_task(name='planguard.tasks.billing_tasks.check_payment_status_task')
def check_payment_status_task() -> Dict[str, Any]:
    """Run the overdue payment sweep for every billable account."""
    return run_async(run_payment_sweep())


async def run_payment_sweep() -> Dict[str, Any]:
    """Async implementation of the overdue payment sweep."""
    async with async_session_factory() as db:
        sweeper = OverduePaymentSweeper(ProfileAccountStore(db), BillingAlertService())
        result = await sweeper.run_sweep(utcnow())
    
    return {"success": True, **result.to_dict()}


# ===========================================
# CALLS TRIALS
# ===========================================

@shared_task(name='planguard.tasks.billing_tasks.check_call_trials_task')
def check_call_trials_task() -> Dict[str, Any]:
    """Expire calls trials that have ended."""
    return run_async(run_call_trial_sweep())


async def run_call_trial_sweep() -> Dict[str, Any]:
    """Async implementation of the calls trial sweep."""
    async with async_session_factory() as db:
        sweeper = CallTrialExpirySweeper(ProfileAccountStore(db))
        result = await sweeper.run_sweep(utcnow())
    
    summary: Dict[str, Any] = {
        "success": True,
        "message": result.message,
        "processed": result.processed,
        "total": result.total,
    }
    if result.errors:
        summary["errors"] = result.errors
    return summary
