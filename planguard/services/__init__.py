"""
PlanGuard - Services Package

Business logic for the billing jobs.
"""

from planguard.services.account_store import (
    AccountFilter,
    AccountSnapshot,
    AccountStore,
    ProfileAccountStore,
)
from planguard.services.alert_service import BillingAlertService
from planguard.services.overdue_sweeper import OverduePaymentSweeper, SweepResult
from planguard.services.trial_expiry_sweeper import CallTrialExpirySweeper, TrialSweepResult

__all__ = [
    "AccountFilter",
    "AccountSnapshot",
    "AccountStore",
    "ProfileAccountStore",
    "BillingAlertService",
    "OverduePaymentSweeper",
    "SweepResult",
    "CallTrialExpirySweeper",
    "TrialSweepResult",
]
