"""
PlanGuard - Billing Enums

Kept apart from the models so services can import them without
pulling in SQLAlchemy mappings.
"""

from enum import Enum


class BillingCycle(str, Enum):
    """Billing cycle of a paid plan."""
    MONTHLY = "monthly"
    ANNUAL = "annual"


class AlertKind(str, Enum):
    """Kinds of billing alerts sent to account holders."""
    REMINDER = "reminder"
    BLOCKED_WARNING = "blocked-warning"
    BLOCKED = "blocked"


CALL_TRIAL_EXPIRED_REASON = "trial_expired"
