"""
PlanGuard - SQLAlchemy Models Package

This package contains all database models for the application.
"""

from planguard.models.base import BaseModel, TimestampMixin
from planguard.models.enums import AlertKind, BillingCycle, CALL_TRIAL_EXPIRED_REASON
from planguard.models.profile import Profile

__all__ = [
    "BaseModel",
    "TimestampMixin",
    "AlertKind",
    "BillingCycle",
    "CALL_TRIAL_EXPIRED_REASON",
    "Profile",
]
