"""
PlanGuard - Profile Model

The account record of the hosted platform. Provisioning code outside
this service creates and deletes rows; the billing jobs only touch the
billing-status columns.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Integer, String, Text, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from planguard.models.base import BaseModel
from planguard.models.enums import BillingCycle


class Profile(BaseModel):
    """
    Account profile with plan flags and billing status.

    grace_period_end marks the start of the last grace day, not the block
    time: an account is blocked once it is more than the grace days overdue.
    """
    
    __tablename__ = "profiles"
    
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)
    full_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    
    # Plan and billing cycle
    billing_cycle: Mapped[BillingCycle] = mapped_column(
        SQLEnum(
            BillingCycle,
            name="billing_cycle",
            values_callable=lambda enum: [member.value for member in enum],
        ),
        default=BillingCycle.MONTHLY,
        nullable=False,
    )
    next_billing_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        index=True,
    )
    monthly_plan_active: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    annual_plan_active: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    scheduling_active: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    
    # Overdue tracking
    payment_overdue_days: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    # Billing date plus grace days; may already be past while still unblocked
    grace_period_end: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    last_overdue_check: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    access_blocked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    access_blocked_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    
    # Calls product trial
    call_trial_active: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    call_trial_ends_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    call_trial_completed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    calls_active: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    calls_access_blocked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    calls_block_reason: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    
