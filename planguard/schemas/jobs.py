"""
PlanGuard - Job Response Schemas
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class PaymentSweepResponse(BaseModel):
    """Result of the overdue payment check."""
    success: bool = True
    processed: int = Field(..., description="Accounts checked without error")
    blocked: int = Field(..., description="Accounts blocked in this run")
    alerted: int = Field(..., description="Alerts emitted in this run")
    failed: int = Field(0, description="Accounts that raised an error")


class TrialSweepError(BaseModel):
    account_id: str
    error: str


class TrialSweepResponse(BaseModel):
    """Result of the calls trial expiry check."""
    success: bool = True
    message: str
    processed: int
    total: int
    errors: Optional[List[TrialSweepError]] = None


class JobErrorResponse(BaseModel):
    success: bool = False
    error: str


class HealthResponse(BaseModel):
    status: str
    database: str
    version: str
