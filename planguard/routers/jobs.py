"""
PlanGuard - Billing Jobs Router

HTTP-triggered entry points for the scheduled billing jobs. The external
scheduler calls these with the X-Job-Token header; neither takes
arguments.
"""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from planguard.dependencies import (
    get_account_store,
    get_alert_service,
    get_sweep_time,
    require_job_token,
)
from planguard.schemas.jobs import JobErrorResponse, PaymentSweepResponse, TrialSweepResponse
from planguard.services.account_store import AccountStore
from planguard.services.alert_service import BillingAlertService
from planguard.services.overdue_sweeper import OverduePaymentSweeper
from planguard.services.trial_expiry_sweeper import CallTrialExpirySweeper
from planguard.utils.error_handling import QueryFailure

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/v1/jobs",
    tags=["Billing Jobs"],
    dependencies=[Depends(require_job_token)],
)


def _query_failure_response(exc: QueryFailure) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=JobErrorResponse(error=exc.message).model_dump(),
    )


@router.api_route(
    "/check-payment-status",
    methods=["GET", "POST"],
    response_model=PaymentSweepResponse,
    responses={500: {"model": JobErrorResponse}},
    summary="Run the overdue payment sweep",
)
async def check_payment_status(
    store: AccountStore = Depends(get_account_store),
    alert_service: BillingAlertService = Depends(get_alert_service),
    now: datetime = Depends(get_sweep_time),
):
    """
    Check every account with an active paid plan, update overdue
    counters, send milestone reminders and block accounts whose grace
    period has expired.
    """
    sweeper = OverduePaymentSweeper(store, alert_service)
    try:
        result = await sweeper.run_sweep(now)
    except QueryFailure as exc:
        return _query_failure_response(exc)

    return PaymentSweepResponse(success=True, **result.to_dict())


@router.api_route(
    "/check-call-trials",
    methods=["GET", "POST"],
    response_model=TrialSweepResponse,
    response_model_exclude_none=True,
    responses={500: {"model": JobErrorResponse}},
    summary="Expire finished calls trials",
)
async def check_call_trials(
    store: AccountStore = Depends(get_account_store),
    now: datetime = Depends(get_sweep_time),
):
    """Block calls access for every account whose calls trial has ended."""
    sweeper = CallTrialExpirySweeper(store)
    try:
        result = await sweeper.run_sweep(now)
    except QueryFailure as exc:
        return _query_failure_response(exc)

    return TrialSweepResponse(
        success=True,
        message=result.message,
        processed=result.processed,
        total=result.total,
        errors=result.errors or None,
    )
