"""
PlanGuard - Calls Trial Expiry Sweeper

Ends calls (voice agent) trials whose end date has passed. The trial is
marked completed and calls access is blocked until the account pays.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List

from planguard.models.enums import CALL_TRIAL_EXPIRED_REASON
from planguard.services.account_store import AccountFilter, AccountStore
from planguard.utils.error_handling import QueryFailure
from planguard.utils.timeutils import as_utc

logger = logging.getLogger(__name__)


EXPIRED_TRIAL_FIELDS: Dict[str, Any] = {
    "call_trial_active": False,
    "call_trial_completed": True,
    "calls_active": False,
    "calls_access_blocked": True,
    "calls_block_reason": CALL_TRIAL_EXPIRED_REASON,
}


@dataclass
class TrialSweepResult:
    """Outcome of one trial expiry sweep."""
    processed: int = 0
    total: int = 0
    errors: List[Dict[str, str]] = field(default_factory=list)

    @property
    def message(self) -> str:
        if self.total == 0:
            return "No expired calls trials found"
        return f"{self.processed} calls trials expired"


class CallTrialExpirySweeper:
    """Expires calls trials that ended before `now`."""

    def __init__(self, store: AccountStore):
        self.store = store

    async def run_sweep(self, now: datetime) -> TrialSweepResult:
        """
        Expire every overdue calls trial once.

        Raises:
            QueryFailure: the account list could not be fetched
        """
        now = as_utc(now)

        try:
            accounts = await self.store.query(AccountFilter(call_trial_expired_before=now))
        except Exception as e:
            logger.error(f"Failed to fetch expired calls trials: {e}")
            raise QueryFailure("Failed to fetch expired calls trials", original_error=e) from e

        result = TrialSweepResult(total=len(accounts))
        logger.info(f"Found {result.total} expired calls trials")

        for account in accounts:
            try:
                await self.store.update(account.id, dict(EXPIRED_TRIAL_FIELDS))
            except Exception as e:
                logger.error(f"Failed to expire calls trial for account {account.id}: {e}", exc_info=True)
                result.errors.append({"account_id": str(account.id), "error": str(e)})
                continue

            logger.info(f"Calls trial expired for account {account.id}")
            result.processed += 1

        logger.info(f"Calls trial sweep complete: {result.processed}/{result.total}")
        return result
