"""
Run a Billing Sweep Once
========================
Runs one of the scheduled billing jobs outside Celery, e.g. to catch up
after a missed schedule or to inspect what a sweep would do.

Usage:
    python scripts/run_billing_sweep.py payment [--at ISO_TIMESTAMP] [--dry-run]
    python scripts/run_billing_sweep.py trials [--at ISO_TIMESTAMP]

Options:
    --at ISO_TIMESTAMP  Evaluate as of this instant (default: now, UTC)
    --dry-run           Payment sweep only: print decisions without writing
"""

import asyncio
import sys
import argparse
from datetime import datetime

# Add project root to path
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from planguard.database import async_session_factory, close_db
from planguard.services.account_store import AccountFilter, ProfileAccountStore
from planguard.services.alert_service import BillingAlertService
from planguard.services.overdue_sweeper import OverduePaymentSweeper
from planguard.services.trial_expiry_sweeper import CallTrialExpirySweeper
from planguard.utils.error_handling import QueryFailure
from planguard.utils.timeutils import as_utc, utcnow


async def preview_payment_sweep(sweeper: OverduePaymentSweeper, now: datetime) -> None:
    accounts = await sweeper.store.query(AccountFilter(billable=True))
    print(f"{len(accounts)} billable accounts as of {now.isoformat()}")
    print("=" * 60)
    for account in accounts:
        assessment = sweeper.assess(account, now)
        state = "BLOCK" if assessment.blocked else ("due" if assessment.days_overdue > 0 else "current")
        alert = assessment.alert_kind.value if assessment.alert_kind else "-"
        print(f"{account.id}  {state:<7}  overdue={max(assessment.days_overdue, 0):>4}  alert={alert}")


async def main():
    parser = argparse.ArgumentParser(description="Run a billing sweep once")
    parser.add_argument("job", choices=["payment", "trials"], help="Which sweep to run")
    parser.add_argument("--at", type=str, help="ISO timestamp to evaluate as of (UTC if no offset)")
    parser.add_argument("--dry-run", action="store_true", help="Show payment decisions without writing")
    args = parser.parse_args()

    now = as_utc(datetime.fromisoformat(args.at)) if args.at else utcnow()

    try:
        async with async_session_factory() as session:
            store = ProfileAccountStore(session)

            if args.job == "trials":
                result = await CallTrialExpirySweeper(store).run_sweep(now)
                print(f"{result.message} ({result.processed}/{result.total})")
                for error in result.errors:
                    print(f"  - {error['account_id']}: {error['error']}")
                return 0 if not result.errors else 1

            sweeper = OverduePaymentSweeper(store, BillingAlertService())
            if args.dry_run:
                await preview_payment_sweep(sweeper, now)
                return 0

            result = await sweeper.run_sweep(now)
            print(
                f"Processed: {result.processed}  Blocked: {result.blocked}  "
                f"Alerted: {result.alerted}  Failed: {result.failed}"
            )
            return 0 if result.failed == 0 else 1
    except QueryFailure as e:
        print(f"Sweep aborted: {e.message}", file=sys.stderr)
        return 2
    finally:
        await close_db()


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
