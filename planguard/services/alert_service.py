"""
PlanGuard - Billing Alert Service

Notification collaborator for the billing jobs. Every alert is logged;
when billing alert e-mails are enabled and the account has an address,
the alert is also delivered through the e-mail service.
"""

import logging
import uuid
from typing import Optional

from planguard.config import settings
from planguard.models.enums import AlertKind
from planguard.services.email_service import EmailService, EmailMessage
from planguard.utils.error_handling import AlertDeliveryFailure

logger = logging.getLogger(__name__)


ALERT_SUBJECTS = {
    AlertKind.REMINDER: "Payment overdue: action needed",
    AlertKind.BLOCKED_WARNING: "Last day of your grace period",
    AlertKind.BLOCKED: "Your access has been blocked",
}


def reminder_message(days_remaining: int) -> str:
    plural = "day" if days_remaining == 1 else "days"
    return (
        f"Your payment is overdue. You have {days_remaining} {plural} left "
        f"before access is blocked. Settle the payment to avoid interruption."
    )


def blocked_warning_message() -> str:
    return (
        "Your grace period ends today. Access will be blocked on the next "
        "check unless payment is received."
    )


def blocked_message() -> str:
    return (
        "Your access has been BLOCKED due to an overdue payment. "
        "Settle the payment to reactivate your plan."
    )


class BillingAlertService:
    """Sends billing alerts to account holders."""

    def __init__(
        self,
        email_service: Optional[EmailService] = None,
        deliver_emails: Optional[bool] = None,
    ):
        self.email_service = email_service or EmailService()
        self.deliver_emails = (
            settings.billing_alert_emails_enabled if deliver_emails is None else deliver_emails
        )
        self.billing_url = f"{settings.base_url.rstrip('/')}/billing"

    async def send_alert(
        self,
        account_id: uuid.UUID,
        kind: AlertKind,
        message: str,
        email: Optional[str] = None,
    ) -> None:
        """
        Emit one alert.

        Raises:
            AlertDeliveryFailure: e-mail delivery was attempted and failed
        """
        kind = AlertKind(kind)
        logger.info(f"Billing alert [{kind.value}] for account {account_id}: {message}")

        if not self.deliver_emails:
            return
        if not email:
            logger.warning(f"No e-mail address for account {account_id}; {kind.value} alert only logged")
            return

        sent = await self.email_service.send_email(
            EmailMessage(
                to=[email],
                subject=ALERT_SUBJECTS[kind],
                body_text=f"{message}\n\nManage your billing: {self.billing_url}",
            )
        )
        if not sent:
            raise AlertDeliveryFailure(account_id, kind.value)
