"""
Tests for the Billing Alert Service and Email Service
"""

import json
import uuid
import pytest
import httpx
import respx
from unittest.mock import AsyncMock, MagicMock, patch

from planguard.config import settings
from planguard.models import AlertKind
from planguard.services.alert_service import (
    ALERT_SUBJECTS,
    BillingAlertService,
    reminder_message,
)
from planguard.services.email_service import (
    SENDGRID_SEND_URL,
    EmailMessage,
    EmailProvider,
    EmailService,
)
from planguard.utils.error_handling import AlertDeliveryFailure


def mock_email_service(sent: bool = True) -> MagicMock:
    email_service = MagicMock(spec=EmailService)
    email_service.send_email = AsyncMock(return_value=sent)
    return email_service


class TestBillingAlertService:
    """Alert logging and optional e-mail delivery."""

    @pytest.mark.asyncio
    async def test_log_only_when_emails_disabled(self):
        email_service = mock_email_service()
        service = BillingAlertService(email_service=email_service, deliver_emails=False)

        await service.send_alert(uuid.uuid4(), AlertKind.REMINDER, reminder_message(3), email="a@example.com")

        email_service.send_email.assert_not_called()

    @pytest.mark.asyncio
    async def test_emails_alert_when_enabled(self):
        email_service = mock_email_service()
        service = BillingAlertService(email_service=email_service, deliver_emails=True)

        await service.send_alert(uuid.uuid4(), AlertKind.BLOCKED, "blocked!", email="a@example.com")

        email_service.send_email.assert_awaited_once()
        message = email_service.send_email.await_args.args[0]
        assert message.to == ["a@example.com"]
        assert message.subject == ALERT_SUBJECTS[AlertKind.BLOCKED]
        assert message.body_text.startswith("blocked!")

    @pytest.mark.asyncio
    async def test_accepts_kind_as_string(self):
        email_service = mock_email_service()
        service = BillingAlertService(email_service=email_service, deliver_emails=True)

        await service.send_alert(uuid.uuid4(), "blocked-warning", "last day", email="a@example.com")

        message = email_service.send_email.await_args.args[0]
        assert message.subject == ALERT_SUBJECTS[AlertKind.BLOCKED_WARNING]

    @pytest.mark.asyncio
    async def test_no_address_skips_delivery(self):
        email_service = mock_email_service()
        service = BillingAlertService(email_service=email_service, deliver_emails=True)

        await service.send_alert(uuid.uuid4(), AlertKind.REMINDER, "reminder", email=None)

        email_service.send_email.assert_not_called()

    @pytest.mark.asyncio
    async def test_failed_delivery_raises(self):
        service = BillingAlertService(email_service=mock_email_service(sent=False), deliver_emails=True)

        with pytest.raises(AlertDeliveryFailure):
            await service.send_alert(uuid.uuid4(), AlertKind.REMINDER, "reminder", email="a@example.com")

    def test_reminder_message_wording(self):
        assert "1 day left" in reminder_message(1)
        assert "7 days left" in reminder_message(7)


class TestEmailService:
    """Provider selection and SendGrid delivery."""

    def test_mock_provider_without_configuration(self):
        assert EmailService()._determine_provider() == EmailProvider.MOCK

    def test_smtp_provider_when_host_set(self):
        with patch.object(settings, "mail_server", "smtp.example.com"):
            assert EmailService()._determine_provider() == EmailProvider.SMTP

    @pytest.mark.asyncio
    async def test_mock_send_succeeds(self):
        sent = await EmailService().send_email(
            EmailMessage(to=["a@example.com"], subject="Hi", body_text="Body")
        )
        assert sent is True

    @pytest.mark.asyncio
    @respx.mock
    async def test_sendgrid_accepted(self):
        route = respx.post(SENDGRID_SEND_URL).mock(return_value=httpx.Response(202))
        with patch.object(settings, "sendgrid_api_key", "SG.test"):
            service = EmailService()

        sent = await service.send_email(
            EmailMessage(to=["a@example.com"], subject="Hi", body_text="Body")
        )

        assert sent is True
        assert route.called
        request = route.calls.last.request
        assert request.headers["Authorization"] == "Bearer SG.test"

    @pytest.mark.asyncio
    @respx.mock
    async def test_sendgrid_error_returns_false(self):
        respx.post(SENDGRID_SEND_URL).mock(return_value=httpx.Response(500, text="boom"))
        with patch.object(settings, "sendgrid_api_key", "SG.test"):
            service = EmailService()

        sent = await service.send_email(
            EmailMessage(to=["a@example.com"], subject="Hi", body_text="Body")
        )

        assert sent is False

    @pytest.mark.asyncio
    @respx.mock
    async def test_sendgrid_payload_is_plain_text(self):
        route = respx.post(SENDGRID_SEND_URL).mock(return_value=httpx.Response(202))
        with patch.object(settings, "sendgrid_api_key", "SG.test"):
            service = EmailService()

        await service.send_email(EmailMessage(to=["a@example.com"], subject="Hi", body_text="Body"))

        payload = json.loads(route.calls.last.request.content)
        assert payload["content"] == [{"type": "text/plain", "value": "Body"}]
        assert "reply_to" not in payload

    def test_smtp_message_is_plain_text(self):
        msg = EmailService()._build_mime(
            EmailMessage(to=["a@example.com", "b@example.com"], subject="Hi", body_text="Body")
        )

        assert msg.get_content_type() == "text/plain"
        assert msg["To"] == "a@example.com, b@example.com"
        assert msg.get_payload() == "Body"
