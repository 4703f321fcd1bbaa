"""
Unit tests for admin alerts and transactional emails.

Nothing here reaches the network: Telegram is unconfigured in tests and
the SMTP transport is mocked.
"""

from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest
from fastapi import HTTPException

from maxpulse_backend.services.email_service import EmailService
from maxpulse_backend.services.telegram_notification import TelegramNotificationService


class TestTelegramAlerts:

    def test_withdrawal_message(self):
        text = TelegramNotificationService.format_withdrawal_message(
            "WB2025991", "Jane <Doe>", Decimal("1200"), "bank_transfer", Decimal("35.5")
        )

        assert "WB2025991" in text
        assert "Jane &lt;Doe&gt;" in text
        assert "$1,200.00" in text
        assert "$35.50" in text

    @pytest.mark.asyncio
    async def test_alert_skipped_when_unconfigured(self):
        result = await TelegramNotificationService.send_withdrawal_alert(
            "WB2025991", "Jane", Decimal("10"), "paypal", Decimal("0")
        )

        assert result == {"success": False, "error": "Telegram not configured", "message_id": None}


class TestEmailService:

    def test_welcome_email_escapes_name_and_shows_password(self):
        html = EmailService._create_welcome_email_html("<b>Jane</b>", "jane@gmail.com", "TmpPass123456789", "annual")

        assert "&lt;b&gt;Jane&lt;/b&gt;" in html
        assert "TmpPass123456789" in html
        assert "Annual" in html

    def test_unconfigured_smtp_raises(self):
        with pytest.raises(HTTPException) as exc_info:
            EmailService._send_email_smtp("jane@gmail.com", "Subject", "<p>hi</p>")

        assert exc_info.value.detail == "Email service not configured"

    @pytest.mark.asyncio
    async def test_password_reset_sent_over_smtp(self):
        smtp = MagicMock()
        with patch.object(EmailService, "SMTP_USERNAME", "mailer"), \
                patch.object(EmailService, "SMTP_PASSWORD", "secret"), \
                patch.object(EmailService, "SMTP_USE_SSL", True), \
                patch("maxpulse_backend.services.email_service.smtplib.SMTP_SSL", return_value=smtp):
            sent = await EmailService.send_password_reset_email(
                "jane@gmail.com", "Jane", "https://app.maxpulse.com/reset-password?token=abc"
            )

        assert sent is True
        session = smtp.__enter__.return_value
        session.login.assert_called_once_with("mailer", "secret")
        message = session.send_message.call_args.args[0]
        assert message["To"] == "jane@gmail.com"
        assert message["Subject"] == "Reset your MaxPulse password"
