"""
Unit tests for email providers and NotificationService.

SMTP is fully mocked - no network access.
"""

import smtplib
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.core.config import settings
from src.exceptions import NotificationError
from src.services.email_service import (
    ConsoleEmailProvider,
    EmailMessage,
    EmailResult,
    NotificationService,
    SMTPEmailProvider,
    create_email_provider,
)


@pytest.fixture
def smtp_config():
    return settings.model_copy(
        update={
            "email_provider": "smtp",
            "smtp_host": "smtp.example.com",
            "smtp_port": 2525,
            "smtp_username": "mailer",
            "smtp_password": "secret",
            "smtp_use_tls": True,
        }
    )


@pytest.fixture
def message():
    return EmailMessage(
        to_email="ada@example.com",
        subject="Hello",
        body_html="<p>Hello</p>",
        body_text="Hello",
    )


class TestSMTPEmailProvider:
    """Test SMTP delivery."""

    @pytest.mark.asyncio
    async def test_send_success(self, smtp_config, message):
        with patch("src.services.email_service.smtplib.SMTP") as mock_smtp:
            server = mock_smtp.return_value.__enter__.return_value

            result = await SMTPEmailProvider(smtp_config).send(message)

        assert result.success is True
        assert result.provider_message_id.endswith("@smtp.example.com>")
        mock_smtp.assert_called_once_with(
            "smtp.example.com", 2525, timeout=smtp_config.smtp_timeout
        )
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("mailer", "secret")
        server.send_message.assert_called_once()

        sent = server.send_message.call_args.args[0]
        assert sent["To"] == "ada@example.com"
        assert sent["Subject"] == "Hello"
        assert sent["From"] == smtp_config.email_sender

    @pytest.mark.asyncio
    async def test_send_without_tls_or_credentials(self, smtp_config, message):
        config = smtp_config.model_copy(
            update={"smtp_use_tls": False, "smtp_username": None, "smtp_password": None}
        )

        with patch("src.services.email_service.smtplib.SMTP") as mock_smtp:
            server = mock_smtp.return_value.__enter__.return_value
            result = await SMTPEmailProvider(config).send(message)

        assert result.success is True
        server.starttls.assert_not_called()
        server.login.assert_not_called()

    @pytest.mark.asyncio
    async def test_send_failure_is_reported_not_raised(self, smtp_config, message):
        with patch("src.services.email_service.smtplib.SMTP") as mock_smtp:
            server = mock_smtp.return_value.__enter__.return_value
            server.send_message.side_effect = smtplib.SMTPRecipientsRefused({})

            result = await SMTPEmailProvider(smtp_config).send(message)

        assert result.success is False
        assert "SMTP error" in result.error_message

    @pytest.mark.asyncio
    async def test_connection_refused(self, smtp_config, message):
        with patch(
            "src.services.email_service.smtplib.SMTP",
            side_effect=ConnectionRefusedError("refused"),
        ):
            result = await SMTPEmailProvider(smtp_config).send(message)

        assert result.success is False

    @pytest.mark.asyncio
    async def test_health_check(self, smtp_config):
        with patch("src.services.email_service.smtplib.SMTP"):
            assert await SMTPEmailProvider(smtp_config).health_check() is True

        with patch("src.services.email_service.smtplib.SMTP", side_effect=OSError("down")):
            assert await SMTPEmailProvider(smtp_config).health_check() is False


class TestConsoleEmailProvider:
    """Test the logging provider."""

    @pytest.mark.asyncio
    async def test_send_logs_message(self, message):
        with patch("src.services.email_service.logger") as mock_logger:
            result = await ConsoleEmailProvider().send(message)

        assert result.success is True
        assert "ada@example.com" in str(mock_logger.info.call_args)

    @pytest.mark.asyncio
    async def test_health_check(self):
        assert await ConsoleEmailProvider().health_check() is True


class TestCreateEmailProvider:
    """Test provider selection."""

    def test_console_by_default(self):
        config = settings.model_copy(update={"email_provider": "console"})

        assert isinstance(create_email_provider(config), ConsoleEmailProvider)

    def test_smtp(self, smtp_config):
        assert isinstance(create_email_provider(smtp_config), SMTPEmailProvider)


class TestNotificationService:
    """Test account email rendering and failure handling."""

    @pytest.mark.asyncio
    async def test_verification_email(self, email_provider):
        notifier = NotificationService(email_provider, app_name="CryptoEdu")

        await notifier.send_verification_code("ada@example.com", "Ada", "482913")

        sent = email_provider.sent[0]
        assert sent.to_email == "ada@example.com"
        assert sent.subject == "Verify Your Email - CryptoEdu"
        assert "Your verification code is: 482913" in sent.body_text
        assert "482913" in sent.body_html
        assert f"expire in {settings.otp_expire_minutes} minutes" in sent.body_text

    @pytest.mark.asyncio
    async def test_password_reset_email(self, email_provider):
        notifier = NotificationService(email_provider, app_name="CryptoEdu")

        await notifier.send_password_reset_code("ada@example.com", "Ada", "482913")

        sent = email_provider.sent[0]
        assert sent.subject == "Password Reset - CryptoEdu"
        assert "Your password reset code is: 482913" in sent.body_text
        minutes = settings.password_reset_otp_expire_minutes
        assert f"expire in {minutes} minutes" in sent.body_text

    @pytest.mark.asyncio
    async def test_name_is_escaped_in_html(self, email_provider):
        notifier = NotificationService(email_provider)

        await notifier.send_verification_code("ada@example.com", "<b>Ada</b>", "482913")

        assert "&lt;b&gt;Ada&lt;/b&gt;" in email_provider.sent[0].body_html

    @pytest.mark.asyncio
    async def test_delivery_failure_raises(self, email_provider):
        email_provider.fail = True
        notifier = NotificationService(email_provider)

        with pytest.raises(NotificationError):
            await notifier.send_verification_code("ada@example.com", "Ada", "482913")

    @pytest.mark.asyncio
    async def test_provider_result_returned(self):
        provider = MagicMock()
        provider.send = AsyncMock(
            return_value=EmailResult(success=True, provider_message_id="<1@x>")
        )
        notifier = NotificationService(provider)

        result = await notifier.send_password_reset_code("ada@example.com", "Ada", "482913")

        assert result.provider_message_id == "<1@x>"
        provider.send.assert_awaited_once()
