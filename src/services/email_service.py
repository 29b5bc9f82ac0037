"""
Email delivery for verification and password reset codes.

This module provides:
- EmailMessage / EmailResult value types
- EmailProvider interface with SMTP and console implementations
- NotificationService rendering the account emails and raising
  NotificationError when delivery fails
"""

import asyncio
import logging
import smtplib
import ssl
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape
from uuid import uuid4

from src.core.config import Settings, settings
from src.exceptions import NotificationError
from src.models.mixins import utcnow

logger = logging.getLogger(__name__)


# =============================================================================
# Message Types
# =============================================================================


@dataclass(frozen=True)
class EmailMessage:
    """Email message to be sent."""

    to_email: str
    subject: str
    body_html: str
    body_text: str | None = None
    from_email: str | None = None
    reply_to: str | None = None
    headers: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class EmailResult:
    """Result of email send operation."""

    success: bool
    provider_message_id: str | None = None
    error_message: str | None = None
    timestamp: datetime = field(default_factory=utcnow)


# =============================================================================
# Providers
# =============================================================================


class EmailProvider(ABC):
    """
    Abstract interface for email providers.

    Providers report delivery problems through EmailResult rather than
    raising, so callers decide whether a failure is fatal.
    """

    @abstractmethod
    async def send(self, message: EmailMessage) -> EmailResult:
        """
        Send an email message.

        Args:
            message: The email message to send

        Returns:
            EmailResult with success status and provider details
        """

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Check if the email provider is healthy.

        Returns:
            True if provider is available, False otherwise
        """


class SMTPEmailProvider(EmailProvider):
    """
    SMTP-based email provider.

    smtplib is blocking, so every network call runs in the default
    thread pool executor.
    """

    def __init__(self, config: Settings):
        """
        Initialize SMTP provider.

        Args:
            config: Application settings (smtp_* and email_from_* fields)
        """
        self._config = config
        self._default_from = config.email_sender

    async def send(self, message: EmailMessage) -> EmailResult:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._send_sync, message)

    def _build_mime(self, message: EmailMessage, message_id: str) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = message.subject
        msg["From"] = message.from_email or self._default_from
        msg["To"] = message.to_email
        msg["Message-ID"] = message_id

        if message.reply_to:
            msg["Reply-To"] = message.reply_to

        for header_name, header_value in message.headers.items():
            msg[header_name] = header_value

        # Text part first (fallback)
        if message.body_text:
            msg.attach(MIMEText(message.body_text, "plain", "utf-8"))
        msg.attach(MIMEText(message.body_html, "html", "utf-8"))
        return msg

    def _send_sync(self, message: EmailMessage) -> EmailResult:
        config = self._config
        message_id = f"<{uuid4()}@{config.smtp_host}>"
        msg = self._build_mime(message, message_id)

        try:
            with smtplib.SMTP(
                config.smtp_host, config.smtp_port, timeout=config.smtp_timeout
            ) as server:
                if config.smtp_use_tls:
                    server.starttls(context=ssl.create_default_context())
                if config.smtp_username and config.smtp_password:
                    server.login(config.smtp_username, config.smtp_password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"SMTP error sending to {message.to_email}: {e}")
            return EmailResult(success=False, error_message=f"SMTP error: {e}")

        logger.info(f"Email sent to {message.to_email}, message_id={message_id}")
        return EmailResult(success=True, provider_message_id=message_id)

    async def health_check(self) -> bool:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._health_check_sync)

    def _health_check_sync(self) -> bool:
        try:
            with smtplib.SMTP(self._config.smtp_host, self._config.smtp_port, timeout=10) as server:
                server.noop()
            return True
        except (smtplib.SMTPException, OSError) as e:
            logger.warning(f"SMTP health check failed: {e}")
            return False


class ConsoleEmailProvider(EmailProvider):
    """
    Development provider that writes emails to the log instead of sending them.
    """

    async def send(self, message: EmailMessage) -> EmailResult:
        message_id = f"<{uuid4()}@console>"
        logger.info(
            f"[console email] to={message.to_email} subject={message.subject!r}\n"
            f"{message.body_text or message.body_html}"
        )
        return EmailResult(success=True, provider_message_id=message_id)

    async def health_check(self) -> bool:
        return True


def create_email_provider(config: Settings = settings) -> EmailProvider:
    """
    Create email provider based on configuration.

    Args:
        config: Application settings

    Returns:
        SMTPEmailProvider when email_provider is "smtp", otherwise the
        console provider
    """
    if config.email_provider == "smtp":
        logger.info(f"Using SMTP email provider ({config.smtp_host}:{config.smtp_port})")
        return SMTPEmailProvider(config)

    logger.info("Using console email provider")
    return ConsoleEmailProvider()


# =============================================================================
# Account Emails
# =============================================================================

_HTML_LAYOUT = """\
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px; border: 1px solid #e9e9e9; border-radius: 5px;">
  <div style="text-align: center; margin-bottom: 20px;">
    <h1 style="color: #3f51b5;">{app_name}</h1>
  </div>
  <div style="margin-bottom: 30px;">
    <p>Hello <strong>{name}</strong>,</p>
    <p>{intro}</p>
  </div>
  <div style="text-align: center; margin: 30px 0;">
    <div style="font-size: 24px; font-weight: bold; background-color: #f5f5f5; padding: 15px; border-radius: 5px; letter-spacing: 5px;">
      {otp}
    </div>
    <p style="font-size: 12px; color: #777; margin-top: 10px;">This code will expire in {minutes} minutes</p>
  </div>
  <div style="margin-top: 30px; padding-top: 20px; border-top: 1px solid #e9e9e9; color: #777; font-size: 12px;">
    <p>{ignore_notice}</p>
    <p>Regards,<br>The {app_name} Team</p>
  </div>
</div>
"""

_TEXT_LAYOUT = """\
Hello {name},

{intro}

Your {code_label} is: {otp}

This code will expire in {minutes} minutes.

{ignore_notice}

Regards,
The {app_name} Team
"""


class NotificationService:
    """
    Renders and sends the account emails.

    Raises NotificationError when the provider reports a failed delivery;
    callers choose whether to surface or swallow it.
    """

    def __init__(self, provider: EmailProvider, app_name: str | None = None):
        """
        Initialize NotificationService.

        Args:
            provider: Email provider used for delivery
            app_name: Product name used in subjects and signatures
        """
        self.provider = provider
        self.app_name = app_name or settings.app_name

    def _render(
        self,
        to_email: str,
        subject: str,
        name: str,
        otp: str,
        intro: str,
        code_label: str,
        ignore_notice: str,
        minutes: int,
    ) -> EmailMessage:
        body_text = _TEXT_LAYOUT.format(
            name=name,
            intro=intro,
            code_label=code_label,
            otp=otp,
            minutes=minutes,
            ignore_notice=ignore_notice,
            app_name=self.app_name,
        )
        body_html = _HTML_LAYOUT.format(
            name=escape(name),
            intro=escape(intro),
            otp=escape(otp),
            minutes=minutes,
            ignore_notice=escape(ignore_notice),
            app_name=escape(self.app_name),
        )
        return EmailMessage(
            to_email=to_email,
            subject=subject,
            body_html=body_html,
            body_text=body_text,
        )

    async def _deliver(self, message: EmailMessage) -> EmailResult:
        result = await self.provider.send(message)
        if not result.success:
            logger.error(
                f"Email delivery failed: to={message.to_email} "
                f"subject={message.subject!r} error={result.error_message}"
            )
            raise NotificationError(
                details={"reason": result.error_message} if settings.debug else None
            )
        return result

    async def send_verification_code(self, email: str, name: str, otp: str) -> EmailResult:
        """
        Send the registration verification code.

        Args:
            email: Recipient address
            name: Recipient's given name
            otp: Plaintext verification code

        Returns:
            Provider result for the delivered message

        Raises:
            NotificationError: If the provider could not deliver the message
        """
        message = self._render(
            to_email=email,
            subject=f"Verify Your Email - {self.app_name}",
            name=name,
            otp=otp,
            intro=(
                f"Thank you for registering with {self.app_name}. To verify your "
                "email address, please use the verification code below:"
            ),
            code_label="verification code",
            ignore_notice="If you did not request this verification, please ignore this email.",
            minutes=settings.otp_expire_minutes,
        )
        return await self._deliver(message)

    async def send_password_reset_code(self, email: str, name: str, otp: str) -> EmailResult:
        """
        Send the password reset code.

        Args:
            email: Recipient address
            name: Recipient's given name
            otp: Plaintext reset code

        Returns:
            Provider result for the delivered message

        Raises:
            NotificationError: If the provider could not deliver the message
        """
        message = self._render(
            to_email=email,
            subject=f"Password Reset - {self.app_name}",
            name=name,
            otp=otp,
            intro=(
                "You have requested to reset your password. Please use the code "
                "below to choose a new password:"
            ),
            code_label="password reset code",
            ignore_notice="If you did not request this password reset, please ignore this email.",
            minutes=settings.password_reset_otp_expire_minutes,
        )
        return await self._deliver(message)
