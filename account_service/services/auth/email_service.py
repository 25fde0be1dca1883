"""
Email service for account-related emails.

Handles:
- Email verification emails
- Password reset emails

Delivery is best-effort: failures raise MailDeliveryError, which the
workflow logs and swallows. When SMTP is not configured, messages are
logged instead of sent (development and test).
"""

import html
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from urllib.parse import quote, urlencode

from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log,
)

from account_service.config import Settings
from account_service.services.exceptions import MailDeliveryError


logger = logging.getLogger(__name__)

MAX_SEND_ATTEMPTS = 3


class EmailService:
    """
    Sends account emails over SMTP.

    Bodies are short plain text plus a minimal HTML alternative.
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    def send_verification_email(self, to_email: str, to_name: str, token: str) -> None:
        """
        Send an email verification link.

        Args:
            to_email: Recipient email address
            to_name: Recipient display name
            token: Verification token

        Raises:
            MailDeliveryError: If the message could not be sent
        """
        verification_url = self._link("/verify-email", token)
        hours = self._settings.email_verification_expire_hours

        subject = f"Verify your email - {self._settings.app_name}"
        text_body = (
            f"Hello {to_name},\n\n"
            f"Please verify your email address by visiting:\n{verification_url}\n\n"
            f"This link will expire in {hours} hours.\n"
        )
        html_body = (
            f"<p>Hello {html.escape(to_name)},</p>"
            f'<p>Please <a href="{html.escape(verification_url)}">verify your email address</a>.</p>'
            f"<p>This link will expire in {hours} hours.</p>"
        )

        self._send_email(to_email, subject, html_body, text_body)

    def send_password_reset_email(self, to_email: str, to_name: str, token: str) -> None:
        """
        Send a password reset link.

        Raises:
            MailDeliveryError: If the message could not be sent
        """
        reset_url = self._link("/reset-password", token)
        hours = self._settings.password_reset_expire_hours

        subject = f"Reset your password - {self._settings.app_name}"
        text_body = (
            f"Hello {to_name},\n\n"
            f"You requested to reset your password. Visit this link to proceed:\n{reset_url}\n\n"
            f"This link will expire in {hours} hour(s). "
            f"If you didn't request a reset, you can ignore this email.\n"
        )
        html_body = (
            f"<p>Hello {html.escape(to_name)},</p>"
            f'<p><a href="{html.escape(reset_url)}">Reset your password</a>.</p>'
            f"<p>This link will expire in {hours} hour(s).</p>"
        )

        self._send_email(to_email, subject, html_body, text_body)

    def _link(self, path: str, token: str) -> str:
        query = urlencode({"token": token}, quote_via=quote)
        return f"{self._settings.frontend_url}{path}?{query}"

    def _send_email(
        self,
        to_email: str,
        subject: str,
        html_body: str,
        text_body: str,
    ) -> None:
        if not self._settings.is_email_configured:
            logger.warning(f"Email not configured. Would have sent email to {to_email}: {subject}")
            return

        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{self._settings.smtp_from_name} <{self._settings.smtp_from_email}>"
        msg["To"] = to_email
        msg.attach(MIMEText(text_body, "plain"))
        msg.attach(MIMEText(html_body, "html"))

        try:
            self._deliver(msg)
        except (smtplib.SMTPException, OSError) as e:
            raise MailDeliveryError(to_email, str(e)) from e

        logger.info(f"Email sent successfully to {to_email}")

    @retry(
        stop=stop_after_attempt(MAX_SEND_ATTEMPTS),
        wait=wait_exponential(multiplier=1, min=1, max=4),
        retry=retry_if_exception_type((smtplib.SMTPServerDisconnected, ConnectionError)),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    def _deliver(self, msg: MIMEMultipart) -> None:
        """Open an SMTP session and send one message. Retries dropped connections."""
        with smtplib.SMTP(
            self._settings.smtp_host,
            self._settings.smtp_port,
            timeout=self._settings.smtp_timeout_seconds,
        ) as server:
            server.starttls()
            server.login(
                self._settings.smtp_user,
                self._settings.smtp_password.get_secret_value(),
            )
            server.send_message(msg)
