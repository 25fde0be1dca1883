# tests/services/auth/test_email_service.py
"""
Tests for the SMTP email service.

Tests:
- Unconfigured SMTP logs instead of sending
- Message content and links
- Retry on dropped connections
- Failures surface as MailDeliveryError
"""

import smtplib
from unittest.mock import patch

import pytest

from account_service.config import Settings
from account_service.services.auth.email_service import MAX_SEND_ATTEMPTS, EmailService
from account_service.services.exceptions import MailDeliveryError


@pytest.fixture
def smtp_settings() -> Settings:
    return Settings(
        environment="test",
        smtp_host="smtp.example.com",
        smtp_port=587,
        smtp_user="mailer",
        smtp_password="mailer-password",
        smtp_from_email="noreply@example.com",
        frontend_url="https://app.example.com",
    )


@pytest.fixture
def mock_smtp():
    with patch("account_service.services.auth.email_service.smtplib.SMTP") as smtp_cls:
        yield smtp_cls


@pytest.fixture
def no_retry_sleep():
    """Skip tenacity's backoff between delivery attempts."""
    with patch.object(EmailService._deliver.retry, "sleep", lambda seconds: None):
        yield


def _sent_message(mock_smtp):
    server = mock_smtp.return_value.__enter__.return_value
    return server.send_message.call_args.args[0]


def _plain_body(message) -> str:
    return message.get_payload()[0].get_payload(decode=True).decode()


def _html_body(message) -> str:
    return message.get_payload()[1].get_payload(decode=True).decode()


# =============================================================================
# TEST: UNCONFIGURED
# =============================================================================


class TestUnconfigured:
    """Tests for the no-SMTP fallback."""

    def test_skips_sending_when_not_configured(self, settings, mock_smtp):
        EmailService(settings).send_verification_email("a@example.com", "Alice", "tok")

        mock_smtp.assert_not_called()


# =============================================================================
# TEST: MESSAGES
# =============================================================================


class TestMessages:
    """Tests for message construction."""

    def test_verification_email(self, smtp_settings, mock_smtp):
        EmailService(smtp_settings).send_verification_email("alice@example.com", "Alice", "tok-123")

        message = _sent_message(mock_smtp)
        assert message["To"] == "alice@example.com"
        assert message["From"] == "Account Service <noreply@example.com>"
        assert message["Subject"].startswith("Verify your email")
        body = _plain_body(message)
        assert "Hello Alice" in body
        assert "https://app.example.com/verify-email?token=tok-123" in body
        assert "24 hours" in body

    def test_password_reset_email(self, smtp_settings, mock_smtp):
        EmailService(smtp_settings).send_password_reset_email("alice@example.com", "Alice", "tok-456")

        message = _sent_message(mock_smtp)
        assert message["Subject"].startswith("Reset your password")
        assert "https://app.example.com/reset-password?token=tok-456" in _plain_body(message)

    def test_html_escapes_user_supplied_name(self, smtp_settings, mock_smtp):
        name = '<a href="https://evil.example">Click</a>'

        EmailService(smtp_settings).send_verification_email("victim@example.com", name, "tok-789")

        body = _html_body(_sent_message(mock_smtp))
        assert '<a href="https://evil.example">' not in body
        assert "&lt;a href=&quot;https://evil.example&quot;&gt;Click&lt;/a&gt;" in body
        assert 'href="https://app.example.com/verify-email?token=tok-789"' in body

    def test_link_token_is_url_encoded(self, smtp_settings, mock_smtp):
        EmailService(smtp_settings).send_password_reset_email("alice@example.com", "Alice", "a b&c")

        assert "https://app.example.com/reset-password?token=a%20b%26c" in _plain_body(_sent_message(mock_smtp))

    def test_smtp_session(self, smtp_settings, mock_smtp):
        EmailService(smtp_settings).send_verification_email("alice@example.com", "Alice", "tok")

        mock_smtp.assert_called_once_with("smtp.example.com", 587, timeout=10.0)
        server = mock_smtp.return_value.__enter__.return_value
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("mailer", "mailer-password")


# =============================================================================
# TEST: FAILURES
# =============================================================================


class TestFailures:
    """Tests for delivery failures."""

    def test_retries_dropped_connection(self, smtp_settings, mock_smtp, no_retry_sleep):
        server = mock_smtp.return_value.__enter__.return_value
        server.send_message.side_effect = [smtplib.SMTPServerDisconnected("dropped"), None]

        EmailService(smtp_settings).send_verification_email("alice@example.com", "Alice", "tok")

        assert server.send_message.call_count == 2

    def test_gives_up_after_max_attempts(self, smtp_settings, mock_smtp, no_retry_sleep):
        server = mock_smtp.return_value.__enter__.return_value
        server.send_message.side_effect = smtplib.SMTPServerDisconnected("dropped")

        with pytest.raises(MailDeliveryError) as exc_info:
            EmailService(smtp_settings).send_verification_email("alice@example.com", "Alice", "tok")

        assert server.send_message.call_count == MAX_SEND_ATTEMPTS
        assert exc_info.value.recipient == "alice@example.com"

    def test_auth_failure_is_not_retried(self, smtp_settings, mock_smtp, no_retry_sleep):
        server = mock_smtp.return_value.__enter__.return_value
        server.login.side_effect = smtplib.SMTPAuthenticationError(535, b"bad credentials")

        with pytest.raises(MailDeliveryError):
            EmailService(smtp_settings).send_password_reset_email("alice@example.com", "Alice", "tok")

        assert server.login.call_count == 1

    def test_connection_refused(self, smtp_settings, mock_smtp, no_retry_sleep):
        mock_smtp.side_effect = ConnectionRefusedError("refused")

        with pytest.raises(MailDeliveryError):
            EmailService(smtp_settings).send_verification_email("alice@example.com", "Alice", "tok")
