"""
Unit tests for the EmailSender adapters.

Tests verify:
- ConsoleEmailSender logs the code and always reports delivery
- BrevoEmailSender builds the transactional email and maps ApiException to False
"""

import logging
from unittest.mock import patch

from sib_api_v3_sdk.rest import ApiException

from src.adapters.smtp.brevo import SUBJECT, BrevoEmailSender
from src.adapters.smtp.console import ConsoleEmailSender

EMAILS_API = "src.adapters.smtp.brevo.sib_api_v3_sdk.TransactionalEmailsApi"


class TestConsoleEmailSender:
    """Tests for ConsoleEmailSender."""

    def test_logs_code(self, caplog) -> None:
        with caplog.at_level(logging.INFO):
            delivered = ConsoleEmailSender().send_verification_code("alice@x.com", "042917")

        assert delivered is True
        assert "[VERIFICATION] Email: alice@x.com Code: 042917" in caplog.text


class TestBrevoEmailSender:
    """Tests for BrevoEmailSender."""

    def build(self) -> BrevoEmailSender:
        return BrevoEmailSender(
            api_key="xkeysib-test",
            sender_email="noreply@blindmatch.app",
            sender_name="Blind Match",
        )

    def test_sends_transactional_email(self) -> None:
        with patch(EMAILS_API) as api_cls:
            delivered = self.build().send_verification_code("alice@x.com", "042917")

        assert delivered is True
        message = api_cls.return_value.send_transac_email.call_args[0][0]
        assert message.to == [{"email": "alice@x.com"}]
        assert message.subject == SUBJECT
        assert "042917" in message.html_content
        assert "10 minutes" in message.html_content
        assert message.sender == {"name": "Blind Match", "email": "noreply@blindmatch.app"}

    def test_api_exception_reported(self, caplog) -> None:
        with patch(EMAILS_API) as api_cls:
            api_cls.return_value.send_transac_email.side_effect = ApiException(
                status=401, reason="Unauthorized"
            )
            delivered = self.build().send_verification_code("alice@x.com", "042917")

        assert delivered is False
        assert "Brevo email to alice@x.com failed" in caplog.text
