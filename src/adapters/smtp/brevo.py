"""
Brevo email sender adapter - Implements EmailSender protocol.

Sends verification codes through Brevo's transactional email API.
Provider failures are logged and reported as False; the domain treats
delivery as best-effort.
"""

import logging

import sib_api_v3_sdk
from sib_api_v3_sdk.rest import ApiException

logger = logging.getLogger(__name__)

SUBJECT = "Your Blind Dating Verification Code"


class BrevoEmailSender:
    """
    Implements EmailSender protocol via the Brevo (Sendinblue) SDK.

    Selected with EMAIL_BACKEND=brevo.
    """

    def __init__(
        self,
        api_key: str,
        sender_email: str,
        sender_name: str,
        ttl_minutes: int = 10,
    ) -> None:
        configuration = sib_api_v3_sdk.Configuration()
        configuration.api_key["api-key"] = api_key
        self._api = sib_api_v3_sdk.TransactionalEmailsApi(sib_api_v3_sdk.ApiClient(configuration))
        self._sender = {"name": sender_name, "email": sender_email}
        self._ttl_minutes = ttl_minutes

    def send_verification_code(self, email: str, code: str) -> bool:
        message = sib_api_v3_sdk.SendSmtpEmail(
            to=[{"email": email}],
            subject=SUBJECT,
            html_content=(
                f"<h2>Your OTP</h2><h1>{code}</h1>"
                f"<p>Valid for {self._ttl_minutes} minutes.</p>"
            ),
            sender=self._sender,
        )

        try:
            self._api.send_transac_email(message)
        except ApiException as e:
            logger.error("Brevo email to %s failed: %s %s", email, e.status, e.reason)
            return False

        logger.info("Verification email sent to %s", email)
        return True
