"""
Console email sender adapter - Implements EmailSender protocol.

This module provides a console-based implementation of the domain's
email sender port, logging verification codes to stdout for development.
"""

import logging

logger = logging.getLogger(__name__)


class ConsoleEmailSender:
    """
    Implements EmailSender protocol via console logging.

    Uses structural subtyping - no explicit inheritance from Protocol.
    Selected with EMAIL_BACKEND=console (the default).
    """

    def send_verification_code(self, email: str, code: str) -> bool:
        """
        Log verification code to console (simulates email delivery).

        The code is logged at INFO level to be visible in container logs.

        Args:
            email: Recipient email address (normalized by domain layer)
            code: 6-digit verification code

        Returns:
            Always True
        """
        logger.info("[VERIFICATION] Email: %s Code: %s", email, code)
        return True
