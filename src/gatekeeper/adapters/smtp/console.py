"""
Console email sender adapter - Implements EmailSender protocol.

This module provides a console-based implementation of the domain's
email sender port, logging verification links to stdout for demo purposes.
"""

import logging

logger = logging.getLogger(__name__)


def verification_link(base_url: str, token: str) -> str:
    """Deep link that confirms an email address when opened."""
    return f"{base_url.rstrip('/')}/v1/users/verify-email/{token}"


class ConsoleEmailSender:
    """
    Implements EmailSender protocol via console logging.

    Uses structural subtyping - no explicit inheritance from Protocol.
    For demo/development purposes - prints verification links to stdout.
    """

    def __init__(self, base_url: str = "http://localhost:8000") -> None:
        self.base_url = base_url

    def send_verification_email(self, to_address: str, token: str, display_name: str) -> bool:
        """
        Log the verification link to console (simulates email delivery).

        In production, this would be replaced with MailerSendEmailSender.
        The link is logged at INFO level to be visible in docker-compose logs.

        Args:
            to_address: Recipient email address (normalized by domain layer)
            token: Verification token
            display_name: Recipient name

        Returns:
            Always True
        """
        logger.info(
            "[VERIFICATION] Email: %s Name: %s Link: %s",
            to_address,
            display_name,
            verification_link(self.base_url, token),
        )
        return True
