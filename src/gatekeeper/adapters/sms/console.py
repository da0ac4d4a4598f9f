"""
Console SMS sender adapter - Implements SmsSender protocol.

Logs one-time codes instead of sending them. Development only.
"""

import logging

logger = logging.getLogger(__name__)


class ConsoleSmsSender:
    """
    Implements SmsSender protocol via console logging.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def send_code(self, phone_number: str, code: str) -> bool:
        """
        Log the code to console (simulates SMS delivery).

        Args:
            phone_number: International-format number (normalized by domain layer)
            code: 6-digit one-time code

        Returns:
            Always True
        """
        logger.info("[SMS] Phone: %s Code: %s", phone_number, code)
        return True
