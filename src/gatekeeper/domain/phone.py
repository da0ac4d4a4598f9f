"""
Phone number normalization for SMS dispatch.

SMS providers expect E.164-style international numbers. Numbers that
already carry a prefix pass through; bare national numbers get the
caller's dial code, or the configured default when none is known.
"""

import re

from .exceptions import ValidationError

DEFAULT_DIAL_CODE = "+506"

_NON_DIGITS = re.compile(r"\D")


def _dial_digits(dial_code: str) -> str:
    return _NON_DIGITS.sub("", dial_code)


def normalize_phone(
    number: str,
    dial_code: str | None = None,
    default_dial_code: str = DEFAULT_DIAL_CODE,
) -> str:
    """
    Normalize a phone number to international format.

    Args:
        number: Raw phone number as entered by the user
        dial_code: Country dial code known for this account (e.g. "+1")
        default_dial_code: Fallback prefix for bare national numbers

    Returns:
        Number as "+" followed by digits only

    Raises:
        ValidationError: If the number contains no digits
    """
    raw = number.strip()
    digits = _NON_DIGITS.sub("", raw)
    if not digits:
        raise ValidationError("Phone number must contain digits")

    if raw.startswith("+"):
        return f"+{digits}"

    if digits.startswith("00") and len(digits) > 2:
        return f"+{digits[2:]}"

    if dial_code and _dial_digits(dial_code):
        return f"+{_dial_digits(dial_code)}{digits}"

    # North American numbers entered with their leading country code
    if digits.startswith("1") and len(digits) >= 11:
        return f"+{digits}"

    if 8 <= len(digits) <= 10:
        return f"+{_dial_digits(default_dial_code)}{digits}"

    return f"+{digits}"
