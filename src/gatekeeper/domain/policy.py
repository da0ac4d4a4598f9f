"""
Authentication policy - explicit configuration for domain services.

Services receive an AuthPolicy at construction time and never read
process state themselves. The API layer builds it from Settings.
"""

from dataclasses import dataclass
from datetime import date, timedelta

from .exceptions import ValidationError
from .models import AgePolicy

PIN_LENGTH = 6


@dataclass(frozen=True)
class AuthPolicy:
    """Tunable rules shared by the account and verification services."""

    minimum_age: int = 18
    age_policy: AgePolicy = AgePolicy.EXACT
    verification_token_ttl: timedelta | None = None
    default_dial_code: str = "+506"


def age_on(birth_date: date, today: date, policy: AgePolicy) -> int:
    """
    Age in years on a given day.

    CALENDAR_YEAR subtracts birth year from the current year and ignores
    whether the birthday has happened yet; EXACT counts completed years.
    """
    years = today.year - birth_date.year
    if policy == AgePolicy.EXACT and (today.month, today.day) < (birth_date.month, birth_date.day):
        years -= 1
    return years


def require_minimum_age(birth_date: date, today: date, policy: AuthPolicy) -> None:
    """Raise ValidationError when birth_date is under the minimum age."""
    if birth_date > today:
        raise ValidationError("Birth date cannot be in the future")
    if age_on(birth_date, today, policy.age_policy) < policy.minimum_age:
        raise ValidationError(f"You must be at least {policy.minimum_age} years old")


def require_pin_format(pin: str | None) -> str:
    """Raise ValidationError unless pin is exactly six ASCII digits."""
    if not pin or len(pin) != PIN_LENGTH or not (pin.isascii() and pin.isdigit()):
        raise ValidationError(f"PIN must be exactly {PIN_LENGTH} digits")
    return pin
