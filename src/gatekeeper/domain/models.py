"""
Domain models - Records and value objects shared across services.

Records are frozen dataclasses; transitions produce new instances via
dataclasses.replace() so invariants are re-checked on every change.
"""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum


class AccountStatus(str, Enum):
    """
    Account lifecycle states.

    State Transitions (forward-only):
    - PENDING -> ACTIVE (email confirmed)
    - PENDING_COMPLETION -> ACTIVE (federated profile completed)

    ACTIVE is terminal. Nothing moves an account back to PENDING.
    """

    PENDING = "pending"
    ACTIVE = "active"
    PENDING_COMPLETION = "pending_completion"


class AgePolicy(str, Enum):
    """How the minimum-age gate counts years."""

    CALENDAR_YEAR = "calendar_year"
    EXACT = "exact"


class LinkOutcome(Enum):
    """Result of reconciling an external identity with local accounts."""

    LINKED = "linked"
    ATTACHED = "attached"
    CREATED = "created"


@dataclass(frozen=True)
class Account:
    """Account record. A verification token exists iff status is PENDING."""

    id: str
    email: str
    password_hash: str
    status: AccountStatus
    first_name: str = ""
    last_name: str = ""
    pin_hash: str | None = None
    phone: str | None = None
    country: str | None = None
    country_dial_code: str | None = None
    birth_date: date | None = None
    verification_token: str | None = None
    verification_token_issued_at: datetime | None = None
    federated_subject: str | None = None
    created_at: datetime | None = None

    def __post_init__(self) -> None:
        has_token = self.verification_token is not None
        if has_token != (self.status == AccountStatus.PENDING):
            raise ValueError(
                f"verification token must be set iff status is pending (status={self.status.value})"
            )

    @property
    def display_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)


@dataclass(frozen=True)
class RestrictedProfile:
    """Child-safe profile owned by exactly one account."""

    id: str
    owner_id: str
    name: str
    pin_hash: str
    avatar: str = "avatar1.png"


@dataclass(frozen=True)
class ExternalIdentity:
    """Verified assertion from a federated identity provider."""

    subject: str
    email: str
    display_name: str


@dataclass(frozen=True)
class SessionClaims:
    """Identity claims carried by a bearer token."""

    subject: str
    email: str
    first_name: str
    last_name: str
    issued_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class SessionGrant:
    """A minted bearer token plus the account it was minted for."""

    token: str
    claims: SessionClaims
    account: Account


@dataclass(frozen=True)
class RegistrationResult:
    """Outcome of registration. email_sent is False when delivery failed."""

    account: Account
    email_sent: bool


@dataclass(frozen=True)
class LoginChallenge:
    """First login step passed; a one-time code is on its way."""

    account_id: str
    requires_verification: bool = True


@dataclass(frozen=True)
class FederatedLoginResult:
    """
    Federated login outcome.

    Either a session, or profile_incomplete=True with no session when
    required fields (phone, PIN, birth date) are still missing.
    """

    account: Account
    outcome: LinkOutcome
    session: SessionGrant | None = None
    profile_incomplete: bool = False
