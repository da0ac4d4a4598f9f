"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- A controllable clock
- In-memory repositories and one-time-code store
- Recording email/SMS senders and a fake identity verifier
- A fully wired VerificationOrchestrator
"""

from collections.abc import Generator
from datetime import date, datetime, timedelta, timezone

import pytest

from gatekeeper.adapters.otp.memory import InMemoryOneTimeCodeStore
from gatekeeper.adapters.repository.memory import (
    InMemoryAccountRepository,
    InMemoryRestrictedProfileRepository,
)
from gatekeeper.domain.accounts import AccountService
from gatekeeper.domain.delivery import BoundedCaller
from gatekeeper.domain.exceptions import AuthenticationError
from gatekeeper.domain.federation import FederatedIdentityLinker
from gatekeeper.domain.hashing import SecretHasher
from gatekeeper.domain.models import Account, ExternalIdentity
from gatekeeper.domain.policy import AuthPolicy
from gatekeeper.domain.profiles import RestrictedProfileService
from gatekeeper.domain.sessions import SessionIssuer
from gatekeeper.domain.verification import VerificationOrchestrator

START = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)
ADULT_BIRTH_DATE = date(1990, 6, 1)
PASSWORD = "correct horse battery"
PIN = "123456"
SESSION_SECRET = "test-session-secret-with-enough-length-for-hs256"


class FakeClock:
    """Mutable time source shared by the components under test."""

    def __init__(self, now: datetime = START) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class RecordingEmailSender:
    """EmailSender that remembers what it was asked to send."""

    def __init__(self, result: bool = True) -> None:
        self.result = result
        self.sent: list[tuple[str, str, str]] = []

    def send_verification_email(self, to_address: str, token: str, display_name: str) -> bool:
        self.sent.append((to_address, token, display_name))
        return self.result


class RecordingSmsSender:
    """SmsSender that remembers codes, or fails on demand."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []
        self.error: Exception | None = None
        self.result = True

    def send_code(self, phone_number: str, code: str) -> bool:
        if self.error is not None:
            raise self.error
        self.sent.append((phone_number, code))
        return self.result

    @property
    def last_code(self) -> str:
        return self.sent[-1][1]


class FakeIdentityVerifier:
    """IdentityVerifier backed by a dict of known assertions."""

    def __init__(self) -> None:
        self.identities: dict[str, ExternalIdentity] = {}

    def add(self, token: str, subject: str, email: str, name: str = "") -> None:
        self.identities[token] = ExternalIdentity(subject=subject, email=email, display_name=name)

    def verify(self, token: str) -> ExternalIdentity:
        try:
            return self.identities[token]
        except KeyError:
            raise AuthenticationError("Invalid identity token") from None


@pytest.fixture(scope="session")
def hasher() -> SecretHasher:
    """Cheapest bcrypt cost to keep the suite fast."""
    return SecretHasher(rounds=4)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def policy() -> AuthPolicy:
    return AuthPolicy()


@pytest.fixture
def account_repository() -> InMemoryAccountRepository:
    return InMemoryAccountRepository()


@pytest.fixture
def profile_repository() -> InMemoryRestrictedProfileRepository:
    return InMemoryRestrictedProfileRepository()


@pytest.fixture
def code_store(clock: FakeClock) -> InMemoryOneTimeCodeStore:
    return InMemoryOneTimeCodeStore(ttl=timedelta(minutes=10), clock=clock)


@pytest.fixture
def email_sender() -> RecordingEmailSender:
    return RecordingEmailSender()


@pytest.fixture
def sms_sender() -> RecordingSmsSender:
    return RecordingSmsSender()


@pytest.fixture
def identity_verifier() -> FakeIdentityVerifier:
    return FakeIdentityVerifier()


@pytest.fixture
def caller() -> Generator[BoundedCaller, None, None]:
    caller = BoundedCaller(timeout_seconds=2.0, max_workers=4)
    yield caller
    caller.shutdown()


@pytest.fixture
def sessions(clock: FakeClock) -> SessionIssuer:
    return SessionIssuer(secret=SESSION_SECRET, ttl=timedelta(hours=24), clock=clock)


@pytest.fixture
def account_service(
    account_repository: InMemoryAccountRepository,
    email_sender: RecordingEmailSender,
    hasher: SecretHasher,
    caller: BoundedCaller,
    policy: AuthPolicy,
    clock: FakeClock,
) -> AccountService:
    return AccountService(
        repository=account_repository,
        email_sender=email_sender,
        hasher=hasher,
        caller=caller,
        policy=policy,
        clock=clock,
    )


@pytest.fixture
def profile_service(
    profile_repository: InMemoryRestrictedProfileRepository,
    account_repository: InMemoryAccountRepository,
    hasher: SecretHasher,
) -> RestrictedProfileService:
    return RestrictedProfileService(
        repository=profile_repository, accounts=account_repository, hasher=hasher
    )


@pytest.fixture
def orchestrator(
    account_repository: InMemoryAccountRepository,
    account_service: AccountService,
    profile_service: RestrictedProfileService,
    code_store: InMemoryOneTimeCodeStore,
    sessions: SessionIssuer,
    hasher: SecretHasher,
    sms_sender: RecordingSmsSender,
    identity_verifier: FakeIdentityVerifier,
    caller: BoundedCaller,
    policy: AuthPolicy,
) -> VerificationOrchestrator:
    return VerificationOrchestrator(
        repository=account_repository,
        accounts=account_service,
        profiles=profile_service,
        linker=FederatedIdentityLinker(repository=account_repository, accounts=account_service),
        code_store=code_store,
        sessions=sessions,
        hasher=hasher,
        sms_sender=sms_sender,
        identity_verifier=identity_verifier,
        caller=caller,
        policy=policy,
    )


def registration_fields(email: str = "parent@example.com", **overrides: object) -> dict:
    """Valid keyword arguments for AccountService.register()."""
    fields = {
        "email": email,
        "password": PASSWORD,
        "confirm_password": PASSWORD,
        "pin": PIN,
        "birth_date": ADULT_BIRTH_DATE,
        "first_name": "Ana",
        "last_name": "Mora",
        "phone": "88887777",
        "country": "Costa Rica",
        "country_dial_code": "+506",
    }
    fields.update(overrides)
    return fields


@pytest.fixture
def active_account(
    account_service: AccountService, account_repository: InMemoryAccountRepository
) -> Account:
    """A registered account whose email has been confirmed."""
    result = account_service.register(**registration_fields())
    account_service.confirm_email(result.account.verification_token)
    return account_repository.find_by_id(result.account.id)


@pytest.fixture
def fields_for():
    """Factory for valid registration keyword arguments."""
    return registration_fields
