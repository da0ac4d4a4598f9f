"""
Unit tests for AccountService domain logic.

Tests verify:
- Registration validation (passwords, PIN, age, duplicates)
- Secrets are stored only as bcrypt digests
- Email confirmation consumes the token exactly once
- Verification email failures never abort registration
"""

from datetime import date, timedelta
from unittest.mock import Mock

import pytest

from gatekeeper.domain.accounts import AccountService, generate_verification_token, normalize_email
from gatekeeper.domain.exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from gatekeeper.domain.models import AccountStatus, AgePolicy, ExternalIdentity
from gatekeeper.domain.policy import AuthPolicy


class TestHelpers:
    def test_normalize_email(self) -> None:
        assert normalize_email("  User@Example.COM  ") == "user@example.com"

    def test_verification_token_is_256_bit_hex(self) -> None:
        token = generate_verification_token()
        assert len(token) == 64
        int(token, 16)


class TestRegister:
    """Tests for AccountService.register()."""

    def test_creates_pending_account(self, account_service, account_repository, fields_for):
        result = account_service.register(**fields_for("  Parent@Example.com "))

        stored = account_repository.find_by_id(result.account.id)
        assert stored.email == "parent@example.com"
        assert stored.status == AccountStatus.PENDING
        assert stored.verification_token is not None
        assert result.email_sent is True

    def test_secrets_are_hashed(self, account_service, hasher, fields_for) -> None:
        account = account_service.register(**fields_for()).account

        assert account.password_hash != "correct horse battery"
        assert hasher.verify("correct horse battery", account.password_hash)
        assert hasher.verify("123456", account.pin_hash)

    def test_sends_verification_email(self, account_service, email_sender, fields_for) -> None:
        account = account_service.register(**fields_for()).account
        assert email_sender.sent == [("parent@example.com", account.verification_token, "Ana")]

    def test_password_mismatch(self, account_service, account_repository, fields_for) -> None:
        with pytest.raises(ValidationError, match="do not match"):
            account_service.register(**fields_for(confirm_password="something else"))
        assert account_repository.find_by_email("parent@example.com") is None

    def test_malformed_pin(self, account_service, fields_for) -> None:
        with pytest.raises(ValidationError, match="PIN"):
            account_service.register(**fields_for(pin="12345"))

    def test_one_day_under_age_rejected(self, account_service, clock, fields_for) -> None:
        today = clock().date()
        birth = date(today.year - 18, today.month, today.day) + timedelta(days=1)
        with pytest.raises(ValidationError, match="at least 18"):
            account_service.register(**fields_for(birth_date=birth))

    def test_eighteenth_birthday_accepted(self, account_service, clock, fields_for) -> None:
        today = clock().date()
        birth = date(today.year - 18, today.month, today.day)
        assert account_service.register(**fields_for(birth_date=birth)).account

    def test_calendar_year_policy(
        self, account_repository, email_sender, hasher, caller, clock, fields_for
    ) -> None:
        """Calendar-year counting accepts anyone born 18 years ago this year."""
        service = AccountService(
            repository=account_repository,
            email_sender=email_sender,
            hasher=hasher,
            caller=caller,
            policy=AuthPolicy(age_policy=AgePolicy.CALENDAR_YEAR),
            clock=clock,
        )
        birth = date(clock().year - 18, 12, 31)
        assert service.register(**fields_for(birth_date=birth)).account

    def test_duplicate_email(self, account_service, fields_for) -> None:
        account_service.register(**fields_for())
        with pytest.raises(ConflictError):
            account_service.register(**fields_for("PARENT@example.com"))

    def test_lost_insert_race_is_conflict(self, account_service, account_repository, fields_for):
        """A False create() (unique constraint) is reported as a conflict."""
        account_repository.create = Mock(return_value=False)
        with pytest.raises(ConflictError):
            account_service.register(**fields_for())

    def test_email_failure_keeps_account(
        self, account_service, account_repository, email_sender, fields_for
    ) -> None:
        email_sender.result = False
        result = account_service.register(**fields_for())

        assert result.email_sent is False
        assert account_repository.find_by_id(result.account.id) is not None

    def test_email_exception_keeps_account(
        self, account_service, account_repository, email_sender, fields_for, caplog
    ) -> None:
        email_sender.send_verification_email = Mock(side_effect=RuntimeError("smtp down"))
        result = account_service.register(**fields_for())

        assert result.email_sent is False
        assert account_repository.find_by_id(result.account.id) is not None
        assert "was not sent" in caplog.text


class TestConfirmEmail:
    """Tests for AccountService.confirm_email()."""

    def test_activates_account(self, account_service, account_repository, fields_for) -> None:
        pending = account_service.register(**fields_for()).account

        confirmed = account_service.confirm_email(pending.verification_token)

        assert confirmed.status == AccountStatus.ACTIVE
        stored = account_repository.find_by_id(pending.id)
        assert stored.status == AccountStatus.ACTIVE
        assert stored.verification_token is None

    def test_token_is_single_use(self, account_service, fields_for) -> None:
        token = account_service.register(**fields_for()).account.verification_token
        account_service.confirm_email(token)
        with pytest.raises(AuthenticationError):
            account_service.confirm_email(token)

    @pytest.mark.parametrize("token", ["", "unknown-token"])
    def test_unknown_token(self, account_service, token: str) -> None:
        with pytest.raises(AuthenticationError):
            account_service.confirm_email(token)

    def test_tokens_never_expire_by_default(self, account_service, clock, fields_for) -> None:
        token = account_service.register(**fields_for()).account.verification_token
        clock.advance(days=365)
        assert account_service.confirm_email(token).status == AccountStatus.ACTIVE

    def test_optional_token_ttl(
        self, account_repository, email_sender, hasher, caller, clock, fields_for
    ) -> None:
        service = AccountService(
            repository=account_repository,
            email_sender=email_sender,
            hasher=hasher,
            caller=caller,
            policy=AuthPolicy(verification_token_ttl=timedelta(hours=24)),
            clock=clock,
        )
        token = service.register(**fields_for()).account.verification_token
        clock.advance(hours=24, seconds=1)
        with pytest.raises(AuthenticationError, match="expired"):
            service.confirm_email(token)


class TestResendVerification:
    """Tests for AccountService.resend_verification_email()."""

    def test_rotates_token(self, account_service, account_repository, email_sender, fields_for):
        old_token = account_service.register(**fields_for()).account.verification_token

        assert account_service.resend_verification_email("parent@example.com") is True

        new_token = email_sender.sent[-1][1]
        assert new_token != old_token
        assert account_repository.find_by_verification_token(old_token) is None
        with pytest.raises(AuthenticationError):
            account_service.confirm_email(old_token)
        assert account_service.confirm_email(new_token).status == AccountStatus.ACTIVE

    def test_unknown_email_is_quiet(self, account_service, email_sender) -> None:
        assert account_service.resend_verification_email("nobody@example.com") is False
        assert email_sender.sent == []

    def test_already_active_is_quiet(self, account_service, active_account, email_sender):
        sent_before = len(email_sender.sent)
        assert account_service.resend_verification_email(active_account.email) is False
        assert len(email_sender.sent) == sent_before

    def test_delivery_failure_reported_as_false(
        self, account_service, email_sender, fields_for
    ) -> None:
        account_service.register(**fields_for())
        email_sender.result = False
        assert account_service.resend_verification_email("parent@example.com") is False


class TestCompleteFederatedProfile:
    """Tests for AccountService.complete_federated_profile()."""

    @pytest.fixture
    def identity(self) -> ExternalIdentity:
        return ExternalIdentity(subject="google-1", email="kid.parent@example.com", display_name="")

    @pytest.fixture
    def incomplete(self, account_service, identity):
        return account_service.federated_first_contact(identity, "Luis", "Vega")

    def complete(self, account_service, identity, account_id, **overrides):
        fields = {
            "phone": "88887777",
            "pin": "654321",
            "birth_date": date(1985, 1, 1),
            "country": "Costa Rica",
        }
        fields.update(overrides)
        return account_service.complete_federated_profile(account_id, identity, **fields)

    def test_activates_account(self, account_service, identity, incomplete, hasher) -> None:
        assert incomplete.status == AccountStatus.PENDING_COMPLETION

        account = self.complete(account_service, identity, incomplete.id)

        assert account.status == AccountStatus.ACTIVE
        assert account.phone == "88887777"
        assert hasher.verify("654321", account.pin_hash)

    def test_unknown_account(self, account_service, identity) -> None:
        with pytest.raises(NotFoundError):
            self.complete(account_service, identity, "missing")

    def test_subject_mismatch(self, account_service, incomplete) -> None:
        other = ExternalIdentity(subject="google-2", email="x@example.com", display_name="")
        with pytest.raises(AuthenticationError):
            self.complete(account_service, other, incomplete.id)

    def test_already_complete(self, account_service, identity, incomplete) -> None:
        self.complete(account_service, identity, incomplete.id)
        with pytest.raises(ConflictError):
            self.complete(account_service, identity, incomplete.id)

    def test_requires_phone(self, account_service, identity, incomplete) -> None:
        with pytest.raises(ValidationError, match="Phone"):
            self.complete(account_service, identity, incomplete.id, phone="  ")

    def test_under_age(self, account_service, identity, incomplete, clock) -> None:
        with pytest.raises(ValidationError):
            self.complete(
                account_service, identity, incomplete.id, birth_date=clock().date()
            )
