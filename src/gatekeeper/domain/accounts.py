"""
Account domain service - Account State Machine implementation.

Account State Machine (Forward-Only Transitions)
================================================

States:
- PENDING: registered with email and password, email not yet confirmed
- PENDING_COMPLETION: created from a federated identity, profile incomplete
- ACTIVE: fully verified (terminal)

Valid Transitions:
    (none)             -> PENDING             (register)
    (none)             -> PENDING_COMPLETION  (federated first contact)
    PENDING            -> ACTIVE              (confirm email with token)
    PENDING_COMPLETION -> ACTIVE              (complete federated profile)

Invalid Transitions (never allowed):
    ACTIVE -> any       (ACTIVE is terminal)
    any -> PENDING      (no backward movement)

The PENDING -> ACTIVE step is atomic at the repository level so a
verification token can be consumed exactly once.
"""

import dataclasses
import logging
import secrets
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date, datetime

from .delivery import BoundedCaller
from .exceptions import (
    AuthenticationError,
    ConflictError,
    DependencyError,
    NotFoundError,
    ValidationError,
)
from .hashing import SecretHasher
from .models import Account, AccountStatus, ExternalIdentity, RegistrationResult
from .policy import AuthPolicy, require_minimum_age, require_pin_format
from .ports import AccountRepository, EmailSender
from .sessions import utc_now

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    """
    Normalize email address for consistent storage and lookup.

    Applies: strip whitespace + lowercase
    """
    return email.strip().lower()


def generate_verification_token() -> str:
    """256-bit random token, hex encoded for use in a link."""
    return secrets.token_hex(32)


@dataclass
class AccountService:
    """
    Domain service for the account lifecycle.

    Owns registration, email confirmation, and the federated
    account transitions. Mail delivery goes through a BoundedCaller so a
    slow provider never blocks a registration indefinitely.
    """

    repository: AccountRepository
    email_sender: EmailSender
    hasher: SecretHasher
    caller: BoundedCaller
    policy: AuthPolicy = field(default_factory=AuthPolicy)
    clock: Callable[[], datetime] = utc_now

    def register(
        self,
        *,
        email: str,
        password: str,
        confirm_password: str,
        pin: str,
        birth_date: date,
        first_name: str = "",
        last_name: str = "",
        phone: str | None = None,
        country: str | None = None,
        country_dial_code: str | None = None,
    ) -> RegistrationResult:
        """
        Register a new account in PENDING and send the verification email.

        The account stays persisted even when the email cannot be sent;
        the result reports email_sent=False so the caller can offer a resend.

        Raises:
            ValidationError: Password mismatch, bad PIN, or under age
            ConflictError: If the email is already registered
        """
        normalized_email = normalize_email(email)
        if not normalized_email:
            raise ValidationError("Email is required")
        if password != confirm_password:
            raise ValidationError("Passwords do not match")
        require_pin_format(pin)
        require_minimum_age(birth_date, self.clock().date(), self.policy)

        if self.repository.find_by_email(normalized_email) is not None:
            raise ConflictError("Email is already registered")

        now = self.clock()
        account = Account(
            id=str(uuid.uuid4()),
            email=normalized_email,
            password_hash=self.hasher.hash(password),
            pin_hash=self.hasher.hash(pin),
            status=AccountStatus.PENDING,
            first_name=first_name.strip(),
            last_name=last_name.strip(),
            phone=phone,
            country=country,
            country_dial_code=country_dial_code,
            birth_date=birth_date,
            verification_token=generate_verification_token(),
            verification_token_issued_at=now,
            created_at=now,
        )
        # The repository's unique constraint settles concurrent registrations
        if not self.repository.create(account):
            raise ConflictError("Email is already registered")

        logger.info("Registered account %s in %s state", account.id, account.status.value)
        email_sent = self._send_verification(account)
        return RegistrationResult(account=account, email_sent=email_sent)

    def confirm_email(self, token: str) -> Account:
        """
        Consume a verification token and activate its account.

        Raises:
            AuthenticationError: Unknown, already used, or expired token
        """
        account = self.repository.find_by_verification_token(token) if token else None
        if account is None:
            raise AuthenticationError("Invalid verification token")

        ttl = self.policy.verification_token_ttl
        issued_at = account.verification_token_issued_at
        if ttl is not None and issued_at is not None and self.clock() > issued_at + ttl:
            raise AuthenticationError("Verification token has expired")

        if not self.repository.activate(account.id, token):
            raise AuthenticationError("Invalid verification token")

        logger.info("Account %s verified its email", account.id)
        return dataclasses.replace(
            account,
            status=AccountStatus.ACTIVE,
            verification_token=None,
            verification_token_issued_at=None,
        )

    def resend_verification_email(self, email: str) -> bool:
        """
        Rotate the verification token of a PENDING account and email it again.

        Unknown emails and accounts that are not awaiting confirmation are
        not distinguished from a failed delivery: all of them return False
        and raise nothing.

        Returns:
            True if the email was handed to the provider
        """
        account = self.repository.find_by_email(normalize_email(email))
        if account is None or account.status != AccountStatus.PENDING:
            logger.info("Verification resend skipped: no pending account for this email")
            return False

        account = dataclasses.replace(
            account,
            verification_token=generate_verification_token(),
            verification_token_issued_at=self.clock(),
        )
        rotated = self.repository.replace_verification_token(
            account.id, account.verification_token, account.verification_token_issued_at
        )
        if not rotated:
            logger.info("Account %s was confirmed before its token could be rotated", account.id)
            return False
        return self._send_verification(account)

    def federated_first_contact(
        self, identity: ExternalIdentity, first_name: str, last_name: str
    ) -> Account | None:
        """
        Create a PENDING_COMPLETION account for a new federated identity.

        The password is a random unusable placeholder; the account can only
        be reached through the identity provider until it is completed.

        Returns:
            The new account, or None if the email or subject was taken concurrently
        """
        account = Account(
            id=str(uuid.uuid4()),
            email=normalize_email(identity.email),
            password_hash=self.hasher.hash(secrets.token_hex(16)),
            status=AccountStatus.PENDING_COMPLETION,
            first_name=first_name,
            last_name=last_name,
            federated_subject=identity.subject,
            created_at=self.clock(),
        )
        if not self.repository.create(account):
            return None
        logger.info("Created account %s from federated identity", account.id)
        return account

    def attach_federated_subject(self, account: Account, subject: str) -> Account | None:
        """
        Link an external subject to an existing account, keeping its status.

        Returns:
            The updated account, or None if another subject got there first
        """
        if not self.repository.link_federated_subject(account.id, subject):
            return None
        logger.info("Linked federated identity to account %s", account.id)
        return dataclasses.replace(account, federated_subject=subject)

    def complete_federated_profile(
        self,
        account_id: str,
        identity: ExternalIdentity,
        *,
        phone: str,
        pin: str,
        birth_date: date,
        country: str,
        country_dial_code: str | None = None,
    ) -> Account:
        """
        Fill the missing profile fields and move PENDING_COMPLETION -> ACTIVE.

        Raises:
            NotFoundError: Unknown account
            ConflictError: Account is not awaiting completion
            AuthenticationError: Assertion subject does not match the account
            ValidationError: Bad PIN or under age
        """
        account = self.repository.find_by_id(account_id)
        if account is None:
            raise NotFoundError("Account not found")
        if account.federated_subject != identity.subject:
            raise AuthenticationError("Identity does not match this account")
        if account.status != AccountStatus.PENDING_COMPLETION:
            raise ConflictError("Profile is already complete")
        if not phone or not phone.strip():
            raise ValidationError("Phone number is required")
        require_pin_format(pin)
        require_minimum_age(birth_date, self.clock().date(), self.policy)

        account = dataclasses.replace(
            account,
            phone=phone.strip(),
            pin_hash=self.hasher.hash(pin),
            birth_date=birth_date,
            country=country,
            country_dial_code=country_dial_code,
            status=AccountStatus.ACTIVE,
        )
        self.repository.update(account)
        logger.info("Account %s completed its federated profile", account.id)
        return account

    def _send_verification(self, account: Account) -> bool:
        """Send the verification email; failures are reported, never raised."""
        try:
            sent = self.caller.call(
                "verification email",
                self.email_sender.send_verification_email,
                account.email,
                account.verification_token,
                account.first_name or account.email,
            )
        except DependencyError:
            sent = False
        if not sent:
            logger.warning("Verification email for account %s was not sent", account.id)
        return bool(sent)
