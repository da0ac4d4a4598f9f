"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the interfaces (ports) that the domain requires
from infrastructure. Adapters implement these protocols through
structural subtyping.
"""

from datetime import datetime
from typing import Protocol

from .models import Account, ExternalIdentity, RestrictedProfile


class AccountRepository(Protocol):
    """Port interface for account persistence. Email and external subject are unique."""

    def find_by_email(self, email: str) -> Account | None:
        """Look up an account by normalized email."""
        ...

    def find_by_id(self, account_id: str) -> Account | None:
        """Look up an account by id."""
        ...

    def find_by_verification_token(self, token: str) -> Account | None:
        """Look up the pending account holding this verification token."""
        ...

    def find_by_federated_subject(self, subject: str) -> Account | None:
        """Look up the account bound to an external subject id."""
        ...

    def create(self, account: Account) -> bool:
        """
        Atomically insert a new account.

        Returns:
            True if created, False if the email or external subject is
            already taken
        """
        ...

    def update(self, account: Account) -> None:
        """Overwrite the stored record for account.id."""
        ...

    def activate(self, account_id: str, token: str) -> bool:
        """
        Atomically move a PENDING account holding token to ACTIVE.

        Clears the verification token in the same operation.

        Returns:
            True if this call performed the transition, False if the
            account is no longer pending or holds a different token
        """
        ...

    def replace_verification_token(
        self, account_id: str, token: str, issued_at: datetime
    ) -> bool:
        """
        Swap the verification token of a PENDING account.

        Returns:
            True if replaced, False if the account is no longer pending
        """
        ...

    def link_federated_subject(self, account_id: str, subject: str) -> bool:
        """
        Attach an external subject id to an account that has none.

        Returns:
            True if attached, False if the account already has a subject
            or the subject is bound to another account
        """
        ...


class RestrictedProfileRepository(Protocol):
    """Port interface for restricted profile persistence."""

    def create(self, profile: RestrictedProfile) -> None: ...

    def find_by_id(self, profile_id: str) -> RestrictedProfile | None: ...

    def list_by_owner(self, owner_id: str) -> list[RestrictedProfile]: ...

    def update(self, profile: RestrictedProfile) -> None: ...

    def delete(self, profile_id: str) -> bool: ...

    def delete_by_owner(self, owner_id: str) -> int:
        """Delete every profile of an owner. Returns how many were removed."""
        ...


class OneTimeCodeStore(Protocol):
    """
    Port interface for short-lived, single-use numeric codes.

    At most one live code per subject. Operations on one subject are
    linearizable; operations on different subjects do not block each other.
    """

    def issue(self, subject_id: str) -> str:
        """Generate and store a 6-digit code, superseding any prior one."""
        ...

    def verify(self, subject_id: str, candidate: str) -> bool:
        """
        Check a candidate code.

        Expired entries are removed and never match. A match consumes the
        entry; a mismatch leaves it in place for retries until expiry.
        """
        ...

    def discard(self, subject_id: str, code: str | None = None) -> bool:
        """Drop the entry for subject_id, only if it still holds code when given."""
        ...

    def sweep(self) -> int:
        """Remove expired entries and return how many were removed."""
        ...


class EmailSender(Protocol):
    """Port interface for verification email delivery."""

    def send_verification_email(self, to_address: str, token: str, display_name: str) -> bool:
        """
        Send the verification deep link.

        Args:
            to_address: Recipient email address
            token: Verification token embedded in the link
            display_name: Name used to personalize the message

        Returns:
            True if the provider accepted the message
        """
        ...


class SmsSender(Protocol):
    """Port interface for one-time code delivery by SMS."""

    def send_code(self, phone_number: str, code: str) -> bool:
        """
        Send a code to an international-format phone number.

        Returns:
            True if the provider accepted the message

        Raises:
            DependencyError: If the provider is unreachable or misconfigured
        """
        ...


class IdentityVerifier(Protocol):
    """Port interface for federated identity assertion checks."""

    def verify(self, token: str) -> ExternalIdentity:
        """
        Validate an assertion against the issuer's keys and audience.

        Raises:
            AuthenticationError: Invalid, expired, or wrong-audience token
            DependencyError: Issuer keys could not be fetched
        """
        ...
