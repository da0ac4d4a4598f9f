"""
Federated identity linking - reconcile external assertions with accounts.

The identity provider has already verified the asserted email, so an
existing local account with that email is trusted and linked without
re-verification. Its status is left untouched.
"""

from dataclasses import dataclass

from .accounts import AccountService, normalize_email
from .exceptions import AuthenticationError, InternalError
from .models import Account, ExternalIdentity, LinkOutcome
from .ports import AccountRepository


def split_display_name(display_name: str) -> tuple[str, str]:
    """
    Split a display name into (first name, family name).

    The first whitespace-delimited token is the first name; the rest,
    joined by single spaces, is the family name.
    """
    parts = display_name.split()
    if not parts:
        return "", ""
    return parts[0], " ".join(parts[1:])


@dataclass
class FederatedIdentityLinker:
    """Maps an ExternalIdentity onto exactly one local account."""

    repository: AccountRepository
    accounts: AccountService

    def link(self, identity: ExternalIdentity) -> tuple[Account, LinkOutcome]:
        """
        Find, attach, or create the account for an external identity.

        A subject stays bound to the account it was first linked to. If the
        provider later asserts it with a different email, the login is
        refused rather than creating or re-pointing a second account.

        Returns:
            (account, outcome) where outcome is LINKED when the account was
            already linked to this subject, ATTACHED when the subject was
            just attached to an existing account, and CREATED for a new
            PENDING_COMPLETION account

        Raises:
            AuthenticationError: The email belongs to an account linked to a
                different external subject, or the subject is already bound
                to the account of a different email
        """
        email = normalize_email(identity.email)
        self._require_subject_unbound_elsewhere(identity.subject, email)
        account = self.repository.find_by_email(email)

        if account is None:
            first_name, last_name = split_display_name(identity.display_name)
            created = self.accounts.federated_first_contact(identity, first_name, last_name)
            if created is not None:
                return created, LinkOutcome.CREATED
            # Lost a creation race; continue with whoever won it
            account = self._reload(email, identity.subject)

        if account.federated_subject is None:
            attached = self.accounts.attach_federated_subject(account, identity.subject)
            if attached is not None:
                return attached, LinkOutcome.ATTACHED
            account = self._reload(email, identity.subject)

        if account.federated_subject != identity.subject:
            raise AuthenticationError("Account is linked to a different identity")
        return account, LinkOutcome.LINKED

    def _require_subject_unbound_elsewhere(self, subject: str, email: str) -> None:
        bound = self.repository.find_by_federated_subject(subject)
        if bound is not None and bound.email != email:
            raise AuthenticationError("Identity is linked to a different account")

    def _reload(self, email: str, subject: str) -> Account:
        # The competing write may have bound the subject under another email
        self._require_subject_unbound_elsewhere(subject, email)
        account = self.repository.find_by_email(email)
        if account is None:
            raise InternalError("Account vanished while linking identity")
        return account
