"""
In-memory repository adapters - Implement the repository protocols.

Used for development (REPOSITORY_BACKEND=memory) and tests. A single
lock per repository makes the conditional transitions atomic, mirroring
the WHERE-guarded updates of the PostgreSQL adapter.
"""

import dataclasses
import threading
from datetime import datetime

from gatekeeper.domain.models import Account, AccountStatus, RestrictedProfile


class InMemoryAccountRepository:
    """
    Implements AccountRepository protocol with a dict keyed by account id.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._accounts: dict[str, Account] = {}

    def find_by_email(self, email: str) -> Account | None:
        with self._lock:
            return next((a for a in self._accounts.values() if a.email == email), None)

    def find_by_id(self, account_id: str) -> Account | None:
        with self._lock:
            return self._accounts.get(account_id)

    def find_by_verification_token(self, token: str) -> Account | None:
        with self._lock:
            return next(
                (a for a in self._accounts.values() if a.verification_token == token), None
            )

    def find_by_federated_subject(self, subject: str) -> Account | None:
        with self._lock:
            return self._bound_to(subject)

    def _bound_to(self, subject: str) -> Account | None:
        return next((a for a in self._accounts.values() if a.federated_subject == subject), None)

    def create(self, account: Account) -> bool:
        with self._lock:
            if any(a.email == account.email for a in self._accounts.values()):
                return False
            if account.federated_subject is not None and self._bound_to(account.federated_subject):
                return False
            self._accounts[account.id] = account
            return True

    def update(self, account: Account) -> None:
        with self._lock:
            if account.id in self._accounts:
                self._accounts[account.id] = account

    def activate(self, account_id: str, token: str) -> bool:
        with self._lock:
            account = self._accounts.get(account_id)
            if (
                account is None
                or account.status != AccountStatus.PENDING
                or account.verification_token != token
            ):
                return False
            self._accounts[account_id] = dataclasses.replace(
                account,
                status=AccountStatus.ACTIVE,
                verification_token=None,
                verification_token_issued_at=None,
            )
            return True

    def replace_verification_token(
        self, account_id: str, token: str, issued_at: datetime
    ) -> bool:
        with self._lock:
            account = self._accounts.get(account_id)
            if account is None or account.status != AccountStatus.PENDING:
                return False
            self._accounts[account_id] = dataclasses.replace(
                account, verification_token=token, verification_token_issued_at=issued_at
            )
            return True

    def link_federated_subject(self, account_id: str, subject: str) -> bool:
        with self._lock:
            account = self._accounts.get(account_id)
            if account is None or account.federated_subject is not None:
                return False
            if self._bound_to(subject) is not None:
                return False
            self._accounts[account_id] = dataclasses.replace(account, federated_subject=subject)
            return True


class InMemoryRestrictedProfileRepository:
    """Implements RestrictedProfileRepository protocol with a dict."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._profiles: dict[str, RestrictedProfile] = {}

    def create(self, profile: RestrictedProfile) -> None:
        with self._lock:
            self._profiles[profile.id] = profile

    def find_by_id(self, profile_id: str) -> RestrictedProfile | None:
        with self._lock:
            return self._profiles.get(profile_id)

    def list_by_owner(self, owner_id: str) -> list[RestrictedProfile]:
        with self._lock:
            return [p for p in self._profiles.values() if p.owner_id == owner_id]

    def update(self, profile: RestrictedProfile) -> None:
        with self._lock:
            if profile.id in self._profiles:
                self._profiles[profile.id] = profile

    def delete(self, profile_id: str) -> bool:
        with self._lock:
            return self._profiles.pop(profile_id, None) is not None

    def delete_by_owner(self, owner_id: str) -> int:
        with self._lock:
            doomed = [pid for pid, p in self._profiles.items() if p.owner_id == owner_id]
            for pid in doomed:
                del self._profiles[pid]
            return len(doomed)
