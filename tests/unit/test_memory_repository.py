"""
Unit tests for the in-memory account repository's uniqueness rules.
"""

import dataclasses

from gatekeeper.adapters.repository.memory import InMemoryAccountRepository
from gatekeeper.domain.models import Account, AccountStatus


def federated(account_id: str, email: str, subject: str | None) -> Account:
    return Account(
        id=account_id,
        email=email,
        password_hash="$2b$04$hash",
        status=AccountStatus.PENDING_COMPLETION,
        federated_subject=subject,
    )


class TestFederatedSubjectUniqueness:
    def test_find_by_federated_subject(self) -> None:
        repository = InMemoryAccountRepository()
        repository.create(federated("a-1", "one@example.com", "g-1"))

        assert repository.find_by_federated_subject("g-1").id == "a-1"
        assert repository.find_by_federated_subject("g-2") is None

    def test_create_with_taken_subject_returns_false(self) -> None:
        repository = InMemoryAccountRepository()
        assert repository.create(federated("a-1", "one@example.com", "g-1")) is True
        assert repository.create(federated("a-2", "two@example.com", "g-1")) is False
        assert repository.find_by_email("two@example.com") is None

    def test_accounts_without_subject_do_not_collide(self) -> None:
        repository = InMemoryAccountRepository()
        assert repository.create(federated("a-1", "one@example.com", None)) is True
        assert repository.create(federated("a-2", "two@example.com", None)) is True

    def test_link_taken_subject_returns_false(self) -> None:
        repository = InMemoryAccountRepository()
        repository.create(federated("a-1", "one@example.com", "g-1"))
        repository.create(federated("a-2", "two@example.com", None))

        assert repository.link_federated_subject("a-2", "g-1") is False
        assert repository.find_by_id("a-2").federated_subject is None

    def test_update_keeps_record_replaceable(self) -> None:
        repository = InMemoryAccountRepository()
        account = federated("a-1", "one@example.com", "g-1")
        repository.create(account)
        repository.update(dataclasses.replace(account, first_name="Luis"))

        assert repository.find_by_federated_subject("g-1").first_name == "Luis"
