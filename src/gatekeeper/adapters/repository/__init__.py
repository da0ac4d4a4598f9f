"""Repository adapters - Database and in-memory implementations."""

from .memory import InMemoryAccountRepository, InMemoryRestrictedProfileRepository
from .postgres import (
    PostgresAccountRepository,
    PostgresRestrictedProfileRepository,
    run_migrations,
)

__all__ = [
    "InMemoryAccountRepository",
    "InMemoryRestrictedProfileRepository",
    "PostgresAccountRepository",
    "PostgresRestrictedProfileRepository",
    "run_migrations",
]
