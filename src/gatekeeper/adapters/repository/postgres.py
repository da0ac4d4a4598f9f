"""
PostgreSQL repository adapters - Implement the repository protocols.

This module provides the PostgreSQL implementation of the domain's
repository ports using psycopg3 with raw SQL.

Atomic Transitions:
------------------
One-shot transitions are single UPDATE statements guarded by a WHERE
clause on the expected state, so concurrent callers cannot both win:

1. **activate()**: only matches a row that is still 'pending' and still
   holds the presented token. The token is cleared in the same statement.

2. **link_federated_subject()**: only matches while federated_subject IS NULL
   and no other row holds the subject. A concurrent winner trips the UNIQUE
   constraint, which is reported as a lost transition.

3. **create()**: INSERT ... ON CONFLICT DO NOTHING. The UNIQUE constraints on
   email and federated_subject settle concurrent first contacts.
"""

import logging
from datetime import datetime
from pathlib import Path

from psycopg.errors import UniqueViolation
from psycopg_pool import ConnectionPool

from gatekeeper.domain.models import Account, AccountStatus, RestrictedProfile

logger = logging.getLogger(__name__)

_ACCOUNT_COLUMNS = (
    "id",
    "email",
    "password_hash",
    "pin_hash",
    "first_name",
    "last_name",
    "phone",
    "country",
    "country_dial_code",
    "birth_date",
    "status",
    "verification_token",
    "verification_token_issued_at",
    "federated_subject",
    "created_at",
)
_ACCOUNT_SELECT = f"SELECT {', '.join(_ACCOUNT_COLUMNS)} FROM accounts"

_PROFILE_COLUMNS = ("id", "owner_id", "name", "pin_hash", "avatar")
_PROFILE_SELECT = f"SELECT {', '.join(_PROFILE_COLUMNS)} FROM restricted_profiles"


def _row_to_account(row: tuple) -> Account:
    data = dict(zip(_ACCOUNT_COLUMNS, row, strict=True))
    data["status"] = AccountStatus(data["status"])
    return Account(**data)


def _account_params(account: Account) -> tuple:
    return (
        account.id,
        account.email,
        account.password_hash,
        account.pin_hash,
        account.first_name,
        account.last_name,
        account.phone,
        account.country,
        account.country_dial_code,
        account.birth_date,
        account.status.value,
        account.verification_token,
        account.verification_token_issued_at,
        account.federated_subject,
        account.created_at,
    )


class PostgresAccountRepository:
    """
    Implements AccountRepository protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries for security.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        """
        Initialize repository with connection pool.

        Args:
            pool: psycopg3 ConnectionPool for database connections
        """
        self._pool = pool

    def _fetch_one(self, where: str, value: str) -> Account | None:
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(f"{_ACCOUNT_SELECT} WHERE {where} = %s", (value,))
            row = cursor.fetchone()
        return _row_to_account(row) if row is not None else None

    def find_by_email(self, email: str) -> Account | None:
        return self._fetch_one("email", email)

    def find_by_id(self, account_id: str) -> Account | None:
        return self._fetch_one("id", account_id)

    def find_by_verification_token(self, token: str) -> Account | None:
        return self._fetch_one("verification_token", token)

    def find_by_federated_subject(self, subject: str) -> Account | None:
        return self._fetch_one("federated_subject", subject)

    def create(self, account: Account) -> bool:
        """
        Atomically insert an account.

        Returns:
            True if inserted, False if a UNIQUE column (email, federated_subject)
            already exists
        """
        placeholders = ", ".join(["%s"] * (len(_ACCOUNT_COLUMNS) - 1))
        # created_at falls back to database time when the domain left it unset
        sql = f"""
            INSERT INTO accounts ({', '.join(_ACCOUNT_COLUMNS)})
            VALUES ({placeholders}, COALESCE(%s, NOW()))
            ON CONFLICT DO NOTHING
        """

        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, _account_params(account))
            conn.commit()
            return cursor.rowcount == 1

    def update(self, account: Account) -> None:
        assignments = ", ".join(f"{column} = %s" for column in _ACCOUNT_COLUMNS[1:-1])
        sql = f"UPDATE accounts SET {assignments} WHERE id = %s"
        params = _account_params(account)[1:-1] + (account.id,)

        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, params)
            conn.commit()

    def activate(self, account_id: str, token: str) -> bool:
        sql = """
            UPDATE accounts
            SET status = %s, verification_token = NULL, verification_token_issued_at = NULL
            WHERE id = %s AND status = %s AND verification_token = %s
        """
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(
                sql,
                (AccountStatus.ACTIVE.value, account_id, AccountStatus.PENDING.value, token),
            )
            conn.commit()
            return cursor.rowcount == 1

    def replace_verification_token(
        self, account_id: str, token: str, issued_at: datetime
    ) -> bool:
        sql = """
            UPDATE accounts
            SET verification_token = %s, verification_token_issued_at = %s
            WHERE id = %s AND status = %s
        """
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (token, issued_at, account_id, AccountStatus.PENDING.value))
            conn.commit()
            return cursor.rowcount == 1

    def link_federated_subject(self, account_id: str, subject: str) -> bool:
        sql = """
            UPDATE accounts
            SET federated_subject = %s
            WHERE id = %s
              AND federated_subject IS NULL
              AND NOT EXISTS (SELECT 1 FROM accounts WHERE federated_subject = %s)
        """
        with self._pool.connection() as conn, conn.cursor() as cursor:
            try:
                cursor.execute(sql, (subject, account_id, subject))
            except UniqueViolation:
                conn.rollback()
                logger.info(f"Subject already bound elsewhere, not linking account {account_id}")
                return False
            conn.commit()
            return cursor.rowcount == 1


class PostgresRestrictedProfileRepository:
    """Implements RestrictedProfileRepository protocol via psycopg3."""

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    def create(self, profile: RestrictedProfile) -> None:
        sql = """
            INSERT INTO restricted_profiles (id, owner_id, name, pin_hash, avatar)
            VALUES (%s, %s, %s, %s, %s)
        """
        with self._pool.connection() as conn:
            conn.execute(
                sql, (profile.id, profile.owner_id, profile.name, profile.pin_hash, profile.avatar)
            )
            conn.commit()

    def find_by_id(self, profile_id: str) -> RestrictedProfile | None:
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(f"{_PROFILE_SELECT} WHERE id = %s", (profile_id,))
            row = cursor.fetchone()
        return RestrictedProfile(*row) if row is not None else None

    def list_by_owner(self, owner_id: str) -> list[RestrictedProfile]:
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(f"{_PROFILE_SELECT} WHERE owner_id = %s ORDER BY name", (owner_id,))
            return [RestrictedProfile(*row) for row in cursor.fetchall()]

    def update(self, profile: RestrictedProfile) -> None:
        sql = """
            UPDATE restricted_profiles
            SET name = %s, pin_hash = %s, avatar = %s
            WHERE id = %s
        """
        with self._pool.connection() as conn:
            conn.execute(sql, (profile.name, profile.pin_hash, profile.avatar, profile.id))
            conn.commit()

    def delete(self, profile_id: str) -> bool:
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute("DELETE FROM restricted_profiles WHERE id = %s", (profile_id,))
            conn.commit()
            return cursor.rowcount == 1

    def delete_by_owner(self, owner_id: str) -> int:
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute("DELETE FROM restricted_profiles WHERE owner_id = %s", (owner_id,))
            conn.commit()
            return cursor.rowcount


def run_migrations(pool: ConnectionPool) -> None:
    """
    Execute all SQL migration files from the migrations directory.

    Migrations are executed in sorted order (alphabetically by filename).
    Each migration should be idempotent (use IF NOT EXISTS, etc.).

    Args:
        pool: psycopg3 ConnectionPool instance
    """
    # Structure: gatekeeper/adapters/repository/postgres.py -> gatekeeper/migrations/
    migrations_dir = Path(__file__).parent.parent.parent / "migrations"

    if not migrations_dir.exists():
        logger.warning(f"Migrations directory not found: {migrations_dir}")
        return

    sql_files = sorted(migrations_dir.glob("*.sql"))

    if not sql_files:
        logger.info("No migration files found")
        return

    logger.info(f"Running {len(sql_files)} migration(s)")

    for sql_file in sql_files:
        logger.info(f"Executing migration: {sql_file.name}")
        try:
            sql_content = sql_file.read_text()

            with pool.connection() as conn:
                conn.execute(sql_content)

            logger.info(f"Migration complete: {sql_file.name}")
        except Exception as e:
            logger.error(f"Migration failed: {sql_file.name} - {e}")
            raise RuntimeError(f"Database migration failed: {sql_file.name}") from e
