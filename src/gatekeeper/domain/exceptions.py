"""
Domain exceptions - Semantic error types for authentication.

This module defines domain-specific exceptions that communicate
business rule violations without leaking infrastructure details.
Every exception carries a machine-readable ``reason`` so callers can
route on it without parsing messages.
"""


class AuthError(Exception):
    """Base class for authentication domain errors."""

    reason = "auth_error"


class ValidationError(AuthError):
    """Malformed input: missing fields, bad PIN, age under limit, password mismatch."""

    reason = "validation_error"


class NotFoundError(AuthError):
    """Unknown account, profile, or token."""

    reason = "not_found"


class AuthenticationError(AuthError):
    """Wrong secret, invalid or expired code or token."""

    reason = "authentication_failed"


class AccountNotVerified(AuthenticationError):
    """Credentials are correct but the account is not active yet."""

    reason = "account_not_verified"

    def __init__(self, status: str) -> None:
        super().__init__(f"Account is not verified (status: {status})")
        self.status = status


class ConflictError(AuthError):
    """Duplicate email or an already-applied transition."""

    reason = "conflict"


class DependencyError(AuthError):
    """Mail, SMS, or identity collaborator unreachable, slow, or misconfigured."""

    reason = "dependency_failure"


class InternalError(AuthError):
    """Unexpected internal fault."""

    reason = "internal_error"
