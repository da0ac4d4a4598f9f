"""
Secret hashing - bcrypt for passwords and PINs.

Account passwords, account PINs, and restricted-profile PINs are all
independent secrets hashed with their own random salt.

Security Design - Timing Oracle Prevention:
------------------------------------------
1. **bcrypt.checkpw()**: constant-time comparison whose cost (~100ms at
   cost factor 10) dominates response time.

2. **verify_dummy()**: when the identity is unknown, callers compare against
   a precomputed dummy digest so bcrypt always runs. Response time does not
   reveal whether an account exists.

3. **Malformed digests**: a corrupted or foreign digest is a non-match,
   never an exception that could bypass the check.
"""

import bcrypt

from .exceptions import ValidationError

# bcrypt only considers the first 72 bytes; longer secrets are rejected.
MAX_SECRET_BYTES = 72

MIN_COST = 4


class SecretHasher:
    """One-way hashing and verification of secrets with bcrypt."""

    def __init__(self, rounds: int = 10) -> None:
        """
        Initialize hasher with a bcrypt work factor.

        Args:
            rounds: bcrypt cost factor (log2 of iterations)
        """
        if rounds < MIN_COST:
            raise ValueError(f"bcrypt cost factor must be >= {MIN_COST}")
        self.rounds = rounds
        self._dummy_hash = bcrypt.hashpw(
            b"dummy_secret_for_timing_safety", bcrypt.gensalt(rounds)
        ).decode()

    def hash(self, secret: str) -> str:
        """
        Hash a secret with a fresh random salt.

        Raises:
            ValidationError: If the secret is empty or exceeds 72 bytes
        """
        encoded = secret.encode()
        if not encoded:
            raise ValidationError("Secret must not be empty")
        if len(encoded) > MAX_SECRET_BYTES:
            raise ValidationError(f"Secret must be at most {MAX_SECRET_BYTES} bytes")
        return bcrypt.hashpw(encoded, bcrypt.gensalt(self.rounds)).decode()

    def verify(self, secret: str, digest: str | None) -> bool:
        """Return True iff secret matches digest. Never raises on bad input."""
        if not digest:
            return self.verify_dummy(secret)
        encoded = secret.encode()[:MAX_SECRET_BYTES]
        try:
            return bcrypt.checkpw(encoded, digest.encode())
        except (ValueError, TypeError):
            return False

    def verify_dummy(self, secret: str) -> bool:
        """Burn one bcrypt comparison and report a non-match."""
        bcrypt.checkpw(secret.encode()[:MAX_SECRET_BYTES], self._dummy_hash.encode())
        return False
