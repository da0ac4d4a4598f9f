"""
Session issuance - Signed bearer tokens with a minimal claim set.

Tokens are stateless JWTs. There is no revocation list; expiry is the
only termination mechanism.
"""

from collections.abc import Callable
from datetime import datetime, timedelta, timezone

import jwt

from .exceptions import AuthenticationError
from .models import Account, SessionClaims, SessionGrant


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SessionIssuer:
    """Mints and decodes HMAC-signed session tokens."""

    def __init__(
        self,
        secret: str,
        ttl: timedelta = timedelta(hours=24),
        algorithm: str = "HS256",
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        if not secret:
            raise ValueError("session signing secret must not be empty")
        self._secret = secret
        self._algorithm = algorithm
        self._clock = clock
        self.ttl = ttl

    def issue(self, account: Account) -> SessionGrant:
        """Mint a token for account, expiring ttl from now."""
        issued_at = self._clock().replace(microsecond=0)
        claims = SessionClaims(
            subject=account.id,
            email=account.email,
            first_name=account.first_name,
            last_name=account.last_name,
            issued_at=issued_at,
            expires_at=issued_at + self.ttl,
        )
        payload = {
            "sub": claims.subject,
            "email": claims.email,
            "first_name": claims.first_name,
            "last_name": claims.last_name,
            "iat": int(claims.issued_at.timestamp()),
            "exp": int(claims.expires_at.timestamp()),
        }
        token = jwt.encode(payload, self._secret, algorithm=self._algorithm)
        return SessionGrant(token=token, claims=claims, account=account)

    def decode(self, token: str) -> SessionClaims:
        """
        Validate a token and return its claims.

        Raises:
            AuthenticationError: Bad signature, malformed, or expired token
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                # Time claims are checked below against the injected clock
                options={
                    "require": ["sub", "exp", "iat"],
                    "verify_exp": False,
                    "verify_iat": False,
                },
            )
        except jwt.InvalidTokenError:
            raise AuthenticationError("Invalid session token") from None

        expires_at = datetime.fromtimestamp(payload["exp"], timezone.utc)
        if self._clock() >= expires_at:
            raise AuthenticationError("Session token has expired")

        return SessionClaims(
            subject=payload["sub"],
            email=payload.get("email", ""),
            first_name=payload.get("first_name", ""),
            last_name=payload.get("last_name", ""),
            issued_at=datetime.fromtimestamp(payload["iat"], timezone.utc),
            expires_at=expires_at,
        )
