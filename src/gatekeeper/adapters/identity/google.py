"""
Google ID token verifier - Implements IdentityVerifier protocol.

Validates ID tokens with PyJWT against Google's published signing keys:
RS256 signature, audience equal to our OAuth client id, a Google issuer,
an unexpired exp, and a verified email claim.
"""

import logging
from collections.abc import Callable, Sequence
from typing import Any

import jwt

from gatekeeper.domain.exceptions import AuthenticationError, DependencyError
from gatekeeper.domain.models import ExternalIdentity

logger = logging.getLogger(__name__)

GOOGLE_JWKS_URL = "https://www.googleapis.com/oauth2/v3/certs"
GOOGLE_ISSUERS = ("accounts.google.com", "https://accounts.google.com")


class GoogleIdentityVerifier:
    """
    Implements IdentityVerifier protocol for Google Sign-In ID tokens.

    Uses structural subtyping - no explicit inheritance from Protocol.
    Signing keys are fetched from the JWKS endpoint and cached by PyJWKClient.
    """

    def __init__(
        self,
        client_id: str,
        jwks_url: str = GOOGLE_JWKS_URL,
        issuers: Sequence[str] = GOOGLE_ISSUERS,
        timeout: float = 10.0,
        key_resolver: Callable[[str], Any] | None = None,
    ) -> None:
        """
        Initialize verifier.

        Args:
            client_id: OAuth client id the tokens must be issued for
            jwks_url: Endpoint publishing the issuer's signing keys
            issuers: Accepted values of the iss claim
            timeout: Seconds to wait for the JWKS endpoint
            key_resolver: Maps a raw token to its verification key;
                defaults to a PyJWKClient lookup by kid
        """
        self.client_id = client_id
        self.issuers = tuple(issuers)
        self._jwks_client = jwt.PyJWKClient(jwks_url, timeout=timeout)
        self._resolve_key = key_resolver or self._key_from_jwks

    def _key_from_jwks(self, token: str) -> Any:
        return self._jwks_client.get_signing_key_from_jwt(token).key

    def verify(self, token: str) -> ExternalIdentity:
        if not self.client_id:
            raise DependencyError("Federated login is not configured")

        try:
            key = self._resolve_key(token)
        except jwt.PyJWKClientConnectionError as e:
            logger.error("Could not fetch identity provider keys: %s", e)
            raise DependencyError("Identity provider keys unavailable") from e
        except (jwt.PyJWKClientError, jwt.InvalidTokenError):
            raise AuthenticationError("Invalid identity token") from None

        try:
            payload = jwt.decode(
                token,
                key,
                algorithms=["RS256"],
                audience=self.client_id,
                options={"require": ["exp", "iat", "iss", "aud", "sub"]},
            )
        except jwt.ExpiredSignatureError:
            raise AuthenticationError("Identity token has expired") from None
        except jwt.InvalidAudienceError:
            raise AuthenticationError("Identity token was issued for another audience") from None
        except jwt.InvalidTokenError:
            raise AuthenticationError("Invalid identity token") from None

        if payload.get("iss") not in self.issuers:
            raise AuthenticationError("Identity token has an unexpected issuer")

        # Absent or false email_verified is never trusted; older tokens send "true"
        email = payload.get("email")
        if not email or payload.get("email_verified") not in (True, "true"):
            raise AuthenticationError("Identity token has no verified email")

        return ExternalIdentity(
            subject=str(payload["sub"]),
            email=email,
            display_name=payload.get("name") or "",
        )
