"""
FastAPI dependencies - Dependency injection factories.

This module wires domain services to infrastructure adapters. Long-lived
components (repositories, code store, session issuer, delivery pool) are
created once at startup and kept on app.state; services are assembled per
request from them.
"""

import logging
from datetime import timedelta
from types import SimpleNamespace

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from psycopg_pool import ConnectionPool

from gatekeeper.adapters.identity.google import GoogleIdentityVerifier
from gatekeeper.adapters.otp.memory import InMemoryOneTimeCodeStore
from gatekeeper.adapters.repository.memory import (
    InMemoryAccountRepository,
    InMemoryRestrictedProfileRepository,
)
from gatekeeper.adapters.repository.postgres import (
    PostgresAccountRepository,
    PostgresRestrictedProfileRepository,
)
from gatekeeper.adapters.sms.console import ConsoleSmsSender
from gatekeeper.adapters.sms.twilio import TwilioSmsSender
from gatekeeper.adapters.smtp.console import ConsoleEmailSender
from gatekeeper.adapters.smtp.mailersend import MailerSendEmailSender
from gatekeeper.config.settings import Settings
from gatekeeper.domain.accounts import AccountService
from gatekeeper.domain.delivery import BoundedCaller
from gatekeeper.domain.exceptions import AuthenticationError
from gatekeeper.domain.federation import FederatedIdentityLinker
from gatekeeper.domain.hashing import SecretHasher
from gatekeeper.domain.models import SessionClaims
from gatekeeper.domain.profiles import RestrictedProfileService
from gatekeeper.domain.sessions import SessionIssuer
from gatekeeper.domain.verification import VerificationOrchestrator

logger = logging.getLogger(__name__)


def build_components(settings: Settings, pool: ConnectionPool | None = None) -> SimpleNamespace:
    """
    Create the long-lived components for an application instance.

    Args:
        settings: Application settings
        pool: Connection pool, required when repository_backend is postgres
    """
    if settings.repository_backend == "postgres":
        if pool is None:
            raise ValueError("A connection pool is required for the postgres backend")
        accounts = PostgresAccountRepository(pool)
        profiles = PostgresRestrictedProfileRepository(pool)
    else:
        accounts = InMemoryAccountRepository()
        profiles = InMemoryRestrictedProfileRepository()

    if settings.mailersend_api_key:
        email_sender = MailerSendEmailSender(
            api_key=settings.mailersend_api_key,
            from_email=settings.mailersend_from_email,
            from_name=settings.mailersend_from_name,
            base_url=settings.backend_url,
            timeout=settings.delivery_timeout_seconds,
        )
    else:
        logger.warning("MailerSend is not configured; verification links go to the log")
        email_sender = ConsoleEmailSender(base_url=settings.backend_url)

    if settings.sms_simulation_mode:
        sms_sender = ConsoleSmsSender()
    else:
        sms_sender = TwilioSmsSender(
            account_sid=settings.twilio_account_sid,
            auth_token=settings.twilio_auth_token,
            from_number=settings.twilio_phone_number,
            timeout=settings.delivery_timeout_seconds,
        )

    return SimpleNamespace(
        settings=settings,
        policy=settings.auth_policy(),
        account_repository=accounts,
        profile_repository=profiles,
        code_store=InMemoryOneTimeCodeStore(ttl=timedelta(seconds=settings.otp_ttl_seconds)),
        hasher=SecretHasher(rounds=settings.bcrypt_cost),
        sessions=SessionIssuer(
            secret=settings.jwt_secret,
            ttl=timedelta(hours=settings.session_ttl_hours),
            algorithm=settings.jwt_algorithm,
        ),
        caller=BoundedCaller(
            timeout_seconds=settings.delivery_timeout_seconds,
            max_workers=settings.delivery_max_workers,
        ),
        email_sender=email_sender,
        sms_sender=sms_sender,
        identity_verifier=GoogleIdentityVerifier(
            client_id=settings.google_client_id, timeout=settings.delivery_timeout_seconds
        ),
    )


def get_components(request: Request) -> SimpleNamespace:
    """Components created during app lifespan startup."""
    return request.app.state.components


def get_profile_service(request: Request) -> RestrictedProfileService:
    c = get_components(request)
    return RestrictedProfileService(
        repository=c.profile_repository, accounts=c.account_repository, hasher=c.hasher
    )


def get_orchestrator(request: Request) -> VerificationOrchestrator:
    """
    Create the verification orchestrator with injected dependencies.

    Wires together repositories, the shared code store, senders, and the
    session issuer for the domain services.
    """
    c = get_components(request)
    accounts = AccountService(
        repository=c.account_repository,
        email_sender=c.email_sender,
        hasher=c.hasher,
        caller=c.caller,
        policy=c.policy,
    )
    return VerificationOrchestrator(
        repository=c.account_repository,
        accounts=accounts,
        profiles=get_profile_service(request),
        linker=FederatedIdentityLinker(repository=c.account_repository, accounts=accounts),
        code_store=c.code_store,
        sessions=c.sessions,
        hasher=c.hasher,
        sms_sender=c.sms_sender,
        identity_verifier=c.identity_verifier,
        caller=c.caller,
        policy=c.policy,
    )


def get_session_issuer(request: Request) -> SessionIssuer:
    return get_components(request).sessions


def get_frontend_url(request: Request) -> str:
    return get_components(request).settings.frontend_url


# Bearer token security scheme for OpenAPI documentation
http_bearer = HTTPBearer()


def get_current_claims(
    credentials: HTTPAuthorizationCredentials = Depends(http_bearer),
    sessions: SessionIssuer = Depends(get_session_issuer),
) -> SessionClaims:
    """
    Decode the bearer token from the Authorization header.

    FastAPI's HTTPBearer rejects requests with a missing or non-Bearer
    Authorization header before this runs.
    """
    try:
        return sessions.decode(credentials.credentials)
    except AuthenticationError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from None
