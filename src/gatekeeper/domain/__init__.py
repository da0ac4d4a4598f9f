"""
Domain layer - Pure business logic with zero framework imports.

This package contains the credential verification and session-issuance
engine: the account state machine, secret hashing, one-time-code port,
session issuance, federated identity linking, and the orchestrator that
composes them. It defines its own port interfaces for infrastructure
abstraction, ensuring true hexagonal architecture decoupling.
"""

from .accounts import AccountService
from .delivery import BoundedCaller
from .exceptions import (
    AccountNotVerified,
    AuthenticationError,
    AuthError,
    ConflictError,
    DependencyError,
    InternalError,
    NotFoundError,
    ValidationError,
)
from .federation import FederatedIdentityLinker
from .hashing import SecretHasher
from .models import Account, AccountStatus, AgePolicy, LinkOutcome, RestrictedProfile
from .policy import AuthPolicy
from .ports import (
    AccountRepository,
    EmailSender,
    IdentityVerifier,
    OneTimeCodeStore,
    RestrictedProfileRepository,
    SmsSender,
)
from .profiles import RestrictedProfileService
from .sessions import SessionIssuer
from .verification import VerificationOrchestrator

__all__ = [
    "Account",
    "AccountNotVerified",
    "AccountRepository",
    "AccountService",
    "AccountStatus",
    "AgePolicy",
    "AuthError",
    "AuthPolicy",
    "AuthenticationError",
    "BoundedCaller",
    "ConflictError",
    "DependencyError",
    "EmailSender",
    "FederatedIdentityLinker",
    "IdentityVerifier",
    "InternalError",
    "LinkOutcome",
    "NotFoundError",
    "OneTimeCodeStore",
    "RestrictedProfile",
    "RestrictedProfileRepository",
    "RestrictedProfileService",
    "SecretHasher",
    "SessionIssuer",
    "SmsSender",
    "ValidationError",
    "VerificationOrchestrator",
]
