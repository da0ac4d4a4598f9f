"""
Verification orchestrator - login protocols and PIN gates.

Two login protocols are supported:

1. Password + one-time code
   - start_login(): credential check, then a 6-digit code is issued keyed
     by account id and sent by SMS. The response never contains the code.
   - confirm_login(): the code is consumed and a session token is minted.

2. Federated assertion
   - federated_login(): the assertion is verified and linked to an account.
     New accounts must complete their profile before a session is issued.
   - complete_federated_profile(): re-verifies the assertion, fills the
     missing fields, activates the account, and mints a session.

PIN gates (account PIN, restricted-profile PIN) are single-step checks
that never mint a token.

Security Design:
---------------
- Unknown email and wrong password produce the same AuthenticationError,
  and bcrypt runs in both cases (dummy digest for unknown emails).
- Account status is only revealed after the password has matched.
- Requests are stateless apart from the one-time-code store.
"""

import logging
from dataclasses import dataclass, field
from datetime import date

from .accounts import AccountService, normalize_email
from .delivery import BoundedCaller
from .exceptions import (
    AccountNotVerified,
    AuthenticationError,
    DependencyError,
    NotFoundError,
)
from .federation import FederatedIdentityLinker
from .hashing import SecretHasher
from .models import (
    Account,
    AccountStatus,
    ExternalIdentity,
    FederatedLoginResult,
    LinkOutcome,
    LoginChallenge,
    RegistrationResult,
    RestrictedProfile,
    SessionGrant,
)
from .phone import normalize_phone
from .policy import AuthPolicy
from .ports import AccountRepository, IdentityVerifier, OneTimeCodeStore, SmsSender
from .profiles import RestrictedProfileService
from .sessions import SessionIssuer

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"
INVALID_CODE = "Invalid or expired verification code"


@dataclass
class VerificationOrchestrator:
    """Composes hashing, codes, accounts, and sessions into login flows."""

    repository: AccountRepository
    accounts: AccountService
    profiles: RestrictedProfileService
    linker: FederatedIdentityLinker
    code_store: OneTimeCodeStore
    sessions: SessionIssuer
    hasher: SecretHasher
    sms_sender: SmsSender
    identity_verifier: IdentityVerifier
    caller: BoundedCaller
    policy: AuthPolicy = field(default_factory=AuthPolicy)

    # Account lifecycle

    def register(self, **fields: object) -> RegistrationResult:
        return self.accounts.register(**fields)

    def confirm_email(self, token: str) -> Account:
        return self.accounts.confirm_email(token)

    def resend_verification_email(self, email: str) -> bool:
        return self.accounts.resend_verification_email(email)

    # Password + one-time code

    def start_login(self, email: str, password: str) -> LoginChallenge:
        """
        Check credentials and send a one-time code to the account's phone.

        Raises:
            AuthenticationError: Unknown email or wrong password (same message)
            AccountNotVerified: Correct credentials, account not ACTIVE
            DependencyError: SMS could not be delivered; no code stays live
        """
        account = self.repository.find_by_email(normalize_email(email))
        if account is None:
            self.hasher.verify_dummy(password)
            raise AuthenticationError(INVALID_CREDENTIALS)
        if not self.hasher.verify(password, account.password_hash):
            raise AuthenticationError(INVALID_CREDENTIALS)
        if account.status != AccountStatus.ACTIVE:
            raise AccountNotVerified(account.status.value)

        self._dispatch_code(account)
        return LoginChallenge(account_id=account.id)

    def resend_login_code(self, account_id: str) -> LoginChallenge:
        """Issue a fresh code for an ACTIVE account, superseding the old one."""
        account = self.repository.find_by_id(account_id)
        if account is None:
            raise NotFoundError("Account not found")
        if account.status != AccountStatus.ACTIVE:
            raise AccountNotVerified(account.status.value)

        self._dispatch_code(account)
        return LoginChallenge(account_id=account.id)

    def confirm_login(self, account_id: str, code: str) -> SessionGrant:
        """
        Consume a one-time code and mint a session.

        Raises:
            AuthenticationError: Wrong, expired, or already used code
            NotFoundError: Account disappeared after the code was issued
        """
        if not self.code_store.verify(account_id, code):
            logger.info("Rejected one-time code for account %s", account_id)
            raise AuthenticationError(INVALID_CODE)

        account = self.repository.find_by_id(account_id)
        if account is None:
            raise NotFoundError("Account not found")

        logger.info("Account %s completed two-factor login", account.id)
        return self.sessions.issue(account)

    def _dispatch_code(self, account: Account) -> None:
        if not account.phone:
            raise DependencyError("Account has no phone number for code delivery")
        phone = normalize_phone(
            account.phone, account.country_dial_code, self.policy.default_dial_code
        )
        code = self.code_store.issue(account.id)

        # Delivery happens outside the code store's critical section
        try:
            sent = self.caller.call("verification SMS", self.sms_sender.send_code, phone, code)
        except DependencyError:
            self.code_store.discard(account.id, code)
            raise
        if not sent:
            self.code_store.discard(account.id, code)
            raise DependencyError("verification SMS was not accepted")
        logger.info("Sent one-time code to account %s", account.id)

    # Federated identity

    def federated_login(self, assertion: str) -> FederatedLoginResult:
        """
        Log in with an external identity assertion.

        Returns:
            A session for complete accounts, or profile_incomplete=True
            with no session for accounts still in PENDING_COMPLETION
        """
        identity = self._verify_assertion(assertion)
        account, outcome = self.linker.link(identity)

        if outcome == LinkOutcome.CREATED or account.status == AccountStatus.PENDING_COMPLETION:
            return FederatedLoginResult(account=account, outcome=outcome, profile_incomplete=True)

        logger.info("Account %s logged in with federated identity", account.id)
        return FederatedLoginResult(
            account=account, outcome=outcome, session=self.sessions.issue(account)
        )

    def complete_federated_profile(
        self,
        account_id: str,
        assertion: str,
        *,
        phone: str,
        pin: str,
        birth_date: date,
        country: str,
        country_dial_code: str | None = None,
    ) -> SessionGrant:
        """Re-verify the assertion, activate the account, and mint a session."""
        identity = self._verify_assertion(assertion)
        account = self.accounts.complete_federated_profile(
            account_id,
            identity,
            phone=phone,
            pin=pin,
            birth_date=birth_date,
            country=country,
            country_dial_code=country_dial_code,
        )
        return self.sessions.issue(account)

    def _verify_assertion(self, assertion: str) -> ExternalIdentity:
        if not assertion:
            raise AuthenticationError("Identity assertion is required")
        return self.caller.call("identity verification", self.identity_verifier.verify, assertion)

    # PIN gates

    def verify_restricted_profile_pin(
        self, profile_id: str, pin: str, owner_id: str | None = None
    ) -> RestrictedProfile:
        """
        Check a restricted profile's PIN. No token is issued.

        Raises:
            NotFoundError: Unknown profile, or owned by another account
            AuthenticationError: Wrong PIN
        """
        profile = self.profiles.get_profile(profile_id, owner_id)
        if not self.hasher.verify(pin, profile.pin_hash):
            raise AuthenticationError("Invalid PIN")
        return profile

    def verify_account_pin(self, account_id: str, pin: str) -> Account:
        """
        Check an account's PIN for parental or administrative gates.

        Raises:
            NotFoundError: Unknown account
            AuthenticationError: Wrong PIN or no PIN set
        """
        account = self.repository.find_by_id(account_id)
        if account is None:
            raise NotFoundError("Account not found")
        if not self.hasher.verify(pin, account.pin_hash):
            raise AuthenticationError("Invalid PIN")
        return account
