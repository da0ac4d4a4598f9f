"""
API v1 routes.

Defines the account endpoints: registration, email confirmation, the two
login protocols, and the account PIN gate.

Endpoints are plain functions so FastAPI runs them in its threadpool;
bcrypt and outbound delivery block.
"""

from urllib.parse import urlencode

from fastapi import APIRouter, Depends, status
from fastapi.responses import RedirectResponse

from gatekeeper.api.dependencies import (
    get_current_claims,
    get_frontend_url,
    get_orchestrator,
)
from gatekeeper.api.models import (
    AccountPinVerifiedResponse,
    AccountView,
    CompleteProfileRequest,
    ErrorResponse,
    FederatedLoginResponse,
    GoogleAuthRequest,
    LoginChallengeResponse,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    RegisterResponse,
    ResendCodeRequest,
    ResendVerificationRequest,
    SessionClaimsResponse,
    SessionResponse,
    VerifyAccountPinRequest,
    VerifySmsRequest,
)
from gatekeeper.domain.models import LinkOutcome, SessionClaims, SessionGrant
from gatekeeper.domain.verification import VerificationOrchestrator

router = APIRouter(prefix="/users", tags=["users"])

RESEND_VERIFICATION_MESSAGE = (
    "If this email belongs to an account awaiting verification, a new link has been sent"
)


def _session_response(message: str, grant: SessionGrant) -> SessionResponse:
    return SessionResponse(
        message=message,
        token=grant.token,
        expires_at=grant.claims.expires_at,
        user=AccountView.from_account(grant.account),
    )


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Rejected registration data"},
        409: {"model": ErrorResponse, "description": "Email already registered"},
        422: {"description": "Validation error"},
    },
    summary="Register a new account",
    description="Create a pending account and email a verification link. "
    "The account cannot log in until the link is followed.",
)
def register(
    request_data: RegisterRequest,
    orchestrator: VerificationOrchestrator = Depends(get_orchestrator),
) -> RegisterResponse:
    result = orchestrator.register(
        email=request_data.email,
        password=request_data.password,
        confirm_password=request_data.confirm_password,
        pin=request_data.pin,
        birth_date=request_data.birth_date,
        first_name=request_data.first_name,
        last_name=request_data.last_name,
        phone=request_data.phone,
        country=request_data.country,
        country_dial_code=request_data.country_dial_code,
    )
    message = (
        "Account created. Check your email to verify it."
        if result.email_sent
        else "Account created, but the verification email could not be sent. "
        "Request a new one."
    )
    return RegisterResponse(
        message=message, account_id=result.account.id, email_sent=result.email_sent
    )


@router.get(
    "/verify-email/{token}",
    response_class=RedirectResponse,
    status_code=status.HTTP_303_SEE_OTHER,
    responses={401: {"model": ErrorResponse, "description": "Unknown or used token"}},
    summary="Confirm an email address",
    description="Target of the link in the verification email. "
    "Activates the account and redirects to the frontend.",
)
def verify_email(
    token: str,
    orchestrator: VerificationOrchestrator = Depends(get_orchestrator),
    frontend_url: str = Depends(get_frontend_url),
) -> RedirectResponse:
    account = orchestrator.confirm_email(token)
    query = urlencode({"verified": "true", "email": account.email})
    return RedirectResponse(
        url=f"{frontend_url.rstrip('/')}/verified.html?{query}",
        status_code=status.HTTP_303_SEE_OTHER,
    )


@router.post(
    "/resend-verification",
    response_model=MessageResponse,
    summary="Send a new verification email",
    description="Always answers with the same message, whether or not the email "
    "belongs to an account awaiting verification.",
)
def resend_verification(
    request_data: ResendVerificationRequest,
    orchestrator: VerificationOrchestrator = Depends(get_orchestrator),
) -> MessageResponse:
    """Rotates the verification token; the previous link stops working."""
    orchestrator.resend_verification_email(request_data.email)
    return MessageResponse(message=RESEND_VERIFICATION_MESSAGE)


@router.post(
    "/login",
    response_model=LoginChallengeResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Invalid email or password"},
        403: {"model": ErrorResponse, "description": "Account not verified"},
        503: {"model": ErrorResponse, "description": "Code could not be delivered"},
    },
    summary="Start a login",
    description="Check email and password, then send a 6-digit code to the "
    "account's phone. The code is never part of the response.",
)
def login(
    request_data: LoginRequest,
    orchestrator: VerificationOrchestrator = Depends(get_orchestrator),
) -> LoginChallengeResponse:
    challenge = orchestrator.start_login(request_data.email, request_data.password)
    return LoginChallengeResponse(
        message="Verification code sent",
        account_id=challenge.account_id,
        requires_verification=challenge.requires_verification,
    )


@router.post(
    "/verify-sms",
    response_model=SessionResponse,
    responses={401: {"model": ErrorResponse, "description": "Invalid or expired code"}},
    summary="Finish a login with the SMS code",
)
def verify_sms(
    request_data: VerifySmsRequest,
    orchestrator: VerificationOrchestrator = Depends(get_orchestrator),
) -> SessionResponse:
    grant = orchestrator.confirm_login(request_data.account_id, request_data.code)
    return _session_response("Login successful", grant)


@router.post(
    "/resend-code",
    response_model=LoginChallengeResponse,
    responses={
        403: {"model": ErrorResponse, "description": "Account not verified"},
        404: {"model": ErrorResponse, "description": "Unknown account"},
        503: {"model": ErrorResponse, "description": "Code could not be delivered"},
    },
    summary="Send a new login code",
)
def resend_code(
    request_data: ResendCodeRequest,
    orchestrator: VerificationOrchestrator = Depends(get_orchestrator),
) -> LoginChallengeResponse:
    challenge = orchestrator.resend_login_code(request_data.account_id)
    return LoginChallengeResponse(
        message="Verification code sent",
        account_id=challenge.account_id,
        requires_verification=challenge.requires_verification,
    )


@router.post(
    "/verify-pin",
    response_model=AccountPinVerifiedResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Invalid PIN"},
        404: {"model": ErrorResponse, "description": "Unknown account"},
    },
    summary="Check the account PIN",
)
def verify_account_pin(
    request_data: VerifyAccountPinRequest,
    orchestrator: VerificationOrchestrator = Depends(get_orchestrator),
) -> AccountPinVerifiedResponse:
    account = orchestrator.verify_account_pin(request_data.account_id, request_data.pin)
    return AccountPinVerifiedResponse(message="PIN verified", account_id=account.id)


@router.post(
    "/google-auth",
    response_model=FederatedLoginResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Invalid identity token"},
        503: {"model": ErrorResponse, "description": "Identity provider unavailable"},
    },
    summary="Log in with a Google ID token",
    description="Links the Google identity to an account by email, creating one "
    "if needed. New accounts must complete their profile before a token is issued.",
)
def google_auth(
    request_data: GoogleAuthRequest,
    orchestrator: VerificationOrchestrator = Depends(get_orchestrator),
) -> FederatedLoginResponse:
    result = orchestrator.federated_login(request_data.token)
    is_new_user = result.outcome == LinkOutcome.CREATED

    if result.profile_incomplete or result.session is None:
        return FederatedLoginResponse(
            message="Complete your profile to continue",
            account_id=result.account.id,
            is_new_user=is_new_user,
            profile_incomplete=True,
        )

    return FederatedLoginResponse(
        message="Login successful",
        account_id=result.account.id,
        is_new_user=is_new_user,
        profile_incomplete=False,
        token=result.session.token,
        expires_at=result.session.claims.expires_at,
        user=AccountView.from_account(result.session.account),
    )


@router.post(
    "/complete-google-profile",
    response_model=SessionResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Rejected profile data"},
        401: {"model": ErrorResponse, "description": "Identity token does not match"},
        404: {"model": ErrorResponse, "description": "Unknown account"},
        409: {"model": ErrorResponse, "description": "Profile already complete"},
    },
    summary="Complete an account created from a Google identity",
)
def complete_google_profile(
    request_data: CompleteProfileRequest,
    orchestrator: VerificationOrchestrator = Depends(get_orchestrator),
) -> SessionResponse:
    grant = orchestrator.complete_federated_profile(
        request_data.account_id,
        request_data.google_token,
        phone=request_data.phone,
        pin=request_data.pin,
        birth_date=request_data.birth_date,
        country=request_data.country,
        country_dial_code=request_data.country_dial_code,
    )
    return _session_response("Profile completed", grant)


@router.get(
    "/me",
    response_model=SessionClaimsResponse,
    responses={401: {"description": "Missing, invalid, or expired token"}},
    summary="Describe the current session",
)
def me(claims: SessionClaims = Depends(get_current_claims)) -> SessionClaimsResponse:
    return SessionClaimsResponse(
        subject=claims.subject,
        email=claims.email,
        first_name=claims.first_name,
        last_name=claims.last_name,
        expires_at=claims.expires_at,
    )
