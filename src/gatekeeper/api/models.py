"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
Responses never carry passwords, PINs, one-time codes, or digests.
"""

from datetime import date, datetime

from pydantic import BaseModel, EmailStr, Field

from gatekeeper.domain.models import Account, RestrictedProfile


class RegisterRequest(BaseModel):
    """Request model for account registration."""

    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field("", max_length=100)
    email: EmailStr
    phone: str = Field(..., min_length=4, max_length=32)
    password: str = Field(
        ..., min_length=8, max_length=72, description="Account password (8-72 characters)"
    )
    confirm_password: str
    pin: str = Field(..., description="6-digit account PIN")
    birth_date: date
    country: str | None = None
    country_dial_code: str | None = Field(None, examples=["+506"])


class RegisterResponse(BaseModel):
    """Response model for successful registration."""

    message: str
    account_id: str
    email_sent: bool


class ResendVerificationRequest(BaseModel):
    email: EmailStr


class MessageResponse(BaseModel):
    message: str


class LoginRequest(BaseModel):
    """Request model for the first login step."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=72)


class LoginChallengeResponse(BaseModel):
    """First step passed; the next step needs the SMS code."""

    message: str
    account_id: str
    requires_verification: bool


class VerifySmsRequest(BaseModel):
    """Request model for the second login step."""

    account_id: str
    code: str = Field(..., pattern=r"^\d{6}$", description="6-digit code received by SMS")


class ResendCodeRequest(BaseModel):
    account_id: str


class AccountView(BaseModel):
    """Public view of an account."""

    id: str
    email: str
    first_name: str
    last_name: str
    phone: str | None = None
    country: str | None = None

    @classmethod
    def from_account(cls, account: Account) -> "AccountView":
        return cls(
            id=account.id,
            email=account.email,
            first_name=account.first_name,
            last_name=account.last_name,
            phone=account.phone,
            country=account.country,
        )


class SessionResponse(BaseModel):
    """Bearer token plus the account it identifies."""

    message: str
    token: str
    expires_at: datetime
    user: AccountView


class VerifyAccountPinRequest(BaseModel):
    account_id: str
    pin: str = Field(..., min_length=1, max_length=72)


class AccountPinVerifiedResponse(BaseModel):
    message: str
    account_id: str


class GoogleAuthRequest(BaseModel):
    token: str = Field(..., min_length=1, description="Google ID token")


class FederatedLoginResponse(BaseModel):
    """Either a session, or a request to complete the profile first."""

    message: str
    account_id: str
    is_new_user: bool
    profile_incomplete: bool
    token: str | None = None
    expires_at: datetime | None = None
    user: AccountView | None = None


class CompleteProfileRequest(BaseModel):
    """Missing fields for an account created from a federated identity."""

    account_id: str
    google_token: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=4, max_length=32)
    pin: str
    birth_date: date
    country: str = Field(..., min_length=1)
    country_dial_code: str | None = None


class SessionClaimsResponse(BaseModel):
    subject: str
    email: str
    first_name: str
    last_name: str
    expires_at: datetime


class ProfileView(BaseModel):
    """Public view of a restricted profile."""

    id: str
    name: str
    avatar: str
    owner_id: str

    @classmethod
    def from_profile(cls, profile: RestrictedProfile) -> "ProfileView":
        return cls(
            id=profile.id, name=profile.name, avatar=profile.avatar, owner_id=profile.owner_id
        )


class CreateProfileRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    pin: str
    avatar: str | None = None


class UpdateProfileRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    pin: str | None = None
    avatar: str | None = None


class VerifyProfilePinRequest(BaseModel):
    profile_id: str
    pin: str = Field(..., min_length=1, max_length=72)


class ProfilePinVerifiedResponse(BaseModel):
    message: str
    profile_id: str
    name: str


class ErrorResponse(BaseModel):
    """Standard error response model."""

    detail: str
    reason: str
