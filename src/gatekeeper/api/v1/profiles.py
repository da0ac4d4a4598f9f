"""
API v1 restricted profile routes.

All endpoints require a session token; the token's subject is the owner.
"""

from fastapi import APIRouter, Depends, Response, status

from gatekeeper.api.dependencies import (
    get_current_claims,
    get_orchestrator,
    get_profile_service,
)
from gatekeeper.api.models import (
    CreateProfileRequest,
    ErrorResponse,
    ProfilePinVerifiedResponse,
    ProfileView,
    UpdateProfileRequest,
    VerifyProfilePinRequest,
)
from gatekeeper.domain.models import SessionClaims
from gatekeeper.domain.profiles import RestrictedProfileService
from gatekeeper.domain.verification import VerificationOrchestrator

router = APIRouter(prefix="/restricted-profiles", tags=["restricted-profiles"])

NOT_FOUND = {404: {"model": ErrorResponse, "description": "Profile not found"}}


@router.get("", response_model=list[ProfileView], summary="List my restricted profiles")
def list_profiles(
    claims: SessionClaims = Depends(get_current_claims),
    service: RestrictedProfileService = Depends(get_profile_service),
) -> list[ProfileView]:
    return [ProfileView.from_profile(p) for p in service.list_profiles(claims.subject)]


@router.post(
    "",
    response_model=ProfileView,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse, "description": "Missing name or malformed PIN"}},
    summary="Create a restricted profile",
)
def create_profile(
    request_data: CreateProfileRequest,
    claims: SessionClaims = Depends(get_current_claims),
    service: RestrictedProfileService = Depends(get_profile_service),
) -> ProfileView:
    profile = service.create_profile(
        claims.subject, request_data.name, request_data.pin, request_data.avatar
    )
    return ProfileView.from_profile(profile)


# Declared before /{profile_id} so the literal path wins
@router.post(
    "/verify-pin",
    response_model=ProfilePinVerifiedResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Invalid PIN"},
        **NOT_FOUND,
    },
    summary="Check a restricted profile's PIN",
)
def verify_profile_pin(
    request_data: VerifyProfilePinRequest,
    claims: SessionClaims = Depends(get_current_claims),
    orchestrator: VerificationOrchestrator = Depends(get_orchestrator),
) -> ProfilePinVerifiedResponse:
    profile = orchestrator.verify_restricted_profile_pin(
        request_data.profile_id, request_data.pin, owner_id=claims.subject
    )
    return ProfilePinVerifiedResponse(
        message="PIN verified", profile_id=profile.id, name=profile.name
    )


@router.get(
    "/{profile_id}",
    response_model=ProfileView,
    responses=NOT_FOUND,
    summary="Get a restricted profile",
)
def get_profile(
    profile_id: str,
    claims: SessionClaims = Depends(get_current_claims),
    service: RestrictedProfileService = Depends(get_profile_service),
) -> ProfileView:
    return ProfileView.from_profile(service.get_profile(profile_id, claims.subject))


@router.put(
    "/{profile_id}",
    response_model=ProfileView,
    responses=NOT_FOUND,
    summary="Update a restricted profile",
)
def update_profile(
    profile_id: str,
    request_data: UpdateProfileRequest,
    claims: SessionClaims = Depends(get_current_claims),
    service: RestrictedProfileService = Depends(get_profile_service),
) -> ProfileView:
    profile = service.update_profile(
        profile_id,
        claims.subject,
        name=request_data.name,
        pin=request_data.pin,
        avatar=request_data.avatar,
    )
    return ProfileView.from_profile(profile)


@router.delete(
    "/{profile_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses=NOT_FOUND,
    summary="Delete a restricted profile",
)
def delete_profile(
    profile_id: str,
    claims: SessionClaims = Depends(get_current_claims),
    service: RestrictedProfileService = Depends(get_profile_service),
) -> Response:
    service.delete_profile(profile_id, claims.subject)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
