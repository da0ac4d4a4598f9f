"""
Restricted profile management.

Child-safe profiles hang off an owning account and carry their own PIN,
hashed independently of the account PIN. Profiles owned by someone else
are reported as not found so their existence is not revealed.
"""

import dataclasses
import logging
import uuid
from dataclasses import dataclass

from .exceptions import NotFoundError, ValidationError
from .hashing import SecretHasher
from .models import RestrictedProfile
from .policy import require_pin_format
from .ports import AccountRepository, RestrictedProfileRepository

logger = logging.getLogger(__name__)

DEFAULT_AVATAR = "avatar1.png"


@dataclass
class RestrictedProfileService:
    """CRUD for restricted profiles, scoped to their owner."""

    repository: RestrictedProfileRepository
    accounts: AccountRepository
    hasher: SecretHasher

    def create_profile(
        self, owner_id: str, name: str, pin: str, avatar: str | None = None
    ) -> RestrictedProfile:
        """
        Create a profile for an existing account.

        Raises:
            ValidationError: Missing name or malformed PIN
            NotFoundError: Owner account does not exist
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Name is required")
        require_pin_format(pin)
        if self.accounts.find_by_id(owner_id) is None:
            raise NotFoundError("Owner account not found")

        profile = RestrictedProfile(
            id=str(uuid.uuid4()),
            owner_id=owner_id,
            name=name,
            pin_hash=self.hasher.hash(pin),
            avatar=avatar or DEFAULT_AVATAR,
        )
        self.repository.create(profile)
        logger.info("Created restricted profile %s for account %s", profile.id, owner_id)
        return profile

    def list_profiles(self, owner_id: str) -> list[RestrictedProfile]:
        return self.repository.list_by_owner(owner_id)

    def get_profile(self, profile_id: str, owner_id: str | None = None) -> RestrictedProfile:
        """
        Fetch a profile, optionally requiring a specific owner.

        Raises:
            NotFoundError: Unknown profile or owned by another account
        """
        profile = self.repository.find_by_id(profile_id)
        if profile is None or (owner_id is not None and profile.owner_id != owner_id):
            raise NotFoundError("Profile not found")
        return profile

    def update_profile(
        self,
        profile_id: str,
        owner_id: str,
        *,
        name: str,
        pin: str | None = None,
        avatar: str | None = None,
    ) -> RestrictedProfile:
        """Rename a profile and optionally replace its avatar or PIN."""
        name = (name or "").strip()
        if not name:
            raise ValidationError("Name is required")
        if pin:
            require_pin_format(pin)

        profile = self.get_profile(profile_id, owner_id)
        profile = dataclasses.replace(
            profile,
            name=name,
            avatar=avatar or profile.avatar,
            pin_hash=self.hasher.hash(pin) if pin else profile.pin_hash,
        )
        self.repository.update(profile)
        return profile

    def delete_profile(self, profile_id: str, owner_id: str) -> None:
        self.get_profile(profile_id, owner_id)
        if not self.repository.delete(profile_id):
            raise NotFoundError("Profile not found")
        logger.info("Deleted restricted profile %s", profile_id)

    def delete_profiles_for_owner(self, owner_id: str) -> int:
        """Cascade helper for callers deleting an account."""
        removed = self.repository.delete_by_owner(owner_id)
        logger.info("Deleted %d restricted profile(s) for account %s", removed, owner_id)
        return removed
