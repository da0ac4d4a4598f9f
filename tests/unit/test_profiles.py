"""
Unit tests for RestrictedProfileService.
"""

import pytest

from gatekeeper.domain.exceptions import NotFoundError, ValidationError
from gatekeeper.domain.profiles import DEFAULT_AVATAR


class TestCreateProfile:
    def test_creates_profile_with_hashed_pin(self, profile_service, active_account, hasher):
        profile = profile_service.create_profile(active_account.id, "  Sofi ", "111111")

        assert profile.name == "Sofi"
        assert profile.owner_id == active_account.id
        assert profile.avatar == DEFAULT_AVATAR
        assert profile.pin_hash != "111111"
        assert hasher.verify("111111", profile.pin_hash)

    def test_custom_avatar(self, profile_service, active_account) -> None:
        profile = profile_service.create_profile(active_account.id, "Sofi", "111111", "avatar3.png")
        assert profile.avatar == "avatar3.png"

    def test_name_required(self, profile_service, active_account) -> None:
        with pytest.raises(ValidationError):
            profile_service.create_profile(active_account.id, "   ", "111111")

    def test_pin_format(self, profile_service, active_account) -> None:
        with pytest.raises(ValidationError):
            profile_service.create_profile(active_account.id, "Sofi", "1111")

    def test_unknown_owner(self, profile_service) -> None:
        with pytest.raises(NotFoundError):
            profile_service.create_profile("missing", "Sofi", "111111")


class TestReadUpdateDelete:
    @pytest.fixture
    def profile(self, profile_service, active_account):
        return profile_service.create_profile(active_account.id, "Sofi", "111111")

    def test_list_only_own_profiles(self, profile_service, active_account, profile) -> None:
        assert profile_service.list_profiles(active_account.id) == [profile]
        assert profile_service.list_profiles("someone-else") == []

    def test_get_hides_foreign_profiles(self, profile_service, profile) -> None:
        with pytest.raises(NotFoundError):
            profile_service.get_profile(profile.id, "someone-else")

    def test_update_name_keeps_pin(self, profile_service, active_account, profile, hasher):
        updated = profile_service.update_profile(profile.id, active_account.id, name="Sofia")

        assert updated.name == "Sofia"
        assert updated.pin_hash == profile.pin_hash
        assert profile_service.get_profile(profile.id).name == "Sofia"

    def test_update_pin(self, profile_service, active_account, profile, hasher) -> None:
        updated = profile_service.update_profile(
            profile.id, active_account.id, name="Sofi", pin="222222"
        )
        assert hasher.verify("222222", updated.pin_hash)
        assert not hasher.verify("111111", updated.pin_hash)

    def test_update_foreign_profile(self, profile_service, profile) -> None:
        with pytest.raises(NotFoundError):
            profile_service.update_profile(profile.id, "someone-else", name="Hacked")

    def test_delete(self, profile_service, active_account, profile) -> None:
        profile_service.delete_profile(profile.id, active_account.id)
        with pytest.raises(NotFoundError):
            profile_service.get_profile(profile.id)

    def test_delete_foreign_profile(self, profile_service, profile) -> None:
        with pytest.raises(NotFoundError):
            profile_service.delete_profile(profile.id, "someone-else")

    def test_delete_for_owner(self, profile_service, active_account, profile) -> None:
        profile_service.create_profile(active_account.id, "Mateo", "333333")
        assert profile_service.delete_profiles_for_owner(active_account.id) == 2
        assert profile_service.list_profiles(active_account.id) == []
