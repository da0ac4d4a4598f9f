"""
Unit tests for API request and response models.
"""

from datetime import date

import pytest
from pydantic import ValidationError

from gatekeeper.api.models import (
    AccountView,
    ErrorResponse,
    RegisterRequest,
    VerifySmsRequest,
)
from gatekeeper.domain.models import Account, AccountStatus

VALID = {
    "first_name": "Ana",
    "email": "parent@example.com",
    "phone": "88887777",
    "password": "password123",
    "confirm_password": "password123",
    "pin": "123456",
    "birth_date": "1990-06-01",
}


class TestRegisterRequest:
    def test_valid(self) -> None:
        request = RegisterRequest(**VALID)
        assert request.birth_date == date(1990, 6, 1)
        assert request.last_name == ""
        assert request.country is None

    def test_invalid_email(self) -> None:
        with pytest.raises(ValidationError):
            RegisterRequest(**{**VALID, "email": "not-an-email"})

    def test_short_password(self) -> None:
        with pytest.raises(ValidationError):
            RegisterRequest(**{**VALID, "password": "short"})

    def test_password_over_bcrypt_limit(self) -> None:
        with pytest.raises(ValidationError):
            RegisterRequest(**{**VALID, "password": "a" * 73})

    def test_missing_birth_date(self) -> None:
        data = dict(VALID)
        del data["birth_date"]
        with pytest.raises(ValidationError):
            RegisterRequest(**data)


class TestVerifySmsRequest:
    @pytest.mark.parametrize("code", ["12345", "1234567", "12a456", ""])
    def test_code_must_be_six_digits(self, code: str) -> None:
        with pytest.raises(ValidationError):
            VerifySmsRequest(account_id="a", code=code)

    def test_valid_code(self) -> None:
        assert VerifySmsRequest(account_id="a", code="012345").code == "012345"


class TestViews:
    def test_account_view_has_no_secrets(self) -> None:
        account = Account(
            id="a",
            email="parent@example.com",
            password_hash="$2b$04$secret",
            pin_hash="$2b$04$pin",
            status=AccountStatus.ACTIVE,
        )
        dumped = AccountView.from_account(account).model_dump()
        assert "password_hash" not in dumped
        assert "pin_hash" not in dumped
        assert dumped["email"] == "parent@example.com"

    def test_error_response_shape(self) -> None:
        assert ErrorResponse(detail="x", reason="conflict").model_dump() == {
            "detail": "x",
            "reason": "conflict",
        }
