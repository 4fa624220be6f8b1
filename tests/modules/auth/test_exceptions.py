"""Tests for the authentication exceptions."""

from shared.exceptions import ValidationError
from modules.auth.exceptions import InvalidInputError, MissingFieldError


class TestAuthExceptions:
    def test_missing_field(self):
        error = MissingFieldError("Email")
        assert isinstance(error, ValidationError)
        assert error.message == "Email is required."
        assert error.code == "MISSING_FIELD"
        assert error.details == {"field": "Email"}

    def test_invalid_input(self):
        error = InvalidInputError("Email")
        assert isinstance(error, ValidationError)
        assert error.message == "Invalid Email. Please check your input."
        assert error.to_dict()["error"] == "INVALID_INPUT"
