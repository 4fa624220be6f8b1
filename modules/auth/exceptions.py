"""
Authentication module exceptions.

Raised before any request is sent, when the caller's input cannot form a
valid auth request. Failures from the server arrive as APIError subclasses.
"""

from shared.exceptions import ValidationError


class MissingFieldError(ValidationError):
    """Raised when a required field is empty."""

    def __init__(self, field: str):
        super().__init__(f"{field} is required.", field=field, code="MISSING_FIELD")


class InvalidInputError(ValidationError):
    """Raised when a field has an unusable value (e.g. malformed email)."""

    def __init__(self, field: str):
        super().__init__(f"Invalid {field}. Please check your input.", field=field, code="INVALID_INPUT")
