"""
Shared data models used across modules.

These models are shared infrastructure, not business logic.
Module-specific models should stay in their respective module directories.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class APIModel(BaseModel):
    """
    Base for every model that crosses the wire or is persisted.

    The platform API uses camelCase keys; Python code uses snake_case.
    Either spelling is accepted on input, aliases are used on output.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",  # Ignore fields newer servers may add
    )


class APIErrorResponse(APIModel):
    """Error body returned by the API for non-2xx responses."""

    error: str = Field(..., description="Human-readable error message")
