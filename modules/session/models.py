"""
Session module data models.

These models define who is logged in and are exposed to other modules
through the interface.
"""

from enum import Enum
from typing import Optional
from pydantic import Field, model_validator

from shared.dates import APIDateTime
from shared.models import APIModel


class Role(str, Enum):
    """Platform roles. A user may hold both."""

    TRAINER = "trainer"
    CLIENT = "client"


class UserRecord(APIModel):
    """
    Snapshot of the authenticated identity as returned by the API.

    Never mutated in place: whenever the server returns a newer
    representation the whole record is replaced.
    """

    id: str = Field(..., description="User ID")
    name: str = Field(..., description="Display name")
    email: str = Field(..., description="Email address")
    roles: list[str] = Field(default_factory=list, description="Role tags")
    created_at: APIDateTime = Field(..., description="Account creation time")

    # Linkage between trainers and their clients
    client_ids: Optional[list[str]] = Field(None, description="Clients managed by a trainer")
    trainer_id: Optional[str] = Field(None, description="Trainer of a client")

    model_config = {"frozen": True}

    def has_role(self, role: Role | str) -> bool:
        value = role.value if isinstance(role, Role) else role
        return value in self.roles

    @property
    def is_trainer(self) -> bool:
        return self.has_role(Role.TRAINER)

    @property
    def is_client(self) -> bool:
        return self.has_role(Role.CLIENT)


class Session(APIModel):
    """
    Authentication state of the running client.

    A user is only ever present together with a token.
    """

    token: Optional[str] = Field(None, description="Bearer token")
    user: Optional[UserRecord] = Field(None, description="Logged-in user")

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _user_requires_token(self) -> "Session":
        if self.user is not None and self.token is None:
            raise ValueError("A session cannot carry a user without a token")
        return self

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None and self.user is not None

    @property
    def is_empty(self) -> bool:
        return self.token is None and self.user is None

    def __repr__(self) -> str:
        # Keep the token out of logs and tracebacks
        token = "<redacted>" if self.token else None
        email = self.user.email if self.user else None
        return f"Session(token={token}, user={email!r})"

    __str__ = __repr__


class SessionEvent(str, Enum):
    """Transitions observable through SessionStore.subscribe."""

    ESTABLISHED = "established"
    USER_UPDATED = "user_updated"
    CLEARED = "cleared"
