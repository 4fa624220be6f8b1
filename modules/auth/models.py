"""
Authentication module data models.

Request and response bodies of the /auth endpoints. Wire keys are camelCase
except where the server says otherwise (see ApplePrecheckResponse).
"""

from typing import Optional
from pydantic import EmailStr, Field

from shared.models import APIModel
from modules.session.models import Role, UserRecord


class LoginRequest(APIModel):
    email: str = Field(..., description="Account email")
    password: str = Field(..., description="Account password")


class LoginResponse(APIModel):
    """Token and user returned by a successful login."""

    token: str = Field(..., min_length=1, description="Bearer token")
    user: UserRecord


class RegisterRequest(APIModel):
    name: str = Field(..., min_length=1, description="Display name")
    email: EmailStr = Field(..., description="Account email")
    password: str = Field(..., min_length=1, description="Account password")
    role: Role = Field(..., description="Initial role")


class ForgotPasswordRequest(APIModel):
    email: EmailStr = Field(..., description="Account email")


class ApplePrecheckRequest(APIModel):
    identity_token: str = Field(..., min_length=1, description="Apple identity token")


class ApplePrecheckResponse(APIModel):
    user_exists: bool = Field(..., alias="user_exists", description="Whether an account is linked")


class AppleSignInRequest(APIModel):
    """
    Body of /auth/apple/callback.

    Apple only shares the name on first authorization; absent names are
    omitted from the JSON rather than sent as empty strings.
    """

    identity_token: str = Field(..., min_length=1)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: Role


class SocialLoginResponse(APIModel):
    """Token and user returned by a social sign-in."""

    token: str = Field(..., min_length=1, description="Bearer token")
    user: UserRecord
    is_new_user: bool = Field(False, description="Whether the account was just created")
