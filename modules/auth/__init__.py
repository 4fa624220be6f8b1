"""
Authentication module.

Handles the sign-in flows (email/password, Apple) and account creation.

Public API:
- IAuthService: Interface for auth operations
- AuthService: Implementation over IAPIClient and ISessionStore
- Request/response models for the /auth endpoints
- Auth exceptions: MissingFieldError, InvalidInputError
"""

from .interfaces import IAuthService
from .models import (
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    ForgotPasswordRequest,
    ApplePrecheckRequest,
    ApplePrecheckResponse,
    AppleSignInRequest,
    SocialLoginResponse,
)
from .exceptions import MissingFieldError, InvalidInputError
from .service import AuthService

__all__ = [
    # Interface
    "IAuthService",
    # Models
    "LoginRequest",
    "LoginResponse",
    "RegisterRequest",
    "ForgotPasswordRequest",
    "ApplePrecheckRequest",
    "ApplePrecheckResponse",
    "AppleSignInRequest",
    "SocialLoginResponse",
    # Exceptions
    "MissingFieldError",
    "InvalidInputError",
    # Service
    "AuthService",
]
