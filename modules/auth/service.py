"""
Authentication service implementation.

Calls the unauthenticated /auth endpoints and hands issued tokens to the
session store.
"""

import logging
from typing import Optional, TypeVar, Union

from pydantic import BaseModel, ValidationError as PydanticValidationError

from modules.api.interfaces import IAPIClient
from modules.api.exceptions import APIError
from modules.session.interfaces import ISessionStore
from modules.session.models import Role, UserRecord
from modules.session.exceptions import SessionPersistenceError

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

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

_FIELD_LABELS = {
    "name": "Name",
    "email": "Email",
    "password": "Password",
    "role": "Role",
    "identity_token": "Identity token",
    "identityToken": "Identity token",
}


def _require(field: str, value: Optional[str]) -> str:
    value = (value or "").strip()
    if not value:
        raise MissingFieldError(_FIELD_LABELS.get(field, field))
    return value


def _build(model: type[ModelT], **values) -> ModelT:
    """Validate a request body, reporting the first bad field by name."""
    try:
        return model(**values)
    except PydanticValidationError as e:
        loc = e.errors()[0]["loc"]
        field = str(loc[0]) if loc else "input"
        raise InvalidInputError(_FIELD_LABELS.get(field, field)) from e


class AuthService(IAuthService):
    """
    Implementation of the sign-in flows.

    Any failure during login or social sign-in clears the session, so a
    half-finished sign-in never leaves a previous user's token behind.
    """

    def __init__(self, client: IAPIClient, session_store: ISessionStore):
        self._client = client
        self._session = session_store

    async def login(self, email: str, password: str) -> UserRecord:
        email = _require("email", email)
        if not password:
            raise MissingFieldError("Password")

        logger.info(f"Attempting login for {email}")
        try:
            response: LoginResponse = await self._client.request(
                "POST",
                "/auth/login",
                body=LoginRequest(email=email, password=password),
                response_model=LoginResponse,
                authenticated=False,
            )
            await self._session.establish_session(response.token, response.user)
        except (APIError, SessionPersistenceError) as e:
            logger.info(f"Login failed for {email}: {e.code}")
            await self._session.clear_session()
            raise

        return response.user

    async def register(
        self,
        name: str,
        email: str,
        password: str,
        role: Union[Role, str],
    ) -> UserRecord:
        if not password:
            raise MissingFieldError("Password")
        body = _build(
            RegisterRequest,
            name=_require("name", name),
            email=_require("email", email),
            password=password,
            role=role,
        )
        user: UserRecord = await self._client.request(
            "POST",
            "/auth/register",
            body=body,
            response_model=UserRecord,
            authenticated=False,
        )
        logger.info(f"Registered {user.email} as {body.role.value}")
        return user

    async def forgot_password(self, email: str) -> None:
        body = _build(ForgotPasswordRequest, email=_require("email", email))
        await self._client.request(
            "POST",
            "/auth/forgot-password",
            body=body,
            authenticated=False,
        )

    async def precheck_apple_user(self, identity_token: str) -> bool:
        body = ApplePrecheckRequest(identity_token=_require("identity_token", identity_token))
        response: ApplePrecheckResponse = await self._client.request(
            "POST",
            "/auth/apple/precheck",
            body=body,
            response_model=ApplePrecheckResponse,
            authenticated=False,
        )
        logger.debug(f"Apple precheck: user exists = {response.user_exists}")
        return response.user_exists

    async def sign_in_with_apple(
        self,
        identity_token: str,
        role: Union[Role, str],
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
    ) -> SocialLoginResponse:
        body = _build(
            AppleSignInRequest,
            identity_token=_require("identity_token", identity_token),
            first_name=(first_name or "").strip() or None,
            last_name=(last_name or "").strip() or None,
            role=role,
        )

        try:
            response: SocialLoginResponse = await self._client.request(
                "POST",
                "/auth/apple/callback",
                body=body,
                response_model=SocialLoginResponse,
                authenticated=False,
            )
            await self._session.establish_session(response.token, response.user)
        except (APIError, SessionPersistenceError) as e:
            logger.info(f"Apple sign-in failed: {e.code}")
            await self._session.clear_session()
            raise

        logger.info(f"Signed in with Apple as {response.user.email} (new user: {response.is_new_user})")
        return response

    async def logout(self) -> None:
        await self._session.clear_session()
        logger.info("User logged out")

    async def update_current_user(self, user: UserRecord) -> bool:
        """Store a fresher user record (e.g. after activating a trainer role)."""
        return await self._session.update_user(user)
