"""
Authentication module interface.

Screens should depend on IAuthService, not the concrete implementation.
"""

from typing import Optional, Protocol, Union, runtime_checkable

from modules.session.models import Role, UserRecord

from .models import SocialLoginResponse


@runtime_checkable
class IAuthService(Protocol):
    """
    Interface for the sign-in flows.

    Successful logins establish the session on the session store; failed
    ones leave it cleared.
    """

    async def login(self, email: str, password: str) -> UserRecord:
        """
        Log in with email and password.

        Returns:
            The logged-in user

        Raises:
            MissingFieldError: If email or password is empty
            APIError: If the server rejected the login
            SessionPersistenceError: If the session could not be saved
        """
        ...

    async def register(self, name: str, email: str, password: str, role: Union[Role, str]) -> UserRecord:
        """
        Create an account. Does not log in; call login() afterwards.

        Raises:
            MissingFieldError / InvalidInputError: For unusable input
            APIError: If the server rejected the registration
        """
        ...

    async def forgot_password(self, email: str) -> None:
        """Ask the server to send a password reset email."""
        ...

    async def precheck_apple_user(self, identity_token: str) -> bool:
        """Return whether an account is already linked to the Apple identity."""
        ...

    async def sign_in_with_apple(
        self,
        identity_token: str,
        role: Union[Role, str],
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
    ) -> SocialLoginResponse:
        """Sign in (or sign up) with an Apple identity token."""
        ...

    async def logout(self) -> None:
        """Clear the session."""
        ...
