"""
Session module interface.

Other modules should depend on these protocols, not on SessionStore.
The request executor only needs ITokenProvider; screens and the auth
service use ISessionStore.
"""

from typing import Awaitable, Callable, Optional, Protocol, Union, runtime_checkable

from .models import Session, SessionEvent, UserRecord


SessionListener = Callable[[SessionEvent, Session], Union[None, Awaitable[None]]]


@runtime_checkable
class ITokenProvider(Protocol):
    """Read-only access to the current bearer token."""

    def current_token(self) -> Optional[str]:
        """Return the bearer token, or None when logged out."""
        ...


@runtime_checkable
class ISessionStore(ITokenProvider, Protocol):
    """
    Interface for the single source of truth on who is logged in.

    Implementations must be fail-closed: on any inconsistency between the
    token and the user record, the result is "no session".
    """

    async def load_from_durable_storage(self) -> Session:
        """
        Restore the session persisted by a previous run.

        Never raises; storage errors and corrupt records yield an empty session.
        """
        ...

    async def establish_session(self, token: str, user: UserRecord) -> Session:
        """
        Persist and activate a newly issued token and user.

        Raises:
            SessionPersistenceError: If storage failed (the store is cleared)
        """
        ...

    async def update_user(self, user: UserRecord) -> bool:
        """
        Replace the cached user without touching the token.

        Returns:
            False (and does nothing) when no token is set
        """
        ...

    async def clear_session(self) -> None:
        """Erase the session everywhere. Idempotent, never raises."""
        ...

    def current_user(self) -> Optional[UserRecord]:
        """Return the cached user record, or None when logged out."""
        ...

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """
        Register a listener for session transitions.

        Returns:
            A callable that removes the listener
        """
        ...
