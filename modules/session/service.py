"""
Session store implementation.

Owns the bearer token and the cached user record, persists both to secure
storage and notifies listeners when the session is established or cleared.
"""

import asyncio
import inspect
import logging
from typing import Callable, Optional

from pydantic import ValidationError as PydanticValidationError

from shared.codec import encode_json
from modules.storage.interfaces import ISecureStorage
from modules.storage.exceptions import AccessDeniedError, StorageError

from .interfaces import ISessionStore, SessionListener
from .models import Session, SessionEvent, UserRecord
from .exceptions import SessionPersistenceError

logger = logging.getLogger(__name__)

TOKEN_KEY = "auth_token"
USER_KEY = "logged_in_user"


class SessionStore(ISessionStore):
    """
    Fail-closed session store.

    The (token, user) pair is only ever read or replaced while holding a
    single asyncio.Lock, so a reader never sees a token from one session
    and a user from another. Listeners are notified after the lock is
    released and may call back into the store.

    Args:
        token_storage: Storage for the bearer token (may be access-gated)
        user_storage: Storage for the user record. Defaults to token_storage.
    """

    def __init__(
        self,
        token_storage: ISecureStorage,
        user_storage: Optional[ISecureStorage] = None,
    ):
        self._token_storage = token_storage
        self._user_storage = user_storage or token_storage
        self._session = Session()
        self._lock = asyncio.Lock()
        self._listeners: list[SessionListener] = []

    # ------------------------------------------------------------------
    # Read accessors
    # ------------------------------------------------------------------

    @property
    def session(self) -> Session:
        return self._session

    @property
    def is_authenticated(self) -> bool:
        return self._session.is_authenticated

    def current_token(self) -> Optional[str]:
        return self._session.token

    def current_user(self) -> Optional[UserRecord]:
        return self._session.user

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def _notify(self, event: SessionEvent, session: Session) -> None:
        for listener in list(self._listeners):
            try:
                result = listener(event, session)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception(f"Session listener failed handling {event.value}")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def load_from_durable_storage(self) -> Session:
        """
        Restore the persisted session.

        A token without a readable, valid user record is treated as corrupt:
        both entries are erased and the result is an empty session.
        """
        async with self._lock:
            previous = self._session
            self._session = await self._read_persisted()
            loaded = self._session

        if loaded.is_authenticated:
            logger.info(f"Session restored for {loaded.user.email}")
            await self._notify(SessionEvent.ESTABLISHED, loaded)
        else:
            logger.info("No active session found in secure storage")
            if not previous.is_empty:
                await self._notify(SessionEvent.CLEARED, loaded)
        return loaded

    async def _read_persisted(self) -> Session:
        try:
            raw_token = await self._token_storage.get(TOKEN_KEY)
        except AccessDeniedError:
            logger.info("Token access was not granted, starting logged out")
            return Session()
        except StorageError as e:
            logger.warning(f"Could not read token from secure storage: {e.message}")
            return Session()

        if raw_token is None:
            return Session()

        try:
            token = raw_token.decode("utf-8")
        except UnicodeDecodeError:
            token = ""
        if not token:
            logger.warning("Stored token is unreadable, clearing it")
            await self._erase()
            return Session()

        try:
            raw_user = await self._user_storage.get(USER_KEY)
        except StorageError as e:
            logger.warning(f"Token found but user record unreadable ({e.message}), clearing session")
            await self._erase()
            return Session()

        if raw_user is None:
            logger.warning("Token found but user record missing, clearing session")
            await self._erase()
            return Session()

        try:
            user = UserRecord.model_validate_json(raw_user)
        except PydanticValidationError as e:
            logger.warning(f"Stored user record is invalid ({e.error_count()} errors), clearing session")
            await self._erase()
            return Session()

        return Session(token=token, user=user)

    async def establish_session(self, token: str, user: UserRecord) -> Session:
        """
        Persist and activate a new session.

        The token is written first, then the user. If either write fails,
        whatever was written is erased and the in-memory session is cleared
        before SessionPersistenceError is raised.
        """
        if not token:
            raise ValueError("Cannot establish a session with an empty token")

        failure: Optional[Exception] = None
        async with self._lock:
            previous = self._session
            try:
                await self._token_storage.set(TOKEN_KEY, token.encode("utf-8"))
                await self._user_storage.set(USER_KEY, encode_json(user))
            except (StorageError, TypeError, ValueError) as e:
                logger.error(f"Failed to persist session for {user.email}: {e}")
                await self._erase()
                self._session = Session()
                failure = e
            else:
                self._session = Session(token=token, user=user)
            current = self._session

        if failure is not None:
            if not previous.is_empty:
                await self._notify(SessionEvent.CLEARED, current)
            raise SessionPersistenceError(cause=str(failure)) from failure

        logger.info(f"Session established for {user.email} (roles: {', '.join(user.roles) or 'none'})")
        await self._notify(SessionEvent.ESTABLISHED, current)
        return current

    async def update_user(self, user: UserRecord) -> bool:
        """
        Replace the cached user record (e.g. after a role change).

        Does nothing when logged out, so an anonymous session can never
        acquire a user record.
        """
        async with self._lock:
            if self._session.token is None:
                logger.warning(f"Ignoring user update for {user.email}: no active session")
                return False
            try:
                await self._user_storage.set(USER_KEY, encode_json(user))
            except (StorageError, TypeError, ValueError) as e:
                logger.error(f"Failed to persist updated user {user.email}: {e}")
                raise SessionPersistenceError(
                    "Failed to save updated user to secure storage", cause=str(e)
                ) from e
            self._session = Session(token=self._session.token, user=user)
            current = self._session

        logger.debug(f"Stored user updated for {user.email}")
        await self._notify(SessionEvent.USER_UPDATED, current)
        return True

    async def clear_session(self) -> None:
        """
        Log out.

        Durable deletion is best-effort; the in-memory session is always
        cleared. Listeners only hear about it when there was something
        to clear, so concurrent calls produce a single CLEARED event.
        """
        async with self._lock:
            previous = self._session
            await self._erase()
            self._session = Session()
            current = self._session

        if not previous.is_empty:
            logger.info("Session cleared")
            await self._notify(SessionEvent.CLEARED, current)

    async def _erase(self) -> None:
        """Delete both durable entries, logging (never raising) failures."""
        for storage, key in ((self._token_storage, TOKEN_KEY), (self._user_storage, USER_KEY)):
            try:
                await storage.delete(key)
            except Exception:
                logger.exception(f"Failed to delete {key} from secure storage")
