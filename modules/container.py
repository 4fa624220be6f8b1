"""
Service container.

Wires the module implementations together. Each module exposes its service
through an interface and this file creates the concrete implementations.
The container is created explicitly by the entry point and passed to
whatever needs it; there is no module-level instance.

Dependency direction: the request executor emits an unauthorized event,
and the container subscribes the session store's clear_session to it.
"""

import logging
from typing import TYPE_CHECKING, Awaitable, Callable, Optional

import httpx

from shared.config import Settings, get_settings

if TYPE_CHECKING:
    from modules.api.service import APIClient
    from modules.auth.service import AuthService
    from modules.session.service import SessionStore
    from modules.storage.interfaces import ISecureStorage

logger = logging.getLogger(__name__)


class ServiceContainer:
    """
    Container for all service instances.

    Services are created lazily on first access and cached within the
    container. Call start() once before use to restore the persisted
    session, and aclose() when done.

    Args:
        settings: Settings to build from. Defaults to get_settings().
        storage: Storage backend override (tests pass InMemorySecureStorage)
        http_client: httpx client override (tests pass a MockTransport client)
        passcode_prompt: Prompt used when TOKEN_PASSCODE is configured
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        storage: "Optional[ISecureStorage]" = None,
        http_client: Optional[httpx.AsyncClient] = None,
        passcode_prompt: Optional[Callable[[str], Awaitable[str]]] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._storage = storage
        self._http_client = http_client
        self._passcode_prompt = passcode_prompt
        self._session_store: "SessionStore | None" = None
        self._api_client: "APIClient | None" = None
        self._auth_service: "AuthService | None" = None
        self._unsubscribe: Optional[Callable[[], None]] = None

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def storage(self) -> "ISecureStorage":
        """Get the base storage backend (holds the user record)."""
        if self._storage is None:
            from modules.storage.service import get_secure_storage
            self._storage = get_secure_storage(self._settings)
        return self._storage

    @property
    def session(self) -> "SessionStore":
        """Get the session store instance."""
        if self._session_store is None:
            from modules.session.service import SessionStore
            from modules.storage.service import get_token_storage
            token_storage = get_token_storage(self.storage, self._settings, prompt=self._passcode_prompt)
            self._session_store = SessionStore(token_storage, user_storage=self.storage)
        return self._session_store

    @property
    def api(self) -> "APIClient":
        """Get the request executor, with 401s wired to logout."""
        if self._api_client is None:
            from modules.api.service import APIClient
            self._api_client = APIClient(self.session, self._settings, http_client=self._http_client)
            self._unsubscribe = self._api_client.on_unauthorized(self.session.clear_session)
        return self._api_client

    @property
    def auth(self) -> "AuthService":
        """Get the auth service instance."""
        if self._auth_service is None:
            from modules.auth.service import AuthService
            self._auth_service = AuthService(self.api, self.session)
        return self._auth_service

    async def start(self) -> None:
        """Restore the persisted session and wire the executor to it."""
        _ = self.api  # builds the executor and wires 401s to logout
        await self.session.load_from_durable_storage()

    async def aclose(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        if self._api_client is not None:
            await self._api_client.aclose()
            self._api_client = None
            self._auth_service = None
        logger.debug("Service container closed")

    async def __aenter__(self) -> "ServiceContainer":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
