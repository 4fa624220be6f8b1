"""
Shared test fixtures and utilities.

This module provides common test infrastructure used across all test modules.
HTTP traffic is served by httpx.MockTransport handlers; nothing touches the
network or the real home directory.
"""

import json
from datetime import datetime, timezone
from typing import Callable

import httpx
import pytest

from shared.config import Settings, get_settings
from modules.api.service import APIClient
from modules.session.models import UserRecord
from modules.session.service import SessionStore
from modules.storage.service import InMemorySecureStorage


TEST_BASE_URL = "https://api.test/api/v1"
TEST_TOKEN = "test-token-abc123"


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Make sure no test sees settings cached by another."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings pointing at a fake API and a temporary storage directory."""
    return Settings(
        _env_file=None,
        api_base_url=TEST_BASE_URL,
        storage_backend="memory",
        storage_dir=tmp_path,
        request_timeout=5.0,
    )


@pytest.fixture
def user_payload() -> dict:
    """A user record as the API sends it."""
    return {
        "id": "665f1c2ab3e4d5f6a7b8c9d0",
        "name": "Jamie Trainer",
        "email": "jamie@example.com",
        "roles": ["trainer", "client"],
        "createdAt": "2024-03-15T08:30:00.123Z",
        "clientIds": ["client-1", "client-2"],
    }


@pytest.fixture
def user(user_payload) -> UserRecord:
    return UserRecord.model_validate(user_payload)


@pytest.fixture
def other_user() -> UserRecord:
    return UserRecord(
        id="client-1",
        name="Casey Client",
        email="casey@example.com",
        roles=["client"],
        created_at=datetime(2024, 4, 1, 12, 0, tzinfo=timezone.utc),
        trainer_id="665f1c2ab3e4d5f6a7b8c9d0",
    )


@pytest.fixture
def storage() -> InMemorySecureStorage:
    return InMemorySecureStorage()


@pytest.fixture
def session_store(storage) -> SessionStore:
    return SessionStore(storage)


@pytest.fixture
def make_http_client() -> Callable[[Callable[[httpx.Request], httpx.Response]], httpx.AsyncClient]:
    """Build an httpx.AsyncClient whose requests are answered by ``handler``."""

    def factory(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return factory


@pytest.fixture
def recorder():
    """
    Request recorder + responder.

    ``recorder.respond(status, body)`` sets the canned response;
    ``recorder.requests`` holds every request seen.
    """

    class Recorder:
        def __init__(self) -> None:
            self.requests: list[httpx.Request] = []
            self.status = 200
            self.body: bytes = b""

        def respond(self, status: int, body=None) -> None:
            self.status = status
            if body is None:
                self.body = b""
            elif isinstance(body, (bytes, str)):
                self.body = body.encode() if isinstance(body, str) else body
            else:
                self.body = json.dumps(body).encode()

        def __call__(self, request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return httpx.Response(self.status, content=self.body)

        @property
        def last_json(self):
            return json.loads(self.requests[-1].content)

    return Recorder()


@pytest.fixture
def api_client(session_store, settings, make_http_client, recorder) -> APIClient:
    """Executor wired to the session store, with 401s clearing the session."""
    client = APIClient(session_store, settings, http_client=make_http_client(recorder))
    client.on_unauthorized(session_store.clear_session)
    return client
