"""Tests for the service container wiring."""

import pytest

from modules.api.exceptions import UnauthorizedError
from modules.api.service import APIClient
from modules.auth.service import AuthService
from modules.container import ServiceContainer
from modules.session.service import SessionStore, TOKEN_KEY
from modules.storage.service import AccessGatedStorage, InMemorySecureStorage


@pytest.fixture
def container(settings, storage, make_http_client, recorder):
    return ServiceContainer(settings, storage=storage, http_client=make_http_client(recorder))


async def persist_session(storage, user, token="persisted-token"):
    await SessionStore(storage).establish_session(token, user)


class TestServiceContainer:
    def test_services_are_cached(self, container):
        assert isinstance(container.session, SessionStore)
        assert isinstance(container.api, APIClient)
        assert isinstance(container.auth, AuthService)
        assert container.session is container.session
        assert container.api is container.api
        assert container.auth is container.auth

    def test_storage_from_settings(self, settings):
        container = ServiceContainer(settings)
        assert isinstance(container.storage, InMemorySecureStorage)

    @pytest.mark.asyncio
    async def test_start_restores_session(self, container, storage, user):
        await persist_session(storage, user)

        await container.start()

        assert container.session.current_token() == "persisted-token"
        assert container.session.current_user() == user

    @pytest.mark.asyncio
    async def test_401_logs_out(self, container, storage, recorder, user):
        """A 401 on any authenticated call should clear the restored session."""
        await persist_session(storage, user)
        recorder.respond(401)

        async with container:
            with pytest.raises(UnauthorizedError):
                await container.api.get("/trainer/clients")
            assert container.session.session.is_empty

        assert storage.keys() == []

    @pytest.mark.asyncio
    async def test_aclose_unsubscribes(self, container, storage, user):
        await container.start()
        api = container.api
        await container.aclose()

        await container.session.establish_session("tok", user)
        await api._emit_unauthorized()
        assert container.session.current_token() == "tok"

    @pytest.mark.asyncio
    async def test_aclose_leaves_injected_http_client_open(self, settings, storage, make_http_client, recorder):
        http = make_http_client(recorder)
        async with ServiceContainer(settings, storage=storage, http_client=http):
            pass
        assert not http.is_closed
        await http.aclose()


class TestPasscodeProtectedToken:
    @pytest.fixture
    def protected_settings(self, settings):
        return settings.model_copy(update={"token_passcode": "2468"})

    def make(self, settings, storage, answer):
        async def prompt(reason: str) -> str:
            return answer
        return ServiceContainer(settings, storage=storage, passcode_prompt=prompt)

    @pytest.mark.asyncio
    async def test_correct_passcode(self, protected_settings, storage, user):
        await persist_session(storage, user)
        container = self.make(protected_settings, storage, "2468")

        await container.start()

        assert isinstance(container.session._token_storage, AccessGatedStorage)
        assert container.session.current_token() == "persisted-token"
        await container.aclose()

    @pytest.mark.asyncio
    async def test_wrong_passcode_keeps_stored_session(self, protected_settings, storage, user):
        """A denied unlock should start logged out without erasing anything."""
        await persist_session(storage, user)
        container = self.make(protected_settings, storage, "0000")

        await container.start()

        assert container.session.session.is_empty
        assert await storage.get(TOKEN_KEY) == b"persisted-token"
        await container.aclose()
