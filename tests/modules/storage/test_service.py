"""Tests for secure storage backends."""

import os
import stat
import threading
import pytest
from unittest.mock import AsyncMock

from cryptography.fernet import Fernet

from shared.config import Settings
from modules.storage.exceptions import AccessDeniedError, StorageError
from modules.storage.service import (
    AccessGatedStorage,
    AllowAllGate,
    EncryptedFileStorage,
    FileSecureStorage,
    InMemorySecureStorage,
    PasscodeGate,
    get_secure_storage,
    get_token_storage,
)


class DenyGate:
    def __init__(self) -> None:
        self.calls = 0

    async def authorize(self, reason: str) -> bool:
        self.calls += 1
        return False


class TestInMemorySecureStorage:
    @pytest.mark.asyncio
    async def test_set_get_delete(self):
        storage = InMemorySecureStorage()
        await storage.set("auth_token", b"abc")
        assert await storage.get("auth_token") == b"abc"
        await storage.delete("auth_token")
        assert await storage.get("auth_token") is None

    @pytest.mark.asyncio
    async def test_missing_key_returns_none(self):
        assert await InMemorySecureStorage().get("nope") is None

    @pytest.mark.asyncio
    async def test_delete_missing_key_is_noop(self):
        await InMemorySecureStorage().delete("nope")

    def test_initial_values(self):
        storage = InMemorySecureStorage({"b": b"2", "a": b"1"})
        assert storage.keys() == ["a", "b"]


class TestFileSecureStorage:
    @pytest.fixture
    def storage(self, tmp_path):
        return FileSecureStorage(tmp_path, "com.example.test")

    @pytest.mark.asyncio
    async def test_round_trip(self, storage):
        await storage.set("auth_token", b"secret")
        assert await storage.get("auth_token") == b"secret"

    @pytest.mark.asyncio
    async def test_survives_new_instance(self, tmp_path):
        await FileSecureStorage(tmp_path, "ns").set("auth_token", b"secret")
        assert await FileSecureStorage(tmp_path, "ns").get("auth_token") == b"secret"

    @pytest.mark.asyncio
    async def test_namespaces_are_isolated(self, tmp_path):
        await FileSecureStorage(tmp_path, "one").set("auth_token", b"secret")
        assert await FileSecureStorage(tmp_path, "two").get("auth_token") is None

    @pytest.mark.asyncio
    async def test_missing_returns_none(self, storage):
        assert await storage.get("auth_token") is None

    @pytest.mark.asyncio
    async def test_overwrite(self, storage):
        await storage.set("auth_token", b"one")
        await storage.set("auth_token", b"two")
        assert await storage.get("auth_token") == b"two"

    @pytest.mark.asyncio
    async def test_delete(self, storage):
        await storage.set("auth_token", b"one")
        await storage.delete("auth_token")
        assert await storage.get("auth_token") is None
        # Second delete is a no-op
        await storage.delete("auth_token")

    @pytest.mark.skipif(os.name != "posix", reason="POSIX permissions")
    @pytest.mark.asyncio
    async def test_owner_only_permissions(self, storage):
        await storage.set("auth_token", b"secret")
        file_mode = stat.S_IMODE((storage.directory / "auth_token").stat().st_mode)
        dir_mode = stat.S_IMODE(storage.directory.stat().st_mode)
        assert file_mode == 0o600
        assert dir_mode & 0o077 == 0

    @pytest.mark.asyncio
    async def test_no_temp_files_left_behind(self, storage):
        await storage.set("auth_token", b"secret")
        assert [p.name for p in storage.directory.iterdir()] == ["auth_token"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("key", ["../escape", "a/b", "", ".."])
    async def test_rejects_unsafe_keys(self, storage, key):
        with pytest.raises(StorageError):
            await storage.get(key)

    def test_rejects_unsafe_namespace(self, tmp_path):
        with pytest.raises(ValueError):
            FileSecureStorage(tmp_path, "../elsewhere")

    @pytest.mark.asyncio
    async def test_read_error_raises_storage_error(self, storage):
        # A directory where the entry file should be cannot be read as bytes
        (storage.directory / "auth_token").mkdir(parents=True)
        with pytest.raises(StorageError):
            await storage.get("auth_token")

    @pytest.mark.asyncio
    async def test_file_access_runs_off_the_event_loop(self, tmp_path):
        """Reads and writes should not block the event loop thread."""
        threads = []

        class Recording(FileSecureStorage):
            def _encode(self, value):
                threads.append(threading.get_ident())
                return super()._encode(value)

            def _decode(self, key, stored):
                threads.append(threading.get_ident())
                return super()._decode(key, stored)

        storage = Recording(tmp_path, "ns")
        await storage.set("auth_token", b"secret")
        assert await storage.get("auth_token") == b"secret"

        assert len(threads) == 2
        assert threading.get_ident() not in threads


class TestEncryptedFileStorage:
    @pytest.fixture
    def key(self):
        return Fernet.generate_key()

    @pytest.mark.asyncio
    async def test_round_trip(self, tmp_path, key):
        storage = EncryptedFileStorage(tmp_path, "ns", key)
        await storage.set("auth_token", b"secret")
        assert await storage.get("auth_token") == b"secret"

    @pytest.mark.asyncio
    async def test_value_is_encrypted_at_rest(self, tmp_path, key):
        storage = EncryptedFileStorage(tmp_path, "ns", key)
        await storage.set("auth_token", b"secret")
        assert b"secret" not in (storage.directory / "auth_token").read_bytes()

    @pytest.mark.asyncio
    async def test_wrong_key_raises_storage_error(self, tmp_path, key):
        await EncryptedFileStorage(tmp_path, "ns", key).set("auth_token", b"secret")
        other = EncryptedFileStorage(tmp_path, "ns", Fernet.generate_key())
        with pytest.raises(StorageError):
            await other.get("auth_token")

    @pytest.mark.asyncio
    async def test_plain_file_is_rejected(self, tmp_path, key):
        await FileSecureStorage(tmp_path, "ns").set("auth_token", b"plaintext")
        with pytest.raises(StorageError):
            await EncryptedFileStorage(tmp_path, "ns", key).get("auth_token")

    def test_invalid_key(self, tmp_path):
        with pytest.raises(ValueError):
            EncryptedFileStorage(tmp_path, "ns", "not-a-fernet-key")


class TestAccessGatedStorage:
    @pytest.mark.asyncio
    async def test_allowed_read(self):
        inner = InMemorySecureStorage({"auth_token": b"secret"})
        storage = AccessGatedStorage(inner, AllowAllGate())
        assert await storage.get("auth_token") == b"secret"

    @pytest.mark.asyncio
    async def test_denied_read_raises(self):
        inner = InMemorySecureStorage({"auth_token": b"secret"})
        storage = AccessGatedStorage(inner, DenyGate())
        with pytest.raises(AccessDeniedError) as exc_info:
            await storage.get("auth_token")
        assert isinstance(exc_info.value, StorageError)
        assert exc_info.value.key == "auth_token"

    @pytest.mark.asyncio
    async def test_missing_value_does_not_prompt(self):
        gate = DenyGate()
        storage = AccessGatedStorage(InMemorySecureStorage(), gate)
        assert await storage.get("auth_token") is None
        assert gate.calls == 0

    @pytest.mark.asyncio
    async def test_writes_and_deletes_are_not_gated(self):
        gate = DenyGate()
        inner = InMemorySecureStorage()
        storage = AccessGatedStorage(inner, gate)
        await storage.set("auth_token", b"secret")
        assert await inner.get("auth_token") == b"secret"
        await storage.delete("auth_token")
        assert await inner.get("auth_token") is None
        assert gate.calls == 0


class TestPasscodeGate:
    @pytest.mark.asyncio
    async def test_correct_passcode(self):
        gate = PasscodeGate("1234", prompt=AsyncMock(return_value="1234"))
        assert await gate.authorize("Unlock") is True

    @pytest.mark.asyncio
    async def test_wrong_passcode(self):
        gate = PasscodeGate("1234", prompt=AsyncMock(return_value="0000"))
        assert await gate.authorize("Unlock") is False

    @pytest.mark.asyncio
    async def test_prompt_receives_reason(self):
        prompt = AsyncMock(return_value="1234")
        await PasscodeGate("1234", prompt=prompt).authorize("Unlock your session")
        prompt.assert_awaited_once_with("Unlock your session")

    @pytest.mark.asyncio
    async def test_cancelled_prompt_denies(self):
        gate = PasscodeGate("1234", prompt=AsyncMock(side_effect=EOFError))
        assert await gate.authorize("Unlock") is False

    def test_empty_passcode_rejected(self):
        with pytest.raises(ValueError):
            PasscodeGate("")


class TestGetSecureStorage:
    def test_memory_backend(self, tmp_path):
        settings = Settings(_env_file=None, storage_backend="memory", storage_dir=tmp_path)
        assert isinstance(get_secure_storage(settings), InMemorySecureStorage)

    def test_file_backend(self, tmp_path):
        settings = Settings(_env_file=None, storage_backend="file", storage_dir=tmp_path, storage_namespace="ns")
        storage = get_secure_storage(settings)
        assert type(storage) is FileSecureStorage
        assert storage.directory == tmp_path / "ns"

    def test_encrypted_backend(self, tmp_path):
        settings = Settings(
            _env_file=None,
            storage_backend="encrypted",
            storage_dir=tmp_path,
            storage_encryption_key=Fernet.generate_key().decode(),
        )
        assert isinstance(get_secure_storage(settings), EncryptedFileStorage)

    def test_encrypted_backend_requires_key(self, tmp_path):
        settings = Settings(_env_file=None, storage_backend="encrypted", storage_dir=tmp_path)
        with pytest.raises(RuntimeError, match="STORAGE_ENCRYPTION_KEY"):
            get_secure_storage(settings)


class TestGetTokenStorage:
    def test_ungated_without_passcode(self, tmp_path):
        base = InMemorySecureStorage()
        settings = Settings(_env_file=None, storage_dir=tmp_path)
        assert get_token_storage(base, settings) is base

    @pytest.mark.asyncio
    async def test_gated_with_passcode(self, tmp_path):
        base = InMemorySecureStorage({"auth_token": b"secret"})
        settings = Settings(_env_file=None, storage_dir=tmp_path, token_passcode="1234")
        storage = get_token_storage(base, settings, prompt=AsyncMock(return_value="nope"))
        assert isinstance(storage, AccessGatedStorage)
        with pytest.raises(AccessDeniedError):
            await storage.get("auth_token")
