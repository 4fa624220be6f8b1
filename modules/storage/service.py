"""
Secure storage implementations.

- InMemorySecureStorage: Dict-backed, for tests and ephemeral sessions
- FileSecureStorage: One owner-only file per entry under a namespaced directory
- EncryptedFileStorage: FileSecureStorage with Fernet-encrypted values
- AccessGatedStorage: Wraps another storage and requires an access gate on reads
"""

import asyncio
import getpass
import hmac
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Awaitable, Callable, Optional

from cryptography.fernet import Fernet, InvalidToken

from shared.config import Settings, get_settings

from .interfaces import IAccessGate, ISecureStorage
from .exceptions import AccessDeniedError, StorageError

logger = logging.getLogger(__name__)

_KEY_PATTERN = re.compile(r"[A-Za-z0-9_.-]+")


class InMemorySecureStorage:
    """
    Secure storage kept in process memory.

    Nothing survives a restart. Use FileSecureStorage for real sessions.
    """

    def __init__(self, initial: Optional[dict[str, bytes]] = None):
        self._values: dict[str, bytes] = dict(initial or {})

    async def get(self, key: str) -> Optional[bytes]:
        return self._values.get(key)

    async def set(self, key: str, value: bytes) -> None:
        self._values[key] = bytes(value)

    async def delete(self, key: str) -> None:
        self._values.pop(key, None)

    def keys(self) -> list[str]:
        """Stored entry names (handy in tests)."""
        return sorted(self._values)


class FileSecureStorage:
    """
    Secure storage backed by owner-only files.

    Layout: ``<root>/<namespace>/<key>``. The namespace directory is created
    with mode 0700 and every entry file with mode 0600. Writes go through a
    temporary file and os.replace so an entry is never half-written.
    """

    def __init__(self, root: Path, namespace: str):
        if not _KEY_PATTERN.fullmatch(namespace):
            raise ValueError(f"Invalid storage namespace: {namespace!r}")
        self._dir = Path(root) / namespace

    @property
    def directory(self) -> Path:
        return self._dir

    def _path(self, key: str) -> Path:
        if not _KEY_PATTERN.fullmatch(key) or key in (".", ".."):
            raise StorageError(f"Invalid storage key: {key!r}", key=key)
        return self._dir / key

    # File system calls run in a worker thread via asyncio.to_thread.

    async def get(self, key: str) -> Optional[bytes]:
        return await asyncio.to_thread(self._read, key)

    async def set(self, key: str, value: bytes) -> None:
        await asyncio.to_thread(self._write, key, value)

    async def delete(self, key: str) -> None:
        await asyncio.to_thread(self._remove, key)

    def _read(self, key: str) -> Optional[bytes]:
        path = self._path(key)
        try:
            return self._decode(key, path.read_bytes())
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Failed to read {key}: {e}", key=key) from e

    def _write(self, key: str, value: bytes) -> None:
        path = self._path(key)
        payload = self._encode(value)
        try:
            self._dir.mkdir(mode=0o700, parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self._dir, prefix=f".{key}.")
            try:
                with os.fdopen(fd, "wb") as handle:
                    handle.write(payload)
                os.chmod(tmp_name, 0o600)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StorageError(f"Failed to write {key}: {e}", key=key) from e

    def _remove(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to delete {key}: {e}", key=key) from e

    # Hooks for subclasses that transform values at rest.

    def _encode(self, value: bytes) -> bytes:
        return bytes(value)

    def _decode(self, key: str, stored: bytes) -> bytes:
        return stored


class EncryptedFileStorage(FileSecureStorage):
    """
    File storage with values encrypted at rest.

    Uses Fernet (symmetric AES + HMAC) via the cryptography library. An entry
    that fails authentication is reported as a StorageError, so tampered or
    foreign data is never returned.
    """

    def __init__(self, root: Path, namespace: str, encryption_key: str | bytes):
        super().__init__(root, namespace)
        try:
            self._fernet = Fernet(encryption_key)
        except (ValueError, TypeError) as e:
            raise ValueError(
                "Invalid storage encryption key. "
                "Generate one with cryptography.fernet.Fernet.generate_key()."
            ) from e

    def _encode(self, value: bytes) -> bytes:
        return self._fernet.encrypt(bytes(value))

    def _decode(self, key: str, stored: bytes) -> bytes:
        try:
            return self._fernet.decrypt(stored)
        except InvalidToken as e:
            raise StorageError(f"Stored value for {key} failed decryption", key=key) from e


class AccessGatedStorage:
    """
    Storage wrapper that requires an access gate before releasing a value.

    Only reads are gated. Writing a new token or erasing one never prompts,
    so logout always works even when the user cannot unlock.
    """

    def __init__(self, inner: ISecureStorage, gate: IAccessGate, reason: str = "Unlock your session"):
        self._inner = inner
        self._gate = gate
        self._reason = reason

    async def get(self, key: str) -> Optional[bytes]:
        value = await self._inner.get(key)
        if value is None:
            # Nothing to protect, don't prompt
            return None
        if not await self._gate.authorize(self._reason):
            logger.info(f"Access gate denied read of {key}")
            raise AccessDeniedError(key)
        return value

    async def set(self, key: str, value: bytes) -> None:
        await self._inner.set(key, value)

    async def delete(self, key: str) -> None:
        await self._inner.delete(key)


class AllowAllGate:
    """Gate that always grants access."""

    async def authorize(self, reason: str) -> bool:
        return True


async def _terminal_prompt(reason: str) -> str:
    return await asyncio.to_thread(getpass.getpass, f"{reason}. Passcode: ")


class PasscodeGate:
    """
    Gate that asks for a passcode and compares it in constant time.

    Args:
        passcode: Expected passcode
        prompt: Async callable that receives the reason and returns the
                entered passcode. Defaults to a terminal getpass prompt.
    """

    def __init__(
        self,
        passcode: str,
        prompt: Optional[Callable[[str], Awaitable[str]]] = None,
    ):
        if not passcode:
            raise ValueError("Passcode must not be empty")
        self._passcode = passcode.encode("utf-8")
        self._prompt = prompt or _terminal_prompt

    async def authorize(self, reason: str) -> bool:
        try:
            entered = await self._prompt(reason)
        except (EOFError, KeyboardInterrupt):
            return False
        return hmac.compare_digest(entered.encode("utf-8"), self._passcode)


def get_secure_storage(settings: Optional[Settings] = None) -> ISecureStorage:
    """
    Build the storage backend selected by STORAGE_BACKEND.

    Returns:
        memory    -> InMemorySecureStorage
        file      -> FileSecureStorage under STORAGE_DIR/STORAGE_NAMESPACE
        encrypted -> EncryptedFileStorage keyed by STORAGE_ENCRYPTION_KEY

    Raises:
        RuntimeError: If the encrypted backend is selected without a key
    """
    settings = settings or get_settings()

    if settings.storage_backend == "memory":
        return InMemorySecureStorage()

    if settings.storage_backend == "encrypted":
        if not settings.storage_encryption_key:
            raise RuntimeError(
                "Encrypted storage selected but no key configured. "
                "Set the STORAGE_ENCRYPTION_KEY environment variable."
            )
        return EncryptedFileStorage(
            settings.storage_dir,
            settings.storage_namespace,
            settings.storage_encryption_key,
        )

    return FileSecureStorage(settings.storage_dir, settings.storage_namespace)


def get_token_storage(
    base: ISecureStorage,
    settings: Optional[Settings] = None,
    prompt: Optional[Callable[[str], Awaitable[str]]] = None,
) -> ISecureStorage:
    """
    Wrap the base storage with a passcode gate when TOKEN_PASSCODE is set.

    Only the token entry is gated; the user record stays on the base storage.
    """
    settings = settings or get_settings()
    if not settings.token_passcode:
        return base
    return AccessGatedStorage(base, PasscodeGate(settings.token_passcode, prompt=prompt))
