"""
Secure storage module interface.

The session store depends on ISecureStorage, not on a concrete backend.
Backends are selected by configuration (see service.get_secure_storage).
"""

from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class ISecureStorage(Protocol):
    """
    Interface for a namespaced key/value store of small secrets.

    Values are raw bytes; callers own the encoding.
    """

    async def get(self, key: str) -> Optional[bytes]:
        """
        Read a stored value.

        Args:
            key: Entry name within the storage namespace

        Returns:
            The stored bytes, or None if the entry does not exist

        Raises:
            StorageError: If the entry exists but cannot be read
            AccessDeniedError: If an access gate refused the read
        """
        ...

    async def set(self, key: str, value: bytes) -> None:
        """
        Write (or overwrite) a value.

        Raises:
            StorageError: If the value could not be persisted
        """
        ...

    async def delete(self, key: str) -> None:
        """
        Remove an entry. Deleting a missing entry is not an error.

        Raises:
            StorageError: If the entry exists but could not be removed
        """
        ...


@runtime_checkable
class IAccessGate(Protocol):
    """
    Interactive check that must pass before a gated value is released.

    This is where a biometric or passcode prompt plugs in.
    """

    async def authorize(self, reason: str) -> bool:
        """
        Ask the user to unlock access.

        Args:
            reason: Short description shown to the user

        Returns:
            True if access is granted
        """
        ...
