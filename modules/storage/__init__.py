"""
Secure storage module.

Durable, namespaced storage for the bearer token and cached user record.

Public API:
- ISecureStorage: Interface for get/set/delete of raw bytes
- IAccessGate: Interface for an interactive unlock check
- Storage backends: in-memory, file, encrypted file, access-gated wrapper
- Storage exceptions: StorageError, AccessDeniedError
"""

from .interfaces import ISecureStorage, IAccessGate
from .exceptions import StorageError, AccessDeniedError
from .service import (
    InMemorySecureStorage,
    FileSecureStorage,
    EncryptedFileStorage,
    AccessGatedStorage,
    AllowAllGate,
    PasscodeGate,
    get_secure_storage,
    get_token_storage,
)

__all__ = [
    # Interfaces
    "ISecureStorage",
    "IAccessGate",
    # Exceptions
    "StorageError",
    "AccessDeniedError",
    # Backends
    "InMemorySecureStorage",
    "FileSecureStorage",
    "EncryptedFileStorage",
    "AccessGatedStorage",
    # Gates
    "AllowAllGate",
    "PasscodeGate",
    # Factories
    "get_secure_storage",
    "get_token_storage",
]
