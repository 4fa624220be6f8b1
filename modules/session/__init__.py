"""
Session module.

Single source of truth for who is logged in, durable across restarts and
fail-closed on any inconsistency.

Public API:
- ISessionStore / ITokenProvider: Interfaces for session access
- SessionStore: Implementation over secure storage
- Session, UserRecord, Role, SessionEvent: Models
- SessionPersistenceError: Raised when a session cannot be saved
"""

from .interfaces import ISessionStore, ITokenProvider, SessionListener
from .models import Session, UserRecord, Role, SessionEvent
from .exceptions import SessionError, SessionPersistenceError
from .service import SessionStore, TOKEN_KEY, USER_KEY

__all__ = [
    # Interfaces
    "ISessionStore",
    "ITokenProvider",
    "SessionListener",
    # Models
    "Session",
    "UserRecord",
    "Role",
    "SessionEvent",
    # Exceptions
    "SessionError",
    "SessionPersistenceError",
    # Service
    "SessionStore",
    "TOKEN_KEY",
    "USER_KEY",
]
