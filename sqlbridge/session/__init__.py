"""Database-backed web session storage."""

from .base import (
    ENV_SESSION_ID_KEY,
    ENV_SESSION_OPTIONS_KEY,
    SESSION_RECORD_KEY,
    AbstractSessionStore,
)
from .repository import SessionRepository, is_persisted
from .store import SqlAlchemySessionStore

__all__ = [
    "AbstractSessionStore",
    "ENV_SESSION_ID_KEY",
    "ENV_SESSION_OPTIONS_KEY",
    "SESSION_RECORD_KEY",
    "SessionRepository",
    "SqlAlchemySessionStore",
    "is_persisted",
]
