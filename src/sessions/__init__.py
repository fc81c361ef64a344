"""Session Store - TTL-bounded authentication cookie cache per channel."""

from .backends import FileSessionBackend, RedisSessionBackend, SessionBackend
from .models import Channel, CookiePairs, SessionRecord, StoreResult
from .store import SESSION_TTL_SECONDS, SessionStore, create_session_store

__all__ = [
    "Channel",
    "CookiePairs",
    "FileSessionBackend",
    "RedisSessionBackend",
    "SESSION_TTL_SECONDS",
    "SessionBackend",
    "SessionRecord",
    "SessionStore",
    "StoreResult",
    "create_session_store",
]
