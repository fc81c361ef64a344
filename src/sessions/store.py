"""Session store - channel-scoped, TTL-bounded cookie cache.

One record per channel, written by login agents and read by the save
flow. Caching is an optimization: backend failures are logged and
reported through StoreResult / an empty read, never raised.

TTL is enforced twice: by the backend's native expiry and by an explicit
age check on every read, so a record the backend has not evicted yet is
still treated as gone.

Usage:
    store = create_session_store(settings)
    store.put(Channel.EDITOR_135, [("PHPSESSID", "abc123")])
    pairs = store.get(Channel.EDITOR_135)
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from src.common.config import Settings
from src.common.errors import SessionBackendError

from .backends import FileSessionBackend, RedisSessionBackend, SessionBackend
from .models import Channel, CookiePairs, SessionRecord, StoreResult

logger = logging.getLogger(__name__)

SESSION_TTL_SECONDS = 24 * 60 * 60


class SessionStore:
    """Cookie cache keyed by channel."""

    def __init__(
        self,
        backend: SessionBackend,
        ttl_seconds: int = SESSION_TTL_SECONDS,
        key_prefix: str = "editor_bridge",
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._backend = backend
        self.ttl_seconds = ttl_seconds
        self.key_prefix = key_prefix
        self._clock = clock

    def now(self) -> float:
        return self._clock()

    def key_for(self, channel: Channel) -> str:
        return f"{self.key_prefix}:session:{Channel(channel).value}"

    def put(self, channel: Channel, cookie_pairs: CookiePairs) -> StoreResult:
        """Store cookies for a channel, replacing any previous record."""
        channel = Channel(channel)
        if not cookie_pairs:
            logger.warning("Refusing to store empty cookie set for channel %s", channel.value)
            return StoreResult(ok=False, error="empty cookie set")

        record = SessionRecord(
            channel=channel,
            cookie_pairs=list(cookie_pairs),
            captured_at=self._clock(),
        )
        try:
            self._backend.set(self.key_for(channel), record.to_json(), self.ttl_seconds)
        except SessionBackendError as exc:
            logger.warning("Storing session for channel %s failed: %s", channel.value, exc)
            return StoreResult(ok=False, error=str(exc))

        logger.info(
            "Stored %d cookies for channel %s", len(record.cookie_pairs), channel.value
        )
        return StoreResult(ok=True)

    def get_record(self, channel: Channel) -> Optional[SessionRecord]:
        """Return the live record for a channel, or None."""
        channel = Channel(channel)
        key = self.key_for(channel)
        try:
            raw = self._backend.get(key)
        except SessionBackendError as exc:
            logger.warning("Reading session for channel %s failed: %s", channel.value, exc)
            return None

        if raw is None:
            logger.debug("No session stored for channel %s", channel.value)
            return None

        try:
            record = SessionRecord.from_json(channel, raw)
        except (ValueError, KeyError, TypeError) as exc:
            logger.warning("Discarding malformed session for channel %s: %s", channel.value, exc)
            self.clear(channel)
            return None

        if record.age_seconds(self._clock()) > self.ttl_seconds:
            logger.info("Session for channel %s expired, deleting", channel.value)
            self.clear(channel)
            return None

        return record

    def get(self, channel: Channel) -> CookiePairs:
        """Cookie pairs for a channel; empty when absent, expired or on error."""
        record = self.get_record(channel)
        return list(record.cookie_pairs) if record else []

    def has_session(self, channel: Channel) -> bool:
        return bool(self.get(channel))

    def clear(self, channel: Channel) -> StoreResult:
        """Delete a channel's record. Deleting a missing record succeeds."""
        channel = Channel(channel)
        try:
            self._backend.delete(self.key_for(channel))
        except SessionBackendError as exc:
            logger.warning("Clearing session for channel %s failed: %s", channel.value, exc)
            return StoreResult(ok=False, error=str(exc))
        logger.info("Cleared session for channel %s", channel.value)
        return StoreResult(ok=True)

    def clear_all(self) -> StoreResult:
        """Delete the records of every channel."""
        failures: dict[str, str] = {}
        for channel in Channel:
            result = self.clear(channel)
            if not result.ok:
                failures[channel.value] = result.error
        if failures:
            return StoreResult(ok=False, error="some channels not cleared", details=failures)
        return StoreResult(ok=True)


def create_session_store(
    settings: Settings,
    clock: Callable[[], float] = time.time,
) -> SessionStore:
    """Build the configured backend and wrap it in a SessionStore."""
    config = settings.sessions
    if config.backend == "redis":
        backend: SessionBackend = RedisSessionBackend.from_url(config.redis_url)
    elif config.backend == "file":
        backend = FileSessionBackend(config.file_dir, clock=clock)
    else:
        raise ValueError(f"Unknown session backend: {config.backend}")

    logger.info("Session store backend: %s", config.backend)
    return SessionStore(
        backend,
        ttl_seconds=config.ttl_seconds,
        key_prefix=config.key_prefix,
        clock=clock,
    )
