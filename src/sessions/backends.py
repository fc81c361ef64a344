"""Durable key/value backends for the session store.

Both backends expire values natively; the store still checks record age
on every read.
"""

from __future__ import annotations

import json
import logging
import re
import time
from pathlib import Path
from typing import Callable, Optional, Protocol

import redis

from src.common.errors import SessionBackendError

logger = logging.getLogger(__name__)


class SessionBackend(Protocol):
    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        ...

    def delete(self, key: str) -> None:
        ...


class RedisSessionBackend:
    """Redis-backed storage. The client is injected, never global.

    Usage:
        client = redis.Redis.from_url(settings.sessions.redis_url)
        backend = RedisSessionBackend(client)
    """

    def __init__(self, client: redis.Redis) -> None:
        self._client = client

    @classmethod
    def from_url(cls, url: str, timeout_seconds: float = 5.0) -> RedisSessionBackend:
        client = redis.Redis.from_url(
            url,
            socket_timeout=timeout_seconds,
            socket_connect_timeout=timeout_seconds,
            decode_responses=True,
        )
        return cls(client)

    def get(self, key: str) -> Optional[str]:
        try:
            value = self._client.get(key)
        except redis.RedisError as exc:
            raise SessionBackendError(f"Redis GET {key} failed: {exc}") from exc
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        try:
            self._client.set(key, value, ex=ttl_seconds)
        except redis.RedisError as exc:
            raise SessionBackendError(f"Redis SET {key} failed: {exc}") from exc

    def delete(self, key: str) -> None:
        try:
            self._client.delete(key)
        except redis.RedisError as exc:
            raise SessionBackendError(f"Redis DEL {key} failed: {exc}") from exc


class FileSessionBackend:
    """One JSON file per key under a directory.

    File layout: ``{"value": "...", "expires_at": <epoch seconds>}``.
    Expired files are removed when read.
    """

    def __init__(
        self,
        directory: str | Path,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.directory = Path(directory)
        self._clock = clock

    def _path(self, key: str) -> Path:
        safe_key = re.sub(r"[^A-Za-z0-9_.-]", "_", key)
        return self.directory / f"{safe_key}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        try:
            if not path.exists():
                return None
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise SessionBackendError(f"Failed to read {path}: {exc}") from exc

        if not isinstance(data, dict):
            raise SessionBackendError(f"Malformed session file {path}: expected an object")
        expires_at = data.get("expires_at", 0)
        if isinstance(expires_at, bool) or not isinstance(expires_at, (int, float)):
            raise SessionBackendError(f"Malformed session file {path}: bad expires_at")

        if expires_at <= self._clock():
            logger.debug("Session file %s expired", path.name)
            self.delete(key)
            return None
        return data.get("value")

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        path = self._path(key)
        payload = {"value": value, "expires_at": self._clock() + ttl_seconds}
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
        except OSError as exc:
            raise SessionBackendError(f"Failed to write {path}: {exc}") from exc

    def delete(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise SessionBackendError(f"Failed to delete {path}: {exc}") from exc
