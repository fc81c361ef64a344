"""Shared test fixtures for Editor Bridge."""

import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest
import requests

# Ensure src is importable
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from src.common.config import Credentials, StaticCredentialsProvider
from src.scraper.http_client import HTTPClient
from src.sessions.store import SessionStore


class FakeClock:
    """Manually advanced epoch-seconds clock."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class MemoryBackend:
    """In-process session backend with native expiry driven by a clock.

    ``honour_expiry=False`` simulates a store that has not evicted an
    expired key yet.
    """

    def __init__(self, clock: FakeClock, honour_expiry: bool = True) -> None:
        self.clock = clock
        self.honour_expiry = honour_expiry
        self.data: dict[str, tuple[str, float]] = {}
        self.set_calls: list[tuple[str, str, int]] = []
        self.deleted: list[str] = []

    def get(self, key):
        if key not in self.data:
            return None
        value, expires_at = self.data[key]
        if self.honour_expiry and expires_at <= self.clock():
            del self.data[key]
            return None
        return value

    def set(self, key, value, ttl_seconds):
        self.set_calls.append((key, value, ttl_seconds))
        self.data[key] = (value, self.clock() + ttl_seconds)

    def delete(self, key):
        self.deleted.append(key)
        self.data.pop(key, None)


def make_response(
    status_code: int = 200,
    body: str | bytes = "",
    headers: dict | None = None,
    encoding: str | None = "utf-8",
) -> requests.Response:
    """Build a real requests.Response with the given status/body/headers.

    ``encoding`` is what the transport adapter would have assigned; pass
    "ISO-8859-1" to mimic a ``text/html`` response without a charset.
    """
    resp = requests.Response()
    resp.status_code = status_code
    resp._content = body if isinstance(body, bytes) else body.encode("utf-8")
    resp.encoding = encoding
    for name, value in (headers or {}).items():
        resp.headers[name] = value
    return resp


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def backend(clock) -> MemoryBackend:
    return MemoryBackend(clock)


@pytest.fixture
def store(backend, clock) -> SessionStore:
    return SessionStore(backend, clock=clock)


@pytest.fixture
def mock_client() -> MagicMock:
    """HTTPClient stand-in whose calls are configured per test."""
    return MagicMock(spec=HTTPClient)


@pytest.fixture
def credentials() -> StaticCredentialsProvider:
    return StaticCredentialsProvider({
        "135": Credentials(account="editor@example.com", password="secret135"),
        "96": Credentials(account="13800000000", password="secret96"),
    })


@pytest.fixture
def response_factory():
    """Factory for canned requests.Response objects."""
    return make_response


@pytest.fixture
def stale_backend(clock) -> MemoryBackend:
    """Backend that keeps keys past their expiry."""
    return MemoryBackend(clock, honour_expiry=False)
