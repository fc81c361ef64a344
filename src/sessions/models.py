"""Data models for the session store."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum


class Channel(str, Enum):
    """Editor platforms with their own authentication surface."""
    EDITOR_135 = "135"
    WEIXIN_96 = "96"


CookiePairs = list[tuple[str, str]]


@dataclass
class SessionRecord:
    """Cookies captured by one successful login."""
    channel: Channel
    cookie_pairs: CookiePairs
    captured_at: float  # epoch seconds

    def age_seconds(self, now: float) -> float:
        return now - self.captured_at

    def to_json(self) -> str:
        """Serialize as ``{"cookiePairs": [...], "capturedAtEpochMs": ...}``."""
        return json.dumps(
            {
                "cookiePairs": [[name, value] for name, value in self.cookie_pairs],
                "capturedAtEpochMs": int(self.captured_at * 1000),
            },
            ensure_ascii=False,
        )

    @classmethod
    def from_json(cls, channel: Channel, raw: str | bytes) -> SessionRecord:
        """Parse a stored value. Raises ValueError on malformed data."""
        data = json.loads(raw)
        pairs = [(str(name), str(value)) for name, value in data["cookiePairs"]]
        return cls(
            channel=Channel(channel),
            cookie_pairs=pairs,
            captured_at=int(data["capturedAtEpochMs"]) / 1000,
        )


@dataclass
class StoreResult:
    """Outcome of a write/delete; callers may ignore a failure."""
    ok: bool
    error: str = ""
    details: dict = field(default_factory=dict)

    def __bool__(self) -> bool:
        return self.ok
