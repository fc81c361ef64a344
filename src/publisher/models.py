"""Data models for the publisher module."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from src.common.errors import EditorBridgeError, InputValidationError
from src.sessions.models import Channel, SessionRecord


@dataclass
class PublishRequest:
    """Article to save into an editor platform."""
    title: str
    content: str
    target_account_id: Optional[str] = None

    def validate(self) -> None:
        """Raise InputValidationError when title or content is missing."""
        if not self.content or not self.content.strip():
            raise InputValidationError("Article content is required", field="content")
        if not self.title or not self.title.strip():
            raise InputValidationError("Article title is required", field="title")


@dataclass
class PublishResult:
    """Interpreted platform response to a publish call."""
    success: bool
    channel: Channel
    needs_login: bool = False
    remote_article_id: str = ""
    message: str = ""
    status_code: int = 0
    raw_response: Any = None

    @property
    def upstream_ok(self) -> bool:
        """True when the platform answered with a 2xx status."""
        return 200 <= self.status_code < 300


@dataclass
class LoginResult:
    """Session established by a login agent."""
    record: SessionRecord
    cookies: list[str]
    extracted_fields: dict[str, Optional[str]]
    status_code: int = 0
    response_excerpt: str = ""
    stored: bool = False
    confirmed: bool = True

    def to_dict(self) -> dict:
        return {
            "success": True,
            "channel": self.record.channel.value,
            "cookies": self.cookies,
            "extractedFields": self.extracted_fields,
            "stored": self.stored,
            "responseStatus": self.status_code,
        }


@dataclass
class SessionCheck:
    """Result of probing a platform with cached cookies."""
    valid: bool
    message: str
    username: str = ""


class SaveState(str, Enum):
    """States of one save flow run."""
    IDLE = "idle"
    SESSION_LOOKUP = "session_lookup"
    SESSION_FOUND = "session_found"
    NEED_LOGIN = "need_login"
    LOGIN = "login"
    PUBLISHING = "publishing"
    SUCCESS = "success"
    FAILED = "failed"


TERMINAL_STATES = {SaveState.SUCCESS, SaveState.FAILED}


@dataclass
class SaveOutcome:
    """Terminal state of a save flow run plus how it got there."""
    channel: Channel
    state: SaveState = SaveState.IDLE
    result: Optional[PublishResult] = None
    need_login: bool = False
    error: Optional[EditorBridgeError] = None
    logged_in: bool = False
    history: list[SaveState] = field(default_factory=lambda: [SaveState.IDLE])

    @property
    def success(self) -> bool:
        return self.state == SaveState.SUCCESS

    def advance(self, state: SaveState) -> None:
        if self.state in TERMINAL_STATES:
            raise RuntimeError(f"Save flow already finished in state {self.state.value}")
        self.state = state
        self.history.append(state)
