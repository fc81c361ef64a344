"""Error taxonomy shared by the scraper, session and publisher packages.

Each error knows the HTTP status the service layer should answer with and
renders itself as the ``{"error", "message", ...}`` body callers expect.
"""

from __future__ import annotations

from typing import Any


class EditorBridgeError(Exception):
    """Base class for all errors surfaced to callers."""

    status_code: int = 500
    error: str = "unexpected failure"

    def __init__(self, message: str = "", **context: Any) -> None:
        super().__init__(message or self.error)
        self.message = message or self.error
        self.context = {k: v for k, v in context.items() if v is not None}

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.error, "message": self.message}
        body.update(self.context)
        return body


class InputValidationError(EditorBridgeError):
    """Missing or malformed request fields."""
    status_code = 400
    error = "invalid request"


class ConfigurationError(EditorBridgeError):
    """Missing credentials or unusable settings."""
    status_code = 500
    error = "configuration error"


class UpstreamNetworkError(EditorBridgeError):
    """DNS or connection failure talking to a target site or platform."""
    status_code = 503
    error = "upstream unreachable"


class UpstreamTimeoutError(UpstreamNetworkError):
    """No response within the call deadline."""
    status_code = 504
    error = "upstream timeout"


class UpstreamHTTPError(EditorBridgeError):
    """Upstream answered with a non-2xx status."""
    status_code = 502
    error = "upstream http error"

    def __init__(self, upstream_status: int, message: str = "", **context: Any) -> None:
        super().__init__(
            message or f"Upstream returned HTTP {upstream_status}",
            upstreamStatus=upstream_status,
            **context,
        )
        self.upstream_status = upstream_status


class UpstreamProtocolError(EditorBridgeError):
    """Platform returned a non-zero result code or an unexpected shape."""
    status_code = 500
    error = "upstream rejected request"


class ExtractionNotFoundError(EditorBridgeError):
    """No content recoverable by any extraction strategy."""
    status_code = 404
    error = "content not found"

    def __init__(
        self,
        message: str = "",
        selector: str | None = None,
        mode: str | None = None,
        url: str | None = None,
    ) -> None:
        super().__init__(message, selector=selector, mode=mode, originalUrl=url)
        self.selector = selector
        self.mode = mode
        self.url = url


class ScriptDataParseError(EditorBridgeError):
    """Embedded script data missing or unparsable.

    Raised inside the extractor only; in auto mode it triggers the selector
    fallback instead of reaching callers.
    """
    status_code = 404
    error = "script data not found"


class AuthenticationRequiredError(EditorBridgeError):
    """No session, or the platform rejected the supplied session."""
    status_code = 401
    error = "login required"

    def to_dict(self) -> dict[str, Any]:
        body = super().to_dict()
        body["needLogin"] = True
        return body


class LoginError(AuthenticationRequiredError):
    """Credential exchange produced no usable session."""
    error = "login failed"

    def __init__(self, reason: str, **context: Any) -> None:
        super().__init__(reason, **context)
        self.reason = reason


class SessionBackendError(EditorBridgeError):
    """The durable session backend failed (unreachable, corrupt data)."""
    status_code = 503
    error = "session store unavailable"
