"""Transport-neutral entry points.

Each handler takes a request payload, returns ``(status, body)`` and never
raises: known errors become their mapped status, anything else a logged
500. Routing them to HTTP (or any other transport) is left to the host.
"""

from __future__ import annotations

from typing import Any

from src.common.errors import (
    EditorBridgeError,
    InputValidationError,
    UpstreamProtocolError,
)
from src.common.logging import setup_logging
from src.publisher.models import PublishRequest, PublishResult
from src.publisher.platforms import Editor135Publisher
from src.scraper.models import ExtractionMode, ExtractionRequest
from src.sessions.models import Channel

from .bridge import EditorBridge

logger = setup_logging(module_name="service.handlers")

Response = tuple[int, dict[str, Any]]


def _error_response(exc: EditorBridgeError) -> Response:
    body = {"success": False}
    body.update(exc.to_dict())
    return exc.status_code, body


def _unexpected(action: str, exc: Exception) -> Response:
    logger.exception("%s failed unexpectedly", action)
    return 500, {"success": False, "error": f"{action} failed", "message": str(exc)}


def parse_channel(value: Any) -> Channel:
    try:
        return Channel(str(value))
    except ValueError:
        valid = ", ".join(c.value for c in Channel)
        raise InputValidationError(
            f"Unknown channel {value!r}, expected one of: {valid}"
        ) from None


def _require(payload: dict[str, Any], field: str, message: str) -> str:
    value = payload.get(field)
    if value is None or not str(value).strip():
        raise InputValidationError(message, field=field)
    return str(value)


# --- Extraction ---

def scrape(bridge: EditorBridge, payload: dict[str, Any]) -> Response:
    """Extract an article fragment from ``{url, selector?, mode?}``."""
    url = payload.get("url")
    try:
        url = _require(payload, "url", "Please provide a page URL")
        selector = payload.get("selector") or bridge.settings.scraper.default_selector
        try:
            mode = ExtractionMode(payload.get("mode") or payload.get("type") or "auto")
        except ValueError:
            raise InputValidationError(
                "mode must be one of: selector, script-data, auto", field="mode"
            ) from None

        result = bridge.extractor.extract(
            ExtractionRequest(url=url, selector=selector, mode=mode)
        )
        return 200, result.to_dict()
    except EditorBridgeError as exc:
        status, body = _error_response(exc)
        if url:
            body.setdefault("originalUrl", url)
        return status, body
    except Exception as exc:
        return _unexpected("Scrape", exc)


# --- Sessions ---

def login(bridge: EditorBridge, channel: Any) -> Response:
    """Log in to a channel with configured credentials and cache the session."""
    try:
        channel = parse_channel(channel)
        agent = bridge.login_agents[channel]
        result = agent.login(bridge.credentials.get(channel))
        return 200, result.to_dict()
    except EditorBridgeError as exc:
        return _error_response(exc)
    except Exception as exc:
        return _unexpected("Login", exc)


def logout(bridge: EditorBridge, channel: Any) -> Response:
    """Clear the cached session of a channel."""
    try:
        channel = parse_channel(channel)
    except EditorBridgeError as exc:
        return _error_response(exc)

    result = bridge.login_agents[channel].logout()
    if not result.ok:
        return 500, {"success": False, "error": "Failed to clear session", "message": result.error}
    return 200, {"success": True, "message": f"Cleared cached session for channel {channel.value}"}


def check_session(bridge: EditorBridge, channel: Any) -> Response:
    """Probe the platform with the cached cookies (135editor only)."""
    try:
        channel = parse_channel(channel)
        publisher = bridge.publishers[channel]
        if not isinstance(publisher, Editor135Publisher):
            raise InputValidationError(f"Session check is not supported for channel {channel.value}")

        check = publisher.verify_session(bridge.store.get(channel))
        return 200, {
            "success": True,
            "valid": check.valid,
            "message": check.message,
            "username": check.username or None,
        }
    except EditorBridgeError as exc:
        return _error_response(exc)
    except Exception as exc:
        return _unexpected("Session check", exc)


# --- Publishing ---

def _publish_failure(result: PublishResult) -> Response:
    if result.needs_login:
        return 401, {
            "success": False,
            "error": "login required",
            "message": result.message,
            "needLogin": True,
        }
    if not result.upstream_ok:
        return 502, {
            "success": False,
            "error": "upstream http error",
            "message": result.message,
            "upstreamStatus": result.status_code,
        }
    return _error_response(UpstreamProtocolError(result.message))


def save(bridge: EditorBridge, channel: Any, payload: dict[str, Any]) -> Response:
    """Save ``{title, content, targetAccountId?}`` into a channel."""
    try:
        channel = parse_channel(channel)
        request = PublishRequest(
            title=_require(payload, "title", "Please provide an article title"),
            content=_require(payload, "content", "Please provide article content"),
            target_account_id=payload.get("targetAccountId") or payload.get("to_user"),
        )
        outcome = bridge.save_flow.save(channel, request)
    except EditorBridgeError as exc:
        return _error_response(exc)
    except Exception as exc:
        return _unexpected("Save", exc)

    if outcome.success and outcome.result is not None:
        return 200, {
            "success": True,
            "message": outcome.result.message,
            "remoteArticleId": outcome.result.remote_article_id or None,
            "loggedIn": outcome.logged_in,
            "data": outcome.result.raw_response,
        }

    if outcome.error is not None:
        status, body = _error_response(outcome.error)
        if outcome.need_login:
            body["needLogin"] = True
        return status, body

    return _publish_failure(outcome.result)


def send_template(bridge: EditorBridge, payload: dict[str, Any]) -> Response:
    """Transfer a 135editor template ``{id, creator}`` to another user."""
    try:
        template_id = _require(payload, "id", "Please provide a template id")
        creator = _require(payload, "creator", "Please provide the target user id")
        publisher = bridge.publishers[Channel.EDITOR_135]
        result = publisher.transfer_template(
            template_id, creator, bridge.store.get(Channel.EDITOR_135)
        )
    except EditorBridgeError as exc:
        return _error_response(exc)
    except Exception as exc:
        return _unexpected("Template transfer", exc)

    if result.success:
        return 200, {"success": True, "message": result.message, "data": result.raw_response}
    return _publish_failure(result)
