"""Login agents - credential exchange per editor platform.

Each agent posts the platform's login form, reads the Set-Cookie header
of the response, keeps only the cookies that carry the session, and
caches them in the SessionStore under its channel. Nothing is stored
unless extraction produced at least one cookie.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Optional

import requests

from src.common.config import Credentials
from src.common.errors import LoginError, UpstreamHTTPError
from src.common.logging import mask_secret
from src.scraper.http_client import HTTPClient
from src.sessions.models import Channel, CookiePairs, SessionRecord, StoreResult
from src.sessions.store import SessionStore

from .cookies import (
    extract_essential_cookies,
    extract_named_cookies,
    format_compact,
)
from .models import LoginResult

logger = logging.getLogger(__name__)

RESPONSE_EXCERPT_CHARS = 500


class BaseLoginAgent(ABC):
    """Abstract base for platform login agents."""

    CHANNEL: Channel
    LOGIN_URL: str
    HEADERS: dict[str, str] = {}

    def __init__(
        self,
        store: SessionStore,
        client: HTTPClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._store = store
        self._client = client or HTTPClient()
        self.timeout = timeout

    @abstractmethod
    def build_form(self, credentials: Credentials) -> list[tuple[str, str]]:
        """Login form fields in the order the platform's page submits them."""
        ...

    @abstractmethod
    def extract_cookies(self, raw_header: str) -> CookiePairs:
        """Session cookies worth keeping from a raw Set-Cookie header."""
        ...

    @abstractmethod
    def render_cookies(self, pairs: CookiePairs) -> list[str]:
        """Cookie strings as reported to callers."""
        ...

    def extracted_fields(self, pairs: CookiePairs) -> dict[str, Optional[str]]:
        return dict(pairs)

    def is_confirmed(self, resp: requests.Response) -> bool:
        """Whether the body confirms the login. Informational only."""
        return True

    def login(self, credentials: Credentials) -> LoginResult:
        """Exchange credentials for a session and cache it.

        Raises:
            LoginError: No Set-Cookie header, or nothing extractable in it.
            UpstreamHTTPError: The login endpoint answered 4xx/5xx.
            UpstreamNetworkError / UpstreamTimeoutError: From the client.
        """
        logger.info("Logging in to channel %s as %s", self.CHANNEL.value, credentials.account)
        resp = self._client.post_form(
            self.LOGIN_URL,
            self.build_form(credentials),
            headers=self.HEADERS,
            timeout=self.timeout,
            allow_redirects=False,
        )

        if resp.status_code >= 400:
            raise UpstreamHTTPError(
                resp.status_code,
                f"Login endpoint returned HTTP {resp.status_code}",
                channel=self.CHANNEL.value,
            )

        raw_header = resp.headers.get("Set-Cookie")
        if not raw_header:
            raise LoginError(
                "Login response carried no Set-Cookie header",
                channel=self.CHANNEL.value,
            )

        pairs = self.extract_cookies(raw_header)
        if not pairs:
            raise LoginError(
                "No session cookies could be extracted from the login response",
                channel=self.CHANNEL.value,
            )

        logger.info(
            "Extracted cookies for channel %s: %s",
            self.CHANNEL.value,
            ", ".join(f"{name}={mask_secret(value)}" for name, value in pairs),
        )

        confirmed = self.is_confirmed(resp)
        stored = self._store.put(self.CHANNEL, pairs)
        if not stored:
            logger.warning(
                "Login to channel %s succeeded but session was not cached: %s",
                self.CHANNEL.value,
                stored.error,
            )

        record = SessionRecord(
            channel=self.CHANNEL,
            cookie_pairs=pairs,
            captured_at=self._store.now(),
        )
        return LoginResult(
            record=record,
            cookies=self.render_cookies(pairs),
            extracted_fields=self.extracted_fields(pairs),
            status_code=resp.status_code,
            response_excerpt=resp.text[:RESPONSE_EXCERPT_CHARS],
            stored=stored.ok,
            confirmed=confirmed,
        )

    def logout(self) -> StoreResult:
        """Drop the cached session for this channel."""
        return self._store.clear(self.CHANNEL)


class Editor135LoginAgent(BaseLoginAgent):
    """135editor.com login.

    The login response sets many cookies; only the PHP session id, the
    load-balancer affinity id and the remember-me auth token are needed.
    """

    CHANNEL = Channel.EDITOR_135
    LOGIN_URL = "https://www.135editor.com/users/login?&inajax=1&team_id=0"
    REFERER = "https://www.135editor.com/"
    REMEMBER_ME_SECONDS = "604800"
    SESSION_COOKIES = ("PHPSESSID", "SERVERID", "MIAOCMS2[Auth]")

    HEADERS = {
        "User-Agent": (
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
        ),
    }

    def build_form(self, credentials: Credentials) -> list[tuple[str, str]]:
        return [
            ("type", "html"),
            ("state", "postmsg"),
            ("data[User][referer]", self.REFERER),
            ("data[User][email]", credentials.account),
            ("data[User][password]", credentials.password),
            ("data[User][remember_me]", self.REMEMBER_ME_SECONDS),
        ]

    def extract_cookies(self, raw_header: str) -> CookiePairs:
        pairs = extract_named_cookies(raw_header, self.SESSION_COOKIES)
        if pairs:
            return pairs
        logger.warning(
            "No named session cookies in 135editor response, keeping all name/value pairs"
        )
        return extract_essential_cookies(raw_header)

    def render_cookies(self, pairs: CookiePairs) -> list[str]:
        return [format_compact(pairs)]

    def extracted_fields(self, pairs: CookiePairs) -> dict[str, Optional[str]]:
        values = dict(pairs)
        return {
            "phpSessionId": values.get("PHPSESSID"),
            "serverId": values.get("SERVERID"),
            "auth": values.get("MIAOCMS2[Auth]"),
        }


class Weixin96LoginAgent(BaseLoginAgent):
    """96weixin.com phone/password login."""

    CHANNEL = Channel.WEIXIN_96
    LOGIN_URL = "https://bj.96weixin.com/login/phone"
    SUCCESS_MARKER = "登录成功"

    HEADERS = {
        "Referer": "https://bj.96weixin.com/",
    }

    def build_form(self, credentials: Credentials) -> list[tuple[str, str]]:
        return [
            ("phone", credentials.account),
            ("password", credentials.password),
            ("remember", "1"),
        ]

    def extract_cookies(self, raw_header: str) -> CookiePairs:
        return extract_essential_cookies(raw_header)

    def render_cookies(self, pairs: CookiePairs) -> list[str]:
        return [f"{name}={value}" for name, value in pairs]

    def is_confirmed(self, resp: requests.Response) -> bool:
        confirmed = self.SUCCESS_MARKER in resp.text
        if not confirmed:
            logger.warning("96weixin login response lacks success marker %r", self.SUCCESS_MARKER)
        return confirmed
