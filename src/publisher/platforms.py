"""Platform-specific publishing clients for 135editor and 96weixin.

Publish agents submit a title and an HTML fragment as the platform's
form fields, authenticated by cached session cookies, and turn the
response into a PublishResult:

- login-page markers in the body  -> needs_login, whatever the status
- non-2xx status                  -> failure with the upstream status
- non-success result code         -> failure with the platform's message

Agents never touch the SessionStore; clearing a rejected session is the
save flow's job.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import Any, Optional

import requests

from src.common.logging import setup_logging
from src.scraper.http_client import HTTPClient
from src.sessions.models import Channel, CookiePairs

from .cookies import format_compact, format_header
from .models import PublishRequest, PublishResult, SessionCheck

logger = setup_logging(module_name="publisher.platforms")

MESSAGE_EXCERPT_CHARS = 200


class BasePublishAgent(ABC):
    """Abstract base for platform publish agents."""

    CHANNEL: Channel
    SAVE_URL: str
    LOGIN_MARKERS: tuple[str, ...] = ()
    HEADERS: dict[str, str] = {}

    def __init__(self, client: HTTPClient | None = None, timeout: float = 10.0) -> None:
        self._client = client or HTTPClient()
        self.timeout = timeout

    @abstractmethod
    def build_form(self, request: PublishRequest) -> list[tuple[str, str]]:
        ...

    @abstractmethod
    def interpret(self, payload: Any, status_code: int) -> PublishResult:
        """Turn a 2xx structured response into a PublishResult."""
        ...

    @abstractmethod
    def cookie_header(self, pairs: CookiePairs) -> str:
        ...

    def publish(self, request: PublishRequest, cookie_pairs: CookiePairs) -> PublishResult:
        """Save an article to the platform.

        Args:
            request: Title, content and optional target account.
            cookie_pairs: Session cookies from the SessionStore.

        Returns:
            PublishResult. Network failures raise UpstreamNetworkError /
            UpstreamTimeoutError instead.
        """
        request.validate()

        if not cookie_pairs:
            return PublishResult(
                success=False,
                channel=self.CHANNEL,
                needs_login=True,
                message="No session cookies available, login required",
                status_code=401,
            )

        logger.info(
            "Saving article '%s' to channel %s (%d chars)",
            request.title,
            self.CHANNEL.value,
            len(request.content),
        )
        resp = self._client.post_form(
            self.SAVE_URL,
            self.build_form(request),
            headers=self.HEADERS,
            cookie_header=self.cookie_header(cookie_pairs),
            timeout=self.timeout,
        )
        return self.interpret_response(resp)

    def interpret_response(self, resp: requests.Response) -> PublishResult:
        body = resp.text

        if self.is_login_page(body):
            logger.warning("Channel %s answered with its login page", self.CHANNEL.value)
            return PublishResult(
                success=False,
                channel=self.CHANNEL,
                needs_login=True,
                message="Session expired or invalid, please log in again",
                status_code=resp.status_code,
                raw_response=body[:MESSAGE_EXCERPT_CHARS],
            )

        if not 200 <= resp.status_code < 300:
            logger.warning("Channel %s returned HTTP %d", self.CHANNEL.value, resp.status_code)
            return PublishResult(
                success=False,
                channel=self.CHANNEL,
                message=f"Platform returned HTTP {resp.status_code}",
                status_code=resp.status_code,
                raw_response=body[:MESSAGE_EXCERPT_CHARS],
            )

        payload = _json_or_none(resp)
        if not isinstance(payload, dict):
            return PublishResult(
                success=False,
                channel=self.CHANNEL,
                message="Platform returned an unexpected response",
                status_code=resp.status_code,
                raw_response=body[:MESSAGE_EXCERPT_CHARS],
            )

        result = self.interpret(payload, resp.status_code)
        if result.success:
            logger.info(
                "Saved to channel %s (remote id: %s)",
                self.CHANNEL.value,
                result.remote_article_id or "n/a",
            )
        else:
            logger.warning("Channel %s rejected article: %s", self.CHANNEL.value, result.message)
        return result

    def is_login_page(self, body: str) -> bool:
        return any(marker in body for marker in self.LOGIN_MARKERS)


class Editor135Publisher(BasePublishAgent):
    """Publisher for the 135editor.com article library.

    Usage:
        publisher = Editor135Publisher()
        result = publisher.publish(PublishRequest(title, html), store.get(Channel.EDITOR_135))
    """

    CHANNEL = Channel.EDITOR_135
    BASE_URL = "https://www.135editor.com"
    SAVE_URL = f"{BASE_URL}/wx_msgs/save/?nosync=1&inajax=1&team_id=0&mid=&idx=&inajax=1"
    TRANSFER_URL = f"{BASE_URL}/wx_msgs/contr_wxmsg?team_id=0"
    EDITOR_PAGE_URL = f"{BASE_URL}/beautify_editor.html"
    LOGIN_MARKERS = ("登录您的账户", "立即登录")
    USERNAME_PATTERN = re.compile(r'<span[^>]*class="username"[^>]*>([^<]+)</span>', re.IGNORECASE)

    HEADERS = {
        "Accept": "application/json, text/plain, */*",
        "Accept-Language": "zh-CN,zh;q=0.9,en;q=0.8",
        "Origin": BASE_URL,
        "Referer": f"{BASE_URL}/editor_styles/wxeditor",
    }

    def __init__(
        self,
        client: HTTPClient | None = None,
        timeout: float = 10.0,
        transfer_timeout: float = 30.0,
    ) -> None:
        super().__init__(client, timeout)
        self.transfer_timeout = transfer_timeout

    def build_form(self, request: PublishRequest) -> list[tuple[str, str]]:
        return [
            ("data[WxMsg][content]", request.content),
            ("data[WxMsg][name]", request.title),
        ]

    def cookie_header(self, pairs: CookiePairs) -> str:
        return format_compact(pairs)

    def interpret(self, payload: Any, status_code: int) -> PublishResult:
        ret = payload.get("ret")
        if ret != 0:
            return PublishResult(
                success=False,
                channel=self.CHANNEL,
                message=str(payload.get("msg") or "Unknown error"),
                status_code=status_code,
                raw_response=payload,
            )
        return PublishResult(
            success=True,
            channel=self.CHANNEL,
            remote_article_id=_remote_id(payload),
            message=str(payload.get("msg") or "Article saved"),
            status_code=status_code,
            raw_response=payload,
        )

    def verify_session(self, cookie_pairs: CookiePairs) -> SessionCheck:
        """Load the editor page with the cookies and look for login markers."""
        if not cookie_pairs:
            return SessionCheck(valid=False, message="No session cookies available")

        resp = self._client.get(
            self.EDITOR_PAGE_URL,
            cookie_header=self.cookie_header(cookie_pairs),
            timeout=self.timeout,
        )
        html = resp.text
        if not 200 <= resp.status_code < 300 or self.is_login_page(html):
            return SessionCheck(valid=False, message="Session invalid or expired, log in again")

        match = self.USERNAME_PATTERN.search(html)
        username = match.group(1).strip() if match else "unknown user"
        return SessionCheck(
            valid=True,
            message=f"Session valid, logged in as {username}",
            username=username,
        )

    def transfer_template(
        self,
        template_id: str,
        creator: str,
        cookie_pairs: CookiePairs,
    ) -> PublishResult:
        """Hand a saved article/template over to another 135editor user."""
        if not cookie_pairs:
            return PublishResult(
                success=False,
                channel=self.CHANNEL,
                needs_login=True,
                message="No session cookies available, login required",
                status_code=401,
            )

        logger.info("Transferring template %s to user %s", template_id, creator)
        resp = self._client.post_form(
            self.TRANSFER_URL,
            [("id", template_id), ("creator", creator)],
            headers={"Referer": f"{self.BASE_URL}/", "Origin": self.BASE_URL},
            cookie_header=format_header(cookie_pairs),
            timeout=self.transfer_timeout,
        )

        if self.is_login_page(resp.text):
            return PublishResult(
                success=False,
                channel=self.CHANNEL,
                needs_login=True,
                message="Session expired or invalid, please log in again",
                status_code=resp.status_code,
            )

        payload = _json_or_none(resp)
        return PublishResult(
            success=200 <= resp.status_code < 300,
            channel=self.CHANNEL,
            remote_article_id=template_id,
            message=(
                "Template transferred"
                if 200 <= resp.status_code < 300
                else f"Platform returned HTTP {resp.status_code}"
            ),
            status_code=resp.status_code,
            raw_response=payload if payload is not None else resp.text[:MESSAGE_EXCERPT_CHARS],
        )


class Weixin96Publisher(BasePublishAgent):
    """Publisher for the 96weixin.com article library."""

    CHANNEL = Channel.WEIXIN_96
    BASE_URL = "https://bj.96weixin.com"
    SAVE_URL = f"{BASE_URL}/indexajax/saveart"
    LOGIN_MARKERS = ("请先登录", "/login/phone")

    HEADERS = {
        "Accept": "*/*",
        "Accept-Language": "zh-CN,zh;q=0.9",
        "Cache-Control": "no-cache",
        "Content-Type": "application/x-www-form-urlencoded; charset=UTF-8",
        "Origin": BASE_URL,
        "Pragma": "no-cache",
        "Referer": f"{BASE_URL}/",
        "X-Requested-With": "XMLHttpRequest",
    }

    def build_form(self, request: PublishRequest) -> list[tuple[str, str]]:
        return [
            ("cate_id", "0"),
            ("id", ""),
            ("name", request.title),
            ("summary", ""),
            ("thumbnail", ""),
            ("link", ""),
            ("author", ""),
            ("artcover", "0"),
            ("original", "false"),
            ("need_open_comment", "0"),
            ("only_fans_can_comment", "0"),
            ("save_to_user", "1"),
            ("to_user", request.target_account_id or ""),
            ("content", request.content),
        ]

    def cookie_header(self, pairs: CookiePairs) -> str:
        return format_header(pairs)

    def interpret(self, payload: Any, status_code: int) -> PublishResult:
        if payload.get("status") != 1:
            return PublishResult(
                success=False,
                channel=self.CHANNEL,
                message=str(payload.get("info") or "Unknown error"),
                status_code=status_code,
                raw_response=payload,
            )
        return PublishResult(
            success=True,
            channel=self.CHANNEL,
            remote_article_id=_remote_id(payload),
            message=str(payload.get("info") or "Article saved"),
            status_code=status_code,
            raw_response=payload,
        )


def _json_or_none(resp: requests.Response) -> Optional[Any]:
    try:
        return resp.json()
    except ValueError:
        return None


def _remote_id(payload: dict) -> str:
    """Article id from ``{"data": {"id": ...}}`` or a top-level ``id``."""
    data = payload.get("data")
    if isinstance(data, dict) and data.get("id") is not None:
        return str(data["id"])
    if isinstance(data, (int, str)) and str(data).isdigit():
        return str(data)
    if payload.get("id") is not None:
        return str(payload["id"])
    return ""
