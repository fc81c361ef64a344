"""HTTP client with browser-like headers and typed upstream errors."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from http.cookiejar import DefaultCookiePolicy
from typing import Any

import requests
from fake_useragent import UserAgent

from src.common.config import ScraperSettings
from src.common.errors import (
    UpstreamHTTPError,
    UpstreamNetworkError,
    UpstreamTimeoutError,
)

logger = logging.getLogger(__name__)

DEFAULT_ACCEPT = (
    "text/html,application/xhtml+xml,application/xml;q=0.9,"
    "image/avif,image/webp,image/apng,*/*;q=0.8,"
    "application/signed-exchange;v=b3;q=0.7"
)


@dataclass(frozen=True)
class FetchResponse:
    """Raw page body returned by HTTPClient.fetch()."""
    body: str
    status_code: int
    content_length: int
    url: str


class HTTPClient:
    """HTTP client wrapping requests for page fetches and platform calls.

    Features:
    - Browser user agent (fixed, or random via fake_useragent)
    - Referer and cache-busting headers on page fetches
    - requests exceptions mapped to UpstreamNetworkError / UpstreamTimeoutError

    There is no retry loop here; callers decide whether to try again.
    """

    def __init__(self, config: ScraperSettings | None = None) -> None:
        self.config = config or ScraperSettings()
        self._session = requests.Session()
        # Session cookies are passed explicitly; never let the jar replay them.
        self._session.cookies.set_policy(DefaultCookiePolicy(allowed_domains=[]))
        self._ua = UserAgent(fallback=self.config.user_agent)

    @property
    def user_agent(self) -> str:
        if self.config.rotate_user_agent:
            return self._ua.random
        return self.config.user_agent

    def browser_headers(self, referer: str | None = None) -> dict[str, str]:
        headers = {
            "User-Agent": self.user_agent,
            "Accept": DEFAULT_ACCEPT,
            "Accept-Language": self.config.accept_language,
            "Cache-Control": "no-cache",
            "Pragma": "no-cache",
        }
        if referer:
            headers["Referer"] = referer
        return headers

    def fetch(self, url: str, timeout: float | None = None) -> FetchResponse:
        """GET a page the way a browser would.

        Args:
            url: Target URL. Also sent as Referer.
            timeout: Deadline in seconds (default from settings).

        Returns:
            FetchResponse with decoded body.

        Raises:
            UpstreamTimeoutError: No response within the deadline.
            UpstreamNetworkError: DNS / connection failure.
            UpstreamHTTPError: Non-2xx status.
        """
        timeout = timeout or self.config.fetch_timeout_seconds
        resp = self._send(
            "GET",
            url,
            headers=self.browser_headers(referer=url),
            timeout=timeout,
        )

        if not 200 <= resp.status_code < 300:
            logger.warning("Fetch %s returned HTTP %d", url, resp.status_code)
            raise UpstreamHTTPError(resp.status_code, url=url)

        body = resp.text
        logger.info("Fetched %s (%d chars)", url, len(body))
        return FetchResponse(
            body=body,
            status_code=resp.status_code,
            content_length=len(body),
            url=url,
        )

    def get(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        cookie_header: str | None = None,
        timeout: float | None = None,
    ) -> requests.Response:
        """GET without status checking; used for session probes."""
        merged = self.browser_headers()
        if headers:
            merged.update(headers)
        if cookie_header:
            merged["Cookie"] = cookie_header
        return self._send(
            "GET",
            url,
            headers=merged,
            timeout=timeout or self.config.fetch_timeout_seconds,
        )

    def post_form(
        self,
        url: str,
        data: dict[str, str] | list[tuple[str, str]],
        headers: dict[str, str] | None = None,
        cookie_header: str | None = None,
        timeout: float | None = None,
        allow_redirects: bool = True,
    ) -> requests.Response:
        """POST an urlencoded form and return the response unchecked.

        Login and publish agents read bodies and Set-Cookie headers of
        non-2xx responses too, so status handling is left to them.
        """
        merged = {
            "User-Agent": self.user_agent,
            "Content-Type": "application/x-www-form-urlencoded",
        }
        if headers:
            merged.update(headers)
        if cookie_header:
            merged["Cookie"] = cookie_header
        return self._send(
            "POST",
            url,
            data=data,
            headers=merged,
            timeout=timeout or self.config.fetch_timeout_seconds,
            allow_redirects=allow_redirects,
        )

    def _send(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        try:
            resp = self._session.request(method, url, **kwargs)
        except requests.Timeout as exc:
            logger.warning("%s %s timed out: %s", method, url, exc)
            raise UpstreamTimeoutError(
                f"No response from {url} within {kwargs.get('timeout')}s", url=url
            ) from exc
        except requests.RequestException as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            raise UpstreamNetworkError(f"Could not reach {url}: {exc}", url=url) from exc

        _detect_encoding(resp)
        return resp

    def close(self) -> None:
        """Close the underlying session."""
        self._session.close()

    def __enter__(self) -> HTTPClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


def _detect_encoding(resp: requests.Response) -> None:
    """Pick a body encoding when Content-Type names no charset.

    requests falls back to ISO-8859-1 for ``text/*`` without a charset,
    which garbles UTF-8 Chinese pages and login markers.
    """
    content_type = resp.headers.get("Content-Type", "")
    if "charset" in content_type.lower():
        return

    try:
        resp.content.decode("utf-8")
        resp.encoding = "utf-8"
    except UnicodeDecodeError:
        resp.encoding = resp.apparent_encoding or "utf-8"
