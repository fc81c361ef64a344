"""Content extractor - recover an article fragment from a raw page.

Editor preview pages usually embed the canonical article body as a JSON
literal assigned to a global (``var data = {...};``) so the page can
re-render client-side. That structured source is tried first; the CSS
selector is a DOM-shape assumption and only used when script data is
absent (or when explicitly requested).

Fallback chain:
    selector     -> selector match, else not found
    script-data  -> script data (optionally narrowed by selector), else not found
    auto         -> script data, then selector match, else not found

Usage:
    extractor = ContentExtractor()
    result = extractor.extract(ExtractionRequest(url="https://example.com/p/1"))
    print(result.content)
"""

from __future__ import annotations

import json
import logging
import re

from bs4 import BeautifulSoup
from soupsieve import SelectorSyntaxError

from src.common.errors import (
    ExtractionNotFoundError,
    InputValidationError,
    ScriptDataParseError,
)

from .http_client import HTTPClient
from .models import (
    ExtractionMode,
    ExtractionRequest,
    ExtractionResult,
    ExtractionStrategy,
)
from .normalizer import normalize

logger = logging.getLogger(__name__)

SCRIPT_DATA_PREFIX = "var data"
SCRIPT_DATA_PATTERN = re.compile(r"var\s+data\s*=\s*\{(.+?)\};", re.IGNORECASE)
PAGE_PARSER = "lxml"


class ContentExtractor:
    """Turns raw HTML into the best single fragment matching intent."""

    def __init__(self, client: HTTPClient | None = None) -> None:
        self._client = client or HTTPClient()

    def extract(self, request: ExtractionRequest) -> ExtractionResult:
        """Fetch a page and run the fallback chain on it.

        Raises:
            ExtractionNotFoundError: No strategy produced content.
            UpstreamNetworkError / UpstreamTimeoutError / UpstreamHTTPError:
                From the fetch.
        """
        logger.info(
            "Extracting %s (selector=%s, mode=%s)",
            request.url,
            request.selector,
            request.mode.value,
        )
        page = self._client.fetch(request.url)
        return self.extract_from_html(
            page.body,
            selector=request.selector,
            mode=request.mode,
            source_url=request.url,
        )

    def extract_from_html(
        self,
        html: str,
        selector: str | None = None,
        mode: ExtractionMode = ExtractionMode.AUTO,
        source_url: str = "",
    ) -> ExtractionResult:
        """Run the fallback chain over already-fetched HTML."""
        mode = ExtractionMode(mode)
        soup = BeautifulSoup(html, PAGE_PARSER)

        if mode == ExtractionMode.SELECTOR:
            return self._extract_by_selector(soup, selector, mode, source_url)

        try:
            return self._extract_script_data(soup, selector, source_url)
        except ScriptDataParseError as exc:
            logger.info("Script data unavailable: %s", exc.message)
            if mode == ExtractionMode.SCRIPT_DATA:
                raise ExtractionNotFoundError(
                    "No 'var data' script found, or its content could not be extracted",
                    selector=selector,
                    mode=mode.value,
                    url=source_url,
                ) from exc

        logger.info("Falling back to selector %s", selector)
        return self._extract_by_selector(soup, selector, mode, source_url)

    # --- Strategies ---

    def _extract_by_selector(
        self,
        soup: BeautifulSoup,
        selector: str | None,
        mode: ExtractionMode,
        source_url: str,
    ) -> ExtractionResult:
        inner = _select_inner_html(soup, selector) if selector else ""
        content = normalize(inner) if inner else ""
        if not content:
            message = (
                f"Selector {selector} matched no content"
                if mode == ExtractionMode.SELECTOR
                else "Neither script data nor selector produced content"
            )
            raise ExtractionNotFoundError(
                message, selector=selector, mode=mode.value, url=source_url
            )

        logger.info("Selector %s matched %d chars", selector, len(content))
        return ExtractionResult(
            content=content,
            source_url=source_url,
            used_strategy=ExtractionStrategy.SELECTOR,
            used_selector=selector,
        )

    def _extract_script_data(
        self,
        soup: BeautifulSoup,
        selector: str | None,
        source_url: str,
    ) -> ExtractionResult:
        content = parse_script_data(find_script_data(soup))

        if selector:
            narrowed = _select_inner_html(BeautifulSoup(content, PAGE_PARSER), selector)
            narrowed = normalize(narrowed) if narrowed else ""
            if narrowed:
                logger.info(
                    "Selector %s matched %d chars inside script data",
                    selector,
                    len(narrowed),
                )
                return ExtractionResult(
                    content=narrowed,
                    source_url=source_url,
                    used_strategy=ExtractionStrategy.SCRIPT_DATA,
                    used_selector=selector,
                )

        content = normalize(content)
        if not content:
            raise ScriptDataParseError("Script data content is empty after normalization")

        return ExtractionResult(
            content=content,
            source_url=source_url,
            used_strategy=ExtractionStrategy.SCRIPT_DATA,
            used_selector=None,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> ContentExtractor:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


def find_script_data(soup: BeautifulSoup) -> str:
    """Return the text of the first inline script starting with ``var data``."""
    for script in soup.find_all("script"):
        text = script.string or ""
        if text.strip().startswith(SCRIPT_DATA_PREFIX):
            return text
    raise ScriptDataParseError("No inline script starts with 'var data'")


def parse_script_data(script_text: str) -> str:
    """Pull the ``content`` field out of a ``var data = {...};`` script.

    The object body is captured non-greedily up to the first ``};`` and
    re-wrapped in braces before JSON parsing.
    """
    match = SCRIPT_DATA_PATTERN.search(script_text)
    if not match:
        raise ScriptDataParseError("'var data' assignment not matched")

    try:
        data = json.loads("{" + match.group(1) + "}")
    except json.JSONDecodeError as exc:
        raise ScriptDataParseError(f"Script data is not valid JSON: {exc}") from exc

    content = data.get("content") if isinstance(data, dict) else None
    if not content or not isinstance(content, str):
        raise ScriptDataParseError("Script data has no 'content' field")

    logger.info("Extracted %d chars of content from script data", len(content))
    return content


def _select_inner_html(soup: BeautifulSoup, selector: str) -> str:
    """Inner HTML of the first element matching selector, or ''."""
    try:
        element = soup.select_one(selector)
    except SelectorSyntaxError as exc:
        raise InputValidationError(f"Invalid selector {selector!r}: {exc}") from exc
    if element is None:
        return ""
    return "".join(str(child) for child in element.children)
