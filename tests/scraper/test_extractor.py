"""Tests for the content extractor.

Tests cover:
- Script data preferred over the selector in auto mode
- Selector narrowing inside script data
- Selector fallback when script data is missing or malformed
- Explicit selector / script-data modes
- Not-found and invalid-selector errors, including content that normalizes to nothing
- Fetch errors surfacing unchanged from extract()
"""

from unittest.mock import MagicMock

import pytest

from src.common.errors import (
    ExtractionNotFoundError,
    InputValidationError,
    ScriptDataParseError,
    UpstreamHTTPError,
    UpstreamTimeoutError,
)
from src.scraper.extractor import (
    ContentExtractor,
    find_script_data,
    parse_script_data,
)
from src.scraper.http_client import FetchResponse
from src.scraper.models import (
    ExtractionMode,
    ExtractionRequest,
    ExtractionStrategy,
)


# === Fixtures ===

SCRIPT_PAGE = (
    "<html><head>"
    '<script>var data = {"title": "Demo", "content": '
    '"<p>Script body<\\/p><img data-src=\\"https:\\/\\/cdn.example.com\\/a.jpg\\" src=\\"blank.gif\\">"};'
    "</script>"
    "</head><body>"
    '<div id="fullpage"><p>DOM body</p></div>'
    "</body></html>"
)

NESTED_SCRIPT_PAGE = (
    "<html><head>"
    '<script>var data = {"content": '
    '"<header>Nav<\\/header><section id=\\"fullpage\\"><p>Article<\\/p><\\/section>"};'
    "</script>"
    "</head><body></body></html>"
)

DOM_ONLY_PAGE = (
    "<html><head><script>console.log('hello');</script></head><body>"
    '<div id="fullpage"><p>First</p><img data-src="b.png"></div>'
    "</body></html>"
)

MALFORMED_SCRIPT_PAGE = (
    "<html><head><script>var data = {content: not-json};</script></head><body>"
    '<div id="fullpage"><p>Fallback body</p></div>'
    "</body></html>"
)

EMPTY_PAGE = "<html><head></head><body><p>Nothing to see</p></body></html>"

BLANK_SCRIPT_PAGE = (
    '<html><head><script>var data = {"content": "<\\/p>"};</script></head><body>'
    '<div id="fullpage"><p>ok</p></div>'
    "</body></html>"
)


@pytest.fixture
def extractor() -> ContentExtractor:
    return ContentExtractor(client=MagicMock())


# === Script data parsing ===


class TestScriptData:
    def test_parse_content_field(self):
        text = 'var data = {"content": "<p>x</p>", "id": 5};'
        assert parse_script_data(text) == "<p>x</p>"

    def test_parse_is_case_insensitive_and_whitespace_tolerant(self):
        text = 'VAR   DATA={"content": "<b>y</b>"};'
        assert parse_script_data(text) == "<b>y</b>"

    def test_missing_content_field(self):
        with pytest.raises(ScriptDataParseError):
            parse_script_data('var data = {"title": "no content"};')

    def test_invalid_json(self):
        with pytest.raises(ScriptDataParseError):
            parse_script_data("var data = {content: oops};")

    def test_no_assignment(self):
        with pytest.raises(ScriptDataParseError):
            parse_script_data("var other = 1;")

    def test_find_script_data_skips_other_scripts(self):
        from bs4 import BeautifulSoup

        soup = BeautifulSoup(
            "<script>var x = 1;</script><script>  var data = {};</script>", "lxml"
        )
        assert find_script_data(soup).strip() == "var data = {};"

    def test_find_script_data_missing(self):
        from bs4 import BeautifulSoup

        soup = BeautifulSoup(EMPTY_PAGE, "lxml")
        with pytest.raises(ScriptDataParseError):
            find_script_data(soup)


# === Fallback chain ===


class TestAutoMode:
    def test_script_data_wins_over_selector(self, extractor):
        result = extractor.extract_from_html(SCRIPT_PAGE, selector="#fullpage")

        assert result.used_strategy == ExtractionStrategy.SCRIPT_DATA
        assert "Script body" in result.content
        assert "DOM body" not in result.content
        # selector did not match inside script data
        assert result.used_selector is None

    def test_script_data_is_normalized(self, extractor):
        result = extractor.extract_from_html(SCRIPT_PAGE, selector="#fullpage")
        assert 'src="https://cdn.example.com/a.jpg"' in result.content
        assert "blank.gif" not in result.content

    def test_selector_narrows_script_data(self, extractor):
        result = extractor.extract_from_html(NESTED_SCRIPT_PAGE, selector="#fullpage")

        assert result.used_strategy == ExtractionStrategy.SCRIPT_DATA
        assert result.used_selector == "#fullpage"
        assert result.content == "<p>Article</p>"

    def test_falls_back_to_selector_without_script(self, extractor):
        result = extractor.extract_from_html(DOM_ONLY_PAGE, selector="#fullpage")

        assert result.used_strategy == ExtractionStrategy.SELECTOR
        assert result.used_selector == "#fullpage"
        assert "<p>First</p>" in result.content
        assert 'src="b.png"' in result.content

    def test_falls_back_to_selector_on_malformed_script(self, extractor):
        result = extractor.extract_from_html(MALFORMED_SCRIPT_PAGE, selector="#fullpage")

        assert result.used_strategy == ExtractionStrategy.SELECTOR
        assert result.content == "<p>Fallback body</p>"

    def test_falls_back_when_script_content_normalizes_empty(self, extractor):
        result = extractor.extract_from_html(BLANK_SCRIPT_PAGE, selector="#fullpage")

        assert result.used_strategy == ExtractionStrategy.SELECTOR
        assert result.content == "<p>ok</p>"

    def test_nothing_found(self, extractor):
        with pytest.raises(ExtractionNotFoundError) as exc_info:
            extractor.extract_from_html(
                EMPTY_PAGE, selector="#fullpage", source_url="https://example.com/p/1"
            )

        body = exc_info.value.to_dict()
        assert exc_info.value.status_code == 404
        assert body["selector"] == "#fullpage"
        assert body["mode"] == "auto"
        assert body["originalUrl"] == "https://example.com/p/1"


class TestSelectorMode:
    def test_ignores_script_data(self, extractor):
        result = extractor.extract_from_html(
            SCRIPT_PAGE, selector="#fullpage", mode=ExtractionMode.SELECTOR
        )

        assert result.used_strategy == ExtractionStrategy.SELECTOR
        assert result.content == "<p>DOM body</p>"

    def test_selector_miss(self, extractor):
        with pytest.raises(ExtractionNotFoundError, match="#missing"):
            extractor.extract_from_html(
                DOM_ONLY_PAGE, selector="#missing", mode=ExtractionMode.SELECTOR
            )

    def test_empty_match_is_not_found(self, extractor):
        html = '<html><body><div id="fullpage"></div></body></html>'
        with pytest.raises(ExtractionNotFoundError):
            extractor.extract_from_html(html, selector="#fullpage", mode="selector")

    def test_invalid_selector(self, extractor):
        with pytest.raises(InputValidationError):
            extractor.extract_from_html(DOM_ONLY_PAGE, selector="div[", mode="selector")


class TestScriptDataMode:
    def test_uses_script_data(self, extractor):
        result = extractor.extract_from_html(SCRIPT_PAGE, mode=ExtractionMode.SCRIPT_DATA)
        assert result.used_strategy == ExtractionStrategy.SCRIPT_DATA

    def test_no_selector_fallback(self, extractor):
        with pytest.raises(ExtractionNotFoundError) as exc_info:
            extractor.extract_from_html(
                DOM_ONLY_PAGE, selector="#fullpage", mode=ExtractionMode.SCRIPT_DATA
            )
        assert exc_info.value.mode == "script-data"

    def test_content_empty_after_normalization(self, extractor):
        with pytest.raises(ExtractionNotFoundError):
            extractor.extract_from_html(BLANK_SCRIPT_PAGE, mode=ExtractionMode.SCRIPT_DATA)


# === extract() ===


class TestExtract:
    def test_fetches_and_extracts(self):
        client = MagicMock()
        client.fetch.return_value = FetchResponse(
            body=DOM_ONLY_PAGE,
            status_code=200,
            content_length=len(DOM_ONLY_PAGE),
            url="https://example.com/p/1",
        )
        extractor = ContentExtractor(client=client)

        result = extractor.extract(ExtractionRequest(url="https://example.com/p/1"))

        client.fetch.assert_called_once_with("https://example.com/p/1")
        assert result.source_url == "https://example.com/p/1"
        assert result.to_dict()["usedSource"] == "selector"
        assert result.to_dict()["usedSelector"] == "#fullpage"

    def test_script_result_reports_no_selector(self):
        client = MagicMock()
        client.fetch.return_value = FetchResponse(SCRIPT_PAGE, 200, len(SCRIPT_PAGE), "u")
        result = ContentExtractor(client=client).extract(ExtractionRequest(url="u"))

        assert result.to_dict()["usedSource"] == "script-data"
        assert result.to_dict()["usedSelector"] == "none"

    @pytest.mark.parametrize(
        "error",
        [
            UpstreamTimeoutError("slow", url="u"),
            UpstreamHTTPError(500, url="u"),
        ],
    )
    def test_fetch_errors_propagate(self, error):
        client = MagicMock()
        client.fetch.side_effect = error

        with pytest.raises(type(error)):
            ContentExtractor(client=client).extract(ExtractionRequest(url="u"))
