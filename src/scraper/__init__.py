# Scraper - page fetching, content extraction, markup normalization
"""
Scraper module for recovering article fragments from web pages.

Fetches pages with browser-like headers, extracts content from embedded
script data or CSS selectors, and promotes lazy-loaded image sources.
"""

from .extractor import ContentExtractor
from .http_client import FetchResponse, HTTPClient
from .models import (
    DEFAULT_SELECTOR,
    ExtractionMode,
    ExtractionRequest,
    ExtractionResult,
    ExtractionStrategy,
)
from .normalizer import normalize

__all__ = [
    "ContentExtractor",
    "DEFAULT_SELECTOR",
    "ExtractionMode",
    "ExtractionRequest",
    "ExtractionResult",
    "ExtractionStrategy",
    "FetchResponse",
    "HTTPClient",
    "normalize",
]
