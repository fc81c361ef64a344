"""Markup normalizer - lazy-load image promotion.

The only transform applied to extracted fragments: editor preview pages
ship images as ``<img src="placeholder" data-src="real.jpg">`` and the
real URL has to land in ``src`` before the fragment is republished.
"""

from __future__ import annotations

import logging

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

LAZY_SRC_ATTR = "data-src"

# html.parser keeps fragments as-is; lxml would wrap them in <html><body>.
FRAGMENT_PARSER = "html.parser"


def normalize(html: str) -> str:
    """Copy every ``data-src`` value into ``src``.

    Idempotent: a second pass finds ``src`` already equal to ``data-src``.

    Args:
        html: HTML fragment.

    Returns:
        Normalized HTML fragment.
    """
    soup = BeautifulSoup(html, FRAGMENT_PARSER)
    images = soup.find_all("img")
    processed = 0

    for img in images:
        data_src = img.get(LAZY_SRC_ATTR)
        if data_src:
            img["src"] = data_src
            processed += 1

    if processed:
        logger.debug("Promoted data-src on %d/%d images", processed, len(images))

    return str(soup)
