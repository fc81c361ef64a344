"""Set-Cookie header parsing for login responses.

A comma-joined Set-Cookie header mixes credentials with attributes and
cookie-clearing directives. Only name/value pairs that carry a session
are kept:

- targeted extraction pulls known fields (PHPSESSID, SERVERID, ...)
- essential extraction keeps the ``name=value`` head of each fragment,
  dropping ``=deleted`` markers and fragments that are the tail of an
  RFC-1123 ``expires`` date split at its comma.
"""

from __future__ import annotations

import re
from typing import Iterable

from src.sessions.models import CookiePairs

DELETION_MARKER = "=deleted"
EXPIRY_DATE_PATTERN = re.compile(r"\d{2}-[A-Za-z]{3}-\d{4} \d{2}:\d{2}:\d{2}")


def extract_named_cookies(raw_header: str, names: Iterable[str]) -> CookiePairs:
    """Pull specific cookies out of a raw Set-Cookie header.

    Pairs come back in the order of ``names``; a name whose only values
    are deletion markers is skipped.

    >>> extract_named_cookies("PHPSESSID=abc123; path=/, SERVERID=srv1; path=/",
    ...                       ["PHPSESSID", "SERVERID"])
    [('PHPSESSID', 'abc123'), ('SERVERID', 'srv1')]
    """
    pairs: CookiePairs = []
    for name in names:
        pattern = re.compile(r"(?:^|[\s,;])" + re.escape(name) + r"=([^;,]+)")
        for value in pattern.findall(raw_header):
            value = value.strip()
            if value and value != "deleted":
                pairs.append((name, value))
                break
    return pairs


def extract_essential_cookies(raw_header: str) -> CookiePairs:
    """Keep the name/value head of every fragment of a Set-Cookie header."""
    pairs: CookiePairs = []
    for fragment in raw_header.split(","):
        head = fragment.split(";")[0].strip()
        if not head or "=" not in head:
            continue
        if EXPIRY_DATE_PATTERN.search(head) or DELETION_MARKER in head:
            continue
        name, value = head.split("=", 1)
        pairs.append((name.strip(), value.strip()))
    return pairs


def format_compact(pairs: CookiePairs) -> str:
    """``PHPSESSID=abc123;SERVERID=srv1;``"""
    return "".join(f"{name}={value};" for name, value in pairs)


def format_header(pairs: CookiePairs) -> str:
    """``a=1; b=2``"""
    return "; ".join(f"{name}={value}" for name, value in pairs)
