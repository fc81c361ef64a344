"""Data models for the scraper module."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

DEFAULT_SELECTOR = "#fullpage"


class ExtractionMode(str, Enum):
    """Which extraction strategies may run."""
    SELECTOR = "selector"
    SCRIPT_DATA = "script-data"
    AUTO = "auto"


class ExtractionStrategy(str, Enum):
    """Strategy that produced a result."""
    SCRIPT_DATA = "script-data"
    SELECTOR = "selector"


@dataclass(frozen=True)
class ExtractionRequest:
    """A page to extract from."""
    url: str
    selector: str = DEFAULT_SELECTOR
    mode: ExtractionMode = ExtractionMode.AUTO


@dataclass(frozen=True)
class ExtractionResult:
    """Extracted, normalized HTML fragment."""
    content: str
    source_url: str
    used_strategy: ExtractionStrategy
    used_selector: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.content:
            raise ValueError("ExtractionResult.content must not be empty")

    def to_dict(self) -> dict:
        """Response body for the extraction entry point."""
        return {
            "success": True,
            "content": self.content,
            "source": self.source_url,
            "usedSource": self.used_strategy.value,
            "usedSelector": self.used_selector or "none",
        }
