"""Project configuration and paths.

Loads settings from config/settings.yaml and environment variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

from .errors import ConfigurationError

# === Paths ===
PROJECT_ROOT = Path(__file__).parent.parent.parent
CONFIG_DIR = PROJECT_ROOT / "config"
DATA_DIR = PROJECT_ROOT / "data"
SESSIONS_DIR = DATA_DIR / "sessions"

# Load .env from project root
load_dotenv(PROJECT_ROOT / ".env")


class ScraperSettings(BaseModel):
    """Settings for the page fetcher and content extractor."""
    fetch_timeout_seconds: float = 10.0
    default_selector: str = "#fullpage"
    rotate_user_agent: bool = False
    user_agent: str = (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/121.0.0.0 Safari/537.36"
    )
    accept_language: str = "zh-CN,zh;q=0.9,en;q=0.8"


class SessionSettings(BaseModel):
    """Session cookie cache settings."""
    backend: str = "redis"  # "redis" or "file"
    redis_url: str = "redis://localhost:6379/0"
    key_prefix: str = "editor_bridge"
    ttl_seconds: int = 86_400
    file_dir: str = str(SESSIONS_DIR)


class PlatformSettings(BaseModel):
    """Per-platform call deadlines and save flow behaviour."""
    login_timeout_seconds: float = 30.0
    editor135_publish_timeout_seconds: float = 10.0
    weixin96_publish_timeout_seconds: float = 30.0
    transfer_timeout_seconds: float = 30.0
    relogin_on_stale_session: bool = False


class Settings(BaseModel):
    """Top-level application settings."""
    scraper: ScraperSettings = Field(default_factory=ScraperSettings)
    sessions: SessionSettings = Field(default_factory=SessionSettings)
    platforms: PlatformSettings = Field(default_factory=PlatformSettings)

    @classmethod
    def load(cls, path: Path | None = None) -> Settings:
        """Load settings from config/settings.yaml, falling back to defaults.

        Environment variables override values from the file.
        """
        settings_path = path or CONFIG_DIR / "settings.yaml"
        if settings_path.exists():
            with open(settings_path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            loaded = cls(**data)
        else:
            loaded = cls()
        loaded.apply_env_overrides()
        return loaded

    def apply_env_overrides(self) -> None:
        """Load overrides from environment."""
        if url := os.getenv("REDIS_URL"):
            self.sessions.redis_url = url
        if backend := os.getenv("SESSION_BACKEND"):
            self.sessions.backend = backend
        if session_dir := os.getenv("SESSION_FILE_DIR"):
            self.sessions.file_dir = session_dir
        if timeout := os.getenv("FETCH_TIMEOUT_SECONDS"):
            self.scraper.fetch_timeout_seconds = float(timeout)
        if relogin := os.getenv("RELOGIN_ON_STALE_SESSION"):
            self.platforms.relogin_on_stale_session = relogin.lower() in (
                "1", "true", "yes",
            )


# === Credentials ===

@dataclass(frozen=True)
class Credentials:
    """Account identifier and password for one editor platform."""
    account: str
    password: str


class CredentialsProvider(Protocol):
    def get(self, channel: str) -> Credentials:
        ...


# Environment variable prefix per channel
CREDENTIAL_ENV_PREFIXES = {
    "135": "EDITOR135",
    "96": "WEIXIN96",
}


def _channel_value(channel) -> str:
    """Accept either a Channel enum member or its raw value."""
    return str(getattr(channel, "value", channel))


class EnvCredentialsProvider:
    """Reads platform credentials from environment variables.

    Channel "135" uses EDITOR135_ACCOUNT / EDITOR135_PASSWORD,
    channel "96" uses WEIXIN96_ACCOUNT / WEIXIN96_PASSWORD.
    """

    def get(self, channel: str) -> Credentials:
        prefix = CREDENTIAL_ENV_PREFIXES.get(_channel_value(channel))
        if prefix is None:
            raise ConfigurationError(f"No credentials configured for channel {channel}")

        account = os.getenv(f"{prefix}_ACCOUNT", "")
        password = os.getenv(f"{prefix}_PASSWORD", "")
        if not account or not password:
            raise ConfigurationError(
                f"{prefix}_ACCOUNT / {prefix}_PASSWORD not set in environment"
            )
        return Credentials(account=account, password=password)


class StaticCredentialsProvider:
    """Credentials supplied directly, keyed by channel value."""

    def __init__(self, credentials: dict[str, Credentials]) -> None:
        self._credentials = {_channel_value(k): v for k, v in credentials.items()}

    def get(self, channel: str) -> Credentials:
        try:
            return self._credentials[_channel_value(channel)]
        except KeyError:
            raise ConfigurationError(
                f"No credentials configured for channel {channel}"
            ) from None


# Singleton settings instance
settings = Settings.load()
