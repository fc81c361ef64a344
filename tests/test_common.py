"""Tests for shared common modules - config, credentials, errors, logging."""

import logging

import pytest

from src.common.config import (
    Credentials,
    EnvCredentialsProvider,
    Settings,
    StaticCredentialsProvider,
)
from src.common.errors import (
    AuthenticationRequiredError,
    ConfigurationError,
    EditorBridgeError,
    ExtractionNotFoundError,
    InputValidationError,
    LoginError,
    UpstreamHTTPError,
    UpstreamNetworkError,
    UpstreamTimeoutError,
)
from src.common.logging import mask_secret, setup_logging
from src.sessions.models import Channel

ENV_VARS = (
    "REDIS_URL",
    "SESSION_BACKEND",
    "SESSION_FILE_DIR",
    "FETCH_TIMEOUT_SECONDS",
    "RELOGIN_ON_STALE_SESSION",
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestSettings:
    def test_defaults(self):
        settings = Settings()
        assert settings.scraper.fetch_timeout_seconds == 10.0
        assert settings.scraper.default_selector == "#fullpage"
        assert settings.sessions.ttl_seconds == 86_400
        assert settings.platforms.editor135_publish_timeout_seconds == 10.0
        assert settings.platforms.weixin96_publish_timeout_seconds == 30.0
        assert settings.platforms.relogin_on_stale_session is False

    def test_load_yaml(self, tmp_path, clean_env):
        path = tmp_path / "settings.yaml"
        path.write_text(
            "sessions:\n  backend: file\n  ttl_seconds: 600\n"
            "platforms:\n  relogin_on_stale_session: true\n",
            encoding="utf-8",
        )

        settings = Settings.load(path)

        assert settings.sessions.backend == "file"
        assert settings.sessions.ttl_seconds == 600
        assert settings.platforms.relogin_on_stale_session is True
        assert settings.scraper.default_selector == "#fullpage"

    def test_missing_file_uses_defaults(self, tmp_path, clean_env):
        settings = Settings.load(tmp_path / "absent.yaml")
        assert settings.sessions.backend == "redis"

    def test_env_overrides(self, tmp_path, clean_env):
        clean_env.setenv("REDIS_URL", "redis://cache:6379/3")
        clean_env.setenv("SESSION_BACKEND", "file")
        clean_env.setenv("FETCH_TIMEOUT_SECONDS", "4.5")
        clean_env.setenv("RELOGIN_ON_STALE_SESSION", "yes")

        settings = Settings.load(tmp_path / "absent.yaml")

        assert settings.sessions.redis_url == "redis://cache:6379/3"
        assert settings.sessions.backend == "file"
        assert settings.scraper.fetch_timeout_seconds == 4.5
        assert settings.platforms.relogin_on_stale_session is True


class TestCredentials:
    def test_env_provider(self, monkeypatch):
        monkeypatch.setenv("EDITOR135_ACCOUNT", "me@example.com")
        monkeypatch.setenv("EDITOR135_PASSWORD", "pw")

        creds = EnvCredentialsProvider().get(Channel.EDITOR_135)

        assert creds == Credentials(account="me@example.com", password="pw")

    def test_env_provider_missing(self, monkeypatch):
        monkeypatch.delenv("WEIXIN96_ACCOUNT", raising=False)
        monkeypatch.delenv("WEIXIN96_PASSWORD", raising=False)

        with pytest.raises(ConfigurationError, match="WEIXIN96_ACCOUNT"):
            EnvCredentialsProvider().get("96")

    def test_static_provider_accepts_channel_or_value(self):
        creds = Credentials("a", "b")
        provider = StaticCredentialsProvider({Channel.WEIXIN_96: creds})

        assert provider.get("96") is creds
        assert provider.get(Channel.WEIXIN_96) is creds

    def test_static_provider_missing(self):
        with pytest.raises(ConfigurationError):
            StaticCredentialsProvider({}).get(Channel.EDITOR_135)


class TestErrors:
    @pytest.mark.parametrize("error, status", [
        (InputValidationError("x"), 400),
        (AuthenticationRequiredError(), 401),
        (ExtractionNotFoundError("x"), 404),
        (ConfigurationError("x"), 500),
        (UpstreamHTTPError(418), 502),
        (UpstreamNetworkError("x"), 503),
        (UpstreamTimeoutError("x"), 504),
    ])
    def test_status_codes(self, error, status):
        assert error.status_code == status

    def test_timeout_is_network_error(self):
        assert isinstance(UpstreamTimeoutError("x"), UpstreamNetworkError)

    def test_to_dict_drops_none_context(self):
        error = ExtractionNotFoundError("nothing", selector="#a", mode="auto", url=None)
        assert error.to_dict() == {
            "error": "content not found",
            "message": "nothing",
            "selector": "#a",
            "mode": "auto",
        }

    def test_default_message(self):
        assert EditorBridgeError().message == "unexpected failure"
        assert UpstreamHTTPError(404).message == "Upstream returned HTTP 404"

    def test_upstream_status_in_body(self):
        assert UpstreamHTTPError(404).to_dict()["upstreamStatus"] == 404

    def test_login_error_needs_login(self):
        error = LoginError("no cookies", channel="96")
        body = error.to_dict()

        assert error.reason == "no cookies"
        assert body["needLogin"] is True
        assert body["channel"] == "96"


class TestLogging:
    def test_setup_logging_is_idempotent(self):
        first = setup_logging(module_name="test.idempotent")
        second = setup_logging(module_name="test.idempotent")

        assert first is second
        assert len(first.handlers) == 1

    def test_level_from_env(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")
        logger = setup_logging(module_name="test.env_level")
        assert logger.level == logging.DEBUG

    def test_invalid_env_level_ignored(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "chatty")
        logger = setup_logging(logging.WARNING, module_name="test.bad_level")
        assert logger.level == logging.WARNING

    def test_mask_secret(self):
        assert mask_secret("abcdefgh") == "abcd..."
        assert mask_secret("abc") == "***"
