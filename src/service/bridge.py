"""Wiring of extractor, session store, agents and save flow from settings."""

from __future__ import annotations

from dataclasses import dataclass

from src.common.config import CredentialsProvider, EnvCredentialsProvider, Settings
from src.common.config import settings as default_settings
from src.publisher.login import BaseLoginAgent, Editor135LoginAgent, Weixin96LoginAgent
from src.publisher.pipeline import SaveFlow
from src.publisher.platforms import BasePublishAgent, Editor135Publisher, Weixin96Publisher
from src.scraper.extractor import ContentExtractor
from src.scraper.http_client import HTTPClient
from src.sessions.models import Channel
from src.sessions.store import SessionStore, create_session_store


@dataclass
class EditorBridge:
    """Everything the entry points need, constructed once per process."""
    settings: Settings
    client: HTTPClient
    extractor: ContentExtractor
    store: SessionStore
    credentials: CredentialsProvider
    login_agents: dict[Channel, BaseLoginAgent]
    publishers: dict[Channel, BasePublishAgent]
    save_flow: SaveFlow

    def close(self) -> None:
        self.client.close()


def build_bridge(
    settings: Settings | None = None,
    store: SessionStore | None = None,
    credentials: CredentialsProvider | None = None,
    client: HTTPClient | None = None,
) -> EditorBridge:
    """Construct an EditorBridge; any collaborator can be injected."""
    settings = settings or default_settings
    client = client or HTTPClient(settings.scraper)
    store = store or create_session_store(settings)
    credentials = credentials or EnvCredentialsProvider()
    platform = settings.platforms

    login_agents: dict[Channel, BaseLoginAgent] = {
        Channel.EDITOR_135: Editor135LoginAgent(store, client, platform.login_timeout_seconds),
        Channel.WEIXIN_96: Weixin96LoginAgent(store, client, platform.login_timeout_seconds),
    }
    publishers: dict[Channel, BasePublishAgent] = {
        Channel.EDITOR_135: Editor135Publisher(
            client,
            timeout=platform.editor135_publish_timeout_seconds,
            transfer_timeout=platform.transfer_timeout_seconds,
        ),
        Channel.WEIXIN_96: Weixin96Publisher(
            client,
            timeout=platform.weixin96_publish_timeout_seconds,
        ),
    }
    save_flow = SaveFlow(
        store,
        login_agents,
        publishers,
        credentials,
        relogin_on_stale_session=platform.relogin_on_stale_session,
    )
    return EditorBridge(
        settings=settings,
        client=client,
        extractor=ContentExtractor(client),
        store=store,
        credentials=credentials,
        login_agents=login_agents,
        publishers=publishers,
        save_flow=save_flow,
    )
