"""Save flow - session lookup, conditional login, publish.

Orchestrates one save request for one channel:
SessionLookup → (SessionFound | NeedLogin → Login) → Publishing → (Success | Failed)

Usage:
    flow = SaveFlow(store, login_agents, publishers, EnvCredentialsProvider())
    outcome = flow.save(Channel.EDITOR_135, PublishRequest(title, html))

A missing session triggers exactly one login attempt. A cached session
that the platform rejects is cleared and reported as need_login without
logging in again, unless ``relogin_on_stale_session`` is set, in which
case one re-login and one re-publish are attempted. There is no retry
loop beyond that.
"""

from __future__ import annotations

from typing import Mapping, Optional

from src.common.config import CredentialsProvider
from src.common.errors import EditorBridgeError
from src.common.logging import setup_logging
from src.sessions.models import Channel, CookiePairs
from src.sessions.store import SessionStore

from .login import BaseLoginAgent
from .models import PublishRequest, SaveOutcome, SaveState
from .platforms import BasePublishAgent

logger = setup_logging(module_name="publisher.pipeline")


class SaveFlow:
    """Composes SessionStore, login agents and publish agents per channel."""

    def __init__(
        self,
        store: SessionStore,
        login_agents: Mapping[Channel, BaseLoginAgent],
        publishers: Mapping[Channel, BasePublishAgent],
        credentials: CredentialsProvider,
        relogin_on_stale_session: bool = False,
    ) -> None:
        self.store = store
        self.login_agents = dict(login_agents)
        self.publishers = dict(publishers)
        self.credentials = credentials
        self.relogin_on_stale_session = relogin_on_stale_session

    def save(self, channel: Channel, request: PublishRequest) -> SaveOutcome:
        """Run the save flow once.

        Args:
            channel: Target platform.
            request: Article to save. Invalid requests raise
                InputValidationError before any state transition.

        Returns:
            SaveOutcome in state SUCCESS or FAILED.
        """
        channel = Channel(channel)
        request.validate()
        publisher = self.publishers[channel]
        outcome = SaveOutcome(channel=channel)

        # Step 1: Session lookup
        outcome.advance(SaveState.SESSION_LOOKUP)
        cookie_pairs = self.store.get(channel)
        from_cache = bool(cookie_pairs)

        if from_cache:
            outcome.advance(SaveState.SESSION_FOUND)
        else:
            # Step 2: One login attempt when nothing is cached
            logger.info("No cached session for channel %s, logging in", channel.value)
            outcome.advance(SaveState.NEED_LOGIN)
            cookie_pairs = self._login(channel, outcome)
            if not cookie_pairs:
                return outcome

        # Step 3: Publish
        self._publish(publisher, request, cookie_pairs, outcome)
        if outcome.state != SaveState.PUBLISHING:
            return outcome

        result = outcome.result
        if result is not None and result.needs_login:
            logger.warning("Session for channel %s was rejected", channel.value)
            self.store.clear(channel)

            if from_cache and self.relogin_on_stale_session:
                cookie_pairs = self._login(channel, outcome)
                if not cookie_pairs:
                    return outcome
                self._publish(publisher, request, cookie_pairs, outcome)
                if outcome.state != SaveState.PUBLISHING:
                    return outcome

        self._finish(outcome)
        return outcome

    def _login(self, channel: Channel, outcome: SaveOutcome) -> Optional[CookiePairs]:
        """Log in once; on failure leave the outcome FAILED with need_login."""
        outcome.advance(SaveState.LOGIN)
        agent = self.login_agents[channel]
        try:
            login_result = agent.login(self.credentials.get(channel))
        except EditorBridgeError as exc:
            logger.warning("Login to channel %s failed: %s", channel.value, exc.message)
            outcome.need_login = True
            outcome.error = exc
            outcome.advance(SaveState.FAILED)
            return None

        outcome.logged_in = True
        return login_result.record.cookie_pairs

    def _publish(
        self,
        publisher: BasePublishAgent,
        request: PublishRequest,
        cookie_pairs: CookiePairs,
        outcome: SaveOutcome,
    ) -> None:
        outcome.advance(SaveState.PUBLISHING)
        try:
            outcome.result = publisher.publish(request, cookie_pairs)
        except EditorBridgeError as exc:
            logger.warning(
                "Publishing to channel %s failed: %s", outcome.channel.value, exc.message
            )
            outcome.error = exc
            outcome.advance(SaveState.FAILED)

    def _finish(self, outcome: SaveOutcome) -> None:
        result = outcome.result
        if result is not None and result.success:
            outcome.advance(SaveState.SUCCESS)
            return
        outcome.need_login = bool(result and result.needs_login)
        outcome.advance(SaveState.FAILED)
