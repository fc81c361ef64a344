# Publisher - session login, platform publishing, save flow (135editor, 96weixin)
"""
Publisher module for pushing extracted articles into editor platforms.

Handles login agents that capture session cookies, publish agents that
submit articles with those cookies, and the save flow that ties them
together through the session store.
"""

from .login import BaseLoginAgent, Editor135LoginAgent, Weixin96LoginAgent
from .models import (
    LoginResult,
    PublishRequest,
    PublishResult,
    SaveOutcome,
    SaveState,
    SessionCheck,
)
from .pipeline import SaveFlow
from .platforms import BasePublishAgent, Editor135Publisher, Weixin96Publisher

__all__ = [
    "BaseLoginAgent",
    "BasePublishAgent",
    "Editor135LoginAgent",
    "Editor135Publisher",
    "LoginResult",
    "PublishRequest",
    "PublishResult",
    "SaveFlow",
    "SaveOutcome",
    "SaveState",
    "SessionCheck",
    "Weixin96LoginAgent",
    "Weixin96Publisher",
]
