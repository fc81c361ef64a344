# Common utilities and shared modules
"""
Shared components used by the scraper, session and publisher packages:
- Error taxonomy
- Logging configuration
- Project configuration and credentials
"""

from .config import (
    DATA_DIR,
    PROJECT_ROOT,
    Credentials,
    EnvCredentialsProvider,
    Settings,
    StaticCredentialsProvider,
    settings,
)
from .logging import setup_logging

__all__ = [
    "settings",
    "PROJECT_ROOT",
    "DATA_DIR",
    "Credentials",
    "EnvCredentialsProvider",
    "Settings",
    "StaticCredentialsProvider",
    "setup_logging",
]
