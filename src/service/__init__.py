"""Service entry points: extraction, login/logout, save, template transfer."""

from .bridge import EditorBridge, build_bridge

__all__ = ["EditorBridge", "build_bridge"]
