"""
Studio configuration. All environment variables in one place.

Read from environment at import time. Every setting has a default;
the kernel runs without any environment configured.
"""

from __future__ import annotations

import os


def _env_bool(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).lower() in ("1", "true", "yes")


class Settings:
    """Engine settings from environment variables."""

    # History
    HISTORY_LIMIT: int = int(os.environ.get("STUDIO_HISTORY_LIMIT", "50"))

    # Conversation context fed back to the assistant
    CONVERSATION_LIMIT: int = int(os.environ.get("STUDIO_CONVERSATION_LIMIT", "20"))
    CONVERSATION_CONTEXT: int = int(os.environ.get("STUDIO_CONVERSATION_CONTEXT", "10"))

    # Paths: reject writes through scalar intermediates instead of overwriting them
    STRICT_PATHS: bool = _env_bool("STUDIO_STRICT_PATHS")

    # Proposals with more actions than this always wait for confirmation
    CONFIRMATION_THRESHOLD: int = int(os.environ.get("STUDIO_CONFIRMATION_THRESHOLD", "3"))

    # Application
    ENVIRONMENT: str = os.environ.get("STUDIO_ENVIRONMENT", "development")


# Singleton instance
settings = Settings()

if settings.HISTORY_LIMIT < 1:
    raise RuntimeError("STUDIO_HISTORY_LIMIT must be at least 1")
if settings.CONVERSATION_LIMIT < 1:
    raise RuntimeError("STUDIO_CONVERSATION_LIMIT must be at least 1")
