"""
Configuration layer - Settings and constants
"""

from src.config.settings import Settings, get_settings, PROJECT_ROOT
from src.config.constants import (
    ASSISTANT_ROLE,
    BEARER_PREFIX,
    MESSAGE_EVENT,
    MIN_CONVERSATION_ID_LENGTH,
    PRIVATE_CHANNEL_PREFIX,
)

__all__ = [
    "Settings",
    "get_settings",
    "PROJECT_ROOT",
    "ASSISTANT_ROLE",
    "BEARER_PREFIX",
    "MESSAGE_EVENT",
    "MIN_CONVERSATION_ID_LENGTH",
    "PRIVATE_CHANNEL_PREFIX",
]
