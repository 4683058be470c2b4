"""
Domain layer - Conversation identifiers and channel naming
"""

from src.domain.conversation import (
    is_private_channel,
    normalize_conversation_id,
    private_channel_name,
    public_channel_name,
)

__all__ = [
    "is_private_channel",
    "normalize_conversation_id",
    "private_channel_name",
    "public_channel_name",
]
