"""
Conversation identifiers and broadcast channel naming.

Issuer, authorizer and relay all derive channel names here so that the
name a client is authorized for is byte-for-byte the one replies are
published on.
"""

from typing import Any

from src.config.constants import MIN_CONVERSATION_ID_LENGTH, PRIVATE_CHANNEL_PREFIX
from src.utils.errors import InvalidInput


def normalize_conversation_id(value: Any) -> str:
    """
    Validate a caller-supplied conversation id and return its trimmed form.

    Args:
        value: Raw value taken from a request body

    Returns:
        The trimmed conversation id

    Raises:
        InvalidInput: If the value is not a string, is shorter than the
            minimum length after trimming, or has no alphanumeric character
    """
    if not isinstance(value, str):
        raise InvalidInput("Valid conversationId is required")

    conversation_id = value.strip()
    if len(conversation_id) < MIN_CONVERSATION_ID_LENGTH:
        raise InvalidInput("Valid conversationId is required")
    if not any(ch.isalnum() for ch in conversation_id):
        raise InvalidInput("Valid conversationId is required")

    return conversation_id


def public_channel_name(conversation_id: str, prefix: str = "chat") -> str:
    """Fallback channel that needs no subscription authorization."""
    return f"{prefix}-{conversation_id}"


def private_channel_name(conversation_id: str, prefix: str = "chat") -> str:
    """Channel clients must be authorized for before receiving replies."""
    return f"{PRIVATE_CHANNEL_PREFIX}{public_channel_name(conversation_id, prefix)}"


def is_private_channel(channel: str) -> bool:
    return channel.startswith(PRIVATE_CHANNEL_PREFIX)
