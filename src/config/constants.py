"""
Application constants

Centralized constants used across the application.
"""

# ============================================================================
# Broadcast channels
# ============================================================================

PRIVATE_CHANNEL_PREFIX = "private-"

# Event carrying assistant replies to subscribed clients
MESSAGE_EVENT = "message"

ASSISTANT_ROLE = "assistant"


# ============================================================================
# Conversation identifiers
# ============================================================================

MIN_CONVERSATION_ID_LENGTH = 3


# ============================================================================
# HTTP
# ============================================================================

BEARER_PREFIX = "Bearer "
