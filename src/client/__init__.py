"""
Client layer - Chat session manager and workflow webhook client
"""

from src.client.session_manager import (
    SEND_ERROR_TEXT,
    ChatMessage,
    ChatSessionManager,
    SessionCredentials,
    new_conversation_id,
)
from src.client.workflow_client import Attachment, WorkflowClient

__all__ = [
    "SEND_ERROR_TEXT",
    "ChatMessage",
    "ChatSessionManager",
    "SessionCredentials",
    "new_conversation_id",
    "Attachment",
    "WorkflowClient",
]
