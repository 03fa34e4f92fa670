"""Conversation module for civicchat.

Holds the message log and the session identity of the active conversation.
"""

from .models import (
    ConnectionStatus,
    FeedbackType,
    Message,
    MessageRole,
    MessageStatus,
    Session,
    new_session_token,
)
from .store import MessageStore

__all__ = [
    "ConnectionStatus",
    "FeedbackType",
    "Message",
    "MessageRole",
    "MessageStatus",
    "MessageStore",
    "Session",
    "new_session_token",
]
