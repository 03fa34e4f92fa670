"""
Civicchat: client for a municipal citizen-services virtual assistant.

This package follows Parnas's information hiding principles,
where each module hides a specific design decision.
"""

__version__ = "0.1.0"

from .assistant import ChatState, ConversationStateMachine, create_conversation
from .config import AssistantConfig
from .conversation import Message, MessageRole, MessageStatus
from .transport import ChatError, ErrorKind, create_chat_transport

__all__ = [
    "AssistantConfig",
    "ChatError",
    "ChatState",
    "ConversationStateMachine",
    "ErrorKind",
    "Message",
    "MessageRole",
    "MessageStatus",
    "create_chat_transport",
    "create_conversation",
]
