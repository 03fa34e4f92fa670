from .base import ChatTransport
from .classify import classify_error_status, classify_response, excerpt
from .factory import create_chat_transport
from .http import HttpChatTransport
from .models import (
    AssistantReply,
    ChatError,
    ChatRequest,
    ChatResult,
    Err,
    ErrorKind,
    FeedbackRequest,
    Ok,
)

__all__ = [
    "AssistantReply",
    "ChatError",
    "ChatRequest",
    "ChatResult",
    "ChatTransport",
    "Err",
    "ErrorKind",
    "FeedbackRequest",
    "HttpChatTransport",
    "Ok",
    "classify_error_status",
    "classify_response",
    "create_chat_transport",
    "excerpt",
]
