"""Data models for the conversation.

These models define the structure of conversation turns and the session
they belong to, independent of how the widget renders them.
"""

from datetime import datetime
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


class MessageRole(str, Enum):
    """Who produced a message."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class MessageStatus(str, Enum):
    """Delivery status of a user message."""

    PENDING = "pending"  # Turn not yet resolved
    SENT = "sent"        # Backend replied to this turn
    FAILED = "failed"    # Last attempt for this turn failed


class ConnectionStatus(str, Enum):
    """Connectivity of the session to the backend."""

    CONNECTED = "connected"
    RECONNECTING = "reconnecting"
    DISCONNECTED = "disconnected"


class FeedbackType(str, Enum):
    """Rating a citizen can give to an assistant reply."""

    HELPFUL = "helpful"
    NOT_HELPFUL = "not_helpful"
    REPORT_ISSUE = "report_issue"


class Message(BaseModel):
    """A single conversation message.

    Messages are immutable. Status changes produce a copy that keeps
    the original id and creation time.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Unique id, ordered within the session")
    seq: int = Field(ge=1, description="Monotonic sequence number backing the id")
    role: MessageRole
    content: str = Field(default="", description="Text body, empty while pending")
    created_at: datetime = Field(default_factory=datetime.now)
    status: MessageStatus | None = Field(
        default=None,
        description="Delivery status (user messages only)"
    )

    # Assistant reply metadata supplied by the backend
    server_id: str | None = Field(default=None, description="Backend message id for feedback")
    confidence: float | None = None
    sources: list[str] = Field(default_factory=list)
    escalated_to_human: bool = False
    feedback: FeedbackType | None = None

    @property
    def is_user(self) -> bool:
        return self.role == MessageRole.USER

    @property
    def is_assistant(self) -> bool:
        return self.role == MessageRole.ASSISTANT


def new_session_token() -> str:
    """Create an opaque session token for the web channel."""
    return f"web_{uuid4().hex}"


class Session(BaseModel):
    """Session identity binding turns into one backend conversation."""

    token: str = Field(default_factory=new_session_token)
    connection_status: ConnectionStatus = ConnectionStatus.CONNECTED
    created_at: datetime = Field(default_factory=datetime.now)

    @property
    def is_connected(self) -> bool:
        return self.connection_status == ConnectionStatus.CONNECTED
