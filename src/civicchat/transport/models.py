"""Wire and result models for the chat transport.

Hides the JSON shapes exchanged with the portal backend and the
tagged result type handed back to the conversation state machine.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")

# Characters of a raw body kept for diagnostics
EXCERPT_LIMIT = 200

# 4xx statuses worth retrying: request timeout and rate limiting
TRANSIENT_CLIENT_STATUSES = frozenset({408, 425, 429})

# 4xx statuses that mean the session token is no longer usable
SESSION_STATUSES = frozenset({401, 403, 410})


class ErrorKind(str, Enum):
    """Failure taxonomy for one exchange with the backend."""

    NETWORK_TIMEOUT = "network_timeout"
    NETWORK_UNAVAILABLE = "network_unavailable"
    HTTP_STATUS = "http_status"
    MALFORMED_RESPONSE = "malformed_response"
    SESSION_INVALID = "session_invalid"


class ChatError(BaseModel):
    """A classified transport failure.

    Carries everything the state machine needs to decide what to do
    next, plus a bounded excerpt of the raw body for developers.
    """

    model_config = ConfigDict(frozen=True)

    kind: ErrorKind
    status_code: int | None = Field(default=None, description="HTTP status, if a response arrived")
    raw_excerpt: str = Field(default="", max_length=EXCERPT_LIMIT)
    detail: str = Field(default="", description="Short developer-facing explanation")

    @property
    def is_connectivity(self) -> bool:
        """True when no usable response arrived at all."""
        return self.kind in (ErrorKind.NETWORK_TIMEOUT, ErrorKind.NETWORK_UNAVAILABLE)

    @property
    def recoverable(self) -> bool:
        """True when the same turn may be re-issued without user action."""
        if self.kind == ErrorKind.HTTP_STATUS:
            code = self.status_code or 0
            return code >= 500 or code in TRANSIENT_CLIENT_STATUSES
        return self.kind != ErrorKind.SESSION_INVALID

    @property
    def fatal(self) -> bool:
        return not self.recoverable

    def describe(self) -> str:
        """Developer-facing one-line description."""
        if self.kind == ErrorKind.HTTP_STATUS:
            return f"HTTP {self.status_code}: {self.raw_excerpt or 'Non-JSON error response'}"
        if self.kind == ErrorKind.SESSION_INVALID:
            suffix = f" (HTTP {self.status_code})" if self.status_code else ""
            return f"Session invalid or expired{suffix}"
        if self.kind == ErrorKind.MALFORMED_RESPONSE:
            status = f"HTTP {self.status_code} " if self.status_code else ""
            return f"Malformed response: {status}{self.detail}".rstrip()
        if self.kind == ErrorKind.NETWORK_TIMEOUT:
            return f"Network timeout: {self.detail}".rstrip(": ")
        return f"Network unavailable: {self.detail}".rstrip(": ")

    @property
    def user_message(self) -> str:
        """Short, non-technical notice suitable for citizens."""
        if self.is_connectivity:
            return "We lost the connection to the assistant. We will try again shortly."
        if self.kind == ErrorKind.SESSION_INVALID:
            return "Your conversation expired. Please send your message again."
        if self.fatal:
            return "The assistant could not process that message. Please try again."
        return "The assistant is temporarily unavailable. You can try sending your message again."


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful exchange."""

    value: T
    ok: Literal[True] = True


@dataclass(frozen=True)
class Err:
    """Failed exchange, already classified."""

    error: ChatError
    ok: Literal[False] = False


class AssistantReply(BaseModel):
    """A decoded assistant reply."""

    model_config = ConfigDict(frozen=True)

    content: str
    session_token: str | None = None
    server_id: str | None = None
    confidence: float | None = None
    sources: list[str] = Field(default_factory=list)
    escalated_to_human: bool = False


ChatResult = Ok[AssistantReply] | Err


class ChatRequest(BaseModel):
    """Body of ``POST /chat``."""

    model_config = ConfigDict(populate_by_name=True)

    message: str
    session_token: str | None = Field(default=None, alias="sessionToken")
    user_id: str | None = Field(default=None, alias="userId")
    channel: str = "web"
    phone_number: str | None = Field(default=None, alias="phoneNumber")

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class ReplyBody(BaseModel):
    """Plain success body: ``{"reply": ..., "sessionToken": ...}``."""

    reply: str
    session_token: str | None = Field(default=None, alias="sessionToken")

    def to_reply(self) -> AssistantReply:
        return AssistantReply(content=self.reply, session_token=self.session_token)


class EnvelopeData(BaseModel):
    """Payload of the portal's ``{"success": ..., "data": ...}`` envelope."""

    response: str
    session_token: str | None = Field(default=None, alias="sessionToken")
    message_id: str | int | None = Field(default=None, alias="messageId")
    confidence: float | None = None
    sources: list[str] | None = None
    escalate_to_human: bool | None = Field(default=None, alias="escalateToHuman")


class EnvelopeBody(BaseModel):
    """Portal envelope body."""

    success: bool
    data: EnvelopeData | None = None
    error: str | None = None

    def to_reply(self) -> AssistantReply | None:
        if not self.success or self.data is None:
            return None
        data = self.data
        return AssistantReply(
            content=data.response,
            session_token=data.session_token,
            server_id=str(data.message_id) if data.message_id is not None else None,
            confidence=data.confidence,
            sources=data.sources or [],
            escalated_to_human=bool(data.escalate_to_human),
        )


class FeedbackRequest(BaseModel):
    """Body of ``POST /chat/feedback``."""

    model_config = ConfigDict(populate_by_name=True)

    message_id: str = Field(alias="messageId", min_length=1)
    feedback_type: Literal["helpful", "not_helpful", "report_issue"] = Field(alias="feedbackType")
    comment: str | None = Field(default=None, max_length=500)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)
