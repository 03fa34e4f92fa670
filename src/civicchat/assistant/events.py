"""State and transition types of the conversation state machine."""

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from ..conversation.models import ConnectionStatus, Message
from ..transport.models import ChatError


class ChatState(str, Enum):
    """Conversation states."""

    IDLE = "idle"
    SENDING = "sending"                # Turn accepted, request being dispatched
    AWAITING_REPLY = "awaiting_reply"  # Request issued, waiting for the backend
    TYPING = "typing"                  # Reply received, indicator shown
    ERROR = "error"
    DISCONNECTED = "disconnected"

    @property
    def busy(self) -> bool:
        """True while a request is in flight and new input must be rejected.

        TYPING is not busy: the reply is already here and a new submit
        lands it at once.
        """
        return self in (ChatState.SENDING, ChatState.AWAITING_REPLY)


class TransitionReason(str, Enum):
    """Why a transition happened."""

    SUBMITTED = "submitted"
    REQUEST_ISSUED = "request_issued"
    REPLY_RECEIVED = "reply_received"
    REPLY_DELIVERED = "reply_delivered"
    REQUEST_FAILED = "request_failed"
    AUTOMATIC_RETRY = "automatic_retry"
    MANUAL_RETRY = "manual_retry"
    CONNECTIVITY_LOST = "connectivity_lost"
    RECONNECTING = "reconnecting"
    RECONNECTED = "reconnected"
    RECONNECT_EXHAUSTED = "reconnect_exhausted"
    ERROR_CLEARED = "error_cleared"
    CLEARED = "cleared"


@dataclass(frozen=True)
class Snapshot:
    """Read-only view of the conversation at one instant."""

    state: ChatState
    messages: tuple[Message, ...]
    error: ChatError | None
    session_token: str
    connection_status: ConnectionStatus

    @property
    def is_loading(self) -> bool:
        return self.state in (ChatState.SENDING, ChatState.AWAITING_REPLY)

    @property
    def is_typing(self) -> bool:
        return self.state == ChatState.TYPING

    @property
    def is_connected(self) -> bool:
        return self.connection_status == ConnectionStatus.CONNECTED


@dataclass(frozen=True)
class Transition:
    """One state change, delivered to every subscriber."""

    previous: ChatState
    current: ChatState
    reason: TransitionReason
    snapshot: Snapshot
    reply: Message | None = None  # Assistant message that just landed

    @property
    def connection_status(self) -> ConnectionStatus:
        return self.snapshot.connection_status


TransitionListener = Callable[[Transition], None]
