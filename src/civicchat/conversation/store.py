"""In-memory message store for the active session.

Append-only, ordered log of conversation turns.
Data is lost when the widget goes away.
"""

from collections.abc import Iterator
from typing import Any

from .models import Message, MessageRole, MessageStatus


class MessageStore:
    """Ordered, append-only message log (session-only).

    Messages are never reordered or removed except by an explicit
    clear, and ids are never reused. Views that only show recent
    messages window the log themselves.
    """

    def __init__(self):
        self._messages: list[Message] = []
        self._next_seq = 1

    @property
    def messages(self) -> tuple[Message, ...]:
        """Read-only view of the log, oldest first."""
        return tuple(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(tuple(self._messages))

    def append(
        self,
        role: MessageRole,
        content: str = "",
        status: MessageStatus | None = None,
        **metadata: Any
    ) -> Message:
        """Append a new message at the end of the log.

        Args:
            role: Message author
            content: Message text
            status: Delivery status, only meaningful for user messages
            **metadata: Assistant reply metadata (server_id, confidence, ...)

        Returns:
            The stored message
        """
        if status is not None and role != MessageRole.USER:
            raise ValueError("Only user messages carry a delivery status")

        seq = self._next_seq
        self._next_seq += 1
        message = Message(
            id=f"msg_{seq:06d}",
            seq=seq,
            role=role,
            content=content,
            status=status,
            **metadata,
        )
        self._messages.append(message)
        return message

    def get(self, message_id: str) -> Message | None:
        for message in self._messages:
            if message.id == message_id:
                return message
        return None

    def _replace(self, message_id: str, **changes: Any) -> Message | None:
        for index, message in enumerate(self._messages):
            if message.id == message_id:
                updated = message.model_copy(update=changes)
                self._messages[index] = updated
                return updated
        return None

    def update_status(self, message_id: str, status: MessageStatus) -> Message | None:
        """Set the delivery status of a user message in place.

        Returns:
            The updated message, or None if it is no longer in the store
        """
        message = self.get(message_id)
        if message is None:
            return None
        if message.role != MessageRole.USER:
            raise ValueError(f"Message {message_id} is not a user message")
        return self._replace(message_id, status=status)

    def record_feedback(self, message_id: str, feedback: Any) -> Message | None:
        """Remember the rating given to an assistant reply."""
        return self._replace(message_id, feedback=feedback)

    def last(self, role: MessageRole | None = None) -> Message | None:
        """Get the most recent message, optionally filtered by role."""
        for message in reversed(self._messages):
            if role is None or message.role == role:
                return message
        return None

    def clear(self) -> None:
        """Empty the log. Sequence numbers keep increasing."""
        self._messages.clear()
