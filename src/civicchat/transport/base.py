from abc import ABC, abstractmethod
from typing import Any

from .models import ChatError, ChatResult, Err, Ok


class ChatTransport(ABC):
    """Abstract base class for assistant transports.

    This module hides the design decision of how a turn reaches the
    assistant backend. Implementations must handle:
    - Client setup and connection reuse
    - Request body serialization
    - Bounding every call with a timeout
    - Classifying every outcome into Ok / Err without raising

    Transports never touch the message log or the session; they receive
    what they need as arguments and return a result.

    Supports async context manager protocol for proper resource cleanup:
        async with transport:
            result = await transport.send("Hola", token)
    """

    _debug_callback: Any = None

    @abstractmethod
    async def send(
        self,
        message: str,
        session_token: str | None,
        *,
        user_id: str | None = None
    ) -> ChatResult:
        """Perform one request/response exchange for a user turn.

        Args:
            message: User message text
            session_token: Token identifying the conversation
            user_id: Optional authenticated user identity

        Returns:
            Ok(AssistantReply) on success, Err(ChatError) otherwise
        """

    @abstractmethod
    async def probe(self) -> bool:
        """Check whether the backend is reachable again.

        Returns:
            True if the backend answered with a success status
        """

    @abstractmethod
    async def send_feedback(
        self,
        session_token: str | None,
        message_id: str,
        feedback_type: str,
        comment: str | None = None
    ) -> Ok[None] | Err:
        """Submit a rating for an assistant reply.

        Raises:
            ValueError: If the feedback payload is invalid
        """

    @abstractmethod
    async def close(self) -> None:
        """Close any open connections or resources."""

    def set_debug_callback(self, callback: Any) -> None:
        """Set the debug callback for diagnostics.

        Args:
            callback: Callable(level: str, component: str, message: str)
        """
        self._debug_callback = callback

    def _debug(self, level: str, message: str) -> None:
        if self._debug_callback:
            self._debug_callback(level, "Transport", message)

    def _report(self, error: ChatError) -> None:
        """Send a classified failure, with its raw excerpt, to the debug channel."""
        self._debug("warning", f"{error.kind.value}: {error.describe()}")

    async def __aenter__(self) -> "ChatTransport":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit with automatic cleanup.

        Note: Suppresses "Event loop is closed" errors during cleanup.
        This is a known harmless race condition in httpx/anyio cleanup:
        https://github.com/encode/httpx/issues/914
        """
        try:
            await self.close()
        except RuntimeError as e:
            if "Event loop is closed" not in str(e):
                raise
