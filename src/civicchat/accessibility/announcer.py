"""Live-region announcer.

Mirrors conversation transitions into a single status text that
assistive technology reads without moving focus. Rendering of that text
is left to the widget shell.
"""

from collections.abc import Callable
from dataclasses import dataclass

from ..assistant.events import ChatState, Transition, TransitionReason
from ..conversation.models import ConnectionStatus


@dataclass(frozen=True)
class Announcements:
    """Texts read out for each kind of announcement."""

    sending: str = "Sending message"
    typing: str = "Assistant is typing"
    failure: str = "The assistant could not answer. You can retry your message."
    reconnecting: str = "Connection lost. Reconnecting"
    disconnected: str = "Disconnected from the assistant"
    restored: str = "Connection restored"
    reply_prefix: str = "Assistant: "


AnnouncementSink = Callable[[str], None]


class LiveAnnouncer:
    """Polite live-region driven by state machine transitions.

    Consecutive transitions that map to the same announcement key, such
    as SENDING followed by AWAITING_REPLY, are announced once.
    """

    def __init__(self, announcements: Announcements | None = None) -> None:
        self._texts = announcements or Announcements()
        self._text = ""
        self._last_key: str | None = None
        self._last_connection = ConnectionStatus.CONNECTED
        self._history: list[str] = []
        self._sinks: list[AnnouncementSink] = []
        self._unsubscribe: Callable[[], None] | None = None

    @property
    def text(self) -> str:
        """Current content of the live region."""
        return self._text

    @property
    def history(self) -> tuple[str, ...]:
        """Every announcement made so far, oldest first."""
        return tuple(self._history)

    def attach(self, machine) -> None:
        """Subscribe to a ConversationStateMachine."""
        self.detach()
        self._unsubscribe = machine.subscribe(self.on_transition)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def add_sink(self, sink: AnnouncementSink) -> None:
        """Forward every announcement to ``sink``."""
        self._sinks.append(sink)

    def on_transition(self, transition: Transition) -> None:
        if transition.reason == TransitionReason.CLEARED:
            # Fresh conversation: nothing to read out, forget dedupe state
            self._last_key = None
            self._last_connection = transition.connection_status
            self._set_text("")
            return

        self._announce_connection(transition.connection_status)

        key, text = self._describe(transition)
        if key is None:
            return
        if key == self._last_key:
            return
        self._last_key = key
        if text:
            self._announce(text)

    def _announce_connection(self, status: ConnectionStatus) -> None:
        previous, self._last_connection = self._last_connection, status
        if status == previous:
            return
        if status == ConnectionStatus.CONNECTED:
            self._announce(self._texts.restored)
        elif status == ConnectionStatus.RECONNECTING:
            self._announce(self._texts.reconnecting)
        else:
            self._announce(self._texts.disconnected)

    def _describe(self, transition: Transition) -> tuple[str | None, str]:
        state = transition.current
        if state in (ChatState.SENDING, ChatState.AWAITING_REPLY):
            return "sending", self._texts.sending
        if state == ChatState.TYPING:
            return "typing", self._texts.typing
        if state == ChatState.ERROR:
            return "error", self._texts.failure
        if state == ChatState.IDLE:
            if transition.reply is not None:
                return f"reply:{transition.reply.id}", self._texts.reply_prefix + transition.reply.content
            return "idle", ""
        # DISCONNECTED is covered by the connection announcement
        return None, ""

    def _announce(self, text: str) -> None:
        self._history.append(text)
        self._set_text(text)

    def _set_text(self, text: str) -> None:
        self._text = text
        for sink in list(self._sinks):
            sink(text)
