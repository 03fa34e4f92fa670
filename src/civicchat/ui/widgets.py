"""Custom Textual widgets for the assistant shell.

Hides widget implementation details:
- Input history management
- Message list rendering and incremental updates
- The accessibility contract (dialog role, live status, backdrop)
- Log rendering and level filtering

Widgets render state handed to them; none of them holds conversation logic.
"""

from datetime import datetime

from rich.text import Text
from textual import work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.message import Message
from textual.reactive import reactive
from textual.widgets import Button, RichLog, Static, TextArea

from ..accessibility import LiveAnnouncer
from ..assistant import ConversationStateMachine, Snapshot, Transition, create_conversation
from ..config import AssistantConfig
from ..conversation import ConnectionStatus, FeedbackType, MessageRole, MessageStatus
from ..conversation import Message as ChatMessage
from ..transport import ChatTransport
from .config import (
    BACKDROP_BLURRED_CLASS,
    BACKDROP_ID,
    BACKDROP_SOLID_CLASS,
    CONTENT_ID,
    FAB_ID,
    HEADER_ID,
    HISTORY_ID,
    INPUT_BAR_ID,
    INPUT_HISTORY_MAX_SIZE,
    INSTRUCTIONS_ID,
    INSTRUCTIONS_TEXT,
    LIVE_STATUS_ID,
    LOG_MAX_MESSAGE_LENGTH,
    LOG_TIMESTAMP_FORMAT,
    SPACER_ID,
    STATUS_OFFLINE,
    STATUS_ONLINE,
    STATUS_RECONNECTING,
    STATUS_TYPING,
    TITLE_ID,
    WIDGET_ID,
    WIDGET_SUBTITLE,
    WIDGET_TITLE,
    LogLevel,
)


class ChatInputBar(Horizontal):
    """Chat input bar with TextArea and Send button."""

    class Submitted(Message):
        """Message sent when user submits input."""

        def __init__(self, value: str) -> None:
            super().__init__()
            self.value = value

    def __init__(self, *args, max_length: int = 1000, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._max_length = max_length
        self._history: list[str] = []
        self._history_index: int = -1

    def compose(self) -> ComposeResult:
        text_area = TextArea(id="chat-input", show_line_numbers=False)
        text_area.cursor_blink = False
        yield text_area
        yield Button("Send", id="send-btn", variant="success").with_tooltip(
            "Submit message (Ctrl+J)"
        )

    def on_mount(self) -> None:
        text_area = self.query_one("#chat-input", TextArea)
        text_area.highlight_cursor_line = False

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "send-btn":
            event.stop()
            self._submit()

    def on_key(self, event) -> None:
        """Handle keyboard shortcuts.

        Note: ctrl+enter cannot work in terminals (terminal doesn't pass
        ctrl/shift modifiers with Enter). Use ctrl+j as the submit shortcut.
        """
        if event.key == "ctrl+j":
            self._submit()
            event.prevent_default()
            event.stop()
        elif event.key == "up" and self._is_cursor_at_start():
            self._navigate_history(-1)
            event.prevent_default()
            event.stop()
        elif event.key == "down" and self._is_cursor_at_end():
            self._navigate_history(1)
            event.prevent_default()
            event.stop()

    def _is_cursor_at_start(self) -> bool:
        text_area = self.query_one("#chat-input", TextArea)
        return text_area.cursor_location == (0, 0)

    def _is_cursor_at_end(self) -> bool:
        text_area = self.query_one("#chat-input", TextArea)
        lines = text_area.text.split("\n")
        last_row = len(lines) - 1
        last_col = len(lines[-1]) if lines else 0
        return text_area.cursor_location == (last_row, last_col)

    def _navigate_history(self, direction: int) -> None:
        if not self._history:
            return
        text_area = self.query_one("#chat-input", TextArea)
        if direction < 0:  # Up
            if self._history_index == -1:
                self._history_index = len(self._history) - 1
            elif self._history_index > 0:
                self._history_index -= 1
        else:  # Down
            if self._history_index < len(self._history) - 1:
                self._history_index += 1
            else:
                self._history_index = -1
                text_area.text = ""
                return
        text_area.text = self._history[self._history_index]

    def _submit(self) -> None:
        text_area = self.query_one("#chat-input", TextArea)
        if text_area.disabled:
            return
        value = text_area.text.strip()
        if not value:
            return
        if len(value) > self._max_length:
            self.app.notify(f"Messages are limited to {self._max_length} characters", severity="warning")
            return
        if not self._history or self._history[-1] != value:
            self._history.append(value)
            del self._history[:-INPUT_HISTORY_MAX_SIZE]
        self._history_index = -1
        text_area.text = ""
        self.post_message(self.Submitted(value))

    def set_enabled(self, enabled: bool) -> None:
        """Enable or disable input while a turn is unresolved."""
        self.query_one("#chat-input", TextArea).disabled = not enabled
        self.query_one("#send-btn", Button).disabled = not enabled

    def focus_input(self) -> None:
        """Focus the text input."""
        self.query_one("#chat-input", TextArea).focus()


class MessageView(Vertical):
    """One rendered conversation message."""

    class FeedbackChosen(Message):
        """Posted when the citizen rates an assistant reply."""

        def __init__(self, message_id: str, feedback: FeedbackType) -> None:
            super().__init__()
            self.message_id = message_id
            self.feedback = feedback

    def __init__(self, message: ChatMessage, *args, **kwargs) -> None:
        super().__init__(*args, classes=f"chat-message {message.role.value}-message", **kwargs)
        self.message = message

    def compose(self) -> ComposeResult:
        yield Static(self._header_text(), classes="message-header")
        yield Static(Text(self.message.content), classes="message-content")
        if self._accepts_feedback():
            with Horizontal(classes="message-feedback"):
                yield Button("Helpful", classes="feedback-helpful", variant="success")
                yield Button("Not helpful", classes="feedback-not-helpful", variant="error")

    def on_mount(self) -> None:
        self._apply_status_classes()

    def _accepts_feedback(self) -> bool:
        message = self.message
        return message.is_assistant and message.server_id is not None and message.feedback is None

    def _header_text(self) -> str:
        message = self.message
        timestamp = message.created_at.strftime("%H:%M:%S")
        if message.role == MessageRole.USER:
            header = f"> You [{timestamp}]"
            if message.status == MessageStatus.PENDING:
                header += " sending..."
            elif message.status == MessageStatus.FAILED:
                header += " not delivered"
            return header
        if message.role == MessageRole.ASSISTANT:
            header = f"< Assistant [{timestamp}]"
            if message.escalated_to_human:
                header += " (forwarded to an agent)"
            if message.feedback is not None:
                header += " - thanks for your feedback"
            return header
        return f"! Notice [{timestamp}]"

    def _apply_status_classes(self) -> None:
        status = self.message.status
        self.set_class(status == MessageStatus.PENDING, "-pending")
        self.set_class(status == MessageStatus.FAILED, "-failed")

    def update_message(self, message: ChatMessage) -> None:
        """Re-render after a status or feedback change."""
        self.message = message
        self.query_one(".message-header", Static).update(self._header_text())
        self._apply_status_classes()
        if not self._accepts_feedback():
            for row in self.query(".message-feedback"):
                row.remove()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.has_class("feedback-helpful"):
            feedback = FeedbackType.HELPFUL
        elif event.button.has_class("feedback-not-helpful"):
            feedback = FeedbackType.NOT_HELPFUL
        else:
            return
        event.stop()
        for row in self.query(".message-feedback Button"):
            row.disabled = True
        self.post_message(self.FeedbackChosen(self.message.id, feedback))


class MessageList(VerticalScroll):
    """Scrollable message list, kept in step with the message log."""

    BORDER_TITLE = "Chat"
    BORDER_SUBTITLE = "Conversation history"
    ALLOW_SELECT = True

    def __init__(self, *args, window: int = 50, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._window = window
        self._views: dict[str, MessageView] = {}

    def sync(self, messages: tuple[ChatMessage, ...]) -> None:
        """Render the most recent messages of the log.

        Mounts new messages, updates changed ones and unmounts those that
        left the window or the log. The log itself is never trimmed here.
        """
        total = len(messages)
        messages = messages[-self._window:]
        wanted = {message.id for message in messages}
        for message_id in [mid for mid in self._views if mid not in wanted]:
            self._views.pop(message_id).remove()

        added = False
        for message in messages:
            view = self._views.get(message.id)
            if view is None:
                view = MessageView(message)
                self._views[message.id] = view
                self.mount(view)
                added = True
            elif view.message != message:
                view.update_message(message)

        if total > len(messages):
            self.border_subtitle = f"Last {len(messages)} of {total} messages"
        elif messages:
            self.border_subtitle = f"{total} messages"
        else:
            self.border_subtitle = "Conversation history"
        if added:
            self.scroll_end(animate=False)

    @property
    def message_ids(self) -> list[str]:
        return list(self._views)


class LiveStatus(Static):
    """Polite live region with the latest announcement.

    Always mounted while the assistant widget exists, whatever the
    visual state of the dialog.
    """

    role = "status"
    aria_live = "polite"


class ChatBackdrop(Static):
    """Backdrop behind the open dialog. Clicking it closes the dialog."""

    class Dismissed(Message):
        """Posted when the backdrop is clicked."""

    aria_hidden = True

    def on_click(self, event) -> None:
        event.stop()
        self.post_message(self.Dismissed())

    def apply_motion_preference(self, reduced_motion: bool) -> None:
        """Solid backdrop for reduced motion, blurred/animated otherwise."""
        self.set_class(reduced_motion, BACKDROP_SOLID_CLASS)
        self.set_class(not reduced_motion, BACKDROP_BLURRED_CLASS)


class ChatHeader(Horizontal):
    """Dialog header: title, connection badge and window controls."""

    def compose(self) -> ComposeResult:
        with Vertical(id="chat-title-block"):
            yield Static(WIDGET_TITLE, id=TITLE_ID)
            yield Static(f"{STATUS_ONLINE} | {WIDGET_SUBTITLE}", id="chat-connection")
        yield Button("_", id="minimize-btn").with_tooltip("Minimize chat (Ctrl+B)")
        yield Button("x", id="close-btn", variant="error").with_tooltip("Close chat (Escape)")

    def set_status(self, snapshot: Snapshot) -> None:
        if snapshot.connection_status == ConnectionStatus.RECONNECTING:
            status, css = STATUS_RECONNECTING, "-offline"
        elif snapshot.connection_status == ConnectionStatus.DISCONNECTED:
            status, css = STATUS_OFFLINE, "-offline"
        elif snapshot.is_loading or snapshot.is_typing:
            status, css = STATUS_TYPING, "-busy"
        else:
            status, css = STATUS_ONLINE, "-online"
        badge = self.query_one("#chat-connection", Static)
        badge.update(f"{status} | {WIDGET_SUBTITLE}")
        for name in ("-offline", "-busy", "-online"):
            badge.set_class(name == css, name)

    def set_minimized(self, minimized: bool) -> None:
        self.query_one("#minimize-btn", Button).label = "+" if minimized else "_"


class ChatDialog(Vertical):
    """The assistant dialog.

    Minimizing recomposes the dialog without its content-only nodes;
    the header stays.
    """

    role = "dialog"
    aria_modal = True
    aria_labelledby = TITLE_ID

    minimized: reactive[bool] = reactive(False, recompose=True)

    def __init__(
        self,
        machine: ConversationStateMachine,
        *args,
        max_length: int = 1000,
        max_visible: int = 50,
        **kwargs
    ) -> None:
        super().__init__(*args, **kwargs)
        self._machine = machine
        self._max_length = max_length
        self._max_visible = max_visible

    @property
    def aria_describedby(self) -> tuple[str, ...]:
        """Ids describing the dialog: instructions (when shown) and live status."""
        if self.minimized:
            return (LIVE_STATUS_ID,)
        return (INSTRUCTIONS_ID, LIVE_STATUS_ID)

    def compose(self) -> ComposeResult:
        yield ChatHeader(id=HEADER_ID)
        if self.minimized:
            return
        with Vertical(id=CONTENT_ID):
            yield Static(INSTRUCTIONS_TEXT, id=INSTRUCTIONS_ID)
            with Horizontal(id="chat-error-bar"):
                yield Static("", id="chat-error-text")
                yield Button("Retry", id="retry-btn", variant="warning")
                yield Button("Dismiss", id="dismiss-error-btn")
            yield MessageList(id=HISTORY_ID, window=self._max_visible)
            yield ChatInputBar(id=INPUT_BAR_ID, max_length=self._max_length)
            yield Static("", id=SPACER_ID, classes="spacer")

    def on_mount(self) -> None:
        self.refresh_from(self._machine.snapshot())

    async def recompose(self) -> None:
        await super().recompose()
        self.refresh_from(self._machine.snapshot())

    def refresh_from(self, snapshot: Snapshot) -> None:
        """Render a conversation snapshot into the dialog."""
        for header in self.query(ChatHeader):
            header.set_status(snapshot)
            header.set_minimized(self.minimized)
        if self.minimized:
            return
        for history in self.query(MessageList):
            history.sync(snapshot.messages)
        for bar in self.query(ChatInputBar):
            bar.set_enabled(not snapshot.state.busy and snapshot.is_connected)
        for error_bar in self.query("#chat-error-bar"):
            error_bar.display = snapshot.error is not None
            if snapshot.error is not None:
                self.query_one("#chat-error-text", Static).update(snapshot.error.user_message)


class DebugPanel(RichLog):
    """Log panel for developer diagnostics with level filtering.

    Shows timestamped log messages from all components, including raw
    response excerpts that are never shown in the conversation.
    Hidden by default, shown with --log-level flag or toggled with Ctrl+D.
    """

    BORDER_TITLE = "Log"
    BORDER_SUBTITLE = "Trace log"

    def __init__(self, *args, log_level: int = LogLevel.DEBUG, **kwargs) -> None:
        super().__init__(
            *args,
            markup=True,
            highlight=False,
            auto_scroll=True,
            wrap=False,
            **kwargs
        )
        self._log_level = log_level

    @property
    def log_level(self) -> int:
        """Current log level threshold."""
        return self._log_level

    @log_level.setter
    def log_level(self, level: int) -> None:
        """Set log level threshold."""
        self._log_level = level
        self._update_subtitle()

    def _update_subtitle(self) -> None:
        """Update subtitle to show current log level."""
        if self.display:
            level_name = LogLevel.name(self._log_level)
            self.border_subtitle = f"Level: {level_name}"
        else:
            self.border_subtitle = "Hidden"

    def on_mount(self) -> None:
        """Hide by default."""
        self.display = False

    def log(
        self,
        component: str,
        message: str,
        level: int = LogLevel.DEBUG
    ) -> None:
        """Add a log entry if it meets the current level threshold.

        Args:
            component: Component name (TUI, Chat, Transport)
            message: Log message
            level: Log level (LogLevel.DEBUG, INFO, WARNING, ERROR)
        """
        if level < self._log_level:
            return

        timestamp = datetime.now().strftime(LOG_TIMESTAMP_FORMAT)
        if len(message) > LOG_MAX_MESSAGE_LENGTH:
            message = message[:LOG_MAX_MESSAGE_LENGTH] + "..."

        level_colors = {
            LogLevel.DEBUG: "dim white",
            LogLevel.INFO: "cyan",
            LogLevel.WARNING: "yellow",
            LogLevel.ERROR: "red",
        }
        level_color = level_colors.get(level, "white")
        level_name = LogLevel.name(level)

        component_colors = {
            "TUI": "cyan",
            "Chat": "green",
            "Transport": "magenta",
        }
        comp_color = component_colors.get(component, "white")

        line = Text.from_markup(
            f"[dim]{timestamp}[/] [{level_color}]{level_name:<5}[/] [{comp_color}][[{component}]][/] "
        )
        line.append(message)
        self.write(line)

    def route(self, level: str, component: str, message: str) -> None:
        """Debug callback entry point: (level, component, message)."""
        self.log(component, message, LogLevel.from_string(level))

    def debug(self, component: str, message: str) -> None:
        """Log a DEBUG level message."""
        self.log(component, message, LogLevel.DEBUG)

    def info(self, component: str, message: str) -> None:
        """Log an INFO level message."""
        self.log(component, message, LogLevel.INFO)

    def warning(self, component: str, message: str) -> None:
        """Log a WARNING level message."""
        self.log(component, message, LogLevel.WARNING)

    def error(self, component: str, message: str) -> None:
        """Log an ERROR level message."""
        self.log(component, message, LogLevel.ERROR)

    def show(self) -> None:
        """Show the log panel."""
        self.display = True
        self._update_subtitle()

    def hide(self) -> None:
        """Hide the log panel."""
        self.display = False
        self.border_subtitle = "Hidden"

    def toggle(self) -> bool:
        """Toggle visibility. Returns new state."""
        if self.display:
            self.hide()
            return False
        self.show()
        return True


class AssistantWidget(Vertical):
    """Widget shell hosting one conversation.

    Owns the state machine and the announcer for its lifetime and renders
    their state. When the assistant is disabled it composes nothing and
    constructs nothing.
    """

    expanded: reactive[bool] = reactive(True)

    def __init__(
        self,
        config: AssistantConfig,
        transport: ChatTransport | None = None,
        *args,
        default_open: bool = True,
        reduced_motion: bool | None = None,
        **kwargs
    ) -> None:
        super().__init__(*args, **kwargs)
        self._config = config
        self.machine = create_conversation(config, transport)
        self.announcer: LiveAnnouncer | None = None
        if self.machine is not None:
            self.announcer = LiveAnnouncer()
            self.announcer.attach(self.machine)
        self._reduced_motion = config.reduced_motion if reduced_motion is None else reduced_motion
        self._unsubscribe = None
        self.set_reactive(AssistantWidget.expanded, default_open)

    @property
    def enabled(self) -> bool:
        return self.machine is not None

    @property
    def reduced_motion(self) -> bool:
        if self._reduced_motion is not None:
            return self._reduced_motion
        return getattr(self.app, "animation_level", "full") == "none"

    def compose(self) -> ComposeResult:
        if self.machine is None:
            return
        yield ChatBackdrop(id=BACKDROP_ID)
        yield ChatDialog(
            self.machine,
            id=WIDGET_ID,
            max_length=self._config.max_input_length,
            max_visible=self._config.max_visible_messages,
        )
        yield Button("Assistant", id=FAB_ID, variant="success").with_tooltip("Open the virtual assistant")
        yield LiveStatus(self.announcer.text if self.announcer else "", id=LIVE_STATUS_ID)

    def on_mount(self) -> None:
        if self.machine is None:
            return
        self._unsubscribe = self.machine.subscribe(self._on_transition)
        self.query_one(ChatBackdrop).apply_motion_preference(self.reduced_motion)
        self._apply_expanded()

    async def on_unmount(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        if self.announcer is not None:
            self.announcer.detach()
        if self.machine is not None:
            await self.machine.close()

    def watch_expanded(self, expanded: bool) -> None:
        self._apply_expanded()

    def _apply_expanded(self) -> None:
        expanded = self.expanded
        for node in self.query(f"#{BACKDROP_ID}, #{WIDGET_ID}"):
            node.display = expanded
        for fab in self.query(f"#{FAB_ID}"):
            fab.display = not expanded
            if expanded:
                fab.remove_class("-new-message")
        if expanded:
            for bar in self.query(ChatInputBar):
                bar.focus_input()

    def _on_transition(self, transition: Transition) -> None:
        if self.announcer is not None:
            for status in self.query(LiveStatus):
                status.update(self.announcer.text)
        for dialog in self.query(ChatDialog):
            dialog.refresh_from(transition.snapshot)
        if transition.reply is not None and not self.expanded:
            for fab in self.query(f"#{FAB_ID}"):
                fab.add_class("-new-message")

    # ------------------------------------------------------------------
    # Operations exposed to the hosting app
    # ------------------------------------------------------------------

    def open(self) -> None:
        self.expanded = True

    def close(self) -> None:
        self.expanded = False

    def toggle_minimized(self) -> bool:
        """Toggle minimize. Returns the new minimized state."""
        dialog = self.query_one(ChatDialog)
        dialog.minimized = not dialog.minimized
        return dialog.minimized

    def clear_conversation(self) -> None:
        if self.machine is not None:
            self.machine.clear_messages()

    def clear_error(self) -> None:
        if self.machine is not None:
            self.machine.clear_error()

    @work(group="assistant")
    async def send(self, text: str) -> None:
        if self.machine is not None:
            await self.machine.send_message(text)

    @work(group="assistant")
    async def retry(self) -> None:
        if self.machine is not None:
            await self.machine.retry_last_message()

    @work(group="assistant")
    async def reconnect(self) -> None:
        if self.machine is None:
            return
        if await self.machine.reconnect():
            self.notify("Connection restored", timeout=2)
        else:
            self.notify("Still offline, retrying in the background", severity="warning", timeout=3)

    @work(group="feedback")
    async def rate(self, message_id: str, feedback: FeedbackType) -> None:
        if self.machine is None:
            return
        try:
            result = await self.machine.submit_feedback(message_id, feedback)
        except (ValueError, RuntimeError) as e:
            self.notify(f"Could not send feedback: {e}", severity="warning", timeout=3)
        else:
            if result.ok:
                self.notify("Thanks for your feedback", timeout=2)
            else:
                self.notify("Could not send feedback", severity="warning", timeout=3)
        for dialog in self.query(ChatDialog):
            dialog.refresh_from(self.machine.snapshot())

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------

    def on_chat_input_bar_submitted(self, event: ChatInputBar.Submitted) -> None:
        event.stop()
        self.send(event.value)

    def on_message_view_feedback_chosen(self, event: MessageView.FeedbackChosen) -> None:
        event.stop()
        self.rate(event.message_id, event.feedback)

    def on_chat_backdrop_dismissed(self, event: ChatBackdrop.Dismissed) -> None:
        event.stop()
        self.close()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        button_id = event.button.id
        if button_id == FAB_ID:
            self.open()
        elif button_id == "close-btn":
            self.close()
        elif button_id == "minimize-btn":
            self.toggle_minimized()
        elif button_id == "retry-btn":
            self.retry()
        elif button_id == "dismiss-error-btn":
            self.clear_error()
        else:
            return
        event.stop()
