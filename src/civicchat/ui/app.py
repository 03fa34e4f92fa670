"""Main Textual TUI application.

Hosts the assistant widget and the debug panel and maps key bindings to
widget operations.
"""

import asyncio

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Footer, Header

from ..config import AssistantConfig
from ..transport import ChatTransport
from .config import LogLevel
from .screens import ConfirmationScreen
from .styles import APP_CSS
from .themes import CIVIC_GREEN
from .widgets import AssistantWidget, DebugPanel


class AssistantApp(App):
    """Textual TUI for the citizen-services assistant."""

    CSS = APP_CSS
    TITLE = "Civic Chat"

    BINDINGS = [
        Binding("ctrl+c", "quit", "Quit"),
        Binding("ctrl+k", "clear_chat", "Clear Chat"),
        Binding("ctrl+r", "retry", "Retry"),
        Binding("ctrl+n", "reconnect", "Reconnect"),
        Binding("ctrl+b", "toggle_minimize", "Minimize"),
        Binding("ctrl+o", "open_chat", "Open Chat"),
        Binding("escape", "close_chat", "Close"),
        Binding("ctrl+d", "toggle_debug", "Debug"),
    ]

    def __init__(
        self,
        config: AssistantConfig,
        transport: ChatTransport | None = None,
        log_level: str | None = None,
        reduced_motion: bool | None = None,
    ) -> None:
        super().__init__()
        self._config = config
        self._transport = transport
        self._log_level = log_level
        self._reduced_motion = reduced_motion

    @property
    def assistant(self) -> AssistantWidget:
        return self.query_one("#assistant", AssistantWidget)

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        yield AssistantWidget(
            self._config,
            self._transport,
            id="assistant",
            reduced_motion=self._reduced_motion,
        )
        yield DebugPanel(id="debug-panel")
        yield Footer()

    def on_mount(self) -> None:
        """Called when app is mounted."""
        self.register_theme(CIVIC_GREEN)
        self.theme = "civic-green"

        log_panel = self.query_one("#debug-panel", DebugPanel)
        if self._log_level is not None:
            log_panel.log_level = LogLevel.from_string(self._log_level)
            log_panel.show()
            log_panel.info("TUI", f"Log panel enabled with level: {self._log_level.upper()}")

        assistant = self.assistant
        if assistant.machine is None:
            self.sub_title = "assistant disabled"
            log_panel.info("TUI", "Assistant disabled by configuration")
            return

        assistant.machine.set_debug_callback(log_panel.route)
        self.sub_title = f"{self._config.base_url} | session {assistant.machine.session_token[:12]}..."

    def action_clear_chat(self) -> None:
        """Ask before clearing the conversation."""
        if not self.assistant.enabled:
            return

        def _on_answer(confirmed: bool | None) -> None:
            if confirmed:
                self.assistant.clear_conversation()
                self.notify("Conversation cleared", timeout=2)

        self.push_screen(
            ConfirmationScreen("Clear the conversation and start a new session?"),
            _on_answer,
        )

    def action_retry(self) -> None:
        if self.assistant.enabled:
            self.assistant.retry()

    def action_reconnect(self) -> None:
        if self.assistant.enabled:
            self.assistant.reconnect()

    def action_toggle_minimize(self) -> None:
        if self.assistant.enabled and self.assistant.expanded:
            self.assistant.toggle_minimized()

    def action_open_chat(self) -> None:
        if self.assistant.enabled:
            self.assistant.open()

    def action_close_chat(self) -> None:
        if self.assistant.enabled:
            self.assistant.close()

    def action_toggle_debug(self) -> None:
        """Toggle the log panel visibility."""
        log_panel = self.query_one("#debug-panel", DebugPanel)
        is_visible = log_panel.toggle()
        self.notify(f"Log panel {'shown' if is_visible else 'hidden'}", timeout=2)


async def run_textual_tui(
    config: AssistantConfig,
    transport: ChatTransport | None = None,
    log_level: str | None = None,
    reduced_motion: bool | None = None,
) -> None:
    """Run the Textual TUI.

    Args:
        config: Assistant configuration
        transport: Transport override (default: HTTP transport from config)
        log_level: Log level for panel (debug/info/warning/error), None to hide
        reduced_motion: Force reduced motion on/off (default: from config/terminal)
    """
    app = AssistantApp(
        config=config,
        transport=transport,
        log_level=log_level,
        reduced_motion=reduced_motion,
    )
    try:
        await app.run_async()
    except (KeyboardInterrupt, asyncio.CancelledError):
        pass
