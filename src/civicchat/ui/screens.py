"""Modal screens for the assistant shell.

Hides:
- How a destructive action is confirmed (y/n keys, escape cancels)
- Layout of the confirmation box
"""

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Static


class ConfirmationScreen(ModalScreen[bool]):
    """Yes/no confirmation for destructive actions such as clearing the chat."""

    CSS = """
    ConfirmationScreen {
        align: center middle;
        background: $background 70%;
    }

    #confirm-box {
        width: 56;
        height: auto;
        border: round $warning;
        background: $panel;
        padding: 1;
    }

    #confirm-title {
        width: 100%;
        height: auto;
        text-style: bold;
        color: $warning;
    }

    #confirm-prompt {
        width: 100%;
        height: auto;
        padding: 1 0;
    }

    #confirm-actions {
        height: 3;
        align: right middle;
    }

    #confirm-actions Button {
        margin: 0 0 0 1;
    }
    """

    BINDINGS = [
        Binding("y", "confirm_yes", "Yes", show=False),
        Binding("n", "confirm_no", "No", show=False),
        Binding("escape", "confirm_no", "Cancel", show=False),
    ]

    def __init__(self, prompt: str, title: str = "Please confirm") -> None:
        super().__init__()
        self._prompt = prompt
        self._title = title

    def compose(self) -> ComposeResult:
        with Vertical(id="confirm-box"):
            yield Static(self._title, id="confirm-title")
            yield Static(self._prompt, id="confirm-prompt")
            with Horizontal(id="confirm-actions"):
                yield Button("Yes, clear", id="btn-yes", variant="warning")
                yield Button("Keep", id="btn-no")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        event.stop()
        self.dismiss(event.button.id == "btn-yes")

    def action_confirm_yes(self) -> None:
        self.dismiss(True)

    def action_confirm_no(self) -> None:
        self.dismiss(False)
