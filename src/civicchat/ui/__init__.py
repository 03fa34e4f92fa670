"""Textual widget shell for the assistant.

Module structure (each module hides a design decision):
- app.py: Application and key bindings
- widgets.py: Dialog, message list, live status, input bar, debug panel
- screens.py: Modal confirmations
- styles.py: CSS layout and styling
- themes.py: Color palette
- config.py: Widget ids, texts and limits
"""

from .app import AssistantApp, run_textual_tui
from .widgets import AssistantWidget, ChatDialog, DebugPanel, LiveStatus

__all__ = [
    "AssistantApp",
    "AssistantWidget",
    "ChatDialog",
    "DebugPanel",
    "LiveStatus",
    "run_textual_tui",
]
