"""CSS styles for the assistant shell.

Hides layout and styling decisions from the application logic.
Uses Textual CSS features: nesting, pseudo-classes, variables.

Design Philosophy:
- The dialog sits above a backdrop layer; the live status line is docked
  below everything and never hidden
- Reduced motion swaps the translucent backdrop for a solid one
- Message roles are told apart by accent color, delivery state by style
"""

APP_CSS = """
/* ============================================
   CSS Variables - Design Tokens
   ============================================ */
$panel-border: tall $border;
$panel-border-focus: tall $primary;

/* ============================================
   Main Screen Layout
   ============================================ */
Screen {
    layout: vertical;
    background: $background;
}

/* ============================================
   Assistant Widget - Layered Host
   ============================================ */
AssistantWidget {
    height: 1fr;
    layers: backdrop dialog;
}

#chat-backdrop {
    layer: backdrop;
    width: 100%;
    height: 100%;

    &.-solid {
        background: $background 90%;
    }

    &.-blurred {
        background: $primary 10%;
        tint: $background 40%;
    }
}

/* ============================================
   Dialog
   ============================================ */
#chat-widget {
    layer: dialog;
    width: 100%;
    height: 1fr;
    margin: 1 2;
    background: $panel;
    border: round $primary 60%;

    &:focus-within {
        border: round $primary;
    }
}

#chat-header {
    height: 3;
    padding: 0 1;
    background: $primary 15%;
}

#chat-title-block {
    width: 1fr;
    height: 3;
}

#chat-widget-title {
    color: $primary;
    text-style: bold;
}

#chat-connection {
    color: $text-muted;

    &.-online {
        color: $success;
    }

    &.-busy {
        color: $accent;
    }

    &.-offline {
        color: $error;
    }
}

#minimize-btn, #close-btn {
    width: 5;
    min-width: 5;
    margin: 0 0 0 1;
}

#chat-content {
    height: 1fr;
}

#chat-widget-instructions {
    height: auto;
    padding: 0 1;
    color: $text-muted;
}

/* ============================================
   Error Bar - Notice + Retry Affordance
   ============================================ */
#chat-error-bar {
    height: 3;
    padding: 0 1;
    background: $error 12%;
}

#chat-error-text {
    width: 1fr;
    height: 3;
    content-align: left middle;
    color: $text-error;
}

#retry-btn, #dismiss-error-btn {
    width: 12;
    margin: 0 0 0 1;
}

/* ============================================
   Message List
   ============================================ */
#chat-history {
    height: 1fr;
    background: $panel;
    border: round $primary 40%;
    border-title-color: $primary;
    border-title-style: bold;
    border-title-align: left;
    border-subtitle-color: $text-muted;
    border-subtitle-align: right;
    padding: 0 1;
    scrollbar-gutter: stable;

    &:focus {
        border: round $primary;
    }
}

.chat-message {
    width: 100%;
    height: auto;
    margin: 0 0 1 0;
    padding: 1 2;
    border: none;
    background: transparent;

    &.-pending {
        opacity: 70%;
    }

    &.-failed {
        border-left: tall $error;

        & .message-header {
            color: $error;
        }
    }
}

.user-message {
    border-left: tall $success;
    background: $success 8%;

    & .message-header {
        color: $success;
        text-style: bold;
    }
}

.assistant-message {
    border-left: tall $secondary;
    background: $secondary 8%;

    & .message-header {
        color: $secondary;
        text-style: bold;
    }
}

.system-message {
    border-left: tall $warning;
    background: $warning 8%;

    & .message-header {
        color: $warning;
        text-style: bold;
    }
}

.message-header {
    height: auto;
    padding: 0;
}

.message-content {
    height: auto;
    padding: 0;
    margin: 0;
    color: $foreground;
}

.message-feedback {
    height: 3;
    margin-top: 1;

    & Button {
        margin: 0 1 0 0;
    }
}

/* ============================================
   Chat Input Bar - Text Entry + Send
   ============================================ */
ChatInputBar {
    height: 5;
    border: round $primary 60%;
    background: $panel;

    &:focus-within {
        border: round $primary;
    }
}

#chat-input {
    width: 1fr;
    height: 100%;
    border: none;
    padding: 0 1;
    background: transparent;

    &:focus {
        background: transparent;
    }
}

#send-btn {
    width: 10;
    height: 100%;
    margin: 0 0 0 1;
    min-width: 8;
}

#chat-safe-area-spacer {
    height: 1;
}

/* ============================================
   Launcher and Live Status
   ============================================ */
#chat-fab {
    layer: dialog;
    dock: bottom;
    margin: 0 0 1 2;

    &.-new-message {
        background: $accent;
        border: tall $accent;
    }
}

#chat-live-status {
    layer: dialog;
    dock: bottom;
    height: 1;
    padding: 0 1;
    color: $text-muted;
    background: $surface;
}

/* ============================================
   Debug/Log Panel
   ============================================ */
#debug-panel {
    height: auto;
    min-height: 6;
    max-height: 14;
    background: $panel;
    border: round $warning 60%;
    border-title-color: $warning;
    border-title-style: bold;
    border-title-align: left;
    border-subtitle-color: $text-muted;
    border-subtitle-align: right;
    padding: 0 1;
    overflow-y: scroll;
    overflow-x: auto;
    scrollbar-gutter: stable;

    &:focus {
        border: round $warning;
    }
}

/* ============================================
   Shared Chrome
   ============================================ */
Tooltip {
    background: $panel;
    color: $foreground;
    border: tall $border;
    padding: 0 1;
}

Toast {
    background: $surface;
    border: tall $border;
    padding: 0 1;

    &.-information {
        border: tall $primary;
        background: $primary 12%;
    }

    &.-error {
        border: tall $error;
        background: $error 12%;
    }

    &.-warning {
        border: tall $warning;
        background: $warning 12%;
    }
}

* {
    scrollbar-background: $panel;
    scrollbar-color: $surface-lighten-1;
    scrollbar-color-hover: $primary 50%;
    scrollbar-color-active: $primary;
    scrollbar-size: 1 1;
}

Header {
    background: $panel;
    color: $foreground;
    dock: top;
    height: 1;
}

Footer {
    background: $panel;
    height: auto;
}

Button {
    min-width: 8;
    height: 3;
    border: tall $border;
    background: $surface;
    color: $foreground;

    &:hover {
        text-style: bold;
        background: $surface-lighten-1;
    }

    &:focus {
        border: tall $primary;
    }
}

Button.-success {
    background: $success;
    color: $background;
    border: tall $success;

    &:hover {
        background: $success-lighten-1;
    }
}

Button.-error {
    background: $error;
    color: $background;
    border: tall $error;

    &:hover {
        background: $error-lighten-1;
    }
}

Button.-warning {
    background: $warning;
    color: $background;
    border: tall $warning;

    &:hover {
        background: $warning-lighten-1;
    }
}
"""
