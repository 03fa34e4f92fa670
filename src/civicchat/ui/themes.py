"""Theme definitions for the assistant shell.

This module hides the design decisions about:
- Color palettes and visual appearance
- Theme variables (borders, scrollbars, etc.)
- Dark/light mode configuration

To add a new theme, define it here and register in the app.
"""

from textual.theme import Theme

# Municipal green on a dark slate base, high contrast for readability
CIVIC_GREEN = Theme(
    name="civic-green",
    primary="#4caf7d",      # Civic green - main accent
    secondary="#7fb3d5",    # Harbor blue - assistant replies
    accent="#f2c14e",       # Signal yellow - highlights
    foreground="#e6ebe8",
    background="#0f1614",
    success="#6fcf97",
    warning="#f2994a",
    error="#eb5757",
    surface="#18221f",
    panel="#131c19",
    dark=True,
    variables={
        "block-cursor-foreground": "#0f1614",
        "block-cursor-background": "#e6ebe8",
        "block-cursor-text-style": "bold",
        "block-hover-background": "#24312d 20%",

        "input-cursor-background": "#e6ebe8",
        "input-cursor-foreground": "#0f1614",
        "input-selection-background": "#4caf7d 30%",

        "border": "#2f3f3a",
        "border-blurred": "#24312d",

        "scrollbar": "#24312d",
        "scrollbar-hover": "#2f3f3a",
        "scrollbar-active": "#4caf7d",
        "scrollbar-background": "#131c19",
        "scrollbar-corner-color": "#131c19",

        "footer-foreground": "#c5d0cb",
        "footer-background": "#0f1614",
        "footer-key-foreground": "#f2c14e",
        "footer-key-background": "#24312d",
        "footer-description-foreground": "#a3b1ab",

        # Muted text keeps a 4.5:1 ratio against the panel
        "text-muted": "#8fa39b",
        "text-disabled": "#4d5f59",
        "text-success": "#6fcf97",
        "text-warning": "#f2994a",
        "text-error": "#ff8a80",
        "text-primary": "#4caf7d",
        "text-secondary": "#7fb3d5",
        "text-accent": "#f2c14e",

        "button-foreground": "#e6ebe8",
        "button-color-foreground": "#0f1614",
        "button-focus-text-style": "bold reverse",
    },
)
