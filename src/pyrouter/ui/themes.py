"""Colour theme for the chat window.

Hides the palette and the Textual theme variables; ChatApp registers
the theme on mount.
"""

from textual.theme import Theme

# Catppuccin Mocha palette, tuned for long transcripts
MOCHA = Theme(
    name="pyrouter-mocha",
    primary="#89b4fa",      # Blue - input and user turns
    secondary="#cba6f7",    # Mauve - assistant turns
    accent="#f9e2af",       # Yellow - pickers and highlights
    foreground="#cdd6f4",
    background="#11111b",
    success="#a6e3a1",
    warning="#fab387",      # Peach - persistence warnings
    error="#f38ba8",        # Red - inline errors
    surface="#1e1e2e",
    panel="#181825",
    dark=True,
    variables={
        "border": "#45475a",
        "border-blurred": "#313244",
        "text-muted": "#6c7086",
        "scrollbar": "#313244",
        "scrollbar-hover": "#45475a",
        "scrollbar-active": "#89b4fa",
        "scrollbar-background": "#181825",
        "footer-background": "#11111b",
        "footer-key-foreground": "#f9e2af",
        "footer-description-foreground": "#a6adc8",
        "input-selection-background": "#89b4fa 30%",
    },
)
