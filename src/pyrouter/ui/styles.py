"""CSS styles for the TUI.

Hides layout and styling decisions from the application logic.
Uses Textual CSS features: nesting, pseudo-classes, variables.

Layout, top to bottom: transcript, autocomplete list, status line, input
box, optional log panel.
"""

APP_CSS = """
/* ============================================
   Main Screen Layout
   ============================================ */
Screen {
    layout: vertical;
    background: $background;
}

/* ============================================
   Transcript
   ============================================ */
#chat-history {
    height: 1fr;
    background: $panel;
    border: round $primary 60%;
    border-title-color: $primary;
    border-title-style: bold;
    border-title-align: left;
    border-subtitle-color: $text-muted;
    border-subtitle-align: right;
    padding: 0 1;
    scrollbar-gutter: stable;

    &:focus-within {
        border: round $primary;
    }
}

.chat-message {
    width: 100%;
    height: auto;
    margin: 0 0 1 0;
    padding: 0 1;
    background: transparent;
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

/* Reply still being generated */
.streaming-message {
    border-left: tall $warning;
    background: $warning 6%;

    & .message-header {
        color: $warning;
        text-style: bold italic;
    }
}

.message-header {
    height: auto;
}

.message-content {
    height: auto;
    color: $foreground;
}

/* ============================================
   Autocomplete
   ============================================ */
#autocomplete {
    height: auto;
    max-height: 8;
    margin: 0 1;
    background: $surface;
    border: round $accent 60%;
    display: none;

    &.-visible {
        display: block;
    }
}

/* ============================================
   Status Line
   ============================================ */
#status-line {
    height: 1;
    padding: 0 2;
    background: $surface;
    color: $text-muted;

    &.-streaming {
        color: $warning;
    }

    &.-error {
        color: $error;
        text-style: bold;
    }

    &.-pending {
        color: $accent;
        text-style: bold;
    }
}

/* ============================================
   Input Box
   ============================================ */
#prompt {
    height: auto;
    min-height: 3;
    max-height: 10;
    border: round $primary 60%;
    background: $panel;
    padding: 0 1;

    &:focus {
        border: round $primary;
    }

    &.-read-only {
        border: round $border;
        color: $text-muted;
    }
}

/* ============================================
   Log Panel
   ============================================ */
#debug-panel {
    height: auto;
    min-height: 6;
    max-height: 12;
    background: $panel;
    border: round $warning 60%;
    border-title-color: $warning;
    border-title-style: bold;
    border-subtitle-color: $text-muted;
    border-subtitle-align: right;
    padding: 0 1;
    overflow-x: auto;
}

/* ============================================
   Pickers
   ============================================ */
PickerScreen {
    align: center middle;
    background: $background 70%;
}

#picker-dialog {
    width: 90%;
    max-width: 110;
    height: 80%;
    border: tall $accent;
    background: $surface;
    padding: 1 2;
}

#picker-title {
    width: 100%;
    text-align: center;
    text-style: bold;
    color: $accent;
    padding: 0 0 1 0;
    border-bottom: solid $border;
}

#picker-filter {
    margin: 1 0;
}

#picker-list {
    height: 1fr;
}

#picker-status {
    height: auto;
    color: $text-muted;
    padding: 1 0 0 0;
}

OptionList {
    background: $surface;
    border: tall $border;
    padding: 0 1;
}

OptionList > .option-list--option-highlighted {
    background: $primary 20%;
}

/* ============================================
   Chrome
   ============================================ */
Header {
    background: $panel;
    color: $foreground;
    height: 1;
}

HeaderTitle {
    color: $primary;
    text-style: bold;
}

Footer {
    background: $panel;
}

Markdown {
    margin: 0;
    padding: 0;
}

MarkdownFence {
    background: $panel;
    border: round $border;
    margin: 1 0;
}
"""
