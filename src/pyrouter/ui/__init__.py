"""Textual user interface for pyrouter."""

from .app import ChatApp, run_chat_tui

__all__ = ["ChatApp", "run_chat_tui"]
