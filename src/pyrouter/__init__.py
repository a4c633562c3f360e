"""
pyrouter: a terminal client for the OpenRouter chat API.

Each sub-package hides one design decision: the transport (llm), the chat
session logic (chat), persistence (memory), settings (config), and the
terminal interface (ui, cli).
"""

__version__ = "0.1.0"
