"""Bridge from the ``logging`` module into the in-app log panel."""

import logging
import threading

from textual.app import App

from .widgets import DebugPanel


class PanelLogHandler(logging.Handler):
    """Writes log records to a ``DebugPanel``.

    Records emitted from worker threads (file I/O runs in threads) are
    marshalled onto the app's event loop.
    """

    def __init__(self, app: App, panel: DebugPanel, level: int = logging.DEBUG) -> None:
        super().__init__(level)
        self._app = app
        self._panel = panel
        self._thread_id = threading.get_ident()

    def emit(self, record: logging.LogRecord) -> None:
        try:
            if threading.get_ident() == self._thread_id:
                self._panel.write_record(record)
            else:
                self._app.call_from_thread(self._panel.write_record, record)
        except Exception:
            self.handleError(record)
