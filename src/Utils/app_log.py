"""
app_log.py
Bridge from the standard logging module to the GUI log panel.

Utils modules log through logging.getLogger(__name__).  After building the
status bar the App calls set_app_log(log_fn, after_fn), which installs an
AppLogHandler on the root logger so those records show up in the panel.

Thread safety: records emitted from a background thread (e.g. a playset save)
are put on a queue and drained on the main thread via a periodic after()
callback.  Records emitted on the main thread are delivered immediately.
"""

from __future__ import annotations

import logging
import queue
import threading
from typing import Callable

_DRAIN_INTERVAL_MS = 50

_handler: "AppLogHandler | None" = None


class AppLogHandler(logging.Handler):
    """Forward formatted log records to a GUI callback on the main thread."""

    def __init__(self, log_fn: Callable[[str], None], after_fn: Callable,
                 level: int = logging.INFO):
        super().__init__(level)
        self._log_fn = log_fn
        self._after_fn = after_fn
        self._main_thread_id = threading.current_thread().ident
        self._queue: queue.Queue[str] = queue.Queue()
        self._closed = False
        self.setFormatter(logging.Formatter("%(message)s"))

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = self.format(record)
            if threading.current_thread().ident == self._main_thread_id:
                self._log_fn(message)
            else:
                self._queue.put_nowait(message)
        except Exception:
            self.handleError(record)

    def drain(self) -> None:
        """Run on main thread: deliver queued messages, then reschedule."""
        while True:
            try:
                message = self._queue.get_nowait()
            except queue.Empty:
                break
            try:
                self._log_fn(message)
            except Exception:
                # The panel may be mid-teardown; drop the message.
                pass
        if not self._closed:
            self._after_fn(_DRAIN_INTERVAL_MS, self.drain)

    def close(self) -> None:
        self._closed = True
        super().close()


def set_app_log(log_fn: Callable[[str], None], after_fn: Callable,
                level: int = logging.INFO) -> AppLogHandler:
    """Register the GUI log function and a main-thread runner (e.g. app.after)."""
    global _handler
    root = logging.getLogger()
    if _handler is not None:
        root.removeHandler(_handler)
        _handler.close()
    _handler = AppLogHandler(log_fn, after_fn, level)
    root.addHandler(_handler)
    after_fn(0, _handler.drain)
    return _handler


def clear_app_log() -> None:
    """Detach the GUI handler (called when the main window is destroyed)."""
    global _handler
    if _handler is not None:
        logging.getLogger().removeHandler(_handler)
        _handler.close()
        _handler = None


def app_log(message: str) -> None:
    """Shortcut for user-facing status messages."""
    logging.getLogger("app").info(message)
