"""Tests for the logging bridge to the GUI log panel."""

from __future__ import annotations

import logging
import threading

from Utils.app_log import AppLogHandler, app_log, clear_app_log, set_app_log


class FakeAfter:
    """Records after() calls instead of scheduling them."""

    def __init__(self):
        self.calls: list[tuple[int, object]] = []

    def __call__(self, ms, fn):
        self.calls.append((ms, fn))


def _record(message: str) -> logging.LogRecord:
    return logging.LogRecord("test", logging.INFO, __file__, 1, message, None, None)


def test_main_thread_delivers_immediately() -> None:
    """Records from the main thread reach the panel at once."""
    seen: list[str] = []
    handler = AppLogHandler(seen.append, FakeAfter())
    handler.handle(_record("hello"))
    assert seen == ["hello"]


def test_background_thread_is_queued() -> None:
    """Records from other threads wait for drain() on the main thread."""
    seen: list[str] = []
    after = FakeAfter()
    handler = AppLogHandler(seen.append, after)

    worker = threading.Thread(target=lambda: handler.handle(_record("from worker")))
    worker.start()
    worker.join()
    assert seen == []

    handler.drain()
    assert seen == ["from worker"]
    assert after.calls == [(50, handler.drain)]


def test_closed_handler_stops_draining() -> None:
    """After close() drain() does not reschedule itself."""
    after = FakeAfter()
    handler = AppLogHandler(lambda _m: None, after)
    handler.close()
    handler.drain()
    assert after.calls == []


def test_set_and_clear_app_log() -> None:
    """set_app_log installs one handler on the root logger; clear removes it."""
    seen: list[str] = []
    after = FakeAfter()
    try:
        first = set_app_log(seen.append, after)
        second = set_app_log(seen.append, after)
        root = logging.getLogger()
        assert first not in root.handlers
        assert second in root.handlers
        assert after.calls[0] == (0, first.drain)

        logger = logging.getLogger("tests.app_log")
        logger.setLevel(logging.INFO)
        logger.info("visible")
        logger.debug("hidden")
        assert seen == ["visible"]
    finally:
        clear_app_log()
    assert second not in logging.getLogger().handlers


def test_app_log_shortcut() -> None:
    """app_log() goes through the 'app' logger."""
    seen: list[str] = []
    try:
        set_app_log(seen.append, FakeAfter())
        logging.getLogger("app").setLevel(logging.INFO)
        app_log("Playset saved")
    finally:
        clear_app_log()
    assert seen == ["Playset saved"]
