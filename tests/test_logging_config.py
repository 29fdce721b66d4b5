"""
Tests for the logging helpers.

Covers console re-routing between CLI runs and the Timer context manager.
"""

import io
import logging
import sys

import pytest

from healthscribe.logging_config import Timer, set_console_level, warning


def _console_handlers():
    logger = logging.getLogger('HealthScribe')
    return [h for h in logger.handlers if type(h) is logging.StreamHandler]


class TestSetConsoleLevel:
    """set_console_level() attaches a handler on the current stderr."""

    def test_previous_stream_already_closed(self, monkeypatch):
        """A stderr closed after an earlier run is dropped, not flushed."""
        earlier = io.StringIO()
        monkeypatch.setattr(sys, "stderr", earlier)
        set_console_level(False)
        earlier.close()

        current = io.StringIO()
        monkeypatch.setattr(sys, "stderr", current)
        set_console_level(False)
        warning("[Test] routed to the new stderr")

        assert "[Test] routed to the new stderr" in current.getvalue()
        assert len(_console_handlers()) == 1

    def test_quiet_mode_hides_debug(self, monkeypatch):
        current = io.StringIO()
        monkeypatch.setattr(sys, "stderr", current)
        set_console_level(False)

        assert _console_handlers()[0].level == logging.WARNING


class TestTimer:
    """Timer measures the wrapped block."""

    def test_duration_available_after_exit(self):
        with Timer("Report synthesis", auto_log=False) as timer:
            pass
        assert timer.get_duration_ms() >= 0

    def test_duration_before_exit_raises(self):
        with pytest.raises(ValueError):
            Timer("Metric extraction").get_duration_ms()

    def test_exceptions_propagate(self):
        with pytest.raises(RuntimeError):
            with Timer("Metric extraction") as timer:
                raise RuntimeError("oracle down")
        assert timer.duration_ms is not None
