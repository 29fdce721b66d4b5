"""
Logging for HealthScribe.

Every message goes to two places:
- debug_flow.txt, a plain trace of the whole run (one line per event)
- the 'HealthScribe' stdlib logger, which writes logs/processing.log and,
  in DEBUG_MODE or with the CLI --verbose flag, stderr

Components import the helpers rather than creating their own loggers:
    from healthscribe.logging_config import debug_log, info, warning, error, Timer

Messages carry a bracketed component prefix, e.g. "[MetricsExtractor] ...".
"""

import logging
import sys
import threading
import time
from datetime import datetime

from healthscribe.config import (
    DEBUG_FLOW_FILE,
    DEBUG_MODE,
    LOG_DATE_FORMAT,
    LOG_FILE,
    LOG_FORMAT,
)

# =============================================================================
# debug_flow.txt
# =============================================================================

class _FlowTrace:
    """
    Process-wide writer for debug_flow.txt.

    Opened once on first use. Source extraction runs on worker threads, so
    writes go through a lock. If the log directory is not writable the
    trace is silently disabled; the stdlib logger still works.
    """

    _instance = None
    _handle = None
    _lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._open()
        return cls._instance

    @classmethod
    def _open(cls):
        try:
            cls._handle = open(DEBUG_FLOW_FILE, 'w', encoding='utf-8')
        except OSError:
            cls._handle = None
            return
        cls._handle.write(f"=== HealthScribe trace, started {datetime.now().isoformat()} ===\n")
        cls._handle.write(f"DEBUG_MODE={DEBUG_MODE}\n\n")
        cls._handle.flush()

    def write(self, message: str):
        stamp = datetime.now().strftime("%H:%M:%S.%f")[:-3]
        with self._lock:
            if self._handle:
                self._handle.write(f"[{stamp}] {message}\n")
                self._handle.flush()

    def close(self):
        with self._lock:
            if self._handle:
                self._handle.write(f"\n=== ended {datetime.now().isoformat()} ===\n")
                self._handle.close()
                type(self)._handle = None


_trace = _FlowTrace()


# =============================================================================
# 'HealthScribe' stdlib logger
# =============================================================================

def _build_logger() -> logging.Logger:
    logger = logging.getLogger('HealthScribe')
    logger.setLevel(logging.DEBUG if DEBUG_MODE else logging.INFO)
    if logger.handlers:
        return logger

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    try:
        file_handler = logging.FileHandler(LOG_FILE, encoding='utf-8')
    except OSError:
        file_handler = None
    if file_handler is not None:
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if DEBUG_MODE:
        console = logging.StreamHandler(sys.stderr)
        console.setLevel(logging.DEBUG)
        console.setFormatter(formatter)
        logger.addHandler(console)

    return logger


_logger = _build_logger()


def set_console_level(verbose: bool) -> None:
    """
    Route log output to the current stderr for a CLI run.

    Any previous console handler is dropped without touching its stream,
    which may already be closed (e.g. a finished in-process CLI run).

    Args:
        verbose: Show debug messages; otherwise only warnings and errors
    """
    level = logging.DEBUG if verbose else logging.WARNING
    for old in [h for h in _logger.handlers if type(h) is logging.StreamHandler]:
        _logger.removeHandler(old)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    handler.setLevel(level)
    _logger.addHandler(handler)
    if verbose:
        _logger.setLevel(logging.DEBUG)


# =============================================================================
# Timing
# =============================================================================

class Timer:
    """
    Times a block and logs how long it took.

    Usage:
        with Timer("Report synthesis") as timer:
            ...
        timing["synthesis"] = timer.get_duration_ms()
    """

    def __init__(self, operation_name: str, auto_log: bool = True):
        self.operation_name = operation_name
        self.auto_log = auto_log
        self.start_time: float | None = None
        self.duration_ms: float | None = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration_ms = (time.perf_counter() - self.start_time) * 1000
        if self.auto_log:
            outcome = "failed after" if exc_type else "took"
            if self.duration_ms < 1000:
                debug_log(f"{self.operation_name} {outcome} {self.duration_ms:.0f} ms")
            else:
                debug_log(f"{self.operation_name} {outcome} {self.duration_ms / 1000:.1f} seconds")
        return False

    def get_duration_ms(self) -> float:
        """Elapsed milliseconds; raises ValueError if the block has not exited."""
        if self.duration_ms is None:
            raise ValueError(f"Timer '{self.operation_name}' has not finished")
        return self.duration_ms


# =============================================================================
# Public helpers
# =============================================================================

def debug_log(message: str):
    """Trace-level message: always in debug_flow.txt, console only when verbose."""
    _trace.write(message)
    _logger.debug(message)


def info(message: str):
    _trace.write(f"[INFO] {message}")
    _logger.info(message)


def warning(message: str):
    _trace.write(f"[WARNING] {message}")
    _logger.warning(message)


def error(message: str, exc_info: bool = False):
    """
    Log an error.

    Args:
        message: The error message
        exc_info: Attach the active traceback (only honoured in DEBUG_MODE)
    """
    _trace.write(f"[ERROR] {message}")
    _logger.error(message, exc_info=exc_info and DEBUG_MODE)


def close_debug_log():
    """Finish debug_flow.txt. Later messages still reach the stdlib logger."""
    _trace.close()


__all__ = [
    'debug_log',
    'info',
    'warning',
    'error',
    'close_debug_log',
    'set_console_level',
    'Timer',
    'DEBUG_MODE',
]
