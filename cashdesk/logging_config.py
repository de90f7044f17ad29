"""Logging setup for the cashdesk service."""

import logging
import sys
import threading

_LOGGER_PREFIX = "cashdesk"
_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_configured = False
_lock = threading.Lock()


def configure_logging(level=logging.INFO, stream=None, handler: logging.Handler = None) -> None:
    """Attach a single handler to the ``cashdesk`` logger hierarchy (idempotent)."""
    global _configured
    with _lock:
        if _configured:
            return
        _configured = True

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    root_logger = logging.getLogger(_LOGGER_PREFIX)
    root_logger.setLevel(level)

    h = handler if handler is not None else logging.StreamHandler(stream or sys.stderr)
    h.setFormatter(logging.Formatter(_FORMAT))
    root_logger.addHandler(h)


def reset_logging() -> None:
    """Drop handlers and let configure_logging run again. Used by tests."""
    global _configured
    with _lock:
        _configured = False
    logger = logging.getLogger(_LOGGER_PREFIX)
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
