"""
Process-wide sink for unexpected (non-domain) errors.

The sink is replaced with ``set_error_logger`` during startup, before the
app starts serving. Readers take one reference per event, so no locking
is used.
"""

import logging
from typing import Any, Callable, Optional

logger = logging.getLogger("rapidroute.errors")

ErrorLoggerFn = Callable[[str, Optional[Any]], None]


def default_error_logger(message: str, err: Optional[Any] = None) -> None:
    """Log through the ``rapidroute.errors`` logger."""
    if isinstance(err, BaseException):
        logger.error(message, exc_info=(type(err), err, err.__traceback__))
    else:
        logger.error(message, extra={"error_detail": repr(err)})


_error_logger: ErrorLoggerFn = default_error_logger


def set_error_logger(fn: Optional[ErrorLoggerFn]) -> None:
    """Specify a sink for critical errors. ``None`` restores the default."""
    global _error_logger
    _error_logger = fn if fn is not None else default_error_logger


def get_error_logger() -> ErrorLoggerFn:
    return _error_logger


def log_unexpected(message: str, err: Optional[Any] = None) -> None:
    """Report an unexpected error to the configured sink."""
    sink = _error_logger
    try:
        sink(message, err)
    except Exception:
        # The response is already decided; a broken sink must not change it.
        logger.exception(
            "Configured error logger failed",
            extra={"original_message": message, "error_detail": repr(err)},
        )
