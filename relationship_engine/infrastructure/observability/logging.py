"""
Structured logging setup for the contact insight engine.

JSON-formatted structlog output routed through a bounded queue so that a
log call never blocks or raises into the code that emitted it.
"""

import logging
import logging.handlers
import queue
import sys
from typing import Any

import structlog
from structlog.stdlib import LoggerFactory

_listener: logging.handlers.QueueListener | None = None


class _DroppingQueueHandler(logging.handlers.QueueHandler):
    """QueueHandler that discards records instead of reporting failures."""

    def handleError(self, record: logging.LogRecord) -> None:
        return None


def setup_logging(log_level: str = "INFO", queue_size: int = 10_000) -> None:
    """
    Configure structured logging with JSON output.

    Records are handed to a bounded queue and written to stdout by a
    background listener thread. A full queue drops the record.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        queue_size: Maximum number of records waiting to be written
    """
    global _listener

    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            _add_trace_context,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )

    shutdown_logging()

    # Logging must never become a failure source for the engine.
    logging.raiseExceptions = False

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(logging.Formatter("%(message)s"))

    record_queue: queue.Queue = queue.Queue(maxsize=queue_size)
    queue_handler = _DroppingQueueHandler(record_queue)

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    root.addHandler(queue_handler)
    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    _listener = logging.handlers.QueueListener(
        record_queue, stream_handler, respect_handler_level=False
    )
    _listener.start()

    # Suppress noisy third-party loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)
    logging.getLogger("psycopg.pool").setLevel(logging.WARNING)


def shutdown_logging() -> None:
    """Stop the background listener, flushing queued records."""
    global _listener
    if _listener is None:
        return
    try:
        _listener.stop()
    except Exception:
        pass
    _listener = None


def _add_trace_context(logger, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Add trace context to log entries if available."""
    return event_dict


def get_logger(name: str = None) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


def mask_email(email: str | None) -> str | None:
    """Mask an email address for log output (first three characters kept)."""
    if not email:
        return email
    return f"{email[:3]}***"


def mask_id(value: str | None) -> str | None:
    """Shorten an identifier for log output."""
    if not value:
        return value
    return f"{value[:8]}..."
