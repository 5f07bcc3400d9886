"""
Logging configuration for Barista.

Configures structured logging with automatic request trace ID injection.
Every log line includes the correlation ID from the request context.
"""

import logging

from barista.core.context import get_request_id


class RequestIdFilter(logging.Filter):
    """Logging filter that injects the request trace ID into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Add request_id attribute to the log record from context."""
        record.request_id = get_request_id()  # type: ignore[attr-defined]
        return True


def configure_logging(level: str = "INFO") -> None:
    """Configure logging with trace ID injection for all handlers.

    Sets up a console handler with a format that includes the request
    trace ID on every log line. Applies the RequestIdFilter on the handler
    so records from every logger get the trace ID.
    """
    log_format = "[%(asctime)s] [%(levelname)s] [%(request_id)s] %(name)s: %(message)s"
    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Remove existing handlers to avoid duplicates on repeated calls
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(logging.Formatter(log_format))
    console_handler.addFilter(RequestIdFilter())

    root_logger.addHandler(console_handler)
