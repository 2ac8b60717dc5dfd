"""
Log filters for correlation ids and static fields.

The correlation id lives in a ContextVar, so every asyncio task sees the
id of the request it is currently serving.
"""

import logging
from contextvars import ContextVar, Token
from typing import Dict, Any, Optional


_correlation_id: ContextVar[Optional[str]] = ContextVar("http_pipeline_correlation_id", default=None)


def set_correlation_id(correlation_id: Optional[str]) -> Token:
    """
    Set correlation ID for the current context.

    Returns:
        Token that can be passed to reset_correlation_id()

    Example:
        >>> token = set_correlation_id("req-12345")
        >>> logger.info("Processing request")  # record gets correlation_id
        >>> reset_correlation_id(token)
    """
    return _correlation_id.set(correlation_id)


def reset_correlation_id(token: Token) -> None:
    """Restore the correlation ID that was active before set_correlation_id()."""
    _correlation_id.reset(token)


def get_correlation_id() -> Optional[str]:
    """Get correlation ID for the current context (None if not set)."""
    return _correlation_id.get()


class CorrelationIdFilter(logging.Filter):
    """
    Adds the current correlation ID to log records.

    Records that already carry ``correlation_id`` (passed via ``extra``)
    are left alone.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        correlation_id = get_correlation_id()
        if correlation_id and not hasattr(record, "correlation_id"):
            record.correlation_id = correlation_id
        return True


class ExtraFieldsFilter(logging.Filter):
    """
    Adds static fields (service, environment, ...) to all log records.

    Example:
        >>> handler.addFilter(ExtraFieldsFilter({"service": "billing"}))
    """

    def __init__(self, extra_fields: Dict[str, Any]):
        super().__init__()
        self.extra_fields = extra_fields

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in self.extra_fields.items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True
