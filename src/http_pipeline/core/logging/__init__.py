"""
Logging system for HTTP Pipeline.

Example:
    >>> from http_pipeline.core.logging import LoggingConfig, configure_logging
    >>> configure_logging(LoggingConfig.create(level="DEBUG", format="colored"))
"""

from .config import LoggingConfig, LogLevel, LogFormat
from .logger import configure_logging, reset_logging, ROOT_LOGGER_NAME
from .formatters import JSONFormatter, TextFormatter, ColoredFormatter, get_formatter
from .filters import (
    CorrelationIdFilter,
    ExtraFieldsFilter,
    set_correlation_id,
    reset_correlation_id,
    get_correlation_id,
)

__all__ = [
    # Config
    "LoggingConfig",
    "LogLevel",
    "LogFormat",
    # Setup
    "configure_logging",
    "reset_logging",
    "ROOT_LOGGER_NAME",
    # Formatters
    "JSONFormatter",
    "TextFormatter",
    "ColoredFormatter",
    "get_formatter",
    # Filters
    "CorrelationIdFilter",
    "ExtraFieldsFilter",
    "set_correlation_id",
    "reset_correlation_id",
    "get_correlation_id",
]
