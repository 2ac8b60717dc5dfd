"""
Setup of the ``http_pipeline`` logger hierarchy.

Stages log through module loggers (``logging.getLogger(__name__)``);
configure_logging() decides where those records end up.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List

from .config import LoggingConfig
from .filters import CorrelationIdFilter, ExtraFieldsFilter
from .formatters import get_formatter

ROOT_LOGGER_NAME = "http_pipeline"

# Handlers installed by configure_logging(), removed on reconfiguration
_installed_handlers: List[logging.Handler] = []


def _build_filters(config: LoggingConfig) -> List[logging.Filter]:
    filters: List[logging.Filter] = []
    if config.enable_correlation_id:
        filters.append(CorrelationIdFilter())
    if config.extra_fields:
        filters.append(ExtraFieldsFilter(config.extra_fields))
    return filters


def _build_handlers(config: LoggingConfig) -> List[logging.Handler]:
    level = config.level_no
    formatter = get_formatter(config.format.value)
    handlers: List[logging.Handler] = []

    if config.enable_console:
        handlers.append(logging.StreamHandler(sys.stdout))

    if config.file_path:
        Path(config.file_path).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(RotatingFileHandler(
            filename=config.file_path,
            maxBytes=config.max_bytes,
            backupCount=config.backup_count,
            encoding='utf-8'
        ))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        for log_filter in _build_filters(config):
            handler.addFilter(log_filter)

    return handlers


def configure_logging(config: LoggingConfig) -> logging.Logger:
    """
    Route ``http_pipeline`` records according to config.

    Replaces handlers installed by a previous call; handlers added by the
    application itself are kept.

    Example:
        >>> logger = configure_logging(LoggingConfig.create(level="DEBUG", format="json"))
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    reset_logging()

    logger.setLevel(config.level_no)
    for handler in _build_handlers(config):
        logger.addHandler(handler)
        _installed_handlers.append(handler)

    return logger


def reset_logging() -> None:
    """Close and remove handlers installed by configure_logging()."""
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    while _installed_handlers:
        handler = _installed_handlers.pop()
        logger.removeHandler(handler)
        handler.close()
