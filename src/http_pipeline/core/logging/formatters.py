"""
Log formatters: JSON, plain text and colored text.

Stages attach structured fields with ``extra=`` (method, url, status_code,
duration_ms, correlation_id, retry_attempt, ...). JSON output keeps them
as keys; text output prints the correlation id as its own column and the
rest as ``key=value`` pairs, pipeline fields first.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict

# Standard LogRecord attributes that are not "extra" fields
_RESERVED_FIELDS = frozenset({
    'name', 'msg', 'args', 'created', 'filename', 'funcName',
    'levelname', 'levelno', 'lineno', 'module', 'msecs',
    'message', 'pathname', 'process', 'processName', 'relativeCreated',
    'thread', 'threadName', 'exc_info', 'exc_text', 'stack_info',
    'asctime', 'taskName',
})

# Fields written by the stages, in display order
PIPELINE_FIELDS = (
    "method",
    "url",
    "status_code",
    "duration_ms",
    "retry_attempt",
    "served_from_cache",
    "served_from_in_flight",
)


def extra_fields(record: logging.LogRecord) -> Dict[str, Any]:
    """Non-standard attributes of a record, pipeline fields first."""
    found = {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RESERVED_FIELDS and not key.startswith('_')
    }
    ordered = {key: found.pop(key) for key in PIPELINE_FIELDS if key in found}
    ordered.update(found)
    return ordered


class JSONFormatter(logging.Formatter):
    """
    One JSON object per record.

    Example output:
        {"timestamp": "2024-01-15T10:30:45.123000+00:00", "level": "INFO",
         "logger": "http_pipeline.stages.logging_stage", "message": "...",
         "method": "GET", "status_code": 200, "duration_ms": 12.5}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        log_data.update(extra_fields(record))

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class TextFormatter(logging.Formatter):
    """
    [timestamp] [level] [logger] [correlation_id] message key=value ...

    The correlation id column is omitted for records without one.
    """

    def __init__(self):
        super().__init__(
            fmt='[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

    def format(self, record: logging.LogRecord) -> str:
        fields = extra_fields(record)
        correlation_id = fields.pop("correlation_id", None)

        original_msg, original_args = record.msg, record.args
        if correlation_id:
            record.msg, record.args = f"[{correlation_id}] {record.getMessage()}", None
        try:
            line = super().format(record)
        finally:
            record.msg, record.args = original_msg, original_args

        pairs = " ".join(f"{key}={value}" for key, value in fields.items() if value is not None)
        return f"{line} {pairs}" if pairs else line


class ColoredFormatter(TextFormatter):
    """TextFormatter with ANSI-colored level names for terminals."""

    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[1;31m', # Bold Red
    }
    RESET = '\033[0m'

    def format(self, record: logging.LogRecord) -> str:
        levelname = record.levelname
        if levelname in self.COLORS:
            record.levelname = f"{self.COLORS[levelname]}{levelname}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = levelname


_FORMATTERS = {
    "json": JSONFormatter,
    "text": TextFormatter,
    "colored": ColoredFormatter,
}


def get_formatter(format_type: str) -> logging.Formatter:
    """
    Formatter instance by name (json, text, colored).

    Raises:
        ValueError: Unknown format type
    """
    formatter_class = _FORMATTERS.get(format_type.lower())
    if formatter_class is None:
        raise ValueError(
            f"Unknown format type: {format_type}. "
            f"Available: {', '.join(_FORMATTERS)}"
        )
    return formatter_class()
