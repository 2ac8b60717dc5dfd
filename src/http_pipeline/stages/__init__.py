# src/http_pipeline/stages/__init__.py
from .base import Handler, Stage
from .cache_stage import CacheStage
from .correlation_id_stage import CorrelationIdStage
from .in_flight_stage import InFlightStage
from .logging_stage import LoggingStage
from .not_found_stage import NotFoundNullStage
from .retry_stage import RetryStage

__all__ = [
    "Handler",
    "Stage",
    "CacheStage",
    "CorrelationIdStage",
    "InFlightStage",
    "LoggingStage",
    "NotFoundNullStage",
    "RetryStage",
]
