"""HTTP Pipeline - async HTTP client with a composable stage pipeline."""

import logging
from importlib.metadata import version, PackageNotFoundError

from .async_client import AsyncHTTPClient
from .pipeline import Pipeline, PipelineState, build_pipeline, build_stages
from .transport import Transport, HttpxTransport, resolve_transport
from .core.config import (
    PipelineConfig,
    CorrelationIdConfig,
    CachingConfig,
    InFlightConfig,
    RetryConfig,
    STAGE_ORDER,
)
from .core.context import HTTPMethod, RequestContext, RequestMetadata, ResponseContext
from .core.env_config import PipelineSettings, load_from_env
from .core.exceptions import (
    HTTPClientException,
    ConfigurationError,
    TransportError,
    NetworkError,
    TimeoutError,
    ConnectionError,
    InvalidResponseError,
    HTTPError,
    BadRequestError,
    UnauthorizedError,
    ForbiddenError,
    NotFoundError,
    TooManyRequestsError,
    ServerError,
)
from .core.logging import LoggingConfig, configure_logging
from .stages import (
    Stage,
    CacheStage,
    CorrelationIdStage,
    InFlightStage,
    LoggingStage,
    NotFoundNullStage,
    RetryStage,
)

# NullHandler prevents "No handler found" warnings;
# configure via logging.getLogger('http_pipeline') or configure_logging()
logging.getLogger('http_pipeline').addHandler(logging.NullHandler())

# Version info - read from package metadata (single source of truth in pyproject.toml)
try:
    __version__ = version("http-pipeline-core")
except PackageNotFoundError:
    # Package is not installed (development mode)
    __version__ = "0.0.0-dev"

__author__ = "HTTP Pipeline Contributors"
__license__ = "MIT"

__all__ = [
    # Client
    "AsyncHTTPClient",

    # Pipeline
    "Pipeline",
    "PipelineState",
    "build_pipeline",
    "build_stages",
    "STAGE_ORDER",

    # Transport
    "Transport",
    "HttpxTransport",
    "resolve_transport",

    # Config
    "PipelineConfig",
    "CorrelationIdConfig",
    "CachingConfig",
    "InFlightConfig",
    "RetryConfig",
    "PipelineSettings",
    "load_from_env",
    "LoggingConfig",
    "configure_logging",

    # Context
    "HTTPMethod",
    "RequestContext",
    "RequestMetadata",
    "ResponseContext",

    # Exceptions
    "HTTPClientException",
    "ConfigurationError",
    "TransportError",
    "NetworkError",
    "TimeoutError",
    "ConnectionError",
    "InvalidResponseError",
    "HTTPError",
    "BadRequestError",
    "UnauthorizedError",
    "ForbiddenError",
    "NotFoundError",
    "TooManyRequestsError",
    "ServerError",

    # Stages
    "Stage",
    "CacheStage",
    "CorrelationIdStage",
    "InFlightStage",
    "LoggingStage",
    "NotFoundNullStage",
    "RetryStage",

    # Version
    "__version__",
]
