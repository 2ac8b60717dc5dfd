"""Core HTTP Pipeline модули."""

from .config import (
    CorrelationIdConfig,
    CachingConfig,
    InFlightConfig,
    RetryConfig,
    PipelineConfig,
    STAGE_ORDER,
    DEFAULT_CORRELATION_ID_HEADER,
    DEFAULT_CACHE_STATUS_RANGES,
    DEFAULT_CACHEABLE_METHODS,
    DEFAULT_RETRYABLE_STATUS_RANGES,
    DEFAULT_RETRYABLE_METHODS,
)
from .context import (
    HTTPMethod,
    RequestMetadata,
    RequestContext,
    ResponseContext,
    default_request_key,
)
from .retry_engine import RetryEngine
from .exceptions import (
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
    error_for_response,
    classify_httpx_exception,
)

__all__ = [
    # Config
    "CorrelationIdConfig",
    "CachingConfig",
    "InFlightConfig",
    "RetryConfig",
    "PipelineConfig",
    "STAGE_ORDER",
    "DEFAULT_CORRELATION_ID_HEADER",
    "DEFAULT_CACHE_STATUS_RANGES",
    "DEFAULT_CACHEABLE_METHODS",
    "DEFAULT_RETRYABLE_STATUS_RANGES",
    "DEFAULT_RETRYABLE_METHODS",
    # Context
    "HTTPMethod",
    "RequestMetadata",
    "RequestContext",
    "ResponseContext",
    "default_request_key",
    # Retry
    "RetryEngine",
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
    "error_for_response",
    "classify_httpx_exception",
]
