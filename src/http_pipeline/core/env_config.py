"""
Configuration loader from environment variables and .env files.

Only scalar options can come from the environment; callables
(generators, predicates, key functions) are passed as overrides.

Example .env file:
    HTTP_PIPELINE_BASE_URL=https://api.example.com
    HTTP_PIPELINE_CACHE_TTL_MS=60000
    HTTP_PIPELINE_MAX_RETRY_ATTEMPTS=3
    HTTP_PIPELINE_LOG_LEVEL=DEBUG
"""

from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .config import DEFAULT_CORRELATION_ID_HEADER, PipelineConfig
from .logging.config import LoggingConfig


class PipelineSettings(BaseSettings):
    """
    Pipeline options read from HTTP_PIPELINE_* variables.

    Priority (highest to lowest):
    1. Environment variables
    2. .env file
    3. Defaults
    """

    model_config = SettingsConfigDict(
        env_prefix='HTTP_PIPELINE_',
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore',
    )

    base_url: str = Field(default="", description="Base URL for all requests")
    timeout: float = Field(default=30.0, gt=0)

    use_logging: bool = True
    use_correlation_id: bool = True
    correlation_id_header_name: str = Field(default=DEFAULT_CORRELATION_ID_HEADER, min_length=1)

    use_caching: bool = True
    cache_ttl_ms: int = Field(default=300_000, gt=0)
    cache_max_size: int = Field(default=1000, gt=0)
    cache_in_flight_requests: bool = True

    use_get_not_found_returns_null: bool = True

    use_retry: bool = True
    max_retry_attempts: int = Field(default=5, ge=0)
    base_delay_ms: int = Field(default=1000, ge=0)

    # Logging output (unset = leave logging configuration alone)
    log_level: Optional[Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]] = None
    log_format: Literal["json", "text", "colored"] = "text"
    log_file_path: Optional[str] = None

    def to_logging_config(self) -> Optional[LoggingConfig]:
        """LoggingConfig if HTTP_PIPELINE_LOG_LEVEL is set, otherwise None."""
        if self.log_level is None:
            return None
        return LoggingConfig.create(
            level=self.log_level,
            format=self.log_format,
            file_path=self.log_file_path,
        )


def load_from_env(env_file: Optional[str] = None, **overrides) -> PipelineConfig:
    """
    Load PipelineConfig from environment variables.

    Args:
        env_file: Custom .env file path (default: ./.env if present)
        **overrides: Explicit PipelineConfig.create() options, win over the environment

    Returns:
        PipelineConfig instance

    Raises:
        pydantic.ValidationError: Invalid environment values
        ConfigurationError: Contradictory options

    Example:
        >>> config = load_from_env()
        >>> config = load_from_env(should_retry=lambda error: error.response is None)
    """
    if env_file is not None:
        settings = PipelineSettings(_env_file=env_file)
    else:
        settings = PipelineSettings()

    options = {
        "base_url": settings.base_url or None,
        "timeout": settings.timeout,
        "use_logging": settings.use_logging,
        "use_correlation_id": settings.use_correlation_id,
        "correlation_id_header_name": settings.correlation_id_header_name,
        "use_caching": settings.use_caching,
        "cache_ttl_ms": settings.cache_ttl_ms,
        "cache_max_size": settings.cache_max_size,
        "cache_in_flight_requests": settings.cache_in_flight_requests,
        "use_get_not_found_returns_null": settings.use_get_not_found_returns_null,
        "use_retry": settings.use_retry,
        "max_retry_attempts": settings.max_retry_attempts,
        "base_delay_ms": settings.base_delay_ms,
        "logging": settings.to_logging_config(),
    }
    options.update(overrides)

    return PipelineConfig.create(**options)
