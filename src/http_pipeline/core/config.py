"""
Система конфигурации для HTTP Pipeline.

Все конфиги immutable (frozen dataclasses). Противоречивые опции
отклоняются в __post_init__, то есть до сборки любого stage.
"""

import uuid
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import (
    TYPE_CHECKING,
    Callable,
    Dict,
    FrozenSet,
    Iterable,
    Mapping,
    Optional,
    Sequence,
    Tuple,
)

from .exceptions import ConfigurationError

if TYPE_CHECKING:
    from .context import RequestContext, ResponseContext
    from .exceptions import TransportError
    from .logging import LoggingConfig

StatusRange = Tuple[int, int]

DEFAULT_CORRELATION_ID_HEADER = "X-Correlation-Id"

DEFAULT_CACHE_STATUS_RANGES: Tuple[StatusRange, ...] = ((200, 299),)
DEFAULT_CACHEABLE_METHODS: FrozenSet[str] = frozenset({"GET"})

# 1xx - ещё обрабатывается, 429 - Too Many Requests, 5xx - ошибки сервера
DEFAULT_RETRYABLE_STATUS_RANGES: Tuple[StatusRange, ...] = ((100, 199), (429, 429), (500, 599))
DEFAULT_RETRYABLE_METHODS: FrozenSet[str] = frozenset({"GET", "PUT", "OPTIONS", "DELETE", "HEAD"})

# Канонический порядок stages: снаружи -> внутрь (последний ближе всего к транспорту)
STAGE_ORDER: Tuple[str, ...] = (
    "retry",
    "correlation_id",
    "not_found",
    "logging",
    "caching",
    "in_flight",
)


def generate_correlation_id() -> str:
    """Генератор correlation id по умолчанию (uuid4)."""
    return str(uuid.uuid4())


def _normalize_methods(methods: Optional[Iterable[str]]) -> Optional[FrozenSet[str]]:
    if methods is None:
        return None
    return frozenset(str(m).upper() for m in methods)


def _normalize_ranges(ranges: Optional[Iterable[Sequence[int]]]) -> Optional[Tuple[StatusRange, ...]]:
    if ranges is None:
        return None
    normalized = []
    for item in ranges:
        low, high = item
        if low > high:
            raise ConfigurationError(f"Invalid status range [{low}, {high}]: lower bound exceeds upper bound")
        normalized.append((int(low), int(high)))
    return tuple(normalized)


def status_in_ranges(status: int, ranges: Iterable[StatusRange]) -> bool:
    """Попадает ли статус хотя бы в один диапазон [low, high] (включительно)."""
    return any(low <= status <= high for low, high in ranges)

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# CORRELATION ID CONFIG
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class CorrelationIdConfig:
    """
    Конфигурация correlation-id stage.

    Args:
        enabled: Включен ли stage
        header_name: Заголовок для correlation id
        generator: Функция генерации нового id
    """
    enabled: bool = True
    header_name: str = DEFAULT_CORRELATION_ID_HEADER
    generator: Callable[[], str] = generate_correlation_id

    def __post_init__(self):
        """Валидация."""
        if not self.header_name:
            raise ConfigurationError("correlation id header name must not be empty")

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# CACHING CONFIG
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class CachingConfig:
    """
    Конфигурация кэширования ответов.

    Args:
        enabled: Включен ли stage
        ttl_ms: Время жизни записи (мс)
        max_size: Максимальное количество записей (LRU вытеснение при переполнении)
        status_ranges: Кэшируемые диапазоны статусов (по умолчанию [200, 299])
        cacheable_methods: Кэшируемые методы (по умолчанию {GET})
        should_cache: Свой предикат; несовместим с status_ranges/cacheable_methods
        key_fn: Своя функция ключа кэша

    Examples:
        >>> CachingConfig(ttl_ms=60_000)
        >>> CachingConfig(should_cache=lambda response: response.status == 200)
    """
    enabled: bool = True
    ttl_ms: int = 300_000
    max_size: int = 1000
    status_ranges: Optional[Tuple[StatusRange, ...]] = None
    cacheable_methods: Optional[FrozenSet[str]] = None
    should_cache: Optional[Callable[["ResponseContext"], bool]] = None
    key_fn: Optional[Callable[["RequestContext"], str]] = None

    def __post_init__(self):
        """Валидация и нормализация."""
        if self.should_cache is not None and (
            self.status_ranges is not None or self.cacheable_methods is not None
        ):
            raise ConfigurationError(
                "Passing should_cache together with cache_status_ranges or "
                "cacheable_methods is not supported."
            )
        if self.ttl_ms <= 0:
            raise ConfigurationError("cache ttl_ms must be positive")
        if self.max_size <= 0:
            raise ConfigurationError("cache max_size must be positive")

        object.__setattr__(self, 'status_ranges', _normalize_ranges(self.status_ranges))
        object.__setattr__(self, 'cacheable_methods', _normalize_methods(self.cacheable_methods))

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# IN-FLIGHT CONFIG
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class InFlightConfig:
    """
    Конфигурация объединения одновременных одинаковых запросов.

    Args:
        enabled: Включен ли stage
        key_fn: Своя функция ключа (по умолчанию METHOD:base_url/path)
    """
    enabled: bool = True
    key_fn: Optional[Callable[["RequestContext"], str]] = None

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# RETRY CONFIG
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class RetryConfig:
    """
    Конфигурация retry стратегии.

    Args:
        enabled: Включен ли stage
        max_retry_attempts: Максимум повторов (не включая первую попытку)
        base_delay_ms: Базовая задержка для exponential backoff (мс)
        retryable_methods: Методы, которые можно ретраить
        retryable_status_ranges: Диапазоны статусов, которые можно ретраить
        should_retry: Свой предикат; несовместим с retryable_methods/retryable_status_ranges

    Examples:
        >>> RetryConfig(max_retry_attempts=3, base_delay_ms=500)
        >>> RetryConfig(retryable_status_ranges=[(500, 599)])
    """
    enabled: bool = True
    max_retry_attempts: int = 5
    base_delay_ms: int = 1000
    retryable_methods: Optional[FrozenSet[str]] = None
    retryable_status_ranges: Optional[Tuple[StatusRange, ...]] = None
    should_retry: Optional[Callable[["TransportError"], bool]] = None

    def __post_init__(self):
        """Валидация и нормализация."""
        if self.should_retry is not None and (
            self.retryable_methods is not None or self.retryable_status_ranges is not None
        ):
            raise ConfigurationError(
                "Passing should_retry together with retryable_methods or "
                "retryable_status_ranges is not supported."
            )
        if self.max_retry_attempts < 0:
            raise ConfigurationError("max_retry_attempts must be non-negative")
        if self.base_delay_ms < 0:
            raise ConfigurationError("base_delay_ms must be non-negative")

        object.__setattr__(self, 'retryable_methods', _normalize_methods(self.retryable_methods))
        object.__setattr__(
            self, 'retryable_status_ranges', _normalize_ranges(self.retryable_status_ranges)
        )

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# MAIN CONFIG
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class PipelineConfig:
    """
    Главная конфигурация pipeline.

    Args:
        base_url: Базовый адрес для всех запросов
        headers: Заголовки по умолчанию (для HttpxTransport)
        timeout: Таймаут транспорта по умолчанию (сек)
        use_logging: Включить logging stage
        use_get_not_found_returns_null: Включить 404 -> null для GET
        correlation_id: Конфигурация correlation-id stage
        caching: Конфигурация кэша
        in_flight: Конфигурация объединения запросов
        retry: Конфигурация retry
        stage_order: Порядок stages (снаружи -> внутрь), по умолчанию STAGE_ORDER
        logging: Конфигурация вывода логов (None = не трогать logging)

    Examples:
        >>> config = PipelineConfig(base_url="https://api.example.com")
        >>> config = PipelineConfig.create(use_caching=False, max_retry_attempts=2)
    """
    base_url: Optional[str] = None
    headers: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    timeout: float = 30.0
    use_logging: bool = True
    use_get_not_found_returns_null: bool = True
    correlation_id: CorrelationIdConfig = field(default_factory=CorrelationIdConfig)
    caching: CachingConfig = field(default_factory=CachingConfig)
    in_flight: InFlightConfig = field(default_factory=InFlightConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    stage_order: Tuple[str, ...] = STAGE_ORDER
    logging: Optional['LoggingConfig'] = None

    def __post_init__(self):
        """Нормализация base_url, заморозка заголовков, проверка порядка stages."""
        if isinstance(self.headers, dict):
            object.__setattr__(self, 'headers', MappingProxyType(dict(self.headers)))

        if self.base_url:
            normalized = self.base_url.rstrip('/')
            if normalized != self.base_url:
                object.__setattr__(self, 'base_url', normalized)

        if self.timeout <= 0:
            raise ConfigurationError("timeout must be positive")

        order = tuple(self.stage_order)
        unknown = [name for name in order if name not in STAGE_ORDER]
        if unknown:
            raise ConfigurationError(
                f"Unknown stage name(s) in stage_order: {', '.join(unknown)}. "
                f"Available: {', '.join(STAGE_ORDER)}"
            )
        if len(set(order)) != len(order):
            raise ConfigurationError("stage_order must not repeat a stage")
        object.__setattr__(self, 'stage_order', order)

    def enabled_stages(self) -> Tuple[str, ...]:
        """Имена включённых stages в порядке выполнения (снаружи -> внутрь)."""
        enabled = {
            "retry": self.retry.enabled,
            "correlation_id": self.correlation_id.enabled,
            "not_found": self.use_get_not_found_returns_null,
            "logging": self.use_logging,
            "caching": self.caching.enabled,
            "in_flight": self.in_flight.enabled,
        }
        return tuple(name for name in self.stage_order if enabled[name])

    @classmethod
    def create(
        cls,
        base_url: Optional[str] = None,
        *,
        headers: Optional[Dict[str, str]] = None,
        timeout: float = 30.0,
        use_logging: bool = True,
        use_correlation_id: bool = True,
        correlation_id_header_name: str = DEFAULT_CORRELATION_ID_HEADER,
        correlation_id_generator: Optional[Callable[[], str]] = None,
        use_caching: bool = True,
        cache_ttl_ms: int = 300_000,
        cache_max_size: int = 1000,
        cache_status_ranges: Optional[Iterable[Sequence[int]]] = None,
        cacheable_methods: Optional[Iterable[str]] = None,
        should_cache: Optional[Callable[["ResponseContext"], bool]] = None,
        cache_key_fn: Optional[Callable[["RequestContext"], str]] = None,
        cache_in_flight_requests: bool = True,
        in_flight_key_fn: Optional[Callable[["RequestContext"], str]] = None,
        use_get_not_found_returns_null: bool = True,
        use_retry: bool = True,
        max_retry_attempts: int = 5,
        base_delay_ms: int = 1000,
        retryable_methods: Optional[Iterable[str]] = None,
        retryable_status_ranges: Optional[Iterable[Sequence[int]]] = None,
        should_retry: Optional[Callable[["TransportError"], bool]] = None,
        stage_order: Optional[Sequence[str]] = None,
        logging: Optional['LoggingConfig'] = None,
    ) -> 'PipelineConfig':
        """
        Удобный конструктор из плоского набора опций.

        Returns:
            PipelineConfig instance

        Raises:
            ConfigurationError: Противоречивые или невалидные опции

        Examples:
            >>> config = PipelineConfig.create("https://api.example.com", cache_ttl_ms=10_000)
            >>> config = PipelineConfig.create(use_retry=False, use_caching=False)
        """
        return cls(
            base_url=base_url,
            headers=headers or {},
            timeout=timeout,
            use_logging=use_logging,
            use_get_not_found_returns_null=use_get_not_found_returns_null,
            correlation_id=CorrelationIdConfig(
                enabled=use_correlation_id,
                header_name=correlation_id_header_name,
                generator=correlation_id_generator or generate_correlation_id,
            ),
            caching=CachingConfig(
                enabled=use_caching,
                ttl_ms=cache_ttl_ms,
                max_size=cache_max_size,
                status_ranges=cache_status_ranges,
                cacheable_methods=cacheable_methods,
                should_cache=should_cache,
                key_fn=cache_key_fn,
            ),
            in_flight=InFlightConfig(
                enabled=cache_in_flight_requests,
                key_fn=in_flight_key_fn,
            ),
            retry=RetryConfig(
                enabled=use_retry,
                max_retry_attempts=max_retry_attempts,
                base_delay_ms=base_delay_ms,
                retryable_methods=retryable_methods,
                retryable_status_ranges=retryable_status_ranges,
                should_retry=should_retry,
            ),
            stage_order=tuple(stage_order) if stage_order is not None else STAGE_ORDER,
            logging=logging,
        )

    def with_base_url(self, base_url: Optional[str]) -> 'PipelineConfig':
        """
        Создать новый конфиг с другим base_url.

        Example:
            >>> new_config = config.with_base_url("https://staging.example.com")
        """
        return PipelineConfig(
            base_url=base_url,
            headers=self.headers,
            timeout=self.timeout,
            use_logging=self.use_logging,
            use_get_not_found_returns_null=self.use_get_not_found_returns_null,
            correlation_id=self.correlation_id,
            caching=self.caching,
            in_flight=self.in_flight,
            retry=self.retry,
            stage_order=self.stage_order,
            logging=self.logging,
        )
