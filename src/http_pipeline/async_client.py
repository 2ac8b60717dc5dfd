# src/http_pipeline/async_client.py
"""
Асинхронный HTTP клиент поверх pipeline.

Предоставляет async/await API для использования в asyncio приложениях
(FastAPI, aiohttp, etc.)
"""

import asyncio
import time
from typing import Any, Awaitable, Callable, Dict, MutableMapping, Optional, Tuple, Union

from .core.config import PipelineConfig
from .core.context import HTTPMethod, RequestContext, ResponseContext
from .core.logging import configure_logging
from .pipeline import Pipeline, build_pipeline
from .stages.cache_stage import CacheStage
from .transport import Transport, TransportFactory, resolve_transport


class AsyncHTTPClient:
    """
    Асинхронный HTTP клиент с логированием, correlation id, кэшем,
    объединением одинаковых запросов, 404 -> None и retry.

    Example:
        >>> async with AsyncHTTPClient(base_url="https://api.example.com") as client:
        ...     response = await client.get("users/1")
        ...     print(response.body)

        >>> # Или без context manager
        >>> client = AsyncHTTPClient(base_url="https://api.example.com", use_caching=False)
        >>> response = await client.post("users", body={"name": "Ann"})
        >>> await client.close()

    Features:
        - Канонический порядок stages (см. STAGE_ORDER)
        - Кэш ответов с TTL и ограничением размера
        - Объединение одновременных одинаковых запросов
        - Retry с exponential backoff
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        config: Optional[PipelineConfig] = None,
        transport: Optional[Transport] = None,
        transport_factory: Optional[TransportFactory] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        cache_store: Optional[MutableMapping[str, ResponseContext]] = None,
        **kwargs: Any,
    ):
        """
        Инициализация клиента.

        Args:
            base_url: Базовый адрес для всех запросов
            config: PipelineConfig (если указан, kwargs игнорируются)
            transport: Готовый транспорт (им владеет вызывающий код)
            transport_factory: Фабрика транспорта (config -> Transport)
            clock: Монотонные часы в секундах
            sleep: Примитив ожидания для retry
            cache_store: Готовое хранилище кэша
            **kwargs: Опции PipelineConfig.create (use_caching, max_retry_attempts, ...)

        Raises:
            ConfigurationError: Противоречивые опции
        """
        if config is None:
            config = PipelineConfig.create(base_url=base_url, **kwargs)
        elif base_url is not None:
            config = config.with_base_url(base_url)
        self._config = config

        if self._config.logging is not None:
            configure_logging(self._config.logging)

        self._owns_transport = transport is None
        self._transport = resolve_transport(self._config, transport, transport_factory)
        self._pipeline: Pipeline = build_pipeline(
            self._config,
            self._transport,
            clock=clock,
            sleep=sleep,
            cache_store=cache_store,
        )

    async def __aenter__(self) -> "AsyncHTTPClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()

    async def close(self) -> None:
        """Закрыть транспорт, если он создан клиентом."""
        close = getattr(self._transport, "close", None)
        if self._owns_transport and close is not None:
            await close()

    # ==================== HTTP методы ====================

    async def request(
        self,
        method: Union[str, HTTPMethod],
        path: str,
        *,
        body: Any = None,
        headers: Optional[Dict[str, str]] = None,
        allow_simultaneous_duplicates: bool = False,
        **options: Any,
    ) -> ResponseContext:
        """
        Выполнить HTTP запрос через pipeline.

        Args:
            method: HTTP метод (GET, POST, etc.)
            path: Путь относительно base_url (или абсолютный URL)
            body: Тело запроса
            headers: Заголовки запроса
            allow_simultaneous_duplicates: Не объединять с уже выполняющимся таким же запросом
            **options: Параметры транспорта (params, timeout, ...)

        Returns:
            ResponseContext

        Raises:
            TransportError: Итоговая ошибка после всех stages
        """
        request = RequestContext(
            method=method,
            base_url=self._config.base_url or "",
            path=path,
            headers=dict(headers or {}),
            body=body,
            options=options,
            allow_simultaneous_duplicates=allow_simultaneous_duplicates,
        )
        return await self._pipeline.execute(request)

    async def get(self, path: str, **kwargs) -> ResponseContext:
        """GET запрос (404 -> ResponseContext с body=None)."""
        return await self.request(HTTPMethod.GET, path, **kwargs)

    async def post(self, path: str, body: Any = None, **kwargs) -> ResponseContext:
        """POST запрос."""
        return await self.request(HTTPMethod.POST, path, body=body, **kwargs)

    async def put(self, path: str, body: Any = None, **kwargs) -> ResponseContext:
        """PUT запрос."""
        return await self.request(HTTPMethod.PUT, path, body=body, **kwargs)

    async def patch(self, path: str, body: Any = None, **kwargs) -> ResponseContext:
        """PATCH запрос."""
        return await self.request(HTTPMethod.PATCH, path, body=body, **kwargs)

    async def delete(self, path: str, **kwargs) -> ResponseContext:
        """DELETE запрос."""
        return await self.request(HTTPMethod.DELETE, path, **kwargs)

    async def head(self, path: str, **kwargs) -> ResponseContext:
        """HEAD запрос."""
        return await self.request(HTTPMethod.HEAD, path, **kwargs)

    async def options(self, path: str, **kwargs) -> ResponseContext:
        """OPTIONS запрос."""
        return await self.request(HTTPMethod.OPTIONS, path, **kwargs)

    # ==================== Кэш и in-flight ====================

    def _cache_stage(self) -> Optional[CacheStage]:
        return self._pipeline.get_stage("caching")

    def clear_cache(self) -> None:
        """Очистить кэш ответов."""
        stage = self._cache_stage()
        if stage is not None:
            stage.clear()

    def cache_stats(self) -> Dict[str, Any]:
        """
        Статистика кэша.

        Returns:
            Dict с hits, misses, hit_rate, size, max_size (пустой если кэш выключен)
        """
        stage = self._cache_stage()
        return stage.get_stats() if stage is not None else {}

    def in_flight_count(self) -> int:
        """Количество выполняющихся (не завершённых) запросов в таблице."""
        return len(self._pipeline.state.in_flight)

    # ==================== Properties ====================

    @property
    def base_url(self) -> Optional[str]:
        """Базовый URL."""
        return self._config.base_url

    @property
    def config(self) -> PipelineConfig:
        return self._config

    @property
    def pipeline(self) -> Pipeline:
        return self._pipeline

    @property
    def stage_names(self) -> Tuple[str, ...]:
        """Имена stages в порядке выполнения (снаружи -> внутрь)."""
        return self._pipeline.stage_names
