# src/http_pipeline/stages/cache_stage.py
"""
Stage для кэширования HTTP ответов.

Хранилище (обычно cachetools.TTLCache) принадлежит pipeline и передаётся
в stage при сборке. TTL и LRU вытеснение обеспечивает само хранилище.
"""

import logging
from typing import Any, Callable, Dict, MutableMapping

from ..core.config import (
    DEFAULT_CACHEABLE_METHODS,
    DEFAULT_CACHE_STATUS_RANGES,
    CachingConfig,
    status_in_ranges,
)
from ..core.context import RequestContext, ResponseContext, default_request_key
from .base import Handler, Stage

logger = logging.getLogger(__name__)


class CacheStage(Stage):
    """
    Отдаёт живые записи кэша и сохраняет подходящие ответы.

    При попадании в кэш транспорт и все внутренние stages не вызываются,
    ответ помечается served_from_cache, а start_time сбрасывается на момент
    попадания. Ответ из кэша повторно не сохраняется, поэтому срок жизни
    записи не продлевается.

    Example:
        >>> store = TTLCache(maxsize=1000, ttl=300)
        >>> stage = CacheStage(CachingConfig(), store, clock=time.monotonic)
    """

    name = "caching"

    def __init__(
        self,
        config: CachingConfig,
        store: MutableMapping[str, ResponseContext],
        clock: Callable[[], float],
    ):
        """
        Args:
            config: Конфигурация кэша
            store: Хранилище записей (ключ -> ResponseContext)
            clock: Монотонные часы в секундах
        """
        self.store = store
        self._clock = clock
        self._key_fn = config.key_fn or default_request_key
        self._should_cache = config.should_cache or self._default_should_cache
        self._methods = DEFAULT_CACHEABLE_METHODS if config.cacheable_methods is None else config.cacheable_methods
        self._status_ranges = DEFAULT_CACHE_STATUS_RANGES if config.status_ranges is None else config.status_ranges
        self._hits = 0
        self._misses = 0

    def _default_should_cache(self, response: ResponseContext) -> bool:
        """
        Предикат по умолчанию.

        Отклоняет ответы из кэша и ответы, полученные через объединённый
        in-flight запрос (их сохраняет вызов-владелец), методы вне набора
        и статусы вне диапазонов.
        """
        request = response.request
        if request is None:
            return False
        if request.metadata.served_from_cache or request.metadata.served_from_in_flight:
            return False
        if request.method.value not in self._methods:
            return False
        return status_in_ranges(response.status, self._status_ranges)

    async def handle(self, request: RequestContext, call_next: Handler) -> ResponseContext:
        key = self._key_fn(request)
        cached = self.store.get(key)

        if cached is not None:
            self._hits += 1
            request.metadata.served_from_cache = True
            request.metadata.start_time = self._clock()
            logger.debug(f"Returning value from cache for {key}.")
            return cached.bind(request)

        self._misses += 1
        # Ответ этого прохода не из кэша, даже если прошлый проход был хитом
        request.metadata.served_from_cache = False
        response = await call_next(request)

        if self._should_cache(response):
            self.store[key] = response
            logger.debug(f"Caching response for {key}.")

        return response

    def get_stats(self) -> Dict[str, Any]:
        """
        Статистика кэша.

        Returns:
            Dict с hits, misses, hit_rate, size, max_size
        """
        total = self._hits + self._misses
        hit_rate = (self._hits / total * 100) if total > 0 else 0.0

        return {
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round(hit_rate, 2),
            "size": len(self.store),
            "max_size": getattr(self.store, "maxsize", None),
        }

    def clear(self) -> None:
        """Очистить весь кэш и счётчики."""
        self.store.clear()
        self._hits = 0
        self._misses = 0
        logger.info("Cache cleared")
