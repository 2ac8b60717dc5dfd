# src/http_pipeline/pipeline.py
"""
Сборка pipeline: упорядоченная цепочка stages вокруг транспорта.

Порядок задаётся одним списком (PipelineConfig.stage_order, по умолчанию
STAGE_ORDER) и собирается один раз в build_pipeline().
"""

import asyncio
import time
from dataclasses import dataclass, field
from functools import partial
from typing import Awaitable, Callable, Dict, List, MutableMapping, Optional, Sequence, Tuple

from cachetools import TTLCache

from .core.config import PipelineConfig
from .core.context import RequestContext, ResponseContext
from .core.retry_engine import RetryEngine
from .stages.base import Handler, Stage
from .stages.cache_stage import CacheStage
from .stages.correlation_id_stage import CorrelationIdStage
from .stages.in_flight_stage import InFlightStage
from .stages.logging_stage import LoggingStage
from .stages.not_found_stage import NotFoundNullStage
from .stages.retry_stage import RetryStage
from .transport import Transport

Clock = Callable[[], float]
Sleep = Callable[[float], Awaitable[None]]


@dataclass
class PipelineState:
    """
    Разделяемое состояние, принадлежащее одному pipeline.

    Attributes:
        cache: Хранилище ответов (ключ -> ResponseContext)
        in_flight: Таблица выполняющихся запросов (ключ -> задача)
    """
    cache: MutableMapping[str, ResponseContext]
    in_flight: Dict[str, "asyncio.Task[ResponseContext]"] = field(default_factory=dict)


class Pipeline:
    """
    Готовая цепочка stages.

    stages[0] - внешний, stages[-1] - ближайший к транспорту.

    Example:
        >>> pipeline = build_pipeline(PipelineConfig.create("https://api.example.com"), transport)
        >>> response = await pipeline.execute(RequestContext("GET", "https://api.example.com", "users"))
    """

    def __init__(self, stages: Sequence[Stage], transport: Transport, state: PipelineState):
        self.stages: Tuple[Stage, ...] = tuple(stages)
        self.transport = transport
        self.state = state

        handler: Handler = transport.send
        for stage in reversed(self.stages):
            handler = partial(stage.handle, call_next=handler)
        self._handler = handler

    async def execute(self, request: RequestContext) -> ResponseContext:
        """Провести запрос через все stages до транспорта и обратно."""
        return await self._handler(request)

    def get_stage(self, name: str) -> Optional[Stage]:
        """Найти stage по имени (None если выключен)."""
        for stage in self.stages:
            if stage.name == name:
                return stage
        return None

    @property
    def stage_names(self) -> Tuple[str, ...]:
        return tuple(stage.name for stage in self.stages)


def build_stages(
    config: PipelineConfig,
    state: PipelineState,
    *,
    clock: Clock = time.monotonic,
    sleep: Sleep = asyncio.sleep,
) -> List[Stage]:
    """
    Создать включённые stages в порядке config.stage_order.

    Args:
        config: Конфигурация pipeline
        state: Разделяемое состояние (кэш, in-flight таблица)
        clock: Монотонные часы в секундах
        sleep: Примитив ожидания для retry

    Returns:
        Список stages (снаружи -> внутрь)
    """
    factories: Dict[str, Callable[[], Stage]] = {
        "retry": lambda: RetryStage(RetryEngine(config.retry), sleep=sleep),
        "correlation_id": lambda: CorrelationIdStage(config.correlation_id),
        "not_found": lambda: NotFoundNullStage(),
        "logging": lambda: LoggingStage(clock),
        "caching": lambda: CacheStage(config.caching, state.cache, clock),
        "in_flight": lambda: InFlightStage(config.in_flight, state.in_flight),
    }
    return [factories[name]() for name in config.enabled_stages()]


def build_pipeline(
    config: PipelineConfig,
    transport: Transport,
    *,
    clock: Clock = time.monotonic,
    sleep: Sleep = asyncio.sleep,
    cache_store: Optional[MutableMapping[str, ResponseContext]] = None,
) -> Pipeline:
    """
    Собрать pipeline вокруг транспорта.

    Args:
        config: Конфигурация pipeline
        transport: Транспорт (send(request) -> response)
        clock: Монотонные часы в секундах (TTL кэша, длительности)
        sleep: Примитив ожидания для retry backoff
        cache_store: Готовое хранилище кэша (по умолчанию TTLCache по конфигу)

    Returns:
        Pipeline
    """
    if cache_store is None:
        cache_store = TTLCache(
            maxsize=config.caching.max_size,
            ttl=config.caching.ttl_ms / 1000,
            timer=clock,
        )

    state = PipelineState(cache=cache_store)
    stages = build_stages(config, state, clock=clock, sleep=sleep)
    return Pipeline(stages, transport, state)
