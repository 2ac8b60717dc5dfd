# src/http_pipeline/stages/retry_stage.py

import asyncio
import logging
from typing import Awaitable, Callable

from ..core.context import RequestContext, ResponseContext
from ..core.exceptions import TransportError
from ..core.retry_engine import RetryEngine
from .base import Handler, Stage

logger = logging.getLogger(__name__)


class RetryStage(Stage):
    """
    Повторяет запрос при подходящих ошибках с exponential backoff.

    Внешний stage pipeline: каждый повтор заново проходит все внутренние
    stages (correlation id, логирование, кэш, объединение запросов) с тем же
    объектом metadata. Счётчик retry_attempt хранится в metadata запроса,
    так что состояние принадлежит логическому вызову, а не pipeline.

    После исчерпания попыток пробрасывается последняя ошибка.
    """

    name = "retry"

    def __init__(
        self,
        engine: RetryEngine,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Args:
            engine: Политика retry
            sleep: Примитив ожидания (секунды)
        """
        self.engine = engine
        self._sleep = sleep

    async def handle(self, request: RequestContext, call_next: Handler) -> ResponseContext:
        metadata = request.metadata

        while True:
            try:
                return await call_next(request)
            except TransportError as error:
                if not self.engine.should_retry(request, error):
                    raise

                metadata.retry_attempt += 1
                delay_ms = self.engine.get_delay_ms(metadata.retry_attempt)

                logger.info(
                    f"Retry number {metadata.retry_attempt} of {self.engine.config.max_retry_attempts} "
                    f"after {delay_ms}ms for {request.target}."
                )
                await self._sleep(delay_ms / 1000)
