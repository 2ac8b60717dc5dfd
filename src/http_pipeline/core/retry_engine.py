"""
Retry engine для повторных попыток.

Включает:
- Проверку права на retry (метод + диапазон статусов, либо свой предикат)
- Exponential backoff: первый повтор сразу, дальше base * 2^(n-2)
"""

import logging

from .config import (
    DEFAULT_RETRYABLE_METHODS,
    DEFAULT_RETRYABLE_STATUS_RANGES,
    RetryConfig,
    status_in_ranges,
)
from .context import RequestContext
from .exceptions import TransportError

logger = logging.getLogger(__name__)


class RetryEngine:
    """
    Политика retry без собственного состояния.

    Счётчик попыток живёт в metadata запроса (retry_attempt), а не в engine,
    поэтому один engine обслуживает все вызовы pipeline.

    Examples:
        >>> engine = RetryEngine(RetryConfig(max_retry_attempts=3))
        >>> if engine.should_retry(request, error):
        ...     attempt = request.metadata.retry_attempt + 1
        ...     await asyncio.sleep(engine.get_delay_ms(attempt) / 1000)
    """

    def __init__(self, config: RetryConfig):
        """
        Args:
            config: Конфигурация retry
        """
        self.config = config
        self.methods = DEFAULT_RETRYABLE_METHODS if config.retryable_methods is None else config.retryable_methods
        self.status_ranges = (
            DEFAULT_RETRYABLE_STATUS_RANGES
            if config.retryable_status_ranges is None
            else config.retryable_status_ranges
        )

    def should_retry(self, request: RequestContext, error: TransportError) -> bool:
        """
        Решить нужен ли retry.

        Args:
            request: Запрос вызывающего (его metadata хранит счётчик повторов)
            error: Ошибка транспорта (с response, если сервер ответил)

        Returns:
            True если нужен retry
        """
        operation = request.target
        attempt = request.metadata.retry_attempt

        # Проверка лимита попыток
        if attempt >= self.config.max_retry_attempts:
            logger.info(
                f"Max retries of {self.config.max_retry_attempts} reached. "
                f"No longer attempting retries for {operation}."
            )
            return False

        if self.config.should_retry is not None:
            return bool(self.config.should_retry(error))

        # Ответа нет - сетевая ошибка, ретраим всегда
        if error.response is None:
            logger.info(f"Network error: {error}. Request for {operation} should be retried.")
            return True

        if request.method.value not in self.methods:
            logger.info(f"Request method is not eligible for retry. Request for {operation} should not be retried.")
            return False

        status = error.response.status
        if status_in_ranges(status, self.status_ranges):
            logger.info(f"Response status {status} meets retry eligibility. Request for {operation} should be retried.")
            return True

        logger.info(f"Request for {operation} should not be retried.")
        return False

    def get_delay_ms(self, retry_attempt: int) -> float:
        """
        Вычислить задержку перед повтором.

        Args:
            retry_attempt: Номер повтора (1 = первый повтор)

        Returns:
            Миллисекунды ожидания (0, base, 2*base, 4*base, ...)
        """
        if retry_attempt <= 1:
            return 0
        return self.config.base_delay_ms * (2 ** (retry_attempt - 2))
