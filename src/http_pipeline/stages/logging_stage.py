# src/http_pipeline/stages/logging_stage.py

import logging
from typing import Callable, Dict, Any

from ..core.context import RequestContext, RequestMetadata, ResponseContext
from ..core.exceptions import TransportError
from .base import Handler, Stage

logger = logging.getLogger(__name__)


class LoggingStage(Stage):
    """
    Stage для логирования запросов, ответов и ошибок с длительностью.

    - Запрос: start_time выставляется только если его ещё нет (retry
      продолжает отсчёт от первой попытки, кэш-хит сбрасывает его сам).
    - Ответ: INFO с кодом, длительностью и флагами кэша / in-flight.
    - HTTP ошибка: WARNING для статуса < 500, ERROR для >= 500.
    - Ошибка без ответа и неизвестные ошибки: ERROR.

    Ошибки никогда не проглатываются, только логируются и пробрасываются дальше.
    """

    name = "logging"

    def __init__(self, clock: Callable[[], float]):
        """
        Args:
            clock: Монотонные часы в секундах
        """
        self._clock = clock

    def _finish(self, metadata: RequestMetadata) -> None:
        metadata.end_time = self._clock()
        start = metadata.start_time if metadata.start_time is not None else metadata.end_time
        metadata.duration_ms = round((metadata.end_time - start) * 1000, 3)

    def _fields(self, request: RequestContext, **kwargs: Any) -> Dict[str, Any]:
        metadata = request.metadata
        fields = {
            "method": request.method.value,
            "url": request.url,
            "correlation_id": metadata.correlation_id,
            "retry_attempt": metadata.retry_attempt,
            "duration_ms": metadata.duration_ms,
        }
        fields.update(kwargs)
        return fields

    async def handle(self, request: RequestContext, call_next: Handler) -> ResponseContext:
        metadata = request.metadata
        if metadata.start_time is None:
            metadata.start_time = self._clock()

        logger.info(f"Sending {request.target} request.", extra=self._fields(request))

        try:
            response = await call_next(request)
        except TransportError as error:
            self._finish(metadata)
            if error.response is not None:
                status = error.response.status
                message = (
                    f"Received response {status} {error.response.status_text} "
                    f"from {request.target} in {metadata.duration_ms}ms."
                )
                level = logging.WARNING if status < 500 else logging.ERROR
                logger.log(level, message, extra=self._fields(request, status_code=status))
            else:
                logger.error(
                    f"Request {request.target} failed without a response after "
                    f"{metadata.duration_ms}ms: {error}",
                    extra=self._fields(request),
                )
            raise
        except Exception as error:
            self._finish(metadata)
            logger.error(
                f"An unexpected error occurred during {request.target}: {error}",
                exc_info=True,
                extra=self._fields(request),
            )
            raise

        self._finish(metadata)

        flags = ""
        if metadata.served_from_cache:
            flags += " (Response served from cache)"
        if metadata.served_from_in_flight:
            flags += " (Response served from in-flight request)"

        logger.info(
            f"Received response {response.status} {response.status_text} "
            f"from {request.target} in {metadata.duration_ms}ms.{flags}",
            extra=self._fields(
                request,
                status_code=response.status,
                served_from_cache=metadata.served_from_cache,
                served_from_in_flight=metadata.served_from_in_flight,
            ),
        )
        return response
