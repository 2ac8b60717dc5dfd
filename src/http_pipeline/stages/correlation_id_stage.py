# src/http_pipeline/stages/correlation_id_stage.py

import logging

from ..core.config import CorrelationIdConfig
from ..core.context import RequestContext, ResponseContext
from ..core.logging.filters import reset_correlation_id, set_correlation_id
from .base import Handler, Stage

logger = logging.getLogger(__name__)


class CorrelationIdStage(Stage):
    """
    Прикрепляет correlation id к запросу.

    Уже переданный заголовок никогда не перезаписывается: его значение
    только копируется в metadata. Иначе генерируется новый id.
    На время прохождения запроса id выставляется в контекст логирования.
    """

    name = "correlation_id"

    def __init__(self, config: CorrelationIdConfig):
        self.header_name = config.header_name
        self.generator = config.generator

    async def handle(self, request: RequestContext, call_next: Handler) -> ResponseContext:
        existing = request.headers.get(self.header_name)

        if existing:
            request.metadata.correlation_id = str(existing)
            logger.debug(f"Correlation id already attached to request {request.target}.")
        else:
            correlation_id = str(self.generator())
            request.headers[self.header_name] = correlation_id
            request.metadata.correlation_id = correlation_id
            logger.info(f"Correlation id generated and attached to request {request.target}.")

        token = set_correlation_id(request.metadata.correlation_id)
        try:
            return await call_next(request)
        finally:
            reset_correlation_id(token)
