# src/http_pipeline/stages/not_found_stage.py

import logging

from ..core.context import HTTPMethod, RequestContext, ResponseContext
from ..core.exceptions import HTTPError
from .base import Handler, Stage

logger = logging.getLogger(__name__)


class NotFoundNullStage(Stage):
    """404 на GET превращается в успешный ответ с body=None (статус и заголовки сохраняются)."""

    name = "not_found"

    async def handle(self, request: RequestContext, call_next: Handler) -> ResponseContext:
        try:
            return await call_next(request)
        except HTTPError as error:
            if request.method is HTTPMethod.GET and error.status_code == 404:
                logger.info(
                    f"Error response for {request.target} eligible for null interception. "
                    f"Response body set to None."
                )
                return ResponseContext(
                    status=error.response.status,
                    status_text=error.response.status_text,
                    headers=dict(error.response.headers),
                    body=None,
                    request=request,
                )

            logger.debug(f"Error response for {request.target} not eligible for null interception.")
            raise
