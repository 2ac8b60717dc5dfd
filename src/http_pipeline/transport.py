# src/http_pipeline/transport.py
"""
Транспорт: единственная точка, где запрос реально уходит в сеть.

Pipeline требует от транспорта одно: send(request) -> response
или TransportError (с response для HTTP ошибок, без него для сетевых).
"""

from typing import Any, Callable, Dict, Optional, Protocol, runtime_checkable

import httpx

from .core.config import PipelineConfig
from .core.context import RequestContext, ResponseContext
from .core.exceptions import (
    ConfigurationError,
    classify_httpx_exception,
    error_for_response,
)


@runtime_checkable
class Transport(Protocol):
    """Capability, которую оборачивает pipeline."""

    async def send(self, request: RequestContext) -> ResponseContext:
        ...


TransportFactory = Callable[[PipelineConfig], Transport]


class HttpxTransport:
    """
    Транспорт на базе httpx.AsyncClient.

    Статус >= 400 превращается в HTTPError (с ResponseContext),
    таймауты и сетевые сбои httpx - в TimeoutError / ConnectionError.

    Example:
        >>> transport = HttpxTransport(timeout=10)
        >>> response = await transport.send(RequestContext("GET", "https://api.example.com", "users"))
        >>> await transport.close()
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        *,
        headers: Optional[Dict[str, str]] = None,
        timeout: float = 30.0,
        verify: bool = True,
    ):
        """
        Args:
            client: Готовый httpx.AsyncClient (им владеет вызывающий код)
            headers: Заголовки по умолчанию для созданного клиента
            timeout: Таймаут (сек) для созданного клиента
            verify: Проверять SSL сертификаты
        """
        self._client = client
        self._owns_client = client is None
        self._headers = dict(headers or {})
        self._timeout = httpx.Timeout(timeout)
        self._verify = verify

    @classmethod
    def from_config(cls, config: PipelineConfig) -> "HttpxTransport":
        """Фабрика транспорта по умолчанию."""
        return cls(headers=dict(config.headers), timeout=config.timeout)

    def _get_client(self) -> httpx.AsyncClient:
        """Получить или лениво создать httpx клиент."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers=self._headers,
                timeout=self._timeout,
                verify=self._verify,
            )
        return self._client

    @staticmethod
    def _encode_body(body: Any) -> Dict[str, Any]:
        if body is None:
            return {}
        if isinstance(body, (bytes, str)):
            return {"content": body}
        return {"json": body}

    @staticmethod
    def _decode_body(response: httpx.Response) -> Any:
        if not response.content:
            return None
        content_type = response.headers.get("content-type", "")
        if "json" in content_type:
            try:
                return response.json()
            except ValueError:
                return response.text
        return response.text

    async def send(self, request: RequestContext) -> ResponseContext:
        """
        Выполнить запрос.

        Raises:
            HTTPError: Статус ответа >= 400
            TimeoutError: Таймаут
            ConnectionError: Сетевая ошибка
        """
        client = self._get_client()
        kwargs = dict(request.options)
        kwargs.update(self._encode_body(request.body))

        try:
            raw = await client.request(
                request.method.value,
                request.url,
                headers=request.headers,
                **kwargs,
            )
        except httpx.HTTPError as e:
            raise classify_httpx_exception(e, request) from e

        response = ResponseContext(
            status=raw.status_code,
            status_text=raw.reason_phrase,
            headers=dict(raw.headers),
            body=self._decode_body(raw),
            request=request,
        )

        if raw.status_code >= 400:
            raise error_for_response(response)

        return response

    async def close(self) -> None:
        """Закрыть клиент, если он создан транспортом."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None


def resolve_transport(
    config: PipelineConfig,
    transport: Optional[Transport] = None,
    transport_factory: Optional[TransportFactory] = None,
) -> Transport:
    """
    Выбрать транспорт для pipeline.

    Raises:
        ConfigurationError: Переданы одновременно transport и transport_factory
    """
    if transport is not None and transport_factory is not None:
        raise ConfigurationError("Passing both transport and transport_factory is not supported.")

    if transport is not None:
        return transport

    factory = transport_factory or HttpxTransport.from_config
    return factory(config)
