"""
Иерархия исключений HTTP Pipeline.

Классификация:
- ConfigurationError - противоречивые или невалидные опции (при сборке pipeline)
- NetworkError - ответа нет (DNS, connection refused, таймаут)
- HTTPError - ответ получен, но со статусом ошибки
"""

from typing import TYPE_CHECKING, Optional

import httpx

if TYPE_CHECKING:
    from .context import RequestContext, ResponseContext

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# BASE
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class HTTPClientException(Exception):
    """Базовое исключение HTTP Pipeline."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

class ConfigurationError(HTTPClientException, ValueError):
    """Ошибка конфигурации (выбрасывается при сборке pipeline)."""
    pass

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# TRANSPORT
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class TransportError(HTTPClientException):
    """
    Ошибка транспорта.

    Args:
        message: Сообщение об ошибке
        request: Исходный RequestContext
        response: ResponseContext, если сервер ответил (иначе None)
    """

    def __init__(
        self,
        message: str,
        request: Optional["RequestContext"] = None,
        response: Optional["ResponseContext"] = None,
    ):
        self.request = request
        self.response = response
        super().__init__(message)

    @property
    def url(self) -> Optional[str]:
        """URL запроса (если известен)."""
        return self.request.url if self.request is not None else None

class NetworkError(TransportError):
    """Сетевая ошибка - ответа нет."""

    def __init__(self, message: str, request: Optional["RequestContext"] = None):
        full_message = message
        if request is not None:
            full_message += f" (url: {request.url})"
        super().__init__(full_message, request=request)

class TimeoutError(NetworkError):
    """Таймаут запроса."""
    pass

class ConnectionError(NetworkError):
    """
    Ошибка подключения.

    Примеры:
    - Connection refused
    - Connection reset
    - DNS resolution failed
    """
    pass

class InvalidResponseError(NetworkError):
    """
    Ответ не удалось обработать (ResponseContext не создан).

    Примеры:
    - Ошибка декодирования тела (httpx.DecodingError)
    - Слишком много редиректов (httpx.TooManyRedirects)
    """
    pass

class HTTPError(TransportError):
    """
    Ответ получен, но статус >= 400.

    Args:
        response: ResponseContext с телом и заголовками ответа
        message: Дополнительное сообщение
    """

    def __init__(self, response: "ResponseContext", message: str = ""):
        self.status_code = response.status

        msg = f"HTTP {response.status} error for {response.request.url}"
        if message:
            msg += f": {message}"

        super().__init__(msg, request=response.request, response=response)

class BadRequestError(HTTPError):
    """400 Bad Request."""
    pass

class UnauthorizedError(HTTPError):
    """401 Unauthorized."""
    pass

class ForbiddenError(HTTPError):
    """403 Forbidden."""
    pass

class NotFoundError(HTTPError):
    """404 Not Found."""
    pass

class TooManyRequestsError(HTTPError):
    """
    429 Rate Limit.

    Attributes:
        retry_after: Значение Retry-After заголовка (если есть)
    """

    def __init__(self, response: "ResponseContext", message: str = ""):
        self.retry_after = _header(response, "Retry-After")
        super().__init__(response, message)

class ServerError(HTTPError):
    """5xx ошибка сервера."""
    pass

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# УТИЛИТЫ
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

_STATUS_ERRORS = {
    400: BadRequestError,
    401: UnauthorizedError,
    403: ForbiddenError,
    404: NotFoundError,
    429: TooManyRequestsError,
}

def _header(response: "ResponseContext", name: str) -> Optional[str]:
    for key, value in response.headers.items():
        if key.lower() == name.lower():
            return value
    return None

def error_for_response(response: "ResponseContext") -> HTTPError:
    """
    Подобрать исключение по статус коду ответа.

    Examples:
        >>> error = error_for_response(response)  # status=404
        >>> assert isinstance(error, NotFoundError)
    """
    error_class = _STATUS_ERRORS.get(response.status)
    if error_class is None:
        error_class = ServerError if response.status >= 500 else HTTPError
    return error_class(response, response.status_text)

def classify_httpx_exception(
    exc: Exception,
    request: "RequestContext"
) -> HTTPClientException:
    """
    Конвертировать httpx исключения в наши.

    Args:
        exc: Исключение из httpx
        request: Исходный RequestContext

    Returns:
        Наше исключение с правильной классификацией

    Examples:
        >>> exc = httpx.ConnectTimeout("timed out")
        >>> our_exc = classify_httpx_exception(exc, request)
        >>> assert isinstance(our_exc, TimeoutError)
    """
    if isinstance(exc, httpx.TimeoutException):
        return TimeoutError(f"Request timeout: {exc}", request)

    elif isinstance(exc, httpx.TransportError):
        return ConnectionError(f"Connection error: {exc}", request)

    elif isinstance(exc, httpx.RequestError):
        return InvalidResponseError(f"Invalid response: {exc}", request)

    else:
        # Неизвестная ошибка - оборачиваем
        return HTTPClientException(str(exc))
