"""Тесты иерархии исключений."""

import httpx
import pytest

from http_pipeline.core.context import RequestContext, ResponseContext
from http_pipeline.core.exceptions import (
    BadRequestError,
    ConfigurationError,
    ConnectionError,
    ForbiddenError,
    HTTPClientException,
    HTTPError,
    InvalidResponseError,
    NetworkError,
    NotFoundError,
    ServerError,
    TimeoutError,
    TooManyRequestsError,
    TransportError,
    UnauthorizedError,
    classify_httpx_exception,
    error_for_response,
)


@pytest.fixture
def request_ctx():
    return RequestContext("GET", "https://api.example.com", "users/1")


def _response(request, status, headers=None):
    return ResponseContext(status=status, status_text="Error", headers=headers or {}, request=request)


class TestHierarchy:

    def test_network_errors(self):
        assert issubclass(TimeoutError, NetworkError)
        assert issubclass(ConnectionError, NetworkError)
        assert issubclass(NetworkError, TransportError)

    def test_http_errors(self):
        for cls in (BadRequestError, UnauthorizedError, ForbiddenError, NotFoundError,
                    TooManyRequestsError, ServerError):
            assert issubclass(cls, HTTPError)
        assert issubclass(HTTPError, TransportError)
        assert issubclass(TransportError, HTTPClientException)

    def test_configuration_error(self):
        assert issubclass(ConfigurationError, HTTPClientException)
        assert issubclass(ConfigurationError, ValueError)
        assert not issubclass(ConfigurationError, TransportError)


def test_network_error_has_no_response(request_ctx):
    error = ConnectionError("Connection refused", request_ctx)

    assert error.response is None
    assert error.request is request_ctx
    assert error.url == "https://api.example.com/users/1"
    assert "https://api.example.com/users/1" in str(error)


def test_http_error_carries_response(request_ctx):
    response = _response(request_ctx, 418)
    error = HTTPError(response, "teapot")

    assert error.status_code == 418
    assert error.response is response
    assert error.request is request_ctx
    assert "HTTP 418" in str(error)
    assert "teapot" in str(error)


@pytest.mark.parametrize("status,expected", [
    (400, BadRequestError),
    (401, UnauthorizedError),
    (403, ForbiddenError),
    (404, NotFoundError),
    (429, TooManyRequestsError),
    (500, ServerError),
    (503, ServerError),
    (418, HTTPError),
])
def test_error_for_response(request_ctx, status, expected):
    error = error_for_response(_response(request_ctx, status))

    assert type(error) is expected
    assert error.status_code == status


def test_retry_after_header(request_ctx):
    error = error_for_response(_response(request_ctx, 429, {"retry-after": "30"}))
    assert error.retry_after == "30"


class TestClassifyHttpx:
    """Конвертация исключений httpx."""

    def test_timeout(self, request_ctx):
        error = classify_httpx_exception(httpx.ReadTimeout("timed out"), request_ctx)
        assert isinstance(error, TimeoutError)
        assert error.response is None

    def test_connect_error(self, request_ctx):
        error = classify_httpx_exception(httpx.ConnectError("refused"), request_ctx)
        assert isinstance(error, ConnectionError)

    def test_unknown(self, request_ctx):
        error = classify_httpx_exception(RuntimeError("boom"), request_ctx)
        assert type(error) is HTTPClientException


@pytest.mark.parametrize("exc", [
    httpx.DecodingError("bad gzip"),
    httpx.TooManyRedirects("loop"),
])
def test_other_request_errors_become_network_errors(request_ctx, exc):
    """Все httpx.RequestError превращаются в NetworkError с запросом."""
    error = classify_httpx_exception(exc, request_ctx)

    assert isinstance(error, InvalidResponseError)
    assert isinstance(error, NetworkError)
    assert error.request is request_ctx
    assert error.response is None


def test_base_exception_rejects_unknown_kwargs():
    with pytest.raises(TypeError):
        HTTPClientException("boom", url="https://api.example.com")
