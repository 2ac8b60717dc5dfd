"""
Интеграционные тесты: AsyncHTTPClient + HttpxTransport + respx.

Все stages включены, сеть замокана respx, sleep и часы подменены.
"""

import asyncio
import logging

import httpx
import pytest
import respx

from http_pipeline import AsyncHTTPClient
from http_pipeline.core.exceptions import ConnectionError, NotFoundError, ServerError

BASE = "https://api.example.com"


@pytest.fixture
def make_client(clock, sleep):
    clients = []

    def factory(**kwargs):
        client = AsyncHTTPClient(BASE, clock=clock, sleep=sleep, **kwargs)
        clients.append(client)
        return client

    return factory


class TestFullPipeline:

    @respx.mock
    @pytest.mark.asyncio
    async def test_get_cached_end_to_end(self, make_client):
        route = respx.get(f"{BASE}/users/1").mock(return_value=httpx.Response(200, json={"id": 1}))

        async with make_client() as client:
            first = await client.get("users/1")
            second = await client.get("users/1")

        assert route.call_count == 1
        assert first.body == second.body == {"id": 1}
        assert second.request.metadata.served_from_cache is True

    @respx.mock
    @pytest.mark.asyncio
    async def test_correlation_header_sent(self, make_client):
        route = respx.post(f"{BASE}/orders").mock(return_value=httpx.Response(201, json={"id": 7}))

        async with make_client(correlation_id_generator=lambda: "corr-1") as client:
            response = await client.post("orders", {"item": "book"})

        assert response.status == 201
        assert route.calls.last.request.headers["X-Correlation-Id"] == "corr-1"

    @respx.mock
    @pytest.mark.asyncio
    async def test_retry_with_backoff(self, make_client, sleep):
        route = respx.get(f"{BASE}/flaky").mock(side_effect=[
            httpx.Response(500),
            httpx.Response(502),
            httpx.Response(200, json={"ok": True}),
        ])

        async with make_client() as client:
            response = await client.get("flaky")

        assert response.body == {"ok": True}
        assert route.call_count == 3
        assert sleep.delays_ms == [0, 1000]
        assert response.request.metadata.retry_attempt == 2

    @respx.mock
    @pytest.mark.asyncio
    async def test_retry_exhausted(self, make_client):
        route = respx.get(f"{BASE}/down").mock(return_value=httpx.Response(503))

        async with make_client(max_retry_attempts=2) as client:
            with pytest.raises(ServerError):
                await client.get("down")

        assert route.call_count == 3

    @respx.mock
    @pytest.mark.asyncio
    async def test_network_error_retried(self, make_client):
        route = respx.get(f"{BASE}/users").mock(side_effect=[
            httpx.ConnectError("refused"),
            httpx.Response(200, json=[]),
        ])

        async with make_client() as client:
            response = await client.get("users")

        assert response.body == []
        assert route.call_count == 2

    @respx.mock
    @pytest.mark.asyncio
    async def test_network_error_exhausted(self, make_client):
        respx.get(f"{BASE}/users").mock(side_effect=httpx.ConnectError("refused"))

        async with make_client(max_retry_attempts=1) as client:
            with pytest.raises(ConnectionError):
                await client.get("users")

    @respx.mock
    @pytest.mark.asyncio
    async def test_not_found(self, make_client):
        respx.get(f"{BASE}/users/404").mock(return_value=httpx.Response(404))
        respx.delete(f"{BASE}/users/404").mock(return_value=httpx.Response(404))

        async with make_client() as client:
            response = await client.get("users/404")
            assert response.status == 404
            assert response.body is None

            with pytest.raises(NotFoundError):
                await client.delete("users/404")

    @respx.mock
    @pytest.mark.asyncio
    async def test_concurrent_requests_coalesced(self, make_client):
        route = respx.get(f"{BASE}/users/1").mock(return_value=httpx.Response(200, json={"id": 1}))

        async with make_client() as client:
            responses = await asyncio.gather(*[client.get("users/1") for _ in range(5)])

        assert route.call_count == 1
        assert all(r.body == {"id": 1} for r in responses)
        assert sum(r.request.metadata.served_from_in_flight for r in responses) == 4

    @respx.mock
    @pytest.mark.asyncio
    async def test_all_stages_disabled(self, make_client):
        route = respx.get(f"{BASE}/users/1").mock(return_value=httpx.Response(200, json={}))

        async with make_client(
            use_logging=False,
            use_correlation_id=False,
            use_caching=False,
            cache_in_flight_requests=False,
            use_get_not_found_returns_null=False,
            use_retry=False,
        ) as client:
            assert client.stage_names == ()
            await client.get("users/1")
            await client.get("users/1")

        assert route.call_count == 2
        assert "X-Correlation-Id" not in route.calls.last.request.headers

    @respx.mock
    @pytest.mark.asyncio
    async def test_logs_carry_correlation_id(self, make_client, caplog):
        caplog.set_level(logging.INFO, logger="http_pipeline")
        respx.get(f"{BASE}/users/1").mock(return_value=httpx.Response(200, json={}))

        async with make_client(correlation_id_generator=lambda: "log-id") as client:
            await client.get("users/1")

        stage_records = [r for r in caplog.records if r.name == "http_pipeline.stages.logging_stage"]
        assert stage_records
        assert all(r.correlation_id == "log-id" for r in stage_records)
