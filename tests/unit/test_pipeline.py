"""Тесты сборки pipeline."""

import asyncio
import logging

import pytest
from cachetools import TTLCache

from http_pipeline.core.config import PipelineConfig, STAGE_ORDER
from http_pipeline.core.context import ResponseContext
from http_pipeline.core.exceptions import NotFoundError, ServerError
from http_pipeline.pipeline import Pipeline, PipelineState, build_pipeline
from http_pipeline.stages.base import Stage

from conftest import ScriptedTransport, make_request


class RecordingStage(Stage):
    """Stage, записывающий порядок прохождения."""

    def __init__(self, name, log):
        self.name = name
        self.log = log

    async def handle(self, request, call_next):
        self.log.append(f"{self.name}:in")
        response = await call_next(request)
        self.log.append(f"{self.name}:out")
        return response


def test_default_stage_order(transport, clock, sleep):
    pipeline = build_pipeline(PipelineConfig(), transport, clock=clock, sleep=sleep)
    assert pipeline.stage_names == STAGE_ORDER


def test_disabled_stages_absent(transport):
    config = PipelineConfig.create(use_caching=False, cache_in_flight_requests=False)
    pipeline = build_pipeline(config, transport)

    assert pipeline.stage_names == ("retry", "correlation_id", "not_found", "logging")
    assert pipeline.get_stage("caching") is None


def test_custom_order(transport):
    config = PipelineConfig.create(stage_order=["logging", "caching", "retry"])
    assert build_pipeline(config, transport).stage_names == ("logging", "caching", "retry")


def test_default_cache_store(transport, clock):
    config = PipelineConfig.create(cache_ttl_ms=60_000, cache_max_size=10)
    pipeline = build_pipeline(config, transport, clock=clock)

    assert isinstance(pipeline.state.cache, TTLCache)
    assert pipeline.state.cache.maxsize == 10
    assert pipeline.state.cache.ttl == 60


def test_injected_cache_store(transport):
    store = {}
    pipeline = build_pipeline(PipelineConfig(), transport, cache_store=store)

    assert pipeline.state.cache is store
    assert pipeline.get_stage("caching").store is store


@pytest.mark.asyncio
async def test_stages_wrap_outer_to_inner(transport):
    log = []
    stages = [RecordingStage("outer", log), RecordingStage("inner", log)]
    pipeline = Pipeline(stages, transport, PipelineState(cache={}))

    await pipeline.execute(make_request())

    assert log == ["outer:in", "inner:in", "inner:out", "outer:out"]


@pytest.mark.asyncio
async def test_empty_pipeline_calls_transport(transport):
    pipeline = Pipeline([], transport, PipelineState(cache={}))

    response = await pipeline.execute(make_request())

    assert response.status == 200
    assert transport.call_count == 1


class TestCanonicalOrder:
    """Взаимодействие stages в каноническом порядке."""

    @pytest.mark.asyncio
    async def test_retry_goes_through_inner_stages(self, clock, sleep):
        transport = ScriptedTransport(500, 200)
        pipeline = build_pipeline(PipelineConfig(), transport, clock=clock, sleep=sleep)
        request = make_request()

        response = await pipeline.execute(request)

        assert response.status == 200
        assert request.metadata.retry_attempt == 1
        assert len({id(r.metadata) for r in transport.calls}) == 1
        assert {r.headers["X-Correlation-Id"] for r in transport.calls} == {request.metadata.correlation_id}

    @pytest.mark.asyncio
    async def test_retried_success_is_cached(self, clock, sleep):
        transport = ScriptedTransport(503, 200)
        pipeline = build_pipeline(PipelineConfig(), transport, clock=clock, sleep=sleep)

        await pipeline.execute(make_request())
        cached = make_request()
        await pipeline.execute(cached)

        assert transport.call_count == 2
        assert cached.metadata.served_from_cache is True

    @pytest.mark.asyncio
    async def test_get_404_is_not_retried(self, clock, sleep):
        transport = ScriptedTransport(404)
        pipeline = build_pipeline(PipelineConfig(), transport, clock=clock, sleep=sleep)

        response = await pipeline.execute(make_request())

        assert response.body is None
        assert transport.call_count == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_null_404_not_cached(self, clock, sleep):
        transport = ScriptedTransport(404, 404)
        pipeline = build_pipeline(PipelineConfig(), transport, clock=clock, sleep=sleep)

        await pipeline.execute(make_request())
        await pipeline.execute(make_request())

        assert transport.call_count == 2

    @pytest.mark.asyncio
    async def test_delete_404_raises(self, clock, sleep):
        pipeline = build_pipeline(PipelineConfig(), ScriptedTransport(404), clock=clock, sleep=sleep)

        with pytest.raises(NotFoundError):
            await pipeline.execute(make_request("DELETE"))

    @pytest.mark.asyncio
    async def test_coalesced_callers_share_retried_outcome(self, clock, sleep):
        """Каждый вызывающий ретраит сам; объединение не размножает запросы."""
        gate = asyncio.Event()
        transport = ScriptedTransport(500, gate=gate)
        config = PipelineConfig.create(max_retry_attempts=1)
        pipeline = build_pipeline(config, transport, clock=clock, sleep=sleep)

        tasks = [asyncio.ensure_future(pipeline.execute(make_request())) for _ in range(2)]
        await asyncio.sleep(0)
        gate.set()
        responses = await asyncio.gather(*tasks)

        assert [r.status for r in responses] == [200, 200]
        assert transport.call_count == 2
        assert len(pipeline.state.in_flight) == 0

    @pytest.mark.asyncio
    async def test_exhausted_retry_raises(self, clock, sleep):
        transport = ScriptedTransport(*([503] * 3))
        config = PipelineConfig.create(max_retry_attempts=2)
        pipeline = build_pipeline(config, transport, clock=clock, sleep=sleep)

        with pytest.raises(ServerError):
            await pipeline.execute(make_request())

        assert transport.call_count == 3
        assert sleep.delays_ms == [0, 1000]


@pytest.mark.asyncio
async def test_stage_may_answer_without_transport(transport):
    class ShortCircuit(Stage):
        name = "short"

        async def handle(self, request, call_next):
            return ResponseContext(status=204, request=request)

    pipeline = Pipeline([ShortCircuit()], transport, PipelineState(cache={}))

    assert (await pipeline.execute(make_request())).status == 204
    assert transport.call_count == 0


class TestFlagsAcrossRetries:
    """Флаги metadata отражают последний проход вызова."""

    @pytest.mark.asyncio
    async def test_retried_waiter_response_is_cached(self, clock, sleep):
        gate = asyncio.Event()
        transport = ScriptedTransport(500, gate=gate)
        config = PipelineConfig.create(in_flight_key_fn=lambda request: "shared")
        pipeline = build_pipeline(config, transport, clock=clock, sleep=sleep)
        owner = make_request("POST")
        waiter = make_request("GET")

        tasks = [asyncio.ensure_future(pipeline.execute(r)) for r in (owner, waiter)]
        await asyncio.sleep(0)
        gate.set()
        owner_result, waiter_result = await asyncio.gather(*tasks, return_exceptions=True)

        assert isinstance(owner_result, ServerError)
        assert waiter_result.status == 200
        assert transport.call_count == 2
        assert waiter.metadata.retry_attempt == 1
        assert waiter.metadata.served_from_in_flight is False
        assert len(pipeline.state.cache) == 1

    @pytest.mark.asyncio
    async def test_retried_waiter_not_logged_as_coalesced(self, clock, sleep, caplog):
        caplog.set_level(logging.INFO, logger="http_pipeline")
        gate = asyncio.Event()
        transport = ScriptedTransport(500, gate=gate)
        config = PipelineConfig.create(in_flight_key_fn=lambda request: "shared")
        pipeline = build_pipeline(config, transport, clock=clock, sleep=sleep)

        tasks = [asyncio.ensure_future(pipeline.execute(make_request(m))) for m in ("POST", "GET")]
        await asyncio.sleep(0)
        gate.set()
        await asyncio.gather(*tasks, return_exceptions=True)

        final = [
            r for r in caplog.records
            if r.name == "http_pipeline.stages.logging_stage" and getattr(r, "status_code", None) == 200
        ]
        assert len(final) == 1
        assert "in-flight" not in final[0].getMessage()


class TestEmptyFilters:
    """Явно пустые наборы методов / диапазонов не подменяются значениями по умолчанию."""

    @pytest.mark.asyncio
    async def test_empty_retryable_status_ranges(self, clock, sleep):
        transport = ScriptedTransport(503, 503)
        config = PipelineConfig.create(retryable_status_ranges=[])
        pipeline = build_pipeline(config, transport, clock=clock, sleep=sleep)

        with pytest.raises(ServerError):
            await pipeline.execute(make_request())

        assert transport.call_count == 1

    @pytest.mark.asyncio
    async def test_empty_cacheable_methods(self, clock, sleep):
        transport = ScriptedTransport()
        config = PipelineConfig.create(cacheable_methods=[])
        pipeline = build_pipeline(config, transport, clock=clock, sleep=sleep)

        await pipeline.execute(make_request())
        await pipeline.execute(make_request())

        assert transport.call_count == 2
