"""
Pytest configuration and fixtures for http-pipeline-core tests.
"""

import asyncio
from typing import Any, Callable, List, Optional, Union

import pytest

from http_pipeline.core.context import HTTPMethod, RequestContext, ResponseContext
from http_pipeline.core.exceptions import ConnectionError, error_for_response

NETWORK_ERROR = "network-error"

Outcome = Union[int, str, Exception, Callable[[RequestContext], Any]]


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    """Sleep primitive that records requested delays and advances the fake clock."""

    def __init__(self, clock: Optional[FakeClock] = None):
        self.clock = clock
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)
        if self.clock is not None:
            self.clock.advance(seconds)
        await asyncio.sleep(0)

    @property
    def delays_ms(self) -> List[float]:
        return [delay * 1000 for delay in self.delays]


class ScriptedTransport:
    """
    Transport that replays a script of outcomes.

    Outcomes: int status (>= 400 raises the matching HTTPError),
    NETWORK_ERROR (raises ConnectionError without response),
    an Exception instance (raised as is). After the script is
    exhausted ``default_status`` is returned.
    """

    def __init__(self, *outcomes: Outcome, default_status: int = 200, gate: Optional[asyncio.Event] = None):
        self.outcomes = list(outcomes)
        self.default_status = default_status
        self.gate = gate
        self.calls: List[RequestContext] = []

    async def send(self, request: RequestContext) -> ResponseContext:
        self.calls.append(request)
        call_number = len(self.calls)

        if self.gate is not None:
            await self.gate.wait()
        else:
            await asyncio.sleep(0)

        outcome = self.outcomes.pop(0) if self.outcomes else self.default_status

        if outcome == NETWORK_ERROR:
            raise ConnectionError("Connection refused", request)
        if isinstance(outcome, Exception):
            raise outcome

        response = ResponseContext(
            status=outcome,
            status_text="Status" if outcome < 400 else "Error",
            headers={"Content-Type": "application/json"},
            body={"call": call_number},
            request=request,
        )
        if outcome >= 400:
            raise error_for_response(response)
        return response

    @property
    def call_count(self) -> int:
        return len(self.calls)


def make_request(
    method: Union[str, HTTPMethod] = HTTPMethod.GET,
    path: str = "users/1",
    base_url: str = "https://api.example.com",
    **kwargs: Any,
) -> RequestContext:
    """Build a RequestContext for tests."""
    return RequestContext(method=method, base_url=base_url, path=path, **kwargs)


@pytest.fixture
def base_url():
    """Base URL for testing."""
    return "https://api.example.com"


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sleep(clock):
    return RecordingSleep(clock)


@pytest.fixture
def transport():
    return ScriptedTransport()
