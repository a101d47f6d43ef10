"""Pytest configuration and shared fixtures for the API client tests."""

import json
import logging

from typing import TYPE_CHECKING, Any

import httpx
import pytest
import pytest_asyncio

from chainview.data.chain.client import EtherscanClient
from chainview.data.market.client import CoinGeckoClient
from chainview.helpers.http import RequestExecutor
from chainview.helpers.logging import loggers
from chainview.helpers.rate_limit import RateLimiter


if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Callable, Generator


ETHERSCAN_URL = "https://etherscan.test/v2/api"
COINGECKO_URL = "https://coingecko.test/api/v3"


class FakeClock:
    """Monotonic clock whose ``sleep`` advances time instantly and records waits."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def envelope(result: Any, *, status: str = "1", message: str = "OK") -> dict[str, Any]:
    """Etherscan response envelope."""
    return {"status": status, "message": message, "result": result}


def rpc(result: Any) -> dict[str, Any]:
    """Etherscan proxy (JSON-RPC) response."""
    return {"jsonrpc": "2.0", "id": 1, "result": result}


def json_response(payload: Any, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, text=json.dumps(payload))


def route_by_action(
    routes: dict[str, Any],
) -> "Callable[[httpx.Request], httpx.Response]":
    """Build an httpx_mock callback answering by the ``action`` query parameter.

    A route value may be a payload, an ``httpx.Response``, or a callable taking
    the request and returning either.
    """

    def _callback(request: httpx.Request) -> httpx.Response:
        action = request.url.params.get("action", "")
        if action not in routes:
            return httpx.Response(404, text="unrouted")
        answer = routes[action]
        if callable(answer):
            answer = answer(request)
        if isinstance(answer, httpx.Response):
            return answer
        return json_response(answer)

    return _callback


def route_by_path(
    routes: dict[str, Any],
) -> "Callable[[httpx.Request], httpx.Response]":
    """Build an httpx_mock callback answering by URL path suffix."""

    def _callback(request: httpx.Request) -> httpx.Response:
        for suffix, answer in routes.items():
            if request.url.path.endswith(suffix):
                if callable(answer):
                    answer = answer(request)
                if isinstance(answer, httpx.Response):
                    return answer
                return json_response(answer)
        return httpx.Response(404, text="unrouted")

    return _callback


@pytest.fixture
def restore_log_streams() -> "Generator[None, None, None]":
    """Restore logger handler streams redirected during a test."""
    streams = {
        handler: handler.stream
        for logger in loggers.values()
        for handler in logger.handlers
        if isinstance(handler, logging.StreamHandler)
    }
    yield
    for handler, stream in streams.items():
        handler.stream = stream


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def rate_limiter(fake_clock: FakeClock) -> RateLimiter:
    return RateLimiter(400, clock=fake_clock, sleep=fake_clock.sleep)


@pytest_asyncio.fixture
async def http_client() -> "AsyncGenerator[httpx.AsyncClient, None]":
    async with httpx.AsyncClient() as client:
        yield client


@pytest.fixture
def executor(
    http_client: httpx.AsyncClient, rate_limiter: RateLimiter, fake_clock: FakeClock
) -> RequestExecutor:
    return RequestExecutor(
        http_client, rate_limiter, max_retries=3, sleep=fake_clock.sleep
    )


@pytest.fixture
def etherscan(executor: RequestExecutor) -> EtherscanClient:
    return EtherscanClient(
        executor, api_key="test-key", base_url=ETHERSCAN_URL, initial_delay_ms=0
    )


@pytest.fixture
def coingecko(executor: RequestExecutor) -> CoinGeckoClient:
    return CoinGeckoClient(executor, base_url=COINGECKO_URL)
