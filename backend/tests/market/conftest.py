"""Fakes and fixtures for market data tests.

The pipeline components only talk to a QuoteSource and to transports with
``send_text``/``close``, so both are replaced here by in-memory doubles.
"""

import json

import pytest

from stockwatch.market.broadcaster import Broadcaster
from stockwatch.market.cache import SnapshotCache
from stockwatch.market.interface import QuoteSource
from stockwatch.market.models import Quote
from stockwatch.market.registry import ConnectionRegistry
from stockwatch.market.scheduler import IngestionScheduler
from stockwatch.market.synthetic import SyntheticQuoteGenerator


class FakeQuoteSource(QuoteSource):
    """Scripted upstream: each symbol maps to a Quote, FetchFailure, or exception."""

    def __init__(self, results=None):
        self.results = dict(results or {})
        self.calls: list[str] = []

    async def fetch(self, symbol):
        self.calls.append(symbol)
        result = self.results[symbol]
        if isinstance(result, Exception):
            raise result
        return result

    async def fetch_batch(self, symbols):
        out = []
        for symbol in symbols:
            result = await self.fetch(symbol)
            if isinstance(result, Quote):
                out.append(result)
        return out


class FakeTransport:
    """Records frames; optionally fails the first ``fail_times`` sends (or all)."""

    def __init__(self, fail_times: int = 0, always_fail: bool = False):
        self.sent: list[str] = []
        self.fail_times = fail_times
        self.always_fail = always_fail
        self.send_attempts = 0
        self.closed = False

    async def send_text(self, data: str) -> None:
        self.send_attempts += 1
        if self.always_fail or self.fail_times > 0:
            self.fail_times -= 1
            raise RuntimeError("socket is broken")
        self.sent.append(data)

    async def close(self) -> None:
        self.closed = True

    def messages(self) -> list[dict]:
        return [json.loads(frame) for frame in self.sent]

    def tickers(self) -> list[dict]:
        return [m["payload"] for m in self.messages() if m["type"] == "ticker"]


@pytest.fixture
def cache(clock):
    return SnapshotCache(ttl_ms=5000, clock=clock)


@pytest.fixture
def registry(cache):
    return ConnectionRegistry(cache)


@pytest.fixture
def broadcaster(registry):
    return Broadcaster(registry)


@pytest.fixture
def make_scheduler(cache, registry, broadcaster, clock, sleep_recorder):
    """Build an IngestionScheduler around a FakeQuoteSource."""

    def _make(symbols, results, **kwargs):
        kwargs.setdefault("sleep", sleep_recorder)
        source = FakeQuoteSource(results)
        scheduler = IngestionScheduler(
            symbols=symbols,
            source=source,
            cache=cache,
            registry=registry,
            broadcaster=broadcaster,
            synthetic=SyntheticQuoteGenerator(seed=7, clock=clock),
            **kwargs,
        )
        return scheduler, source

    return _make


@pytest.fixture
def make_transport():
    """The FakeTransport class, so tests can build as many as they need."""
    return FakeTransport


@pytest.fixture
def make_source():
    return FakeQuoteSource
