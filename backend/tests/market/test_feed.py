"""Integration tests for MarketFeed."""

import asyncio

import pytest

from stockwatch.market.config import FeedSettings
from stockwatch.market.errors import FailureKind, FetchFailure
from stockwatch.market.factory import create_market_feed
from stockwatch.market.models import Quote


def _feed(make_source, results, **settings):
    source = make_source(results)
    settings.setdefault("symbols", list(results))
    feed = create_market_feed(FeedSettings(**settings), source=source)
    return feed, source


@pytest.mark.asyncio
class TestMarketFeed:
    """Integration tests for the assembled pipeline."""

    async def test_connect_then_cycle(self, make_source, make_transport):
        """A subscriber is welcomed, then receives the cycle's tickers."""
        feed, _ = _feed(make_source, {"AAPL": Quote(symbol="AAPL", price=190.5, timestamp=1)})
        transport = make_transport()

        sub = await feed.connect(transport)
        await feed.scheduler.run_cycle()

        assert sub.open is True
        types = [m["type"] for m in transport.messages()]
        assert types == ["welcome", "ticker"]
        assert feed.cache.get("AAPL").quote.price == 190.5

    async def test_late_joiner_gets_snapshot(self, make_source, make_transport):
        feed, _ = _feed(make_source, {"AAPL": Quote(symbol="AAPL", price=190.5, timestamp=1)})
        await feed.connect(make_transport())
        await feed.scheduler.run_cycle()

        late = make_transport()
        await feed.connect(late)

        assert [m["type"] for m in late.messages()] == ["welcome", "ticker"]
        assert late.tickers()[0]["price"] == 190.5

    async def test_start_and_stop(self, make_source, make_transport):
        """stop() cancels polling, closes subscribers, and clears the cache."""
        feed, source = _feed(make_source, {"AAPL": Quote(symbol="AAPL", price=190.5, timestamp=1)})
        transport = make_transport()
        await feed.connect(transport)

        await feed.start()
        for _ in range(20):
            await asyncio.sleep(0.01)
            if "AAPL" in feed.cache:
                break
        assert feed.running is True
        assert source.calls == ["AAPL"]

        await feed.stop()

        assert feed.running is False
        assert feed.scheduler.alive is False
        assert transport.closed is True
        assert feed.registry.is_empty()
        assert len(feed.cache) == 0

    async def test_stop_is_idempotent(self, make_source):
        feed, _ = _feed(make_source, {"AAPL": Quote(symbol="AAPL", price=190.5, timestamp=1)})
        await feed.start()
        await feed.stop()
        await feed.stop()  # Should not raise

    async def test_disconnect(self, make_source, make_transport):
        feed, _ = _feed(make_source, {"AAPL": Quote(symbol="AAPL", price=190.5, timestamp=1)})
        sub = await feed.connect(make_transport())

        assert feed.disconnect(sub) is True
        assert feed.disconnect(sub) is False
        assert feed.registry.is_empty()

    async def test_notify_broadcasts_notification(self, make_source, make_transport):
        feed, _ = _feed(make_source, {"AAPL": Quote(symbol="AAPL", price=190.5, timestamp=1)})
        transport = make_transport()
        await feed.connect(transport)

        result = await feed.notify(title="Heads up", message="Markets close early")

        assert result.sent == 1
        note = transport.messages()[-1]
        assert note["type"] == "notification"
        assert note["payload"]["title"] == "Heads up"
        assert note["payload"]["message"] == "Markets close early"
        assert isinstance(note["payload"]["ts"], int)

    async def test_status(self, make_source, make_transport):
        feed, _ = _feed(
            make_source,
            {"AAPL": FetchFailure("AAPL", FailureKind.UPSTREAM_ERROR, "api key not configured")},
        )
        await feed.connect(make_transport())
        await feed.scheduler.run_cycle()

        status = feed.status()
        assert status["connections"] == 1
        assert status["cached_symbols"] == 0
        assert status["symbols"] == ["AAPL"]
        assert status["scheduler"]["tiers"]["synthetic"] == 1
        assert status["scheduler"]["failures"]["upstream_error"] == 1
        assert status["broadcaster"]["sent"] == 1
