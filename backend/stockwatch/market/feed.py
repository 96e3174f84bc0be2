"""The market-data pipeline as one explicit service object."""

from __future__ import annotations

import logging
from typing import Any

from .broadcaster import Broadcaster, BroadcastResult
from .cache import SnapshotCache
from .interface import QuoteSource
from .messages import notification_message
from .registry import Connection, ConnectionRegistry, Subscriber
from .scheduler import IngestionScheduler

logger = logging.getLogger(__name__)


class MarketFeed:
    """Owns the cache, registry, broadcaster and scheduler for one process.

    Built once at startup (see ``create_market_feed``) and handed to the
    connection-accept path. Nothing outside this object mutates the cache or
    the subscriber set directly.

    Lifecycle:
        feed = create_market_feed(settings)
        await feed.start()
        sub = await feed.connect(websocket)
        ...
        feed.disconnect(sub)
        await feed.stop()
    """

    def __init__(
        self,
        source: QuoteSource,
        cache: SnapshotCache,
        registry: ConnectionRegistry,
        broadcaster: Broadcaster,
        scheduler: IngestionScheduler,
    ) -> None:
        self.source = source
        self.cache = cache
        self.registry = registry
        self.broadcaster = broadcaster
        self.scheduler = scheduler
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        self.scheduler.start()
        logger.info("Market feed started")

    async def stop(self) -> None:
        """Stop polling, close every subscriber, then clear the cache. Idempotent."""
        if not self._running:
            return
        self._running = False
        logger.info("Shutting down market feed...")
        await self.scheduler.stop()
        await self.registry.close_all()
        self.cache.clear()
        logger.info("Market feed stopped")

    async def connect(self, conn: Connection) -> Subscriber:
        """Register a freshly accepted connection and seed it with current state."""
        return await self.registry.add(conn)

    def disconnect(self, sub: Subscriber) -> bool:
        return self.registry.remove(sub)

    async def notify(self, title: str | None = None, message: str | None = None) -> BroadcastResult:
        """Push an out-of-band notification to every subscriber."""
        return await self.broadcaster.broadcast(notification_message(title=title, message=message))

    def status(self) -> dict[str, Any]:
        return {
            "running": self._running,
            "connections": self.registry.count(),
            "cached_symbols": len(self.cache),
            "symbols": self.scheduler.symbols,
            "scheduler": self.scheduler.metrics(),
            "broadcaster": self.broadcaster.metrics(),
        }
