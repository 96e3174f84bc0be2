"""Registry of open subscriber connections."""

from __future__ import annotations

import asyncio
import itertools
import logging
from collections.abc import Iterator
from typing import Protocol, runtime_checkable

from .cache import SnapshotCache
from .messages import encode, ticker_message, welcome_message

logger = logging.getLogger(__name__)


@runtime_checkable
class Connection(Protocol):
    """Anything that can carry text frames. fastapi.WebSocket fits."""

    async def send_text(self, data: str) -> None: ...

    async def close(self) -> None: ...


class Subscriber:
    """Opaque handle for one push connection plus its open/closed state.

    Handles are minted by ConnectionRegistry.add() and are single-use: once
    removed, a handle stays closed and is never registered again.

    Every outbound write goes through ``lock``, so frames reach the
    connection in the order their writers acquired it.
    """

    _ids = itertools.count(1)

    def __init__(self, conn: Connection) -> None:
        self.id = next(self._ids)
        self.conn = conn
        self.open = True
        self.lock = asyncio.Lock()

    async def send_text(self, data: str) -> None:
        async with self.lock:
            await self.conn.send_text(data)

    async def close(self) -> None:
        await self.conn.close()

    def __repr__(self) -> str:
        state = "open" if self.open else "closed"
        return f"<Subscriber #{self.id} {state}>"


class ConnectionRegistry:
    """Tracks open push connections.

    Owned by the MarketFeed. The scheduler asks ``is_empty()`` to skip idle
    cycles, and the Broadcaster iterates it.
    """

    def __init__(self, cache: SnapshotCache) -> None:
        self._cache = cache
        self._subscribers: dict[int, Subscriber] = {}  # insertion-ordered

    async def add(self, conn: Connection) -> Subscriber:
        """Register a connection, then greet it with welcome + cached snapshot.

        The greeting holds the subscriber's lock, so a broadcast that starts
        meanwhile is written after the snapshot, never before the welcome.
        If the greeting cannot be delivered the subscriber is dropped again;
        check ``subscriber.open`` on the returned handle.
        """
        sub = Subscriber(conn)
        self._subscribers[sub.id] = sub
        logger.info("Subscriber #%d connected (%d open)", sub.id, len(self._subscribers))

        greeted = True
        async with sub.lock:
            frames = [encode(welcome_message())]
            frames.extend(
                encode(ticker_message(entry.quote)) for entry in self._cache.snapshot_all()
            )
            try:
                for frame in frames:
                    await sub.conn.send_text(frame)
            except Exception as e:
                logger.warning("Greeting subscriber #%d failed: %s", sub.id, e)
                greeted = False
        if not greeted:
            await self.drop(sub)
        return sub

    def remove(self, sub: Subscriber) -> bool:
        """Forget a subscriber. Safe to call repeatedly; only the first call counts."""
        if not sub.open:
            return False
        sub.open = False
        self._subscribers.pop(sub.id, None)
        logger.info("Subscriber #%d disconnected (%d open)", sub.id, len(self._subscribers))
        return True

    async def drop(self, sub: Subscriber) -> bool:
        """Forget a subscriber and close its connection, so the peer sees the close."""
        if not self.remove(sub):
            return False
        try:
            await sub.close()
        except Exception as e:
            logger.debug("Ignoring error while closing subscriber #%d: %s", sub.id, e)
        return True

    async def close_all(self) -> None:
        """Close and forget every subscriber (shutdown path)."""
        for sub in list(self._subscribers.values()):
            await self.drop(sub)

    def count(self) -> int:
        return len(self._subscribers)

    def is_empty(self) -> bool:
        return not self._subscribers

    def __iter__(self) -> Iterator[Subscriber]:
        # Copy, since a failed send removes its subscriber mid-iteration
        return iter(list(self._subscribers.values()))

    def __len__(self) -> int:
        return len(self._subscribers)

    def __contains__(self, sub: object) -> bool:
        return isinstance(sub, Subscriber) and self._subscribers.get(sub.id) is sub
