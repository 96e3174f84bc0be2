"""Bounded rolling buffer of recent ticks, deduplicated by (symbol, ts)."""

from __future__ import annotations

from stockwatch.market.models import Quote


class TickBuffer:
    """Most recent ``capacity`` ticks across all symbols, newest first."""

    def __init__(self, capacity: int = 100) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self._capacity = capacity
        self._items: list[Quote] = []

    @property
    def capacity(self) -> int:
        return self._capacity

    def add(self, quote: Quote) -> bool:
        """Prepend a tick unless the same (symbol, ts) is already held.

        Returns True if the tick was added.
        """
        key = (quote.symbol, quote.timestamp)
        if any((q.symbol, q.timestamp) == key for q in self._items):
            return False
        self._items.insert(0, quote)
        del self._items[self._capacity :]
        return True

    def items(self) -> list[Quote]:
        return list(self._items)

    def latest(self, symbol: str) -> Quote | None:
        """Newest tick held for a symbol, if any."""
        for quote in self._items:
            if quote.symbol == symbol:
                return quote
        return None

    def clear(self) -> None:
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)
