"""In-memory snapshot cache with a per-entry time-to-live."""

from __future__ import annotations

from collections.abc import Callable

from .models import CacheEntry, CacheLookup, Quote, now_ms


class SnapshotCache:
    """Last known-good quote for each symbol.

    Writers: IngestionScheduler, after a successful validated fetch.
    Readers: IngestionScheduler (is a fetch needed?) and ConnectionRegistry
    (seed a newly connected subscriber).

    Only touched from the event loop and never across an await, so no lock.
    Memory is bounded by the symbol universe, not by client count.
    """

    def __init__(self, ttl_ms: int = 5000, clock: Callable[[], int] = now_ms) -> None:
        self._entries: dict[str, CacheEntry] = {}
        self._ttl_ms = ttl_ms
        self._clock = clock

    @property
    def ttl_ms(self) -> int:
        return self._ttl_ms

    def get(self, symbol: str) -> CacheLookup:
        """Look up a symbol. Fresh means strictly younger than the TTL."""
        entry = self._entries.get(symbol)
        if entry is None:
            return CacheLookup(entry=None, is_fresh=False)
        return CacheLookup(entry=entry, is_fresh=self._is_fresh(entry, self._clock()))

    def put(self, symbol: str, quote: Quote) -> CacheEntry:
        """Store a quote, replacing whatever was there (last write wins)."""
        entry = CacheEntry(quote=quote, stored_at=self._clock())
        self._entries[symbol] = entry
        return entry

    def snapshot_all(self) -> list[CacheEntry]:
        """All entries still within TTL, in the order symbols were first stored."""
        now = self._clock()
        return [entry for entry in self._entries.values() if self._is_fresh(entry, now)]

    def clear(self) -> None:
        """Drop every entry. Only used at shutdown."""
        self._entries.clear()

    def _is_fresh(self, entry: CacheEntry, now: int) -> bool:
        return now - entry.stored_at < self._ttl_ms

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, symbol: str) -> bool:
        return symbol in self._entries
