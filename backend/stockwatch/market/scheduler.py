"""Periodic, rate-limited ingestion loop: fetch -> cache -> broadcast."""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum

from .broadcaster import Broadcaster
from .cache import SnapshotCache
from .errors import FailureKind, FetchFailure
from .interface import QuoteSource
from .messages import ticker_message
from .models import Quote
from .registry import ConnectionRegistry
from .synthetic import SyntheticQuoteGenerator

logger = logging.getLogger(__name__)


class PayloadSource(str, Enum):
    """Which tier of the fallback chain produced a symbol's payload."""

    CACHE = "cache"  # fresh cache hit, no network call
    FETCHED = "fetched"  # fresh from upstream, now cached
    STALE = "stale"  # fetch failed, expired cache entry reused as-is
    SYNTHETIC = "synthetic"  # fetch failed, nothing cached, placeholder fabricated


@dataclass(frozen=True, slots=True)
class Resolution:
    symbol: str
    quote: Quote
    source: PayloadSource
    failure: FetchFailure | None = None


@dataclass(slots=True)
class CycleReport:
    skipped: bool = False
    aborted: bool = False
    resolutions: list[Resolution] = field(default_factory=list)

    def by_symbol(self) -> dict[str, Resolution]:
        return {r.symbol: r for r in self.resolutions}


class IngestionScheduler:
    """Polls the QuoteSource for a fixed symbol list and pushes every result.

    Each cycle:
      1. No subscribers -> skip entirely (no fetches, no broadcasts).
      2. Walk the symbols in batches of ``batch_size``, in list order. For
         each symbol pick the first tier that works:
             fresh cache -> upstream fetch -> stale cache -> synthetic
         and broadcast the resulting ticker immediately.
      3. Sleep ``batch_delay`` seconds between batches to respect the
         provider's per-minute ceiling.

    A cycle never raises. Every symbol yields exactly one payload.
    The injected ``sleep`` paces both the batch delay and the interval.

    Rate limits (Alpha Vantage free tier, 5 req/min):
      batch_size=1, batch_delay=13s -> ~4.6 req/min
    """

    def __init__(
        self,
        symbols: list[str],
        source: QuoteSource,
        cache: SnapshotCache,
        registry: ConnectionRegistry,
        broadcaster: Broadcaster,
        synthetic: SyntheticQuoteGenerator,
        interval: float = 60.0,
        batch_size: int = 1,
        batch_delay: float = 13.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        self._symbols = list(symbols)
        self._source = source
        self._cache = cache
        self._registry = registry
        self._broadcaster = broadcaster
        self._synthetic = synthetic
        self._interval = interval
        self._batch_size = batch_size
        self._batch_delay = batch_delay
        self._sleep = sleep

        self._alive = True
        self._task: asyncio.Task | None = None

        self._cycles = 0
        self._skipped = 0
        self._tiers: Counter[str] = Counter()
        self._failures: Counter[str] = Counter()

    @property
    def symbols(self) -> list[str]:
        return list(self._symbols)

    @property
    def alive(self) -> bool:
        return self._alive

    # --- Lifecycle ---

    def start(self) -> None:
        """Spawn the loop task. The first cycle runs immediately."""
        if self._task and not self._task.done():
            return
        self._alive = True
        self._task = asyncio.create_task(self._run_loop(), name="ingestion-scheduler")
        logger.info(
            "Ingestion scheduler started: %d symbols, %.1fs interval, batch %d every %.1fs",
            len(self._symbols),
            self._interval,
            self._batch_size,
            self._batch_delay,
        )

    async def stop(self) -> None:
        """Cancel the loop. In-flight fetch results are discarded afterwards."""
        self._alive = False
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        logger.info("Ingestion scheduler stopped")

    # --- Cycle ---

    async def run_cycle(self) -> CycleReport:
        """Run one full pass over the symbol list."""
        report = CycleReport()
        if self._registry.is_empty():
            self._skipped += 1
            logger.debug("No subscribers connected, skipping fetch cycle")
            report.skipped = True
            return report

        self._cycles += 1
        batches = [
            self._symbols[i : i + self._batch_size]
            for i in range(0, len(self._symbols), self._batch_size)
        ]
        for index, batch in enumerate(batches):
            if not self._alive:
                report.aborted = True
                break
            resolved = await asyncio.gather(*(self._process_symbol(s) for s in batch))
            report.resolutions.extend(r for r in resolved if r is not None)

            if index < len(batches) - 1:
                await self._sleep(self._batch_delay)

        logger.debug(
            "Fetch cycle completed: %s",
            dict(Counter(r.source.value for r in report.resolutions)),
        )
        return report

    async def _process_symbol(self, symbol: str) -> Resolution | None:
        """Resolve one symbol and broadcast it. None only after shutdown."""
        try:
            resolution = await self._resolve(symbol)
        except Exception:
            logger.exception("Unexpected error resolving %s", symbol)
            resolution = self._fallback(symbol, None)

        if not self._alive:
            return None
        self._tiers[resolution.source.value] += 1
        await self._broadcaster.broadcast(ticker_message(resolution.quote))
        return resolution

    async def _resolve(self, symbol: str) -> Resolution:
        lookup = self._cache.get(symbol)
        if lookup.entry is not None and lookup.is_fresh:
            logger.debug("Using cached data for %s", symbol)
            return Resolution(symbol, lookup.entry.quote, PayloadSource.CACHE)

        result = await self._source.fetch(symbol)
        if isinstance(result, Quote):
            # Cache may already be cleared by shutdown
            if self._alive:
                self._cache.put(symbol, result)
            return Resolution(symbol, result, PayloadSource.FETCHED)

        self._failures[result.kind.value] += 1
        logger.warning("Fetch failed for %s", result)
        return self._fallback(symbol, result)

    def _fallback(self, symbol: str, failure: FetchFailure | None) -> Resolution:
        lookup = self._cache.get(symbol)
        if lookup.entry is not None:
            logger.debug("Using expired cache for %s due to fetch failure", symbol)
            return Resolution(symbol, lookup.entry.quote, PayloadSource.STALE, failure)
        return Resolution(symbol, self._synthetic.quote(symbol), PayloadSource.SYNTHETIC, failure)

    # --- Loop ---

    async def _run_loop(self) -> None:
        """Run a cycle, then wait out the rest of the interval (start-to-start)."""
        loop = asyncio.get_running_loop()
        while self._alive:
            started = loop.time()
            try:
                await self.run_cycle()
            except Exception:
                logger.exception("Fetch cycle failed")
            elapsed = loop.time() - started
            await self._sleep(max(self._interval - elapsed, 0.0))

    def metrics(self) -> dict[str, object]:
        return {
            "cycles": self._cycles,
            "skipped_cycles": self._skipped,
            "tiers": {tier.value: self._tiers[tier.value] for tier in PayloadSource},
            "failures": {kind.value: self._failures[kind.value] for kind in FailureKind},
        }
