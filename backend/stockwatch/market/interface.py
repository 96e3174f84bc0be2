"""Abstract interface for upstream quote providers."""

from __future__ import annotations

from abc import ABC, abstractmethod

from .errors import FetchFailure
from .models import Quote


class QuoteSource(ABC):
    """Contract for upstream quote providers.

    A source answers one symbol per request and classifies what went wrong.
    It never caches, schedules, retries, or touches connections. Those belong
    to the IngestionScheduler, so a source can be exercised against a fake
    upstream in isolation.

    Usage:
        source = create_quote_source(settings)
        result = await source.fetch("AAPL")
        if isinstance(result, FetchFailure):
            ...  # caller decides how to fall back
    """

    @abstractmethod
    async def fetch(self, symbol: str) -> Quote | FetchFailure:
        """Fetch one validated quote, or a FetchFailure describing why not.

        Must not raise for upstream problems. Every expected failure mode is
        reported as a FetchFailure.
        """

    @abstractmethod
    async def fetch_batch(self, symbols: list[str]) -> list[Quote]:
        """Fetch several symbols one after another with a fixed gap between calls.

        Returns only the quotes that succeeded, in input order. One bad
        symbol never fails the whole batch.
        """
