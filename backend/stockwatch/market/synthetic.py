"""Synthetic placeholder quotes, the last fallback tier."""

from __future__ import annotations

import logging
import math
from collections.abc import Callable

import numpy as np

from .models import Quote, now_ms
from .seed_prices import (
    ANCHOR_BAND,
    DEFAULT_PARAMS,
    SEED_PRICES,
    SYNTHETIC_CEILING,
    SYNTHETIC_FLOOR,
    TICKER_PARAMS,
)

logger = logging.getLogger(__name__)


class SyntheticQuoteGenerator:
    """Fabricates bounded pseudo-random quotes for symbols with no real data.

    Used only when a fetch failed and nothing was ever cached for the symbol.
    Each symbol keeps its own last placeholder price and takes a lognormal
    step from it, so consecutive placeholders drift instead of jumping:

        P(n+1) = clamp(P(n) * exp(-sigma^2/2 + sigma * Z), lo, hi)

    Bounds:
        anchored symbols  [seed * (1 - ANCHOR_BAND), seed * (1 + ANCHOR_BAND)]
        everything else   [floor, ceiling], first draw uniform in that range
    """

    def __init__(
        self,
        floor: float = SYNTHETIC_FLOOR,
        ceiling: float = SYNTHETIC_CEILING,
        seed: int | None = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        if not 0 < floor < ceiling:
            raise ValueError(f"need 0 < floor < ceiling, got {floor}, {ceiling}")
        self._floor = floor
        self._ceiling = ceiling
        self._rng = np.random.default_rng(seed)
        self._clock = clock
        self._last: dict[str, float] = {}

    def bounds(self, symbol: str) -> tuple[float, float]:
        """Inclusive price range placeholders for this symbol stay within."""
        anchor = SEED_PRICES.get(symbol)
        if anchor is None:
            return self._floor, self._ceiling
        return anchor * (1 - ANCHOR_BAND), anchor * (1 + ANCHOR_BAND)

    def quote(self, symbol: str) -> Quote:
        """Next placeholder quote for a symbol, stamped with the current time."""
        lo, hi = self.bounds(symbol)
        previous = self._last.get(symbol)
        if previous is None:
            anchor = SEED_PRICES.get(symbol)
            price = anchor if anchor is not None else float(self._rng.uniform(lo, hi))
        else:
            sigma = TICKER_PARAMS.get(symbol, DEFAULT_PARAMS)["sigma"]
            z = float(self._rng.standard_normal())
            price = previous * math.exp(-0.5 * sigma**2 + sigma * z)

        price = round(min(max(price, lo), hi), 2)
        self._last[symbol] = price
        logger.debug("Synthetic placeholder for %s: %.2f", symbol, price)
        return Quote(symbol=symbol, price=price, timestamp=self._clock(), synthetic=True)
