"""Data models for market data."""

from __future__ import annotations

import math
import time
from dataclasses import dataclass, field
from typing import Any


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def _optional_float(value: Any) -> float | None:
    if value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


@dataclass(frozen=True, slots=True)
class Quote:
    """Immutable quote for a single symbol at the time it was fetched.

    Optional OHLC/volume fields stay ``None`` when the provider did not
    supply them. Consumers must not read ``None`` as zero.
    """

    symbol: str
    price: float
    timestamp: int = field(default_factory=now_ms)  # epoch milliseconds
    open: float | None = None
    high: float | None = None
    low: float | None = None
    volume: float | None = None
    synthetic: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.price, (int, float)) or isinstance(self.price, bool):
            raise ValueError(f"price for {self.symbol} must be a number, got {self.price!r}")
        if not math.isfinite(self.price) or self.price <= 0:
            raise ValueError(f"price for {self.symbol} must be finite and positive, got {self.price!r}")

    def to_payload(self) -> dict[str, Any]:
        """Serialize to the ``ticker`` payload shape."""
        payload: dict[str, Any] = {"symbol": self.symbol, "price": self.price}
        for name in ("open", "high", "low", "volume"):
            value = getattr(self, name)
            if value is not None:
                payload[name] = value
        payload["ts"] = self.timestamp
        if self.synthetic:
            payload["synthetic"] = True
        return payload

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> Quote:
        """Parse a ``ticker`` payload. Raises ValueError/KeyError/TypeError on bad input."""
        return cls(
            symbol=str(payload["symbol"]),
            price=float(payload["price"]),
            timestamp=int(payload["ts"]),
            open=_optional_float(payload.get("open")),
            high=_optional_float(payload.get("high")),
            low=_optional_float(payload.get("low")),
            volume=_optional_float(payload.get("volume")),
            synthetic=bool(payload.get("synthetic", False)),
        )


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """A validated quote plus the wall-clock time it was stored."""

    quote: Quote
    stored_at: int  # epoch milliseconds


@dataclass(frozen=True, slots=True)
class CacheLookup:
    """Result of a cache read: the entry (if any) and whether it is within TTL."""

    entry: CacheEntry | None
    is_fresh: bool

    @property
    def quote(self) -> Quote | None:
        return self.entry.quote if self.entry else None
