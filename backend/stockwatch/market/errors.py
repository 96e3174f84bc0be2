"""Failure taxonomy for upstream quote fetches."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class FailureKind(str, Enum):
    TIMEOUT = "timeout"
    RATE_LIMITED = "rate_limited"  # provider's own throttle, not a network timeout
    UPSTREAM_ERROR = "upstream_error"  # non-2xx, unreachable, or malformed envelope
    INVALID_DATA = "invalid_data"  # envelope parsed but price unusable


@dataclass(frozen=True, slots=True)
class FetchFailure:
    """A classified fetch failure. Returned, never raised, by QuoteSource.fetch()."""

    symbol: str
    kind: FailureKind
    detail: str = ""

    def __str__(self) -> str:
        if self.detail:
            return f"{self.symbol}: {self.kind.value} ({self.detail})"
        return f"{self.symbol}: {self.kind.value}"
