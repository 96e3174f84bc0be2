"""Alpha Vantage GLOBAL_QUOTE client for real market data."""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Awaitable, Callable
from typing import Any

import requests

from .errors import FailureKind, FetchFailure
from .interface import QuoteSource
from .models import Quote, now_ms

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://www.alphavantage.co/query"

# Keys Alpha Vantage uses in a 200 response to say "slow down"
RATE_LIMIT_MARKERS = ("Note", "Information")


class AlphaVantageQuoteSource(QuoteSource):
    """QuoteSource backed by the Alpha Vantage REST API.

    Issues GET /query?function=GLOBAL_QUOTE&symbol=... per symbol.

    Rate limits:
      - Free tier: 5 req/min, 25 req/day. The scheduler spaces single-symbol
        batches ~13s apart to stay under the per-minute ceiling.
      - Throttled responses come back as HTTP 200 with a "Note" or
        "Information" key instead of "Global Quote".
    """

    def __init__(
        self,
        api_key: str,
        session: Any = None,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 10.0,
        batch_delay: float = 0.2,
        clock: Callable[[], int] = now_ms,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._api_key = (api_key or "").strip()
        self._session = session or requests
        self._base_url = base_url
        self._timeout = timeout
        self._batch_delay = batch_delay
        self._clock = clock
        self._sleep = sleep
        if not self._api_key:
            logger.warning("ALPHA_VANTAGE_API_KEY not set; every fetch will fail closed")

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    async def fetch(self, symbol: str) -> Quote | FetchFailure:
        if not self._api_key:
            return FetchFailure(symbol, FailureKind.UPSTREAM_ERROR, "api key not configured")

        try:
            # requests is blocking; keep it off the event loop
            response = await asyncio.to_thread(self._request, symbol)
        except requests.Timeout as e:
            return FetchFailure(symbol, FailureKind.TIMEOUT, str(e))
        except requests.RequestException as e:
            return FetchFailure(symbol, FailureKind.UPSTREAM_ERROR, str(e))

        return self._parse_response(symbol, response)

    async def fetch_batch(self, symbols: list[str]) -> list[Quote]:
        results: list[Quote] = []
        for i, symbol in enumerate(symbols):
            result = await self.fetch(symbol)
            if isinstance(result, Quote):
                results.append(result)
            else:
                logger.warning("Batch fetch skipped %s", result)
            if i < len(symbols) - 1:
                await self._sleep(self._batch_delay)
        return results

    # --- Internal ---

    def _request(self, symbol: str) -> Any:
        """Synchronous call to the Alpha Vantage API. Runs in a thread."""
        return self._session.get(
            self._base_url,
            params={"function": "GLOBAL_QUOTE", "symbol": symbol, "apikey": self._api_key},
            timeout=self._timeout,
        )

    def _parse_response(self, symbol: str, response: Any) -> Quote | FetchFailure:
        status = getattr(response, "status_code", None)
        if status == 429:
            return FetchFailure(symbol, FailureKind.RATE_LIMITED, "HTTP 429")
        if not isinstance(status, int) or not 200 <= status < 300:
            return FetchFailure(symbol, FailureKind.UPSTREAM_ERROR, f"HTTP {status}")

        try:
            data = response.json()
        except ValueError as e:
            return FetchFailure(symbol, FailureKind.UPSTREAM_ERROR, f"invalid JSON: {e}")
        if not isinstance(data, dict):
            return FetchFailure(symbol, FailureKind.UPSTREAM_ERROR, "envelope is not an object")

        for marker in RATE_LIMIT_MARKERS:
            if marker in data:
                return FetchFailure(symbol, FailureKind.RATE_LIMITED, str(data[marker]))
        if "Error Message" in data:
            return FetchFailure(symbol, FailureKind.UPSTREAM_ERROR, str(data["Error Message"]))

        envelope = data.get("Global Quote")
        if not isinstance(envelope, dict) or not envelope:
            return FetchFailure(symbol, FailureKind.UPSTREAM_ERROR, "missing Global Quote")

        try:
            price = float(envelope["05. price"])
        except (KeyError, TypeError, ValueError):
            return FetchFailure(
                symbol, FailureKind.INVALID_DATA, f"bad price {envelope.get('05. price')!r}"
            )
        if not math.isfinite(price) or price <= 0:
            return FetchFailure(symbol, FailureKind.INVALID_DATA, f"bad price {price!r}")

        return Quote(
            symbol=symbol,
            price=price,
            timestamp=self._clock(),
            open=_parse_optional(envelope.get("02. open")),
            high=_parse_optional(envelope.get("03. high")),
            low=_parse_optional(envelope.get("04. low")),
            volume=_parse_optional(envelope.get("06. volume")),
        )


def _parse_optional(value: Any) -> float | None:
    if value is None or value == "":
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None
