"""Factories for the quote source and the assembled market feed."""

from __future__ import annotations

import logging

from .alpha_vantage import AlphaVantageQuoteSource
from .broadcaster import Broadcaster
from .cache import SnapshotCache
from .config import FeedSettings
from .feed import MarketFeed
from .interface import QuoteSource
from .registry import ConnectionRegistry
from .scheduler import IngestionScheduler
from .synthetic import SyntheticQuoteGenerator

logger = logging.getLogger(__name__)


def create_quote_source(settings: FeedSettings) -> QuoteSource:
    """Create the upstream quote source from settings.

    - ALPHA_VANTAGE_API_KEY set and non-empty -> live Alpha Vantage fetches
    - Otherwise -> the same source, failing closed on every fetch, so the
      scheduler's fallback chain serves synthetic placeholders
    """
    if settings.api_key:
        logger.info("Quote source: Alpha Vantage (real data)")
    else:
        logger.info("Quote source: Alpha Vantage without API key (placeholders only)")
    return AlphaVantageQuoteSource(
        api_key=settings.api_key,
        base_url=settings.base_url,
        timeout=settings.fetch_timeout_seconds,
    )


def create_market_feed(
    settings: FeedSettings | None = None,
    source: QuoteSource | None = None,
) -> MarketFeed:
    """Wire cache, registry, broadcaster and scheduler into one MarketFeed.

    Returns an unstarted feed. Caller must await feed.start().
    """
    settings = settings or FeedSettings.from_env()
    source = source or create_quote_source(settings)

    cache = SnapshotCache(ttl_ms=settings.cache_ttl_ms)
    registry = ConnectionRegistry(cache)
    broadcaster = Broadcaster(registry)
    scheduler = IngestionScheduler(
        symbols=settings.symbols,
        source=source,
        cache=cache,
        registry=registry,
        broadcaster=broadcaster,
        synthetic=SyntheticQuoteGenerator(),
        interval=settings.interval_seconds,
        batch_size=settings.batch_size,
        batch_delay=settings.batch_delay_seconds,
    )
    return MarketFeed(
        source=source,
        cache=cache,
        registry=registry,
        broadcaster=broadcaster,
        scheduler=scheduler,
    )
