"""Market data subsystem for Stockwatch.

Public API:
    Quote               - Immutable, validated quote dataclass
    FetchFailure        - Classified upstream failure (FailureKind)
    QuoteSource         - Abstract interface for upstream providers
    SnapshotCache       - Per-symbol TTL cache of the last good quote
    Connection          - Protocol for a push connection (send_text, close)
    ConnectionRegistry  - Open subscriber set; greets newcomers
    Broadcaster         - Isolated fan-out to every subscriber
    IngestionScheduler  - Rate-limited fetch -> cache -> broadcast loop
    MarketFeed          - Service object owning all of the above
    FeedSettings        - Environment-driven configuration
    create_market_feed  - Factory that wires a MarketFeed from settings
    create_stream_router - FastAPI router factory for the WebSocket endpoint
"""

from .broadcaster import Broadcaster, BroadcastResult
from .cache import SnapshotCache
from .config import FeedSettings
from .errors import FailureKind, FetchFailure
from .factory import create_market_feed, create_quote_source
from .feed import MarketFeed
from .interface import QuoteSource
from .models import CacheEntry, CacheLookup, Quote
from .registry import Connection, ConnectionRegistry, Subscriber
from .scheduler import CycleReport, IngestionScheduler, PayloadSource
from .stream import create_stream_router

__all__ = [
    "Broadcaster",
    "BroadcastResult",
    "CacheEntry",
    "CacheLookup",
    "Connection",
    "ConnectionRegistry",
    "CycleReport",
    "FailureKind",
    "FeedSettings",
    "FetchFailure",
    "IngestionScheduler",
    "MarketFeed",
    "PayloadSource",
    "Quote",
    "QuoteSource",
    "SnapshotCache",
    "Subscriber",
    "create_market_feed",
    "create_quote_source",
    "create_stream_router",
]
