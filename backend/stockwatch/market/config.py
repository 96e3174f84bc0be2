"""Environment-driven settings for the market-data pipeline."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field

from .alpha_vantage import DEFAULT_BASE_URL
from .seed_prices import DEFAULT_SYMBOLS


def _int_env(env: Mapping[str, str], name: str, default: int, minimum: int = 0) -> int:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got {value}")
    return value


def _symbols_env(env: Mapping[str, str], name: str, default: list[str]) -> list[str]:
    raw = env.get(name, "").strip()
    if not raw:
        return list(default)
    symbols: list[str] = []
    for part in raw.split(","):
        symbol = part.strip().upper()
        if symbol and symbol not in symbols:
            symbols.append(symbol)
    return symbols or list(default)


@dataclass(frozen=True)
class FeedSettings:
    """Every knob the pipeline and its consumers recognize.

    Durations are milliseconds, matching the wire timestamps. Use the
    ``*_seconds`` helpers when handing them to asyncio.
    """

    api_key: str = ""
    base_url: str = DEFAULT_BASE_URL
    symbols: list[str] = field(default_factory=lambda: list(DEFAULT_SYMBOLS))
    cache_ttl_ms: int = 5000
    interval_ms: int = 60000
    batch_delay_ms: int = 13000
    batch_size: int = 1
    fetch_timeout_ms: int = 10000
    buffer_capacity: int = 100
    reconnect_base_ms: int = 1000
    reconnect_cap_ms: int = 30000
    max_reconnect_attempts: int = 5
    host: str = "0.0.0.0"
    port: int = 4000
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> FeedSettings:
        """Read settings from the environment. Blank values fall back to defaults."""
        env = os.environ if env is None else env
        return cls(
            api_key=env.get("ALPHA_VANTAGE_API_KEY", "").strip(),
            base_url=env.get("ALPHA_VANTAGE_BASE_URL", "").strip() or DEFAULT_BASE_URL,
            symbols=_symbols_env(env, "FEED_SYMBOLS", DEFAULT_SYMBOLS),
            cache_ttl_ms=_int_env(env, "FEED_CACHE_TTL_MS", 5000),
            interval_ms=_int_env(env, "FEED_INTERVAL_MS", 60000, minimum=1),
            batch_delay_ms=_int_env(env, "FEED_BATCH_DELAY_MS", 13000),
            batch_size=_int_env(env, "FEED_BATCH_SIZE", 1, minimum=1),
            fetch_timeout_ms=_int_env(env, "FEED_FETCH_TIMEOUT_MS", 10000, minimum=1),
            buffer_capacity=_int_env(env, "STREAM_BUFFER_CAPACITY", 100, minimum=1),
            reconnect_base_ms=_int_env(env, "STREAM_RECONNECT_BASE_MS", 1000),
            reconnect_cap_ms=_int_env(env, "STREAM_RECONNECT_CAP_MS", 30000),
            max_reconnect_attempts=_int_env(env, "STREAM_MAX_RECONNECT_ATTEMPTS", 5),
            host=env.get("HOST", "").strip() or "0.0.0.0",
            port=_int_env(env, "PORT", 4000, minimum=1),
            log_level=env.get("LOG_LEVEL", "").strip().upper() or "INFO",
        )

    @property
    def interval_seconds(self) -> float:
        return self.interval_ms / 1000.0

    @property
    def batch_delay_seconds(self) -> float:
        return self.batch_delay_ms / 1000.0

    @property
    def fetch_timeout_seconds(self) -> float:
        return self.fetch_timeout_ms / 1000.0
