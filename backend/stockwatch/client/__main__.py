"""``python -m stockwatch.client [URL]``: tail the ticker channel to the log."""

import asyncio
import logging
import sys
from typing import Any

from stockwatch.logging_config import configure_logging
from stockwatch.market.config import FeedSettings
from stockwatch.market.models import Quote

from .stream import ClientStream, StreamState

logger = logging.getLogger("stockwatch.client")


def _log_ticker(quote: Quote) -> None:
    logger.info("%s %.2f%s", quote.symbol, quote.price, " (synthetic)" if quote.synthetic else "")


def _log_notification(payload: dict) -> None:
    logger.info("Notification: %s %s", payload.get("title", ""), payload.get("message", ""))


async def watch(settings: FeedSettings, url: str | None = None, **kwargs: Any) -> int:
    """Consume until the stream gives up. Returns a process exit code."""
    kwargs.setdefault("on_ticker", _log_ticker)
    kwargs.setdefault("on_notification", _log_notification)
    stream = ClientStream.from_settings(settings, url, **kwargs)
    try:
        await stream.run()
        exhausted = stream.state is StreamState.EXHAUSTED
    finally:
        await stream.stop()
    if exhausted:
        logger.error(stream.error)
        return 1
    return 0


def main(argv: list[str] | None = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    settings = FeedSettings.from_env()
    configure_logging(settings.log_level)
    try:
        return asyncio.run(watch(settings, argv[0] if argv else None))
    except KeyboardInterrupt:
        return 0


if __name__ == "__main__":
    raise SystemExit(main())
