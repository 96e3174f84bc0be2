"""FastAPI application: health, notifications, and the market-data push channel."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from pydantic import BaseModel

from .logging_config import configure_logging
from .market import FeedSettings, MarketFeed, create_market_feed, create_stream_router

logger = logging.getLogger(__name__)


class NotificationIn(BaseModel):
    title: str | None = None
    message: str | None = None


def create_app(
    settings: FeedSettings | None = None,
    feed: MarketFeed | None = None,
) -> FastAPI:
    """Build the app around one MarketFeed, started and stopped by the lifespan."""
    settings = settings or FeedSettings.from_env()
    feed = feed or create_market_feed(settings)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        await feed.start()
        logger.info("API started with %d symbols", len(settings.symbols))
        try:
            yield
        finally:
            await feed.stop()

    app = FastAPI(title="Stockwatch API", version="0.1.0", lifespan=lifespan)
    app.state.feed = feed
    app.include_router(create_stream_router(feed))

    @app.get("/api/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/api/notifications")
    async def send_notification(body: NotificationIn) -> dict[str, str]:
        """Broadcast an out-of-band notification to every connected dashboard."""
        result = await feed.notify(title=body.title, message=body.message)
        logger.info("Notification sent to %d subscribers", result.sent)
        return {"status": "sent"}

    return app


def build_app() -> FastAPI:
    """Uvicorn factory entrypoint: configures logging from the environment first."""
    settings = FeedSettings.from_env()
    configure_logging(settings.log_level)
    return create_app(settings)
