"""WebSocket push endpoint for live ticker updates."""

from __future__ import annotations

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from .feed import MarketFeed

logger = logging.getLogger(__name__)


def create_stream_router(feed: MarketFeed) -> APIRouter:
    """Create the streaming router with a reference to the market feed.

    This factory pattern lets us inject the MarketFeed without globals.
    """
    router = APIRouter(tags=["streaming"])

    @router.websocket("/ws")
    async def stream_tickers(websocket: WebSocket) -> None:
        """Push channel for ticker and notification frames.

        On connect the client receives:

            {"type": "welcome", "ts": ...}
            {"type": "ticker", "payload": {...}}   # one per fresh cached symbol

        then every ticker the scheduler resolves, as it resolves. Inbound
        frames are read and ignored; they only keep disconnect detection alive.
        """
        await websocket.accept()
        client = websocket.client.host if websocket.client else "unknown"
        sub = await feed.connect(websocket)
        logger.info("WebSocket client connected: %s", client)

        try:
            while sub.open:
                await websocket.receive_text()
        except WebSocketDisconnect:
            logger.info("WebSocket client disconnected: %s", client)
        except Exception as e:
            logger.warning("WebSocket error for %s: %s", client, e)
        finally:
            feed.disconnect(sub)

    @router.get("/api/stream/status")
    async def stream_status() -> dict:
        """Connection count, cache size and pipeline counters."""
        return feed.status()

    return router
