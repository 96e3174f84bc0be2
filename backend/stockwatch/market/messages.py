"""Push-channel message envelopes.

Every frame is a JSON object tagged by ``type``:

    {"type": "welcome", "ts": 1700000000000}
    {"type": "ticker", "payload": {"symbol": "AAPL", "price": 190.5, "ts": ...}}
    {"type": "notification", "payload": {"title": ..., "message": ..., "ts": ...}}
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any

from .models import Quote, now_ms


class MessageType(str, Enum):
    WELCOME = "welcome"
    TICKER = "ticker"
    NOTIFICATION = "notification"


def welcome_message(ts: int | None = None) -> dict[str, Any]:
    return {"type": MessageType.WELCOME.value, "ts": now_ms() if ts is None else ts}


def ticker_message(quote: Quote) -> dict[str, Any]:
    return {"type": MessageType.TICKER.value, "payload": quote.to_payload()}


def notification_message(
    title: str | None = None,
    message: str | None = None,
    ts: int | None = None,
) -> dict[str, Any]:
    """Out-of-band notice. Never produced by the ingestion pipeline itself."""
    payload: dict[str, Any] = {}
    if title is not None:
        payload["title"] = title
    if message is not None:
        payload["message"] = message
    payload["ts"] = now_ms() if ts is None else ts
    return {"type": MessageType.NOTIFICATION.value, "payload": payload}


def encode(message: dict[str, Any] | str) -> str:
    """Serialize a message for the wire. Strings pass through untouched."""
    if isinstance(message, str):
        return message
    return json.dumps(message, separators=(",", ":"))
