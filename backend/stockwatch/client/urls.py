"""WebSocket URL normalization for stream consumers."""

from __future__ import annotations

import os
import re

DEFAULT_WS_URL = "ws://localhost:4000/ws"

_DOUBLED_SECURE = re.compile(r"wss?://https://")
_DOUBLED_PLAIN = re.compile(r"wss?://http://")


def normalize_ws_url(url: str | None, fallback: str = DEFAULT_WS_URL) -> str:
    """Coerce a user- or env-supplied URL into a ws:// or wss:// URL.

    - empty -> fallback
    - ws:// and wss:// pass through
    - http:// -> ws://, https:// -> wss://
    - doubled prefixes such as ``wss://https://`` are repaired
    - bare hosts get ws:// for localhost, wss:// otherwise
    """
    if not url or not url.strip():
        return fallback
    url = url.strip()

    url = _DOUBLED_SECURE.sub("wss://", url)
    url = _DOUBLED_PLAIN.sub("ws://", url)

    if url.startswith(("ws://", "wss://")):
        return url
    if url.startswith("http://"):
        return "ws://" + url[len("http://") :]
    if url.startswith("https://"):
        return "wss://" + url[len("https://") :]

    if "localhost" in url or "127.0.0.1" in url:
        return f"ws://{url}"
    return f"wss://{url}"


def default_ws_url() -> str:
    """The stream URL from STOCKWATCH_WS_URL, normalized."""
    return normalize_ws_url(os.environ.get("STOCKWATCH_WS_URL"), DEFAULT_WS_URL)
