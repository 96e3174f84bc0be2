"""Consumer side of the ticker push channel.

Public API:
    ClientStream     - Reconnecting subscription with backoff and dedup
    StreamState      - ClientStream lifecycle states
    TickBuffer       - Bounded rolling buffer keyed by (symbol, ts)
    normalize_ws_url - Coerce http(s)/bare hosts into ws(s) URLs
"""

from .buffer import TickBuffer
from .errors import StreamError, TransportClosed, TransportError
from .stream import EXHAUSTED_MESSAGE, ClientStream, StreamState
from .urls import default_ws_url, normalize_ws_url

__all__ = [
    "ClientStream",
    "EXHAUSTED_MESSAGE",
    "StreamError",
    "StreamState",
    "TickBuffer",
    "TransportClosed",
    "TransportError",
    "default_ws_url",
    "normalize_ws_url",
]
