"""Resilient consumer of the ticker push channel."""

from __future__ import annotations

import asyncio
import json
import logging
from collections import deque
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any

import websockets
from websockets.exceptions import ConnectionClosed, InvalidHandshake

from stockwatch.market.config import FeedSettings
from stockwatch.market.messages import MessageType
from stockwatch.market.models import Quote

from .buffer import TickBuffer
from .errors import StreamError, TransportClosed, TransportError
from .urls import default_ws_url, normalize_ws_url

logger = logging.getLogger(__name__)

EXHAUSTED_MESSAGE = "Unable to connect to market data. Please refresh."


class StreamState(str, Enum):
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"  # waiting out a reconnect delay
    EXHAUSTED = "exhausted"  # gave up; needs reset()
    STOPPED = "stopped"  # torn down by the owner


class ClientStream:
    """One logical subscription over a transport that may be recreated.

    State machine:

        CONNECTING -> OPEN -> CLOSED -> CONNECTING -> ... -> EXHAUSTED

    Opening resets the attempt counter. Each close while
    ``attempts < max_attempts`` sleeps ``min(base_delay * 2**attempts,
    cap_delay)`` then reconnects; otherwise the stream lands in EXHAUSTED
    with a persistent ``error`` and stays there until ``reset()``.

    ``stop()`` cancels a pending reconnect, closes the live transport, and
    freezes the state at STOPPED.
    """

    def __init__(
        self,
        url: str | None = None,
        *,
        capacity: int = 100,
        base_delay: float = 1.0,
        cap_delay: float = 30.0,
        max_attempts: int = 5,
        connect: Callable[[str], Any] | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        on_ticker: Callable[[Quote], None] | None = None,
        on_notification: Callable[[dict[str, Any]], None] | None = None,
        on_state_change: Callable[[StreamState], None] | None = None,
    ) -> None:
        self.url = normalize_ws_url(url) if url else default_ws_url()
        self.buffer = TickBuffer(capacity)
        self.notifications: deque[dict[str, Any]] = deque(maxlen=capacity)
        self._base_delay = base_delay
        self._cap_delay = cap_delay
        self._max_attempts = max_attempts
        self._connect = connect or websockets.connect
        self._sleep = sleep
        self._on_ticker = on_ticker
        self._on_notification = on_notification
        self._on_state_change = on_state_change

        self.state = StreamState.CLOSED
        self.attempts = 0
        self.delays: list[float] = []
        self.error: str | None = None
        self.last_error: StreamError | None = None
        self.server_ts: int | None = None

        self._transport: Any = None
        self._task: asyncio.Task | None = None
        self._stopped = False

    @classmethod
    def from_settings(
        cls, settings: FeedSettings, url: str | None = None, **kwargs: Any
    ) -> ClientStream:
        """Build a stream from the STREAM_* settings. Durations arrive in ms."""
        kwargs.setdefault("capacity", settings.buffer_capacity)
        kwargs.setdefault("base_delay", settings.reconnect_base_ms / 1000.0)
        kwargs.setdefault("cap_delay", settings.reconnect_cap_ms / 1000.0)
        kwargs.setdefault("max_attempts", settings.max_reconnect_attempts)
        return cls(url, **kwargs)

    @property
    def is_connected(self) -> bool:
        return self.state is StreamState.OPEN

    def backoff_delay(self, attempt: int) -> float:
        return min(self._base_delay * (2**attempt), self._cap_delay)

    # --- Lifecycle ---

    def start(self) -> asyncio.Task:
        """Spawn ``run()`` as a background task."""
        if self._task and not self._task.done():
            return self._task
        self._stopped = False
        self._task = asyncio.create_task(self.run(), name="client-stream")
        return self._task

    async def stop(self) -> None:
        """Tear down: cancel any pending reconnect and close the live transport."""
        self._stopped = True
        # Taken before cancelling; the connect loop forgets it on the way out
        transport, self._transport = self._transport, None
        task, self._task = self._task, None
        if task and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        if transport is not None:
            try:
                await transport.close()
            except Exception as e:
                logger.debug("Ignoring error while closing transport: %s", e)
        self.state = StreamState.STOPPED
        logger.info("Client stream stopped")

    def reset(self) -> None:
        """External reset out of EXHAUSTED; call start() afterwards."""
        if self.state is not StreamState.EXHAUSTED:
            raise RuntimeError(f"reset() is only valid when exhausted, not {self.state.value}")
        self.attempts = 0
        self.delays.clear()
        self.error = None
        self.last_error = None
        self._set_state(StreamState.CLOSED)

    async def run(self) -> None:
        """Connect, consume, and reconnect until exhausted or stopped."""
        if self.state is StreamState.EXHAUSTED:
            return
        while not self._stopped:
            self._set_state(StreamState.CONNECTING)
            failure = await self._connect_once()
            if self._stopped:
                return

            self.last_error = failure
            self._set_state(StreamState.CLOSED)
            if self.attempts >= self._max_attempts:
                self.error = EXHAUSTED_MESSAGE
                logger.error("Giving up on %s after %d attempts: %s", self.url, self.attempts, failure)
                self._set_state(StreamState.EXHAUSTED)
                return

            delay = self.backoff_delay(self.attempts)
            self.delays.append(delay)
            logger.info("Stream closed (%s); reconnecting in %.1fs", failure, delay)
            await self._sleep(delay)
            self.attempts += 1

    async def _connect_once(self) -> StreamError:
        """One transport lifetime. Returns why it ended."""
        try:
            async with self._connect(self.url) as ws:
                self._transport = ws
                self._on_open()
                async for raw in ws:
                    self.handle_message(raw)
            return TransportClosed("connection closed")
        except ConnectionClosed as e:
            return TransportClosed(str(e))
        except (OSError, asyncio.TimeoutError, InvalidHandshake) as e:
            return TransportError(str(e) or type(e).__name__)
        except Exception as e:
            logger.warning("Unexpected transport failure: %s", e)
            return TransportError(str(e) or type(e).__name__)
        finally:
            self._transport = None

    def _on_open(self) -> None:
        self.attempts = 0
        self.error = None
        self._set_state(StreamState.OPEN)
        logger.info("Stream connected: %s", self.url)

    def _set_state(self, state: StreamState) -> None:
        if self._stopped:
            return
        self.state = state
        if self._on_state_change is not None:
            self._safe_call(self._on_state_change, state)

    # --- Messages ---

    def handle_message(self, raw: str | bytes) -> bool:
        """Dispatch one frame by its ``type``. Returns True if it changed state.

        Unknown tags and malformed frames are ignored.
        """
        try:
            data = json.loads(raw)
        except (TypeError, ValueError):
            return False
        if not isinstance(data, dict):
            return False

        kind = data.get("type")
        if kind == MessageType.TICKER.value:
            return self._handle_ticker(data.get("payload"))
        if kind == MessageType.NOTIFICATION.value:
            payload = data.get("payload")
            if not isinstance(payload, dict):
                return False
            self.notifications.appendleft(payload)
            if self._on_notification is not None:
                self._safe_call(self._on_notification, payload)
            return True
        if kind == MessageType.WELCOME.value:
            ts = data.get("ts")
            self.server_ts = ts if isinstance(ts, int) else None
            return True
        return False

    def _handle_ticker(self, payload: Any) -> bool:
        if not isinstance(payload, dict):
            return False
        try:
            quote = Quote.from_payload(payload)
        except (KeyError, TypeError, ValueError):
            logger.debug("Ignoring malformed ticker payload: %r", payload)
            return False
        if not self.buffer.add(quote):
            return False
        if self._on_ticker is not None:
            self._safe_call(self._on_ticker, quote)
        return True

    @staticmethod
    def _safe_call(callback: Callable[[Any], None], arg: Any) -> None:
        try:
            callback(arg)
        except Exception:
            logger.exception("Client stream callback failed")
