"""Fan-out of one message to every registered subscriber."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from .messages import encode
from .registry import ConnectionRegistry, Subscriber

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class BroadcastResult:
    sent: int
    failed: int


class Broadcaster:
    """Best-effort delivery to all subscribers, isolated per connection.

    A subscriber whose send still fails after ``send_retries`` extra attempts
    is counted as failed, dropped from the registry and closed, so its peer
    sees the close and can reconnect. Nobody else notices.
    """

    def __init__(self, registry: ConnectionRegistry, send_retries: int = 1) -> None:
        self._registry = registry
        self._send_retries = send_retries
        self._broadcasts = 0
        self._sent = 0
        self._failed = 0

    async def broadcast(self, message: dict[str, Any] | str) -> BroadcastResult:
        """Serialize once and write to every subscriber. Never raises."""
        data = encode(message)
        sent = failed = 0

        for sub in self._registry:
            if not sub.open:
                continue
            delivered = await self._send(sub, data)
            if delivered is None:
                continue
            if delivered:
                sent += 1
            else:
                failed += 1
                await self._registry.drop(sub)

        self._broadcasts += 1
        self._sent += sent
        self._failed += failed
        if failed:
            logger.debug("Broadcast completed with errors: sent=%d failed=%d", sent, failed)
        return BroadcastResult(sent=sent, failed=failed)

    async def _send(self, sub: Subscriber, data: str) -> bool | None:
        """Write under the subscriber's lock. None if it closed while we waited."""
        async with sub.lock:
            if not sub.open:
                return None
            for attempt in range(self._send_retries + 1):
                try:
                    await sub.conn.send_text(data)
                    return True
                except Exception as e:
                    logger.warning(
                        "Send to subscriber #%d failed (attempt %d): %s", sub.id, attempt + 1, e
                    )
        return False

    def metrics(self) -> dict[str, int]:
        return {"broadcasts": self._broadcasts, "sent": self._sent, "failed": self._failed}
