"""Fan-out of refresh notifications to live viewers.

Viewers hold a WebSocket open and re-fetch ``GET /images`` and ``GET /params``
whenever they receive the literal text ``refresh``.  No other message type
exists in either direction.

Delivery is fire-and-forget and at most once per subscriber per broadcast.
A subscriber whose socket is no longer open, or whose send fails, is simply
dropped from the set; the request that triggered the broadcast never sees
the failure.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from starlette.websockets import WebSocketState

logger = logging.getLogger(__name__)

REFRESH_MESSAGE = "refresh"


def _is_open(handle: Any) -> bool:
    return (
        handle.client_state == WebSocketState.CONNECTED
        and handle.application_state == WebSocketState.CONNECTED
    )


class NotificationBroadcaster:
    """Registry of subscriber handles.

    A handle is anything shaped like :class:`starlette.websockets.WebSocket`:
    it exposes ``client_state``, ``application_state`` and an async
    ``send_text``.  Membership in the set is the only state kept per
    subscriber.
    """

    def __init__(self) -> None:
        self._subscribers: set[Any] = set()
        self._lock = asyncio.Lock()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def subscribe(self, handle: Any) -> None:
        async with self._lock:
            self._subscribers.add(handle)
        logger.info(f"Subscriber connected ({self.subscriber_count} live)")

    async def unsubscribe(self, handle: Any) -> None:
        """Remove *handle*; unknown handles are ignored."""
        async with self._lock:
            if handle not in self._subscribers:
                return
            self._subscribers.discard(handle)
        logger.info(f"Subscriber disconnected ({self.subscriber_count} live)")

    async def broadcast_refresh(self) -> int:
        """Send :data:`REFRESH_MESSAGE` to every open subscriber.

        Iterates over a snapshot so that connects and disconnects during the
        sends are safe.

        Returns:
            Number of subscribers the message was handed to.
        """
        async with self._lock:
            snapshot = list(self._subscribers)

        delivered = 0
        dead: list[Any] = []
        for handle in snapshot:
            if not _is_open(handle):
                dead.append(handle)
                continue
            try:
                await handle.send_text(REFRESH_MESSAGE)
            except Exception as e:
                logger.warning(f"Dropping subscriber after failed send: {e}")
                dead.append(handle)
                continue
            delivered += 1

        if dead:
            async with self._lock:
                self._subscribers.difference_update(dead)
            logger.info(f"Pruned {len(dead)} closed subscriber(s)")

        logger.debug(f"Broadcast '{REFRESH_MESSAGE}' to {delivered} subscriber(s)")
        return delivered
