"""Notification fanout for tiddler operations.

Transport operations publish a named notification when they finish.
Each subscriber gets its own asyncio queue, optionally filtered to a
set of notification names.
"""

import asyncio
import logging
from typing import Literal

from pydantic import BaseModel

from tiddlynet.core.errors import ConfigurationError, TiddlyNetError, TransportError
from tiddlynet.core.models import Tiddler

logger = logging.getLogger(__name__)

TIDDLER_GET = "tiddlerGet"
TIDDLER_PUT = "tiddlerPut"
TIDDLER_DELETE = "tiddlerDelete"
ERROR = "error"

NotificationName = Literal["tiddlerGet", "tiddlerPut", "tiddlerDelete", "error"]


class Notification(BaseModel):
    """A completed (or failed) tiddler operation."""

    name: NotificationName
    tiddler: Tiddler
    method: str | None = None
    status: int | None = None
    msg: str | None = None

    @classmethod
    def from_error(
        cls,
        error: TiddlyNetError,
        tiddler: Tiddler,
        method: str | None = None,
    ) -> "Notification":
        """Build an ``error`` notification from a raised error.

        Configuration errors are reported with method ``uri``.
        """
        if isinstance(error, TransportError):
            return cls(
                name=ERROR,
                tiddler=tiddler,
                method=error.method,
                status=error.status,
                msg=error.msg,
            )
        if isinstance(error, ConfigurationError):
            method = "uri"
        return cls(name=ERROR, tiddler=tiddler, method=method, msg=str(error))


class NotificationBus:
    """Fans notifications out to subscriber queues."""

    def __init__(self, maxsize: int = 256) -> None:
        self._subscribers: dict[
            int, tuple[frozenset[str], asyncio.Queue[Notification]]
        ] = {}
        self._next_id: int = 0
        self._maxsize = maxsize

    def subscribe(self, *names: str) -> tuple[int, asyncio.Queue[Notification]]:
        """Register a subscriber. Returns (subscriber_id, queue).

        With no names the subscriber receives every notification.
        """
        subscriber_id = self._next_id
        self._next_id += 1
        queue: asyncio.Queue[Notification] = asyncio.Queue(maxsize=self._maxsize)
        self._subscribers[subscriber_id] = (frozenset(names), queue)
        logger.info(
            "Subscriber %d registered (%d total)",
            subscriber_id,
            len(self._subscribers),
        )
        return subscriber_id, queue

    def unsubscribe(self, subscriber_id: int) -> None:
        """Unregister a subscriber."""
        self._subscribers.pop(subscriber_id, None)
        logger.info(
            "Subscriber %d removed (%d total)",
            subscriber_id,
            len(self._subscribers),
        )

    @property
    def subscriber_count(self) -> int:
        """Number of registered subscribers."""
        return len(self._subscribers)

    def publish(self, notification: Notification) -> None:
        """Deliver a notification to every matching subscriber without blocking."""
        for subscriber_id, (names, queue) in list(self._subscribers.items()):
            if names and notification.name not in names:
                continue
            try:
                queue.put_nowait(notification)
            except asyncio.QueueFull:
                logger.warning(
                    "Subscriber %d queue full, dropping %s notification",
                    subscriber_id,
                    notification.name,
                )
