"""In-process registry of per-user live connections."""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from threading import Lock

from .interface import ConnectionRegistry

logger = logging.getLogger(__name__)


class InMemoryConnectionRegistry(ConnectionRegistry):
    """Maps each user id to the event queues of that user's open connections.

    Writers: the stream endpoint (connect/disconnect) and the Broadcaster.
    Readers: one consumer per queue, the connection that owns it.

    Queues are bounded. Sending to a full queue drops that connection's
    oldest pending event so a stalled client never blocks the broadcast.
    """

    def __init__(self, max_queue_size: int = 16) -> None:
        self._queues: dict[str, set[asyncio.Queue]] = defaultdict(set)
        self._lock = Lock()
        self._max_queue_size = max_queue_size

    def connect(self, user_id: str) -> asyncio.Queue:
        """Register a new connection for a user and return its event queue."""
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._max_queue_size)
        with self._lock:
            self._queues[str(user_id)].add(queue)
        logger.info("Connection opened for user %s", user_id)
        return queue

    def disconnect(self, user_id: str, queue: asyncio.Queue) -> None:
        """Forget a connection. Safe to call more than once."""
        user_id = str(user_id)
        with self._lock:
            queues = self._queues.get(user_id)
            if queues is None:
                return
            queues.discard(queue)
            if not queues:
                del self._queues[user_id]
        logger.info("Connection closed for user %s", user_id)

    async def send_to_user(self, user_id: str, event: dict) -> int:
        with self._lock:
            queues = list(self._queues.get(str(user_id), ()))

        for queue in queues:
            if queue.full():
                queue.get_nowait()
                logger.debug("Dropped oldest event for slow connection of user %s", user_id)
            queue.put_nowait(event)
        return len(queues)

    def connection_count(self, user_id: str | None = None) -> int:
        with self._lock:
            if user_id is not None:
                return len(self._queues.get(str(user_id), ()))
            return sum(len(q) for q in self._queues.values())
