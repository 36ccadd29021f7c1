"""
Per-user change notifications for the category feed.

Subscribers are asyncio queues living on the event loop of the websocket
that created them. Mutations happen in sync route handlers (threadpool), so
notifications are handed over with ``call_soon_threadsafe``. A notification
carries only the table name; the subscriber refetches the full list.
"""

import asyncio
import logging
import uuid
from threading import Lock
from typing import Dict, List, Tuple

logger = logging.getLogger(__name__)


class ChangeHub:
    def __init__(self):
        self._subscribers: Dict[uuid.UUID, List[Tuple[asyncio.AbstractEventLoop, asyncio.Queue]]] = {}
        self._lock = Lock()

    def subscribe(self, user_id: uuid.UUID) -> asyncio.Queue:
        """Must be called from the subscriber's running event loop."""
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue = asyncio.Queue()
        with self._lock:
            self._subscribers.setdefault(user_id, []).append((loop, queue))
        logger.info("Realtime subscription opened for user %s", user_id)
        return queue

    def unsubscribe(self, user_id: uuid.UUID, queue: asyncio.Queue) -> None:
        with self._lock:
            entries = self._subscribers.get(user_id, [])
            entries[:] = [entry for entry in entries if entry[1] is not queue]
            if not entries:
                self._subscribers.pop(user_id, None)
        logger.info("Realtime subscription closed for user %s", user_id)

    def subscriber_count(self, user_id: uuid.UUID) -> int:
        with self._lock:
            return len(self._subscribers.get(user_id, []))

    def notify(self, user_id: uuid.UUID, table: str) -> None:
        with self._lock:
            entries = list(self._subscribers.get(user_id, []))
        for loop, queue in entries:
            try:
                loop.call_soon_threadsafe(queue.put_nowait, table)
            except RuntimeError:
                # loop already closed; the websocket is gone
                self.unsubscribe(user_id, queue)


category_hub = ChangeHub()
