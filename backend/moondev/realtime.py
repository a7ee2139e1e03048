"""In-process change feed for database rows.

The store publishes a :class:`ChangeEvent` after every committed write.
Anything that wants to follow a table (the evaluation list, the
``/ws/submissions`` socket) registers a callback and gets back a
:class:`Subscription`, which must be cancelled when the listener goes away.
"""

import itertools
import logging
import threading
from typing import Any, Callable, Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class ChangeEvent(BaseModel):
    event: Literal["INSERT", "UPDATE", "DELETE"]
    table: str
    new: Optional[Dict[str, Any]] = None
    old: Optional[Dict[str, Any]] = None


Callback = Callable[[ChangeEvent], None]


class Subscription:
    """Cancellation handle returned by :meth:`ChangeFeed.subscribe`."""

    def __init__(self, feed: "ChangeFeed", key: int, table: str):
        self._feed = feed
        self._key = key
        self.table = table
        self.active = True

    def cancel(self) -> None:
        if not self.active:
            return
        self.active = False
        self._feed._remove(self._key)
        logger.debug("Unsubscribed %s from %s", self._key, self.table)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cancel()


class ChangeFeed:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._subscribers: Dict[int, Tuple[str, Callback]] = {}

    def subscribe(self, table: str, callback: Callback) -> Subscription:
        with self._lock:
            key = next(self._ids)
            self._subscribers[key] = (table, callback)
        logger.debug("Subscribed %s to %s", key, table)
        return Subscription(self, key, table)

    def publish(self, event: ChangeEvent) -> None:
        with self._lock:
            targets: List[Callback] = [
                callback
                for table, callback in self._subscribers.values()
                if table == event.table
            ]
        for callback in targets:
            try:
                callback(event)
            except Exception:
                logger.exception(
                    "Change feed subscriber failed on %s %s",
                    event.event,
                    event.table,
                )

    def subscriber_count(self, table: Optional[str] = None) -> int:
        with self._lock:
            if table is None:
                return len(self._subscribers)
            return sum(1 for t, _ in self._subscribers.values() if t == table)

    def _remove(self, key: int) -> None:
        with self._lock:
            self._subscribers.pop(key, None)
