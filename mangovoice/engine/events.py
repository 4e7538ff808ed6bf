"""Decoupled hand-off from the router to downstream consumers.

- SearchChannel: typed message channel for SearchRequested events with
  exactly one active subscriber.
- AttributionSlot: shared cell holding the last normalized recommender for
  a later "add to list" flow. Last write wins.
"""

import logging
import threading
from collections import deque
from typing import Callable, Deque, List, Optional

from mangovoice.models.constants import MAX_BUFFERED_SEARCH_REQUESTS
from mangovoice.models.voice_event import SearchRequested

logger = logging.getLogger(__name__)

SearchSubscriber = Callable[[SearchRequested], None]


class SearchChannel:
    """Single-subscriber channel for outbound search requests.

    Events published while nobody is subscribed are buffered (newest
    max_buffered kept); the next subscriber receives them first. Pull
    consumers can drain() instead.
    """

    def __init__(self, max_buffered: int = MAX_BUFFERED_SEARCH_REQUESTS):
        self._lock = threading.Lock()
        self._subscriber: Optional[SearchSubscriber] = None
        self._pending: Deque[SearchRequested] = deque(maxlen=max_buffered)

    def subscribe(self, handler: SearchSubscriber) -> None:
        """Make handler the active subscriber, replacing any previous one."""
        with self._lock:
            if self._subscriber is not None:
                logger.debug("Replacing active search subscriber")
            self._subscriber = handler
            backlog = list(self._pending)
            self._pending.clear()
        for event in backlog:
            handler(event)

    def unsubscribe(self) -> None:
        with self._lock:
            self._subscriber = None

    def publish(self, event: SearchRequested) -> None:
        with self._lock:
            handler = self._subscriber
            if handler is None:
                if len(self._pending) == self._pending.maxlen:
                    dropped = self._pending[0]
                    logger.warning(f"Search backlog full. Dropping request: {dropped.target_phrase[:50]}")
                self._pending.append(event)
                logger.debug(f"Buffered search request: {event.target_phrase[:50]}")
                return
        handler(event)

    def drain(self) -> List[SearchRequested]:
        """Remove and return all buffered events (oldest first)."""
        with self._lock:
            events = list(self._pending)
            self._pending.clear()
        return events


class AttributionSlot:
    """Single shared value with last-write-wins semantics."""

    def __init__(self):
        self._lock = threading.Lock()
        self._value: Optional[str] = None

    def set(self, value: Optional[str]) -> None:
        with self._lock:
            self._value = value

    def get(self) -> Optional[str]:
        with self._lock:
            return self._value

    def clear(self) -> None:
        self.set(None)
