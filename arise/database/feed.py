"""In-process change feed for store subscriptions.

Repositories publish a fresh snapshot after each committed write; subscribers
register a callback per key (owner id / user id) and get back an unsubscribe
function. Delivery is best-effort: a failing callback is logged and does not
affect the write that triggered it, nor other subscribers.
"""

from __future__ import annotations

import contextlib
import logging
import threading
from collections.abc import Callable
from typing import Any, Dict, List

logger = logging.getLogger(__name__)

Listener = Callable[[Any], None]


class ChangeFeed:
    """Keyed pub/sub for store snapshots."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._lock = threading.Lock()
        self._listeners: Dict[str, List[Listener]] = {}

    def subscribe(self, key: str, listener: Listener) -> Callable[[], None]:
        with self._lock:
            self._listeners.setdefault(key, []).append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                listeners = self._listeners.get(key, [])
                with contextlib.suppress(ValueError):
                    listeners.remove(listener)
                if not listeners:
                    self._listeners.pop(key, None)

        return _unsubscribe

    def has_listeners(self, key: str) -> bool:
        with self._lock:
            return bool(self._listeners.get(key))

    def publish(self, key: str, snapshot: Any) -> int:
        """Deliver a snapshot to every listener of `key`. Returns the delivery count."""
        with self._lock:
            listeners = list(self._listeners.get(key, []))
        delivered = 0
        for listener in listeners:
            try:
                listener(snapshot)
                delivered += 1
            except Exception as e:
                logger.error(f"{self.name} listener failed for {key}: {type(e).__name__}: {str(e)}")
        return delivered

    def clear(self) -> None:
        with self._lock:
            self._listeners.clear()


# Module-level feeds shared by all repository instances in this process
task_feed = ChangeFeed("tasks")
progress_feed = ChangeFeed("progress")
