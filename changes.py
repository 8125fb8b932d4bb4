"""In-process change notifications for record collections.

Subscribers register per ``(collection, owner_id)``; adapters publish after
every successful write. Delivery is synchronous on the publishing thread.
"""

from __future__ import annotations

import itertools
import logging
import threading
from typing import Callable


logger = logging.getLogger(__name__)

Listener = Callable[[], None]
Unsubscribe = Callable[[], None]


class ChangeFeed:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._listeners: dict[tuple[str, str], dict[int, Listener]] = {}
        self._versions: dict[tuple[str, str], int] = {}

    def subscribe(self, collection: str, owner_id: str, listener: Listener) -> Unsubscribe:
        key = (collection, owner_id)
        token = next(self._ids)
        with self._lock:
            self._listeners.setdefault(key, {})[token] = listener

        def unsubscribe() -> None:
            with self._lock:
                listeners = self._listeners.get(key)
                if not listeners or token not in listeners:
                    return
                del listeners[token]
                if not listeners:
                    del self._listeners[key]
                    self._versions.pop(key, None)

        return unsubscribe

    def publish(self, collection: str, owner_id: str) -> int:
        key = (collection, owner_id)
        with self._lock:
            listeners = list(self._listeners.get(key, {}).values())
            if listeners:
                self._versions[key] = self._versions.get(key, 0) + 1
        for listener in listeners:
            try:
                listener()
            except Exception:
                logger.exception(
                    f"change_listener_failed: collection={collection} owner={owner_id}"
                )
        return len(listeners)

    def version(self, collection: str, owner_id: str) -> int:
        """Number of publishes a watched pair has seen since it was first subscribed."""
        with self._lock:
            return self._versions.get((collection, owner_id), 0)

    def watched(self) -> list[tuple[str, str]]:
        with self._lock:
            return list(self._listeners.keys())
