"""Fan-out of timer snapshots to whoever is listening."""

from __future__ import annotations

import logging
import threading
from typing import Callable

from focusloop.models import TimerSnapshot

log = logging.getLogger(__name__)

SnapshotListener = Callable[[TimerSnapshot], None]


class SnapshotPublisher:
    """Observer list. Listeners run synchronously, in subscription order."""

    def __init__(self) -> None:
        self._listeners: list[SnapshotListener] = []
        self._lock = threading.Lock()

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """Register *listener*; returns a function that removes it again."""
        with self._lock:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            self.unsubscribe(listener)

        return _unsubscribe

    def unsubscribe(self, listener: SnapshotListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def publish(self, snapshot: TimerSnapshot) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(snapshot)
            except Exception:
                # Remaining listeners still receive the snapshot.
                log.exception("Snapshot listener %r failed", listener)
