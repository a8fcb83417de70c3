"""Periodic wake-ups for a running countdown.

A ticker's whole contract is: after ``start(callback)``, call ``callback``
roughly every ``interval`` seconds until ``cancel()``. It says nothing about
which thread runs the callback, and a callback already under way when
``cancel()`` is called may still finish; the engine guards against that.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional, Protocol

log = logging.getLogger(__name__)

TICK_INTERVAL_SECONDS = 1.0


class Ticker(Protocol):
    def start(self, callback: Callable[[], None]) -> None: ...

    def cancel(self) -> None: ...


class ThreadTicker:
    """Drives the callback from a daemon thread sleeping on an Event."""

    def __init__(self, interval: float = TICK_INTERVAL_SECONDS) -> None:
        self.interval = interval
        self._stopped: Optional[threading.Event] = None

    def start(self, callback: Callable[[], None]) -> None:
        self.cancel()
        stopped = threading.Event()
        self._stopped = stopped
        thread = threading.Thread(
            target=self._run, args=(callback, stopped), name="focusloop-tick", daemon=True
        )
        thread.start()

    def cancel(self) -> None:
        # No join: cancel may be called from inside the callback itself.
        if self._stopped is not None:
            self._stopped.set()
            self._stopped = None

    def _run(self, callback: Callable[[], None], stopped: threading.Event) -> None:
        while not stopped.wait(self.interval):
            try:
                callback()
            except Exception:
                # The next tick retries.
                log.exception("Tick callback failed")
        log.debug("Tick thread exiting")
