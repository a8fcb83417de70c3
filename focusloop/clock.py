"""Wall-clock access, injectable so tests can control time."""

from __future__ import annotations

import time
from datetime import date
from typing import Protocol


class Clock(Protocol):
    def now_ms(self) -> int: ...

    def today(self) -> date: ...


class SystemClock:
    """Reads the real wall clock."""

    def now_ms(self) -> int:
        """Current epoch time in whole milliseconds."""
        return time.time_ns() // 1_000_000

    def today(self) -> date:
        return date.today()
