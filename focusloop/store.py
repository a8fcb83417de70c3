"""Durable key/value store for engine and stats state.

Values live in the ``preferences`` table as JSON text, one row per key.
Every read is forgiving: a missing key, undecodable text, or a value of the
wrong type yields the caller's default instead of an error.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
from typing import Any, Callable, Mapping, Optional

from focusloop.models import Phase, TimerState

log = logging.getLogger(__name__)

KEY_PHASE = "state_phase"
KEY_TIME_LEFT = "state_time_left"
KEY_IS_RUNNING = "state_is_running"
KEY_SESSION_PROGRESS = "state_session_progress"
KEY_TARGET_END = "state_target_end_time"
KEY_PHASE_DURATION = "state_phase_duration"
KEY_TOTAL_COUNT = "total_pomodoro_count"
KEY_HISTORY = "session_history_map"
KEY_DAILY_COUNT = "daily_pomodoro_count"
KEY_WEEKLY_COUNT = "weekly_pomodoro_count"
KEY_STREAK = "daily_streak"
KEY_LAST_OPENED = "last_opened_date"

_MISSING = object()


class StateStore:
    """Write-through preference store on top of an SQLite connection."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn
        self._lock = threading.Lock()

    def _raw(self, key: str) -> Any:
        with self._lock:
            row = self._conn.execute(
                "SELECT value FROM preferences WHERE key = ?", (key,)
            ).fetchone()
        if row is None:
            return _MISSING
        try:
            return json.loads(row["value"])
        except json.JSONDecodeError:
            log.warning("Discarding undecodable value for %r", key)
            return _MISSING

    def get(self, key: str, default: Any = None) -> Any:
        value = self._raw(key)
        return default if value is _MISSING else value

    def get_int(self, key: str, default: int = 0) -> int:
        value = self._raw(key)
        if isinstance(value, bool):
            return default
        if isinstance(value, int):
            return value
        if isinstance(value, str):
            try:
                return int(value)
            except ValueError:
                pass
        if value is not _MISSING:
            log.warning("Expected an integer for %r, got %r", key, value)
        return default

    def get_bool(self, key: str, default: bool = False) -> bool:
        value = self._raw(key)
        if isinstance(value, bool):
            return value
        if value is not _MISSING:
            log.warning("Expected a boolean for %r, got %r", key, value)
        return default

    def get_str(self, key: str, default: Optional[str] = None) -> Optional[str]:
        value = self._raw(key)
        if isinstance(value, str):
            return value
        if value is not _MISSING and value is not None:
            log.warning("Expected a string for %r, got %r", key, value)
        return default

    def put(self, key: str, value: Any) -> None:
        self.put_many({key: value})

    def put_many(self, values: Mapping[str, Any]) -> None:
        """Write all *values* in a single transaction."""
        rows = [(key, json.dumps(value)) for key, value in values.items()]
        with self._lock, self._conn:
            self._conn.executemany(
                """INSERT INTO preferences (key, value) VALUES (?, ?)
                   ON CONFLICT(key) DO UPDATE SET value = excluded.value""",
                rows,
            )


# ---------------------------------------------------------------------------
# Timer state
# ---------------------------------------------------------------------------


def _parse_phase(raw: Optional[str]) -> Phase:
    try:
        return Phase(raw) if raw is not None else Phase.WORK
    except ValueError:
        log.warning("Unknown phase %r, falling back to WORK", raw)
        return Phase.WORK


def load_timer_state(
    store: StateStore, duration_for: Callable[[Phase], int]
) -> TimerState:
    """Read the persisted timer record, substituting defaults field by field.

    A missing countdown defaults to the full length of the stored phase.
    """
    phase = _parse_phase(store.get_str(KEY_PHASE))
    return TimerState(
        phase=phase,
        time_left_ms=max(0, store.get_int(KEY_TIME_LEFT, duration_for(phase))),
        is_running=store.get_bool(KEY_IS_RUNNING, False),
        target_end_ms=max(0, store.get_int(KEY_TARGET_END, 0)),
        phase_duration_ms=max(0, store.get_int(KEY_PHASE_DURATION, 0)),
        work_sessions_since_long_break=max(0, store.get_int(KEY_SESSION_PROGRESS, 0)),
        total_completed_sessions=max(0, store.get_int(KEY_TOTAL_COUNT, 0)),
    )


def save_timer_state(store: StateStore, state: TimerState) -> None:
    store.put_many(
        {
            KEY_PHASE: state.phase.value,
            KEY_TIME_LEFT: state.time_left_ms,
            KEY_IS_RUNNING: state.is_running,
            KEY_SESSION_PROGRESS: state.work_sessions_since_long_break,
            KEY_TARGET_END: state.target_end_ms,
            KEY_PHASE_DURATION: state.phase_duration_ms,
            KEY_TOTAL_COUNT: state.total_completed_sessions,
        }
    )
