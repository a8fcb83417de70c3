"""Completed-session ledger, rolling counts, and the daily-open streak.

The ledger maps calendar dates to the number of work sessions finished that
day. It is trimmed to a 28-day window every time a session is recorded, so
it never holds more than four weeks of history (plus whatever lies in the
future if the clock was ever wound back).
"""

from __future__ import annotations

import json
import logging
from datetime import date, timedelta
from typing import Any, Optional

from focusloop.clock import Clock, SystemClock
from focusloop.models import DayCount, StatsSummary, WeekCount
from focusloop.store import (
    KEY_DAILY_COUNT,
    KEY_HISTORY,
    KEY_LAST_OPENED,
    KEY_STREAK,
    KEY_TOTAL_COUNT,
    KEY_WEEKLY_COUNT,
    StateStore,
)

log = logging.getLogger(__name__)

RETENTION_DAYS = 28
WEEK_DAYS = 7
CHART_WEEKS = 4


def parse_history(raw: Any) -> dict[date, int]:
    """Turn a stored ledger into ``{date: count}``.

    Bad entries are dropped one at a time; the rest of the ledger survives.
    """
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError:
            log.warning("Session history is not valid JSON; starting empty")
            return {}
    if not isinstance(raw, dict):
        if raw is not None:
            log.warning("Session history has unexpected type %s", type(raw).__name__)
        return {}

    ledger: dict[date, int] = {}
    for key, value in raw.items():
        try:
            day = date.fromisoformat(key)
        except (TypeError, ValueError):
            log.warning("Dropping history entry with bad date %r", key)
            continue
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            log.warning("Dropping history entry %s with bad count %r", key, value)
            continue
        ledger[day] = value
    return ledger


def dump_history(ledger: dict[date, int]) -> dict[str, int]:
    return {day.isoformat(): count for day, count in sorted(ledger.items())}


def prune_history(ledger: dict[date, int], today: date) -> dict[date, int]:
    """Keep only the ``RETENTION_DAYS`` days ending on *today* (and later)."""
    cutoff = today - timedelta(days=RETENTION_DAYS - 1)
    return {day: count for day, count in ledger.items() if day >= cutoff}


def window_total(ledger: dict[date, int], start: date, end: date) -> int:
    """Sum of counts for days in ``[start, end]``; missing days count as zero."""
    return sum(count for day, count in ledger.items() if start <= day <= end)


def weekly_total(ledger: dict[date, int], today: date) -> int:
    return window_total(ledger, today - timedelta(days=WEEK_DAYS - 1), today)


def next_streak(today: date, last_opened: Optional[date], current: int) -> int:
    """Streak value after opening the app on *today*.

    Re-opening on the same day changes nothing. Opening the day after the
    last visit (or for the first time ever) extends the streak; a gap of a
    whole day or more starts over at one.
    """
    if last_opened == today:
        return current
    if last_opened is not None and last_opened < today - timedelta(days=1):
        return 1
    return current + 1


class StatsAggregator:
    """Owns the session ledger and the streak counters in the state store."""

    def __init__(self, store: StateStore, clock: Optional[Clock] = None) -> None:
        self.store = store
        self.clock = clock or SystemClock()

    def history(self) -> dict[date, int]:
        return parse_history(self.store.get(KEY_HISTORY))

    def record_completion(self, day: Optional[date] = None) -> None:
        """Count one finished work session on *day* (default: today)."""
        day = day or self.clock.today()
        ledger = self.history()
        ledger[day] = ledger.get(day, 0) + 1
        ledger = prune_history(ledger, day)
        daily = ledger[day]
        weekly = weekly_total(ledger, day)
        self.store.put_many(
            {
                KEY_HISTORY: dump_history(ledger),
                KEY_DAILY_COUNT: daily,
                KEY_WEEKLY_COUNT: weekly,
            }
        )
        log.info("Recorded session for %s (today=%d, week=%d)", day, daily, weekly)

    def daily_count(self, today: Optional[date] = None) -> int:
        today = today or self.clock.today()
        return self.history().get(today, 0)

    def weekly_count(self, today: Optional[date] = None) -> int:
        return weekly_total(self.history(), today or self.clock.today())

    # -----------------------------------------------------------------
    # Streak
    # -----------------------------------------------------------------

    def last_opened(self) -> Optional[date]:
        raw = self.store.get_str(KEY_LAST_OPENED)
        if raw is None:
            return None
        try:
            return date.fromisoformat(raw)
        except ValueError:
            log.warning("Ignoring unparseable last-opened date %r", raw)
            return None

    def streak(self) -> int:
        return max(0, self.store.get_int(KEY_STREAK, 0))

    def update_streak(self, today: Optional[date] = None) -> int:
        """Register an app visit on *today* and return the resulting streak.

        Call once per viewing session, not per tick.
        """
        today = today or self.clock.today()
        last = self.last_opened()
        current = self.streak()
        if last == today:
            return current
        streak = next_streak(today, last, current)
        self.store.put_many({KEY_LAST_OPENED: today.isoformat(), KEY_STREAK: streak})
        log.debug("Streak %d -> %d (last opened %s)", current, streak, last)
        return streak

    # -----------------------------------------------------------------
    # Chart series
    # -----------------------------------------------------------------

    def daily_series(
        self, today: Optional[date] = None, days: int = WEEK_DAYS
    ) -> list[DayCount]:
        """One entry per day for the last *days* days, oldest first."""
        today = today or self.clock.today()
        ledger = self.history()
        return [
            DayCount(day=d, count=ledger.get(d, 0))
            for d in (today - timedelta(days=i) for i in range(days - 1, -1, -1))
        ]

    def weekly_series(
        self, today: Optional[date] = None, weeks: int = CHART_WEEKS
    ) -> list[WeekCount]:
        """Totals of consecutive 7-day windows ending today, oldest first."""
        today = today or self.clock.today()
        ledger = self.history()
        series: list[WeekCount] = []
        for week_index in range(weeks - 1, -1, -1):
            start = today - timedelta(days=(week_index + 1) * WEEK_DAYS - 1)
            end = today - timedelta(days=week_index * WEEK_DAYS)
            series.append(
                WeekCount(
                    label="This week" if week_index == 0 else f"Week -{week_index}",
                    start=start,
                    end=end,
                    count=window_total(ledger, start, end),
                )
            )
        return series

    def summary(self, today: Optional[date] = None) -> StatsSummary:
        today = today or self.clock.today()
        ledger = self.history()
        return StatsSummary(
            today=today,
            daily_count=ledger.get(today, 0),
            weekly_count=weekly_total(ledger, today),
            streak_days=self.streak(),
            total_completed=max(0, self.store.get_int(KEY_TOTAL_COUNT, 0)),
            last_seven_days=self.daily_series(today),
            last_four_weeks=self.weekly_series(today),
        )
