"""Shared fixtures: a controllable clock, a hand-cranked ticker, a temp store."""

from __future__ import annotations

from datetime import date, timedelta
from pathlib import Path
from typing import Callable, Optional

import pytest

from focusloop import db
from focusloop.engine import TimerEngine
from focusloop.models import AppConfig
from focusloop.stats import StatsAggregator
from focusloop.store import StateStore

START_MS = 1_760_000_000_000


class FakeClock:
    def __init__(self, now_ms: int = START_MS, today: date = date(2026, 10, 19)) -> None:
        self.now = now_ms
        self.day = today

    def now_ms(self) -> int:
        return self.now

    def today(self) -> date:
        return self.day

    def advance(self, ms: int) -> None:
        self.now += ms

    def next_day(self, days: int = 1) -> None:
        self.day += timedelta(days=days)


class ManualTicker:
    """Ticks only when the test says so."""

    def __init__(self) -> None:
        self.callback: Optional[Callable[[], None]] = None
        self.last_callback: Optional[Callable[[], None]] = None
        self.starts = 0
        self.cancels = 0

    def start(self, callback: Callable[[], None]) -> None:
        self.callback = callback
        self.last_callback = callback
        self.starts += 1

    def cancel(self) -> None:
        self.callback = None
        self.cancels += 1

    @property
    def active(self) -> bool:
        return self.callback is not None

    def fire(self) -> None:
        if self.callback is not None:
            self.callback()


class Settings:
    """Config provider whose answer the test can change between phases."""

    def __init__(self, **overrides) -> None:
        self.current = AppConfig(**overrides)

    def __call__(self) -> AppConfig:
        return self.current


@pytest.fixture()
def conn(tmp_path: Path):
    """Provide a fresh database for each test."""
    connection = db.get_connection(db_path=tmp_path / "test.db")
    yield connection
    connection.close()


@pytest.fixture()
def store(conn) -> StateStore:
    return StateStore(conn)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def ticker() -> ManualTicker:
    return ManualTicker()


@pytest.fixture()
def settings() -> Settings:
    return Settings()


@pytest.fixture()
def stats(store, clock) -> StatsAggregator:
    return StatsAggregator(store, clock)


@pytest.fixture()
def make_engine(store, stats, clock, ticker, settings):
    """Build an engine wired to the fakes; pass overrides as keyword args."""

    def _make(**kwargs) -> TimerEngine:
        options = dict(clock=clock, settings=settings, ticker=ticker)
        options.update(kwargs)
        return TimerEngine(store, stats, **options)

    return _make
