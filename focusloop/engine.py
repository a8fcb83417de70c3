"""Work/break countdown engine.

While a phase runs, the engine keeps an absolute deadline (epoch ms) and
derives the countdown from it on every tick. The deadline is written to the
state store on every change, so a process that dies mid-phase can pick the
phase up again on the next start (see :meth:`TimerEngine.restore`).

All state changes happen under one re-entrant lock. Ticks belong to a
numbered generation; cancelling ticking bumps the generation, so a tick that
was already in flight when its phase was paused, reset or stopped finds a
stale number and leaves without touching anything.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional, Union

from focusloop.clock import Clock, SystemClock
from focusloop.config import load_config
from focusloop.events import SnapshotPublisher
from focusloop.models import AppConfig, Command, Phase, TimerSnapshot, TimerState
from focusloop.stats import StatsAggregator
from focusloop.store import StateStore, load_timer_state, save_timer_state
from focusloop.ticker import ThreadTicker, Ticker

log = logging.getLogger(__name__)

PhaseCompleteHook = Callable[[Phase, TimerSnapshot], None]


class TimerEngine:
    """Owns the timer state and applies commands to it."""

    def __init__(
        self,
        store: StateStore,
        stats: StatsAggregator,
        *,
        clock: Optional[Clock] = None,
        settings: Callable[[], AppConfig] = load_config,
        publisher: Optional[SnapshotPublisher] = None,
        ticker: Optional[Ticker] = None,
        on_phase_complete: Optional[PhaseCompleteHook] = None,
    ) -> None:
        self.store = store
        self.stats = stats
        self.clock = clock or SystemClock()
        self.publisher = publisher or SnapshotPublisher()
        self._settings = settings
        self._ticker = ticker or ThreadTicker()
        self._on_phase_complete = on_phase_complete
        self._lock = threading.RLock()
        self._generation = 0

        # Config is captured when a phase begins and held until the next one.
        self._config = settings()
        duration = self._config.duration_ms(Phase.WORK)
        self._state = TimerState(time_left_ms=duration, phase_duration_ms=duration)
        self._last_snapshot = self._make_snapshot()

    # -----------------------------------------------------------------
    # Queries
    # -----------------------------------------------------------------

    @property
    def snapshot(self) -> TimerSnapshot:
        """Last published snapshot. Lock-free."""
        return self._last_snapshot

    @property
    def state(self) -> TimerState:
        """A copy of the current state record."""
        with self._lock:
            return self._state.model_copy()

    # -----------------------------------------------------------------
    # Startup
    # -----------------------------------------------------------------

    def restore(self) -> TimerSnapshot:
        """Load persisted state and reconcile it with the time that passed.

        Run once per process, before any command. A running phase keeps the
        deadline and length it started with; an idle one is fitted to the
        current configuration.
        """
        with self._lock:
            self._config = self._settings()
            state = load_timer_state(self.store, self._config.duration_ms)
            self._state = state

            interval = self._config.long_break_interval
            if state.work_sessions_since_long_break >= interval:
                log.info(
                    "Session progress %d exceeds interval %d; capping",
                    state.work_sessions_since_long_break,
                    interval,
                )
                state.work_sessions_since_long_break = interval - 1

            if state.is_running and state.target_end_ms == 0:
                log.warning("Found a running phase without a deadline; marking it idle")
                state.is_running = False

            if state.is_running:
                if state.phase_duration_ms <= 0:
                    state.phase_duration_ms = self._config.duration_ms(state.phase)
                remaining = max(0, state.target_end_ms - self.clock.now_ms())
                state.is_running = False
                state.target_end_ms = 0
                state.time_left_ms = min(remaining, state.phase_duration_ms)
                log.info(
                    "Resuming %s with %d ms left", state.phase.value, state.time_left_ms
                )
                if remaining == 0 and self._config.complete_elapsed_on_restart:
                    self._complete_phase_locked()
                else:
                    # A zero countdown makes start() refill a fresh phase.
                    self._start_locked()
            else:
                state.target_end_ms = 0
                state.phase_duration_ms = self._config.duration_ms(state.phase)
                state.time_left_ms = min(state.time_left_ms, state.phase_duration_ms)
                if state.time_left_ms <= 0:
                    self._begin_phase(state.phase)
                self._commit()
            return self._last_snapshot

    # -----------------------------------------------------------------
    # Commands
    # -----------------------------------------------------------------

    def start(self) -> None:
        with self._lock:
            self._start_locked()

    def pause(self) -> None:
        with self._lock:
            if not self._state.is_running:
                return
            self._cancel_ticks()
            self._state.is_running = False
            self._state.target_end_ms = 0
            log.info("Paused %s at %d ms", self._state.phase.value, self._state.time_left_ms)
            self._commit()

    def reset_phase(self) -> None:
        """Restart the current phase from its full length, idle."""
        with self._lock:
            self._cancel_ticks()
            self._state.is_running = False
            self._state.target_end_ms = 0
            self._begin_phase(self._state.phase)
            self._commit()

    def stop(self) -> None:
        """Abandon the cycle: back to an idle, full-length work phase."""
        with self._lock:
            self._cancel_ticks()
            self._state.is_running = False
            self._state.target_end_ms = 0
            self._state.work_sessions_since_long_break = 0
            self._begin_phase(Phase.WORK)
            self._commit()

    def status_request(self) -> None:
        """Re-publish the current snapshot for a newly attached observer."""
        with self._lock:
            self.publisher.publish(self._last_snapshot)

    def dispatch(self, command: Union[Command, str]) -> None:
        """Apply a command by value. Unknown commands are ignored."""
        try:
            command = Command(command.lower() if isinstance(command, str) else command)
        except ValueError:
            log.warning("Ignoring unknown command %r", command)
            return
        handlers: dict[Command, Callable[[], None]] = {
            Command.START: self.start,
            Command.PAUSE: self.pause,
            Command.RESET: self.reset_phase,
            Command.STOP: self.stop,
            Command.STATUS: self.status_request,
        }
        handlers[command]()

    def close(self) -> None:
        """Stop ticking without changing state (process shutdown).

        A running phase stays running in the store and is picked up by the
        next :meth:`restore`.
        """
        with self._lock:
            self._cancel_ticks()

    # -----------------------------------------------------------------
    # Internals (caller holds the lock)
    # -----------------------------------------------------------------

    def _start_locked(self) -> None:
        if self._state.is_running:
            return
        if self._state.time_left_ms <= 0:
            self._begin_phase(self._state.phase)
        self._state.target_end_ms = self.clock.now_ms() + self._state.time_left_ms
        self._state.is_running = True
        self._schedule_ticks()
        log.info(
            "Started %s, due at %d", self._state.phase.value, self._state.target_end_ms
        )
        self._commit()

    def _on_tick(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or not self._state.is_running:
                return
            remaining = max(0, self._state.target_end_ms - self.clock.now_ms())
            self._state.time_left_ms = min(remaining, self._state.phase_duration_ms)
            if remaining == 0:
                self._complete_phase_locked()
            else:
                self._commit()

    def _complete_phase_locked(self) -> None:
        state = self._state
        completed = state.phase
        self._cancel_ticks()
        state.is_running = False
        state.target_end_ms = 0

        if completed is Phase.WORK:
            self.stats.record_completion(self.clock.today())
            state.work_sessions_since_long_break += 1
            state.total_completed_sessions += 1
            if state.work_sessions_since_long_break >= self._config.long_break_interval:
                state.work_sessions_since_long_break = 0
                next_phase = Phase.LONG_BREAK
            else:
                next_phase = Phase.SHORT_BREAK
        else:
            next_phase = Phase.WORK

        self._begin_phase(next_phase)
        snapshot = self._commit()
        log.info("Completed %s; next up %s", completed.value, next_phase.value)

        if self._on_phase_complete is not None:
            try:
                self._on_phase_complete(completed, snapshot)
            except Exception:
                log.exception("Phase completion hook failed")

    def _begin_phase(self, phase: Phase) -> None:
        """Enter *phase* at full length, re-reading the configuration."""
        self._config = self._settings()
        self._state.phase = phase
        self._state.phase_duration_ms = self._config.duration_ms(phase)
        self._state.time_left_ms = self._state.phase_duration_ms

    def _schedule_ticks(self) -> None:
        self._generation += 1
        generation = self._generation
        self._ticker.start(lambda: self._on_tick(generation))

    def _cancel_ticks(self) -> None:
        self._generation += 1
        self._ticker.cancel()

    def _make_snapshot(self) -> TimerSnapshot:
        state = self._state
        return TimerSnapshot(
            time_left_ms=state.time_left_ms,
            is_running=state.is_running,
            phase=state.phase,
            total_phase_duration_ms=state.phase_duration_ms,
            work_sessions_since_long_break=state.work_sessions_since_long_break,
            total_completed_sessions=state.total_completed_sessions,
        )

    def _commit(self) -> TimerSnapshot:
        """Write the state through to the store, then publish it."""
        save_timer_state(self.store, self._state)
        snapshot = self._make_snapshot()
        self._last_snapshot = snapshot
        self.publisher.publish(snapshot)
        return snapshot
