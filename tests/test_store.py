"""Tests for the preference-backed state store."""

from __future__ import annotations

from focusloop.models import Phase, TimerState
from focusloop.store import (
    KEY_IS_RUNNING,
    KEY_PHASE,
    KEY_SESSION_PROGRESS,
    KEY_TARGET_END,
    KEY_TIME_LEFT,
    KEY_TOTAL_COUNT,
    load_timer_state,
    save_timer_state,
)


def _durations(phase: Phase) -> int:
    return {Phase.WORK: 1000, Phase.SHORT_BREAK: 200, Phase.LONG_BREAK: 500}[phase]


def _put_raw(conn, key: str, text: str) -> None:
    with conn:
        conn.execute("INSERT INTO preferences (key, value) VALUES (?, ?)", (key, text))


class TestTypedGetters:
    def test_missing_keys_use_defaults(self, store) -> None:
        assert store.get("nope") is None
        assert store.get_int("nope", 5) == 5
        assert store.get_bool("nope", True) is True
        assert store.get_str("nope", "x") == "x"

    def test_put_and_get(self, store) -> None:
        store.put("n", 42)
        store.put("flag", True)
        store.put("name", "hello")
        store.put("map", {"a": 1})
        assert store.get_int("n") == 42
        assert store.get_bool("flag") is True
        assert store.get_str("name") == "hello"
        assert store.get("map") == {"a": 1}

    def test_put_overwrites(self, store) -> None:
        store.put("n", 1)
        store.put("n", 2)
        assert store.get_int("n") == 2

    def test_int_accepts_numeric_string(self, store) -> None:
        store.put("n", "17")
        assert store.get_int("n") == 17

    def test_int_rejects_bool_and_garbage(self, store) -> None:
        store.put("b", True)
        store.put("s", "seventeen")
        assert store.get_int("b", 3) == 3
        assert store.get_int("s", 3) == 3

    def test_bool_rejects_other_types(self, store) -> None:
        store.put("flag", "yes")
        assert store.get_bool("flag") is False

    def test_undecodable_value(self, store, conn) -> None:
        _put_raw(conn, "broken", "{not json")
        assert store.get("broken", "fallback") == "fallback"
        assert store.get_int("broken", 9) == 9

    def test_put_many(self, store) -> None:
        store.put_many({"a": 1, "b": "two", "c": False})
        assert store.get_int("a") == 1
        assert store.get_str("b") == "two"
        assert store.get_bool("c", True) is False


class TestTimerStateRecord:
    def test_empty_store_defaults(self, store) -> None:
        state = load_timer_state(store, _durations)
        assert state.phase == Phase.WORK
        assert state.time_left_ms == 1000
        assert not state.is_running
        assert state.target_end_ms == 0
        assert state.phase_duration_ms == 0
        assert state.work_sessions_since_long_break == 0
        assert state.total_completed_sessions == 0

    def test_missing_countdown_uses_stored_phase(self, store) -> None:
        store.put(KEY_PHASE, Phase.LONG_BREAK.value)
        assert load_timer_state(store, _durations).time_left_ms == 500

    def test_round_trip(self, store) -> None:
        state = TimerState(
            phase=Phase.SHORT_BREAK,
            time_left_ms=150,
            is_running=True,
            target_end_ms=123456,
            phase_duration_ms=200,
            work_sessions_since_long_break=2,
            total_completed_sessions=9,
        )
        save_timer_state(store, state)
        assert load_timer_state(store, _durations) == state

    def test_corrupt_fields_fall_back_individually(self, store) -> None:
        store.put_many(
            {
                KEY_PHASE: "NAP",
                KEY_TIME_LEFT: -40,
                KEY_IS_RUNNING: "true",
                KEY_TARGET_END: "soon",
                KEY_SESSION_PROGRESS: 3,
                KEY_TOTAL_COUNT: 11,
            }
        )
        state = load_timer_state(store, _durations)
        assert state.phase == Phase.WORK
        assert state.time_left_ms == 0
        assert not state.is_running
        assert state.target_end_ms == 0
        assert state.work_sessions_since_long_break == 3
        assert state.total_completed_sessions == 11
