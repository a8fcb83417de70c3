"""Tests for snapshot fan-out."""

from __future__ import annotations

from focusloop.events import SnapshotPublisher
from focusloop.models import Phase, TimerSnapshot

SNAP = TimerSnapshot(
    time_left_ms=1000,
    is_running=True,
    phase=Phase.WORK,
    total_phase_duration_ms=2000,
    work_sessions_since_long_break=0,
    total_completed_sessions=0,
)


class TestSnapshotPublisher:
    def test_delivers_in_subscription_order(self) -> None:
        publisher = SnapshotPublisher()
        calls: list[str] = []
        publisher.subscribe(lambda s: calls.append("first"))
        publisher.subscribe(lambda s: calls.append("second"))
        publisher.publish(SNAP)
        assert calls == ["first", "second"]

    def test_unsubscribe(self) -> None:
        publisher = SnapshotPublisher()
        received: list[TimerSnapshot] = []
        remove = publisher.subscribe(received.append)
        publisher.publish(SNAP)
        remove()
        publisher.publish(SNAP)
        assert received == [SNAP]

    def test_unsubscribe_unknown_is_noop(self) -> None:
        SnapshotPublisher().unsubscribe(lambda s: None)

    def test_failing_listener_does_not_block_others(self, caplog) -> None:
        publisher = SnapshotPublisher()
        received: list[TimerSnapshot] = []

        def _boom(snapshot: TimerSnapshot) -> None:
            raise RuntimeError("listener broke")

        publisher.subscribe(_boom)
        publisher.subscribe(received.append)
        publisher.publish(SNAP)
        assert received == [SNAP]
        assert "listener broke" in caplog.text

    def test_listener_may_unsubscribe_itself(self) -> None:
        publisher = SnapshotPublisher()
        calls: list[int] = []

        def _once(snapshot: TimerSnapshot) -> None:
            calls.append(1)
            remove()

        remove = publisher.subscribe(_once)
        publisher.publish(SNAP)
        publisher.publish(SNAP)
        assert calls == [1]
