"""Pydantic models for timer state, session stats, tasks and configuration."""

from __future__ import annotations

import enum
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field


class Phase(str, enum.Enum):
    """Segments of the focus cycle. Values are the persisted names."""

    WORK = "WORK"
    SHORT_BREAK = "SHORT_BREAK"
    LONG_BREAK = "LONG_BREAK"

    @property
    def is_break(self) -> bool:
        return self is not Phase.WORK


class Command(str, enum.Enum):
    """Inbound engine commands. None of them carries a payload."""

    START = "start"
    PAUSE = "pause"
    RESET = "reset"
    STOP = "stop"
    STATUS = "status"


class TimerState(BaseModel):
    """The engine's persisted and in-memory record."""

    phase: Phase = Phase.WORK
    time_left_ms: int = Field(default=0, ge=0)
    is_running: bool = False
    target_end_ms: int = Field(default=0, ge=0)
    # Full length the current phase began with; 0 when not recorded.
    phase_duration_ms: int = Field(default=0, ge=0)
    work_sessions_since_long_break: int = Field(default=0, ge=0)
    total_completed_sessions: int = Field(default=0, ge=0)


class TimerSnapshot(BaseModel):
    """Immutable view of the engine published after every state change."""

    model_config = ConfigDict(frozen=True)

    time_left_ms: int
    is_running: bool
    phase: Phase
    total_phase_duration_ms: int
    work_sessions_since_long_break: int
    total_completed_sessions: int

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_work_phase(self) -> bool:
        return self.phase is Phase.WORK

    @property
    def progress(self) -> float:
        """Fraction of the phase still remaining, in [0, 1]."""
        if self.total_phase_duration_ms <= 0:
            return 0.0
        return min(1.0, max(0.0, self.time_left_ms / self.total_phase_duration_ms))


class DayCount(BaseModel):
    """Completed work sessions on one calendar day."""

    day: date
    count: int = Field(ge=0)


class WeekCount(BaseModel):
    """Completed work sessions in one 7-day window."""

    label: str
    start: date
    end: date
    count: int = Field(ge=0)


class StatsSummary(BaseModel):
    """Dashboard data for the stats command."""

    today: date
    daily_count: int = Field(default=0, ge=0)
    weekly_count: int = Field(default=0, ge=0)
    streak_days: int = Field(default=0, ge=0)
    total_completed: int = Field(default=0, ge=0)
    last_seven_days: list[DayCount] = Field(default_factory=list)
    last_four_weeks: list[WeekCount] = Field(default_factory=list)


class TaskStatus(str, enum.Enum):
    """Task lifecycle states."""

    PENDING = "pending"
    DONE = "done"


class TaskCategory(str, enum.Enum):
    """Coarse label shown next to a task."""

    SCHOOL = "school"
    WORK = "work"
    NONE = "none"


class Task(BaseModel):
    """A single to-do item."""

    id: int
    title: str
    category: TaskCategory = TaskCategory.NONE
    due_at: Optional[datetime] = None
    status: TaskStatus = TaskStatus.PENDING
    created_at: datetime = Field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None

    @property
    def is_done(self) -> bool:
        return self.status == TaskStatus.DONE


class TaskCreate(BaseModel):
    """Input model for creating a new task."""

    title: str = Field(min_length=1, max_length=500)
    category: TaskCategory = TaskCategory.NONE
    due_at: Optional[datetime] = None


class TaskUpdate(BaseModel):
    """Input model for editing a task. Unset fields are left alone."""

    title: Optional[str] = Field(default=None, min_length=1, max_length=500)
    category: Optional[TaskCategory] = None
    due_at: Optional[datetime] = None
    clear_due: bool = False


class AppConfig(BaseModel):
    """Application configuration (persisted to ~/.config/focusloop/config.json)."""

    db_path: Optional[str] = None  # None = use default (~/.local/share/focusloop/)
    work_duration: int = Field(default=25, gt=0, le=24 * 60)
    break_duration: int = Field(default=5, gt=0, le=24 * 60)
    long_break_duration: int = Field(default=15, gt=0, le=24 * 60)
    long_break_interval: int = Field(default=4, gt=0)
    complete_elapsed_on_restart: bool = False

    def duration_minutes(self, phase: Phase) -> int:
        if phase is Phase.SHORT_BREAK:
            return self.break_duration
        if phase is Phase.LONG_BREAK:
            return self.long_break_duration
        return self.work_duration

    def duration_ms(self, phase: Phase) -> int:
        """Full length of *phase* in milliseconds."""
        return self.duration_minutes(phase) * 60 * 1000
