"""focusloop CLI -- a focus timer that keeps running between invocations."""

from __future__ import annotations

import logging
import sqlite3
import time
from datetime import datetime
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich.logging import RichHandler

from focusloop import config as cfg
from focusloop import db, display, encouragement
from focusloop.charts import stats_image
from focusloop.engine import PhaseCompleteHook, TimerEngine
from focusloop.models import (
    Command,
    Phase,
    TaskCategory,
    TaskCreate,
    TaskStatus,
    TaskUpdate,
    TimerSnapshot,
)
from focusloop.stats import StatsAggregator
from focusloop.store import StateStore

app = typer.Typer(
    name="focusloop",
    help="Work/break focus timer with task list and session stats.",
    no_args_is_help=True,
)

_DUE_FORMATS = ["%Y-%m-%d %H:%M", "%Y-%m-%d"]


def _conn() -> sqlite3.Connection:
    """Get a database connection (convenience wrapper)."""
    return db.get_connection()


def _open_engine(
    conn: sqlite3.Connection, on_phase_complete: Optional[PhaseCompleteHook] = None
) -> TimerEngine:
    """Build an engine over *conn* without restoring it yet."""
    store = StateStore(conn)
    return TimerEngine(store, StatsAggregator(store), on_phase_complete=on_phase_complete)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """Work/break focus timer with task list and session stats."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(show_path=False)],
    )


# ---------------------------------------------------------------------------
# Timer
# ---------------------------------------------------------------------------


def _run_timer_command(command: Command) -> None:
    conn = _conn()
    engine = _open_engine(conn)
    try:
        engine.restore()
        engine.dispatch(command)
        display.print_snapshot(engine.snapshot, cfg.load_config().long_break_interval)
    finally:
        engine.close()
        conn.close()


@app.command()
def start() -> None:
    """Start or resume the current phase."""
    _run_timer_command(Command.START)


@app.command()
def pause() -> None:
    """Pause the running phase, keeping its progress."""
    _run_timer_command(Command.PAUSE)


@app.command()
def reset() -> None:
    """Restart the current phase from its full length."""
    _run_timer_command(Command.RESET)


@app.command()
def stop() -> None:
    """Abandon the cycle and go back to an idle focus phase."""
    _run_timer_command(Command.STOP)


@app.command()
def status() -> None:
    """Show the timer."""
    _run_timer_command(Command.STATUS)


@app.command()
def watch(
    start_now: bool = typer.Option(False, "--start", "-s", help="Start the phase if idle"),
) -> None:
    """Follow the timer live. Ctrl-C detaches; the timer keeps its deadline."""
    conn = _conn()
    interval = cfg.load_config().long_break_interval
    progress = display.create_phase_progress()

    def _on_complete(completed: Phase, snapshot: TimerSnapshot) -> None:
        display.console.bell()
        display.print_nudge(encouragement.get_completion_message(completed, snapshot.phase))

    engine = _open_engine(conn, on_phase_complete=_on_complete)
    with progress:
        bar = progress.add_task("Focus", total=1, clock="--:--")

        def _render(snapshot: TimerSnapshot) -> None:
            title, body = display.notification_text(snapshot)
            state = "" if snapshot.is_running else " (paused)"
            progress.update(
                bar,
                description=f"{title}{state}",
                completed=1 - snapshot.progress,
                clock=f"{body}  {display.cycle_text(snapshot, interval)}",
            )

        engine.publisher.subscribe(_render)
        try:
            engine.restore()
            if start_now:
                engine.start()
            while True:
                time.sleep(0.5)
        except KeyboardInterrupt:
            pass
        finally:
            engine.close()
            conn.close()

    if engine.snapshot.is_running:
        display.print_info("Detached. The timer keeps running; `focusloop watch` to follow it.")


# ---------------------------------------------------------------------------
# Stats
# ---------------------------------------------------------------------------


@app.command()
def stats() -> None:
    """See today's, this week's and all-time sessions, and your streak."""
    conn = _conn()
    aggregator = StatsAggregator(StateStore(conn))
    aggregator.update_streak()
    display.print_stats(aggregator.summary())
    conn.close()


@app.command()
def chart(
    out: Path = typer.Option(Path("focusloop-stats.png"), "--out", "-o", help="PNG file to write"),
) -> None:
    """Save daily and weekly session charts as an image."""
    conn = _conn()
    aggregator = StatsAggregator(StateStore(conn))
    image = stats_image(aggregator.daily_series(), aggregator.weekly_series())
    conn.close()
    image.save(out)
    display.print_success(f"Chart saved to {out}")


# ---------------------------------------------------------------------------
# Task management
# ---------------------------------------------------------------------------


@app.command()
def add(
    title: str = typer.Argument(..., help="What do you need to do?"),
    category: TaskCategory = typer.Option(TaskCategory.NONE, "--category", "-c"),
    due: Optional[datetime] = typer.Option(
        None, "--due", "-d", formats=_DUE_FORMATS, help="Due date, YYYY-MM-DD [HH:MM]"
    ),
) -> None:
    """Add a new task."""
    try:
        task_in = TaskCreate(title=title.strip(), category=category, due_at=due)
    except ValidationError:
        display.print_warning("Task title cannot be empty.")
        raise typer.Exit(1)
    conn = _conn()
    task = db.add_task(conn, task_in)
    display.print_success(f"Added task #{task.id}: {task.title}")
    conn.close()


@app.command(name="list")
def list_tasks(
    all_tasks: bool = typer.Option(False, "--all", "-a", help="Include completed tasks"),
) -> None:
    """List your tasks."""
    conn = _conn()
    if all_tasks:
        tasks = db.list_tasks(conn)
    else:
        tasks = db.list_tasks(conn, status=TaskStatus.PENDING)
    display.print_task_list(tasks, title="Tasks")
    conn.close()


@app.command()
def done(
    task_id: int = typer.Argument(..., help="ID of the task to mark complete"),
) -> None:
    """Mark a task as done."""
    conn = _conn()
    task = db.complete_task(conn, task_id)
    conn.close()
    if task is None:
        display.print_warning(f"Task #{task_id} not found.")
        raise typer.Exit(1)
    display.print_success(f"Completed: {task.title}")


@app.command()
def edit(
    task_id: int = typer.Argument(..., help="ID of the task to edit"),
    title: Optional[str] = typer.Option(None, "--title", "-t"),
    category: Optional[TaskCategory] = typer.Option(None, "--category", "-c"),
    due: Optional[datetime] = typer.Option(None, "--due", "-d", formats=_DUE_FORMATS),
    clear_due: bool = typer.Option(False, "--clear-due", help="Remove the due date"),
) -> None:
    """Change a task's title, category or due date."""
    try:
        changes = TaskUpdate(
            title=title.strip() if title is not None else None,
            category=category,
            due_at=due,
            clear_due=clear_due,
        )
    except ValidationError:
        display.print_warning("Task title cannot be empty.")
        raise typer.Exit(1)
    conn = _conn()
    task = db.update_task(conn, task_id, changes)
    conn.close()
    if task is None:
        display.print_warning(f"Task #{task_id} not found.")
        raise typer.Exit(1)
    display.print_success(f"Updated #{task.id}: {task.title}")


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@app.command()
def config(
    work: Optional[int] = typer.Option(None, "--work", help="Focus length in minutes"),
    short_break: Optional[int] = typer.Option(None, "--break", help="Short break in minutes"),
    long_break: Optional[int] = typer.Option(None, "--long-break", help="Long break in minutes"),
    interval: Optional[int] = typer.Option(
        None, "--interval", help="Focus sessions per long break"
    ),
    complete_elapsed: Optional[bool] = typer.Option(
        None,
        "--complete-elapsed/--reopen-elapsed",
        help="On restart after a phase ran out: credit it, or start it over",
    ),
    db_path: Optional[str] = typer.Option(None, "--db-path", help="Set a custom database file path"),
    reset: bool = typer.Option(False, "--reset", help="Restore default durations"),
    show: bool = typer.Option(False, "--show", help="Show current config"),
) -> None:
    """Configure durations and where your data is stored.

    Duration changes take effect from the next phase.
    """
    changes = {
        key: value
        for key, value in {
            "work_duration": work,
            "break_duration": short_break,
            "long_break_duration": long_break,
            "long_break_interval": interval,
            "complete_elapsed_on_restart": complete_elapsed,
        }.items()
        if value is not None
    }

    if changes:
        try:
            updated = cfg.update_config(**changes)
        except ValidationError as exc:
            for error in exc.errors():
                display.print_warning(f"{error['loc'][0]}: {error['msg']}")
            raise typer.Exit(1)
        display.print_success(
            f"Focus {updated.work_duration} min, break {updated.break_duration} min, "
            f"long break {updated.long_break_duration} min every "
            f"{updated.long_break_interval} sessions."
        )
    elif db_path:
        result = cfg.set_db_path(db_path)
        display.print_success(f"Database path set to: {result.db_path}")
    elif reset:
        cfg.reset_config()
        display.print_success("Reset to default durations.")
    elif show:
        current = cfg.load_config()
        display.print_info(f"Focus: {current.work_duration} min")
        display.print_info(f"Short break: {current.break_duration} min")
        display.print_info(f"Long break: {current.long_break_duration} min")
        display.print_info(f"Long break every: {current.long_break_interval} sessions")
        policy = "credit it" if current.complete_elapsed_on_restart else "start it over"
        display.print_info(f"Phase ran out while closed: {policy}")
        if current.db_path:
            display.print_info(f"Database: {current.db_path}")
        else:
            display.print_info(f"Database: {cfg.get_db_path()} (default)")
    else:
        display.print_info("Use --work, --break, --long-break, --interval, --db-path, --reset, or --show.")
