"""Rich terminal formatting helpers."""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.progress import BarColumn, Progress, TextColumn
from rich.table import Table
from rich.text import Text

from focusloop.models import Phase, StatsSummary, Task, TaskCategory, TimerSnapshot

console = Console()

_PHASE_LABEL: dict[Phase, str] = {
    Phase.WORK: "Focus",
    Phase.SHORT_BREAK: "Break",
    Phase.LONG_BREAK: "Long Break",
}

_PHASE_STYLE: dict[Phase, str] = {
    Phase.WORK: "red",
    Phase.SHORT_BREAK: "green",
    Phase.LONG_BREAK: "cyan",
}

_CATEGORY_STYLE: dict[TaskCategory, str] = {
    TaskCategory.SCHOOL: "bold red",
    TaskCategory.WORK: "bold magenta",
    TaskCategory.NONE: "dim",
}


def format_time(ms: int) -> str:
    """``MM:SS`` for a millisecond countdown."""
    total_seconds = max(0, ms) // 1000
    minutes, seconds = divmod(total_seconds, 60)
    return f"{minutes:02d}:{seconds:02d}"


def phase_label(phase: Phase) -> str:
    return _PHASE_LABEL[phase]


def cycle_text(snapshot: TimerSnapshot, long_break_interval: int) -> str:
    """Where the current phase sits in the long-break cycle."""
    if snapshot.phase is Phase.LONG_BREAK:
        return "In long break"
    return (
        f"{snapshot.work_sessions_since_long_break}/{long_break_interval} "
        "sessions until long break"
    )


def notification_text(snapshot: TimerSnapshot) -> tuple[str, str]:
    """Title and body for a desktop-style notification."""
    return (
        f"Pomodoro {phase_label(snapshot.phase)}",
        f"Time remaining: {format_time(snapshot.time_left_ms)}",
    )


def render_snapshot(snapshot: TimerSnapshot, long_break_interval: int) -> Panel:
    """The timer card: phase, countdown, cycle progress and lifetime count."""
    style = _PHASE_STYLE[snapshot.phase]
    state = "running" if snapshot.is_running else "paused"
    lines = Text(justify="center")
    lines.append(f"{format_time(snapshot.time_left_ms)}\n", style=f"bold {style}")
    lines.append(f"{phase_label(snapshot.phase)} ({state})\n")
    lines.append(f"{cycle_text(snapshot, long_break_interval)}\n", style="dim")
    lines.append(f"Completed sessions: {snapshot.total_completed_sessions}")
    return Panel(lines, title="Timer", border_style=style, padding=(1, 4))


def print_snapshot(snapshot: TimerSnapshot, long_break_interval: int) -> None:
    console.print(render_snapshot(snapshot, long_break_interval))


def print_stats(summary: StatsSummary) -> None:
    """Print the stats dashboard."""
    lines: list[str] = [
        f"Today: {summary.daily_count} session{'s' if summary.daily_count != 1 else ''}",
        f"Last 7 days: {summary.weekly_count}",
        f"Streak: {summary.streak_days} day{'s' if summary.streak_days != 1 else ''}",
        f"All time: {summary.total_completed}",
    ]
    console.print(Panel("\n".join(lines), title="Stats", border_style="green"))

    if summary.last_seven_days:
        peak = max(d.count for d in summary.last_seven_days) or 1
        table = Table(show_header=False, box=None, pad_edge=False)
        table.add_column("day", width=4)
        table.add_column("bar")
        table.add_column("count", justify="right")
        for entry in summary.last_seven_days:
            bar = "#" * round(entry.count / peak * 20)
            table.add_row(entry.day.strftime("%a"), f"[red]{bar}[/red]", str(entry.count))
        console.print(Panel(table, title="Last 7 days", border_style="blue"))

    if summary.last_four_weeks:
        table = Table(show_header=False, box=None, pad_edge=False)
        table.add_column("week")
        table.add_column("range", style="dim")
        table.add_column("count", justify="right")
        for week in summary.last_four_weeks:
            table.add_row(
                week.label,
                f"{week.start:%b %d} - {week.end:%b %d}",
                str(week.count),
            )
        console.print(Panel(table, title="Weekly totals", border_style="blue"))


def print_task_list(tasks: list[Task], title: str = "Tasks") -> None:
    """Print a list of tasks in a panel."""
    if not tasks:
        console.print(Panel("No tasks.", title=title, border_style="dim"))
        return

    table = Table(show_header=False, box=None, pad_edge=False)
    table.add_column("status", width=3)
    table.add_column("id", width=5)
    table.add_column("title")
    table.add_column("category", width=7)
    table.add_column("due")

    for task in tasks:
        due = f"Due {task.due_at:%b %d, %Y %I:%M %p}" if task.due_at else "No due date"
        table.add_row(
            "[x]" if task.is_done else "[ ]",
            f"#{task.id}",
            task.title,
            f"[{_CATEGORY_STYLE[task.category]}]{task.category.value}[/]",
            due,
            style="green" if task.is_done else None,
        )

    console.print(Panel(table, title=title, border_style="blue"))


def print_nudge(message: str) -> None:
    """Print an encouragement message in a styled panel."""
    text = Text(message, justify="center")
    console.print(Panel(text, border_style="magenta", padding=(1, 4)))


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]{message}[/green]")


def print_info(message: str) -> None:
    """Print an informational message."""
    console.print(f"[blue]{message}[/blue]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]{message}[/yellow]")


def create_phase_progress() -> Progress:
    """Progress bar fed from timer snapshots (see ``cli.watch``)."""
    return Progress(
        TextColumn("[bold blue]{task.description}"),
        BarColumn(bar_width=40),
        TextColumn("{task.fields[clock]}"),
        console=console,
    )
