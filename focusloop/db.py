"""SQLite database layer. All public task functions return Pydantic models."""

from __future__ import annotations

import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Optional

from focusloop.config import get_db_path as _config_get_db_path
from focusloop.models import Task, TaskCategory, TaskCreate, TaskStatus, TaskUpdate

_SCHEMA = """
CREATE TABLE IF NOT EXISTS tasks (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    title        TEXT    NOT NULL,
    category     TEXT    NOT NULL DEFAULT 'none',
    due_at       TEXT,
    status       TEXT    NOT NULL DEFAULT 'pending',
    created_at   TEXT    NOT NULL,
    completed_at TEXT
);

CREATE TABLE IF NOT EXISTS preferences (
    key   TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
"""


def _get_db_path() -> Path:
    """Return the database file path from config (or default)."""
    return _config_get_db_path()


def get_connection(db_path: Optional[Path] = None) -> sqlite3.Connection:
    """Open a connection and ensure the schema exists.

    The connection may be shared with the engine's tick thread; callers
    serialize access themselves.
    """
    path = db_path or _get_db_path()
    conn = sqlite3.connect(str(path), check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.executescript(_SCHEMA)
    return conn


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


def _row_to_task(row: sqlite3.Row) -> Task:
    """Convert a database row to a Task model."""
    return Task(
        id=row["id"],
        title=row["title"],
        category=TaskCategory(row["category"]),
        due_at=datetime.fromisoformat(row["due_at"]) if row["due_at"] else None,
        status=TaskStatus(row["status"]),
        created_at=datetime.fromisoformat(row["created_at"]),
        completed_at=(
            datetime.fromisoformat(row["completed_at"]) if row["completed_at"] else None
        ),
    )


def add_task(conn: sqlite3.Connection, task_in: TaskCreate) -> Task:
    """Insert a new task and return it as a model."""
    now = datetime.now().isoformat()
    cur = conn.execute(
        "INSERT INTO tasks (title, category, due_at, status, created_at) "
        "VALUES (?, ?, ?, ?, ?)",
        (
            task_in.title,
            task_in.category.value,
            task_in.due_at.isoformat() if task_in.due_at else None,
            TaskStatus.PENDING.value,
            now,
        ),
    )
    conn.commit()
    row = conn.execute("SELECT * FROM tasks WHERE id = ?", (cur.lastrowid,)).fetchone()
    return _row_to_task(row)


def get_task(conn: sqlite3.Connection, task_id: int) -> Optional[Task]:
    """Fetch a single task by ID."""
    row = conn.execute("SELECT * FROM tasks WHERE id = ?", (task_id,)).fetchone()
    return _row_to_task(row) if row else None


def list_tasks(
    conn: sqlite3.Connection,
    status: Optional[TaskStatus] = None,
) -> list[Task]:
    """List tasks, optionally filtered by status. Earliest due date first."""
    query = "SELECT * FROM tasks"
    params: list[str] = []
    if status is not None:
        query += " WHERE status = ?"
        params.append(status.value)
    query += " ORDER BY due_at IS NULL, due_at ASC, created_at ASC"
    rows = conn.execute(query, params).fetchall()
    return [_row_to_task(r) for r in rows]


def update_task(
    conn: sqlite3.Connection, task_id: int, changes: TaskUpdate
) -> Optional[Task]:
    """Edit title, category or due date. Completion state is preserved."""
    current = get_task(conn, task_id)
    if current is None:
        return None
    due_at = None if changes.clear_due else (changes.due_at or current.due_at)
    conn.execute(
        "UPDATE tasks SET title = ?, category = ?, due_at = ? WHERE id = ?",
        (
            changes.title or current.title,
            (changes.category or current.category).value,
            due_at.isoformat() if due_at else None,
            task_id,
        ),
    )
    conn.commit()
    return get_task(conn, task_id)


def complete_task(conn: sqlite3.Connection, task_id: int) -> Optional[Task]:
    """Mark a task as done."""
    conn.execute(
        "UPDATE tasks SET status = ?, completed_at = ? WHERE id = ?",
        (TaskStatus.DONE.value, datetime.now().isoformat(), task_id),
    )
    conn.commit()
    return get_task(conn, task_id)
