"""SQLite storage for tasks."""

import json
import sqlite3
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from ..errors import PersistenceError, ValidationError
from .models import NewTask, Task

# Columns a caller may patch through update()
UPDATABLE_FIELDS = {
    "title",
    "due_at",
    "assignee",
    "assignees",
    "completed",
    "not_completed_reason",
    "reminder_sent_at",
}


def _to_db_time(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _from_db_time(value: str | None) -> datetime | None:
    if value is None:
        return None
    return datetime.fromisoformat(value)


class TaskStore:
    """Persistent storage for tasks using SQLite.

    Every sqlite3 failure is re-raised as PersistenceError so callers only
    deal with the project's error taxonomy.
    """

    def __init__(self, db_path: Path) -> None:
        """Initialize the store with a database path.

        Args:
            db_path: Path to the SQLite database file.
        """
        self.db_path = db_path
        self._conn: sqlite3.Connection | None = None

    def _get_connection(self) -> sqlite3.Connection:
        """Get or create the database connection."""
        if self._conn is None:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(self.db_path)
            self._conn.row_factory = sqlite3.Row
        return self._conn

    def init_db(self) -> None:
        """Create the tasks table if it doesn't exist."""
        try:
            conn = self._get_connection()
            conn.execute("""
                CREATE TABLE IF NOT EXISTS tasks (
                    id                    TEXT PRIMARY KEY,
                    title                 TEXT NOT NULL CHECK (length(trim(title)) > 0),
                    due_at                TEXT NOT NULL,
                    assignee              TEXT NOT NULL,
                    assignees             TEXT NOT NULL DEFAULT '[]',
                    created_by            TEXT NOT NULL,
                    channel_id            TEXT NOT NULL,
                    completed             INTEGER NOT NULL DEFAULT 0,
                    not_completed_reason  TEXT,
                    reminder_sent_at      TEXT,
                    created_at            TEXT NOT NULL
                )
            """)
            conn.execute("CREATE INDEX IF NOT EXISTS idx_tasks_due ON tasks(due_at)")
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_tasks_assignee ON tasks(assignee)"
            )
            conn.commit()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to initialize task store: {e}") from e

    def create(self, new_task: NewTask) -> Task:
        """Insert a task and return it with its assigned id."""
        task_id = uuid.uuid4().hex
        created_at = datetime.now(timezone.utc)
        try:
            conn = self._get_connection()
            conn.execute(
                """
                INSERT INTO tasks (id, title, due_at, assignee, assignees,
                                   created_by, channel_id, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    task_id,
                    new_task.title,
                    _to_db_time(new_task.due_at),
                    new_task.assignee,
                    json.dumps(list(new_task.assignees)),
                    new_task.created_by,
                    new_task.channel_id,
                    _to_db_time(created_at),
                ),
            )
            conn.commit()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to create task: {e}") from e

        task = self.find_by_id(task_id)
        assert task is not None
        return task

    def find_by_id(self, task_id: str) -> Task | None:
        """Get a task by id, or None if it doesn't exist."""
        try:
            conn = self._get_connection()
            row = conn.execute("SELECT * FROM tasks WHERE id = ?", (task_id,)).fetchone()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to load task {task_id}: {e}") from e
        return self._row_to_task(row) if row else None

    def update(self, task_id: str, patch: dict[str, Any]) -> Task:
        """Apply a partial update and return the updated task.

        Raises:
            ValidationError: If the patch names unknown fields or the task
                doesn't exist.
        """
        unknown = set(patch) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown task fields: {', '.join(sorted(unknown))}")
        if not patch:
            task = self.find_by_id(task_id)
            if task is None:
                raise ValidationError(f"Task {task_id} not found.")
            return task

        columns = []
        values: list[Any] = []
        for key, value in patch.items():
            columns.append(f"{key} = ?")
            if key in ("due_at", "reminder_sent_at"):
                value = _to_db_time(value)
            elif key == "assignees":
                value = json.dumps(list(value))
            elif key == "completed":
                value = int(bool(value))
            values.append(value)
        values.append(task_id)

        try:
            conn = self._get_connection()
            cursor = conn.execute(
                f"UPDATE tasks SET {', '.join(columns)} WHERE id = ?", values
            )
            conn.commit()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to update task {task_id}: {e}") from e

        if cursor.rowcount == 0:
            raise ValidationError(f"Task {task_id} not found.")
        task = self.find_by_id(task_id)
        assert task is not None
        return task

    def delete(self, task_id: str) -> None:
        """Delete a task by id.

        Raises:
            ValidationError: If the task doesn't exist.
        """
        try:
            conn = self._get_connection()
            cursor = conn.execute("DELETE FROM tasks WHERE id = ?", (task_id,))
            conn.commit()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to delete task {task_id}: {e}") from e
        if cursor.rowcount == 0:
            raise ValidationError(f"Task {task_id} not found.")

    def find_many(
        self,
        *,
        user_id: str | None = None,
        completed: bool | None = None,
        newest_first: bool = True,
        limit: int = 20,
    ) -> list[Task]:
        """List tasks, optionally those a user created or is assigned to.

        Args:
            user_id: Only tasks this user created or is an assignee of.
            completed: Filter on the completion flag; None means both.
            newest_first: Order by due time descending (ascending if False).
            limit: Maximum number of tasks.
        """
        clauses = []
        params: list[Any] = []
        if user_id is not None:
            clauses.append(
                "(created_by = ? OR assignee = ? OR EXISTS "
                "(SELECT 1 FROM json_each(tasks.assignees) WHERE value = ?))"
            )
            params.extend([user_id, user_id, user_id])
        if completed is not None:
            clauses.append("completed = ?")
            params.append(int(completed))

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        order = "DESC" if newest_first else "ASC"
        params.append(limit)

        try:
            conn = self._get_connection()
            rows = conn.execute(
                f"SELECT * FROM tasks {where} ORDER BY due_at {order} LIMIT ?", params
            ).fetchall()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to list tasks: {e}") from e
        return [self._row_to_task(row) for row in rows]

    def find_reminder_candidates(self, start: datetime, end: datetime) -> list[Task]:
        """Incomplete, not-yet-reminded tasks due within [start, end]."""
        try:
            conn = self._get_connection()
            rows = conn.execute(
                """
                SELECT * FROM tasks
                WHERE completed = 0
                  AND reminder_sent_at IS NULL
                  AND due_at >= ? AND due_at <= ?
                ORDER BY due_at ASC
                """,
                (_to_db_time(start), _to_db_time(end)),
            ).fetchall()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to query reminder candidates: {e}") from e
        return [self._row_to_task(row) for row in rows]

    def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def _row_to_task(self, row: sqlite3.Row) -> Task:
        """Convert a database row to a Task."""
        due_at = _from_db_time(row["due_at"])
        assert due_at is not None
        return Task(
            id=row["id"],
            title=row["title"],
            due_at=due_at,
            assignee=row["assignee"],
            assignees=tuple(json.loads(row["assignees"] or "[]")),
            created_by=row["created_by"],
            channel_id=row["channel_id"],
            completed=bool(row["completed"]),
            not_completed_reason=row["not_completed_reason"],
            reminder_sent_at=_from_db_time(row["reminder_sent_at"]),
            created_at=_from_db_time(row["created_at"]),
        )
