"""Persistent tasks used for interrupt recovery."""

from __future__ import annotations

import json
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum

from disco.errors import DatabaseError, SerdeError, TaskFailedError
from disco.persistence.db import Database

_TASK_COLUMNS = "task_id, task_type, status, payload, created_at, updated_at"


class TaskType(Enum):
    """The kind of work a task performs."""

    STORE = "store"
    SCAN = "scan"

    @classmethod
    def parse(cls, text: str) -> TaskType:
        try:
            return cls(text)
        except ValueError:
            return cls.STORE


class TaskStatus(Enum):
    """Lifecycle state of a task."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    INTERRUPTED = "interrupted"

    @classmethod
    def parse(cls, text: str) -> TaskStatus:
        try:
            return cls(text)
        except ValueError:
            return cls.PENDING


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _format_time(moment: datetime) -> str:
    return moment.isoformat(timespec="microseconds")


def _parse_time(text: str) -> datetime:
    try:
        moment = datetime.fromisoformat(text)
    except (TypeError, ValueError):
        return _now()
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


@dataclass
class Task:
    """A unit of resumable work with a JSON payload."""

    task_id: str
    task_type: TaskType
    payload: str
    status: TaskStatus = TaskStatus.PENDING
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)


@dataclass
class StoreTaskPayload:
    """Progress of a store task."""

    source_path: str
    target_disk_id: str
    target_relative_path: str
    completed_files: list[str] = field(default_factory=list)
    total_files: int = 0

    def to_json(self) -> str:
        """Serialise to a JSON string."""
        return json.dumps(asdict(self))

    @classmethod
    def from_json(cls, text: str) -> StoreTaskPayload:
        """Parse a JSON string; raise SerdeError if it is not a valid payload."""
        try:
            data = json.loads(text)
            return cls(
                source_path=str(data["source_path"]),
                target_disk_id=str(data["target_disk_id"]),
                target_relative_path=str(data["target_relative_path"]),
                completed_files=[str(item) for item in data["completed_files"]],
                total_files=int(data["total_files"]),
            )
        except (ValueError, KeyError, TypeError) as exc:
            raise SerdeError(exc) from exc


@contextmanager
def _db_errors() -> Iterator[None]:
    try:
        yield
    except sqlite3.Error as exc:
        raise DatabaseError(exc) from exc


def _task_from_row(row: tuple) -> Task:
    task_id, task_type, status, payload, created_at, updated_at = row
    return Task(
        task_id=task_id,
        task_type=TaskType.parse(task_type),
        status=TaskStatus.parse(status),
        payload=payload,
        created_at=_parse_time(created_at),
        updated_at=_parse_time(updated_at),
    )


class TaskRepo:
    """Create, read, update and delete tasks."""

    def __init__(self, db: Database) -> None:
        self._db = db

    def insert_task(self, task: Task) -> None:
        """Store a new task."""
        with _db_errors():
            self._db.conn.execute(
                f"INSERT INTO tasks ({_TASK_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?)",
                (
                    task.task_id,
                    task.task_type.value,
                    task.status.value,
                    task.payload,
                    _format_time(task.created_at),
                    _format_time(task.updated_at),
                ),
            )

    def get_task_by_id(self, task_id: str) -> Task:
        """Return the task with this ID; raise TaskFailedError otherwise."""
        try:
            row = self._db.conn.execute(
                f"SELECT {_TASK_COLUMNS} FROM tasks WHERE task_id = ?", (task_id,)
            ).fetchone()
        except sqlite3.Error as exc:
            raise TaskFailedError(f"Task not found: {task_id}") from exc
        if row is None:
            raise TaskFailedError(f"Task not found: {task_id}")
        return _task_from_row(row)

    def update_task_status(self, task_id: str, status: TaskStatus) -> None:
        """Change a task's status and touch its update time."""
        with _db_errors():
            self._db.conn.execute(
                "UPDATE tasks SET status = ?, updated_at = ? WHERE task_id = ?",
                (status.value, _format_time(_now()), task_id),
            )

    def update_task_payload(self, task_id: str, payload: str) -> None:
        """Replace a task's payload and touch its update time."""
        with _db_errors():
            self._db.conn.execute(
                "UPDATE tasks SET payload = ?, updated_at = ? WHERE task_id = ?",
                (payload, _format_time(_now()), task_id),
            )

    def list_resumable_tasks(self) -> list[Task]:
        """Return pending and interrupted tasks, oldest first."""
        with _db_errors():
            rows = self._db.conn.execute(
                f"SELECT {_TASK_COLUMNS} FROM tasks "
                "WHERE status IN ('pending', 'interrupted') ORDER BY created_at"
            ).fetchall()
        return [_task_from_row(row) for row in rows]

    def delete_task(self, task_id: str) -> None:
        """Remove a task."""
        with _db_errors():
            self._db.conn.execute("DELETE FROM tasks WHERE task_id = ?", (task_id,))

    def cleanup_completed_tasks(self, days: int) -> int:
        """Delete completed or failed tasks not updated for ``days`` days.

        Returns the number of tasks removed.
        """
        cutoff = _now() - timedelta(days=days)
        with _db_errors():
            cursor = self._db.conn.execute(
                "DELETE FROM tasks WHERE status IN ('completed', 'failed') "
                "AND updated_at < ?",
                (_format_time(cutoff),),
            )
        return cursor.rowcount