from datetime import datetime, timedelta, timezone

import pytest

from disco.errors import DatabaseError, SerdeError, TaskFailedError
from disco.persistence.db import Database
from disco.persistence.task_repo import (
    StoreTaskPayload,
    Task,
    TaskRepo,
    TaskStatus,
    TaskType,
)


@pytest.fixture
def db():
    database = Database.open_in_memory()
    yield database
    database.close()


def test_insert_and_get_task(db):
    repo = TaskRepo(db)
    payload = StoreTaskPayload(
        source_path="/src/file",
        target_disk_id="disk1",
        target_relative_path="file",
        completed_files=[],
        total_files=1,
    )
    task = Task("task-001", TaskType.STORE, payload.to_json())
    repo.insert_task(task)
    retrieved = repo.get_task_by_id("task-001")
    assert retrieved.task_type is TaskType.STORE
    assert retrieved.status is TaskStatus.PENDING
    assert StoreTaskPayload.from_json(retrieved.payload) == payload


def test_update_task_status(db):
    repo = TaskRepo(db)
    repo.insert_task(Task("task-002", TaskType.SCAN, "{}"))
    repo.update_task_status("task-002", TaskStatus.RUNNING)
    assert repo.get_task_by_id("task-002").status is TaskStatus.RUNNING


def test_get_missing_task_raises(db):
    repo = TaskRepo(db)
    with pytest.raises(TaskFailedError) as info:
        repo.get_task_by_id("ghost")
    assert str(info.value) == "Task failed: Task not found: ghost"


def test_duplicate_task_raises(db):
    repo = TaskRepo(db)
    repo.insert_task(Task("t", TaskType.SCAN, "{}"))
    with pytest.raises(DatabaseError):
        repo.insert_task(Task("t", TaskType.SCAN, "{}"))


def test_update_task_payload(db):
    repo = TaskRepo(db)
    repo.insert_task(Task("t", TaskType.STORE, "{}"))
    repo.update_task_payload("t", '{"done": 3}')
    assert repo.get_task_by_id("t").payload == '{"done": 3}'


def test_list_resumable_tasks(db):
    repo = TaskRepo(db)
    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    repo.insert_task(Task("b", TaskType.STORE, "{}", created_at=base + timedelta(hours=2)))
    repo.insert_task(
        Task("a", TaskType.SCAN, "{}", status=TaskStatus.INTERRUPTED, created_at=base)
    )
    repo.insert_task(Task("c", TaskType.SCAN, "{}", status=TaskStatus.COMPLETED))
    repo.insert_task(Task("d", TaskType.SCAN, "{}", status=TaskStatus.RUNNING))
    assert [t.task_id for t in repo.list_resumable_tasks()] == ["a", "b"]


def test_delete_task(db):
    repo = TaskRepo(db)
    repo.insert_task(Task("t", TaskType.STORE, "{}"))
    repo.delete_task("t")
    with pytest.raises(TaskFailedError):
        repo.get_task_by_id("t")


def test_cleanup_completed_tasks(db):
    repo = TaskRepo(db)
    old = datetime.now(timezone.utc) - timedelta(days=30)
    repo.insert_task(
        Task("old-done", TaskType.STORE, "{}", status=TaskStatus.COMPLETED, updated_at=old)
    )
    repo.insert_task(
        Task("old-failed", TaskType.SCAN, "{}", status=TaskStatus.FAILED, updated_at=old)
    )
    repo.insert_task(
        Task("old-pending", TaskType.SCAN, "{}", status=TaskStatus.PENDING, updated_at=old)
    )
    repo.insert_task(Task("new-done", TaskType.STORE, "{}", status=TaskStatus.COMPLETED))
    assert repo.cleanup_completed_tasks(7) == 2
    remaining = {
        row[0] for row in db.conn.execute("SELECT task_id FROM tasks").fetchall()
    }
    assert remaining == {"old-pending", "new-done"}


def test_payload_from_invalid_json_raises():
    with pytest.raises(SerdeError):
        StoreTaskPayload.from_json("not json")


def test_payload_from_json_missing_field_raises():
    with pytest.raises(SerdeError):
        StoreTaskPayload.from_json('{"source_path": "/a"}')


def test_payload_round_trip_with_progress():
    payload = StoreTaskPayload("/src", "d1", "dir", ["dir/a", "dir/b"], 5)
    assert StoreTaskPayload.from_json(payload.to_json()) == payload


def test_status_parse_falls_back_to_pending():
    assert TaskStatus.parse("bogus") is TaskStatus.PENDING
    assert TaskType.parse("bogus") is TaskType.STORE