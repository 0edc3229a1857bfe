from __future__ import annotations

import sqlite3
from pathlib import Path

import allure
import pytest

from agentcat.orchestrator.models import Task, TaskStatus
from agentcat.orchestrator.repository import StoreError, TaskStatusStore

pytestmark = [
    allure.epic("Task Queue"),
    allure.feature("Durable Status Store"),
]


@pytest.fixture()
def store(tmp_path: Path):
    handle = TaskStatusStore(tmp_path / "state" / "agent.db")
    handle.open()
    yield handle
    handle.close()


def test_open_applies_migrations_and_is_idempotent(tmp_path: Path) -> None:
    db_path = tmp_path / "agent.db"
    handle = TaskStatusStore(db_path)
    handle.open()
    handle.open()
    handle.close()

    with sqlite3.connect(db_path) as connection:
        version = connection.execute("SELECT version_num FROM alembic_version").fetchone()
        tables = {
            row[0]
            for row in connection.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
        }
    assert version == ("20261017_0001",)
    assert "task_statuses" in tables


def test_unknown_task_is_none_not_error(store: TaskStatusStore) -> None:
    assert store.get_status("missing") is None


def test_save_upserts_latest_status(store: TaskStatusStore) -> None:
    task = Task(input="x", task_id="task-1")
    store.save(task)
    assert store.get_status("task-1") == TaskStatus.PENDING

    task.set_status(TaskStatus.RUNNING)
    store.save(task)
    task.set_status(TaskStatus.COMPLETED)
    store.save(task)

    assert store.get_status("task-1") == TaskStatus.COMPLETED
    assert len(store.list_statuses()) == 1


def test_saving_one_key_leaves_others_untouched(store: TaskStatusStore) -> None:
    first = Task(input="a", task_id="a")
    second = Task(input="b", task_id="b")
    store.save(first)
    store.save(second)

    second.set_status(TaskStatus.RUNNING)
    store.save(second)

    assert store.get_status("a") == TaskStatus.PENDING
    assert store.get_status("b") == TaskStatus.RUNNING


def test_list_statuses_filters_by_status(store: TaskStatusStore) -> None:
    stale = Task(input="interrupted", task_id="stale")
    stale.set_status(TaskStatus.RUNNING)
    store.save(stale)
    store.save(Task(input="waiting", task_id="waiting"))

    running = store.list_statuses(status=TaskStatus.RUNNING)

    assert [(task_id, status) for task_id, status, _ in running] == [
        ("stale", TaskStatus.RUNNING),
    ]
    assert running[0][2].tzinfo is not None


def test_statuses_survive_reopen(tmp_path: Path) -> None:
    db_path = tmp_path / "agent.db"
    first = TaskStatusStore(db_path)
    first.open()
    first.save(Task(input="x", task_id="durable"))
    first.close()

    second = TaskStatusStore(db_path)
    second.open()
    try:
        assert second.get_status("durable") == TaskStatus.PENDING
    finally:
        second.close()


def test_store_must_be_opened_before_use(tmp_path: Path) -> None:
    handle = TaskStatusStore(tmp_path / "agent.db")

    with pytest.raises(StoreError, match="not open"):
        handle.get_status("x")


def test_delete_forgets_task_and_ignores_unknown_ids(store: TaskStatusStore) -> None:
    store.save(Task(input="a", task_id="gone"))
    store.save(Task(input="b", task_id="kept"))

    store.delete("gone")
    store.delete("never-saved")

    assert store.get_status("gone") is None
    assert store.get_status("kept") == TaskStatus.PENDING
