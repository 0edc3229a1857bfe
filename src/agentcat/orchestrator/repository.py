"""Durable task status store backed by SQLModel + SQLite."""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from pathlib import Path

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, col, select

from agentcat.orchestrator.models import Task, TaskStatus
from agentcat.storage.alembic_runner import upgrade_head
from agentcat.storage.common import as_utc, build_sqlite_engine, utc_now
from agentcat.storage.sqlmodel_models import TaskStatusRecord

logger = logging.getLogger(__name__)


class StoreError(RuntimeError):
    """Persistence failure while opening, reading, or writing task statuses."""


class TaskStatusStore:
    """Key-value persistence of task_id -> status.

    One handle is opened per process and shared by reference with every
    worker and reader. SQLite transactions give concurrent readers and a
    single writer per key without touching other rows.
    """

    def __init__(self, db_path: Path, *, busy_timeout_ms: int = 5_000) -> None:
        self.db_path = db_path
        self.engine = build_sqlite_engine(db_path=db_path, busy_timeout_ms=busy_timeout_ms)
        self._open_lock = threading.Lock()
        self._opened = False

    def open(self) -> None:
        """Apply schema migrations once per handle."""

        with self._open_lock:
            if self._opened:
                return
            try:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
                upgrade_head(self.db_path)
            except (OSError, SQLAlchemyError) as error:
                raise StoreError(f"Cannot open task store at {self.db_path}: {error}") from error
            self._opened = True
            logger.debug("Task store opened at %s", self.db_path)

    def close(self) -> None:
        """Close underlying DB resources."""

        self.engine.dispose()

    def save(self, task: Task) -> None:
        """Upsert the task's current status."""

        self._require_open()
        now = utc_now()
        try:
            with Session(self.engine) as session:
                row = session.get(TaskStatusRecord, task.task_id)
                if row is None:
                    row = TaskStatusRecord(
                        task_id=task.task_id,
                        status=task.status.value,
                        updated_at=now,
                    )
                else:
                    row.status = task.status.value
                    row.updated_at = now
                session.add(row)
                session.commit()
        except SQLAlchemyError as error:
            raise StoreError(f"Cannot save status for task {task.task_id}: {error}") from error

    def delete(self, task_id: str) -> None:
        """Forget a task; unknown ids are ignored."""

        self._require_open()
        try:
            with Session(self.engine) as session:
                row = session.get(TaskStatusRecord, task_id)
                if row is not None:
                    session.delete(row)
                    session.commit()
        except SQLAlchemyError as error:
            raise StoreError(f"Cannot delete status for task {task_id}: {error}") from error

    def get_status(self, task_id: str) -> TaskStatus | None:
        """Return stored status or None for an unknown task."""

        self._require_open()
        try:
            with Session(self.engine) as session:
                row = session.get(TaskStatusRecord, task_id)
        except SQLAlchemyError as error:
            raise StoreError(f"Cannot read status for task {task_id}: {error}") from error
        if row is None:
            return None
        return TaskStatus(row.status)

    def list_statuses(
        self,
        *,
        status: TaskStatus | None = None,
        limit: int = 50,
    ) -> list[tuple[str, TaskStatus, datetime]]:
        """List recently updated tasks, optionally filtered by status."""

        self._require_open()
        statement = (
            select(TaskStatusRecord)
            .order_by(col(TaskStatusRecord.updated_at).desc())
            .limit(limit)
        )
        if status is not None:
            statement = statement.where(TaskStatusRecord.status == status.value)
        try:
            with Session(self.engine) as session:
                rows = session.exec(statement).all()
        except SQLAlchemyError as error:
            raise StoreError(f"Cannot list task statuses: {error}") from error
        return [
            (row.task_id, TaskStatus(row.status), as_utc(row.updated_at))
            for row in rows
        ]

    def _require_open(self) -> None:
        if not self._opened:
            raise StoreError("Task store is not open; call open() first.")

