"""Domain models for the task queue and worker."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from uuid import uuid4

from agentcat.storage.common import utc_now


class TaskStatus(str, Enum):
    """Task lifecycle states."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class TaskKind(str, Enum):
    """Unit-of-work flavours accepted by the worker."""

    CODEGEN = "codegen"
    TESTGEN = "testgen"


TERMINAL_STATUSES = frozenset({TaskStatus.COMPLETED, TaskStatus.FAILED})

_ALLOWED_TRANSITIONS: dict[TaskStatus, frozenset[TaskStatus]] = {
    TaskStatus.PENDING: frozenset({TaskStatus.RUNNING}),
    TaskStatus.RUNNING: frozenset({TaskStatus.COMPLETED, TaskStatus.FAILED}),
    TaskStatus.COMPLETED: frozenset(),
    TaskStatus.FAILED: frozenset(),
}


class InvalidStatusTransition(RuntimeError):
    """Raised when a task status would move backwards or out of a terminal state."""

    def __init__(self, task_id: str, status_from: TaskStatus, status_to: TaskStatus) -> None:
        super().__init__(
            f"Invalid status transition for task {task_id}: "
            f"{status_from.value} -> {status_to.value}",
        )
        self.task_id = task_id
        self.status_from = status_from
        self.status_to = status_to


@dataclass(slots=True)
class TaskResult:
    """Outcome of one processed task."""

    output: str
    error: str | None = None
    duration_seconds: float = 0.0


@dataclass(slots=True)
class Task:
    """Unit of work pushed through the queue."""

    input: str
    kind: TaskKind = TaskKind.CODEGEN
    language: str = "go"
    task_id: str = field(default_factory=lambda: str(uuid4()))
    status: TaskStatus = TaskStatus.PENDING
    result: TaskResult | None = None
    created_at: datetime = field(default_factory=utc_now)

    def set_status(self, status: TaskStatus) -> None:
        """Advance status along pending -> running -> terminal."""

        if status == self.status and status not in TERMINAL_STATUSES:
            return
        if status not in _ALLOWED_TRANSITIONS[self.status]:
            raise InvalidStatusTransition(self.task_id, self.status, status)
        self.status = status

    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES
