"""Use-case services for submitting work to the task queue."""

from __future__ import annotations

import logging
from queue import Full

from agentcat.orchestrator.models import Task, TaskKind
from agentcat.orchestrator.queue import QueueClosed, TaskQueue
from agentcat.orchestrator.repository import TaskStatusStore

logger = logging.getLogger(__name__)


class WorkAgent:
    """Creates task records, persists them, and hands them to the queue."""

    def __init__(self, *, queue: TaskQueue, store: TaskStatusStore) -> None:
        self.queue = queue
        self.store = store

    def submit(  # noqa: PLR0913
        self,
        input: str,  # noqa: A002
        kind: TaskKind = TaskKind.CODEGEN,
        language: str = "go",
        task_id: str | None = None,
        *,
        timeout: float | None = None,
    ) -> Task:
        """Persist a pending task and enqueue it.

        Blocks while the queue is full. The task is saved before it is
        enqueued so a status reader never sees an unknown id for a queued task.
        When the queue rejects the task its pending row is removed again.
        """

        task = Task(input=input, kind=kind, language=language)
        if task_id:
            task.task_id = task_id
        self.store.save(task)
        try:
            self.queue.enqueue(task, timeout=timeout)
        except (QueueClosed, Full):
            logger.warning("Task %s was not enqueued; dropping its pending status", task.task_id)
            self.store.delete(task.task_id)
            raise
        logger.info(
            "Task %s enqueued kind=%s language=%s",
            task.task_id,
            task.kind.value,
            task.language,
        )
        return task

    def process_task(
        self,
        input: str,  # noqa: A002
        kind: TaskKind = TaskKind.CODEGEN,
        language: str = "go",
    ) -> str:
        """Submit and return the short acknowledgement shown to callers."""

        task = self.submit(input, kind, language)
        return f"Task {task.task_id} enqueued"
