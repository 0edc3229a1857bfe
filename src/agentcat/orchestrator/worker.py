"""Single consumer that drains a task queue and advances task status."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from agentcat.orchestrator.models import Task, TaskResult, TaskStatus
from agentcat.orchestrator.notify import Notification, Notifier
from agentcat.orchestrator.queue import TaskQueue
from agentcat.orchestrator.repository import TaskStatusStore

logger = logging.getLogger(__name__)

TaskProcessorFn = Callable[[Task], TaskResult]


@dataclass(slots=True)
class WorkerRunSummary:
    """Aggregate worker counters for CLI reporting."""

    processed: int = 0
    completed: int = 0
    failed: int = 0
    interrupted: int = 0


class TaskWorker:
    """Consumes queued tasks one at a time.

    Exactly one worker may drain a given queue. Stopping (``stop()``) or
    cancelling (the external ``cancel_event``) makes the loop exit at the next
    check without moving any task further: queued tasks stay ``pending`` and a
    task interrupted mid-processing stays ``running``.
    """

    def __init__(  # noqa: PLR0913
        self,
        queue: TaskQueue,
        store: TaskStatusStore,
        processor: TaskProcessorFn,
        notifier: Notifier | None = None,
        cancel_event: threading.Event | None = None,
        *,
        poll_interval_seconds: float = 0.2,
    ) -> None:
        self.queue = queue
        self.store = store
        self.processor = processor
        self.notifier = notifier
        self.cancel_event = cancel_event or threading.Event()
        self.poll_interval_seconds = poll_interval_seconds
        self.summary = WorkerRunSummary()
        self.error: BaseException | None = None
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def stop_requested(self) -> bool:
        return self._stop_event.is_set() or self.cancel_event.is_set()

    def start(self) -> None:
        """Run the loop on a background daemon thread."""

        if self._thread is not None and self._thread.is_alive():
            raise RuntimeError("Worker is already running.")
        self._thread = threading.Thread(
            target=self._thread_main,
            name="agentcat-worker",
            daemon=True,
        )
        self._thread.start()

    def stop(self, *, timeout: float | None = None) -> WorkerRunSummary:
        """Signal the loop to exit and wait for the thread."""

        self._stop_event.set()
        self.join(timeout=timeout)
        return self.summary

    def join(self, *, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run_loop(self, *, max_tasks: int | None = None) -> WorkerRunSummary:
        """Process tasks until stopped, cancelled, or the queue is closed and drained."""

        while not self.stop_requested:
            if max_tasks is not None and self.summary.processed >= max_tasks:
                break
            task = self.queue.dequeue(timeout=self.poll_interval_seconds)
            if task is None:
                if self.queue.closed and len(self.queue) == 0:
                    break
                continue
            if self.stop_requested:
                logger.info("Worker stopping; task %s left %s", task.task_id, task.status.value)
                break
            self.run_once(task)

        logger.info(
            "Worker loop finished: processed=%d completed=%d failed=%d interrupted=%d",
            self.summary.processed,
            self.summary.completed,
            self.summary.failed,
            self.summary.interrupted,
        )
        return self.summary

    def run_once(self, task: Task) -> None:
        """Run one dequeued task through its full status lifecycle."""

        self.summary.processed += 1
        task.set_status(TaskStatus.RUNNING)
        self.store.save(task)
        self._notify(task, "status", f"Task {task.task_id} started")

        started = time.monotonic()
        try:
            result = self.processor(task)
        except Exception as error:  # noqa: BLE001
            logger.warning("Task %s failed: %s", task.task_id, error)
            result = TaskResult(
                output="",
                error=str(error) or type(error).__name__,
                duration_seconds=time.monotonic() - started,
            )
            terminal = TaskStatus.FAILED
        else:
            terminal = TaskStatus.COMPLETED

        if self.stop_requested:
            self.summary.interrupted += 1
            logger.info("Worker stopped while processing task %s; leaving it running", task.task_id)
            return

        task.result = result
        task.set_status(terminal)
        self.store.save(task)
        if terminal == TaskStatus.COMPLETED:
            self.summary.completed += 1
            self._notify(task, "result", result.output)
        else:
            self.summary.failed += 1
            self._notify(task, "error", result.error or "")
        self._notify(task, "status", f"Task {task.task_id} {terminal.value}")

    def _thread_main(self) -> None:
        try:
            self.run_loop()
        except Exception as error:
            self.error = error
            logger.exception("Worker loop aborted")

    def _notify(self, task: Task, kind: str, message: str) -> None:
        if self.notifier is None:
            return
        self.notifier.send(Notification(kind=kind, task_id=task.task_id, message=message))
