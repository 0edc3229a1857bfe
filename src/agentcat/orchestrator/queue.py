"""Bounded in-process FIFO buffer of pending tasks."""

from __future__ import annotations

import queue
import threading
import time

from agentcat.orchestrator.models import Task

DEFAULT_QUEUE_CAPACITY = 10

_POLL_STEP_SECONDS = 0.05


class QueueClosed(RuntimeError):
    """Raised when enqueuing into a closed queue."""


class TaskQueue:
    """Bounded task buffer.

    ``enqueue`` blocks while the buffer is full, which is the backpressure
    applied to producers. ``dequeue`` blocks until a task is available and
    returns ``None`` once the queue has been closed and drained.
    """

    def __init__(self, capacity: int = DEFAULT_QUEUE_CAPACITY) -> None:
        if capacity <= 0:
            raise ValueError(f"Queue capacity must be > 0, got {capacity}.")
        self.capacity = capacity
        self._items: queue.Queue[Task] = queue.Queue(maxsize=capacity)
        self._closed = threading.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def enqueue(self, task: Task, *, timeout: float | None = None) -> None:
        """Append a task, waiting for a free slot when the buffer is full.

        Raises:
            QueueClosed: queue was closed before or while waiting.
            queue.Full: ``timeout`` elapsed with the buffer still full.
        """

        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            if self._closed.is_set():
                raise QueueClosed(f"Cannot enqueue task {task.task_id}: queue is closed.")
            try:
                self._items.put(task, timeout=_POLL_STEP_SECONDS)
                return
            except queue.Full:
                if deadline is not None and time.monotonic() >= deadline:
                    raise

    def dequeue(self, *, timeout: float | None = None) -> Task | None:
        """Pop the oldest task; ``None`` on timeout or when closed and drained."""

        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            try:
                return self._items.get(timeout=_POLL_STEP_SECONDS)
            except queue.Empty:
                if self._closed.is_set():
                    return None
                if deadline is not None and time.monotonic() >= deadline:
                    return None

    def close(self) -> None:
        """Stop accepting tasks; consumers drain what is left."""

        self._closed.set()

    def __len__(self) -> int:
        return self._items.qsize()
