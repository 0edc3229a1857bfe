"""Push-style observers for task progress."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol

import rich_click as click

from agentcat.storage.common import utc_now


@dataclass(slots=True)
class Notification:
    """One message pushed to observers."""

    kind: str
    task_id: str
    message: str
    timestamp: datetime = field(default_factory=utc_now)


class Notifier(Protocol):
    """Protocol implemented by notification sinks."""

    def send(self, notification: Notification) -> None:
        """Deliver one notification."""


class ConsoleNotifier:
    """Print notifications to the terminal."""

    def send(self, notification: Notification) -> None:
        click.echo(f"[{notification.kind}][{notification.task_id}] {notification.message}")


class CollectingNotifier:
    """Keep notifications in memory in arrival order."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.notifications: list[Notification] = []

    def send(self, notification: Notification) -> None:
        with self._lock:
            self.notifications.append(notification)

    def messages_for(self, task_id: str) -> list[str]:
        with self._lock:
            return [item.message for item in self.notifications if item.task_id == task_id]
