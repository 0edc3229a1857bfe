"""Collaborator interfaces for model completion and container execution."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol


class BackendError(RuntimeError):
    """Model backend failure with retryability hint."""

    def __init__(self, message: str, *, transient: bool) -> None:
        super().__init__(message)
        self.transient = transient


class ContainerRuntimeError(RuntimeError):
    """Container runtime could not create, start, wait on, or read a container."""


@dataclass(slots=True)
class ContainerRunResult:
    """Combined output and exit metadata of one container invocation."""

    output: str
    exit_code: int
    timed_out: bool = False
    canceled: bool = False
    container_name: str | None = None

    @property
    def ok(self) -> bool:
        return self.exit_code == 0 and not self.timed_out and not self.canceled


class CompletionBackend(Protocol):
    """Protocol implemented by prompt -> text completion providers."""

    def complete(self, system_prompt: str, user_prompt: str, model: str) -> str:
        """Return the raw completion text."""


class ContainerExecutor(Protocol):
    """Protocol implemented by ephemeral container runners."""

    def run_with_mount(  # noqa: PLR0913
        self,
        image: str,
        command: Sequence[str],
        host_workdir: Path,
        container_workdir: str,
        *,
        cancel_requested: Callable[[], bool] | None = None,
        timeout_seconds: float | None = None,
    ) -> ContainerRunResult:
        """Run ``command`` with ``host_workdir`` bind-mounted at ``container_workdir``."""

    def run(
        self,
        image: str,
        command: Sequence[str],
        *,
        cancel_requested: Callable[[], bool] | None = None,
        timeout_seconds: float | None = None,
    ) -> ContainerRunResult:
        """Run ``command`` in a container without mounts."""
