"""Model and container backend implementations."""

from agentcat.backend.base import (
    BackendError,
    CompletionBackend,
    ContainerExecutor,
    ContainerRunResult,
    ContainerRuntimeError,
)
from agentcat.backend.cli_backend import CliCompletionBackend
from agentcat.backend.docker_runner import DockerCliRunner

__all__ = [
    "BackendError",
    "CliCompletionBackend",
    "CompletionBackend",
    "ContainerExecutor",
    "ContainerRunResult",
    "ContainerRuntimeError",
    "DockerCliRunner",
]
