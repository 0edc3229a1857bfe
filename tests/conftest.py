"""Shared test fixtures."""

from __future__ import annotations

import os
import sys
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from agentcat.backend.base import ContainerRunResult

ECHO_AGENT_COMMAND_TEMPLATE = (
    f"{sys.executable} -m agentcat.backend.echo_agent --prompt-file {{prompt_file}}"
)


@dataclass(slots=True)
class ContainerCall:
    image: str
    command: list[str]
    host_workdir: Path | None
    container_workdir: str | None


@dataclass(slots=True)
class FakeExecutor:
    """In-memory container executor that records every invocation."""

    respond: Callable[[list[str]], ContainerRunResult] = field(
        default=lambda command: ContainerRunResult(output="ok\n", exit_code=0),
    )
    calls: list[ContainerCall] = field(default_factory=list)

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
        self.calls.append(ContainerCall(image, list(command), host_workdir, container_workdir))
        return self.respond(list(command))

    def run(
        self,
        image: str,
        command: Sequence[str],
        *,
        cancel_requested: Callable[[], bool] | None = None,
        timeout_seconds: float | None = None,
    ) -> ContainerRunResult:
        self.calls.append(ContainerCall(image, list(command), None, None))
        return self.respond(list(command))


@dataclass(slots=True)
class FakeBackend:
    """Completion backend returning a canned response."""

    response: str
    prompts: list[tuple[str, str, str]] = field(default_factory=list)

    def complete(self, system_prompt: str, user_prompt: str, model: str) -> str:
        self.prompts.append((system_prompt, user_prompt, model))
        return self.response


@pytest.fixture()
def fake_executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture()
def make_backend() -> Callable[[str], FakeBackend]:
    return FakeBackend


@pytest.fixture()
def clean_env(monkeypatch):
    """Drop AGENTCAT_/OPENAI_ variables inherited from the developer shell."""

    for name in list(os.environ):
        if name.startswith(("AGENTCAT_", "OPENAI_")):
            monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture()
def echo_agent_command(monkeypatch) -> str:
    """Echo agent template; the agent subprocess imports agentcat from src/."""

    src_dir = str(Path(__file__).resolve().parents[1] / "src")
    existing = os.environ.get("PYTHONPATH")
    monkeypatch.setenv("PYTHONPATH", os.pathsep.join(filter(None, [src_dir, existing])))
    return ECHO_AGENT_COMMAND_TEMPLATE
