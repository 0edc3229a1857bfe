"""Controllers for agentcat CLI commands."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from agentcat.backend import (
    BackendError,
    CliCompletionBackend,
    CompletionBackend,
    ContainerRuntimeError,
    DockerCliRunner,
)
from agentcat.backend.openai_backend import OpenAiCompletionBackend
from agentcat.codegen.execution import ExecutionOrchestrator
from agentcat.codegen.extraction import NoUsableSourceError
from agentcat.codegen.generator import (
    CodeGenerator,
    GenerationOutcome,
    TaskProcessor,
    TestGenerator,
)
from agentcat.codegen.languages import UnsupportedLanguageError
from agentcat.codegen.workspace import WorkspaceWriteError
from agentcat.config import Settings
from agentcat.orchestrator.models import TaskKind, TaskStatus
from agentcat.orchestrator.notify import ConsoleNotifier, Notifier
from agentcat.orchestrator.queue import TaskQueue
from agentcat.orchestrator.repository import TaskStatusStore
from agentcat.orchestrator.services import WorkAgent
from agentcat.orchestrator.worker import TaskWorker

logger = logging.getLogger(__name__)

GENERATION_ERRORS = (
    BackendError,
    ContainerRuntimeError,
    NoUsableSourceError,
    UnsupportedLanguageError,
    WorkspaceWriteError,
)


@dataclass(slots=True)
class GenerateCommand:
    """CLI input for one synchronous generate-and-run round trip."""

    prompt: str
    language: str
    kind: TaskKind = TaskKind.CODEGEN
    workdir: Path | None = None
    mount_target: str | None = None
    config_path: Path | None = None


@dataclass(slots=True)
class SubmitCommand:
    """CLI input for queue submission drained by one worker."""

    db_path: Path | None
    prompts: tuple[str, ...]
    kind: TaskKind
    language: str
    config_path: Path | None = None


@dataclass(slots=True)
class StatusCommand:
    """CLI input for a single status lookup."""

    db_path: Path | None
    task_id: str


@dataclass(slots=True)
class ListTasksCommand:
    """CLI input for task listing."""

    db_path: Path | None
    status: str | None
    limit: int


@dataclass(slots=True)
class CommandResult:
    """Lines to render plus overall success flag."""

    lines: list[str]
    success: bool


class AgentCliController:
    """Coordinates generation, queue submission, and status inspection."""

    def __init__(self, *, notifier_factory: Callable[[], Notifier] = ConsoleNotifier) -> None:
        self.notifier_factory = notifier_factory

    def generate(self, command: GenerateCommand) -> CommandResult:
        settings = _load_settings(config_path=command.config_path)
        workdir = command.workdir or settings.execution.workdir_root
        mount_target = command.mount_target or settings.execution.mount_target
        code_generator, test_generator = _build_generators(settings)
        generator = test_generator if command.kind == TaskKind.TESTGEN else code_generator

        try:
            outcome = generator.generate_and_run(
                command.prompt,
                command.language,
                workdir,
                mount_target,
            )
        except GENERATION_ERRORS as error:
            logger.debug("Generation failed", exc_info=True)
            return CommandResult(lines=[f"Error: {error}"], success=False)

        return CommandResult(
            lines=_render_outcome(outcome, workdir=workdir),
            success=outcome.report.ok,
        )

    def submit(self, command: SubmitCommand) -> CommandResult:
        """Queue every prompt and drain the queue with a single worker."""

        settings = _load_settings(db_path=command.db_path, config_path=command.config_path)
        cancel_event = threading.Event()
        code_generator, test_generator = _build_generators(
            settings,
            cancel_requested=cancel_event.is_set,
        )
        processor = TaskProcessor(
            code_generator=code_generator,
            test_generator=test_generator,
            workdir_root=settings.execution.workdir_root,
            mount_target=settings.execution.mount_target,
        )

        with _store(settings) as store:
            queue = TaskQueue(settings.queue.capacity)
            worker = TaskWorker(
                queue,
                store,
                processor,
                notifier=self.notifier_factory(),
                cancel_event=cancel_event,
                poll_interval_seconds=settings.queue.poll_interval_seconds,
            )
            agent = WorkAgent(queue=queue, store=store)
            worker.start()
            task_ids: list[str] = []
            try:
                for prompt in command.prompts:
                    task = agent.submit(prompt, command.kind, command.language)
                    task_ids.append(task.task_id)
                queue.close()
                worker.join()
            except KeyboardInterrupt:
                cancel_event.set()
                queue.close()
                worker.join()
                raise
            if worker.error is not None:
                raise worker.error

            summary = worker.summary
            lines = [f"Task {task_id} enqueued" for task_id in task_ids]
            for task_id in task_ids:
                status = store.get_status(task_id)
                lines.append(f"  {task_id} status={status.value if status else '-'}")

        lines.append(
            "Worker summary: "
            f"processed={summary.processed} completed={summary.completed} "
            f"failed={summary.failed} interrupted={summary.interrupted}",
        )
        return CommandResult(lines=lines, success=summary.failed == 0)

    def status(self, command: StatusCommand) -> list[str]:
        settings = Settings.from_env(db_path=command.db_path)
        with _store(settings) as store:
            status = store.get_status(command.task_id)
        if status is None:
            return [f"Task not found: {command.task_id}"]
        return [f"Task {command.task_id}: {status.value}"]

    def list_tasks(self, command: ListTasksCommand) -> list[str]:
        settings = Settings.from_env(db_path=command.db_path)
        status_filter = _parse_status(command.status)
        with _store(settings) as store:
            rows = store.list_statuses(status=status_filter, limit=command.limit)

        lines = [f"Tasks: {len(rows)}"]
        for task_id, status, updated_at in rows:
            lines.append(f"  {task_id} status={status.value} updated_at={updated_at.isoformat()}")
        return lines


def build_completion_backend(settings: Settings) -> CompletionBackend:
    if settings.llm.backend == "cli":
        return CliCompletionBackend(
            command_template=settings.llm.command_template,
            timeout_seconds=settings.llm.timeout_seconds,
        )
    return OpenAiCompletionBackend(
        api_key=settings.llm.api_key,
        base_url=settings.llm.base_url or None,
        timeout_seconds=float(settings.llm.timeout_seconds),
    )


def _build_generators(
    settings: Settings,
    *,
    cancel_requested: Callable[[], bool] | None = None,
) -> tuple[CodeGenerator, TestGenerator]:
    backend = build_completion_backend(settings)
    orchestrator = ExecutionOrchestrator(
        DockerCliRunner(docker_binary=settings.execution.docker_binary),
        profiles=settings.execution.language_profiles(),
        timeout_seconds=settings.execution.container_timeout_seconds,
        cancel_requested=cancel_requested,
    )
    code_generator = CodeGenerator(
        backend=backend,
        orchestrator=orchestrator,
        model=settings.llm.model,
        postprocess_go_imports=settings.execution.go_postprocess_imports,
        goimports_command=settings.execution.goimports_command,
    )
    test_generator = TestGenerator(
        backend=backend,
        orchestrator=orchestrator,
        model=settings.llm.model,
    )
    return code_generator, test_generator


def _render_outcome(outcome: GenerationOutcome, *, workdir: Path) -> list[str]:
    lines = [f"Workspace: {workdir}"]
    for path in outcome.classified.entry_files:
        lines.append(f"  entry {path.relative_to(workdir).as_posix()}")
    for path in outcome.classified.dependency_files:
        lines.append(f"  dependency {path.relative_to(workdir).as_posix()}")
    lines.append("Output:")
    lines.extend(outcome.report.output.rstrip("\n").splitlines())
    if outcome.report.error is not None:
        lines.append(f"Error: {outcome.report.error}")
    return lines


def _load_settings(
    *,
    db_path: Path | None = None,
    config_path: Path | None = None,
) -> Settings:
    settings = Settings.from_env(db_path=db_path, config_path=config_path)
    settings.validate()
    return settings


def _parse_status(value: str | None) -> TaskStatus | None:
    if value is None:
        return None
    try:
        return TaskStatus(value.lower())
    except ValueError as error:
        raise ValueError(f"Unsupported task status: {value!r}") from error


@contextmanager
def _store(settings: Settings) -> Iterator[TaskStatusStore]:
    store = TaskStatusStore(settings.db_path)
    store.open()
    try:
        yield store
    finally:
        store.close()
