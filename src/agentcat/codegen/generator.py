"""Model-to-container pipelines for code and test generation."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path

from agentcat.backend.base import CompletionBackend
from agentcat.codegen.execution import (
    DEFAULT_MOUNT_TARGET,
    ExecutionOrchestrator,
    ExecutionReport,
)
from agentcat.codegen.extraction import ensure_usable, extract_code_files
from agentcat.codegen.languages import GO, resolve_profile
from agentcat.codegen.prompts import build_system_prompt, build_test_system_prompt
from agentcat.codegen.workspace import (
    ClassifiedFiles,
    WorkspaceWriteError,
    WorkspaceWriter,
    run_goimports,
)
from agentcat.orchestrator.models import Task, TaskKind, TaskResult

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class GenerationOutcome:
    """Everything produced by one generate-and-run round trip."""

    raw_response: str
    files: dict[str, str]
    classified: ClassifiedFiles
    report: ExecutionReport


class CodeGenerator:
    """Asks the model for a program, writes it out, and runs it."""

    def __init__(  # noqa: PLR0913
        self,
        *,
        backend: CompletionBackend,
        orchestrator: ExecutionOrchestrator,
        model: str,
        writer: WorkspaceWriter | None = None,
        postprocess_go_imports: bool = False,
        goimports_command: str = "goimports",
    ) -> None:
        self.backend = backend
        self.orchestrator = orchestrator
        self.model = model
        self.writer = writer or WorkspaceWriter(orchestrator.profiles)
        self.postprocess_go_imports = postprocess_go_imports
        self.goimports_command = goimports_command

    def generate_and_run(
        self,
        prompt: str,
        language: str,
        workdir: Path,
        mount_target: str = DEFAULT_MOUNT_TARGET,
    ) -> GenerationOutcome:
        profile = resolve_profile(self.orchestrator.profiles, language)
        raw_response = self.backend.complete(build_system_prompt(profile.name), prompt, self.model)
        logger.debug("Model response: %d chars", len(raw_response))

        files = ensure_usable(extract_code_files(raw_response, profile.default_file_name))
        classified = self.writer.write(files, workdir, profile.name)
        if self.postprocess_go_imports and profile.name == GO:
            run_goimports(workdir, command=self.goimports_command)

        report = self.orchestrator.execute(
            language=profile.name,
            workdir=workdir,
            entry_files=classified.entry_files,
            dependency_files=classified.dependency_files,
            mount_target=mount_target,
        )
        return GenerationOutcome(
            raw_response=raw_response,
            files=files,
            classified=classified,
            report=report,
        )


class TestGenerator:
    """Asks the model for a unit test file and runs the language's test command."""

    __test__ = False

    def __init__(
        self,
        *,
        backend: CompletionBackend,
        orchestrator: ExecutionOrchestrator,
        model: str,
    ) -> None:
        self.backend = backend
        self.orchestrator = orchestrator
        self.model = model

    def generate_and_run(
        self,
        prompt: str,
        language: str,
        workdir: Path,
        mount_target: str = DEFAULT_MOUNT_TARGET,
    ) -> GenerationOutcome:
        profile = resolve_profile(self.orchestrator.profiles, language)
        raw_response = self.backend.complete(
            build_test_system_prompt(profile.name),
            prompt,
            self.model,
        )
        extracted = ensure_usable(extract_code_files(raw_response, profile.test_file_name))
        source = next(iter(extracted.values()))
        files = {profile.test_file_name: source}

        try:
            workdir.mkdir(parents=True, exist_ok=True)
            test_path = workdir / profile.test_file_name
            test_path.write_text(source, "utf-8")
        except OSError as error:
            raise WorkspaceWriteError(
                f"Failed to write test file in {workdir}: {error}",
                written=[],
            ) from error

        report = self.orchestrator.run_tests(
            language=profile.name,
            workdir=workdir,
            test_file=test_path,
            mount_target=mount_target,
        )
        return GenerationOutcome(
            raw_response=raw_response,
            files=files,
            classified=ClassifiedFiles(entry_files=[test_path]),
            report=report,
        )


class TaskProcessor:
    """Maps queued tasks onto the matching generation pipeline."""

    def __init__(
        self,
        *,
        code_generator: CodeGenerator,
        test_generator: TestGenerator,
        workdir_root: Path,
        mount_target: str = DEFAULT_MOUNT_TARGET,
    ) -> None:
        self.code_generator = code_generator
        self.test_generator = test_generator
        self.workdir_root = workdir_root
        self.mount_target = mount_target

    def __call__(self, task: Task) -> TaskResult:
        started = time.monotonic()
        workdir = self.workdir_root / task.task_id
        pipeline = self.test_generator if task.kind == TaskKind.TESTGEN else self.code_generator
        outcome = pipeline.generate_and_run(
            task.input,
            task.language,
            workdir,
            self.mount_target,
        )
        return TaskResult(
            output=outcome.report.output,
            error=outcome.report.error,
            duration_seconds=time.monotonic() - started,
        )
