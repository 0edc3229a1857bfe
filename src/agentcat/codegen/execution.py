"""Decide how generated files are run inside containers."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path

from agentcat.backend.base import ContainerExecutor, ContainerRunResult, ContainerRuntimeError
from agentcat.codegen.failure_classifier import (
    RunFailureClassification,
    RunFailureKind,
    classify_run_failure,
)
from agentcat.codegen.languages import LanguageProfile, default_profiles, resolve_profile

logger = logging.getLogger(__name__)

DEFAULT_MOUNT_TARGET = "/app"


@dataclass(slots=True)
class ExecutionReport:
    """Captured output of an execution plus the error, if any."""

    output: str
    error: str | None = None
    failure: RunFailureClassification | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ExecutionOrchestrator:
    """Runs entry/dependency files through a container executor.

    A single entry file runs together with every dependency. Several entry
    files are first run together; when that fails with a duplicate entry point
    conflict each entry file is run on its own and the outputs are merged into
    one sectioned report.
    """

    def __init__(
        self,
        executor: ContainerExecutor,
        *,
        profiles: dict[str, LanguageProfile] | None = None,
        timeout_seconds: float | None = None,
        cancel_requested: Callable[[], bool] | None = None,
    ) -> None:
        self.executor = executor
        self.profiles = profiles or default_profiles()
        self.timeout_seconds = timeout_seconds
        self.cancel_requested = cancel_requested

    def execute(  # noqa: PLR0913
        self,
        *,
        language: str,
        workdir: Path,
        entry_files: Sequence[Path],
        dependency_files: Sequence[Path],
        mount_target: str = DEFAULT_MOUNT_TARGET,
    ) -> ExecutionReport:
        profile = resolve_profile(self.profiles, language)
        if not entry_files:
            raise ValueError(f"No entry files to execute in {workdir}.")

        if not profile.has_namespaces:
            command = [*profile.run_command, relative_path(entry_files[0], workdir)]
            return self._invoke(profile, command, workdir, mount_target)

        dependencies = relative_paths(dependency_files, workdir)
        if len(entry_files) == 1:
            command = [
                *profile.run_command,
                relative_path(entry_files[0], workdir),
                *dependencies,
            ]
            return self._invoke(profile, command, workdir, mount_target)

        combined_command = [
            *profile.run_command,
            *relative_paths(entry_files, workdir),
            *dependencies,
        ]
        combined = self._invoke(profile, combined_command, workdir, mount_target)
        conflict = (
            combined.failure is not None
            and combined.failure.kind == RunFailureKind.DUPLICATE_ENTRY_POINT
        )
        if not conflict:
            return combined

        logger.info(
            "Duplicate entry point conflict across %d entry files; running each separately",
            len(entry_files),
        )
        sections: list[str] = []
        for entry_file in entry_files:
            command = [*profile.run_command, relative_path(entry_file, workdir), *dependencies]
            sections.append(f"==== Output for {entry_file.name} ====\n")
            try:
                report = self._invoke(profile, command, workdir, mount_target)
            except ContainerRuntimeError as error:
                logger.warning("Entry %s failed to run: %s", entry_file.name, error)
                sections.append(f"[ERROR] {error}\n\n")
                continue
            if report.error is not None:
                sections.append(f"[ERROR] {report.error}\n")
            sections.append(report.output + "\n")
        return ExecutionReport(output="".join(sections))

    def run_tests(
        self,
        *,
        language: str,
        workdir: Path,
        test_file: Path,
        mount_target: str = DEFAULT_MOUNT_TARGET,
    ) -> ExecutionReport:
        """Run the language's test command against a written test file."""

        profile = resolve_profile(self.profiles, language)
        command = profile.build_test_command(relative_path(test_file, workdir))
        return self._invoke(profile, command, workdir, mount_target)

    def _invoke(
        self,
        profile: LanguageProfile,
        command: list[str],
        workdir: Path,
        mount_target: str,
    ) -> ExecutionReport:
        logger.debug("Container command for %s: %s", profile.name, command)
        result = self.executor.run_with_mount(
            profile.image,
            command,
            workdir,
            mount_target,
            cancel_requested=self.cancel_requested,
            timeout_seconds=self.timeout_seconds,
        )
        failure = classify_run_failure(profile=profile, result=result)
        return ExecutionReport(
            output=result.output,
            error=_error_summary(result) if failure is not None else None,
            failure=failure,
        )


def relative_path(path: Path, workdir: Path) -> str:
    """Path of ``path`` relative to ``workdir`` in POSIX form.

    Raises:
        ValueError: ``path`` is outside ``workdir``.
    """

    resolved_workdir = workdir.resolve()
    resolved = path if path.is_absolute() else resolved_workdir / path
    return resolved.resolve().relative_to(resolved_workdir).as_posix()


def relative_paths(paths: Sequence[Path], workdir: Path) -> list[str]:
    return [relative_path(path, workdir) for path in paths]


def _error_summary(result: ContainerRunResult) -> str:
    if result.canceled:
        return "container run canceled"
    if result.timed_out:
        return "container run timed out"
    return f"exit status {result.exit_code}"
