"""Workspace materialization for extracted source files."""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass, field
from pathlib import Path

from agentcat.codegen.languages import LanguageProfile, default_profiles, resolve_profile

logger = logging.getLogger(__name__)


class WorkspaceWriteError(OSError):
    """Filesystem failure while materializing a workspace.

    Files written before the failure are left in place.
    """

    def __init__(self, message: str, *, written: list[Path]) -> None:
        super().__init__(message)
        self.written = written


@dataclass(slots=True)
class ClassifiedFiles:
    """Written files split into runnable entry points and shared dependencies."""

    entry_files: list[Path] = field(default_factory=list)
    dependency_files: list[Path] = field(default_factory=list)
    namespaces: dict[Path, str] = field(default_factory=dict)

    @property
    def all_files(self) -> list[Path]:
        return [*self.entry_files, *self.dependency_files]


def declared_namespace(source: str, profile: LanguageProfile) -> str | None:
    """Namespace from the first line starting with the declaration keyword."""

    if profile.namespace_keyword is None:
        return None
    prefix = f"{profile.namespace_keyword} "
    for line in source.split("\n"):
        if line.startswith(prefix):
            return line[len(prefix) :].strip()
    return profile.entry_namespace


def _is_safe_namespace(namespace: str) -> bool:
    """True when the namespace names a single directory below the workdir."""

    if namespace in {"", ".", ".."}:
        return False
    return "/" not in namespace and "\\" not in namespace


class WorkspaceWriter:
    """Writes extracted files under a per-request working directory."""

    def __init__(self, profiles: dict[str, LanguageProfile] | None = None) -> None:
        self.profiles = profiles or default_profiles()

    def write(self, files: dict[str, str], workdir: Path, language: str) -> ClassifiedFiles:
        """Write files and classify them as entry or dependency files.

        Entry files land directly in ``workdir``; dependency files go to
        ``workdir/<namespace>/<file_name>``.
        """

        profile = resolve_profile(self.profiles, language)
        namespaces = {name: declared_namespace(source, profile) for name, source in files.items()}
        for file_name, namespace in namespaces.items():
            if namespace is not None and not _is_safe_namespace(namespace):
                raise WorkspaceWriteError(
                    f"Unsafe namespace {namespace!r} declared in {file_name}",
                    written=[],
                )
        classified = ClassifiedFiles()
        written: list[Path] = []
        try:
            workdir.mkdir(parents=True, exist_ok=True)
            for file_name in sorted(files):
                source = files[file_name]
                namespace = namespaces[file_name]
                if namespace is None or namespace == profile.entry_namespace:
                    path = workdir / file_name
                    path.write_text(source, "utf-8")
                    classified.entry_files.append(path)
                else:
                    namespace_dir = workdir / namespace
                    namespace_dir.mkdir(parents=True, exist_ok=True)
                    path = namespace_dir / file_name
                    path.write_text(source, "utf-8")
                    classified.dependency_files.append(path)
                    classified.namespaces[path] = namespace
                written.append(path)
        except OSError as error:
            raise WorkspaceWriteError(
                f"Failed to write workspace {workdir}: {error}",
                written=written,
            ) from error

        logger.debug(
            "Workspace %s: entry=%d dependency=%d",
            workdir,
            len(classified.entry_files),
            len(classified.dependency_files),
        )
        return classified


def run_goimports(workdir: Path, *, command: str = "goimports") -> None:
    """Fix Go imports in place for every file under ``workdir``."""

    try:
        completed = subprocess.run(  # noqa: S603
            [command, "-w", str(workdir)],
            capture_output=True,
            text=True,
            check=False,
        )
    except FileNotFoundError as error:
        raise WorkspaceWriteError(
            f"Go import post-processing command not found: {command}",
            written=[],
        ) from error
    if completed.returncode != 0:
        raise WorkspaceWriteError(
            f"{command} failed with code {completed.returncode}: {completed.stderr.strip()}",
            written=[],
        )


def write_workspace(files: dict[str, str], workdir: Path, language: str) -> ClassifiedFiles:
    """Write ``files`` with the default language profiles."""

    return WorkspaceWriter().write(files, workdir, language)
