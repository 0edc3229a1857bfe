"""Subprocess-based completion backend for CLI agents."""

from __future__ import annotations

import os
import shlex
import subprocess
import tempfile
from pathlib import Path

from agentcat.backend.base import BackendError

TRANSIENT_EXIT_CODES = (137, 143)

_TRANSIENT_PATTERNS: tuple[str, ...] = (
    "too many requests",
    "rate limit",
    "429",
    "temporarily unavailable",
    "connection reset",
    "try again later",
)


class CliCompletionBackend:
    """Obtain completions by running a CLI agent command template.

    The template must contain ``{prompt}`` or ``{prompt_file}``; ``{model}``
    and ``{system_prompt}`` are optional. The agent's stdout is the completion.
    """

    def __init__(
        self,
        *,
        command_template: str,
        timeout_seconds: int = 600,
        workdir: Path | None = None,
    ) -> None:
        self.command_template = command_template
        self.timeout_seconds = timeout_seconds
        self.workdir = workdir

    def complete(self, system_prompt: str, user_prompt: str, model: str) -> str:
        with tempfile.TemporaryDirectory(prefix="agentcat-prompt-") as scratch:
            prompt_file = Path(scratch) / "prompt.txt"
            prompt_file.write_text(f"{system_prompt}\n\n{user_prompt}", "utf-8")
            run_args = build_run_args(
                command_template=self.command_template,
                model=model,
                prompt=user_prompt,
                system_prompt=system_prompt,
                prompt_file=prompt_file,
            )
            env = os.environ.copy()
            env["AGENTCAT_LLM_MODEL"] = model
            try:
                completed = subprocess.run(  # noqa: S603
                    run_args,
                    env=env,
                    cwd=self.workdir,
                    capture_output=True,
                    text=True,
                    timeout=self.timeout_seconds,
                    check=False,
                )
            except FileNotFoundError as error:
                raise BackendError(
                    f"CLI backend command not found: {run_args[0]}",
                    transient=False,
                ) from error
            except subprocess.TimeoutExpired as error:
                raise BackendError(
                    f"CLI backend timed out after {self.timeout_seconds}s.",
                    transient=True,
                ) from error
            except OSError as error:
                raise BackendError(
                    f"CLI backend failed to start: {error}",
                    transient=True,
                ) from error

        if completed.returncode != 0:
            stderr = completed.stderr.strip()
            raise BackendError(
                f"CLI backend exited with code {completed.returncode}: {stderr[:500]}",
                transient=_is_transient(completed.returncode, stderr),
            )
        return completed.stdout


def build_run_args(
    *,
    command_template: str,
    model: str,
    prompt: str,
    system_prompt: str,
    prompt_file: Path,
) -> list[str]:
    stripped = command_template.strip()
    if not stripped:
        raise BackendError("CLI backend command template is empty.", transient=False)
    if "{prompt}" not in stripped and "{prompt_file}" not in stripped:
        raise BackendError(
            "CLI backend command template must include {prompt} or {prompt_file}.",
            transient=False,
        )
    try:
        rendered = stripped.format(
            model=shlex.quote(model),
            prompt=shlex.quote(prompt),
            system_prompt=shlex.quote(system_prompt),
            prompt_file=shlex.quote(str(prompt_file)),
        )
    except KeyError as error:
        raise BackendError(
            f"Unsupported command template placeholder: {error}",
            transient=False,
        ) from error

    argv = shlex.split(rendered)
    if not argv:
        raise BackendError("CLI backend command template rendered empty command.", transient=False)
    return argv


def _is_transient(exit_code: int, stderr: str) -> bool:
    if exit_code in TRANSIENT_EXIT_CODES:
        return True
    haystack = stderr.lower()
    return any(pattern in haystack for pattern in _TRANSIENT_PATTERNS)
