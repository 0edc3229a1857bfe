"""Deterministic classification of failed container runs."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from agentcat.backend.base import ContainerRunResult
from agentcat.codegen.languages import LanguageProfile


class RunFailureKind(str, Enum):
    """Typed failure conditions the execution orchestrator branches on."""

    DUPLICATE_ENTRY_POINT = "duplicate_entry_point"
    TIMEOUT = "timeout"
    CANCELED = "canceled"
    NONZERO_EXIT = "nonzero_exit"


@dataclass(slots=True)
class RunFailureClassification:
    """Normalized failure classification result."""

    kind: RunFailureKind
    reason_code: str
    matched_pattern: str | None = None


def classify_run_failure(
    *,
    profile: LanguageProfile,
    result: ContainerRunResult,
) -> RunFailureClassification | None:
    """Classify a container run; ``None`` when it succeeded."""

    if result.ok:
        return None
    if result.canceled:
        return RunFailureClassification(
            kind=RunFailureKind.CANCELED,
            reason_code=f"{profile.name}_run_canceled",
        )
    if result.timed_out:
        return RunFailureClassification(
            kind=RunFailureKind.TIMEOUT,
            reason_code=f"{profile.name}_run_timeout",
        )

    pattern = _first_match(result.output, profile.conflict_markers)
    if pattern is not None:
        return RunFailureClassification(
            kind=RunFailureKind.DUPLICATE_ENTRY_POINT,
            reason_code=f"{profile.name}_duplicate_entry_point",
            matched_pattern=pattern,
        )
    return RunFailureClassification(
        kind=RunFailureKind.NONZERO_EXIT,
        reason_code=f"{profile.name}_nonzero_exit",
    )


def _first_match(haystack: str, patterns: tuple[str, ...]) -> str | None:
    for pattern in patterns:
        if pattern in haystack:
            return pattern
    return None
