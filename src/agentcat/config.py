"""Runtime configuration for generation, execution, and the task queue."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from agentcat.codegen.languages import LanguageProfile, default_profiles

SUPPORTED_LLM_BACKENDS = ("openai", "cli")


@dataclass(slots=True)
class LlmSettings:
    """Model backend settings."""

    backend: str = "openai"
    api_key: str = ""
    base_url: str = ""
    model: str = "gpt-4o-mini"
    command_template: str = ""
    timeout_seconds: int = 600


@dataclass(slots=True)
class ExecutionSettings:
    """Workspace and container settings."""

    workdir_root: Path = Path("./tmp")
    mount_target: str = "/app"
    go_image: str = "golang:1.24.0"
    python_image: str = "python:3.11"
    go_conflict_markers: tuple[str, ...] = ("main redeclared",)
    go_postprocess_imports: bool = False
    goimports_command: str = "goimports"
    container_timeout_seconds: int = 600
    docker_binary: str = "docker"

    def language_profiles(self) -> dict[str, LanguageProfile]:
        return default_profiles(
            go_image=self.go_image,
            python_image=self.python_image,
            go_conflict_markers=self.go_conflict_markers,
        )


@dataclass(slots=True)
class QueueSettings:
    """In-process queue and worker settings."""

    capacity: int = 10
    poll_interval_seconds: float = 0.2


@dataclass(slots=True)
class Settings:
    """Application settings grouped by concern."""

    db_path: Path = Path("agent.db")
    llm: LlmSettings = field(default_factory=LlmSettings)
    execution: ExecutionSettings = field(default_factory=ExecutionSettings)
    queue: QueueSettings = field(default_factory=QueueSettings)

    @classmethod
    def from_env(
        cls,
        db_path: Path | None = None,
        config_path: Path | None = None,
    ) -> Settings:
        """Load settings from environment, optionally overlaid by a YAML file."""

        llm = LlmSettings(
            backend=os.getenv("AGENTCAT_LLM_BACKEND", "openai").strip().lower(),
            api_key=os.getenv("AGENTCAT_LLM_API_KEY", os.getenv("OPENAI_API_KEY", "")),
            base_url=os.getenv("AGENTCAT_LLM_BASE_URL", os.getenv("OPENAI_BASE_URL", "")),
            model=os.getenv("AGENTCAT_LLM_MODEL", os.getenv("OPENAI_MODEL", "gpt-4o-mini")),
            command_template=os.getenv("AGENTCAT_LLM_COMMAND_TEMPLATE", ""),
            timeout_seconds=int(os.getenv("AGENTCAT_LLM_TIMEOUT_SECONDS", "600")),
        )
        resolved_config_path = config_path or _optional_path("AGENTCAT_CONFIG_PATH")
        if resolved_config_path is not None:
            _apply_yaml_overlay(llm, resolved_config_path)

        return cls(
            db_path=db_path or Path(os.getenv("AGENTCAT_DB_PATH", "agent.db")),
            llm=llm,
            execution=ExecutionSettings(
                workdir_root=Path(os.getenv("AGENTCAT_WORKDIR_ROOT", "./tmp")),
                mount_target=os.getenv("AGENTCAT_MOUNT_TARGET", "/app"),
                go_image=os.getenv("AGENTCAT_GO_IMAGE", "golang:1.24.0"),
                python_image=os.getenv("AGENTCAT_PYTHON_IMAGE", "python:3.11"),
                go_conflict_markers=_env_csv(
                    "AGENTCAT_GO_CONFLICT_MARKERS",
                    default=("main redeclared",),
                ),
                go_postprocess_imports=_env_bool("AGENTCAT_GO_POSTPROCESS_IMPORTS", default=False),
                goimports_command=os.getenv("AGENTCAT_GOIMPORTS_COMMAND", "goimports"),
                container_timeout_seconds=int(
                    os.getenv("AGENTCAT_CONTAINER_TIMEOUT_SECONDS", "600"),
                ),
                docker_binary=os.getenv("AGENTCAT_DOCKER_BINARY", "docker"),
            ),
            queue=QueueSettings(
                capacity=int(os.getenv("AGENTCAT_QUEUE_CAPACITY", "10")),
                poll_interval_seconds=float(os.getenv("AGENTCAT_WORKER_POLL_SECONDS", "0.2")),
            ),
        )

    def validate(self) -> None:
        """Raise configuration error for unusable values."""

        if self.llm.backend not in SUPPORTED_LLM_BACKENDS:
            raise ValueError(
                f"Unsupported AGENTCAT_LLM_BACKEND: {self.llm.backend!r}. "
                f"Expected one of: {', '.join(SUPPORTED_LLM_BACKENDS)}.",
            )
        if self.llm.backend == "cli" and not self.llm.command_template.strip():
            raise ValueError("AGENTCAT_LLM_COMMAND_TEMPLATE is required for the cli backend.")
        if not self.llm.model.strip():
            raise ValueError("AGENTCAT_LLM_MODEL must not be empty.")
        if self.llm.timeout_seconds <= 0:
            raise ValueError("AGENTCAT_LLM_TIMEOUT_SECONDS must be > 0.")
        if self.queue.capacity <= 0:
            raise ValueError("AGENTCAT_QUEUE_CAPACITY must be > 0.")
        if self.queue.poll_interval_seconds <= 0:
            raise ValueError("AGENTCAT_WORKER_POLL_SECONDS must be > 0.")
        if self.execution.container_timeout_seconds <= 0:
            raise ValueError("AGENTCAT_CONTAINER_TIMEOUT_SECONDS must be > 0.")
        if not self.execution.mount_target.startswith("/"):
            raise ValueError(
                f"AGENTCAT_MOUNT_TARGET must be an absolute container path, "
                f"got {self.execution.mount_target!r}.",
            )
        if self.llm.backend == "openai" and not self.llm.api_key.strip():
            raise ValueError(
                "AGENTCAT_LLM_API_KEY (or OPENAI_API_KEY) is required for the openai backend.",
            )


def _apply_yaml_overlay(llm: LlmSettings, config_path: Path) -> None:
    try:
        raw = yaml.safe_load(config_path.read_text("utf-8"))
    except OSError as error:
        raise ValueError(f"Cannot read config file {config_path}: {error}") from error
    except yaml.YAMLError as error:
        raise ValueError(f"Cannot parse config file {config_path}: {error}") from error
    if raw is None:
        return
    if not isinstance(raw, dict):
        raise ValueError(f"Config file {config_path} must contain a mapping.")

    if raw.get("api_key"):
        llm.api_key = str(raw["api_key"])
    if raw.get("base_url"):
        llm.base_url = str(raw["base_url"])
    if raw.get("model"):
        llm.model = str(raw["model"])
    if raw.get("backend"):
        llm.backend = str(raw["backend"]).strip().lower()
    if raw.get("command_template"):
        llm.command_template = str(raw["command_template"])


def _optional_path(name: str) -> Path | None:
    value = os.getenv(name, "").strip()
    return Path(value) if value else None


def _env_csv(name: str, *, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = os.getenv(name)
    if raw is None:
        return default
    values = tuple(part.strip() for part in raw.split(",") if part.strip())
    return values or default


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    raise ValueError(f"Invalid boolean value for {name}: {value!r}")
