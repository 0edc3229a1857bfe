"""CLI entrypoint for agentcat."""

import logging
from collections.abc import Callable
from pathlib import Path
from typing import TypeVar

import rich_click as click

from agentcat import __version__
from agentcat.codegen.languages import SUPPORTED_LANGUAGES
from agentcat.orchestrator.controllers import (
    AgentCliController,
    CommandResult,
    GenerateCommand,
    ListTasksCommand,
    StatusCommand,
    SubmitCommand,
)
from agentcat.orchestrator.models import TaskKind, TaskStatus
from agentcat.orchestrator.repository import StoreError

click.rich_click.USE_MARKDOWN = True
CONTROLLER = AgentCliController()

_T = TypeVar("_T")

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

language_option = click.option(
    "--language",
    type=click.Choice(list(SUPPORTED_LANGUAGES), case_sensitive=False),
    default="go",
    show_default=True,
    help="Target language of the generated code.",
)
config_option = click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Optional YAML file with api_key, base_url, and model.",
)
db_path_option = click.option(
    "--db-path",
    type=click.Path(path_type=Path),
    default=None,
    help="SQLite DB path.",
)


@click.group()
@click.version_option(version=__version__, prog_name="aca")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug logging.")
def aca(verbose: bool) -> None:
    """Generate code with a language model and run it in a container."""

    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING, format=_LOG_FORMAT)


@aca.command("gen")
@click.option("--prompt", required=True, help="What the program should do.")
@language_option
@click.option(
    "--workdir",
    type=click.Path(path_type=Path, file_okay=False),
    default=None,
    help="Host directory for generated files (default: AGENTCAT_WORKDIR_ROOT or ./tmp).",
)
@click.option(
    "--mount",
    "mount_target",
    default=None,
    help="Container path the workdir is mounted at (default: /app).",
)
@config_option
def gen(
    prompt: str,
    language: str,
    workdir: Path | None,
    mount_target: str | None,
    config_path: Path | None,
) -> None:
    """Generate a program, write it to the workdir, and run it."""

    command = GenerateCommand(
        prompt=prompt,
        language=language.lower(),
        kind=TaskKind.CODEGEN,
        workdir=workdir,
        mount_target=mount_target,
        config_path=config_path,
    )
    _emit_result(
        _checked(lambda: CONTROLLER.generate(command)),
        failure_message="Generation failed.",
    )


@aca.command("test")
@click.option("--prompt", required=True, help="What the tests should cover.")
@language_option
@click.option(
    "--workdir",
    type=click.Path(path_type=Path, file_okay=False),
    default=None,
    help="Host directory for the generated test file.",
)
@click.option("--mount", "mount_target", default=None, help="Container mount path.")
@config_option
def test(
    prompt: str,
    language: str,
    workdir: Path | None,
    mount_target: str | None,
    config_path: Path | None,
) -> None:
    """Generate a unit test file and run it with the language's test runner."""

    command = GenerateCommand(
        prompt=prompt,
        language=language.lower(),
        kind=TaskKind.TESTGEN,
        workdir=workdir,
        mount_target=mount_target,
        config_path=config_path,
    )
    _emit_result(
        _checked(lambda: CONTROLLER.generate(command)),
        failure_message="Test generation failed.",
    )


@aca.command("submit")
@db_path_option
@click.option(
    "--prompt",
    "prompts",
    multiple=True,
    required=True,
    help="Task input. Can be repeated; tasks run in submission order.",
)
@click.option(
    "--kind",
    type=click.Choice([kind.value for kind in TaskKind], case_sensitive=False),
    default=TaskKind.CODEGEN.value,
    show_default=True,
    help="Unit-of-work flavour.",
)
@language_option
@config_option
def submit(
    db_path: Path | None,
    prompts: tuple[str, ...],
    kind: str,
    language: str,
    config_path: Path | None,
) -> None:
    """Queue tasks and drain them with a single worker."""

    command = SubmitCommand(
        db_path=db_path,
        prompts=prompts,
        kind=TaskKind(kind.lower()),
        language=language.lower(),
        config_path=config_path,
    )
    _emit_result(
        _checked(lambda: CONTROLLER.submit(command)),
        failure_message="Some tasks failed.",
    )


@aca.command("status")
@db_path_option
@click.argument("task_id")
def status(db_path: Path | None, task_id: str) -> None:
    """Show the stored status of one task."""

    command = StatusCommand(db_path=db_path, task_id=task_id)
    _emit_lines(_checked(lambda: CONTROLLER.status(command)))


@aca.command("tasks")
@db_path_option
@click.option(
    "--status",
    type=click.Choice([item.value for item in TaskStatus], case_sensitive=False),
    default=None,
    help="Optional status filter.",
)
@click.option(
    "--limit",
    type=click.IntRange(min=1, max=500),
    default=50,
    show_default=True,
    help="Max tasks to print.",
)
def tasks(db_path: Path | None, status: str | None, limit: int) -> None:
    """List stored task statuses, most recently updated first."""

    command = ListTasksCommand(db_path=db_path, status=status, limit=limit)
    _emit_lines(_checked(lambda: CONTROLLER.list_tasks(command)))


def _checked(call: Callable[[], _T]) -> _T:
    try:
        return call()
    except (ValueError, StoreError) as error:
        raise click.ClickException(str(error)) from error


def _emit_result(result: CommandResult, *, failure_message: str) -> None:
    _emit_lines(result.lines)
    if not result.success:
        raise click.ClickException(failure_message)


def _emit_lines(lines: list[str]) -> None:
    for line in lines:
        click.echo(line)


if __name__ == "__main__":  # pragma: no cover
    aca()
