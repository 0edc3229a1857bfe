"""Docker CLI based container runner."""

from __future__ import annotations

import logging
import subprocess
import tempfile
import time
from collections.abc import Callable, Sequence
from pathlib import Path
from uuid import uuid4

from agentcat.backend.base import ContainerRunResult, ContainerRuntimeError

logger = logging.getLogger(__name__)

# `docker run` reserves 125 for failures of the docker daemon itself.
DOCKER_DAEMON_ERROR_EXIT_CODE = 125
TIMEOUT_EXIT_CODE = 124
CANCELED_EXIT_CODE = 130


class DockerCliRunner:
    """Run commands in throwaway containers through the ``docker`` binary.

    Standard error is merged into standard output so the combined stream keeps
    emission order. The container is force-removed after completion, failure,
    timeout, or cancellation.
    """

    def __init__(
        self,
        *,
        docker_binary: str = "docker",
        name_prefix: str = "agentcat",
        poll_interval_seconds: float = 0.1,
    ) -> None:
        self.docker_binary = docker_binary
        self.name_prefix = name_prefix
        self.poll_interval_seconds = poll_interval_seconds

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
        mount_args = [
            "-v",
            f"{host_workdir.resolve()}:{container_workdir}",
            "-w",
            container_workdir,
        ]
        return self._run(
            image=image,
            command=command,
            extra_args=mount_args,
            cancel_requested=cancel_requested,
            timeout_seconds=timeout_seconds,
        )

    def run(
        self,
        image: str,
        command: Sequence[str],
        *,
        cancel_requested: Callable[[], bool] | None = None,
        timeout_seconds: float | None = None,
    ) -> ContainerRunResult:
        return self._run(
            image=image,
            command=command,
            extra_args=[],
            cancel_requested=cancel_requested,
            timeout_seconds=timeout_seconds,
        )

    def build_run_args(
        self,
        *,
        container_name: str,
        image: str,
        command: Sequence[str],
        extra_args: Sequence[str],
    ) -> list[str]:
        return [
            self.docker_binary,
            "run",
            "--name",
            container_name,
            *extra_args,
            image,
            *command,
        ]

    def _run(
        self,
        *,
        image: str,
        command: Sequence[str],
        extra_args: Sequence[str],
        cancel_requested: Callable[[], bool] | None,
        timeout_seconds: float | None,
    ) -> ContainerRunResult:
        container_name = f"{self.name_prefix}-{uuid4().hex[:12]}"
        run_args = self.build_run_args(
            container_name=container_name,
            image=image,
            command=command,
            extra_args=extra_args,
        )
        logger.debug("Starting container %s: %s", container_name, run_args)
        try:
            with tempfile.TemporaryFile(mode="w+b") as output_handle:
                exit_code, timed_out, canceled = self._wait_with_cancel(
                    run_args=run_args,
                    output_handle=output_handle,
                    cancel_requested=cancel_requested,
                    timeout_seconds=timeout_seconds,
                )
                output_handle.seek(0)
                output = output_handle.read().decode("utf-8", errors="replace")
        except FileNotFoundError as error:
            raise ContainerRuntimeError(
                f"Container runtime command not found: {self.docker_binary}",
            ) from error
        except OSError as error:
            raise ContainerRuntimeError(f"Container runtime failed to start: {error}") from error
        finally:
            self._remove_container(container_name)

        if exit_code == DOCKER_DAEMON_ERROR_EXIT_CODE:
            raise ContainerRuntimeError(
                f"Container runtime error for image {image}: {output.strip()}",
            )
        return ContainerRunResult(
            output=output,
            exit_code=exit_code,
            timed_out=timed_out,
            canceled=canceled,
            container_name=container_name,
        )

    def _wait_with_cancel(
        self,
        *,
        run_args: list[str],
        output_handle,
        cancel_requested: Callable[[], bool] | None,
        timeout_seconds: float | None,
    ) -> tuple[int, bool, bool]:
        process = subprocess.Popen(  # noqa: S603
            run_args,
            stdout=output_handle,
            stderr=subprocess.STDOUT,
        )
        start_monotonic = time.monotonic()
        while True:
            returncode = process.poll()
            if returncode is not None:
                return returncode, False, False

            elapsed = time.monotonic() - start_monotonic
            if timeout_seconds is not None and elapsed >= timeout_seconds:
                _terminate_process(process)
                return TIMEOUT_EXIT_CODE, True, False

            if cancel_requested is not None and cancel_requested():
                _terminate_process(process)
                return CANCELED_EXIT_CODE, False, True

            time.sleep(self.poll_interval_seconds)

    def _remove_container(self, container_name: str) -> None:
        try:
            subprocess.run(  # noqa: S603
                [self.docker_binary, "rm", "-f", container_name],
                capture_output=True,
                check=False,
                timeout=30,
            )
        except (OSError, subprocess.TimeoutExpired) as error:
            logger.warning("Failed to remove container %s: %s", container_name, error)


def _terminate_process(process: subprocess.Popen[bytes]) -> None:
    try:
        process.terminate()
    except OSError:
        return
    try:
        process.wait(timeout=2)
    except subprocess.TimeoutExpired:
        try:
            process.kill()
        except OSError:
            return
        process.wait(timeout=2)
