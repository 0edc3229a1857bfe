from __future__ import annotations

import os
import stat
import sys
import threading
from pathlib import Path

import allure
import pytest

from agentcat.backend.base import ContainerRuntimeError
from agentcat.backend.docker_runner import DockerCliRunner

pytestmark = [
    allure.epic("Container Execution"),
    allure.feature("Docker CLI Runner"),
    pytest.mark.skipif(sys.platform == "win32", reason="fake docker binary is a shell script"),
]

_FAKE_DOCKER = """#!/bin/sh
echo "$@" >> "{log}"
if [ "$1" = "rm" ]; then
  exit 0
fi
case "$*" in
  *daemon-down*) echo "Cannot connect to the Docker daemon" >&2; exit 125 ;;
  *sleepy*) sleep 5; exit 0 ;;
  *binary-noise*) printf 'ok\\377\\n'; exit 0 ;;
esac
echo "to stdout"
echo "to stderr" >&2
echo "again stdout"
exit 3
"""


def _fake_docker(tmp_path: Path) -> tuple[Path, Path]:
    log = tmp_path / "docker.log"
    script = tmp_path / "docker"
    script.write_text(_FAKE_DOCKER.format(log=log), "utf-8")
    script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return script, log


def test_build_run_args_places_mount_before_image() -> None:
    runner = DockerCliRunner(docker_binary="docker")

    args = runner.build_run_args(
        container_name="agentcat-1",
        image="golang:1.24.0",
        command=["go", "run", "main.go"],
        extra_args=["-v", "/host:/app", "-w", "/app"],
    )

    assert args == [
        "docker",
        "run",
        "--name",
        "agentcat-1",
        "-v",
        "/host:/app",
        "-w",
        "/app",
        "golang:1.24.0",
        "go",
        "run",
        "main.go",
    ]


def test_run_with_mount_merges_streams_and_removes_container(tmp_path: Path) -> None:
    script, log = _fake_docker(tmp_path)
    runner = DockerCliRunner(docker_binary=str(script), poll_interval_seconds=0.01)

    result = runner.run_with_mount("python:3.11", ["python", "main.py"], tmp_path, "/app")

    assert result.output == "to stdout\nto stderr\nagain stdout\n"
    assert result.exit_code == 3
    assert not result.ok
    calls = log.read_text("utf-8").splitlines()
    assert calls[0].startswith(f"run --name {result.container_name} -v {tmp_path.resolve()}:/app")
    assert calls[0].endswith("-w /app python:3.11 python main.py")
    assert calls[1] == f"rm -f {result.container_name}"


def test_daemon_error_raises_runtime_error(tmp_path: Path) -> None:
    script, log = _fake_docker(tmp_path)
    runner = DockerCliRunner(docker_binary=str(script), poll_interval_seconds=0.01)

    with pytest.raises(ContainerRuntimeError, match="Cannot connect to the Docker daemon"):
        runner.run("daemon-down", ["true"])

    assert log.read_text("utf-8").splitlines()[-1].startswith("rm -f agentcat-")


def test_cancel_terminates_and_removes_container(tmp_path: Path) -> None:
    script, log = _fake_docker(tmp_path)
    runner = DockerCliRunner(docker_binary=str(script), poll_interval_seconds=0.01)
    cancel = threading.Event()
    timer = threading.Timer(0.2, cancel.set)
    timer.start()

    result = runner.run("sleepy", ["true"], cancel_requested=cancel.is_set)
    timer.cancel()

    assert result.canceled
    assert not result.ok
    assert log.read_text("utf-8").splitlines()[-1] == f"rm -f {result.container_name}"


def test_timeout_is_reported(tmp_path: Path) -> None:
    script, _ = _fake_docker(tmp_path)
    runner = DockerCliRunner(docker_binary=str(script), poll_interval_seconds=0.01)

    result = runner.run("sleepy", ["true"], timeout_seconds=0.2)

    assert result.timed_out
    assert result.exit_code == 124


def test_missing_docker_binary_raises_runtime_error(tmp_path: Path) -> None:
    runner = DockerCliRunner(docker_binary=os.fspath(tmp_path / "no-docker"))

    with pytest.raises(ContainerRuntimeError, match="not found"):
        runner.run("golang:1.24.0", ["go", "version"])


def test_undecodable_output_is_replaced_not_raised(tmp_path: Path) -> None:
    script, _ = _fake_docker(tmp_path)
    runner = DockerCliRunner(docker_binary=str(script), poll_interval_seconds=0.01)

    result = runner.run("binary-noise", ["x"])

    assert result.ok
    assert result.output == "ok\ufffd\n"
