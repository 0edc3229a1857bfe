from __future__ import annotations

from pathlib import Path

import allure
import pytest

from agentcat.codegen.languages import UnsupportedLanguageError, default_profiles
from agentcat.codegen.workspace import (
    WorkspaceWriteError,
    WorkspaceWriter,
    declared_namespace,
    write_workspace,
)

pytestmark = [
    allure.epic("Code Generation"),
    allure.feature("Workspace Materialization"),
]


def test_go_main_and_util_split_into_entry_and_dependency(tmp_path: Path) -> None:
    files = {
        "main.go": 'package main\n\nimport "fmt"\n\nfunc main() { fmt.Println(util.Hi()) }',
        "main2.go": 'package util\n\nfunc Hi() string { return "hi" }',
    }

    classified = write_workspace(files, tmp_path, "go")

    assert classified.entry_files == [tmp_path / "main.go"]
    assert classified.dependency_files == [tmp_path / "util" / "main2.go"]
    assert classified.namespaces == {tmp_path / "util" / "main2.go": "util"}


def test_written_files_round_trip_byte_identical(tmp_path: Path) -> None:
    files = {
        "main.go": "package main\n\nfunc main() {}\n// ünïcode\n",
        "main2.go": "package util\n\nconst X = 1\n\n",
        "main3.go": "package store\n\ntype Item struct{}",
    }

    classified = WorkspaceWriter().write(files, tmp_path, "go")

    assert (tmp_path / "main.go").read_bytes() == files["main.go"].encode("utf-8")
    assert (tmp_path / "util" / "main2.go").read_bytes() == files["main2.go"].encode("utf-8")
    assert (tmp_path / "store" / "main3.go").read_bytes() == files["main3.go"].encode("utf-8")
    assert len(classified.all_files) == 3


def test_go_file_without_package_line_defaults_to_entry(tmp_path: Path) -> None:
    classified = write_workspace({"main.go": "func main() {}"}, tmp_path, "go")

    assert classified.entry_files == [tmp_path / "main.go"]
    assert classified.dependency_files == []


def test_first_package_line_decides_namespace() -> None:
    profile = default_profiles()["go"]
    source = "// comment\npackage helpers\n\npackage main\n"

    assert declared_namespace(source, profile) == "helpers"


def test_indented_package_line_is_ignored() -> None:
    profile = default_profiles()["go"]

    assert declared_namespace("  package helpers\n", profile) == "main"


def test_python_files_are_all_entry_files_at_root(tmp_path: Path) -> None:
    files = {"main.py": "print('a')", "main2.py": "package = 'not go'\nprint('b')"}

    classified = write_workspace(files, tmp_path, "python")

    assert classified.entry_files == [tmp_path / "main.py", tmp_path / "main2.py"]
    assert classified.dependency_files == []
    assert classified.namespaces == {}


def test_write_failure_keeps_partial_files(tmp_path: Path) -> None:
    # A regular file where the "util" directory must go makes the second write fail.
    (tmp_path / "util").write_text("occupied", "utf-8")
    files = {"a.go": "package main", "b.go": "package util"}

    with pytest.raises(WorkspaceWriteError) as excinfo:
        write_workspace(files, tmp_path, "go")

    assert excinfo.value.written == [tmp_path / "a.go"]
    assert (tmp_path / "a.go").read_text("utf-8") == "package main"


def test_unknown_language_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(UnsupportedLanguageError):
        write_workspace({"main.rs": "fn main() {}"}, tmp_path, "rust")


@pytest.mark.parametrize("namespace", ["../../escaped", "..", ".", "a/b", "a\\b"])
def test_path_like_namespace_is_rejected_before_writing(tmp_path: Path, namespace: str) -> None:
    workdir = tmp_path / "work"
    files = {"main.go": "package main", "main2.go": f"package {namespace}"}

    with pytest.raises(WorkspaceWriteError, match="Unsafe namespace"):
        write_workspace(files, workdir, "go")

    assert not workdir.exists()
    assert list(tmp_path.iterdir()) == []


def test_blank_package_declaration_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(WorkspaceWriteError) as excinfo:
        write_workspace({"main.go": "package   \nfunc main() {}"}, tmp_path / "work", "go")

    assert excinfo.value.written == []
