from __future__ import annotations

import allure
import pytest

from agentcat.codegen.extraction import (
    NoUsableSourceError,
    ensure_usable,
    extract_code_files,
    numbered_file_name,
)
from agentcat.codegen.languages import UnsupportedLanguageError, default_file_name

pytestmark = [
    allure.epic("Code Generation"),
    allure.feature("Response Extraction"),
]


def test_two_tagged_blocks_become_numbered_files() -> None:
    content = (
        "Here you go:\n"
        "```go\npackage main\nfunc main(){}\n```\n"
        "and a helper\n"
        "```go\npackage util\n```\n"
    )

    files = extract_code_files(content, "main.go")

    assert files == {
        "main.go": "package main\nfunc main(){}",
        "main2.go": "package util",
    }


def test_tagged_block_count_matches_file_count() -> None:
    blocks = "".join(f"```python\nprint({index})\n```\ntext\n" for index in range(4))

    files = extract_code_files(blocks, "main.py")

    assert list(files) == ["main.py", "main2.py", "main3.py", "main4.py"]
    assert files["main3.py"] == "print(2)"


def test_tagged_blocks_win_over_untagged_ones() -> None:
    content = "```\nuntagged\n```\n```python\nprint('tagged')\n```\n"

    assert extract_code_files(content, "main.py") == {"main.py": "print('tagged')"}


def test_first_untagged_block_is_used_without_tagged_blocks() -> None:
    content = "intro\n```\n  first block  \n```\n```\nsecond block\n```\n"

    assert extract_code_files(content, "main.go") == {"main.go": "first block"}


def test_whole_trimmed_response_is_used_without_fences() -> None:
    content = "\n\n  package main\n\nfunc main() {}\n  \n"

    assert extract_code_files(content, "main.go") == {
        "main.go": "package main\n\nfunc main() {}",
    }


def test_fence_tagged_with_other_language_is_not_a_tagged_block() -> None:
    content = "```rust\nfn main() {}\n```"

    files = extract_code_files(content, "main.go")

    assert files == {"main.go": "```rust\nfn main() {}\n```"}


def test_ensure_usable_rejects_empty_extraction() -> None:
    with pytest.raises(NoUsableSourceError, match="No usable source"):
        ensure_usable(extract_code_files("   \n", "main.go"))


def test_ensure_usable_rejects_all_empty_blocks() -> None:
    with pytest.raises(NoUsableSourceError):
        ensure_usable(extract_code_files("```go\n\n```\n```go\n   \n```", "main.go"))


def test_ensure_usable_accepts_partially_empty_blocks() -> None:
    files = {"main.go": "", "main2.go": "package main"}

    assert ensure_usable(files) is files


def test_numbered_file_name_inserts_number_before_extension() -> None:
    assert numbered_file_name("main.go", 2) == "main2.go"
    assert numbered_file_name("test_main.py", 3) == "test_main3.py"
    assert numbered_file_name("Makefile", 2) == "Makefile2"


def test_default_file_name_per_language() -> None:
    assert default_file_name("go") == "main.go"
    assert default_file_name("python") == "main.py"
    with pytest.raises(UnsupportedLanguageError):
        default_file_name("cobol")


def test_single_tagged_go_block_maps_to_default_file() -> None:
    files = extract_code_files("```go\npackage main\nfunc main(){}\n```", "main.go")

    assert files == {"main.go": "package main\nfunc main(){}"}
