"""System prompts sent to the model backend."""

from __future__ import annotations

from agentcat.codegen.languages import GO


def build_system_prompt(language: str) -> str:
    """Ask for code in ``language`` with one fenced markdown block per file."""

    lines = [
        f"You are an expert {language} developer.",
        "Write code that fulfils the user's request.",
        "Output every source file as its own fenced markdown code block "
        f"tagged with ```{language}.",
        f"Put the file name as a comment on the first line of each block, for example "
        f"{_file_comment(language)}.",
    ]
    if language == GO:
        lines.append(
            "Runnable programs declare `package main` with a `func main()`; "
            "shared helpers declare their own package.",
        )
    return "\n".join(lines)


def build_test_system_prompt(language: str) -> str:
    """Ask for a self-contained unit test file."""

    return "\n".join(
        [
            f"You are an expert {language} developer.",
            "Write a single self-contained unit test file for the user's request.",
            f"Output it as one fenced markdown code block tagged with ```{language}.",
        ],
    )


def _file_comment(language: str) -> str:
    if language == GO:
        return "// main.go"
    return "# main.py"
