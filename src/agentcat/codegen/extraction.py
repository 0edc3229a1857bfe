"""Parse raw model responses into named source files."""

from __future__ import annotations

import re

_TAGGED_FENCE = re.compile(r"```(go|python)\n(.*?)```", re.DOTALL)
_UNTAGGED_FENCE = re.compile(r"```\n(.*?)```", re.DOTALL)


class NoUsableSourceError(ValueError):
    """Raised when a model response yields no non-empty source file."""


def extract_code_files(content: str, default_file: str) -> dict[str, str]:
    """Split a model response into ``{file_name: source}``.

    Tagged ``go``/``python`` fences win and are numbered ``main.go``,
    ``main2.go``, ``main3.go``... in order of appearance. Without tagged
    fences the first untagged fence is used, and without any fence the whole
    response is taken as source. Every value is stripped.
    """

    tagged = _TAGGED_FENCE.findall(content)
    if tagged:
        files: dict[str, str] = {}
        for index, (_, code) in enumerate(tagged):
            file_name = default_file if index == 0 else numbered_file_name(default_file, index + 1)
            files[file_name] = code.strip()
        return files

    untagged = _UNTAGGED_FENCE.search(content)
    if untagged is not None:
        return {default_file: untagged.group(1).strip()}

    return {default_file: content.strip()}


def numbered_file_name(file_name: str, number: int) -> str:
    """Insert ``number`` right before the extension (``main.go`` -> ``main2.go``)."""

    dot = file_name.rfind(".")
    if dot > 0:
        return f"{file_name[:dot]}{number}{file_name[dot:]}"
    return f"{file_name}{number}"


def ensure_usable(files: dict[str, str]) -> dict[str, str]:
    """Reject extraction results where every file is empty."""

    if not files or not any(source.strip() for source in files.values()):
        raise NoUsableSourceError("No usable source extracted from model response.")
    return files
