"""Per-language toolchain profiles for generated code."""

from __future__ import annotations

from dataclasses import dataclass, field

GO = "go"
PYTHON = "python"
SUPPORTED_LANGUAGES = (GO, PYTHON)


class UnsupportedLanguageError(ValueError):
    """Raised for a language tag outside the supported set."""


@dataclass(slots=True, frozen=True)
class LanguageProfile:
    """How files of one language are named, classified, and executed.

    ``namespace_keyword`` is ``None`` for languages without a package
    declaration; every file of such a language is an entry file.
    """

    name: str
    image: str
    default_file_name: str
    test_file_name: str
    run_command: tuple[str, ...]
    test_command: tuple[str, ...]
    namespace_keyword: str | None = None
    entry_namespace: str | None = None
    conflict_markers: tuple[str, ...] = field(default_factory=tuple)

    @property
    def has_namespaces(self) -> bool:
        return self.namespace_keyword is not None

    def build_test_command(self, test_file: str) -> list[str]:
        return [part.format(test_file=test_file) for part in self.test_command]


def default_profiles(
    *,
    go_image: str = "golang:1.24.0",
    python_image: str = "python:3.11",
    go_conflict_markers: tuple[str, ...] = ("main redeclared",),
) -> dict[str, LanguageProfile]:
    """Build the built-in profile registry."""

    return {
        GO: LanguageProfile(
            name=GO,
            image=go_image,
            default_file_name="main.go",
            test_file_name="main_test.go",
            run_command=("go", "run"),
            test_command=("go", "test", "."),
            namespace_keyword="package",
            entry_namespace="main",
            conflict_markers=go_conflict_markers,
        ),
        PYTHON: LanguageProfile(
            name=PYTHON,
            image=python_image,
            default_file_name="main.py",
            test_file_name="test_main.py",
            run_command=("python",),
            test_command=("pytest", "{test_file}"),
        ),
    }


def resolve_profile(profiles: dict[str, LanguageProfile], language: str) -> LanguageProfile:
    normalized = language.strip().lower()
    profile = profiles.get(normalized)
    if profile is None:
        raise UnsupportedLanguageError(
            f"Unsupported language: {language!r}. "
            f"Expected one of: {', '.join(sorted(profiles))}.",
        )
    return profile


def default_file_name(language: str) -> str:
    """Default file name for the first extracted file of a language."""

    return resolve_profile(default_profiles(), language).default_file_name
