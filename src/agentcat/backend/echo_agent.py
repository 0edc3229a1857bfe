"""Offline stand-in for a code-writing model, driven through the CLI backend."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

_GO_TEMPLATE = """```go
package main

import "fmt"

func main() {{
\tfmt.Println({message})
}}
```"""

_PYTHON_TEMPLATE = """```python
print({message})
```"""


def render_response(*, prompt: str, language: str) -> str:
    """Deterministic model-like response that prints the request back."""

    request = prompt.strip().splitlines()[-1] if prompt.strip() else "hello"
    message = json.dumps(request)
    template = _PYTHON_TEMPLATE if language == "python" else _GO_TEMPLATE
    return f"Here is the program.\n\n{template.format(message=message)}\n"


def main(argv: list[str] | None = None) -> int:
    """Print a fenced program that echoes the last prompt line."""

    parser = argparse.ArgumentParser()
    parser.add_argument("--prompt-file", required=True)
    parser.add_argument("--language", default="go")
    args = parser.parse_args(argv)

    prompt = Path(args.prompt_file).read_text("utf-8")
    sys.stdout.write(render_response(prompt=prompt, language=args.language))
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
