#!/usr/bin/env python3
"""Architecture boundary checks."""

from __future__ import annotations

from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
PACKAGE = "src/smartui_migrator"

CLI_BANNED = [
    "import tree_sitter",
    "import yaml",
    "from smartui_migrator.transformers.javascript",
    "from smartui_migrator.detection.readers",
]
APPLICATION_BANNED = [
    "import typer",
    "from typer",
    "import tree_sitter",
    "import yaml",
]
CORE_BANNED = [
    "import typer",
    "from typer",
    "from smartui_migrator.application",
    "from smartui_migrator.cli",
]


def _read(path: Path) -> str:
    return path.read_text(encoding="utf-8")


def _assert_no_imports(path: Path, banned: list[str]) -> None:
    text = _read(path)
    for token in banned:
        if token in text:
            raise SystemExit(f"Architecture violation in {path}: found '{token}'")


def main(root: Path = ROOT) -> None:
    """Run repository architecture boundary checks."""
    package = root / PACKAGE
    _assert_no_imports(package / "cli/cli.py", CLI_BANNED)

    for path in (package / "application").glob("*.py"):
        _assert_no_imports(path, APPLICATION_BANNED)

    for layer in ("detection", "transformers"):
        for path in (package / layer).glob("*.py"):
            _assert_no_imports(path, CORE_BANNED)

    print("Architecture checks passed.")


if __name__ == "__main__":
    main()
