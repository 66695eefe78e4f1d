"""End-to-end smoke tests for the installed CLI."""

from __future__ import annotations

import json
import subprocess
from pathlib import Path

import smartui_migrator


def test_package_import_smoke() -> None:
    """Ensure package can be imported in the test process."""
    assert smartui_migrator.__version__


def test_cli_help_smoke() -> None:
    """Ensure the installed CLI entrypoint responds to --help."""
    result = subprocess.run(
        ["smartui-migrate", "--help"],
        capture_output=True,
        text=True,
        check=False,
    )

    assert result.returncode == 0, result.stderr
    assert "LambdaTest SmartUI" in result.stdout


def test_cli_missing_project_fails_cleanly(tmp_path: Path) -> None:
    """Ensure CLI returns a user-facing validation error for a missing project."""
    result = subprocess.run(
        ["smartui-migrate", "migrate", str(tmp_path / "missing")],
        capture_output=True,
        text=True,
        check=False,
    )

    assert result.returncode == 1
    assert "is not a directory" in result.stderr


def test_cli_scan_undetected_project(tmp_path: Path) -> None:
    """Exit with code 2 for a project without a visual testing platform."""
    (tmp_path / "package.json").write_text(json.dumps({"name": "plain"}), encoding="utf-8")

    result = subprocess.run(
        ["smartui-migrate", "scan", str(tmp_path), "--json"],
        capture_output=True,
        text=True,
        check=False,
    )

    assert result.returncode == 2
    assert result.stdout == ""
    assert "Could not detect" in result.stderr
