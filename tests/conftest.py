"""Pytest configuration for the smartui_migrator suites.

Tests under ``unit_tests``, ``integration_tests`` and ``e2e_tests`` get the
matching marker, and ``project_file`` lays out migration projects on disk.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

type ProjectWriter = Callable[..., Path]


def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    """Attach suite markers based on test file path."""
    del config
    for item in items:
        parts = set(Path(str(item.fspath)).parts)
        if "e2e_tests" in parts:
            item.add_marker(pytest.mark.e2e)
        elif "integration_tests" in parts:
            item.add_marker(pytest.mark.integration)
        elif "unit_tests" in parts:
            item.add_marker(pytest.mark.unit)


@pytest.fixture
def project_file(tmp_path: Path) -> ProjectWriter:
    """Return a writer that creates ``relative`` under the project root.

    Parent directories are created on demand and the written path is returned.
    """

    def write(relative: str, text: str = "") -> Path:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path

    return write
