"""Unit tests for thin public wrapper modules."""

from __future__ import annotations

import sys
import types
from pathlib import Path

import pytest

import smartui_migrator
from smartui_migrator import application
from smartui_migrator.types import Platform


def test_top_level_detect_wrapper_forwards(monkeypatch: pytest.MonkeyPatch) -> None:
    """Forward detect_project to the api module implementation."""
    fake_module = types.SimpleNamespace(detect_project=lambda root: ("detected", root))
    monkeypatch.setitem(sys.modules, "smartui_migrator.api", fake_module)

    assert smartui_migrator.detect_project("proj") == ("detected", "proj")


def test_top_level_migrate_wrapper_forwards(monkeypatch: pytest.MonkeyPatch) -> None:
    """Forward migrate keyword arguments to the api module implementation."""
    called: dict[str, object] = {}

    def fake_impl(project_root: object, **kwargs: object) -> str:
        called["project_root"] = project_root
        called.update(kwargs)
        return "report"

    monkeypatch.setitem(
        sys.modules, "smartui_migrator.api", types.SimpleNamespace(migrate=fake_impl)
    )

    out = smartui_migrator.migrate("proj", dry_run=True, config_filename="ui.json")

    assert out == "report"
    assert called == {"project_root": "proj", "dry_run": True, "config_filename": "ui.json"}


def test_top_level_transform_wrappers_run_real_transformers() -> None:
    """Run config and code transformations through the package entrypoints."""
    config = smartui_migrator.transform_config(
        Platform.PERCY, "version: 2\nsnapshot:\n  min-height: 900\n", ".percy.yml"
    )
    code = smartui_migrator.transform_code(
        "cy.percySnapshot('Home');\n", "cypress/e2e/home.cy.js", Platform.PERCY
    )

    assert '"minHeight": 900' in config.content
    assert code.content == "cy.smartuiSnapshot('Home');\n"


def test_application_wrappers_forward(monkeypatch: pytest.MonkeyPatch) -> None:
    """Forward application wrappers to lazily imported use-cases."""
    calls: list[tuple[str, dict[str, object]]] = []

    def fake_scan(**kwargs: object) -> str:
        calls.append(("scan", kwargs))
        return "detection"

    def fake_migrate(**kwargs: object) -> str:
        calls.append(("migrate", kwargs))
        return "report"

    monkeypatch.setitem(
        sys.modules,
        "smartui_migrator.application.use_cases",
        types.SimpleNamespace(scan_project=fake_scan, migrate_project=fake_migrate),
    )
    options = application.MigrationOptions(dry_run=True)

    assert application.scan_project(project_root=Path("p")) == "detection"
    assert application.migrate_project(project_root=Path("p"), options=options) == "report"
    assert calls[0] == ("scan", {"project_root": Path("p"), "scanner": None})
    assert calls[1][1]["options"] is options
    assert calls[1][1]["source_rewriter"] is None
