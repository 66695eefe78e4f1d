"""Public path-based API (delegates to application use-cases)."""

from __future__ import annotations

from pathlib import Path

from smartui_migrator.application.options import MigrationOptions
from smartui_migrator.application.results import MigrationReport
from smartui_migrator.application.use_cases import migrate_project, scan_project
from smartui_migrator.models import DetectionResult


def detect_project(project_root: str | Path) -> DetectionResult:
    """Classify a project directory."""
    return scan_project(project_root=Path(project_root))


def migrate(
    project_root: str | Path,
    *,
    dry_run: bool = False,
    config_filename: str = ".smartui.json",
) -> MigrationReport:
    """Detect the platform and rewrite the project for SmartUI."""
    options = MigrationOptions(dry_run=dry_run, config_filename=config_filename)
    return migrate_project(project_root=Path(project_root), options=options)
