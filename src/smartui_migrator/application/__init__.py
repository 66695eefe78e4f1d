"""Application-layer use-cases and option objects."""

from __future__ import annotations

from pathlib import Path

from smartui_migrator.application.options import MigrationOptions
from smartui_migrator.application.ports import ConfigConverter, ProjectScanner, SourceRewriter
from smartui_migrator.application.results import FileOutcome, MigrationReport
from smartui_migrator.models import DetectionResult


def scan_project(
    *, project_root: Path, scanner: ProjectScanner | None = None
) -> DetectionResult:
    """Classify a project via lazy use-case import."""
    from smartui_migrator.application.use_cases import scan_project as _impl

    return _impl(project_root=project_root, scanner=scanner)


def migrate_project(
    *,
    project_root: Path,
    options: MigrationOptions,
    scanner: ProjectScanner | None = None,
    config_converter: ConfigConverter | None = None,
    source_rewriter: SourceRewriter | None = None,
) -> MigrationReport:
    """Migrate a project via lazy use-case import."""
    from smartui_migrator.application.use_cases import migrate_project as _impl

    return _impl(
        project_root=project_root,
        options=options,
        scanner=scanner,
        config_converter=config_converter,
        source_rewriter=source_rewriter,
    )


__all__ = [
    "MigrationOptions",
    "FileOutcome",
    "MigrationReport",
    "scan_project",
    "migrate_project",
]
