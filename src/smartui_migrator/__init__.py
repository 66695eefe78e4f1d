"""Top-level API for migrating visual regression suites to LambdaTest SmartUI."""

from __future__ import annotations

from pathlib import Path

from smartui_migrator.models import (
    CodeTransformationResult,
    ConfigTransformationResult,
    DetectionResult,
)
from smartui_migrator.types import Framework, Language, Platform, TestType

__version__ = "0.1.0"


def detect_project(project_root: str | Path) -> DetectionResult:
    """Classify a project directory.

    Parameters
    ----------
    project_root : str | Path
        Directory to scan.

    Returns
    -------
    DetectionResult
        Platform, framework, language, test type and relevant files.

    Raises
    ------
    PlatformNotDetectedError
        If no supported platform is found.
    MultiplePlatformsDetectedError
        If conflicting platforms are declared.
    """
    from .api import detect_project as _impl

    return _impl(project_root)


def migrate(
    project_root: str | Path,
    *,
    dry_run: bool = False,
    config_filename: str = ".smartui.json",
):
    """Migrate a project in place and return the migration report.

    Parameters
    ----------
    project_root : str | Path
        Directory to migrate.
    dry_run : bool, default=False
        Compute every change without writing files.
    config_filename : str, default=".smartui.json"
        Name of the SmartUI configuration file written at the project root.
    """
    from .api import migrate as _impl

    return _impl(project_root, dry_run=dry_run, config_filename=config_filename)


def transform_config(
    platform: Platform, document_text: str, file_path: str | Path | None = None
) -> ConfigTransformationResult:
    """Convert one platform configuration document to SmartUI JSON."""
    from .transformers.config import transform_config as _impl

    return _impl(platform, document_text, file_path)


def transform_code(
    source_text: str, file_path: str | Path, platform: Platform
) -> CodeTransformationResult:
    """Rewrite one test source file for SmartUI."""
    from .transformers.registry import transform_code as _impl

    return _impl(source_text, file_path, platform)


__all__ = [
    "Framework",
    "Language",
    "Platform",
    "TestType",
    "detect_project",
    "migrate",
    "transform_config",
    "transform_code",
]
