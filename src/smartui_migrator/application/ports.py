"""Application ports for clean architecture boundaries."""

from __future__ import annotations

from pathlib import Path, PurePath
from typing import Protocol

from smartui_migrator.models import (
    CodeTransformationResult,
    ConfigTransformationResult,
    DetectionResult,
)
from smartui_migrator.types import Platform


class ProjectScanner(Protocol):
    """Classify a project directory."""

    def scan(self, project_root: Path) -> DetectionResult:
        """Return the detection result or raise ``DetectionError``."""


class ConfigConverter(Protocol):
    """Convert a platform configuration document to SmartUI JSON."""

    def transform(
        self, platform: Platform, document_text: str, file_path: PurePath | None = None
    ) -> ConfigTransformationResult:
        """Never raises; falls back to a default configuration."""


class SourceRewriter(Protocol):
    """Rewrite one test source file."""

    def transform(
        self, source_text: str, file_path: PurePath, platform: Platform
    ) -> CodeTransformationResult:
        """Never raises for text input."""
