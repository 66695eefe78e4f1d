"""Application-layer result objects."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from smartui_migrator.models import DetectionResult, TransformationWarning
from smartui_migrator.types import JsonObject

type FileKind = Literal["config", "source", "manifest"]


@dataclass(frozen=True)
class FileOutcome:
    """What happened to one project file."""

    path: str
    kind: FileKind
    changed: bool = False
    snapshot_count: int = 0
    warnings: tuple[TransformationWarning, ...] = ()
    skipped: str | None = None

    def to_dict(self) -> JsonObject:
        return {
            "path": self.path,
            "kind": self.kind,
            "changed": self.changed,
            "snapshotCount": self.snapshot_count,
            "warnings": [
                {"message": warning.message, "details": warning.details}
                for warning in self.warnings
            ],
            "skipped": self.skipped,
        }


@dataclass(frozen=True)
class MigrationReport:
    """Structured migration outcome."""

    project_root: Path
    detection: DetectionResult
    config_path: Path
    files: tuple[FileOutcome, ...] = ()
    dry_run: bool = False

    @property
    def snapshot_count(self) -> int:
        return sum(outcome.snapshot_count for outcome in self.files)

    @property
    def warning_count(self) -> int:
        return sum(len(outcome.warnings) for outcome in self.files)

    @property
    def changed_files(self) -> tuple[str, ...]:
        return tuple(outcome.path for outcome in self.files if outcome.changed)

    def to_dict(self) -> JsonObject:
        """Return a JSON-ready summary of the run."""
        return {
            "projectRoot": str(self.project_root),
            "detection": self.detection.to_dict(),
            "configPath": str(self.config_path),
            "dryRun": self.dry_run,
            "snapshotCount": self.snapshot_count,
            "files": [outcome.to_dict() for outcome in self.files],
        }
