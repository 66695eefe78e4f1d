"""Immutable records produced by the detection and transformation engines."""

from __future__ import annotations

from dataclasses import dataclass

from smartui_migrator.types import (
    Framework,
    JsonObject,
    Language,
    Platform,
    PomChangeType,
    TestType,
)


@dataclass(frozen=True)
class DetectedFiles:
    """Project-relative POSIX paths relevant to the detected tuple."""

    config: tuple[str, ...] = ()
    source: tuple[str, ...] = ()
    ci: tuple[str, ...] = ()
    package_manager: tuple[str, ...] = ()

    def to_dict(self) -> JsonObject:
        return {
            "config": list(self.config),
            "source": list(self.source),
            "ci": list(self.ci),
            "packageManager": list(self.package_manager),
        }


@dataclass(frozen=True)
class DetectionResult:
    """Single classification of a scanned project."""

    platform: Platform
    framework: Framework
    language: Language
    test_type: TestType
    files: DetectedFiles = DetectedFiles()

    def to_dict(self) -> JsonObject:
        """Return the camelCase record consumed by reporting collaborators."""
        return {
            "platform": self.platform.value,
            "framework": self.framework.value,
            "language": self.language.value,
            "testType": self.test_type.value,
            "files": self.files.to_dict(),
        }


@dataclass(frozen=True)
class TransformationWarning:
    """Non-fatal note attached to one transformed document."""

    message: str
    details: str = ""


@dataclass(frozen=True)
class ConfigTransformationResult:
    """Canonical target document text plus warnings."""

    content: str
    warnings: tuple[TransformationWarning, ...] = ()


@dataclass(frozen=True)
class CodeTransformationResult:
    """Rewritten source text, warnings and migrated snapshot count."""

    content: str
    warnings: tuple[TransformationWarning, ...] = ()
    snapshot_count: int = 0

    def __post_init__(self) -> None:
        if self.snapshot_count < 0:
            raise ValueError("snapshot_count must be non-negative.")


@dataclass(frozen=True)
class PomChange:
    """One Maven coordinate substitution."""

    type: PomChangeType
    group_id: str
    artifact_id: str
    description: str
    old_version: str | None = None
    new_version: str | None = None


@dataclass(frozen=True)
class PomTransformationResult:
    """Outcome of rewriting a Maven build manifest."""

    success: bool
    original_content: str
    new_content: str
    changes: tuple[PomChange, ...] = ()
    error: str | None = None
