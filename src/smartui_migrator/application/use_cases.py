"""Application use-cases orchestrating detection and migration workflows."""

from __future__ import annotations

import logging
from pathlib import Path, PurePath

from pydantic import ValidationError

from smartui_migrator.application.options import MigrationOptions
from smartui_migrator.application.ports import ConfigConverter, ProjectScanner, SourceRewriter
from smartui_migrator.application.results import FileOutcome, MigrationReport
from smartui_migrator.detection.scanner import Scanner
from smartui_migrator.errors import MigrationError
from smartui_migrator.models import (
    CodeTransformationResult,
    DetectionResult,
    TransformationWarning,
)
from smartui_migrator.schemas import MigrationRequest
from smartui_migrator.transformers.config import ConfigTransformer, default_config
from smartui_migrator.transformers.package_json import transform_package_json
from smartui_migrator.transformers.pom import transform_pom_document
from smartui_migrator.transformers.registry import (
    CodeTransformerRegistry,
    create_default_registry,
    transform_code,
)
from smartui_migrator.types import Platform

logger = logging.getLogger(__name__)


class _DirectoryScanner:
    def scan(self, project_root: Path) -> DetectionResult:
        return Scanner(project_root).scan()


class _RegistryRewriter:
    def __init__(self, registry: CodeTransformerRegistry) -> None:
        self.registry = registry

    def transform(
        self, source_text: str, file_path: PurePath, platform: Platform
    ) -> CodeTransformationResult:
        return transform_code(source_text, file_path, platform, registry=self.registry)


def _read(path: Path) -> str | None:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Skipping %s: %s", path, exc)
        return None


def _commit(path: Path, original: str, content: str, dry_run: bool) -> bool:
    if content == original:
        return False
    if not dry_run:
        path.write_text(content, encoding="utf-8")
    return True


def scan_project(
    *, project_root: Path, scanner: ProjectScanner | None = None
) -> DetectionResult:
    """Use-case: classify a project without modifying it."""
    try:
        request = MigrationRequest(project_root=project_root)
    except ValidationError as exc:
        raise MigrationError(f"Invalid scan parameters: {exc}") from exc
    scanner = scanner or _DirectoryScanner()
    return scanner.scan(request.project_root)


def migrate_project(
    *,
    project_root: Path,
    options: MigrationOptions,
    scanner: ProjectScanner | None = None,
    config_converter: ConfigConverter | None = None,
    source_rewriter: SourceRewriter | None = None,
) -> MigrationReport:
    """Use-case: detect the platform and rewrite the project for SmartUI.

    Files are processed one at a time in detection order and each one is
    written as soon as it is transformed, unless ``options.dry_run`` is set.

    Parameters
    ----------
    project_root : Path
        Directory to migrate.
    options : MigrationOptions
        Run options.
    scanner, config_converter, source_rewriter : optional
        Port implementations; the built-in ones are used when omitted.

    Returns
    -------
    MigrationReport
        Per-file outcomes and the detection result.

    Raises
    ------
    MigrationError
        If the request is invalid or detection fails.
    OSError
        If writing a transformed file fails.
    """
    try:
        request = MigrationRequest(
            project_root=project_root,
            config_filename=options.config_filename,
            dry_run=options.dry_run,
        )
    except ValidationError as exc:
        raise MigrationError(f"Invalid migration parameters: {exc}") from exc

    scanner = scanner or _DirectoryScanner()
    config_converter = config_converter or ConfigTransformer()
    source_rewriter = source_rewriter or _RegistryRewriter(create_default_registry())

    root = request.project_root
    detection = scanner.scan(root)
    platform = detection.platform
    outcomes: list[FileOutcome] = [
        _migrate_config(root, detection, request, config_converter)
    ]

    if options.transform_sources:
        for relative in detection.files.source:
            path = root / relative
            original = _read(path)
            if original is None:
                outcomes.append(FileOutcome(relative, "source", skipped="unreadable"))
                continue
            result = source_rewriter.transform(original, PurePath(relative), platform)
            changed = _commit(path, original, result.content, request.dry_run)
            outcomes.append(
                FileOutcome(
                    relative,
                    "source",
                    changed=changed,
                    snapshot_count=result.snapshot_count,
                    warnings=result.warnings,
                )
            )

    if options.transform_manifests:
        outcomes.extend(_migrate_manifests(root, detection, request.dry_run))

    report = MigrationReport(
        project_root=root,
        detection=detection,
        config_path=root / request.config_filename,
        files=tuple(outcomes),
        dry_run=request.dry_run,
    )
    logger.info(
        "Migrated %d file(s), %d snapshot call(s)",
        len(report.changed_files),
        report.snapshot_count,
    )
    return report


def _migrate_config(
    root: Path,
    detection: DetectionResult,
    request: MigrationRequest,
    converter: ConfigConverter,
) -> FileOutcome:
    target = root / request.config_filename
    source_text: str | None = None
    source_name: str | None = None
    for relative in detection.files.config:
        source_text = _read(root / relative)
        if source_text is not None:
            source_name = relative
            break

    if source_text is None or source_name is None:
        content = default_config(detection.platform).to_json()
        warnings: tuple[TransformationWarning, ...] = (
            TransformationWarning(
                message=f"No readable {detection.platform} configuration file was found",
                details=f"Wrote a default {request.config_filename}.",
            ),
        )
    else:
        result = converter.transform(detection.platform, source_text, PurePath(source_name))
        content, warnings = result.content, result.warnings

    if not content.endswith("\n"):
        content += "\n"
    previous = target.read_text(encoding="utf-8") if target.is_file() else ""
    changed = _commit(target, previous, content, request.dry_run)
    return FileOutcome(request.config_filename, "config", changed=changed, warnings=warnings)


def _migrate_manifests(
    root: Path, detection: DetectionResult, dry_run: bool
) -> list[FileOutcome]:
    outcomes: list[FileOutcome] = []
    manifests = set(detection.files.package_manager)
    if "package.json" in manifests:
        path = root / "package.json"
        original = _read(path)
        if original is None:
            outcomes.append(FileOutcome("package.json", "manifest", skipped="unreadable"))
        else:
            result = transform_package_json(original, detection.platform)
            changed = _commit(path, original, result.content, dry_run)
            outcomes.append(
                FileOutcome("package.json", "manifest", changed=changed, warnings=result.warnings)
            )
    if "pom.xml" in manifests:
        path = root / "pom.xml"
        original = _read(path)
        if original is None:
            outcomes.append(FileOutcome("pom.xml", "manifest", skipped="unreadable"))
        else:
            pom = transform_pom_document(original, detection.platform)
            warnings = tuple(
                TransformationWarning(message=change.description) for change in pom.changes
            )
            if not pom.success:
                warnings += (TransformationWarning(message=pom.error or "pom.xml was not changed"),)
            changed = pom.success and _commit(path, original, pom.new_content, dry_run)
            outcomes.append(FileOutcome("pom.xml", "manifest", changed=changed, warnings=warnings))
    return outcomes
