"""Unit tests for application use-cases with injected ports."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path, PurePath

import pytest

from smartui_migrator.application import MigrationOptions, migrate_project, scan_project
from smartui_migrator.errors import MigrationError
from smartui_migrator.models import (
    CodeTransformationResult,
    ConfigTransformationResult,
    DetectedFiles,
    DetectionResult,
    TransformationWarning,
)
from smartui_migrator.types import Framework, Language, Platform, TestType

type Writer = Callable[..., Path]


class _Scanner:
    """Scanner test double returning a fixed detection result."""

    def __init__(self, files: DetectedFiles) -> None:
        self.files = files
        self.seen: list[Path] = []

    def scan(self, project_root: Path) -> DetectionResult:
        self.seen.append(project_root)
        return DetectionResult(
            Platform.PERCY,
            Framework.CYPRESS,
            Language.JAVASCRIPT_TYPESCRIPT,
            TestType.E2E,
            self.files,
        )


class _Converter:
    """Config converter test double."""

    def __init__(self) -> None:
        self.calls: list[tuple[Platform, str, PurePath | None]] = []

    def transform(
        self, platform: Platform, document_text: str, file_path: PurePath | None = None
    ) -> ConfigTransformationResult:
        self.calls.append((platform, document_text, file_path))
        return ConfigTransformationResult(
            '{"version": "1.0"}', (TransformationWarning("converted"),)
        )


class _Rewriter:
    """Source rewriter test double replacing `percy` with `smartui`."""

    def transform(
        self, source_text: str, file_path: PurePath, platform: Platform
    ) -> CodeTransformationResult:
        del file_path, platform
        count = source_text.count("percy")
        return CodeTransformationResult(source_text.replace("percy", "smartui"), (), count)


def _migrate(root: Path, files: DetectedFiles, **options: object):
    converter = _Converter()
    report = migrate_project(
        project_root=root,
        options=MigrationOptions(**options),
        scanner=_Scanner(files),
        config_converter=converter,
        source_rewriter=_Rewriter(),
    )
    return report, converter


def test_migrate_writes_config_and_sources(tmp_path: Path, project_file: Writer) -> None:
    """Convert the first config file and rewrite every readable source."""
    project_file(".percy.yml", "version: 2\n")
    project_file("cypress/a.cy.js", "cy.percySnapshot('a');\n")
    project_file("cypress/b.cy.js", "cy.visit('/');\n")
    files = DetectedFiles(
        config=(".percy.yml",),
        source=("cypress/a.cy.js", "cypress/b.cy.js", "cypress/gone.cy.js"),
    )

    report, converter = _migrate(tmp_path, files)

    assert converter.calls == [(Platform.PERCY, "version: 2\n", PurePath(".percy.yml"))]
    assert (tmp_path / ".smartui.json").read_text(encoding="utf-8") == '{"version": "1.0"}\n'
    assert (tmp_path / "cypress/a.cy.js").read_text(encoding="utf-8") == (
        "cy.smartuiSnapshot('a');\n"
    )
    assert [(o.path, o.kind, o.changed, o.skipped) for o in report.files] == [
        (".smartui.json", "config", True, None),
        ("cypress/a.cy.js", "source", True, None),
        ("cypress/b.cy.js", "source", False, None),
        ("cypress/gone.cy.js", "source", False, "unreadable"),
    ]
    assert report.snapshot_count == 1
    assert report.warning_count == 1
    assert report.changed_files == (".smartui.json", "cypress/a.cy.js")
    assert report.config_path == tmp_path.resolve() / ".smartui.json"


def test_dry_run_reports_without_writing(tmp_path: Path, project_file: Writer) -> None:
    """Compute every change but leave the project untouched."""
    project_file("cypress/a.cy.js", "percy\n")
    files = DetectedFiles(source=("cypress/a.cy.js",))

    report, _ = _migrate(tmp_path, files, dry_run=True)

    assert report.dry_run is True
    assert report.changed_files == (".smartui.json", "cypress/a.cy.js")
    assert not (tmp_path / ".smartui.json").exists()
    assert (tmp_path / "cypress/a.cy.js").read_text(encoding="utf-8") == "percy\n"


def test_missing_config_writes_platform_default(tmp_path: Path) -> None:
    """Write the default config with a warning when no config file is readable."""
    report, converter = _migrate(tmp_path, DetectedFiles(config=(".percy.yml",)))

    assert converter.calls == []
    written = json.loads((tmp_path / ".smartui.json").read_text(encoding="utf-8"))
    assert written["web"]["viewports"] == [[1280], [768], [375]]
    outcome = report.files[0]
    assert outcome.warnings[0].message == "No readable Percy configuration file was found"


def test_unchanged_config_is_not_rewritten(tmp_path: Path, project_file: Writer) -> None:
    """Report the config as unchanged when the target already matches."""
    project_file(".smartui.json", '{"version": "1.0"}\n')
    project_file(".percy.yml", "version: 2\n")

    report, _ = _migrate(tmp_path, DetectedFiles(config=(".percy.yml",)))

    assert report.files[0].changed is False


def test_custom_config_filename_and_no_sources(tmp_path: Path, project_file: Writer) -> None:
    """Honour the config name and skip sources when disabled."""
    project_file("cypress/a.cy.js", "percy\n")
    files = DetectedFiles(source=("cypress/a.cy.js",))

    report, _ = _migrate(
        tmp_path, files, config_filename="visual.json", transform_sources=False
    )

    assert (tmp_path / "visual.json").is_file()
    assert [outcome.path for outcome in report.files] == ["visual.json"]


def test_manifests_are_rewritten(tmp_path: Path, project_file: Writer) -> None:
    """Rewrite package.json and report pom.xml failures as warnings."""
    project_file("package.json", '{"devDependencies": {"@percy/cypress": "^3"}}')
    project_file("pom.xml", "<project>")
    files = DetectedFiles(package_manager=("package.json", "pom.xml"))

    report, _ = _migrate(tmp_path, files)

    package = json.loads((tmp_path / "package.json").read_text(encoding="utf-8"))
    assert package["devDependencies"] == {"@lambdatest/smartui-cypress": "^3"}
    manifest_outcomes = {o.path: o for o in report.files if o.kind == "manifest"}
    assert manifest_outcomes["package.json"].changed is True
    assert manifest_outcomes["pom.xml"].changed is False
    assert manifest_outcomes["pom.xml"].warnings[0].message.startswith(
        "Failed to transform pom.xml"
    )
    assert (tmp_path / "pom.xml").read_text(encoding="utf-8") == "<project>"


def test_manifests_can_be_disabled(tmp_path: Path, project_file: Writer) -> None:
    """Leave manifests alone when manifest rewriting is off."""
    original = '{"devDependencies": {"@percy/cypress": "^3"}}'
    project_file("package.json", original)

    report, _ = _migrate(
        tmp_path, DetectedFiles(package_manager=("package.json",)), transform_manifests=False
    )

    assert all(outcome.kind != "manifest" for outcome in report.files)
    assert (tmp_path / "package.json").read_text(encoding="utf-8") == original


@pytest.mark.parametrize("name", ["nested/config.json", "config.yml", ""])
def test_invalid_config_filename_is_rejected(tmp_path: Path, name: str) -> None:
    """Reject config names that are not bare .json file names."""
    with pytest.raises(MigrationError, match="Invalid migration parameters"):
        _migrate(tmp_path, DetectedFiles(), config_filename=name)


def test_missing_project_root_is_rejected(tmp_path: Path) -> None:
    """Reject a project root that does not exist."""
    with pytest.raises(MigrationError, match="is not a directory"):
        _migrate(tmp_path / "missing", DetectedFiles())


def test_scan_project_resolves_root(tmp_path: Path) -> None:
    """Pass the resolved project root to the scanner."""
    scanner = _Scanner(DetectedFiles())

    result = scan_project(project_root=tmp_path / ".", scanner=scanner)

    assert result.platform is Platform.PERCY
    assert scanner.seen == [tmp_path.resolve()]


def test_report_to_dict(tmp_path: Path) -> None:
    """Serialize the report with camelCase keys."""
    report, _ = _migrate(tmp_path, DetectedFiles())

    payload = report.to_dict()

    assert payload["dryRun"] is False
    assert payload["detection"]["platform"] == "Percy"
    assert payload["files"][0]["kind"] == "config"
    assert payload["files"][0]["warnings"][0]["message"].startswith("No readable")
