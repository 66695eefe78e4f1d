"""Detection engine classifying a project into one platform/framework tuple."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import assert_never

from smartui_migrator.detection.readers import (
    ProjectIndex,
    read_package_manifest,
    read_pom_dependencies,
    read_requirements,
)
from smartui_migrator.detection.rules import (
    CI_PATTERNS,
    CONFIG_PATTERNS,
    ECOSYSTEM_LANGUAGE,
    ECOSYSTEM_MANIFEST,
    ECOSYSTEM_RULES,
    FRAMEWORK_PROBES,
    MANIFEST_LANGUAGE,
    PACKAGE_MANAGER_PATTERNS,
    PLATFORM_CONFIG_FILES,
    SOURCE_PATTERNS,
    STORYBOOK_DIRECTORY,
)
from smartui_migrator.errors import (
    MultiplePlatformsDetectedError,
    PlatformNotDetectedError,
)
from smartui_migrator.models import DetectedFiles, DetectionResult
from smartui_migrator.types import Ecosystem, Framework, Language, Platform, TestType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Classification:
    """Platform, framework and language chosen by one detection tier."""

    platform: Platform
    framework: Framework
    language: Language

    def label(self) -> str:
        return f"{self.platform} + {self.framework} ({self.language})"


def derive_test_type(framework: Framework) -> TestType:
    """Derive the test type from the detected framework."""
    match framework:
        case Framework.STORYBOOK:
            return TestType.STORYBOOK
        case Framework.APPIUM:
            return TestType.APPIUM
        case (
            Framework.CYPRESS
            | Framework.PLAYWRIGHT
            | Framework.SELENIUM
            | Framework.ROBOT_FRAMEWORK
        ):
            return TestType.E2E
        case _:
            assert_never(framework)


class Scanner:
    """Two-tier project scanner.

    Tier 1 evaluates dependency manifests of every ecosystem and is
    authoritative. Tier 2 falls back to platform configuration file names and
    is only consulted when tier 1 yields nothing.
    """

    def __init__(self, project_root: Path | str) -> None:
        self.project_root = Path(project_root).resolve()

    def scan(self) -> DetectionResult:
        """Classify the project.

        Returns
        -------
        DetectionResult
            Immutable classification with collected file sets.

        Raises
        ------
        FileNotFoundError
            If the project root is not a directory.
        PlatformNotDetectedError
            If neither tier matches.
        MultiplePlatformsDetectedError
            If dependency analysis finds conflicting platforms.
        """
        if not self.project_root.is_dir():
            raise FileNotFoundError(
                f"Project root '{self.project_root}' is not a directory."
            )
        index = ProjectIndex(self.project_root)

        classification = self._detect_by_dependencies(index)
        if classification is None:
            logger.debug("No dependency signal; falling back to config files.")
            classification = self._detect_by_config_files(index)
        if classification is None:
            raise PlatformNotDetectedError()

        result = DetectionResult(
            platform=classification.platform,
            framework=classification.framework,
            language=classification.language,
            test_type=derive_test_type(classification.framework),
            files=collect_files(index, classification.platform, classification.framework),
        )
        logger.info("Detected %s in %s", classification.label(), self.project_root)
        return result

    def _declared(self, ecosystem: Ecosystem) -> frozenset[str] | None:
        match ecosystem:
            case "javascript":
                manifest = read_package_manifest(self.project_root)
                return None if manifest is None else manifest.dependency_names()
            case "java":
                return read_pom_dependencies(self.project_root)
            case "python":
                return read_requirements(self.project_root)
            case _:
                assert_never(ecosystem)

    def _detect_by_dependencies(self, index: ProjectIndex) -> Classification | None:
        results: list[Classification] = []
        for ecosystem, rules in ECOSYSTEM_RULES.items():
            declared = self._declared(ecosystem)
            if not declared:
                continue
            pairs: list[tuple[Platform, Framework]] = []
            for rule in rules:
                pair = (rule.platform, rule.framework)
                if pair not in pairs and rule.matches(declared, index):
                    pairs.append(pair)
            if len(pairs) > 1:
                raise MultiplePlatformsDetectedError(
                    [f"{platform} + {framework}" for platform, framework in pairs],
                    source=ECOSYSTEM_MANIFEST[ecosystem],
                )
            if pairs:
                platform, framework = pairs[0]
                logger.debug(
                    "%s matched %s + %s",
                    ECOSYSTEM_MANIFEST[ecosystem],
                    platform,
                    framework,
                )
                results.append(
                    Classification(platform, framework, ECOSYSTEM_LANGUAGE[ecosystem])
                )

        if len(results) > 1:
            raise MultiplePlatformsDetectedError([result.label() for result in results])
        return results[0] if results else None

    def _detect_by_config_files(self, index: ProjectIndex) -> Classification | None:
        for platform, names in PLATFORM_CONFIG_FILES:
            found = next((name for name in names if index.has_file(name)), None)
            if found is None:
                continue
            logger.debug("Found %s config file %s", platform, found)
            return Classification(
                platform, _probe_framework(index), _infer_language(index)
            )
        return None


def _probe_framework(index: ProjectIndex) -> Framework:
    for framework, marker_files, marker_globs in FRAMEWORK_PROBES:
        if any(index.has_file(name) for name in marker_files):
            return framework
        if index.any_match(marker_globs):
            return framework
    if index.has_directory(STORYBOOK_DIRECTORY):
        return Framework.STORYBOOK
    return Framework.SELENIUM


def _infer_language(index: ProjectIndex) -> Language:
    for manifest, language in MANIFEST_LANGUAGE:
        if index.has_file(manifest):
            return language
    return Language.JAVASCRIPT_TYPESCRIPT


def collect_files(
    index: ProjectIndex, platform: Platform, framework: Framework
) -> DetectedFiles:
    """Run the four file-collection queries for a fixed platform/framework."""
    return DetectedFiles(
        config=index.match(CONFIG_PATTERNS[platform]),
        source=index.match(SOURCE_PATTERNS[framework]),
        ci=index.match(CI_PATTERNS),
        package_manager=index.match(PACKAGE_MANAGER_PATTERNS),
    )


def scan_project(project_root: Path | str) -> DetectionResult:
    """Scan ``project_root`` and return its detection result."""
    return Scanner(project_root).scan()
