"""Unit tests for the two-tier detection engine."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from smartui_migrator.detection.rules import ECOSYSTEM_LANGUAGE, ECOSYSTEM_RULES, DependencyRule
from smartui_migrator.detection.scanner import Scanner, derive_test_type, scan_project
from smartui_migrator.errors import (
    MultiplePlatformsDetectedError,
    PlatformNotDetectedError,
)
from smartui_migrator.types import Ecosystem, Framework, Language, Platform, TestType


def _write(root: Path, relative: str, text: str = "") -> Path:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def _package_json(root: Path, **sections: dict[str, str]) -> None:
    _write(root, "package.json", json.dumps({"name": "demo", **sections}))


def _pom(root: Path, *coordinates: str, namespaced: bool = False) -> None:
    deps = "".join(
        "<dependency><groupId>{}</groupId><artifactId>{}</artifactId>"
        "<version>1.0</version></dependency>".format(*coordinate.split(":"))
        for coordinate in coordinates
    )
    xmlns = ' xmlns="http://maven.apache.org/POM/4.0.0"' if namespaced else ""
    _write(
        root,
        "pom.xml",
        f"<project{xmlns}><modelVersion>4.0.0</modelVersion>"
        f"<dependencies>{deps}</dependencies></project>",
    )


def test_percy_cypress_from_dev_dependencies(tmp_path: Path) -> None:
    """Classify a Cypress project declaring the Percy plugin."""
    _package_json(tmp_path, devDependencies={"@percy/cypress": "^3.1.0", "cypress": "^13"})
    _write(tmp_path, "cypress/e2e/home.cy.js", "cy.percySnapshot('Home');\n")

    result = Scanner(tmp_path).scan()

    assert result.platform is Platform.PERCY
    assert result.framework is Framework.CYPRESS
    assert result.language is Language.JAVASCRIPT_TYPESCRIPT
    assert result.test_type is TestType.E2E
    assert result.files.source == ("cypress/e2e/home.cy.js",)


def test_runtime_dependency_counts_like_dev_dependency(tmp_path: Path) -> None:
    """Treat dependencies and devDependencies as one declared set."""
    _package_json(tmp_path, dependencies={"@applitools/eyes-playwright": "^1.0.0"})

    result = scan_project(tmp_path)

    assert (result.platform, result.framework) == (
        Platform.APPLITOOLS,
        Framework.PLAYWRIGHT,
    )


def test_storybook_rule_requires_storybook_directory(tmp_path: Path) -> None:
    """Ignore a Storybook SDK when the project has no .storybook directory."""
    _package_json(tmp_path, devDependencies={"@percy/storybook": "^5.0.0"})

    with pytest.raises(PlatformNotDetectedError):
        Scanner(tmp_path).scan()

    (tmp_path / ".storybook").mkdir()
    result = Scanner(tmp_path).scan()
    assert result.framework is Framework.STORYBOOK
    assert result.test_type is TestType.STORYBOOK


def test_conflict_between_dependency_sections(tmp_path: Path) -> None:
    """Raise a conflict when one manifest declares two platforms."""
    _package_json(
        tmp_path,
        dependencies={"@percy/cypress": "^3"},
        devDependencies={"@applitools/eyes-cypress": "^3"},
    )

    with pytest.raises(MultiplePlatformsDetectedError, match="in package.json") as info:
        Scanner(tmp_path).scan()

    assert info.value.exit_code == 3
    assert info.value.candidates == ("Percy + Cypress", "Applitools + Cypress")


def test_conflict_across_ecosystems(tmp_path: Path) -> None:
    """Raise a conflict when two manifests each yield a classification."""
    _package_json(tmp_path, devDependencies={"@percy/playwright": "^1"})
    _write(tmp_path, "requirements.txt", "eyes-selenium==5.20.0\n")

    with pytest.raises(MultiplePlatformsDetectedError) as info:
        Scanner(tmp_path).scan()

    assert info.value.candidates == (
        "Percy + Playwright (JavaScript/TypeScript)",
        "Applitools + Selenium (Python)",
    )


def test_java_selenium_from_namespaced_pom(tmp_path: Path) -> None:
    """Read coordinates from a pom.xml carrying the Maven namespace."""
    _pom(tmp_path, "io.percy:percy-java-selenium", "junit:junit", namespaced=True)
    _write(tmp_path, "src/test/java/HomeTest.java", "class HomeTest {}\n")

    result = Scanner(tmp_path).scan()

    assert (result.platform, result.framework, result.language) == (
        Platform.PERCY,
        Framework.SELENIUM,
        Language.JAVA,
    )
    assert result.files.source == ("src/test/java/HomeTest.java",)


def test_java_appium_client_switches_framework(tmp_path: Path) -> None:
    """Classify Sauce Labs Visual with an Appium client as an Appium suite."""
    _pom(tmp_path, "com.saucelabs.visual:java-client", "io.appium:java-client")

    result = Scanner(tmp_path).scan()

    assert result.platform is Platform.SAUCE_LABS_VISUAL
    assert result.framework is Framework.APPIUM
    assert result.test_type is TestType.APPIUM


def test_java_applitools_appium(tmp_path: Path) -> None:
    """Match the Applitools Appium artifact only with an Appium client present."""
    _pom(tmp_path, "com.applitools:eyes-appium-java5", "io.appium:appium-java-client")

    result = Scanner(tmp_path).scan()

    assert (result.platform, result.framework) == (Platform.APPLITOOLS, Framework.APPIUM)


@pytest.mark.parametrize(
    ("requirements", "extra_file", "expected"),
    [
        ("percy-selenium==2.0\n", None, (Platform.PERCY, Framework.SELENIUM)),
        (
            "percy-appium-app\nAppium-Python-Client>=3\n",
            None,
            (Platform.PERCY, Framework.APPIUM),
        ),
        (
            "saucelabs_visual==0.0.7\n",
            "tests/login.robot",
            (Platform.SAUCE_LABS_VISUAL, Framework.ROBOT_FRAMEWORK),
        ),
        ("saucelabs-visual\n", None, (Platform.SAUCE_LABS_VISUAL, Framework.SELENIUM)),
        (
            "eyes-selenium\nappium-python-client\n",
            None,
            (Platform.APPLITOOLS, Framework.APPIUM),
        ),
    ],
)
def test_python_dependency_rows(
    tmp_path: Path,
    requirements: str,
    extra_file: str | None,
    expected: tuple[Platform, Framework],
) -> None:
    """Classify Python projects from requirements.txt."""
    _write(tmp_path, "requirements.txt", requirements)
    if extra_file:
        _write(tmp_path, extra_file, "*** Test Cases ***\n")

    result = Scanner(tmp_path).scan()

    assert (result.platform, result.framework) == expected
    assert result.language is Language.PYTHON


def test_malformed_manifest_falls_back_to_config_files(tmp_path: Path) -> None:
    """Treat an unparsable package.json as absence of signal."""
    _write(tmp_path, "package.json", "{ not json")
    _write(tmp_path, ".percy.yml", "version: 2\n")

    result = Scanner(tmp_path).scan()

    assert result.platform is Platform.PERCY
    assert result.framework is Framework.SELENIUM
    assert result.language is Language.JAVASCRIPT_TYPESCRIPT
    assert result.files.config == (".percy.yml",)


def test_config_file_tier_prefers_percy(tmp_path: Path) -> None:
    """Pick the first platform in priority order when several configs exist."""
    _write(tmp_path, "applitools.config.js", "module.exports = {};\n")
    _write(tmp_path, ".percy.json", "{}")

    assert Scanner(tmp_path).scan().platform is Platform.PERCY


@pytest.mark.parametrize(
    ("marker", "framework"),
    [
        ("cypress.config.js", Framework.CYPRESS),
        ("playwright.config.ts", Framework.PLAYWRIGHT),
        ("tests/login.spec.ts", Framework.PLAYWRIGHT),
        (".storybook/main.js", Framework.STORYBOOK),
    ],
)
def test_config_file_tier_probes_framework(
    tmp_path: Path, marker: str, framework: Framework
) -> None:
    """Probe the framework from marker files when only a config file matched."""
    _write(tmp_path, "applitools.config.js", "module.exports = {};\n")
    _write(tmp_path, marker, "")

    assert Scanner(tmp_path).scan().framework is framework


def test_config_file_tier_infers_language_from_manifest(tmp_path: Path) -> None:
    """Infer Java when an unrelated pom.xml sits beside a platform config."""
    _pom(tmp_path, "junit:junit")
    _write(tmp_path, "saucectl.yml", "apiVersion: v1alpha\n")

    result = Scanner(tmp_path).scan()

    assert result.platform is Platform.SAUCE_LABS_VISUAL
    assert result.language is Language.JAVA


def test_empty_project_is_not_detected(tmp_path: Path) -> None:
    """Raise PlatformNotDetectedError with exit code 2 for an empty project."""
    with pytest.raises(PlatformNotDetectedError, match="Could not detect") as info:
        Scanner(tmp_path).scan()
    assert info.value.exit_code == 2


def test_missing_root_raises_file_not_found(tmp_path: Path) -> None:
    """Reject a project root that is not a directory."""
    with pytest.raises(FileNotFoundError, match="not a directory"):
        Scanner(tmp_path / "missing").scan()


def test_file_collection_honours_ignore_list(tmp_path: Path) -> None:
    """Skip vendored, build and log files while collecting file sets."""
    _package_json(tmp_path, devDependencies={"@percy/cypress": "^3"})
    _write(tmp_path, "package-lock.json", "{}")
    _write(tmp_path, ".percy.yml", "version: 2\n")
    _write(tmp_path, ".github/workflows/ci.yml", "on: push\n")
    _write(tmp_path, "cypress/e2e/a.cy.js", "")
    _write(tmp_path, "src/widget.cy.ts", "")
    _write(tmp_path, "node_modules/pkg/b.cy.js", "")
    _write(tmp_path, "dist/c.cy.js", "")
    _write(tmp_path, "cypress/debug.log", "")

    files = Scanner(tmp_path).scan().files

    assert files.config == (".percy.yml",)
    assert files.source == ("cypress/e2e/a.cy.js", "src/widget.cy.ts")
    assert files.ci == (".github/workflows/ci.yml",)
    assert files.package_manager == ("package-lock.json", "package.json")


def test_detection_result_to_dict_uses_camel_case(tmp_path: Path) -> None:
    """Serialize the detection record with camelCase keys."""
    _package_json(tmp_path, devDependencies={"@saucelabs/visual-playwright": "^0.1"})

    payload = Scanner(tmp_path).scan().to_dict()

    assert payload["platform"] == "Sauce Labs Visual"
    assert payload["testType"] == "e2e"
    assert payload["files"]["packageManager"] == ["package.json"]


@pytest.mark.parametrize(
    ("framework", "test_type"),
    [
        (Framework.CYPRESS, TestType.E2E),
        (Framework.ROBOT_FRAMEWORK, TestType.E2E),
        (Framework.STORYBOOK, TestType.STORYBOOK),
        (Framework.APPIUM, TestType.APPIUM),
    ],
)
def test_derive_test_type(framework: Framework, test_type: TestType) -> None:
    """Derive the test type from the framework alone."""
    assert derive_test_type(framework) is test_type


RULE_CASES = [
    pytest.param(ecosystem, rule, identifier, id=f"{ecosystem}-{position}-{identifier}")
    for ecosystem, rules in ECOSYSTEM_RULES.items()
    for position, rule in enumerate(rules)
    for identifier in rule.any_of
]

EXPECTED_TEST_TYPES = {
    Framework.STORYBOOK: TestType.STORYBOOK,
    Framework.APPIUM: TestType.APPIUM,
}


def _declare(root: Path, ecosystem: Ecosystem, names: tuple[str, ...]) -> None:
    match ecosystem:
        case "javascript":
            _package_json(root, devDependencies={name: "^1.0.0" for name in names})
        case "java":
            _pom(root, *names)
        case "python":
            _write(root, "requirements.txt", "".join(f"{name}\n" for name in names))


@pytest.mark.parametrize(("ecosystem", "rule", "identifier"), RULE_CASES)
def test_every_dependency_row_classifies_its_project(
    tmp_path: Path, ecosystem: Ecosystem, rule: DependencyRule, identifier: str
) -> None:
    """Classify a minimal project built from one dependency-table identifier."""
    _declare(tmp_path, ecosystem, (identifier, *rule.requires))
    if rule.requires_dir is not None:
        (tmp_path / rule.requires_dir).mkdir()
    if rule.requires_glob is not None:
        _write(tmp_path, rule.requires_glob.replace("**/", "tests/").replace("*", "suite"))

    result = Scanner(tmp_path).scan()

    assert (result.platform, result.framework) == (rule.platform, rule.framework)
    assert result.language is ECOSYSTEM_LANGUAGE[ecosystem]
    assert result.test_type is EXPECTED_TEST_TYPES.get(rule.framework, TestType.E2E)
