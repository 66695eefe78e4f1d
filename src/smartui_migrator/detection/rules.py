"""Immutable detection and file-collection tables."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from smartui_migrator.types import Ecosystem, Framework, Language, Platform

if TYPE_CHECKING:
    from smartui_migrator.detection.readers import ProjectIndex


@dataclass(frozen=True)
class DependencyRule:
    """Map dependency identifiers to one (platform, framework) pair.

    A rule matches when any identifier in ``any_of`` is declared, all of
    ``requires`` are declared, none of ``excludes`` are declared and the
    optional structural checks hold.
    """

    any_of: tuple[str, ...]
    platform: Platform
    framework: Framework
    requires: tuple[str, ...] = ()
    excludes: tuple[str, ...] = ()
    requires_dir: str | None = None
    requires_glob: str | None = None
    excludes_glob: str | None = None

    def matches(self, declared: frozenset[str], index: ProjectIndex) -> bool:
        if not any(identifier in declared for identifier in self.any_of):
            return False
        if not all(identifier in declared for identifier in self.requires):
            return False
        if any(identifier in declared for identifier in self.excludes):
            return False
        if self.requires_dir is not None and not index.has_directory(self.requires_dir):
            return False
        if self.requires_glob is not None and not index.any_match([self.requires_glob]):
            return False
        if self.excludes_glob is not None and index.any_match([self.excludes_glob]):
            return False
        return True


JAVASCRIPT_RULES: tuple[DependencyRule, ...] = (
    DependencyRule(("@percy/cypress",), Platform.PERCY, Framework.CYPRESS),
    DependencyRule(("@percy/playwright",), Platform.PERCY, Framework.PLAYWRIGHT),
    DependencyRule(
        ("@percy/storybook",),
        Platform.PERCY,
        Framework.STORYBOOK,
        requires_dir=".storybook",
    ),
    DependencyRule(("@percy/selenium-webdriver",), Platform.PERCY, Framework.SELENIUM),
    DependencyRule(("@applitools/eyes-cypress",), Platform.APPLITOOLS, Framework.CYPRESS),
    DependencyRule(
        ("@applitools/eyes-playwright",), Platform.APPLITOOLS, Framework.PLAYWRIGHT
    ),
    DependencyRule(
        ("@applitools/eyes-storybook",),
        Platform.APPLITOOLS,
        Framework.STORYBOOK,
        requires_dir=".storybook",
    ),
    DependencyRule(
        ("@applitools/eyes-selenium",), Platform.APPLITOOLS, Framework.SELENIUM
    ),
    DependencyRule(
        ("@saucelabs/cypress-visual-plugin",),
        Platform.SAUCE_LABS_VISUAL,
        Framework.CYPRESS,
    ),
    DependencyRule(
        ("@saucelabs/visual-playwright",),
        Platform.SAUCE_LABS_VISUAL,
        Framework.PLAYWRIGHT,
    ),
    DependencyRule(
        ("screener-storybook",),
        Platform.SAUCE_LABS_VISUAL,
        Framework.STORYBOOK,
        requires_dir=".storybook",
    ),
)

_APPIUM_JAVA = ("io.appium:java-client", "io.appium:appium-java-client")

JAVA_RULES: tuple[DependencyRule, ...] = (
    DependencyRule(
        (
            "com.applitools:eyes-selenium-java5",
            "com.applitools:eyes-selenium-java4",
            "com.applitools:eyes-selenium-java3",
        ),
        Platform.APPLITOOLS,
        Framework.SELENIUM,
        excludes=_APPIUM_JAVA,
    ),
    DependencyRule(
        ("io.percy:percy-java-selenium",),
        Platform.PERCY,
        Framework.SELENIUM,
        excludes=_APPIUM_JAVA,
    ),
    DependencyRule(
        ("com.saucelabs.visual:java-client",),
        Platform.SAUCE_LABS_VISUAL,
        Framework.SELENIUM,
        excludes=_APPIUM_JAVA,
    ),
    # An Appium project may pull in either client coordinate.
    *(
        DependencyRule(any_of, platform, Framework.APPIUM, requires=(client,))
        for client in _APPIUM_JAVA
        for any_of, platform in (
            (("io.percy:percy-appium-java", "io.percy:percy-appium-app"), Platform.PERCY),
            (("com.applitools:eyes-appium-java5",), Platform.APPLITOOLS),
            (("com.saucelabs.visual:java-client",), Platform.SAUCE_LABS_VISUAL),
        )
    ),
)

_APPIUM_PYTHON = ("appium-python-client",)

PYTHON_RULES: tuple[DependencyRule, ...] = (
    DependencyRule(
        ("percy-appium-app",), Platform.PERCY, Framework.APPIUM, requires=_APPIUM_PYTHON
    ),
    DependencyRule(
        ("eyes-selenium",), Platform.APPLITOOLS, Framework.APPIUM, requires=_APPIUM_PYTHON
    ),
    DependencyRule(
        ("saucelabs-visual",),
        Platform.SAUCE_LABS_VISUAL,
        Framework.APPIUM,
        requires=_APPIUM_PYTHON,
    ),
    DependencyRule(
        ("saucelabs-visual",),
        Platform.SAUCE_LABS_VISUAL,
        Framework.ROBOT_FRAMEWORK,
        excludes=_APPIUM_PYTHON,
        requires_glob="**/*.robot",
    ),
    DependencyRule(
        ("percy-selenium",), Platform.PERCY, Framework.SELENIUM, excludes=_APPIUM_PYTHON
    ),
    DependencyRule(
        ("eyes-selenium",),
        Platform.APPLITOOLS,
        Framework.SELENIUM,
        excludes=_APPIUM_PYTHON,
    ),
    DependencyRule(
        ("saucelabs-visual",),
        Platform.SAUCE_LABS_VISUAL,
        Framework.SELENIUM,
        excludes=_APPIUM_PYTHON,
        excludes_glob="**/*.robot",
    ),
)

ECOSYSTEM_RULES: dict[Ecosystem, tuple[DependencyRule, ...]] = {
    "javascript": JAVASCRIPT_RULES,
    "java": JAVA_RULES,
    "python": PYTHON_RULES,
}

ECOSYSTEM_LANGUAGE: dict[Ecosystem, Language] = {
    "javascript": Language.JAVASCRIPT_TYPESCRIPT,
    "java": Language.JAVA,
    "python": Language.PYTHON,
}

ECOSYSTEM_MANIFEST: dict[Ecosystem, str] = {
    "javascript": "package.json",
    "java": "pom.xml",
    "python": "requirements.txt",
}

# Priority order matters: the first platform with a matching file wins.
PLATFORM_CONFIG_FILES: tuple[tuple[Platform, tuple[str, ...]], ...] = (
    (
        Platform.PERCY,
        (".percy.yml", ".percy.yaml", ".percy.json", ".percy.js", "percy.config.js"),
    ),
    (Platform.APPLITOOLS, ("applitools.config.js", "applitools.config.ts")),
    (
        Platform.SAUCE_LABS_VISUAL,
        ("saucectl.yml", ".sauce/config.yml", "sauce.config.js"),
    ),
)

FRAMEWORK_PROBES: tuple[tuple[Framework, tuple[str, ...], tuple[str, ...]], ...] = (
    (
        Framework.CYPRESS,
        ("cypress.json", "cypress.config.js", "cypress.config.ts"),
        ("cypress/**/*.js", "cypress/**/*.ts"),
    ),
    (
        Framework.PLAYWRIGHT,
        ("playwright.config.js", "playwright.config.ts"),
        ("tests/**/*.spec.js", "tests/**/*.spec.ts"),
    ),
)
STORYBOOK_DIRECTORY = ".storybook"

MANIFEST_LANGUAGE: tuple[tuple[str, Language], ...] = (
    ("package.json", Language.JAVASCRIPT_TYPESCRIPT),
    ("pom.xml", Language.JAVA),
    ("requirements.txt", Language.PYTHON),
)

CONFIG_PATTERNS: dict[Platform, tuple[str, ...]] = {
    Platform.PERCY: (
        ".percy.yml",
        ".percy.yaml",
        ".percy.json",
        ".percy.js",
        "percy.config.js",
        "percy.config.ts",
    ),
    Platform.APPLITOOLS: ("applitools.config.js", "applitools.config.ts"),
    Platform.SAUCE_LABS_VISUAL: (
        "saucectl.yml",
        ".sauce/config.yml",
        "sauce.config.js",
        "sauce.config.ts",
    ),
}

SOURCE_PATTERNS: dict[Framework, tuple[str, ...]] = {
    Framework.CYPRESS: (
        "cypress/**/*.js",
        "cypress/**/*.ts",
        "**/*.cy.js",
        "**/*.cy.ts",
    ),
    Framework.PLAYWRIGHT: (
        "tests/**/*.js",
        "tests/**/*.ts",
        "e2e/**/*.js",
        "e2e/**/*.ts",
        "**/*.spec.js",
        "**/*.spec.ts",
    ),
    Framework.SELENIUM: (
        "src/**/*.java",
        "test/**/*.java",
        "**/*Test.java",
        "**/*Tests.java",
        "**/test_*.py",
        "**/*_test.py",
        "tests/**/*.py",
        "test/**/*.js",
    ),
    Framework.STORYBOOK: (
        ".storybook/**/*.js",
        ".storybook/**/*.ts",
        "stories/**/*.js",
        "stories/**/*.ts",
        "**/*.stories.js",
        "**/*.stories.ts",
        "**/*.stories.jsx",
        "**/*.stories.tsx",
    ),
    Framework.APPIUM: ("**/*.java", "**/*.py"),
    Framework.ROBOT_FRAMEWORK: ("**/*.robot", "**/*.py"),
}

CI_PATTERNS: tuple[str, ...] = (
    ".github/workflows/**/*.yml",
    ".github/workflows/**/*.yaml",
    ".gitlab-ci.yml",
    "Jenkinsfile",
    "azure-pipelines.yml",
    ".circleci/config.yml",
)

PACKAGE_MANAGER_PATTERNS: tuple[str, ...] = (
    "package.json",
    "package-lock.json",
    "yarn.lock",
    "pnpm-lock.yaml",
    "pom.xml",
    "requirements.txt",
)
