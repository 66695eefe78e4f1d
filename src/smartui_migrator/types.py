"""Closed enums and shared type aliases for migration modules."""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from typing import Literal


class Platform(StrEnum):
    """Source visual-testing platforms the tool migrates away from."""

    PERCY = "Percy"
    APPLITOOLS = "Applitools"
    SAUCE_LABS_VISUAL = "Sauce Labs Visual"


class Framework(StrEnum):
    """Test frameworks a detected project can be driven by."""

    CYPRESS = "Cypress"
    PLAYWRIGHT = "Playwright"
    SELENIUM = "Selenium"
    STORYBOOK = "Storybook"
    APPIUM = "Appium"
    ROBOT_FRAMEWORK = "Robot Framework"


class Language(StrEnum):
    """Source languages with a dedicated code transformer."""

    JAVASCRIPT_TYPESCRIPT = "JavaScript/TypeScript"
    JAVA = "Java"
    PYTHON = "Python"


class TestType(StrEnum):
    """Kind of visual test suite."""

    __test__ = False

    E2E = "e2e"
    STORYBOOK = "storybook"
    APPIUM = "appium"


class PomChangeType(StrEnum):
    """Kinds of Maven coordinate edits."""

    DEPENDENCY_UPDATE = "DEPENDENCY_UPDATE"
    DEPENDENCY_ADD = "DEPENDENCY_ADD"
    DEPENDENCY_REMOVE = "DEPENDENCY_REMOVE"
    PLUGIN_UPDATE = "PLUGIN_UPDATE"


type Ecosystem = Literal["javascript", "java", "python"]

type JsonScalar = str | int | float | bool | None
type JsonValue = JsonScalar | list["JsonValue"] | dict[str, "JsonValue"]
type JsonObject = dict[str, JsonValue]
type JsonMapping = Mapping[str, JsonValue]
