"""``package.json`` dependency and script rewriting."""

from __future__ import annotations

import copy
import json
import logging
import re
from collections.abc import Mapping
from types import MappingProxyType
from typing import assert_never

from smartui_migrator.models import ConfigTransformationResult, TransformationWarning
from smartui_migrator.types import JsonObject, Platform

logger = logging.getLogger(__name__)

DEPENDENCY_RENAMES: Mapping[Platform, Mapping[str, str]] = MappingProxyType(
    {
        Platform.PERCY: MappingProxyType(
            {
                "@percy/cli": "@lambdatest/smartui-cli",
                "@percy/agent": "@lambdatest/smartui-cli",
                "@percy/sdk": "@lambdatest/smartui-cli",
                "@percy/cypress": "@lambdatest/smartui-cypress",
                "@percy/playwright": "@lambdatest/smartui-playwright",
                "@percy/selenium-webdriver": "@lambdatest/smartui-selenium",
                "@percy/storybook": "@lambdatest/smartui-storybook",
                "@percy/appium-app": "@lambdatest/smartui-appium",
                "@percy/automate": "@lambdatest/smartui-automate",
                "@percy/puppeteer": "@lambdatest/smartui-puppeteer",
            }
        ),
        Platform.APPLITOOLS: MappingProxyType(
            {
                "@applitools/eyes-selenium": "@lambdatest/smartui-selenium",
                "@applitools/eyes-cypress": "@lambdatest/smartui-cypress",
                "@applitools/eyes-playwright": "@lambdatest/smartui-playwright",
                "@applitools/eyes-storybook": "@lambdatest/smartui-storybook",
                "@applitools/eyes-webdriverio": "@lambdatest/smartui-webdriverio",
                "@applitools/eyes-puppeteer": "@lambdatest/smartui-puppeteer",
                "@applitools/eyes": "@lambdatest/smartui-cli",
                "@applitools/eyes-api": "@lambdatest/smartui-cli",
            }
        ),
        Platform.SAUCE_LABS_VISUAL: MappingProxyType(
            {
                "@saucelabs/cypress-plugin": "@lambdatest/smartui-cypress",
                "@saucelabs/cypress-visual-plugin": "@lambdatest/smartui-cypress",
                "@saucelabs/webdriverio": "@lambdatest/smartui-selenium",
                "@saucelabs/playwright-plugin": "@lambdatest/smartui-playwright",
                "@saucelabs/visual-playwright": "@lambdatest/smartui-playwright",
                "@saucelabs/sauce-cypress-runner": "@lambdatest/smartui-cypress",
                "@saucelabs/sauce-playwright-runner": "@lambdatest/smartui-playwright",
                "screener-storybook": "@lambdatest/smartui-storybook",
                "saucectl": "@lambdatest/smartui-cli",
            }
        ),
    }
)

ENVIRONMENT_RENAMES: Mapping[Platform, Mapping[str, str]] = MappingProxyType(
    {
        Platform.PERCY: MappingProxyType(
            {
                "PERCY_TOKEN": "PROJECT_TOKEN",
                "PERCY_BRANCH": "LT_BRANCH",
                "PERCY_PROJECT": "LT_PROJECT",
            }
        ),
        Platform.APPLITOOLS: MappingProxyType(
            {
                "APPLITOOLS_API_KEY": "PROJECT_TOKEN",
                "APPLITOOLS_BATCH_ID": "LT_BATCH_ID",
                "APPLITOOLS_BRANCH_NAME": "LT_BRANCH",
            }
        ),
        Platform.SAUCE_LABS_VISUAL: MappingProxyType(
            {
                "SAUCE_USERNAME": "LT_USERNAME",
                "SAUCE_ACCESS_KEY": "LT_ACCESS_KEY",
                "SAUCE_REGION": "LT_REGION",
            }
        ),
    }
)

FRAMEWORK_COMMANDS = re.compile(r"\b(?:cypress\s+run|playwright\s+test|wdio)\b")
_SMARTUI_EXEC = "npx smartui exec -- "
_PERCY_SCRIPT_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"(?:npx\s+)?percy\s+exec\s+--"), "npx smartui exec --"),
    (re.compile(r"\bnpx\s+percy\b"), "npx smartui"),
    (re.compile(r"(?<![\w@/.-])percy\s"), "smartui "),
)


def rewrite_script(command: str, platform: Platform) -> str:
    """Rewrite one npm script command for the SmartUI CLI."""
    match platform:
        case Platform.PERCY:
            for pattern, replacement in _PERCY_SCRIPT_RULES:
                command = pattern.sub(replacement, command)
            return command
        case Platform.APPLITOOLS | Platform.SAUCE_LABS_VISUAL:
            if "smartui exec" in command or not FRAMEWORK_COMMANDS.search(command):
                return command
            return f"{_SMARTUI_EXEC}{command}"
        case _:
            assert_never(platform)


def _rename_dependencies(section: object, renames: Mapping[str, str]) -> tuple[object, int]:
    if not isinstance(section, dict):
        return section, 0
    renamed: JsonObject = {}
    count = 0
    for name, version in section.items():
        target = renames.get(name)
        if target is None:
            renamed.setdefault(name, version)
            continue
        count += 1
        renamed[target] = version
    return renamed, count


def transform_package_json(document_text: str, platform: Platform) -> ConfigTransformationResult:
    """Rename platform SDK packages and wrap test scripts for SmartUI.

    Parameters
    ----------
    document_text : str
        Original ``package.json`` contents.
    platform : Platform
        Source platform.

    Returns
    -------
    ConfigTransformationResult
        Rewritten manifest. Invalid JSON returns the original text with one
        warning.
    """
    try:
        document = json.loads(document_text)
    except json.JSONDecodeError as exc:
        return ConfigTransformationResult(
            document_text,
            (
                TransformationWarning(
                    message=f"Failed to parse package.json: {exc}",
                    details="Dependencies and scripts were left unchanged.",
                ),
            ),
        )
    if not isinstance(document, dict):
        return ConfigTransformationResult(
            document_text,
            (
                TransformationWarning(
                    message="Failed to parse package.json: root is not an object",
                    details="Dependencies and scripts were left unchanged.",
                ),
            ),
        )

    pristine = copy.deepcopy(document)
    renames = DEPENDENCY_RENAMES[platform]
    for section in ("dependencies", "devDependencies"):
        if section in document:
            document[section], count = _rename_dependencies(document[section], renames)
            if count:
                logger.debug("Renamed %d %s entries", count, section)

    warnings: list[TransformationWarning] = []
    scripts = document.get("scripts")
    if isinstance(scripts, dict):
        document["scripts"] = {
            name: rewrite_script(command, platform) if isinstance(command, str) else command
            for name, command in scripts.items()
        }
        joined = "\n".join(c for c in scripts.values() if isinstance(c, str))
        for old, new in ENVIRONMENT_RENAMES[platform].items():
            if re.search(rf"\b{old}\b", joined):
                warnings.append(
                    TransformationWarning(
                        message=f"Environment variable `{old}` must be renamed to `{new}`",
                        details=f"Scripts reference `{old}`; SmartUI reads `{new}`.",
                    )
                )

    if document == pristine:
        return ConfigTransformationResult(document_text, tuple(warnings))
    return ConfigTransformationResult(
        json.dumps(document, indent=2, ensure_ascii=False) + "\n", tuple(warnings)
    )
