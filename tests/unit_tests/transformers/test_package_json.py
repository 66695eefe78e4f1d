"""Unit tests for package.json dependency and script rewriting."""

from __future__ import annotations

import json

import pytest

from smartui_migrator.transformers.package_json import rewrite_script, transform_package_json
from smartui_migrator.types import Platform


@pytest.mark.parametrize(
    ("command", "expected"),
    [
        ("percy exec -- cypress run", "npx smartui exec -- cypress run"),
        ("npx percy exec -- playwright test", "npx smartui exec -- playwright test"),
        ("percy snapshot ./dist", "smartui snapshot ./dist"),
        ("eslint .", "eslint ."),
    ],
)
def test_percy_scripts(command: str, expected: str) -> None:
    """Replace the Percy CLI with the SmartUI CLI."""
    assert rewrite_script(command, Platform.PERCY) == expected


@pytest.mark.parametrize("platform", [Platform.APPLITOOLS, Platform.SAUCE_LABS_VISUAL])
def test_framework_scripts_are_wrapped(platform: Platform) -> None:
    """Wrap framework runner scripts in `npx smartui exec`."""
    assert rewrite_script("cypress run --headless", platform) == (
        "npx smartui exec -- cypress run --headless"
    )
    assert rewrite_script("npx smartui exec -- wdio", platform) == "npx smartui exec -- wdio"
    assert rewrite_script("tsc -p .", platform) == "tsc -p ."


def test_percy_manifest_is_rewritten() -> None:
    """Rename Percy packages, rewrite scripts and flag environment variables."""
    original = json.dumps(
        {
            "name": "shop",
            "scripts": {"test:visual": "PERCY_TOKEN=abc percy exec -- cypress run"},
            "devDependencies": {
                "@percy/cli": "^1.27.0",
                "@percy/cypress": "^3.1.2",
                "cypress": "^13.0.0",
            },
        },
        indent=2,
    )

    result = transform_package_json(original, Platform.PERCY)

    document = json.loads(result.content)
    assert list(document["devDependencies"]) == [
        "@lambdatest/smartui-cli",
        "@lambdatest/smartui-cypress",
        "cypress",
    ]
    assert document["devDependencies"]["@lambdatest/smartui-cypress"] == "^3.1.2"
    assert document["scripts"]["test:visual"] == (
        "PERCY_TOKEN=abc npx smartui exec -- cypress run"
    )
    assert [warning.message for warning in result.warnings] == [
        "Environment variable `PERCY_TOKEN` must be renamed to `PROJECT_TOKEN`"
    ]
    assert result.content.endswith("}\n")


def test_manifest_without_platform_packages_is_untouched() -> None:
    """Return the original text when nothing needs to change."""
    original = '{"name": "x",   "dependencies": {"react": "18"}}'

    result = transform_package_json(original, Platform.APPLITOOLS)

    assert result.content == original
    assert result.warnings == ()


@pytest.mark.parametrize("text", ["{broken", "[1, 2]"])
def test_invalid_manifest_is_reported(text: str) -> None:
    """Leave invalid manifests unchanged with a single warning."""
    result = transform_package_json(text, Platform.SAUCE_LABS_VISUAL)

    assert result.content == text
    assert len(result.warnings) == 1
    assert result.warnings[0].message.startswith("Failed to parse package.json")
