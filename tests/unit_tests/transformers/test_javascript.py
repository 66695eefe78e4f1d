"""Unit tests for the tree-sitter based JavaScript/TypeScript transformer."""

from __future__ import annotations

import pytest

from smartui_migrator.transformers.javascript import JavaScriptCodeTransformer
from smartui_migrator.types import Platform

PERCY_CYPRESS = """\
import '@percy/cypress';

describe('home', () => {
  it('looks right', () => {
    cy.visit('/');
    cy.percySnapshot('Home', { widths: [375, 1280], minHeight: 1024 });
    cy.percySnapshot('Footer', { scope: '.footer' });
  });
});
"""

APPLITOOLS_PLAYWRIGHT = """\
import { test } from '@playwright/test';
import { Eyes, Target } from '@applitools/eyes-playwright';

test('login', async ({ page }) => {
  const eyes = new Eyes();
  await eyes.open(page, 'Demo', 'Login');
  await eyes.check('Login page', Target.window().fully());
  await eyes.check(Target.region('#header').withName('Header'));
  await eyes.close();
});
"""


def _transform(source: str, platform: Platform, path: str = "cypress/e2e/home.cy.js"):
    return JavaScriptCodeTransformer().transform(source, path, platform)


def _messages(result) -> list[str]:
    return [warning.message for warning in result.warnings]


def test_percy_cypress_commands_are_renamed() -> None:
    """Rename cy.percySnapshot and convert its options object."""
    result = _transform(PERCY_CYPRESS, Platform.PERCY)

    assert result.content == (
        "import '@lambdatest/smartui-cypress';\n"
        "\n"
        "describe('home', () => {\n"
        "  it('looks right', () => {\n"
        "    cy.visit('/');\n"
        "    cy.smartuiSnapshot('Home', { minHeight: 1024 });\n"
        "    cy.smartuiSnapshot('Footer', { element: { cssSelector: '.footer' } });\n"
        "  });\n"
        "});\n"
    )
    assert result.snapshot_count == 2
    assert _messages(result) == ["Per-snapshot `widths` option was found and is not supported."]
    assert result.warnings[0].details.startswith("Line 6")


def test_percy_rewrite_is_idempotent() -> None:
    """Leave already migrated sources unchanged."""
    first = _transform(PERCY_CYPRESS, Platform.PERCY)
    second = _transform(first.content, Platform.PERCY)

    assert second.content == first.content
    assert second.snapshot_count == 0


def test_percy_playwright_require_binding_is_renamed() -> None:
    """Rename a CommonJS percySnapshot binding and its calls."""
    source = (
        "const { test } = require('@playwright/test');\n"
        "const percySnapshot = require('@percy/playwright');\n"
        "\n"
        "test('home', async ({ page }) => {\n"
        "  await page.goto('https://example.com');\n"
        "  await percySnapshot(page, 'Home page');\n"
        "});\n"
    )

    result = _transform(source, Platform.PERCY, "tests/home.spec.js")

    assert result.content == (
        "const { test } = require('@playwright/test');\n"
        "const smartuiSnapshot = require('@lambdatest/smartui-playwright');\n"
        "\n"
        "test('home', async ({ page }) => {\n"
        "  await page.goto('https://example.com');\n"
        "  await smartuiSnapshot(page, 'Home page');\n"
        "});\n"
    )
    assert result.snapshot_count == 1


def test_applitools_playwright_typescript() -> None:
    """Rewrite Eyes checks into smartuiSnapshot calls on the Playwright page."""
    result = _transform(APPLITOOLS_PLAYWRIGHT, Platform.APPLITOOLS, "tests/login.spec.ts")

    assert result.content == (
        "import { test } from '@playwright/test';\n"
        "import { smartuiSnapshot } from '@lambdatest/smartui-playwright';\n"
        "\n"
        "test('login', async ({ page }) => {\n"
        "  await smartuiSnapshot(page, 'Login page');\n"
        "  await smartuiSnapshot(page, 'Header', { element: { cssSelector: '#header' } });\n"
        "});\n"
    )
    assert result.snapshot_count == 2
    assert _messages(result) == ["`fully` was dropped; SmartUI captures full pages by default."]


def test_applitools_cypress_commands() -> None:
    """Rewrite cy.eyesCheckWindow and drop cy.eyesOpen/cy.eyesClose."""
    source = (
        "describe('home', () => {\n"
        "  it('works', () => {\n"
        "    cy.eyesOpen({ appName: 'Demo', testName: 'Home' });\n"
        "    cy.eyesCheckWindow({ tag: 'Home', target: 'window', fully: true });\n"
        "    cy.eyesCheckWindow();\n"
        "    cy.eyesClose();\n"
        "  });\n"
        "});\n"
    )

    result = _transform(source, Platform.APPLITOOLS)

    assert result.content == (
        "describe('home', () => {\n"
        "  it('works', () => {\n"
        "    cy.smartuiSnapshot('Home');\n"
        "    cy.smartuiSnapshot('Full Page');\n"
        "  });\n"
        "});\n"
    )
    assert result.snapshot_count == 2


def test_applitools_unknown_setting_is_reported() -> None:
    """Warn about Applitools check settings with no SmartUI equivalent."""
    source = "cy.eyesCheckWindow({ tag: 'Home', sizeMode: 'viewport' });\n"

    result = _transform(source, Platform.APPLITOOLS)

    assert result.content == "cy.smartuiSnapshot('Home');\n"
    assert _messages(result) == [
        "Applitools option `sizeMode` has no SmartUI equivalent and was dropped."
    ]


def test_sauce_visual_check_options() -> None:
    """Rename sauceVisualCheck and convert ignore selectors."""
    source = (
        "import { sauceVisualCheck } from '@saucelabs/visual-playwright';\n"
        "\n"
        "test('cart', async ({ page }, testInfo) => {\n"
        "  await sauceVisualCheck(page, testInfo, 'Cart', { ignore: ['.ads'] });\n"
        "});\n"
    )

    result = _transform(source, Platform.SAUCE_LABS_VISUAL, "tests/cart.spec.ts")

    assert result.content == (
        "import { smartuiSnapshot } from '@lambdatest/smartui-playwright';\n"
        "\n"
        "test('cart', async ({ page }, testInfo) => {\n"
        "  await smartuiSnapshot(page, testInfo, 'Cart', "
        "{ ignoreDOM: { cssSelector: ['.ads'] } });\n"
        "});\n"
    )
    assert result.snapshot_count == 1


def test_native_context_switch_is_reported() -> None:
    """Keep WebdriverIO context switches and report them."""
    source = "async function run() {\n  await driver.switchContext('NATIVE_APP');\n}\n"

    result = _transform(source, Platform.PERCY, "test/app.spec.js")

    assert result.content == source
    assert _messages(result) == ["Found 1 native context switching call(s)"]


def test_syntax_error_returns_original() -> None:
    """Return the original text with a parse warning on syntax errors."""
    source = "const = ;\n"

    result = _transform(source, Platform.PERCY, "spec.js")

    assert result.content == source
    assert _messages(result) == ["Failed to parse JavaScript"]
    assert result.warnings[0].details.startswith("spec.js: syntax error at line 1")


@pytest.mark.parametrize("source", ["", "   \n"])
def test_blank_source_is_returned_unchanged(source: str) -> None:
    """Return blank files unchanged without warnings."""
    result = _transform(source, Platform.APPLITOOLS)

    assert result.content == source
    assert result.warnings == ()


def test_unsupported_suffix() -> None:
    """Reject files the JavaScript grammar does not cover."""
    result = _transform("x = 1\n", Platform.PERCY, "test.py")

    assert _messages(result) == ["Unsupported file type"]
