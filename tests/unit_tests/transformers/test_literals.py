"""Unit tests for the restricted JavaScript/TypeScript literal evaluator."""

from __future__ import annotations

import pytest

from smartui_migrator.errors import ConfigParseError
from smartui_migrator.transformers import syntax
from smartui_migrator.transformers.literals import evaluate_config_object


def test_closed_literal_grammar() -> None:
    """Evaluate literals and omit every non-literal expression."""
    source = """
module.exports = {
  // comment
  a: 1,
  b: 'x',
  c: [1, 2.5, ...rest],
  d: someIdentifier,
  e: compute(),
  f: `plain`,
  g: `with ${value}`,
  'h-i': null,
  j: 0x10,
  k: true,
  l: undefined,
  shorthand,
  nested: { deep: [false] },
};
"""
    assert evaluate_config_object(source) == {
        "a": 1,
        "b": "x",
        "c": [1, 2.5],
        "d": "someIdentifier",
        "f": "plain",
        "h-i": None,
        "j": 16,
        "k": True,
        "l": "undefined",
        "shorthand": "shorthand",
        "nested": {"deep": [False]},
    }


def test_define_config_wrapper_is_unwrapped() -> None:
    """Take the single object argument of a defineConfig-style export."""
    source = (
        "import { defineConfig } from 'x';\n"
        "export default defineConfig({ snapshot: { widths: [375] } });\n"
    )
    assert evaluate_config_object(source, "typescript") == {"snapshot": {"widths": [375]}}


def test_last_export_wins() -> None:
    """Use the last export in document order."""
    source = "module.exports = { a: 1 };\nmodule.exports = { a: 2 };\n"
    assert evaluate_config_object(source) == {"a": 2}


def test_string_escapes_are_decoded() -> None:
    """Decode escape sequences inside string literals."""
    source = "module.exports = { s: 'it\\'s\\n', u: '\\u{1F600}' };"
    assert evaluate_config_object(source) == {"s": "it's\n", "u": "\U0001f600"}


def test_syntax_error_reports_position() -> None:
    """Raise ConfigParseError with a 1-based position on syntax errors."""
    with pytest.raises(ConfigParseError, match="Syntax error at line"):
        evaluate_config_object("module.exports = { a: ;\n")


def test_missing_export_raises() -> None:
    """Raise ConfigParseError when no object is exported."""
    with pytest.raises(ConfigParseError, match="No `module.exports"):
        evaluate_config_object("const config = { a: 1 };\n")


@pytest.mark.parametrize(
    ("path", "dialect"),
    [
        ("a.js", "javascript"),
        ("a.cjs", "javascript"),
        ("a.ts", "typescript"),
        ("a.tsx", "tsx"),
        (None, "javascript"),
    ],
)
def test_dialect_for_suffix(path: str | None, dialect: str) -> None:
    """Pick the grammar from the file suffix."""
    assert syntax.dialect_for(path) == dialect
