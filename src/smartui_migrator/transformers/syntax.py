"""tree-sitter grammar loading and node helpers.

JavaScript and TypeScript get the string and escape helpers below; Python and
Java sources are only parsed and walked.
"""

from __future__ import annotations

from collections.abc import Iterator
from functools import cache
from pathlib import PurePath
from typing import Literal, assert_never

import tree_sitter
import tree_sitter_java
import tree_sitter_javascript
import tree_sitter_python
import tree_sitter_typescript

type Dialect = Literal["javascript", "typescript", "tsx", "python", "java"]

JAVASCRIPT_SUFFIXES = frozenset({".js", ".jsx", ".mjs", ".cjs"})
TYPESCRIPT_SUFFIXES = frozenset({".ts", ".mts", ".cts"})
TSX_SUFFIXES = frozenset({".tsx"})
SCRIPT_SUFFIXES = JAVASCRIPT_SUFFIXES | TYPESCRIPT_SUFFIXES | TSX_SUFFIXES


@cache
def _language(dialect: Dialect) -> tree_sitter.Language:
    match dialect:
        case "javascript":
            return tree_sitter.Language(tree_sitter_javascript.language())
        case "typescript":
            return tree_sitter.Language(tree_sitter_typescript.language_typescript())
        case "tsx":
            return tree_sitter.Language(tree_sitter_typescript.language_tsx())
        case "python":
            return tree_sitter.Language(tree_sitter_python.language())
        case "java":
            return tree_sitter.Language(tree_sitter_java.language())
        case _:
            assert_never(dialect)


def dialect_for(file_path: str | PurePath | None) -> Dialect:
    """Pick the script grammar for a file by suffix, defaulting to JavaScript."""
    if file_path is None:
        return "javascript"
    suffix = PurePath(file_path).suffix.lower()
    if suffix in TSX_SUFFIXES:
        return "tsx"
    if suffix in TYPESCRIPT_SUFFIXES:
        return "typescript"
    return "javascript"


def parse(source: str, dialect: Dialect = "javascript") -> tree_sitter.Tree:
    """Parse ``source`` with the grammar for ``dialect``."""
    parser = tree_sitter.Parser(_language(dialect))
    return parser.parse(source.encode("utf-8"))


def text(node: tree_sitter.Node) -> str:
    """Return the source text spanned by ``node``."""
    raw = node.text
    return raw.decode("utf-8") if raw is not None else ""


def walk(node: tree_sitter.Node) -> Iterator[tree_sitter.Node]:
    """Yield ``node`` and its descendants in document order."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def first_error(root: tree_sitter.Node) -> tuple[int, int] | None:
    """Return the 1-based (line, column) of the first syntax error, if any."""
    if not root.has_error:
        return None
    for node in walk(root):
        if node.type == "ERROR" or node.is_missing:
            row, column = node.start_point
            return row + 1, column + 1
    row, column = root.start_point
    return row + 1, column + 1


def string_value(node: tree_sitter.Node) -> str:
    """Decode a ``string`` or substitution-free ``template_string`` node."""
    pieces: list[str] = []
    for child in node.named_children:
        if child.type == "string_fragment":
            pieces.append(text(child))
        elif child.type == "escape_sequence":
            pieces.append(_decode_escape(text(child)))
    return "".join(pieces)


def _decode_escape(sequence: str) -> str:
    if sequence.startswith("\\u{") and sequence.endswith("}"):
        try:
            return chr(int(sequence[3:-1], 16))
        except ValueError:
            return sequence[1:]
    if sequence in ("\\'", '\\"', "\\`", "\\\\", "\\/"):
        return sequence[1]
    try:
        return sequence.encode("ascii").decode("unicode_escape")
    except (UnicodeDecodeError, UnicodeEncodeError):
        return sequence[1:]


def quote_like(original: tree_sitter.Node, value: str) -> str:
    """Render ``value`` as a string literal using the quote style of ``original``."""
    raw = text(original)
    quote = raw[0] if raw and raw[0] in "'\"`" else "'"
    escaped = value.replace("\\", "\\\\").replace(quote, f"\\{quote}")
    return f"{quote}{escaped}{quote}"
