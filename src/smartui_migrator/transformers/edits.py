"""Byte-span edits over tree-sitter syntax trees.

Each code transformer pass parses the current text, collects edits against
node spans and applies them in one go.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

import tree_sitter


@dataclass(frozen=True)
class Edit:
    """Replace ``data[start:end]`` with ``replacement``."""

    start: int
    end: int
    replacement: str


def apply_edits(data: bytes, edits: Iterable[Edit]) -> str:
    """Apply byte-span edits; an edit nested inside an earlier one is dropped."""
    pieces: list[bytes] = []
    cursor = 0
    for edit in sorted(edits, key=lambda item: (item.start, -item.end)):
        if edit.start < cursor:
            continue
        pieces.append(data[cursor : edit.start])
        pieces.append(edit.replacement.encode("utf-8"))
        cursor = edit.end
    pieces.append(data[cursor:])
    return b"".join(pieces).decode("utf-8")


def replace_node(node: tree_sitter.Node, replacement: str) -> Edit:
    return Edit(node.start_byte, node.end_byte, replacement)


def remove_statement(data: bytes, node: tree_sitter.Node) -> Edit:
    """Delete ``node``, taking its whole line when nothing else is on it."""
    start, end = node.start_byte, node.end_byte
    line_start = data.rfind(b"\n", 0, start) + 1
    line_end = data.find(b"\n", end)
    line_end = len(data) if line_end == -1 else line_end + 1
    if not data[line_start:start].strip() and not data[end:line_end].strip():
        return Edit(line_start, line_end, "")
    return Edit(start, end, "")


def indentation(data: bytes, node: tree_sitter.Node) -> str:
    """Return the whitespace between the start of the line and ``node``."""
    line_start = data.rfind(b"\n", 0, node.start_byte) + 1
    prefix = data[line_start : node.start_byte].decode("utf-8")
    return prefix if not prefix.strip() else ""


def line_of(node: tree_sitter.Node) -> int:
    return node.start_point[0] + 1


def dedupe_lines(source: str, lines: Iterable[str]) -> str:
    """Keep only the first occurrence of each exact (stripped) line in ``lines``."""
    targets = {line.strip() for line in lines}
    seen: set[str] = set()
    kept: list[str] = []
    for line in source.splitlines(keepends=True):
        stripped = line.strip()
        if stripped in targets:
            if stripped in seen:
                continue
            seen.add(stripped)
        kept.append(line)
    return "".join(kept)
