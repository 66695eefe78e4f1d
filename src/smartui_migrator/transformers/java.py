"""Java test-source rewriting over tree-sitter syntax trees."""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from pathlib import PurePath
from types import MappingProxyType
from typing import assert_never

import tree_sitter

from smartui_migrator.models import CodeTransformationResult, TransformationWarning
from smartui_migrator.transformers import syntax
from smartui_migrator.transformers.edits import (
    Edit,
    apply_edits,
    dedupe_lines,
    line_of,
    remove_statement,
    replace_node,
)
from smartui_migrator.types import Platform

logger = logging.getLogger(__name__)

TARGET_IMPORT = "import io.github.lambdatest.SmartUISnapshot;"
TARGET_CALL = "SmartUISnapshot.smartuiSnapshot"

IMPORT_PACKAGES: Mapping[Platform, tuple[str, ...]] = MappingProxyType(
    {
        Platform.PERCY: ("io.percy.selenium", "io.percy.appium"),
        Platform.APPLITOOLS: ("com.applitools.eyes",),
        Platform.SAUCE_LABS_VISUAL: ("com.saucelabs.visual",),
    }
)

DEFAULT_NAMES: Mapping[str, str] = MappingProxyType(
    {
        "check": '"Full Page"',
        "checkWindow": '"Full Page"',
        "checkRegion": '"Region"',
        "checkElement": '"Layout"',
    }
)

CONSTRUCTORS: Mapping[Platform, frozenset[str]] = MappingProxyType(
    {
        Platform.PERCY: frozenset({"Percy", "AppPercy"}),
        Platform.APPLITOOLS: frozenset({"Eyes", "VisualGridRunner", "ClassicRunner"}),
        Platform.SAUCE_LABS_VISUAL: frozenset({"VisualApi"}),
    }
)

_EYES = re.compile(r"(?:this\.)?\w*[eE]yes\w*")
_PERCY = re.compile(r"(?:this\.)?\w*[pP]ercy\w*")
_PERCY_METHODS = frozenset({"snapshot", "screenshot"})
_SAUCE_METHODS = frozenset({"sauceVisualCheck", "visualCheck"})
_APPLITOOLS_LIFECYCLE = frozenset(
    {"open", "closeAsync", "close", "abortIfNotClosed", "abortAsync", "abort"}
)
_COMMENTS = frozenset({"line_comment", "block_comment"})
_DECLARATIONS = frozenset({"local_variable_declaration", "field_declaration"})


def _package_matches(name: str, packages: tuple[str, ...]) -> bool:
    return any(name == package or name.startswith(f"{package}.") for package in packages)


def _render(driver: str, name: str, options: str | None = None) -> str:
    if options:
        return f"{TARGET_CALL}({driver}, {name}, {options})"
    return f"{TARGET_CALL}({driver}, {name})"


def _invocation(node: tree_sitter.Node) -> tuple[str | None, str | None]:
    """Return ``(receiver text, method name)`` of a ``method_invocation``."""
    target = node.child_by_field_name("object")
    name = node.child_by_field_name("name")
    return (
        syntax.text(target) if target is not None else None,
        syntax.text(name) if name is not None else None,
    )


def _arguments(node: tree_sitter.Node) -> list[tree_sitter.Node]:
    arguments = node.child_by_field_name("arguments")
    if arguments is None:
        return []
    return [child for child in arguments.named_children if child.type not in _COMMENTS]


def _constructed_type(node: tree_sitter.Node) -> str | None:
    if node.type != "object_creation_expression":
        return None
    type_node = node.child_by_field_name("type")
    if type_node is None:
        return None
    return syntax.text(type_node).split("<", 1)[0].rsplit(".", 1)[-1].strip()


def _enclosing_statement(node: tree_sitter.Node) -> tree_sitter.Node | None:
    """Return the statement whose whole value is ``node``, if there is one."""
    parent = node.parent
    if parent is None:
        return None
    if parent.type == "expression_statement":
        return parent
    if parent.type == "assignment_expression":
        statement = parent.parent
        if statement is not None and statement.type == "expression_statement":
            return statement
        return None
    if parent.type == "variable_declarator":
        declaration = parent.parent
        if declaration is None or declaration.type not in _DECLARATIONS:
            return None
        declarators = [
            child for child in declaration.named_children if child.type == "variable_declarator"
        ]
        return declaration if len(declarators) == 1 else None
    return None


class _Run:
    """State shared by the passes over one Java source file."""

    def __init__(self, source: str, platform: Platform) -> None:
        self.source = source
        self.platform = platform
        self.warnings: list[TransformationWarning] = []
        self.snapshot_count = 0

    def warn(self, message: str, details: str = "") -> None:
        self.warnings.append(TransformationWarning(message=message, details=details))

    def _tree(self) -> tuple[bytes, tree_sitter.Node]:
        tree = syntax.parse(self.source, "java")
        return self.source.encode("utf-8"), tree.root_node

    def driver_hint(self) -> str:
        _, root = self._tree()
        for node in syntax.walk(root):
            if self.platform is Platform.APPLITOOLS:
                if node.type != "method_invocation":
                    continue
                receiver, name = _invocation(node)
                if receiver is None or not _EYES.fullmatch(receiver) or name != "open":
                    continue
            elif _constructed_type(node) not in CONSTRUCTORS[self.platform]:
                continue
            arguments = _arguments(node)
            if arguments and arguments[0].type in ("identifier", "field_access"):
                return syntax.text(arguments[0])
        return "driver"

    # 1. imports -------------------------------------------------------------
    def rewrite_imports(self) -> None:
        data, root = self._tree()
        packages = IMPORT_PACKAGES[self.platform]
        edits: list[Edit] = []
        for node in syntax.walk(root):
            if node.type != "import_declaration":
                continue
            name = next(
                (
                    child
                    for child in node.named_children
                    if child.type in ("scoped_identifier", "identifier")
                ),
                None,
            )
            if name is not None and _package_matches(syntax.text(name), packages):
                edits.append(replace_node(node, TARGET_IMPORT))
        if edits:
            self.source = dedupe_lines(apply_edits(data, edits), [TARGET_IMPORT])

    # 2. call-sites ----------------------------------------------------------
    def rewrite_calls(self, driver: str) -> None:
        data, root = self._tree()
        edits: list[Edit] = []
        covered = 0
        for node in syntax.walk(root):
            if node.type != "method_invocation" or node.start_byte < covered:
                continue
            receiver, name = _invocation(node)
            if name is None or not self._is_snapshot(receiver, name):
                continue
            replacement = self._snapshot_call(node, name, driver)
            if replacement is None:
                head = f"{receiver}.{name}" if receiver else name
                self.warn(
                    "Snapshot call could not be converted",
                    f"Line {line_of(node)}: `{head}(...)` needs a string literal name; "
                    "it was left unchanged and must be rewritten manually.",
                )
                continue
            edits.append(replace_node(node, replacement))
            covered = node.end_byte
            self.snapshot_count += 1
        self.source = apply_edits(data, edits)

    def _is_snapshot(self, receiver: str | None, name: str) -> bool:
        match self.platform:
            case Platform.PERCY:
                return bool(receiver and _PERCY.fullmatch(receiver)) and name in _PERCY_METHODS
            case Platform.APPLITOOLS:
                return bool(receiver and _EYES.fullmatch(receiver)) and name in DEFAULT_NAMES
            case Platform.SAUCE_LABS_VISUAL:
                return name in _SAUCE_METHODS
            case _:
                assert_never(self.platform)

    def _snapshot_call(self, node: tree_sitter.Node, name: str, driver: str) -> str | None:
        arguments = _arguments(node)
        match self.platform:
            case Platform.PERCY:
                if not arguments or arguments[0].type != "string_literal":
                    return None
                if name == "screenshot" and len(arguments) > 1:
                    return _render(driver, syntax.text(arguments[0]), syntax.text(arguments[1]))
                return _render(driver, syntax.text(arguments[0]))
            case Platform.APPLITOOLS:
                label = self._applitools_name(node, arguments)
                return _render(driver, label or DEFAULT_NAMES[name])
            case Platform.SAUCE_LABS_VISUAL:
                if not arguments or arguments[0].type != "string_literal":
                    return None
                return _render(driver, syntax.text(arguments[0]))
            case _:
                assert_never(self.platform)

    def _applitools_name(
        self, call: tree_sitter.Node, arguments: list[tree_sitter.Node]
    ) -> str | None:
        name: str | None = None
        for argument in arguments:
            if argument.type == "string_literal":
                name = name or syntax.text(argument)
                continue
            for inner in syntax.walk(argument):
                if inner.type != "method_invocation":
                    continue
                _, method = _invocation(inner)
                inner_arguments = _arguments(inner)
                if method == "withName" and inner_arguments:
                    if inner_arguments[0].type == "string_literal":
                        name = syntax.text(inner_arguments[0])
                elif method == "layout":
                    self.warn(
                        "Layout match level has no per-snapshot equivalent.",
                        f"Line {line_of(call)}: configure comparison sensitivity in the "
                        "SmartUI project settings.",
                    )
        return name

    # 3. lifecycle -----------------------------------------------------------
    def remove_lifecycle(self) -> None:
        data, root = self._tree()
        edits: list[Edit] = []
        for node in syntax.walk(root):
            if _constructed_type(node) in CONSTRUCTORS[self.platform]:
                statement = _enclosing_statement(node)
            elif node.type == "method_invocation" and self.platform is Platform.APPLITOOLS:
                receiver, name = _invocation(node)
                if receiver is None or not _EYES.fullmatch(receiver):
                    continue
                if name not in _APPLITOOLS_LIFECYCLE:
                    continue
                statement = _enclosing_statement(node)
            else:
                continue
            if statement is not None:
                edits.append(remove_statement(data, statement))
        self.source = apply_edits(data, edits)

    # 4. preserve ------------------------------------------------------------
    def report_preserved(self) -> None:
        _, root = self._tree()
        count = 0
        for node in syntax.walk(root):
            if node.type != "method_invocation" or _invocation(node)[1] != "context":
                continue
            arguments = _arguments(node)
            if arguments and syntax.text(arguments[0]) == '"NATIVE_APP"':
                count += 1
        if count:
            self.warn(
                f"Found {count} native context switching call(s)",
                "Native app context switches were kept unchanged; SmartUI "
                "snapshots must be taken in the web context.",
            )


class JavaCodeTransformer:
    """Rewrite visual-testing SDK usage in Java tests to ``SmartUISnapshot``."""

    name = "java"
    suffixes = (".java",)

    def can_handle(self, file_path: str | PurePath) -> bool:
        return PurePath(file_path).suffix.lower() in self.suffixes

    def transform(
        self, source_text: str, file_path: str | PurePath, platform: Platform
    ) -> CodeTransformationResult:
        """Run the import, call-site, lifecycle and preserve passes.

        Parameters
        ----------
        source_text : str
            Java source.
        file_path : str | PurePath
            Path of the source file.
        platform : Platform
            Source platform.

        Returns
        -------
        CodeTransformationResult
            Rewritten source, warnings and the number of migrated snapshots.
            Recognized calls that cannot be converted are kept and reported.
        """
        if not self.can_handle(file_path):
            return CodeTransformationResult(
                source_text,
                (
                    TransformationWarning(
                        "Unsupported file type", f"{file_path} was left unchanged."
                    ),
                ),
            )
        if not source_text.strip():
            return CodeTransformationResult(source_text)
        try:
            error = syntax.first_error(syntax.parse(source_text, "java").root_node)
            if error is not None:
                line, column = error
                return CodeTransformationResult(
                    source_text,
                    (
                        TransformationWarning(
                            message="Failed to parse Java source code",
                            details=f"{file_path}: syntax error at line {line}, column {column}.",
                        ),
                    ),
                )
            run = _Run(source_text, platform)
            driver = run.driver_hint()
            run.rewrite_imports()
            run.rewrite_calls(driver)
            run.remove_lifecycle()
            run.report_preserved()
        except Exception as exc:
            logger.debug("Java rewrite of %s failed: %s", file_path, exc)
            return CodeTransformationResult(
                source_text,
                (
                    TransformationWarning(
                        message=f"Failed to transform Java source code: {exc}",
                        details=str(file_path),
                    ),
                ),
            )
        return CodeTransformationResult(run.source, tuple(run.warnings), run.snapshot_count)
