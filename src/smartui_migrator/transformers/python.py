"""Python and Robot Framework test-source rewriting.

Python sources are parsed with tree-sitter; every pass collects byte-span
edits against the current tree, so comments and string literals never look
like calls. Robot suites are plain keyword tables and are rewritten by line.
"""

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
    indentation,
    line_of,
    remove_statement,
    replace_node,
)
from smartui_migrator.types import Platform

logger = logging.getLogger(__name__)

TARGET_IMPORT = "from lambdatest_selenium_driver import smartui_snapshot"
TARGET_CALL = "smartui_snapshot"

IMPORT_ROOTS: Mapping[Platform, tuple[str, ...]] = MappingProxyType(
    {
        Platform.PERCY: ("percy", "percy_appium"),
        Platform.APPLITOOLS: ("applitools",),
        Platform.SAUCE_LABS_VISUAL: ("saucelabs_visual",),
    }
)

# Percy keyword arguments that survive as SmartUI snapshot options.
PERCY_OPTIONS: Mapping[str, str] = MappingProxyType(
    {
        "device_name": "deviceName",
        "orientation": "orientation",
        "full_screen": "fullPage",
        "ignore_region_appium_elements": "ignoreElements",
        "ignore_region_selectors": "ignoreDOM",
        "scope": "element",
    }
)

CONSTRUCTORS: Mapping[Platform, frozenset[str]] = MappingProxyType(
    {
        Platform.PERCY: frozenset({"Percy", "AppPercy"}),
        Platform.APPLITOOLS: frozenset({"Eyes", "VisualGridRunner", "ClassicRunner"}),
        Platform.SAUCE_LABS_VISUAL: frozenset({"SauceLabsVisual"}),
    }
)

_EYES = re.compile(r"(?:self\.)?\w*[eE]yes\w*")
_DOTTED = frozenset({"identifier", "attribute"})
_PERCY_FUNCTIONS = frozenset({"percy_snapshot", "percy_screenshot"})
_PERCY_METHODS = frozenset({"percy_screenshot", "snapshot"})
_APPLITOOLS_CHECKS: Mapping[str, str] = MappingProxyType(
    {"check": '"Full Page"', "check_window": '"Full Page"', "check_region": '"Region"'}
)
_APPLITOOLS_LIFECYCLE = frozenset(
    {"open", "close_async", "close", "abort_if_not_closed", "abort_async", "abort"}
)
_SAUCE_CHECKS = frozenset({"sauce_visual_check", "create_snapshot_from_webdriver"})
_SAUCE_LIFECYCLE = frozenset({"create_build", "finish_build"})


def _module_matches(module: str, roots: tuple[str, ...]) -> bool:
    return any(module == root or module.startswith(f"{root}.") for root in roots)


def _same(node: tree_sitter.Node | None, other: tree_sitter.Node) -> bool:
    return (
        node is not None
        and node.start_byte == other.start_byte
        and node.end_byte == other.end_byte
    )


def _callee(call: tree_sitter.Node) -> tuple[str | None, str | None]:
    """Return ``(receiver text, function or method name)`` of a ``call`` node."""
    function = call.child_by_field_name("function")
    if function is None:
        return None, None
    if function.type == "identifier":
        return None, syntax.text(function)
    if function.type == "attribute":
        target = function.child_by_field_name("object")
        attribute = function.child_by_field_name("attribute")
        if target is None or attribute is None or target.type not in _DOTTED:
            return None, None
        return syntax.text(target), syntax.text(attribute)
    return None, None


def _method(call: tree_sitter.Node) -> str | None:
    """Return the attribute name of a method call whatever its receiver."""
    function = call.child_by_field_name("function")
    if function is None or function.type != "attribute":
        return None
    attribute = function.child_by_field_name("attribute")
    return syntax.text(attribute) if attribute is not None else None


def _arguments(call: tree_sitter.Node) -> list[tree_sitter.Node]:
    arguments = call.child_by_field_name("arguments")
    if arguments is None or arguments.type != "argument_list":
        return []
    return [child for child in arguments.named_children if child.type != "comment"]


def _positional(arguments: list[tree_sitter.Node]) -> list[tree_sitter.Node]:
    return [
        argument
        for argument in arguments
        if argument.type not in ("keyword_argument", "list_splat", "dictionary_splat")
    ]


def _keywords(arguments: list[tree_sitter.Node]) -> list[tuple[str, str]]:
    pairs: list[tuple[str, str]] = []
    for argument in arguments:
        if argument.type != "keyword_argument":
            continue
        name = argument.child_by_field_name("name")
        value = argument.child_by_field_name("value")
        if name is not None and value is not None:
            pairs.append((syntax.text(name), syntax.text(value)))
    return pairs


def _first_driver(arguments: list[tree_sitter.Node]) -> str | None:
    for key, value in _keywords(arguments):
        if key == "driver":
            return value
    positional = _positional(arguments)
    return syntax.text(positional[0]) if positional else None


def _is_string(node: tree_sitter.Node) -> bool:
    return node.type in ("string", "concatenated_string")


def _string_content(node: tree_sitter.Node) -> str:
    return "".join(
        syntax.text(child) for child in node.named_children if child.type == "string_content"
    )


def _render_options(options: Mapping[str, str]) -> str:
    body = ", ".join(f'"{key}": {value}' for key, value in options.items())
    return f"options={{{body}}}"


def _render_call(driver: str, name: str, options: Mapping[str, str]) -> str:
    if options:
        return f"{TARGET_CALL}({driver}, {name}, {_render_options(options)})"
    return f"{TARGET_CALL}({driver}, {name})"


class _Pass:
    """Mutable state of one transformation run."""

    def __init__(self, source: str, platform: Platform) -> None:
        self.source = source
        self.platform = platform
        self.snapshot_count = 0
        self.warnings: list[TransformationWarning] = []
        self.removed_names: dict[str, str] = {}

    def warn(self, message: str, details: str = "") -> None:
        self.warnings.append(TransformationWarning(message=message, details=details))

    def _tree(self) -> tuple[bytes, tree_sitter.Node]:
        tree = syntax.parse(self.source, "python")
        return self.source.encode("utf-8"), tree.root_node

    # 1. imports -------------------------------------------------------------
    def rewrite_imports(self) -> None:
        data, root = self._tree()
        roots = IMPORT_ROOTS[self.platform]
        edits: list[Edit] = []
        for node in syntax.walk(root):
            if node.type == "import_from_statement":
                module_node = node.child_by_field_name("module_name")
                module = syntax.text(module_node) if module_node is not None else ""
                if not _module_matches(module, roots):
                    continue
                for name in node.children_by_field_name("name"):
                    alias = name.child_by_field_name("alias")
                    bound = alias if alias is not None else name
                    self.removed_names[syntax.text(bound)] = module
                edits.append(replace_node(node, TARGET_IMPORT))
            elif node.type == "import_statement":
                edit = self._plain_import(data, node, roots)
                if edit is not None:
                    edits.append(edit)
        if edits:
            self.source = dedupe_lines(apply_edits(data, edits), [TARGET_IMPORT])

    def _plain_import(
        self, data: bytes, node: tree_sitter.Node, roots: tuple[str, ...]
    ) -> Edit | None:
        kept: list[str] = []
        replaced = False
        for entry in node.children_by_field_name("name"):
            aliased = entry.type == "aliased_import"
            module_node = entry.child_by_field_name("name") if aliased else entry
            alias = entry.child_by_field_name("alias") if aliased else None
            module = syntax.text(module_node) if module_node is not None else ""
            if _module_matches(module, roots):
                replaced = True
                bound = syntax.text(alias) if alias is not None else module.split(".")[0]
                self.removed_names[bound] = module
            else:
                kept.append(syntax.text(entry))
        if not replaced:
            return None
        lines = [TARGET_IMPORT]
        if kept:
            lines.append(f"{indentation(data, node)}import {', '.join(kept)}")
        return replace_node(node, "\n".join(lines))

    # 2. call-sites ----------------------------------------------------------
    def rewrite_calls(self) -> None:
        data, root = self._tree()
        driver = self._opened_driver(root)
        edits: list[Edit] = []
        covered = 0
        for node in syntax.walk(root):
            if node.type != "call" or node.start_byte < covered:
                continue
            replacement = self._snapshot_call(node, driver)
            if replacement is None:
                continue
            edits.append(replace_node(node, replacement))
            covered = node.end_byte
            self.snapshot_count += 1
        self.source = apply_edits(data, edits)

    def _opened_driver(self, root: tree_sitter.Node) -> str:
        if self.platform is not Platform.APPLITOOLS:
            return "driver"
        for node in syntax.walk(root):
            if node.type != "call":
                continue
            receiver, name = _callee(node)
            if receiver is not None and _EYES.fullmatch(receiver) and name == "open":
                return _first_driver(_arguments(node)) or "driver"
        return "driver"

    def _snapshot_call(self, call: tree_sitter.Node, driver: str) -> str | None:
        receiver, name = _callee(call)
        if name is None:
            return None
        match self.platform:
            case Platform.PERCY:
                if receiver is None and name in _PERCY_FUNCTIONS:
                    return self._percy_function(call)
                if receiver is not None and name in _PERCY_METHODS:
                    return self._percy_method(call, receiver)
            case Platform.APPLITOOLS:
                if receiver is not None and _EYES.fullmatch(receiver):
                    if name in _APPLITOOLS_CHECKS:
                        return self._applitools_check(call, name, driver)
            case Platform.SAUCE_LABS_VISUAL:
                if receiver is not None and name in _SAUCE_CHECKS:
                    return self._sauce_check(call)
            case _:
                assert_never(self.platform)
        return None

    def _percy_options(self, call: tree_sitter.Node) -> dict[str, str]:
        options: dict[str, str] = {}
        for key, value in _keywords(_arguments(call)):
            if key in PERCY_OPTIONS:
                options[PERCY_OPTIONS[key]] = value
            elif key == "widths":
                self.warn(
                    "Per-snapshot `widths` option was found and is not supported.",
                    f"Line {line_of(call)}: configure viewports in `.smartui.json` instead.",
                )
            else:
                self.warn(
                    f"Percy option `{key}` has no SmartUI equivalent and was dropped.",
                    f"Line {line_of(call)}.",
                )
        return options

    def _percy_function(self, call: tree_sitter.Node) -> str | None:
        positional = _positional(_arguments(call))
        if len(positional) < 2:
            return None
        driver, name = syntax.text(positional[0]), syntax.text(positional[1])
        return _render_call(driver, name, self._percy_options(call))

    def _percy_method(self, call: tree_sitter.Node, receiver: str) -> str | None:
        positional = _positional(_arguments(call))
        if not positional or not _is_string(positional[0]):
            return None
        driver = "driver" if receiver == "percy" else receiver
        return _render_call(driver, syntax.text(positional[0]), self._percy_options(call))

    def _applitools_check(self, call: tree_sitter.Node, method: str, driver: str) -> str:
        name: str | None = None
        element: str | None = None
        default = _APPLITOOLS_CHECKS[method]
        arguments = _arguments(call)
        for key, value in _keywords(arguments):
            if key in ("tag", "name"):
                name = value
        for argument in _positional(arguments):
            if _is_string(argument):
                name = name or syntax.text(argument)
            elif syntax.text(argument).startswith("Target."):
                target_name, region = self._fluent_target(argument, call)
                name = target_name or name
                if region is not None:
                    element, default = region, '"Region"'
            elif method == "check_region" and element is None:
                element = syntax.text(argument)
        options = {"element": element} if element else {}
        return _render_call(driver, name or default, options)

    def _fluent_target(
        self, target: tree_sitter.Node, call: tree_sitter.Node
    ) -> tuple[str | None, str | None]:
        """Read the name and region of a ``Target.*`` fluent chain."""
        name: str | None = None
        region: str | None = None
        for node in syntax.walk(target):
            if node.type != "call":
                continue
            receiver, _ = _callee(node)
            method = _method(node)
            positional = _positional(_arguments(node))
            if method in ("with_name", "withName") and positional and _is_string(positional[0]):
                name = syntax.text(positional[0])
            elif receiver == "Target" and method == "region" and positional:
                region = syntax.text(positional[0])
            elif method == "layout":
                self.warn(
                    "Layout match level has no per-snapshot equivalent.",
                    f"Line {line_of(call)}: configure comparison sensitivity in the "
                    "SmartUI project settings.",
                )
        return name, region

    def _sauce_check(self, call: tree_sitter.Node) -> str | None:
        arguments = _arguments(call)
        positional = _positional(arguments)
        name = syntax.text(positional[0]) if positional else None
        driver = "driver"
        for key, value in _keywords(arguments):
            if key == "driver":
                driver = value
            elif key == "name" and name is None:
                name = value
        if name is None:
            return None
        return _render_call(driver, name, {})

    # 3. lifecycle -----------------------------------------------------------
    def remove_lifecycle(self) -> None:
        data, root = self._tree()
        edits: list[Edit] = []
        for node in syntax.walk(root):
            if node.type != "call":
                continue
            receiver, name = _callee(node)
            if receiver is None and name in CONSTRUCTORS[self.platform]:
                edit = self._lifecycle_edit(data, node, constructor=True)
            elif receiver is not None and self._is_lifecycle(receiver, name):
                edit = self._lifecycle_edit(data, node, constructor=False)
            else:
                continue
            if edit is not None:
                edits.append(edit)
        self.source = apply_edits(data, edits)

    def _is_lifecycle(self, receiver: str, name: str | None) -> bool:
        match self.platform:
            case Platform.APPLITOOLS:
                return bool(_EYES.fullmatch(receiver)) and name in _APPLITOOLS_LIFECYCLE
            case Platform.SAUCE_LABS_VISUAL:
                return name in _SAUCE_LIFECYCLE
            case _:
                return False

    def _lifecycle_edit(
        self, data: bytes, call: tree_sitter.Node, constructor: bool
    ) -> Edit | None:
        expression = call
        if call.parent is not None and call.parent.type == "await":
            expression = call.parent
        parent = expression.parent
        if parent is None:
            return None
        if parent.type == "expression_statement":
            return None if constructor else remove_statement(data, parent)
        statement = parent.parent
        is_assignment = (
            parent.type == "assignment"
            and _same(parent.child_by_field_name("right"), expression)
            and statement is not None
            and statement.type == "expression_statement"
        )
        if not is_assignment:
            return None if constructor else replace_node(expression, "None")
        if constructor:
            return remove_statement(data, statement)
        left = parent.child_by_field_name("left")
        _, name = _callee(call)
        first = _first_driver(_arguments(call))
        if name == "open" and first is not None:
            if left is not None and syntax.text(left) == first:
                return remove_statement(data, statement)
            return replace_node(expression, first)
        return replace_node(expression, "None")

    # 4. preserve ------------------------------------------------------------
    def report_preserved(self) -> None:
        _, root = self._tree()
        count = 0
        for node in syntax.walk(root):
            if node.type != "call":
                continue
            receiver, name = _callee(node)
            if name != "context" or receiver is None or not receiver.endswith(".switch_to"):
                continue
            positional = _positional(_arguments(node))
            if positional and _is_string(positional[0]):
                if _string_content(positional[0]) == "NATIVE_APP":
                    count += 1
        if count:
            self.warn(
                f"Found {count} native context switching call(s)",
                "Native app context switches were kept unchanged; SmartUI snapshots "
                "must be taken in the web context.",
            )

    def report_dangling(self) -> None:
        if not self.removed_names:
            return
        _, root = self._tree()
        referenced: set[str] = set()
        for node in syntax.walk(root):
            if node.type == "identifier" and _is_reference(node):
                referenced.add(syntax.text(node))
        for name, module in self.removed_names.items():
            if name in referenced:
                self.warn(
                    f"`{name}` imported from `{module}` is still referenced",
                    "Its import was replaced; rewrite the remaining usages manually.",
                )


def _is_reference(node: tree_sitter.Node) -> bool:
    parent = node.parent
    if parent is None:
        return True
    if parent.type in ("dotted_name", "aliased_import"):
        return False
    if parent.type == "attribute":
        return not _same(parent.child_by_field_name("attribute"), node)
    if parent.type == "keyword_argument":
        return not _same(parent.child_by_field_name("name"), node)
    return True


class PythonCodeTransformer:
    """Rewrite Percy, Applitools and Sauce Labs Visual calls in Python tests."""

    name = "python"
    suffixes = (".py",)

    def can_handle(self, file_path: str | PurePath) -> bool:
        return PurePath(file_path).suffix.lower() in self.suffixes

    def transform(
        self, source_text: str, file_path: str | PurePath, platform: Platform
    ) -> CodeTransformationResult:
        """Run the import, call-site, lifecycle and preserve passes.

        Parameters
        ----------
        source_text : str
            Python source.
        file_path : str | PurePath
            Path of the source file.
        platform : Platform
            Source platform.

        Returns
        -------
        CodeTransformationResult
            Rewritten source with the number of migrated snapshot calls. A
            syntax error returns the original text with a warning.
        """
        if not self.can_handle(file_path):
            return _unsupported(source_text, file_path)
        if not source_text.strip():
            return CodeTransformationResult(source_text)
        try:
            error = syntax.first_error(syntax.parse(source_text, "python").root_node)
            if error is not None:
                line, column = error
                return CodeTransformationResult(
                    source_text,
                    (
                        TransformationWarning(
                            message="Failed to parse Python source code",
                            details=f"{file_path}: syntax error at line {line}, column {column}.",
                        ),
                    ),
                )
            state = _Pass(source_text, platform)
            state.rewrite_imports()
            state.rewrite_calls()
            state.remove_lifecycle()
            state.report_preserved()
            state.report_dangling()
        except Exception as exc:
            logger.debug("Python rewrite of %s failed: %s", file_path, exc)
            return CodeTransformationResult(
                source_text,
                (
                    TransformationWarning(
                        message=f"Failed to transform Python source code: {exc}",
                        details=str(file_path),
                    ),
                ),
            )
        return CodeTransformationResult(state.source, tuple(state.warnings), state.snapshot_count)


_VISUAL_SNAPSHOT = re.compile(r"(?m)(^|[ \t]{2,}|\t)Visual Snapshot\b")
_VISUAL_BUILD = re.compile(r"(?m)^[^\n]*\b(?:Create|Finish) Visual Build\b[^\n]*(?:\n|\Z)")
_SAUCE_LIBRARY = re.compile(r"(?m)^(Library(?:[ \t]{2,}|\t+))SauceLabsVisual\b")


class RobotCodeTransformer:
    """Line-oriented keyword substitution for Robot Framework suites."""

    name = "robot"
    suffixes = (".robot",)

    def can_handle(self, file_path: str | PurePath) -> bool:
        return PurePath(file_path).suffix.lower() in self.suffixes

    def transform(
        self, source_text: str, file_path: str | PurePath, platform: Platform
    ) -> CodeTransformationResult:
        if not self.can_handle(file_path):
            return _unsupported(source_text, file_path)
        if platform is not Platform.SAUCE_LABS_VISUAL:
            return CodeTransformationResult(
                source_text,
                (
                    TransformationWarning(
                        message=(
                            "Robot Framework transformation not yet implemented "
                            f"for {platform}"
                        ),
                        details=str(file_path),
                    ),
                ),
            )
        content, count = _VISUAL_SNAPSHOT.subn(r"\1SmartUI Snapshot", source_text)
        content = _VISUAL_BUILD.sub("", content)
        content = _SAUCE_LIBRARY.sub(r"\1SmartUI", content)
        return CodeTransformationResult(content, (), count)


def _unsupported(source_text: str, file_path: str | PurePath) -> CodeTransformationResult:
    return CodeTransformationResult(
        source_text,
        (
            TransformationWarning(
                message="Unsupported file type",
                details=f"{file_path} was left unchanged.",
            ),
        ),
    )
