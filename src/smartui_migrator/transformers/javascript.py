"""JavaScript/TypeScript test-source rewriting over tree-sitter syntax trees.

Every pass parses the current text, collects byte-span edits and applies
them, so later passes always see the output of earlier ones.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator, Mapping
from pathlib import PurePath
from types import MappingProxyType

import tree_sitter

from smartui_migrator.models import CodeTransformationResult, TransformationWarning
from smartui_migrator.transformers import syntax
from smartui_migrator.transformers.edits import Edit, apply_edits, remove_statement, replace_node
from smartui_migrator.transformers.syntax import Dialect
from smartui_migrator.types import Platform

logger = logging.getLogger(__name__)

TARGET_FUNCTION = "smartuiSnapshot"

IMPORT_MAPPINGS: Mapping[Platform, Mapping[str, str]] = MappingProxyType(
    {
        Platform.PERCY: MappingProxyType(
            {
                "@percy/cypress": "@lambdatest/smartui-cypress",
                "@percy/playwright": "@lambdatest/smartui-playwright",
                "@percy/storybook": "@lambdatest/smartui-storybook",
                "@percy/selenium-webdriver": "@lambdatest/smartui-selenium",
                "@percy/puppeteer": "@lambdatest/smartui-puppeteer",
                "@percy/sdk-utils": "@lambdatest/smartui-cli",
            }
        ),
        Platform.APPLITOOLS: MappingProxyType(
            {
                "@applitools/eyes-cypress": "@lambdatest/smartui-cypress",
                "@applitools/eyes-playwright": "@lambdatest/smartui-playwright",
                "@applitools/eyes-selenium": "@lambdatest/smartui-selenium",
                "@applitools/eyes-puppeteer": "@lambdatest/smartui-puppeteer",
                "@applitools/eyes-webdriverio": "@lambdatest/smartui-webdriverio",
                "@applitools/eyes-storybook": "@lambdatest/smartui-storybook",
            }
        ),
        Platform.SAUCE_LABS_VISUAL: MappingProxyType(
            {
                "@saucelabs/cypress-visual-plugin": "@lambdatest/smartui-cypress",
                "@saucelabs/cypress-plugin": "@lambdatest/smartui-cypress",
                "@saucelabs/visual-playwright": "@lambdatest/smartui-playwright",
                "@saucelabs/playwright-plugin": "@lambdatest/smartui-playwright",
                "@saucelabs/webdriverio": "@lambdatest/smartui-selenium",
                "@saucelabs/visual": "@lambdatest/smartui-selenium",
            }
        ),
    }
)

IGNORE_KEYS: Mapping[Platform, frozenset[str]] = MappingProxyType(
    {
        Platform.PERCY: frozenset({"ignore_region_selectors", "ignoreRegionSelectors"}),
        Platform.APPLITOOLS: frozenset({"ignore"}),
        Platform.SAUCE_LABS_VISUAL: frozenset({"ignore", "ignoreElements", "ignoreRegions"}),
    }
)

_EYES = re.compile(r"(?:this\.)?\w*[eE]yes\w*")
_APPLITOOLS_CHECKS = frozenset({"check", "checkWindow", "checkRegion"})
_APPLITOOLS_LIFECYCLE = frozenset(
    {"open", "close", "closeAsync", "abort", "abortIfNotClosed", "abortAsync"}
)
_CYPRESS_LIFECYCLE = frozenset({"eyesOpen", "eyesClose"})
_APPLITOOLS_CONSTRUCTORS = frozenset({"Eyes", "VisualGridRunner", "ClassicRunner"})
_PERCY_METHODS = frozenset({"snapshot", "screenshot"})
_SAUCE_FUNCTIONS = frozenset({"sauceVisualCheck"})
_DECLARATIONS = frozenset({"lexical_declaration", "variable_declaration"})


def _unwrap_await(node: tree_sitter.Node | None) -> tree_sitter.Node | None:
    while node is not None and node.type in ("await_expression", "parenthesized_expression"):
        node = node.named_children[0] if node.named_children else None
    return node


def _arguments(call: tree_sitter.Node) -> list[tree_sitter.Node]:
    arguments = call.child_by_field_name("arguments")
    if arguments is None:
        return []
    return [child for child in arguments.named_children if child.type != "comment"]


def _callee(call: tree_sitter.Node) -> tuple[str | None, str | None, tree_sitter.Node | None]:
    """Return ``(object text, property/function name, property node)`` of a call."""
    function = call.child_by_field_name("function")
    if function is None:
        return None, None, None
    if function.type == "identifier":
        return None, syntax.text(function), function
    if function.type == "member_expression":
        target = function.child_by_field_name("object")
        prop = function.child_by_field_name("property")
        if target is None or prop is None:
            return None, None, None
        return syntax.text(target), syntax.text(prop), prop
    return None, None, None


def _is_string(node: tree_sitter.Node) -> bool:
    if node.type == "string":
        return True
    return node.type == "template_string" and not any(
        child.type == "template_substitution" for child in node.children
    )


def _key_name(key: tree_sitter.Node | None) -> str:
    if key is None:
        return ""
    if key.type == "string":
        return syntax.string_value(key)
    return syntax.text(key)


def _pairs(node: tree_sitter.Node) -> Iterator[tuple[str, tree_sitter.Node, tree_sitter.Node]]:
    for child in node.named_children:
        if child.type == "pair":
            value = child.child_by_field_name("value")
            if value is not None:
                yield _key_name(child.child_by_field_name("key")), value, child


def _render_object(parts: list[str]) -> str:
    return f"{{ {', '.join(parts)} }}" if parts else "{}"


class _Run:
    """State shared by the passes over one source file."""

    def __init__(self, source: str, dialect: Dialect, platform: Platform) -> None:
        self.source = source
        self.dialect = dialect
        self.platform = platform
        self.warnings: list[TransformationWarning] = []
        self.snapshot_count = 0
        self.quote = "'"
        self.driver = "driver"

    def warn(self, message: str, details: str = "") -> None:
        self.warnings.append(TransformationWarning(message=message, details=details))

    def _tree(self) -> tuple[bytes, tree_sitter.Node]:
        tree = syntax.parse(self.source, self.dialect)
        return self.source.encode("utf-8"), tree.root_node

    @staticmethod
    def _line(node: tree_sitter.Node) -> str:
        return f"Line {node.start_point[0] + 1}"

    # 1. imports -------------------------------------------------------------
    def rewrite_imports(self) -> None:
        data, root = self._tree()
        table = IMPORT_MAPPINGS[self.platform]
        edits: list[Edit] = []
        for node in syntax.walk(root):
            module_node: tree_sitter.Node | None = None
            if node.type == "import_statement":
                module_node = node.child_by_field_name("source")
            elif node.type == "call_expression" and _callee(node)[1] == "require":
                arguments = _arguments(node)
                module_node = arguments[0] if arguments and arguments[0].type == "string" else None
            if module_node is None:
                continue
            module = syntax.string_value(module_node)
            self.quote = syntax.text(module_node)[:1] or self.quote
            if "playwright" in module:
                self.driver = "page"
            target = self._mapped_module(module, table)
            if target is None:
                continue
            edits.append(replace_node(module_node, syntax.quote_like(module_node, target)))
            edits.extend(self._rebind(node))
        self.source = apply_edits(data, edits)

    @staticmethod
    def _mapped_module(module: str, table: Mapping[str, str]) -> str | None:
        if module in table:
            return table[module]
        for source, target in table.items():
            if module.startswith(f"{source}/"):
                return f"{target}{module[len(source):]}"
        return None

    def _rebind(self, node: tree_sitter.Node) -> list[Edit]:
        bindings: list[tree_sitter.Node] = []
        if node.type == "import_statement":
            clause = next((c for c in node.named_children if c.type == "import_clause"), None)
            if clause is not None:
                bindings = list(clause.named_children)
        elif node.parent is not None and node.parent.type == "variable_declarator":
            name = node.parent.child_by_field_name("name")
            bindings = [name] if name is not None else []
        edits: list[Edit] = []
        for binding in bindings:
            if binding.type in ("named_imports", "object_pattern"):
                if self.platform is not Platform.PERCY:
                    edits.append(replace_node(binding, f"{{ {TARGET_FUNCTION} }}"))
                    continue
                for item in syntax.walk(binding):
                    if item.type in ("identifier", "shorthand_property_identifier_pattern"):
                        if syntax.text(item) == "percySnapshot":
                            edits.append(replace_node(item, TARGET_FUNCTION))
            elif binding.type == "identifier" and syntax.text(binding) == "percySnapshot":
                edits.append(replace_node(binding, TARGET_FUNCTION))
        return edits

    # 2. call-sites ----------------------------------------------------------
    def rewrite_calls(self) -> None:
        data, root = self._tree()
        edits: list[Edit] = []
        for node in syntax.walk(root):
            if node.type != "call_expression":
                continue
            produced = self._call_edits(node)
            if produced:
                edits.extend(produced)
                self.snapshot_count += 1
        self.source = apply_edits(data, edits)

    def _call_edits(self, call: tree_sitter.Node) -> list[Edit]:
        receiver, name, name_node = _callee(call)
        if name is None or name_node is None:
            return []
        function = call.child_by_field_name("function")
        match self.platform:
            case Platform.PERCY:
                if name == "percySnapshot":
                    return [replace_node(name_node, TARGET_FUNCTION), *self._option_edits(call)]
                if receiver == "percy" and name in _PERCY_METHODS and function is not None:
                    return [replace_node(function, TARGET_FUNCTION), *self._option_edits(call)]
            case Platform.APPLITOOLS:
                is_eyes = receiver is not None and _EYES.fullmatch(receiver) is not None
                if is_eyes and name in _APPLITOOLS_CHECKS:
                    return [replace_node(call, self._applitools_call(call, name, cypress=False))]
                if receiver == "cy" and name == "eyesCheckWindow":
                    return [replace_node(call, self._applitools_call(call, name, cypress=True))]
            case Platform.SAUCE_LABS_VISUAL:
                if name in _SAUCE_FUNCTIONS or (receiver == "cy" and name == "screenerStep"):
                    return [replace_node(name_node, TARGET_FUNCTION), *self._option_edits(call)]
        return []

    def _option_edits(self, call: tree_sitter.Node) -> list[Edit]:
        edits: list[Edit] = []
        for argument in _arguments(call):
            if argument.type != "object":
                continue
            converted = self._convert_options(argument)
            if converted is not None:
                edits.append(replace_node(argument, converted))
        return edits

    def _convert_options(self, node: tree_sitter.Node) -> str | None:
        parts: list[str] = []
        changed = False
        ignore_keys = IGNORE_KEYS[self.platform]
        for child in node.named_children:
            if child.type == "comment":
                continue
            if child.type != "pair":
                parts.append(syntax.text(child))
                continue
            key = _key_name(child.child_by_field_name("key"))
            value = child.child_by_field_name("value")
            value_text = syntax.text(value) if value is not None else ""
            if key == "widths" and self.platform is Platform.PERCY:
                self.warn(
                    "Per-snapshot `widths` option was found and is not supported.",
                    f"{self._line(child)}: configure viewports in `.smartui.json` instead.",
                )
                changed = True
            elif key in ignore_keys:
                parts.append(f"ignoreDOM: {{ cssSelector: {value_text} }}")
                changed = True
            elif key == "scope" and self.platform is Platform.PERCY:
                parts.append(f"element: {{ cssSelector: {value_text} }}")
                changed = True
            else:
                parts.append(syntax.text(child))
        return _render_object(parts) if changed else None

    def _applitools_call(self, call: tree_sitter.Node, method: str, cypress: bool) -> str:
        name: str | None = None
        options: dict[str, str] = {}
        for argument in _arguments(call):
            if _is_string(argument):
                name = name or syntax.text(argument)
            elif argument.type == "object":
                name = self._applitools_settings(argument, options) or name
            else:
                name = self._applitools_target(argument, options) or name
        name = name or f"{self.quote}Full Page{self.quote}"
        rendered = _render_object([f"{key}: {value}" for key, value in options.items()])
        if cypress:
            arguments = [name, rendered] if options else [name]
            return f"cy.{TARGET_FUNCTION}({', '.join(arguments)})"
        arguments = [self.driver, name, rendered] if options else [self.driver, name]
        return f"{TARGET_FUNCTION}({', '.join(arguments)})"

    def _applitools_settings(self, node: tree_sitter.Node, options: dict[str, str]) -> str | None:
        name: str | None = None
        for key, value, pair in _pairs(node):
            value_text = syntax.text(value)
            if key in ("tag", "name"):
                name = value_text
            elif key in ("selector", "region") and _is_string(value):
                options["element"] = f"{{ cssSelector: {value_text} }}"
            elif key == "ignore":
                options["ignoreDOM"] = f"{{ cssSelector: {value_text} }}"
            elif key == "fully":
                self._fully_warning(pair)
            elif key == "matchLevel" and "layout" in value_text.lower():
                self._layout_warning(pair)
            elif key == "target":
                continue
            else:
                self.warn(
                    f"Applitools option `{key}` has no SmartUI equivalent and was dropped.",
                    self._line(pair),
                )
        return name

    def _applitools_target(self, node: tree_sitter.Node, options: dict[str, str]) -> str | None:
        name: str | None = None
        for inner in syntax.walk(node):
            if inner.type != "call_expression":
                continue
            _, method, _ = _callee(inner)
            arguments = _arguments(inner)
            match method:
                case "withName" | "name" if arguments and _is_string(arguments[0]):
                    name = syntax.text(arguments[0])
                case "region" if arguments:
                    options["element"] = f"{{ cssSelector: {syntax.text(arguments[0])} }}"
                case "ignore" | "ignoreRegions" if arguments:
                    selectors = ", ".join(syntax.text(argument) for argument in arguments)
                    options["ignoreDOM"] = f"{{ cssSelector: [{selectors}] }}"
                case "layout":
                    self._layout_warning(inner)
                case "fully":
                    self._fully_warning(inner)
                case _:
                    pass
        return name

    def _layout_warning(self, node: tree_sitter.Node) -> None:
        self.warn(
            "Layout match level has no per-snapshot equivalent.",
            f"{self._line(node)}: configure comparison sensitivity "
            "in the SmartUI project settings.",
        )

    def _fully_warning(self, node: tree_sitter.Node) -> None:
        self.warn(
            "`fully` was dropped; SmartUI captures full pages by default.",
            self._line(node),
        )

    # 3. lifecycle -----------------------------------------------------------
    def remove_lifecycle(self) -> None:
        if self.platform is not Platform.APPLITOOLS:
            return
        data, root = self._tree()
        edits: list[Edit] = []
        stack = [root]
        while stack:
            node = stack.pop()
            edit = self._lifecycle_edit(data, node)
            if edit is not None:
                edits.append(edit)
                continue
            stack.extend(reversed(node.children))
        self.source = apply_edits(data, edits)

    def _lifecycle_edit(self, data: bytes, node: tree_sitter.Node) -> Edit | None:
        if node.type == "expression_statement" and node.named_children:
            expression = _unwrap_await(node.named_children[0])
            if expression is None:
                return None
            if self._is_lifecycle_call(expression):
                return remove_statement(data, node)
            if expression.type == "assignment_expression":
                left = expression.child_by_field_name("left")
                right = _unwrap_await(expression.child_by_field_name("right"))
                if right is not None and self._is_constructor(right):
                    return remove_statement(data, node)
                if right is not None and left is not None and self._is_open_call(right):
                    return self._opened_driver(data, node, left, expression, right)
        if node.type in _DECLARATIONS:
            declarators = [c for c in node.named_children if c.type == "variable_declarator"]
            if len(declarators) == 1:
                value = _unwrap_await(declarators[0].child_by_field_name("value"))
                if value is not None and self._is_constructor(value):
                    return remove_statement(data, node)
                value_node = declarators[0].child_by_field_name("value")
                if value is not None and value_node is not None and self._is_open_call(value):
                    first = _arguments(value)
                    return replace_node(value_node, syntax.text(first[0])) if first else None
        return None

    def _opened_driver(
        self,
        data: bytes,
        statement: tree_sitter.Node,
        left: tree_sitter.Node,
        expression: tree_sitter.Node,
        call: tree_sitter.Node,
    ) -> Edit | None:
        arguments = _arguments(call)
        if not arguments or syntax.text(arguments[0]) == syntax.text(left):
            return remove_statement(data, statement)
        right = expression.child_by_field_name("right")
        return replace_node(right, syntax.text(arguments[0])) if right is not None else None

    @staticmethod
    def _is_lifecycle_call(node: tree_sitter.Node) -> bool:
        if node.type != "call_expression":
            return False
        receiver, name, _ = _callee(node)
        if receiver is None or name is None:
            return False
        if receiver == "cy":
            return name in _CYPRESS_LIFECYCLE
        return bool(_EYES.fullmatch(receiver)) and name in _APPLITOOLS_LIFECYCLE

    @staticmethod
    def _is_open_call(node: tree_sitter.Node) -> bool:
        if node.type != "call_expression":
            return False
        receiver, name, _ = _callee(node)
        return receiver is not None and bool(_EYES.fullmatch(receiver)) and name == "open"

    @staticmethod
    def _is_constructor(node: tree_sitter.Node) -> bool:
        if node.type != "new_expression":
            return False
        constructor = node.child_by_field_name("constructor")
        return constructor is not None and syntax.text(constructor) in _APPLITOOLS_CONSTRUCTORS

    # 4. preserve ------------------------------------------------------------
    def report_preserved(self) -> None:
        _, root = self._tree()
        count = 0
        for node in syntax.walk(root):
            if node.type != "call_expression" or _callee(node)[1] != "switchContext":
                continue
            arguments = _arguments(node)
            if arguments and _is_string(arguments[0]):
                context = syntax.string_value(arguments[0])
                if context.startswith(("NATIVE_APP", "WEBVIEW")):
                    count += 1
        if count:
            self.warn(
                f"Found {count} native context switching call(s)",
                "Context switches were kept unchanged; SmartUI snapshots must be "
                "taken in the web context.",
            )


class JavaScriptCodeTransformer:
    """Rewrite Percy, Applitools and Sauce Labs Visual usage in JS/TS tests."""

    name = "javascript"
    suffixes = tuple(sorted(syntax.SCRIPT_SUFFIXES))

    def can_handle(self, file_path: str | PurePath) -> bool:
        return PurePath(file_path).suffix.lower() in syntax.SCRIPT_SUFFIXES

    def transform(
        self, source_text: str, file_path: str | PurePath, platform: Platform
    ) -> CodeTransformationResult:
        """Run the import, call-site, lifecycle and preserve passes.

        Parameters
        ----------
        source_text : str
            JavaScript or TypeScript source.
        file_path : str | PurePath
            Path of the source file; its suffix selects the grammar.
        platform : Platform
            Source platform.

        Returns
        -------
        CodeTransformationResult
            Rewritten source. A syntax error returns the original text with a
            ``Failed to parse JavaScript`` warning.
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
        dialect = syntax.dialect_for(file_path)
        try:
            error = syntax.first_error(syntax.parse(source_text, dialect).root_node)
            if error is not None:
                line, column = error
                return CodeTransformationResult(
                    source_text,
                    (
                        TransformationWarning(
                            message="Failed to parse JavaScript",
                            details=f"{file_path}: syntax error at line {line}, column {column}.",
                        ),
                    ),
                )
            run = _Run(source_text, dialect, platform)
            run.rewrite_imports()
            run.rewrite_calls()
            run.remove_lifecycle()
            run.report_preserved()
        except Exception as exc:
            logger.debug("JavaScript rewrite of %s failed: %s", file_path, exc)
            return CodeTransformationResult(
                source_text,
                (
                    TransformationWarning(
                        message=f"Failed to parse JavaScript: {exc}",
                        details=str(file_path),
                    ),
                ),
            )
        return CodeTransformationResult(run.source, tuple(run.warnings), run.snapshot_count)
