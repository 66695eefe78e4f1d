"""Restricted literal evaluator for JavaScript/TypeScript configuration files.

Only string, number, boolean, null, array and object literals are evaluated.
Identifiers other than ``true``/``false``/``null`` become their own name as a
string. Every other expression form is omitted from the result, so nothing in
the configuration file is ever executed.
"""

from __future__ import annotations

import tree_sitter

from smartui_migrator.errors import ConfigParseError
from smartui_migrator.transformers import syntax
from smartui_migrator.transformers.syntax import Dialect
from smartui_migrator.types import JsonObject, JsonValue

_SKIPPED = frozenset({"comment", "spread_element", "method_definition"})
_WRAPPERS = frozenset(
    {"as_expression", "satisfies_expression", "parenthesized_expression"}
)
_DECLARATIONS = frozenset({"lexical_declaration", "variable_declaration"})


class _Omitted:
    def __repr__(self) -> str:
        return "<omitted>"


OMITTED = _Omitted()


def evaluate(node: tree_sitter.Node) -> JsonValue | _Omitted:
    """Evaluate one expression node over the closed literal grammar."""
    match node.type:
        case "string":
            return syntax.string_value(node)
        case "template_string":
            if any(child.type == "template_substitution" for child in node.children):
                return OMITTED
            return syntax.string_value(node)
        case "number":
            return _number(syntax.text(node))
        case "true":
            return True
        case "false":
            return False
        case "null":
            return None
        case "identifier" | "undefined":
            return syntax.text(node)
        case "array":
            items: list[JsonValue] = []
            for child in node.named_children:
                if child.type in _SKIPPED:
                    continue
                value = evaluate(child)
                if value is not OMITTED:
                    items.append(value)
            return items
        case "object":
            return _object(node)
        case _:
            return OMITTED


def _number(raw: str) -> JsonValue | _Omitted:
    try:
        return int(raw, 0)
    except ValueError:
        pass
    try:
        return float(raw.replace("_", ""))
    except ValueError:
        return OMITTED


def _property_key(node: tree_sitter.Node) -> str | None:
    match node.type:
        case "property_identifier" | "identifier":
            return syntax.text(node)
        case "string":
            return syntax.string_value(node)
        case "number":
            return syntax.text(node)
        case _:
            return None


def _object(node: tree_sitter.Node) -> JsonObject:
    result: JsonObject = {}
    for child in node.named_children:
        if child.type == "shorthand_property_identifier":
            name = syntax.text(child)
            result[name] = name
            continue
        if child.type != "pair":
            continue
        key_node = child.child_by_field_name("key")
        value_node = child.child_by_field_name("value")
        if key_node is None or value_node is None:
            continue
        key = _property_key(key_node)
        if key is None:
            continue
        value = evaluate(value_node)
        if value is not OMITTED:
            result[key] = value
    return result


def _unwrap(node: tree_sitter.Node | None) -> tree_sitter.Node | None:
    while node is not None and node.type in _WRAPPERS:
        node = node.named_children[0] if node.named_children else None
    return node


def _top_level_bindings(root: tree_sitter.Node) -> dict[str, tree_sitter.Node]:
    bindings: dict[str, tree_sitter.Node] = {}
    for statement in root.named_children:
        if statement.type == "export_statement":
            declaration = statement.child_by_field_name("declaration")
            statement = declaration if declaration is not None else statement
        if statement.type not in _DECLARATIONS:
            continue
        for declarator in statement.named_children:
            if declarator.type != "variable_declarator":
                continue
            name = declarator.child_by_field_name("name")
            value = declarator.child_by_field_name("value")
            if name is not None and value is not None and name.type == "identifier":
                bindings[syntax.text(name)] = value
    return bindings


def _resolve_export(
    node: tree_sitter.Node | None, bindings: dict[str, tree_sitter.Node]
) -> tree_sitter.Node | None:
    node = _unwrap(node)
    if node is not None and node.type == "identifier":
        node = _unwrap(bindings.get(syntax.text(node)))
    # ``defineConfig({...})`` style helpers: take the object argument as-is.
    if node is not None and node.type == "call_expression":
        arguments = node.child_by_field_name("arguments")
        candidates = [
            child for child in (arguments.named_children if arguments else [])
            if child.type != "comment"
        ]
        node = _unwrap(candidates[0]) if len(candidates) == 1 else None
        if node is not None and node.type == "identifier":
            node = _unwrap(bindings.get(syntax.text(node)))
    if node is not None and node.type == "object":
        return node
    return None


def find_config_object(root: tree_sitter.Node) -> tree_sitter.Node | None:
    """Locate the exported configuration object.

    Recognizes ``module.exports = ...`` and ``export default ...`` where the
    exported value is an object literal, a top-level binding to one, or a
    single-argument wrapper call around one. The last export in document
    order wins.
    """
    bindings = _top_level_bindings(root)
    found: tree_sitter.Node | None = None
    for node in syntax.walk(root):
        candidate: tree_sitter.Node | None = None
        if node.type == "assignment_expression":
            left = node.child_by_field_name("left")
            if left is not None and syntax.text(left).replace(" ", "") == "module.exports":
                candidate = node.child_by_field_name("right")
        elif node.type == "export_statement":
            candidate = node.child_by_field_name("value")
        resolved = _resolve_export(candidate, bindings) if candidate else None
        if resolved is not None:
            found = resolved
    return found


def evaluate_config_object(source: str, dialect: Dialect = "javascript") -> JsonObject:
    """Parse a JS/TS configuration file and return its exported object.

    Parameters
    ----------
    source : str
        Configuration file contents.
    dialect : {"javascript", "typescript", "tsx"}, default="javascript"
        Grammar used for parsing.

    Returns
    -------
    dict[str, JsonValue]
        Literal view of the exported configuration object.

    Raises
    ------
    ConfigParseError
        If the file has a syntax error or exports no object literal.
    """
    tree = syntax.parse(source, dialect)
    error_at = syntax.first_error(tree.root_node)
    if error_at is not None:
        line, column = error_at
        raise ConfigParseError(f"Syntax error at line {line}, column {column}")
    node = find_config_object(tree.root_node)
    if node is None:
        raise ConfigParseError(
            "No `module.exports = {...}` or `export default {...}` object found"
        )
    return _object(node)
