"""Queries over tree-sitter nodes shared by the rewrite passes."""

from __future__ import annotations

import re
from typing import Iterable, Iterator, Optional, Set

from tree_sitter import Node

COMPONENT_NAME = re.compile(r"^(?:[A-Z]|use[A-Z])")

FUNCTION_DECLARATIONS = frozenset({"function_declaration", "generator_function_declaration"})
FUNCTION_EXPRESSIONS = frozenset(
    {"arrow_function", "function_expression", "function", "generator_function"}
)
FUNCTION_NODES = FUNCTION_DECLARATIONS | FUNCTION_EXPRESSIONS | {"method_definition"}

# Nodes below which a call expression is not valid syntax.
TYPE_CONTEXTS = frozenset(
    {
        "type_annotation",
        "type_alias_declaration",
        "interface_declaration",
        "literal_type",
        "template_literal_type",
        "type_arguments",
        "type_parameters",
        "enum_declaration",
        "ambient_declaration",
        "index_signature",
    }
)

STATEMENT_CONTAINERS = frozenset(
    {"program", "statement_block", "class_body", "switch_case", "switch_default"}
)

DECLARATIONS = frozenset({"lexical_declaration", "variable_declaration"})


def same_node(left: Optional[Node], right: Optional[Node]) -> bool:
    if left is None or right is None:
        return False
    return (left.start_byte, left.end_byte, left.type) == (
        right.start_byte,
        right.end_byte,
        right.type,
    )


def is_field(node: Node, field_name: str) -> bool:
    """True when ``node`` is its parent's ``field_name`` child."""

    parent = node.parent
    if parent is None:
        return False
    return same_node(parent.child_by_field_name(field_name), node)


def ancestors(node: Node) -> Iterator[Node]:
    current = node.parent
    while current is not None:
        yield current
        current = current.parent


def is_statement(node: Node) -> bool:
    parent = node.parent
    return parent is None or parent.type in STATEMENT_CONTAINERS


def is_async(function: Node) -> bool:
    return any(child.type == "async" for child in function.children)


def function_body(function: Node) -> Optional[Node]:
    return function.child_by_field_name("body")


def _bound_name(function: Node) -> Optional[str]:
    """Name a function expression is assigned to, looking through wrapper calls."""

    current = function
    parent = current.parent
    while parent is not None:
        if parent.type == "parenthesized_expression":
            current, parent = parent, parent.parent
            continue
        if parent.type == "arguments" and parent.parent is not None:
            call = parent.parent
            if call.type != "call_expression":
                return None
            current, parent = call, call.parent
            continue
        if parent.type == "variable_declarator" and is_field(current, "value"):
            name = parent.child_by_field_name("name")
            if name is not None and name.type == "identifier":
                return name.text.decode("utf-8")
        return None
    return None


def component_name(node: Node) -> Optional[str]:
    """Return the component or hook name when ``node`` is such a scope."""

    if node.type in FUNCTION_DECLARATIONS:
        name = node.child_by_field_name("name")
        candidate = name.text.decode("utf-8") if name is not None else None
    elif node.type in FUNCTION_EXPRESSIONS:
        candidate = _bound_name(node)
        name = node.child_by_field_name("name")
        if candidate is None and name is not None:
            candidate = name.text.decode("utf-8")
    else:
        return None
    if candidate and COMPONENT_NAME.match(candidate):
        return candidate
    return None


def is_component_scope(node: Node) -> bool:
    return component_name(node) is not None


def pattern_names(node: Optional[Node]) -> Iterator[str]:
    """Identifiers bound by a parameter list or destructuring pattern."""

    if node is None:
        return
    kind = node.type
    if kind in {"identifier", "shorthand_property_identifier_pattern"}:
        yield node.text.decode("utf-8")
    elif kind == "pair_pattern":
        yield from pattern_names(node.child_by_field_name("value"))
    elif kind in {"assignment_pattern", "object_assignment_pattern"}:
        yield from pattern_names(node.child_by_field_name("left"))
    elif kind in {"required_parameter", "optional_parameter"}:
        yield from pattern_names(node.child_by_field_name("pattern"))
    elif kind in {"formal_parameters", "object_pattern", "array_pattern", "rest_pattern"}:
        for child in node.named_children:
            yield from pattern_names(child)


def declared_names(statements: Iterable[Node]) -> Iterator[str]:
    """Names introduced by a sequence of top-level statements."""

    for statement in statements:
        node = statement
        if node.type == "export_statement":
            declaration = node.child_by_field_name("declaration")
            if declaration is None:
                continue
            node = declaration
        if node.type in DECLARATIONS:
            for declarator in node.named_children:
                if declarator.type == "variable_declarator":
                    yield from pattern_names(declarator.child_by_field_name("name"))
        elif node.type in FUNCTION_DECLARATIONS or node.type in {
            "class_declaration",
            "abstract_class_declaration",
        }:
            name = node.child_by_field_name("name")
            if name is not None:
                yield name.text.decode("utf-8")
        elif node.type == "import_statement":
            yield from import_local_names(node)


def import_local_names(statement: Node) -> Iterator[str]:
    clause = next((child for child in statement.children if child.type == "import_clause"), None)
    if clause is None:
        return
    for child in clause.named_children:
        if child.type == "identifier":
            yield child.text.decode("utf-8")
        elif child.type == "namespace_import":
            for name in child.named_children:
                if name.type == "identifier":
                    yield name.text.decode("utf-8")
        elif child.type == "named_imports":
            for specifier in child.named_children:
                if specifier.type != "import_specifier":
                    continue
                local = specifier.child_by_field_name("alias") or specifier.child_by_field_name(
                    "name"
                )
                if local is not None:
                    yield local.text.decode("utf-8")


def _function_names(function: Node) -> Set[str]:
    names: Set[str] = set()
    parameters = function.child_by_field_name("parameters")
    if parameters is None:
        parameters = function.child_by_field_name("parameter")
    names.update(pattern_names(parameters))
    body = function_body(function)
    if body is not None and body.type == "statement_block":
        names.update(declared_names(body.named_children))
    return names


def binds_name(scope: Node, name: str) -> bool:
    """True when ``name`` is already declared for code running in ``scope``.

    Looks at the scope's parameters and top-level body declarations, the same
    for every enclosing function, and finally the module's declarations and
    imports.
    """

    if name in _function_names(scope):
        return True
    root = scope
    for ancestor in ancestors(scope):
        if ancestor.type in FUNCTION_NODES and name in _function_names(ancestor):
            return True
        root = ancestor
    return name in set(declared_names(root.named_children))
