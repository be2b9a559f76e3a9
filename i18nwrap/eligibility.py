"""Decide whether a literal-bearing node may be wrapped with ``t``."""

from __future__ import annotations

from typing import Optional

from tree_sitter import Node

from .configuration import Config
from .source import SourceModule
from .structures import WRAP, EligibilityVerdict, SkipReason, skip
from .syntax import ancestors, is_field, is_statement

IGNORE_MARKER = "i18n-ignore"
IGNORE_SPELLINGS = (
    IGNORE_MARKER,
    "// i18n-ignore",
    "/* i18n-ignore",
    "{/* i18n-ignore",
)
IGNORE_WINDOW_LINES = 2

_KEYED_PARENTS = {
    "pair": "key",
    "pair_pattern": "key",
    "public_field_definition": "name",
    "field_definition": "name",
    "method_definition": "name",
    "method_signature": "name",
    "abstract_method_signature": "name",
    "property_signature": "name",
}

_MODULE_LOADERS = {"require", "import"}


def assess(
    node: Node,
    module: SourceModule,
    config: Config,
    *,
    content: Optional[str] = None,
) -> EligibilityVerdict:
    """Return ``Wrap`` or the first matching ``Skip`` reason for ``node``.

    ``content`` is the text checked for target-language characters; it
    defaults to the node text without its delimiters. Template strings and
    markup text runs pass their literal chunks explicitly.
    """

    if is_property_key(node):
        return skip(SkipReason.OBJECT_PROPERTY_KEY)
    if is_module_source(node):
        return skip(SkipReason.IMPORT_OR_EXPORT_SOURCE)
    if has_ignore_marker(node, module):
        return skip(SkipReason.IGNORE_COMMENT)
    if is_translation_argument(node, config.translation_function):
        return skip(SkipReason.ALREADY_WRAPPED)

    if content is None:
        content = _literal_content(module.text(node), node.type)
    if not content.strip():
        return skip(SkipReason.EMPTY)
    if not config.target_pattern.search(content):
        return skip(SkipReason.NO_TARGET_LANGUAGE_CONTENT)
    return WRAP


def _literal_content(text: str, kind: str) -> str:
    if kind in {"string", "template_string"} and len(text) >= 2:
        return text[1:-1]
    return text


def is_property_key(node: Node) -> bool:
    parent = node.parent
    if parent is None:
        return False
    if parent.type == "computed_property_name":
        return True
    field_name = _KEYED_PARENTS.get(parent.type)
    return field_name is not None and is_field(node, field_name)


def is_module_source(node: Node) -> bool:
    parent = node.parent
    if parent is None:
        return False
    if parent.type in {"import_statement", "export_statement"}:
        return is_field(node, "source")
    if parent.type in {"import_require_clause", "external_module_reference"}:
        return True
    if parent.type == "arguments" and parent.parent is not None:
        callee = parent.parent.child_by_field_name("function")
        if callee is not None and callee.type in {"identifier", "import"}:
            return callee.text.decode("utf-8") in _MODULE_LOADERS
    return False


def is_translation_argument(node: Node, function_name: str) -> bool:
    parent = node.parent
    if parent is None or parent.type != "arguments":
        return False
    call = parent.parent
    if call is None or call.type != "call_expression":
        return False
    callee = call.child_by_field_name("function")
    return (
        callee is not None
        and callee.type == "identifier"
        and callee.text.decode("utf-8") == function_name
    )


def has_ignore_marker(node: Node, module: SourceModule) -> bool:
    return _has_leading_marker(node) or _line_window_has_marker(node, module)


def _comment_is_marker(comment: Node) -> bool:
    text = comment.text.decode("utf-8")
    if text.startswith("//"):
        body = text[2:]
    else:
        body = text[2:-2] if text.endswith("*/") else text[2:]
    return body.strip().lstrip("@").startswith(IGNORE_MARKER)


def _is_blank_markup(node: Node) -> bool:
    return node.type == "jsx_text" and not node.text.strip()


def _marker_container(node: Node) -> bool:
    """``{/* i18n-ignore */}`` placed before a markup child."""

    if node.type != "jsx_expression":
        return False
    comments = node.named_children
    return bool(comments) and all(child.type == "comment" for child in comments) and any(
        _comment_is_marker(child) for child in comments
    )


def _preceded_by_marker(node: Node) -> bool:
    sibling = node.prev_sibling
    while sibling is not None:
        if sibling.type == "comment":
            if _comment_is_marker(sibling):
                return True
        elif _marker_container(sibling):
            return True
        elif not _is_blank_markup(sibling):
            return False
        sibling = sibling.prev_sibling
    return False


def _has_leading_marker(node: Node) -> bool:
    """Check comments attached before the node and its ancestors up to the statement."""

    current = node
    if _preceded_by_marker(current):
        return True
    if is_statement(current):
        return False
    for ancestor in ancestors(node):
        if _preceded_by_marker(ancestor):
            return True
        if is_statement(ancestor):
            return False
    return False


def _line_window_has_marker(node: Node, module: SourceModule) -> bool:
    """Approximate scan: the node's whole first line plus the two lines above."""

    window_start = module.line_start(node.start_byte)
    for _ in range(IGNORE_WINDOW_LINES):
        if window_start == 0:
            break
        window_start = module.line_start(window_start - 1)
    window_end = module.source.find(b"\n", node.start_byte)
    if window_end < 0:
        window_end = len(module.source)
    window = module.slice(window_start, window_end)
    return any(spelling in window for spelling in IGNORE_SPELLINGS)
