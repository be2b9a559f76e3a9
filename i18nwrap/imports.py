"""Merge required imports and the client directive into a module header."""

from __future__ import annotations

import logging
from collections import OrderedDict
from typing import Dict, List, Optional

from tree_sitter import Node

from .configuration import Config
from .source import SourceModule
from .structures import USE_CLIENT_DIRECTIVE, ModuleRequirement
from .syntax import declared_names, import_local_names

logger = logging.getLogger(__name__)


def _string_value(node: Optional[Node]) -> Optional[str]:
    if node is None or node.type != "string":
        return None
    return node.text.decode("utf-8")[1:-1]


def leading_directives(root: Node) -> List[Node]:
    """Expression statements made of a single string at the top of the module."""

    directives: List[Node] = []
    for statement in root.named_children:
        if statement.type in {"comment", "hash_bang_line"}:
            continue
        if statement.type != "expression_statement":
            break
        expressions = [child for child in statement.named_children if child.type != "comment"]
        if len(expressions) != 1 or expressions[0].type != "string":
            break
        directives.append(statement)
    return directives


def has_directive(root: Node, directive: str) -> bool:
    for statement in leading_directives(root):
        value = next(child for child in statement.named_children if child.type == "string")
        if _string_value(value) == directive:
            return True
    return False


def _is_type_only(statement: Node) -> bool:
    return any(child.type == "type" for child in statement.children)


def value_imports(root: Node, source: str) -> List[Node]:
    """Top-level value import declarations from ``source``."""

    matches = []
    for statement in root.named_children:
        if statement.type != "import_statement" or _is_type_only(statement):
            continue
        if _string_value(statement.child_by_field_name("source")) == source:
            matches.append(statement)
    return matches


def _merge_target(statement: Node) -> Optional[Node]:
    """The import clause new named specifiers can be added to, if any."""

    clause = next((child for child in statement.children if child.type == "import_clause"), None)
    if clause is None:
        return None
    if any(child.type == "namespace_import" for child in clause.named_children):
        return None
    return clause


def _add_specifiers(module: SourceModule, clause: Node, names: List[str]) -> None:
    joined = ", ".join(names)
    named = next((child for child in clause.named_children if child.type == "named_imports"), None)
    if named is None:
        default = clause.named_children[0]
        module.insert(default.end_byte, f", {{ {joined} }}")
        return
    specifiers = [child for child in named.named_children if child.type == "import_specifier"]
    if specifiers:
        module.insert(specifiers[-1].end_byte, f", {joined}")
    else:
        module.replace(named.start_byte, named.end_byte, f"{{ {joined} }}")


def _header_offset(module: SourceModule) -> tuple[int, bool]:
    """Where a new import goes and whether it follows a directive on the same line."""

    root = module.root
    directives = leading_directives(root)
    if directives:
        return directives[-1].end_byte, True
    for statement in root.named_children:
        if statement.type in {"comment", "hash_bang_line"}:
            continue
        return module.line_start(statement.start_byte), False
    return _after_hash_bang(module), False


def _after_hash_bang(module: SourceModule) -> int:
    first = module.root.children[0] if module.root.children else None
    if first is not None and first.type == "hash_bang_line":
        newline = module.source.find(b"\n", first.end_byte)
        return len(module.source) if newline < 0 else newline + 1
    return 0


def ensure_imports(module: SourceModule, wanted: Dict[str, List[str]]) -> bool:
    """Make every ``{source: [names]}`` importable, merging into existing declarations."""

    changed = False
    root = module.root
    taken = set(declared_names(root.named_children))
    for source, names in wanted.items():
        candidates = value_imports(root, source)
        bound = {name for statement in candidates for name in import_local_names(statement)}
        missing = [name for name in names if name not in bound]
        for name in missing:
            if name in taken:
                logger.warning(
                    "%s already declares %s; not importing it from %s",
                    module.path or "<memory>",
                    name,
                    source,
                )
        missing = [name for name in missing if name not in taken]
        if not missing:
            continue

        target = next(
            (clause for clause in map(_merge_target, candidates) if clause is not None), None
        )
        if target is not None:
            _add_specifiers(module, target, missing)
        else:
            declaration = f'import {{ {", ".join(missing)} }} from "{source}";'
            offset, after_directive = _header_offset(module)
            if after_directive:
                module.insert(offset, f"\n{declaration}")
            else:
                module.insert(offset, f"{declaration}\n")
        logger.debug("Added %s import from %s", ", ".join(missing), source)
        changed = True
    return changed


def ensure_directive(module: SourceModule, directive: str = USE_CLIENT_DIRECTIVE) -> bool:
    if has_directive(module.root, directive):
        return False
    module.insert(_after_hash_bang(module), f'"{directive}";\n')
    return True


def reconcile(module: SourceModule, requirement: ModuleRequirement, config: Config) -> bool:
    """Apply ``requirement`` to the module header; returns True when it changed.

    The directive is registered before any import so that both can share the
    first offset of the file and still come out in the right order.
    """

    if requirement.empty:
        return False

    changed = False
    if requirement.needs_use_client_directive:
        changed = ensure_directive(module) or changed

    wanted: Dict[str, List[str]] = OrderedDict()
    if requirement.needs_hook_import:
        wanted.setdefault(config.translation_import_source, []).append(config.hook_name)
    if requirement.needs_server_import:
        wanted.setdefault(config.server_source, []).append(requirement.needs_server_import)
    if wanted:
        changed = ensure_imports(module, wanted) or changed
    return changed
