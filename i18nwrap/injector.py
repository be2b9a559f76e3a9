"""Insert the ``t`` binding into component scopes that need one."""

from __future__ import annotations

import logging

from tree_sitter import Node

from .configuration import Config
from .errors import GenerationError
from .source import SourceModule
from .structures import (
    ClientStrategy,
    Framework,
    InjectionResult,
    ModuleRequirement,
    RewriteResult,
    ServerStrategy,
    Strategy,
)
from .syntax import function_body, is_async

logger = logging.getLogger(__name__)

INDENT_UNIT = "  "


def binding_statement(strategy: Strategy, function_name: str = "t") -> str:
    if isinstance(strategy, ServerStrategy):
        return f"const {{ {function_name} }} = await {strategy.function_name}();"
    return f"const {{ {function_name} }} = {strategy.hook_name}();"


def body_indent(module: SourceModule, scope: Node, body: Node) -> str:
    """Indentation for a statement placed first in ``body``."""

    for statement in body.named_children:
        if statement.start_point[0] != body.start_point[0]:
            return module.line_indent(statement.start_byte)
        break
    return module.line_indent(scope.start_byte) + INDENT_UNIT


def convert_concise_body(module: SourceModule, scope: Node, statement: str) -> None:
    """Turn ``() => expr`` into a block running ``statement`` then returning ``expr``.

    The expression is kept exactly once, with any edits already made inside it.
    """

    body = function_body(scope)
    if body is None or body.type == "statement_block":
        raise GenerationError("convert_concise_body needs an arrow function with an expression body")

    outer = module.line_indent(scope.start_byte)
    inner = outer + INDENT_UNIT
    expression = module.render_node(body)
    replacement = f"{{\n{inner}{statement}\n{inner}return {expression};\n{outer}}}"
    module.replace(body.start_byte, body.end_byte, replacement)


def mark_async(module: SourceModule, scope: Node) -> bool:
    """Prefix the function with ``async``; returns False when it already is."""

    if is_async(scope):
        return False
    # Replaces the first token so a header import inserted at the same offset
    # still comes first.
    first = scope.children[0]
    module.replace(first.start_byte, first.end_byte, "async " + module.render_node(first))
    return True


def inject_binding(module: SourceModule, scope: Node, strategy: Strategy) -> None:
    statement = binding_statement(strategy)
    if isinstance(strategy, ServerStrategy):
        mark_async(module, scope)

    body = function_body(scope)
    if body is None:
        raise GenerationError("Component scope has no body")
    if body.type != "statement_block":
        convert_concise_body(module, scope, statement)
        return
    indent = body_indent(module, scope, body)
    start = body.start_byte + 1
    first = body.named_children[0] if body.named_children else None
    if first is None or first.start_point[0] != body.start_point[0]:
        module.insert(start, f"\n{indent}{statement}")
        return
    # One-line body: move the existing first statement onto its own line.
    text = f"\n{indent}{statement}\n{indent}"
    if first.start_byte > start:
        module.replace(start, first.start_byte, text)
    else:
        module.insert(start, text)


def inject_bindings(
    module: SourceModule, rewrite: RewriteResult, config: Config
) -> InjectionResult:
    """Give every scope that needs ``t`` a binding and collect header needs."""

    result = InjectionResult()
    client_injected = False
    server_injected = False

    pending = [scope for scope in rewrite.scopes if scope.needs_binding]
    # Inner scopes first so an outer concise body is rebuilt around their edits.
    for requirement in sorted(pending, key=lambda item: item.scope.start_byte, reverse=True):
        if requirement.already_has_binding:
            result.satisfied += 1
            continue
        inject_binding(module, requirement.scope, requirement.strategy)
        result.injected += 1
        if isinstance(requirement.strategy, ClientStrategy):
            client_injected = True
        else:
            server_injected = True

    result.requirement = ModuleRequirement(
        needs_hook_import=client_injected,
        needs_server_import=config.server_function if server_injected else None,
        needs_use_client_directive=(
            config.framework is Framework.NEXT_LIKE and config.is_client and rewrite.modified
        ),
    )
    if result.injected:
        logger.debug(
            "Injected %d binding(s) in %s (%d already present)",
            result.injected,
            module.path or "<memory>",
            result.satisfied,
        )
    return result
