"""Replace eligible literals with calls to the translation function."""

from __future__ import annotations

import html
import json
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Set, Tuple

from tree_sitter import Node

from .configuration import Config
from .eligibility import assess
from .source import SourceModule
from .structures import InterpolationSlot, RewriteResult, ScopeRequirement
from .syntax import TYPE_CONTEXTS, binds_name, is_component_scope, is_field

logger = logging.getLogger(__name__)

MARKUP_TEXT = frozenset({"jsx_text", "html_character_reference"})


@dataclass
class Candidate:
    """A literal (or run of markup text nodes) inside a component scope."""

    kind: str
    nodes: List[Node]
    scope: Node

    @property
    def node(self) -> Node:
        return self.nodes[0]

    @property
    def start(self) -> int:
        return self.nodes[0].start_byte

    @property
    def end(self) -> int:
        return self.nodes[-1].end_byte


def _is_tagged(template: Node) -> bool:
    parent = template.parent
    return parent is not None and parent.type == "call_expression" and is_field(
        template, "arguments"
    )


def _is_parameter_list(node: Node) -> bool:
    return is_field(node, "parameters") or is_field(node, "parameter")


def collect_candidates(module: SourceModule) -> List[Candidate]:
    """Walk the tree and return candidates, innermost first."""

    found: List[Candidate] = []
    stack: List[Tuple[Node, Optional[Node], bool]] = [(module.root, None, False)]
    while stack:
        node, scope, in_type = stack.pop()
        in_type = in_type or node.type in TYPE_CONTEXTS
        outer = scope
        if is_component_scope(node):
            scope = node
        active = scope is not None and not in_type

        if node.type == "string":
            if active:
                found.append(Candidate("string", [node], scope))  # type: ignore[arg-type]
            continue
        if node.type == "comment":
            continue
        if node.type == "template_string" and active and not _is_tagged(node):
            found.append(Candidate("template", [node], scope))  # type: ignore[arg-type]

        run: List[Node] = []
        for child in node.children:
            if child.type in MARKUP_TEXT:
                run.append(child)
                continue
            if run:
                if active:
                    found.append(Candidate("markup", run, scope))  # type: ignore[arg-type]
                run = []
            if scope is node and _is_parameter_list(child):
                # Defaults are evaluated before the body binds ``t``.
                stack.append((child, outer, in_type))
            else:
                stack.append((child, scope, in_type))
        if run and active:
            found.append(Candidate("markup", run, scope))  # type: ignore[arg-type]

    # Substitutions end before their template does, so they are handled first.
    found.sort(key=lambda candidate: (candidate.end, -candidate.start))
    return found


def rewrite_module(module: SourceModule, config: Config) -> RewriteResult:
    """Wrap every eligible literal and report which scopes need a binding."""

    requirements: Dict[Tuple[int, int], ScopeRequirement] = {}
    wrapped = 0

    for candidate in collect_candidates(module):
        if candidate.kind == "template":
            changed = _rewrite_template(module, candidate, config)
        elif candidate.kind == "markup":
            changed = _rewrite_markup(module, candidate, config)
        else:
            changed = _rewrite_string(module, candidate, config)
        if not changed:
            continue

        wrapped += 1
        key = (candidate.scope.start_byte, candidate.scope.end_byte)
        requirement = requirements.get(key)
        if requirement is None:
            requirement = ScopeRequirement(
                scope=candidate.scope,
                strategy=config.strategy,
                already_has_binding=binds_name(candidate.scope, config.translation_function),
            )
            requirements[key] = requirement
        requirement.needs_binding = True

    scopes = sorted(requirements.values(), key=lambda item: item.key)
    if wrapped:
        logger.debug("Wrapped %d literal(s) in %s", wrapped, module.path or "<memory>")
    return RewriteResult(modified=wrapped > 0, wrapped=wrapped, scopes=scopes)


def _rewrite_string(module: SourceModule, candidate: Candidate, config: Config) -> bool:
    node = candidate.node
    if not assess(node, module, config).wrap:
        return False

    literal = module.text(node)
    in_attribute = node.parent is not None and node.parent.type == "jsx_attribute"
    if in_attribute:
        inner = literal[1:-1]
        text = html.unescape(inner)
        # Markup attribute strings have no escapes; re-encode when the text would change.
        if text != inner or any(char in inner for char in "\\\n\r"):
            literal = json.dumps(text, ensure_ascii=False)
        replacement = f"{{{config.translation_function}({literal})}}"
    else:
        replacement = f"{config.translation_function}({literal})"
    module.replace(node.start_byte, node.end_byte, replacement)
    return True


def _rewrite_markup(module: SourceModule, candidate: Candidate, config: Config) -> bool:
    raw = module.slice(candidate.start, candidate.end)
    text = html.unescape(raw.strip())
    if not assess(candidate.node, module, config, content=text).wrap:
        return False

    leading = len(raw[: len(raw) - len(raw.lstrip())].encode("utf-8"))
    trailing = len(raw[len(raw.rstrip()) :].encode("utf-8"))
    replacement = f"{{{config.translation_function}({json.dumps(text, ensure_ascii=False)})}}"
    module.replace(candidate.start + leading, candidate.end - trailing, replacement)
    return True


def template_parts(module: SourceModule, template: Node) -> Tuple[List[str], List[Node]]:
    """Raw literal chunks and substitution nodes of a template string.

    There is always one more chunk than substitutions.
    """

    substitutions = [
        child for child in template.named_children if child.type == "template_substitution"
    ]
    chunks: List[str] = []
    cursor = template.start_byte + 1
    for substitution in substitutions:
        chunks.append(module.slice(cursor, substitution.start_byte))
        cursor = substitution.end_byte
    chunks.append(module.slice(cursor, template.end_byte - 1))
    return chunks, substitutions


def quote_chunk(raw: str) -> str:
    """Turn raw template text into the body of a double-quoted string."""

    pieces: List[str] = []
    index = 0
    while index < len(raw):
        char = raw[index]
        if char == "\\" and index + 1 < len(raw):
            pieces.append(raw[index : index + 2])
            index += 2
            continue
        if char == '"':
            pieces.append('\\"')
        elif char == "\n":
            pieces.append("\\n")
        elif char == "\r":
            pieces.append("\\r")
        else:
            pieces.append(char)
        index += 1
    return "".join(pieces)


def build_slots(module: SourceModule, substitutions: List[Node]) -> List[InterpolationSlot]:
    """Name one slot per substitution.

    A bare identifier names its own slot and repeats reuse it; any other
    expression becomes ``expr<k>``, skipping numbers taken by identifiers.
    """

    expressions = []
    for substitution in substitutions:
        named = [child for child in substitution.named_children if child.type != "comment"]
        source = module.render(substitution.start_byte + 2, substitution.end_byte - 1).strip()
        identifier = named[0].type == "identifier" if len(named) == 1 else False
        expressions.append((source, identifier))

    taken: Set[str] = {source for source, identifier in expressions if identifier}
    slots: List[InterpolationSlot] = []
    counter = 0
    for source, identifier in expressions:
        if identifier:
            slots.append(InterpolationSlot(source, source))
            continue
        counter += 1
        while f"expr{counter}" in taken:
            counter += 1
        name = f"expr{counter}"
        taken.add(name)
        slots.append(InterpolationSlot(name, source))
    return slots


def _rewrite_template(module: SourceModule, candidate: Candidate, config: Config) -> bool:
    node = candidate.node
    chunks, substitutions = template_parts(module, node)
    if not assess(node, module, config, content="".join(chunks)).wrap:
        return False

    slots = build_slots(module, substitutions)
    key_parts: List[str] = []
    for chunk, slot in zip(chunks, slots):
        key_parts.append(quote_chunk(chunk))
        key_parts.append("{{" + slot.name + "}}")
    key_parts.append(quote_chunk(chunks[-1]))
    key = '"' + "".join(key_parts) + '"'

    function = config.translation_function
    if not slots:
        replacement = f"{function}({key})"
    else:
        entries: List[str] = []
        seen: Set[str] = set()
        for slot in slots:
            if slot.name in seen:
                continue
            seen.add(slot.name)
            entries.append(
                slot.name if slot.is_shorthand else f"{slot.name}: {slot.source_expression}"
            )
        replacement = f"{function}({key}, {{ {', '.join(entries)} }})"
    module.replace(node.start_byte, node.end_byte, replacement)
    return True
