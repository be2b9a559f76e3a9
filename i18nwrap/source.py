"""Parsed source modules and the edit buffer used to regenerate them."""

from __future__ import annotations

import pathlib
import threading
from dataclasses import dataclass
from typing import Dict, List

import tree_sitter_typescript
from tree_sitter import Language, Node, Parser, Tree

from .errors import GenerationError, ParseError

_LANGUAGES: Dict[str, Language] = {}
_LANGUAGE_LOCK = threading.Lock()
_PARSERS = threading.local()


def _language(name: str) -> Language:
    with _LANGUAGE_LOCK:
        language = _LANGUAGES.get(name)
        if language is None:
            if name == "tsx":
                language = Language(tree_sitter_typescript.language_tsx())
            else:
                language = Language(tree_sitter_typescript.language_typescript())
            _LANGUAGES[name] = language
        return language


def _parser(name: str) -> Parser:
    """One parser per worker thread and grammar."""

    cache = getattr(_PARSERS, "cache", None)
    if cache is None:
        cache = _PARSERS.cache = {}
    parser = cache.get(name)
    if parser is None:
        parser = cache[name] = Parser(_language(name))
    return parser


def grammar_for(path: str | pathlib.Path | None) -> str:
    """Pick the grammar for a file name; plain ``.ts`` cannot contain JSX."""

    if path is None:
        return "tsx"
    suffix = pathlib.Path(path).suffix.lower()
    if suffix in {".ts", ".mts", ".cts"}:
        return "typescript"
    return "tsx"


@dataclass
class _Edit:
    start: int
    end: int
    text: str
    seq: int


def _first_error(node: Node) -> Node | None:
    stack = [node]
    while stack:
        current = stack.pop()
        if current.type == "ERROR" or current.is_missing:
            return current
        if current.has_error:
            stack.extend(reversed(current.children))
    return None


class SourceModule:
    """One parsed file plus the text edits recorded against its bytes.

    Edits never touch the tree; ``generate`` splices them into the original
    buffer so that untouched code keeps its exact formatting. Offsets are
    byte offsets into the UTF-8 encoded source.
    """

    def __init__(self, source: bytes, tree: Tree, *, path: str | None = None) -> None:
        self.source = source
        self.tree = tree
        self.path = path
        self._edits: List[_Edit] = []
        self._seq = 0

    @property
    def root(self) -> Node:
        return self.tree.root_node

    @property
    def modified(self) -> bool:
        return bool(self._edits)

    def text(self, node: Node) -> str:
        return self.slice(node.start_byte, node.end_byte)

    def slice(self, start: int, end: int) -> str:
        return self.source[start:end].decode("utf-8")

    def line_start(self, offset: int) -> int:
        return self.source.rfind(b"\n", 0, offset) + 1

    def line_indent(self, offset: int) -> str:
        """Leading whitespace of the line containing ``offset``."""

        start = self.line_start(offset)
        index = start
        while index < len(self.source) and self.source[index : index + 1] in (b" ", b"\t"):
            index += 1
        return self.slice(start, index)

    def insert(self, offset: int, text: str) -> None:
        self._add(offset, offset, text)

    def replace(self, start: int, end: int, text: str) -> None:
        """Replace ``[start, end)`` with ``text``.

        Edits strictly inside the range are dropped: callers build ``text``
        from ``render`` so those edits are already part of it.
        """

        if end <= start:
            raise GenerationError(f"Empty replacement range {start}:{end}")
        self._edits = [edit for edit in self._edits if not _contained(edit, start, end)]
        self._add(start, end, text)

    def render(self, start: int, end: int) -> str:
        """Source of ``[start, end)`` with the edits inside it applied."""

        inner = [edit for edit in self._edits if _contained(edit, start, end)]
        return self._splice(start, end, inner)

    def render_node(self, node: Node) -> str:
        return self.render(node.start_byte, node.end_byte)

    def generate(self) -> str:
        if not self._edits:
            return self.source.decode("utf-8")
        return self._splice(0, len(self.source), self._edits)

    def _add(self, start: int, end: int, text: str) -> None:
        self._seq += 1
        self._edits.append(_Edit(start, end, text, self._seq))

    def _splice(self, start: int, end: int, edits: List[_Edit]) -> str:
        pieces: List[str] = []
        cursor = start
        for edit in sorted(edits, key=lambda item: (item.start, item.end, item.seq)):
            if edit.start < cursor:
                raise GenerationError(
                    f"Overlapping edits at byte {edit.start} in {self.path or '<memory>'}"
                )
            pieces.append(self.slice(cursor, edit.start))
            pieces.append(edit.text)
            cursor = edit.end
        pieces.append(self.slice(cursor, end))
        return "".join(pieces)


def _contained(edit: _Edit, start: int, end: int) -> bool:
    if edit.start == edit.end:
        # Insertions on the boundary belong to the surrounding code.
        return start < edit.start < end
    return start <= edit.start and edit.end <= end


def parse_module(text: str, path: str | pathlib.Path | None = None) -> SourceModule:
    """Parse ``text`` and return a module ready for editing.

    Raises ``ParseError`` when the grammar reports a syntax error anywhere in
    the file; a partially understood tree would produce unsafe edits.
    """

    source = text.encode("utf-8")
    tree = _parser(grammar_for(path)).parse(source)
    label = str(path) if path is not None else None
    if tree.root_node.has_error:
        node = _first_error(tree.root_node) or tree.root_node
        row, column = node.start_point
        problem = "missing token" if node.is_missing else "unexpected syntax"
        raise ParseError(f"Syntax error at line {row + 1}, column {column + 1}: {problem}")
    return SourceModule(source, tree, path=label)
