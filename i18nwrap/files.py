"""File discovery and safe write-back helpers."""

from __future__ import annotations

import difflib
import glob
import logging
import os
import pathlib
import tempfile
from typing import List, Optional

from .errors import FileSystemError, PatternError

logger = logging.getLogger(__name__)

SUPPORTED_SUFFIXES = frozenset({".js", ".jsx", ".ts", ".tsx"})
IGNORED_DIRECTORIES = frozenset({"node_modules", ".git", ".next", ".turbo", ".cache"})


def expand_braces(pattern: str) -> List[str]:
    """Expand ``{a,b}`` alternatives; nested groups are supported."""

    depth = 0
    start = -1
    for index, char in enumerate(pattern):
        if char == "{":
            if depth == 0:
                start = index
            depth += 1
        elif char == "}":
            depth -= 1
            if depth < 0:
                raise PatternError(f"Unbalanced '}}' in pattern {pattern!r}")
            if depth == 0:
                head, body, tail = pattern[:start], pattern[start + 1 : index], pattern[index + 1 :]
                options = _split_alternatives(body)
                if len(options) == 1:
                    # A lone group is literal text for glob.
                    return [head + "{" + body + "}" + rest for rest in expand_braces(tail)]
                expanded: List[str] = []
                for option in options:
                    for result in expand_braces(head + option + tail):
                        if result not in expanded:
                            expanded.append(result)
                return expanded
    if depth != 0:
        raise PatternError(f"Unbalanced '{{' in pattern {pattern!r}")
    return [pattern]


def _split_alternatives(body: str) -> List[str]:
    options: List[str] = []
    depth = 0
    current = []
    for char in body:
        if char == "," and depth == 0:
            options.append("".join(current))
            current = []
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
        current.append(char)
    options.append("".join(current))
    return options


def _is_ignored(path: pathlib.Path, base: pathlib.Path) -> bool:
    try:
        parts = path.relative_to(base).parts
    except ValueError:
        parts = path.parts
    return any(part in IGNORED_DIRECTORIES for part in parts[:-1])


def discover_files(pattern: str, root: Optional[pathlib.Path] = None) -> List[pathlib.Path]:
    """Resolve ``pattern`` relative to ``root`` into sorted source files.

    Raises ``PatternError`` before any file is touched when the pattern is
    unusable. A valid pattern matching nothing yields an empty list.
    """

    if not pattern or not pattern.strip():
        raise PatternError("The file pattern is empty.")
    if "\x00" in pattern:
        raise PatternError("The file pattern contains a NUL character.")

    base = (root or pathlib.Path.cwd()).resolve()
    found: dict[pathlib.Path, None] = {}
    for expanded in expand_braces(pattern.strip()):
        full = expanded if os.path.isabs(expanded) else str(base / expanded)
        for match in glob.glob(full, recursive=True):
            path = pathlib.Path(match)
            if path.suffix.lower() not in SUPPORTED_SUFFIXES or _is_ignored(path, base):
                continue
            if not path.is_file():
                continue
            found.setdefault(path, None)
    return sorted(found)


def read_source(path: pathlib.Path, *, max_file_size: Optional[int] = None) -> Optional[str]:
    """Read a UTF-8 source file, or return None when it should be skipped."""

    try:
        if path.is_symlink():
            logger.warning("Skipping symlink: %s", path)
            return None
        if max_file_size is not None and path.stat().st_size > max_file_size:
            logger.warning("Skipping large file (> %d bytes): %s", max_file_size, path)
            return None
        with path.open("r", encoding="utf-8", newline="") as handle:
            return handle.read()
    except UnicodeDecodeError as exc:
        raise FileSystemError(f"File is not valid UTF-8 ({exc.reason})") from exc
    except OSError as exc:
        raise FileSystemError(f"Could not read file: {exc.strerror or exc}") from exc


def atomic_write(path: pathlib.Path, data: str) -> None:
    """Atomically write ``data`` to ``path``.

    The text goes to a temporary file in the same directory, is fsynced and
    then replaces the target. Permission bits of an existing target are kept.
    """

    directory = path.parent
    try:
        original_mode = path.stat().st_mode & 0o777
    except OSError:
        original_mode = None

    temp_name: Optional[str] = None
    try:
        with tempfile.NamedTemporaryFile(
            "w",
            delete=False,
            dir=directory,
            prefix=f".{path.name}.",
            suffix=".tmp",
            encoding="utf-8",
            newline="",
        ) as handle:
            temp_name = handle.name
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(temp_name, path)
        temp_name = None
        if original_mode is not None:
            try:
                os.chmod(path, original_mode)
            except OSError:
                logger.debug("Failed to chmod %s", path)
    except OSError as exc:
        raise FileSystemError(f"Could not write file: {exc.strerror or exc}") from exc
    finally:
        if temp_name is not None and os.path.exists(temp_name):
            os.unlink(temp_name)


def unified_diff(before: str, after: str, path: pathlib.Path) -> str:
    return "".join(
        difflib.unified_diff(
            before.splitlines(keepends=True),
            after.splitlines(keepends=True),
            fromfile=f"a/{path}",
            tofile=f"b/{path}",
        )
    )
