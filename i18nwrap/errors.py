"""Error definitions for the i18n wrapper."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional


class ErrorCategory(Enum):
    """Categorises runtime errors so the policy can isolate or escalate them."""

    PARSE = auto()
    GENERATION = auto()
    FILE_IO = auto()
    PATTERN = auto()
    CONFIGURATION = auto()
    OTHER = auto()


# Categories that concern the whole run rather than one file.
FATAL_CATEGORIES = frozenset({ErrorCategory.PATTERN, ErrorCategory.CONFIGURATION})


class WrapperError(Exception):
    """Base exception for all custom errors."""

    category = ErrorCategory.OTHER


class ParseError(WrapperError):
    """Raised when a source file cannot be parsed into a syntax tree."""

    category = ErrorCategory.PARSE


class GenerationError(WrapperError):
    """Raised when the edited tree cannot be turned back into source text."""

    category = ErrorCategory.GENERATION


class FileSystemError(WrapperError):
    """Raised when a path cannot be read or written."""

    category = ErrorCategory.FILE_IO


class PatternError(WrapperError):
    """Raised when the file selection pattern itself is invalid."""

    category = ErrorCategory.PATTERN


class ConfigurationError(WrapperError):
    """Raised when settings are missing or invalid."""

    category = ErrorCategory.CONFIGURATION


@dataclass
class ErrorRecord:
    """Stores context for a handled error."""

    category: ErrorCategory
    message: str
    path: Optional[str] = None
    details: Optional[str] = None

    def describe(self) -> str:
        prefix = f"{self.path}: " if self.path else ""
        return f"{prefix}{self.message}"
