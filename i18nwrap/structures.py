"""Core data structures for the i18n wrapper."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union

from tree_sitter import Node


TRANSLATION_FUNCTION = "t"
DEFAULT_HOOK_NAME = "useTranslation"
DEFAULT_SERVER_FUNCTION = "getServerTranslation"
DEFAULT_IMPORT_SOURCE = "i18nexus"
USE_CLIENT_DIRECTIVE = "use client"


class SkipReason(Enum):
    """Why a candidate literal is left alone."""

    IGNORE_COMMENT = "ignore-comment"
    ALREADY_WRAPPED = "already-wrapped"
    IMPORT_OR_EXPORT_SOURCE = "import-or-export-source"
    OBJECT_PROPERTY_KEY = "object-property-key"
    EMPTY = "empty"
    NO_TARGET_LANGUAGE_CONTENT = "no-target-language-content"


@dataclass(frozen=True)
class EligibilityVerdict:
    """Either ``Wrap`` (``reason`` is None) or ``Skip(reason)``."""

    reason: Optional[SkipReason] = None

    @property
    def wrap(self) -> bool:
        return self.reason is None

    def __repr__(self) -> str:
        if self.reason is None:
            return "Wrap"
        return f"Skip({self.reason.name})"


WRAP = EligibilityVerdict()


def skip(reason: SkipReason) -> EligibilityVerdict:
    return EligibilityVerdict(reason)


@dataclass(frozen=True)
class ClientStrategy:
    """Acquire ``t`` through a hook call at the top of the component."""

    hook_name: str = DEFAULT_HOOK_NAME


@dataclass(frozen=True)
class ServerStrategy:
    """Acquire ``t`` by awaiting an accessor inside an async component."""

    function_name: str = DEFAULT_SERVER_FUNCTION


Strategy = Union[ClientStrategy, ServerStrategy]


class Framework(Enum):
    """Framework hint; only NEXT_LIKE changes behaviour."""

    NEXT_LIKE = "nextjs"
    PLAIN = "react"
    UNKNOWN = "other"

    @classmethod
    def from_hint(cls, hint: Optional[str]) -> "Framework":
        if not hint:
            return cls.UNKNOWN
        normalized = hint.strip().lower().replace(".", "").replace("-", "")
        if normalized in {"nextjs", "next"}:
            return cls.NEXT_LIKE
        if normalized == "react":
            return cls.PLAIN
        return cls.UNKNOWN


@dataclass
class InterpolationSlot:
    """One ``{{name}}`` placeholder of a template key and the expression it stands for."""

    name: str
    source_expression: str

    @property
    def is_shorthand(self) -> bool:
        return self.name == self.source_expression


@dataclass
class ScopeRequirement:
    """Binding needs of one component scope, computed once per pass."""

    scope: Node
    strategy: Strategy
    already_has_binding: bool
    needs_binding: bool = False

    @property
    def key(self) -> tuple[int, int]:
        return self.scope.start_byte, self.scope.end_byte


@dataclass
class ModuleRequirement:
    """Header changes a module needs once every scope has been handled."""

    needs_hook_import: bool = False
    needs_server_import: Optional[str] = None
    needs_use_client_directive: bool = False

    @property
    def empty(self) -> bool:
        return not (
            self.needs_hook_import
            or self.needs_server_import
            or self.needs_use_client_directive
        )


@dataclass
class RewriteResult:
    """Outcome of the literal rewrite pass."""

    modified: bool = False
    wrapped: int = 0
    scopes: List[ScopeRequirement] = field(default_factory=list)


@dataclass
class InjectionResult:
    """Outcome of the binding injection pass."""

    injected: int = 0
    satisfied: int = 0
    requirement: ModuleRequirement = field(default_factory=ModuleRequirement)
