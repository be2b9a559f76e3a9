"""Layered configuration loader for the i18n wrapper."""

from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass, field, replace
from functools import cached_property, lru_cache
from pathlib import Path
from typing import Any, Literal, Mapping, Sequence

import yaml
from dotenv import dotenv_values
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .errors import ConfigurationError
from .structures import (
    DEFAULT_HOOK_NAME,
    DEFAULT_IMPORT_SOURCE,
    DEFAULT_SERVER_FUNCTION,
    TRANSLATION_FUNCTION,
    ClientStrategy,
    Framework,
    ServerStrategy,
    Strategy,
)

APP_NAME = "i18nwrap"
ENV_PREFIX = "I18NWRAP_"
DEFAULT_SOURCE_PATTERN = "src/**/*.{js,jsx,ts,tsx}"
DEFAULT_TARGET_CHARACTERS = "가-힣"
DEFAULT_MAX_FILE_SIZE = 2 * 1024 * 1024

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def _snake_case(key: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", key.strip()).lower().replace("-", "_")


class WrapperSettings(BaseModel):
    """Schema describing all supported configuration options."""

    model_config = ConfigDict(extra="ignore")

    source_pattern: str = Field(
        default=DEFAULT_SOURCE_PATTERN,
        description="Glob pattern selecting the files to rewrite.",
    )
    dry_run: bool = Field(default=False)
    translation_import_source: str = Field(
        default=DEFAULT_IMPORT_SOURCE,
        description="Module the translation hook is imported from.",
    )
    mode: Literal["client", "server"] = Field(default="client")
    framework: Literal["nextjs", "react", "other"] | None = Field(default=None)
    client_translation_hook: str = Field(default=DEFAULT_HOOK_NAME)
    server_translation_function: str = Field(default=DEFAULT_SERVER_FUNCTION)
    server_translation_import_source: str | None = Field(default=None)
    target_characters: str = Field(
        default=DEFAULT_TARGET_CHARACTERS,
        description="Body of a regex character class matching target-language text.",
    )
    threads: int = Field(default_factory=lambda: os.cpu_count() or 4, ge=1)
    max_file_size: int = Field(
        default=DEFAULT_MAX_FILE_SIZE,
        ge=0,
        description="Skip files larger than this many bytes (0 disables the check).",
    )

    @model_validator(mode="before")
    @classmethod
    def _normalise_keys(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        normalized: dict[str, Any] = {}
        for key, value in data.items():
            name = _snake_case(str(key))
            if name.startswith(ENV_PREFIX.lower()):
                name = name[len(ENV_PREFIX):]
            normalized[name] = value

        mode = normalized.get("mode")
        if isinstance(mode, str):
            normalized["mode"] = mode.strip().lower()

        framework = normalized.get("framework")
        if isinstance(framework, str):
            cleaned = framework.strip().lower().replace(".", "").replace("-", "")
            synonyms = {"next": "nextjs", "": None}
            cleaned = synonyms.get(cleaned, cleaned)
            if cleaned not in {"nextjs", "react", None}:
                cleaned = "other"
            normalized["framework"] = cleaned
        return normalized

    @field_validator("target_characters")
    @classmethod
    def _check_character_class(cls, value: str) -> str:
        if not value:
            raise ValueError("target_characters must not be empty")
        try:
            re.compile(f"[{value}]")
        except re.error as exc:
            raise ValueError(f"not a valid character class body ({exc})") from exc
        return value

    @field_validator(
        "client_translation_hook",
        "server_translation_function",
    )
    @classmethod
    def _check_identifier(cls, value: str) -> str:
        if not re.fullmatch(r"[A-Za-z_$][\w$]*", value):
            raise ValueError(f"{value!r} is not a valid identifier")
        return value


@dataclass(frozen=True)
class Config:
    """Immutable settings for one run, shared read-only by every worker."""

    source_pattern: str = DEFAULT_SOURCE_PATTERN
    dry_run: bool = False
    translation_import_source: str = DEFAULT_IMPORT_SOURCE
    strategy: Strategy = field(default_factory=ClientStrategy)
    framework: Framework = Framework.UNKNOWN
    server_import_source: str | None = None
    target_characters: str = DEFAULT_TARGET_CHARACTERS
    threads: int = 1
    show_diff: bool = False
    max_file_size: int | None = DEFAULT_MAX_FILE_SIZE
    client_translation_hook: str = DEFAULT_HOOK_NAME
    server_translation_function: str = DEFAULT_SERVER_FUNCTION

    translation_function = TRANSLATION_FUNCTION

    @cached_property
    def target_pattern(self) -> re.Pattern[str]:
        return re.compile(f"[{self.target_characters}]")

    @property
    def is_client(self) -> bool:
        return isinstance(self.strategy, ClientStrategy)

    @property
    def hook_name(self) -> str:
        if isinstance(self.strategy, ClientStrategy):
            return self.strategy.hook_name
        return self.client_translation_hook

    @property
    def server_function(self) -> str:
        if isinstance(self.strategy, ServerStrategy):
            return self.strategy.function_name
        return self.server_translation_function

    @property
    def server_source(self) -> str:
        return self.server_import_source or self.translation_import_source

    def with_overrides(self, **overrides: Any) -> "Config":
        """Return a copy with the non-None overrides applied."""

        applied = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **applied) if applied else self

    @classmethod
    def from_settings(cls, settings: WrapperSettings) -> "Config":
        strategy: Strategy
        if settings.mode == "server":
            strategy = ServerStrategy(settings.server_translation_function)
        else:
            strategy = ClientStrategy(settings.client_translation_hook)
        return cls(
            source_pattern=settings.source_pattern,
            dry_run=settings.dry_run,
            translation_import_source=settings.translation_import_source,
            strategy=strategy,
            framework=Framework.from_hint(settings.framework),
            server_import_source=settings.server_translation_import_source,
            target_characters=settings.target_characters,
            threads=settings.threads,
            max_file_size=settings.max_file_size or None,
            client_translation_hook=settings.client_translation_hook,
            server_translation_function=settings.server_translation_function,
        )


@lru_cache(maxsize=4)
def _load_settings(app_dir: Path) -> WrapperSettings:
    """Load configuration layers once per directory and cache the model."""

    combined: dict[str, Any] = {}
    for path, loader in _discover_files(app_dir):
        parsed = loader(path)
        if parsed is None:
            continue
        if not isinstance(parsed, Mapping):
            raise ConfigurationError(
                f"Invalid configuration file {path}: expected a mapping at the root."
            )
        combined.update(parsed)

    _merge_env_sources(combined, app_dir=app_dir)

    try:
        return WrapperSettings.model_validate(combined)
    except ValidationError as exc:
        raise ConfigurationError(_format_validation_errors(exc.errors())) from exc


def _read_yaml(path: Path) -> Any:
    try:
        with path.open("r", encoding="utf-8") as handle:
            return yaml.safe_load(handle)
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Configuration file {path} could not be read: {exc}") from exc


def _read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise ConfigurationError(f"Configuration file {path} could not be read: {exc}") from exc


def _discover_files(app_dir: Path) -> list[tuple[Path, Any]]:
    """Configuration files in precedence order, lowest first."""

    candidates = [
        (Path.home() / ".config" / APP_NAME / "config.yaml", _read_yaml),
        (app_dir / "i18nexus.config.json", _read_json),
        (app_dir / f"{APP_NAME}.yml", _read_yaml),
        (app_dir / f"{APP_NAME}.yaml", _read_yaml),
    ]
    return [(path, loader) for path, loader in candidates if path.is_file()]


def _merge_env_sources(target: dict[str, Any], *, app_dir: Path) -> None:
    """Merge .env and process environment variables into the target mapping."""

    allowed = set(WrapperSettings.model_fields)

    def merge_values(values: Mapping[str, str | None]) -> None:
        for key, value in sorted(values.items()):
            if value is None or not key.startswith(ENV_PREFIX):
                continue
            name = key[len(ENV_PREFIX):].lower()
            if name not in allowed:
                continue
            target[name] = value

    dotenv_path = app_dir / ".env"
    if dotenv_path.exists():
        merge_values(dotenv_values(dotenv_path))

    merge_values(dict(os.environ))


def _format_validation_errors(entries: Sequence[Mapping[str, Any]]) -> str:
    details: list[str] = []
    for entry in entries:
        path = entry.get("loc") or []
        location = ".".join(str(part) for part in path if part not in {None, ""})
        message = str(entry.get("msg") or "Invalid value")
        prefix = f"{location}: " if location else ""
        details.append(f"- {prefix}{message}")
    return "Configuration validation errors detected:\n" + "\n".join(details)


def get_settings(app_dir: Path | None = None) -> WrapperSettings:
    """Return the validated settings model for typed access."""

    return _load_settings((app_dir or Path.cwd()).resolve())


def load_config(app_dir: Path | None = None, **overrides: Any) -> Config:
    """Build the run configuration from settings files plus explicit overrides."""

    return Config.from_settings(get_settings(app_dir)).with_overrides(**overrides)
