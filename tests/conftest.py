"""Shared fixtures for the i18n wrapper tests."""

from __future__ import annotations

import os
from typing import Iterator, Optional

import pytest
from tree_sitter import Node

from i18nwrap import configuration
from i18nwrap.configuration import Config
from i18nwrap.source import SourceModule, parse_module
from i18nwrap.structures import ServerStrategy
from i18nwrap.wrapper import transform_source


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """Keep user config files and I18NWRAP_* variables out of every test."""

    for key in list(os.environ):
        if key.startswith("I18NWRAP_"):
            monkeypatch.delenv(key)
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    configuration._load_settings.cache_clear()
    yield
    configuration._load_settings.cache_clear()


def make_config(**overrides) -> Config:
    mode = overrides.pop("mode", "client")
    if mode == "server":
        overrides.setdefault("strategy", ServerStrategy())
    return Config(**overrides)


def wrap(code: str, path: str = "Component.tsx", **overrides) -> str:
    """Run every pass over ``code`` and return the generated text."""

    return transform_source(code, path, make_config(**overrides)).output


def walk(node: Node) -> Iterator[Node]:
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def find_node(module: SourceModule, kind: str, text: Optional[str] = None) -> Node:
    for node in walk(module.root):
        if node.type == kind and (text is None or module.text(node) == text):
            return node
    raise AssertionError(f"no {kind} node matching {text!r}")


def parse(code: str, path: str = "Component.tsx") -> SourceModule:
    return parse_module(code, path)
