"""Shared fixtures: fixture documents, a fake router and a fake request."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

import pytest

from routegen.loader import load_spec

FIXTURES = Path(__file__).parent / "fixtures"


def minimal_spec(paths: dict[str, Any], schemas: dict[str, Any] | None = None) -> dict[str, Any]:
    """Smallest document the loader accepts around the given paths."""
    spec: dict[str, Any] = {
        "openapi": "3.0.3",
        "info": {"title": "Test", "version": "1"},
        "paths": paths,
    }
    if schemas is not None:
        spec["components"] = {"schemas": schemas}
    return spec


@pytest.fixture
def motis_spec() -> dict[str, Any]:
    return load_spec(FIXTURES / "motis.yaml")


@pytest.fixture
def items_spec() -> dict[str, Any]:
    return load_spec(FIXTURES / "items.yaml")


class FakeRouter:
    """Records every registration in call order."""

    def __init__(self) -> None:
        self.routes: list[tuple[str, str, Callable[[Any], Any]]] = []

    def _add(self, method: str) -> Callable[[str, Callable[[Any], Any]], None]:
        def register(path: str, handler: Callable[[Any], Any]) -> None:
            self.routes.append((method, path, handler))
        return register

    def __getattr__(self, method: str) -> Callable[[str, Callable[[Any], Any]], None]:
        if method not in ("get", "put", "post", "delete", "options", "head", "patch", "trace"):
            raise AttributeError(method)
        return self._add(method)

    def handler(self, method: str, path: str) -> Callable[[Any], Any]:
        for m, p, h in self.routes:
            if (m, p) == (method, path):
                return h
        raise KeyError((method, path))


@dataclass
class FakeRequest:
    path_params: dict[str, Any] = field(default_factory=dict)
    query_params: dict[str, Any] = field(default_factory=dict)
    headers: dict[str, Any] = field(default_factory=dict)
    cookies: dict[str, Any] = field(default_factory=dict)


class MultiDict(dict):
    """Query mapping with repeated keys, shaped like Starlette's QueryParams."""

    def __init__(self, pairs: list[tuple[str, str]]) -> None:
        super().__init__()
        self._pairs = pairs
        for key, value in pairs:
            self.setdefault(key, value)

    def getlist(self, key: str) -> list[str]:
        return [v for k, v in self._pairs if k == key]


class RecordingService:
    """Handler implementation that records calls and echoes arguments."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, tuple[Any, ...]]] = []

    def __getattr__(self, name: str) -> Callable[..., Any]:
        if name.startswith("_"):
            raise AttributeError(name)

        def handle(*args: Any) -> tuple[str, tuple[Any, ...]]:
            self.calls.append((name, args))
            return name, args
        return handle


@pytest.fixture
def router() -> FakeRouter:
    return FakeRouter()


@pytest.fixture
def service() -> RecordingService:
    return RecordingService()
