"""Read-only model of an OpenAPI document.

The loader builds these once; nothing downstream mutates them. Schemas
point at named components by name (SchemaKind.REF), never by copy, so a
component may refer to itself.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Union

Scalar = Union[str, int, float, bool]


class SchemaKind(str, enum.Enum):
    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"
    REF = "ref"


class ParameterLocation(str, enum.Enum):
    PATH = "path"
    QUERY = "query"
    HEADER = "header"
    COOKIE = "cookie"


@dataclass(frozen=True)
class Schema:
    """Canonical schema: one kind tag plus the constraints that apply to it."""

    kind: SchemaKind
    enum: tuple[Scalar, ...] | None = None
    default: Any = None
    minimum: int | float | None = None
    maximum: int | float | None = None
    exclusive_minimum: bool = False
    exclusive_maximum: bool = False
    multiple_of: int | float | None = None
    unique_items: bool = False
    min_items: int | None = None
    max_items: int | None = None
    format: str | None = None
    nullable: bool = False
    description: str = ""
    title: str = ""
    items: Schema | None = None
    properties: tuple[tuple[str, Schema], ...] = ()
    required: frozenset[str] = frozenset()
    # None: not given, True: any value, Schema: typed values
    additional_properties: Schema | bool | None = None
    ref: str | None = None


@dataclass(frozen=True)
class Parameter:
    name: str
    location: ParameterLocation
    schema: Schema
    required: bool = False
    explode: bool = True
    description: str = ""
    deprecated: bool = False


@dataclass(frozen=True)
class Operation:
    method: str
    path: str
    operation_id: str
    parameters: tuple[Parameter, ...] = ()
    summary: str = ""
    description: str = ""
    deprecated: bool = False
    tags: tuple[str, ...] = ()
    # JSON body of the first 2xx response, used only for return annotations
    response: Schema | None = None
    # True when operation_id was derived from the path, not the document
    generated_id: bool = False

    def parameters_in(self, location: ParameterLocation) -> list[Parameter]:
        return [p for p in self.parameters if p.location is location]


@dataclass(frozen=True)
class PathItem:
    path: str
    operations: tuple[Operation, ...] = ()


@dataclass(frozen=True)
class Components:
    """Raw component nodes, keyed by name. Resolution happens in SchemaResolver."""

    schemas: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    parameters: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def from_node(cls, node: Mapping[str, Any] | None) -> Components:
        node = node or {}
        return cls(
            schemas=MappingProxyType(dict(node.get("schemas") or {})),
            parameters=MappingProxyType(dict(node.get("parameters") or {})),
        )


@dataclass(frozen=True)
class Document:
    title: str
    version: str
    paths: tuple[PathItem, ...]
    components: Components

    def operations(self) -> list[Operation]:
        """All operations in document order."""
        return [op for item in self.paths for op in item.operations]
