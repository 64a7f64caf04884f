"""Map canonical schemas onto a target-neutral type expression tree.

The mapping is total over the Schema variants and has no side effects;
naming of inline records and the final Python spelling happen in
routegen.render.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from .model import Scalar, Schema, SchemaKind

_PRIMITIVES: dict[SchemaKind, str] = {
    SchemaKind.STRING: "str",
    SchemaKind.INTEGER: "int",
    SchemaKind.NUMBER: "float",
    SchemaKind.BOOLEAN: "bool",
}


@dataclass(frozen=True)
class Constraints:
    """Validation metadata; never changes the base type."""

    minimum: int | float | None = None
    maximum: int | float | None = None
    exclusive_minimum: bool = False
    exclusive_maximum: bool = False
    multiple_of: int | float | None = None
    unique_items: bool = False
    min_items: int | None = None
    max_items: int | None = None

    @classmethod
    def from_schema(cls, schema: Schema) -> Constraints:
        return cls(
            minimum=schema.minimum,
            maximum=schema.maximum,
            exclusive_minimum=schema.exclusive_minimum,
            exclusive_maximum=schema.exclusive_maximum,
            multiple_of=schema.multiple_of,
            unique_items=schema.unique_items,
            min_items=schema.min_items,
            max_items=schema.max_items,
        )


NO_CONSTRAINTS = Constraints()


@dataclass(frozen=True)
class Primitive:
    name: str
    format: str | None = None
    constraints: Constraints = NO_CONSTRAINTS


@dataclass(frozen=True)
class LiteralSet:
    """Closed set of literal values; ``base`` is the primitive they belong to."""

    values: tuple[Scalar, ...]
    base: str


@dataclass(frozen=True)
class ListOf:
    item: TypeExpr
    constraints: Constraints = NO_CONSTRAINTS


@dataclass(frozen=True)
class DictOf:
    value: TypeExpr


@dataclass(frozen=True)
class AnyValue:
    pass


@dataclass(frozen=True)
class NamedType:
    """Reference to a named component; the component is declared once."""

    name: str


@dataclass(frozen=True)
class Nullable:
    inner: TypeExpr


@dataclass(frozen=True)
class RecordField:
    name: str
    type: TypeExpr
    required: bool
    default: Any = None
    description: str = ""


@dataclass(frozen=True, eq=False)
class Record:
    """Object with declared properties; anonymous until it is declared."""

    fields: tuple[RecordField, ...]
    description: str = ""


TypeExpr = Union[Primitive, LiteralSet, ListOf, DictOf, AnyValue, NamedType, Nullable, Record]


@dataclass(frozen=True)
class RecordDecl:
    name: str
    record: Record


@dataclass(frozen=True)
class AliasDecl:
    name: str
    type: TypeExpr
    description: str = ""


Declaration = Union[RecordDecl, AliasDecl]


def _record(schema: Schema) -> Record:
    return Record(
        fields=tuple(
            RecordField(
                name=name,
                type=map_schema(sub),
                required=name in schema.required,
                default=sub.default,
                description=sub.description,
            )
            for name, sub in schema.properties
        ),
        description=schema.description or schema.title,
    )


def _base(schema: Schema) -> TypeExpr:
    if schema.kind is SchemaKind.REF:
        assert schema.ref is not None
        return NamedType(schema.ref)

    if schema.enum is not None:
        return LiteralSet(values=schema.enum, base=_PRIMITIVES.get(schema.kind, "str"))

    if schema.kind in _PRIMITIVES:
        return Primitive(
            name=_PRIMITIVES[schema.kind],
            format=schema.format,
            constraints=Constraints.from_schema(schema),
        )

    if schema.kind is SchemaKind.ARRAY:
        assert schema.items is not None
        return ListOf(item=map_schema(schema.items), constraints=Constraints.from_schema(schema))

    # object
    if schema.properties:
        return _record(schema)
    if isinstance(schema.additional_properties, Schema):
        return DictOf(value=map_schema(schema.additional_properties))
    return DictOf(value=AnyValue())


def map_schema(schema: Schema) -> TypeExpr:
    """Type expression for a schema; nullable schemas are wrapped in Nullable."""
    expr = _base(schema)
    if schema.nullable:
        return Nullable(expr)
    return expr


def declare(name: str, schema: Schema) -> Declaration:
    """Declaration for a named component: a record or a type alias."""
    if schema.kind is SchemaKind.OBJECT and schema.properties and not schema.nullable:
        return RecordDecl(name=name, record=_record(schema))
    return AliasDecl(name=name, type=map_schema(schema), description=schema.description or schema.title)


def optional(expr: TypeExpr) -> TypeExpr:
    """Wrap in Nullable unless it already admits None."""
    if isinstance(expr, (Nullable, AnyValue)):
        return expr
    return Nullable(expr)


def references(expr: TypeExpr) -> bool:
    """True when the expression names a declared type (directly or nested)."""
    if isinstance(expr, (NamedType, Record)):
        return True
    if isinstance(expr, ListOf):
        return references(expr.item)
    if isinstance(expr, DictOf):
        return references(expr.value)
    if isinstance(expr, Nullable):
        return references(expr.inner)
    return False
