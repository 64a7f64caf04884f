"""Resolve raw OpenAPI schema nodes into canonical Schema values.

Handles:
- $ref resolution by name into components.schemas (lookup, never copy)
- type inference for untyped nodes (properties, items, enum)
- OpenAPI 3.1 nullable type lists ([T, "null"])
- enum and default decoding according to the declared type
- numeric and array constraints (minimum, maximum, multipleOf, ...)
- parameter and response extraction for operations

Composition keywords (allOf/oneOf/anyOf/not) are rejected, not merged.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Any, Mapping

from .errors import (
    DocumentError,
    InvalidSchema,
    PathParameterMismatch,
    UnresolvedReference,
    UnsupportedConstruct,
)
from .model import Components, Parameter, ParameterLocation, Scalar, Schema, SchemaKind

logger = logging.getLogger(__name__)

SCHEMA_REF_PREFIX = "#/components/schemas/"
PARAMETER_REF_PREFIX = "#/components/parameters/"

_COMPOSITION_KEYS = ("allOf", "oneOf", "anyOf", "not")

# Keys that may sit next to a $ref without changing the referenced shape
_REF_ANNOTATION_KEYS = {
    "$ref", "description", "summary", "title", "nullable",
    "deprecated", "example", "examples", "readOnly", "writeOnly",
}

_TYPES: dict[str, SchemaKind] = {
    kind.value: kind for kind in SchemaKind if kind is not SchemaKind.REF
}

# Serialization styles each location supports, with their explode default
_STYLES: dict[ParameterLocation, tuple[str, bool]] = {
    ParameterLocation.PATH: ("simple", False),
    ParameterLocation.QUERY: ("form", True),
    ParameterLocation.HEADER: ("simple", False),
    ParameterLocation.COOKIE: ("form", True),
}


def _decode_pointer(name: str) -> str:
    """Undo JSON-pointer escaping of one reference token."""
    return name.replace("~1", "/").replace("~0", "~")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _decode_literal(value: Any, kind: SchemaKind, where: str) -> Scalar:
    """Decode one enum/default literal according to the declared kind."""
    if kind is SchemaKind.STRING:
        if isinstance(value, str):
            return value
        if _is_number(value):
            return str(value)
        # YAML reads bare yes/no/on/off as booleans
        raise InvalidSchema(f"{where}: {value!r} is not a string literal; quote it")
    if kind is SchemaKind.INTEGER:
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, float) and value.is_integer():
            return int(value)
        raise InvalidSchema(f"{where}: {value!r} is not an integer literal")
    if kind is SchemaKind.NUMBER:
        if _is_number(value):
            return float(value)
        raise InvalidSchema(f"{where}: {value!r} is not a number literal")
    if kind is SchemaKind.BOOLEAN:
        if isinstance(value, bool):
            return value
        raise InvalidSchema(f"{where}: {value!r} is not a boolean literal")
    raise UnsupportedConstruct(f"{where}: literal values on {kind.value} schemas are not supported")


def _infer_enum_kind(values: Any) -> SchemaKind:
    literals = [v for v in values if v is not None] if isinstance(values, list) else []
    if literals and all(isinstance(v, bool) for v in literals):
        return SchemaKind.BOOLEAN
    if literals and all(isinstance(v, int) and not isinstance(v, bool) for v in literals):
        return SchemaKind.INTEGER
    if literals and all(_is_number(v) for v in literals):
        return SchemaKind.NUMBER
    return SchemaKind.STRING


class SchemaResolver:
    """Turns raw nodes into Schema values against one document's components.

    Named components are resolved lazily and memoised by name; the
    components mapping is immutable for the lifetime of the resolver.
    """

    def __init__(self, components: Components) -> None:
        self.components = components
        self._resolved: dict[str, Schema] = {}

    # -- references -------------------------------------------------------

    def ref_name(self, ref: Any) -> str:
        """Validate a schema $ref and return the component name it points at."""
        if not isinstance(ref, str) or not ref.startswith(SCHEMA_REF_PREFIX):
            raise UnsupportedConstruct(
                f"unsupported reference {ref!r}; only '{SCHEMA_REF_PREFIX}<name>' is supported"
            )
        token = ref[len(SCHEMA_REF_PREFIX):]
        if "/" in token:
            raise UnsupportedConstruct(f"reference {ref!r} points inside a component")
        name = _decode_pointer(token)
        if name not in self.components.schemas:
            raise UnresolvedReference(ref)
        return name

    def component(self, name: str) -> Schema:
        """Resolve a named component schema (memoised)."""
        if name not in self._resolved:
            if name not in self.components.schemas:
                raise UnresolvedReference(f"{SCHEMA_REF_PREFIX}{name}")
            node = self.components.schemas[name]
            self._resolved[name] = self.resolve(node, where=f"components.schemas.{name}")
        return self._resolved[name]

    def components_in_order(self) -> list[tuple[str, Schema]]:
        """Every named component, resolved, in document order.

        Alias components are followed to their target so a circular alias
        fails here instead of in the generated module.
        """
        ordered = []
        for name in self.components.schemas:
            schema = self.component(name)
            if schema.kind is SchemaKind.REF:
                self.deref(schema)
            ordered.append((name, schema))
        return ordered

    def deref(self, schema: Schema) -> Schema:
        """Follow ref schemas to the first non-ref target."""
        seen: list[str] = []
        nullable = schema.nullable
        while schema.kind is SchemaKind.REF:
            assert schema.ref is not None
            if schema.ref in seen:
                chain = " -> ".join([*seen, schema.ref])
                raise InvalidSchema(f"circular schema alias: {chain}")
            seen.append(schema.ref)
            schema = self.component(schema.ref)
            nullable = nullable or schema.nullable
        if nullable and not schema.nullable:
            schema = dataclasses.replace(schema, nullable=True)
        return schema

    # -- schemas ----------------------------------------------------------

    def resolve(self, node: Any, where: str = "schema") -> Schema:
        """Convert one raw schema node into a canonical Schema."""
        if not isinstance(node, Mapping):
            raise InvalidSchema(f"{where}: expected a mapping, got {type(node).__name__}")

        for key in _COMPOSITION_KEYS:
            if key in node:
                raise UnsupportedConstruct(f"{where}: '{key}' composition is not supported")

        if "$ref" in node:
            extra = sorted(set(node) - _REF_ANNOTATION_KEYS)
            if extra:
                raise UnsupportedConstruct(
                    f"{where}: $ref cannot be combined with {', '.join(extra)}"
                )
            return Schema(
                kind=SchemaKind.REF,
                ref=self.ref_name(node["$ref"]),
                nullable=bool(node.get("nullable", False)),
                description=node.get("description") or "",
            )

        kind, nullable = self._kind(node, where)
        fields: dict[str, Any] = {
            "kind": kind,
            "nullable": nullable,
            "description": node.get("description") or "",
            "title": node.get("title") or "",
            "format": node.get("format"),
        }

        fields.update(self._numeric_constraints(node, where))

        if kind is SchemaKind.ARRAY:
            if "items" not in node:
                raise InvalidSchema(f"{where}: array schema requires 'items'")
            fields["items"] = self.resolve(node["items"], where=f"{where}.items")
            fields["unique_items"] = bool(node.get("uniqueItems", False))
            fields["min_items"] = node.get("minItems")
            fields["max_items"] = node.get("maxItems")

        if kind is SchemaKind.OBJECT:
            fields.update(self._object_fields(node, where))

        if "enum" in node:
            values, has_null = self._decode_enum(node["enum"], kind, where)
            fields["enum"] = values
            fields["nullable"] = nullable or has_null

        if node.get("default") is not None:
            fields["default"] = self._decode_default(node["default"], fields, where)

        return Schema(**fields)

    def _kind(self, node: Mapping[str, Any], where: str) -> tuple[SchemaKind, bool]:
        raw = node.get("type")
        nullable = bool(node.get("nullable", False))

        if isinstance(raw, list):
            types = [t for t in raw if t != "null"]
            if len(types) != 1:
                raise UnsupportedConstruct(f"{where}: type union {raw!r} is not supported")
            nullable = nullable or len(types) < len(raw)
            raw = types[0]

        if raw is None:
            if "properties" in node or "additionalProperties" in node:
                return SchemaKind.OBJECT, nullable
            if "items" in node:
                return SchemaKind.ARRAY, nullable
            if "enum" in node:
                return _infer_enum_kind(node["enum"]), nullable
            raise UnsupportedConstruct(f"{where}: schema has no type")

        if raw not in _TYPES:
            raise UnsupportedConstruct(f"{where}: unsupported type {raw!r}")
        return _TYPES[raw], nullable

    def _numeric_constraints(self, node: Mapping[str, Any], where: str) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for key, attr in (("minimum", "minimum"), ("maximum", "maximum"), ("multipleOf", "multiple_of")):
            if key in node:
                if not _is_number(node[key]):
                    raise InvalidSchema(f"{where}: {key} must be a number, got {node[key]!r}")
                out[attr] = node[key]
        if out.get("multiple_of") is not None and out["multiple_of"] <= 0:
            raise InvalidSchema(f"{where}: multipleOf must be positive")

        # 3.0 uses booleans, 3.1 carries the bound itself
        for key, bound, flag in (
            ("exclusiveMinimum", "minimum", "exclusive_minimum"),
            ("exclusiveMaximum", "maximum", "exclusive_maximum"),
        ):
            value = node.get(key)
            if isinstance(value, bool):
                out[flag] = value
            elif _is_number(value):
                out[bound] = value
                out[flag] = True
        return out

    def _object_fields(self, node: Mapping[str, Any], where: str) -> dict[str, Any]:
        raw_props = node.get("properties") or {}
        if not isinstance(raw_props, Mapping):
            raise InvalidSchema(f"{where}: properties must be a mapping")
        properties = tuple(
            (str(name), self.resolve(sub, where=f"{where}.properties.{name}"))
            for name, sub in raw_props.items()
        )

        required = node.get("required") or []
        if not isinstance(required, list):
            raise InvalidSchema(f"{where}: required must be a list of property names")

        additional = node.get("additionalProperties")
        if additional is True or additional == {}:
            additional_properties: Schema | bool | None = True
        elif isinstance(additional, Mapping):
            additional_properties = self.resolve(additional, where=f"{where}.additionalProperties")
        else:
            additional_properties = None

        return {
            "properties": properties,
            "required": frozenset(str(r) for r in required),
            "additional_properties": additional_properties,
        }

    def _decode_enum(
        self, values: Any, kind: SchemaKind, where: str,
    ) -> tuple[tuple[Scalar, ...], bool]:
        if not isinstance(values, list) or not values:
            raise InvalidSchema(f"{where}: enum must be a non-empty list")
        if kind in (SchemaKind.ARRAY, SchemaKind.OBJECT):
            raise UnsupportedConstruct(f"{where}: enum on {kind.value} schemas is not supported")

        has_null = any(v is None for v in values)
        decoded = [_decode_literal(v, kind, f"{where}.enum") for v in values if v is not None]
        if not decoded:
            raise InvalidSchema(f"{where}: enum has no non-null values")
        return tuple(dict.fromkeys(decoded)), has_null

    def _decode_default(self, value: Any, fields: dict[str, Any], where: str) -> Any:
        kind: SchemaKind = fields["kind"]
        if kind is SchemaKind.OBJECT:
            if not isinstance(value, Mapping):
                raise InvalidSchema(f"{where}: default {value!r} is not an object")
            return dict(value)
        if kind is SchemaKind.ARRAY:
            if not isinstance(value, list):
                raise InvalidSchema(f"{where}: default {value!r} is not an array")
            items: Schema = fields["items"]
            if items.kind in (SchemaKind.REF, SchemaKind.ARRAY, SchemaKind.OBJECT):
                return list(value)
            return [_decode_literal(v, items.kind, f"{where}.default") for v in value]

        decoded = _decode_literal(value, kind, f"{where}.default")
        enum = fields.get("enum")
        if enum is not None and decoded not in enum:
            raise InvalidSchema(f"{where}: default {decoded!r} is not one of the enum values")
        return decoded


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------

def _parameter_node(resolver: SchemaResolver, node: Any) -> Mapping[str, Any]:
    if not isinstance(node, Mapping):
        raise DocumentError(f"parameter must be a mapping, got {type(node).__name__}")
    if "$ref" not in node:
        return node
    ref = node["$ref"]
    if not isinstance(ref, str) or not ref.startswith(PARAMETER_REF_PREFIX):
        raise UnsupportedConstruct(f"unsupported parameter reference {ref!r}")
    name = _decode_pointer(ref[len(PARAMETER_REF_PREFIX):])
    target = resolver.components.parameters.get(name)
    if target is None:
        raise UnresolvedReference(ref)
    return _parameter_node(resolver, target)


def parse_parameter(resolver: SchemaResolver, node: Any) -> Parameter:
    """Convert one parameter node (or parameter $ref) into a Parameter."""
    node = _parameter_node(resolver, node)

    name = node.get("name")
    if not isinstance(name, str) or not name:
        raise DocumentError("parameter without a name")

    try:
        location = ParameterLocation(node.get("in"))
    except ValueError:
        raise UnsupportedConstruct(
            f"parameter {name!r}: unsupported location {node.get('in')!r}"
        ) from None

    style, default_explode = _STYLES[location]
    if node.get("style", style) != style:
        raise UnsupportedConstruct(
            f"parameter {name!r}: style {node['style']!r} is not supported in {location.value}"
        )

    if "schema" not in node:
        if "content" in node:
            raise UnsupportedConstruct(f"parameter {name!r}: content-typed parameters are not supported")
        raise InvalidSchema(f"parameter {name!r} has no schema")

    required = bool(node.get("required", False))
    if location is ParameterLocation.PATH and not required:
        logger.warning("path parameter %r is not marked required; treating it as required", name)
        required = True

    return Parameter(
        name=name,
        location=location,
        schema=resolver.resolve(node["schema"], where=f"parameter {name}"),
        required=required,
        explode=bool(node.get("explode", default_explode)),
        description=node.get("description") or "",
        deprecated=bool(node.get("deprecated", False)),
    )


def _shape(schema: Schema) -> Schema:
    return dataclasses.replace(schema, description="", title="")


def parse_parameters(
    resolver: SchemaResolver,
    path_level: list[Any],
    operation_level: list[Any],
) -> tuple[Parameter, ...]:
    """Merge path-item and operation parameters.

    An operation parameter overrides a path-item parameter with the same
    name and location. Repeats of one (name, location) collapse when they
    agree on shape; a conflicting repeat is an error.
    """
    inherited = {}
    for node in path_level:
        param = parse_parameter(resolver, node)
        inherited[(param.name, param.location)] = param

    own: list[Parameter] = []
    for node in operation_level:
        param = parse_parameter(resolver, node)
        inherited.pop((param.name, param.location), None)
        own.append(param)

    merged: list[Parameter] = []
    seen: dict[tuple[str, ParameterLocation], Parameter] = {}
    for param in [*inherited.values(), *own]:
        key = (param.name, param.location)
        previous = seen.get(key)
        if previous is None:
            seen[key] = param
            merged.append(param)
        elif _shape(previous.schema) != _shape(param.schema):
            if param.location is ParameterLocation.PATH:
                raise PathParameterMismatch(
                    f"path parameter {param.name!r} is declared twice with different schemas"
                )
            raise DocumentError(
                f"{param.location.value} parameter {param.name!r} is declared twice with different schemas"
            )
    return tuple(merged)


def _is_json(content_type: str) -> bool:
    media = content_type.split(";")[0].strip().lower()
    return media in ("application/json", "text/json") or media.endswith("+json")


def get_response_schema(resolver: SchemaResolver, operation: Mapping[str, Any]) -> Schema | None:
    """Schema of the first 2xx JSON response, if the operation declares one."""
    responses = operation.get("responses") or {}
    for status, response in responses.items():
        code = str(status).upper()
        if not code.startswith("2") or not isinstance(response, Mapping):
            continue
        for content_type, media in (response.get("content") or {}).items():
            if _is_json(content_type) and isinstance(media, Mapping) and "schema" in media:
                return resolver.resolve(media["schema"], where=f"responses.{code}")
        return None
    return None
