"""Per-operation IR: handler arguments, their parsers, and the dispatch call.

Argument order is fixed: path parameters in template order, then query,
header and cookie parameters in declaration order. Everything that can
fail (unsupported parameter shapes, bad names, path mismatches) fails in
``build``; rendering a built Route is plain text assembly.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Any

from . import path_template
from .codegen import render_route
from .errors import GenerationError, InvalidIdentifier, UnsupportedConstruct
from .ir import Argument, HandlerMethod, ParserSpec, Route
from .model import Operation, Parameter, ParameterLocation, Schema, SchemaKind
from .naming import check_identifier, to_identifier
from .options import GeneratorOptions
from .schema_parser import SchemaResolver
from .type_mapper import map_schema, optional

logger = logging.getLogger(__name__)

# Query-style locations read arguments in declaration order after the path
_DECLARATION_ORDER = (
    ParameterLocation.QUERY,
    ParameterLocation.HEADER,
    ParameterLocation.COOKIE,
)


def _bounds(schema: Schema) -> tuple[tuple[str, Any], ...]:
    options = []
    for key in ("minimum", "maximum", "multiple_of"):
        value = getattr(schema, key)
        if value is not None:
            options.append((key, value))
    for key in ("exclusive_minimum", "exclusive_maximum"):
        if getattr(schema, key):
            options.append((key, True))
    return tuple(options)


class OperationEmitter:
    """Builds Routes for operations of one document."""

    def __init__(self, resolver: SchemaResolver, options: GeneratorOptions | None = None) -> None:
        self.resolver = resolver
        self.options = options or GeneratorOptions()

    def parser_for(self, param: Parameter) -> ParserSpec:
        """Parser spec for a parameter value."""
        target = self.resolver.deref(param.schema)
        if target.kind is SchemaKind.ARRAY:
            assert target.items is not None
            item = self._scalar_parser(param, target.items)
            options: list[tuple[str, Any]] = [
                ("explode", param.location is ParameterLocation.QUERY and param.explode),
            ]
            if target.unique_items:
                options.append(("unique_items", True))
            if target.min_items is not None:
                options.append(("min_items", target.min_items))
            if target.max_items is not None:
                options.append(("max_items", target.max_items))
            return ParserSpec("array", (item,), tuple(options))
        return self._scalar_parser(param, target)

    def _scalar_parser(self, param: Parameter, schema: Schema) -> ParserSpec:
        target = self.resolver.deref(schema)
        if target.enum is not None:
            return ParserSpec("one_of", target.enum)
        if target.kind is SchemaKind.STRING:
            return ParserSpec("string")
        if target.kind is SchemaKind.INTEGER:
            return ParserSpec("integer", options=_bounds(target))
        if target.kind is SchemaKind.NUMBER:
            return ParserSpec("number", options=_bounds(target))
        if target.kind is SchemaKind.BOOLEAN:
            return ParserSpec("boolean")
        if target.kind is SchemaKind.ARRAY:
            raise UnsupportedConstruct(f"parameter {param.name!r}: nested arrays are not supported")
        raise UnsupportedConstruct(
            f"{param.location.value} parameter {param.name!r}: object values are not supported"
        )

    def argument(self, param: Parameter) -> Argument:
        if param.location in (ParameterLocation.PATH, ParameterLocation.QUERY):
            name = check_identifier(param.name, f"{param.location.value} parameter")
        else:
            name = to_identifier(param.name)

        expr = map_schema(param.schema)
        default = self.resolver.deref(param.schema).default
        has_default = default is not None and not param.required
        if not param.required and not has_default:
            expr = optional(expr)

        return Argument(
            name=name,
            source_name=param.name,
            location=param.location,
            type=expr,
            parser=self.parser_for(param),
            required=param.required,
            default=default if has_default else None,
            description=param.description,
        )

    def build(self, operation: Operation) -> Route:
        """Route IR for one operation; raises GenerationError with context."""
        try:
            return self._build(operation)
        except GenerationError as exc:
            raise exc.locate(
                path=operation.path,
                method=operation.method,
                operation_id=operation.operation_id,
            )

    def _build(self, operation: Operation) -> Route:
        name = check_identifier(operation.operation_id, "operationId")
        template = path_template.parse(operation.path)

        params = path_template.bind(operation.path, operation.parameters)
        for location in _DECLARATION_ORDER:
            params.extend(operation.parameters_in(location))

        arguments = [self.argument(p) for p in params]
        seen: dict[str, Argument] = {}
        for arg in arguments:
            if arg.name in seen:
                other = seen[arg.name]
                raise InvalidIdentifier(
                    f"argument name {arg.name!r} is used by {other.location.value} parameter "
                    f"{other.source_name!r} and {arg.location.value} parameter {arg.source_name!r}"
                )
            seen[arg.name] = arg

        returns = map_schema(operation.response) if operation.response is not None else None

        handler = HandlerMethod(
            name=name,
            arguments=tuple(arguments),
            returns=returns,
            summary=operation.summary,
            description=operation.description,
            deprecated=operation.deprecated,
        )
        logger.debug(
            "%s %s -> %s(%s)",
            operation.method.upper(), operation.path, name,
            ", ".join(a.name for a in arguments),
        )
        return Route(
            method=operation.method.lower(),
            path=operation.path,
            route_path=template.rewrite(),
            handler=handler,
        )

    def emit(self, method: str, path: str, operation: Operation) -> str:
        """Source fragment (adapter + registration call) for one operation."""
        if (method.lower(), path) != (operation.method.lower(), operation.path):
            operation = dataclasses.replace(operation, method=method.lower(), path=path)
        return render_route(self.build(operation), self.options)
