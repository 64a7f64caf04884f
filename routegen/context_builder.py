"""Build the Jinja2 template context from a parsed OpenAPI document.

Walks paths and methods in document order, declares every component
schema, builds one handler method and one route per operation, and
enforces the document-wide rule that operationIds are unique.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from .codegen import GeneratedModule, render_module
from .errors import DuplicateOperationId
from .ir import HandlerMethod, Route
from .loader import parse_document
from .model import Operation
from .operation_emitter import OperationEmitter
from .options import GeneratorOptions
from .type_mapper import Declaration, declare

logger = logging.getLogger(__name__)


def _where(operation: Operation) -> str:
    where = f"{operation.method.upper()} {operation.path}"
    if operation.generated_id:
        where += " (derived from the path)"
    return where


def _check_unique(operation: Operation, seen: dict[str, Operation]) -> None:
    previous = seen.get(operation.operation_id)
    if previous is not None:
        raise DuplicateOperationId(
            f"operationId {operation.operation_id!r} is used by {_where(previous)} "
            f"and {_where(operation)}",
            path=operation.path,
            method=operation.method,
            operation_id=operation.operation_id,
        )
    seen[operation.operation_id] = operation


def build_context(spec: Mapping[str, Any], options: GeneratorOptions | None = None) -> dict[str, Any]:
    """Build the full template context from an OpenAPI document."""
    options = options or GeneratorOptions()
    document, resolver = parse_document(spec)

    declarations: list[Declaration] = [
        declare(name, schema) for name, schema in resolver.components_in_order()
    ]

    emitter = OperationEmitter(resolver, options)
    seen: dict[str, Operation] = {}
    methods: list[HandlerMethod] = []
    routes: list[Route] = []
    for operation in document.operations():
        _check_unique(operation, seen)
        route = emitter.build(operation)
        methods.append(route.handler)
        routes.append(route)

    logger.info(
        "%s: %d component types, %d operations",
        document.title or "document", len(declarations), len(routes),
    )
    return {
        "title": document.title,
        "version": document.version,
        "options": options,
        "declarations": declarations,
        "methods": methods,
        "routes": routes,
        "route_count": len(routes),
    }


def emit_document(spec: Mapping[str, Any], options: GeneratorOptions | None = None) -> GeneratedModule:
    """Interface, models and registration routine for a whole document."""
    return render_module(build_context(spec, options))
