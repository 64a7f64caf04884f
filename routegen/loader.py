"""Load an OpenAPI document and build the read-only Document model.

JSON files are read with json, everything else with yaml.safe_load.
Paths and methods keep their document order.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Mapping

import yaml

from .errors import DocumentError, GenerationError, InvalidIdentifier, UnsupportedConstruct
from .model import Components, Document, Operation, PathItem
from .naming import fallback_operation_id
from .schema_parser import SchemaResolver, get_response_schema, parse_parameters

logger = logging.getLogger(__name__)

HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")


def load_spec(path: Path | str) -> dict[str, Any]:
    """Read a JSON or YAML document from disk."""
    spec_file = Path(path)
    try:
        with open(spec_file, encoding="utf-8") as f:
            if spec_file.suffix.lower() == ".json":
                spec = json.load(f)
            else:
                spec = yaml.safe_load(f)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise DocumentError(f"{spec_file}: cannot parse document: {exc}") from exc
    if not isinstance(spec, dict):
        raise DocumentError(f"{spec_file}: top level must be a mapping")
    return spec


def get_paths(spec: Mapping[str, Any]) -> Mapping[str, Any]:
    """Extract paths from the document."""
    paths = spec.get("paths") or {}
    if not isinstance(paths, Mapping):
        raise DocumentError("'paths' must be a mapping")
    return paths


def _check_version(spec: Mapping[str, Any]) -> None:
    if "swagger" in spec:
        raise UnsupportedConstruct(f"Swagger {spec['swagger']} documents are not supported; convert to OpenAPI 3")
    version = spec.get("openapi")
    if version is None:
        logger.warning("document has no 'openapi' version; assuming 3.x")
    elif not str(version).startswith("3."):
        raise UnsupportedConstruct(f"OpenAPI version {version!r} is not supported")


def _operations(path: str, item: Mapping[str, Any]) -> list[tuple[str, Mapping[str, Any]]]:
    """(method, operation node) pairs in document order, methods lower-cased."""
    found: dict[str, Mapping[str, Any]] = {}
    for key, node in item.items():
        method = str(key).lower()
        if method not in HTTP_METHODS:
            continue
        if method in found:
            raise DocumentError(f"method {method.upper()} is declared twice", path=path)
        if not isinstance(node, Mapping):
            raise DocumentError("operation must be a mapping", path=path, method=method)
        found[method] = node
    return list(found.items())


def _operation(
    resolver: SchemaResolver,
    path: str,
    method: str,
    node: Mapping[str, Any],
    path_parameters: list[Any],
) -> Operation:
    raw_id = node.get("operationId")
    generated = raw_id is None
    if generated:
        operation_id = fallback_operation_id(method, path)
        logger.info("%s %s has no operationId; using %r", method.upper(), path, operation_id)
    elif not isinstance(raw_id, str):
        raise InvalidIdentifier(f"operationId {raw_id!r} must be a string", path=path, method=method)
    else:
        operation_id = raw_id

    try:
        parameters = parse_parameters(resolver, path_parameters, node.get("parameters") or [])
        try:
            response = get_response_schema(resolver, node)
        except UnsupportedConstruct as exc:
            logger.warning("%s %s: response type falls back to Any (%s)", method.upper(), path, exc.message)
            response = None
    except GenerationError as exc:
        raise exc.locate(path=path, method=method, operation_id=operation_id)

    return Operation(
        method=method,
        path=path,
        operation_id=operation_id,
        parameters=parameters,
        summary=node.get("summary") or "",
        description=node.get("description") or "",
        deprecated=bool(node.get("deprecated", False)),
        tags=tuple(str(t) for t in node.get("tags") or ()),
        response=response,
        generated_id=generated,
    )


def parse_document(spec: Mapping[str, Any]) -> tuple[Document, SchemaResolver]:
    """Build the Document model and the resolver bound to its components."""
    _check_version(spec)
    info = spec.get("info") or {}
    components = Components.from_node(spec.get("components"))
    resolver = SchemaResolver(components)

    items = []
    for path, item in get_paths(spec).items():
        path = str(path)
        if not isinstance(item, Mapping):
            raise DocumentError("path item must be a mapping", path=path)
        if "$ref" in item:
            raise UnsupportedConstruct("path item $ref is not supported", path=path)
        path_parameters = item.get("parameters") or []
        operations = tuple(
            _operation(resolver, path, method, node, path_parameters)
            for method, node in _operations(path, item)
        )
        items.append(PathItem(path=path, operations=operations))

    document = Document(
        title=str(info.get("title") or ""),
        version=str(info.get("version") or ""),
        paths=tuple(items),
        components=components,
    )
    logger.debug(
        "Loaded %d paths, %d operations, %d component schemas",
        len(document.paths), len(document.operations()), len(components.schemas),
    )
    return document, resolver
