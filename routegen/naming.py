"""Python-safe names for generated code.

- operationIds and path/query parameter names are used verbatim and must
  already be valid identifiers
- header/cookie names and record fields are sanitized (X-Request-Id ->
  x_request_id, from -> from_)
- component names become class names (feed.scoped-id -> FeedScopedId)
- operations without an operationId get a name from their path:

  GET    /api/v1/plan        -> plan
  GET    /items/{id}         -> get_items
  POST   /items              -> create_items
  PUT    /items/{id}         -> update_items
  DELETE /items/{id}         -> delete_items
  GET    /                   -> root
"""

from __future__ import annotations

import keyword
import re

from .errors import InvalidIdentifier

# Verb prefix for operations that lack an operationId; GET has none
_METHOD_VERBS: dict[str, str] = {
    "get": "",
    "post": "create",
    "put": "update",
    "patch": "patch",
    "delete": "delete",
    "head": "head",
    "options": "options",
    "trace": "trace",
}

# Names the generated interface and adapters reserve for themselves
_RESERVED = {"self"}


def _camel_to_snake(name: str) -> str:
    """Convert camelCase or PascalCase to snake_case."""
    s1 = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name)
    return re.sub(r"([a-z\d])([A-Z])", r"\1_\2", s1).lower()


def _sanitize_segment(segment: str) -> str:
    """Sanitize a path segment for use in a Python identifier."""
    name = _camel_to_snake(segment)
    name = re.sub(r"[.\-\s]", "_", name)
    name = re.sub(r"[^a-z0-9_]", "", name)
    name = re.sub(r"_+", "_", name)
    return name.strip("_")


def _extract_path_parts(path: str) -> list[str]:
    """Literal path segments, placeholders dropped."""
    return [p for p in path.split("/") if p and "{" not in p]


def is_identifier(name: str) -> bool:
    return name.isidentifier() and not keyword.iskeyword(name) and name not in _RESERVED


def check_identifier(name: str, what: str) -> str:
    """Return name unchanged or raise InvalidIdentifier."""
    if not isinstance(name, str) or not is_identifier(name):
        raise InvalidIdentifier(f"{what} {name!r} is not a valid Python identifier")
    if name.startswith("__"):
        raise InvalidIdentifier(f"{what} {name!r} would clash with Python dunder names")
    return name


def to_identifier(name: str) -> str:
    """Closest valid identifier: unchanged when already valid."""
    if is_identifier(name):
        return name
    if keyword.iskeyword(name) or name in _RESERVED:
        return f"{name}_"
    cleaned = _sanitize_segment(name) or "value"
    if cleaned[0].isdigit():
        cleaned = f"_{cleaned}"
    if keyword.iskeyword(cleaned):
        cleaned = f"{cleaned}_"
    return cleaned


def to_class_name(name: str) -> str:
    """PascalCase class name; already-valid names pass through."""
    if is_identifier(name):
        return name
    words = [w for w in re.split(r"[^A-Za-z0-9]+", name) if w]
    cleaned = "".join(w[0].upper() + w[1:] for w in words) or "Model"
    if cleaned[0].isdigit():
        cleaned = f"_{cleaned}"
    return cleaned


def join_class_name(*parts: str) -> str:
    """Concatenate name parts into one PascalCase name (Leg + legGeometry -> LegLegGeometry)."""
    words = [w for part in parts for w in re.split(r"[^A-Za-z0-9]+", part) if w]
    return to_class_name("".join(w[0].upper() + w[1:] for w in words) or "Record")


def fallback_operation_id(method: str, path: str) -> str:
    """Derive a handler name from method + path for operations without an id."""
    method_lower = method.lower()
    parts = _extract_path_parts(path)
    resource = _sanitize_segment(parts[-1]) if parts else "root"
    resource = resource or "root"

    verb = _METHOD_VERBS.get(method_lower, method_lower)
    if method_lower == "get" and path.rstrip("/").endswith("}"):
        verb = "get"

    name = f"{verb}_{resource}" if verb else resource
    if name[0].isdigit():
        name = f"op_{name}"
    return to_identifier(name)
