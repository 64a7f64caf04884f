"""Intermediate representation between analysis and rendering.

One HandlerMethod per interface method, one Route per registration.
Structure (ordering, parameter binding) is decided here, spelling is
decided by routegen.render.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .model import ParameterLocation
from .type_mapper import TypeExpr


@dataclass(frozen=True)
class ParserSpec:
    """Runtime parser factory call: ``rt.<factory>(*args, **options)``."""

    factory: str
    args: tuple[Any, ...] = ()
    options: tuple[tuple[str, Any], ...] = ()


@dataclass(frozen=True)
class Argument:
    name: str
    source_name: str
    location: ParameterLocation
    type: TypeExpr
    parser: ParserSpec
    required: bool
    default: Any = None
    description: str = ""


@dataclass(frozen=True)
class HandlerMethod:
    name: str
    arguments: tuple[Argument, ...]
    returns: TypeExpr | None
    summary: str = ""
    description: str = ""
    deprecated: bool = False


@dataclass(frozen=True)
class Route:
    method: str
    path: str
    route_path: str
    handler: HandlerMethod
