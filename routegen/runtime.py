"""Support code imported by generated route modules.

Generated adapters call ``path``/``query``/``header``/``cookie`` with a
parser built from the factories below (``string()``, ``integer(minimum=0)``,
``one_of("asc", "desc")``, ``array(one_of(...), explode=False)``). Input
that does not fit surfaces as BadRequest, never as a bare ValueError.

Array wire format: with ``explode=False`` an array travels as one
comma-joined value (``WALK,TRANSIT``); ``join_array`` produces it and
``array(...)`` parses it back item by item, preserving order.
"""

from __future__ import annotations

import abc
import copy
import math
import re
from typing import Any, Callable, Iterable, Mapping, Protocol, TypeVar

T = TypeVar("T")

Handler = Callable[[Any], Any]

_INTEGER = re.compile(r"[+-]?\d+")
_TRUE = {"true", "1"}
_FALSE = {"false", "0"}


class BadRequest(ValueError):
    """A request parameter is missing or malformed (HTTP 400)."""

    status_code = 400

    def __init__(self, parameter: str, location: str, reason: str, value: Any = None) -> None:
        super().__init__(f"{location} parameter {parameter!r}: {reason}")
        self.parameter = parameter
        self.location = location
        self.reason = reason
        self.value = value

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "bad_request",
            "parameter": self.parameter,
            "location": self.location,
            "reason": self.reason,
        }


# ---------------------------------------------------------------------------
# Collaborator protocols
# ---------------------------------------------------------------------------

class Request(Protocol):
    """What adapters read from a request; Starlette requests fit as-is."""

    path_params: Mapping[str, Any]
    query_params: Mapping[str, Any]
    headers: Mapping[str, Any]
    cookies: Mapping[str, Any]


class Router(Protocol):
    def get(self, path: str, handler: Handler) -> Any: ...
    def put(self, path: str, handler: Handler) -> Any: ...
    def post(self, path: str, handler: Handler) -> Any: ...
    def delete(self, path: str, handler: Handler) -> Any: ...
    def options(self, path: str, handler: Handler) -> Any: ...
    def head(self, path: str, handler: Handler) -> Any: ...
    def patch(self, path: str, handler: Handler) -> Any: ...
    def trace(self, path: str, handler: Handler) -> Any: ...


class Executor(Protocol):
    """Anything with ``submit(fn, *args)``, e.g. concurrent.futures executors."""

    def submit(self, fn: Callable[..., T], /, *args: Any) -> Any: ...


class InlineExecutor:
    """Calls the handler right away on the calling thread."""

    def submit(self, fn: Callable[..., T], /, *args: Any) -> T:
        return fn(*args)


# ---------------------------------------------------------------------------
# Parsers
# ---------------------------------------------------------------------------

class Parser(abc.ABC):
    """Turns one raw string into a typed value or raises ValueError."""

    @abc.abstractmethod
    def __call__(self, raw: str) -> Any:
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class String(Parser):
    def __call__(self, raw: str) -> str:
        return raw


class Boolean(Parser):
    def __call__(self, raw: str) -> bool:
        lowered = raw.strip().lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
        raise ValueError(f"expected a boolean, got {raw!r}")


class Number(Parser):
    """Floating point value with optional bounds."""

    def __init__(
        self,
        minimum: float | None = None,
        maximum: float | None = None,
        exclusive_minimum: bool = False,
        exclusive_maximum: bool = False,
        multiple_of: float | None = None,
    ) -> None:
        self.minimum = minimum
        self.maximum = maximum
        self.exclusive_minimum = exclusive_minimum
        self.exclusive_maximum = exclusive_maximum
        self.multiple_of = multiple_of

    def convert(self, raw: str) -> float:
        try:
            value = float(raw)
        except ValueError:
            raise ValueError(f"expected a number, got {raw!r}") from None
        if not math.isfinite(value):
            raise ValueError(f"expected a finite number, got {raw!r}")
        return value

    def __call__(self, raw: str) -> Any:
        value = self.convert(raw)
        self.check(value)
        return value

    def check(self, value: float) -> None:
        if self.minimum is not None:
            if value < self.minimum or (self.exclusive_minimum and value == self.minimum):
                relation = ">" if self.exclusive_minimum else ">="
                raise ValueError(f"must be {relation} {self.minimum}, got {value}")
        if self.maximum is not None:
            if value > self.maximum or (self.exclusive_maximum and value == self.maximum):
                relation = "<" if self.exclusive_maximum else "<="
                raise ValueError(f"must be {relation} {self.maximum}, got {value}")
        if self.multiple_of is not None:
            if isinstance(value, int) and isinstance(self.multiple_of, int):
                off = value % self.multiple_of != 0
            else:
                quotient = value / self.multiple_of
                off = not math.isclose(quotient, round(quotient), rel_tol=0, abs_tol=1e-9)
            if off:
                raise ValueError(f"must be a multiple of {self.multiple_of}, got {value}")


class Integer(Number):
    def convert(self, raw: str) -> int:  # type: ignore[override]
        if not _INTEGER.fullmatch(raw.strip()):
            raise ValueError(f"expected an integer, got {raw!r}")
        return int(raw)


class OneOf(Parser):
    """Exactly one of a closed set of literal values."""

    def __init__(self, *values: Any) -> None:
        if not values:
            raise ValueError("one_of() needs at least one value")
        self.values = values

    def __call__(self, raw: str) -> Any:
        for value in self.values:
            if isinstance(value, str):
                if raw == value:
                    return value
                continue
            try:
                candidate = _coerce(raw, value)
            except ValueError:
                continue
            if candidate == value:
                return value
        allowed = ", ".join(format_value(v) for v in self.values)
        raise ValueError(f"expected one of {allowed}, got {raw!r}")

    def __repr__(self) -> str:
        return f"OneOf({', '.join(repr(v) for v in self.values)})"


def _coerce(raw: str, like: Any) -> Any:
    if isinstance(like, bool):
        return Boolean()(raw)
    if isinstance(like, int):
        return Integer().convert(raw)
    return Number().convert(raw)


class Array(Parser):
    """Sequence of items; one comma-joined value unless ``explode`` is set."""

    def __init__(
        self,
        item: Parser,
        explode: bool = False,
        unique_items: bool = False,
        min_items: int | None = None,
        max_items: int | None = None,
    ) -> None:
        self.item = item
        self.explode = explode
        self.unique_items = unique_items
        self.min_items = min_items
        self.max_items = max_items

    def split(self, raw: str) -> list[str]:
        if raw == "":
            return []
        parts = raw.split(",")
        if any(part == "" for part in parts):
            raise ValueError(f"empty item in {raw!r}")
        return parts

    def __call__(self, raw: str) -> list[Any]:
        return self.parse_items(self.split(raw))

    def parse_items(self, raws: Iterable[str]) -> list[Any]:
        values = []
        for position, raw in enumerate(raws):
            try:
                values.append(self.item(raw))
            except ValueError as exc:
                raise ValueError(f"item {position}: {exc}") from None
        self.check(values)
        return values

    def check(self, values: list[Any]) -> None:
        if self.min_items is not None and len(values) < self.min_items:
            raise ValueError(f"needs at least {self.min_items} items, got {len(values)}")
        if self.max_items is not None and len(values) > self.max_items:
            raise ValueError(f"allows at most {self.max_items} items, got {len(values)}")
        if self.unique_items:
            seen: list[Any] = []
            for value in values:
                if value in seen:
                    raise ValueError(f"duplicate item {value!r}")
                seen.append(value)

    def __repr__(self) -> str:
        return f"Array({self.item!r}, explode={self.explode})"


def string() -> String:
    return String()


def boolean() -> Boolean:
    return Boolean()


def integer(**bounds: Any) -> Integer:
    return Integer(**bounds)


def number(**bounds: Any) -> Number:
    return Number(**bounds)


def one_of(*values: Any) -> OneOf:
    return OneOf(*values)


def array(item: Parser, *, explode: bool = False, **limits: Any) -> Array:
    return Array(item, explode=explode, **limits)


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------

def format_value(value: Any) -> str:
    """Wire spelling of one scalar."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def join_array(values: Iterable[Any]) -> str:
    """Comma-join array items for an explode=false parameter.

    Items that are empty or contain a comma cannot travel in this format.
    """
    parts = [format_value(v) for v in values]
    for part in parts:
        if part == "" or "," in part:
            raise ValueError(f"cannot comma-join item {part!r}")
    return ",".join(parts)


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------

def _first(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return value[0] if value else None
    return value


def _all(params: Mapping[str, Any], name: str) -> list[str]:
    getlist = getattr(params, "getlist", None)
    if getlist is not None:
        return list(getlist(name))
    value = params.get(name)
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _parse(parser: Parser, raw: str, name: str, location: str) -> Any:
    try:
        return parser(raw)
    except ValueError as exc:
        raise BadRequest(name, location, str(exc), raw) from exc


def _absent(name: str, location: str, required: bool, default: Any) -> Any:
    if required:
        raise BadRequest(name, location, "missing required parameter")
    return copy.deepcopy(default)


def path(request: Request, name: str, parser: Parser) -> Any:
    """Typed value of a path segment; path parameters are always required."""
    raw = request.path_params.get(name)
    if raw is None:
        raise BadRequest(name, "path", "missing path parameter")
    return _parse(parser, str(raw), name, "path")


def query(
    request: Request,
    name: str,
    parser: Parser,
    *,
    required: bool = False,
    default: Any = None,
) -> Any:
    """Typed value of a query parameter, or its default when absent."""
    params = request.query_params
    if isinstance(parser, Array) and parser.explode:
        raws = _all(params, name)
        if not raws:
            return _absent(name, "query", required, default)
        try:
            return parser.parse_items(raws)
        except ValueError as exc:
            raise BadRequest(name, "query", str(exc), raws) from exc

    raw = _first(params.get(name))
    if raw is None:
        return _absent(name, "query", required, default)
    return _parse(parser, raw, name, "query")


def header(
    request: Request,
    name: str,
    parser: Parser,
    *,
    required: bool = False,
    default: Any = None,
) -> Any:
    """Typed value of a header; names match case-insensitively."""
    headers = request.headers
    raw = _first(headers.get(name))
    if raw is None:
        lowered = name.lower()
        raw = next((_first(v) for k, v in headers.items() if k.lower() == lowered), None)
    if raw is None:
        return _absent(name, "header", required, default)
    return _parse(parser, raw, name, "header")


def cookie(
    request: Request,
    name: str,
    parser: Parser,
    *,
    required: bool = False,
    default: Any = None,
) -> Any:
    raw = _first(request.cookies.get(name))
    if raw is None:
        return _absent(name, "cookie", required, default)
    return _parse(parser, raw, name, "cookie")
