"""Python spelling of the IR.

Turns type expressions into annotations, parser specs into runtime
factory calls and handler/route IR into the small view objects the
templates print. Inline records are hoisted into named dataclasses here,
named after where they were found (PlanResponse, LegLegGeometry, ...).
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from typing import Any, Iterable

from .errors import InvalidIdentifier
from .ir import Argument, HandlerMethod, ParserSpec, Route
from .model import ParameterLocation
from .naming import join_class_name, to_class_name, to_identifier
from .options import GeneratorOptions
from .type_mapper import (
    AliasDecl,
    AnyValue,
    Declaration,
    DictOf,
    ListOf,
    LiteralSet,
    NamedType,
    Nullable,
    Primitive,
    Record,
    TypeExpr,
    optional,
    references,
)


def py_literal(value: Any) -> str:
    """Python source for a JSON-like value."""
    if value is None or isinstance(value, bool):
        return repr(value)
    if isinstance(value, str):
        return json.dumps(value)
    if isinstance(value, int):
        return repr(value)
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return f'float("{value!r}")'
        return repr(value)
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(py_literal(v) for v in value) + "]"
    if isinstance(value, dict):
        return "{" + ", ".join(f"{py_literal(str(k))}: {py_literal(v)}" for k, v in value.items()) + "}"
    raise TypeError(f"cannot render {value!r} as a literal")


def first_paragraph(text: str) -> str:
    return text.strip().split("\n\n")[0].strip()


def first_line(text: str) -> str:
    stripped = text.strip()
    return stripped.splitlines()[0].strip() if stripped else ""


def allowed_values(expr: TypeExpr) -> str:
    """Value list for a float enum, which is annotated as plain ``float``."""
    if isinstance(expr, Nullable):
        expr = expr.inner
    if isinstance(expr, LiteralSet) and expr.base == "float":
        return "one of " + ", ".join(py_literal(v) for v in expr.values)
    return ""


def docstring(text: str, indent: int) -> str:
    """Triple-quoted docstring; continuation lines carry the indent."""
    text = text.strip().replace("\\", "\\\\").replace('"""', '\\"\\"\\"')
    if text.endswith('"'):
        text = text[:-1] + '\\"'
    lines = text.splitlines()
    if len(lines) <= 1:
        return f'"""{text}"""'
    pad = " " * indent
    body = "\n".join(f"{pad}{line}".rstrip() for line in lines[1:])
    return f'"""{lines[0]}\n{body}\n{pad}"""'


@dataclass
class RecordView:
    name: str
    doc: str
    fields: list[str]
    kind: str = "record"


@dataclass
class AliasView:
    name: str
    value: str
    comment: str = ""
    kind: str = "alias"


@dataclass
class MethodView:
    name: str
    arguments: list[str]
    returns: str
    doc: str


@dataclass
class RouteView:
    method: str
    path: str
    adapter: str
    handler: str
    extractions: list[str] = field(default_factory=list)


# Names a component class may not take in the generated module.
_BUILTIN_NAMES = frozenset({"None", "True", "False", "str", "int", "float", "bool", "list", "dict"})


class PythonRenderer:
    """Renders IR for one generated module.

    Keeps the class names claimed so far so hoisted inline records never
    collide with components or with each other.
    """

    def __init__(self, options: GeneratorOptions, component_names: Iterable[str] = ()) -> None:
        self.options = options
        self.rt = options.runtime_alias
        self.class_names: dict[str, str] = {}
        self._taken = set(options.reserved_names) | _BUILTIN_NAMES
        self._pending: list[tuple[str, Record]] = []

        for name in component_names:
            class_name = to_class_name(name)
            if class_name in _BUILTIN_NAMES:
                raise InvalidIdentifier(
                    f"component {name!r} maps to class name {class_name!r}, which shadows a builtin"
                )
            if class_name in self._taken:
                raise InvalidIdentifier(
                    f"component {name!r} maps to class name {class_name!r}, which is already taken"
                )
            self._taken.add(class_name)
            self.class_names[name] = class_name

    def _claim(self, hint: str) -> str:
        base = join_class_name(hint)
        name, counter = base, 2
        while name in self._taken:
            name = f"{base}{counter}"
            counter += 1
        self._taken.add(name)
        return name

    # -- types --------------------------------------------------------------

    def annotation(self, expr: TypeExpr, hint: str) -> str:
        if isinstance(expr, Primitive):
            return expr.name
        if isinstance(expr, LiteralSet):
            # Literal[] admits no floats
            if expr.base == "float":
                return "float"
            return f"Literal[{', '.join(py_literal(v) for v in expr.values)}]"
        if isinstance(expr, ListOf):
            return f"list[{self.annotation(expr.item, hint + 'Item')}]"
        if isinstance(expr, DictOf):
            return f"dict[str, {self.annotation(expr.value, hint + 'Value')}]"
        if isinstance(expr, AnyValue):
            return "Any"
        if isinstance(expr, NamedType):
            return self.class_names.get(expr.name) or to_class_name(expr.name)
        if isinstance(expr, Nullable):
            inner = self.annotation(expr.inner, hint)
            return inner if inner == "Any" else f"{inner} | None"
        if isinstance(expr, Record):
            name = self._claim(hint)
            self._pending.append((name, expr))
            return name
        raise TypeError(f"unknown type expression {expr!r}")

    def record(self, name: str, record: Record) -> RecordView:
        required: list[str] = []
        optional_fields: list[str] = []
        used: set[str] = set()

        for f in record.fields:
            attr = to_identifier(f.name)
            if attr in self.options.reserved_names:
                attr += "_"
            while attr in used:
                attr += "_"
            used.add(attr)

            metadata = f"metadata={{\"name\": {py_literal(f.name)}}}" if attr != f.name else ""
            hint = f"{name} {f.name}"

            if f.required:
                line = f"{attr}: {self.annotation(f.type, hint)}"
                if metadata:
                    line += f" = field({metadata})"
                required.append(self._note(line, f.type))
                continue

            if f.default is None:
                line = f"{attr}: {self.annotation(optional(f.type), hint)}"
                line += f" = field(default=None, {metadata})" if metadata else " = None"
            elif isinstance(f.default, (list, dict)):
                args = ", ".join(a for a in (f"default_factory=lambda: {py_literal(f.default)}", metadata) if a)
                line = f"{attr}: {self.annotation(f.type, hint)} = field({args})"
            else:
                line = f"{attr}: {self.annotation(f.type, hint)}"
                if metadata:
                    line += f" = field(default={py_literal(f.default)}, {metadata})"
                else:
                    line += f" = {py_literal(f.default)}"
            optional_fields.append(self._note(line, f.type))

        doc = docstring(record.description, 4) if record.description.strip() else ""
        return RecordView(name=name, doc=doc, fields=required + optional_fields)

    @staticmethod
    def _note(line: str, expr: TypeExpr) -> str:
        values = allowed_values(expr)
        return f"{line}  # {values}" if values else line

    def declaration(self, decl: Declaration) -> RecordView | AliasView:
        name = self.class_names.get(decl.name) or to_class_name(decl.name)
        if isinstance(decl, AliasDecl):
            value = self.annotation(decl.type, name)
            if references(decl.type):
                value = json.dumps(value)
            comment = "; ".join(c for c in (first_line(decl.description), allowed_values(decl.type)) if c)
            return AliasView(name=name, value=value, comment=comment)
        return self.record(name, decl.record)

    def hoisted(self) -> list[RecordView]:
        """Dataclasses for every inline record met so far (including nested ones)."""
        views = []
        while self._pending:
            name, record = self._pending.pop(0)
            views.append(self.record(name, record))
        return views

    # -- handlers and routes --------------------------------------------------

    def method(self, handler: HandlerMethod) -> MethodView:
        arguments = [
            f"{arg.name}: {self.annotation(arg.type, f'{handler.name} {arg.name}')}"
            for arg in handler.arguments
        ]
        if handler.returns is None:
            returns = "Any"
        else:
            returns = self.annotation(handler.returns, f"{handler.name} Response")
        return MethodView(
            name=handler.name,
            arguments=arguments,
            returns=returns,
            doc=self._method_doc(handler),
        )

    def _method_doc(self, handler: HandlerMethod) -> str:
        parts = []
        summary = handler.summary.strip() or first_paragraph(handler.description)
        if summary:
            parts.append(summary)
        if handler.deprecated:
            parts.append("Deprecated.")
        described = [a for a in handler.arguments if first_line(a.description)]
        if described:
            lines = ["Args:"] + [f"    {a.name}: {first_line(a.description)}" for a in described]
            parts.append("\n".join(lines))
        if not parts:
            return ""
        return docstring("\n\n".join(parts), 8)

    def parser(self, spec: ParserSpec) -> str:
        args = [
            self.parser(a) if isinstance(a, ParserSpec) else py_literal(a)
            for a in spec.args
        ]
        args.extend(f"{key}={py_literal(value)}" for key, value in spec.options)
        return f"{self.rt}.{spec.factory}({', '.join(args)})"

    def extraction(self, arg: Argument) -> str:
        """Typed parse expression for one handler argument."""
        call = f"{self.rt}.{arg.location.value}(request, {py_literal(arg.source_name)}, {self.parser(arg.parser)}"
        if arg.location is ParameterLocation.PATH:
            return call + ")"
        if arg.required:
            return call + ", required=True)"
        if arg.default is not None:
            return call + f", default={py_literal(arg.default)})"
        return call + ")"

    def route(self, route: Route) -> RouteView:
        return RouteView(
            method=route.method,
            path=py_literal(route.route_path),
            adapter=f"_handle_{route.handler.name}",
            handler=route.handler.name,
            extractions=[self.extraction(arg) for arg in route.handler.arguments],
        )
