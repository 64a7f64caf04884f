"""Path template analysis.

A template such as ``/a/{id}/b/{x}`` is split into literal text and
placeholders. The order of first appearance is the order in which path
arguments are bound to the handler.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable

from .errors import PathParameterMismatch
from .model import Parameter, ParameterLocation

PLACEHOLDER = re.compile(r"\{([^{}]*)\}")


@dataclass(frozen=True)
class PathTemplate:
    """Alternating literal text and placeholder names.

    ``literals`` always has one more element than ``placeholders``:
    literals[0] {placeholders[0]} literals[1] ... literals[-1].
    """

    template: str
    literals: tuple[str, ...]
    placeholders: tuple[str, ...]

    @property
    def names(self) -> list[str]:
        """Unique placeholder names in order of first appearance."""
        return list(dict.fromkeys(self.placeholders))

    def format(self, pattern: str) -> str:
        """Re-insert every placeholder using pattern (e.g. ``":{}"``)."""
        out = [self.literals[0]]
        for name, literal in zip(self.placeholders, self.literals[1:]):
            out.append(pattern.format(name))
            out.append(literal)
        return "".join(out)

    def reconstruct(self) -> str:
        return self.format("{{{}}}")

    def rewrite(self) -> str:
        return self.format(":{}")


def parse(template: str) -> PathTemplate:
    literals: list[str] = []
    placeholders: list[str] = []
    position = 0
    for match in PLACEHOLDER.finditer(template):
        name = match.group(1)
        if not name:
            raise PathParameterMismatch("empty placeholder '{}'", path=template)
        literals.append(template[position:match.start()])
        placeholders.append(name)
        position = match.end()
    literals.append(template[position:])

    for literal in literals:
        if "{" in literal or "}" in literal:
            raise PathParameterMismatch("unbalanced or nested braces in path template", path=template)

    return PathTemplate(template, tuple(literals), tuple(placeholders))


def extract(template: str) -> list[str]:
    """Ordered placeholder names, first appearance wins."""
    return parse(template).names


def rewrite(template: str) -> str:
    """``/a/{id}`` -> ``/a/:id``; identity for templates without placeholders."""
    return parse(template).rewrite()


def bind(template: str, parameters: Iterable[Parameter]) -> list[Parameter]:
    """Path parameters in template order.

    The placeholder names and the declared path parameters must match
    1:1 by name; a placeholder repeated in the template binds to the same
    parameter every time.
    """
    names = extract(template)
    declared: dict[str, Parameter] = {}
    for param in parameters:
        if param.location is not ParameterLocation.PATH:
            continue
        previous = declared.get(param.name)
        if previous is not None and previous.schema != param.schema:
            raise PathParameterMismatch(
                f"path parameter {param.name!r} is declared twice with different schemas",
                path=template,
            )
        declared[param.name] = param

    missing = [n for n in names if n not in declared]
    unused = [n for n in declared if n not in names]
    if missing or unused:
        details = []
        if missing:
            details.append(f"placeholders without a path parameter: {', '.join(missing)}")
        if unused:
            details.append(f"path parameters without a placeholder: {', '.join(unused)}")
        raise PathParameterMismatch("; ".join(details), path=template)

    return [declared[name] for name in names]
