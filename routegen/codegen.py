"""Render templates and write generated output.

Takes the context from context_builder and produces one Python module:
header, type models, handler interface, registration function.
"""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

import jinja2

from .options import GeneratorOptions
from .render import PythonRenderer, first_line

if TYPE_CHECKING:
    from .ir import Route

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates"

# Two blank lines between top-level definitions
SECTION_BREAK = "\n\n\n"


@dataclass(frozen=True)
class GeneratedModule:
    models: str
    interface: str
    registration: str
    source: str


@functools.lru_cache(maxsize=None)
def environment() -> jinja2.Environment:
    return jinja2.Environment(
        loader=jinja2.FileSystemLoader(str(TEMPLATE_DIR)),
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
        undefined=jinja2.StrictUndefined,
    )


def _render(template: str, **context: Any) -> str:
    return environment().get_template(template).render(**context).strip("\n")


def _docstring_text(text: str) -> str:
    """One line that is safe inside a triple-quoted string."""
    return first_line(text).replace("\\", "\\\\").replace('"', "'")


def render_route(route: Route, options: GeneratorOptions) -> str:
    """Adapter function plus router registration call for one route."""
    view = PythonRenderer(options).route(route)
    return _render("route.py.j2", route=view, rt=options.runtime_alias)


def render_module(context: dict[str, Any]) -> GeneratedModule:
    """Render the whole module from a build_context() result."""
    options: GeneratorOptions = context["options"]
    title = _docstring_text(context["title"])
    version = _docstring_text(context["version"])
    renderer = PythonRenderer(options, [decl.name for decl in context["declarations"]])

    models = [renderer.declaration(decl) for decl in context["declarations"]]
    methods = [renderer.method(handler) for handler in context["methods"]]
    routes = [renderer.route(route) for route in context["routes"]]
    models.extend(renderer.hoisted())

    models_text = SECTION_BREAK.join(
        _render(f"{view.kind}.py.j2", model=view) for view in models
    )
    interface = _render(
        "interface.py.j2",
        name=options.interface_name,
        title=title,
        methods=methods,
    )
    registration = _render(
        "register.py.j2",
        name=options.register_name,
        interface=options.interface_name,
        title=title,
        rt=options.runtime_alias,
        routes=[_render("route.py.j2", route=view, rt=options.runtime_alias) for view in routes],
    )

    dataclass_names = []
    if any(view.kind == "record" for view in models):
        dataclass_names.append("dataclass")
    if "field(" in models_text:
        dataclass_names.append("field")
    typing_names = ["Any"]
    if "Literal[" in models_text or "Literal[" in interface:
        typing_names.append("Literal")
    typing_names.append("Protocol")
    if any(view.kind == "alias" for view in models):
        typing_names.append("TypeAlias")

    header = _render(
        "header.py.j2",
        title=title,
        version=version,
        runtime_module=options.runtime_module,
        rt=options.runtime_alias,
        dataclass_names=dataclass_names,
        typing_names=typing_names,
    )

    sections = [header, models_text, interface, registration]
    source = SECTION_BREAK.join(s for s in sections if s) + "\n"
    return GeneratedModule(
        models=models_text,
        interface=interface,
        registration=registration,
        source=source,
    )


def generate(context: dict[str, Any], output: Path | None = None) -> GeneratedModule:
    """Render the module; write it to ``output`` when given."""
    module = render_module(context)
    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(module.source, encoding="utf-8")
        logger.info("Generated %s (%d routes)", output, context["route_count"])
    return module
