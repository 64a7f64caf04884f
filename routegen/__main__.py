"""Entry point: python -m routegen DOCUMENT [-o OUTPUT]

Reads an OpenAPI 3.x document (JSON or YAML) and writes one Python module
with the type models, the handler Protocol and the route registration
function. Without --output the module goes to stdout.
"""

from __future__ import annotations

import logging
from pathlib import Path

import click

from .codegen import generate
from .context_builder import build_context
from .errors import GenerationError
from .loader import load_spec
from .options import GeneratorOptions

logger = logging.getLogger(__name__)


def configure_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


@click.command()
@click.argument("document", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-o", "--output", type=click.Path(dir_okay=False, path_type=Path), help="Write the module here instead of stdout.")
@click.option("--interface", default=None, help="Name of the handler Protocol (env: ROUTEGEN_INTERFACE).")
@click.option("--register", default=None, help="Name of the registration function (env: ROUTEGEN_REGISTER).")
@click.option("--runtime", default=None, help="Module the generated code imports (env: ROUTEGEN_RUNTIME).")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging.")
def main(
    document: Path,
    output: Path | None,
    interface: str | None,
    register: str | None,
    runtime: str | None,
    verbose: bool,
) -> None:
    """Generate typed route glue from an OpenAPI DOCUMENT."""
    configure_logging(logging.DEBUG if verbose else logging.WARNING)
    try:
        options = GeneratorOptions.from_env(
            interface_name=interface,
            register_name=register,
            runtime_module=runtime,
        )
        context = build_context(load_spec(document), options)
        module = generate(context, output)
    except GenerationError as exc:
        raise click.ClickException(str(exc)) from exc

    if output is None:
        click.echo(module.source, nl=False)
    else:
        click.echo(f"Generated {output} ({context['route_count']} routes)", err=True)


if __name__ == "__main__":
    main()
