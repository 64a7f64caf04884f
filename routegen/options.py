"""Generator settings.

Defaults can be overridden from the environment (used by the CLI):

  ROUTEGEN_INTERFACE  name of the handler Protocol      (Service)
  ROUTEGEN_REGISTER   name of the registration function (register)
  ROUTEGEN_RUNTIME    module the generated code imports (routegen.runtime)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

from .naming import check_identifier

ENV_PREFIX = "ROUTEGEN_"


@dataclass(frozen=True)
class GeneratorOptions:
    interface_name: str = "Service"
    register_name: str = "register"
    runtime_module: str = "routegen.runtime"
    runtime_alias: str = "rt"

    def __post_init__(self) -> None:
        check_identifier(self.interface_name, "interface name")
        check_identifier(self.register_name, "register function name")
        check_identifier(self.runtime_alias, "runtime alias")
        for part in self.runtime_module.split("."):
            check_identifier(part, "runtime module")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides: str | None) -> GeneratorOptions:
        """Environment values, then explicit non-None overrides."""
        environ = os.environ if environ is None else environ
        values = {}
        for field_name, env_name in (
            ("interface_name", "INTERFACE"),
            ("register_name", "REGISTER"),
            ("runtime_module", "RUNTIME"),
        ):
            value = environ.get(ENV_PREFIX + env_name)
            if value:
                values[field_name] = value
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    @property
    def reserved_names(self) -> set[str]:
        """Module-level names the generated code defines or imports."""
        return {
            "annotations", "dataclass", "field", "Any", "Literal", "Protocol", "TypeAlias",
            self.interface_name, self.register_name, self.runtime_alias,
        }
