"""
Blueprintgen Settings - Generator options

Options come from BLUEPRINTGEN_* environment variables; the CLI overrides
them with its flags.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping

from pydantic import BaseModel, field_validator

ENV_PREFIX = "BLUEPRINTGEN_"

_TRUE = {"1", "true", "yes", "on"}


class GeneratorSettings(BaseModel):
    """Options controlling a generation run"""

    output_dir: Path = Path(".")
    templates_dir: Path | None = None
    credentials_file: Path = Path("firebaseCredentials.json")
    strict_relations: bool = False
    overwrite: bool = False

    @field_validator("strict_relations", "overwrite", mode="before")
    @classmethod
    def parse_flag(cls, v: object) -> object:
        if isinstance(v, str):
            return v.strip().lower() in _TRUE
        return v

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides: object) -> "GeneratorSettings":
        """
        Build settings from the environment.

        Args:
            environ: Mapping to read instead of os.environ
            **overrides: Values that win over the environment; None is ignored

        Returns:
            GeneratorSettings
        """
        environ = os.environ if environ is None else environ
        values: dict[str, object] = {}
        for name in cls.model_fields:
            raw = environ.get(ENV_PREFIX + name.upper())
            if raw not in (None, ""):
                values[name] = raw
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls.model_validate(values)
