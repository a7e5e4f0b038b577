"""
Blueprintgen Artifacts - Planned output units

An Artifact is one output file or directory: where it goes, which template
produces it, and the context that template is rendered against.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from blueprintgen.render import Partial


class ArtifactKind(str, Enum):
    DIRECTORY = "directory"
    MANIFEST = "manifest"
    LOCKFILE = "lockfile"
    DATABASE_BASE = "database_base"
    DOMAIN = "domain"
    REPOSITORY = "repository"
    HANDLER = "handler"
    HANDLER_TEST = "handler_test"
    AUTH_MIDDLEWARE = "auth_middleware"
    AUTH_HANDLER = "auth_handler"
    AUTH_DOMAIN = "auth_domain"
    PAYMENTS_CONFIG = "payments_config"
    PAYMENTS_SERVICE = "payments_service"
    ENTRYPOINT = "entrypoint"
    OPERATIONAL = "operational"
    SCRIPT = "script"
    DOCS = "docs"


@dataclass
class Artifact:
    """One planned output."""

    kind: ArtifactKind
    path: str  # Relative to the project root, "/" separated
    template: str | None = None
    context: dict[str, Any] = field(default_factory=dict)
    content: str | None = None  # Literal content, used when there is no template
    mode: int = 0o644
    model: str | None = None  # Owning model, for error reporting

    @property
    def is_directory(self) -> bool:
        return self.kind == ArtifactKind.DIRECTORY

    def describe(self) -> str:
        suffix = f" [{self.model}]" if self.model else ""
        return f"{self.kind.value}: {self.path}{suffix}"


@dataclass
class EnvVar:
    """Environment variable documented in .env.example"""

    name: str
    value: str = ""
    comment: str | None = None


@dataclass
class Wiring:
    """How a feature plugs into cmd/api/main.go."""

    imports: list[str] = field(default_factory=list)
    setup: Partial | None = None
    guard: str = ""  # Extra route-group argument for protected routes
