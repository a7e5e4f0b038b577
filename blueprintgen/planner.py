"""
Blueprintgen Planner - Ordered artifact list for an enriched configuration

The planner decides every output path and rendering context up front.
Naming conflicts are detected here, before anything is rendered or written.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Any, Iterator

from blueprintgen.artifacts import Artifact, ArtifactKind, EnvVar, Wiring
from blueprintgen.backends import BASE_REQUIREMENTS, DB_DIR, BackendStrategy, get_strategy
from blueprintgen.enrich import is_enriched
from blueprintgen.errors import BlueprintError, NamingConflictError
from blueprintgen.features import auth_feature, payments_feature
from blueprintgen.ops import operational_artifacts
from blueprintgen.render import lower, title
from blueprintgen.spec import Configuration, Model

logger = logging.getLogger(__name__)

GO_VERSION = "1.21"

GO_KEYWORDS = {
    "break", "case", "chan", "const", "continue", "default", "defer", "else",
    "fallthrough", "for", "func", "go", "goto", "if", "import", "interface",
    "map", "package", "range", "return", "select", "struct", "switch", "type", "var",
}

GO_PREDECLARED = {
    "any", "append", "bool", "byte", "cap", "close", "complex", "copy", "delete",
    "error", "false", "float32", "float64", "int", "int64", "iota", "len", "make",
    "new", "nil", "panic", "print", "println", "real", "recover", "rune", "string",
    "true", "uint", "uintptr",
}

# Package names imported by main.go plus the locals it declares.
ENTRYPOINT_NAMES = {
    "api", "auth", "authhandler", "base", "config", "context", "ctx", "db", "docs",
    "domain", "err", "gin", "godotenv", "http", "log", "main", "os",
    "payments", "port", "router", "verifier",
}

RESERVED_PACKAGES = GO_KEYWORDS | GO_PREDECLARED | ENTRYPOINT_NAMES

# Trailing _GOOS, _GOARCH or _test segments make the go tool treat a file as
# build-constrained or test-only.
GO_FILE_SUFFIXES = {
    "test",
    "aix", "android", "darwin", "dragonfly", "freebsd", "hurd", "illumos", "ios",
    "js", "linux", "nacl", "netbsd", "openbsd", "plan9", "solaris", "wasip1",
    "windows", "zos",
    "386", "amd64", "amd64p32", "arm", "arm64", "arm64be", "armbe", "loong64",
    "mips", "mips64", "mips64le", "mips64p32", "mips64p32le", "mipsle", "ppc",
    "ppc64", "ppc64le", "riscv", "riscv64", "s390", "s390x", "sparc", "sparc64",
    "wasm",
}


# ═══════════════════════════════════════════════════════════════════════════
# PLAN
# ═══════════════════════════════════════════════════════════════════════════


@dataclass
class Plan:
    """Ordered artifacts of one generation run."""

    config: Configuration
    strategy: BackendStrategy
    artifacts: list[Artifact]

    def __iter__(self) -> Iterator[Artifact]:
        return iter(self.artifacts)

    def __len__(self) -> int:
        return len(self.artifacts)

    @property
    def files(self) -> list[Artifact]:
        return [a for a in self.artifacts if not a.is_directory]

    @property
    def directories(self) -> list[Artifact]:
        return [a for a in self.artifacts if a.is_directory]

    def paths(self) -> list[str]:
        return [a.path for a in self.artifacts]

    def get(self, path: str) -> Artifact | None:
        return next((a for a in self.artifacts if a.path == path), None)

    def by_kind(self, kind: ArtifactKind) -> list[Artifact]:
        return [a for a in self.artifacts if a.kind == kind]

    def for_model(self, name: str) -> list[Artifact]:
        return [a for a in self.artifacts if a.model == name]

    @property
    def entrypoint(self) -> Artifact:
        return self.by_kind(ArtifactKind.ENTRYPOINT)[0]


# ═══════════════════════════════════════════════════════════════════════════
# PLANNER
# ═══════════════════════════════════════════════════════════════════════════


class ArtifactPlanner:
    """
    Plans the artifacts for an enriched configuration.

    Order: directories, manifest and lockfile, the base adapter, per-model
    files, feature files, the entrypoint (after everything it wires), then
    the operational files.
    """

    def __init__(self, config: Configuration):
        if not is_enriched(config):
            raise BlueprintError("configuration must be enriched before planning")
        self.config = config
        self.strategy = get_strategy(config.database.type)
        self.auth = auth_feature(config, self.strategy)
        self.payments = payments_feature(config, self.strategy)
        # Route-group argument for protected routes; empty without auth
        self.guard = self.auth.wiring().guard if self.auth else ""

    def plan(self) -> Plan:
        config = self.config
        self._check_identifiers()

        model_contexts = [self._model_context(m) for m in config.models]

        artifacts: list[Artifact] = []
        artifacts.extend(self._directories())
        artifacts.extend(self._manifest())
        artifacts.append(self.strategy.base_artifact(config))
        for model, context in zip(config.models, model_contexts):
            artifacts.extend(self._model_artifacts(model, context))
        if self.auth:
            artifacts.extend(self.auth.artifacts())
        if self.payments:
            artifacts.extend(self.payments.artifacts())
        artifacts.append(self._entrypoint(model_contexts))
        artifacts.extend(
            operational_artifacts(config, self.strategy, self._env_vars(), model_contexts)
        )

        self._check_paths(artifacts)
        logger.info(
            "Planned %d artifacts for %s (%s, %d models)",
            len(artifacts), config.project_name, config.database.type.value, len(config.models),
        )
        return Plan(config=config, strategy=self.strategy, artifacts=artifacts)

    # ───────────────────────────────────────────────────────────────────────
    # Artifact groups
    # ───────────────────────────────────────────────────────────────────────

    def _directories(self) -> list[Artifact]:
        dirs = [".", "cmd/api", "internal/domain", DB_DIR, "docs"]
        dirs += [f"internal/handlers/{lower(m.name)}" for m in self.config.models]
        for feature in (self.auth, self.payments):
            if feature:
                dirs += feature.directories
        return [Artifact(ArtifactKind.DIRECTORY, path, mode=0o755) for path in dirs]

    def _manifest(self) -> list[Artifact]:
        requirements = dict(BASE_REQUIREMENTS)
        requirements.update(self.strategy.requirements)
        for feature in (self.auth, self.payments):
            if feature:
                requirements.update(feature.requirements)

        return [
            Artifact(
                ArtifactKind.MANIFEST,
                "go.mod",
                template="go.mod.j2",
                context={
                    "project_name": self.config.project_name,
                    "go_version": GO_VERSION,
                    "requirements": sorted(requirements.items()),
                },
            ),
            # go mod tidy fills it in
            Artifact(ArtifactKind.LOCKFILE, "go.sum", content=""),
        ]

    def _model_context(self, model: Model) -> dict[str, Any]:
        context = self.strategy.model_context(self.config, model)
        context["guard"] = self.guard if model.protected else ""
        if model.protected and not self.auth:
            logger.warning("Model %r is protected but auth is disabled; routes stay open", model.name)
        return context

    def _model_artifacts(self, model: Model, context: dict[str, Any]) -> list[Artifact]:
        package = context["package"]
        return [
            Artifact(
                ArtifactKind.DOMAIN,
                f"internal/domain/{package}.go",
                template="domain/model.go.j2",
                context=context,
                model=model.name,
            ),
            self.strategy.repository_artifact(self.config, model),
            Artifact(
                ArtifactKind.HANDLER,
                f"internal/handlers/{package}/handler.go",
                template="handlers/handler.go.j2",
                context=context,
                model=model.name,
            ),
            Artifact(
                ArtifactKind.HANDLER_TEST,
                f"internal/handlers/{package}/handler_test.go",
                template="handlers/handler_test.go.j2",
                context=context,
                model=model.name,
            ),
        ]

    def _wirings(self) -> list[Wiring]:
        wirings = []
        if self.auth:
            wirings.append(self.auth.wiring())
        if self.payments:
            wirings.append(self.payments.wiring(self.guard))
        return wirings

    def _entrypoint(self, model_contexts: list[dict[str, Any]]) -> Artifact:
        project = self.config.project_name
        wirings = self._wirings()

        local_imports = [f'_ "{project}/docs"', f'"{project}/internal/infrastructure/db"']
        for wiring in wirings:
            local_imports.extend(wiring.imports)
        local_imports.extend(
            f'"{project}/internal/handlers/{ctx["package"]}"' for ctx in model_contexts
        )

        return Artifact(
            ArtifactKind.ENTRYPOINT,
            "cmd/api/main.go",
            template="main/main.go.j2",
            context={
                "project_name": project,
                "std_imports": ['"context"', '"log"', '"net/http"', '"os"'],
                "third_party_imports": [
                    '"github.com/gin-gonic/gin"',
                    '"github.com/joho/godotenv"',
                    'swaggerFiles "github.com/swaggo/files"',
                    'ginSwagger "github.com/swaggo/gin-swagger"',
                ],
                "local_imports": sorted(local_imports, key=lambda i: i.split('"')[1]),
                "constructor": self.strategy.constructor(self.config),
                "models": model_contexts,
                "setup_blocks": [w.setup for w in wirings if w.setup is not None],
                "default_limit": self.config.pagination.default_limit,
            },
        )

    def _env_vars(self) -> list[EnvVar]:
        env_vars = [EnvVar("PORT", "8080", "HTTP listen port")]
        env_vars += self.strategy.env_vars(self.config)
        for feature in (self.auth, self.payments):
            if feature:
                env_vars += feature.env_vars()
        return env_vars

    # ───────────────────────────────────────────────────────────────────────
    # Conflict checks
    # ───────────────────────────────────────────────────────────────────────

    def _check_identifiers(self) -> None:
        models = self.config.models

        for model in models:
            package = lower(model.name)
            if package in RESERVED_PACKAGES:
                raise NamingConflictError(
                    f"model {model.name!r} would generate package {package!r}, "
                    "which is reserved in the generated project",
                    [model.name],
                )
            suffix = package.rsplit("_", 1)[-1] if "_" in package else ""
            if suffix in GO_FILE_SUFFIXES:
                raise NamingConflictError(
                    f"model {model.name!r} ends in _{suffix}, which the go tool reads "
                    "as a test or build-constraint file suffix",
                    [model.name],
                )

        domain_names: list[tuple[str, str]] = []
        db_names: list[tuple[str, str]] = [
            (name, "database adapter") for name in self.strategy.reserved_identifiers()
        ]
        for feature in (self.auth, self.payments):
            if feature:
                domain_names += [(name, "feature types") for name in feature.domain_identifiers]
        for model in models:
            type_name = title(model.name)
            domain_names += [(type_name, model.name), (f"{type_name}Repository", model.name)]
            db_names += [(name, model.name) for name in self.strategy.model_identifiers(model)]

        for package, names in (("domain", domain_names), ("db", db_names)):
            owners: dict[str, str] = {}
            for ident, owner in names:
                if ident in owners and owners[ident] != owner:
                    raise NamingConflictError(
                        f"identifier {ident} in package {package} is generated by both "
                        f"{owners[ident]!r} and {owner!r}",
                        [owners[ident], owner],
                    )
                owners[ident] = owner

    def _check_paths(self, artifacts: list[Artifact]) -> None:
        counts = Counter(a.path.casefold() for a in artifacts)
        duplicates = sorted(path for path, count in counts.items() if count > 1)
        if duplicates:
            owners = sorted({a.model or a.kind.value for a in artifacts if a.path.casefold() in duplicates})
            raise NamingConflictError(
                f"artifacts collide on {', '.join(duplicates)} (from {', '.join(owners)})",
                owners,
            )


def plan(config: Configuration) -> Plan:
    """Plan the artifacts for an enriched configuration"""
    return ArtifactPlanner(config).plan()
