"""
Blueprintgen Ops - Operational files of the generated project

Container files, process and make targets, the environment template, the
architecture notes, the swag placeholder, and the setup / smoke-test /
docs shell scripts.
"""

from __future__ import annotations

import json
from typing import Any

import yaml

from blueprintgen.artifacts import Artifact, ArtifactKind, EnvVar
from blueprintgen.backends import BackendStrategy
from blueprintgen.render import Partial
from blueprintgen.spec import AuthProvider, Configuration, DatabaseKind, FieldType, Model

SCRIPT_MODE = 0o755

GITIGNORE = """# Binaries
bin/
*.exe

# Environment
.env
firebaseCredentials.json

# Editors
.idea/
.vscode/
*.swp

# OS
.DS_Store

# Coverage
coverage.out
"""

SAMPLE_VALUES: dict[FieldType, Any] = {
    FieldType.INTEGER: 1,
    FieldType.FLOAT: 9.99,
    FieldType.BOOLEAN: True,
    FieldType.TIMESTAMP: "2024-01-01T00:00:00Z",
}

TOKEN_PARTIALS: dict[AuthProvider | None, str] = {
    None: "ops/token_none.sh.j2",
    AuthProvider.FIREBASE: "ops/token_firebase.sh.j2",
    AuthProvider.JWT: "ops/token_jwt.sh.j2",
}


def sample_payload(model: Model) -> dict[str, Any]:
    """JSON body the smoke test posts to a model's create route"""
    payload: dict[str, Any] = {}
    for name, ftype in sorted(model.fields.items()):
        payload[name] = SAMPLE_VALUES.get(ftype, f"sample {name}")
    for name, relation in sorted(model.relations.items()):
        payload[name] = [] if relation.is_collection else ""
    return payload


def compose_file(config: Configuration, strategy: BackendStrategy) -> str:
    """docker-compose.yml for the API plus its database service"""
    services = strategy.compose_services(config)

    app: dict[str, Any] = {
        "build": ".",
        "ports": ["8080:8080"],
        "env_file": [".env"],
        "environment": ["PORT=8080"],
    }
    if config.database.type == DatabaseKind.POSTGRESQL:
        app["environment"].append(
            f"DATABASE_URL=postgres://postgres:postgres@db:5432/{config.project_name}?sslmode=disable"
        )
    elif config.database.type == DatabaseKind.MONGODB:
        app["environment"].append("DATABASE_URL=mongodb://mongo:27017")
    if services:
        app["depends_on"] = list(services)

    compose: dict[str, Any] = {"services": {"api": app, **services}}
    volumes = {
        volume.split(":", 1)[0]: {}
        for service in services.values()
        for volume in service.get("volumes", [])
    }
    if volumes:
        compose["volumes"] = volumes

    return yaml.dump(compose, default_flow_style=False, sort_keys=False)


def env_example(env_vars: list[EnvVar]) -> str:
    lines = ["# Environment Variables", "# Copy to .env and fill in values", ""]
    seen = set()
    for var in env_vars:
        if var.name in seen:
            continue
        seen.add(var.name)
        if var.comment:
            lines.append(f"# {var.comment}")
        lines.append(f"{var.name}={var.value}")
    return "\n".join(lines) + "\n"


def operational_artifacts(
    config: Configuration,
    strategy: BackendStrategy,
    env_vars: list[EnvVar],
    models: list[dict[str, Any]],
) -> list[Artifact]:
    """
    Plan the operational files.

    Args:
        config: Enriched configuration
        strategy: Selected backend strategy
        env_vars: Every variable the generated code reads
        models: Per-model contexts, in entrypoint order

    Returns:
        Artifacts for the fixed operational file set
    """
    project = config.project_name
    provider = config.auth.provider if config.auth_enabled else None
    base = {
        "project_name": project,
        "project_id": config.database.project_id or "your-project-id",
        "database": config.database.type.value,
        "models": models,
        "auth_provider": provider.value if provider else "none",
        "payments_provider": config.payments.provider.value if config.payments_enabled else "none",
    }

    smoke_models = []
    for ctx in models:
        model = config.get_model(ctx["name"])
        smoke_models.append({**ctx, "payload": json.dumps(sample_payload(model))})

    return [
        Artifact(ArtifactKind.OPERATIONAL, "Dockerfile", template="ops/Dockerfile.j2", context=base),
        Artifact(ArtifactKind.OPERATIONAL, "docker-compose.yml",
                 content=compose_file(config, strategy)),
        Artifact(ArtifactKind.OPERATIONAL, "Procfile", content="web: bin/api\n"),
        Artifact(ArtifactKind.OPERATIONAL, "Makefile", template="ops/Makefile.j2", context=base),
        Artifact(ArtifactKind.OPERATIONAL, ".env.example", content=env_example(env_vars)),
        Artifact(ArtifactKind.OPERATIONAL, ".gitignore", content=GITIGNORE),
        Artifact(ArtifactKind.DOCS, "ARCHITECTURE.md", template="ops/ARCHITECTURE.md.j2", context=base),
        Artifact(ArtifactKind.DOCS, "docs/docs.go", template="ops/docs.go.j2", context=base),
        Artifact(ArtifactKind.SCRIPT, "setup.sh", template="ops/setup.sh.j2",
                 context=base, mode=SCRIPT_MODE),
        Artifact(
            ArtifactKind.SCRIPT,
            "setup_and_test.sh",
            template="ops/setup_and_test.sh.j2",
            context={
                **base,
                "models": smoke_models,
                "token_block": Partial(TOKEN_PARTIALS[provider]),
            },
            mode=SCRIPT_MODE,
        ),
        Artifact(ArtifactKind.SCRIPT, "update_docs.sh", template="ops/update_docs.sh.j2",
                 context=base, mode=SCRIPT_MODE),
    ]
