"""Shared pytest fixtures for the blueprintgen test suite.

Provides reusable fixtures for:
- Blueprint markdown documents (minimal, full-featured, per database)
- Parsed and enriched configurations
- Generator settings pointing at temporary directories
"""

from __future__ import annotations

import json
import textwrap
from pathlib import Path
from typing import Any

import pytest

from blueprintgen.config import GeneratorSettings
from blueprintgen.enrich import enrich
from blueprintgen.spec import Configuration


def _blueprint_markdown(data: dict[str, Any], title: str = "Test blueprint") -> str:
    """Wrap a configuration dict in a blueprint document."""
    return f"# {title}\n\nSome prose.\n\n```json\n{json.dumps(data, indent=2)}\n```\n"


def _make_config(**overrides: Any) -> Configuration:
    """Build a Configuration from a plain dict with test defaults."""
    data: dict[str, Any] = {
        "project_name": "shop",
        "database": {"type": "firestore", "project_id": "shop-dev"},
        "models": [
            {"name": "products", "fields": {"title": "string", "price": "float"}},
        ],
    }
    data.update(overrides)
    return Configuration.from_data(data)


# ---------------------------------------------------------------------------
# Blueprint documents
# ---------------------------------------------------------------------------

@pytest.fixture
def minimal_blueprint() -> str:
    return textwrap.dedent("""\
        # Notes API

        A tiny service for notes.

        ```json
        {
          "project_name": "notes",
          "models": [
            {"name": "notes", "fields": {"title": "string", "body": "text"}}
          ]
        }
        ```
        """)


@pytest.fixture
def full_blueprint() -> str:
    return textwrap.dedent("""\
        # Shop API

        Products and orders with Firebase auth and MercadoPago checkout.

        ```json
        {
          "project_name": "shop",
          "database": {"type": "firestore", "project_id": "shop-dev"},
          "auth": {"enabled": true, "provider": "firebase"},
          "payments": {"enabled": true, "provider": "mercadopago"},
          "models": [
            {
              "name": "products",
              "fields": {"title": "string", "price": "float", "stock": "integer"}
            },
            {
              "name": "orders",
              "protected": true,
              "fields": {"total": "float", "placed_at": "timestamp"},
              "relations": {"items": "hasMany:products"}
            }
          ]
        }
        ```

        Anything after the block is ignored.
        """)


@pytest.fixture
def blueprint_file(tmp_path: Path, full_blueprint: str) -> Path:
    path = tmp_path / "blueprint.md"
    path.write_text(full_blueprint, encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Configurations
# ---------------------------------------------------------------------------

@pytest.fixture
def full_config(full_blueprint: str) -> Configuration:
    return Configuration.from_markdown(full_blueprint)


@pytest.fixture
def enriched_config(full_config: Configuration) -> Configuration:
    return enrich(full_config)


@pytest.fixture(params=["firestore", "postgresql", "mongodb"])
def database_kind(request: pytest.FixtureRequest) -> str:
    return request.param


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

@pytest.fixture
def settings(tmp_path: Path) -> GeneratorSettings:
    """Settings writing under tmp_path/out with no credentials file present."""
    return GeneratorSettings(
        output_dir=tmp_path / "out",
        credentials_file=tmp_path / "missing-credentials.json",
    )


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------

@pytest.fixture
def make_config():
    """Factory: make_config(**overrides) -> Configuration."""
    return _make_config


@pytest.fixture
def blueprint_markdown():
    """Factory: blueprint_markdown(data, title=...) -> markdown text."""
    return _blueprint_markdown
