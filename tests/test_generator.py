"""Tests for project generation (blueprintgen.generator).

Covers:
- Rendering every backend / auth / payments combination
- Rendered entrypoint wiring
- Writing the tree through a staging directory
- Dry runs, existing targets and --force replacement
- Credentials copy and its warning
- Render and write failures leave no output behind
- generate_project() and load_blueprint() entry points
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from blueprintgen.config import GeneratorSettings
from blueprintgen.errors import BlueprintParseError, OutputError, RenderError, SchemaError
from blueprintgen.generator import ProjectGenerator, generate_project, load_blueprint
from blueprintgen.render import TemplateRenderer
from blueprintgen.writer import LocalFileSystem


pytestmark = pytest.mark.unit


class FailingRenderer(TemplateRenderer):
    def __init__(self, fail_on: str):
        super().__init__()
        self.fail_on = fail_on

    def render_template(self, template_path, context):
        if template_path == self.fail_on:
            raise RenderError("boom", template=template_path)
        return super().render_template(template_path, context)


class FailingWriter(LocalFileSystem):
    def __init__(self, fail_on: str):
        self.fail_on = fail_on

    def write_file(self, path: Path, content: str) -> None:
        if path.name == self.fail_on:
            raise OutputError(f"cannot write {path}: disk full", str(path))
        super().write_file(path, content)


def _leftovers(directory: Path) -> list[str]:
    return sorted(p.name for p in directory.iterdir()) if directory.exists() else []


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------

class TestRendering:
    @pytest.mark.parametrize("auth", [None, "firebase", "jwt"])
    @pytest.mark.parametrize("payments", [None, "mercadopago", "stripe"])
    def test_every_combination_renders(self, make_config, settings, database_kind, auth, payments):
        overrides = {"database": {"type": database_kind, "project_id": "shop-dev"}}
        if auth:
            overrides["auth"] = {"enabled": True, "provider": auth}
        if payments:
            overrides["payments"] = {"enabled": True, "provider": payments}
        config = make_config(**overrides)

        result = ProjectGenerator(settings).generate(config, dry_run=True)

        assert result.project_dir is None
        assert len(result.files) == len(result.plan.files)
        for file in result.files:
            if file.path.endswith(".go"):
                assert file.content.startswith(("package ", "// Package ")), file.path
            assert "{{" not in file.content or file.path == "docs/docs.go", file.path

    def test_entrypoint_wiring(self, enriched_config, settings):
        result = ProjectGenerator(settings).generate(enriched_config, dry_run=True)
        main = result.get("cmd/api/main.go").content

        assert "const defaultLimit = 20" in main
        assert 'base, err := db.NewFirestoreRepository(ctx, envOr("FIRESTORE_PROJECT_ID", "shop-dev"))' in main
        assert "\tproductsRepo, err := db.NewProductsRepository(base)\n" in main
        assert 'verifier, err := auth.NewVerifier(ctx, envOr("FIREBASE_PROJECT_ID", "shop-dev"))' in main
        assert "authhandler.NewHandler(usersRepo).RegisterRoutes(api.Group(\"/auth\"), authGate)" in main
        assert 'payments.NewService(paymentsConfig, transactionsRepo).RegisterRoutes(api.Group("/payments"), authGate)' in main
        assert 'products.NewProductsHandler(productsRepo, defaultLimit).RegisterRoutes(api.Group("/products"))' in main
        assert 'orders.NewOrdersHandler(ordersRepo, defaultLimit).RegisterRoutes(api.Group("/orders", authGate))' in main

    def test_domain_struct(self, enriched_config, settings):
        result = ProjectGenerator(settings).generate(enriched_config, dry_run=True)
        domain = result.get("internal/domain/orders.go").content

        assert "type Orders struct {" in domain
        assert '\tID       string    `json:"id" firestore:"-"`\n' in domain
        assert '\tItems    []string  `json:"items" firestore:"items,omitempty"`\n' in domain
        assert '\tPlacedAt time.Time `json:"placed_at" firestore:"placed_at,omitempty"`\n' in domain
        assert "type OrdersRepository interface {" in domain

    def test_smoke_script_uses_mock_token(self, enriched_config, settings):
        result = ProjectGenerator(settings).generate(enriched_config, dry_run=True)
        script = result.get("setup_and_test.sh").content

        assert "export MOCK_AUTH=true" in script
        assert 'expect_status 201 "$status" "POST /api/products"' in script

    def test_render_error_names_the_artifact(self, enriched_config, settings):
        generator = ProjectGenerator(settings, renderer=FailingRenderer("handlers/handler.go.j2"))

        with pytest.raises(RenderError) as exc_info:
            generator.generate(enriched_config)

        assert exc_info.value.artifact == "internal/handlers/products/handler.go"
        assert exc_info.value.model == "products"
        assert exc_info.value.template == "handlers/handler.go.j2"
        assert not settings.output_dir.exists()

    def test_strict_relations(self, make_config, settings):
        config = make_config(models=[{"name": "orders", "relations": {"buyer": "belongsTo:customers"}}])
        strict = settings.model_copy(update={"strict_relations": True})

        with pytest.raises(SchemaError):
            ProjectGenerator(strict).generate(config, dry_run=True)

    def test_dangling_relation_is_a_warning(self, make_config, settings):
        config = make_config(models=[{"name": "orders", "relations": {"buyer": "belongsTo:customers"}}])

        result = ProjectGenerator(settings).generate(config, dry_run=True)

        assert result.warnings == ["orders.buyer references unknown model 'customers'"]


# ---------------------------------------------------------------------------
# Writing
# ---------------------------------------------------------------------------

class TestWriting:
    def test_writes_project_tree(self, enriched_config, settings):
        result = ProjectGenerator(settings).generate(enriched_config)
        project = settings.output_dir / "shop"

        assert result.project_dir == project
        assert (project / "go.mod").read_text().startswith("module shop\n")
        assert (project / "cmd/api/main.go").is_file()
        assert (project / "internal/handlers/orders/handler_test.go").is_file()
        assert (project / "internal/infrastructure/db").is_dir()
        assert os.access(project / "setup.sh", os.X_OK)
        assert _leftovers(settings.output_dir) == ["shop"]

    def test_dry_run_writes_nothing(self, enriched_config, settings):
        ProjectGenerator(settings).generate(enriched_config, dry_run=True)
        assert not settings.output_dir.exists()

    def test_existing_target_requires_overwrite(self, enriched_config, settings):
        (settings.output_dir / "shop").mkdir(parents=True)

        with pytest.raises(OutputError, match="already exists"):
            ProjectGenerator(settings).generate(enriched_config)

    def test_overwrite_replaces_target(self, enriched_config, settings):
        stale = settings.output_dir / "shop" / "stale.txt"
        stale.parent.mkdir(parents=True)
        stale.write_text("old")
        forced = settings.model_copy(update={"overwrite": True})

        ProjectGenerator(forced).generate(enriched_config)

        assert not stale.exists()
        assert (settings.output_dir / "shop" / "go.mod").is_file()
        assert _leftovers(settings.output_dir) == ["shop"]

    def test_output_dir_argument_wins(self, enriched_config, settings, tmp_path: Path):
        result = ProjectGenerator(settings).generate(enriched_config, output_dir=tmp_path / "elsewhere")
        assert result.project_dir == tmp_path / "elsewhere" / "shop"

    def test_write_failure_leaves_nothing(self, enriched_config, settings):
        generator = ProjectGenerator(settings, writer=FailingWriter("main.go"))

        with pytest.raises(OutputError, match="disk full"):
            generator.generate(enriched_config)

        assert _leftovers(settings.output_dir) == []

    def test_write_failure_keeps_existing_target(self, enriched_config, settings):
        keep = settings.output_dir / "shop" / "keep.txt"
        keep.parent.mkdir(parents=True)
        keep.write_text("keep")
        forced = settings.model_copy(update={"overwrite": True})

        with pytest.raises(OutputError):
            ProjectGenerator(forced, writer=FailingWriter("main.go")).generate(enriched_config)

        assert keep.read_text() == "keep"
        assert _leftovers(settings.output_dir) == ["shop"]


class TestCredentials:
    def test_missing_credentials_is_a_warning(self, enriched_config, settings):
        result = ProjectGenerator(settings).generate(enriched_config)

        assert any("firebaseCredentials.json not copied" in w for w in result.warnings)
        assert result.project_dir.exists()

    def test_credentials_copied(self, enriched_config, settings, tmp_path: Path):
        credentials = tmp_path / "sa.json"
        credentials.write_text('{"type": "service_account"}')
        with_credentials = settings.model_copy(update={"credentials_file": credentials})

        result = ProjectGenerator(with_credentials).generate(enriched_config)

        copied = result.project_dir / "firebaseCredentials.json"
        assert copied.read_text() == '{"type": "service_account"}'
        assert result.warnings == []

    def test_not_needed_for_postgres(self, make_config, settings):
        config = make_config(database={"type": "postgresql"})

        result = ProjectGenerator(settings).generate(config)

        assert result.warnings == []
        assert not (result.project_dir / "firebaseCredentials.json").exists()


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

class TestPublicAPI:
    def test_generate_project_from_path(self, blueprint_file, settings, tmp_path: Path):
        result = generate_project(blueprint_file, tmp_path / "projects", settings)

        assert result.project_dir == tmp_path / "projects" / "shop"
        assert (result.project_dir / "internal/payments/mercadopago.go").is_file()

    def test_generate_project_from_markdown(self, minimal_blueprint, settings, tmp_path: Path):
        result = generate_project(minimal_blueprint, tmp_path / "projects", settings)
        assert result.project_dir.name == "notes"

    def test_load_blueprint_accepts_path_string(self, blueprint_file):
        assert load_blueprint(str(blueprint_file)).project_name == "shop"

    def test_overlong_single_line_is_parsed_as_markdown(self):
        with pytest.raises(BlueprintParseError, match="no ```json block"):
            load_blueprint("x" * 5000)

    def test_default_settings(self):
        generator = ProjectGenerator()
        assert generator.settings == GeneratorSettings()
