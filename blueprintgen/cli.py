"""
Blueprintgen CLI - Command-line interface for project generation

Usage:
    blueprintgen generate <blueprint.md> -o <output_dir>
    blueprintgen validate <blueprint.md>
    blueprintgen init <project_name>
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich import print as rprint
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

from blueprintgen.config import GeneratorSettings
from blueprintgen.errors import BlueprintError
from blueprintgen.generator import GenerationResult, ProjectGenerator
from blueprintgen.planner import Plan
from blueprintgen.spec import (
    Auth,
    AuthProvider,
    Configuration,
    Database,
    DatabaseKind,
    Model,
    Payments,
    PaymentsProvider,
)

app = typer.Typer(
    name="blueprintgen",
    help="Generate Go API projects from markdown blueprints",
    add_completion=False,
)
console = Console(stderr=True)


def _setup_logging(verbosity: int) -> None:
    """
    Configure the blueprintgen logger.

    Args:
        verbosity: 0 = WARNING, 1 = INFO, 2+ = DEBUG.
    """
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity >= 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    handler = RichHandler(console=console, show_path=False, markup=False)
    handler.setLevel(level)

    root_logger = logging.getLogger("blueprintgen")
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.propagate = False


@app.command()
def generate(
    blueprint: Path = typer.Argument(
        ...,
        help="Path to the blueprint markdown file",
        exists=True,
        dir_okay=False,
        resolve_path=True,
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output", "-o",
        help="Directory that will contain the project (defaults to BLUEPRINTGEN_OUTPUT_DIR or .)",
        resolve_path=True,
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Show what would be generated without writing files",
    ),
    force: bool = typer.Option(
        False,
        "--force",
        help="Replace an existing project directory",
    ),
    strict_relations: bool = typer.Option(
        False,
        "--strict-relations",
        help="Fail on relations that point at unknown models",
    ),
    verbose: int = typer.Option(0, "--verbose", "-v", count=True, help="-v info, -vv debug"),
) -> None:
    """Generate a Go API project from a blueprint."""
    _setup_logging(verbose)
    settings = GeneratorSettings.from_env(
        output_dir=output,
        overwrite=force or None,
        strict_relations=strict_relations or None,
    )

    try:
        config = Configuration.from_file(blueprint)
        rprint(f"[green]✓[/green] Loaded: [bold]{config.project_name}[/bold]")

        generator = ProjectGenerator(settings)
        if dry_run:
            result = generator.generate(config, dry_run=True)
            rprint(f"\n[yellow]Dry run - would generate to: "
                   f"{settings.output_dir / config.project_name}[/yellow]\n")
            _show_preview(result.plan)
            _show_warnings(result)
            return

        result = generator.generate(config)
    except BlueprintError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    _show_warnings(result)
    rprint(f"[green]✓[/green] Generated {len(result.files)} files to {result.project_dir}")
    _show_next_steps(result.project_dir)


@app.command()
def validate(
    blueprint: Path = typer.Argument(
        ...,
        help="Path to the blueprint markdown file",
        exists=True,
        dir_okay=False,
        resolve_path=True,
    ),
    strict_relations: bool = typer.Option(False, "--strict-relations"),
    verbose: int = typer.Option(0, "--verbose", "-v", count=True),
) -> None:
    """Validate a blueprint: parse, enrich and plan without writing."""
    _setup_logging(verbose)
    settings = GeneratorSettings.from_env(strict_relations=strict_relations or None)

    try:
        config = Configuration.from_file(blueprint)
        plan, warnings = ProjectGenerator(settings).prepare(config)
    except BlueprintError as e:
        rprint(f"[red]✗[/red] {e}")
        raise typer.Exit(1)

    rprint(f"[green]✓[/green] Valid: [bold]{config.project_name}[/bold]")

    table = Table()
    table.add_column("Property", style="cyan")
    table.add_column("Value")

    table.add_row("Database", config.database.type.value)
    table.add_row("Auth", config.auth.provider.value if config.auth_enabled else "-")
    table.add_row("Payments", config.payments.provider.value if config.payments_enabled else "-")
    table.add_row("Models", ", ".join(m.name for m in config.models))
    table.add_row("Artifacts", str(len(plan.files)))
    table.add_row("Warnings", str(len(warnings)))

    rprint(table)


@app.command()
def init(
    project_name: str = typer.Argument(..., help="Project name"),
    output_dir: Optional[Path] = typer.Option(None, "--output", "-o", resolve_path=True),
    database: DatabaseKind = typer.Option(DatabaseKind.FIRESTORE, "--database", "-d"),
    auth: Optional[AuthProvider] = typer.Option(None, "--auth", "-a"),
    payments: Optional[PaymentsProvider] = typer.Option(None, "--payments", "-p"),
) -> None:
    """Create a starter blueprint.md."""
    if output_dir is None:
        output_dir = Path.cwd()

    output_file = output_dir / "blueprint.md"

    if output_file.exists():
        if not typer.confirm(f"{output_file} exists. Overwrite?"):
            raise typer.Exit(0)

    try:
        config = Configuration(
            project_name=project_name,
            database=Database(type=database),
            auth=Auth(enabled=True, provider=auth) if auth else None,
            payments=Payments(enabled=True, provider=payments) if payments else None,
            models=[
                Model(
                    name="items",
                    fields={"title": "string", "description": "text", "price": "float"},
                ),
            ],
        )
    except ValueError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    output_file.parent.mkdir(parents=True, exist_ok=True)
    output_file.write_text(config.to_markdown(), encoding="utf-8")

    rprint(f"[green]✓[/green] Created {output_file}")
    rprint(f"\nNext: [cyan]blueprintgen generate {output_file}[/cyan]")


@app.command()
def version() -> None:
    """Show version."""
    from blueprintgen import __version__
    rprint(f"blueprintgen {__version__}")


def _show_preview(plan: Plan) -> None:
    """Show what would be generated."""
    config = plan.config
    tree = Tree(f"[bold]{config.project_name}[/bold]")

    stack = tree.add("[blue]Stack[/blue]")
    stack.add(f"Database: {config.database.type.value}")
    if config.auth_enabled:
        stack.add(f"Auth: {config.auth.provider.value}")
    if config.payments_enabled:
        stack.add(f"Payments: {config.payments.provider.value}")

    models = tree.add("[blue]Models[/blue]")
    for model in config.models:
        label = f"[cyan]{model.name}[/cyan]" + (" (protected)" if model.protected else "")
        node = models.add(label)
        for name, ftype in model.fields.items():
            node.add(f"{name}: {ftype.value}")
        for name, relation in model.relations.items():
            node.add(f"{name} -> {relation}")

    files = tree.add("[blue]Files[/blue]")
    for artifact in plan.files:
        files.add(artifact.describe())

    rprint(tree)


def _show_warnings(result: GenerationResult) -> None:
    for warning in result.warnings:
        rprint(f"[yellow]![/yellow] {warning}")


def _show_next_steps(project_dir: Path) -> None:
    """Show next steps."""
    steps = f"""
[bold]Next:[/bold]
  cd {project_dir}
  cp .env.example .env
  ./setup.sh
  make run
"""
    rprint(Panel(steps, title="Done"))


def main() -> None:
    app()


if __name__ == "__main__":
    main()
