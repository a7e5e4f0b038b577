"""
Blueprintgen Generator - Blueprint to Go project tree

Runs the whole pipeline: enrich, validate relations, plan, render every
artifact in memory, write into a staging directory next to the target and
swap it into place. A failure at any step leaves the target untouched.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from pathlib import Path

from blueprintgen.artifacts import ArtifactKind
from blueprintgen.config import GeneratorSettings
from blueprintgen.enrich import enrich
from blueprintgen.errors import OutputError, RenderError
from blueprintgen.planner import ArtifactPlanner, Plan
from blueprintgen.render import TemplateRenderer
from blueprintgen.spec import AuthProvider, Configuration, DatabaseKind
from blueprintgen.writer import LocalFileSystem

logger = logging.getLogger(__name__)

CREDENTIALS_NAME = "firebaseCredentials.json"


# ═══════════════════════════════════════════════════════════════════════════
# GENERATED FILE TRACKING
# ═══════════════════════════════════════════════════════════════════════════


@dataclass
class GeneratedFile:
    """Represents a rendered file."""

    path: str  # Relative to the project root
    content: str
    kind: ArtifactKind
    mode: int = 0o644
    template: str | None = None


@dataclass
class GenerationResult:
    """Result of project generation."""

    plan: Plan
    files: list[GeneratedFile] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    project_dir: Path | None = None  # None when nothing was written

    def get(self, path: str) -> GeneratedFile | None:
        return next((f for f in self.files if f.path == path), None)


# ═══════════════════════════════════════════════════════════════════════════
# PROJECT GENERATOR
# ═══════════════════════════════════════════════════════════════════════════


class ProjectGenerator:
    """
    Generates Go API projects from blueprint configurations.
    """

    def __init__(
        self,
        settings: GeneratorSettings | None = None,
        writer: LocalFileSystem | None = None,
        renderer: TemplateRenderer | None = None,
    ):
        """
        Args:
            settings: Generator options. Defaults to GeneratorSettings().
            writer: Output writer. Defaults to the local filesystem.
            renderer: Template renderer. Defaults to the packaged templates,
                or settings.templates_dir when set.
        """
        self.settings = settings or GeneratorSettings()
        self.writer = writer or LocalFileSystem()
        self.renderer = renderer or TemplateRenderer(self.settings.templates_dir)

    def prepare(self, config: Configuration) -> tuple[Plan, list[str]]:
        """Enrich, validate relations and plan, without rendering"""
        enrich(config)
        warnings = config.check_relations(strict=self.settings.strict_relations)
        return ArtifactPlanner(config).plan(), warnings

    def render_plan(self, plan: Plan) -> list[GeneratedFile]:
        """Render every file artifact of a plan in memory."""
        files = []
        for artifact in plan.files:
            if artifact.template is None:
                content = artifact.content or ""
            else:
                try:
                    content = self.renderer.render_template(artifact.template, artifact.context)
                except RenderError as e:
                    raise RenderError(
                        e.reason,
                        template=artifact.template,
                        artifact=artifact.path,
                        model=artifact.model,
                    ) from e
            files.append(GeneratedFile(
                path=artifact.path,
                content=content,
                kind=artifact.kind,
                mode=artifact.mode,
                template=artifact.template,
            ))
        return files

    def generate(
        self,
        config: Configuration,
        output_dir: Path | None = None,
        dry_run: bool = False,
    ) -> GenerationResult:
        """
        Generate a project from a configuration.

        Args:
            config: Parsed configuration; enriched in place
            output_dir: Parent directory of the project. Defaults to
                settings.output_dir.
            dry_run: Render everything but write nothing

        Returns:
            GenerationResult with the rendered files and any warnings
        """
        plan, warnings = self.prepare(config)
        files = self.render_plan(plan)
        result = GenerationResult(plan=plan, files=files, warnings=list(warnings))
        logger.info("Rendered %d files", len(files))

        if dry_run:
            return result

        output_dir = Path(output_dir or self.settings.output_dir)
        target = output_dir / config.project_name
        if self.writer.exists(target) and not self.settings.overwrite:
            raise OutputError(f"{target} already exists (use --force to replace it)", str(target))

        self.writer.mkdir(output_dir)
        staging = output_dir / f".{config.project_name}.staging-{uuid.uuid4().hex[:8]}"
        logger.debug("Staging into %s", staging)
        try:
            self._write(plan, files, staging)
            if self._needs_credentials(config):
                warning = self._copy_credentials(staging)
                if warning:
                    result.warnings.append(warning)
            self._swap(staging, target)
        except Exception:
            self._discard(staging)
            raise

        result.project_dir = target
        logger.info("Generated %s", target)
        return result

    # ───────────────────────────────────────────────────────────────────────
    # Writing
    # ───────────────────────────────────────────────────────────────────────

    def _write(self, plan: Plan, files: list[GeneratedFile], root: Path) -> None:
        for directory in plan.directories:
            self.writer.mkdir(root / directory.path)
        for file in files:
            path = root / file.path
            self.writer.write_file(path, file.content)
            if file.mode != 0o644:
                self.writer.chmod(path, file.mode)

    @staticmethod
    def _needs_credentials(config: Configuration) -> bool:
        if config.database.type == DatabaseKind.FIRESTORE:
            return True
        return config.auth_enabled and config.auth.provider == AuthProvider.FIREBASE

    def _copy_credentials(self, root: Path) -> str | None:
        """Copy the service account file; a failure is a warning, not an error."""
        source = self.settings.credentials_file
        try:
            self.writer.copy_file(source, root / CREDENTIALS_NAME)
        except OutputError as e:
            message = f"{CREDENTIALS_NAME} not copied: {e}"
            logger.warning(message)
            return message
        return None

    def _swap(self, staging: Path, target: Path) -> None:
        if not self.writer.exists(target):
            self.writer.move(staging, target)
            return

        backup = target.with_name(f".{target.name}.old-{uuid.uuid4().hex[:8]}")
        self.writer.move(target, backup)
        try:
            self.writer.move(staging, target)
        except OutputError:
            self.writer.move(backup, target)
            raise
        self.writer.remove_all(backup)

    def _discard(self, staging: Path) -> None:
        try:
            self.writer.remove_all(staging)
        except OutputError as e:
            logger.error("Could not remove staging directory %s: %s", staging, e)


# ═══════════════════════════════════════════════════════════════════════════
# PUBLIC API
# ═══════════════════════════════════════════════════════════════════════════


def load_blueprint(blueprint: Configuration | str | Path) -> Configuration:
    """Accept a Configuration, a blueprint path, or blueprint markdown text"""
    if isinstance(blueprint, Configuration):
        return blueprint
    if isinstance(blueprint, Path):
        return Configuration.from_file(blueprint)
    if "\n" not in blueprint and _is_file(blueprint):
        return Configuration.from_file(blueprint)
    return Configuration.from_markdown(blueprint)


def _is_file(candidate: str) -> bool:
    # Overlong names raise ENAMETOOLONG instead of returning False.
    try:
        return Path(candidate).is_file()
    except OSError:
        return False


def generate_project(
    blueprint: Configuration | str | Path,
    output_dir: str | Path,
    settings: GeneratorSettings | None = None,
) -> GenerationResult:
    """
    Generate a Go API project from a blueprint.

    Args:
        blueprint: Configuration object, blueprint markdown, or path to a blueprint file
        output_dir: Directory that will contain the project directory
        settings: Optional generator settings

    Returns:
        GenerationResult with generated files and warnings
    """
    config = load_blueprint(blueprint)
    generator = ProjectGenerator(settings)
    return generator.generate(config, Path(output_dir))
