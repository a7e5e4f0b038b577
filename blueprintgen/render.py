"""
Blueprintgen Renderer - Jinja2 rendering of Go source templates

Templates are interpolation and loops only; every decision about which
template to use, and with which values, is made by the planner and the
backend strategies before rendering.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from jinja2 import (
    Environment,
    FileSystemLoader,
    StrictUndefined,
    Template,
    TemplateError,
    TemplateNotFound,
    TemplateSyntaxError,
    UndefinedError,
)

from blueprintgen.errors import RenderError

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).parent / "templates"


# ═══════════════════════════════════════════════════════════════════════════
# TEMPLATE HELPERS
# ═══════════════════════════════════════════════════════════════════════════


def title(s: str) -> str:
    """Uppercase the first character only: "orderItems" -> "OrderItems"."""
    return s[:1].upper() + s[1:]


def lower(s: str) -> str:
    """Fold the whole string to lowercase."""
    return s.lower()


def pascal(s: str) -> str:
    """Join underscore-separated segments, each with its first character uppercased."""
    return "".join(p[0].upper() + p[1:] for p in s.split("_") if p)


def lower_first(s: str) -> str:
    return s[:1].lower() + s[1:]


# ═══════════════════════════════════════════════════════════════════════════
# PARTIALS
# ═══════════════════════════════════════════════════════════════════════════


@dataclass
class Partial:
    """A template fragment rendered before, and spliced into, its parent."""

    template: str
    context: dict[str, Any] = field(default_factory=dict)


# ═══════════════════════════════════════════════════════════════════════════
# JINJA ENVIRONMENT SETUP
# ═══════════════════════════════════════════════════════════════════════════


def create_jinja_env(templates_dir: Path | None = None) -> Environment:
    """Create Jinja2 environment with the name-shaping filters."""

    env = Environment(
        loader=FileSystemLoader(str(templates_dir or TEMPLATES_DIR)),
        autoescape=False,  # Go source, not markup
        undefined=StrictUndefined,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )

    env.filters["title"] = title
    env.filters["lower"] = lower
    env.filters["pascal"] = pascal
    env.filters["lower_first"] = lower_first

    return env


class TemplateRenderer:
    """
    Renders named templates, or template strings, against a context.

    Any Partial found among the top-level context values (directly or
    inside a list) is rendered first and replaced by its text.
    """

    def __init__(self, templates_dir: Path | None = None):
        """
        Args:
            templates_dir: Directory holding the .j2 templates. Defaults to
                the templates shipped with the package.
        """
        self.templates_dir = templates_dir or TEMPLATES_DIR
        self.env = create_jinja_env(self.templates_dir)

    def render(self, name: str, body: str, context: dict[str, Any]) -> str:
        """
        Render a template body given as a string.

        Args:
            name: Label used in error messages
            body: Template source
            context: Rendering context

        Returns:
            The rendered text
        """
        try:
            template = self.env.from_string(body)
        except TemplateSyntaxError as e:
            raise RenderError(f"syntax error at line {e.lineno}: {e.message}", template=name) from e
        return self._render(name, template, context)

    def render_template(self, template_path: str, context: dict[str, Any]) -> str:
        """Render one of the packaged templates."""
        try:
            template = self.env.get_template(template_path)
        except TemplateNotFound as e:
            raise RenderError(f"template not found: {e.name}", template=template_path) from e
        except TemplateSyntaxError as e:
            raise RenderError(
                f"syntax error at line {e.lineno}: {e.message}", template=template_path
            ) from e
        return self._render(template_path, template, context)

    def _render(self, name: str, template: Template, context: dict[str, Any]) -> str:
        resolved = self._resolve_partials(context)
        try:
            return template.render(**resolved)
        except UndefinedError as e:
            raise RenderError(f"undefined value: {e.message}", template=name) from e
        except TemplateError as e:
            raise RenderError(str(e), template=name) from e

    def _resolve_partials(self, context: dict[str, Any]) -> dict[str, Any]:
        resolved = {}
        for key, value in context.items():
            if isinstance(value, Partial):
                value = self._render_partial(value)
            elif isinstance(value, list) and any(isinstance(v, Partial) for v in value):
                value = [self._render_partial(v) if isinstance(v, Partial) else v for v in value]
            resolved[key] = value
        return resolved

    def _render_partial(self, partial: Partial) -> str:
        logger.debug("Rendering partial %s", partial.template)
        return self.render_template(partial.template, partial.context).rstrip()
