"""
Blueprintgen Errors - Exception hierarchy for the generation pipeline

Every failure raised by the package derives from BlueprintError so callers
(the CLI in particular) can report them uniformly.
"""

from __future__ import annotations


class BlueprintError(Exception):
    """Base class for all generator errors."""


class InputError(BlueprintError):
    """The blueprint could not be turned into a valid configuration."""


class BlueprintParseError(InputError):
    """Unreadable blueprint file, missing json block, or malformed JSON."""

    def __init__(self, message: str, source: str | None = None):
        self.source = source
        if source:
            message = f"{source}: {message}"
        super().__init__(message)


class SchemaError(InputError):
    """The configuration is structurally valid JSON but violates the schema."""


class NamingConflictError(BlueprintError):
    """Two planned artifacts or identifiers resolve to the same name."""

    def __init__(self, message: str, names: list[str] | None = None):
        self.names = names or []
        super().__init__(message)


class RenderError(BlueprintError):
    """A template failed to render."""

    def __init__(
        self,
        message: str,
        template: str | None = None,
        artifact: str | None = None,
        model: str | None = None,
    ):
        self.reason = message
        self.template = template
        self.artifact = artifact
        self.model = model
        parts = [message]
        if template:
            parts.append(f"template={template}")
        if artifact:
            parts.append(f"artifact={artifact}")
        if model:
            parts.append(f"model={model}")
        super().__init__(" | ".join(parts))


class OutputError(BlueprintError):
    """The output writer could not complete a filesystem operation."""

    def __init__(self, message: str, path: str | None = None):
        self.path = path
        super().__init__(message)
