"""
Blueprintgen Spec Models - Pydantic models for blueprint configurations

Defines the schema of the JSON block embedded in a blueprint document.
Pydantic handles validation, defaults, and serialization; the loaders
translate parse and validation failures into the package error types.
"""

from __future__ import annotations

import json
import logging
import re
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from blueprintgen.errors import BlueprintParseError, SchemaError
from blueprintgen.render import pascal

logger = logging.getLogger(__name__)

IDENTIFIER_PATTERN = r"^[A-Za-z][A-Za-z0-9_]*$"
PROJECT_NAME_PATTERN = r"^[A-Za-z][A-Za-z0-9_-]*$"
COLLECTION_PATTERN = r"^\s*$|^[A-Za-z][A-Za-z0-9_]*$"  # blank means the default collection

# Opening line of three backticks plus "json", closing line of three backticks.
JSON_BLOCK_RE = re.compile(r"^```json[ \t]*\r?\n(.*?)^```[ \t]*\r?$", re.MULTILINE | re.DOTALL)


# ═══════════════════════════════════════════════════════════════════════════
# ENUMS
# ═══════════════════════════════════════════════════════════════════════════


class DatabaseKind(str, Enum):
    FIRESTORE = "firestore"
    POSTGRESQL = "postgresql"
    MONGODB = "mongodb"


class AuthProvider(str, Enum):
    FIREBASE = "firebase"  # Verifies externally issued ID tokens
    JWT = "jwt"            # Issues and verifies its own tokens


class PaymentsProvider(str, Enum):
    MERCADOPAGO = "mercadopago"  # Checkout preference + webhook
    STRIPE = "stripe"            # Payment intent + signed webhook


class FieldType(str, Enum):
    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    TIMESTAMP = "timestamp"
    TEXT = "text"


FIELD_TYPE_ALIASES: dict[str, FieldType] = {
    "str": FieldType.STRING,
    "int": FieldType.INTEGER,
    "number": FieldType.FLOAT,
    "double": FieldType.FLOAT,
    "bool": FieldType.BOOLEAN,
    "datetime": FieldType.TIMESTAMP,
    "date": FieldType.TIMESTAMP,
}


class RelationKind(str, Enum):
    HAS_MANY = "hasMany"
    BELONGS_TO = "belongsTo"
    HAS_ONE = "hasOne"


# ═══════════════════════════════════════════════════════════════════════════
# MODEL DEFINITIONS
# ═══════════════════════════════════════════════════════════════════════════


class Relation(BaseModel):
    """Relation descriptor, written as "kind:target" in blueprints"""

    kind: RelationKind
    target: str = ""

    @property
    def is_collection(self) -> bool:
        return self.kind == RelationKind.HAS_MANY

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.target}" if self.target else self.kind.value


class Model(BaseModel):
    """Data model definition"""

    name: str = Field(pattern=IDENTIFIER_PATTERN)
    protected: bool = False
    fields: dict[str, FieldType] = {}
    relations: dict[str, Relation] = {}

    @field_validator("fields", mode="before")
    @classmethod
    def normalize_field_types(cls, v: Any) -> Any:
        """Accept the short type aliases used by older blueprints"""
        if not isinstance(v, dict):
            return v
        normalized = {}
        for name, ftype in v.items():
            if isinstance(ftype, str):
                key = ftype.strip().lower()
                ftype = FIELD_TYPE_ALIASES.get(key, key)
            normalized[name] = ftype
        return normalized

    @field_validator("relations", mode="before")
    @classmethod
    def parse_relations(cls, v: Any) -> Any:
        if not isinstance(v, dict):
            return v
        parsed = {}
        for name, desc in v.items():
            if isinstance(desc, str):
                kind, _, target = desc.partition(":")
                desc = {"kind": kind.strip(), "target": target.strip()}
            parsed[name] = desc
        return parsed

    @model_validator(mode="after")
    def check_names(self) -> "Model":
        seen: dict[str, str] = {}
        for name in [*self.fields, *self.relations]:
            if not re.match(IDENTIFIER_PATTERN, name):
                raise ValueError(f"invalid field name {name!r} in model {self.name!r}")
            ident = pascal(name)
            if ident.lower() == "id":
                raise ValueError(f"{name!r} collides with the reserved id field in model {self.name!r}")
            if ident in seen:
                raise ValueError(
                    f"{seen[ident]!r} and {name!r} both map to {ident} in model {self.name!r}"
                )
            seen[ident] = name
        return self

    def identifiers(self) -> set[str]:
        """Generated identifiers already taken by fields and relations"""
        return {pascal(name) for name in [*self.fields, *self.relations]}

    def field_for(self, identifier: str) -> str | None:
        """Find the declared field whose identifier matches, if any"""
        return next((f for f in self.fields if pascal(f) == identifier), None)


# ═══════════════════════════════════════════════════════════════════════════
# FEATURE BLOCKS
# ═══════════════════════════════════════════════════════════════════════════


class Database(BaseModel):
    """Database selection and connection info"""

    type: DatabaseKind = DatabaseKind.FIRESTORE
    project_id: str = ""  # Firestore
    url: str = ""         # Postgres / Mongo

    @field_validator("type", mode="before")
    @classmethod
    def check_supported(cls, v: Any) -> Any:
        if isinstance(v, str):
            value = v.strip().lower() or DatabaseKind.FIRESTORE.value
            if value not in {k.value for k in DatabaseKind}:
                raise ValueError(f"unsupported database type: {v}")
            return value
        return v


def _blank_to_none(v: Any) -> Any:
    if isinstance(v, str):
        v = v.strip().lower()
        return v or None
    return v


class Auth(BaseModel):
    """Authentication module"""

    enabled: bool = False
    provider: AuthProvider | None = None
    user_collection: str = Field("", pattern=COLLECTION_PATTERN)

    @field_validator("provider", mode="before")
    @classmethod
    def blank_provider(cls, v: Any) -> Any:
        return _blank_to_none(v)


class Payments(BaseModel):
    """Payments module"""

    enabled: bool = False
    provider: PaymentsProvider | None = None
    transactions_collection: str = Field("", pattern=COLLECTION_PATTERN)

    @field_validator("provider", mode="before")
    @classmethod
    def blank_provider(cls, v: Any) -> Any:
        return _blank_to_none(v)


class Pagination(BaseModel):
    default_limit: int = Field(20, ge=1)


# ═══════════════════════════════════════════════════════════════════════════
# COMPLETE CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════


class Configuration(BaseModel):
    """Complete blueprint configuration"""

    project_name: str = Field(pattern=PROJECT_NAME_PATTERN)
    database: Database = Database()
    auth: Auth | None = None
    payments: Payments | None = None
    pagination: Pagination | None = None
    models: list[Model]

    model_config = {"populate_by_name": True}

    @model_validator(mode="before")
    @classmethod
    def fold_legacy_project_id(cls, data: Any) -> Any:
        """Move the deprecated top-level firestore_project_id into database"""
        if not isinstance(data, dict) or "firestore_project_id" not in data:
            return data
        data = dict(data)
        legacy = data.pop("firestore_project_id") or ""
        database = dict(data.get("database") or {})
        if legacy and not database.get("project_id"):
            database["project_id"] = legacy
        data["database"] = database
        return data

    @classmethod
    def from_data(cls, data: Any, source: str | None = None) -> "Configuration":
        """Validate a decoded JSON value"""
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise SchemaError(_format_validation_error(e, source)) from e

    @classmethod
    def from_json(cls, content: str, source: str | None = None) -> "Configuration":
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise BlueprintParseError(f"invalid JSON: {e}", source) from e
        return cls.from_data(data, source)

    @classmethod
    def from_markdown(cls, text: str, source: str | None = None) -> "Configuration":
        """Parse the first fenced json block of a blueprint document"""
        match = JSON_BLOCK_RE.search(text)
        if match is None:
            raise BlueprintParseError("no ```json block found in blueprint", source)
        return cls.from_json(match.group(1), source)

    @classmethod
    def from_file(cls, path: str | Path) -> "Configuration":
        """Load a blueprint file (markdown, or plain .json)"""
        path = Path(path)
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise BlueprintParseError(f"cannot read blueprint: {e}", str(path)) from e

        logger.debug("Loaded blueprint %s (%d bytes)", path, len(content))
        if path.suffix.lower() == ".json":
            return cls.from_json(content, str(path))
        return cls.from_markdown(content, str(path))

    def to_json(self) -> str:
        data = self.model_dump(mode="json", exclude_none=True)
        for model in data["models"]:
            model["relations"] = {
                name: f"{rel['kind']}:{rel['target']}" for name, rel in model["relations"].items()
            }
        return json.dumps(data, indent=2)

    def to_markdown(self, title: str | None = None) -> str:
        """Render the configuration as a blueprint document"""
        heading = title or f"{self.project_name} blueprint"
        return f"# {heading}\n\n```json\n{self.to_json()}\n```\n"

    def get_model(self, name: str) -> Model | None:
        """Get model by name, case-insensitively"""
        wanted = name.lower()
        return next((m for m in self.models if m.name.lower() == wanted), None)

    @property
    def auth_enabled(self) -> bool:
        return self.auth is not None and self.auth.enabled

    @property
    def payments_enabled(self) -> bool:
        return self.payments is not None and self.payments.enabled

    def check_relations(self, strict: bool = False) -> list[str]:
        """
        Report relations whose target model does not exist.

        Args:
            strict: Raise SchemaError instead of returning warnings

        Returns:
            One warning message per dangling relation
        """
        warnings = []
        for model in self.models:
            for name, relation in model.relations.items():
                if relation.target and self.get_model(relation.target) is None:
                    warnings.append(
                        f"{model.name}.{name} references unknown model {relation.target!r}"
                    )
        if warnings and strict:
            raise SchemaError("dangling relations: " + "; ".join(warnings))
        for message in warnings:
            logger.warning(message)
        return warnings


def _format_validation_error(error: ValidationError, source: str | None) -> str:
    lines = []
    for err in error.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "<root>"
        lines.append(f"{loc}: {err['msg']}")
    prefix = f"{source}: " if source else ""
    return prefix + "invalid blueprint: " + "; ".join(lines)
