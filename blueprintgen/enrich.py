"""
Blueprintgen Enrichment - Defaults and implicit models

Runs once between parsing and planning. Auth and payments blocks get their
provider and collection defaults, and the models those features persist to
are injected when the blueprint does not declare them. When a same-named
model is already declared, missing baseline fields are backfilled into it
so the generated feature code always finds the fields it references.
"""

from __future__ import annotations

import logging

from pydantic import ValidationError

from blueprintgen.errors import SchemaError
from blueprintgen.render import pascal
from blueprintgen.spec import (
    AuthProvider,
    Configuration,
    FieldType,
    Model,
    Pagination,
    PaymentsProvider,
)

logger = logging.getLogger(__name__)

DEFAULT_AUTH_PROVIDER = AuthProvider.FIREBASE
DEFAULT_PAYMENTS_PROVIDER = PaymentsProvider.MERCADOPAGO
DEFAULT_USER_COLLECTION = "users"
DEFAULT_TRANSACTIONS_COLLECTION = "transactions"
DEFAULT_PAGE_LIMIT = 20


# ═══════════════════════════════════════════════════════════════════════════
# BASELINE FIELD SETS
# ═══════════════════════════════════════════════════════════════════════════


USER_BASELINE: dict[str, FieldType] = {
    "email": FieldType.STRING,
    "name": FieldType.STRING,
    "picture": FieldType.STRING,
    "role_id": FieldType.STRING,
    "created_at": FieldType.TIMESTAMP,
    "updated_at": FieldType.TIMESTAMP,
}

CREDENTIAL_FIELDS: dict[AuthProvider, dict[str, FieldType]] = {
    AuthProvider.FIREBASE: {"uid": FieldType.STRING},
    AuthProvider.JWT: {"password_hash": FieldType.STRING},
}

TRANSACTION_BASELINE: dict[str, FieldType] = {
    "amount": FieldType.FLOAT,
    "status": FieldType.STRING,
    "provider": FieldType.STRING,
    "payload": FieldType.TEXT,
    "created_at": FieldType.TIMESTAMP,
}

# Field types that generate the same Go type are interchangeable.
_TYPE_FAMILY = {
    FieldType.STRING: "string",
    FieldType.TEXT: "string",
    FieldType.INTEGER: "int",
    FieldType.FLOAT: "float",
    FieldType.BOOLEAN: "bool",
    FieldType.TIMESTAMP: "time",
}


def user_baseline(provider: AuthProvider) -> dict[str, FieldType]:
    """Baseline user fields for an auth provider"""
    return {**USER_BASELINE, **CREDENTIAL_FIELDS[provider]}


# ═══════════════════════════════════════════════════════════════════════════
# ENRICHMENT
# ═══════════════════════════════════════════════════════════════════════════


def enrich(config: Configuration) -> Configuration:
    """
    Apply defaults and inject feature models, in place.

    Idempotent: enriching an enriched configuration changes nothing.

    Args:
        config: Parsed configuration

    Returns:
        The same configuration object
    """
    _enrich_auth(config)
    _enrich_payments(config)

    if config.pagination is None:
        config.pagination = Pagination(default_limit=DEFAULT_PAGE_LIMIT)

    return config


def is_enriched(config: Configuration) -> bool:
    """Whether enrich() has already been applied"""
    if config.pagination is None:
        return False
    if config.auth_enabled:
        auth = config.auth
        if auth.provider is None or config.get_model(auth.user_collection) is None:
            return False
    if config.payments_enabled:
        payments = config.payments
        if payments.provider is None or config.get_model(payments.transactions_collection) is None:
            return False
    return True


def _enrich_auth(config: Configuration) -> None:
    auth = config.auth
    if auth is None or not auth.enabled:
        return

    if auth.provider is None:
        auth.provider = DEFAULT_AUTH_PROVIDER
    if not auth.user_collection.strip():
        auth.user_collection = DEFAULT_USER_COLLECTION

    model = ensure_model(config, auth.user_collection, user_baseline(auth.provider))
    auth.user_collection = model.name


def _enrich_payments(config: Configuration) -> None:
    payments = config.payments
    if payments is None or not payments.enabled:
        return

    if payments.provider is None:
        payments.provider = DEFAULT_PAYMENTS_PROVIDER
    if not payments.transactions_collection.strip():
        payments.transactions_collection = DEFAULT_TRANSACTIONS_COLLECTION

    model = ensure_model(config, payments.transactions_collection, TRANSACTION_BASELINE)
    payments.transactions_collection = model.name


def ensure_model(config: Configuration, name: str, baseline: dict[str, FieldType]) -> Model:
    """
    Find a model by name (case-insensitive) or append a protected one.

    An existing model keeps its name, flags and declared fields; baseline
    fields it lacks are appended. A declared field whose type would change
    the generated Go type, or a relation sitting on a baseline name, is a
    SchemaError.
    """
    model = config.get_model(name)
    if model is None:
        try:
            model = Model(name=name, protected=True, fields=dict(baseline))
        except ValidationError as e:
            raise SchemaError(f"invalid collection name {name!r}: {e.errors()[0]['msg']}") from e
        config.models.append(model)
        logger.info("Injected model %r with %d baseline fields", name, len(baseline))
        return model

    relation_idents = {pascal(r): r for r in model.relations}
    for field_name, ftype in baseline.items():
        ident = pascal(field_name)
        if ident in relation_idents:
            raise SchemaError(
                f"model {model.name!r}: relation {relation_idents[ident]!r} "
                f"occupies required field {field_name!r}"
            )
        declared = model.field_for(ident)
        if declared is None:
            model.fields[field_name] = ftype
            logger.debug("Backfilled %s.%s (%s)", model.name, field_name, ftype.value)
            continue
        if _TYPE_FAMILY[model.fields[declared]] != _TYPE_FAMILY[ftype]:
            raise SchemaError(
                f"model {model.name!r}: field {declared!r} is "
                f"{model.fields[declared].value}, expected {ftype.value}"
            )
    return model
