"""
Blueprintgen Features - Auth and payments template families

Each provider is a small class choosing its templates, Go requirements,
environment variables and the setup block it contributes to main.go.
The feature model (users / transactions) is resolved on the enriched
configuration, so the generated code always targets an existing model.
"""

from __future__ import annotations

from typing import Any

from blueprintgen.artifacts import Artifact, ArtifactKind, EnvVar, Wiring
from blueprintgen.backends import BackendStrategy, go_string
from blueprintgen.errors import BlueprintError
from blueprintgen.render import Partial
from blueprintgen.spec import AuthProvider, Configuration, PaymentsProvider

AUTH_GUARD = ", authGate"


# ═══════════════════════════════════════════════════════════════════════════
# AUTH
# ═══════════════════════════════════════════════════════════════════════════


class AuthFeature:
    """Common shape of the auth families: middleware + handler."""

    provider: AuthProvider
    middleware_template: str
    handler_template: str
    setup_template: str
    requirements: list[tuple[str, str]] = []
    directories = ["internal/auth", "internal/handlers/auth"]
    domain_identifiers: set[str] = set()

    def __init__(self, config: Configuration, strategy: BackendStrategy):
        self.config = config
        self.strategy = strategy
        self.user_model = config.get_model(config.auth.user_collection)
        if self.user_model is None:
            raise BlueprintError("auth user model missing; run enrich() before planning")

    def user_context(self) -> dict[str, Any]:
        return self.strategy.model_context(self.config, self.user_model)

    def artifacts(self) -> list[Artifact]:
        context = {"project_name": self.config.project_name, "user": self.user_context()}
        return [
            Artifact(
                kind=ArtifactKind.AUTH_MIDDLEWARE,
                path="internal/auth/middleware.go",
                template=self.middleware_template,
                context={"project_name": self.config.project_name},
            ),
            Artifact(
                kind=ArtifactKind.AUTH_HANDLER,
                path="internal/handlers/auth/handler.go",
                template=self.handler_template,
                context=context,
                model=self.user_model.name,
            ),
        ]

    def setup_context(self) -> dict[str, Any]:
        return {"user": self.user_context()}

    def wiring(self) -> Wiring:
        project = self.config.project_name
        return Wiring(
            imports=[f'"{project}/internal/auth"', f'authhandler "{project}/internal/handlers/auth"'],
            setup=Partial(self.setup_template, self.setup_context()),
            guard=AUTH_GUARD,
        )

    def env_vars(self) -> list[EnvVar]:
        return []


class FirebaseAuth(AuthFeature):
    """Verifies Firebase ID tokens; MOCK_AUTH=true swaps in a fixed identity."""

    provider = AuthProvider.FIREBASE
    middleware_template = "auth/firebase_middleware.go.j2"
    handler_template = "auth/firebase_handler.go.j2"
    setup_template = "main/auth_firebase.go.j2"
    requirements = [("firebase.google.com/go/v4", "v4.13.0")]

    def setup_context(self) -> dict[str, Any]:
        context = super().setup_context()
        context["project_id"] = go_string(self.config.database.project_id or "your-project-id")
        return context

    def env_vars(self) -> list[EnvVar]:
        return [
            EnvVar("FIREBASE_PROJECT_ID", self.config.database.project_id, "Firebase project for token checks"),
            EnvVar("MOCK_AUTH", "false", "Set to true to accept any bearer token locally"),
        ]


class JWTAuth(AuthFeature):
    """Self-issued HS256 tokens with bcrypt-hashed passwords."""

    provider = AuthProvider.JWT
    middleware_template = "auth/jwt_middleware.go.j2"
    handler_template = "auth/jwt_handler.go.j2"
    setup_template = "main/auth_jwt.go.j2"
    requirements = [
        ("github.com/golang-jwt/jwt/v5", "v5.2.0"),
        ("golang.org/x/crypto", "v0.17.0"),
    ]
    domain_identifiers = {"Credentials", "RegisterRequest", "TokenResponse"}

    def artifacts(self) -> list[Artifact]:
        return super().artifacts() + [
            Artifact(
                kind=ArtifactKind.AUTH_DOMAIN,
                path="internal/domain/auth.go",
                template="auth/jwt_domain.go.j2",
                context={"project_name": self.config.project_name},
            )
        ]

    def env_vars(self) -> list[EnvVar]:
        return [
            EnvVar("JWT_SECRET", "change-me", "HMAC key for issued tokens"),
            EnvVar("JWT_TTL", "24h"),
        ]


AUTH_FEATURES: dict[AuthProvider, type[AuthFeature]] = {
    AuthProvider.FIREBASE: FirebaseAuth,
    AuthProvider.JWT: JWTAuth,
}


def auth_feature(config: Configuration, strategy: BackendStrategy) -> AuthFeature | None:
    """Select the auth family for an enriched configuration, or None"""
    if not config.auth_enabled:
        return None
    return AUTH_FEATURES[config.auth.provider](config, strategy)


# ═══════════════════════════════════════════════════════════════════════════
# PAYMENTS
# ═══════════════════════════════════════════════════════════════════════════


class PaymentsFeature:
    """Common shape of the payment providers: config + service."""

    provider: PaymentsProvider
    config_template: str
    service_template: str
    requirements: list[tuple[str, str]] = []
    directories = ["internal/config", "internal/payments"]
    domain_identifiers: set[str] = set()

    def __init__(self, config: Configuration, strategy: BackendStrategy):
        self.config = config
        self.strategy = strategy
        self.transactions_model = config.get_model(config.payments.transactions_collection)
        if self.transactions_model is None:
            raise BlueprintError("transactions model missing; run enrich() before planning")

    def transactions_context(self) -> dict[str, Any]:
        return self.strategy.model_context(self.config, self.transactions_model)

    def artifacts(self) -> list[Artifact]:
        project = self.config.project_name
        return [
            Artifact(
                kind=ArtifactKind.PAYMENTS_CONFIG,
                path="internal/config/config.go",
                template=self.config_template,
                context={"project_name": project},
            ),
            Artifact(
                kind=ArtifactKind.PAYMENTS_SERVICE,
                path=f"internal/payments/{self.provider.value}.go",
                template=self.service_template,
                context={
                    "project_name": project,
                    "provider": self.provider.value,
                    "transactions": self.transactions_context(),
                },
                model=self.transactions_model.name,
            ),
        ]

    def wiring(self, guard: str = "") -> Wiring:
        """
        Args:
            guard: Route-group argument protecting the checkout endpoint,
                empty when auth is disabled
        """
        project = self.config.project_name
        return Wiring(
            imports=[f'"{project}/internal/config"', f'"{project}/internal/payments"'],
            setup=Partial(
                "main/payments.go.j2",
                {"transactions": self.transactions_context(), "guard": guard},
            ),
        )

    def env_vars(self) -> list[EnvVar]:
        return []


class MercadoPagoPayments(PaymentsFeature):
    provider = PaymentsProvider.MERCADOPAGO
    config_template = "payments/config_mercadopago.go.j2"
    service_template = "payments/mercadopago.go.j2"

    def env_vars(self) -> list[EnvVar]:
        return [
            EnvVar("MP_ACCESS_TOKEN", "", "MercadoPago access token"),
            EnvVar("MP_NOTIFICATION_URL", "", "Public URL of /api/payments/webhook"),
        ]


class StripePayments(PaymentsFeature):
    provider = PaymentsProvider.STRIPE
    config_template = "payments/config_stripe.go.j2"
    service_template = "payments/stripe.go.j2"
    requirements = [("github.com/stripe/stripe-go/v76", "v76.8.0")]

    def env_vars(self) -> list[EnvVar]:
        return [
            EnvVar("STRIPE_SECRET_KEY", "", "Stripe secret API key"),
            EnvVar("STRIPE_WEBHOOK_SECRET", "", "Signing secret of the webhook endpoint"),
        ]


PAYMENTS_FEATURES: dict[PaymentsProvider, type[PaymentsFeature]] = {
    PaymentsProvider.MERCADOPAGO: MercadoPagoPayments,
    PaymentsProvider.STRIPE: StripePayments,
}


def payments_feature(config: Configuration, strategy: BackendStrategy) -> PaymentsFeature | None:
    """Select the payments provider for an enriched configuration, or None"""
    if not config.payments_enabled:
        return None
    return PAYMENTS_FEATURES[config.payments.provider](config, strategy)
