"""Server settings loaded from ``APOLLO_*`` environment variables and .env."""

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict

from apollo_asgi.models import DEFAULT_GRAPHQL_PATH, HealthCheckMode


class ServerSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="APOLLO_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── General ───────────────────────────────
    environment: str = "development"
    log_level: str = "INFO"
    service_name: str = "apollo-asgi"

    # ── HTTP ──────────────────────────────────
    host: str = "127.0.0.1"
    port: int = 4000
    cors: bool = False

    # ── GraphQL mount ─────────────────────────
    graphql_path: str = DEFAULT_GRAPHQL_PATH
    subscriptions_path: str | None = None
    disable_health_check: bool = False
    health_check_mode: HealthCheckMode = HealthCheckMode.SEPARATE
    playground: bool | None = None

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def json_logs(self) -> bool:
        return self.is_production

    @property
    def playground_enabled(self) -> bool:
        """Explicit setting wins; otherwise on everywhere but production."""
        if self.playground is not None:
            return self.playground
        return not self.is_production
