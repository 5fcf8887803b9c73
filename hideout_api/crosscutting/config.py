"""
Name: Application Configuration (Settings)

Responsibilities:
  - Centralized, typed configuration using pydantic-settings
  - Validate environment variables at startup
  - Expose the flags read by the legacy API layer and the job bootstrap guard

Collaborators:
  - api/main.py: lifespan reads pool and runtime settings
  - api/bootstrap.py: reads app_runtime and enable_replenishment_job
  - api/deprecation.py: reads legacy_api_sunset and legacy_api_migration_link
  - container.py: picks in-memory vs Postgres adapters, fake vs Google services

Constraints:
  - No business logic, pure configuration

Notes:
  - Singleton via lru_cache
  - DATABASE_URL is only mandatory outside test environments
"""

from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_TEST_ENVS = {"test", "testing", "ci"}
_RUNTIMES = {"server", "edge"}


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        database_url: PostgreSQL connection string
        app_env: Application environment (development/production/test)
        app_runtime: Runtime discriminator ("server" starts background work, "edge" never does)
        enable_replenishment_job: Opt-out flag for the stash replenishment job
        replenishment_interval_seconds: Seconds between replenishment ticks (default: 300)
        legacy_api_sunset: HTTP date announced in the Sunset header of legacy routes
        legacy_api_migration_link: Target of the rel="deprecation" Link header
        jwt_secret: Secret used to verify session tokens
        auth_cookie_name: Cookie that carries the session token
        google_api_key: Google Gemini API key
        gemini_model: Gemini model id used by the build services
        fake_llm: Use deterministic fakes instead of Gemini
    """

    database_url: str = ""

    # Environment
    app_env: str = "development"
    app_runtime: str = "server"

    # Background job
    enable_replenishment_job: bool = True
    replenishment_interval_seconds: int = 300

    # Legacy API
    legacy_api_sunset: str = "Wed, 30 Sep 2026 23:59:59 GMT"
    legacy_api_migration_link: str = "/MIGRATION.md"

    # Security - session tokens
    jwt_secret: str = "dev-secret"
    auth_cookie_name: str = "auth_token"

    # Database - Connection Pool
    db_pool_min_size: int = 2
    db_pool_max_size: int = 10
    db_statement_timeout_ms: int = 30000  # 30 seconds

    # AI services
    google_api_key: str = ""
    gemini_model: str = "gemini-2.0-flash"
    fake_llm: bool = False

    # Retry/Resilience
    retry_max_attempts: int = 3
    retry_base_delay_seconds: float = 1.0
    retry_max_delay_seconds: float = 30.0

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    @field_validator("app_runtime")
    @classmethod
    def app_runtime_valid(cls, v: str) -> str:
        runtime = (v or "server").strip().lower()
        if runtime not in _RUNTIMES:
            raise ValueError("app_runtime must be server or edge")
        return runtime

    @field_validator("replenishment_interval_seconds")
    @classmethod
    def interval_must_be_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("replenishment_interval_seconds must be greater than 0")
        return v

    @model_validator(mode="after")
    def validate_database_requirements(self):
        if not self.database_url.strip() and not self.is_test():
            raise ValueError("DATABASE_URL is required outside test environments")
        return self

    @model_validator(mode="after")
    def validate_security_requirements(self):
        if not self.is_production():
            return self

        insecure_secrets = {"dev-secret", "changeme", "change-me", "password"}
        jwt_secret = (self.jwt_secret or "").strip()
        if not jwt_secret or jwt_secret in insecure_secrets:
            raise ValueError(
                "JWT_SECRET must be set to a strong, non-default value in production"
            )
        if len(jwt_secret) < 32:
            raise ValueError("JWT_SECRET must be at least 32 characters in production")
        return self

    def is_production(self) -> bool:
        return self.app_env.strip().lower() == "production"

    def is_test(self) -> bool:
        return self.app_env.strip().lower() in _TEST_ENVS

    def use_fake_ai(self) -> bool:
        """Fakes when explicitly requested or when no Gemini key is configured."""
        return self.fake_llm or not self.google_api_key.strip()

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get singleton Settings instance.

    Raises:
        ValidationError: If required env vars are missing or invalid
    """
    return Settings()
