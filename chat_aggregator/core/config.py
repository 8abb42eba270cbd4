"""Chat Aggregator Configuration - environment-driven settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Placeholder secrets shipped for local development only.
# Rejected at startup when ENVIRONMENT=production.
DEFAULT_JWT_SECRET = "your-super-secret-jwt-key-change-in-production"
DEFAULT_JWT_REFRESH_SECRET = "your-super-secret-refresh-key-change-in-production"

_PLACEHOLDER_SECRETS = {DEFAULT_JWT_SECRET, DEFAULT_JWT_REFRESH_SECRET}

MIN_SECRET_LENGTH = 32


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    app_name: str = "Chat Aggregator"
    app_version: str = "0.1.0"
    environment: Literal["development", "test", "production"] = "development"
    debug: bool = False
    log_level: str = "INFO"

    # Database
    database_url: str = "sqlite+aiosqlite:///./main.db"
    db_pool_size: int = Field(default=20, ge=1)
    db_max_overflow: int = Field(default=20, ge=0)
    db_pool_timeout: int = Field(default=30, ge=1)
    db_pool_recycle: int = Field(default=1800, ge=60)

    # JWT - two independent secrets so a leaked access secret
    # cannot mint refresh tokens and vice versa
    jwt_secret: str = DEFAULT_JWT_SECRET
    jwt_refresh_secret: str = DEFAULT_JWT_REFRESH_SECRET
    jwt_algorithm: str = "HS256"
    jwt_access_token_expire_minutes: int = Field(default=15, ge=1, le=60)
    jwt_refresh_token_expire_days: int = Field(default=7, ge=1, le=30)

    # Cookie sessions (web flow)
    session_ttl_hours: int = Field(default=24, ge=1)
    session_cookie_name: str = "session_id"

    # Background sweeps
    session_sweep_interval_seconds: int = Field(default=3600, ge=1)
    token_sweep_interval_seconds: int = Field(default=3600, ge=1)

    # Argon2id cost parameters
    argon2_time_cost: int = Field(default=3, ge=1)
    argon2_memory_cost: int = Field(default=65536, ge=8)
    argon2_parallelism: int = Field(default=4, ge=1)

    # Observability
    enable_metrics: bool = True

    # CORS
    ui_origin: str = "http://localhost:3000"
    cors_origins: str = "http://localhost:3000,http://localhost:3001"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def session_cookie_secure(self) -> bool:
        """Session cookies are only marked Secure in production."""
        return self.is_production

    @property
    def session_max_age_seconds(self) -> int:
        return self.session_ttl_hours * 3600

    @property
    def cors_origins_list(self) -> list[str]:
        origins = [o.strip() for o in self.cors_origins.split(",") if o.strip()]
        if self.ui_origin and self.ui_origin not in origins:
            origins.insert(0, self.ui_origin)
        return origins

    @model_validator(mode="after")
    def _require_secrets_in_production(self) -> "Settings":
        if not self.is_production:
            return self
        for name in ("jwt_secret", "jwt_refresh_secret"):
            value = getattr(self, name)
            if not value:
                raise ValueError(f"{name.upper()} must be set in production")
            if value in _PLACEHOLDER_SECRETS:
                raise ValueError(f"{name.upper()} must not use the development placeholder in production")
        return self

    def check_security_configuration(self) -> list[str]:
        """Return human-readable warnings about weak secret configuration."""
        warnings: list[str] = []

        if self.jwt_secret in _PLACEHOLDER_SECRETS:
            warnings.append("JWT_SECRET uses the development placeholder")
        if self.jwt_refresh_secret in _PLACEHOLDER_SECRETS:
            warnings.append("JWT_REFRESH_SECRET uses the development placeholder")

        if self.jwt_secret and self.jwt_secret == self.jwt_refresh_secret:
            warnings.append(
                "JWT_SECRET and JWT_REFRESH_SECRET are identical; "
                "a leaked access secret would also forge refresh tokens"
            )

        for name in ("jwt_secret", "jwt_refresh_secret"):
            value = getattr(self, name)
            if value and len(value) < MIN_SECRET_LENGTH:
                warnings.append(f"{name.upper()} is shorter than {MIN_SECRET_LENGTH} characters")

        return warnings


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
