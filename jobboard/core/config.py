"""JobBoard configuration, loaded once from the environment at import time."""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_DEFAULT_ACCESS_SECRET = "access-secret-change-me"
_DEFAULT_REFRESH_SECRET = "refresh-secret-change-me"
_MIN_SECRET_LENGTH = 32


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "JobBoard"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"
    frontend_url: str = "http://localhost:5173"
    cors_origins: str = "http://localhost:5173,http://127.0.0.1:5173"

    # Server
    host: str = "127.0.0.1"
    port: int = 8000

    # Database
    database_url: str = "sqlite+aiosqlite:///./jobboard.db"
    db_pool_size: int = 20
    db_max_overflow: int = 20
    db_pool_timeout: int = 30
    db_pool_recycle: int = 1800

    # JWT. Access and refresh tokens are signed with separate keys.
    jwt_access_secret_key: str = _DEFAULT_ACCESS_SECRET
    jwt_refresh_secret_key: str = _DEFAULT_REFRESH_SECRET
    jwt_algorithm: str = "HS256"
    jwt_access_token_expire_minutes: int = 15
    jwt_refresh_token_expire_days: int = 7

    # When true, a login reuses the user's live refresh identifier instead of
    # minting a new one, so devices share one refresh family.
    session_reuse_refresh_id: bool = False

    # Argon2id cost parameters
    password_hash_time_cost: int = 3
    password_hash_memory_cost: int = 65536
    password_hash_parallelism: int = 4

    # Password reset
    password_reset_expire_minutes: int = 30
    notification_webhook_url: str | None = None
    http_timeout: float = 5.0

    @field_validator("jwt_algorithm")
    @classmethod
    def validate_jwt_algorithm(cls, v: str) -> str:
        allowed = {"HS256", "HS384", "HS512"}
        if v not in allowed:
            raise ValueError(f"jwt_algorithm must be one of {sorted(allowed)}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        v = v.upper()
        if v not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {v}")
        return v

    @field_validator("jwt_access_token_expire_minutes", "jwt_refresh_token_expire_days")
    @classmethod
    def validate_positive_lifetime(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("Token lifetimes must be positive")
        return v

    @property
    def cors_origins_list(self) -> list[str]:
        """CORS origins as a list (comma-separated in the environment)."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    def check_security_configuration(self) -> list[str]:
        """Return warnings for weak or default secrets.

        Startup logs these but does not refuse to boot, so local development
        works without a populated .env.
        """
        warnings: list[str] = []

        if self.jwt_access_secret_key == _DEFAULT_ACCESS_SECRET:
            warnings.append("JWT_ACCESS_SECRET_KEY is using the default value")
        if self.jwt_refresh_secret_key == _DEFAULT_REFRESH_SECRET:
            warnings.append("JWT_REFRESH_SECRET_KEY is using the default value")

        for name, value in (
            ("JWT_ACCESS_SECRET_KEY", self.jwt_access_secret_key),
            ("JWT_REFRESH_SECRET_KEY", self.jwt_refresh_secret_key),
        ):
            if len(value) < _MIN_SECRET_LENGTH:
                warnings.append(f"{name} is shorter than {_MIN_SECRET_LENGTH} characters")

        if self.jwt_access_secret_key == self.jwt_refresh_secret_key:
            warnings.append(
                "JWT_ACCESS_SECRET_KEY and JWT_REFRESH_SECRET_KEY have the same value; "
                "access tokens could be replayed as refresh tokens"
            )

        if not self.notification_webhook_url and not self.debug:
            warnings.append(
                "NOTIFICATION_WEBHOOK_URL is not set; password reset requests will fail"
            )

        return warnings


settings = Settings()


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return settings
