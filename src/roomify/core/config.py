from functools import lru_cache
from pathlib import Path

from pydantic import ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # App
    app_name: str = "Roomify Project Store"
    app_env: str = "development"  # development, testing, production
    debug: bool = False
    enable_openapi: bool = True
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        if v.upper() not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError("LOG_LEVEL must be one of DEBUG, INFO, WARNING, ERROR, CRITICAL")
        return v.upper()

    # Shutdown
    shutdown_grace_period: int = 30

    # Auth (tokens are issued by the external identity provider)
    auth_secret_key: str = "change-this-to-the-identity-provider-secret"
    auth_algorithm: str = "HS256"

    @field_validator("auth_secret_key")
    @classmethod
    def validate_auth_secret(cls, v: str, info: ValidationInfo) -> str:
        if info.data.get("app_env") == "production" and len(v) < 32:
            raise ValueError("AUTH_SECRET_KEY must be at least 32 characters in production")
        return v

    # CORS - the storage worker is open to any origin, without credentials
    cors_origins: list[str] = ["*"]

    # Redis (optional - persistence is disabled without it)
    redis_url: str | None = None  # e.g., "redis://localhost:6379/0"
    redis_pool_size: int = 10

    # Public namespace. When disabled there is no deployment-level store.
    enable_public_sharing: bool = True

    # Static hosting for durable image URLs
    hosting_root_dir: str = "roomify/hosting"
    hosting_app_id: str | None = None  # If set, relative roots live under ~/AppData/<id>/
    hosting_domain_suffix: str = ".puter.site"
    hosting_storage_path: Path = Path("var/hosting")
    image_fetch_timeout_seconds: float = 15.0

    @field_validator("hosting_domain_suffix")
    @classmethod
    def validate_domain_suffix(cls, v: str) -> str:
        if not v.startswith("."):
            raise ValueError("HOSTING_DOMAIN_SUFFIX must start with '.'")
        return v

    # Session client
    storage_worker_url: str | None = None  # If not set, client persistence is skipped
    storage_worker_timeout_seconds: float = 30.0


@lru_cache
def get_settings() -> Settings:
    return Settings()
