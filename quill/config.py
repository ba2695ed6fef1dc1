"""Application Configuration: environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache), single instance per process
    - Defaults work for local development without a .env file
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = (
        "postgresql+asyncpg://quill:quill@db:5432/quill"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosted Postgres URLs use postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Identity provider (Identity Toolkit REST wire format)
    identity_api_url: str = "https://identitytoolkit.googleapis.com"
    identity_api_key: str = "identity-placeholder"

    # Object storage
    storage_backend: str = "local"  # "local" | "http"
    storage_api_url: str = "https://firebasestorage.googleapis.com"
    storage_bucket: str = "quill-media"
    media_root: str = "media"
    media_base_url: str = "/media"

    # Uploads
    max_upload_bytes: int = 5 * 1024 * 1024
    allowed_image_types: list[str] = [
        "image/jpeg", "image/png", "image/gif", "image/webp",
    ]

    # Content
    posts_page_size: int = 6
    min_password_length: int = 6

    # Outbound HTTP
    http_timeout_seconds: float = 30.0

    # API
    cors_origins: list[str] = ["http://localhost:3000"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    @field_validator("storage_backend")
    @classmethod
    def check_storage_backend(cls, v: str) -> str:
        v = v.lower()
        if v not in ("local", "http"):
            raise ValueError("storage_backend must be 'local' or 'http'")
        return v


@lru_cache
def get_settings() -> Settings:
    return Settings()
