"""
Application configuration using Pydantic settings.

Configuration is loaded from environment variables (prefix
MINIO_MANAGER_) or a .env file, with defaults suitable for running the
file manager on your own machine.

These are process settings only. The storage endpoint and credentials
are entered by the user and kept in the credential store, not here.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    For lists (like cors_origins), use comma-separated values in env.
    """

    # API Configuration
    api_title: str = "MinIO File Manager"
    api_version: str = "v1"

    # Local shell binding
    host: str = Field(
        default="127.0.0.1",
        description="Interface the local shell listens on"
    )
    port: int = Field(
        default=8000,
        description="Port the local shell listens on"
    )

    # Credential Store
    credential_store_path: str = Field(
        default="~/.minio-manager/storage.json",
        description="JSON file holding the obfuscated connection settings"
    )

    # Storage
    request_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout for each request to the storage endpoint"
    )
    storage_mock_mode: bool = Field(
        default=False,
        description="Use in-memory storage and credentials instead of a real MinIO server."
    )
    max_upload_size_mb: int = Field(
        default=100,
        ge=1,
        description="Maximum size of a single uploaded file in MB"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    # CORS
    cors_origins: str = Field(
        default="http://localhost:5173,http://localhost:3000",
        description="Comma-separated list of allowed CORS origins for a front-end dev server."
    )

    model_config = SettingsConfigDict(
        env_prefix="MINIO_MANAGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse comma-separated CORS origins into a list."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def max_upload_size_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Settings are loaded once per process. For tests, call
    get_settings.cache_clear() to reset.
    """
    return Settings()
