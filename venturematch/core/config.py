"""
Configuration module with strict validation.

Key principles:
- APP STARTUP requires only DATABASE_URL
- Public auth endpoints require ANON_KEY (checked at call time)
- Admin operations require SERVICE_ROLE_KEY (fails early with clear error)
- Safe defaults for all upload limits and storage paths
"""
from typing import Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class MissingAPIKeyError(Exception):
    """Raised when an operation needs a platform key that is not configured."""
    pass


class Settings(BaseSettings):
    """Application settings with validation.

    Loads from environment variables and .env file.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Database (REQUIRED for API startup)
    database_url: str = Field(
        ...,
        description="PostgreSQL (or SQLite for local dev) connection URL"
    )

    # Public key (OPTIONAL for startup, REQUIRED by signup/login)
    anon_key: Optional[str] = Field(
        default=None,
        description="Public API key sent by clients in the apikey header"
    )

    # Server-only key (OPTIONAL for startup, REQUIRED for admin operations)
    service_role_key: Optional[str] = Field(
        default=None,
        description="Privileged key that enables admin routes"
    )

    # Sessions
    jwt_secret_key: str = Field(
        default="venturematch-secret-key-change-in-production",
        description="Secret used to sign access tokens"
    )

    access_token_expire_minutes: int = Field(
        default=60,
        ge=5,
        le=1440,
        description="Access token lifetime in minutes"
    )

    # Uploads
    max_csv_upload_mb: int = Field(
        default=5,
        ge=1,
        le=100,
        description="Maximum size of a CSV/spreadsheet upload"
    )

    max_investor_file_mb: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Maximum size of an admin investor spreadsheet"
    )

    max_image_upload_mb: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Maximum size of a logo/cover/profile image"
    )

    storage_dir: str = Field(
        default="./storage",
        description="Directory where uploaded images are written"
    )

    public_storage_url: str = Field(
        default="/storage",
        description="URL prefix under which stored images are served"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the standard levels."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v_upper

    @field_validator("public_storage_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/") or "/"

    def require_anon_key(self) -> str:
        """
        Get the public key, raising clear error if missing.

        Raises:
            MissingAPIKeyError: If the key is not configured
        """
        if not self.anon_key:
            raise MissingAPIKeyError(
                "ANON_KEY is required for authentication endpoints. "
                "Please set it in your .env file or environment variables."
            )
        return self.anon_key

    def require_service_role_key(self) -> str:
        """
        Get the service role key, raising clear error if missing.

        Call this at the START of any admin operation.

        Raises:
            MissingAPIKeyError: If the key is not configured
        """
        if not self.service_role_key:
            raise MissingAPIKeyError(
                "SERVICE_ROLE_KEY is required for admin operations. "
                "Please set it in your .env file or environment variables."
            )
        return self.service_role_key


# Global settings instance (lazy-loaded)
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get application settings (singleton pattern).

    Raises validation error if required settings are missing.
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings singleton (useful for testing)."""
    global _settings
    _settings = None
