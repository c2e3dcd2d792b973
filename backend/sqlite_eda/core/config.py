"""
Centralized configuration management.

All application configuration is loaded and validated here.
"""
import os
import logging
from typing import List, Optional
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

SUPPORTED_DATABASE_TYPES = ["sqlite"]


class Settings(BaseModel):
    """Application settings with validation."""

    # Database
    database_path: Optional[str] = Field(default=None, description="Path to the SQLite database file")
    database_type: str = Field(default="sqlite", description="Database engine (only sqlite is implemented)")

    # Server
    host: str = Field(default="127.0.0.1", description="Interface the HTTP server binds to")
    port: int = Field(default=3333, ge=1, le=65535, description="First port to try when starting the server")

    # Profiling
    sample_size: int = Field(default=1000, ge=1, le=100000, description="Rows sampled for type detection")

    # Rate limiting (ad-hoc query endpoint)
    rate_limit_per_minute: int = Field(default=60, ge=1, le=10000, description="Query rate limit per minute per IP")

    # Request timeout
    request_timeout_seconds: int = Field(default=300, ge=1, le=3600, description="Request timeout in seconds")

    # CORS
    allowed_origins: str = Field(
        default="http://localhost:3000,http://localhost:3333",
        description="Comma-separated list of allowed CORS origins"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="text", description="Log output format: text or json")

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}, got '{v}'")
        return v.upper()

    @field_validator('log_format')
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        if v.lower() not in ("text", "json"):
            raise ValueError(f"LOG_FORMAT must be 'text' or 'json', got '{v}'")
        return v.lower()

    @field_validator('database_type')
    @classmethod
    def normalize_database_type(cls, v: str) -> str:
        # Unsupported engines are rejected when connecting, not here
        return v.strip().lower()

    @property
    def allowed_origins_list(self) -> List[str]:
        """Get allowed origins as a list."""
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables (and a .env file if present)."""
        load_dotenv()
        return cls(
            database_path=os.getenv("DATABASE_PATH") or None,
            database_type=os.getenv("DATABASE_TYPE", "sqlite"),
            host=os.getenv("HOST", "127.0.0.1"),
            port=int(os.getenv("PORT", "3333")),
            sample_size=int(os.getenv("SAMPLE_SIZE", "1000")),
            rate_limit_per_minute=int(os.getenv("RATE_LIMIT_PER_MINUTE", "60")),
            request_timeout_seconds=int(os.getenv("REQUEST_TIMEOUT_SECONDS", "300")),
            allowed_origins=os.getenv("ALLOWED_ORIGINS", "http://localhost:3000,http://localhost:3333"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "text"),
        )


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get application settings (singleton pattern)."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
        logger.info("Configuration loaded and validated successfully")
    return _settings


def reload_settings() -> Settings:
    """Reload settings (useful for testing)."""
    global _settings
    _settings = None
    return get_settings()
