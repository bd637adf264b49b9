"""Application configuration using Pydantic Settings.

This module provides type-safe environment variable management
for the HTTP layer, the database and the location pipeline.
"""

from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Attributes:
        APP_ENV: Application environment (development, staging, production).
        DEBUG: Enable debug mode.
        API_PREFIX: Prefix for all API routes.
        DATABASE_URL: Async SQLAlchemy connection string.
        CREATE_TABLES_ON_STARTUP: Run ``create_all`` in the app lifespan.
        CORS_ORIGINS: Comma-separated list of allowed CORS origins.
        UPLOAD_DIR: Directory where uploaded payloads are stored.
        MAX_UPLOAD_SIZE: Maximum accepted upload size in bytes.
        ALLOW_ANONYMOUS_UPLOADS: Accept uploads without a session token.
        SESSION_TTL_DAYS: Lifetime of a login session.
        MARKER_PRECISION: Decimal places used to bucket media into markers.
        ADDRESS_CACHE_PRECISION: Decimal places of the address cache key.
        NEARBY_TOLERANCE: Degrees around a point for location lookups.
        GEOCODER_URL: Reverse geocoding endpoint (Nominatim compatible).
        GEOCODER_USER_AGENT: Client identifier sent to the geocoder.
        GEOCODER_TIMEOUT: Seconds before a geocoding request is abandoned.
        OCR_ENABLED: Run Tesseract over images without a GPS tag.
        OCR_LANGUAGE: Tesseract language code.
        OCR_TIMEOUT: Seconds allowed for the OCR step.
        EXTRACTION_STEP_TIMEOUT: Seconds allowed for every other step.
        HEMISPHERE_POLICY: Name of the regional hemisphere policy.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Application
    APP_ENV: str = "development"
    DEBUG: bool = False
    API_PREFIX: str = "/api"

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./mediamap.db"
    CREATE_TABLES_ON_STARTUP: bool = True

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000"

    # Uploads and sessions
    UPLOAD_DIR: Path = Path("uploads/media")
    MAX_UPLOAD_SIZE: int = 50 * 1024 * 1024
    ALLOW_ANONYMOUS_UPLOADS: bool = False
    SESSION_TTL_DAYS: int = 7

    # Location pipeline
    MARKER_PRECISION: int = Field(default=3, ge=0, le=8)
    ADDRESS_CACHE_PRECISION: int = Field(default=4, ge=0, le=8)
    NEARBY_TOLERANCE: float = 0.001
    GEOCODER_URL: str = "https://nominatim.openstreetmap.org/reverse"
    GEOCODER_USER_AGENT: str = "mediamap/0.1 (reverse geocoding)"
    GEOCODER_TIMEOUT: float = 10.0
    OCR_ENABLED: bool = True
    OCR_LANGUAGE: str = "eng"
    OCR_TIMEOUT: float = 30.0
    EXTRACTION_STEP_TIMEOUT: float = 10.0
    HEMISPHERE_POLICY: str = "southern_africa"

    @property
    def is_sqlite(self) -> bool:
        """Whether the configured database is SQLite."""
        return self.DATABASE_URL.startswith("sqlite")

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string.

        Returns:
            List of allowed origin URLs.
        """
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Singleton Settings instance.
    """
    return Settings()


settings = get_settings()
