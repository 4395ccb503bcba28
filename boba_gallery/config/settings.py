"""
Configuration settings for the Boba Drops gallery.

This module handles environment variable loading and configuration management
using Pydantic for validation and type safety.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Root directory of the boba_gallery package
PACKAGE_ROOT_DIR = Path(__file__).parent.parent.resolve()
DEFAULT_LOGGING_CONFIG_PATH = PACKAGE_ROOT_DIR / "config" / "logging_config.yaml"

NO_IMAGE_PLACEHOLDER_URL = (
    "https://hc-cdn.hel1.your-objectstorage.com/s/v3/"
    "ee0109f20430335ebb5cd3297a973ce244ed01cf_depositphotos_247872612-stock-"
    "illustration-no-image-available-icon-vector.jpg"
)


class Settings(BaseSettings):
    """
    Gallery configuration settings.

    All settings can be overridden via environment variables or a ``.env``
    file in the working directory.
    """

    # Application settings
    APP_NAME: str = "BobaDropsGallery"
    APP_VERSION: str = "1.0.0"

    # Submissions query API (Airtable proxy)
    API_BASE_DOMAIN: str = "api2.hackclub.com"
    API_TABLE_PATH: str = "v0.1/Boba Drops/Websites"
    QUERY_TIMEOUT_SECONDS: float = 30.0

    # CDN upload API
    API_TOKEN: Optional[str] = None
    CDN_API_URL: str = "https://cdn.hackclub.com/api/v3/new"
    CDN_HOST: str = "cdn.hackclub.com"
    CDN_UPLOAD_TIMEOUT_SECONDS: float = 30.0

    # Build-time image optimization
    OPTIMIZE_BATCH_SIZE: int = 10
    OPTIMIZE_BATCH_DELAY_SECONDS: float = 1.0

    # Interactive pagination
    ITEMS_PER_LOAD: int = 12
    SCROLL_THRESHOLD_PX: int = 1000

    # Rendering
    PLACEHOLDER_IMAGE_URL: str = NO_IMAGE_PLACEHOLDER_URL
    DESCRIPTION_PREVIEW_LENGTH: int = 100
    EAGER_IMAGE_COUNT: int = 6
    HIGH_PRIORITY_IMAGE_COUNT: int = 3

    # Persisted state and output files
    IMAGE_METADATA_PATH: str = ".github/data/image-metadata.json"
    CHECKSUM_PATH: str = ".github/data/gallery-checksum.txt"
    TEMPLATE_PATH: str = "gallery.template.html"
    OUTPUT_PATH: str = "gallery.html"
    TEMPLATE_PLACEHOLDER: str = "{{GALLERY_CONTENT}}"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOGGING_CONFIG_PATH: str = str(DEFAULT_LOGGING_CONFIG_PATH)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator(
        "OPTIMIZE_BATCH_SIZE",
        "ITEMS_PER_LOAD",
        "DESCRIPTION_PREVIEW_LENGTH",
    )
    @classmethod
    def must_be_positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("must be greater than 0")
        return value

    @field_validator(
        "QUERY_TIMEOUT_SECONDS",
        "CDN_UPLOAD_TIMEOUT_SECONDS",
    )
    @classmethod
    def timeout_must_be_positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("timeout must be greater than 0")
        return value

    @field_validator("API_TOKEN", mode="before")
    @classmethod
    def blank_token_is_missing(cls, value: Optional[str]) -> Optional[str]:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def query_url(self) -> str:
        """Full URL of the submissions table endpoint."""
        return f"https://{self.API_BASE_DOMAIN}/{self.API_TABLE_PATH.lstrip('/')}"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings: Configured settings instance
    """
    return Settings()
