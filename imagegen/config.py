from __future__ import annotations

from datetime import datetime
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from a .env file if present (local dev only)
load_dotenv()


class Settings(BaseSettings):
    """Application configuration loaded from environment variables or .env file."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # General
    project_id: Optional[str] = Field(default=None, description="GCP project ID")

    # Platform-held provider secrets, used when the caller pays with credits
    openai_api_key: Optional[str] = None
    fireworks_api_key: Optional[str] = None
    stability_api_key: Optional[str] = None

    # Firebase
    firebase_credentials_json: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("GOOGLE_APPLICATION_CREDENTIALS", "FIREBASE_CREDENTIALS_JSON"),
        description="Path to service-account JSON file or JSON string itself.",
    )

    # Cloud Storage
    bucket_name: str = "imagegen-assets"
    signed_url_expiry: datetime = Field(
        datetime(2125, 3, 17),
        description="Absolute expiry for signed read URLs on stored images.",
    )

    # Image storage
    normalize_jpeg: bool = Field(True, description="Re-encode stored images as JPEG so bytes match the .jpg path.")
    image_quality: int = Field(90, ge=1, le=100, description="JPEG quality for re-encoded uploads (1-100).")

    # Credits
    min_credits: int = Field(2, description="Minimum credit balance required to generate with platform keys.")

    # Serving
    host: str = "0.0.0.0"
    port: int = 8080

    # Outbound HTTP
    http_timeout: float = Field(120.0, ge=0, description="Seconds to wait on vendor calls; 0 disables the timeout.")


@lru_cache()
def get_settings() -> Settings:  # pragma: no cover
    """Return a cached Settings instance so it is only parsed once."""

    return Settings()
