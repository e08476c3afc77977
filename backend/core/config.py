"""
Backend Configuration

Pydantic settings for the FastAPI backend.
"""

from pydantic_settings import BaseSettings
from pydantic import Field
from typing import Dict, List
from functools import lru_cache

from slidecraft.core.constants import GEMINI_BASE_URL, IMAGE_MODEL_NAME, TEXT_MODEL_NAME, ImageSize


class Settings(BaseSettings):
    """Application settings."""

    # Server
    environment: str = Field(default="development")
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")

    # CORS
    cors_origins: List[str] = Field(
        default=["http://localhost:3000", "http://127.0.0.1:3000"]
    )

    # Supabase
    supabase_url: str = Field(default="")
    supabase_anon_key: str = Field(default="")
    supabase_service_key: str = Field(default="")
    reference_bucket: str = Field(default="reference-images")
    signed_url_ttl_seconds: int = Field(default=3600)

    # Gemini
    gemini_api_key: str = Field(default="")
    gemini_base_url: str = Field(default=GEMINI_BASE_URL)
    image_model: str = Field(default=IMAGE_MODEL_NAME)
    text_model: str = Field(default=TEXT_MODEL_NAME)
    request_timeout_seconds: float = Field(default=120.0)

    # Generation
    generation_max_retries: int = Field(default=0, ge=0)
    default_image_size: ImageSize = Field(default=ImageSize.SIZE_1K)

    # Credits
    free_credit_cap: int = Field(default=3)
    default_monthly_credits: int = Field(default=60)
    plan_credits: Dict[str, int] = Field(
        default={"basic": 60, "pro": 200, "business": 600}
    )

    # Rate limits
    generation_rate_limit: str = Field(default="10/minute")
    storyboard_rate_limit: str = Field(default="5/minute")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
