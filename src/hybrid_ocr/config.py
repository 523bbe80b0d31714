"""Centralised settings loaded from environment / .env file."""

import os
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # silently ignore env vars not declared as fields
    )

    # Recognition service
    # Accepts GEMINI_API_KEY or GOOGLE_API_KEY — either env var is sufficient
    gemini_api_key: str | None = Field(None, description="Gemini API key for vision OCR")

    @model_validator(mode="after")
    def _coerce_gemini_key(self) -> "Settings":
        """Fall back to GOOGLE_API_KEY if GEMINI_API_KEY is not set."""
        if not self.gemini_api_key:
            self.gemini_api_key = os.environ.get("GOOGLE_API_KEY") or None
        return self

    gemini_model: str = "gemini-2.5-flash"
    recognition_backend: Literal["gemini", "tesseract"] = "gemini"
    tesseract_cmd: str = ""
    recognition_max_retries: int = 3
    recognition_timeout: float = 30.0  # seconds per page, rasterize + recognize

    # Batching
    batch_size: int = Field(5, ge=1)
    batch_delay_seconds: float = 1.0

    # Rasterization
    default_density: int = 300
    default_format: Literal["png", "jpg", "jpeg"] = "png"
    max_image_size: int = 4000

    # Legacy length heuristics
    min_text_length_for_text_based: int = 50  # whole document
    min_text_length_per_page: int = 20

    # Text quality validation
    validation_enabled: bool = True
    validation_timeout: float = 5.0
    ocr_trigger_confidence_threshold: float = Field(0.5, ge=0.0, le=1.0)
    min_absolute_length: int = 10
    min_word_count: int = 3
    min_word_density: float = 0.05
    min_text_entropy: float = 1.5
    min_char_diversity: float = 0.25
    diversity_window: int = 50
    max_dominant_char_ratio: float = 0.5
    validation_disagreement_policy: Literal["prefer_validation", "report"] = "prefer_validation"

    # Local extraction
    page_extraction_timeout: float = 10.0

    # Limits
    max_file_size_bytes: int = 50 * 1024 * 1024
    max_pages: int = 100

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_reload: bool = False

    # Logging
    log_level: str = "INFO"
    log_format: Literal["auto", "console", "json"] = "auto"


settings = Settings()
