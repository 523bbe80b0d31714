"""Caller-supplied options for a single extraction request."""

from typing import Literal

from pydantic import BaseModel, Field


class OcrOptions(BaseModel):
    language: str = "en"
    enhance_image: bool = True
    density: int = Field(default=300, ge=72, le=600)
    format: Literal["png", "jpg", "jpeg"] = "png"
    width: int | None = Field(default=None, ge=100, le=4000)
    height: int | None = Field(default=None, ge=100, le=4000)

    @property
    def mime_type(self) -> str:
        return "image/png" if self.format == "png" else "image/jpeg"


class ProcessingOptions(BaseModel):
    enable_ocr: bool = True
    ocr: OcrOptions = Field(default_factory=OcrOptions)
    # None means "use the process-wide setting"
    validation_enabled: bool | None = None
    confidence_threshold: float | None = Field(default=None, ge=0.0, le=1.0)
    deadline_seconds: float | None = Field(default=None, gt=0.0)
