"""Recognition service factory."""

from __future__ import annotations

from hybrid_ocr.config import Settings, settings
from hybrid_ocr.errors import ConfigurationError
from hybrid_ocr.interfaces import RecognitionService


def build_recognizer(config: Settings | None = None) -> RecognitionService:
    """Construct the configured recognition backend.

    Raises:
        ConfigurationError: if the backend is unknown or cannot be set up.
    """
    cfg = config or settings
    backend = cfg.recognition_backend

    if backend == "gemini":
        from hybrid_ocr.utils.gemini_client import GeminiVisionRecognizer
        return GeminiVisionRecognizer(config=cfg)
    if backend == "tesseract":
        from hybrid_ocr.utils.tesseract_client import TesseractRecognizer
        return TesseractRecognizer(config=cfg)

    raise ConfigurationError(f"Unknown recognition backend: {backend!r}")
