"""Local Tesseract recognition service (pytesseract), selected with RECOGNITION_BACKEND=tesseract."""

from __future__ import annotations

import asyncio
import io
import time

import pytesseract
from PIL import Image

from hybrid_ocr.config import Settings, settings
from hybrid_ocr.errors import ConfigurationError
from hybrid_ocr.interfaces import RecognitionService
from hybrid_ocr.schemas.ocr import RecognitionResponse
from hybrid_ocr.schemas.options import OcrOptions

# ISO 639-1 hints → Tesseract traineddata names
_LANGUAGES = {
    "en": "eng",
    "vi": "vie",
    "fr": "fra",
    "de": "deu",
    "es": "spa",
    "zh": "chi_sim",
    "ja": "jpn",
    "ru": "rus",
}


class TesseractRecognizer(RecognitionService):
    name = "tesseract"

    def __init__(self, config: Settings | None = None) -> None:
        cfg = config or settings
        if cfg.tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = cfg.tesseract_cmd
        try:
            pytesseract.get_tesseract_version()
        except pytesseract.TesseractNotFoundError as exc:
            raise ConfigurationError("Tesseract binary not found", exc) from exc

    async def recognize(self, image_bytes: bytes, options: OcrOptions) -> RecognitionResponse:
        return await asyncio.to_thread(self._recognize, image_bytes, options)

    def _recognize(self, image_bytes: bytes, options: OcrOptions) -> RecognitionResponse:
        t0 = time.perf_counter()
        lang = _LANGUAGES.get(options.language, options.language) or "eng"
        with Image.open(io.BytesIO(image_bytes)) as image:
            data = pytesseract.image_to_data(image, lang=lang, output_type=pytesseract.Output.DICT)

        words = [w for w in data["text"] if w.strip()]
        confidences = [
            float(c) for c, w in zip(data["conf"], data["text"]) if w.strip() and float(c) >= 0
        ]
        text = " ".join(words)
        avg_conf = (sum(confidences) / len(confidences) / 100.0) if confidences else 0.0

        return RecognitionResponse(
            text=text,
            confidence=min(max(avg_conf, 0.0), 1.0),
            processing_time_ms=int((time.perf_counter() - t0) * 1000),
        )
