"""Gemini Vision recognition service.

Renders nothing itself: it receives page images from the orchestrator, sends
them to a Gemini multimodal model with the OCR prompt and returns the text.
Transient failures are retried with exponential backoff (tenacity).

Requires GEMINI_API_KEY (or GOOGLE_API_KEY) in environment / .env file.
"""

from __future__ import annotations

import re
import time

import google.generativeai as genai
from tenacity import AsyncRetrying, stop_after_attempt, wait_exponential

from hybrid_ocr.config import Settings, settings
from hybrid_ocr.errors import ConfigurationError
from hybrid_ocr.interfaces import RecognitionService
from hybrid_ocr.logging import log
from hybrid_ocr.prompts.ocr import build_ocr_prompt
from hybrid_ocr.schemas.ocr import RecognitionResponse
from hybrid_ocr.schemas.options import OcrOptions


class EmptyRecognitionError(RuntimeError):
    """The model answered with no text."""


class GeminiVisionRecognizer(RecognitionService):
    name = "gemini"

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        max_retries: int | None = None,
        config: Settings | None = None,
    ) -> None:
        cfg = config or settings
        key = api_key or cfg.gemini_api_key
        if not key:
            raise ConfigurationError(
                "GEMINI_API_KEY is not set. Add it to .env or export it to enable OCR."
            )
        self.model_name = model or cfg.gemini_model
        self.max_retries = cfg.recognition_max_retries if max_retries is None else max_retries

        genai.configure(api_key=key)
        self._model = genai.GenerativeModel(self.model_name)
        log.info("gemini_client.configured", model=self.model_name)

    async def recognize(self, image_bytes: bytes, options: OcrOptions) -> RecognitionResponse:
        t0 = time.perf_counter()
        prompt = build_ocr_prompt(options.language)
        parts = [prompt, {"mime_type": options.mime_type, "data": image_bytes}]

        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.max_retries + 1),
            wait=wait_exponential(multiplier=1, min=1, max=8),
            reraise=True,
        ):
            with attempt:
                n = attempt.retry_state.attempt_number
                if n > 1:
                    log.warning("gemini_client.retry", attempt=n, model=self.model_name)
                response = await self._model.generate_content_async(parts)
                text = (response.text or "").strip()
                if not text:
                    raise EmptyRecognitionError("Empty response from Gemini Vision API")

        return RecognitionResponse(
            text=text,
            confidence=estimate_confidence(text),
            processing_time_ms=int((time.perf_counter() - t0) * 1000),
        )


def estimate_confidence(text: str) -> float:
    """Cheap plausibility score for recognized text; the model reports none."""
    if not text:
        return 0.0

    score = 0.5
    if len(text) > 100:
        score += 0.2
    if len(text) > 500:
        score += 0.1
    if re.search(r"[^\W\d_]", text):
        score += 0.1
    if re.search(r"\d", text):
        score += 0.05
    if re.search(r"[.,!?;:]", text):
        score += 0.05
    if "\n" in text:
        score += 0.05
    if re.search(r"\s{2,}", text):
        score += 0.05
    return min(score, 1.0)
