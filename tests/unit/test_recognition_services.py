"""Unit tests for the recognition backends (remote APIs and binaries mocked)."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import pytesseract

from hybrid_ocr.errors import ConfigurationError
from hybrid_ocr.prompts.ocr import build_ocr_prompt
from hybrid_ocr.schemas.options import OcrOptions
from hybrid_ocr.utils.gemini_client import EmptyRecognitionError, GeminiVisionRecognizer, estimate_confidence
from hybrid_ocr.utils.recognition import build_recognizer


class TestGemini:
    def test_missing_key(self, test_settings):
        with pytest.raises(ConfigurationError, match="GEMINI_API_KEY"):
            GeminiVisionRecognizer(config=test_settings)

    @patch("hybrid_ocr.utils.gemini_client.genai")
    def test_recognize(self, mock_genai, test_settings):
        model = MagicMock()
        model.generate_content_async = AsyncMock(return_value=MagicMock(text="  Hello world.\n"))
        mock_genai.GenerativeModel.return_value = model

        recognizer = GeminiVisionRecognizer(api_key="test-key", config=test_settings)
        response = asyncio.run(recognizer.recognize(b"img", OcrOptions(format="jpg", language="vi")))

        assert response.text == "Hello world."
        assert 0.0 < response.confidence <= 1.0
        mock_genai.configure.assert_called_once_with(api_key="test-key")

        prompt, image = model.generate_content_async.call_args.args[0]
        assert "written in: vi" in prompt
        assert image == {"mime_type": "image/jpeg", "data": b"img"}

    @patch("hybrid_ocr.utils.gemini_client.genai")
    def test_empty_answer_raises(self, mock_genai, test_settings):
        model = MagicMock()
        model.generate_content_async = AsyncMock(return_value=MagicMock(text="   "))
        mock_genai.GenerativeModel.return_value = model

        recognizer = GeminiVisionRecognizer(api_key="k", max_retries=0, config=test_settings)
        with pytest.raises(EmptyRecognitionError):
            asyncio.run(recognizer.recognize(b"img", OcrOptions()))
        assert model.generate_content_async.await_count == 1

    @patch("hybrid_ocr.utils.gemini_client.genai")
    def test_retries_transient_failure(self, mock_genai, test_settings):
        model = MagicMock()
        model.generate_content_async = AsyncMock(
            side_effect=[ConnectionError("reset"), MagicMock(text="second try")]
        )
        mock_genai.GenerativeModel.return_value = model

        recognizer = GeminiVisionRecognizer(api_key="k", max_retries=1, config=test_settings)
        response = asyncio.run(recognizer.recognize(b"img", OcrOptions()))
        assert response.text == "second try"
        assert model.generate_content_async.await_count == 2


class TestEstimateConfidence:
    def test_empty(self):
        assert estimate_confidence("") == 0.0

    def test_richer_text_scores_higher(self):
        short = estimate_confidence("abc")
        rich = estimate_confidence("Invoice 2024-03\nTotal: 1,250.00 EUR. " * 20)
        assert rich > short
        assert rich <= 1.0


class TestPrompt:
    def test_language_hint(self):
        assert "written in: vi" in build_ocr_prompt("vi")
        assert build_ocr_prompt(None) != build_ocr_prompt("vi")

    def test_structured(self):
        assert build_ocr_prompt(structured=True) != build_ocr_prompt()


class TestTesseract:
    @patch("hybrid_ocr.utils.tesseract_client.pytesseract.get_tesseract_version")
    def test_missing_binary(self, mock_version, test_settings):
        mock_version.side_effect = pytesseract.TesseractNotFoundError()
        config = test_settings.model_copy(update={"recognition_backend": "tesseract"})
        with pytest.raises(ConfigurationError, match="Tesseract"):
            build_recognizer(config)

    @patch("hybrid_ocr.utils.tesseract_client.pytesseract.image_to_data")
    @patch("hybrid_ocr.utils.tesseract_client.pytesseract.get_tesseract_version")
    def test_recognize(self, mock_version, mock_data, test_settings):
        import io

        from PIL import Image

        from hybrid_ocr.utils.tesseract_client import TesseractRecognizer

        mock_data.return_value = {"text": ["Hello", "", "world"], "conf": ["90", "-1", "70"]}
        buf = io.BytesIO()
        Image.new("L", (50, 20), 255).save(buf, format="PNG")

        response = asyncio.run(TesseractRecognizer(test_settings).recognize(buf.getvalue(), OcrOptions(language="vi")))
        assert response.text == "Hello world"
        assert response.confidence == pytest.approx(0.8)
        assert mock_data.call_args.kwargs["lang"] == "vie"


def test_unknown_backend(test_settings):
    config = test_settings.model_copy(update={"recognition_backend": "cuneiform"})
    with pytest.raises(ConfigurationError, match="Unknown recognition backend"):
        build_recognizer(config)
