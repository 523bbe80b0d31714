"""
Integration tests — live Gemini Vision recognition.

The PDFs are generated in memory: one page with a real text layer and one
page whose content is an embedded image of text over a junk text layer of
dot leaders, so the hybrid pipeline has to send exactly that page to the
recognition service.

Run these tests:
    pytest tests/integration/test_gemini_live.py -m integration -v
"""

from __future__ import annotations

import asyncio

import fitz  # PyMuPDF
import pytest

from hybrid_ocr.pipeline.coordinator import HybridPdfProcessor
from hybrid_ocr.schemas.ocr import ExtractionMethod, PageMethod
from hybrid_ocr.schemas.options import OcrOptions, ProcessingOptions
from hybrid_ocr.utils.gemini_client import GeminiVisionRecognizer
from hybrid_ocr.utils.pdf_utils import PyMuPDFRasterizer

PROSE = (
    "The quarterly report summarises revenue, operating costs and the outlook "
    "for the next fiscal year. Invoices are paid within thirty days."
)
SCANNED_LINE = "INVOICE NUMBER 4711 TOTAL DUE 250 EUR"


def _scanned_page(doc: fitz.Document) -> None:
    # Render text to a pixmap, then place that image on a fresh page
    src = fitz.open()
    page = src.new_page(width=595, height=200)
    page.insert_text((40, 100), SCANNED_LINE, fontsize=20)
    pix = page.get_pixmap(dpi=200)
    src.close()

    target = doc.new_page(width=595, height=200)
    target.insert_image(fitz.Rect(0, 0, 595, 170), stream=pix.tobytes("png"))
    # a junk text layer (dot leaders) that the validator must reject
    target.insert_text((20, 190), "." * 200, fontsize=4)


@pytest.fixture(scope="module")
def mixed_pdf() -> bytes:
    doc = fitz.open()
    doc.new_page().insert_textbox(fitz.Rect(50, 50, 545, 792), PROSE, fontsize=11)
    _scanned_page(doc)
    data = doc.tobytes()
    doc.close()
    return data


@pytest.mark.integration
@pytest.mark.google
def test_recognize_single_page(gemini_key, mixed_pdf, test_settings):
    recognizer = GeminiVisionRecognizer(api_key=gemini_key, config=test_settings)
    image = PyMuPDFRasterizer().to_image(mixed_pdf, 2, 200, "png")

    response = asyncio.run(recognizer.recognize(image, OcrOptions()))
    assert "4711" in response.text
    assert response.confidence and response.confidence > 0


@pytest.mark.integration
@pytest.mark.google
@pytest.mark.slow
def test_hybrid_pipeline_live(gemini_key, mixed_pdf, test_settings):
    recognizer = GeminiVisionRecognizer(api_key=gemini_key, config=test_settings)
    processor = HybridPdfProcessor(recognizer=recognizer, config=test_settings)

    options = ProcessingOptions(ocr=OcrOptions(density=200))
    result = asyncio.run(processor.process(mixed_pdf, "mixed.pdf", options))

    assert result.success, result.error
    assert result.metadata.method == ExtractionMethod.HYBRID
    assert [p.method for p in result.page_results] == [PageMethod.TEXT, PageMethod.OCR]
    assert result.page_results[1].error is None
    assert "quarterly report" in result.text
    assert "4711" in result.text
