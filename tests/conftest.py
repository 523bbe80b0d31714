"""
Root test configuration.

Everything here is in-memory: PDFs are generated with PyMuPDF at test time
and the pipeline collaborators (text extractor, rasterizer, recognition
service) have small fakes so unit tests never touch a network or a real OCR
engine.

Fixtures
────────
make_pdf           →  factory: list of page strings → PDF bytes ("" = blank page)
text_pdf_bytes     →  three pages of clean English prose
blank_pdf_bytes    →  two pages with no text layer at all
fake_extractor     →  FakeExtractor class (page texts in, LocalDocument out)
fake_rasterizer    →  FakeRasterizer instance (returns b"image-<n>")
fake_recognizer    →  FakeRecognizer class (scripted per-page answers/failures)
test_settings      →  Settings with no batch delay and no .env influence
raw_ocr_options    →  OcrOptions that skip Pillow clean-up (fake image bytes)
"""

from __future__ import annotations

import asyncio

import fitz  # PyMuPDF
import pytest

from hybrid_ocr.config import Settings
from hybrid_ocr.interfaces import RasterConverter, RecognitionService, TextExtractor
from hybrid_ocr.schemas.ocr import LocalDocument, RecognitionResponse
from hybrid_ocr.schemas.options import OcrOptions

PROSE = (
    "The quarterly report summarises revenue, operating costs and the outlook "
    "for the next fiscal year. Invoices are paid within thirty days."
)
DOT_LEADERS = "." * 200


# ---------------------------------------------------------------------------
# Real PDFs (ASCII only; base-14 fonts have no CJK/Vietnamese glyphs)
# ---------------------------------------------------------------------------

def _build_pdf(pages: list[str]) -> bytes:
    doc = fitz.open()
    for text in pages:
        page = doc.new_page(width=595, height=842)
        if text:
            page.insert_textbox(fitz.Rect(50, 50, 545, 792), text, fontsize=11)
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture(scope="session")
def make_pdf():
    return _build_pdf


@pytest.fixture(scope="session")
def text_pdf_bytes() -> bytes:
    return _build_pdf([PROSE, PROSE + " Page two.", PROSE + " Page three."])


@pytest.fixture(scope="session")
def blank_pdf_bytes() -> bytes:
    return _build_pdf(["", ""])


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------

class FakeExtractor(TextExtractor):
    """Serves fixed page texts regardless of the bytes it is handed."""

    name = "fake"

    def __init__(
        self,
        pages: list[str],
        *,
        failing_pages: set[int] = frozenset(),
        fail_document: Exception | None = None,
        title: str | None = None,
    ) -> None:
        self.pages = pages
        self.failing_pages = set(failing_pages)
        self.fail_document = fail_document
        self.title = title
        self.page_calls: list[int] = []

    def extract(self, data: bytes) -> LocalDocument:
        if self.fail_document is not None:
            raise self.fail_document
        return LocalDocument(
            text="\n\n".join(t.strip() for t in self.pages if t.strip()),
            page_count=len(self.pages),
            page_texts=list(self.pages),
            title=self.title,
        )

    def extract_page(self, data: bytes, page_number: int) -> str:
        self.page_calls.append(page_number)
        if page_number in self.failing_pages:
            raise RuntimeError(f"cannot read page {page_number}")
        return self.pages[page_number - 1]


class FakeRasterizer(RasterConverter):
    name = "fake"

    def __init__(self) -> None:
        self.calls: list[int] = []

    def to_image(self, data: bytes, page_number: int, density: int, fmt: str) -> bytes:
        self.calls.append(page_number)
        return f"image-{page_number}".encode()


class FakeRecognizer(RecognitionService):
    """Answers ``"recognized page <n>"``; pages in *failing* raise, *delays* sleep first."""

    name = "fake"

    def __init__(
        self,
        *,
        failing: set[int] = frozenset(),
        delays: dict[int, float] | None = None,
        confidence: float = 0.9,
    ) -> None:
        self.failing = set(failing)
        self.delays = delays or {}
        self.confidence = confidence
        self.calls: list[int] = []
        self.completed: list[int] = []
        self.events: list[tuple[str, int]] = []

    async def recognize(self, image_bytes: bytes, options: OcrOptions) -> RecognitionResponse:
        page_number = int(image_bytes.decode().rsplit("-", 1)[1])
        self.calls.append(page_number)
        self.events.append(("start", page_number))
        if page_number in self.delays:
            await asyncio.sleep(self.delays[page_number])
        if page_number in self.failing:
            raise ConnectionError(f"service unavailable for page {page_number}")
        self.completed.append(page_number)
        self.events.append(("done", page_number))
        return RecognitionResponse(
            text=f"recognized page {page_number}",
            confidence=self.confidence,
            processing_time_ms=1,
        )


@pytest.fixture()
def fake_extractor():
    return FakeExtractor


@pytest.fixture()
def fake_rasterizer() -> FakeRasterizer:
    return FakeRasterizer()


@pytest.fixture()
def fake_recognizer():
    return FakeRecognizer


@pytest.fixture()
def raw_ocr_options() -> OcrOptions:
    return OcrOptions(enhance_image=False)


@pytest.fixture()
def test_settings(monkeypatch) -> Settings:
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    return Settings(
        _env_file=None,
        gemini_api_key=None,
        batch_delay_seconds=0.0,
        recognition_timeout=5.0,
        validation_timeout=5.0,
        page_extraction_timeout=5.0,
    )
