"""Abstract collaborators the pipeline talks to. Concrete adapters live in ``hybrid_ocr.utils``."""

from __future__ import annotations

from abc import ABC, abstractmethod

from hybrid_ocr.schemas.ocr import LocalDocument, RecognitionResponse
from hybrid_ocr.schemas.options import OcrOptions


class TextExtractor(ABC):
    """Local (non-OCR) text-layer extractor."""

    name: str = "base"

    @abstractmethod
    def extract(self, data: bytes) -> LocalDocument:
        """Extract the whole document. Raises ``InputError`` on corrupt input."""
        ...

    @abstractmethod
    def extract_page(self, data: bytes, page_number: int) -> str:
        """Extract the text layer of one 1-based page."""
        ...


class RasterConverter(ABC):
    name: str = "base"

    @abstractmethod
    def to_image(self, data: bytes, page_number: int, density: int, fmt: str) -> bytes:
        """Render one 1-based page to encoded image bytes."""
        ...


class RecognitionService(ABC):
    """Image-to-text recognition. Implementations may raise or hang; callers bound them."""

    name: str = "base"

    @abstractmethod
    async def recognize(self, image_bytes: bytes, options: OcrOptions) -> RecognitionResponse:
        ...
