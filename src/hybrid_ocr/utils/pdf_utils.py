"""PyMuPDF adapters for local text extraction and page rasterization, plus small helpers."""

from __future__ import annotations

import hashlib
import threading

import fitz  # PyMuPDF

from hybrid_ocr.errors import InputError
from hybrid_ocr.interfaces import RasterConverter, TextExtractor
from hybrid_ocr.schemas.ocr import LocalDocument

# PyMuPDF is not thread-safe; every call that touches a fitz object holds this.
_FITZ_LOCK = threading.Lock()

_PDF_MAGIC = b"%PDF-"


def document_sha256(data: bytes) -> str:
    """Return hex SHA-256 of the document — used as a stable ID in logs."""
    return hashlib.sha256(data).hexdigest()


def safe_filename(name: str) -> str:
    """Strip dangerous characters from an upload filename."""
    return "".join(c for c in name if c.isalnum() or c in "._- ").strip()


def looks_like_pdf(data: bytes) -> bool:
    return data[:1024].lstrip().startswith(_PDF_MAGIC)


def _open(data: bytes) -> fitz.Document:
    if not data:
        raise InputError("Empty document")
    try:
        doc = fitz.open(stream=data, filetype="pdf")
    except (fitz.FileDataError, RuntimeError, ValueError) as exc:
        raise InputError("Cannot open PDF", exc) from exc
    if doc.needs_pass:
        doc.close()
        raise InputError("PDF is encrypted and cannot be read")
    return doc


def _page(doc: fitz.Document, page_number: int) -> fitz.Page:
    if not 1 <= page_number <= doc.page_count:
        raise IndexError(f"Page {page_number} out of range (1..{doc.page_count})")
    return doc.load_page(page_number - 1)


class PyMuPDFTextExtractor(TextExtractor):
    name = "pymupdf"

    def extract(self, data: bytes) -> LocalDocument:
        with _FITZ_LOCK:
            doc = _open(data)
            try:
                page_texts = [doc.load_page(i).get_text("text") or "" for i in range(doc.page_count)]
                info = doc.metadata or {}
                page_count = doc.page_count
            except RuntimeError as exc:
                raise InputError("Failed to read PDF text layer", exc) from exc
            finally:
                doc.close()

        return LocalDocument(
            text="\n\n".join(t.strip() for t in page_texts if t.strip()),
            page_count=page_count,
            page_texts=page_texts,
            title=info.get("title") or None,
            author=info.get("author") or None,
            creator=info.get("creator") or None,
        )

    def extract_page(self, data: bytes, page_number: int) -> str:
        with _FITZ_LOCK:
            doc = _open(data)
            try:
                return _page(doc, page_number).get_text("text") or ""
            finally:
                doc.close()


class PyMuPDFRasterizer(RasterConverter):
    name = "pymupdf"

    def to_image(self, data: bytes, page_number: int, density: int, fmt: str) -> bytes:
        output = "png" if fmt == "png" else "jpg"
        with _FITZ_LOCK:
            doc = _open(data)
            try:
                pix = _page(doc, page_number).get_pixmap(dpi=density, colorspace=fitz.csRGB)
                return pix.tobytes(output)
            finally:
                doc.close()
