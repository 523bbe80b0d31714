"""
/extract endpoints

POST /extract
  Upload a PDF (multipart field ``file``) with an optional ``options`` JSON
  string. Runs the hybrid pipeline and returns the ExtractionResult.

GET  /extract/capabilities
  Recognition availability, limits, defaults and aggregate counters.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone

from fastapi import APIRouter, File, Form, HTTPException, Request, UploadFile, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from hybrid_ocr.config import settings
from hybrid_ocr.logging import log
from hybrid_ocr.pipeline.coordinator import HybridPdfProcessor
from hybrid_ocr.schemas.options import ProcessingOptions
from hybrid_ocr.utils.pdf_utils import looks_like_pdf, safe_filename

router = APIRouter()

_FEATURES = [
    "text-layer quality validation",
    "page-level classification",
    "batched vision OCR for flagged pages",
    "per-page error recovery",
    "text-only fallback",
]


def _processor(request: Request) -> HybridPdfProcessor:
    return request.app.state.processor


def _parse_options(raw: str | None) -> ProcessingOptions:
    if not raw:
        return ProcessingOptions()
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        log.warning("extract.invalid_options_json")
        return ProcessingOptions()
    try:
        return ProcessingOptions.model_validate(data)
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "Invalid request options", "details": exc.errors(include_url=False)},
        ) from exc


@router.post("")
async def extract(
    request: Request,
    file: UploadFile = File(..., description="PDF document"),
    options: str | None = Form(None, description="ProcessingOptions as a JSON string"),
) -> JSONResponse:
    filename = safe_filename(file.filename or "document.pdf") or "document.pdf"
    if file.content_type not in ("application/pdf", None) and not filename.lower().endswith(".pdf"):
        raise HTTPException(status_code=400, detail="Invalid file type. Only PDF files are supported.")

    data = await file.read()
    if len(data) > settings.max_file_size_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File too large. Maximum size is {settings.max_file_size_bytes // (1024 * 1024)}MB.",
        )
    if not looks_like_pdf(data):
        raise HTTPException(status_code=400, detail="Uploaded file is not a PDF.")

    processing_options = _parse_options(options)
    log.info("extract.request", filename=filename, size=len(data), enable_ocr=processing_options.enable_ocr)

    result = await _processor(request).process(data, filename, processing_options)
    status_code = status.HTTP_200_OK if result.success else status.HTTP_422_UNPROCESSABLE_ENTITY
    return JSONResponse(status_code=status_code, content=result.model_dump(mode="json"))


@router.get("/capabilities")
async def capabilities(request: Request) -> dict:
    processor = _processor(request)
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "capabilities": {
            "text_extraction": True,
            "ocr_supported": processor.ocr_available,
            "recognition_backend": settings.recognition_backend,
            "model": settings.gemini_model if settings.recognition_backend == "gemini" else None,
            "max_file_size_mb": settings.max_file_size_bytes // (1024 * 1024),
            "max_pages": settings.max_pages,
            "supported_formats": ["pdf"],
            "features": _FEATURES,
        },
        "config": {
            "default_density": settings.default_density,
            "default_format": settings.default_format,
            "batch_size": settings.batch_size,
            "validation_enabled": settings.validation_enabled,
            "confidence_threshold": settings.ocr_trigger_confidence_threshold,
            "min_text_length_for_text_based": settings.min_text_length_for_text_based,
            "min_text_length_per_page": settings.min_text_length_per_page,
        },
        "stats": processor.stats.snapshot(),
    }
