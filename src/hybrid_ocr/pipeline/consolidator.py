"""
Step 4 — Merge text-layer pages and recognized pages into one ordered document.

Every page 1..total_pages yields exactly one PageResult. A page found in
neither input is recorded as skipped; it contributes no text but is never
dropped from ``page_results``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from hybrid_ocr.logging import log
from hybrid_ocr.schemas.ocr import (
    SKIPPED_PAGE_ERROR,
    ExtractionMetadata,
    ExtractionMethod,
    ExtractionResult,
    PageMethod,
    PageResult,
    ValidationResult,
)

PAGE_SEPARATOR = "\n\n"


@dataclass
class ResultContext:
    """Request-level facts the consolidator copies into ExtractionMetadata."""

    filename: str = ""
    file_size_bytes: int = 0
    total_processing_time_ms: int = 0
    validation_enabled: bool = True
    validation_time_ms: int | None = None
    ocr_enabled: bool = True
    needs_ocr: bool = False
    strategy: str = ""
    degraded_reason: str | None = None
    title: str | None = None
    author: str | None = None
    creator: str | None = None


def consolidate(
    text_pages: Mapping[int, str],
    ocr_results: Mapping[int, PageResult],
    total_pages: int,
    *,
    validations: Mapping[int, ValidationResult] | None = None,
    conflict_pages: Iterable[int] = (),
    context: ResultContext | None = None,
) -> ExtractionResult:
    validations = validations or {}
    context = context or ResultContext()
    parts: list[str] = []
    page_results: list[PageResult] = []
    text_count = ocr_count = skipped = 0

    for page_number in range(1, total_pages + 1):
        if page_number in text_pages:
            text = text_pages[page_number]
            validation = validations.get(page_number)
            parts.append(text)
            page_results.append(PageResult(
                page_number=page_number,
                text=text,
                confidence=validation.confidence if validation else 1.0,
                processing_time_ms=0,
                method=PageMethod.TEXT,
            ))
            text_count += 1
        elif page_number in ocr_results:
            result = ocr_results[page_number]
            parts.append(result.text)
            page_results.append(result)
            ocr_count += 1
        else:
            log.warning("consolidator.page_skipped", page=page_number)
            page_results.append(PageResult(
                page_number=page_number,
                text="",
                confidence=0.0,
                processing_time_ms=0,
                method=PageMethod.OCR,
                error=SKIPPED_PAGE_ERROR,
            ))
            skipped += 1

    if text_count and ocr_count:
        method = ExtractionMethod.HYBRID
    elif text_count:
        method = ExtractionMethod.TEXT_ONLY
    else:
        method = ExtractionMethod.OCR_ONLY

    confidences = [v.confidence for v in validations.values()]
    average = sum(confidences) / len(confidences) if confidences else None

    log.info(
        "consolidator.done",
        total_pages=total_pages,
        text_pages=text_count,
        ocr_pages=ocr_count,
        skipped_pages=skipped,
        method=method,
    )

    metadata = ExtractionMetadata(
        filename=context.filename,
        file_size_bytes=context.file_size_bytes,
        page_count=total_pages,
        total_processing_time_ms=context.total_processing_time_ms,
        text_page_count=text_count,
        ocr_page_count=ocr_count,
        skipped_page_count=skipped,
        method=method,
        validation_enabled=context.validation_enabled,
        average_confidence=average,
        validation_time_ms=context.validation_time_ms,
        ocr_enabled=context.ocr_enabled,
        needs_ocr=context.needs_ocr,
        strategy=context.strategy,
        degraded_reason=context.degraded_reason,
        conflict_pages=sorted(set(conflict_pages)),
        title=context.title,
        author=context.author,
        creator=context.creator,
    )
    return ExtractionResult(
        success=True,
        text=PAGE_SEPARATOR.join(p.strip() for p in parts if p.strip()),
        metadata=metadata,
        page_results=page_results,
    )


def with_processing_time(result: ExtractionResult, elapsed_ms: int) -> ExtractionResult:
    """Return *result* with ``metadata.total_processing_time_ms`` set."""
    if result.metadata is None:
        return result
    metadata = result.metadata.model_copy(update={"total_processing_time_ms": elapsed_ms})
    return result.model_copy(update={"metadata": metadata})
