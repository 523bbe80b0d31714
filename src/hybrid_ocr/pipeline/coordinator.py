"""
Top-level coordinator — the single entry point for document extraction.

HybridPdfProcessor.process:  PDF bytes → ExtractionResult (never raises)

The processor owns its collaborators (extractor, rasterizer, recognition
service, validator); all of them are injectable so tests can swap in fakes.
"""

from __future__ import annotations

import asyncio
import threading
import time
from collections import Counter

import structlog

from hybrid_ocr.config import Settings, settings as default_settings
from hybrid_ocr.errors import ConfigurationError, HybridOcrError, InputError
from hybrid_ocr.interfaces import RasterConverter, RecognitionService, TextExtractor
from hybrid_ocr.logging import log
from hybrid_ocr.pipeline.consolidator import with_processing_time
from hybrid_ocr.pipeline.strategies import (
    ExtractionContext,
    ExtractionStrategy,
    default_strategies,
    failure_result,
    run_ladder,
)
from hybrid_ocr.pipeline.validator import TextQualityValidator, ValidationConfig
from hybrid_ocr.schemas.ocr import ExtractionResult
from hybrid_ocr.schemas.options import ProcessingOptions
from hybrid_ocr.utils.pdf_utils import PyMuPDFRasterizer, PyMuPDFTextExtractor, document_sha256


class ProcessingStats:
    """Process-wide aggregate counters; safe to update from concurrent requests."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counts: Counter[str] = Counter()

    def record(self, result: ExtractionResult) -> None:
        with self._lock:
            self._counts["documents"] += 1
            if not result.success:
                self._counts["failures"] += 1
                return
            meta = result.metadata
            if meta is None:
                return
            self._counts[f"method.{meta.method.value}"] += 1
            if meta.degraded_reason:
                self._counts["degraded"] += 1
            self._counts["ocr_pages"] += meta.ocr_page_count
            self._counts["skipped_pages"] += meta.skipped_page_count
            self._counts["ocr_page_failures"] += sum(
                1 for p in result.page_results if p.error and not p.skipped
            )

    def snapshot(self) -> dict[str, int]:
        with self._lock:
            return dict(self._counts)


class HybridPdfProcessor:
    def __init__(
        self,
        *,
        recognizer: RecognitionService | None = None,
        extractor: TextExtractor | None = None,
        rasterizer: RasterConverter | None = None,
        validator: TextQualityValidator | None = None,
        config: Settings | None = None,
        strategies: list[ExtractionStrategy] | None = None,
        recognizer_error: HybridOcrError | None = None,
    ) -> None:
        self.settings = config or default_settings
        self.recognizer = recognizer
        self.recognizer_error = recognizer_error
        self.extractor = extractor or PyMuPDFTextExtractor()
        self.rasterizer = rasterizer or PyMuPDFRasterizer()
        self.validator = validator or TextQualityValidator(ValidationConfig.from_settings(self.settings))
        self.strategies = strategies or default_strategies()
        self.stats = ProcessingStats()

    @classmethod
    def from_settings(cls, config: Settings | None = None) -> "HybridPdfProcessor":
        """Build a processor with the configured recognition backend.

        A backend that cannot be set up (missing key, no tesseract binary) is
        not fatal: the processor is built without recognition and every
        request degrades to text-only extraction.
        """
        from hybrid_ocr.utils.recognition import build_recognizer

        cfg = config or default_settings
        try:
            recognizer = build_recognizer(cfg)
            error = None
        except ConfigurationError as exc:
            log.warning("processor.recognition_unavailable", backend=cfg.recognition_backend, error=str(exc))
            recognizer, error = None, exc
        return cls(recognizer=recognizer, config=cfg, recognizer_error=error)

    @property
    def ocr_available(self) -> bool:
        return self.recognizer is not None

    async def process(
        self,
        source_bytes: bytes,
        filename: str,
        options: ProcessingOptions | None = None,
    ) -> ExtractionResult:
        """Extract text from *source_bytes*. Failures come back as ``success=False``, never raised."""
        options = options or ProcessingOptions()
        t0 = time.perf_counter()

        with structlog.contextvars.bound_contextvars(
            filename=filename, document_id=document_sha256(source_bytes)[:12]
        ):
            log.info(
                "processor.start",
                size=len(source_bytes),
                enable_ocr=options.enable_ocr,
                ocr_available=self.ocr_available,
            )
            try:
                result = await self._run(source_bytes, filename, options)
            except Exception as exc:  # noqa: BLE001
                log.exception("processor.unexpected_error", error=str(exc))
                result = failure_result(HybridOcrError("Unexpected error during processing", exc))

            elapsed_ms = int((time.perf_counter() - t0) * 1000)
            result = with_processing_time(result, elapsed_ms)
            self.stats.record(result)

            if result.success and result.metadata is not None:
                log.info(
                    "processor.complete",
                    method=result.metadata.method,
                    strategy=result.metadata.strategy,
                    pages=result.metadata.page_count,
                    ocr_pages=result.metadata.ocr_page_count,
                    skipped_pages=result.metadata.skipped_page_count,
                    elapsed_ms=elapsed_ms,
                )
            else:
                log.error("processor.failed", error=result.error, kind=result.error_kind, elapsed_ms=elapsed_ms)
        return result

    async def _run(self, source_bytes: bytes, filename: str, options: ProcessingOptions) -> ExtractionResult:
        if len(source_bytes) > self.settings.max_file_size_bytes:
            return failure_result(InputError(
                f"File too large: {len(source_bytes)} bytes (max {self.settings.max_file_size_bytes})"
            ))

        deadline = None
        if options.deadline_seconds is not None:
            deadline = asyncio.get_running_loop().time() + options.deadline_seconds

        context = ExtractionContext(
            source_bytes=source_bytes,
            filename=filename,
            options=options,
            settings=self.settings,
            extractor=self.extractor,
            rasterizer=self.rasterizer,
            validator=self.validator.with_threshold(options.confidence_threshold),
            recognizer=self.recognizer,
            recognizer_error=self.recognizer_error,
            deadline=deadline,
        )
        return await run_ladder(self.strategies, context)


async def process_document(
    source_bytes: bytes,
    filename: str,
    options: ProcessingOptions | None = None,
    processor: HybridPdfProcessor | None = None,
) -> ExtractionResult:
    """One-shot helper: build a processor from settings (unless given) and process."""
    processor = processor or HybridPdfProcessor.from_settings()
    return await processor.process(source_bytes, filename, options)
