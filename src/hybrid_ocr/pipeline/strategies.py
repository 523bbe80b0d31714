"""
Fallback ladder — ordered extraction strategies with one contract.

Each strategy's ``run(context)`` either returns a successful ExtractionResult
or raises a HybridOcrError. ``run_ladder`` tries enabled strategies in order:

  1. hybrid     — initial check → page classification → recognition → consolidation
  2. text_only  — local text layer only; fails when the document has no text at all

A non-recoverable error (corrupt input) stops the ladder. When every rung
fails the last error becomes a ``success=False`` result with no page results.
"""

from __future__ import annotations

import asyncio
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from hybrid_ocr.config import Settings
from hybrid_ocr.errors import (
    ConfigurationError,
    HybridOcrError,
    InputError,
    RecognitionError,
    ValidationTimeout,
)
from hybrid_ocr.interfaces import RasterConverter, RecognitionService, TextExtractor
from hybrid_ocr.logging import log
from hybrid_ocr.pipeline.classifier import classify_pages, read_pages, validate_bounded
from hybrid_ocr.pipeline.consolidator import ResultContext, consolidate
from hybrid_ocr.pipeline.recognizer import recognize_pages
from hybrid_ocr.pipeline.validator import TextQualityValidator
from hybrid_ocr.schemas.ocr import ExtractionResult, LocalDocument, ValidationResult
from hybrid_ocr.schemas.options import ProcessingOptions


@dataclass
class ExtractionContext:
    """Everything one request needs; owned by the coordinator for its lifetime."""

    source_bytes: bytes
    filename: str
    options: ProcessingOptions
    settings: Settings
    extractor: TextExtractor
    rasterizer: RasterConverter
    validator: TextQualityValidator
    recognizer: RecognitionService | None = None
    recognizer_error: HybridOcrError | None = None
    deadline: float | None = None
    degraded_reason: str | None = None
    needs_ocr: bool = False
    validation_seconds: float = 0.0
    _document: LocalDocument | None = field(default=None, repr=False)

    @property
    def validation_enabled(self) -> bool:
        if self.options.validation_enabled is not None:
            return self.options.validation_enabled
        return self.settings.validation_enabled

    async def load_document(self) -> LocalDocument:
        """Whole-document local extraction, done once per request.

        Raises:
            InputError: if the document cannot be read at all.
        """
        if self._document is None:
            try:
                self._document = await asyncio.to_thread(self.extractor.extract, self.source_bytes)
            except InputError:
                raise
            except Exception as exc:  # noqa: BLE001
                raise InputError("Failed to extract text from document", exc) from exc
        return self._document

    def result_context(self, strategy: str, document: LocalDocument, **overrides) -> ResultContext:
        values = dict(
            filename=self.filename,
            file_size_bytes=len(self.source_bytes),
            validation_enabled=self.validation_enabled,
            validation_time_ms=int(self.validation_seconds * 1000) if self.validation_enabled else None,
            needs_ocr=self.needs_ocr,
            strategy=strategy,
            degraded_reason=self.degraded_reason,
            title=document.title,
            author=document.author,
            creator=document.creator,
        )
        values.update(overrides)
        return ResultContext(**values)


class ExtractionStrategy(ABC):
    name: str = "base"

    def is_enabled(self, context: ExtractionContext) -> bool:
        return True

    @abstractmethod
    async def run(self, context: ExtractionContext) -> ExtractionResult:
        """Return a successful result or raise HybridOcrError."""
        ...


class HybridStrategy(ExtractionStrategy):
    name = "hybrid"

    def is_enabled(self, context: ExtractionContext) -> bool:
        return context.options.enable_ocr

    async def run(self, context: ExtractionContext) -> ExtractionResult:
        if context.recognizer is None:
            raise context.recognizer_error or ConfigurationError("No recognition service configured")

        s = context.settings
        document = await context.load_document()

        # 1. Initial check on the whole document
        is_text, doc_validation = await self._initial_check(context, document)
        if is_text:
            log.info("hybrid.text_based", chars=len(document.text), pages=document.page_count)
            text_pages = {i: t for i, t in enumerate(document.page_texts, 1)}
            validations = {p: doc_validation for p in text_pages} if doc_validation else None
            return consolidate(
                text_pages,
                {},
                document.page_count,
                validations=validations,
                context=context.result_context(self.name, document, needs_ocr=False),
            )

        context.needs_ocr = True
        log.info("hybrid.needs_page_analysis", chars=len(document.text), pages=document.page_count)

        # 2. Page-level classification
        raw_pages = await read_pages(
            context.source_bytes,
            document.page_count,
            context.extractor,
            s.page_extraction_timeout,
            deadline=context.deadline,
        )
        classifications = await classify_pages(
            raw_pages,
            validator=context.validator,
            validation_enabled=context.validation_enabled,
            legacy_threshold=s.min_text_length_per_page,
            validation_timeout=s.validation_timeout,
            disagreement_policy=s.validation_disagreement_policy,
            deadline=context.deadline,
        )
        context.validation_seconds += sum((c.validation_time_ms or 0) for c in classifications) / 1000

        text_pages = {c.page_number: c.extracted_text or "" for c in classifications if c.has_text}
        validations = {c.page_number: c.validation_result for c in classifications if c.validation_result}
        conflicts = [c.page_number for c in classifications if c.decision_conflict]
        ocr_pages = [c.page_number for c in classifications if c.needs_ocr]

        if len(ocr_pages) > s.max_pages:
            log.warning("hybrid.ocr_page_cap", requested=len(ocr_pages), max_pages=s.max_pages)
            ocr_pages = ocr_pages[:s.max_pages]

        # 3. Recognition of flagged pages only
        try:
            ocr_results = await recognize_pages(
                context.source_bytes,
                ocr_pages,
                service=context.recognizer,
                rasterizer=context.rasterizer,
                options=context.options.ocr,
                batch_size=s.batch_size,
                batch_delay=s.batch_delay_seconds,
                page_timeout=s.recognition_timeout,
                max_image_size=s.max_image_size,
                deadline=context.deadline,
            )
        except Exception as exc:  # noqa: BLE001
            raise RecognitionError("Recognition stage failed", exc) from exc

        # Failed pages stay in the result with their error; with no trusted
        # text either, the local text layer is all that is left.
        if not text_pages and ocr_results and all(r.error for r in ocr_results.values()):
            first = next(iter(ocr_results.values()))
            raise RecognitionError(
                f"Recognition failed for all {len(ocr_results)} pages and no page text was trusted "
                f"(first error: {first.error})"
            )

        # 4. Consolidation
        return consolidate(
            text_pages,
            ocr_results,
            document.page_count,
            validations=validations,
            conflict_pages=conflicts,
            context=context.result_context(self.name, document),
        )

    async def _initial_check(
        self, context: ExtractionContext, document: LocalDocument
    ) -> tuple[bool, ValidationResult | None]:
        legacy = len(document.text) > context.settings.min_text_length_for_text_based
        if not context.validation_enabled or not document.text.strip():
            return legacy, None

        t0 = time.perf_counter()
        try:
            result = await validate_bounded(context.validator, document.text, context.settings.validation_timeout)
        except ValidationTimeout as exc:
            log.warning("hybrid.document_validation_timeout", error=str(exc))
            return legacy, None
        except Exception as exc:  # noqa: BLE001
            log.warning("hybrid.document_validation_error", error=str(exc))
            return legacy, None
        finally:
            context.validation_seconds += time.perf_counter() - t0

        log.info("hybrid.document_validation", confidence=result.confidence, valid=result.is_valid, reason=result.reason)
        return result.is_valid, result


class TextOnlyStrategy(ExtractionStrategy):
    name = "text_only"

    async def run(self, context: ExtractionContext) -> ExtractionResult:
        document = await context.load_document()
        if not document.text.strip():
            raise InputError("Document has no extractable text and recognition is unavailable")

        reason = context.degraded_reason
        if reason is None and not context.options.enable_ocr:
            reason = "recognition disabled by caller"

        text_pages = {i: t for i, t in enumerate(document.page_texts, 1)}
        return consolidate(
            text_pages,
            {},
            document.page_count,
            context=context.result_context(
                self.name,
                document,
                ocr_enabled=False,
                validation_enabled=False,
                validation_time_ms=None,
                degraded_reason=reason,
            ),
        )


DEFAULT_LADDER: tuple[type[ExtractionStrategy], ...] = (HybridStrategy, TextOnlyStrategy)


def default_strategies() -> list[ExtractionStrategy]:
    return [cls() for cls in DEFAULT_LADDER]


async def run_ladder(strategies: list[ExtractionStrategy], context: ExtractionContext) -> ExtractionResult:
    last_error: HybridOcrError | None = None

    for strategy in strategies:
        if not strategy.is_enabled(context):
            log.debug("ladder.skip", strategy=strategy.name)
            continue

        log.info("ladder.try", strategy=strategy.name)
        try:
            result = await strategy.run(context)
        except HybridOcrError as exc:
            last_error = exc
            log.warning(
                "ladder.strategy_failed",
                strategy=strategy.name,
                kind=exc.kind,
                recoverable=exc.recoverable,
                error=str(exc),
            )
            context.degraded_reason = f"{strategy.name} failed ({exc.kind}): {exc}"
            if not exc.recoverable:
                break
            continue

        log.info("ladder.success", strategy=strategy.name)
        return result

    return failure_result(last_error or InputError("No extraction strategy available"))


def failure_result(error: HybridOcrError) -> ExtractionResult:
    return ExtractionResult(
        success=False,
        text="",
        metadata=None,
        page_results=[],
        error=str(error),
        error_kind=error.kind,
    )
