"""
Step 2 — Classify each page as text-sufficient or OCR-required.

Decision logic per page:
  - Local extraction failed for the page      → needs OCR
  - Empty text, or validation disabled         → legacy rule: stripped length > threshold
  - Otherwise                                  → text quality validator decides;
                                                 a validation timeout/error falls back
                                                 to the legacy rule

Past the request deadline neither reading nor classification continues;
pages not reached are left out and end up skipped.
"""

from __future__ import annotations

import asyncio
import time
from typing import Literal

from hybrid_ocr.errors import ValidationTimeout
from hybrid_ocr.interfaces import TextExtractor
from hybrid_ocr.logging import log
from hybrid_ocr.pipeline.validator import TextQualityValidator
from hybrid_ocr.schemas.ocr import DecisionSource, PageClassification, RawPage, ValidationResult

DisagreementPolicy = Literal["prefer_validation", "report"]


def legacy_has_text(text: str, threshold: int) -> bool:
    return len(text.strip()) > threshold


async def validate_bounded(validator: TextQualityValidator, text: str, timeout: float) -> ValidationResult:
    """Run *validator* on a worker thread, bounded by *timeout* seconds.

    Raises:
        ValidationTimeout: if the validator does not finish in time.
    """
    try:
        return await asyncio.wait_for(asyncio.to_thread(validator.validate, text), timeout)
    except TimeoutError as exc:
        raise ValidationTimeout(f"Text validation exceeded {timeout:.1f}s", exc) from exc


def deadline_passed(deadline: float | None) -> bool:
    """True once the running loop's clock has reached *deadline*."""
    return deadline is not None and asyncio.get_running_loop().time() >= deadline


async def read_pages(
    source_bytes: bytes,
    page_count: int,
    extractor: TextExtractor,
    timeout: float,
    deadline: float | None = None,
) -> list[RawPage]:
    """Extract the text layer of every page; failures are captured per page, never raised.

    Past *deadline* no further page is read; those pages are absent from the
    returned list.
    """
    pages: list[RawPage] = []
    for page_number in range(1, page_count + 1):
        if deadline_passed(deadline):
            log.warning(
                "classifier.deadline_exceeded",
                stage="extraction",
                skipped_pages=list(range(page_number, page_count + 1)),
            )
            break
        try:
            text = await asyncio.wait_for(
                asyncio.to_thread(extractor.extract_page, source_bytes, page_number),
                timeout,
            )
            pages.append(RawPage(page_number=page_number, text=text))
        except TimeoutError:
            log.warning("classifier.page_extract_timeout", page=page_number, timeout=timeout)
            pages.append(RawPage(page_number=page_number, error=f"text extraction timed out after {timeout:.1f}s"))
        except Exception as exc:  # noqa: BLE001
            log.warning("classifier.page_extract_failed", page=page_number, error=str(exc))
            pages.append(RawPage(page_number=page_number, error=str(exc) or type(exc).__name__))
    return pages


async def classify_pages(
    pages: list[RawPage],
    *,
    validator: TextQualityValidator | None = None,
    validation_enabled: bool = True,
    legacy_threshold: int = 20,
    validation_timeout: float = 5.0,
    disagreement_policy: DisagreementPolicy = "prefer_validation",
    deadline: float | None = None,
) -> list[PageClassification]:
    """Return one PageClassification per input page, in input order.

    Past *deadline* the remaining pages are left unclassified (absent).
    """
    validator = validator or TextQualityValidator()
    classifications: list[PageClassification] = []

    for index, page in enumerate(pages):
        if deadline_passed(deadline):
            log.warning(
                "classifier.deadline_exceeded",
                stage="classification",
                skipped_pages=[p.page_number for p in pages[index:]],
            )
            break
        classification = await _classify_page(
            page,
            validator=validator,
            validation_enabled=validation_enabled,
            legacy_threshold=legacy_threshold,
            validation_timeout=validation_timeout,
            disagreement_policy=disagreement_policy,
        )
        classifications.append(classification)

        if classification.has_text:
            log.debug(
                "classifier.page_text",
                page=page.page_number,
                chars=classification.text_length,
                source=classification.decision_source,
            )
        else:
            log.debug(
                "classifier.page_needs_ocr",
                page=page.page_number,
                chars=classification.text_length,
                source=classification.decision_source,
                reason=classification.validation_result.reason if classification.validation_result else None,
            )

    log.info(
        "classifier.result",
        pages=len(classifications),
        text_pages=sum(1 for c in classifications if c.has_text),
        ocr_pages=sum(1 for c in classifications if c.needs_ocr),
        conflicts=sum(1 for c in classifications if c.decision_conflict),
    )
    return classifications


async def _classify_page(
    page: RawPage,
    *,
    validator: TextQualityValidator,
    validation_enabled: bool,
    legacy_threshold: int,
    validation_timeout: float,
    disagreement_policy: DisagreementPolicy,
) -> PageClassification:
    if page.error is not None:
        return PageClassification(
            page_number=page.page_number,
            has_text=False,
            text_length=0,
            decision_source=DecisionSource.EXTRACTION_ERROR,
        )

    text = page.text
    legacy = legacy_has_text(text, legacy_threshold)

    if not validation_enabled or not text.strip():
        return _build(page, legacy, DecisionSource.LEGACY)

    t0 = time.perf_counter()
    try:
        result = await validate_bounded(validator, text, validation_timeout)
    except ValidationTimeout as exc:
        log.warning("classifier.validation_timeout", page=page.page_number, error=str(exc))
        return _build(page, legacy, DecisionSource.LEGACY, elapsed=time.perf_counter() - t0)
    except Exception as exc:  # noqa: BLE001
        log.warning("classifier.validation_error", page=page.page_number, error=str(exc))
        return _build(page, legacy, DecisionSource.LEGACY, elapsed=time.perf_counter() - t0)

    report = disagreement_policy == "report"
    conflict = report and legacy != result.is_valid
    if conflict:
        log.info(
            "classifier.decision_conflict",
            page=page.page_number,
            validation=result.is_valid,
            legacy=legacy,
            reason=result.reason,
        )
    return _build(
        page,
        result.is_valid,
        DecisionSource.VALIDATION,
        validation_result=result,
        elapsed=time.perf_counter() - t0,
        legacy=legacy if report else None,
        conflict=conflict,
    )


def _build(
    page: RawPage,
    has_text: bool,
    source: DecisionSource,
    *,
    validation_result: ValidationResult | None = None,
    elapsed: float | None = None,
    legacy: bool | None = None,
    conflict: bool = False,
) -> PageClassification:
    return PageClassification(
        page_number=page.page_number,
        has_text=has_text,
        text_length=len(page.text),
        extracted_text=page.text if has_text else None,
        validation_result=validation_result,
        validation_time_ms=int(elapsed * 1000) if elapsed is not None else None,
        decision_source=source,
        legacy_has_text=legacy,
        decision_conflict=conflict,
    )
