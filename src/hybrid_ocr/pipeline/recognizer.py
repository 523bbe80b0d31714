"""
Step 3 — Recognize OCR-required pages in rate-limited concurrent batches.

Strategy:
  - Only the page numbers handed in are touched; none → no external calls.
  - Pages go out in fixed-size batches. Inside a batch every page runs
    concurrently (rasterize → optional clean-up → recognition service);
    between batches a short delay respects upstream rate limits.
  - One page failing never aborts its batch: the failure becomes a PageResult
    with empty text, confidence 0 and the error message.
  - Past the deadline no new batch starts; unprocessed pages are left out of
    the result map and the consolidator records them as skipped.

Results are keyed by page number so completion order cannot affect ordering.
"""

from __future__ import annotations

import asyncio
import time

from hybrid_ocr.errors import PageRecognitionError
from hybrid_ocr.interfaces import RasterConverter, RecognitionService
from hybrid_ocr.logging import log
from hybrid_ocr.schemas.ocr import PageMethod, PageResult
from hybrid_ocr.schemas.options import OcrOptions
from hybrid_ocr.utils.images import optimize_for_ocr


async def recognize_pages(
    source_bytes: bytes,
    page_numbers: list[int],
    *,
    service: RecognitionService,
    rasterizer: RasterConverter,
    options: OcrOptions | None = None,
    batch_size: int = 5,
    batch_delay: float = 1.0,
    page_timeout: float = 30.0,
    max_image_size: int = 4000,
    deadline: float | None = None,
) -> dict[int, PageResult]:
    """Recognize *page_numbers* and return ``{page_number: PageResult}``.

    *deadline* is an absolute time on the running loop's clock
    (``asyncio.get_running_loop().time()``).
    """
    options = options or OcrOptions()
    pages = sorted(set(page_numbers))
    results: dict[int, PageResult] = {}

    if not pages:
        log.info("recognizer.nothing_to_do")
        return results

    loop = asyncio.get_running_loop()
    batch_size = max(1, batch_size)
    batches = [pages[i:i + batch_size] for i in range(0, len(pages), batch_size)]
    log.info("recognizer.start", pages=len(pages), batches=len(batches), batch_size=batch_size)

    for index, batch in enumerate(batches, 1):
        if deadline is not None and loop.time() >= deadline:
            remaining = [p for b in batches[index - 1:] for p in b]
            log.warning("recognizer.deadline_exceeded", skipped_pages=remaining)
            break

        log.info("recognizer.batch_start", batch=index, pages=batch)
        batch_results = await asyncio.gather(*(
            _recognize_page(
                source_bytes,
                page_number,
                service=service,
                rasterizer=rasterizer,
                options=options,
                page_timeout=page_timeout,
                max_image_size=max_image_size,
            )
            for page_number in batch
        ))
        for result in batch_results:
            results[result.page_number] = result

        if index < len(batches) and batch_delay > 0:
            await asyncio.sleep(batch_delay)

    log.info(
        "recognizer.done",
        recognized=len(results),
        failed=sum(1 for r in results.values() if r.error),
        skipped=len(pages) - len(results),
    )
    return results


async def _recognize_page(
    source_bytes: bytes,
    page_number: int,
    *,
    service: RecognitionService,
    rasterizer: RasterConverter,
    options: OcrOptions,
    page_timeout: float,
    max_image_size: int,
) -> PageResult:
    t0 = time.perf_counter()
    try:
        response = await asyncio.wait_for(
            _rasterize_and_recognize(source_bytes, page_number, service, rasterizer, options, max_image_size),
            page_timeout,
        )
    except Exception as exc:  # noqa: BLE001
        if isinstance(exc, TimeoutError):
            message = f"recognition timed out after {page_timeout:.1f}s"
        else:
            message = str(exc) or type(exc).__name__
        error = PageRecognitionError(message, page_number, cause=exc)
        elapsed_ms = int((time.perf_counter() - t0) * 1000)
        log.warning("recognizer.page_failed", page=page_number, error=error.message, elapsed_ms=elapsed_ms)
        return PageResult(
            page_number=page_number,
            text="",
            confidence=0.0,
            processing_time_ms=elapsed_ms,
            method=PageMethod.OCR,
            error=error.message,
        )

    elapsed_ms = int((time.perf_counter() - t0) * 1000)
    log.debug("recognizer.page_done", page=page_number, chars=len(response.text), elapsed_ms=elapsed_ms)
    return PageResult(
        page_number=page_number,
        text=response.text,
        confidence=response.confidence,
        processing_time_ms=elapsed_ms,
        method=PageMethod.OCR,
    )


async def _rasterize_and_recognize(
    source_bytes: bytes,
    page_number: int,
    service: RecognitionService,
    rasterizer: RasterConverter,
    options: OcrOptions,
    max_image_size: int,
):
    image = await asyncio.to_thread(
        rasterizer.to_image, source_bytes, page_number, options.density, options.format
    )
    if options.enhance_image or options.width or options.height:
        image = await asyncio.to_thread(
            optimize_for_ocr,
            image,
            grayscale=options.enhance_image,
            enhance_contrast=options.enhance_image,
            sharpen=options.enhance_image,
            max_size=max_image_size,
            width=options.width,
            height=options.height,
        )
    return await service.recognize(image, options)
