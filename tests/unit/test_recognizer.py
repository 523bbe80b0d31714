"""Unit tests for batched page recognition (fake rasterizer and recognition service)."""

import asyncio

import pytest

from hybrid_ocr.pipeline.recognizer import recognize_pages
from hybrid_ocr.schemas.ocr import PageMethod


def _run(pages, recognizer, rasterizer, options, **kwargs):
    kwargs.setdefault("batch_delay", 0.0)
    return asyncio.run(recognize_pages(
        b"%PDF-", pages, service=recognizer, rasterizer=rasterizer, options=options, **kwargs
    ))


class TestRecognizePages:
    def test_no_pages_no_calls(self, fake_recognizer, fake_rasterizer, raw_ocr_options):
        recognizer = fake_recognizer()
        assert _run([], recognizer, fake_rasterizer, raw_ocr_options) == {}
        assert recognizer.calls == []
        assert fake_rasterizer.calls == []

    def test_only_requested_pages(self, fake_recognizer, fake_rasterizer, raw_ocr_options):
        recognizer = fake_recognizer()
        results = _run([4, 2], recognizer, fake_rasterizer, raw_ocr_options)
        assert sorted(results) == [2, 4]
        assert sorted(recognizer.calls) == [2, 4]
        assert results[2].text == "recognized page 2"
        assert results[2].method == PageMethod.OCR
        assert results[2].confidence == pytest.approx(0.9)
        assert results[2].error is None

    def test_duplicates_recognized_once(self, fake_recognizer, fake_rasterizer, raw_ocr_options):
        recognizer = fake_recognizer()
        _run([1, 1, 2], recognizer, fake_rasterizer, raw_ocr_options)
        assert sorted(recognizer.calls) == [1, 2]

    def test_one_failure_does_not_abort_batch(self, fake_recognizer, fake_rasterizer, raw_ocr_options):
        recognizer = fake_recognizer(failing={2})
        results = _run([1, 2, 3], recognizer, fake_rasterizer, raw_ocr_options, batch_size=3)

        assert results[1].error is None and results[3].error is None
        failed = results[2]
        assert failed.text == ""
        assert failed.confidence == 0.0
        assert failed.method == PageMethod.OCR
        assert "service unavailable for page 2" in failed.error

    def test_completion_order_does_not_matter(self, fake_recognizer, fake_rasterizer, raw_ocr_options):
        recognizer = fake_recognizer(delays={1: 0.05, 2: 0.0, 3: 0.02})
        results = _run([1, 2, 3], recognizer, fake_rasterizer, raw_ocr_options, batch_size=3)
        assert recognizer.completed[0] == 2
        for n in (1, 2, 3):
            assert results[n].page_number == n
            assert results[n].text == f"recognized page {n}"

    def test_batches_run_in_sequence(self, fake_recognizer, fake_rasterizer, raw_ocr_options):
        recognizer = fake_recognizer(delays={1: 0.05})
        _run([1, 2, 3, 4, 5], recognizer, fake_rasterizer, raw_ocr_options, batch_size=2)
        # page 3 (second batch) only starts after the slow page 1 finished
        assert recognizer.events.index(("start", 3)) > recognizer.events.index(("done", 1))

    def test_page_timeout(self, fake_recognizer, fake_rasterizer, raw_ocr_options):
        recognizer = fake_recognizer(delays={1: 1.0})
        results = _run([1, 2], recognizer, fake_rasterizer, raw_ocr_options, page_timeout=0.05)
        assert "timed out" in results[1].error
        assert results[2].error is None

    def test_rasterizer_failure_is_a_page_failure(self, fake_recognizer, raw_ocr_options):
        class BrokenRasterizer:
            def to_image(self, data, page_number, density, fmt):
                raise IndexError(f"Page {page_number} out of range")

        recognizer = fake_recognizer()
        results = _run([7], recognizer, BrokenRasterizer(), raw_ocr_options)
        assert "out of range" in results[7].error
        assert recognizer.calls == []


class TestDeadline:
    def test_expired_deadline_starts_nothing(self, fake_recognizer, fake_rasterizer, raw_ocr_options):
        recognizer = fake_recognizer()

        async def go():
            deadline = asyncio.get_running_loop().time() - 1
            return await recognize_pages(
                b"%PDF-", [1, 2], service=recognizer, rasterizer=fake_rasterizer,
                options=raw_ocr_options, batch_delay=0.0, deadline=deadline,
            )

        assert asyncio.run(go()) == {}
        assert recognizer.calls == []

    def test_deadline_between_batches(self, fake_recognizer, fake_rasterizer, raw_ocr_options):
        recognizer = fake_recognizer(delays={1: 0.1})

        async def go():
            deadline = asyncio.get_running_loop().time() + 0.02
            return await recognize_pages(
                b"%PDF-", [1, 2], service=recognizer, rasterizer=fake_rasterizer,
                options=raw_ocr_options, batch_size=1, batch_delay=0.0, deadline=deadline,
            )

        results = asyncio.run(go())
        assert list(results) == [1]
        assert recognizer.calls == [1]
