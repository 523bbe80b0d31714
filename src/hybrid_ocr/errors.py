"""
Error taxonomy for the extraction pipeline.

Every failure the pipeline knows how to recover from is one of the classes
below. ``kind`` is the stable tag surfaced in ``ExtractionResult.error_kind``;
``recoverable`` tells the fallback ladder whether a later strategy may still
succeed.
"""

from __future__ import annotations


class HybridOcrError(RuntimeError):
    """Base class for all pipeline errors."""

    kind: str = "error"
    recoverable: bool = True

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        if self.cause is not None and str(self.cause):
            return f"{self.message}: {self.cause}"
        return self.message


class InputError(HybridOcrError):
    """The source document is corrupt, encrypted or has no usable text."""

    kind = "input"
    recoverable = False


class PageRecognitionError(HybridOcrError):
    """Recognition failed for a single page."""

    kind = "page_recognition"

    def __init__(self, message: str, page_number: int, cause: BaseException | None = None) -> None:
        super().__init__(message, cause)
        self.page_number = page_number


class RecognitionError(HybridOcrError):
    """The recognition stage as a whole is unusable (service unreachable, rasterizer broken)."""

    kind = "recognition"


class ValidationTimeout(HybridOcrError):
    """Text validation did not finish within its time budget."""

    kind = "validation_timeout"


class ConfigurationError(HybridOcrError):
    """Recognition was requested but cannot be set up (missing credentials, unknown backend)."""

    kind = "configuration"
