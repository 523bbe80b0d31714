from hybrid_ocr.schemas.ocr import (
    SKIPPED_PAGE_ERROR,
    DecisionSource,
    ExtractionMetadata,
    ExtractionMethod,
    ExtractionResult,
    LocalDocument,
    PageClassification,
    PageMethod,
    PageResult,
    RawPage,
    RecognitionResponse,
    ValidationMetrics,
    ValidationResult,
)
from hybrid_ocr.schemas.options import OcrOptions, ProcessingOptions

__all__ = [
    "SKIPPED_PAGE_ERROR",
    "DecisionSource",
    "ExtractionMetadata",
    "ExtractionMethod",
    "ExtractionResult",
    "LocalDocument",
    "PageClassification",
    "PageMethod",
    "PageResult",
    "RawPage",
    "RecognitionResponse",
    "ValidationMetrics",
    "ValidationResult",
    "OcrOptions",
    "ProcessingOptions",
]
