from hybrid_ocr.pipeline.classifier import classify_pages, read_pages
from hybrid_ocr.pipeline.consolidator import consolidate
from hybrid_ocr.pipeline.coordinator import HybridPdfProcessor, process_document
from hybrid_ocr.pipeline.recognizer import recognize_pages
from hybrid_ocr.pipeline.validator import TextQualityValidator, ValidationConfig, validate_text_quality

__all__ = [
    "classify_pages",
    "read_pages",
    "consolidate",
    "HybridPdfProcessor",
    "process_document",
    "recognize_pages",
    "TextQualityValidator",
    "ValidationConfig",
    "validate_text_quality",
]
