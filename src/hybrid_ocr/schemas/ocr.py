"""Schemas for page classification, recognition and the final extraction result."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, computed_field


class PageMethod(StrEnum):
    TEXT = "text"  # local text layer
    OCR = "ocr"    # image recognition (or skipped)


class ExtractionMethod(StrEnum):
    TEXT_ONLY = "text-only"
    OCR_ONLY = "ocr-only"
    HYBRID = "hybrid"


class DecisionSource(StrEnum):
    VALIDATION = "validation"
    LEGACY = "legacy"
    EXTRACTION_ERROR = "extraction_error"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class ValidationMetrics(_Frozen):
    char_length: int = 0
    word_count: int = 0
    word_density: float = 0.0
    entropy: float = 0.0
    unique_char_count: int = 0
    average_word_length: float = 0.0
    repetitive_patterns: bool = False


class ValidationResult(_Frozen):
    confidence: float = Field(ge=0.0, le=1.0)
    is_valid: bool
    reason: str
    metrics: ValidationMetrics


class RawPage(_Frozen):
    """Locally extracted text for one page; ``error`` is set when extraction failed."""

    page_number: int = Field(ge=1)
    text: str = ""
    error: str | None = None


class PageClassification(_Frozen):
    page_number: int = Field(ge=1)
    has_text: bool
    text_length: int
    extracted_text: str | None = None
    validation_result: ValidationResult | None = None
    validation_time_ms: int | None = None
    decision_source: DecisionSource = DecisionSource.LEGACY
    legacy_has_text: bool | None = None
    decision_conflict: bool = False

    @computed_field
    @property
    def needs_ocr(self) -> bool:
        return not self.has_text


class PageResult(_Frozen):
    page_number: int = Field(ge=1)
    text: str
    confidence: float | None = Field(default=None, ge=0.0, le=1.0)
    processing_time_ms: int = 0
    method: PageMethod
    error: str | None = None

    @property
    def skipped(self) -> bool:
        return self.error == SKIPPED_PAGE_ERROR


SKIPPED_PAGE_ERROR = "page was skipped"


class LocalDocument(_Frozen):
    """Output of the local text-layer extractor for a whole document."""

    text: str
    page_count: int
    page_texts: list[str] = Field(default_factory=list)
    title: str | None = None
    author: str | None = None
    creator: str | None = None


class RecognitionResponse(_Frozen):
    text: str
    confidence: float | None = Field(default=None, ge=0.0, le=1.0)
    processing_time_ms: int = 0


class ExtractionMetadata(_Frozen):
    filename: str
    file_size_bytes: int
    page_count: int
    total_processing_time_ms: int
    text_page_count: int
    ocr_page_count: int
    skipped_page_count: int
    method: ExtractionMethod
    validation_enabled: bool
    average_confidence: float | None = None
    validation_time_ms: int | None = None
    ocr_enabled: bool = True
    needs_ocr: bool = False
    strategy: str = ""
    degraded_reason: str | None = None
    conflict_pages: list[int] = Field(default_factory=list)
    title: str | None = None
    author: str | None = None
    creator: str | None = None


class ExtractionResult(_Frozen):
    success: bool
    text: str = ""
    metadata: ExtractionMetadata | None = None
    page_results: list[PageResult] = Field(default_factory=list)
    error: str | None = None
    error_kind: str | None = None
