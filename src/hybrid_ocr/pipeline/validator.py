"""
Text quality validation — is this locally extracted text real prose or noise?

Length-only heuristics are fooled by garbage such as a table of contents made
of dot leaders ("Chapter 1 ........ 3") or a text layer full of underscores.
The validator looks at the *shape* of the text instead:

  - word count and word density (words per character)
  - Shannon entropy of the character distribution
  - character diversity / dominance of a single glyph

Each metric has a floor; every violated floor subtracts a fixed penalty from
a starting confidence of 1.0. The text is valid when the confidence is
strictly above the configured threshold.

Words are runs of Unicode letters/digits of length >= 2. Scripts written
without spaces between words (Han, kana, Thai, Lao, Khmer, Myanmar) count
one word per character, so an unpunctuated Chinese sentence scores like a
spaced one.
"""

from __future__ import annotations

import math
import re
import unicodedata
from collections import Counter

from pydantic import BaseModel

from hybrid_ocr.config import Settings, settings
from hybrid_ocr.schemas.ocr import ValidationMetrics, ValidationResult

_UNSPACED = (
    "\u0e00-\u0eff"  # Thai, Lao
    "\u1000-\u109f"  # Myanmar
    "\u1780-\u17ff"  # Khmer
    "\u3040-\u30ff"  # Hiragana, Katakana
    "\u3400-\u4dbf"  # CJK Extension A
    "\u4e00-\u9fff"  # CJK Unified Ideographs
    "\uf900-\ufaff"  # CJK Compatibility Ideographs
    "\uff66-\uff9f"  # halfwidth Katakana
)
_WORD_RE = re.compile(rf"[{_UNSPACED}]|[^\W_{_UNSPACED}]{{2,}}")
_WHITESPACE_RE = re.compile(r"\s+")

# floor name -> (penalty, reason); declaration order breaks ties
_PENALTIES = {
    "length": (0.5, "text too short for meaningful analysis"),
    "word_count": (0.3, "too few words"),
    "word_density": (0.4, "very low word density, likely dots or symbols"),
    "entropy": (0.4, "low entropy, text is repetitive or patterned"),
    "repetitive": (0.5, "repetitive character pattern detected"),
}


class ValidationConfig(BaseModel):
    min_absolute_length: int = 10
    min_word_count: int = 3
    min_word_density: float = 0.05
    min_text_entropy: float = 1.5
    min_char_diversity: float = 0.25
    diversity_window: int = 50
    max_dominant_char_ratio: float = 0.5
    confidence_threshold: float = 0.5

    @classmethod
    def from_settings(cls, s: Settings | None = None, **overrides) -> "ValidationConfig":
        s = s or settings
        values = {
            "min_absolute_length": s.min_absolute_length,
            "min_word_count": s.min_word_count,
            "min_word_density": s.min_word_density,
            "min_text_entropy": s.min_text_entropy,
            "min_char_diversity": s.min_char_diversity,
            "diversity_window": s.diversity_window,
            "max_dominant_char_ratio": s.max_dominant_char_ratio,
            "confidence_threshold": s.ocr_trigger_confidence_threshold,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


class TextQualityValidator:
    """Scores text samples; pure and deterministic, never raises on odd input."""

    def __init__(self, config: ValidationConfig | None = None) -> None:
        self.config = config or ValidationConfig.from_settings()

    def with_threshold(self, threshold: float | None) -> "TextQualityValidator":
        """Return a validator sharing this config but with another confidence threshold."""
        if threshold is None or threshold == self.config.confidence_threshold:
            return self
        return TextQualityValidator(self.config.model_copy(update={"confidence_threshold": threshold}))

    def validate(self, text: str) -> ValidationResult:
        normalized = normalize_text(text)
        if not normalized:
            return ValidationResult(
                confidence=0.0,
                is_valid=False,
                reason="empty text",
                metrics=ValidationMetrics(),
            )

        metrics = compute_metrics(normalized, self.config)
        violated = self._violated_floors(metrics)

        confidence = 1.0 - sum(_PENALTIES[name][0] for name in violated)
        confidence = round(max(0.0, min(1.0, confidence)), 4)

        if violated:
            # max() keeps the first of equal penalties, in _PENALTIES order
            dominant = max(violated, key=lambda name: _PENALTIES[name][0])
            reason = _PENALTIES[dominant][1]
        else:
            reason = "passed validation"

        return ValidationResult(
            confidence=confidence,
            is_valid=confidence > self.config.confidence_threshold,
            reason=reason,
            metrics=metrics,
        )

    def _violated_floors(self, m: ValidationMetrics) -> list[str]:
        c = self.config
        checks = {
            "length": m.char_length < c.min_absolute_length,
            "word_count": m.word_count < c.min_word_count,
            "word_density": m.word_density < c.min_word_density,
            "entropy": m.entropy < c.min_text_entropy,
            "repetitive": m.repetitive_patterns,
        }
        return [name for name in _PENALTIES if checks[name]]


def validate_text_quality(text: str, config: ValidationConfig | None = None) -> ValidationResult:
    """Convenience wrapper: validate *text* with a fresh validator."""
    return TextQualityValidator(config).validate(text)


# ---------------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------------

def normalize_text(text: str | None) -> str:
    """NFC-normalize, trim and collapse whitespace."""
    if not text:
        return ""
    return _WHITESPACE_RE.sub(" ", unicodedata.normalize("NFC", text)).strip()


def compute_metrics(text: str, config: ValidationConfig) -> ValidationMetrics:
    char_length = len(text)
    words = _WORD_RE.findall(text)
    word_count = len(words)
    folded = text.casefold()
    freq = Counter(folded)

    return ValidationMetrics(
        char_length=char_length,
        word_count=word_count,
        word_density=word_count / max(char_length, 1),
        entropy=shannon_entropy(freq, len(folded)),
        unique_char_count=len(freq),
        average_word_length=(sum(len(w) for w in words) / word_count) if word_count else 0.0,
        repetitive_patterns=_is_repetitive(freq, len(folded), config),
    )


def shannon_entropy(freq: Counter, total: int) -> float:
    if total == 0:
        return 0.0
    entropy = 0.0
    for count in freq.values():
        p = count / total
        entropy -= p * math.log2(p)
    return entropy


def _is_repetitive(freq: Counter, total: int, config: ValidationConfig) -> bool:
    if total == 0:
        return False
    diversity = len(freq) / min(total, config.diversity_window)
    if diversity < config.min_char_diversity:
        return True
    _, top = freq.most_common(1)[0]
    return top / total > config.max_dominant_char_ratio
