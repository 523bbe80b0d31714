"""Prompt templates for vision OCR."""

EXTRACT_TEXT = """\
Extract ALL text content from this image. Follow these guidelines:

1. Text accuracy: preserve exact text, including punctuation, special
   characters and symbols, numbers and dates, headers and footers.
2. Structure: keep line breaks and paragraphs, lists and bullet points,
   tables (as markdown tables), headings and subheadings.
3. Multi-column layouts: read columns left to right, keep them separated,
   keep reading order.
4. Charts and graphs: extract the visible text only. Include handwritten notes
   if legible. Ignore watermarks.
5. Output ONLY the extracted text, with no commentary or metadata.

If text is unclear make your best attempt, but do not invent content.
"""

EXTRACT_STRUCTURED_TEXT = """\
Extract and structure all text content from this document image. Return the
content in a clean, readable format that preserves the document's logical
structure: headings, paragraphs, lists and numbering, and tables.

Return only the extracted text without any additional commentary.
"""

LANGUAGE_HINT = "\nThe document is most likely written in: {language}. Keep all diacritics exactly as printed.\n"


def build_ocr_prompt(language: str | None = None, structured: bool = False) -> str:
    prompt = EXTRACT_STRUCTURED_TEXT if structured else EXTRACT_TEXT
    if language:
        prompt += LANGUAGE_HINT.format(language=language)
    return prompt
