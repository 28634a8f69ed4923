from __future__ import annotations

import re

NO_TEXT_MESSAGE = (
    "No text could be extracted from the image. "
    "Please try with a clearer image or one with more visible text."
)
EXTRACTION_FAILED_MESSAGE = (
    "Error occurred during text extraction. "
    "Please try again with a different image."
)

_NEWLINE_RUNS = re.compile(r"\n+")
_WHITESPACE_RUNS = re.compile(r"\s+")


def normalize_text(raw_text: str) -> str:
    """Flatten raw OCR output to single-spaced text.

    Newline runs are collapsed before the general whitespace collapse; the
    first pass is subsumed by the second but kept so the two run in the same
    order as the server always has.

    Returns ``NO_TEXT_MESSAGE`` when nothing is left.
    """
    cleaned = raw_text.strip()
    cleaned = _NEWLINE_RUNS.sub("\n", cleaned)
    cleaned = _WHITESPACE_RUNS.sub(" ", cleaned)
    if not cleaned:
        return NO_TEXT_MESSAGE
    return cleaned
