"""Text extraction with a local failure boundary around the OCR engine.

``TextExtractor.extract`` always hands back an ``ExtractionResult``: the
normalized text, the "no text" sentinel when recognition came back empty, or
the "extraction failed" sentinel when the engine raised or timed out. The
enhanced image has value on its own, so OCR trouble never fails a request.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum

from filterocr.ocr.base_ocr import (
    OCREngine,
    OCRProgress,
    ProgressCallback,
    RecognitionConfig,
    notify_progress,
)
from filterocr.text.normalizer import (
    EXTRACTION_FAILED_MESSAGE,
    NO_TEXT_MESSAGE,
    normalize_text,
)

logger = logging.getLogger(__name__)


class ExtractionStatus(str, Enum):
    OK = "ok"
    NO_TEXT = "no_text"
    FAILED = "failed"


@dataclass(frozen=True)
class ExtractionResult:
    text: str
    status: ExtractionStatus = ExtractionStatus.OK
    confidence: float | None = None

    @property
    def degraded(self) -> bool:
        return self.status is not ExtractionStatus.OK


class TextExtractor:
    def __init__(
        self,
        engine: OCREngine,
        config: RecognitionConfig,
        *,
        timeout_seconds: float | None = None,
        progress: ProgressCallback | None = None,
    ) -> None:
        self._engine = engine
        self._config = config
        self._timeout = timeout_seconds
        observer = progress or _log_progress
        # Observers are diagnostic only; a failing one must not fail recognition.
        self._progress: ProgressCallback = lambda event: notify_progress(observer, event)

    @property
    def config(self) -> RecognitionConfig:
        return self._config

    async def extract(self, image_bytes: bytes) -> ExtractionResult:
        try:
            ocr_result = await asyncio.wait_for(
                self._engine.extract_text(image_bytes, self._config, self._progress),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError:
            logger.error("text_extraction_timeout", extra={"timeout_s": self._timeout})
            return ExtractionResult(EXTRACTION_FAILED_MESSAGE, ExtractionStatus.FAILED)
        except Exception as exc:
            logger.error("text_extraction_failed", extra={"error": str(exc)}, exc_info=True)
            return ExtractionResult(EXTRACTION_FAILED_MESSAGE, ExtractionStatus.FAILED)

        text = normalize_text(ocr_result.text)
        if text == NO_TEXT_MESSAGE:
            logger.info("text_extraction_empty")
            return ExtractionResult(NO_TEXT_MESSAGE, ExtractionStatus.NO_TEXT, ocr_result.confidence)

        logger.info(
            "text_extraction_complete",
            extra={"chars": len(text), "confidence": ocr_result.confidence},
        )
        return ExtractionResult(text, ExtractionStatus.OK, ocr_result.confidence)


def _log_progress(event: OCRProgress) -> None:
    logger.debug("ocr_progress", extra={"status": event.status, "progress": event.progress})
