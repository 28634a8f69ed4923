from __future__ import annotations

from filterocr.ocr.base_ocr import (
    OCREngine,
    OCRProgress,
    OCRResult,
    ProgressCallback,
    RecognitionConfig,
    notify_progress,
)


class MockOCREngine(OCREngine):
    def __init__(self, text: str = "RECEIPT No. 1024\n\nTotal  ۱۲۵۰۰  تومان\n") -> None:
        self._text = text

    async def extract_text(
        self,
        image_bytes: bytes,
        config: RecognitionConfig,
        progress: ProgressCallback | None = None,
    ) -> OCRResult:
        # Mock OCR for development/testing
        notify_progress(progress, OCRProgress(status="recognizing text", progress=1.0))
        return OCRResult(text=self._text, confidence=0.9)
