"""TesseractOCREngine — local recognition through the tesseract binary."""
from __future__ import annotations

import asyncio
import io
import logging

from tenacity import AsyncRetrying, stop_after_attempt, wait_exponential
from tenacity.wait import wait_base

from filterocr.ocr.base_ocr import (
    OCREngine,
    OCRProgress,
    OCRResult,
    ProgressCallback,
    RecognitionConfig,
    notify_progress,
)

logger = logging.getLogger(__name__)


class TesseractOCREngine(OCREngine):
    """OCR engine backed by Tesseract via pytesseract.

    Requires the tesseract binary plus the traineddata for every configured
    language (``eng`` and ``fas`` by default).

    Config (via .env):
        OCR_PROVIDER=tesseract
        TESSERACT_CMD=/usr/bin/tesseract   # optional, defaults to PATH lookup
        OCR_TIMEOUT_SECONDS=30             # optional
        OCR_MAX_ATTEMPTS=1
    """

    def __init__(
        self,
        tesseract_cmd: str | None = None,
        timeout_seconds: float | None = None,
        max_attempts: int = 1,
        retry_wait: wait_base | None = None,
    ) -> None:
        self._timeout = timeout_seconds or 0
        self._max_attempts = max(1, max_attempts)
        self._retry_wait = retry_wait or wait_exponential(multiplier=1, min=1, max=10)

        if tesseract_cmd:
            import pytesseract

            # Process-wide setting in pytesseract.
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd

    async def extract_text(
        self,
        image_bytes: bytes,
        config: RecognitionConfig,
        progress: ProgressCallback | None = None,
    ) -> OCRResult:
        """Recognize *image_bytes* off the event loop so other requests keep moving."""
        notify_progress(progress, OCRProgress(status="recognizing text", progress=0.0))

        loop = asyncio.get_running_loop()
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self._max_attempts),
            wait=self._retry_wait,
            reraise=True,
        ):
            with attempt:
                text = await loop.run_in_executor(None, self._recognize, image_bytes, config)

        notify_progress(progress, OCRProgress(status="recognizing text", progress=1.0))
        logger.info(
            "tesseract_complete",
            extra={"languages": config.lang_string, "chars": len(text)},
        )
        return OCRResult(text=text)

    def _recognize(self, image_bytes: bytes, config: RecognitionConfig) -> str:
        import pytesseract
        from PIL import Image

        with Image.open(io.BytesIO(image_bytes)) as img:
            return pytesseract.image_to_string(
                img,
                lang=config.lang_string,
                config=config.tesseract_config(),
                timeout=self._timeout,
            )
