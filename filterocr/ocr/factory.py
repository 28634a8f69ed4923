from __future__ import annotations

from filterocr.core.config import Settings, settings as default_settings
from filterocr.ocr.base_ocr import OCREngine
from filterocr.ocr.mock_ocr import MockOCREngine


def get_ocr_engine(settings: Settings | None = None) -> OCREngine:
    """Return the configured OCR engine instance.

    OCR_PROVIDER options:
        tesseract — TesseractOCREngine (pytesseract + tesseract binary with eng/fas data)
        mock      — fixed text (dev/test, no binary required)
    """
    settings = settings or default_settings
    provider = settings.ocr_provider.lower().strip()

    if provider == "mock":
        return MockOCREngine()

    if provider == "tesseract":
        from filterocr.ocr.engines import TesseractOCREngine
        return TesseractOCREngine(
            tesseract_cmd=settings.tesseract_cmd,
            timeout_seconds=settings.ocr_timeout_seconds,
            max_attempts=settings.ocr_max_attempts,
        )

    raise ValueError(f"Unknown OCR_PROVIDER={settings.ocr_provider!r}")
