"""OCR engine tests — tesseract itself is always mocked."""
from __future__ import annotations

import shlex
from unittest.mock import MagicMock, patch

import pytest
from tenacity import wait_none

from filterocr.core.config import DEFAULT_CHAR_WHITELIST, Settings
from filterocr.ocr.base_ocr import OCREngine, OCRProgress, OCRResult, RecognitionConfig
from filterocr.ocr.mock_ocr import MockOCREngine

CONFIG = RecognitionConfig(
    languages=("eng", "fas"),
    char_whitelist=DEFAULT_CHAR_WHITELIST,
    preserve_interword_spaces=True,
)


# ---------------------------------------------------------------------------
# RecognitionConfig
# ---------------------------------------------------------------------------

def test_lang_string_keeps_order() -> None:
    assert CONFIG.lang_string == "eng+fas"
    assert RecognitionConfig(languages=("fas", "eng")).lang_string == "fas+eng"


def test_tesseract_config_round_trips_whitelist_with_space() -> None:
    args = shlex.split(CONFIG.tesseract_config())
    assert args == [
        "-c",
        f"tessedit_char_whitelist={DEFAULT_CHAR_WHITELIST}",
        "-c",
        "preserve_interword_spaces=1",
    ]
    assert args[1].endswith(" ")


def test_default_whitelist_covers_both_scripts() -> None:
    for ch in "aZ09۰۹آیةکگ ":
        assert ch in DEFAULT_CHAR_WHITELIST


def test_settings_build_recognition_config() -> None:
    config = Settings(ocr_languages=["eng", "fas"]).recognition_config()
    assert config == CONFIG


def test_recognition_config_is_immutable() -> None:
    with pytest.raises(AttributeError):
        CONFIG.languages = ("deu",)  # type: ignore[misc]


# ---------------------------------------------------------------------------
# Base OCREngine
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_base_ocr_raises_not_implemented() -> None:
    engine = OCREngine()
    with pytest.raises(NotImplementedError):
        await engine.extract_text(b"fake bytes", CONFIG)


# ---------------------------------------------------------------------------
# MockOCREngine
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_mock_ocr_returns_result() -> None:
    engine = MockOCREngine()
    result = await engine.extract_text(b"any bytes", CONFIG)
    assert isinstance(result, OCRResult)
    assert "RECEIPT" in result.text


@pytest.mark.asyncio
async def test_mock_ocr_reports_progress() -> None:
    events: list[OCRProgress] = []
    await MockOCREngine("x").extract_text(b"", CONFIG, events.append)
    assert events == [OCRProgress(status="recognizing text", progress=1.0)]


# ---------------------------------------------------------------------------
# TesseractOCREngine
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_tesseract_engine_passes_languages_and_config(document_png: bytes) -> None:
    from filterocr.ocr.engines import TesseractOCREngine

    with patch("pytesseract.image_to_string", return_value="Hello  World\n") as mocked:
        result = await TesseractOCREngine(timeout_seconds=5).extract_text(document_png, CONFIG)

    assert result.text == "Hello  World\n"
    kwargs = mocked.call_args.kwargs
    assert kwargs["lang"] == "eng+fas"
    assert kwargs["config"] == CONFIG.tesseract_config()
    assert kwargs["timeout"] == 5


@pytest.mark.asyncio
async def test_tesseract_engine_progress_callback_errors_are_ignored(document_png: bytes) -> None:
    from filterocr.ocr.engines import TesseractOCREngine

    callback = MagicMock(side_effect=RuntimeError("observer broke"))
    with patch("pytesseract.image_to_string", return_value="ok"):
        result = await TesseractOCREngine().extract_text(document_png, CONFIG, callback)

    assert result.text == "ok"
    assert callback.call_count == 2


@pytest.mark.asyncio
async def test_tesseract_engine_propagates_engine_errors(document_png: bytes) -> None:
    from filterocr.ocr.engines import TesseractOCREngine

    with patch("pytesseract.image_to_string", side_effect=RuntimeError("Tesseract process timeout")) as mocked:
        with pytest.raises(RuntimeError, match="timeout"):
            await TesseractOCREngine(max_attempts=1).extract_text(document_png, CONFIG)
    assert mocked.call_count == 1


# ---------------------------------------------------------------------------
# OCR Factory
# ---------------------------------------------------------------------------

def test_ocr_factory_returns_mock() -> None:
    from filterocr.ocr.factory import get_ocr_engine
    engine = get_ocr_engine(Settings(ocr_provider="mock"))
    assert isinstance(engine, MockOCREngine)


def test_ocr_factory_returns_tesseract() -> None:
    from filterocr.ocr.engines import TesseractOCREngine
    from filterocr.ocr.factory import get_ocr_engine
    engine = get_ocr_engine(Settings(ocr_provider=" Tesseract "))
    assert isinstance(engine, TesseractOCREngine)


def test_ocr_factory_raises_on_unknown_provider() -> None:
    from filterocr.ocr.factory import get_ocr_engine
    with pytest.raises(ValueError, match="Unknown OCR_PROVIDER"):
        get_ocr_engine(Settings(ocr_provider="unknown_engine"))


@pytest.mark.asyncio
async def test_tesseract_engine_retries_then_succeeds(document_png: bytes) -> None:
    from filterocr.ocr.engines import TesseractOCREngine

    engine = TesseractOCREngine(max_attempts=2, retry_wait=wait_none())
    with patch(
        "pytesseract.image_to_string", side_effect=[RuntimeError("tesseract busy"), "second try"]
    ) as mocked:
        result = await engine.extract_text(document_png, CONFIG)

    assert mocked.call_count == 2
    assert result.text == "second try"


@pytest.mark.asyncio
async def test_tesseract_engine_reraises_last_error_when_attempts_exhausted(document_png: bytes) -> None:
    from filterocr.ocr.engines import TesseractOCREngine

    engine = TesseractOCREngine(max_attempts=3, retry_wait=wait_none())
    errors = [RuntimeError("first"), RuntimeError("second"), RuntimeError("third")]
    with patch("pytesseract.image_to_string", side_effect=errors) as mocked:
        with pytest.raises(RuntimeError, match="third"):
            await engine.extract_text(document_png, CONFIG)

    assert mocked.call_count == 3


@pytest.mark.asyncio
async def test_tesseract_cmd_is_set_once_at_construction(document_png: bytes) -> None:
    import pytesseract

    from filterocr.ocr.engines import TesseractOCREngine

    with patch.object(pytesseract.pytesseract, "tesseract_cmd", "tesseract"):
        engine = TesseractOCREngine(tesseract_cmd="/opt/tesseract/bin/tesseract")
        assert pytesseract.pytesseract.tesseract_cmd == "/opt/tesseract/bin/tesseract"

        pytesseract.pytesseract.tesseract_cmd = "/usr/local/bin/tesseract"
        with patch("pytesseract.image_to_string", return_value="ok"):
            await engine.extract_text(document_png, CONFIG)
        assert pytesseract.pytesseract.tesseract_cmd == "/usr/local/bin/tesseract"
