from __future__ import annotations

import logging
import shlex
from collections.abc import Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecognitionConfig:
    languages: tuple[str, ...] = ("eng", "fas")
    char_whitelist: str = ""
    preserve_interword_spaces: bool = True

    @property
    def lang_string(self) -> str:
        return "+".join(self.languages)

    def tesseract_config(self) -> str:
        """Render the ``-c`` variables for the tesseract command line."""
        parts: list[str] = []
        if self.char_whitelist:
            parts += ["-c", f"tessedit_char_whitelist={self.char_whitelist}"]
        parts += ["-c", f"preserve_interword_spaces={int(self.preserve_interword_spaces)}"]
        return shlex.join(parts)


@dataclass(frozen=True)
class OCRResult:
    text: str
    confidence: float | None = None  # 0.0 to 1.0 when the engine reports it


@dataclass(frozen=True)
class OCRProgress:
    status: str
    progress: float  # 0.0 to 1.0


ProgressCallback = Callable[[OCRProgress], None]


class OCREngine:
    async def extract_text(
        self,
        image_bytes: bytes,
        config: RecognitionConfig,
        progress: ProgressCallback | None = None,
    ) -> OCRResult:
        raise NotImplementedError


def notify_progress(progress: ProgressCallback | None, event: OCRProgress) -> None:
    """Deliver *event* to the observer; observer errors are logged and dropped."""
    if progress is None:
        return
    try:
        progress(event)
    except Exception:
        logger.warning("ocr_progress_callback_failed", exc_info=True)
