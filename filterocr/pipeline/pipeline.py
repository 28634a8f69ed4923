"""Request pipeline — validate → enhance → store → OCR → normalize → cleanup → respond.

Every step runs to completion before the next one starts. Enhancement is
essential: any failure there ends the request with ``ProcessingFailedError``.
OCR is best effort: ``TextExtractor`` turns its failures into sentinel text
and the request still succeeds with the enhanced image.
"""
from __future__ import annotations

import asyncio
import base64
import logging
import time
import uuid
from dataclasses import dataclass

from filterocr.core.config import settings
from filterocr.core.errors import (
    ErrorKind,
    InvalidInputError,
    PipelineError,
    ProcessingFailedError,
)
from filterocr.extraction.extractor import ExtractionResult, TextExtractor
from filterocr.imaging.filters import FilterPipeline
from filterocr.schemas import ProcessResponse
from filterocr.storage.transient import TransientStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UploadedImage:
    data: bytes
    content_type: str
    filename: str | None = None

    def validate(self, max_bytes: int) -> None:
        if not self.content_type or not self.content_type.startswith("image/"):
            raise InvalidInputError("Only image files are allowed")
        if not self.data:
            raise InvalidInputError("No image file provided")
        if len(self.data) > max_bytes:
            raise InvalidInputError(
                f"File size too large. Maximum size is {max_bytes // (1024 * 1024)}MB."
            )


def to_data_uri(png_bytes: bytes) -> str:
    return "data:image/png;base64," + base64.b64encode(png_bytes).decode("ascii")


class ProcessingPipeline:
    def __init__(
        self,
        filters: FilterPipeline,
        extractor: TextExtractor,
        store: TransientStore,
        *,
        max_upload_bytes: int | None = None,
        request_timeout_seconds: float | None = None,
    ) -> None:
        self._filters = filters
        self._extractor = extractor
        self._store = store
        self._max_upload_bytes = max_upload_bytes or settings.max_upload_bytes
        self._request_timeout = request_timeout_seconds

    @property
    def max_upload_bytes(self) -> int:
        return self._max_upload_bytes

    @property
    def store(self) -> TransientStore:
        return self._store

    # ------------------------------------------------------------------ #
    #  Public entry point                                                  #
    # ------------------------------------------------------------------ #

    async def process(self, upload: UploadedImage) -> ProcessResponse:
        request_id = uuid.uuid4().hex[:12]

        # ── Step a: validate ─────────────────────────────────────────
        upload.validate(self._max_upload_bytes)
        logger.info(
            "image_received",
            extra={
                "request_id": request_id,
                "upload_filename": upload.filename,
                "content_type": upload.content_type,
                "size": len(upload.data),
            },
        )

        try:
            return await asyncio.wait_for(
                self._process(request_id, upload), timeout=self._request_timeout
            )
        except PipelineError:
            raise
        except asyncio.TimeoutError as exc:
            logger.error(
                "processing_timeout",
                extra={"request_id": request_id, "timeout_s": self._request_timeout},
            )
            raise ProcessingFailedError(
                f"Processing exceeded {self._request_timeout} seconds"
            ) from exc
        except Exception as exc:
            logger.exception("processing_failed", extra={"request_id": request_id})
            raise ProcessingFailedError(str(exc) or exc.__class__.__name__) from exc

    async def _process(self, request_id: str, upload: UploadedImage) -> ProcessResponse:
        loop = asyncio.get_running_loop()

        # ── Step b: enhance ───────────────────────────────────────────
        enhanced = await self._run_step(
            request_id,
            "filters",
            loop.run_in_executor(None, self._filters.run, upload.data),
        )

        # ── Step c: transient copy (observability only) ──────────────
        transient_path = await loop.run_in_executor(None, self._store.write, enhanced)

        try:
            # ── Steps d + e: OCR on the enhanced bytes, normalize ────
            extraction: ExtractionResult = await self._run_step(
                request_id, "ocr", self._extractor.extract(enhanced)
            )
        finally:
            # ── Step f: cleanup ──────────────────────────────────────
            self._store.discard(transient_path)

        if extraction.degraded:
            logger.warning(
                "extraction_degraded",
                extra={
                    "request_id": request_id,
                    "kind": ErrorKind.EXTRACTION_DEGRADED.value,
                    "status": extraction.status.value,
                },
            )

        # ── Steps g + h: respond ──────────────────────────────────────
        response = ProcessResponse(
            processed_image=to_data_uri(enhanced),
            extracted_text=extraction.text,
        )
        logger.info(
            "processing_complete",
            extra={"request_id": request_id, "extraction_status": extraction.status.value},
        )
        return response

    async def _run_step(self, request_id: str, step: str, awaitable):
        """Await a step, logging start/end with its wall-clock duration."""
        logger.debug("step_started", extra={"request_id": request_id, "step": step})
        t0 = time.monotonic()
        try:
            result = await awaitable
        except Exception as exc:
            duration_ms = int((time.monotonic() - t0) * 1000)
            logger.warning(
                "step_failed",
                extra={
                    "request_id": request_id,
                    "step": step,
                    "duration_ms": duration_ms,
                    "error": str(exc),
                },
            )
            raise
        duration_ms = int((time.monotonic() - t0) * 1000)
        logger.info(
            "step_completed",
            extra={"request_id": request_id, "step": step, "duration_ms": duration_ms},
        )
        return result
