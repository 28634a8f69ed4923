from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Request, UploadFile

from filterocr.core.errors import InvalidInputError
from filterocr.pipeline.pipeline import ProcessingPipeline, UploadedImage
from filterocr.schemas import HealthResponse, ProcessResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api")


def get_pipeline(request: Request) -> ProcessingPipeline:
    return request.app.state.pipeline


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse(status="OK", message="2D Filter OCR Server is running")


@router.post("/process-image", response_model=ProcessResponse)
async def process_image(
    pipeline: ProcessingPipeline = Depends(get_pipeline),
    image: UploadFile | None = File(None),
) -> ProcessResponse:
    if image is None:
        raise InvalidInputError("No image file provided")

    content_type = image.content_type or ""
    if not content_type.startswith("image/"):
        raise InvalidInputError("Only image files are allowed")

    # Read one byte past the limit so oversize uploads are caught without
    # buffering the whole body.
    limit = pipeline.max_upload_bytes
    data = await image.read(limit + 1)

    upload = UploadedImage(data=data, content_type=content_type, filename=image.filename)
    return await pipeline.process(upload)
