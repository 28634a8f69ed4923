"""Error taxonomy shared by the pipeline and the HTTP layer.

The pipeline raises ``PipelineError`` subclasses; the app's exception handler
turns them into an ``ErrorResponse`` with the matching status code. OCR
trouble never gets here: it degrades to a sentinel inside the extractor.
"""
from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class ErrorKind(str, Enum):
    INVALID_INPUT = "InvalidInput"
    PROCESSING_FAILED = "ProcessingFailed"
    EXTRACTION_DEGRADED = "ExtractionDegraded"


class PipelineError(Exception):
    kind: ErrorKind
    status_code: int = 500

    def __init__(self, message: str, details: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(error=self.message, details=self.details)


class InvalidInputError(PipelineError):
    kind = ErrorKind.INVALID_INPUT
    status_code = 400


class ProcessingFailedError(PipelineError):
    kind = ErrorKind.PROCESSING_FAILED
    status_code = 500

    def __init__(self, details: str | None = None) -> None:
        super().__init__("Failed to process image", details)


class ErrorResponse(BaseModel):
    error: str
    details: str | None = None
