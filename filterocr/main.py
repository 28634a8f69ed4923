from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from filterocr.api.routes import router
from filterocr.core.config import Settings, settings as default_settings
from filterocr.core.errors import ErrorResponse, PipelineError
from filterocr.core.logging import configure_logging
from filterocr.extraction.extractor import TextExtractor
from filterocr.imaging.filters import FilterPipeline
from filterocr.ocr.factory import get_ocr_engine
from filterocr.pipeline.pipeline import ProcessingPipeline
from filterocr.storage.transient import TransientStore

logger = logging.getLogger(__name__)


def build_pipeline(settings: Settings) -> ProcessingPipeline:
    extractor = TextExtractor(
        get_ocr_engine(settings),
        settings.recognition_config(),
        timeout_seconds=settings.ocr_timeout_seconds,
    )
    store = TransientStore(settings.uploads_dir, enabled=settings.keep_transient_copy)
    return ProcessingPipeline(
        FilterPipeline(),
        extractor,
        store,
        max_upload_bytes=settings.max_upload_bytes,
        request_timeout_seconds=settings.request_timeout_seconds,
    )


def _error(status_code: int, error: str, details: str | None = None) -> JSONResponse:
    body = ErrorResponse(error=error, details=details)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


def create_app(
    settings: Settings | None = None,
    pipeline: ProcessingPipeline | None = None,
) -> FastAPI:
    settings = settings or default_settings
    configure_logging(settings.log_level)

    app = FastAPI(title="2D Filter OCR Server", version="0.1.0")
    app.state.settings = settings
    app.state.pipeline = pipeline or build_pipeline(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(router)

    @app.get("/")
    async def root():
        return {
            "message": "Welcome to the 2D Filter OCR Server",
            "process": "/api/process-image",
            "health": "/api/health",
        }

    @app.exception_handler(PipelineError)
    async def _pipeline_error(request: Request, exc: PipelineError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("request_failed", extra={"path": request.url.path, "details": exc.details})
        return _error(exc.status_code, exc.message, exc.details)

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == 404:
            return _error(404, "Endpoint not found")
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return _error(400, "Invalid request", str(exc.errors()))

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("unhandled_error", extra={"path": request.url.path})
        return _error(500, "Internal server error")

    @app.on_event("startup")
    async def _startup() -> None:
        app.state.pipeline.store.ensure_dir()
        logging.getLogger(__name__).info(
            "startup",
            extra={"ocr_provider": settings.ocr_provider, "port": settings.port},
        )

    return app


app = create_app()


def run() -> None:
    import uvicorn

    uvicorn.run(app, host=default_settings.host, port=default_settings.port)


if __name__ == "__main__":
    run()
