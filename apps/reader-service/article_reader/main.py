from __future__ import annotations

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from article_reader.application.extraction_service import ExtractionService
from article_reader.config.log import configure_logging
from article_reader.config.settings import Settings, get_settings
from article_reader.domain.entities import SummaryMode
from article_reader.domain.errors import InvalidInput, ReaderError
from article_reader.domain.ports import SummarizerPort
from article_reader.infrastructure.http_fetcher import RequestsDocumentFetcher
from article_reader.infrastructure.lm_studio_client import LmStudioClient
from article_reader.infrastructure.readability_extractor import ReadabilityContentExtractor
from article_reader.infrastructure.summarizers import ExtractiveSummarizer, GenerativeSummarizer
from article_reader.interfaces.http.router import router


def build_extraction_service(settings: Settings) -> ExtractionService:
    summarizers: dict[SummaryMode, SummarizerPort] = {SummaryMode.EXTRACTIVE: ExtractiveSummarizer()}
    if settings.lm_base_url:
        lm_client = LmStudioClient(
            base_url=settings.lm_base_url,
            model_id=settings.lm_model_id,
            api_key=settings.lm_api_key,
            timeout_seconds=settings.lm_http_timeout_seconds,
        )
        summarizers[SummaryMode.GENERATIVE] = GenerativeSummarizer(lm_client)
    elif settings.summary_mode is SummaryMode.GENERATIVE:
        # Delay hard failure; health endpoint will be degraded until the endpoint is provided.
        logger.warning("SUMMARY_MODE=generative but LM_BASE_URL is empty")

    return ExtractionService(
        fetcher=RequestsDocumentFetcher(timeout_seconds=settings.request_timeout_seconds),
        extractor=ReadabilityContentExtractor(),
        summarizers=summarizers,
        blocked_domains=settings.blocked_domains,
        default_mode=settings.summary_mode,
        min_content_length=settings.min_content_length,
        summary_input_max_chars=settings.summary_input_max_chars,
    )


async def handle_reader_error(request: Request, exc: ReaderError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("{} {} failed: {} ({})", request.method, request.url.path, exc.message, exc.details)
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    error = InvalidInput("Invalid request body")
    return JSONResponse(status_code=error.status_code, content=error.to_payload())


def create_app(settings: Settings | None = None, service: ExtractionService | None = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="Article Reader", version="0.1.0")
    app.state.settings = settings
    app.state.extraction_service = service or build_extraction_service(settings)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(ReaderError, handle_reader_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.include_router(router)
    return app


app = create_app()


def serve() -> None:
    settings = get_settings()
    uvicorn.run("article_reader.main:app", host=settings.host, port=settings.port)
