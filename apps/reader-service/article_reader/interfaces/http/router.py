from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse

from article_reader.application.extraction_service import ExtractionService
from article_reader.interfaces.http.schemas import (
    ErrorResponse,
    ExtractRequest,
    ExtractResponse,
    SummarizeRequest,
    SummarizeResponse,
)

router = APIRouter()

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


def get_extraction_service(request: Request) -> ExtractionService:
    return request.app.state.extraction_service


@router.get("/", response_class=PlainTextResponse)
def index() -> str:
    return "Article reader backend is running"


@router.get("/health")
def health(service: ExtractionService = Depends(get_extraction_service)) -> dict[str, str]:
    if not service.supports(service.default_mode):
        return {"status": "degraded"}
    return {"status": "ok"}


@router.post("/extract", response_model=ExtractResponse, responses=_ERROR_RESPONSES)
async def extract(
    payload: ExtractRequest,
    service: ExtractionService = Depends(get_extraction_service),
) -> ExtractResponse:
    request = service.build_request(payload.url, payload.summary_mode)
    result = await service.extract(request)
    return ExtractResponse(
        url=result.url,
        title=result.title,
        content=result.content,
        summarized=result.summarized,
    )


@router.post("/summarize", response_model=SummarizeResponse, responses={500: {"model": ErrorResponse}})
async def summarize(
    payload: SummarizeRequest,
    service: ExtractionService = Depends(get_extraction_service),
) -> SummarizeResponse:
    summary = await service.summarize(payload.text, payload.mode)
    return SummarizeResponse(summary=summary)
