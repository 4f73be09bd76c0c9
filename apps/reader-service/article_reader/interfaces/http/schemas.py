from __future__ import annotations

from typing import Optional

from pydantic import BaseModel

from article_reader.domain.entities import SummaryMode


class ExtractRequest(BaseModel):
    url: Optional[str] = None
    summary_mode: Optional[SummaryMode] = None


class ExtractResponse(BaseModel):
    url: str
    title: str
    content: str
    summarized: bool


class SummarizeRequest(BaseModel):
    text: str = ""
    mode: Optional[SummaryMode] = None


class SummarizeResponse(BaseModel):
    summary: str


class ErrorResponse(BaseModel):
    error: str
    code: str
    details: Optional[str] = None
