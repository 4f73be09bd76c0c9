from __future__ import annotations

import asyncio
from typing import Iterable, Mapping
from urllib.parse import urlparse

from loguru import logger

from article_reader.domain.entities import ArticleResult, ExtractionRequest, SummaryMode
from article_reader.domain.errors import ContentTooShort, FetchFailed, ParseFailed, ReaderError, SummarizationFailed
from article_reader.domain.ports import ContentExtractorPort, DocumentFetcherPort, SummarizerPort
from article_reader.domain.validation import validate_request


class ExtractionService:
    def __init__(
        self,
        fetcher: DocumentFetcherPort,
        extractor: ContentExtractorPort,
        summarizers: Mapping[SummaryMode, SummarizerPort],
        *,
        blocked_domains: Iterable[str] = ("twitter.com", "x.com"),
        default_mode: SummaryMode = SummaryMode.EXTRACTIVE,
        min_content_length: int = 200,
        summary_input_max_chars: int = 5_000,
    ) -> None:
        self._fetcher = fetcher
        self._extractor = extractor
        self._summarizers = dict(summarizers)
        self._blocked_domains = tuple(blocked_domains)
        self._default_mode = default_mode
        self._min_content_length = max(0, min_content_length)
        self._summary_input_max_chars = max(1, summary_input_max_chars)

    @property
    def default_mode(self) -> SummaryMode:
        return self._default_mode

    def supports(self, mode: SummaryMode) -> bool:
        return mode is SummaryMode.NONE or mode in self._summarizers

    def build_request(self, url: object, summary_mode: SummaryMode | None = None) -> ExtractionRequest:
        return validate_request(url, self._blocked_domains, summary_mode)

    async def extract(self, request: ExtractionRequest) -> ArticleResult:
        logger.info("Received URL: {}", request.url)
        # Hand-built requests still pass the denylist before any fetch.
        request = self.build_request(request.url, request.summary_mode)
        mode = request.summary_mode or self._default_mode

        logger.debug("Fetching {}", request.url)
        try:
            html = await asyncio.to_thread(self._fetcher.fetch, request.url)
        except ReaderError as exc:
            logger.error("Extraction failed for {}: {}", request.url, exc.details or exc.message)
            raise
        except Exception as exc:  # noqa: BLE001
            logger.error("Extraction failed for {}: {}", request.url, exc)
            raise FetchFailed("Extraction failed", details=str(exc)) from exc

        try:
            article = await asyncio.to_thread(self._extractor.extract, html, request.url)
        except Exception as exc:  # noqa: BLE001
            raise ParseFailed("Could not extract readable content", details=str(exc)) from exc

        if article is None or not article.text.strip():
            logger.warning("No readable content extracted from {}", request.url)
            raise ParseFailed("Could not extract readable content")

        body = article.text.strip()
        if len(body) < self._min_content_length:
            logger.warning("Content too short ({} chars) for {}", len(body), request.url)
            raise ContentTooShort("Content too short or not meaningful")

        logger.info("Extraction success for {} ({} chars)", request.url, len(body))
        title = article.title or urlparse(request.url).netloc

        if mode is SummaryMode.NONE:
            return ArticleResult(url=request.url, title=title, content=body, summarized=False)

        summary = await self.summarize(body[: self._summary_input_max_chars], mode)
        return ArticleResult(url=request.url, title=title, content=summary, summarized=True)

    async def summarize(self, text: str, mode: SummaryMode | None = None) -> str:
        mode = mode or self._default_mode
        if mode is SummaryMode.NONE:
            mode = SummaryMode.EXTRACTIVE

        summarizer = self._summarizers.get(mode)
        if summarizer is None:
            raise SummarizationFailed("Summarization failed", details=f"{mode.value} summarizer is not configured")

        try:
            summary = await asyncio.to_thread(summarizer.summarize, text)
        except ReaderError:
            raise
        except Exception as exc:  # noqa: BLE001
            raise SummarizationFailed("Summarization failed", details=str(exc)) from exc

        logger.debug("Summarized {} chars into {} chars with {}", len(text), len(summary), mode.value)
        return summary
