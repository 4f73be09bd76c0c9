from __future__ import annotations

from article_reader.domain.errors import SummarizationFailed
from article_reader.infrastructure.lm_studio_client import LmStudioClient


class ExtractiveSummarizer:
    """First-two-sentences summary, split on the literal ". " boundary."""

    def __init__(self, max_sentences: int = 2) -> None:
        self._max_sentences = max_sentences

    def summarize(self, text: str) -> str:
        if not text or not text.strip():
            raise SummarizationFailed("Summarization failed", details="no text to summarize")

        sentences = text.split(". ")
        if len(sentences) <= self._max_sentences:
            return text
        return ". ".join(sentences[: self._max_sentences]) + "."


class GenerativeSummarizer:
    def __init__(self, client: LmStudioClient) -> None:
        self._client = client

    def summarize(self, text: str) -> str:
        if not text or not text.strip():
            raise SummarizationFailed("Summarization failed", details="no text to summarize")
        return self._client.summarize(text).strip()
