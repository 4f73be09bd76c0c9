from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol

from article_reader.domain.entities import Utterance, Voice


@dataclass(slots=True)
class ParsedArticle:
    url: str
    title: Optional[str]
    text: str


class DocumentFetcherPort(Protocol):
    def fetch(self, url: str) -> str:
        ...


class ContentExtractorPort(Protocol):
    def extract(self, html: str, url: str) -> ParsedArticle | None:
        ...


class SummarizerPort(Protocol):
    def summarize(self, text: str) -> str:
        ...


class NarrationEnginePort(Protocol):
    def get_voices(self) -> list[Voice]:
        ...

    def speak(self, utterance: Utterance) -> None:
        ...

    def cancel(self) -> None:
        ...
