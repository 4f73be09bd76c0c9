from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional


class SummaryMode(str, Enum):
    NONE = "none"
    EXTRACTIVE = "extractive"
    GENERATIVE = "generative"


class PlaybackStatus(str, Enum):
    IDLE = "idle"
    SPEAKING = "speaking"
    PAUSED = "paused"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class ExtractionRequest:
    url: str
    summary_mode: Optional[SummaryMode] = None


@dataclass(frozen=True, slots=True)
class ArticleResult:
    """Text to narrate for one article.

    ``content`` is the summary when ``summarized`` is set and the full body
    otherwise. ``title`` falls back to the URL host when the page has none.
    """

    url: str
    title: str
    content: str
    summarized: bool


@dataclass(frozen=True, slots=True)
class SpeechUnit:
    index: int
    text: str

    @property
    def is_blank(self) -> bool:
        return not self.text


@dataclass(frozen=True, slots=True)
class Voice:
    name: str
    lang: Optional[str] = None


@dataclass(slots=True)
class Utterance:
    text: str
    voice: Voice
    on_end: Callable[[], None]
    on_error: Callable[[BaseException], None]
    lang: str = "en-US"
