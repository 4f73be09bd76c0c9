from __future__ import annotations

import asyncio
import itertools
from dataclasses import dataclass
from functools import partial
from typing import Callable, Optional

from loguru import logger

from article_reader.domain.entities import PlaybackStatus, SpeechUnit, Utterance, Voice
from article_reader.domain.errors import NarrationEngineError, NarrationUnsupported, ReaderError
from article_reader.domain.ports import NarrationEnginePort
from article_reader.domain.segmentation import split_units

_VOICE_POLL_INITIAL_SECONDS = 0.05
_VOICE_POLL_MAX_SECONDS = 1.0


@dataclass(slots=True)
class PlaybackSession:
    text: str
    units: tuple[SpeechUnit, ...]
    cursor: int
    token: int
    done: asyncio.Future[None]
    on_complete: Optional[Callable[[], None]] = None
    status: PlaybackStatus = PlaybackStatus.IDLE
    voice: Optional[Voice] = None
    starter: Optional[asyncio.Task[None]] = None


class SpeechController:
    """Sentence-by-sentence narration over a single-utterance engine.

    One controller owns at most one session. Every unit handed to the engine
    is bound to the session token that was live when it started; callbacks
    arriving with any other token are ignored, so a stopped or superseded
    session can never move its cursor again.

    Must be driven from a running event loop. Engines deliver ``on_end`` and
    ``on_error`` on that loop.
    """

    def __init__(
        self,
        engine: NarrationEnginePort | None,
        *,
        preferred_voice: str | None = None,
        voice_timeout_seconds: float = 10.0,
        lang: str = "en-US",
    ) -> None:
        self._engine = engine
        self._preferred_voice = preferred_voice
        self._voice_timeout_seconds = voice_timeout_seconds
        self._lang = lang
        self._tokens = itertools.count(1)
        self._live_token: int | None = None
        self._session: PlaybackSession | None = None

    @property
    def status(self) -> PlaybackStatus:
        return self._session.status if self._session else PlaybackStatus.IDLE

    @property
    def cursor(self) -> int:
        return self._session.cursor if self._session else 0

    @property
    def units(self) -> tuple[SpeechUnit, ...]:
        return self._session.units if self._session else ()

    def speak(
        self,
        text: str,
        start_unit_index: int = 0,
        on_complete: Callable[[], None] | None = None,
    ) -> asyncio.Future[None]:
        if start_unit_index < 0:
            raise ValueError("start_unit_index must be >= 0")

        done = asyncio.get_running_loop().create_future()
        self._supersede()

        if self._engine is None:
            done.set_exception(NarrationUnsupported("Speech synthesis is not supported"))
            return done

        units = split_units(text)
        return self._start(text, units, min(start_unit_index, len(units)), on_complete, done)

    def stop(self) -> None:
        session = self._live_session()
        if session is None:
            return

        self._live_token = None
        self._engine.cancel()
        session.status = PlaybackStatus.PAUSED
        if session.starter is not None and not session.starter.done():
            session.starter.cancel()
        if not session.done.done():
            session.done.cancel()
        logger.debug("Narration paused at unit {}/{}", session.cursor, len(session.units))

    def resume(self) -> asyncio.Future[None] | None:
        session = self._session
        if session is None:
            return None
        if self._live_session() is session:
            return session.done
        if session.status is not PlaybackStatus.PAUSED:
            return None

        done = asyncio.get_running_loop().create_future()
        return self._start(session.text, session.units, session.cursor, session.on_complete, done)

    def _start(
        self,
        text: str,
        units: tuple[SpeechUnit, ...],
        cursor: int,
        on_complete: Callable[[], None] | None,
        done: asyncio.Future[None],
    ) -> asyncio.Future[None]:
        # The engine plays one utterance system-wide; clear whatever it holds first.
        self._engine.cancel()

        session = PlaybackSession(
            text=text,
            units=units,
            cursor=cursor,
            token=next(self._tokens),
            done=done,
            on_complete=on_complete,
        )
        self._session = session
        self._live_token = session.token

        if cursor >= len(units):
            self._complete(session)
            return done

        session.starter = asyncio.get_running_loop().create_task(self._begin(session))
        return done

    async def _begin(self, session: PlaybackSession) -> None:
        try:
            voice = await self._select_voice()
        except ReaderError as exc:
            if self._live_session() is session:
                self._fail(session, exc)
            return
        except Exception as exc:  # noqa: BLE001
            if self._live_session() is session:
                self._fail(session, NarrationUnsupported("Speech synthesis is not available", details=str(exc)))
            return

        if self._live_session() is not session:
            return

        session.voice = voice
        session.status = PlaybackStatus.SPEAKING
        logger.debug(
            "Narrating {} units from {} with voice {}",
            len(session.units),
            session.cursor,
            voice.name,
        )
        self._speak_next(session)

    def _speak_next(self, session: PlaybackSession) -> None:
        while session.cursor < len(session.units) and session.units[session.cursor].is_blank:
            session.cursor += 1

        if session.cursor >= len(session.units):
            self._complete(session)
            return

        unit = session.units[session.cursor]
        utterance = Utterance(
            text=unit.text,
            voice=session.voice,
            lang=self._lang,
            on_end=partial(self._on_unit_end, session.token),
            on_error=partial(self._on_unit_error, session.token),
        )
        try:
            self._engine.speak(utterance)
        except Exception as exc:  # noqa: BLE001
            self._fail(session, exc)

    def _on_unit_end(self, token: int) -> None:
        session = self._live_session(token)
        if session is None or session.status is not PlaybackStatus.SPEAKING:
            return
        session.cursor += 1
        self._speak_next(session)

    def _on_unit_error(self, token: int, error: BaseException) -> None:
        session = self._live_session(token)
        if session is None:
            return
        self._fail(session, error)

    def _complete(self, session: PlaybackSession) -> None:
        session.status = PlaybackStatus.COMPLETED
        self._live_token = None
        if not session.done.done():
            session.done.set_result(None)
        logger.debug("Narration completed after {} units", len(session.units))
        if session.on_complete is not None:
            session.on_complete()

    def _fail(self, session: PlaybackSession, error: BaseException) -> None:
        session.status = PlaybackStatus.FAILED
        self._live_token = None
        self._engine.cancel()

        if isinstance(error, ReaderError):
            failure = error
        else:
            failure = NarrationEngineError(
                f"Narration failed at unit {session.cursor}",
                details=str(error) or type(error).__name__,
            )
            failure.__cause__ = error

        logger.error("Narration failed at unit {}: {}", session.cursor, failure.details or failure.message)
        if not session.done.done():
            session.done.set_exception(failure)

    def _supersede(self) -> None:
        session = self._live_session()
        if session is None:
            return
        self._live_token = None
        if session.starter is not None and not session.starter.done():
            session.starter.cancel()
        if not session.done.done():
            session.done.cancel()
        logger.debug("Narration superseded at unit {}", session.cursor)

    def _live_session(self, token: int | None = None) -> PlaybackSession | None:
        session = self._session
        if session is None or self._live_token is None or session.token != self._live_token:
            return None
        if token is not None and token != self._live_token:
            return None
        return session

    async def _select_voice(self) -> Voice:
        voices = await self._wait_for_voices()
        if self._preferred_voice:
            wanted = self._preferred_voice.lower()
            for voice in voices:
                if wanted in voice.name.lower():
                    return voice
        return voices[0]

    async def _wait_for_voices(self) -> list[Voice]:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._voice_timeout_seconds
        delay = _VOICE_POLL_INITIAL_SECONDS

        while True:
            voices = list(self._engine.get_voices())
            if voices:
                return voices

            remaining = deadline - loop.time()
            if remaining <= 0:
                raise NarrationUnsupported("No narration voices available")
            await asyncio.sleep(min(delay, remaining))
            delay = min(delay * 2, _VOICE_POLL_MAX_SECONDS)
