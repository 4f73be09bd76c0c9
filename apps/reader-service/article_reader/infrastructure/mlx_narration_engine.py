from __future__ import annotations

import asyncio
import inspect
import itertools
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from threading import RLock
from typing import Any, Callable

import numpy as np
import soundfile as sf
from loguru import logger

from article_reader.domain.entities import Utterance, Voice
from article_reader.domain.errors import NarrationUnsupported
from article_reader.domain.model_registry import voices_for


def load_mlx_model(model_id: str) -> Any:
    # mlx-audio only installs on Apple silicon; import it when a model is actually needed.
    from mlx_audio.tts.utils import load_model

    return load_model(model_id)


class MlxNarrationEngine:
    """Renders one utterance at a time to numbered WAV files.

    The model loads on a worker thread the first time voices are requested, so
    ``get_voices`` stays empty until it is ready. ``cancel`` cancels the queued
    render and bumps the generation; a render already running checks the
    generation between audio chunks and before its file is moved into place,
    so cancelled units never leave a file behind and never report back.
    """

    def __init__(
        self,
        output_dir: Path,
        model_id: str,
        speed: float = 1.0,
        loader: Callable[[str], Any] = load_mlx_model,
        render_workers: int = 2,
    ) -> None:
        self._output_dir = output_dir
        self._output_dir.mkdir(parents=True, exist_ok=True)
        self._model_id = model_id
        self._speed = speed
        self._loader = loader
        self._model_executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="narration-load")
        # More than one worker so a fresh unit never queues behind a cancelled one still inside generate().
        self._render_executor = ThreadPoolExecutor(
            max_workers=max(2, render_workers),
            thread_name_prefix="narration",
        )
        self._model_future: Future[Any] | None = None
        self._pending: Future[Path | None] | None = None
        self._generation = 0
        self._sequence = itertools.count(1)
        self._lock = RLock()
        self.rendered: list[Path] = []

    def get_voices(self) -> list[Voice]:
        future = self._ensure_model_loading()
        if not future.done():
            return []

        exc = future.exception()
        if exc is not None:
            raise NarrationUnsupported(
                f"Could not load narration model {self._model_id}",
                details=str(exc),
            ) from exc
        return voices_for(self._model_id)

    def speak(self, utterance: Utterance) -> None:
        loop = asyncio.get_running_loop()
        self._ensure_model_loading()

        with self._lock:
            self._drop_pending()
            generation = self._generation
            output_path = self._output_dir / f"{next(self._sequence):05d}.wav"
            job = self._render_executor.submit(self._render, utterance, output_path, generation)
            self._pending = job

        def deliver(finished: Future[Path | None]) -> None:
            if loop.is_closed():
                return
            try:
                loop.call_soon_threadsafe(self._settle, finished, generation, utterance)
            except RuntimeError:
                # Loop closed between the check and the call.
                return

        job.add_done_callback(deliver)

    def cancel(self) -> None:
        with self._lock:
            self._drop_pending()

    def close(self, wait: bool = False) -> None:
        self.cancel()
        self._render_executor.shutdown(wait=wait, cancel_futures=True)
        self._model_executor.shutdown(wait=wait, cancel_futures=True)

    def _drop_pending(self) -> None:
        self._generation += 1
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None

    def _is_current(self, generation: int) -> bool:
        with self._lock:
            return generation == self._generation

    def _ensure_model_loading(self) -> Future[Any]:
        with self._lock:
            if self._model_future is None:
                logger.info("Loading narration model {}", self._model_id)
                self._model_future = self._model_executor.submit(self._loader, self._model_id)
            return self._model_future

    def _settle(self, job: Future[Path | None], generation: int, utterance: Utterance) -> None:
        if not self._is_current(generation) or job.cancelled():
            return

        exc = job.exception()
        if exc is not None:
            utterance.on_error(exc)
            return

        path = job.result()
        if path is None:
            return
        self.rendered.append(path)
        utterance.on_end()

    def _render(self, utterance: Utterance, output_path: Path, generation: int) -> Path | None:
        model = self._ensure_model_loading().result()
        sample_rate = getattr(model, "sample_rate", 24_000)
        segments: list[np.ndarray] = []

        for result in model.generate(**self._build_generation_kwargs(model, utterance)):
            if not self._is_current(generation):
                logger.debug("Dropped cancelled unit {}", output_path.name)
                return None
            sample_rate = getattr(result, "sample_rate", sample_rate)
            audio = np.asarray(result.audio, dtype=np.float32)
            if audio.size:
                segments.append(audio)

        if not self._is_current(generation):
            logger.debug("Dropped cancelled unit {}", output_path.name)
            return None
        if not segments:
            raise ValueError(f"Narration model produced no audio for: {utterance.text[:60]!r}")

        partial_path = output_path.with_suffix(".part.wav")
        sf.write(partial_path, np.concatenate(segments), sample_rate)
        with self._lock:
            if generation != self._generation:
                partial_path.unlink(missing_ok=True)
                logger.debug("Dropped cancelled unit {}", output_path.name)
                return None
            partial_path.replace(output_path)

        logger.debug("Rendered {} ({} chars)", output_path.name, len(utterance.text))
        return output_path

    def _build_generation_kwargs(self, model: Any, utterance: Utterance) -> dict[str, Any]:
        kwargs: dict[str, Any] = {"text": utterance.text}
        parameters = inspect.signature(model.generate).parameters

        if "voice" in parameters and utterance.voice and utterance.voice.name != "default":
            kwargs["voice"] = utterance.voice.name

        if "speed" in parameters:
            kwargs["speed"] = self._speed

        if "lang_code" in parameters:
            lang_code = self._resolve_lang_code(utterance.voice)
            if lang_code is not None:
                kwargs["lang_code"] = lang_code

        return kwargs

    def _resolve_lang_code(self, voice: Voice | None) -> str | None:
        # Kokoro expects the one-letter language prefix of its voice ids.
        if "kokoro" in self._model_id.lower():
            prefix = (voice.name if voice else "").strip().lower()[:1]
            supported = {"a", "b", "e", "f", "h", "i", "p", "j", "z"}
            return prefix if prefix in supported else "a"
        return None
