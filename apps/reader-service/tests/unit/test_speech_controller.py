import asyncio

import pytest

from article_reader.application.speech_controller import SpeechController
from article_reader.domain.entities import PlaybackStatus, Utterance, Voice
from article_reader.domain.errors import NarrationEngineError, NarrationUnsupported


class FakeEngine:
    def __init__(self, voices: list[Voice] | None = None) -> None:
        self.voices = [Voice("Alex"), Voice("Google US English")] if voices is None else voices
        self.spoken: list[str] = []
        self.current: Utterance | None = None
        self.cancels = 0

    def get_voices(self) -> list[Voice]:
        return list(self.voices)

    def speak(self, utterance: Utterance) -> None:
        assert self.current is None, "engine asked to play two utterances at once"
        self.current = utterance
        self.spoken.append(utterance.text)

    def cancel(self) -> None:
        self.cancels += 1
        self.current = None

    def finish(self) -> None:
        utterance, self.current = self.current, None
        assert utterance is not None
        utterance.on_end()

    def fail(self, error: BaseException) -> None:
        utterance, self.current = self.current, None
        assert utterance is not None
        utterance.on_error(error)


async def settle() -> None:
    for _ in range(5):
        await asyncio.sleep(0)


def test_speak_narrates_units_in_order_and_resolves() -> None:
    async def scenario() -> None:
        engine = FakeEngine()
        completed: list[bool] = []
        controller = SpeechController(engine)

        done = controller.speak("Hello there. It is fine. Really.", on_complete=lambda: completed.append(True))
        await settle()
        assert controller.status is PlaybackStatus.SPEAKING
        assert [unit.text for unit in controller.units] == ["Hello there.", "It is fine.", "Really."]

        for expected_cursor in (0, 1, 2):
            assert controller.cursor == expected_cursor
            engine.finish()

        await done
        assert engine.spoken == ["Hello there.", "It is fine.", "Really."]
        assert controller.status is PlaybackStatus.COMPLETED
        assert controller.cursor == 3
        assert completed == [True]

    asyncio.run(scenario())


def test_stop_then_resume_continues_at_interrupted_unit() -> None:
    async def scenario() -> None:
        engine = FakeEngine()
        controller = SpeechController(engine)

        first = controller.speak("Hello there. It is fine. Really.")
        await settle()
        engine.finish()
        interrupted = engine.current
        assert interrupted is not None and interrupted.text == "It is fine."

        controller.stop()
        assert controller.status is PlaybackStatus.PAUSED
        assert controller.cursor == 1
        assert engine.current is None
        assert first.cancelled()

        # A late completion for the stopped unit must not move the cursor.
        interrupted.on_end()
        assert controller.cursor == 1

        resumed = controller.resume()
        assert resumed is not None
        await settle()
        assert engine.spoken == ["Hello there.", "It is fine.", "It is fine."]

        engine.finish()
        engine.finish()
        await resumed
        assert controller.status is PlaybackStatus.COMPLETED

    asyncio.run(scenario())


def test_stop_is_idempotent_when_not_speaking() -> None:
    async def scenario() -> None:
        engine = FakeEngine()
        controller = SpeechController(engine)
        controller.stop()
        assert controller.status is PlaybackStatus.IDLE

        controller.speak("One. Two.")
        await settle()
        controller.stop()
        cancels = engine.cancels
        controller.stop()
        assert engine.cancels == cancels
        assert controller.status is PlaybackStatus.PAUSED

    asyncio.run(scenario())


def test_second_speak_supersedes_first() -> None:
    async def scenario() -> None:
        engine = FakeEngine()
        calls: list[str] = []
        controller = SpeechController(engine)

        first = controller.speak("One. Two.", on_complete=lambda: calls.append("first"))
        await settle()
        stale = engine.current

        second = controller.speak("Three. Four.", on_complete=lambda: calls.append("second"))
        await settle()
        assert first.cancelled()

        stale.on_end()
        assert engine.spoken == ["One.", "Three."]

        engine.finish()
        engine.finish()
        await second
        assert calls == ["second"]
        assert engine.spoken == ["One.", "Three.", "Four."]

    asyncio.run(scenario())


def test_empty_text_completes_without_narration() -> None:
    async def scenario() -> None:
        engine = FakeEngine()
        controller = SpeechController(engine)

        done = controller.speak("")
        assert done.done()
        await done
        assert controller.status is PlaybackStatus.COMPLETED
        assert controller.units == ()
        assert engine.spoken == []

    asyncio.run(scenario())


def test_blank_units_are_skipped_but_advance_cursor() -> None:
    async def scenario() -> None:
        engine = FakeEngine()
        controller = SpeechController(engine)

        done = controller.speak("First sentence.   ")
        await settle()
        assert len(controller.units) == 2
        engine.finish()
        await done
        assert engine.spoken == ["First sentence."]
        assert controller.cursor == 2

    asyncio.run(scenario())


def test_engine_error_fails_the_whole_session() -> None:
    async def scenario() -> None:
        engine = FakeEngine()
        controller = SpeechController(engine)

        done = controller.speak("One. Two. Three.")
        await settle()
        cause = RuntimeError("audio device lost")
        engine.fail(cause)

        with pytest.raises(NarrationEngineError) as info:
            await done
        assert info.value.__cause__ is cause
        assert controller.status is PlaybackStatus.FAILED
        assert engine.spoken == ["One."]

    asyncio.run(scenario())


def test_missing_engine_rejects_with_narration_unsupported() -> None:
    async def scenario() -> None:
        controller = SpeechController(None)
        with pytest.raises(NarrationUnsupported):
            await controller.speak("Hello.")

    asyncio.run(scenario())


def test_waits_for_voices_and_prefers_named_voice() -> None:
    async def scenario() -> None:
        engine = FakeEngine(voices=[])
        controller = SpeechController(engine, preferred_voice="Google US English")

        controller.speak("Hello.")
        await settle()
        assert engine.spoken == []
        assert controller.status is PlaybackStatus.IDLE

        engine.voices = [Voice("Alex"), Voice("Google US English", "en-US")]
        await asyncio.sleep(0.3)
        assert engine.current is not None
        assert engine.current.voice.name == "Google US English"

    asyncio.run(scenario())


def test_falls_back_to_first_voice() -> None:
    async def scenario() -> None:
        engine = FakeEngine(voices=[Voice("Alex"), Voice("Samantha")])
        controller = SpeechController(engine, preferred_voice="Google US English")

        controller.speak("Hello.")
        await settle()
        assert engine.current.voice.name == "Alex"

    asyncio.run(scenario())


def test_no_voices_before_timeout_raises_narration_unsupported() -> None:
    async def scenario() -> None:
        engine = FakeEngine(voices=[])
        controller = SpeechController(engine, voice_timeout_seconds=0.1)

        with pytest.raises(NarrationUnsupported):
            await controller.speak("Hello.")
        assert controller.status is PlaybackStatus.FAILED

    asyncio.run(scenario())


def test_stop_while_waiting_for_voices_pauses_at_start() -> None:
    async def scenario() -> None:
        engine = FakeEngine(voices=[])
        controller = SpeechController(engine)

        controller.speak("One. Two.", start_unit_index=1)
        await settle()
        controller.stop()
        assert controller.status is PlaybackStatus.PAUSED
        assert controller.cursor == 1

        engine.voices = [Voice("Alex")]
        resumed = controller.resume()
        await settle()
        assert engine.spoken == ["Two."]
        engine.finish()
        await resumed

    asyncio.run(scenario())


def test_resume_edge_cases() -> None:
    async def scenario() -> None:
        engine = FakeEngine()
        controller = SpeechController(engine)
        assert controller.resume() is None

        running = controller.speak("One. Two.")
        await settle()
        assert controller.resume() is running

        engine.finish()
        engine.finish()
        await running
        assert controller.resume() is None

    asyncio.run(scenario())


def test_start_unit_index_bounds() -> None:
    async def scenario() -> None:
        controller = SpeechController(FakeEngine())
        with pytest.raises(ValueError):
            controller.speak("One.", start_unit_index=-1)

        done = controller.speak("One. Two.", start_unit_index=10)
        await done
        assert controller.cursor == 2
        assert controller.status is PlaybackStatus.COMPLETED

    asyncio.run(scenario())
