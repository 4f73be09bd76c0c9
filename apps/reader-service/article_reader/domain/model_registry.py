from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from article_reader.domain.entities import Voice


@dataclass(frozen=True, slots=True)
class NarrationModelDescriptor:
    id: str
    label: str
    languages: list[str]
    voices: list[Voice]
    default_voice: str


_NARRATION_MODELS: Final[list[NarrationModelDescriptor]] = [
    NarrationModelDescriptor(
        id="mlx-community/Kokoro-82M-bf16",
        label="Kokoro",
        languages=["EN", "JA", "ZH", "FR", "ES", "IT", "PT", "HI"],
        voices=[
            Voice("af_heart", "en-US"),
            Voice("af_bella", "en-US"),
            Voice("am_adam", "en-US"),
            Voice("bf_alice", "en-GB"),
            Voice("bm_george", "en-GB"),
        ],
        default_voice="af_heart",
    ),
    NarrationModelDescriptor(
        id="mlx-community/csm-1b",
        label="CSM",
        languages=["EN"],
        voices=[Voice("conversational_a", "en-US"), Voice("conversational_b", "en-US")],
        default_voice="conversational_a",
    ),
    NarrationModelDescriptor(
        id="mlx-community/Spark-TTS-0.5B-bf16",
        label="Spark",
        languages=["EN", "ZH"],
        voices=[Voice("default")],
        default_voice="default",
    ),
]


def list_narration_models() -> list[NarrationModelDescriptor]:
    return list(_NARRATION_MODELS)


def get_narration_model(model_id: str) -> NarrationModelDescriptor | None:
    for model in _NARRATION_MODELS:
        if model.id == model_id:
            return model
    return None


def voices_for(model_id: str) -> list[Voice]:
    model = get_narration_model(model_id)
    if model is None:
        return [Voice("default")]
    return list(model.voices)
