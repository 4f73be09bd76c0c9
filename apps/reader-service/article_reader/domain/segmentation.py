from __future__ import annotations

import re

from article_reader.domain.entities import SpeechUnit

# A run of text up to and including its terminal punctuation. A trailing run
# without a terminator still forms a unit, as does a bare run of terminators.
_UNIT_RE = re.compile(r"[^.!?]+[.!?]*|[.!?]+")


def split_units(text: str) -> tuple[SpeechUnit, ...]:
    return tuple(
        SpeechUnit(index=index, text=match.group(0).strip())
        for index, match in enumerate(_UNIT_RE.finditer(text or ""))
    )
