"""Sentence segmentation used to place chunk boundaries."""

from __future__ import annotations

from dataclasses import dataclass
import re

from razdel import sentenize


PUNCTUATION_STRATEGY = "punctuation"
RAZDEL_STRATEGY = "razdel"
SENTENCE_STRATEGIES = (PUNCTUATION_STRATEGY, RAZDEL_STRATEGY)

_SENTENCE_END = re.compile(r"[.!?]\s+")


@dataclass(slots=True)
class SentenceUnit:
    text: str
    start: int
    end: int


def _trimmed_unit(text: str, start: int, stop: int) -> SentenceUnit | None:
    raw = text[start:stop]
    stripped = raw.strip()
    if not stripped:
        return None

    left_trim = len(raw) - len(raw.lstrip())
    right_trim = len(raw) - len(raw.rstrip())
    return SentenceUnit(text=stripped, start=start + left_trim, end=stop - right_trim)


def _punctuation_units(text: str) -> list[SentenceUnit]:
    units: list[SentenceUnit] = []
    last_index = 0

    for match in _SENTENCE_END.finditer(text):
        unit = _trimmed_unit(text, last_index, match.end())
        if unit is not None:
            units.append(unit)
        last_index = match.end()

    if last_index < len(text):
        unit = _trimmed_unit(text, last_index, len(text))
        if unit is not None:
            units.append(unit)

    return units


def _razdel_units(text: str) -> list[SentenceUnit]:
    units: list[SentenceUnit] = []
    for match in sentenize(text):
        unit = _trimmed_unit(text, match.start, match.stop)
        if unit is not None:
            units.append(unit)
    return units


def split_sentence_units(text: str, *, strategy: str = PUNCTUATION_STRATEGY) -> list[SentenceUnit]:
    """Split ``text`` into trimmed sentences with their offsets in the source."""

    if strategy == PUNCTUATION_STRATEGY:
        return _punctuation_units(text)
    if strategy == RAZDEL_STRATEGY:
        return _razdel_units(text)
    raise ValueError(f"Unknown sentence strategy: {strategy!r}")


def split_sentences(text: str, *, strategy: str = PUNCTUATION_STRATEGY) -> list[str]:
    """Split ``text`` at sentence-ending punctuation followed by whitespace.

    Terminal punctuation stays with its sentence and a trailing fragment without
    punctuation is kept as the final sentence. The default heuristic mis-splits
    on abbreviations such as "Dr." and on decimals; ``strategy="razdel"`` uses a
    rule-based segmenter that handles those.
    """

    return [unit.text for unit in split_sentence_units(text, strategy=strategy)]
