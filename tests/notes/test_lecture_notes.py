from __future__ import annotations

import json
import re
from typing import Any

import pytest

from orah.notes.config import NotesSettings
from orah.notes.lecture import JSON_RESPONSE_FORMAT, generate_lecture_notes
from orah.notes.summarizer import TRUNCATION_MARKER

_CHUNK_LABEL = re.compile(r"\(chunk (\d+)\)")


def _transcript(count: int) -> str:
    # Each sentence is 40 chars, so 10 estimated tokens.
    return " ".join(f"L{i:02d} " + "y" * 35 + "." for i in range(count))


class _NotesGenerator:
    def __init__(self, *, malformed_chunks: set[int] | None = None) -> None:
        self.malformed_chunks = malformed_chunks or set()
        self.calls: list[dict[str, Any]] = []

    def generate_text(self, **kwargs: Any) -> str:
        self.calls.append(kwargs)
        match = _CHUNK_LABEL.search(kwargs["prompt"])
        chunk_number = int(match.group(1)) if match else 1
        if chunk_number - 1 in self.malformed_chunks:
            return "[]"
        suffix = f" (Part {chunk_number})" if chunk_number > 1 else ""
        return json.dumps(
            {
                "title": f"Sorting Algorithms{suffix}",
                "summary": f"Part {chunk_number} summary.",
                "sections": [{"title": "Merge Sort", "content": [f"Point from part {chunk_number}"]}],
                "definitions": [],
                "keyTakeaways": [],
            }
        )


@pytest.mark.asyncio
async def test_short_transcript_is_a_single_call() -> None:
    generator = _NotesGenerator()

    notes = await generate_lecture_notes("Today we cover merge sort. It is stable.", generator=generator, model="gpt-4o-mini")

    assert len(generator.calls) == 1
    call = generator.calls[0]
    assert call["response_format"] == JSON_RESPONSE_FORMAT
    assert call["model"] == "gpt-4o-mini"
    assert "(Part" not in call["system_prompt"]
    assert "Today we cover merge sort." in call["prompt"]
    assert notes.title == "Sorting Algorithms"
    assert notes.sections[0].content == ["Point from part 1"]


@pytest.mark.asyncio
async def test_long_transcript_is_chunked_and_merged() -> None:
    generator = _NotesGenerator()
    settings = NotesSettings(transcript_chunk_tokens=35, transcript_overlap_words=0, summary_batch_size=2)

    notes = await generate_lecture_notes(_transcript(9), generator=generator, settings=settings)

    assert len(generator.calls) == 3
    assert notes.title == "Sorting Algorithms"
    assert notes.summary == "Part 1 summary. Part 3 summary."
    assert [section.title for section in notes.sections] == ["Merge Sort"]
    assert notes.sections[0].content == ["Point from part 1", "Point from part 2", "Point from part 3"]
    assert any("(Part 2)" in call["system_prompt"] for call in generator.calls)


@pytest.mark.asyncio
async def test_malformed_chunk_notes_fall_back_to_transcript_text() -> None:
    generator = _NotesGenerator(malformed_chunks={1})
    settings = NotesSettings(transcript_chunk_tokens=35, transcript_overlap_words=0)

    notes = await generate_lecture_notes(_transcript(9), generator=generator, settings=settings)

    titles = [section.title for section in notes.sections]
    assert titles == ["Merge Sort", "Transcript Part 2"]
    fallback_content = notes.sections[1].content[0]
    assert fallback_content.startswith("L03 ")
    assert fallback_content.endswith(TRUNCATION_MARKER)


@pytest.mark.asyncio
async def test_empty_transcript_is_rejected() -> None:
    with pytest.raises(ValueError, match="transcript"):
        await generate_lecture_notes("   ", generator=_NotesGenerator())


@pytest.mark.asyncio
async def test_notes_calls_use_notes_timeout() -> None:
    generator = _NotesGenerator()
    settings = NotesSettings(summary_timeout_seconds=5.0, notes_timeout_seconds=240.0)

    await generate_lecture_notes("Today we cover merge sort. It is stable.", generator=generator, settings=settings)

    assert generator.calls[0]["timeout"] == 240.0
    assert NotesSettings().notes_timeout_seconds == 300.0
