"""Structured lecture notes generated from long transcripts."""

from __future__ import annotations

import asyncio
from functools import partial
import logging
from typing import Any

from orah.llm.openai_client import MalformedCompletion
from orah.notes.chunking import chunk_transcript
from orah.notes.config import NotesSettings
from orah.notes.merger import parse_chunk_notes, merge_notes
from orah.notes.models import ChunkNotes, LectureNotes, NoteSection, TextChunk
from orah.notes.scheduling import call_in_thread, run_bounded
from orah.notes.summarizer import fallback_summary


DEFAULT_NOTES_TEMPERATURE = 0.7
DEFAULT_NOTES_MAX_TOKENS = 16000
JSON_RESPONSE_FORMAT = {"type": "json_object"}

logger = logging.getLogger(__name__)


def build_notes_system_prompt(chunk_index: int) -> str:
    part_suffix = f" (Part {chunk_index + 1})" if chunk_index > 0 else ""
    return (
        "You are an expert note-taker creating exam-ready study notes. A student should be able "
        "to learn the entire lecture from your notes alone.\n\n"
        "Depth requirements:\n"
        "1. Every concept includes the specific examples used in the lecture.\n"
        "2. Explain why and how, not just what.\n"
        "3. Each bullet is 1-3 sentences with complete information.\n"
        "4. Keep all numbers, formulas, exact example data and step-by-step processes.\n"
        "5. Capture homework, due dates, office hours and the professor's exam hints.\n\n"
        "Return ONLY valid JSON:\n"
        "{\n"
        f'  "title": "Lecture title{part_suffix}",\n'
        '  "summary": "Comprehensive 2-3 sentence overview",\n'
        '  "sections": [{"title": "Section name", "content": ["Detailed bullet"]}],\n'
        '  "definitions": [{"term": "Term", "definition": "Complete definition with context"}],\n'
        '  "keyTakeaways": ["Takeaway with reasoning"]\n'
        "}"
    )


def build_notes_prompt(text: str, chunk_index: int) -> str:
    chunk_label = f" (chunk {chunk_index + 1})" if chunk_index > 0 else ""
    return f"Create organized notes from this lecture transcript{chunk_label}:\n\n{text}"


def _fallback_notes(chunk: TextChunk) -> ChunkNotes:
    return ChunkNotes(
        title="",
        sections=[NoteSection(title=f"Transcript Part {chunk.index + 1}", content=[fallback_summary(chunk.text)])],
        chunk_index=chunk.index,
    )


async def _notes_for_chunk(
    chunk: TextChunk,
    *,
    generator: Any,
    model: str | None,
    temperature: float,
    max_tokens: int,
    timeout_seconds: float,
) -> ChunkNotes:
    try:
        raw = await call_in_thread(
            generator.generate_text,
            timeout_seconds=timeout_seconds,
            prompt=build_notes_prompt(chunk.text, chunk.index),
            system_prompt=build_notes_system_prompt(chunk.index),
            model=model,
            temperature=temperature,
            max_tokens=max_tokens,
            response_format=JSON_RESPONSE_FORMAT,
            timeout=timeout_seconds,
        )
    except asyncio.TimeoutError:
        logger.warning("Notes generation timed out after %.1fs for chunk %d", timeout_seconds, chunk.index)
        return _fallback_notes(chunk)
    except Exception as exc:
        logger.warning("Notes generation failed for chunk %d: %s", chunk.index, exc)
        return _fallback_notes(chunk)

    parsed = parse_chunk_notes(raw, chunk.index)
    if isinstance(parsed, MalformedCompletion):
        logger.warning("Discarding malformed notes for chunk %d: %s", chunk.index, parsed.reason)
        return _fallback_notes(chunk)
    return parsed


async def generate_lecture_notes(
    transcript: str,
    *,
    generator: Any,
    model: str | None = None,
    settings: NotesSettings | None = None,
    temperature: float = DEFAULT_NOTES_TEMPERATURE,
    max_tokens: int = DEFAULT_NOTES_MAX_TOKENS,
) -> LectureNotes:
    """Chunk a transcript when it exceeds the transcript budget and merge per-chunk notes."""

    if not transcript or not transcript.strip():
        raise ValueError("transcript cannot be empty")

    config = settings or NotesSettings()
    chunks = chunk_transcript(
        transcript,
        max_chunk_tokens=config.transcript_chunk_tokens,
        overlap_words=config.transcript_overlap_words,
        strategy=config.sentence_strategy,
    )
    if len(chunks) > 1:
        logger.info("Chunking transcript of %d chars into %d chunks", len(transcript), len(chunks))

    jobs = [
        partial(
            _notes_for_chunk,
            chunk,
            generator=generator,
            model=model,
            temperature=temperature,
            max_tokens=max_tokens,
            timeout_seconds=config.notes_timeout_seconds,
        )
        for chunk in chunks
    ]
    chunk_notes = await run_bounded(jobs, limit=config.summary_batch_size)
    return merge_notes(chunk_notes)
