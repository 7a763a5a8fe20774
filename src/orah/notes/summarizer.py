"""Exam-focused chunk summarization with bounded concurrency and local fallback."""

from __future__ import annotations

import asyncio
from functools import partial
import logging
import math
from typing import Any, Sequence

from orah.notes.config import DEFAULT_SUMMARY_BATCH_SIZE, DEFAULT_SUMMARY_TIMEOUT_SECONDS, NotesSettings
from orah.notes.models import ChunkSummary, DocumentChunk
from orah.notes.scheduling import POOL_SCHEDULING, call_in_thread, run_bounded, validate_scheduling
from orah.notes.tokens import TOKENS_PER_CHAR


SUMMARY_SYSTEM_PROMPT = (
    "You create concise summaries of study materials that preserve all key information "
    "for exam preparation. Focus on exam-relevant content."
)
TRUNCATION_MARKER = "[... document truncated due to summarization error ...]"
FALLBACK_CHARS = 5000
MAX_SUMMARY_TOKENS = 4000
SUMMARY_RATIO = 0.3
DEFAULT_SUMMARY_TEMPERATURE = 0.3

logger = logging.getLogger(__name__)


def summary_token_budget(text: str) -> int:
    """Cap the response at roughly 30% of the input, never above 4000 tokens."""

    return max(1, min(MAX_SUMMARY_TOKENS, math.ceil(len(text) * TOKENS_PER_CHAR * SUMMARY_RATIO)))


def fallback_summary(text: str) -> str:
    return f"{text[:FALLBACK_CHARS]}\n\n{TRUNCATION_MARKER}"


def build_summary_prompt(*, text: str, topic: str, document_name: str, part_number: int, total_chunks: int) -> str:
    return (
        f'Summarize this section of a study document about the topic "{topic}". '
        f'This is part {part_number} of {total_chunks} from the document "{document_name}".\n\n'
        f'CRITICAL: Preserve ALL key information relevant to "{topic}":\n'
        "- Key concepts and definitions\n"
        "- Important examples and formulas\n"
        "- Step-by-step processes\n"
        "- Problem-solving strategies\n"
        "- Exam-relevant information\n\n"
        f"Document Section:\n{text}\n\n"
        "Return a comprehensive but concise summary (aim for 20-30% of original length) "
        f'that preserves all exam-critical information about "{topic}".'
    )


class ChunkSummarizer:
    """Summarizes document chunks through a chat-completion generator.

    The generator is any object exposing ``generate_text`` with the keyword
    signature of :class:`orah.llm.openai_client.ChatCompletionGenerator`. Calls
    are blocking and run in worker threads. ``timeout_seconds`` is forwarded to
    the request as ``timeout`` and also bounds the wait; a worker that outlives
    it keeps its slot until it returns. A failed call degrades that chunk to a
    truncated copy of its text and never affects the other chunks.
    """

    def __init__(
        self,
        generator: Any,
        *,
        model: str | None = None,
        batch_size: int = DEFAULT_SUMMARY_BATCH_SIZE,
        timeout_seconds: float = DEFAULT_SUMMARY_TIMEOUT_SECONDS,
        temperature: float = DEFAULT_SUMMARY_TEMPERATURE,
        scheduling: str = POOL_SCHEDULING,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")
        validate_scheduling(scheduling)

        self._generator = generator
        self._model = model
        self._batch_size = batch_size
        self._timeout_seconds = timeout_seconds
        self._temperature = temperature
        self._scheduling = scheduling

    @classmethod
    def from_settings(
        cls,
        generator: Any,
        settings: NotesSettings | None = None,
        *,
        model: str | None = None,
        scheduling: str = POOL_SCHEDULING,
    ) -> "ChunkSummarizer":
        config = settings or NotesSettings()
        return cls(
            generator,
            model=model,
            batch_size=config.summary_batch_size,
            timeout_seconds=config.summary_timeout_seconds,
            scheduling=scheduling,
        )

    @property
    def batch_size(self) -> int:
        return self._batch_size

    @property
    def timeout_seconds(self) -> float:
        return self._timeout_seconds

    async def summarize_chunks(self, chunks: Sequence[DocumentChunk], topic: str) -> list[ChunkSummary]:
        if not chunks:
            return []

        total = len(chunks)
        logger.info("Summarizing %d chunks with at most %d in flight", total, self._batch_size)
        jobs = [partial(self._summarize_one, chunk, topic, total) for chunk in chunks]
        summaries = await run_bounded(jobs, limit=self._batch_size, scheduling=self._scheduling)

        fallbacks = sum(1 for summary in summaries if summary.is_fallback)
        if fallbacks:
            logger.warning("%d of %d chunks fell back to truncated text", fallbacks, total)
        return sorted(summaries, key=lambda summary: summary.chunk_index)

    async def _summarize_one(self, chunk: DocumentChunk, topic: str, total: int) -> ChunkSummary:
        text = chunk.chunk.text
        prompt = build_summary_prompt(
            text=text,
            topic=topic,
            document_name=chunk.document_name,
            part_number=chunk.position + 1,
            total_chunks=total,
        )

        try:
            summary_text = await call_in_thread(
                self._generator.generate_text,
                timeout_seconds=self._timeout_seconds,
                prompt=prompt,
                system_prompt=SUMMARY_SYSTEM_PROMPT,
                model=self._model,
                temperature=self._temperature,
                max_tokens=summary_token_budget(text),
                timeout=self._timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Summarization timed out after %.1fs for chunk %d of %s",
                self._timeout_seconds,
                chunk.position,
                chunk.document_name,
            )
            return self._fallback(chunk)
        except Exception as exc:
            logger.warning("Summarization failed for chunk %d of %s: %s", chunk.position, chunk.document_name, exc)
            return self._fallback(chunk)

        logger.info("Summarized chunk %d/%d", chunk.position + 1, total)
        return ChunkSummary(
            chunk_index=chunk.position,
            document_name=chunk.document_name,
            summary_text=summary_text,
            part=chunk.part,
        )

    @staticmethod
    def _fallback(chunk: DocumentChunk) -> ChunkSummary:
        return ChunkSummary(
            chunk_index=chunk.position,
            document_name=chunk.document_name,
            summary_text=fallback_summary(chunk.chunk.text),
            part=chunk.part,
            is_fallback=True,
        )
