"""Sentence-aligned chunk builder with contextual overlap between chunks."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Iterable, Sequence

from orah.notes.config import DEFAULT_TRANSCRIPT_CHUNK_TOKENS, DEFAULT_TRANSCRIPT_OVERLAP_WORDS
from orah.notes.models import DocumentChunk, SourceDocument, TextChunk
from orah.notes.sentences import PUNCTUATION_STRATEGY, SentenceUnit, split_sentence_units
from orah.notes.tokens import estimate_tokens


OVERLAP_WORDS = "words"
OVERLAP_CHARS = "chars"
OVERLAP_UNITS = (OVERLAP_WORDS, OVERLAP_CHARS)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class OverlapBudget:
    """How much trailing context to repeat at the start of the next chunk."""

    amount: int
    unit: str = OVERLAP_WORDS

    def __post_init__(self) -> None:
        if self.unit not in OVERLAP_UNITS:
            raise ValueError(f"overlap unit must be one of {OVERLAP_UNITS}, got {self.unit!r}")
        if self.amount < 0:
            raise ValueError("overlap amount cannot be negative")


def _measure(sentence: str, unit: str) -> int:
    if unit == OVERLAP_WORDS:
        return len(sentence.split())
    return len(sentence)


def select_overlap(preceding_sentences: Sequence[str], target: int, *, unit: str = OVERLAP_WORDS) -> list[str]:
    """Pick trailing sentences until their size reaches ``target``.

    Sentences are collected from the end backward and returned in their
    original order. When everything available is smaller than the target, all
    of it is returned.
    """

    if unit not in OVERLAP_UNITS:
        raise ValueError(f"overlap unit must be one of {OVERLAP_UNITS}, got {unit!r}")

    selected: list[str] = []
    accumulated = 0
    for sentence in reversed(preceding_sentences):
        if accumulated >= target:
            break
        selected.append(sentence)
        accumulated += _measure(sentence, unit)

    selected.reverse()
    return selected


def _carry_over(closed: list[SentenceUnit], budget: OverlapBudget) -> list[SentenceUnit]:
    # The first sentence of a closed chunk is never carried so every chunk adds new text.
    candidates = closed[1:]
    if not candidates or budget.amount == 0:
        return []

    selected = select_overlap([unit.text for unit in candidates], budget.amount, unit=budget.unit)
    return candidates[len(candidates) - len(selected) :]


def _close_chunk(index: int, units: list[SentenceUnit]) -> TextChunk:
    chunk_text = " ".join(unit.text for unit in units)
    return TextChunk(
        index=index,
        text=chunk_text,
        start_char=units[0].start,
        end_char=units[-1].end,
        estimated_tokens=estimate_tokens(chunk_text),
    )


def chunk_text(
    text: str,
    max_chunk_tokens: int,
    overlap: OverlapBudget | None = None,
    *,
    strategy: str = PUNCTUATION_STRATEGY,
) -> list[TextChunk]:
    """Greedily pack sentences into chunks of at most ``max_chunk_tokens``.

    A sentence that alone exceeds the budget is kept whole in its own chunk.
    """

    if max_chunk_tokens <= 0:
        raise ValueError("max_chunk_tokens must be positive")
    if not text:
        return []

    total_tokens = estimate_tokens(text)
    if total_tokens <= max_chunk_tokens:
        return [TextChunk(index=0, text=text, start_char=0, end_char=len(text), estimated_tokens=total_tokens)]

    budget = overlap or OverlapBudget(0)
    chunks: list[TextChunk] = []
    buffer: list[SentenceUnit] = []
    running_tokens = 0

    for unit in split_sentence_units(text, strategy=strategy):
        sentence_tokens = estimate_tokens(unit.text)

        if buffer and running_tokens + sentence_tokens > max_chunk_tokens:
            chunks.append(_close_chunk(len(chunks), buffer))
            buffer = [*_carry_over(buffer, budget), unit]
            running_tokens = sum(estimate_tokens(item.text) for item in buffer)
            continue

        buffer.append(unit)
        running_tokens += sentence_tokens

    if buffer:
        chunks.append(_close_chunk(len(chunks), buffer))

    logger.debug("Chunked %d chars (%d tokens) into %d chunks", len(text), total_tokens, len(chunks))
    return chunks


def chunk_documents(
    documents: Iterable[SourceDocument],
    *,
    max_chunk_tokens: int,
    overlap: OverlapBudget | None = None,
    strategy: str = PUNCTUATION_STRATEGY,
) -> list[DocumentChunk]:
    """Chunk each document independently and number chunks across all of them."""

    tagged: list[DocumentChunk] = []
    for document in documents:
        chunks = chunk_text(document.text, max_chunk_tokens, overlap, strategy=strategy)
        if not chunks:
            logger.info("Skipping empty document %s", document.name)
            continue
        for chunk in chunks:
            tagged.append(
                DocumentChunk(
                    position=len(tagged),
                    document_name=document.name,
                    chunk=chunk,
                    part_count=len(chunks),
                )
            )
    return tagged


def chunk_transcript(
    transcript: str,
    *,
    max_chunk_tokens: int = DEFAULT_TRANSCRIPT_CHUNK_TOKENS,
    overlap_words: int = DEFAULT_TRANSCRIPT_OVERLAP_WORDS,
    strategy: str = PUNCTUATION_STRATEGY,
) -> list[TextChunk]:
    return chunk_text(
        transcript,
        max_chunk_tokens,
        OverlapBudget(overlap_words, OVERLAP_WORDS),
        strategy=strategy,
    )
