"""Runtime configuration for notes preparation budgets and concurrency."""

from __future__ import annotations

from dataclasses import dataclass
import os
from typing import Mapping

from orah.notes.sentences import PUNCTUATION_STRATEGY, SENTENCE_STRATEGIES


DEFAULT_SUMMARIZE_THRESHOLD_TOKENS = 50_000
DEFAULT_DOCUMENT_CHUNK_TOKENS = 20_000
DEFAULT_DOCUMENT_OVERLAP_CHARS = 2_000
DEFAULT_TRANSCRIPT_CHUNK_TOKENS = 80_000
DEFAULT_TRANSCRIPT_OVERLAP_WORDS = 200
DEFAULT_SUMMARY_BATCH_SIZE = 3
DEFAULT_SUMMARY_TIMEOUT_SECONDS = 45.0
DEFAULT_NOTES_TIMEOUT_SECONDS = 300.0


def _parse_positive_int(*, name: str, raw_value: str, minimum: int = 1) -> int:
    value = int(raw_value)
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}")
    return value


def _parse_positive_float(*, name: str, raw_value: str, minimum: float = 0.001) -> float:
    value = float(raw_value)
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}")
    return value


@dataclass(frozen=True, slots=True)
class NotesSettings:
    """Validated budgets used by the topic-notes and lecture-notes flows."""

    summarize_threshold_tokens: int = DEFAULT_SUMMARIZE_THRESHOLD_TOKENS
    document_chunk_tokens: int = DEFAULT_DOCUMENT_CHUNK_TOKENS
    document_overlap_chars: int = DEFAULT_DOCUMENT_OVERLAP_CHARS
    transcript_chunk_tokens: int = DEFAULT_TRANSCRIPT_CHUNK_TOKENS
    transcript_overlap_words: int = DEFAULT_TRANSCRIPT_OVERLAP_WORDS
    summary_batch_size: int = DEFAULT_SUMMARY_BATCH_SIZE
    summary_timeout_seconds: float = DEFAULT_SUMMARY_TIMEOUT_SECONDS
    notes_timeout_seconds: float = DEFAULT_NOTES_TIMEOUT_SECONDS
    sentence_strategy: str = PUNCTUATION_STRATEGY

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "NotesSettings":
        source: Mapping[str, str] = os.environ if environ is None else environ

        int_fields = (
            ("ORAH_SUMMARIZE_THRESHOLD_TOKENS", DEFAULT_SUMMARIZE_THRESHOLD_TOKENS, 1),
            ("ORAH_DOCUMENT_CHUNK_TOKENS", DEFAULT_DOCUMENT_CHUNK_TOKENS, 1),
            ("ORAH_DOCUMENT_OVERLAP_CHARS", DEFAULT_DOCUMENT_OVERLAP_CHARS, 0),
            ("ORAH_TRANSCRIPT_CHUNK_TOKENS", DEFAULT_TRANSCRIPT_CHUNK_TOKENS, 1),
            ("ORAH_TRANSCRIPT_OVERLAP_WORDS", DEFAULT_TRANSCRIPT_OVERLAP_WORDS, 0),
            ("ORAH_SUMMARY_BATCH_SIZE", DEFAULT_SUMMARY_BATCH_SIZE, 1),
        )
        parsed: dict[str, int] = {}
        for name, default, minimum in int_fields:
            raw_value = source.get(name, str(default)).strip()
            if not raw_value:
                raise ValueError(f"{name} cannot be empty")
            parsed[name] = _parse_positive_int(name=name, raw_value=raw_value, minimum=minimum)

        timeout_fields = (
            ("ORAH_SUMMARY_TIMEOUT_SECONDS", DEFAULT_SUMMARY_TIMEOUT_SECONDS),
            ("ORAH_NOTES_TIMEOUT_SECONDS", DEFAULT_NOTES_TIMEOUT_SECONDS),
        )
        timeouts: dict[str, float] = {}
        for name, default in timeout_fields:
            raw_value = source.get(name, str(default)).strip()
            if not raw_value:
                raise ValueError(f"{name} cannot be empty")
            timeouts[name] = _parse_positive_float(name=name, raw_value=raw_value, minimum=0.1)

        strategy = source.get("ORAH_SENTENCE_SPLITTER", PUNCTUATION_STRATEGY).strip().lower()
        if strategy not in SENTENCE_STRATEGIES:
            allowed = ", ".join(SENTENCE_STRATEGIES)
            raise ValueError(f"ORAH_SENTENCE_SPLITTER must be one of: {allowed}")

        return cls(
            summarize_threshold_tokens=parsed["ORAH_SUMMARIZE_THRESHOLD_TOKENS"],
            document_chunk_tokens=parsed["ORAH_DOCUMENT_CHUNK_TOKENS"],
            document_overlap_chars=parsed["ORAH_DOCUMENT_OVERLAP_CHARS"],
            transcript_chunk_tokens=parsed["ORAH_TRANSCRIPT_CHUNK_TOKENS"],
            transcript_overlap_words=parsed["ORAH_TRANSCRIPT_OVERLAP_WORDS"],
            summary_batch_size=parsed["ORAH_SUMMARY_BATCH_SIZE"],
            summary_timeout_seconds=timeouts["ORAH_SUMMARY_TIMEOUT_SECONDS"],
            notes_timeout_seconds=timeouts["ORAH_NOTES_TIMEOUT_SECONDS"],
            sentence_strategy=strategy,
        )
