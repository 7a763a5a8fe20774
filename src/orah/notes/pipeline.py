"""Topic-notes preparation: pass small material through, summarize large material."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any, Iterable, Mapping, Sequence

from orah.notes.chunking import OVERLAP_CHARS, OverlapBudget, chunk_documents
from orah.notes.combiner import combine_documents, combine_summaries
from orah.notes.config import NotesSettings
from orah.notes.models import DEFAULT_DOCUMENT_NAME, PreparedNotes, SourceDocument
from orah.notes.summarizer import ChunkSummarizer
from orah.notes.tokens import estimate_tokens


logger = logging.getLogger(__name__)


@dataclass(slots=True)
class NotesPreparationError(RuntimeError):
    """Raised when an unexpected error escapes per-chunk recovery."""

    stage: str
    message: str

    def __str__(self) -> str:
        return f"{self.message} (stage={self.stage})"


def coerce_documents(payload: Iterable[Mapping[str, Any]]) -> list[SourceDocument]:
    """Build documents from loosely shaped mappings such as a decoded JSON body."""

    documents: list[SourceDocument] = []
    for item in payload:
        if not isinstance(item, Mapping):
            raise ValueError("each document must be an object with 'name' and 'text'")
        name = str(item.get("name") or "").strip() or DEFAULT_DOCUMENT_NAME
        text = item.get("text")
        documents.append(SourceDocument(name=name, text=str(text) if text is not None else ""))
    return documents


async def prepare_notes(
    documents: Sequence[SourceDocument],
    topic: str,
    *,
    summarizer: ChunkSummarizer,
    settings: NotesSettings | None = None,
) -> PreparedNotes:
    """Label small material verbatim, or chunk and summarize it above the threshold.

    ``settings`` drives the threshold and chunking. Concurrency and timeouts
    belong to ``summarizer``; build it with ``ChunkSummarizer.from_settings``
    to take them from the same settings.
    """

    if not documents:
        raise ValueError("documents cannot be empty")
    topic_text = (topic or "").strip()
    if not topic_text:
        raise ValueError("topic cannot be empty")

    config = settings or NotesSettings()
    original_tokens = estimate_tokens("".join(document.text for document in documents))

    if original_tokens < config.summarize_threshold_tokens:
        return PreparedNotes(
            text=combine_documents(documents),
            was_summarized=False,
            original_tokens=original_tokens,
            final_tokens=original_tokens,
        )

    logger.info("Preparing notes: %d tokens across %d documents", original_tokens, len(documents))

    stage = "chunk"
    try:
        chunks = chunk_documents(
            documents,
            max_chunk_tokens=config.document_chunk_tokens,
            overlap=OverlapBudget(config.document_overlap_chars, OVERLAP_CHARS),
            strategy=config.sentence_strategy,
        )
        logger.info("Split into %d chunks for summarization", len(chunks))

        stage = "summarize"
        summaries = await summarizer.summarize_chunks(chunks, topic_text)

        stage = "combine"
        combined = combine_summaries(summaries)
    except Exception as exc:
        logger.exception("Notes preparation failed during %s", stage)
        raise NotesPreparationError(stage=stage, message=f"Notes preparation failed: {exc}") from exc

    final_tokens = estimate_tokens(combined)
    reduction = round((1 - final_tokens / original_tokens) * 100) if original_tokens else 0
    logger.info("Prepared notes: %d -> %d tokens (%d%% reduction)", original_tokens, final_tokens, reduction)

    return PreparedNotes(
        text=combined,
        was_summarized=True,
        original_tokens=original_tokens,
        final_tokens=final_tokens,
    )
