"""Join chunk outputs back into one ordered, source-labeled text."""

from __future__ import annotations

from typing import Iterable

from orah.notes.models import ChunkSummary, SourceDocument


SECTION_DELIMITER = "\n\n---\n\n"


def source_label(document_name: str, part: int | None = None) -> str:
    if part is None:
        return f"[From {document_name}]"
    return f"[From {document_name} - Part {part}]"


def combine_documents(documents: Iterable[SourceDocument]) -> str:
    """Label each document verbatim, used when no summarization is needed."""

    return SECTION_DELIMITER.join(f"{source_label(document.name)}\n{document.text}" for document in documents)


def combine_summaries(summaries: Iterable[ChunkSummary]) -> str:
    """Join summaries in chunk-index order whatever order they arrived in."""

    ordered = sorted(summaries, key=lambda summary: summary.chunk_index)
    return SECTION_DELIMITER.join(
        f"{source_label(summary.document_name, summary.part)}\n{summary.summary_text}" for summary in ordered
    )
