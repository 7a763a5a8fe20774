"""Data structures passed between chunking, summarization and combining."""

from __future__ import annotations

from dataclasses import dataclass, field


DEFAULT_DOCUMENT_NAME = "Document"


@dataclass(frozen=True, slots=True)
class SourceDocument:
    """Extracted text of one uploaded file, labeled for display."""

    name: str = DEFAULT_DOCUMENT_NAME
    text: str = ""


@dataclass(frozen=True, slots=True)
class TextChunk:
    """Sentence-aligned slice of a larger text.

    ``start_char``/``end_char`` locate the chunk's sentences in the source text.
    When a chunk starts with overlap from its predecessor they cover that overlap
    too, so consecutive spans may intersect.
    """

    index: int
    text: str
    start_char: int
    end_char: int
    estimated_tokens: int


@dataclass(frozen=True, slots=True)
class DocumentChunk:
    """A chunk tagged with its document and global position."""

    position: int
    document_name: str
    chunk: TextChunk
    part_count: int = 1

    @property
    def part(self) -> int | None:
        if self.part_count > 1:
            return self.chunk.index + 1
        return None


@dataclass(frozen=True, slots=True)
class ChunkSummary:
    chunk_index: int
    document_name: str
    summary_text: str
    part: int | None = None
    is_fallback: bool = False


@dataclass(frozen=True, slots=True)
class PreparedNotes:
    """Final pipeline output handed to plan and quiz generation."""

    text: str
    was_summarized: bool
    original_tokens: int
    final_tokens: int

    def to_dict(self) -> dict[str, str | bool | int]:
        return {
            "preparedNotes": self.text,
            "wasSummarized": self.was_summarized,
            "originalTokens": self.original_tokens,
            "finalTokens": self.final_tokens,
        }


@dataclass(slots=True)
class NoteSection:
    title: str
    content: list[str] = field(default_factory=list)


@dataclass(slots=True)
class Definition:
    term: str
    definition: str


@dataclass(slots=True)
class LectureNotes:
    """Structured study notes for a lecture or a part of one."""

    title: str = "Lecture Notes"
    summary: str = ""
    sections: list[NoteSection] = field(default_factory=list)
    definitions: list[Definition] = field(default_factory=list)
    key_takeaways: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        return {
            "title": self.title,
            "summary": self.summary,
            "sections": [{"title": section.title, "content": list(section.content)} for section in self.sections],
            "definitions": [{"term": item.term, "definition": item.definition} for item in self.definitions],
            "keyTakeaways": list(self.key_takeaways),
        }


@dataclass(slots=True)
class ChunkNotes(LectureNotes):
    chunk_index: int = 0
