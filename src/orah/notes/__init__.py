"""Topic-notes and lecture-notes preparation interfaces."""

from .config import NotesSettings
from .lecture import generate_lecture_notes
from .models import ChunkSummary, LectureNotes, PreparedNotes, SourceDocument, TextChunk
from .pipeline import NotesPreparationError, coerce_documents, prepare_notes
from .summarizer import ChunkSummarizer

__all__ = [
    "ChunkSummarizer",
    "ChunkSummary",
    "LectureNotes",
    "NotesPreparationError",
    "NotesSettings",
    "PreparedNotes",
    "SourceDocument",
    "TextChunk",
    "coerce_documents",
    "generate_lecture_notes",
    "prepare_notes",
]
