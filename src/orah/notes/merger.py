"""Parse per-chunk lecture notes and merge them into one coherent set."""

from __future__ import annotations

import json
import re
from typing import Any, Sequence

from orah.llm.openai_client import MalformedCompletion
from orah.notes.models import ChunkNotes, Definition, LectureNotes, NoteSection


DEFAULT_NOTES_TITLE = "Lecture Notes"
TITLE_SIMILARITY = 0.7
TEXT_SIMILARITY = 0.8

_PART_SUFFIX = re.compile(r"\s*\(Part \d+\)$")
_NON_WORD = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")


def _strip_code_fences(text: str) -> str:
    stripped = text.strip()
    if stripped.startswith("```"):
        lines = stripped.split("\n")
        stripped = "\n".join(line for line in lines if not line.startswith("```"))
    return stripped.strip()


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item).strip() for item in value if isinstance(item, (str, int, float)) and str(item).strip()]


def parse_chunk_notes(raw: str, chunk_index: int) -> ChunkNotes | MalformedCompletion:
    """Parse a model's JSON notes object; anything but an object is malformed."""

    try:
        payload = json.loads(_strip_code_fences(raw))
    except json.JSONDecodeError as exc:
        return MalformedCompletion(reason=f"notes are not valid JSON: {exc.msg}")

    if not isinstance(payload, dict):
        return MalformedCompletion(reason=f"notes JSON is a {type(payload).__name__}, expected an object")

    for key in ("sections", "definitions", "keyTakeaways"):
        if key in payload and not isinstance(payload[key], list):
            return MalformedCompletion(reason=f"notes field '{key}' must be a list")

    sections = [
        NoteSection(title=str(item.get("title") or "").strip(), content=_string_list(item.get("content")))
        for item in payload.get("sections", [])
        if isinstance(item, dict)
    ]
    definitions = [
        Definition(term=str(item["term"]).strip(), definition=str(item.get("definition") or "").strip())
        for item in payload.get("definitions", [])
        if isinstance(item, dict) and str(item.get("term") or "").strip()
    ]

    return ChunkNotes(
        title=str(payload.get("title") or "").strip(),
        summary=str(payload.get("summary") or "").strip(),
        sections=sections,
        definitions=definitions,
        key_takeaways=_string_list(payload.get("keyTakeaways")),
        chunk_index=chunk_index,
    )


def normalize_title(title: str) -> str:
    return _NON_WORD.sub("", title.lower().strip())


def normalize_text(text: str) -> str:
    return _WHITESPACE.sub(" ", text.lower().strip())


def _word_overlap(left: str, right: str) -> float:
    left_words = set(left.split())
    right_words = set(right.split())
    union = left_words | right_words
    if not union:
        return 1.0
    return len(left_words & right_words) / len(union)


def titles_similar(left: str, right: str) -> bool:
    norm_left = normalize_title(left)
    norm_right = normalize_title(right)

    if norm_left == norm_right:
        return True
    if not norm_left or not norm_right:
        return False
    # "Introduction" and "Introduction to graphs" describe the same section.
    if norm_left in norm_right or norm_right in norm_left:
        return True
    return _word_overlap(norm_left, norm_right) > TITLE_SIMILARITY


def texts_similar(left: str, right: str) -> bool:
    norm_left = normalize_text(left)
    norm_right = normalize_text(right)
    if norm_left == norm_right:
        return True
    return _word_overlap(norm_left, norm_right) > TEXT_SIMILARITY


def _dedupe(items: list[str]) -> list[str]:
    seen: set[str] = set()
    unique: list[str] = []
    for item in items:
        key = normalize_text(item)
        if key in seen:
            continue
        seen.add(key)
        unique.append(item)
    return unique


def _merge_sections(ordered: Sequence[ChunkNotes]) -> list[NoteSection]:
    merged: list[NoteSection] = []
    for notes in ordered:
        for section in notes.sections:
            target = next((existing for existing in merged if titles_similar(existing.title, section.title)), None)
            if target is None:
                merged.append(NoteSection(title=section.title, content=list(section.content)))
            else:
                target.content.extend(section.content)

    for section in merged:
        section.content = _dedupe(section.content)
    return merged


def _merge_definitions(ordered: Sequence[ChunkNotes]) -> list[Definition]:
    by_term: dict[str, Definition] = {}
    for notes in ordered:
        for item in notes.definitions:
            key = item.term.lower().strip()
            existing = by_term.get(key)
            if existing is None:
                by_term[key] = Definition(term=item.term, definition=item.definition)
            elif len(item.definition) > len(existing.definition):
                existing.definition = item.definition
    return list(by_term.values())


def _merge_takeaways(ordered: Sequence[ChunkNotes]) -> list[str]:
    merged: list[str] = []
    # Later chunks usually hold the lecture's conclusions, so they win ties.
    for notes in reversed(ordered):
        for takeaway in notes.key_takeaways:
            if any(texts_similar(takeaway, existing) for existing in merged):
                continue
            merged.append(takeaway)
    return merged


def _base_title(title: str) -> str:
    return _PART_SUFFIX.sub("", title.strip())


def merge_notes(chunk_notes: Sequence[ChunkNotes]) -> LectureNotes:
    """Merge notes generated for consecutive transcript chunks."""

    if not chunk_notes:
        raise ValueError("No notes to merge")

    ordered = sorted(chunk_notes, key=lambda notes: notes.chunk_index)
    title = next((_base_title(notes.title) for notes in ordered if _base_title(notes.title)), DEFAULT_NOTES_TITLE)

    if len(ordered) == 1:
        only = ordered[0]
        return LectureNotes(
            title=title,
            summary=only.summary,
            sections=[NoteSection(title=section.title, content=list(section.content)) for section in only.sections],
            definitions=[Definition(term=item.term, definition=item.definition) for item in only.definitions],
            key_takeaways=list(only.key_takeaways),
        )

    summaries = [notes.summary for notes in ordered if notes.summary]
    if not summaries:
        summary = ""
    elif len(summaries) == 1:
        summary = summaries[0]
    else:
        summary = f"{summaries[0]} {summaries[-1]}"

    return LectureNotes(
        title=title,
        summary=summary,
        sections=_merge_sections(ordered),
        definitions=_merge_definitions(ordered),
        key_takeaways=_merge_takeaways(ordered),
    )
