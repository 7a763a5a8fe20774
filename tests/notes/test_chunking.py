from __future__ import annotations

import pytest

from orah.notes.chunking import OverlapBudget, chunk_documents, chunk_text, chunk_transcript, select_overlap
from orah.notes.models import SourceDocument
from orah.notes.sentences import split_sentences


def _sentence(i: int) -> str:
    # 40 chars, 10 estimated tokens, 2 words.
    return f"S{i:02d} " + "x" * 35 + "."


def _text(count: int) -> str:
    return " ".join(_sentence(i) for i in range(count))


def test_select_overlap_by_words_walks_backward() -> None:
    sentences = ["a b c.", "d e.", "f g h i."]

    assert select_overlap(sentences, 5) == ["d e.", "f g h i."]
    assert select_overlap(sentences, 4) == ["f g h i."]


def test_select_overlap_by_chars_and_short_input() -> None:
    assert select_overlap(["abc.", "defgh."], 6, unit="chars") == ["defgh."]
    assert select_overlap(["abc.", "defgh."], 1000, unit="chars") == ["abc.", "defgh."]
    assert select_overlap(["abc."], 0) == []
    assert select_overlap([], 10) == []


def test_select_overlap_rejects_unknown_unit() -> None:
    with pytest.raises(ValueError, match="overlap unit"):
        select_overlap(["a."], 1, unit="lines")


def test_overlap_budget_validation() -> None:
    with pytest.raises(ValueError):
        OverlapBudget(-1)
    with pytest.raises(ValueError):
        OverlapBudget(10, "tokens")


def test_text_within_budget_is_single_chunk() -> None:
    chunks = chunk_text("Short text.", 100)

    assert len(chunks) == 1
    assert chunks[0].index == 0
    assert chunks[0].text == "Short text."
    assert (chunks[0].start_char, chunks[0].end_char) == (0, 11)
    assert chunks[0].estimated_tokens == 3


def test_empty_text_has_no_chunks_and_budget_must_be_positive() -> None:
    assert chunk_text("", 100) == []
    with pytest.raises(ValueError, match="max_chunk_tokens"):
        chunk_text("Hello.", 0)


def test_greedy_packing_without_overlap() -> None:
    text = _text(20)
    chunks = chunk_text(text, 35)

    assert [chunk.index for chunk in chunks] == list(range(7))
    assert [len(split_sentences(chunk.text)) for chunk in chunks] == [3, 3, 3, 3, 3, 3, 2]
    assert " ".join(chunk.text for chunk in chunks) == text
    assert all(chunk.estimated_tokens <= 35 for chunk in chunks)


def test_chunks_cover_every_sentence_and_end_on_boundaries() -> None:
    text = _text(20)
    chunks = chunk_text(text, 35, OverlapBudget(40, "chars"))

    assert [chunk.index for chunk in chunks] == list(range(len(chunks)))
    for i in range(20):
        assert any(_sentence(i) in chunk.text for chunk in chunks)
    assert all(chunk.text.endswith(".") for chunk in chunks)


def test_overlap_repeats_tail_of_previous_chunk() -> None:
    chunks = chunk_text(_text(20), 35, OverlapBudget(40, "chars"))

    assert len(chunks) > 2
    for previous, current in zip(chunks, chunks[1:]):
        previous_sentences = split_sentences(previous.text)
        current_sentences = split_sentences(current.text)
        assert current_sentences[0] == previous_sentences[-1]


def test_overlap_never_covers_whole_previous_chunk() -> None:
    chunks = chunk_text(_text(30), 35, OverlapBudget(10_000, "chars"))

    assert len(chunks) > 2
    for previous, current in zip(chunks, chunks[1:]):
        previous_sentences = split_sentences(previous.text)
        current_sentences = split_sentences(current.text)
        assert previous_sentences[0] not in current_sentences
        assert current_sentences[-1] not in previous_sentences


def test_chunk_offsets_point_into_source() -> None:
    text = _text(12)
    chunks = chunk_text(text, 35, OverlapBudget(40, "chars"))

    assert chunks[0].start_char == 0
    for chunk in chunks:
        assert text[chunk.start_char : chunk.end_char] == chunk.text
    assert chunks[-1].end_char == len(text)


def test_oversize_sentence_is_kept_whole() -> None:
    long_sentence = "A" * 200 + "."
    chunks = chunk_text(f"{long_sentence} Tail.", 10, OverlapBudget(50, "words"))

    assert [chunk.text for chunk in chunks] == [long_sentence, "Tail."]
    assert chunks[0].estimated_tokens > 10


def test_chunk_documents_numbers_chunks_across_documents() -> None:
    documents = [
        SourceDocument(name="Lecture 1.pdf", text=_text(7)),
        SourceDocument(name="Empty.pdf", text=""),
        SourceDocument(name="Syllabus.pdf", text="Exam is on Friday."),
    ]

    tagged = chunk_documents(documents, max_chunk_tokens=35)

    assert [item.position for item in tagged] == [0, 1, 2, 3]
    assert [item.document_name for item in tagged] == ["Lecture 1.pdf"] * 3 + ["Syllabus.pdf"]
    assert [item.part for item in tagged] == [1, 2, 3, None]
    assert tagged[0].part_count == 3
    assert tagged[3].chunk.index == 0


def test_chunk_transcript_uses_word_overlap() -> None:
    assert len(chunk_transcript("Short lecture. Very short.")) == 1

    chunks = chunk_transcript(_text(12), max_chunk_tokens=35, overlap_words=2)

    assert len(chunks) > 1
    for previous, current in zip(chunks, chunks[1:]):
        assert current.text.startswith(split_sentences(previous.text)[-1])
