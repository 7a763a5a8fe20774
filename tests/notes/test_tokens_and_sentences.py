from __future__ import annotations

import pytest

from orah.notes.sentences import split_sentence_units, split_sentences
from orah.notes.tokens import TOKENS_PER_CHAR, estimate_tokens


def test_estimate_tokens_uses_four_chars_per_token() -> None:
    assert TOKENS_PER_CHAR == 0.25
    assert estimate_tokens("") == 0
    assert estimate_tokens("abcd") == 1
    assert estimate_tokens("abcde") == 2
    assert estimate_tokens("x" * 200) == 50


def test_estimate_tokens_is_deterministic() -> None:
    text = "Photosynthesis converts light into chemical energy. " * 10
    assert estimate_tokens(text) == estimate_tokens(text)


def test_split_sentences_keeps_terminal_punctuation() -> None:
    assert split_sentences("Hello. World.") == ["Hello.", "World."]
    assert split_sentences("What? Yes! Done") == ["What?", "Yes!", "Done"]


def test_split_sentences_trims_and_drops_empty_fragments() -> None:
    assert split_sentences("One.\n\n  Two.  ") == ["One.", "Two."]
    assert split_sentences("") == []
    assert split_sentences("   \n ") == []


def test_split_sentences_punctuation_heuristic_is_not_grammatical() -> None:
    # Decimals survive because no whitespace follows the dot; abbreviations do not.
    assert split_sentences("3.14 is pi. Dr. Smith agrees.") == ["3.14 is pi.", "Dr.", "Smith agrees."]


def test_sentence_units_report_source_offsets() -> None:
    text = "  Alpha. Beta"
    units = split_sentence_units(text)

    assert [(unit.text, unit.start, unit.end) for unit in units] == [("Alpha.", 2, 8), ("Beta", 9, 13)]
    assert all(text[unit.start : unit.end] == unit.text for unit in units)


def test_razdel_strategy_splits_sentences() -> None:
    text = "Первое предложение. Второе предложение."
    assert split_sentences(text, strategy="razdel") == ["Первое предложение.", "Второе предложение."]


def test_unknown_strategy_is_rejected() -> None:
    with pytest.raises(ValueError, match="strategy"):
        split_sentences("Hello.", strategy="nltk")
