"""Approximate token accounting shared by chunking and summarization."""

from __future__ import annotations

import math


TOKENS_PER_CHAR = 0.25


def estimate_tokens(text: str | None) -> int:
    """Estimate model tokens for ``text`` assuming four characters per token."""

    if not text:
        return 0
    return math.ceil(len(text) * TOKENS_PER_CHAR)
