"""Title tokenization and set similarity used by duplicate detection."""

from __future__ import annotations

import re
from typing import AbstractSet


# Anything that is not a word character, a Hangul syllable or whitespace
_NON_TOKEN = re.compile(r"[^\w가-힣\s]")


def tokenize(text: str | None) -> set[str]:
    """Lowercase ``text`` and split it into a set of words, punctuation stripped."""
    if not text:
        return set()
    cleaned = _NON_TOKEN.sub(" ", text.lower())
    return {word for word in cleaned.split() if word}


def jaccard_similarity(first: AbstractSet[str], second: AbstractSet[str]) -> float:
    """|A ∩ B| / |A ∪ B|, defined as 0.0 when both sets are empty."""
    union = first | second
    if not union:
        return 0.0
    return len(first & second) / len(union)


def title_similarity(first: str | None, second: str | None) -> float:
    return jaccard_similarity(tokenize(first), tokenize(second))
