"""
Greedy near-duplicate suppression on titles.

Items are processed in input order and compared against already accepted
items only, so the first-seen article of a story wins. Cost is O(n²) in the
batch size; batches are capped by the fetch limit (1000 items).
"""

from __future__ import annotations

from typing import Any, Sequence

from signaldesk.news.schemas import DedupOutcome
from signaldesk.news.text import jaccard_similarity, tokenize


DEFAULT_THRESHOLD = 0.8


def remove_duplicates(
    items: Sequence[Any],
    threshold: float = DEFAULT_THRESHOLD,
) -> DedupOutcome:
    """
    Split ``items`` into unique and duplicate titles.

    An item is a duplicate when its best Jaccard similarity against any
    accepted item is >= ``threshold``. ``avg_similarity`` is the mean of each
    item's best-match similarity (0 for the first item), rounded to 2 places.
    """
    unique: list[Any] = []
    unique_tokens: list[set[str]] = []
    duplicates: list[Any] = []
    best_matches: list[float] = []

    for item in items:
        tokens = tokenize(getattr(item, "title", None))
        best = max(
            (jaccard_similarity(tokens, accepted) for accepted in unique_tokens),
            default=0.0,
        )
        best_matches.append(best)

        if best >= threshold:
            duplicates.append(item)
        else:
            unique.append(item)
            unique_tokens.append(tokens)

    avg_similarity = sum(best_matches) / len(best_matches) if best_matches else 0.0

    return DedupOutcome(
        unique=unique,
        duplicates=duplicates,
        stats={
            "total": len(items),
            "unique": len(unique),
            "duplicates": len(duplicates),
            "avg_similarity": round(avg_similarity, 2),
        },
    )
