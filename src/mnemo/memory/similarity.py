"""Similarity scoring: vector cosine, keyword overlap fallback, top-K ranking."""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

import numpy as np

from mnemo.core.errors import DimensionMismatchError

# Tokens this short carry no meaning for overlap scoring ("a", "is", "to")
MIN_TOKEN_LENGTH = 3


@dataclass
class SimilarityMatch:
    id: str
    score: float


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity of two equal-length vectors, 0.0 if either is zero."""
    if len(a) != len(b):
        raise DimensionMismatchError(len(a), len(b))

    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    magnitude = float(np.linalg.norm(va) * np.linalg.norm(vb))
    if magnitude == 0:
        return 0.0
    return float(np.dot(va, vb) / magnitude)


def find_similar(
    query: Sequence[float],
    candidates: Iterable[tuple[str, Sequence[float]]],
    limit: int = 10,
    min_score: float = 0.5,
) -> list[SimilarityMatch]:
    """
    Rank (id, vector) candidates by cosine similarity to the query.

    Args:
        query: Query vector
        candidates: Pairs of candidate id and vector
        limit: Maximum number of matches
        min_score: Matches scoring below this are dropped

    Returns:
        Matches sorted by descending score
    """
    scored = [
        SimilarityMatch(id=candidate_id, score=cosine_similarity(query, vector))
        for candidate_id, vector in candidates
    ]
    matches = [m for m in scored if m.score >= min_score]
    matches.sort(key=lambda m: m.score, reverse=True)
    return matches[:limit]


def _tokens(text: str) -> set[str]:
    return {word for word in text.lower().split() if len(word) >= MIN_TOKEN_LENGTH}


def keyword_similarity(query: str, content: str) -> float:
    """Fraction of distinct query words (3+ chars) present in content."""
    query_words = _tokens(query)
    if not query_words:
        return 0.0

    content_words = _tokens(content)
    matches = sum(1 for word in query_words if word in content_words)
    return matches / len(query_words)
