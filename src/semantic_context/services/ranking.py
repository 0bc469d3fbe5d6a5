"""Relevance ranking of candidate turns.

Two scoring paths exist. Candidates carrying a vector of the query vector's
length are scored by cosine similarity; everything else is scored by Jaccard
overlap of lowercased word tokens. Raw cosine and raw Jaccard values are not
on the same scale, so when both paths score candidates in one call each path
is divided by its own maximum before the results are merged.
"""

import re
from collections.abc import Sequence

import numpy as np

from semantic_context.core.logging import get_logger
from semantic_context.domain.models import RetrievalResult, ScoredTurn, Turn

logger = get_logger(__name__)

_TOKEN_RE = re.compile(r"\w+")


def tokenize(text: str) -> set[str]:
    """Lowercased word tokens of ``text``."""
    return set(_TOKEN_RE.findall(text.lower()))


def jaccard(a: set[str], b: set[str]) -> float:
    if not a or not b:
        return 0.0
    return len(a & b) / len(a | b)


def cosine_similarity(vector_a: Sequence[float], vector_b: Sequence[float]) -> float:
    """Cosine similarity clamped to [0, 1]; opposed vectors count as unrelated."""
    a = np.asarray(vector_a, dtype=float)
    b = np.asarray(vector_b, dtype=float)

    norm_a = np.linalg.norm(a)
    norm_b = np.linalg.norm(b)
    if norm_a == 0 or norm_b == 0:
        return 0.0

    return float(np.clip(np.dot(a, b) / (norm_a * norm_b), 0.0, 1.0))


def _normalize(scores: dict[str, float]) -> dict[str, float]:
    top = max(scores.values(), default=0.0)
    if top <= 0:
        return {key: 0.0 for key in scores}
    return {key: value / top for key, value in scores.items()}


class SimilarityRanker:
    """Orders candidate turns by relevance to a query."""

    def rank(
        self,
        query: str,
        candidates: Sequence[Turn],
        top_k: int,
        query_vector: Sequence[float] | None = None,
    ) -> RetrievalResult:
        """Score ``candidates`` against ``query`` and keep the best ``top_k``.

        Args:
            query: Raw query text, used by the lexical path
            candidates: Turns to score, in any order
            top_k: Maximum number of results
            query_vector: Embedding of the query, if one could be produced

        Returns:
            Scored turns sorted by score, then recency, then id
        """
        if not candidates or top_k <= 0:
            return []

        by_id = {turn.id: turn for turn in candidates}

        vector_scores: dict[str, float] = {}
        if query_vector:
            dims = len(query_vector)
            for turn in by_id.values():
                if turn.vector and len(turn.vector) == dims:
                    vector_scores[turn.id] = cosine_similarity(query_vector, turn.vector)

        query_tokens = tokenize(query)
        lexical_scores = {
            turn.id: jaccard(query_tokens, tokenize(turn.content))
            for turn in by_id.values()
            if turn.id not in vector_scores
        }

        if vector_scores and lexical_scores:
            scores = {**_normalize(vector_scores), **_normalize(lexical_scores)}
        else:
            scores = {**vector_scores, **lexical_scores}

        logger.debug(
            "Ranked candidates",
            candidates=len(by_id),
            vector_scored=len(vector_scores),
            lexical_scored=len(lexical_scores),
        )

        ordered = sorted(
            by_id.values(),
            key=lambda turn: (-scores[turn.id], -turn.created_at.timestamp(), turn.id),
        )
        return [ScoredTurn(turn=turn, score=scores[turn.id]) for turn in ordered[:top_k]]
