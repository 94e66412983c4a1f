# WORKFLOW: Cosine similarity ranking over the precomputed semantic chunk bank.
# Used by: Code resolver (semantic fallback stage)
# Functions:
# 1. cosine_similarity() - Normalized dot product with a -inf guard for degenerate vectors
# 2. rank_chunks() - Score every chunk against a query embedding, best first
# 3. find_relevant_content() - Top-k chunk texts joined as contextual evidence
#
# Ranking flow: Query embedding -> Cosine vs. every chunk -> Sort descending -> Top-k -> Context text
# The context informs the generated explanation; it never yields an HS code by itself.

from typing import List, Optional, Sequence, Tuple
import logging

import numpy as np

from corpus.models import SemanticChunk

logger = logging.getLogger(__name__)

NO_MATCH = float("-inf")


def cosine_similarity(vec_a: Sequence[float], vec_b: Sequence[float]) -> float:
    """
    Cosine similarity of two vectors.

    Zero-magnitude, non-finite or dimension-mismatched inputs are not comparable
    and score ``-inf`` so they rank after every real match instead of poisoning
    the ordering with NaN.
    """
    a = np.asarray(vec_a, dtype=np.float64).ravel()
    b = np.asarray(vec_b, dtype=np.float64).ravel()

    if a.size == 0 or a.shape != b.shape:
        return NO_MATCH

    norm = np.linalg.norm(a) * np.linalg.norm(b)
    if norm == 0 or not np.isfinite(norm):
        return NO_MATCH

    similarity = float(np.dot(a, b) / norm)
    if not np.isfinite(similarity):
        return NO_MATCH
    return similarity


def rank_chunks(query_embedding: Sequence[float],
                chunks: Sequence[SemanticChunk]) -> List[Tuple[SemanticChunk, float]]:
    """Score every chunk against the query embedding, highest similarity first."""
    scored = [(chunk, cosine_similarity(query_embedding, chunk.embedding)) for chunk in chunks]
    # Stable sort: equal scores keep corpus order
    scored.sort(key=lambda pair: pair[1], reverse=True)
    return scored


def find_relevant_content(query_embedding: Sequence[float],
                          chunks: Sequence[SemanticChunk],
                          top_k: int = 5) -> Optional[str]:
    """
    Join the text of the top-k most similar chunks.

    Args:
        query_embedding: Embedding of the normalized description
        chunks: Semantic chunk bank of a jurisdiction
        top_k: Number of chunks to keep

    Returns:
        Chunk texts separated by blank lines, or None when nothing is comparable
    """
    ranked = [(chunk, score) for chunk, score in rank_chunks(query_embedding, chunks)[:top_k]
              if score != NO_MATCH]
    if not ranked:
        return None

    logger.debug(f"Semantic fallback scores: {[round(score, 3) for _, score in ranked]}")
    return "\n\n".join(chunk.content for chunk, _ in ranked)
