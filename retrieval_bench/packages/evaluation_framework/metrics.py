"""
Information retrieval metrics over a ranked list of document IDs.

All relevance metrics use binary relevance and score a single query.
"""

import math
from typing import AbstractSet, List, Sequence

from .models import DocumentId


def precision_at_k(retrieved: Sequence[DocumentId], relevant: AbstractSet[DocumentId],
                   k: int) -> float:
    """Calculate Precision@K. Short result lists are still divided by k."""
    hits = sum(1 for doc_id in retrieved[:k] if doc_id in relevant)
    return hits / k


def recall_at_k(retrieved: Sequence[DocumentId], relevant: AbstractSet[DocumentId],
                k: int) -> float:
    """Calculate Recall@K. Returns 0 for an empty relevant set."""
    if len(relevant) == 0:
        return 0.0

    hits = sum(1 for doc_id in retrieved[:k] if doc_id in relevant)
    return hits / len(relevant)


def reciprocal_rank(retrieved: Sequence[DocumentId], relevant: AbstractSet[DocumentId]) -> float:
    """Reciprocal rank of the first relevant hit in the full (untruncated) list."""
    for i, doc_id in enumerate(retrieved):
        if doc_id in relevant:
            return 1.0 / (i + 1)
    return 0.0


def ndcg_at_k(retrieved: Sequence[DocumentId], relevant: AbstractSet[DocumentId],
              k: int) -> float:
    """Calculate NDCG@K using binary relevance."""
    dcg = 0.0
    for i, doc_id in enumerate(retrieved[:k]):
        if doc_id in relevant:
            dcg += 1.0 / math.log2(i + 2)

    # Ideal ranking puts every relevant doc (up to k) at the top
    idcg = 0.0
    for i in range(min(len(relevant), k)):
        idcg += 1.0 / math.log2(i + 2)

    if idcg == 0:
        return 0.0

    return dcg / idcg


def p95(values: Sequence[float]) -> float:
    """95th percentile by nearest rank (no interpolation). 0 for an empty sample."""
    if len(values) == 0:
        return 0.0

    ordered: List[float] = sorted(values)
    return ordered[math.floor(len(ordered) * 0.95)]


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean. NaN for an empty sample."""
    if len(values) == 0:
        return float("nan")
    return sum(values) / len(values)
