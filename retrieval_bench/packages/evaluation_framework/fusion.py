"""
Reciprocal Rank Fusion of independently ranked result lists.
"""

import logging
from typing import Dict, List, Optional, Sequence

from .models import DocumentId, SearchResult

logger = logging.getLogger(__name__)

DEFAULT_RRF_K = 60


def calculate_rrf_scores(
    ranked_lists: Sequence[Sequence[SearchResult]],
    k: int = DEFAULT_RRF_K
) -> Dict[DocumentId, float]:
    """Calculate RRF scores for documents from ranked lists.

    Rank is 0-indexed, so the top hit of a list contributes 1 / (k + 1).
    Keys keep first-encounter order across the lists.
    """
    rrf_scores: Dict[DocumentId, float] = {}

    for results in ranked_lists:
        for rank, result in enumerate(results):
            rrf_scores[result.doc_id] = rrf_scores.get(result.doc_id, 0.0) + 1.0 / (k + rank + 1)

    return rrf_scores


def fuse_results(
    search_results_a: Sequence[SearchResult],
    search_results_b: Sequence[SearchResult],
    limit: Optional[int] = None,
    k: int = DEFAULT_RRF_K
) -> List[SearchResult]:
    """Fuse two search result lists using Reciprocal Rank Fusion (RRF).

    The returned scores are the fused RRF scores. Ties keep encounter order
    (list A first, then list B).
    """
    rrf_scores = calculate_rrf_scores([search_results_a, search_results_b], k)
    logger.debug(f"Calculated RRF scores for {len(rrf_scores)} unique documents")

    # sorted() is stable, so equal scores stay in encounter order
    sorted_doc_ids = sorted(rrf_scores.keys(), key=lambda doc_id: rrf_scores[doc_id],
                            reverse=True)
    if limit is not None:
        sorted_doc_ids = sorted_doc_ids[:limit]

    return [SearchResult(doc_id=doc_id, score=rrf_scores[doc_id]) for doc_id in sorted_doc_ids]
