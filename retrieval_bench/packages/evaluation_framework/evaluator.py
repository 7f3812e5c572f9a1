"""
Evaluator for computing retrieval metrics.
"""

import logging
from dataclasses import dataclass
from typing import List, Sequence

from . import metrics
from .models import BenchmarkMetrics, DocumentId, Query

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QueryScores:
    """Relevance metrics for a single query."""
    query_id: str
    precision: float
    recall: float
    mrr: float
    ndcg: float


class Evaluator:
    """Compares retrieval results against ground truth."""

    def __init__(self, k: int = 5):
        """Initialize evaluator with the metric cutoff."""
        if k < 1:
            raise ValueError(f"k must be a positive integer, got {k}")
        self.k = k

    def score_query(self, query: Query, retrieved: Sequence[DocumentId]) -> QueryScores:
        """Score one ranked list against the query's relevant docs."""
        relevant = query.relevant_doc_ids
        return QueryScores(
            query_id=query.id,
            precision=metrics.precision_at_k(retrieved, relevant, self.k),
            recall=metrics.recall_at_k(retrieved, relevant, self.k),
            mrr=metrics.reciprocal_rank(retrieved, relevant),
            ndcg=metrics.ndcg_at_k(retrieved, relevant, self.k),
        )

    def summarize(
        self,
        scores: List[QueryScores],
        latencies_ms: List[float],
        indexing_time_ms: float
    ) -> BenchmarkMetrics:
        """Average per-query scores into the metrics of one benchmark row."""
        return BenchmarkMetrics(
            precision_at_5=metrics.mean([s.precision for s in scores]),
            recall_at_5=metrics.mean([s.recall for s in scores]),
            mrr=metrics.mean([s.mrr for s in scores]),
            ndcg_at_5=metrics.mean([s.ndcg for s in scores]),
            avg_latency_ms=metrics.mean(latencies_ms),
            p95_latency_ms=metrics.p95(latencies_ms),
            indexing_time_ms=indexing_time_ms,
        )

    def log_failures(self, scores: List[QueryScores], n: int = 3) -> None:
        """Log worst N queries by NDCG at debug level."""
        if not logger.isEnabledFor(logging.DEBUG):
            return

        worst = sorted(scores, key=lambda s: s.ndcg)[:n]
        for i, s in enumerate(worst, 1):
            logger.debug(
                f"  worst #{i}: {s.query_id} NDCG@{self.k}={s.ndcg:.3f} MRR={s.mrr:.3f}")
