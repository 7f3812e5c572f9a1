"""
Roll benchmark rows up into per-engine scores and rankings.
"""

import logging
from typing import Dict, List, Sequence, Tuple

from .metrics import mean
from .models import BenchmarkResult, EngineScore, SearchMethod

logger = logging.getLogger(__name__)

# Quality weights: MRR 30%, NDCG 30%, Recall 20%, Precision 20%
MRR_WEIGHT = 0.3
NDCG_WEIGHT = 0.3
RECALL_WEIGHT = 0.2
PRECISION_WEIGHT = 0.2

QUALITY_WEIGHT = 0.7
PERF_WEIGHT = 0.3

# Latency at which perf_score drops to 0.5
LATENCY_SCALE_MS = 100.0


def quality_score(mrr: float, ndcg: float, recall: float, precision: float) -> float:
    return (MRR_WEIGHT * mrr + NDCG_WEIGHT * ndcg
            + RECALL_WEIGHT * recall + PRECISION_WEIGHT * precision)


def perf_score(avg_latency_ms: float) -> float:
    """In (0, 1], decreasing with latency."""
    return 1.0 / (1.0 + avg_latency_ms / LATENCY_SCALE_MS)


def score_rows(engine: str, rows: Sequence[BenchmarkResult]) -> EngineScore:
    """Average every metric across rows and derive the weighted scores."""
    precision = mean([r.metrics.precision_at_5 for r in rows])
    recall = mean([r.metrics.recall_at_5 for r in rows])
    mrr = mean([r.metrics.mrr for r in rows])
    ndcg = mean([r.metrics.ndcg_at_5 for r in rows])
    latency = mean([r.metrics.avg_latency_ms for r in rows])
    indexing = mean([r.metrics.indexing_time_ms for r in rows])

    quality = quality_score(mrr, ndcg, recall, precision)
    perf = perf_score(latency)

    return EngineScore(
        engine=engine,
        precision_at_5=precision,
        recall_at_5=recall,
        mrr=mrr,
        ndcg_at_5=ndcg,
        avg_latency_ms=latency,
        avg_indexing_time_ms=indexing,
        quality_score=quality,
        perf_score=perf,
        combined_score=QUALITY_WEIGHT * quality + PERF_WEIGHT * perf,
    )


def aggregate_by_engine(results: Sequence[BenchmarkResult]) -> List[EngineScore]:
    """Score each engine over all of its rows, in first-seen engine order.

    All four methods go into the same average, so hybrid+rerank rows (which
    reflect the external reranker) are mixed with pure retrieval rows.
    """
    rows_by_engine: Dict[str, List[BenchmarkResult]] = {}
    for result in results:
        rows_by_engine.setdefault(result.engine, []).append(result)

    return [score_rows(engine, rows) for engine, rows in rows_by_engine.items()]


def aggregate_by_method(
    results: Sequence[BenchmarkResult]
) -> Dict[Tuple[str, SearchMethod], EngineScore]:
    """Score each (engine, method) pair separately, across datasets."""
    rows_by_key: Dict[Tuple[str, SearchMethod], List[BenchmarkResult]] = {}
    for result in results:
        rows_by_key.setdefault((result.engine, result.method), []).append(result)

    return {key: score_rows(key[0], rows) for key, rows in rows_by_key.items()}


def best_rerank_by_dataset(results: Sequence[BenchmarkResult]) -> Dict[str, BenchmarkResult]:
    """Best hybrid+rerank row per dataset by NDCG@5. Ties go to the first row seen."""
    best: Dict[str, BenchmarkResult] = {}
    datasets = list(dict.fromkeys(r.dataset for r in results))

    for dataset in datasets:
        rows = [r for r in results
                if r.dataset == dataset and r.method == SearchMethod.HYBRID_RERANK]
        if len(rows) == 0:
            continue
        rows.sort(key=lambda r: r.metrics.ndcg_at_5, reverse=True)
        best[dataset] = rows[0]

    return best


def rank_engines(scores: Sequence[EngineScore]) -> List[EngineScore]:
    """Engines by combined score, best first."""
    return sorted(scores, key=lambda s: s.combined_score, reverse=True)
