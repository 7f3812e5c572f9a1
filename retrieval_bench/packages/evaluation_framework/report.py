"""
Human-readable benchmark report, written through the logger.
"""

import json
import logging
from typing import List, Sequence

from . import aggregator
from .models import BenchmarkResult, EngineFailure, SearchMethod

logger = logging.getLogger(__name__)

MEDALS = ["1st", "2nd", "3rd"]


def display_results(results: Sequence[BenchmarkResult]) -> None:
    """Log the detailed per-dataset table."""
    datasets = list(dict.fromkeys(r.dataset for r in results))

    logger.info("=" * 110)
    logger.info("DETAILED RESULTS")
    logger.info("=" * 110)

    for dataset in datasets:
        logger.info(f"--- {dataset} " + "-" * max(0, 105 - len(dataset)))
        logger.info(
            f"{'Engine':<28} {'Method':<15} {'P@5':>6} {'R@5':>6} {'MRR':>6} {'NDCG@5':>7} "
            f"{'Avg ms':>8} {'P95 ms':>8} {'Index ms':>9}")
        logger.info("-" * 110)

        for r in results:
            if r.dataset != dataset:
                continue
            m = r.metrics
            logger.info(
                f"{r.engine:<28} {r.method.value:<15} {m.precision_at_5:>6.3f} "
                f"{m.recall_at_5:>6.3f} {m.mrr:>6.3f} {m.ndcg_at_5:>7.3f} "
                f"{m.avg_latency_ms:>8.1f} {m.p95_latency_ms:>8.1f} {m.indexing_time_ms:>9.0f}")


def display_method_breakdown(results: Sequence[BenchmarkResult]) -> None:
    """Log per-(engine, method) scores, which keep reranker quality out of engine quality."""
    by_method = aggregator.aggregate_by_method(results)

    logger.info("=" * 110)
    logger.info("PER-METHOD SCORES (averaged across datasets)")
    logger.info("=" * 110)
    logger.info(f"{'Engine':<28} {'Method':<15} {'Quality':>8} {'Perf':>8} {'Combined':>9}")
    logger.info("-" * 110)

    for (engine, method), score in by_method.items():
        logger.info(
            f"{engine:<28} {method.value:<15} {score.quality_score * 100:>7.1f}% "
            f"{score.perf_score * 100:>7.1f}% {score.combined_score * 100:>8.1f}%")


def display_final_verdict(results: Sequence[BenchmarkResult]) -> None:
    """Log per-engine aggregates, best hybrid+rerank per dataset and the final ranking."""
    scores = aggregator.aggregate_by_engine(results)

    logger.info("=" * 110)
    logger.info("AGGREGATE SCORES")
    logger.info("=" * 110)

    for s in scores:
        logger.info(f"{s.engine}")
        logger.info(
            f"   Quality:     P@5={s.precision_at_5:.3f}  R@5={s.recall_at_5:.3f}  "
            f"MRR={s.mrr:.3f}  NDCG@5={s.ndcg_at_5:.3f}")
        logger.info(
            f"   Performance: Avg Latency={s.avg_latency_ms:.1f}ms  "
            f"Avg Indexing={s.avg_indexing_time_ms:.0f}ms")
        logger.info(f"   Quality Score:     {s.quality_score * 100:.1f}%")
        logger.info(f"   Performance Score: {s.perf_score * 100:.1f}%")
        logger.info(f"   Combined Score:    {s.combined_score * 100:.1f}% (70% quality + 30% perf)")

    logger.info(f"BEST {SearchMethod.HYBRID_RERANK.value} per dataset:")
    for dataset, best in aggregator.best_rerank_by_dataset(results).items():
        m = best.metrics
        logger.info(
            f"   {dataset}: {best.engine} (NDCG@5={m.ndcg_at_5:.3f}, MRR={m.mrr:.3f}, "
            f"{m.avg_latency_ms:.0f}ms)")

    logger.info("FINAL RANKING:")
    for i, s in enumerate(aggregator.rank_engines(scores)):
        place = MEDALS[i] if i < len(MEDALS) else f"{i + 1}th"
        logger.info(f"   {place} {s.engine}: {s.combined_score * 100:.1f}%")


def display_failures(failures: Sequence[EngineFailure]) -> None:
    if not failures:
        return

    logger.warning(f"{len(failures)} engine run(s) failed and are excluded from the scores:")
    for failure in failures:
        logger.warning(f"   {failure.engine} on '{failure.dataset}': {failure.error}")


def to_json(results: Sequence[BenchmarkResult], failures: Sequence[EngineFailure] = ()) -> str:
    """Structured dump of result rows, engine ranking and failures."""
    ranking: List[dict] = [
        s.to_dict() for s in aggregator.rank_engines(aggregator.aggregate_by_engine(results))
    ]
    payload = {
        "results": [r.to_dict() for r in results],
        "ranking": ranking,
        "failures": [
            {"engine": f.engine, "dataset": f.dataset, "error": f.error} for f in failures
        ],
    }
    return json.dumps(payload, indent=2)
