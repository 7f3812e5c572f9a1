"""
Evaluation Framework for Search Engine Benchmarks

Runs labeled datasets through interchangeable search engines and scores
vector, full-text, hybrid and hybrid+rerank retrieval on quality and latency.
"""

from .aggregator import aggregate_by_engine, aggregate_by_method, best_rerank_by_dataset, rank_engines
from .dataset import Dataset
from .engine import EngineState, EngineStateError, SearchEngine
from .evaluator import Evaluator, QueryScores
from .fusion import calculate_rrf_scores, fuse_results
from .models import (
    BenchmarkMetrics,
    BenchmarkResult,
    Document,
    DocumentId,
    Embedding,
    EngineFailure,
    EngineScore,
    Query,
    QueryText,
    SearchMethod,
    SearchResult,
)
from .runner import BenchmarkRunner

__all__ = [
    "DocumentId",
    "QueryText",
    "Embedding",
    "Document",
    "Query",
    "SearchMethod",
    "SearchResult",
    "BenchmarkMetrics",
    "BenchmarkResult",
    "EngineFailure",
    "EngineScore",
    "Dataset",
    "SearchEngine",
    "EngineState",
    "EngineStateError",
    "Evaluator",
    "QueryScores",
    "BenchmarkRunner",
    "calculate_rrf_scores",
    "fuse_results",
    "aggregate_by_engine",
    "aggregate_by_method",
    "best_rerank_by_dataset",
    "rank_engines",
]
