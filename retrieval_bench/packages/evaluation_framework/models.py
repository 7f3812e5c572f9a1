"""
Data models for the evaluation framework.
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, List, NewType

# Type aliases to enforce type safety
DocumentId = NewType('DocumentId', str)
QueryText = NewType('QueryText', str)
Embedding = List[float]


class SearchMethod(str, Enum):
    """Retrieval methods, in the order they are benchmarked."""
    VECTOR = "vector"
    FTS = "fts"
    HYBRID = "hybrid"
    HYBRID_RERANK = "hybrid+rerank"


@dataclass(frozen=True)
class Document:
    """Single corpus document."""
    id: DocumentId
    text: str
    metadata: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Query:
    """Query with its ground truth relevant document IDs."""
    id: str
    text: QueryText
    relevant_doc_ids: FrozenSet[DocumentId]


@dataclass(frozen=True)
class SearchResult:
    """One ranked hit. Scores are only comparable within a single result list."""
    doc_id: DocumentId
    score: float


@dataclass(frozen=True)
class BenchmarkMetrics:
    """Averaged metrics for one (engine, dataset, method) combination."""
    precision_at_5: float
    recall_at_5: float
    mrr: float
    ndcg_at_5: float
    avg_latency_ms: float
    p95_latency_ms: float
    indexing_time_ms: float


@dataclass(frozen=True)
class BenchmarkResult:
    """Result row produced by the runner."""
    engine: str
    dataset: str
    method: SearchMethod
    metrics: BenchmarkMetrics

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["method"] = self.method.value
        return data


@dataclass(frozen=True)
class EngineFailure:
    """Engine benchmark that raised and was skipped."""
    engine: str
    dataset: str
    error: str


@dataclass
class EngineScore:
    """Per-engine aggregate across all datasets and methods."""
    engine: str
    precision_at_5: float
    recall_at_5: float
    mrr: float
    ndcg_at_5: float
    avg_latency_ms: float
    avg_indexing_time_ms: float
    quality_score: float
    perf_score: float
    combined_score: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
