"""
Benchmark runner: drives every dataset through every engine and method.
"""

import logging
import time
from typing import Callable, List, Mapping, Sequence, Tuple

from .dataset import Dataset
from .engine import SearchEngine
from .evaluator import Evaluator, QueryScores
from .models import (
    BenchmarkResult,
    Embedding,
    EngineFailure,
    Query,
    SearchMethod,
    SearchResult,
)

logger = logging.getLogger(__name__)

EngineFactory = Callable[[], SearchEngine]
DatasetProvider = Callable[[], Dataset]


class BenchmarkRunner:
    """Runs the four retrieval methods for each (dataset, engine) pair sequentially."""

    def __init__(
        self,
        embedding_service,
        engine_factories: Mapping[str, EngineFactory],
        rerank_service=None,
        top_k: int = 5,
        rerank_candidate_multiplier: int = 3,
        clock: Callable[[], float] = time.perf_counter
    ):
        """Initialize runner.

        Args:
            embedding_service: Anything with generate_embeddings(texts)
            engine_factories: Engine key -> zero-argument factory; a fresh engine is built per dataset
            rerank_service: Anything with rerank(query, documents, top_k); None skips hybrid+rerank
            top_k: Results requested per query and metric cutoff
            rerank_candidate_multiplier: Hybrid candidates fetched per result before reranking
            clock: Monotonic clock in seconds
        """
        self.embedding_service = embedding_service
        self.rerank_service = rerank_service
        self.engine_factories = engine_factories
        self.top_k = top_k
        self.rerank_candidate_multiplier = rerank_candidate_multiplier
        self.evaluator = Evaluator(k=top_k)
        self._clock = clock
        self.failures: List[EngineFailure] = []

        self.methods: List[SearchMethod] = list(SearchMethod)
        if rerank_service is None:
            logger.warning("No rerank service configured, skipping hybrid+rerank")
            self.methods.remove(SearchMethod.HYBRID_RERANK)

    def run(self, dataset_providers: Sequence[DatasetProvider]) -> List[BenchmarkResult]:
        """Benchmark all engines on all datasets. Failed engines are skipped, not fatal."""
        results: List[BenchmarkResult] = []

        for provider in dataset_providers:
            dataset = provider()
            logger.info("=" * 80)
            logger.info(
                f"Dataset: {dataset.name} ({len(dataset.documents)} docs, {len(dataset.queries)} queries)")
            logger.info("=" * 80)

            try:
                doc_embeddings, query_embeddings = self.embed_dataset(dataset)
            except Exception as e:
                logger.error(f"Embedding failed for dataset '{dataset.name}', skipping it: {e}")
                self.failures.append(EngineFailure(engine="embedding", dataset=dataset.name,
                                                   error=str(e)))
                continue

            for engine_key, factory in self.engine_factories.items():
                engine_name = engine_key
                try:
                    engine = factory()
                    engine_name = engine.name
                    results.extend(
                        self.benchmark_engine(engine, dataset, doc_embeddings, query_embeddings))
                except Exception as e:
                    logger.error(f"{engine_name} failed on '{dataset.name}': {e}")
                    self.failures.append(EngineFailure(engine=engine_name, dataset=dataset.name,
                                                       error=str(e)))

        logger.info(f"Benchmark complete: {len(results)} results, {len(self.failures)} failures")
        return results

    def embed_dataset(self, dataset: Dataset) -> Tuple[List[Embedding], List[Embedding]]:
        """Embed documents and queries once; the vectors are shared by every engine."""
        logger.info("Generating document embeddings")
        doc_embeddings = self.embedding_service.generate_embeddings(
            [d.text for d in dataset.documents])

        logger.info("Generating query embeddings")
        query_embeddings = self.embedding_service.generate_embeddings(
            [q.text for q in dataset.queries])

        return doc_embeddings, query_embeddings

    def benchmark_engine(
        self,
        engine: SearchEngine,
        dataset: Dataset,
        doc_embeddings: Sequence[Embedding],
        query_embeddings: Sequence[Embedding]
    ) -> List[BenchmarkResult]:
        """Index, run every method, and always clean the engine up."""
        try:
            logger.info(f"Indexing {len(dataset.documents)} docs into {engine.name}")
            start = self._clock()
            engine.init(dataset.documents, doc_embeddings)
            indexing_time_ms = (self._clock() - start) * 1000
            logger.info(f"Indexed in {indexing_time_ms:.0f}ms")

            results: List[BenchmarkResult] = []
            for method in self.methods:
                logger.info(f"Running {method.value} search on {engine.name}")
                results.append(
                    self._run_method(engine, dataset, method, query_embeddings, indexing_time_ms))
            return results
        finally:
            engine.cleanup()

    def _run_method(
        self,
        engine: SearchEngine,
        dataset: Dataset,
        method: SearchMethod,
        query_embeddings: Sequence[Embedding],
        indexing_time_ms: float
    ) -> BenchmarkResult:
        latencies_ms: List[float] = []
        scores: List[QueryScores] = []

        for query, query_embedding in zip(dataset.queries, query_embeddings):
            start = self._clock()
            results = self._search(engine, method, query, query_embedding)
            # Only the engine is timed; reranking measures a different service
            latencies_ms.append((self._clock() - start) * 1000)

            if method == SearchMethod.HYBRID_RERANK:
                results = self._rerank(dataset, query, results)

            retrieved = [r.doc_id for r in results]
            scores.append(self.evaluator.score_query(query, retrieved))

        self.evaluator.log_failures(scores)

        return BenchmarkResult(
            engine=engine.name,
            dataset=dataset.name,
            method=method,
            metrics=self.evaluator.summarize(scores, latencies_ms, indexing_time_ms),
        )

    def _search(
        self,
        engine: SearchEngine,
        method: SearchMethod,
        query: Query,
        query_embedding: Embedding
    ) -> List[SearchResult]:
        if method == SearchMethod.VECTOR:
            return engine.search_vector(query_embedding, self.top_k)
        if method == SearchMethod.FTS:
            return engine.search_fts(query.text, self.top_k)
        if method == SearchMethod.HYBRID:
            return engine.search_hybrid(query.text, query_embedding, self.top_k)
        if method == SearchMethod.HYBRID_RERANK:
            return engine.search_hybrid(
                query.text, query_embedding, self.top_k * self.rerank_candidate_multiplier)
        raise ValueError(f"Unknown search method: {method}")

    def _rerank(self, dataset: Dataset, query: Query,
                results: List[SearchResult]) -> List[SearchResult]:
        """Replace hybrid candidates with the reranker's ordering and scores."""
        texts = [dataset.get_document(r.doc_id).text for r in results]
        reranked = self.rerank_service.rerank(query.text, texts, self.top_k)

        return [
            SearchResult(doc_id=results[rr.index].doc_id, score=rr.relevance_score)
            for rr in reranked
        ]