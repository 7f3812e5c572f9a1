"""
Benchmark entry point: LanceDB vs DuckDB vs SQLite (and optionally MongoDB Atlas)
on hybrid search for code and fantasy RAG datasets.
"""

import logging
from functools import partial
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from dotenv import load_dotenv

from retrieval_bench.config import Config, get_config
from retrieval_bench.datasets.providers import DATASET_MAP
from retrieval_bench.engines.duckdb_engine import DuckDBEngine
from retrieval_bench.engines.lancedb_engine import LanceDBEngine
from retrieval_bench.engines.mongodb_engine import MongoDBEngine
from retrieval_bench.engines.sqlite_engine import SQLiteEngine
from retrieval_bench.packages.embedding_service import OpenAIEmbeddingService
from retrieval_bench.packages.evaluation_framework import BenchmarkResult, BenchmarkRunner, report
from retrieval_bench.packages.evaluation_framework.runner import DatasetProvider, EngineFactory
from retrieval_bench.packages.mongodb_client import MongoDBClient
from retrieval_bench.packages.rerank_service import RerankService

logger = logging.getLogger(__name__)

# Suppress httpx INFO logs
logging.getLogger("httpx").setLevel(logging.WARNING)

# Load .env.local from project root (must run from project root)
env_local_path = Path('.env.local')
if env_local_path.exists():
    load_dotenv(env_local_path)


def build_engine_factories(config: Config) -> Dict[str, EngineFactory]:
    """Engine key -> factory for the engines selected in config."""
    fusion = {
        "hybrid_candidate_multiplier": config.hybrid_candidate_multiplier,
        "rrf_k": config.rrf_k,
    }
    factories: Dict[str, EngineFactory] = {
        "lancedb": partial(LanceDBEngine, uri=config.LANCEDB_URI, **fusion),
        "duckdb": partial(DuckDBEngine, dimensions=config.EMBEDDING_DIM, **fusion),
        "sqlite": partial(SQLiteEngine, dimensions=config.EMBEDDING_DIM, **fusion),
    }

    if config.MONGODB_URI:
        mongodb_client = MongoDBClient(
            uri=config.MONGODB_URI,
            username=config.MONGODB_USERNAME,
            password=config.MONGODB_PASSWORD,
            timeout=config.request_timeout,
        )
        factories["mongodb"] = partial(
            MongoDBEngine,
            mongodb_client=mongodb_client,
            database_name=config.MONGODB_DATABASE_NAME,
            dimensions=config.EMBEDDING_DIM,
            **fusion,
        )

    return {name: factories[name] for name in config.engine_names}


def build_dataset_providers(config: Config) -> List[DatasetProvider]:
    return [DATASET_MAP[name] for name in config.dataset_names]


def run_benchmark(config: Config) -> List[BenchmarkResult]:
    """Wire services from config, run every dataset and log the report."""
    logger.info("Models:")
    logger.info(
        f"  Embedding: {config.EMBEDDING_MODEL} ({config.EMBEDDING_DIM}d) via {config.EMBEDDING_BASE_URL}")
    logger.info(f"  Reranker:  {config.RERANKER_MODEL} via {config.RERANKER_BASE_URL}")

    embedding_service = OpenAIEmbeddingService(
        api_key=config.EMBEDDING_API_KEY,
        base_url=config.EMBEDDING_BASE_URL,
        model=config.EMBEDDING_MODEL,
        dimensions=config.EMBEDDING_DIM,
        batch_size=config.embedding_batch_size,
        max_attempts=config.max_attempts,
        retry_delay=config.retry_delay,
        batch_pause=config.batch_pause,
        timeout=config.request_timeout,
    )
    rerank_service = RerankService(
        api_key=config.RERANKER_API_KEY,
        base_url=config.RERANKER_BASE_URL,
        model=config.RERANKER_MODEL,
        max_attempts=config.max_attempts,
        retry_delay=config.retry_delay,
        timeout=config.request_timeout,
    )

    runner = BenchmarkRunner(
        embedding_service=embedding_service,
        engine_factories=build_engine_factories(config),
        rerank_service=rerank_service,
        top_k=config.top_k,
        rerank_candidate_multiplier=config.rerank_candidate_multiplier,
    )

    try:
        results = runner.run(build_dataset_providers(config))
    finally:
        rerank_service.close()

    report.display_results(results)
    report.display_method_breakdown(results)
    report.display_final_verdict(results)
    report.display_failures(runner.failures)

    if config.json_output:
        print(report.to_json(results, runner.failures))

    return results


def main(argv: Optional[Sequence[str]] = None):
    # Load configuration from environment variables and command-line arguments
    config = get_config(argv)

    logging.basicConfig(level=config.log_level)

    run_benchmark(config)


if __name__ == "__main__":
    main()
