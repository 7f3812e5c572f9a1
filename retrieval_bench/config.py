"""
Configuration management for benchmark settings and command-line arguments.
"""

import argparse
from typing import List, Optional, Sequence

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENGINE_NAMES = ["lancedb", "duckdb", "sqlite", "mongodb"]
DATASET_NAMES = ["code", "fantasy"]


def _split_names(value: str) -> List[str]:
    return [name.strip() for name in value.split(",") if name.strip()]


class Config(BaseSettings):
    model_config = SettingsConfigDict(populate_by_name=True, extra="ignore")

    log_level: str = Field('INFO', description="Logging level",
                           examples=["CRITICAL", "FATAL", "ERROR", "WARNING", "INFO", "DEBUG"])
    json_output: bool = Field(False, description="Print structured results as JSON to stdout")
    engines: str = Field(",".join(ENGINE_NAMES[:3]),
                         description=f"Comma-separated engines, allowed: {ENGINE_NAMES}")
    datasets: str = Field(",".join(DATASET_NAMES),
                          description=f"Comma-separated datasets, allowed: {DATASET_NAMES}")

    top_k: int = Field(5, ge=1, description="Results per query and metric cutoff")
    rrf_k: int = Field(60, ge=1, description="Reciprocal Rank Fusion constant")
    hybrid_candidate_multiplier: int = Field(
        2, ge=1, description="Candidates fetched from each ranked source per hybrid result")
    rerank_candidate_multiplier: int = Field(
        3, ge=1, description="Hybrid candidates fetched per result before reranking")

    embedding_batch_size: int = Field(32, ge=1, description="Texts per embedding request")
    max_attempts: int = Field(3, ge=1, description="Attempts per remote request before failing")
    retry_delay: float = Field(1.0, ge=0, description="Base retry delay in seconds, scaled by attempt")
    batch_pause: float = Field(0.1, ge=0, description="Pause in seconds between embedding batches")
    request_timeout: float = Field(30.0, gt=0, description="Per-request deadline in seconds")

    EMBEDDING_API_KEY: Optional[str] = Field(
        default=None, description="Embedding API key, defaults to RERANKER_API_KEY")
    EMBEDDING_BASE_URL: str = Field(default="https://api.siliconflow.com/v1",
                                    description="OpenAI-compatible embedding API root")
    EMBEDDING_MODEL: str = Field(default="Qwen/Qwen3-Embedding-0.6B",
                                 description="Embedding model")
    EMBEDDING_DIM: int = Field(default=1024, ge=1, description="Embedding vector length")
    RERANKER_API_KEY: str = Field(description="Rerank API key")
    RERANKER_BASE_URL: str = Field(default="https://api.siliconflow.com/v1",
                                   description="Rerank API root")
    RERANKER_MODEL: str = Field(default="Qwen/Qwen3-Reranker-0.6B", description="Rerank model")

    LANCEDB_URI: str = Field(default="data/lancedb", description="LanceDB storage directory")
    MONGODB_URI: Optional[str] = Field(
        default=None,
        description="Mongodb uri, required for the mongodb engine. Example: mongodb+srv://cluster0.example.mongodb.net/?appName=bench")
    MONGODB_USERNAME: Optional[str] = Field(default=None, description="Mongodb user")
    MONGODB_PASSWORD: Optional[str] = Field(default=None, description="Mongodb password")
    MONGODB_DATABASE_NAME: str = Field(default="retrieval-bench",
                                       description="MongoDB database name")

    @field_validator("engines")
    def validate_engines(cls, v):
        names = _split_names(v)
        unknown = [name for name in names if name not in ENGINE_NAMES]
        if unknown or not names:
            raise ValueError(f"Unknown engines {unknown}, allowed: {ENGINE_NAMES}")
        return v

    @field_validator("datasets")
    def validate_datasets(cls, v):
        names = _split_names(v)
        unknown = [name for name in names if name not in DATASET_NAMES]
        if unknown or not names:
            raise ValueError(f"Unknown datasets {unknown}, allowed: {DATASET_NAMES}")
        return v

    @model_validator(mode="after")
    def resolve_dependent_settings(self):
        if self.EMBEDDING_API_KEY is None:
            self.EMBEDDING_API_KEY = self.RERANKER_API_KEY
        if "mongodb" in self.engine_names and not self.MONGODB_URI:
            raise ValueError("The mongodb engine requires MONGODB_URI")
        return self

    @property
    def engine_names(self) -> List[str]:
        return _split_names(self.engines)

    @property
    def dataset_names(self) -> List[str]:
        return _split_names(self.datasets)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command line arguments. Unset flags stay None so the environment wins."""
    parser = argparse.ArgumentParser(
        description="Benchmark vector, full-text, hybrid and reranked retrieval across search engines")

    parser.add_argument(
        "--engines",
        help=f"Comma-separated engines to benchmark (default: lancedb,duckdb,sqlite). Options: {', '.join(ENGINE_NAMES)}",
    )

    parser.add_argument(
        "--datasets",
        help=f"Comma-separated datasets to run (default: all). Options: {', '.join(DATASET_NAMES)}",
    )

    parser.add_argument(
        "--top-k",
        dest="top_k",
        type=int,
        help="Results per query and metric cutoff (default: 5)",
    )

    parser.add_argument(
        "--log-level",
        dest="log_level",
        help="Logging level",
    )

    parser.add_argument(
        "--json",
        dest="json_output",
        action="store_true",
        default=None,
        help="Print structured results as JSON to stdout",
    )

    return parser.parse_args(argv)


def get_config(argv: Optional[Sequence[str]] = None) -> Config:
    args = parse_args(argv)
    # Only include CLI values that are actually set
    cli_overrides = {k: v for k, v in vars(args).items() if v is not None}
    return Config(**cli_overrides)
