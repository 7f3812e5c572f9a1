"""
Reference evaluation datasets.

Each dataset lives in its own directory as documents.jsonl + queries.jsonl.
"""

from pathlib import Path

from retrieval_bench.packages.evaluation_framework import Dataset

DATASETS_DIR = Path(__file__).parent


def get_code_dataset() -> Dataset:
    """TypeScript/JS snippets with natural language queries."""
    return Dataset.from_jsonl("Code Search", DATASETS_DIR / "code_search")


def get_fantasy_dataset() -> Dataset:
    """Fictional fantasy lore passages with thematic queries."""
    return Dataset.from_jsonl("Fantasy Books", DATASETS_DIR / "fantasy_books")


# Hardcoded mapping of dataset names to providers
DATASET_MAP = {
    "code": get_code_dataset,
    "fantasy": get_fantasy_dataset,
}
