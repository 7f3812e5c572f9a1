"""Benchmark harness for vector, full-text, hybrid and reranked retrieval."""

__version__ = "0.1.0"
