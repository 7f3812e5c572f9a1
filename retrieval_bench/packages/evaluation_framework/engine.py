"""
Abstract search engine interface for the benchmark.

Concrete backends implement the underscored hooks; the public methods enforce
the lifecycle Uninitialized -> Initialized -> Cleaned up.
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import List, Sequence

from .fusion import DEFAULT_RRF_K, fuse_results
from .models import Document, Embedding, QueryText, SearchResult

logger = logging.getLogger(__name__)


class EngineState(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"
    CLEANED_UP = "cleaned_up"


class EngineStateError(RuntimeError):
    """Engine method called outside its lifecycle state."""


class SearchEngine(ABC):
    """Abstract interface for any search backend you benchmark."""

    name: str = "engine"

    def __init__(self, hybrid_candidate_multiplier: int = 2, rrf_k: int = DEFAULT_RRF_K):
        self.hybrid_candidate_multiplier = hybrid_candidate_multiplier
        self.rrf_k = rrf_k
        self.state = EngineState.UNINITIALIZED

    def init(self, documents: Sequence[Document], embeddings: Sequence[Embedding]) -> None:
        """Build the backend's indexes. Called exactly once per instance."""
        if self.state != EngineState.UNINITIALIZED:
            raise EngineStateError(f"{self.name}: init called in state {self.state.value}")
        if len(documents) != len(embeddings):
            raise ValueError(
                f"{self.name}: got {len(documents)} documents but {len(embeddings)} embeddings")

        self._index(documents, embeddings)
        self.state = EngineState.INITIALIZED

    def search_vector(self, query_embedding: Embedding, top_k: int) -> List[SearchResult]:
        """Up to top_k results ordered by similarity, highest first."""
        self._require_initialized()
        return self._search_vector(query_embedding, top_k)

    def search_fts(self, query_text: QueryText, top_k: int) -> List[SearchResult]:
        """Up to top_k results ordered by lexical relevance. Empty when FTS is unavailable."""
        self._require_initialized()
        return self._search_fts(query_text, top_k)

    def search_hybrid(self, query_text: QueryText, query_embedding: Embedding,
                      top_k: int) -> List[SearchResult]:
        """Fuse deeper vector and FTS candidate lists with RRF and keep top_k."""
        self._require_initialized()
        depth = top_k * self.hybrid_candidate_multiplier

        vector_results = self._search_vector(query_embedding, depth)
        text_results = self._search_fts(query_text, depth)
        if len(text_results) == 0:
            logger.debug(f"{self.name}: text search returned 0 results for '{query_text}'")

        return fuse_results(vector_results, text_results, limit=top_k, k=self.rrf_k)

    def cleanup(self) -> None:
        """Release backend resources. Safe after a partial or failed init.

        Release errors are logged, not raised.
        """
        if self.state == EngineState.CLEANED_UP:
            return
        try:
            self._release()
        except Exception as e:
            logger.error(f"{self.name}: cleanup failed: {e}")
        finally:
            self.state = EngineState.CLEANED_UP

    def _require_initialized(self) -> None:
        if self.state != EngineState.INITIALIZED:
            raise EngineStateError(f"{self.name}: search called in state {self.state.value}")

    @abstractmethod
    def _index(self, documents: Sequence[Document], embeddings: Sequence[Embedding]) -> None:
        pass

    @abstractmethod
    def _search_vector(self, query_embedding: Embedding, top_k: int) -> List[SearchResult]:
        pass

    @abstractmethod
    def _search_fts(self, query_text: QueryText, top_k: int) -> List[SearchResult]:
        pass

    @abstractmethod
    def _release(self) -> None:
        pass
