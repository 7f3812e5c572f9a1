"""
OpenAI-compatible embedding service for generating text embeddings.

Functions:
- generate_embeddings (executor) - Embed many texts in batches, preserving input order
- generate_embedding (executor) - Embed a single text
"""

import logging
import time
from typing import List, Optional, Sequence

import openai
from openai import OpenAI

from retrieval_bench.packages import retry_policy

logger = logging.getLogger(__name__)


class OpenAIEmbeddingService:
    """Service for generating embeddings through an OpenAI-compatible /embeddings API."""

    def __init__(
        self,
        api_key: str,
        base_url: str,
        model: str,
        dimensions: Optional[int] = None,
        batch_size: int = 32,
        max_attempts: int = 3,
        retry_delay: float = 1.0,
        batch_pause: float = 0.1,
        timeout: float = 30.0,
        client: Optional[OpenAI] = None
    ):
        """Initialize embedding service.

        Args:
            api_key: Bearer token for the embedding API
            base_url: API root, e.g. https://api.siliconflow.com/v1
            model: Embedding model name
            dimensions: Expected vector length; responses of another length are rejected
            batch_size: Number of texts sent per request
            max_attempts: Total attempts per batch before the error propagates
            retry_delay: Base delay in seconds; attempt n waits retry_delay * n
            batch_pause: Courtesy pause in seconds between batches
            timeout: Per-request deadline in seconds
            client: Preconfigured OpenAI client (tests inject a mock here)
        """
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")

        # Retries are handled by the retry policy, not the SDK
        self.client = client or OpenAI(
            api_key=api_key, base_url=base_url, timeout=timeout, max_retries=0)
        self.model = model
        self.dimensions = dimensions
        self.batch_size = batch_size
        self.batch_pause = batch_pause
        self._retrying = retry_policy.build_retrying(
            "Embedding", max_attempts, retry_delay, retry_on=(openai.APIError,))
        logger.info(f"Initialized embedding service with model: {model} via {base_url}")

    def generate_embeddings(self, texts: Sequence[str]) -> List[List[float]]:
        """Generate embedding vectors for texts, in the same order as the input.

        Raises:
            openai.APIError: If a batch still fails after the last attempt
            ValueError: If the API returns the wrong number or size of vectors
        """
        embeddings: List[List[float]] = []

        for start in range(0, len(texts), self.batch_size):
            batch = list(texts[start:start + self.batch_size])
            try:
                embeddings.extend(self._retrying(self._embed_batch, batch))
            except Exception as e:
                logger.error(f"Failed to generate embeddings for batch at offset {start}: {e}")
                raise

            # Rate limiting
            if start + self.batch_size < len(texts):
                time.sleep(self.batch_pause)

        logger.info(f"Generated {len(embeddings)} embeddings")
        return embeddings

    def generate_embedding(self, text: str) -> List[float]:
        """Generate embedding vector for input text."""
        return self.generate_embeddings([text])[0]

    def _embed_batch(self, batch: List[str]) -> List[List[float]]:
        """Embed one batch. The API may return items out of order; restore it by index."""
        response = self.client.embeddings.create(input=batch, model=self.model)

        data = sorted(response.data, key=lambda item: item.index)
        if len(data) != len(batch):
            raise ValueError(f"Embedding API returned {len(data)} vectors for {len(batch)} inputs")

        vectors = [list(item.embedding) for item in data]
        if self.dimensions is not None:
            for vector in vectors:
                if len(vector) != self.dimensions:
                    raise ValueError(
                        f"Embedding API returned dimension {len(vector)}, expected {self.dimensions}")

        return vectors
