"""
Rerank service for scoring candidate documents against a query.
"""

import logging
from typing import List, Optional, Sequence

import httpx
from pydantic import BaseModel, Field

from retrieval_bench.packages import retry_policy

logger = logging.getLogger(__name__)


class RerankResult(BaseModel):
    """Relevance score for one submitted document."""
    index: int = Field(description="Position of the document in the submitted list")
    relevance_score: float = Field(description="Reranker relevance score")


class RerankResponse(BaseModel):
    results: List[RerankResult]


class RemoteServiceError(Exception):
    """Non-success HTTP response from a remote scoring service."""

    def __init__(self, service: str, status_code: int, body: str):
        super().__init__(f"{service} API {status_code}: {body}")
        self.status_code = status_code
        self.body = body


class RerankService:
    """Service for reranking documents through a /rerank API."""

    def __init__(
        self,
        api_key: str,
        base_url: str,
        model: str,
        max_attempts: int = 3,
        retry_delay: float = 1.0,
        timeout: float = 30.0,
        http_client: Optional[httpx.Client] = None
    ):
        """Initialize rerank service."""
        self.model = model
        self.http_client = http_client or httpx.Client(base_url=base_url, timeout=timeout)
        self._headers = {"Authorization": f"Bearer {api_key}"}
        self._retrying = retry_policy.build_retrying(
            "Rerank", max_attempts, retry_delay, retry_on=(httpx.HTTPError, RemoteServiceError))
        logger.info(f"Initialized rerank service with model: {model} via {base_url}")

    def rerank(self, query: str, documents: Sequence[str],
               top_k: Optional[int] = None) -> List[RerankResult]:
        """Score documents for query, sorted by relevance_score descending.

        Result indexes point into `documents`; mapping them back to IDs is up to the caller.
        """
        if len(documents) == 0:
            return []

        payload = {
            "model": self.model,
            "query": query,
            "documents": list(documents),
            "top_n": top_k if top_k is not None else len(documents),
        }
        try:
            results = self._retrying(self._post_rerank, payload)
        except Exception as e:
            logger.error(f"Failed to rerank {len(documents)} documents: {e}")
            raise

        return sorted(results, key=lambda r: r.relevance_score, reverse=True)

    def close(self) -> None:
        self.http_client.close()

    def _post_rerank(self, payload: dict) -> List[RerankResult]:
        response = self.http_client.post("/rerank", json=payload, headers=self._headers)
        if not response.is_success:
            raise RemoteServiceError("Rerank", response.status_code, response.text)

        return RerankResponse.model_validate(response.json()).results
